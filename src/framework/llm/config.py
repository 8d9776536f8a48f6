from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple
import os

from framework.utils.env import split_csv


DEFAULT_MODEL_NAME = "gemini-2.0-flash"
DEFAULT_FALLBACK_MODELS = ("gemini-2.5-flash", "gemini-2.0-flash", "gemini-1.5-flash", "gemini-2.5-pro")


@dataclass(frozen=True)
class VertexAIConfig:
    project_id: str
    location: str
    credentials_path: Path
    preferred_model: Optional[str]
    default_model: str
    fallback_models: Tuple[str, ...]
    temperature: float
    max_output_tokens: int

    @classmethod
    def from_env(cls) -> "VertexAIConfig":
        project_id = os.getenv("GOOGLE_CLOUD_PROJECT") or os.getenv("VERTEX_PROJECT_ID")
        location = (
            os.getenv("GOOGLE_CLOUD_LOCATION")
            or os.getenv("VERTEX_LOCATION")
            or "us-central1"
        )
        credentials_path_str = os.getenv("GOOGLE_APPLICATION_CREDENTIALS")

        if not project_id:
            raise ValueError(
                "GOOGLE_CLOUD_PROJECT (or VERTEX_PROJECT_ID) must be set."
            )
        if not credentials_path_str:
            raise ValueError("GOOGLE_APPLICATION_CREDENTIALS must be set.")

        credentials_path = Path(credentials_path_str)
        if not credentials_path.exists():
            raise FileNotFoundError(
                f"GOOGLE_APPLICATION_CREDENTIALS not found: {credentials_path}"
            )

        preferred_model = (os.getenv("VERTEX_MODEL_NAME") or "").strip() or None
        default_model = (os.getenv("VERTEX_DEFAULT_MODEL") or "").strip() or DEFAULT_MODEL_NAME
        fallback_models = tuple(split_csv(os.getenv("VERTEX_FALLBACK_MODELS"))) or DEFAULT_FALLBACK_MODELS

        temperature = float(os.getenv("VERTEX_TEMPERATURE", "0.2"))
        max_output_tokens = int(os.getenv("VERTEX_MAX_OUTPUT_TOKENS", "4096"))

        return cls(
            project_id=project_id,
            location=location,
            credentials_path=credentials_path,
            preferred_model=preferred_model,
            default_model=default_model,
            fallback_models=fallback_models,
            temperature=temperature,
            max_output_tokens=max_output_tokens,
        )
