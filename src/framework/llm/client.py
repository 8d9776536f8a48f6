from __future__ import annotations

import logging
import os
import warnings
from typing import Any, Protocol, Sequence

from google.oauth2 import service_account
from tenacity import retry, retry_if_exception, stop_after_attempt, wait_exponential
import vertexai
from vertexai.preview.generative_models import GenerationConfig, GenerativeModel, Part

from framework.io.images import InlineImage
from framework.llm.config import VertexAIConfig
from framework.utils.env import parse_bool_env


logger = logging.getLogger(__name__)


class LLMClient(Protocol):
    def generate(
        self,
        prompt: str,
        *,
        images: Sequence[InlineImage] = (),
        model_name: str | None = None,
    ) -> str:  # pragma: no cover - interface only
        ...

    def list_models(self) -> list[str]:  # pragma: no cover - interface only
        ...


def is_model_not_found_error(exc: BaseException) -> bool:
    message = str(exc).lower()
    return "404" in message or "not found" in message or "not supported" in message


def _is_retryable(exc: BaseException) -> bool:
    return not is_model_not_found_error(exc)


def suppress_vertex_warnings() -> None:
    if not parse_bool_env(os.getenv("SUPPRESS_VERTEXAI_WARNINGS", "true")):
        return
    warnings.filterwarnings(
        "ignore",
        message=r"This feature is deprecated as of June 24, 2025.*",
        category=UserWarning,
        module=r"vertexai\..*",
    )


def build_generation_config(
    config: VertexAIConfig,
    response_schema: dict[str, Any] | None = None,
    response_mime_type: str | None = "application/json",
) -> GenerationConfig:
    """Build the richest GenerationConfig the installed SDK accepts.

    Older vertexai releases reject ``response_schema`` and
    ``response_mime_type``, so each is dropped in turn on ``TypeError``.
    """
    base: dict[str, Any] = {
        "temperature": config.temperature,
        "max_output_tokens": config.max_output_tokens,
    }
    candidates: list[dict[str, Any]] = []
    if response_mime_type:
        if response_schema and parse_bool_env(os.getenv("LLM_USE_RESPONSE_SCHEMA", "false")):
            candidates.append(
                {**base, "response_mime_type": response_mime_type, "response_schema": response_schema}
            )
        candidates.append({**base, "response_mime_type": response_mime_type})

    for kwargs in candidates:
        try:
            return GenerationConfig(**kwargs)
        except TypeError:
            logger.debug("GenerationConfig rejected %s", sorted(kwargs))
    return GenerationConfig(**base)


class VertexGeminiClient:
    def __init__(
        self,
        config: VertexAIConfig,
        response_schema: dict[str, Any] | None = None,
        response_mime_type: str | None = "application/json",
    ) -> None:
        suppress_vertex_warnings()
        vertexai.init(
            project=config.project_id,
            location=config.location,
            credentials=_load_credentials(config),
        )
        logger.debug("Vertex AI initialised for %s in %s", config.project_id, config.location)
        self._config = config
        self._models: dict[str, GenerativeModel] = {}
        self._generation_config = build_generation_config(
            config,
            response_schema=response_schema,
            response_mime_type=response_mime_type,
        )

    def _model(self, model_name: str) -> GenerativeModel:
        model = self._models.get(model_name)
        if model is None:
            model = GenerativeModel(model_name)
            self._models[model_name] = model
        return model

    @retry(
        wait=wait_exponential(min=1, max=10),
        stop=stop_after_attempt(3),
        retry=retry_if_exception(_is_retryable),
        reraise=True,
    )
    def generate(
        self,
        prompt: str,
        *,
        images: Sequence[InlineImage] = (),
        model_name: str | None = None,
    ) -> str:
        contents: list[Any] = [
            Part.from_data(data=image.data, mime_type=image.mime_type) for image in images
        ]
        contents.append(prompt)
        response = self._model(model_name or self._config.default_model).generate_content(
            contents, generation_config=self._generation_config
        )
        return getattr(response, "text", "") or ""

    def list_models(self) -> list[str]:
        return list(self._config.fallback_models)


def _load_credentials(config: VertexAIConfig) -> service_account.Credentials | None:
    if not config.credentials_path:
        return None
    return service_account.Credentials.from_service_account_file(str(config.credentials_path))
