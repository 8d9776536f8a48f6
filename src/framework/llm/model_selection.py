from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

from framework.io.images import InlineImage
from framework.llm.client import LLMClient, is_model_not_found_error
from framework.llm.config import DEFAULT_MODEL_NAME
from framework.llm.model_cache import ModelSelectionCache


logger = logging.getLogger(__name__)


class ModelUnavailableError(RuntimeError):
    pass


@dataclass(frozen=True)
class InvocationResult:
    text: str
    model_name: str
    used_fallback: bool = False


def _model_id(name: str) -> str:
    # "models/gemini-x" and "publishers/google/models/gemini-x" both reduce to "gemini-x".
    return re.sub(r"^.*models/", "", (name or "").strip())


def select_best_model(names: Iterable[str]) -> Optional[str]:
    """Prefer a Flash model for latency, else the first available one."""
    ids = [model_id for model_id in (_model_id(name) for name in names) if model_id]
    for model_id in ids:
        if "flash" in model_id.lower():
            return model_id
    return ids[0] if ids else None


class ModelSelectingInvoker:
    def __init__(
        self,
        client: LLMClient,
        cache: ModelSelectionCache,
        preferred_model: Optional[str] = None,
        default_model: str = DEFAULT_MODEL_NAME,
    ) -> None:
        self._client = client
        self._cache = cache
        self._preferred_model = preferred_model
        self._default_model = default_model

    @property
    def cache(self) -> ModelSelectionCache:
        return self._cache

    def resolve_model_name(self) -> str:
        return self._preferred_model or self._cache.get() or self._default_model

    def invoke(self, prompt: str, images: Sequence[InlineImage] = ()) -> InvocationResult:
        model_name = self.resolve_model_name()
        try:
            text = self._client.generate(prompt, images=images, model_name=model_name)
        except Exception as exc:
            if not is_model_not_found_error(exc):
                raise
            logger.warning("Model %s unavailable (%s); discovering an alternative.", model_name, exc)
            return self._invoke_discovered(prompt, images, failed_model=model_name)

        self._cache.set(model_name)
        logger.info("Using model: %s", model_name)
        return InvocationResult(text=text, model_name=model_name)

    def _invoke_discovered(
        self,
        prompt: str,
        images: Sequence[InlineImage],
        failed_model: str,
    ) -> InvocationResult:
        try:
            available = self._client.list_models()
        except Exception as exc:
            raise ModelUnavailableError(f"Model discovery failed: {exc}") from exc

        candidates = [name for name in available if _model_id(name) != failed_model]
        selected = select_best_model(candidates)
        if not selected:
            raise ModelUnavailableError("No model with generateContent support found")

        logger.info("Model not available, auto-selected: %s", selected)
        try:
            text = self._client.generate(prompt, images=images, model_name=selected)
        except Exception as exc:
            if is_model_not_found_error(exc):
                raise ModelUnavailableError(f"Fallback model {selected} unavailable: {exc}") from exc
            raise
        self._cache.set(selected)
        return InvocationResult(text=text, model_name=selected, used_fallback=True)
