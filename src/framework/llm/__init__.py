"""LLM client abstractions and helpers."""

from .client import (
    LLMClient,
    VertexGeminiClient,
    build_generation_config,
    is_model_not_found_error,
    suppress_vertex_warnings,
)
from .config import VertexAIConfig
from .model_cache import ModelSelectionCache
from .model_selection import InvocationResult, ModelSelectingInvoker, ModelUnavailableError, select_best_model

__all__ = [
    "InvocationResult",
    "LLMClient",
    "ModelSelectingInvoker",
    "ModelSelectionCache",
    "ModelUnavailableError",
    "VertexGeminiClient",
    "VertexAIConfig",
    "build_generation_config",
    "is_model_not_found_error",
    "select_best_model",
    "suppress_vertex_warnings",
]
