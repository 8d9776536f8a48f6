from __future__ import annotations

from typing import Optional


class ModelSelectionCache:
    """Remembers the last model name that produced a response.

    Lives for the process only. Concurrent writers simply overwrite each
    other; the worst outcome of a race is one extra discovery round.
    """

    def __init__(self, model_name: Optional[str] = None) -> None:
        self._model_name = model_name

    def get(self) -> Optional[str]:
        return self._model_name

    def set(self, model_name: str) -> None:
        if model_name:
            self._model_name = model_name

    def clear(self) -> None:
        self._model_name = None

    def __repr__(self) -> str:
        return f"ModelSelectionCache(model_name={self._model_name!r})"
