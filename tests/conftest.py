from __future__ import annotations

import copy
from typing import Any, Sequence

import pytest


VALID_PAYLOAD: dict[str, Any] = {
    "title": "I2C display not detected",
    "confidence": "low",
    "summary": "The OLED never acknowledges on the I2C bus.",
    "likely_causes": ["SDA/SCL swapped", "No pull-up resistors"],
    "fix_steps": [
        {"step": 1, "action": "Swap SDA and SCL", "why": "They are reversed on the breadboard."},
        {"step": 2, "action": "Add 4.7k pull-ups", "why": "The bus floats without them."},
    ],
    "verification": ["Scan I2C bus", "Confirm shared ground"],
    "explanation_beginner": "The screen and the board are not talking yet.",
    "explanation_advanced": "No ACK at 0x3C; SDA on GPIO22 and SCL on GPIO21.",
}


class FakeLLMClient:
    def __init__(
        self,
        responses: Sequence[Any] = (),
        missing_models: Sequence[str] = (),
        available_models: Sequence[str] = ("models/gemini-2.5-flash",),
    ) -> None:
        self.responses = list(responses)
        self.missing_models = set(missing_models)
        self.available_models = list(available_models)
        self.calls: list[dict[str, Any]] = []
        self.list_calls = 0

    def generate(self, prompt: str, *, images: Sequence[Any] = (), model_name: str | None = None) -> str:
        self.calls.append({"prompt": prompt, "images": list(images), "model_name": model_name})
        if model_name in self.missing_models:
            raise RuntimeError(f"404 Publisher Model `{model_name}` was not found")
        if not self.responses:
            raise AssertionError("FakeLLMClient ran out of responses")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    def list_models(self) -> list[str]:
        self.list_calls += 1
        return list(self.available_models)


@pytest.fixture
def valid_payload() -> dict[str, Any]:
    return copy.deepcopy(VALID_PAYLOAD)


@pytest.fixture
def fake_client_cls() -> type[FakeLLMClient]:
    return FakeLLMClient
