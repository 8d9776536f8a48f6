from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from workflows.diagnosis.v1.schemas.domain import DiagnosisResult


class WorkflowErrorKind(str, Enum):
    NOT_CONFIGURED = "not_configured"
    INVALID_IMAGE = "invalid_image"
    MODEL_UNAVAILABLE = "model_unavailable"
    MODEL_FAILED = "model_failed"
    EMPTY_RESPONSE = "empty_response"
    NO_JSON = "no_json"
    INVALID_JSON = "invalid_json"
    INVALID_SHAPE = "invalid_shape"


@dataclass(frozen=True)
class AnalysisOutcome:
    result: Optional[DiagnosisResult] = None
    error_kind: Optional[WorkflowErrorKind] = None
    errors: list[str] = field(default_factory=list)
    model_name: Optional[str] = None
    used_fallback_model: bool = False
    demo_fallback: bool = False

    @property
    def ok(self) -> bool:
        return self.result is not None

    def to_payload(self) -> dict[str, Any]:
        if self.result is None:
            raise ValueError("Failed analysis has no payload.")
        payload = self.result.to_payload()
        if self.demo_fallback:
            payload["fallback"] = True
        return payload


@dataclass(frozen=True)
class VerifyFixOutcome:
    result: Optional[DiagnosisResult] = None
    error_kind: Optional[WorkflowErrorKind] = None
    errors: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.result is not None
