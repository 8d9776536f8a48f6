from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from framework.llm.json_utils import extract_json_object, parse_json_like
from workflows.diagnosis.v1.nodes.normalize import NormalizationIssue, normalize_diagnosis
from workflows.diagnosis.v1.schemas.domain import DiagnosisResult


logger = logging.getLogger(__name__)


class ParseErrorKind(str, Enum):
    EMPTY_RESPONSE = "empty_response"
    NO_JSON = "no_json"
    INVALID_JSON = "invalid_json"
    INVALID_SHAPE = "invalid_shape"


ERROR_MESSAGES = {
    ParseErrorKind.EMPTY_RESPONSE: "Model returned no text.",
    ParseErrorKind.NO_JSON: "Could not find JSON in response.",
    ParseErrorKind.INVALID_JSON: "Model response was not valid JSON.",
    ParseErrorKind.INVALID_SHAPE: "Model response shape invalid.",
}


@dataclass(frozen=True)
class DecodedPayload:
    payload: Any = None
    error_kind: Optional[ParseErrorKind] = None


@dataclass(frozen=True)
class ParsedDiagnosis:
    result: Optional[DiagnosisResult] = None
    error_kind: Optional[ParseErrorKind] = None
    errors: list[str] = field(default_factory=list)
    issues: tuple[NormalizationIssue, ...] = ()

    @property
    def ok(self) -> bool:
        return self.result is not None


def decode_model_json(
    raw: Optional[str],
    *,
    string_aware: bool = False,
    lenient: bool = True,
) -> DecodedPayload:
    if not raw or not raw.strip():
        return DecodedPayload(error_kind=ParseErrorKind.EMPTY_RESPONSE)
    candidate = extract_json_object(raw, string_aware=string_aware)
    if candidate is None:
        return DecodedPayload(error_kind=ParseErrorKind.NO_JSON)
    payload = parse_json_like(candidate, lenient=lenient)
    if payload is None:
        return DecodedPayload(error_kind=ParseErrorKind.INVALID_JSON)
    return DecodedPayload(payload=payload)


def parse_model_output(
    raw: Optional[str],
    *,
    string_aware: bool = False,
    lenient: bool = True,
) -> ParsedDiagnosis:
    decoded = decode_model_json(raw, string_aware=string_aware, lenient=lenient)
    if decoded.error_kind is not None:
        return ParsedDiagnosis(
            error_kind=decoded.error_kind,
            errors=[ERROR_MESSAGES[decoded.error_kind]],
        )

    normalized = normalize_diagnosis(decoded.payload)
    if not normalized.ok:
        logger.debug("Model response failed validation: %s", normalized.errors)
        return ParsedDiagnosis(
            error_kind=ParseErrorKind.INVALID_SHAPE,
            errors=normalized.errors,
            issues=normalized.issues,
        )
    return ParsedDiagnosis(result=normalized.result)
