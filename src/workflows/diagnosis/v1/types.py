from __future__ import annotations

from typing import List, Optional

from typing_extensions import TypedDict

from workflows.diagnosis.v1.schemas.domain import AnalysisRequest, DiagnosisResult


class AnalysisState(TypedDict, total=False):
    request: AnalysisRequest
    raw_text: str
    model_name: Optional[str]
    used_fallback_model: bool
    repair_attempts: int
    result: Optional[DiagnosisResult]
    error_kind: Optional[str]
    errors: List[str]
