from __future__ import annotations

from typing import Any, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


ConfidenceLevel = Literal["low", "medium", "high"]
CodeLanguage = Literal["cpp", "c", "python", "text"]
FixStatus = Literal["pending", "resolved"]
BoardType = Literal["ESP32", "STM32", "Arduino"]

CONFIDENCE_LEVELS: tuple[str, ...] = ("low", "medium", "high")
CODE_LANGUAGES: tuple[str, ...] = ("cpp", "c", "python", "text")
FIX_STATUSES: tuple[str, ...] = ("pending", "resolved")
BOARD_TYPES: tuple[str, ...] = ("ESP32", "STM32", "Arduino")


class FixStep(BaseModel):
    step: int
    action: str
    why: str


class CodeSnippet(BaseModel):
    language: CodeLanguage = "text"
    content: str


class UncertaintyZone(BaseModel):
    area: str
    reason: str
    how_to_verify: str


class IntentMismatch(BaseModel):
    expected: str
    observed: str
    impact: str


class FailureRisk(BaseModel):
    risk: str
    likelihood: ConfidenceLevel = "medium"
    prevention: str
    time_horizon: Optional[str] = None


class DiagnosisResult(BaseModel):
    model_config = ConfigDict(extra="ignore")

    title: str
    confidence: ConfidenceLevel
    summary: str
    likely_causes: List[str]
    fix_steps: List[FixStep]
    verification: List[str]
    explanation_beginner: str
    explanation_advanced: str
    explanation_beginner_sankofa: Optional[str] = None
    code_snippet: Optional[CodeSnippet] = None
    safety_notes: Optional[List[str]] = None
    assumptions: Optional[List[str]] = None
    uncertainty_zones: Optional[List[UncertaintyZone]] = None
    intent_mismatch: Optional[List[IntentMismatch]] = None
    failure_risks: Optional[List[FailureRisk]] = None
    status: Optional[FixStatus] = None
    why_this_fix_worked: Optional[str] = None

    def to_payload(self) -> dict[str, Any]:
        """Wire shape: snake_case keys, absent optional fields omitted."""
        return self.model_dump(mode="json", exclude_none=True)


class AnalysisRequest(BaseModel):
    board_type: BoardType
    goal: str = Field(min_length=1, max_length=4000)
    issue_text: str = Field(min_length=1, max_length=8000)
    image_base64: Optional[str] = Field(default=None, max_length=4_500_000)
    sankofa_mode: bool = False


class VerifyFixRequest(BaseModel):
    board_type: BoardType
    goal: str = Field(min_length=1, max_length=4000)
    original_issue_text: str = Field(min_length=1, max_length=8000)
    previous_result: DiagnosisResult
    new_image_base64: Optional[str] = Field(default=None, max_length=4_500_000)
    new_serial_output: str = Field(default="", max_length=8000)
    confirmations: List[str] = Field(default_factory=list)
