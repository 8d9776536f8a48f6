from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from workflows.diagnosis.v1.schemas.domain import (
    AnalysisRequest,
    BoardType,
    DiagnosisResult,
    VerifyFixRequest,
)


class AnalyzeRequestSchema(BaseModel):
    """Body of ``POST /api/analyze``; camelCase keys as sent by the browser client."""

    model_config = ConfigDict(populate_by_name=True)

    board_type: BoardType = Field(alias="boardType")
    goal: str = Field(min_length=1, max_length=4000)
    issue_text: str = Field(alias="issueText", min_length=1, max_length=8000)
    image_base64: Optional[str] = Field(default=None, alias="imageBase64", max_length=4_500_000)
    sankofa_mode: bool = Field(default=False, alias="sankofaMode")

    def to_request(self) -> AnalysisRequest:
        return AnalysisRequest(
            board_type=self.board_type,
            goal=self.goal,
            issue_text=self.issue_text,
            image_base64=self.image_base64,
            sankofa_mode=self.sankofa_mode,
        )


class VerifyFixRequestSchema(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    board_type: BoardType = Field(alias="boardType")
    goal: str = Field(min_length=1, max_length=4000)
    original_issue_text: str = Field(alias="originalIssueText", min_length=1, max_length=8000)
    previous_result: DiagnosisResult = Field(alias="previousResult")
    new_image_base64: Optional[str] = Field(default=None, alias="newImageBase64", max_length=4_500_000)
    new_serial_output: str = Field(default="", alias="newSerialOutput", max_length=8000)
    confirmations: List[str]

    def to_request(self) -> VerifyFixRequest:
        return VerifyFixRequest(
            board_type=self.board_type,
            goal=self.goal,
            original_issue_text=self.original_issue_text,
            previous_result=self.previous_result,
            new_image_base64=self.new_image_base64,
            new_serial_output=self.new_serial_output,
            confirmations=self.confirmations,
        )


class ErrorResponse(BaseModel):
    error: str
    details: Optional[List[str]] = None


class HealthResponse(BaseModel):
    status: str = "ok"
    timestamp: str = Field(default_factory=lambda: datetime.now(tz=timezone.utc).isoformat())
