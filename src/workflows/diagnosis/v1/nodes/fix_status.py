from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

from workflows.diagnosis.v1.schemas.domain import FIX_STATUSES, DiagnosisResult, FixStatus


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FixJudgment:
    status: FixStatus
    rationale: Optional[str] = None


def is_resolved(result: DiagnosisResult) -> bool:
    # A missing status means the fix has not been verified yet.
    return result.status == "resolved"


def judgment_from_payload(payload: Any) -> FixJudgment:
    if not isinstance(payload, dict):
        return FixJudgment(status="pending")
    raw_status = payload.get("status")
    status = raw_status.strip().lower() if isinstance(raw_status, str) else ""
    if status not in FIX_STATUSES:
        status = "pending"
    rationale = payload.get("why_this_fix_worked")
    if not isinstance(rationale, str):
        rationale = None
    return FixJudgment(status=status, rationale=rationale)


def merge_fix_judgment(prior: DiagnosisResult, judgment: FixJudgment) -> DiagnosisResult:
    """Return the next result for ``judgment``; ``prior`` is left untouched.

    A resolved fix is backed by fresh evidence, so confidence becomes high even
    when the original analysis listed uncertainty zones.
    """
    if is_resolved(prior):
        logger.debug("Merging a %s judgment into an already resolved result.", judgment.status)

    if judgment.status == "resolved":
        rationale = (judgment.rationale or "").strip() or None
        return prior.model_copy(
            update={
                "status": "resolved",
                "confidence": "high",
                "why_this_fix_worked": rationale,
            }
        )

    return prior.model_copy(update={"status": "pending", "why_this_fix_worked": None})
