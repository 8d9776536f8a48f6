from __future__ import annotations

import logging
from typing import Optional

from framework.io.images import ImageDecodeError, InlineImage, decode_image_data_url
from framework.llm.model_selection import ModelSelectingInvoker, ModelUnavailableError
from workflows.diagnosis.v1.config import WorkflowConfig
from workflows.diagnosis.v1.nodes.fix_status import judgment_from_payload, merge_fix_judgment
from workflows.diagnosis.v1.nodes.parse_response import ERROR_MESSAGES, decode_model_json
from workflows.diagnosis.v1.outcomes import VerifyFixOutcome, WorkflowErrorKind
from workflows.diagnosis.v1.prompt_templates.verify_fix import build_verify_prompt
from workflows.diagnosis.v1.schemas.domain import VerifyFixRequest


logger = logging.getLogger(__name__)


class FixVerifier:
    def __init__(self, invoker: ModelSelectingInvoker, config: Optional[WorkflowConfig] = None) -> None:
        self._invoker = invoker
        self._config = config or WorkflowConfig()

    def verify(self, request: VerifyFixRequest) -> VerifyFixOutcome:
        previous = request.previous_result
        confirmations = _known_confirmations(request.confirmations, previous.verification)

        images: list[InlineImage] = []
        if request.new_image_base64 and request.new_image_base64.strip():
            try:
                images.append(decode_image_data_url(request.new_image_base64))
            except ImageDecodeError as exc:
                logger.warning("Verification image rejected: %s", exc)
                return VerifyFixOutcome(
                    error_kind=WorkflowErrorKind.INVALID_IMAGE,
                    errors=["Could not process image. Use a valid JPEG or PNG under 3MB."],
                )

        prompt = build_verify_prompt(
            request.board_type,
            request.goal,
            request.original_issue_text,
            title=previous.title,
            summary=previous.summary,
            fix_steps=[(step.step, step.action, step.why) for step in previous.fix_steps],
            new_serial_output=request.new_serial_output,
            confirmations=confirmations,
            has_image=bool(images),
        )
        try:
            invocation = self._invoker.invoke(prompt, images=images)
        except ModelUnavailableError as exc:
            logger.error("No model available for fix verification: %s", exc)
            return VerifyFixOutcome(
                error_kind=WorkflowErrorKind.MODEL_UNAVAILABLE,
                errors=["No supported model available. Check connection and retry."],
            )
        except Exception as exc:
            logger.exception("Fix verification call failed: %s", exc)
            return VerifyFixOutcome(
                error_kind=WorkflowErrorKind.MODEL_FAILED,
                errors=["Verify fix failed. Check connection and retry."],
            )

        decoded = decode_model_json(
            invocation.text,
            string_aware=self._config.string_aware_json,
            lenient=self._config.lenient_json,
        )
        if decoded.error_kind is not None:
            logger.warning("Fix verification response unusable: %s", decoded.error_kind.value)
            return VerifyFixOutcome(
                error_kind=WorkflowErrorKind(decoded.error_kind.value),
                errors=[ERROR_MESSAGES[decoded.error_kind]],
            )

        judgment = judgment_from_payload(decoded.payload)
        logger.info("Fix verification judged %s.", judgment.status)
        return VerifyFixOutcome(result=merge_fix_judgment(previous, judgment))


def _known_confirmations(confirmations: list[str], verification: list[str]) -> list[str]:
    allowed = {item.strip() for item in verification}
    known = []
    for label in confirmations:
        cleaned = label.strip()
        if cleaned in allowed and cleaned not in known:
            known.append(cleaned)
        elif cleaned not in allowed:
            logger.debug("Ignoring confirmation outside the verification list: %s", cleaned)
    return known
