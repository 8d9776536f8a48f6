from __future__ import annotations

import logging
from typing import Optional

from framework.io.images import ImageDecodeError, InlineImage, decode_image_data_url
from framework.llm.model_selection import ModelSelectingInvoker, ModelUnavailableError
from workflows.diagnosis.v1.config import WorkflowConfig
from workflows.diagnosis.v1.nodes.parse_response import ParseErrorKind, parse_model_output
from workflows.diagnosis.v1.outcomes import WorkflowErrorKind
from workflows.diagnosis.v1.prompt_templates.analyze import build_analysis_prompt
from workflows.diagnosis.v1.prompt_templates.json_repair import REPAIR_PROMPT_TEMPLATE
from workflows.diagnosis.v1.types import AnalysisState


logger = logging.getLogger(__name__)

_REPAIRABLE = {
    ParseErrorKind.NO_JSON.value,
    ParseErrorKind.INVALID_JSON.value,
    ParseErrorKind.INVALID_SHAPE.value,
}


class DiagnosisAnalyzer:
    """Graph nodes for one analysis: generate, parse, and optional repair."""

    def __init__(self, invoker: ModelSelectingInvoker, config: Optional[WorkflowConfig] = None) -> None:
        self._invoker = invoker
        self._config = config or WorkflowConfig()

    def generate(self, state: AnalysisState) -> dict:
        request = state["request"]
        images: list[InlineImage] = []
        if request.image_base64 and request.image_base64.strip():
            try:
                images.append(decode_image_data_url(request.image_base64))
            except ImageDecodeError as exc:
                logger.warning("Image processing failed: %s", exc)
                return _failed(
                    WorkflowErrorKind.INVALID_IMAGE,
                    "Could not process image. Use a valid JPEG or PNG under 3MB.",
                )

        prompt = build_analysis_prompt(
            request.board_type,
            request.goal,
            request.issue_text,
            has_image=bool(images),
            sankofa_mode=request.sankofa_mode,
        )
        logger.info("Calling model for %s analysis (image=%s).", request.board_type, bool(images))
        try:
            invocation = self._invoker.invoke(prompt, images=images)
        except ModelUnavailableError as exc:
            logger.error("Model discovery fallback failed: %s", exc)
            return _failed(
                WorkflowErrorKind.MODEL_UNAVAILABLE,
                "No supported model available. Check connection and retry.",
            )
        except Exception as exc:
            logger.exception("Model call failed: %s", exc)
            return _failed(WorkflowErrorKind.MODEL_FAILED, "Analysis failed. Check connection and retry.")

        return {
            "raw_text": invocation.text,
            "model_name": invocation.model_name,
            "used_fallback_model": invocation.used_fallback,
        }

    def parse(self, state: AnalysisState) -> dict:
        parsed = parse_model_output(
            state.get("raw_text", ""),
            string_aware=self._config.string_aware_json,
            lenient=self._config.lenient_json,
        )
        if parsed.ok:
            return {"result": parsed.result, "error_kind": None, "errors": []}

        self._log_issue("Model response rejected (%s): %s", parsed.error_kind.value, parsed.errors)
        return {"result": None, "error_kind": parsed.error_kind.value, "errors": parsed.errors}

    def repair(self, state: AnalysisState) -> dict:
        attempts = state.get("repair_attempts", 0) + 1
        raw = (state.get("raw_text") or "").strip()[: self._config.repair_max_chars]
        problems = "\n".join(f"- {error}" for error in state.get("errors", [])) or "- unknown"
        prompt = REPAIR_PROMPT_TEMPLATE.format(raw=raw, problems=problems)
        try:
            invocation = self._invoker.invoke(prompt)
        except Exception as exc:
            logger.info("Model repair failed: %s", exc)
            # Exhaust the budget so the graph stops with the original parse error.
            return {"repair_attempts": self._config.repair_attempts}
        logger.debug("Repair attempt %d returned %d chars.", attempts, len(invocation.text))
        return {"raw_text": invocation.text, "repair_attempts": attempts}

    def route_after_generate(self, state: AnalysisState) -> str:
        return "end" if state.get("error_kind") else "parse"

    def route_after_parse(self, state: AnalysisState) -> str:
        if state.get("result") is not None:
            return "end"
        if not self._config.enable_repair:
            return "end"
        if state.get("error_kind") not in _REPAIRABLE:
            return "end"
        if state.get("repair_attempts", 0) >= self._config.repair_attempts:
            return "end"
        return "repair"

    def _log_issue(self, message: str, *args: object) -> None:
        if self._config.log_verbose:
            logger.warning(message, *args)
        else:
            logger.debug(message, *args)


def _failed(kind: WorkflowErrorKind, message: str) -> dict:
    return {"result": None, "error_kind": kind.value, "errors": [message]}
