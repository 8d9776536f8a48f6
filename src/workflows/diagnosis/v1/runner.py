from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Optional

from workflows.diagnosis.v1.config import WorkflowConfig
from workflows.diagnosis.v1.demo import demo_fallback_result, is_demo_request
from workflows.diagnosis.v1.nodes.analyze import DiagnosisAnalyzer
from workflows.diagnosis.v1.nodes.verify_fix import FixVerifier
from workflows.diagnosis.v1.orchestrator import Invokers, build_analysis_graph
from workflows.diagnosis.v1.outcomes import AnalysisOutcome, VerifyFixOutcome, WorkflowErrorKind
from workflows.diagnosis.v1.schemas.domain import AnalysisRequest, VerifyFixRequest


logger = logging.getLogger(__name__)


class DiagnosisService:
    """Runs analysis and fix verification against lazily built model invokers.

    Invokers are built on first use so a missing Vertex configuration only
    fails the request that needs it, and demo requests can still fall back.
    """

    def __init__(
        self,
        invokers_factory: Callable[[], Invokers],
        config: Optional[WorkflowConfig] = None,
    ) -> None:
        self._invokers_factory = invokers_factory
        self._config = config or WorkflowConfig()
        self._lock = threading.Lock()
        self._invokers: Optional[Invokers] = None
        self._graph: Any = None
        self._verifier: Optional[FixVerifier] = None

    def _ensure_ready(self) -> None:
        if self._invokers is not None:
            return
        with self._lock:
            if self._invokers is not None:
                return
            invokers = self._invokers_factory()
            self._graph = build_analysis_graph(DiagnosisAnalyzer(invokers.analysis, self._config))
            self._verifier = FixVerifier(invokers.verify, self._config)
            self._invokers = invokers

    def analyze(self, request: AnalysisRequest) -> AnalysisOutcome:
        demo = is_demo_request(request)
        logger.info("Analysis request: board=%s demo=%s", request.board_type, demo)
        try:
            self._ensure_ready()
        except (ValueError, FileNotFoundError) as exc:
            logger.error("Model client not configured: %s", exc)
            return self._fallback_or(
                demo,
                AnalysisOutcome(error_kind=WorkflowErrorKind.NOT_CONFIGURED, errors=[str(exc)]),
            )

        state = self._graph.invoke(
            {"request": request, "repair_attempts": 0, "errors": [], "result": None, "error_kind": None}
        )
        result = state.get("result")
        if result is not None:
            return AnalysisOutcome(
                result=result,
                model_name=state.get("model_name"),
                used_fallback_model=bool(state.get("used_fallback_model")),
            )

        outcome = AnalysisOutcome(
            error_kind=WorkflowErrorKind(state.get("error_kind") or WorkflowErrorKind.MODEL_FAILED.value),
            errors=list(state.get("errors", [])),
            model_name=state.get("model_name"),
            used_fallback_model=bool(state.get("used_fallback_model")),
        )
        logger.warning("Analysis failed (%s): %s", outcome.error_kind.value, outcome.errors)
        return self._fallback_or(demo, outcome)

    def verify_fix(self, request: VerifyFixRequest) -> VerifyFixOutcome:
        try:
            self._ensure_ready()
        except (ValueError, FileNotFoundError) as exc:
            logger.error("Model client not configured: %s", exc)
            return VerifyFixOutcome(error_kind=WorkflowErrorKind.NOT_CONFIGURED, errors=[str(exc)])
        return self._verifier.verify(request)

    def _fallback_or(self, demo: bool, outcome: AnalysisOutcome) -> AnalysisOutcome:
        if not (demo and self._config.demo_fallback_enabled):
            return outcome
        logger.info("Serving demo fallback result after %s.", outcome.error_kind.value)
        return AnalysisOutcome(result=demo_fallback_result(), demo_fallback=True)
