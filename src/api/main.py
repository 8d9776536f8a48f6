from __future__ import annotations

import logging
from functools import lru_cache, partial
from typing import Any

from fastapi import Depends, FastAPI, HTTPException, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.config import load_config
from api.schemas import AnalyzeRequestSchema, ErrorResponse, HealthResponse, VerifyFixRequestSchema
from framework.llm.model_cache import ModelSelectionCache
from framework.logging_utils import configure_logging
from workflows.diagnosis.v1.config import WorkflowConfig
from workflows.diagnosis.v1.orchestrator import build_vertex_invokers
from workflows.diagnosis.v1.outcomes import WorkflowErrorKind
from workflows.diagnosis.v1.runner import DiagnosisService


logger = logging.getLogger(__name__)

config = load_config()
configure_logging(config.log_level)

# One cache per process, owned here and handed to the invokers.
model_cache = ModelSelectionCache()

app = FastAPI(title="Bench Diagnosis API", version="1.0", docs_url=config.docs_url)

_STATUS_BY_ERROR = {
    WorkflowErrorKind.NOT_CONFIGURED: status.HTTP_500_INTERNAL_SERVER_ERROR,
    WorkflowErrorKind.INVALID_IMAGE: status.HTTP_400_BAD_REQUEST,
    WorkflowErrorKind.MODEL_UNAVAILABLE: status.HTTP_500_INTERNAL_SERVER_ERROR,
    WorkflowErrorKind.MODEL_FAILED: status.HTTP_500_INTERNAL_SERVER_ERROR,
    WorkflowErrorKind.EMPTY_RESPONSE: status.HTTP_502_BAD_GATEWAY,
    WorkflowErrorKind.NO_JSON: status.HTTP_502_BAD_GATEWAY,
    WorkflowErrorKind.INVALID_JSON: status.HTTP_502_BAD_GATEWAY,
    WorkflowErrorKind.INVALID_SHAPE: status.HTTP_502_BAD_GATEWAY,
}

_ANALYZE_MESSAGES = {
    WorkflowErrorKind.EMPTY_RESPONSE: "Model returned no text. Adjust input and retry.",
    WorkflowErrorKind.NO_JSON: "Could not parse model response. Retry.",
    WorkflowErrorKind.INVALID_JSON: "Model response was not valid JSON. Retry.",
    WorkflowErrorKind.INVALID_SHAPE: "Model response shape invalid.",
}


def _configure_cors() -> None:
    origins = config.cors_origins
    if origins == ["*"]:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_credentials=False,
            allow_methods=["*"],
            allow_headers=["*"],
        )
    elif origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )


_configure_cors()


@lru_cache(maxsize=1)
def get_diagnosis_service() -> DiagnosisService:
    return DiagnosisService(
        partial(build_vertex_invokers, model_cache),
        WorkflowConfig.from_env(),
    )


@app.exception_handler(HTTPException)
async def _http_error(request: Request, exc: HTTPException) -> JSONResponse:
    if isinstance(exc.detail, ErrorResponse):
        body = exc.detail
    else:
        body = ErrorResponse(error=str(exc.detail))
    return JSONResponse(status_code=exc.status_code, content=body.model_dump(exclude_none=True))


@app.get("/api/health", response_model=HealthResponse)
def health() -> HealthResponse:
    return HealthResponse()


@app.post("/api/analyze")
def analyze(
    payload: AnalyzeRequestSchema,
    service: DiagnosisService = Depends(get_diagnosis_service),
) -> dict[str, Any]:
    outcome = service.analyze(payload.to_request())
    if outcome.ok:
        body = outcome.to_payload()
        if config.expose_model_name and outcome.model_name:
            body["model"] = outcome.model_name
        return body

    message = _ANALYZE_MESSAGES.get(outcome.error_kind) or _first(
        outcome.errors, "Analysis failed. Check connection and retry."
    )
    details = outcome.errors if outcome.error_kind == WorkflowErrorKind.INVALID_SHAPE else None
    status_code = _STATUS_BY_ERROR.get(outcome.error_kind, status.HTTP_500_INTERNAL_SERVER_ERROR)
    logger.info("Analyze error %s: %s", status_code, message)
    raise HTTPException(status_code=status_code, detail=ErrorResponse(error=message, details=details))


@app.post("/api/verify-fix")
def verify_fix(
    payload: VerifyFixRequestSchema,
    service: DiagnosisService = Depends(get_diagnosis_service),
) -> dict[str, Any]:
    outcome = service.verify_fix(payload.to_request())
    if outcome.ok:
        return outcome.result.to_payload()

    message = _first(outcome.errors, "Verify fix failed. Check connection and retry.")
    status_code = _STATUS_BY_ERROR.get(outcome.error_kind, status.HTTP_500_INTERNAL_SERVER_ERROR)
    logger.info("Verify-fix error %s: %s", status_code, message)
    raise HTTPException(status_code=status_code, detail=ErrorResponse(error=message))


def _first(errors: list[str], default: str) -> str:
    return errors[0] if errors else default
