from __future__ import annotations

import argparse
import base64
import json
import logging
import mimetypes
import sys
from pathlib import Path
from typing import Any

from framework.logging_utils import configure_logging


logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Diagnose embedded hardware issues with Gemini.")
    parser.add_argument("--log-level", default="INFO", help="Logging level.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    analyze_parser = subparsers.add_parser("analyze", help="Run a live analysis.")
    analyze_parser.add_argument("--board", required=True, choices=["ESP32", "STM32", "Arduino"])
    analyze_parser.add_argument("--goal", required=True, help="What the circuit should do.")
    analyze_parser.add_argument("--issue", required=True, help="Observed issue or serial log text.")
    analyze_parser.add_argument("--image", default=None, help="Optional photo of the setup.")
    analyze_parser.add_argument("--sankofa", action="store_true", help="Add the Sankofa explanation.")

    normalize_parser = subparsers.add_parser(
        "normalize", help="Extract and validate a saved model response."
    )
    normalize_parser.add_argument("path", help="File with raw model text, or - for stdin.")
    normalize_parser.add_argument(
        "--string-aware", action="store_true", help="Ignore braces inside JSON strings."
    )

    args = parser.parse_args(argv)
    configure_logging(args.log_level)

    if args.command == "normalize":
        return _normalize(args.path, string_aware=args.string_aware)
    return _analyze(args)


def _normalize(path: str, string_aware: bool) -> int:
    from workflows.diagnosis.v1.nodes.parse_response import parse_model_output

    raw = sys.stdin.read() if path == "-" else Path(path).read_text(encoding="utf-8")
    parsed = parse_model_output(raw, string_aware=string_aware)
    if parsed.ok:
        _print_json(parsed.result.to_payload())
        return 0
    _print_json({"error_kind": parsed.error_kind.value, "errors": parsed.errors})
    return 1


def _analyze(args: argparse.Namespace) -> int:
    from framework.llm.model_cache import ModelSelectionCache
    from workflows.diagnosis.v1.config import WorkflowConfig
    from workflows.diagnosis.v1.orchestrator import build_vertex_invokers
    from workflows.diagnosis.v1.runner import DiagnosisService
    from workflows.diagnosis.v1.schemas.domain import AnalysisRequest

    image_base64 = _load_image(Path(args.image)) if args.image else None
    request = AnalysisRequest(
        board_type=args.board,
        goal=args.goal,
        issue_text=args.issue,
        image_base64=image_base64,
        sankofa_mode=args.sankofa,
    )
    cache = ModelSelectionCache()
    service = DiagnosisService(lambda: build_vertex_invokers(cache), WorkflowConfig.from_env())
    outcome = service.analyze(request)
    if outcome.ok:
        _print_json(outcome.to_payload())
        logger.info("Analysis complete using %s", outcome.model_name or "demo fallback")
        return 0
    _print_json({"error_kind": outcome.error_kind.value, "errors": outcome.errors})
    return 1


def _load_image(path: Path) -> str:
    if not path.exists():
        raise FileNotFoundError(f"Image not found: {path}")
    mime_type = mimetypes.guess_type(path.name)[0] or "image/jpeg"
    encoded = base64.b64encode(path.read_bytes()).decode("ascii")
    return f"data:{mime_type};base64,{encoded}"


def _print_json(payload: Any) -> None:
    print(json.dumps(payload, indent=2, ensure_ascii=False))


if __name__ == "__main__":
    raise SystemExit(main())
