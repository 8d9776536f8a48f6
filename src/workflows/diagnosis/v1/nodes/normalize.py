"""Validate and coerce a decoded model reply into a ``DiagnosisResult``.

``normalize_diagnosis`` never raises for a JSON value. It walks every field,
collects one message per violation, and only builds a result when nothing
was wrong. Cross-field rules are applied on that success path:

* non-empty ``uncertainty_zones`` caps ``confidence`` at ``medium``;
* ``why_this_fix_worked`` is dropped unless ``status`` is ``resolved``;
* empty optional lists and blank optional strings are omitted.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Optional

from pydantic import ValidationError

from workflows.diagnosis.v1.schemas.domain import (
    CONFIDENCE_LEVELS,
    FIX_STATUSES,
    DiagnosisResult,
)


logger = logging.getLogger(__name__)

_LANGUAGE_ALIASES = {
    "cpp": "cpp",
    "c++": "cpp",
    "cc": "cpp",
    "arduino": "cpp",
    "ino": "cpp",
    "c": "c",
    "python": "python",
    "py": "python",
    "micropython": "python",
    "text": "text",
    "txt": "text",
    "plaintext": "text",
}

_LIKELIHOOD_ALIASES = {
    "low": "low",
    "medium": "medium",
    "med": "medium",
    "moderate": "medium",
    "high": "high",
}

_EXPLANATION_FIELDS = ("explanation_beginner", "explanation_advanced")


@dataclass(frozen=True)
class NormalizationIssue:
    field: str
    message: str


@dataclass(frozen=True)
class NormalizationResult:
    ok: bool
    result: Optional[DiagnosisResult] = None
    issues: tuple[NormalizationIssue, ...] = ()

    @property
    def errors(self) -> list[str]:
        return [issue.message for issue in self.issues]

    @classmethod
    def success(cls, result: DiagnosisResult) -> "NormalizationResult":
        return cls(ok=True, result=result)

    @classmethod
    def failure(cls, issues: Iterable[NormalizationIssue]) -> "NormalizationResult":
        return cls(ok=False, issues=tuple(issues))


class _IssueCollector:
    def __init__(self) -> None:
        self.issues: list[NormalizationIssue] = []

    def add(self, field: str, message: str) -> None:
        self.issues.append(NormalizationIssue(field=field, message=message))

    def __bool__(self) -> bool:
        return bool(self.issues)


def normalize_diagnosis(decoded: Any) -> NormalizationResult:
    if not isinstance(decoded, dict):
        return NormalizationResult.failure(
            [NormalizationIssue(field="", message="Response is not a JSON object.")]
        )

    issues = _IssueCollector()
    fields: dict[str, Any] = {}

    fields["title"] = _required_text(decoded, "title", issues)

    confidence = _coerce_choice(decoded.get("confidence"), CONFIDENCE_LEVELS)
    if confidence is None:
        issues.add("confidence", "'confidence' must be one of: low, medium, high.")
    fields["confidence"] = confidence

    fields["summary"] = _required_text(decoded, "summary", issues)
    fields["likely_causes"] = _required_string_list(decoded, "likely_causes", issues)
    fields["fix_steps"] = _fix_steps(decoded.get("fix_steps"), issues)
    fields["verification"] = _required_string_list(decoded, "verification", issues)
    for name in _EXPLANATION_FIELDS:
        fields[name] = _required_text(decoded, name, issues)

    fields["explanation_beginner_sankofa"] = _optional_text(
        decoded, "explanation_beginner_sankofa", issues
    )
    fields["code_snippet"] = _code_snippet(decoded.get("code_snippet"), issues)
    fields["safety_notes"] = _optional_string_list(decoded, "safety_notes", issues)
    fields["assumptions"] = _optional_string_list(decoded, "assumptions", issues)
    fields["uncertainty_zones"] = _object_list(
        decoded, "uncertainty_zones", ("area", "reason", "how_to_verify"), issues
    )
    fields["intent_mismatch"] = _object_list(
        decoded, "intent_mismatch", ("expected", "observed", "impact"), issues
    )
    fields["failure_risks"] = _failure_risks(decoded.get("failure_risks"), issues)
    fields["status"] = _status(decoded.get("status"), issues)
    fields["why_this_fix_worked"] = _optional_text(decoded, "why_this_fix_worked", issues)

    if issues:
        return NormalizationResult.failure(issues.issues)

    if fields["status"] != "resolved":
        fields["why_this_fix_worked"] = None

    if fields["uncertainty_zones"] and fields["confidence"] == "high":
        logger.debug(
            "Downgrading confidence to medium: %d uncertainty zones.",
            len(fields["uncertainty_zones"]),
        )
        fields["confidence"] = "medium"

    try:
        result = DiagnosisResult.model_validate(fields)
    except ValidationError as exc:
        return NormalizationResult.failure(
            NormalizationIssue(
                field=".".join(str(part) for part in error["loc"]),
                message=f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}",
            )
            for error in exc.errors()
        )
    return NormalizationResult.success(result)


def _coerce_choice(value: Any, choices: Iterable[str]) -> Optional[str]:
    if not isinstance(value, str):
        return None
    cleaned = value.strip().lower()
    return cleaned if cleaned in choices else None


def _required_text(data: dict[str, Any], name: str, issues: _IssueCollector) -> Optional[str]:
    value = data.get(name)
    if not isinstance(value, str) or not value.strip():
        issues.add(name, f"'{name}' must be a non-empty string.")
        return None
    return value.strip()


def _optional_text(data: dict[str, Any], name: str, issues: _IssueCollector) -> Optional[str]:
    value = data.get(name)
    if value is None:
        return None
    if not isinstance(value, str):
        issues.add(name, f"'{name}' must be a string when present.")
        return None
    return value.strip() or None


def _string_items(value: list[Any], name: str, issues: _IssueCollector) -> Optional[list[str]]:
    if any(not isinstance(item, str) for item in value):
        issues.add(name, f"'{name}' must contain only strings.")
        return None
    return list(value)


def _required_string_list(
    data: dict[str, Any], name: str, issues: _IssueCollector
) -> Optional[list[str]]:
    value = data.get(name)
    if not isinstance(value, list):
        issues.add(name, f"'{name}' must be an array of strings.")
        return None
    return _string_items(value, name, issues)


def _optional_string_list(
    data: dict[str, Any], name: str, issues: _IssueCollector
) -> Optional[list[str]]:
    value = data.get(name)
    if value is None:
        return None
    if not isinstance(value, list):
        issues.add(name, f"'{name}' must be an array of strings.")
        return None
    return _string_items(value, name, issues) or None


def _coerce_step(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and value.strip().isdecimal():
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def _fix_steps(value: Any, issues: _IssueCollector) -> Optional[list[dict[str, Any]]]:
    if not isinstance(value, list):
        issues.add("fix_steps", "'fix_steps' must be an array of objects with step, action, why.")
        return None

    steps: list[dict[str, Any]] = []
    for idx, item in enumerate(value):
        path = f"fix_steps[{idx}]"
        if not isinstance(item, dict):
            issues.add(path, f"{path} must be an object.")
            continue
        step = _coerce_step(item.get("step"))
        if step is None:
            issues.add(f"{path}.step", f"{path}.step must be a number.")
        for key in ("action", "why"):
            if not isinstance(item.get(key), str):
                issues.add(f"{path}.{key}", f"{path}.{key} must be a string.")
        steps.append(
            {
                "step": step,
                "action": str(item.get("action", "")).strip(),
                "why": str(item.get("why", "")).strip(),
            }
        )
    return steps


def _code_snippet(value: Any, issues: _IssueCollector) -> Optional[dict[str, str]]:
    if value is None:
        return None
    if not isinstance(value, dict):
        issues.add("code_snippet", "'code_snippet' must be an object with language and content.")
        return None
    content = value.get("content")
    if not isinstance(content, str):
        issues.add("code_snippet.content", "'code_snippet.content' must be a string.")
        return None
    raw_language = value.get("language")
    language = "text"
    if isinstance(raw_language, str):
        language = _LANGUAGE_ALIASES.get(raw_language.strip().lower(), "text")
    return {"language": language, "content": content}


def _object_list(
    data: dict[str, Any],
    name: str,
    keys: tuple[str, ...],
    issues: _IssueCollector,
) -> Optional[list[dict[str, str]]]:
    value = data.get(name)
    if value is None:
        return None
    if not isinstance(value, list):
        issues.add(name, f"'{name}' must be an array of objects.")
        return None

    items: list[dict[str, str]] = []
    for idx, item in enumerate(value):
        path = f"{name}[{idx}]"
        if not isinstance(item, dict):
            issues.add(path, f"{path} must be an object.")
            continue
        for key in keys:
            if not isinstance(item.get(key), str):
                issues.add(f"{path}.{key}", f"{path}.{key} must be a string.")
        items.append({key: str(item.get(key, "")).strip() for key in keys})
    return items or None


def _failure_risks(value: Any, issues: _IssueCollector) -> Optional[list[dict[str, Any]]]:
    if value is None:
        return None
    if not isinstance(value, list):
        issues.add("failure_risks", "'failure_risks' must be an array of objects.")
        return None

    risks: list[dict[str, Any]] = []
    for idx, item in enumerate(value):
        path = f"failure_risks[{idx}]"
        if not isinstance(item, dict):
            issues.add(path, f"{path} must be an object.")
            continue
        for key in ("risk", "prevention"):
            if not isinstance(item.get(key), str):
                issues.add(f"{path}.{key}", f"{path}.{key} must be a string.")
        time_horizon = item.get("time_horizon")
        if time_horizon is not None and not isinstance(time_horizon, str):
            issues.add(f"{path}.time_horizon", f"{path}.time_horizon must be a string when present.")
            time_horizon = None

        raw_likelihood = item.get("likelihood")
        likelihood = "medium"
        if isinstance(raw_likelihood, str):
            likelihood = _LIKELIHOOD_ALIASES.get(raw_likelihood.strip().lower(), "medium")

        risks.append(
            {
                "risk": str(item.get("risk", "")).strip(),
                "likelihood": likelihood,
                "prevention": str(item.get("prevention", "")).strip(),
                "time_horizon": (time_horizon or "").strip() or None,
            }
        )
    return risks or None


def _status(value: Any, issues: _IssueCollector) -> Optional[str]:
    if value is None:
        return None
    status = _coerce_choice(value, FIX_STATUSES)
    if status is None:
        issues.add("status", "'status' must be one of: pending, resolved.")
    return status
