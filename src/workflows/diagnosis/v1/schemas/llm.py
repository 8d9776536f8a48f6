from __future__ import annotations


_STRING = {"type": "string"}
_STRING_LIST = {"type": "array", "items": _STRING}
_LEVEL = {"type": "string", "enum": ["low", "medium", "high"]}


def _object(properties: dict, required: list[str]) -> dict:
    return {"type": "object", "properties": properties, "required": required}


ANALYSIS_RESPONSE_SCHEMA = _object(
    {
        "title": _STRING,
        "confidence": _LEVEL,
        "summary": _STRING,
        "likely_causes": _STRING_LIST,
        "fix_steps": {
            "type": "array",
            "items": _object(
                {"step": {"type": "integer"}, "action": _STRING, "why": _STRING},
                ["step", "action", "why"],
            ),
        },
        "verification": _STRING_LIST,
        "explanation_beginner": _STRING,
        "explanation_advanced": _STRING,
        "explanation_beginner_sankofa": _STRING,
        "code_snippet": _object(
            {
                "language": {"type": "string", "enum": ["cpp", "c", "python", "text"]},
                "content": _STRING,
            },
            ["language", "content"],
        ),
        "safety_notes": _STRING_LIST,
        "assumptions": _STRING_LIST,
        "uncertainty_zones": {
            "type": "array",
            "items": _object(
                {"area": _STRING, "reason": _STRING, "how_to_verify": _STRING},
                ["area", "reason", "how_to_verify"],
            ),
        },
        "intent_mismatch": {
            "type": "array",
            "items": _object(
                {"expected": _STRING, "observed": _STRING, "impact": _STRING},
                ["expected", "observed", "impact"],
            ),
        },
        "failure_risks": {
            "type": "array",
            "items": _object(
                {
                    "risk": _STRING,
                    "likelihood": _LEVEL,
                    "time_horizon": _STRING,
                    "prevention": _STRING,
                },
                ["risk", "likelihood", "prevention"],
            ),
        },
    },
    [
        "title",
        "confidence",
        "summary",
        "likely_causes",
        "fix_steps",
        "verification",
        "explanation_beginner",
        "explanation_advanced",
    ],
)

VERIFY_FIX_RESPONSE_SCHEMA = _object(
    {
        "status": {"type": "string", "enum": ["resolved", "pending"]},
        "why_this_fix_worked": _STRING,
    },
    ["status"],
)
