"""Helpers for pulling JSON out of free-form model output.

Model replies are supposed to be a bare JSON object but routinely arrive
wrapped in markdown fences, preceded by a sentence of prose, or with a
dangling fence marker. ``extract_json_object`` finds the object span and
``parse_json_like`` decodes it; neither raises on bad input.

The default brace scan does not look inside string literals, so a ``{`` or
``}`` inside a JSON string value shifts the depth count. Pass
``string_aware=True`` to skip quoted strings while scanning.
"""

from __future__ import annotations

import json
import re
from typing import Any, Optional


_WHOLE_FENCE_RE = re.compile(r"^```(?:json)?\s*(.*?)```\s*$", flags=re.IGNORECASE | re.DOTALL)
_LEADING_FENCE_RE = re.compile(r"^```(?:json)?\s*", flags=re.IGNORECASE)
_TRAILING_FENCE_RE = re.compile(r"\s*```\s*$")


def strip_code_fence(text: str) -> str:
    text = text.strip()
    match = _WHOLE_FENCE_RE.match(text)
    if match:
        return match.group(1).strip()
    # Unpaired markers are common when the model stops mid-fence.
    text = _LEADING_FENCE_RE.sub("", text)
    text = _TRAILING_FENCE_RE.sub("", text)
    return text.strip()


def extract_json_object(text: Optional[str], *, string_aware: bool = False) -> Optional[str]:
    """Return the first balanced ``{...}`` span in ``text`` or None."""
    if not text:
        return None
    body = strip_code_fence(text)
    start = body.find("{")
    if start == -1:
        return None

    depth = 0
    in_string = False
    escaped = False
    for idx in range(start, len(body)):
        char = body[idx]
        if string_aware and in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if string_aware and char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return body[start : idx + 1]
    return None


def sanitize_json_text(text: str) -> str:
    text = text.replace("“", "\"").replace("”", "\"")
    text = text.replace("‘", "'").replace("’", "'")
    text = re.sub(r":\s*(?:NULL|NONE|N/A)\b", ": null", text, flags=re.IGNORECASE)
    text = re.sub(r",\s*([}\]])", r"\1", text)
    text = re.sub(
        r"([{,]\s*)([A-Za-z_][A-Za-z0-9_]*)\s*:",
        r'\1"\2":',
        text,
    )
    return text


def parse_json_like(text: str, *, lenient: bool = True) -> Any:
    """Decode ``text`` as JSON, returning None when it cannot be decoded."""
    try:
        return json.loads(text)
    except (ValueError, TypeError, RecursionError):
        pass
    if not lenient:
        return None
    try:
        return json.loads(sanitize_json_text(text))
    except (ValueError, RecursionError):
        # Oversized integer literals raise a plain ValueError.
        return None
