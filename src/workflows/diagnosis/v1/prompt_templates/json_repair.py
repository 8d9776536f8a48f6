REPAIR_PROMPT_TEMPLATE = """You repair malformed diagnosis JSON into valid JSON.
Return ONLY one JSON object with these keys:
{{
  "title": "string",
  "confidence": "low|medium|high",
  "summary": "string",
  "likely_causes": ["string"],
  "fix_steps": [{{"step": 1, "action": "string", "why": "string"}}],
  "verification": ["string"],
  "explanation_beginner": "string",
  "explanation_advanced": "string"
}}
Keep any optional keys that were present (uncertainty_zones, intent_mismatch, failure_risks, code_snippet, safety_notes, assumptions, explanation_beginner_sankofa) if they can be repaired.

Problems found:
{problems}

Raw response:
\"\"\"{raw}\"\"\"
"""
