import json

from framework.llm.json_utils import extract_json_object
from workflows.diagnosis.v1.nodes.normalize import normalize_diagnosis
from workflows.diagnosis.v1.nodes.parse_response import ParseErrorKind, parse_model_output


def test_valid_payload_normalizes(valid_payload):
    normalized = normalize_diagnosis(valid_payload)

    assert normalized.ok
    assert normalized.errors == []
    result = normalized.result
    assert result.title == "I2C display not detected"
    assert result.confidence == "low"
    assert [step.step for step in result.fix_steps] == [1, 2]
    assert result.uncertainty_zones is None
    assert "uncertainty_zones" not in result.to_payload()


def test_fenced_model_output_round_trip_keeps_confidence(valid_payload):
    valid_payload["confidence"] = "high"
    raw = "```json\n" + json.dumps(valid_payload) + "\n```"

    normalized = normalize_diagnosis(json.loads(extract_json_object(raw)))

    assert normalized.ok
    assert normalized.result.confidence == "high"


def test_non_string_cause_is_rejected(valid_payload):
    valid_payload["likely_causes"] = ["a", 5]

    normalized = normalize_diagnosis(valid_payload)

    assert not normalized.ok
    assert normalized.result is None
    assert normalized.errors == ["'likely_causes' must contain only strings."]


def test_uncertainty_downgrades_high_confidence(valid_payload):
    valid_payload["confidence"] = "high"
    valid_payload["uncertainty_zones"] = [{"area": "x", "reason": "y", "how_to_verify": "z"}]

    normalized = normalize_diagnosis(valid_payload)

    assert normalized.ok
    assert normalized.result.confidence == "medium"
    assert normalized.result.uncertainty_zones[0].how_to_verify == "z"


def test_low_confidence_is_unchanged_with_uncertainty(valid_payload):
    valid_payload["uncertainty_zones"] = [{"area": "x", "reason": "y", "how_to_verify": "z"}]

    assert normalize_diagnosis(valid_payload).result.confidence == "low"


def test_empty_uncertainty_zones_keep_high_confidence(valid_payload):
    valid_payload["confidence"] = "high"
    valid_payload["uncertainty_zones"] = []

    normalized = normalize_diagnosis(valid_payload)

    assert normalized.result.confidence == "high"
    assert normalized.result.uncertainty_zones is None


def test_non_object_is_single_error():
    for value in (None, [], "text", 3):
        normalized = normalize_diagnosis(value)
        assert not normalized.ok
        assert normalized.errors == ["Response is not a JSON object."]


def test_every_missing_required_field_is_reported():
    normalized = normalize_diagnosis({})

    assert normalized.errors == [
        "'title' must be a non-empty string.",
        "'confidence' must be one of: low, medium, high.",
        "'summary' must be a non-empty string.",
        "'likely_causes' must be an array of strings.",
        "'fix_steps' must be an array of objects with step, action, why.",
        "'verification' must be an array of strings.",
        "'explanation_beginner' must be a non-empty string.",
        "'explanation_advanced' must be a non-empty string.",
    ]


def test_whitespace_only_strings_do_not_count(valid_payload):
    valid_payload["title"] = "   "
    valid_payload["explanation_advanced"] = "\n\t"

    normalized = normalize_diagnosis(valid_payload)

    assert normalized.errors == [
        "'title' must be a non-empty string.",
        "'explanation_advanced' must be a non-empty string.",
    ]


def test_strings_are_trimmed(valid_payload):
    valid_payload["title"] = "  Blank OLED  "
    valid_payload["confidence"] = " Medium "

    result = normalize_diagnosis(valid_payload).result

    assert result.title == "Blank OLED"
    assert result.confidence == "medium"


def test_object_list_errors_are_index_qualified(valid_payload):
    valid_payload["uncertainty_zones"] = [
        {"area": "a", "reason": "b", "how_to_verify": "c"},
        "not an object",
        {"area": 7, "reason": "b"},
    ]
    valid_payload["intent_mismatch"] = [{"expected": "x", "observed": None, "impact": "z"}]

    normalized = normalize_diagnosis(valid_payload)

    assert normalized.errors == [
        "uncertainty_zones[1] must be an object.",
        "uncertainty_zones[2].area must be a string.",
        "uncertainty_zones[2].how_to_verify must be a string.",
        "intent_mismatch[0].observed must be a string.",
    ]
    assert [issue.field for issue in normalized.issues] == [
        "uncertainty_zones[1]",
        "uncertainty_zones[2].area",
        "uncertainty_zones[2].how_to_verify",
        "intent_mismatch[0].observed",
    ]


def test_fix_step_numbers_are_coerced(valid_payload):
    valid_payload["fix_steps"] = [
        {"step": "3", "action": "a", "why": "b"},
        {"step": 4.0, "action": "c", "why": "d"},
    ]

    result = normalize_diagnosis(valid_payload).result

    assert [step.step for step in result.fix_steps] == [3, 4]


def test_bad_fix_steps_are_reported(valid_payload):
    valid_payload["fix_steps"] = [
        {"step": True, "action": "a", "why": "b"},
        {"step": 2, "action": ["x"]},
        None,
    ]

    normalized = normalize_diagnosis(valid_payload)

    assert normalized.errors == [
        "fix_steps[0].step must be a number.",
        "fix_steps[1].action must be a string.",
        "fix_steps[1].why must be a string.",
        "fix_steps[2] must be an object.",
    ]


def test_failure_risk_likelihood_defaults_to_medium(valid_payload):
    valid_payload["failure_risks"] = [
        {"risk": "Brownout", "likelihood": "very likely", "prevention": "Add bulk cap"},
        {"risk": "Loose jumper", "likelihood": "HIGH", "prevention": "Solder", "time_horizon": " over time "},
        {"risk": "Hot regulator", "prevention": "Heatsink", "time_horizon": ""},
    ]

    risks = normalize_diagnosis(valid_payload).result.failure_risks

    assert [risk.likelihood for risk in risks] == ["medium", "high", "medium"]
    assert risks[1].time_horizon == "over time"
    assert risks[2].time_horizon is None


def test_failure_risk_missing_text_is_rejected(valid_payload):
    valid_payload["failure_risks"] = [{"likelihood": "low", "prevention": "x", "time_horizon": 5}]

    normalized = normalize_diagnosis(valid_payload)

    assert normalized.errors == [
        "failure_risks[0].risk must be a string.",
        "failure_risks[0].time_horizon must be a string when present.",
    ]


def test_code_snippet_language_is_coerced(valid_payload):
    valid_payload["code_snippet"] = {"language": "C++", "content": "Wire.begin(21, 22);"}
    assert normalize_diagnosis(valid_payload).result.code_snippet.language == "cpp"

    valid_payload["code_snippet"] = {"language": "rust", "content": "fn main() {}"}
    assert normalize_diagnosis(valid_payload).result.code_snippet.language == "text"

    valid_payload["code_snippet"] = {"content": "print('hi')"}
    assert normalize_diagnosis(valid_payload).result.code_snippet.language == "text"


def test_code_snippet_shape_errors(valid_payload):
    valid_payload["code_snippet"] = "Wire.begin();"
    assert normalize_diagnosis(valid_payload).errors == [
        "'code_snippet' must be an object with language and content."
    ]

    valid_payload["code_snippet"] = {"language": "cpp"}
    assert normalize_diagnosis(valid_payload).errors == ["'code_snippet.content' must be a string."]


def test_optional_fields_absent_or_null_are_omitted(valid_payload):
    valid_payload["safety_notes"] = None
    valid_payload["explanation_beginner_sankofa"] = "   "
    valid_payload["assumptions"] = []

    payload = normalize_diagnosis(valid_payload).result.to_payload()

    for key in ("safety_notes", "explanation_beginner_sankofa", "assumptions", "code_snippet", "status"):
        assert key not in payload


def test_optional_wrong_types_are_all_reported(valid_payload):
    valid_payload["safety_notes"] = "Check 3.3 V"
    valid_payload["assumptions"] = ["ok", {"not": "string"}]
    valid_payload["explanation_beginner_sankofa"] = 12
    valid_payload["failure_risks"] = {"risk": "x"}
    valid_payload["status"] = "done"

    normalized = normalize_diagnosis(valid_payload)

    assert normalized.errors == [
        "'explanation_beginner_sankofa' must be a string when present.",
        "'safety_notes' must be an array of strings.",
        "'assumptions' must contain only strings.",
        "'failure_risks' must be an array of objects.",
        "'status' must be one of: pending, resolved.",
    ]


def test_why_this_fix_worked_requires_resolved_status(valid_payload):
    valid_payload["why_this_fix_worked"] = "Pull-ups restored the bus."

    assert normalize_diagnosis(valid_payload).result.why_this_fix_worked is None

    valid_payload["status"] = "pending"
    assert normalize_diagnosis(valid_payload).result.why_this_fix_worked is None

    valid_payload["status"] = "resolved"
    result = normalize_diagnosis(valid_payload).result
    assert result.status == "resolved"
    assert result.why_this_fix_worked == "Pull-ups restored the bus."


def test_errors_block_invariant_corrections(valid_payload):
    valid_payload["confidence"] = "high"
    valid_payload["uncertainty_zones"] = [{"area": "x", "reason": "y", "how_to_verify": "z"}]
    valid_payload["summary"] = ""

    normalized = normalize_diagnosis(valid_payload)

    assert not normalized.ok
    assert normalized.result is None
    assert normalized.errors == ["'summary' must be a non-empty string."]


def test_unknown_keys_are_ignored(valid_payload):
    valid_payload["fallback"] = True
    valid_payload["extra"] = {"nested": 1}

    payload = normalize_diagnosis(valid_payload).result.to_payload()

    assert "fallback" not in payload
    assert "extra" not in payload


def test_oversized_step_string_is_reported(valid_payload):
    valid_payload["fix_steps"][0]["step"] = "9" * 5000

    normalized = normalize_diagnosis(valid_payload)

    assert not normalized.ok
    assert normalized.errors == ["fix_steps[0].step must be a number."]


def test_list_elements_are_kept_as_given(valid_payload):
    valid_payload["likely_causes"] = ["  SDA floating ", "No pull-ups"]

    result = normalize_diagnosis(valid_payload).result

    assert result.likely_causes == ["  SDA floating ", "No pull-ups"]


def test_pathological_model_text_yields_invalid_json():
    huge_number = '{"title": "t", "n": ' + "9" * 5000 + "}"
    deep_nesting = '{"a": ' + "[" * 100000 + "]" * 100000 + "}"

    for raw in (huge_number, deep_nesting):
        parsed = parse_model_output(raw)
        assert parsed.error_kind == ParseErrorKind.INVALID_JSON
        assert parsed.errors == ["Model response was not valid JSON."]
