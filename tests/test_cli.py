import json

from scripts.diagnose_cli import main


def test_normalize_command_prints_result(tmp_path, capsys, valid_payload):
    raw = tmp_path / "reply.txt"
    raw.write_text("Here you go:\n```json\n" + json.dumps(valid_payload) + "\n```\n", encoding="utf-8")

    exit_code = main(["normalize", str(raw)])

    assert exit_code == 0
    printed = json.loads(capsys.readouterr().out)
    assert printed["title"] == valid_payload["title"]
    assert printed["confidence"] == "low"


def test_normalize_command_reports_errors(tmp_path, capsys, valid_payload):
    valid_payload["confidence"] = "certain"
    raw = tmp_path / "reply.json"
    raw.write_text(json.dumps(valid_payload), encoding="utf-8")

    exit_code = main(["normalize", str(raw)])

    assert exit_code == 1
    printed = json.loads(capsys.readouterr().out)
    assert printed == {
        "error_kind": "invalid_shape",
        "errors": ["'confidence' must be one of: low, medium, high."],
    }


def test_normalize_command_string_aware(tmp_path, capsys):
    raw = tmp_path / "reply.txt"
    raw.write_text('{"title": "a } b"', encoding="utf-8")

    assert main(["normalize", str(raw)]) == 1
    assert json.loads(capsys.readouterr().out)["error_kind"] == "invalid_json"

    assert main(["normalize", "--string-aware", str(raw)]) == 1
    assert json.loads(capsys.readouterr().out)["error_kind"] == "no_json"
