import importlib.util
import json
from pathlib import Path

SCRIPT = Path(__file__).resolve().parents[1] / "scripts" / "validate_report.py"


def _load_validator():
    spec = importlib.util.spec_from_file_location("validate_report", SCRIPT)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def _payload(main, substitutes, available=2):
    return {
        "group": {"id": "g@g.us", "available_slots": available},
        "registration": {"timestamp": 1000, "source": "message"},
        "slots": [
            {
                "slot": "15:00",
                "main": [{"number": n, "name": f"P{n}"} for n in main],
                "substitutes": [{"number": n, "name": f"P{n}"} for n in substitutes],
            }
        ],
    }


def test_valid_report(tmp_path, capsys):
    path = tmp_path / "report.json"
    path.write_text(json.dumps(_payload([1, 2], [3, 4])), encoding="utf-8")
    assert _load_validator().main([str(path)]) == 0
    assert "::notice::report.json validated" in capsys.readouterr().out


def test_numbering_gap_is_an_error(tmp_path, capsys):
    path = tmp_path / "report.json"
    path.write_text(json.dumps(_payload([1, 2], [1, 2])), encoding="utf-8")
    assert _load_validator().main([str(path)]) == 1
    assert "::error::" in capsys.readouterr().out


def test_substitutes_require_full_main_list(tmp_path):
    path = tmp_path / "report.json"
    path.write_text(json.dumps(_payload([1], [2], available=2)), encoding="utf-8")
    assert _load_validator().main([str(path)]) == 1


def test_bad_slot_key(tmp_path):
    payload = _payload([1], [])
    payload["slots"][0]["slot"] = "3pm"
    path = tmp_path / "report.json"
    path.write_text(json.dumps(payload), encoding="utf-8")
    assert _load_validator().main([str(path)]) == 1


def test_missing_and_invalid_files(tmp_path, capsys):
    validator = _load_validator()
    assert validator.main([str(tmp_path / "nope.json")]) == 1
    broken = tmp_path / "broken.json"
    broken.write_text("{", encoding="utf-8")
    assert validator.main([str(broken)]) == 1
    out = capsys.readouterr().out
    assert "not found" in out
    assert "not valid JSON" in out
