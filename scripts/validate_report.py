from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any

SLOT_KEY_PATTERN = "HH:MM"
UNSPECIFIED = "unspecified"


def report_error(message: str) -> None:
    print(f"::error::{message}")


def report_notice(message: str) -> None:
    print(f"::notice::{message}")


def load_report(path: Path) -> tuple[dict[str, Any] | None, bool]:
    if not path.exists():
        report_error(f"{path.as_posix()} not found")
        return None, False

    try:
        with path.open("r", encoding="utf-8") as fp:
            data = json.load(fp)
    except json.JSONDecodeError as exc:
        report_error(f"{path.name} is not valid JSON (line {exc.lineno}, column {exc.colno})")
        return None, False
    except OSError as exc:
        report_error(f"could not read {path.name}: {exc.strerror or exc}")
        return None, False

    if not isinstance(data, dict):
        report_error(f"{path.name} must contain a JSON object")
        return None, False

    return data, True


def _is_slot_key(value: Any) -> bool:
    if value == UNSPECIFIED:
        return True
    if not isinstance(value, str) or len(value) != 5 or value[2] != ":":
        return False
    hh, mm = value[:2], value[3:]
    return hh.isdigit() and mm.isdigit() and int(hh) < 24 and int(mm) < 60


def validate_registration(registration: Any) -> bool:
    if not isinstance(registration, dict):
        report_error(".registration must be an object")
        return False
    if not isinstance(registration.get("timestamp"), int):
        report_error(".registration.timestamp must be an integer")
        return False
    return True


def validate_slots(slots: Any, available: Any) -> bool:
    if not isinstance(slots, list):
        report_error(".slots must be an array")
        return False

    ok = True
    for index, slot in enumerate(slots):
        if not isinstance(slot, dict):
            report_error(f".slots[{index}] must be an object")
            return False
        if not _is_slot_key(slot.get("slot")):
            report_error(f".slots[{index}].slot must be {SLOT_KEY_PATTERN} or '{UNSPECIFIED}'")
            ok = False
        main = slot.get("main") or []
        subs = slot.get("substitutes") or []
        numbers = [p.get("number") for p in [*main, *subs] if isinstance(p, dict)]
        if numbers != list(range(1, len(numbers) + 1)):
            report_error(f".slots[{index}] numbering must run 1..{len(numbers)} without gaps")
            ok = False
        if subs and isinstance(available, int) and len(main) != available:
            report_error(f".slots[{index}] has substitutes but main list is not full ({len(main)}/{available})")
            ok = False
    return ok


def main(argv: list[str] | None = None) -> int:
    args = sys.argv[1:] if argv is None else argv
    report_path = Path(args[0] if args else "out/report.json")
    data, ok = load_report(report_path)
    if not ok or data is None:
        return 1

    if not validate_registration(data.get("registration")):
        return 1

    available = (data.get("group") or {}).get("available_slots")
    if not validate_slots(data.get("slots"), available):
        return 1

    report_notice(f"{report_path.name} validated")
    return 0


if __name__ == "__main__":
    sys.exit(main())
