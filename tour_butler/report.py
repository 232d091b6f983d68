"""Rendering of a :class:`~tour_butler.pipeline.RosterReport` to markdown and JSON."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, List, Optional

from tour_butler.config import Config, get_config
from tour_butler.core_roster import RosterLine, SlotRoster
from tour_butler.pipeline import RosterReport
from tour_butler.registration import resolve_timezone
from tour_butler.time_slots import UNSPECIFIED


def format_timestamp(ts: Optional[int], tz=timezone.utc) -> str:
    if ts is None:
        return ""
    return datetime.fromtimestamp(int(ts), tz).strftime("%Y-%m-%d %H:%M:%S")


def slot_title(slot: str) -> str:
    return "Unspecified" if slot == UNSPECIFIED else slot


def _lines_md(lines: List[RosterLine]) -> List[str]:
    return [f"{line.number}. {line.name}" for line in lines]


def _slot_md(slot: SlotRoster, heading: str) -> List[str]:
    out = [f"### {slot_title(slot.slot)} Time Slot ({slot.player_count} players)", ""]
    out.extend(_lines_md(slot.main))
    if slot.substitutes:
        out.append("")
        out.append(f"{heading}:")
        out.extend(_lines_md(slot.substitutes))
    out.append("")
    return out


def render_markdown(report: RosterReport, config: Optional[Config] = None) -> str:
    cfg = config or get_config()
    tz = resolve_timezone(cfg.SIGNUP_TIMEZONE)
    window = report.registration

    out: List[str] = [f"# {report.group.name} Tournament Signups", ""]
    out.append(f"Registration opened at {format_timestamp(window.timestamp, tz)} ({window.source})")
    if window.content:
        out.append(f'Opening message: "{window.content}"')
    if window.end_timestamp is not None:
        out.append(f"Registration closes at {format_timestamp(window.end_timestamp, tz)}")
    out.append("")

    out.extend(["## Players by Time Slot", ""])
    if not report.slots:
        out.extend(["No players signed up.", ""])
    for slot in report.slots:
        out.extend(_slot_md(slot, cfg.SUBSTITUTES_HEADING))

    if report.withdrawals:
        out.extend(["## Withdrawals", ""])
        for slot, names in report.withdrawals.items():
            out.append(f"- {slot_title(slot)}: {', '.join(names)}")
        out.append("")

    out.extend(["## Signup Processing Log", ""])
    if not report.log:
        out.extend(["No signups found after registration opened.", ""])
    for index, signup in enumerate(report.log, start=1):
        out.append(f"### Signup #{index} ({format_timestamp(signup.timestamp, tz)[11:]})")
        out.append(f'- Original message: "{signup.original_message}"')
        out.append(f"- Sender: {signup.sender}")
        out.append(f"- Parsed names: {', '.join(signup.names)}")
        if signup.time:
            out.append(f"- Time slot: {signup.time}")
        out.append(f"- Status: {signup.status.value}")
        out.append(f"- Is team: {str(signup.is_team).lower()}")
        out.append("")

    return "\n".join(out).rstrip() + "\n"


def _line_to_dict(line: RosterLine) -> Dict[str, object]:
    entry: Dict[str, object] = {"number": line.number, "name": line.name}
    if line.team_number is not None:
        entry["team"] = line.team_number
    return entry


def build_payload(report: RosterReport) -> Dict[str, object]:
    """JSON-serialisable view of ``report``."""

    window = report.registration
    group = report.group
    return {
        "group": {
            "id": group.id,
            "name": group.name,
            "admin": group.admin,
            "max_teams": group.max_teams,
            "available_slots": group.available_slots,
        },
        "registration": {
            "timestamp": window.timestamp,
            "source": window.source,
            "content": window.content,
            "sender": window.sender,
            "end_timestamp": window.end_timestamp,
        },
        "slots": [
            {
                "slot": slot.slot,
                "players": slot.player_count,
                "teams": slot.team_count,
                "main": [_line_to_dict(line) for line in slot.main],
                "substitutes": [_line_to_dict(line) for line in slot.substitutes],
            }
            for slot in report.slots
        ],
        "withdrawals": {slot: list(names) for slot, names in report.withdrawals.items()},
        "log": [
            {
                "timestamp": s.timestamp,
                "sender": s.sender,
                "original_message": s.original_message,
                "names": list(s.names),
                "time": s.time,
                "status": s.status.value,
                "is_team": s.is_team,
            }
            for s in report.log
        ],
        "stats": {
            "slots": len(report.slots),
            "players": report.player_count,
            "signups": len(report.log),
        },
    }


__all__ = ["build_payload", "format_timestamp", "render_markdown", "slot_title"]
