"""Registration-window detection.

The window opens with the most recent admin message that announces
registration, either by keyword or by listing the session times. Without such
a message the weekly cron schedule of the group (``signupStartTime``) gives the
latest opening instant at or before *now*. The tournament schedule
(``tournamentTime``), when configured, closes the window again.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from typing import Iterable, List, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from tour_butler.classifier import is_registration_open
from tour_butler.config import Config, get_config
from tour_butler.core_signups import RawMessage
from tour_butler.group_info import GroupInfo
from tour_butler.time_slots import find_all_times

SOURCE_MESSAGE = "message"
SOURCE_SCHEDULE = "schedule"
SOURCE_FORCED = "forced"

WHATSAPP_SUFFIX = "@s.whatsapp.net"

_SLOT_LINE_RE = re.compile(r"^\s*(?:[-•*]\s*)?\d{1,2}\s*(?:[h:.]\s*\d{2}h?|h)(?!\w)", re.IGNORECASE | re.MULTILINE)


@dataclass(frozen=True)
class CronSchedule:
    """Weekly schedule; ``day_of_week`` uses cron numbering (0 = Sunday)."""

    minute: int
    hour: int
    day_of_week: int

    @property
    def weekday(self) -> int:
        """Python weekday (Monday = 0)."""
        return (self.day_of_week - 1) % 7


@dataclass(frozen=True)
class RegistrationWindow:
    timestamp: int
    content: str = ""
    sender: str = ""
    source: str = SOURCE_MESSAGE
    end_timestamp: Optional[int] = None


def parse_cron(expr: Optional[str]) -> Optional[CronSchedule]:
    """Parse ``"minute hour * * dow"``; anything else yields ``None``."""

    parts = (expr or "").split()
    if len(parts) != 5 or parts[2] != "*" or parts[3] != "*":
        return None
    try:
        minute, hour, dow = int(parts[0]), int(parts[1]), int(parts[4])
    except ValueError:
        return None
    if not (0 <= minute <= 59 and 0 <= hour <= 23 and 0 <= dow <= 6):
        return None
    return CronSchedule(minute=minute, hour=hour, day_of_week=dow)


def resolve_timezone(name: str) -> ZoneInfo | timezone:
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        print(f"[warn] unknown time zone '{name}' – using UTC")
        return timezone.utc


def _localize(moment: datetime, tz) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=tz)
    return moment.astimezone(tz)


def _at(day: date, schedule: CronSchedule, tz) -> datetime:
    return datetime.combine(day, time(schedule.hour, schedule.minute), tzinfo=tz)


def last_scheduled_time(expr: Optional[str], now: datetime, *, tz=timezone.utc) -> Optional[datetime]:
    """Most recent occurrence of the cron schedule at or before ``now``.

    On the scheduled weekday before the scheduled hour the previous week's
    occurrence is returned. Naive ``now`` values are read in ``tz``.
    """

    schedule = parse_cron(expr)
    if schedule is None:
        return None
    local = _localize(now, tz)
    days_back = (local.weekday() - schedule.weekday) % 7
    candidate = _at(local.date() - timedelta(days=days_back), schedule, tz)
    if candidate > local:
        candidate = _at(candidate.date() - timedelta(days=7), schedule, tz)
    return candidate


def next_scheduled_time(expr: Optional[str], after: datetime, *, tz=timezone.utc) -> Optional[datetime]:
    """First occurrence of the cron schedule strictly after ``after``."""

    schedule = parse_cron(expr)
    if schedule is None:
        return None
    local = _localize(after, tz)
    days_ahead = (schedule.weekday - local.weekday()) % 7
    candidate = _at(local.date() + timedelta(days=days_ahead), schedule, tz)
    if candidate <= local:
        candidate = _at(candidate.date() + timedelta(days=7), schedule, tz)
    return candidate


def _bare_id(sender: str) -> str:
    return (sender or "").strip().split("@", 1)[0]


def is_admin(sender: str, admin: str) -> bool:
    if not admin or not sender:
        return False
    if sender == admin or sender == admin + WHATSAPP_SUFFIX:
        return True
    return _bare_id(sender) == _bare_id(admin)


def is_slot_announcement(text: str, min_slots: int = 2) -> bool:
    """Admin post listing session times (``"15h / 17h / 18h30"``)."""
    text = text or ""
    if len(find_all_times(text)) >= min_slots:
        return True
    return "\n" in text.strip() and bool(_SLOT_LINE_RE.search(text))


def sort_messages(messages: Iterable[RawMessage]) -> List[RawMessage]:
    # stabil: gleiche Timestamps behalten die Speicherreihenfolge
    return sorted(messages, key=lambda m: m.timestamp)


def find_registration_message(
    messages: Iterable[RawMessage],
    admin: str,
    *,
    min_slots: int = 2,
) -> Optional[RawMessage]:
    """Newest admin message that opens registration, scanning backwards."""

    for message in reversed(sort_messages(messages)):
        if not is_admin(message.sender, admin):
            continue
        if is_registration_open(message.content) or is_slot_announcement(message.content, min_slots):
            return message
    return None


def _registration_end(group: GroupInfo, start_ts: int, tz) -> Optional[int]:
    if not group.tournament_time:
        return None
    start = datetime.fromtimestamp(start_ts, tz)
    end = next_scheduled_time(group.tournament_time, start, tz=tz)
    if end is None:
        print(f"[warn] {group.id}: invalid tournament schedule '{group.tournament_time}'")
        return None
    return int(end.timestamp())


def detect_registration_window(
    messages: Iterable[RawMessage],
    group: GroupInfo,
    *,
    now: Optional[datetime] = None,
    forced_cutoff: Optional[int] = None,
    config: Optional[Config] = None,
) -> Optional[RegistrationWindow]:
    """Find the registration window for ``group``.

    Precedence: forced cutoff, admin message, cron schedule. Returns ``None``
    when none of them applies; the caller decides whether that is fatal.
    """

    cfg = config or get_config()
    tz = resolve_timezone(cfg.SIGNUP_TIMEZONE)
    ordered = sort_messages(messages)

    window: Optional[RegistrationWindow] = None
    if forced_cutoff is not None:
        first = next((m for m in ordered if m.timestamp >= forced_cutoff), None)
        window = RegistrationWindow(
            timestamp=int(forced_cutoff),
            content=first.content if first else "",
            sender=first.sender if first else "",
            source=SOURCE_FORCED,
        )
    else:
        message = find_registration_message(ordered, group.admin, min_slots=cfg.ANNOUNCEMENT_MIN_SLOTS)
        if message is not None:
            window = RegistrationWindow(
                timestamp=int(message.timestamp),
                content=message.content,
                sender=message.sender,
                source=SOURCE_MESSAGE,
            )
        elif group.signup_start_time:
            opened = last_scheduled_time(group.signup_start_time, now or datetime.now(tz), tz=tz)
            if opened is None:
                print(f"[warn] {group.id}: invalid signup schedule '{group.signup_start_time}'")
            else:
                window = RegistrationWindow(timestamp=int(opened.timestamp()), source=SOURCE_SCHEDULE)

    if window is None:
        return None
    end = _registration_end(group, window.timestamp, tz)
    if end is None:
        return window
    return RegistrationWindow(
        timestamp=window.timestamp,
        content=window.content,
        sender=window.sender,
        source=window.source,
        end_timestamp=end,
    )


__all__ = [
    "CronSchedule",
    "RegistrationWindow",
    "detect_registration_window",
    "find_registration_message",
    "is_admin",
    "is_slot_announcement",
    "last_scheduled_time",
    "next_scheduled_time",
    "parse_cron",
    "resolve_timezone",
    "sort_messages",
]
