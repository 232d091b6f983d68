"""Time-of-day normalisation for signup messages.

Players write the same session as ``15h``, ``15:00``, ``15.00``, ``15h00`` or
just ``15``. Every slot key used elsewhere is the canonical ``HH:MM`` string
returned by :func:`normalize_time`, or :data:`UNSPECIFIED` when a message does
not name a time.
"""

from __future__ import annotations

import re
from typing import List, Optional

UNSPECIFIED = "unspecified"

# One time token: "15h30", "15:30", "15.30", "15h", "15" (no surrounding digits).
_TOKEN = r"(?<![\w@:.])\d{1,2}(?:\s*[h:.]\s*\d{2}h?|h(?:rs?)?)?(?![\w:]|\.\d)"

_MULTI_TIME_RE = re.compile(
    rf"({_TOKEN})(?:\s*(?:,|and|e|&|\+)\s*({_TOKEN}))+",
    re.IGNORECASE,
)
_HOUR_MINUTE_RE = re.compile(r"(?<![\w@:.])(\d{1,2})\s*[h:.]\s*(\d{2})h?(?![\w:]|\.\d)", re.IGNORECASE)
_HOUR_SUFFIX_RE = re.compile(r"(?<![\w@:.])(\d{1,2})h(?:rs?)?(?!\w)", re.IGNORECASE)
_BARE_HOUR_RE = re.compile(r"(?<![\w@:.+/])(\d{1,2})(?![\w:]|\.\d)")
_ANY_TOKEN_RE = re.compile(_TOKEN, re.IGNORECASE)


def _canonical(hour: str, minute: str = "00") -> Optional[str]:
    h, m = int(hour), int(minute)
    if not (0 <= h <= 23 and 0 <= m <= 59):
        return None
    return f"{h:02d}:{m:02d}"


def _token_to_slot(token: str) -> Optional[str]:
    token = token.strip()
    match = _HOUR_MINUTE_RE.fullmatch(token)
    if match:
        return _canonical(match.group(1), match.group(2))
    match = re.fullmatch(r"(\d{1,2})(?:h(?:rs?)?)?", token, re.IGNORECASE)
    if match:
        return _canonical(match.group(1))
    return None


def _first_valid(pattern: re.Pattern, text: str) -> Optional[str]:
    for match in pattern.finditer(text):
        groups = [g for g in match.groups() if g is not None]
        slot = _canonical(*groups)
        if slot is not None:
            return slot
    return None


def extract_times(text: str) -> List[str]:
    """Return every slot of the first multi-time phrase (``"15 and 17"``).

    Falls back to a single-element list with :func:`normalize_time`, or an
    empty list if the text has no time at all.
    """

    match = _MULTI_TIME_RE.search(text or "")
    if match:
        slots: List[str] = []
        for token in _ANY_TOKEN_RE.findall(match.group(0)):
            slot = _token_to_slot(token)
            if slot and slot not in slots:
                slots.append(slot)
        if slots:
            return slots
    single = normalize_time(text)
    return [single] if single else []


def normalize_time(text: str) -> Optional[str]:
    """Find the first time-of-day token in ``text`` and return ``HH:MM``.

    Patterns are tried in priority order, not by position: a multi-time phrase
    resolves to its first time, then ``HH[h:.]MM``, then ``HHh``, then a bare
    one- or two-digit hour. Out-of-range values are skipped. Returns ``None``
    if nothing matches.
    """

    text = text or ""
    match = _MULTI_TIME_RE.search(text)
    if match:
        slot = _token_to_slot(match.group(1))
        if slot:
            return slot
    for pattern in (_HOUR_MINUTE_RE, _HOUR_SUFFIX_RE, _BARE_HOUR_RE):
        slot = _first_valid(pattern, text)
        if slot:
            return slot
    return None


def find_all_times(text: str) -> List[str]:
    """Distinct explicit slots (``15h``, ``17:30``) in order of appearance.

    Bare numbers are ignored here; "2 courts, 8 teams" is not a schedule.
    """
    text = text or ""
    matches = sorted(
        [*_HOUR_MINUTE_RE.finditer(text), *_HOUR_SUFFIX_RE.finditer(text)],
        key=lambda m: m.start(),
    )
    slots: List[str] = []
    for match in matches:
        slot = _canonical(*[g for g in match.groups() if g is not None])
        if slot and slot not in slots:
            slots.append(slot)
    return slots


def contains_time_pattern(text: str) -> bool:
    """True for explicit times (``15h``, ``15:00``); bare numbers do not count."""
    text = text or ""
    return bool(_HOUR_MINUTE_RE.search(text) or _HOUR_SUFFIX_RE.search(text))


def strip_times(text: str) -> str:
    """Remove all time tokens (including multi-time phrases) from ``text``."""
    text = _MULTI_TIME_RE.sub(" ", text or "")
    text = _HOUR_MINUTE_RE.sub(" ", text)
    text = _HOUR_SUFFIX_RE.sub(" ", text)
    text = _BARE_HOUR_RE.sub(" ", text)
    return " ".join(text.split())


__all__ = [
    "UNSPECIFIED",
    "contains_time_pattern",
    "extract_times",
    "find_all_times",
    "normalize_time",
    "strip_times",
]
