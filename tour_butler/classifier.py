"""Rule-based intent classification for a single chat line.

The rules live in :data:`INTENT_RULES` and are evaluated top to bottom; the
first predicate that matches decides the intent. Checking the admin's
identity for ``REGISTRATION_OPEN`` is the caller's job.
"""

from __future__ import annotations

import re
from enum import Enum
from typing import Callable, List, Tuple

from tour_butler.text_utils import canonical_text, is_bracket_wrapped


class Intent(str, Enum):
    SYSTEM = "system"
    REGISTRATION_OPEN = "registration_open"
    OUT = "out"
    IN = "in"
    TEAM = "team"
    CONVERSATION = "conversation"


REGISTRATION_OPEN_KEYWORDS = (
    "inscrições abertas",
    "inscricoes abertas",
    "inscrições estão abertas",
    "registos abertos",
    "registration open",
    "registrations open",
    "registration is open",
    "open registration",
    "signups open",
)

_OUT_RE = re.compile(
    r"\bout\b|\bn[aã]o\s+posso\b|\bcan'?t\s+make\s+it\b|\bcannot\s+make\s+it\b|\bremove\s+me\b",
    re.IGNORECASE,
)
_IN_RE = re.compile(r"\bin\b", re.IGNORECASE)
_TEAM_RE = re.compile(
    r"[/+&]|\s(?:e|and|com)\s|with\s+partner",
    re.IGNORECASE,
)


def is_system(text: str) -> bool:
    return is_bracket_wrapped(text)


def is_registration_open(text: str) -> bool:
    lowered = canonical_text(text)
    return any(keyword in lowered for keyword in REGISTRATION_OPEN_KEYWORDS)


def is_out(text: str) -> bool:
    return bool(_OUT_RE.search(text or ""))


def is_in(text: str) -> bool:
    return bool(_IN_RE.search(text or ""))


def has_team_indicator(text: str) -> bool:
    return bool(_TEAM_RE.search(f" {text or ''} ")) and not is_out(text)


INTENT_RULES: List[Tuple[Callable[[str], bool], Intent]] = [
    (is_system, Intent.SYSTEM),
    (is_registration_open, Intent.REGISTRATION_OPEN),
    (is_out, Intent.OUT),
    (is_in, Intent.IN),
    (has_team_indicator, Intent.TEAM),
]


def classify(text: str) -> Intent:
    """Return the intent of ``text``; :attr:`Intent.CONVERSATION` if no rule fires."""
    for predicate, intent in INTENT_RULES:
        if predicate(text):
            return intent
    return Intent.CONVERSATION


__all__ = [
    "Intent",
    "INTENT_RULES",
    "REGISTRATION_OPEN_KEYWORDS",
    "classify",
    "has_team_indicator",
    "is_in",
    "is_out",
    "is_registration_open",
    "is_system",
]
