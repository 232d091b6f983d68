"""Player-name extraction from a signup fragment.

The fragment handed to :func:`extract_names` should already have its time
tokens and IN/OUT commands removed (see :func:`strip_commands`). Grammar,
first match wins:

1. ``Name <and|e|&|com|with|/|+> Name`` → a team of two (or more) names.
2. ``Name and/+/with/com partner`` → the name plus ``"<Name>'s partner"``.
3. Anything else that still looks like a name → one name.
4. Nothing left → no names; the caller decides whether the sender stands in.
"""

from __future__ import annotations

import re
from typing import List, Optional

from tour_butler.time_slots import strip_times

_SEPARATOR_RE = re.compile(r"\s*[/&+]\s*|\s+(?:and|e|com|with)\s+", re.IGNORECASE)
_PARTNER_SUFFIX_RE = re.compile(
    r"^(?P<name>.+?)(?:\s*\+\s*|\s+(?:and|with|com|e|&)\s+)(?:my\s+|a\s+|the\s+)?(?:partner|parceir[oa])$",
    re.IGNORECASE,
)
_PARTNER_WORD_RE = re.compile(r"^(?:my\s+|a\s+|the\s+)?(?:partner|parceir[oa])$", re.IGNORECASE)
_COMMAND_RE = re.compile(r"(?<![\w'])(?:in|out|at|às|das|for)(?![\w'])", re.IGNORECASE)
_MENTION_RE = re.compile(r"@(\d{6,})\b")
_LOOSE_PUNCT_RE = re.compile(r"(?<!\S)[-–—:@=>]+(?!\S)")
_TRAILING_COMMAND_RE = re.compile(r"\s+(?:in|out|at)$", re.IGNORECASE)
_LETTER_RE = re.compile(r"[^\W\d_]")
# "," / ";" after in/out or a time closes the entry, unless another time follows
_CLAUSE_END_RE = re.compile(
    r"(?:(?<![\w'])(?:in|out)|(?<![\w@:.])\d{1,2}(?:\s*[h:.]\s*\d{2}h?|h(?:rs?)?)?)\s*[,;](?!\s*\d)",
    re.IGNORECASE,
)


def split_clauses(text: str) -> List[str]:
    """Split ``"Ana in, Bea in"`` into ``["Ana in", "Bea in"]``.

    Only commas and semicolons that follow an IN/OUT word or a time split;
    ``"Rudi, Dani 15h"`` stays one clause.
    """
    text = text or ""
    clauses: List[str] = []
    start = 0
    for match in _CLAUSE_END_RE.finditer(text):
        clauses.append(text[start:match.end() - 1].strip())
        start = match.end()
    clauses.append(text[start:].strip())
    return [c for c in clauses if c]


def strip_commands(text: str) -> str:
    """Drop IN/OUT/"at" style command words and loose punctuation."""
    text = _MENTION_RE.sub(r"\1", text or "")
    text = _COMMAND_RE.sub(" ", text)
    text = _LOOSE_PUNCT_RE.sub(" ", text)
    text = re.sub(r"@(?=\D)", "", text)
    # "Bernardo out, sorry" leaves a dangling comma behind
    text = re.sub(r"\s+[,;]+(?=\s|$)", "", text)
    return " ".join(text.split())


def is_partner_word(text: str) -> bool:
    return bool(_PARTNER_WORD_RE.match((text or "").strip()))


def partner_of(name: str) -> str:
    return f"{name}'s partner"


def looks_like_name(name: str) -> bool:
    if len(name) < 2:
        return False
    if name.isdigit():
        # mentions survive as bare phone numbers
        return len(name) >= 6
    return bool(_LETTER_RE.search(name))


def clean_name(name: str) -> str:
    """Tidy one candidate name.

    Strips bullets and dashes, trailing in/out/at tokens, embedded times and
    stray symbols. Slashes inside the name are left alone.
    """
    name = re.sub(r"^[\s\-–—•*·.:,;]+", "", name or "")
    name = strip_times(name)
    previous = None
    while previous != name:
        previous = name
        name = _TRAILING_COMMAND_RE.sub("", name)
    name = re.sub(r"^[^\w]+|[^\w)]+$", "", name)
    return " ".join(name.split())


def _split_team(text: str) -> Optional[List[str]]:
    parts = _SEPARATOR_RE.split(text)
    if len(parts) < 2:
        return None
    names: List[str] = []
    for part in parts:
        if is_partner_word(part):
            if not names:
                return None
            names.append(partner_of(names[-1]))
            continue
        cleaned = clean_name(part)
        if not looks_like_name(cleaned):
            # partial delimiter hit ("A/B"); keep the fragment whole
            return None
        names.append(cleaned)
    return names


def extract_names(fragment: str) -> List[str]:
    """Split ``fragment`` into player names following the module grammar."""

    text = " ".join((fragment or "").split())
    if not text:
        return []

    team = _split_team(text)
    if team:
        return team

    partner = _PARTNER_SUFFIX_RE.match(text)
    if partner:
        name = clean_name(partner.group("name"))
        if looks_like_name(name):
            return [name, partner_of(name)]

    name = clean_name(text)
    if looks_like_name(name) and not is_partner_word(name):
        return [name]
    return []


__all__ = [
    "clean_name",
    "extract_names",
    "is_partner_word",
    "looks_like_name",
    "partner_of",
    "split_clauses",
    "strip_commands",
]
