# -*- coding: utf-8 -*-
"""
text_utils.py – Text hygiene for chat messages.

WhatsApp exports carry invisible direction marks, non-breaking spaces and
composed/decomposed accents side by side. Everything that compares message
text against keywords or patterns runs it through these helpers first.
"""

from __future__ import annotations

import re
import unicodedata

# --------------------------------------------
# Zero-Width / Formatierungszeichen
# --------------------------------------------
_ZW_REMOVALS = {
    "\u200b": "",  # ZERO WIDTH SPACE
    "\u200c": "",  # ZERO WIDTH NON-JOINER
    "\u200d": "",  # ZERO WIDTH JOINER
    "\u200e": "",  # LEFT-TO-RIGHT MARK
    "\u200f": "",  # RIGHT-TO-LEFT MARK
    "\u2060": "",  # WORD JOINER
    "\ufeff": "",  # ZERO WIDTH NO-BREAK SPACE (BOM)
}

_BRACKET_RE = re.compile(r"\s*\[[^\]]*\]\s*")
_LIST_MARKER_RE = re.compile(r"^\s*(?:[-•*·–—]+|\d{1,2}[.)])\s+")


def normalize_text(s: str) -> str:
    """
    Normalisiert Nachrichtentext, ohne Groß-/Kleinschreibung anzutasten:
    - Unicode NFKC
    - Zero-Width-/Formatierungszeichen entfernen
    - Whitespace kollabieren + trimmen
    """
    s = unicodedata.normalize("NFKC", str(s))
    for k, v in _ZW_REMOVALS.items():
        s = s.replace(k, v)
    return " ".join(s.split()).strip()


def canonical_text(s: str) -> str:
    """Lower-cased :func:`normalize_text`, used for keyword comparisons."""
    return normalize_text(s).lower()


def is_bracket_wrapped(s: str) -> bool:
    text = normalize_text(s)
    return len(text) >= 2 and text.startswith("[") and text.endswith("]") and text.count("[") == 1


def strip_markers(s: str) -> str:
    """Remove ``[EDITED]``/``[REACTION]`` style markers and list bullets."""
    text = _BRACKET_RE.sub(" ", normalize_text(s))
    text = _LIST_MARKER_RE.sub("", text)
    return " ".join(text.split())


__all__ = ["normalize_text", "canonical_text", "is_bracket_wrapped", "strip_markers"]
