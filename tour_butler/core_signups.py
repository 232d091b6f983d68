"""Single-message signup parser.

Turns one chat message into zero or more :class:`ParsedSignup` records. A
message may hold several logical entries separated by newlines; each non-blank
line is parsed on its own::

    line → strip markers → phrase overrides → classify → times → names

Names found in the text always win over the sender's contact name. The
contact name is only used when an IN/OUT line carries no name at all, and never
for messages written by the bot account itself.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional, Sequence, Tuple

from tour_butler.classifier import Intent, classify, is_registration_open, is_system
from tour_butler.config import Config, get_config
from tour_butler.names import extract_names, is_partner_word, partner_of, split_clauses, strip_commands
from tour_butler.text_utils import normalize_text, strip_markers
from tour_butler.time_slots import (
    UNSPECIFIED,
    contains_time_pattern,
    extract_times,
    normalize_time,
    strip_times,
)

DisplayNameResolver = Callable[[str], str]


@dataclass(frozen=True)
class RawMessage:
    """One chat message as delivered by the message source.

    Attributes:
        sender: Opaque participant id (usually ``<phone>@s.whatsapp.net``).
        timestamp: Seconds since the epoch.
        content: Raw text, possibly multi-line.
        from_me: ``True`` if the bot account wrote the message.
        id: Transport message id, informational.
        chat_id: Group the message belongs to.
    """

    sender: str
    timestamp: int
    content: str
    from_me: bool = False
    id: str = ""
    chat_id: str = ""


class SignupStatus(str, Enum):
    IN = "IN"
    OUT = "OUT"


@dataclass(frozen=True)
class ParsedSignup:
    names: Tuple[str, ...]
    status: SignupStatus
    timestamp: int
    sender: str
    original_message: str
    time: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.names:
            raise ValueError("ParsedSignup needs at least one name")

    @property
    def is_team(self) -> bool:
        return len(self.names) > 1

    @property
    def slot(self) -> str:
        return self.time or UNSPECIFIED


# ---------------------------------------------------------------------------
# Phrase overrides
# ---------------------------------------------------------------------------

SUBJECT_SENDER = "sender"
SUBJECT_SENDER_PARTNER = "sender_partner"
SUBJECT_NAMED_PARTNER = "named_partner"


@dataclass(frozen=True)
class PhraseOverride:
    """Known idiom that resolves to a fixed OUT subject before normal parsing."""

    pattern: re.Pattern
    subject: str

    def resolve(self, text: str, sender_name: Optional[str]) -> Optional[List[str]]:
        match = self.pattern.search(text)
        if not match:
            return None
        if self.subject == SUBJECT_NAMED_PARTNER:
            return [partner_of(match.group("name"))]
        if sender_name is None:
            return []
        if self.subject == SUBJECT_SENDER_PARTNER:
            return [partner_of(sender_name)]
        return [sender_name]


PHRASE_OVERRIDES: List[PhraseOverride] = [
    PhraseOverride(re.compile(r"^my\s+partner\s+(?:is\s+)?out\b", re.IGNORECASE), SUBJECT_SENDER_PARTNER),
    PhraseOverride(
        re.compile(r"^(?P<name>[^\W\d_][\w'.-]*)\s+partner\s+(?:is\s+)?out\b", re.IGNORECASE),
        SUBJECT_NAMED_PARTNER,
    ),
    PhraseOverride(re.compile(r"^sorry[\s,!.]*(?:i'?m\s+|i\s+am\s+)?out\b", re.IGNORECASE), SUBJECT_SENDER),
    PhraseOverride(
        re.compile(r"^(?:sorry[\s,!]*)?(?:i\s+)?(?:cannot|can'?t)\s+make\s+it\b", re.IGNORECASE),
        SUBJECT_SENDER,
    ),
    PhraseOverride(re.compile(r"^(?:please\s+)?remove\s+me\b", re.IGNORECASE), SUBJECT_SENDER),
    PhraseOverride(re.compile(r"^(?:desculp\w*[\s,!]*)?n[aã]o\s+posso\b", re.IGNORECASE), SUBJECT_SENDER),
]

# "In com Joao" / "in with partner": the sender plays with the named person
_LEADING_PARTNER_RE = re.compile(r"^(?:in\s+)?(?:com|with)\s+(?P<rest>.+)$", re.IGNORECASE)
_OUT_PHRASE_RE = re.compile(
    r"\bn[aã]o\s+posso\b|\bcan'?t\s+make\s+it\b|\bcannot\s+make\s+it\b|\bremove\s+me\b",
    re.IGNORECASE,
)
_WORD_RE = re.compile(r"[^\W\d_]+")
_APOLOGY_RE = re.compile(r"^(?:sorry|desculp\w*)\b[\s,!.]*", re.IGNORECASE)

# Wörter, die auf Unterhaltung statt auf einen Namen hindeuten
_CONVERSATION_WORDS = frozenset(
    {
        # Grüße / Smalltalk
        "hi", "hello", "hey", "ola", "olá", "ok", "okay", "yes", "no", "sim", "não", "nao",
        "thanks", "thank", "thx", "obrigado", "obrigada", "sorry", "desculpa", "desculpe",
        "bom", "boa", "dia", "tarde", "noite", "morning", "evening", "night",
        "lol", "haha", "hahaha", "kkk", "nice", "great", "cool", "top", "parabéns", "parabens",
        # Termine / Spiel
        "game", "games", "jogo", "jogos", "today", "tomorrow", "hoje", "amanhã", "amanha",
        "court", "courts", "campo", "campos", "play", "playing", "jogar", "vamos",
        # Funktionswörter
        "who", "what", "when", "where", "why", "how", "quem", "quando", "onde", "como", "porque",
        "is", "are", "was", "were", "will", "can", "could", "would", "should",
        "have", "has", "does", "did", "let", "know", "see", "please", "pls",
        "i", "you", "we", "they", "he", "she", "it", "me", "my", "your", "our",
        "eu", "tu", "nós", "vocês", "ele", "ela", "the", "an", "of", "to", "this", "that",
        "there", "here", "anyone", "someone", "alguém", "alguem", "todos", "everyone",
    }
)


def _default_display_name(sender: str) -> str:
    return (sender or "").split("@", 1)[0]


def _name_cased(names: Sequence[str], sender_name: Optional[str]) -> bool:
    """Whether unmarked words are written like a name rather than a sentence.

    Accepts the sender's own contact name, Title Case ("Ana Souza") and an
    all-lowercase full name of two or more words ("philipp effinger").
    Sentence case ("Bring balls") and single lowercase words are rejected.
    """
    if sender_name and any(n.casefold() == sender_name.casefold() for n in names):
        return True
    words = [w for name in names for w in _WORD_RE.findall(name)]
    if not words:
        # bare mentions
        return True
    if all(w[0].isupper() for w in words):
        return True
    return len(words) > 1 and all(w.islower() for w in words)


class SignupParser:
    """Parse chat messages into :class:`ParsedSignup` records.

    ``resolve_display_name`` maps a sender id to a contact name; without one
    the sender id minus its transport suffix is used.
    """

    def __init__(
        self,
        resolve_display_name: Optional[DisplayNameResolver] = None,
        *,
        config: Optional[Config] = None,
    ) -> None:
        self._resolve = resolve_display_name or _default_display_name
        self._config = config or get_config()

    def parse(self, message: RawMessage) -> List[ParsedSignup]:
        content = message.content or ""
        if not content.strip():
            return []
        if is_system(content) or is_registration_open(content):
            return []

        signups: List[ParsedSignup] = []
        for line in content.splitlines():
            signups.extend(self.parse_line(line, message))
        return signups

    def parse_line(self, line: str, message: RawMessage) -> List[ParsedSignup]:
        if is_system(line):
            return []
        text = strip_markers(line)
        if not text or text.replace(" ", "").isdigit():
            return []

        clauses = split_clauses(text)
        if len(clauses) == 1:
            return self._parse_clause(text, message, self._slots(text))

        # "Ana in 15h, Bea in": a clause without a time inherits the line's first time
        fallback = [normalize_time(text)]
        signups: List[ParsedSignup] = []
        for clause in clauses:
            if clause.replace(" ", "").isdigit():
                continue
            slots = self._slots(clause) if normalize_time(clause) else fallback
            signups.extend(self._parse_clause(clause, message, slots))
        return signups

    def _parse_clause(
        self,
        text: str,
        message: RawMessage,
        slots: Sequence[Optional[str]],
    ) -> List[ParsedSignup]:
        sender_name = self._sender_name(message)

        for override in PHRASE_OVERRIDES:
            names = override.resolve(text, sender_name)
            if names is None:
                continue
            return self._build(names, SignupStatus.OUT, slots, message)

        intent = classify(text)
        if intent in (Intent.SYSTEM, Intent.REGISTRATION_OPEN):
            return []

        names = self._leading_partner(text, intent, sender_name)
        if names is None:
            names = self.extract_line_names(text)

        if intent is Intent.CONVERSATION:
            if not names or not self._promotable(text, names, sender_name):
                return []
            intent = Intent.IN

        names = self.resolve_names(names, intent, sender_name)
        if not names:
            return []
        status = SignupStatus.OUT if intent is Intent.OUT else SignupStatus.IN
        return self._build(names, status, slots, message)

    @staticmethod
    def extract_line_names(text: str) -> List[str]:
        text = _APOLOGY_RE.sub("", text)
        text = _OUT_PHRASE_RE.sub(" ", text)
        return extract_names(strip_commands(strip_times(text)))

    @staticmethod
    def resolve_names(extracted: Sequence[str], intent: Intent, sender_name: Optional[str]) -> List[str]:
        """Names written in the message first; the sender only as a stand-in."""
        if extracted:
            return list(extracted)
        if intent in (Intent.IN, Intent.OUT) and sender_name:
            return [sender_name]
        return []

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------

    def _sender_name(self, message: RawMessage) -> Optional[str]:
        if message.from_me:
            return None
        name = normalize_text(self._resolve(message.sender) or "")
        return name or _default_display_name(message.sender) or None

    def _slots(self, text: str) -> List[Optional[str]]:
        if self._config.MULTI_SLOT_SIGNUPS:
            return list(extract_times(text)) or [None]
        return [normalize_time(text)]

    def _leading_partner(self, text: str, intent: Intent, sender_name: Optional[str]) -> Optional[List[str]]:
        if intent not in (Intent.IN, Intent.TEAM) or sender_name is None:
            return None
        match = _LEADING_PARTNER_RE.match(strip_times(text))
        if not match:
            return None
        rest = strip_commands(match.group("rest"))
        if is_partner_word(rest):
            return [sender_name, partner_of(sender_name)]
        partners = extract_names(rest)
        if not partners:
            return None
        return [sender_name, *partners]

    def _promotable(self, text: str, names: Sequence[str], sender_name: Optional[str]) -> bool:
        if "?" in text or "http" in text.lower():
            return False
        words = [w.lower() for w in _WORD_RE.findall(strip_times(text))]
        if any(w in _CONVERSATION_WORDS for w in words):
            return False
        if any(len(name.split()) > self._config.MAX_NAME_WORDS for name in names):
            return False
        if contains_time_pattern(text):
            return True
        return _name_cased(names, sender_name)

    def _build(
        self,
        names: Sequence[str],
        status: SignupStatus,
        slots: Sequence[Optional[str]],
        message: RawMessage,
    ) -> List[ParsedSignup]:
        if not names:
            return []
        return [
            ParsedSignup(
                names=tuple(names),
                status=status,
                timestamp=int(message.timestamp),
                sender=message.sender,
                original_message=message.content,
                time=slot,
            )
            for slot in slots
        ]


def parse_signup_message(
    message: RawMessage,
    resolve_display_name: Optional[DisplayNameResolver] = None,
    *,
    config: Optional[Config] = None,
) -> List[ParsedSignup]:
    """Convenience wrapper around :meth:`SignupParser.parse`."""
    return SignupParser(resolve_display_name, config=config).parse(message)


__all__ = [
    "PHRASE_OVERRIDES",
    "ParsedSignup",
    "PhraseOverride",
    "RawMessage",
    "SignupParser",
    "SignupStatus",
    "parse_signup_message",
]
