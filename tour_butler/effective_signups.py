"""Effective signup state: replay parsed signups into a per-slot roster."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Dict, Iterable, List, Optional

from tour_butler.core_signups import ParsedSignup, RawMessage, SignupParser, SignupStatus
from tour_butler.registration import is_admin, sort_messages
from tour_butler.time_slots import UNSPECIFIED


@dataclass(frozen=True)
class RosterEntry:
    """One confirmed player in a slot.

    ``seq`` is the position of the originating signup in the processing log;
    entries that share a ``seq`` were signed up together.
    """

    name: str
    signup: ParsedSignup
    seq: int


def slot_sort_key(slot: str) -> tuple:
    return (1, "") if slot == UNSPECIFIED else (0, slot)


@dataclass
class TimeSlotRoster:
    """Net IN state per slot, in the order players were confirmed."""

    entries: Dict[str, List[RosterEntry]] = field(default_factory=dict)
    withdrawals: Dict[str, List[str]] = field(default_factory=dict)

    def add(self, slot: str, name: str, signup: ParsedSignup, seq: int) -> bool:
        """Confirm ``name``; returns ``False`` if the player was already listed.

        A team signup rebinds an already listed member to the team so the pair
        is numbered together; the player keeps their original position.
        """
        entries = self.entries.setdefault(slot, [])
        for idx, entry in enumerate(entries):
            if entry.name != name:
                continue
            if signup.is_team and entry.seq != seq:
                entries[idx] = replace(entry, signup=signup, seq=seq)
            return False
        entries.append(RosterEntry(name=name, signup=signup, seq=seq))
        return True

    def remove(self, slot: str, name: str) -> bool:
        entries = self.entries.get(slot)
        if not entries:
            return False
        for idx, entry in enumerate(entries):
            if entry.name == name:
                del entries[idx]
                self.withdrawals.setdefault(slot, []).append(name)
                return True
        return False

    def names(self, slot: str) -> List[str]:
        return [e.name for e in self.entries.get(slot, [])]

    def slots(self) -> List[str]:
        """Slots that still hold players; times ascending, ``unspecified`` last."""
        return sorted((s for s, e in self.entries.items() if e), key=slot_sort_key)

    def as_dict(self) -> Dict[str, List[str]]:
        return {slot: self.names(slot) for slot in self.slots()}


@dataclass
class SignupAggregation:
    roster: TimeSlotRoster
    log: List[ParsedSignup]


def apply_signup(roster: TimeSlotRoster, signup: ParsedSignup, seq: int) -> None:
    slot = signup.slot
    for name in signup.names:
        if signup.status is SignupStatus.IN:
            roster.add(slot, name, signup, seq)
        else:
            roster.remove(slot, name)


def build_roster(signups: Iterable[ParsedSignup]) -> TimeSlotRoster:
    """Fold signups in the given order; no sorting, no filtering."""
    roster = TimeSlotRoster()
    for seq, signup in enumerate(signups):
        apply_signup(roster, signup, seq)
    return roster


def aggregate_signups(
    messages: Iterable[RawMessage],
    cutoff: int,
    parser: SignupParser,
    *,
    admin: str = "",
    end_timestamp: Optional[int] = None,
) -> SignupAggregation:
    """Replay all messages after ``cutoff`` through ``parser``.

    Messages are sorted by timestamp first (stable), so storage order does not
    matter. Messages at or before the cutoff, after ``end_timestamp`` or from
    the admin are skipped.
    """

    roster = TimeSlotRoster()
    log: List[ParsedSignup] = []
    for message in sort_messages(messages):
        if message.timestamp <= cutoff:
            continue
        if end_timestamp is not None and message.timestamp > end_timestamp:
            break
        if is_admin(message.sender, admin):
            continue
        for signup in parser.parse(message):
            apply_signup(roster, signup, len(log))
            log.append(signup)
    return SignupAggregation(roster=roster, log=log)


__all__ = [
    "RosterEntry",
    "SignupAggregation",
    "TimeSlotRoster",
    "aggregate_signups",
    "apply_signup",
    "build_roster",
    "slot_sort_key",
]
