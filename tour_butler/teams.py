"""Team numbering per time slot.

Every signup with two or more players gets the next team number of its slot;
solo players stay unlabelled and keep their chronological position between
the teams.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from tour_butler.core_signups import ParsedSignup, SignupStatus
from tour_butler.effective_signups import RosterEntry

DEFAULT_LABEL_FORMAT = " ({number})"


@dataclass(frozen=True)
class SignupWithTeam:
    signup: ParsedSignup
    names: Tuple[str, ...]
    formatted_names: Tuple[str, ...]
    team_number: Optional[int] = None

    def __post_init__(self) -> None:
        if self.team_number is not None and len(self.names) < 2:
            raise ValueError("solo signups cannot carry a team number")

    @property
    def is_team(self) -> bool:
        return self.team_number is not None


def format_team_name(name: str, number: int, label_format: str = DEFAULT_LABEL_FORMAT) -> str:
    return f"{name}{label_format.format(number=number)}"


def _number(
    groups: Sequence[Tuple[ParsedSignup, Sequence[str]]],
    label_format: str,
) -> List[SignupWithTeam]:
    numbered: List[SignupWithTeam] = []
    next_team = 1
    for signup, names in groups:
        names = tuple(names)
        if len(names) > 1:
            formatted = tuple(format_team_name(n, next_team, label_format) for n in names)
            numbered.append(SignupWithTeam(signup, names, formatted, team_number=next_team))
            next_team += 1
        else:
            numbered.append(SignupWithTeam(signup, names, names))
    return numbered


def assign_team_numbers(
    signups: Sequence[ParsedSignup],
    *,
    label_format: str = DEFAULT_LABEL_FORMAT,
) -> List[SignupWithTeam]:
    """Number the IN signups of one slot in the order given.

    OUT signups are ignored. Numbering starts at 1 for every call, so call it
    once per slot.
    """
    return _number(
        [(s, s.names) for s in signups if s.status is SignupStatus.IN],
        label_format,
    )


def number_roster(
    entries: Sequence[RosterEntry],
    *,
    label_format: str = DEFAULT_LABEL_FORMAT,
) -> List[SignupWithTeam]:
    """Number the players still on a slot's roster.

    Players confirmed by the same signup are regrouped; a team whose partner
    withdrew is left with one player and is shown as a solo entry.
    """

    order: List[int] = []
    grouped: Dict[int, List[RosterEntry]] = {}
    for entry in entries:
        if entry.seq not in grouped:
            grouped[entry.seq] = []
            order.append(entry.seq)
        grouped[entry.seq].append(entry)

    groups = [(grouped[seq][0].signup, [e.name for e in grouped[seq]]) for seq in order]
    return _number(groups, label_format)


__all__ = [
    "DEFAULT_LABEL_FORMAT",
    "SignupWithTeam",
    "assign_team_numbers",
    "format_team_name",
    "number_roster",
]
