"""Roster formatter: ordered, numbered player lists per time slot.

A slot holding more players than the group has places (``maxTeams * 2``) is
split into a main list and a substitutes list. Numbering runs on across the
split, so the first substitute of a 16-place slot is number 17.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence

from tour_butler.config import get_config
from tour_butler.effective_signups import TimeSlotRoster
from tour_butler.teams import SignupWithTeam, number_roster


@dataclass(frozen=True)
class RosterLine:
    number: int
    name: str
    team_number: Optional[int] = None


@dataclass(frozen=True)
class SlotRoster:
    slot: str
    main: List[RosterLine]
    substitutes: List[RosterLine]
    numbered: List[SignupWithTeam]

    @property
    def player_count(self) -> int:
        return len(self.main) + len(self.substitutes)

    @property
    def team_count(self) -> int:
        return sum(1 for s in self.numbered if s.is_team)


def order_players(numbered: Sequence[SignupWithTeam], order: str = "chronological") -> List[RosterLine]:
    """Flatten numbered signups into display lines (numbers assigned later).

    ``chronological`` keeps confirmation order. ``team`` lists teams by team
    number first, then solo players alphabetically.
    """

    if order == "team":
        teams = sorted((s for s in numbered if s.is_team), key=lambda s: s.team_number)
        solos = sorted((s for s in numbered if not s.is_team), key=lambda s: s.names[0].casefold())
        numbered = [*teams, *solos]

    lines: List[RosterLine] = []
    for item in numbered:
        for formatted in item.formatted_names:
            lines.append(RosterLine(number=0, name=formatted, team_number=item.team_number))
    return lines


def split_slot(
    slot: str,
    lines: Sequence[RosterLine],
    available_slots: Optional[int],
    numbered: Sequence[SignupWithTeam] = (),
) -> SlotRoster:
    """Number ``lines`` 1..n and move everything past ``available_slots`` to substitutes."""

    renumbered = [RosterLine(i, line.name, line.team_number) for i, line in enumerate(lines, start=1)]
    if available_slots is None or len(renumbered) <= available_slots:
        return SlotRoster(slot, renumbered, [], list(numbered))
    return SlotRoster(
        slot,
        renumbered[:available_slots],
        renumbered[available_slots:],
        list(numbered),
    )


def build_slot_rosters(
    roster: TimeSlotRoster,
    max_teams: Optional[int] = None,
    config=None,
) -> List[SlotRoster]:
    """Format every non-empty slot of ``roster``; times ascending, ``unspecified`` last."""

    cfg = config or get_config()
    available = max_teams * 2 if max_teams else None

    slot_rosters: List[SlotRoster] = []
    for slot in roster.slots():
        numbered = number_roster(roster.entries[slot], label_format=cfg.TEAM_LABEL_FORMAT)
        lines = order_players(numbered, cfg.ROSTER_ORDER)
        slot_rosters.append(split_slot(slot, lines, available, numbered))
    return slot_rosters


__all__ = ["RosterLine", "SlotRoster", "build_slot_rosters", "order_players", "split_slot"]
