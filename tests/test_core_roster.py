from dataclasses import replace

from tour_butler.config import DEFAULTS, Config
from tour_butler.core_roster import build_slot_rosters, order_players, split_slot
from tour_butler.core_signups import ParsedSignup, SignupStatus
from tour_butler.effective_signups import build_roster
from tour_butler.teams import assign_team_numbers
from tour_butler.time_slots import UNSPECIFIED

CFG = Config(**DEFAULTS)


def _signup(ts, *names, time=None):
    return ParsedSignup(names=tuple(names), status=SignupStatus.IN, timestamp=ts, sender="s", original_message="", time=time)


def test_substitute_split_continues_numbering():
    roster = build_roster([_signup(i, f"Player {i:02d}") for i in range(1, 21)])
    (slot,) = build_slot_rosters(roster, max_teams=8, config=CFG)

    assert slot.slot == UNSPECIFIED
    assert [line.number for line in slot.main] == list(range(1, 17))
    assert [line.number for line in slot.substitutes] == [17, 18, 19, 20]
    assert [line.name for line in slot.substitutes] == ["Player 17", "Player 18", "Player 19", "Player 20"]
    assert slot.player_count == 20


def test_no_split_without_max_teams():
    roster = build_roster([_signup(i, f"Player {i:02d}") for i in range(1, 41)])
    (slot,) = build_slot_rosters(roster, max_teams=None, config=CFG)
    assert len(slot.main) == 40
    assert slot.substitutes == []


def test_full_slot_is_not_split():
    roster = build_roster([_signup(i, f"Player {i:02d}") for i in range(1, 5)])
    (slot,) = build_slot_rosters(roster, max_teams=2, config=CFG)
    assert len(slot.main) == 4
    assert slot.substitutes == []


def test_chronological_order_keeps_solo_between_teams():
    roster = build_roster(
        [_signup(1000, "Ana", time="15:00"), _signup(2000, "Rudi", "Dani", time="15:00"), _signup(3000, "Bea", time="15:00")]
    )
    (slot,) = build_slot_rosters(roster, config=CFG)
    assert [line.name for line in slot.main] == ["Ana", "Rudi (1)", "Dani (1)", "Bea"]
    assert slot.team_count == 1


def test_team_order_lists_teams_then_solos_alphabetically():
    numbered = assign_team_numbers(
        [_signup(1, "Zoe"), _signup(2, "Rudi", "Dani"), _signup(3, "Ana"), _signup(4, "Tom", "Louis")]
    )
    lines = order_players(numbered, "team")
    assert [line.name for line in lines] == ["Rudi (1)", "Dani (1)", "Tom (2)", "Louis (2)", "Ana", "Zoe"]


def test_team_order_from_config():
    roster = build_roster([_signup(1, "Zoe", time="17:00"), _signup(2, "Rudi", "Dani", time="17:00")])
    (slot,) = build_slot_rosters(roster, config=replace(CFG, ROSTER_ORDER="team"))
    assert [line.name for line in slot.main] == ["Rudi (1)", "Dani (1)", "Zoe"]


def test_slots_are_ordered_and_numbered_independently():
    roster = build_roster(
        [
            _signup(1, "A", "B", time="17:00"),
            _signup(2, "C", "D", time="15:00"),
            _signup(3, "E"),
        ]
    )
    slots = build_slot_rosters(roster, config=CFG)
    assert [s.slot for s in slots] == ["15:00", "17:00", UNSPECIFIED]
    assert [line.name for line in slots[0].main] == ["C (1)", "D (1)"]
    assert [line.name for line in slots[1].main] == ["A (1)", "B (1)"]


def test_split_slot_directly():
    lines = order_players(assign_team_numbers([_signup(1, "A"), _signup(2, "B"), _signup(3, "C")]))
    slot = split_slot("15:00", lines, 2)
    assert [(line.number, line.name) for line in slot.main] == [(1, "A"), (2, "B")]
    assert [(line.number, line.name) for line in slot.substitutes] == [(3, "C")]
