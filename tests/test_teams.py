import pytest

from tour_butler.core_signups import ParsedSignup, SignupStatus
from tour_butler.effective_signups import build_roster
from tour_butler.teams import SignupWithTeam, assign_team_numbers, format_team_name, number_roster


def _signup(ts, *names, status=SignupStatus.IN, time="15:00"):
    return ParsedSignup(names=tuple(names), status=status, timestamp=ts, sender="s", original_message="", time=time)


def test_solo_between_teams_keeps_position():
    s1 = _signup(1000, "Ana")
    s2 = _signup(2000, "Rudi", "Dani")
    s3 = _signup(3000, "Bea")
    numbered = assign_team_numbers([s1, s2, s3])

    assert [n.signup for n in numbered] == [s1, s2, s3]
    assert [n.team_number for n in numbered] == [None, 1, None]
    assert numbered[1].formatted_names == ("Rudi (1)", "Dani (1)")
    assert numbered[0].formatted_names == ("Ana",)


def test_team_numbers_increase_from_one():
    numbered = assign_team_numbers(
        [_signup(1, "A", "B"), _signup(2, "C"), _signup(3, "D", "E"), _signup(4, "F", "G")]
    )
    assert [n.team_number for n in numbered if n.is_team] == [1, 2, 3]
    assert all(n.team_number is None for n in numbered if len(n.names) == 1)


def test_numbering_restarts_per_call():
    first = assign_team_numbers([_signup(1, "A", "B")])
    second = assign_team_numbers([_signup(2, "C", "D", time="17:00")])
    assert first[0].team_number == second[0].team_number == 1


def test_out_signups_are_ignored():
    numbered = assign_team_numbers([_signup(1, "A", "B", status=SignupStatus.OUT), _signup(2, "C", "D")])
    assert len(numbered) == 1
    assert numbered[0].team_number == 1


def test_solo_cannot_carry_team_number():
    with pytest.raises(ValueError):
        SignupWithTeam(_signup(1, "Ana"), ("Ana",), ("Ana (1)",), team_number=1)


def test_custom_label_format():
    assert format_team_name("Rudi", 2, " #{number}") == "Rudi #2"
    numbered = assign_team_numbers([_signup(1, "A", "B")], label_format=" [{number}]")
    assert numbered[0].formatted_names == ("A [1]", "B [1]")


def test_team_reduced_by_withdrawal_becomes_solo():
    roster = build_roster(
        [
            _signup(1, "Rudi", "Dani"),
            _signup(2, "Tom", "Louis"),
            _signup(3, "Dani", status=SignupStatus.OUT),
        ]
    )
    numbered = number_roster(roster.entries["15:00"])
    assert [(n.names, n.team_number) for n in numbered] == [
        (("Rudi",), None),
        (("Tom", "Louis"), 1),
    ]


def test_team_joined_by_listed_player_gets_a_number():
    roster = build_roster([_signup(1, "Ana"), _signup(2, "Ana", "Bea")])
    numbered = number_roster(roster.entries["15:00"])
    assert [(n.formatted_names, n.team_number) for n in numbered] == [(("Ana (1)", "Bea (1)"), 1)]
