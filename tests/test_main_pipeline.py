import json
import sys
from pathlib import Path

import pytest

from tour_butler import config as config_mod
from tour_butler import main as main_mod
from tour_butler.config import DEFAULTS, Config
from tour_butler.core_signups import RawMessage
from tour_butler.group_info import GroupInfo
from tour_butler.pipeline import GroupNotFoundError, RegistrationWindowNotFound, run_pipeline
from tour_butler.report import build_payload, render_markdown

GROUP = "120363000000000001@g.us"
ADMIN = "351900000000"
CARLA = "351911111111@s.whatsapp.net"
DUARTE = "351922222222@s.whatsapp.net"
OTHER = "351933333333@s.whatsapp.net"
CFG = Config(**DEFAULTS)

MESSAGES = [
    {"id": "1", "chat_id": GROUP, "sender": f"{ADMIN}@s.whatsapp.net", "timestamp": 1000, "content": "Inscrições abertas! 15h e 17h", "is_from_me": 0},
    {"id": "2", "chat_id": GROUP, "sender": CARLA, "timestamp": 1100, "content": "Rudi and Dani 15:00", "is_from_me": 0},
    {"id": "3", "chat_id": GROUP, "sender": DUARTE, "timestamp": 1200, "content": "in 15", "is_from_me": 0},
    {"id": "4", "chat_id": GROUP, "sender": OTHER, "timestamp": 1300, "content": "Tom & Louis 15h", "is_from_me": 0},
    {"id": "5", "chat_id": GROUP, "sender": CARLA, "timestamp": 1400, "content": "philipp effinger", "is_from_me": 0},
    {"id": "6", "chat_id": GROUP, "sender": OTHER, "timestamp": 1500, "content": "Ana in 17h", "is_from_me": 0},
    {"id": "7", "chat_id": GROUP, "sender": OTHER, "timestamp": 1600, "content": "Ana out 17h", "is_from_me": 0},
    {"id": "8", "chat_id": GROUP, "sender": CARLA, "timestamp": 1650, "content": "Good morning everyone", "is_from_me": 0},
    {"id": "9", "chat_id": "other@g.us", "sender": CARLA, "timestamp": 1700, "content": "Zed in 15", "is_from_me": 0},
]


def _write_csv(path: Path, header: list[str], rows: list[list[object]]) -> None:
    content = ",".join(header) + "\n" + "\n".join(",".join(map(str, row)) for row in rows)
    path.write_text(content, encoding="utf-8")


@pytest.fixture
def workspace(monkeypatch, tmp_path):
    data_dir = tmp_path / "data"
    data_dir.mkdir()
    (data_dir / "messages.json").write_text(json.dumps(MESSAGES, ensure_ascii=False), encoding="utf-8")
    (data_dir / "contacts.json").write_text(json.dumps({CARLA: "Carla", DUARTE: "Duarte"}), encoding="utf-8")
    _write_csv(
        tmp_path / "GROUPS.csv",
        ["ID", "Name", "Admin", "TournamentTime", "SignupStartTime", "MaxTeams"],
        [[GROUP, "Padel", ADMIN, "", "0 14 * * 3", "1"]],
    )
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(config_mod, "_CONFIG_CACHE", None)
    for key in DEFAULTS:
        monkeypatch.delenv(key, raising=False)
    return tmp_path


def _messages():
    return [
        RawMessage(
            sender=m["sender"],
            timestamp=m["timestamp"],
            content=m["content"],
            id=m["id"],
            chat_id=m["chat_id"],
        )
        for m in MESSAGES
        if m["chat_id"] == GROUP
    ]


def _run(forced=None, messages=None, group=None):
    group = group or GroupInfo(id=GROUP, name="Padel", admin=ADMIN, max_teams=1)
    return run_pipeline(
        GROUP,
        forced,
        message_source=lambda gid: list(messages if messages is not None else _messages()),
        group_source={GROUP: group}.get,
        resolver={CARLA: "Carla", DUARTE: "Duarte"}.get,
        config=CFG,
    )


def test_pipeline_builds_report():
    report = _run()

    assert report.registration.timestamp == 1000
    assert report.registration.content == "Inscrições abertas! 15h e 17h"
    assert [s.slot for s in report.slots] == ["15:00", "unspecified"]

    slot = report.slot("15:00")
    assert [line.name for line in slot.main] == ["Rudi (1)", "Dani (1)"]
    assert [(line.number, line.name) for line in slot.substitutes] == [
        (3, "Duarte"),
        (4, "Tom (2)"),
        (5, "Louis (2)"),
    ]
    assert report.withdrawals == {"17:00": ["Ana"]}
    assert [s.names for s in report.log] == [
        ("Rudi", "Dani"),
        ("Duarte",),
        ("Tom", "Louis"),
        ("philipp effinger",),
        ("Ana",),
        ("Ana",),
    ]


def test_pipeline_is_idempotent():
    assert build_payload(_run()) == build_payload(_run())


def test_pipeline_ignores_storage_order():
    assert build_payload(_run(messages=list(reversed(_messages())))) == build_payload(_run())


def test_forced_cutoff():
    report = _run(forced=1250)
    assert report.registration.source == "forced"
    assert [line.name for line in report.slot("15:00").main] == ["Tom (1)", "Louis (1)"]


def test_unknown_group_raises():
    with pytest.raises(GroupNotFoundError):
        run_pipeline(
            "missing@g.us",
            message_source=lambda gid: [],
            group_source={}.get,
            config=CFG,
        )


def test_missing_window_raises():
    with pytest.raises(RegistrationWindowNotFound):
        _run(messages=[RawMessage(sender=CARLA, timestamp=10, content="Dennis in 15")])


def test_markdown_report():
    md = render_markdown(_run(), CFG)

    assert md.startswith("# Padel Tournament Signups\n")
    assert 'Opening message: "Inscrições abertas! 15h e 17h"' in md
    assert "### 15:00 Time Slot (5 players)" in md
    assert "1. Rudi (1)\n2. Dani (1)\n\nSuplentes:\n3. Duarte\n4. Tom (2)\n5. Louis (2)\n" in md
    assert "### Unspecified Time Slot (1 players)" in md
    assert "- 17:00: Ana" in md
    assert "## Signup Processing Log" in md
    assert "### Signup #1 (" in md


def test_main_writes_markdown_and_json(workspace, monkeypatch):
    argv = [
        "prog",
        "--group",
        GROUP,
        "--messages",
        "data/messages.json",
        "--contacts",
        "data/contacts.json",
        "--out",
        "generated",
        "--format",
        "both",
    ]
    monkeypatch.setattr(sys, "argv", argv)

    assert main_mod.main() == 0

    md = (workspace / "generated" / "120363000000000001.md").read_text(encoding="utf-8")
    assert "3. Duarte" in md
    payload = json.loads((workspace / "generated" / "120363000000000001.json").read_text(encoding="utf-8"))
    assert payload["group"]["available_slots"] == 2
    assert payload["registration"]["timestamp"] == 1000
    slot = payload["slots"][0]
    assert slot["slot"] == "15:00"
    assert [p["number"] for p in slot["substitutes"]] == [3, 4, 5]
    assert slot["main"][0] == {"number": 1, "name": "Rudi (1)", "team": 1}
    assert payload["stats"]["players"] == 6


def test_main_schedule_fallback_with_now(workspace):
    only_players = [m for m in MESSAGES if m["id"] != "1"]
    (workspace / "data" / "messages.json").write_text(json.dumps(only_players), encoding="utf-8")

    # Tuesday 1970-01-06: the previous Wednesday 14:00 lies before every message
    rc = main_mod.main(
        ["--group", GROUP, "--messages", "data/messages.json", "--format", "json", "--now", "1970-01-06T12:00:00+00:00"]
    )
    assert rc == 0
    payload = json.loads((workspace / "out" / "120363000000000001.json").read_text(encoding="utf-8"))
    assert payload["registration"]["source"] == "schedule"
    assert payload["stats"]["signups"] == 6


def test_main_reports_pipeline_errors(workspace, capsys):
    rc = main_mod.main(["--group", "missing@g.us", "--messages", "data/messages.json"])
    assert rc == 1
    assert "[error] unknown group: missing@g.us" in capsys.readouterr().out
