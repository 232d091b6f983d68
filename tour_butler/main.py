# -*- coding: utf-8 -*-
"""Entry point for building a tournament roster from a group chat export.

Flow:
1. Load the group from ``GROUPS.csv`` via :func:`tour_butler.group_info.load_groups`.
2. Load the chat history via :func:`tour_butler.messages.load_messages` and the
   contact names via :class:`tour_butler.contacts.ContactDirectory`.
3. Run :func:`tour_butler.pipeline.run_pipeline` and write the markdown report
   and/or the JSON payload to ``--out``.
"""

from __future__ import annotations

import argparse
import json
import sys
from datetime import datetime
from pathlib import Path
from typing import Dict, Optional

from tour_butler.config import get_config
from tour_butler.contacts import ContactDirectory
from tour_butler.group_info import load_groups
from tour_butler.messages import load_messages
from tour_butler.pipeline import PipelineError, RosterReport, run_pipeline
from tour_butler.registration import resolve_timezone
from tour_butler.report import build_payload, render_markdown


# --------------------------
# CLI
# --------------------------

def _parse_args(argv=None) -> argparse.Namespace:
    ap = argparse.ArgumentParser(description="Build the signup roster for one tournament group")
    ap.add_argument("--group", required=True, help="Group chat id (as listed in GROUPS.csv)")
    ap.add_argument(
        "--messages",
        default="data/messages.db",
        help="Message export (.db/.sqlite, .json or .csv)",
    )
    ap.add_argument(
        "--groups",
        default="GROUPS.csv",
        help="CSV with ID,Name,Admin,TournamentTime,SignupStartTime,MaxTeams",
    )
    ap.add_argument(
        "--contacts",
        default="data/contacts.json",
        help="JSON {phone: name} or CSV Phone,Name",
    )
    ap.add_argument(
        "--force-timestamp",
        type=int,
        default=None,
        help="Unix timestamp used as registration cutoff instead of detection",
    )
    ap.add_argument("--out", default="out", help="Output directory")
    ap.add_argument(
        "--format",
        choices=("markdown", "json", "both"),
        default="markdown",
        help="Report format(s) to write",
    )
    ap.add_argument(
        "--now",
        default="",
        help="ISO timestamp treated as 'now' for the schedule fallback",
    )
    return ap.parse_args(argv)


def _parse_now(value: str) -> Optional[datetime]:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        print(f"[warn] --now '{value}' is not an ISO timestamp – using the current time")
        return None


def _report_stem(group_id: str) -> str:
    return group_id.split("@", 1)[0] or "report"


def _write_outputs(out_dir: Path, report: RosterReport, fmt: str) -> Dict[str, Path]:
    out_dir.mkdir(parents=True, exist_ok=True)
    stem = _report_stem(report.group.id)
    written: Dict[str, Path] = {}

    if fmt in ("markdown", "both"):
        md_path = out_dir / f"{stem}.md"
        md_path.write_text(render_markdown(report), encoding="utf-8")
        written["markdown"] = md_path
    if fmt in ("json", "both"):
        json_path = out_dir / f"{stem}.json"
        json_str = json.dumps(build_payload(report), ensure_ascii=False, indent=2)
        json_path.write_text(json_str, encoding="utf-8")
        written["json"] = json_path
    return written


# --------------------------
# Main
# --------------------------

def main(argv=None) -> int:
    args = _parse_args(argv)
    cfg = get_config()

    groups = load_groups(args.groups)
    contacts = ContactDirectory.from_file(args.contacts)
    print(f"[info] {len(groups)} groups, {len(contacts)} contacts loaded")

    now = _parse_now(args.now)
    if now is not None and now.tzinfo is None:
        now = now.replace(tzinfo=resolve_timezone(cfg.SIGNUP_TIMEZONE))

    try:
        report = run_pipeline(
            args.group,
            args.force_timestamp,
            message_source=lambda gid: load_messages(args.messages, gid),
            group_source=groups.get,
            resolver=contacts.resolve_display_name,
            now=now,
            config=cfg,
        )
    except PipelineError as exc:
        print(f"[error] {exc}")
        return 1

    written = _write_outputs(Path(args.out), report, args.format)
    slot_summary = ", ".join(f"{s.slot}: {s.player_count}" for s in report.slots) or "none"
    print(
        f"[ok] {report.group.name}: {len(report.log)} signups parsed → "
        f"{report.player_count} players ({slot_summary}) → "
        + ", ".join(p.as_posix() for p in written.values())
    )
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
