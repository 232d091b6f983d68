"""Group configuration loader (``GROUPS.csv``)."""

from __future__ import annotations

import warnings
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional

import pandas as pd


class GroupConfigError(ValueError):
    """Raised when the groups file is structurally unusable."""


@dataclass(frozen=True)
class GroupInfo:
    """Static configuration of one tournament group.

    Attributes:
        id: Chat id of the group (``...@g.us``).
        name: Display name used in report headings.
        admin: Sender id allowed to open registration.
        signup_start_time: Cron ``"minute hour * * dow"`` of the weekly opening.
        tournament_time: Cron of the tournament start; closes registration.
        max_teams: Teams per slot; ``None`` means the roster is never split.
    """

    id: str
    name: str
    admin: str
    signup_start_time: Optional[str] = None
    tournament_time: Optional[str] = None
    max_teams: Optional[int] = None

    @property
    def available_slots(self) -> Optional[int]:
        if not self.max_teams:
            return None
        return self.max_teams * 2


COLUMNS = ["ID", "Name", "Admin", "TournamentTime", "SignupStartTime", "MaxTeams"]


def _parse_max_teams(value: object) -> Optional[int]:
    try:
        n = int(float(str(value).strip()))
    except (TypeError, ValueError):
        return None
    return n if n > 0 else None


def _optional(value: str) -> Optional[str]:
    value = (value or "").strip()
    return value or None


def load_groups(path: str = "GROUPS.csv") -> Dict[str, GroupInfo]:
    """Load all groups keyed by id.

    Column names are matched case-insensitively. A missing file yields an empty
    mapping; a file without an ``ID`` column raises :class:`GroupConfigError`.
    """

    csv_path = Path(path)
    if not csv_path.exists():
        return {}

    df = pd.read_csv(csv_path, dtype=str, skipinitialspace=True)

    lower_to_expected = {c.lower(): c for c in COLUMNS}
    for col in list(df.columns):
        key = str(col).strip().lower()
        if key in lower_to_expected and lower_to_expected[key] not in df.columns:
            df = df.rename(columns={col: lower_to_expected[key]})

    if "ID" not in df.columns:
        raise GroupConfigError(f"{csv_path}: missing required column 'ID'")

    for col in COLUMNS:
        if col not in df.columns:
            df[col] = ""
    df = df[COLUMNS].fillna("").astype(str)
    for col in COLUMNS:
        df[col] = df[col].str.strip()
    df = df[df["ID"] != ""]

    groups: Dict[str, GroupInfo] = {}
    for row in df.itertuples(index=False):
        group_id = getattr(row, "ID")
        if group_id in groups:
            warnings.warn(
                f"Duplicate group id '{group_id}' in {csv_path}; keeping the first row",
                RuntimeWarning,
            )
            continue
        groups[group_id] = GroupInfo(
            id=group_id,
            name=getattr(row, "Name") or group_id,
            admin=getattr(row, "Admin"),
            signup_start_time=_optional(getattr(row, "SignupStartTime")),
            tournament_time=_optional(getattr(row, "TournamentTime")),
            max_teams=_parse_max_teams(getattr(row, "MaxTeams")),
        )
    return groups


def get_group_info(path: str, group_id: str) -> Optional[GroupInfo]:
    return load_groups(path).get(group_id)


__all__ = ["COLUMNS", "GroupConfigError", "GroupInfo", "get_group_info", "load_groups"]
