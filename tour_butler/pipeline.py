"""End-to-end run for one group: messages in, :class:`RosterReport` out.

The run only reads from its collaborators (message source, group config,
contact resolver). Running it twice on the same inputs and cutoff produces the
same report.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, List, Optional, Sequence

from tour_butler.config import Config, get_config
from tour_butler.core_roster import SlotRoster, build_slot_rosters
from tour_butler.core_signups import DisplayNameResolver, ParsedSignup, RawMessage, SignupParser
from tour_butler.effective_signups import aggregate_signups, slot_sort_key
from tour_butler.group_info import GroupInfo
from tour_butler.registration import RegistrationWindow, detect_registration_window

MessageSource = Callable[[str], Sequence[RawMessage]]
GroupSource = Callable[[str], Optional[GroupInfo]]


class PipelineError(RuntimeError):
    """Base class for conditions that stop a pipeline run."""


class GroupNotFoundError(PipelineError):
    pass


class RegistrationWindowNotFound(PipelineError):
    pass


@dataclass(frozen=True)
class RosterReport:
    group: GroupInfo
    registration: RegistrationWindow
    slots: List[SlotRoster]
    log: List[ParsedSignup]
    withdrawals: Dict[str, List[str]] = field(default_factory=dict)

    @property
    def registration_end(self) -> Optional[int]:
        return self.registration.end_timestamp

    @property
    def player_count(self) -> int:
        return sum(s.player_count for s in self.slots)

    def slot(self, key: str) -> Optional[SlotRoster]:
        return next((s for s in self.slots if s.slot == key), None)


def run_pipeline(
    group_id: str,
    forced_cutoff: Optional[int] = None,
    *,
    message_source: MessageSource,
    group_source: GroupSource,
    resolver: Optional[DisplayNameResolver] = None,
    now: Optional[datetime] = None,
    config: Optional[Config] = None,
) -> RosterReport:
    """Build the roster report for ``group_id``.

    Raises:
        GroupNotFoundError: the group config source does not know the group.
        RegistrationWindowNotFound: no opening message, no usable schedule and
            no ``forced_cutoff``.
    """

    cfg = config or get_config()
    group = group_source(group_id)
    if group is None:
        raise GroupNotFoundError(f"unknown group: {group_id}")

    messages = list(message_source(group_id))
    window = detect_registration_window(
        messages,
        group,
        now=now,
        forced_cutoff=forced_cutoff,
        config=cfg,
    )
    if window is None:
        raise RegistrationWindowNotFound(
            f"{group_id}: no registration message or schedule found; pass a forced cutoff"
        )

    parser = SignupParser(resolver, config=cfg)
    aggregation = aggregate_signups(
        messages,
        window.timestamp,
        parser,
        admin=group.admin,
        end_timestamp=window.end_timestamp,
    )
    slots = build_slot_rosters(aggregation.roster, group.max_teams, config=cfg)
    withdrawals = {
        slot: list(names)
        for slot, names in sorted(aggregation.roster.withdrawals.items(), key=lambda kv: slot_sort_key(kv[0]))
    }
    return RosterReport(
        group=group,
        registration=window,
        slots=slots,
        log=aggregation.log,
        withdrawals=withdrawals,
    )


__all__ = [
    "GroupNotFoundError",
    "PipelineError",
    "RegistrationWindowNotFound",
    "RosterReport",
    "run_pipeline",
]
