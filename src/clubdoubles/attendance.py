"""Attendance record handling."""

import logging
from typing import Iterable, Optional, Sequence

from clubdoubles.models import Attendance, Member

logger = logging.getLogger(__name__)


def latest_attendances(records: Iterable[Attendance]) -> list[Attendance]:
    """Collapse to one record per (event, member); the last one seen wins.

    Output keeps the position of each key's first appearance so member
    order from the sheet is preserved.
    """
    latest: dict[tuple[str, str], Attendance] = {}
    for rec in records:
        latest[rec.key] = rec
    return list(latest.values())


def dedupe_players(players: Sequence[str]) -> list[str]:
    """Drop repeated player ids, keeping first occurrence order."""
    seen: set[str] = set()
    out = []
    for p in players:
        if p in seen:
            continue
        seen.add(p)
        out.append(p)
    if len(out) != len(players):
        logger.warning("Ignoring %d duplicate player ids", len(players) - len(out))
    return out


def attendances_for_event(records: Iterable[Attendance],
                          event_id: str) -> list[Attendance]:
    return [a for a in latest_attendances(records) if a.event_id == event_id]


def present_member_ids(records: Iterable[Attendance], event_id: str,
                       members: Optional[Sequence[Member]] = None) -> list[str]:
    """Ids of the players marked present for the event.

    With a member list, results follow member order and attendance for
    unknown ids is ignored; otherwise they follow attendance order.
    """
    present = [a.member_id for a in attendances_for_event(records, event_id)
               if a.is_present]
    if members is None:
        return present

    present_set = set(present)
    known = {m.id for m in members}
    for pid in present:
        if pid not in known:
            logger.warning("Attendance for unknown member %s ignored", pid)
    return [m.id for m in members if m.id in present_set]
