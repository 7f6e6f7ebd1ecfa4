"""In-memory session store with YAML file round-trip.

Holds members, attendances and matches per event and keeps the match
list append-only with strictly increasing match numbers. Generation goes
through a per-event lock so two "next match" triggers for the same event
can't both read the same history.
"""

import logging
import random
import threading
from dataclasses import replace
from pathlib import Path
from typing import Optional

from clubdoubles.attendance import attendances_for_event, latest_attendances, present_member_ids
from clubdoubles.config import ConfigError, load_session, save_session
from clubdoubles.models import Attendance, AttendanceStatus, Event, Match, Member, match_id
from clubdoubles.optimizer import (
    MatchContext, WithdrawalResult, generate_matches,
    regenerate_matches_after_withdrawal,
)
from clubdoubles.scoring import DEFAULT_WEIGHTS, ScoringWeights

logger = logging.getLogger(__name__)


class SessionStore:
    """Events, their attendance and their matches."""

    def __init__(self, weights: ScoringWeights = DEFAULT_WEIGHTS):
        self.weights = weights
        self.events: dict[str, Event] = {}
        self.members: list[Member] = []
        self._attendances: list[Attendance] = []
        self._matches: dict[str, list[Match]] = {}
        self._locks: dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    # ----- events / members / attendance -----

    def add_event(self, event: Event):
        self.events[event.id] = event
        self._matches.setdefault(event.id, [])

    def add_member(self, member: Member):
        self.members = [m for m in self.members if m.id != member.id] + [member]

    def remove_guest(self, member_id: str):
        """Drop a guest and their attendance records."""
        guest = next((m for m in self.members if m.id == member_id), None)
        if guest is None or not guest.is_guest:
            raise KeyError(f"No guest {member_id}")
        self.members.remove(guest)
        self._attendances = [a for a in self._attendances
                             if a.member_id != member_id]

    def set_attendance(self, attendance: Attendance):
        # Appended, latest_attendances resolves last-write-wins
        self._require_event(attendance.event_id)
        self._attendances.append(attendance)

    def attendances(self, event_id: str) -> list[Attendance]:
        return attendances_for_event(self._attendances, event_id)

    def present_players(self, event_id: str) -> list[str]:
        members = self.members or None
        return present_member_ids(self._attendances, event_id, members)

    # ----- matches -----

    def matches(self, event_id: str) -> list[Match]:
        self._require_event(event_id)
        return list(self._matches[event_id])

    def get_match(self, event_id: str, number: int) -> Match:
        for m in self.matches(event_id):
            if m.match_number == number:
                return m
        raise KeyError(f"No match {number} in event {event_id}")

    def append_match(self, match: Match):
        matches = self._matches[self._require_event(match.event_id)]
        if matches and match.match_number <= matches[-1].match_number:
            raise ValueError(
                f"Match number {match.match_number} does not follow "
                f"{matches[-1].match_number} in event {match.event_id}"
            )
        matches.append(match)

    def update_match(self, match: Match):
        """Replace a stored match in place (score entry, no-game)."""
        matches = self._matches[self._require_event(match.event_id)]
        for i, m in enumerate(matches):
            if m.id == match.id:
                matches[i] = match
                return
        raise KeyError(f"No match {match.id} in event {match.event_id}")

    def replace_trailing_matches(self, event_id: str, from_number: int,
                                 new_matches: list[Match]):
        """Drop matches numbered >= from_number and append new_matches."""
        matches = self._matches[self._require_event(event_id)]
        kept = [m for m in matches if m.match_number < from_number]
        dropped = len(matches) - len(kept)
        self._matches[event_id] = kept
        for m in new_matches:
            self.append_match(m)
        logger.info("Event %s: replaced %d trailing matches with %d",
                    event_id, dropped, len(new_matches))

    # ----- generation -----

    def lock_for(self, event_id: str) -> threading.Lock:
        with self._locks_guard:
            return self._locks.setdefault(event_id, threading.Lock())

    def context(self, event_id: str) -> MatchContext:
        return MatchContext(
            present_members=self.present_players(event_id),
            attendances=self.attendances(event_id),
            existing_matches=self.matches(event_id),
            event_id=event_id,
        )

    def generate_next(self, event_id: str, count: int = 1,
                      rng: Optional[random.Random] = None) -> list[Match]:
        """Generate and store up to ``count`` matches for the event."""
        with self.lock_for(event_id):
            new = generate_matches(self.context(event_id), count,
                                   rng=rng, weights=self.weights)
            for m in new:
                self.append_match(m)
        return new

    def withdraw(self, event_id: str, player: str, match_number: int,
                 count: int = 3,
                 rng: Optional[random.Random] = None) -> WithdrawalResult:
        """Void a match after a withdrawal and re-plan the following matches.

        The voided match stays in the history. Any matches planned after it
        are dropped, and the regenerated ones are numbered from the slot
        after the voided match.
        """
        with self.lock_for(event_id):
            cancel = self.get_match(event_id, match_number)
            if not cancel.involves(player):
                raise ValueError(f"{player} is not playing in match {match_number}")

            context = self.context(event_id)
            # Only history up to the voided match is relevant to re-planning
            context.existing_matches = [m for m in context.existing_matches
                                        if m.match_number <= match_number]
            result = regenerate_matches_after_withdrawal(
                context, player, cancel, count=count, rng=rng,
                weights=self.weights,
            )

            renumbered = []
            for offset, m in enumerate(result.new_matches, start=1):
                number = match_number + offset
                renumbered.append(replace(m, match_number=number,
                                          id=match_id(event_id, number)))

            self.update_match(result.cancelled_match)
            self.replace_trailing_matches(event_id, match_number + 1, renumbered)
            self._mark_absent(event_id, player)

        return WithdrawalResult(cancelled_match=result.cancelled_match,
                                new_matches=renumbered)

    def _mark_absent(self, event_id: str, player: str):
        current = next((a for a in self.attendances(event_id)
                        if a.member_id == player), None)
        if current is None:
            current = Attendance(event_id, player)
        self.set_attendance(replace(current, status=AttendanceStatus.ABSENT))
        logger.info("Event %s: %s marked absent after withdrawing", event_id, player)

    def _require_event(self, event_id: str) -> str:
        if event_id not in self._matches:
            raise KeyError(f"Unknown event {event_id}")
        return event_id

    # ----- files -----

    @classmethod
    def load(cls, path: str | Path) -> "SessionStore":
        data = load_session(path)
        store = cls(weights=data["weights"])
        event = data["event"]
        store.add_event(event)
        for m in data["members"]:
            store.add_member(m)
        for a in latest_attendances(data["attendances"]):
            store.set_attendance(a)
        for m in data["matches"]:
            try:
                store.append_match(m)
            except ValueError as e:
                raise ConfigError(f"{path}: {e}") from e
        return store

    def save(self, path: str | Path, event_id: str):
        save_session(path, self.events[event_id], self.members,
                     self.attendances(event_id), self.matches(event_id),
                     self.weights)
