"""Read-only queries over the match history of one event.

Every function here is pure: it takes the ordered match list and never
modifies it, so repeated calls on the same history give the same answer.
"""

import logging
from typing import Iterable, Sequence

from clubdoubles.models import Attendance, Match, PlayerState

logger = logging.getLogger(__name__)


def match_count(player: str, matches: Iterable[Match]) -> int:
    """Number of matches the player actually played (no-games excluded)."""
    return sum(1 for m in matches if not m.is_no_game and m.involves(player))


def last_match_number(player: str, matches: Iterable[Match]) -> int:
    """Highest match number the player appears in, or -1.

    No-games count here: a voided match still used the player's slot.
    """
    numbers = [m.match_number for m in matches if m.involves(player)]
    if not numbers:
        return -1
    return max(numbers)


def consecutive_rests(player: str, matches: Iterable[Match]) -> int:
    """How many of the most recent played matches the player sat out in a row."""
    rests = 0
    for m in sorted(matches, key=lambda m: m.match_number, reverse=True):
        if m.is_no_game:
            continue
        if m.involves(player):
            break
        rests += 1
    return rests


def pair_count(player1: str, player2: str, matches: Iterable[Match]) -> int:
    """Times the two players have been partners."""
    together = {player1, player2}
    return sum(
        1 for m in matches
        if together <= set(m.team1) or together <= set(m.team2)
    )


def matchup_count(team_a: Sequence[str], team_b: Sequence[str],
                  matches: Iterable[Match]) -> int:
    """Times these two pairs have faced each other, in either orientation."""
    a = frozenset(team_a)
    b = frozenset(team_b)
    target = {a, b}
    return sum(
        1 for m in matches
        if {frozenset(m.team1), frozenset(m.team2)} == target
    )


def build_player_states(present: Sequence[str],
                        attendances: Iterable[Attendance],
                        matches: Sequence[Match]) -> dict[str, PlayerState]:
    """Derive the scorer's view of every present player from scratch.

    A player without an attendance record is treated as staying to the end.
    """
    by_member: dict[str, Attendance] = {}
    for a in attendances:
        # later records for the same member win
        by_member[a.member_id] = a

    states: dict[str, PlayerState] = {}
    for player in present:
        att = by_member.get(player)
        if att is None:
            logger.debug("No attendance record for %s, assuming no early leave", player)
        count = match_count(player, matches)
        states[player] = PlayerState(
            member_id=player,
            match_count=count,
            last_match_number=last_match_number(player, matches),
            consecutive_rests=consecutive_rests(player, matches),
            is_early_leaver=bool(att and att.early_leave),
            early_leave_time=att.early_leave_time if att else None,
            early_leave_match_count=count,
        )
    return states
