"""Score entry, winner rules and no-game marking."""

import logging
from dataclasses import replace
from typing import Optional

from clubdoubles.models import NO_AD, ONE_DEUCE, Match, Score, winner_for

logger = logging.getLogger(__name__)

NO_AD_THRESHOLD = 6


def determine_winner(team1_games: int, team2_games: int) -> Optional[str]:
    """Winner of a first-to-4 set, or None while the set is still open.

    >>> determine_winner(4, 2)
    'team1'
    >>> determine_winner(3, 3) is None
    True
    """
    return winner_for(team1_games, team2_games)


def determine_match_format(present_count: int) -> str:
    """No-ad scoring when more than six players are waiting for court time."""
    return NO_AD if present_count > NO_AD_THRESHOLD else ONE_DEUCE


def make_score(team1_games: int, team2_games: int) -> Score:
    """Build a final Score; raises ValueError if the tally has no winner."""
    winner = determine_winner(team1_games, team2_games)
    if winner is None:
        raise ValueError(
            f"Score {team1_games}-{team2_games} is not final: "
            f"first to 4 games with a lead wins"
        )
    return Score(team1_games=team1_games, team2_games=team2_games, winner=winner)


def record_score(match: Match, team1_games: int, team2_games: int) -> Match:
    """Return a copy of the match with a final score attached."""
    if match.is_no_game:
        raise ValueError(f"Match {match.id} is a no-game and cannot be scored")
    score = make_score(team1_games, team2_games)
    logger.info("Match %s scored %s (%s)", match.id,
                format_score(team1_games, team2_games), score.winner)
    return replace(match, score=score, is_confirmed=False)


def confirm_match(match: Match) -> Match:
    """Return a copy of the match with its score confirmed for rankings."""
    if match.is_no_game or match.score is None:
        raise ValueError(f"Match {match.id} has no score to confirm")
    logger.info("Match %s confirmed", match.id)
    return replace(match, is_confirmed=True)


def mark_no_game(match: Match, reason: str) -> Match:
    """Return a copy of the match voided with the given reason.

    Any score already entered is dropped; a no-game never carries one.
    """
    if not reason or not reason.strip():
        raise ValueError("A no-game needs a reason")
    logger.info("Match %s marked no-game: %s", match.id, reason)
    return replace(match, is_no_game=True, no_game_reason=reason, score=None,
                   is_confirmed=False)


def format_score(team1_games: int, team2_games: int) -> str:
    return f"{team1_games} - {team2_games}"
