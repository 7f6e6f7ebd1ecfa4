"""Doubles match optimizer.

Picks the next match of a session by scoring every possible split of every
four present players (see clubdoubles.scoring) and taking the best. The
optimizer is a pure function of (present players, attendances, history):
player state is rebuilt from the history on every call and nothing is
written anywhere. Callers own persistence, and must not run two
generations for the same event at once (clubdoubles.store serializes them).

Search is exhaustive: 3 x C(n, 4) candidates, about 14.5k at 20 players.
"""

import logging
import random
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Optional, Sequence

from clubdoubles.attendance import dedupe_players
from clubdoubles.candidates import Candidate, generate_candidates
from clubdoubles.cointoss import generate_coin_toss_result
from clubdoubles.history import build_player_states, match_count
from clubdoubles.models import Attendance, Match
from clubdoubles.results import mark_no_game
from clubdoubles.scoring import DEFAULT_WEIGHTS, ScoringWeights, score_candidate

logger = logging.getLogger(__name__)

MIN_PLAYERS = 4
REGENERATE_COUNT = 3
WITHDRAWAL_REASON = "Player withdrew mid-match"


@dataclass
class MatchContext:
    """Everything the optimizer needs for one event."""
    present_members: list[str]
    attendances: list[Attendance] = field(default_factory=list)
    existing_matches: list[Match] = field(default_factory=list)
    event_id: str = ""


@dataclass
class WithdrawalResult:
    cancelled_match: Match
    new_matches: list[Match]


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def select_best_candidate(present: Sequence[str],
                          attendances: Sequence[Attendance],
                          matches: Sequence[Match],
                          weights: ScoringWeights = DEFAULT_WEIGHTS,
                          ) -> Optional[tuple[Candidate, float]]:
    """Return the highest-scoring candidate and its score, or None.

    Ties go to the candidate enumerated first.
    """
    if len(present) < MIN_PLAYERS:
        return None

    states = build_player_states(present, attendances, matches)
    next_number = len(matches) + 1

    best: Optional[Candidate] = None
    best_score = float("-inf")
    evaluated = 0
    for cand in generate_candidates(present):
        evaluated += 1
        s = score_candidate(cand, states, matches, next_number, present, weights)
        if s > best_score:
            best_score = s
            best = cand

    logger.debug("Evaluated %d candidates for match %d, best score %s",
                 evaluated, next_number, best_score)
    if best is None:
        return None
    return best, best_score


def generate_next_match(context: MatchContext,
                        rng: Optional[random.Random] = None,
                        now: Optional[str] = None,
                        weights: ScoringWeights = DEFAULT_WEIGHTS,
                        ) -> Optional[Match]:
    """Propose the next match for the event, or None if it can't be done.

    None means fewer than four distinct players are present; the caller
    should surface that to the user rather than treat it as an error.
    """
    present = dedupe_players(context.present_members)
    if len(present) < MIN_PLAYERS:
        logger.info("Only %d players present for %s, need %d",
                    len(present), context.event_id, MIN_PLAYERS)
        return None

    picked = select_best_candidate(
        present, context.attendances, context.existing_matches, weights,
    )
    if picked is None:
        return None
    best, best_score = picked

    match = Match(
        event_id=context.event_id,
        match_number=len(context.existing_matches) + 1,
        team1=best.team1,
        team2=best.team2,
        coin_toss=generate_coin_toss_result(rng),
        is_no_game=False,
        created_at=now or _now_iso(),
    )
    logger.info("Generated match %d: %s vs %s (score %s)",
                match.match_number, " & ".join(match.team1),
                " & ".join(match.team2), best_score)
    return match


def generate_matches(context: MatchContext, count: int,
                     rng: Optional[random.Random] = None,
                     now: Optional[str] = None,
                     weights: ScoringWeights = DEFAULT_WEIGHTS) -> list[Match]:
    """Generate up to ``count`` matches in a row.

    Each new match joins the history seen by the next one. Stops early the
    first time no match can be produced.
    """
    generated: list[Match] = []
    history = list(context.existing_matches)

    for _ in range(count):
        match = generate_next_match(
            replace(context, existing_matches=history),
            rng=rng, now=now, weights=weights,
        )
        if match is None:
            break
        generated.append(match)
        history.append(match)

    return generated


def regenerate_matches_after_withdrawal(context: MatchContext,
                                        withdrawn_player: str,
                                        match_to_cancel: Match,
                                        count: int = REGENERATE_COUNT,
                                        rng: Optional[random.Random] = None,
                                        now: Optional[str] = None,
                                        weights: ScoringWeights = DEFAULT_WEIGHTS,
                                        ) -> WithdrawalResult:
    """Void the in-flight match and re-plan the next few without the player.

    The cancelled match keeps its id and number. It is left out of the
    history used for re-planning so that its players do not count as having
    just played. Merging the result into stored state is up to the caller.
    """
    cancelled = mark_no_game(match_to_cancel, WITHDRAWAL_REASON)

    remaining = [p for p in context.present_members if p != withdrawn_player]
    history = [m for m in context.existing_matches if m.id != match_to_cancel.id]

    new_matches = generate_matches(
        replace(context, present_members=remaining, existing_matches=history),
        count, rng=rng, now=now, weights=weights,
    )
    if len(new_matches) < count:
        logger.warning("Only %d of %d matches regenerated after %s withdrew",
                       len(new_matches), count, withdrawn_player)

    return WithdrawalResult(cancelled_match=cancelled, new_matches=new_matches)


def check_early_leaver_guarantee(attendances: Sequence[Attendance],
                                 matches: Sequence[Match],
                                 target: int = 2) -> list[dict]:
    """Report, for each present early leaver, whether they have had ``target`` matches."""
    report = []
    for att in attendances:
        if not (att.early_leave and att.is_present):
            continue
        played = match_count(att.member_id, matches)
        report.append({
            "player_id": att.member_id,
            "current_matches": played,
            "guaranteed": played >= target,
        })
    return report
