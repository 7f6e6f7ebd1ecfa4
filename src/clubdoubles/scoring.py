"""Candidate scoring for the match optimizer.

Each candidate split gets an additive desirability score; higher is better.
Terms, in order of how much they can move the total:

1. Third-rest prevention: any present player left off court who has already
   rested twice in a row costs ``third_rest_penalty``. This term is larger
   than every other term of a candidate combined, so a third straight rest
   is only chosen when no alternative exists.
2. Match-count equalization: each player on court pays
   ``match_count_gap`` per match played above the present minimum.
3. Rest relief: players coming off one or two rests get a bonus.
4. Early leavers with fewer than ``early_leaver_match_target`` matches get a
   bonus, plus a little more if they gave a leave time.
5. Fatigue: playing the previous match, or the one before, costs a penalty.
6. Repeat avoidance: prior partnerships and prior meetings of the same two
   pairs cost per occurrence.
"""

from dataclasses import asdict, dataclass, fields
from typing import Sequence

from clubdoubles.candidates import Candidate
from clubdoubles.history import matchup_count, pair_count
from clubdoubles.models import Match, PlayerState


@dataclass(frozen=True)
class ScoringWeights:
    """Magnitudes of each scoring term. Penalties are subtracted."""
    match_count_gap: int = 150
    played_last_match: int = 200
    played_two_ago: int = 50
    rested_twice_bonus: int = 500
    rested_once_bonus: int = 200
    third_rest_penalty: int = 10000
    early_leaver_bonus: int = 300
    early_leave_time_bonus: int = 100
    early_leaver_match_target: int = 2
    repeat_partner: int = 50
    repeat_matchup: int = 150

    @classmethod
    def from_dict(cls, d: dict) -> "ScoringWeights":
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(d) - known)
        if unknown:
            raise ValueError(f"Unknown scoring weights: {', '.join(unknown)}")
        return cls(**{k: int(v) for k, v in d.items()})

    def to_dict(self) -> dict:
        return asdict(self)

    def validate(self) -> list[str]:
        """Return a list of problems with this weighting (empty if fine)."""
        errors = []
        for name, value in self.to_dict().items():
            if value < 0:
                errors.append(f"{name} must be non-negative, got {value}")

        # Worst case for the overflow term: the alternative lineup collects
        # every bonus and the overflow lineup pays one of each penalty.
        per_player = (
            self.rested_twice_bonus
            + self.early_leaver_bonus
            + self.early_leave_time_bonus
            + self.played_last_match
            + self.match_count_gap
        )
        ceiling = 4 * per_player + 2 * self.repeat_partner + self.repeat_matchup
        if self.third_rest_penalty <= ceiling:
            errors.append(
                f"third_rest_penalty ({self.third_rest_penalty}) must exceed "
                f"the other terms combined ({ceiling})"
            )
        return errors


DEFAULT_WEIGHTS = ScoringWeights()


def score_candidate(candidate: Candidate,
                    states: dict[str, PlayerState],
                    matches: Sequence[Match],
                    next_match_number: int,
                    present: Sequence[str],
                    weights: ScoringWeights = DEFAULT_WEIGHTS) -> float:
    """Score one team split against the current session state."""
    w = weights
    playing = candidate.players
    resting = [p for p in present if p not in playing]
    score = 0

    counts = [states[p].match_count for p in present if p in states]
    min_count = min(counts) if counts else 0

    for p in playing:
        state = states.get(p)
        if state is None:
            continue

        score -= (state.match_count - min_count) * w.match_count_gap

        # -1 means never played
        if state.last_match_number >= 0:
            if state.last_match_number == next_match_number - 1:
                score -= w.played_last_match
            if state.last_match_number == next_match_number - 2:
                score -= w.played_two_ago

        if state.consecutive_rests >= 2:
            score += w.rested_twice_bonus
        elif state.consecutive_rests >= 1:
            score += w.rested_once_bonus

        if state.is_early_leaver:
            if state.early_leave_match_count < w.early_leaver_match_target:
                score += w.early_leaver_bonus
            if state.early_leave_time:
                score += w.early_leave_time_bonus

    for p in resting:
        state = states.get(p)
        if state is not None and state.consecutive_rests >= 2:
            score -= w.third_rest_penalty

    partnered = (
        pair_count(*candidate.team1, matches)
        + pair_count(*candidate.team2, matches)
    )
    score -= partnered * w.repeat_partner
    score -= matchup_count(candidate.team1, candidate.team2, matches) * w.repeat_matchup

    return float(score)
