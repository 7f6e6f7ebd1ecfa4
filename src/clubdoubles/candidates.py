"""Candidate generation: every way to put four present players on court."""

from dataclasses import dataclass
from itertools import combinations
from typing import Iterator, Sequence


@dataclass(frozen=True)
class Candidate:
    """One possible team1/team2 split for the next match."""
    team1: tuple[str, str]
    team2: tuple[str, str]

    @property
    def players(self) -> tuple[str, str, str, str]:
        return self.team1 + self.team2


def four_player_groups(players: Sequence[str]) -> Iterator[tuple[str, str, str, str]]:
    """All 4-player subsets, in the order of the input list."""
    return combinations(players, 4)


def team_splits(group: tuple[str, str, str, str]) -> list[Candidate]:
    """The three ways to split four players into two unordered pairs."""
    a, b, c, d = group
    return [
        Candidate((a, b), (c, d)),
        Candidate((a, c), (b, d)),
        Candidate((a, d), (b, c)),
    ]


def generate_candidates(players: Sequence[str]) -> Iterator[Candidate]:
    """Yield all 3 x C(n, 4) candidates.

    The enumeration order is fixed and is the optimizer's tie-break: when
    two candidates score the same, the one yielded first wins.
    """
    for group in four_player_groups(players):
        yield from team_splits(group)


def candidate_count(n: int) -> int:
    if n < 4:
        return 0
    return 3 * (n * (n - 1) * (n - 2) * (n - 3) // 24)
