"""Coin toss for deciding serve and side before a match."""

import random
from typing import Optional, Sequence

from clubdoubles.models import TEAM1, TEAM2, CoinTossResult


def perform_coin_toss(rng: Optional[random.Random] = None) -> str:
    """Return "team1" or "team2" with equal probability."""
    rng = rng or random
    return TEAM1 if rng.random() < 0.5 else TEAM2


def generate_coin_toss_result(rng: Optional[random.Random] = None) -> CoinTossResult:
    """Toss, with the usual defaults: winner serves, loser takes the left side.

    The defaults are only a starting point; players edit them afterwards.
    """
    return CoinTossResult(
        winner=perform_coin_toss(rng),
        winner_choice="serve",
        loser_side="left",
    )


def coin_toss_display_text(result: CoinTossResult,
                           team1_names: Sequence[str],
                           team2_names: Sequence[str]) -> str:
    if result.winner == TEAM1:
        winner_names, loser_names = team1_names, team2_names
    else:
        winner_names, loser_names = team2_names, team1_names

    choice = "serve" if result.winner_choice == "serve" else "receive"
    side = "left side" if result.loser_side == "left" else "right side"
    return (
        f"{' & '.join(winner_names)} win the toss -> choose to {choice}\n"
        f"{' & '.join(loser_names)} -> take the {side}"
    )
