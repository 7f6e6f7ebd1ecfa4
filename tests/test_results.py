"""Tests for results.py and cointoss.py — winners, formats, score entry, tosses."""

import random
from collections import Counter

import pytest

from clubdoubles.cointoss import (
    coin_toss_display_text, generate_coin_toss_result, perform_coin_toss,
)
from clubdoubles.models import CoinTossResult, Match, MatchState
from clubdoubles.results import (
    confirm_match, determine_match_format, determine_winner, format_score,
    make_score, mark_no_game, record_score,
)


def _make_match():
    return Match(event_id="E1", match_number=1, team1=("a", "b"), team2=("c", "d"))


class TestDetermineWinner:
    def test_spec_cases(self):
        assert determine_winner(4, 2) == "team1"
        assert determine_winner(3, 4) == "team2"
        assert determine_winner(3, 3) is None
        assert determine_winner(5, 4) == "team1"

    def test_level_at_four(self):
        assert determine_winner(4, 4) is None

    def test_not_yet_four(self):
        assert determine_winner(3, 0) is None


class TestDetermineMatchFormat:
    def test_formats(self):
        assert determine_match_format(7) == "no-ad"
        assert determine_match_format(6) == "one-deuce"
        assert determine_match_format(4) == "one-deuce"


class TestScoreEntry:
    def test_make_score(self):
        s = make_score(2, 4)
        assert (s.team1_games, s.team2_games, s.winner) == (2, 4, "team2")

    def test_make_score_unfinished(self):
        with pytest.raises(ValueError):
            make_score(3, 2)

    def test_record_score(self):
        m = record_score(_make_match(), 4, 1)
        assert m.state == MatchState.SCORED
        assert m.score.winner == "team1"
        assert m.id == "E1_match_1"

    def test_cannot_score_no_game(self):
        m = mark_no_game(_make_match(), "rain")
        with pytest.raises(ValueError):
            record_score(m, 4, 1)

    def test_mark_no_game_clears_score(self):
        m = record_score(_make_match(), 4, 1)
        voided = mark_no_game(m, "injury")
        assert voided.is_no_game
        assert voided.score is None
        assert voided.no_game_reason == "injury"

    def test_mark_no_game_needs_reason(self):
        with pytest.raises(ValueError):
            mark_no_game(_make_match(), "  ")

    def test_format_score(self):
        assert format_score(4, 2) == "4 - 2"


class TestConfirmMatch:
    def test_confirm_scored(self):
        m = confirm_match(record_score(_make_match(), 4, 2))
        assert m.is_confirmed
        assert m.score.team1_games == 4

    def test_cannot_confirm_unscored(self):
        with pytest.raises(ValueError):
            confirm_match(_make_match())

    def test_cannot_confirm_no_game(self):
        with pytest.raises(ValueError):
            confirm_match(mark_no_game(_make_match(), "rain"))

    def test_rescoring_clears_confirmation(self):
        m = confirm_match(record_score(_make_match(), 4, 2))
        corrected = record_score(m, 2, 4)
        assert not corrected.is_confirmed
        assert corrected.score.winner == "team2"

    def test_voiding_clears_confirmation(self):
        m = confirm_match(record_score(_make_match(), 4, 2))
        assert not mark_no_game(m, "injury").is_confirmed


class TestCoinToss:
    def test_result_values(self):
        rng = random.Random(5)
        for _ in range(20):
            assert perform_coin_toss(rng) in ("team1", "team2")

    def test_seeded_is_repeatable(self):
        a = [perform_coin_toss(random.Random(9)) for _ in range(3)]
        b = [perform_coin_toss(random.Random(9)) for _ in range(3)]
        assert a == b

    def test_roughly_fair(self):
        rng = random.Random(42)
        counts = Counter(perform_coin_toss(rng) for _ in range(2000))
        assert 900 < counts["team1"] < 1100

    def test_defaults(self):
        result = generate_coin_toss_result(random.Random(1))
        assert result.winner in ("team1", "team2")
        assert result.winner_choice == "serve"
        assert result.loser_side == "left"

    def test_display_text(self):
        text = coin_toss_display_text(
            CoinTossResult("team2", "receive", "right"),
            ["Alice", "Bob"], ["Carol", "Dave"],
        )
        lines = text.splitlines()
        assert lines[0] == "Carol & Dave win the toss -> choose to receive"
        assert lines[1] == "Alice & Bob -> take the right side"
