"""Tests for constraints.py — match list validation."""

from clubdoubles.constraints import format_validation_report, validate_matches
from clubdoubles.models import Match
from clubdoubles.optimizer import MatchContext, generate_matches

SIX = ["a", "b", "c", "d", "e", "f"]


def _m(number, team1, team2, event_id="E1", **kwargs):
    return Match(event_id=event_id, match_number=number, team1=team1,
                 team2=team2, **kwargs)


class TestValidateMatches:
    def test_generated_session_is_clean(self):
        ctx = MatchContext(present_members=SIX, event_id="E1")
        matches = generate_matches(ctx, 20, now="2026-10-17T09:00:00+00:00")
        result = validate_matches(matches, SIX)
        assert result["valid"], result["errors"]
        assert result["warnings"] == []

    def test_empty(self):
        result = validate_matches([])
        assert result["valid"]

    def test_out_of_order(self):
        matches = [_m(2, ("a", "b"), ("c", "d")), _m(1, ("a", "c"), ("b", "d"))]
        result = validate_matches(matches)
        assert not result["valid"]
        assert any("out of order" in e for e in result["errors"])

    def test_duplicate_number(self):
        matches = [_m(1, ("a", "b"), ("c", "d")), _m(1, ("a", "c"), ("b", "d"))]
        result = validate_matches(matches)
        assert any("used 2 times" in e for e in result["errors"])

    def test_mixed_events(self):
        matches = [_m(1, ("a", "b"), ("c", "d")),
                   _m(2, ("a", "c"), ("b", "d"), event_id="E2")]
        result = validate_matches(matches)
        assert any("several events" in e for e in result["errors"])

    def test_absent_player_warning(self):
        matches = [_m(1, ("a", "b"), ("c", "z"))]
        result = validate_matches(matches, ["a", "b", "c", "d"])
        assert result["valid"]
        assert any("z is not marked present" in w for w in result["warnings"])

    def test_third_rest_warning(self):
        matches = [
            _m(1, ("a", "b"), ("c", "d")),
            _m(2, ("a", "b"), ("c", "d")),
            _m(3, ("a", "b"), ("c", "d")),
        ]
        result = validate_matches(matches, ["a", "b", "c", "d", "e"])
        assert any("e rested 3 in a row" in w for w in result["warnings"])
        assert any("spread is 3" in w for w in result["warnings"])


class TestFormatReport:
    def test_clean(self):
        report = format_validation_report({"valid": True, "errors": [], "warnings": []})
        assert "All hard constraints satisfied." in report

    def test_errors_and_warnings(self):
        report = format_validation_report({
            "valid": False, "errors": ["bad"], "warnings": ["meh"],
        })
        assert "ERRORS (1):" in report
        assert "WARNINGS (1):" in report
