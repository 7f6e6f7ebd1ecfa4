"""Tests for store.py — persistence contract, generation and withdrawals."""

import random
import threading

import pytest

from clubdoubles.config import ConfigError
from clubdoubles.history import match_count
from clubdoubles.models import Attendance, AttendanceStatus, Event, Match, Member
from clubdoubles.results import record_score
from clubdoubles.store import SessionStore

SIX = ["a", "b", "c", "d", "e", "f"]


def _make_store(players=SIX, guests=()):
    store = SessionStore()
    store.add_event(Event(id="E1"))
    for p in players:
        store.add_member(Member(p, p.upper()))
    for g in guests:
        store.add_member(Member(g, g, is_guest=True))
    for p in list(players) + list(guests):
        store.set_attendance(Attendance("E1", p, AttendanceStatus.PRESENT))
    return store


class TestMatchStorage:
    def test_append_requires_increasing_numbers(self):
        store = _make_store()
        store.append_match(Match("E1", 1, ("a", "b"), ("c", "d")))
        with pytest.raises(ValueError):
            store.append_match(Match("E1", 1, ("a", "c"), ("b", "d")))

    def test_unknown_event(self):
        store = _make_store()
        with pytest.raises(KeyError):
            store.append_match(Match("E9", 1, ("a", "b"), ("c", "d")))
        with pytest.raises(KeyError):
            store.matches("E9")

    def test_update_in_place(self):
        store = _make_store()
        store.append_match(Match("E1", 1, ("a", "b"), ("c", "d")))
        store.append_match(Match("E1", 2, ("a", "c"), ("e", "f")))
        store.update_match(record_score(store.get_match("E1", 1), 4, 3))
        matches = store.matches("E1")
        assert [m.match_number for m in matches] == [1, 2]
        assert matches[0].score.winner == "team1"

    def test_update_unknown_match(self):
        store = _make_store()
        with pytest.raises(KeyError):
            store.update_match(Match("E1", 5, ("a", "b"), ("c", "d")))

    def test_matches_returns_copy(self):
        store = _make_store()
        store.matches("E1").append(Match("E1", 1, ("a", "b"), ("c", "d")))
        assert store.matches("E1") == []


class TestAttendance:
    def test_present_players_last_write(self):
        store = _make_store()
        store.set_attendance(Attendance("E1", "c", AttendanceStatus.ABSENT))
        assert store.present_players("E1") == ["a", "b", "d", "e", "f"]

    def test_remove_guest(self):
        store = _make_store(guests=["g1"])
        assert "g1" in store.present_players("E1")
        store.remove_guest("g1")
        assert "g1" not in store.present_players("E1")
        assert all(m.id != "g1" for m in store.members)

    def test_remove_guest_rejects_member(self):
        store = _make_store()
        with pytest.raises(KeyError):
            store.remove_guest("a")


class TestGenerateNext:
    def test_appends_generated(self):
        store = _make_store()
        new = store.generate_next("E1", 3, rng=random.Random(1))
        assert [m.match_number for m in new] == [1, 2, 3]
        assert store.matches("E1") == new

    def test_too_few_players(self):
        store = _make_store(players=["a", "b", "c"])
        assert store.generate_next("E1") == []
        assert store.matches("E1") == []

    def test_concurrent_triggers_serialized(self):
        store = _make_store()
        threads = [threading.Thread(target=store.generate_next, args=("E1", 2))
                   for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        numbers = [m.match_number for m in store.matches("E1")]
        assert numbers == list(range(1, 9))

    def test_same_lock_per_event(self):
        store = _make_store()
        assert store.lock_for("E1") is store.lock_for("E1")


class TestWithdraw:
    def test_withdrawal_flow(self):
        store = _make_store()
        store.generate_next("E1", 4, rng=random.Random(2))
        result = store.withdraw("E1", "a", 4, rng=random.Random(2))

        matches = store.matches("E1")
        assert [m.match_number for m in matches] == [1, 2, 3, 4, 5, 6, 7]
        assert matches[3].is_no_game
        assert result.cancelled_match == matches[3]
        assert [m.match_number for m in result.new_matches] == [5, 6, 7]
        assert [m.id for m in result.new_matches] == [
            "E1_match_5", "E1_match_6", "E1_match_7",
        ]
        for m in result.new_matches:
            assert not m.involves("a")
        assert [(m.team1, m.team2) for m in result.new_matches] == [
            (("b", "c"), ("d", "e")),
            (("b", "d"), ("c", "f")),
            (("b", "c"), ("e", "f")),
        ]

    def test_drops_planned_matches_after_cancelled(self):
        store = _make_store()
        store.generate_next("E1", 6)
        store.withdraw("E1", "a", 4)
        matches = store.matches("E1")
        assert len(matches) == 7
        assert all(not m.involves("a") for m in matches[4:])
        assert match_count("a", matches) == 2

    def test_withdrawn_player_stays_out(self):
        store = _make_store()
        store.generate_next("E1", 4, rng=random.Random(2))
        store.withdraw("E1", "a", 4, rng=random.Random(2))
        assert "a" not in store.present_players("E1")

        later = store.generate_next("E1", 3)
        assert [m.match_number for m in later] == [8, 9, 10]
        assert all(not m.involves("a") for m in later)

    def test_withdrawal_keeps_early_leave_details(self):
        store = _make_store()
        store.set_attendance(Attendance("E1", "a", AttendanceStatus.PRESENT,
                                        early_leave=True, early_leave_time="10:30"))
        store.generate_next("E1", 1)
        store.withdraw("E1", "a", 1)
        record = next(a for a in store.attendances("E1") if a.member_id == "a")
        assert record.status == AttendanceStatus.ABSENT
        assert record.early_leave
        assert record.early_leave_time == "10:30"

    def test_player_not_in_match(self):
        store = _make_store()
        store.generate_next("E1", 1)
        with pytest.raises(ValueError):
            store.withdraw("E1", "e", 1)


class TestFiles:
    def test_save_and_load(self, tmp_path):
        store = _make_store(guests=["g1"])
        store.generate_next("E1", 2, rng=random.Random(0))
        path = tmp_path / "session.yaml"
        store.save(path, "E1")

        loaded = SessionStore.load(path)
        assert list(loaded.events) == ["E1"]
        assert loaded.matches("E1") == store.matches("E1")
        assert loaded.present_players("E1") == store.present_players("E1")

    def test_load_rejects_repeated_match_number(self, tmp_path):
        path = tmp_path / "session.yaml"
        path.write_text(
            "event: {id: E1}\n"
            "members: [a, b, c, d]\n"
            "matches:\n"
            "  - {number: 1, team1: [a, b], team2: [c, d]}\n"
            "  - {number: 1, team1: [a, c], team2: [b, d]}\n"
        )
        with pytest.raises(ConfigError):
            SessionStore.load(path)
