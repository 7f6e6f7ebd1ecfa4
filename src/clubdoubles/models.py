"""Data models for the clubdoubles session app."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


TEAM1 = "team1"
TEAM2 = "team2"
TEAMS = (TEAM1, TEAM2)

NO_AD = "no-ad"
ONE_DEUCE = "one-deuce"

GAMES_TO_WIN = 4


class AttendanceStatus(Enum):
    PRESENT = "present"
    ABSENT = "absent"
    UNDECIDED = "undecided"

    @classmethod
    def from_str(cls, s: str) -> "AttendanceStatus":
        return cls(s.strip().lower())


class MatchState(Enum):
    """Which of the three shapes a match record is in."""
    PENDING = "pending"
    NO_GAME = "no_game"
    SCORED = "scored"


@dataclass
class Member:
    """A club member, or a guest for the current session."""
    id: str
    name: str = ""
    is_guest: bool = False

    def display_name(self) -> str:
        return self.name or self.id


@dataclass
class Attendance:
    """One member's attendance for one event."""
    event_id: str
    member_id: str
    status: AttendanceStatus = AttendanceStatus.UNDECIDED
    early_leave: bool = False
    early_leave_time: Optional[str] = None

    @property
    def key(self) -> tuple[str, str]:
        return (self.event_id, self.member_id)

    @property
    def is_present(self) -> bool:
        return self.status == AttendanceStatus.PRESENT


@dataclass(frozen=True)
class CoinTossResult:
    winner: str  # "team1" or "team2"
    winner_choice: str = "serve"  # "serve" or "receive"
    loser_side: str = "left"  # "left" or "right"

    def __post_init__(self):
        if self.winner not in TEAMS:
            raise ValueError(f"coin toss winner must be team1 or team2, got {self.winner!r}")
        if self.winner_choice not in ("serve", "receive"):
            raise ValueError(f"invalid winner choice {self.winner_choice!r}")
        if self.loser_side not in ("left", "right"):
            raise ValueError(f"invalid loser side {self.loser_side!r}")


@dataclass(frozen=True)
class Score:
    """A final game tally. The winner must be the one the tally implies."""
    team1_games: int
    team2_games: int
    winner: str

    def __post_init__(self):
        if self.team1_games < 0 or self.team2_games < 0:
            raise ValueError(
                f"game counts must be non-negative, got "
                f"{self.team1_games}-{self.team2_games}"
            )
        expected = winner_for(self.team1_games, self.team2_games)
        if expected is None:
            raise ValueError(
                f"{self.team1_games}-{self.team2_games} has no winner yet"
            )
        if self.winner != expected:
            raise ValueError(
                f"winner of {self.team1_games}-{self.team2_games} is "
                f"{expected}, not {self.winner}"
            )


def winner_for(team1_games: int, team2_games: int) -> Optional[str]:
    """First to GAMES_TO_WIN games with more games than the opponent wins."""
    if team1_games >= GAMES_TO_WIN and team1_games > team2_games:
        return TEAM1
    if team2_games >= GAMES_TO_WIN and team2_games > team1_games:
        return TEAM2
    return None


@dataclass(frozen=True)
class Match:
    """One doubles match of an event.

    Records are immutable; score entry and voiding produce a new record
    with the same id (see clubdoubles.results).
    """
    event_id: str
    match_number: int
    team1: tuple[str, str]
    team2: tuple[str, str]
    created_at: str = ""
    coin_toss: Optional[CoinTossResult] = None
    score: Optional[Score] = None
    is_no_game: bool = False
    no_game_reason: Optional[str] = None
    is_confirmed: bool = False
    id: str = ""

    def __post_init__(self):
        # Normalize lists from YAML into tuples
        object.__setattr__(self, "team1", tuple(self.team1))
        object.__setattr__(self, "team2", tuple(self.team2))
        if not self.id:
            object.__setattr__(self, "id", match_id(self.event_id, self.match_number))

        if len(self.team1) != 2 or len(self.team2) != 2:
            raise ValueError(f"Match {self.id}: each team needs exactly two players")
        if len(set(self.players)) != 4:
            raise ValueError(f"Match {self.id}: players must be distinct, got {self.players}")
        if self.match_number < 1:
            raise ValueError(f"Match {self.id}: match_number must be >= 1")
        if self.is_no_game and self.score is not None:
            raise ValueError(f"Match {self.id}: a no-game cannot carry a score")
        if self.no_game_reason and not self.is_no_game:
            raise ValueError(f"Match {self.id}: no-game reason set on a live match")
        if self.is_confirmed and self.score is None:
            raise ValueError(f"Match {self.id}: only a scored match can be confirmed")

    @property
    def players(self) -> tuple[str, str, str, str]:
        return self.team1 + self.team2

    @property
    def state(self) -> MatchState:
        if self.is_no_game:
            return MatchState.NO_GAME
        if self.score is not None:
            return MatchState.SCORED
        return MatchState.PENDING

    def involves(self, player: str) -> bool:
        return player in self.team1 or player in self.team2

    def team_of(self, player: str) -> Optional[str]:
        if player in self.team1:
            return TEAM1
        if player in self.team2:
            return TEAM2
        return None


def match_id(event_id: str, match_number: int) -> str:
    return f"{event_id}_match_{match_number}"


@dataclass
class PlayerState:
    """Per-player inputs to the scorer, rebuilt from history on every call."""
    member_id: str
    match_count: int = 0
    last_match_number: int = -1
    consecutive_rests: int = 0
    is_early_leaver: bool = False
    early_leave_time: Optional[str] = None
    early_leave_match_count: int = 0


@dataclass
class PlayerStats:
    """Win/loss record of one member over a set of matches."""
    member_id: str
    member_name: str = ""
    is_guest: bool = False
    matches_played: int = 0
    wins: int = 0
    losses: int = 0
    win_rate: float = 0.0
    rank: Optional[int] = None


@dataclass
class Event:
    """A scheduled day of play."""
    id: str
    date: str = ""
    start_time: str = ""
    end_time: str = ""
    court_number: int = 1
