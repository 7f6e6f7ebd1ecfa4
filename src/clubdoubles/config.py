"""Session file loading and saving for the clubdoubles app.

A session file is YAML:

    event:
      id: 2026-10-17
      date: 2026-10-17
      start_time: "9:00"
      end_time: "12:00"
      court_number: 1
    members:
      - {id: alice, name: Alice}
      - {id: guest1, name: Visitor, guest: true}
    attendance:
      alice: present
      bob: {status: present, early_leave: true, early_leave_time: "11:00"}
    matches:
      - number: 1
        team1: [alice, bob]
        team2: [carol, dave]
        coin_toss: {winner: team1, winner_choice: serve, loser_side: left}
        score: [4, 2]
      - number: 2
        team1: [alice, carol]
        team2: [erin, frank]
        no_game: Player withdrew mid-match
    weights:
      match_count_gap: 150
"""

import logging
from pathlib import Path

import yaml

from clubdoubles.models import (
    Attendance, AttendanceStatus, CoinTossResult, Event, Match, Member,
)
from clubdoubles.results import make_score
from clubdoubles.scoring import DEFAULT_WEIGHTS, ScoringWeights

logger = logging.getLogger(__name__)


class ConfigError(ValueError):
    """A session file that can't be turned into a session."""


def parse_event(raw) -> Event:
    if raw is None:
        raise ConfigError("Session file has no 'event' section")
    if not isinstance(raw, dict):
        return Event(id=str(raw))
    if "id" not in raw:
        raise ConfigError("event.id is required")
    return Event(
        id=str(raw["id"]),
        date=str(raw.get("date", "")),
        start_time=str(raw.get("start_time", "")),
        end_time=str(raw.get("end_time", "")),
        court_number=int(raw.get("court_number", 1)),
    )


def parse_members(raw) -> list[Member]:
    members = []
    for entry in raw or []:
        if isinstance(entry, str):
            members.append(Member(id=entry, name=entry))
            continue
        if "id" not in entry:
            raise ConfigError(f"Member entry without id: {entry}")
        members.append(Member(
            id=str(entry["id"]),
            name=str(entry.get("name", entry["id"])),
            is_guest=bool(entry.get("guest", False)),
        ))
    return members


def parse_attendance(raw, event_id: str) -> list[Attendance]:
    """Parse the attendance mapping (member id -> status or details)."""
    records = []
    for member_id, value in (raw or {}).items():
        if value is None:
            value = {}
        elif isinstance(value, str):
            value = {"status": value}
        try:
            status = AttendanceStatus.from_str(str(value.get("status", "undecided")))
        except ValueError:
            raise ConfigError(
                f"Attendance for {member_id}: unknown status {value.get('status')!r}"
            ) from None
        leave_time = value.get("early_leave_time")
        records.append(Attendance(
            event_id=event_id,
            member_id=str(member_id),
            status=status,
            early_leave=bool(value.get("early_leave", False)),
            early_leave_time=str(leave_time) if leave_time is not None else None,
        ))
    return records


def parse_match(raw: dict, event_id: str) -> Match:
    try:
        number = int(raw["number"])
        team1 = tuple(str(p) for p in raw["team1"])
        team2 = tuple(str(p) for p in raw["team2"])

        coin_toss = None
        if raw.get("coin_toss"):
            ct = raw["coin_toss"]
            coin_toss = CoinTossResult(
                winner=ct["winner"],
                winner_choice=ct.get("winner_choice", "serve"),
                loser_side=ct.get("loser_side", "left"),
            )

        score = None
        if raw.get("score") is not None:
            t1, t2 = raw["score"]
            score = make_score(int(t1), int(t2))
    except (AttributeError, KeyError, TypeError, ValueError) as e:
        raise ConfigError(f"Bad match entry {raw}: {e}") from e

    reason = raw.get("no_game")
    try:
        return Match(
            event_id=event_id,
            match_number=number,
            team1=team1,
            team2=team2,
            created_at=str(raw.get("created_at", "")),
            coin_toss=coin_toss,
            score=score,
            is_no_game=bool(reason),
            no_game_reason=str(reason) if reason else None,
            is_confirmed=bool(raw.get("confirmed", False)),
        )
    except ValueError as e:
        raise ConfigError(str(e)) from e


def parse_weights(raw) -> ScoringWeights:
    if not raw:
        return DEFAULT_WEIGHTS
    try:
        weights = ScoringWeights.from_dict(raw)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Bad weights section: {e}") from e
    for problem in weights.validate():
        logger.warning("Scoring weights: %s", problem)
    return weights


def load_session(path: str | Path) -> dict:
    """Load a session YAML file, returning structured data.

    Returns dict with:
    - event: Event
    - members: list[Member]
    - attendances: list[Attendance]
    - matches: list[Match] (sorted by match number)
    - weights: ScoringWeights
    """
    path = Path(path)
    try:
        with open(path) as f:
            raw = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Could not parse {path}: {e}") from e

    event = parse_event(raw.get("event"))
    members = parse_members(raw.get("members"))
    attendances = parse_attendance(raw.get("attendance"), event.id)
    matches = [parse_match(m, event.id) for m in raw.get("matches") or []]
    matches.sort(key=lambda m: m.match_number)
    weights = parse_weights(raw.get("weights"))

    known = {m.id for m in members}
    for a in attendances:
        if known and a.member_id not in known:
            logger.warning("Attendance for %s who is not a member", a.member_id)

    return {
        "event": event,
        "members": members,
        "attendances": attendances,
        "matches": matches,
        "weights": weights,
    }


def match_to_dict(match: Match) -> dict:
    d = {
        "number": match.match_number,
        "team1": list(match.team1),
        "team2": list(match.team2),
    }
    if match.created_at:
        d["created_at"] = match.created_at
    if match.coin_toss:
        d["coin_toss"] = {
            "winner": match.coin_toss.winner,
            "winner_choice": match.coin_toss.winner_choice,
            "loser_side": match.coin_toss.loser_side,
        }
    if match.score:
        d["score"] = [match.score.team1_games, match.score.team2_games]
    if match.is_no_game:
        d["no_game"] = match.no_game_reason or "no-game"
    if match.is_confirmed:
        d["confirmed"] = True
    return d


def session_to_dict(event: Event, members: list[Member],
                    attendances: list[Attendance], matches: list[Match],
                    weights: ScoringWeights = DEFAULT_WEIGHTS) -> dict:
    attendance = {}
    for a in attendances:
        entry = {"status": a.status.value}
        if a.early_leave:
            entry["early_leave"] = True
        if a.early_leave_time:
            entry["early_leave_time"] = a.early_leave_time
        attendance[a.member_id] = entry if len(entry) > 1 else a.status.value

    out = {
        "event": {
            "id": event.id,
            "date": event.date,
            "start_time": event.start_time,
            "end_time": event.end_time,
            "court_number": event.court_number,
        },
        "members": [
            {"id": m.id, "name": m.name, **({"guest": True} if m.is_guest else {})}
            for m in members
        ],
        "attendance": attendance,
        "matches": [match_to_dict(m) for m in matches],
    }
    if weights != DEFAULT_WEIGHTS:
        out["weights"] = weights.to_dict()
    return out


def save_session(path: str | Path, event: Event, members: list[Member],
                 attendances: list[Attendance], matches: list[Match],
                 weights: ScoringWeights = DEFAULT_WEIGHTS):
    """Write a session back to YAML in the same shape load_session reads."""
    data = session_to_dict(event, members, attendances, matches, weights)
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        yaml.safe_dump(data, f, sort_keys=False, allow_unicode=True)
