"""Output formatters for the clubdoubles app."""

import csv
from io import StringIO
from pathlib import Path
from typing import Optional, Sequence

from clubdoubles.cointoss import coin_toss_display_text
from clubdoubles.history import match_count
from clubdoubles.models import Event, Match, MatchState, Member
from clubdoubles.results import determine_match_format, format_score


def _names(ids: Sequence[str], members: dict[str, Member]) -> list[str]:
    return [members[i].display_name() if i in members else i for i in ids]


def format_matches(matches: Sequence[Match], members: Sequence[Member],
                   event: Optional[Event] = None,
                   present: Optional[Sequence[str]] = None) -> str:
    """Format the session's matches as human-readable text."""
    by_id = {m.id: m for m in members}
    lines = []
    lines.append("=" * 70)
    title = f"SESSION {event.id}" if event else "SESSION"
    if event and event.date and event.date != event.id:
        title += f" ({event.date})"
    lines.append(title)
    if present is not None:
        lines.append(f"{len(present)} present, format: "
                     f"{determine_match_format(len(present))}")
    lines.append("=" * 70)

    for m in sorted(matches, key=lambda m: m.match_number):
        t1 = " & ".join(_names(m.team1, by_id))
        t2 = " & ".join(_names(m.team2, by_id))
        if m.state == MatchState.NO_GAME:
            result = f"NO GAME ({m.no_game_reason})"
        elif m.state == MatchState.SCORED:
            result = f"{format_score(m.score.team1_games, m.score.team2_games)}"
        else:
            result = "pending"
        lines.append(f"  {m.match_number:>3}. {t1:<24} vs {t2:<24} {result}")
        if m.coin_toss and m.state == MatchState.PENDING:
            toss = coin_toss_display_text(
                m.coin_toss, _names(m.team1, by_id), _names(m.team2, by_id),
            )
            for line in toss.splitlines():
                lines.append(f"       {line}")

    if present:
        lines.append("\n--- MATCHES PER PLAYER ---")
        for p in present:
            name = _names([p], by_id)[0]
            lines.append(f"  {name:<20} {match_count(p, matches):>3}")

    return "\n".join(lines)


def format_matches_csv(matches: Sequence[Match]) -> str:
    """Format matches as CSV, one row per match."""
    output = StringIO()
    writer = csv.writer(output)
    writer.writerow([
        "Match", "Team1_A", "Team1_B", "Team2_A", "Team2_B",
        "Team1_Games", "Team2_Games", "Winner", "No_Game", "Reason",
        "Toss_Winner", "Created_At",
    ])
    for m in sorted(matches, key=lambda m: m.match_number):
        writer.writerow([
            m.match_number, m.team1[0], m.team1[1], m.team2[0], m.team2[1],
            m.score.team1_games if m.score else "",
            m.score.team2_games if m.score else "",
            m.score.winner if m.score else "",
            "yes" if m.is_no_game else "",
            m.no_game_reason or "",
            m.coin_toss.winner if m.coin_toss else "",
            m.created_at,
        ])
    return output.getvalue()


def write_session_outputs(matches: Sequence[Match], members: Sequence[Member],
                          output_prefix: str = "output",
                          event: Optional[Event] = None,
                          present: Optional[Sequence[str]] = None,
                          extra_text: str = ""):
    """Write all output files into {output_prefix}/ directory."""
    out_dir = Path(output_prefix)
    out_dir.mkdir(parents=True, exist_ok=True)

    text = format_matches(matches, members, event=event, present=present)
    if extra_text:
        text += "\n\n" + extra_text
    text_path = out_dir / "matches.txt"
    text_path.write_text(text)
    print(f"Written: {text_path}")

    csv_path = out_dir / "matches.csv"
    csv_path.write_text(format_matches_csv(matches))
    print(f"Written: {csv_path}")
