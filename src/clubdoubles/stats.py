"""Win/loss statistics and rankings for the clubdoubles app."""

from typing import Sequence

from clubdoubles.models import TEAM1, TEAM2, Match, Member, PlayerStats


def calculate_player_stats(matches: Sequence[Match],
                           members: Sequence[Member],
                           confirmed_only: bool = False) -> list[PlayerStats]:
    """Tally matches played, wins and losses for every member.

    No-games and matches without a final score are ignored, as are
    unconfirmed scores when ``confirmed_only`` is set. Players who
    appear in matches but not in the member list are not counted.
    """
    stats = {
        m.id: PlayerStats(member_id=m.id, member_name=m.display_name(),
                          is_guest=m.is_guest)
        for m in members
    }

    for match in matches:
        if match.is_no_game or match.score is None:
            continue
        if confirmed_only and not match.is_confirmed:
            continue
        winner = match.score.winner
        for team_name, team in ((TEAM1, match.team1), (TEAM2, match.team2)):
            for pid in team:
                s = stats.get(pid)
                if s is None:
                    continue
                s.matches_played += 1
                if winner == team_name:
                    s.wins += 1
                else:
                    s.losses += 1

    for s in stats.values():
        if s.matches_played > 0:
            s.win_rate = s.wins / s.matches_played

    return list(stats.values())


def calculate_rankings(stats: Sequence[PlayerStats]) -> list[PlayerStats]:
    """Rank members by win rate, then matches played. Guests go last, unranked."""
    regulars = sorted(
        (s for s in stats if not s.is_guest),
        key=lambda s: (-s.win_rate, -s.matches_played),
    )
    for i, s in enumerate(regulars, 1):
        s.rank = i
    guests = [s for s in stats if s.is_guest]
    for s in guests:
        s.rank = None
    return regulars + guests


def format_rankings_report(rankings: Sequence[PlayerStats]) -> str:
    """Format rankings into a human-readable table."""
    lines = []
    lines.append("=" * 56)
    lines.append("RANKINGS")
    lines.append("=" * 56)
    lines.append(f"{'Rank':>4}  {'Player':<20} {'P':>3} {'W':>3} {'L':>3} {'Win%':>6}")
    lines.append("-" * 56)
    for s in rankings:
        rank = f"{s.rank:>4}" if s.rank is not None else "   -"
        name = s.member_name + (" (guest)" if s.is_guest else "")
        lines.append(
            f"{rank}  {name:<20} {s.matches_played:>3} {s.wins:>3} "
            f"{s.losses:>3} {s.win_rate * 100:>5.1f}%"
        )
    return "\n".join(lines)
