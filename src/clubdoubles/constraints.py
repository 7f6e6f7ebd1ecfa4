"""Constraint validation for a session's match list.

Can validate either freshly generated matches or ones re-read from a
session file.
"""

from collections import defaultdict
from typing import Optional, Sequence

from clubdoubles.history import consecutive_rests, match_count
from clubdoubles.models import Match


def validate_matches(matches: Sequence[Match],
                     present: Optional[Sequence[str]] = None) -> dict:
    """Validate a match list against the session rules.

    Returns dict with:
    - valid: bool (True if no hard constraint violations)
    - errors: list of hard constraint violations
    - warnings: list of soft constraint issues (fairness)
    """
    errors = []
    warnings = []

    event_ids = {m.event_id for m in matches}
    if len(event_ids) > 1:
        errors.append(f"Matches from several events: {sorted(event_ids)}")

    seen_numbers: dict[int, int] = defaultdict(int)
    prev = 0
    for m in matches:
        seen_numbers[m.match_number] += 1
        if m.match_number <= prev:
            errors.append(
                f"Match {m.match_number} out of order (follows {prev})"
            )
        prev = max(prev, m.match_number)

        if len(set(m.players)) != 4:
            errors.append(f"Match {m.match_number}: repeated player {m.players}")
        if m.is_no_game and m.score is not None:
            errors.append(f"Match {m.match_number}: no-game with a score")

        if present is not None:
            for p in m.players:
                if p not in present:
                    warnings.append(
                        f"Match {m.match_number}: {p} is not marked present"
                    )

    for number, count in sorted(seen_numbers.items()):
        if count > 1:
            errors.append(f"Match number {number} used {count} times")

    if present:
        # Replay the session to find anyone left out three times running
        ordered = sorted(matches, key=lambda m: m.match_number)
        for i in range(1, len(ordered) + 1):
            prefix = ordered[:i]
            if prefix[-1].is_no_game:
                continue
            for p in present:
                if consecutive_rests(p, prefix) == 3:
                    warnings.append(
                        f"{p} rested 3 in a row up to match "
                        f"{prefix[-1].match_number}"
                    )

        counts = {p: match_count(p, matches) for p in present}
        spread = max(counts.values()) - min(counts.values())
        if spread > 1:
            low = sorted(p for p, c in counts.items() if c == min(counts.values()))
            warnings.append(
                f"Match count spread is {spread} (fewest: {', '.join(low)})"
            )

    return {
        "valid": len(errors) == 0,
        "errors": errors,
        "warnings": warnings,
    }


def format_validation_report(result: dict) -> str:
    lines = []
    lines.append("=" * 60)
    lines.append("VALIDATION REPORT")
    lines.append("=" * 60)
    if result["valid"]:
        lines.append("All hard constraints satisfied.")
    else:
        lines.append(f"ERRORS ({len(result['errors'])}):")
        for e in result["errors"]:
            lines.append(f"  {e}")
    if result["warnings"]:
        lines.append(f"\nWARNINGS ({len(result['warnings'])}):")
        for w in result["warnings"]:
            lines.append(f"  {w}")
    return "\n".join(lines)
