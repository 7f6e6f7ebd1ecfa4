#!/usr/bin/env python3
"""Doubles club session tool.

Generate mode (default):
    clubdoubles session.yaml [--count N] [--seed N] [-o DIR] [--save]

    Generates the next N matches for the session and writes:
      {DIR}/matches.txt  - Match list, coin tosses, matches per player
      {DIR}/matches.csv  - One row per match

Other actions (combine with --save to write the session file back; pass
--count as well to also generate matches):
    clubdoubles session.yaml --score 3 4 2          # match 3 finished 4-2
    clubdoubles session.yaml --withdraw bob --match 4
    clubdoubles session.yaml --confirm 3 --rankings
    clubdoubles session.yaml --verify

Examples:
    clubdoubles session.yaml --count 3 --seed 7 --save
    clubdoubles session.yaml --verify
"""

import argparse
import logging
import random
import sys
from pathlib import Path

from clubdoubles.config import ConfigError
from clubdoubles.constraints import format_validation_report, validate_matches
from clubdoubles.optimizer import check_early_leaver_guarantee
from clubdoubles.output import write_session_outputs
from clubdoubles.results import confirm_match, record_score
from clubdoubles.stats import (
    calculate_player_stats, calculate_rankings, format_rankings_report,
)
from clubdoubles.store import SessionStore


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Doubles club session tool",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""\
Output files:
  {dir}/matches.txt   Human-readable match list
  {dir}/matches.csv   CSV export

Exit codes:
  0  Success
  1  Bad session file, too few players, or constraint violations
""",
    )
    parser.add_argument(
        "session", nargs="?", default="session.yaml",
        help="Path to session YAML file (default: session.yaml)"
    )
    parser.add_argument(
        "--count", "-n", type=int, default=None,
        help="Number of matches to generate (default: 1 when no other "
             "action is given, otherwise 0)"
    )
    parser.add_argument(
        "--seed", type=int, default=None,
        help="Random seed for coin tosses"
    )
    parser.add_argument(
        "--score", nargs=3, type=int, metavar=("MATCH", "T1", "T2"),
        help="Record a final score for a match"
    )
    parser.add_argument(
        "--confirm", type=int, metavar="MATCH",
        help="Confirm a scored match so it counts toward rankings"
    )
    parser.add_argument(
        "--withdraw", metavar="PLAYER",
        help="Player withdrawing mid-match (requires --match)"
    )
    parser.add_argument(
        "--match", type=int, metavar="N",
        help="Match the withdrawing player is in"
    )
    parser.add_argument(
        "--rankings", action="store_true",
        help="Print win/loss rankings over confirmed matches"
    )
    parser.add_argument(
        "--verify", action="store_true",
        help="Only validate the existing matches"
    )
    parser.add_argument(
        "--save", action="store_true",
        help="Write changes back to the session file"
    )
    parser.add_argument(
        "--output-prefix", "-o", default=None,
        help="Directory for match list outputs (default: none written)"
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true",
        help="Show optimizer debug logging"
    )
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.withdraw and args.match is None:
        parser.error("--withdraw requires --match")

    session_path = Path(args.session)
    if not session_path.exists():
        print(f"Error: session file {session_path} not found")
        sys.exit(1)

    print(f"Loading session from {session_path}...")
    try:
        store = SessionStore.load(session_path)
    except ConfigError as e:
        print(f"Error: {e}")
        sys.exit(1)

    event_id = next(iter(store.events))
    event = store.events[event_id]
    present = store.present_players(event_id)
    print(f"Event {event_id}: {len(present)} present")

    if args.verify:
        result = validate_matches(store.matches(event_id), present)
        print(format_validation_report(result))
        sys.exit(0 if result["valid"] else 1)

    rng = random.Random(args.seed)

    count = args.count
    if count is None:
        other_action = (args.score or args.confirm is not None
                        or args.withdraw or args.rankings)
        count = 0 if other_action else 1

    try:
        if args.score:
            number, t1, t2 = args.score
            scored = record_score(store.get_match(event_id, number), t1, t2)
            store.update_match(scored)
            print(f"Match {number}: {t1}-{t2}, {scored.score.winner} wins")

        if args.confirm is not None:
            store.update_match(confirm_match(store.get_match(event_id, args.confirm)))
            print(f"Match {args.confirm} confirmed")

        if args.withdraw:
            outcome = store.withdraw(event_id, args.withdraw, args.match, rng=rng)
            print(f"Match {outcome.cancelled_match.match_number} voided: "
                  f"{outcome.cancelled_match.no_game_reason}")
            print(f"Regenerated {len(outcome.new_matches)} matches without "
                  f"{args.withdraw}")
        elif count > 0:
            print(f"Generating {count} match(es) (seed={args.seed})...")
            new = store.generate_next(event_id, count, rng=rng)
            if not new:
                print(f"Error: need at least 4 present players, have {len(present)}")
                sys.exit(1)
            for m in new:
                print(f"  Match {m.match_number}: {' & '.join(m.team1)} vs "
                      f"{' & '.join(m.team2)}")
    except (KeyError, ValueError) as e:
        print(f"Error: {e}")
        sys.exit(1)

    matches = store.matches(event_id)

    for row in check_early_leaver_guarantee(store.attendances(event_id), matches):
        if not row["guaranteed"]:
            print(f"  Note: early leaver {row['player_id']} has played "
                  f"{row['current_matches']} match(es)")

    rankings_text = ""
    if args.rankings:
        stats = calculate_player_stats(matches, store.members, confirmed_only=True)
        rankings = calculate_rankings(stats)
        rankings_text = format_rankings_report(rankings)
        print("\n" + rankings_text)

    if args.output_prefix:
        print("\nWriting output files...")
        write_session_outputs(matches, store.members,
                              output_prefix=args.output_prefix,
                              event=event, present=present,
                              extra_text=rankings_text)

    if args.save:
        store.save(session_path, event_id)
        print(f"Written: {session_path}")


if __name__ == "__main__":
    main()
