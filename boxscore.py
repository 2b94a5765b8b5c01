# /// script
# requires-python = ">=3.12"
# dependencies = ["pydantic>=2.0"]
# ///
"""Score a saved score sheet and print the box score.

Usage:
    uv run boxscore.py data/sample_game.json
    uv run boxscore.py data/sample_game.json --mode incremental
    uv run boxscore.py data/sample_game.json --verify
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from game_state import IngestionError, ingest_scoresheet
from incremental import IncrementalScorer
from recompute import recompute
from stats import GameStats


def _diff(absolute: GameStats, incremental: GameStats) -> list[str]:
    a, b = absolute.totals(), incremental.totals()
    lines = []
    for table in a:
        for name in sorted(set(a[table]) | set(b[table])):
            left, right = a[table].get(name), b[table].get(name)
            if left != right:
                lines.append(f"{table} {name}: absolute={left} incremental={right}")
    return lines


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Derive pitching, hitting and fielding stats from a score sheet."
    )
    parser.add_argument(
        "sheet", type=Path,
        help="Score sheet JSON (entries or grid format).",
    )
    parser.add_argument(
        "--mode", choices=["absolute", "incremental"], default="absolute",
        help="Replay the whole sheet at once, or one edit at a time (default: absolute).",
    )
    parser.add_argument(
        "--verify", action="store_true",
        help="Run both modes and exit non-zero if their totals differ.",
    )
    parser.add_argument(
        "--verbose", action="store_true",
        help="Log every processed edit.",
    )
    args = parser.parse_args(argv)

    # Configure logging
    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(levelname)s: %(message)s",
    )

    try:
        with open(args.sheet) as f:
            payload = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        print(f"Error reading {args.sheet}: {e}", file=sys.stderr)
        return 1

    try:
        sheet = ingest_scoresheet(payload)
    except IngestionError as e:
        print(f"Error: {e}", file=sys.stderr)
        for detail in e.details:
            print(f"  {detail}", file=sys.stderr)
        return 1

    game_id = args.sheet.stem
    if args.verify:
        absolute = recompute(sheet, game_id).stats
        incremental = IncrementalScorer.replay(sheet, game_id).stats
        differences = _diff(absolute, incremental)
        if differences:
            print("Modes disagree:", file=sys.stderr)
            for line in differences:
                print(f"  {line}", file=sys.stderr)
            return 1
        stats = absolute
    elif args.mode == "incremental":
        stats = IncrementalScorer.replay(sheet, game_id).stats
    else:
        stats = recompute(sheet, game_id).stats

    print(json.dumps({"game_id": game_id, "mode": args.mode, "box_score": stats.box_score()}, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
