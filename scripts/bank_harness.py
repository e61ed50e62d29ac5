#!/usr/bin/env python3
"""BANK calibration harness: profile an exported telemetry file.

Run:
  python scripts/bank_harness.py ./telemetry.json
  python scripts/bank_harness.py ./telemetry.json --levels 5-12
  python scripts/bank_harness.py ./telemetry.json --last 3
  python scripts/bank_harness.py ./telemetry.json --per-level

Notes:
- The telemetry file is the game's export: a JSON array of events.
- Selected runs are profiled combined, and optionally one by one.
"""

from __future__ import annotations

import argparse
import logging
import re
import sys
from pathlib import Path
from typing import Optional, Tuple

# Ensure repo root is on sys.path when running as a script
project_root = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(project_root))

from game.bank.config import get_config, load_config_from_yaml
from game.bank.inference import compute_bank_profile
from game.bank.report import render_profile, run_header, run_signals
from game.bank.telemetry import (
    filter_levels,
    flatten_runs,
    group_runs,
    last_n_runs,
    load_telemetry,
    save_result,
)

logger = logging.getLogger("bank_harness")


def parse_level_range(value: str) -> Tuple[int, int]:
    m = re.match(r"^(\d+)\s*-\s*(\d+)$", value.strip())
    if not m:
        raise argparse.ArgumentTypeError("Bad --levels format. Use like 5-12")
    return int(m.group(1)), int(m.group(2))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Profile exported BANK telemetry.")
    parser.add_argument("file", help="Telemetry JSON export (array of events)")
    parser.add_argument("--levels", type=parse_level_range, default=None,
                        help="Inclusive level range, e.g. 5-12")
    parser.add_argument("--last", type=int, default=None,
                        help="Only the last N runs (after level filtering)")
    parser.add_argument("--per-level", action="store_true",
                        help="Also profile each run on its own")
    parser.add_argument("--config", default=None,
                        help="YAML config (default: built-in locked values)")
    parser.add_argument("--out", default=None,
                        help="Write the combined profile as JSON")
    parser.add_argument("--verbose", action="store_true", help="Debug logging")
    return parser


def main(argv: Optional[list] = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    config = load_config_from_yaml(args.config) if args.config else get_config()

    events = load_telemetry(args.file)
    runs = group_runs(events)
    lo, hi = args.levels if args.levels else (None, None)
    selected = last_n_runs(filter_levels(runs, lo, hi), args.last)

    if not selected:
        print("No runs matched your filter.")
        return 0

    overall = compute_bank_profile(flatten_runs(selected), config)

    print("\n=== OVERALL (selected runs combined) ===")
    print(render_profile(overall))

    if args.out:
        save_result(overall, args.out)
        logger.info("Wrote combined profile to %s", args.out)

    if args.per_level:
        print("\n=== PER RUN ===")
        for i, run in enumerate(selected):
            result = compute_bank_profile(run, config)
            print("\n" + run_header(i, run))
            print(render_profile(result, include_diagnostics=False))
            print(run_signals(run))

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
