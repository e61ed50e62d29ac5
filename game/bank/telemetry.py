"""
Telemetry files and run splitting.

At rest, telemetry is a flat JSON array of event objects (what the game's
export produces), in any order, stamped with `ts` or legacy `t`.
A "run" is the span from one level_start to the next.
"""

import json
import logging
from pathlib import Path
from typing import Any, List, Optional, Sequence, Union

from game.bank.core import EventKind, InferenceResult, LevelStart, TelemetryEvent
from game.bank.normalization import InputShapeError, normalize_events

logger = logging.getLogger(__name__)

Run = List[TelemetryEvent]


# =============================================================================
# FILE I/O
# =============================================================================

def load_telemetry(path: Union[str, Path]) -> List[Any]:
    """
    Read a telemetry export.

    Args:
        path: JSON file holding an array of event objects

    Returns:
        The raw records, unsorted and unparsed

    Raises:
        FileNotFoundError: If the file does not exist
        InputShapeError: If the JSON root is not an array
    """
    telemetry_file = Path(path)
    if not telemetry_file.exists():
        raise FileNotFoundError(f"Telemetry file not found: {telemetry_file}")

    with open(telemetry_file, "r") as f:
        data = json.load(f)

    if not isinstance(data, list):
        raise InputShapeError(
            f"Telemetry file must hold an array of events, got {type(data).__name__}"
        )

    logger.info("Loaded %d telemetry records from %s", len(data), telemetry_file)
    return data


def save_result(result: InferenceResult, path: Union[str, Path]) -> None:
    """
    Write an InferenceResult as JSON.

    Creates parent directories. Writes atomically (temp file, then rename).
    """
    out_file = Path(path)
    out_file.parent.mkdir(parents=True, exist_ok=True)

    temp_file = out_file.with_suffix(out_file.suffix + ".tmp")
    with open(temp_file, "w") as f:
        json.dump(result.to_dict(), f, indent=2)

    temp_file.replace(out_file)


# =============================================================================
# RUNS
# =============================================================================

def group_runs(events: Sequence[Any]) -> List[Run]:
    """
    Split a telemetry log into runs at each level_start.

    Events are normalized first (typed, time-ordered, unknown kinds dropped).
    Events before the first level_start form a run of their own.

    Returns:
        Non-empty runs, in time order
    """
    runs: List[Run] = []
    current: Run = []

    for event in normalize_events(events):
        if event.kind is EventKind.LEVEL_START and current:
            runs.append(current)
            current = []
        current.append(event)

    if current:
        runs.append(current)

    logger.debug("Split %d events into %d runs", sum(len(r) for r in runs), len(runs))
    return runs


def run_level(run: Run) -> Optional[int]:
    """Level number from the run's level_start, if any."""
    for event in run:
        if isinstance(event, LevelStart):
            return event.level
    return None


def filter_levels(runs: List[Run], lo: Optional[int] = None, hi: Optional[int] = None) -> List[Run]:
    """
    Keep runs whose level lies in [lo, hi].

    With no bounds, returns runs unchanged. Runs without a level are dropped
    whenever a bound is given.
    """
    if lo is None and hi is None:
        return runs

    kept = []
    for run in runs:
        level = run_level(run)
        if level is None:
            continue
        if lo is not None and level < lo:
            continue
        if hi is not None and level > hi:
            continue
        kept.append(run)
    return kept


def last_n_runs(runs: List[Run], n: Optional[int]) -> List[Run]:
    """Last n runs; n of None or <= 0 keeps everything."""
    if not n or n <= 0:
        return runs
    return runs[-n:]


def flatten_runs(runs: List[Run]) -> List[TelemetryEvent]:
    return [event for run in runs for event in run]
