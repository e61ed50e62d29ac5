"""
Test helpers for building telemetry logs.

Builders return raw wire-shape dicts (camelCase, `eventType`), the same shape
the game exports, so tests exercise the normalizer too.
"""

from typing import Dict, List, Optional

from game.bank.aggregate import run_aggregate_pass
from game.bank.config import get_config
from game.bank.normalization import normalize_events
from game.bank.streaming import InferenceState, run_stream


# =============================================================================
# EVENT BUILDERS
# =============================================================================

def ev(event_type: str, ts: float, **fields) -> Dict:
    """Raw event with an explicit timestamp."""
    event = {"eventType": event_type, "ts": ts}
    event.update(fields)
    return event


def level_start(
    ts: float = 0,
    level: Optional[int] = 5,
    sealed: int = 0,
    corked: int = 0,
    instability: Optional[bool] = None
) -> Dict:
    fields = {"sealedUnknownCount": sealed, "corkedCount": corked}
    if level is not None:
        fields["level"] = level
    if instability is not None:
        fields["instabilityEnabled"] = instability
    return ev("level_start", ts, **fields)


def pour_attempts(count: int, start_ts: float, illegal: int = 0) -> List[Dict]:
    """
    `count` pour attempts, the first `illegal` of them illegal.

    Move indices run 1..count, timestamps start_ts..start_ts+count-1.
    """
    return [
        ev("pour_attempt", start_ts + i, moveIndex=i + 1, legal=i >= illegal)
        for i in range(count)
    ]


def clean_level(level: int = 5, pours: int = 20, sealed: int = 0) -> List[Dict]:
    """level_start, `pours` legal attempts, level_end."""
    return (
        [level_start(0, level=level, sealed=sealed)]
        + pour_attempts(pours, start_ts=1)
        + [ev("level_end", pours + 1, moveIndex=pours, result="win", moves=pours, undos=0)]
    )


# =============================================================================
# EVALUATION SHORTCUTS
# =============================================================================

def stream(events: List[Dict]) -> InferenceState:
    """Streaming pass only."""
    return run_stream(normalize_events(events), get_config())


def evaluate(events: List[Dict]) -> InferenceState:
    """Streaming plus aggregate pass."""
    return run_aggregate_pass(stream(events))


def applied(state: InferenceState) -> List[str]:
    """Feature ids applied so far, in application order."""
    return [c.feature_id for c in state.accumulator.evidence]
