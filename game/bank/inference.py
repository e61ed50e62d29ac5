"""
BANK profile inference: telemetry log -> InferenceResult.

    normalize -> stream -> aggregate -> softmax -> confidence -> top evidence

compute_bank_profile() is a pure function of its inputs: no state survives
the call, so callers may invoke it per level, per session, or on any window
of the log without coordination.
"""

import logging
from typing import Any, Optional

from game.bank.aggregate import infer_level_band, run_aggregate_pass
from game.bank.config import BankConfig, get_config
from game.bank.confidence import estimate_confidence, softmax
from game.bank.core import Diagnostics, InferenceResult
from game.bank.normalization import normalize_events
from game.bank.streaming import run_stream

logger = logging.getLogger(__name__)

TOP_EVIDENCE = 3


def compute_bank_profile(events: Any, config: Optional[BankConfig] = None) -> InferenceResult:
    """
    Infer the archetype profile of a telemetry log.

    Args:
        events: list/tuple of raw event records (any order) or TelemetryEvents
        config: Configuration to use. If None, uses the active config.

    Returns:
        Probabilities, confidence, raw scores, top-3 evidence and diagnostics

    Raises:
        InputShapeError: If events is not a list or tuple
    """
    if config is None:
        config = get_config()

    normalized = normalize_events(events)

    state = run_stream(normalized, config)
    run_aggregate_pass(state)

    scores = dict(state.accumulator.scores)
    probabilities = softmax(scores, config.softmax_tau)
    confidence = estimate_confidence(
        probabilities,
        state.meaningful_events,
        state.illegal_rate,
        state.learning,
        config,
    )
    evidence = state.accumulator.top_evidence(TOP_EVIDENCE)

    diagnostics = Diagnostics(
        meaningful_events=state.meaningful_events,
        total_pour_attempts=state.total_pour_attempts,
        illegal_pour_attempts=state.illegal_pour_attempts,
        illegal_rate=state.illegal_rate,
        opportunities=state.opportunities,
        level_band=infer_level_band(state.last_level_start),
    )

    logger.debug(
        "BANK profile over %d events: %d features applied, confidence=%.3f, top=%s",
        len(normalized),
        len(state.accumulator.evidence),
        confidence,
        evidence[0].feature_id if evidence else None,
    )

    return InferenceResult(
        probabilities=probabilities,
        confidence=confidence,
        scores=scores,
        evidence=evidence,
        diagnostics=diagnostics,
    )
