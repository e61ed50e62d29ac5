"""
Probabilities and confidence.

confidence = base * competence * (floor + weight * separation)
    base        - event volume, log-saturating
    competence  - penalized by the illegal pour rate
    separation  - 1 - normalized entropy of the probabilities
"""

import math
from typing import Mapping

from game.bank.accumulator import clamp
from game.bank.config import BankConfig
from game.bank.core import ARCHETYPES, ArchetypeVector

_ENTROPY_EPS = 1e-12


def softmax(scores: Mapping[str, float], tau: float) -> ArchetypeVector:
    """Temperature softmax over the four archetypes."""
    values = [math.exp(scores.get(k, 0.0) / tau) for k in ARCHETYPES]
    total = sum(values) or 1.0
    return {k: v / total for k, v in zip(ARCHETYPES, values)}


def normalized_entropy(probabilities: Mapping[str, float]) -> float:
    """Shannon entropy divided by ln(4); 1.0 means uniform."""
    h = 0.0
    for k in ARCHETYPES:
        p = probabilities.get(k, 0.0)
        h -= p * math.log(p + _ENTROPY_EPS)
    return clamp(h / math.log(len(ARCHETYPES)), 0.0, 1.0)


def estimate_confidence(
    probabilities: Mapping[str, float],
    meaningful_events: int,
    illegal_rate: float,
    learning: bool,
    config: BankConfig
) -> float:
    """
    Single 0..1 confidence for a profile.

    Args:
        probabilities: Softmax output
        meaningful_events: Count of signal-bearing events
        illegal_rate: Illegal share of pour attempts
        learning: Whether the competence gate is in the learning regime
        config: Active configuration

    Returns:
        Confidence in [0, 1], capped while learning
    """
    params = config.confidence
    base = clamp(
        math.log(1 + meaningful_events) / math.log(1 + params.saturation_events),
        0.0,
        1.0,
    )
    competence = clamp(1 - params.illegal_penalty * illegal_rate, 0.0, 1.0)
    separation = clamp(1 - normalized_entropy(probabilities), 0.0, 1.0)

    confidence = base * competence * (
        params.separation_floor + params.separation_weight * separation
    )

    if learning:
        confidence = min(confidence, config.competence.confidence_cap_learning)
    return confidence
