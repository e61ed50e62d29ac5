"""
Score accumulator: decay, clamp, scale, and the evidence log.

Every feature application goes through ScoreAccumulator.apply():
    1. decay every component, clamp
    2. scale the base delta: competence damp -> opportunity -> event weight
    3. add, clamp, log a FeatureContribution
"""

from dataclasses import dataclass, field
from typing import Dict, List

from game.bank.config import BankConfig
from game.bank.core import (
    ARCHETYPES,
    ArchetypeVector,
    EventKind,
    FeatureContribution,
    OpportunityContext,
    zero_vector,
)
from game.bank.features import KEYSTONE_FAMILY, FeatureId


def clamp(x: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, x))


def illegal_rate(total_pour_attempts: int, illegal_pour_attempts: int) -> float:
    """Share of illegal pour attempts; 0 when nothing was attempted."""
    if total_pour_attempts <= 0:
        return 0.0
    return illegal_pour_attempts / total_pour_attempts


def in_learning_regime(
    total_pour_attempts: int,
    illegal_pour_attempts: int,
    config: BankConfig
) -> bool:
    """
    Competence gate.

    True while the sample is too small or the player errs too often for
    full-strength evidence.
    """
    gate = config.competence
    rate = illegal_rate(total_pour_attempts, illegal_pour_attempts)
    return (
        total_pour_attempts < gate.min_pours_for_full_signal
        or rate > gate.illegal_rate_hard
    )


def opportunity_scale(
    feature_id: FeatureId,
    opportunities: OpportunityContext,
    config: BankConfig
) -> ArchetypeVector:
    """
    Per-archetype multipliers for mechanics absent from the level.

    Args:
        feature_id: Feature being applied (keystone family damps all axes)
        opportunities: Context from the latest level_start
        config: Active configuration

    Returns:
        Multiplier per archetype (1.0 where nothing is missing)
    """
    reductions = config.opportunity
    scale = {k: 1.0 for k in ARCHETYPES}

    if opportunities.sealed_unknown_count == 0:
        scale["Knowledge"] *= reductions.no_unknown_knowledge
    if not opportunities.instability_enabled:
        scale["Nurturing"] *= reductions.no_instability_nurturing
    if feature_id in KEYSTONE_FAMILY and opportunities.corked_count == 0:
        for k in ARCHETYPES:
            scale[k] *= reductions.no_corked_keystone

    return scale


def event_weight(kind: EventKind, config: BankConfig) -> float:
    """Fixed per-kind weight; unlisted kinds get the default weight."""
    return config.event_weights.get(kind.value, config.default_event_weight)


@dataclass
class ScoreAccumulator:
    """
    Four-archetype score vector with its evidence trail.

    Components never leave [-score_clamp, score_clamp].
    """
    config: BankConfig
    scores: ArchetypeVector = field(default_factory=zero_vector)
    evidence: List[FeatureContribution] = field(default_factory=list)

    def _clamp_all(self) -> None:
        limit = self.config.score_clamp
        for k in ARCHETYPES:
            self.scores[k] = clamp(self.scores[k], -limit, limit)

    def decay(self) -> None:
        """Fade older evidence by one step."""
        for k in ARCHETYPES:
            self.scores[k] *= self.config.decay_per_event
        self._clamp_all()

    def scale_delta(
        self,
        feature_id: FeatureId,
        base_delta: Dict[str, float],
        kind: EventKind,
        opportunities: OpportunityContext,
        learning: bool
    ) -> ArchetypeVector:
        """Apply the full scaling chain to a base delta."""
        damp = self.config.competence.learning_damp if learning else 1.0
        opp = opportunity_scale(feature_id, opportunities, self.config)
        weight = event_weight(kind, self.config)

        return {
            k: base_delta.get(k, 0.0) * damp * opp[k] * weight
            for k in ARCHETYPES
        }

    def apply(
        self,
        feature_id: FeatureId,
        base_delta: Dict[str, float],
        kind: EventKind,
        opportunities: OpportunityContext,
        learning: bool,
        note: str = ""
    ) -> FeatureContribution:
        """
        Decay, then add one scaled feature delta and log it.

        Args:
            feature_id: Feature being applied
            base_delta: Unscaled per-archetype delta from the feature table
            kind: Event kind whose weight applies
            opportunities: Current level's opportunity context
            learning: Whether the competence gate is in the learning regime
            note: Free-text detail for the evidence entry

        Returns:
            The logged contribution
        """
        self.decay()

        scaled = self.scale_delta(feature_id, base_delta, kind, opportunities, learning)
        for k in ARCHETYPES:
            self.scores[k] += scaled[k]
        self._clamp_all()

        contribution = FeatureContribution(
            feature_id=feature_id.value,
            event_kind=kind,
            weight=event_weight(kind, self.config),
            delta=scaled,
            magnitude=sum(abs(v) for v in scaled.values()),
            note=note,
        )
        self.evidence.append(contribution)
        return contribution

    def top_evidence(self, n: int = 3) -> List[FeatureContribution]:
        """Largest contributions by magnitude; ties keep application order."""
        ranked = sorted(self.evidence, key=lambda c: c.magnitude, reverse=True)
        return ranked[:n]
