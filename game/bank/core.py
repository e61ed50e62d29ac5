"""
Core data structures for BANK inference.

Events are a tagged union: one frozen dataclass per EventKind, each carrying
only the fields that kind emits. Everything here is rebuilt per invocation.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar, Dict, List, Optional, Tuple


ARCHETYPES: Tuple[str, ...] = ("Blueprint", "Action", "Nurturing", "Knowledge")

ArchetypeVector = Dict[str, float]


def zero_vector() -> ArchetypeVector:
    """Fresh vector with all four archetypes at 0.0."""
    return {k: 0.0 for k in ARCHETYPES}


class EventKind(str, Enum):
    """Closed set of telemetry event kinds."""
    LEVEL_START = "level_start"
    BOTTLE_SELECT = "bottle_select"
    POUR_ATTEMPT = "pour_attempt"
    POUR_EXECUTE = "pour_execute"
    UNKNOWN_REVEAL = "unknown_reveal"
    INSTABILITY_WARNING = "instability_warning"
    INSTABILITY_RESET = "instability_reset"
    INSTABILITY_COLLAPSE = "instability_collapse"
    DECO_KEY_USE = "deco_key_use"
    CORK_UNLOCK = "cork_unlock"
    KEYSTONE_SOLVED = "keystone_solved"
    LEVEL_END = "level_end"


# Kinds counted toward confidence volume
MEANINGFUL_KINDS = frozenset({
    EventKind.CORK_UNLOCK,
    EventKind.KEYSTONE_SOLVED,
    EventKind.DECO_KEY_USE,
    EventKind.UNKNOWN_REVEAL,
    EventKind.INSTABILITY_WARNING,
    EventKind.INSTABILITY_RESET,
    EventKind.INSTABILITY_COLLAPSE,
    EventKind.POUR_ATTEMPT,
    EventKind.POUR_EXECUTE,
})


# =============================================================================
# TELEMETRY EVENTS
# =============================================================================

@dataclass(frozen=True)
class TelemetryEvent:
    """
    Fields shared by every event.

    ts defaults to 0 when the producer did not stamp the event.
    """
    kind: ClassVar[EventKind]

    ts: float = 0.0
    level: Optional[int] = None
    move_index: Optional[int] = None


@dataclass(frozen=True)
class LevelStart(TelemetryEvent):
    kind: ClassVar[EventKind] = EventKind.LEVEL_START

    sealed_unknown_count: Optional[int] = None
    corked_count: Optional[int] = None
    instability_enabled: Optional[bool] = None


@dataclass(frozen=True)
class BottleSelect(TelemetryEvent):
    kind: ClassVar[EventKind] = EventKind.BOTTLE_SELECT

    bottle_index: Optional[int] = None
    bottle_type: Optional[str] = None  # "sealedUnknown", "corked", "open", ...

    @property
    def is_sealed_unknown(self) -> bool:
        return self.bottle_type in ("sealedUnknown", "sealed_unknown")


@dataclass(frozen=True)
class PourAttempt(TelemetryEvent):
    kind: ClassVar[EventKind] = EventKind.POUR_ATTEMPT

    legal: Optional[bool] = None
    from_index: Optional[int] = None
    to_index: Optional[int] = None


@dataclass(frozen=True)
class PourExecute(TelemetryEvent):
    kind: ClassVar[EventKind] = EventKind.POUR_EXECUTE

    from_index: Optional[int] = None
    to_index: Optional[int] = None
    moved_count: Optional[int] = None
    to_type: Optional[str] = None


@dataclass(frozen=True)
class UnknownReveal(TelemetryEvent):
    kind: ClassVar[EventKind] = EventKind.UNKNOWN_REVEAL

    bottle_index: Optional[int] = None


@dataclass(frozen=True)
class InstabilityWarning(TelemetryEvent):
    kind: ClassVar[EventKind] = EventKind.INSTABILITY_WARNING

    bottle_index: Optional[int] = None


@dataclass(frozen=True)
class InstabilityReset(TelemetryEvent):
    kind: ClassVar[EventKind] = EventKind.INSTABILITY_RESET

    bottle_index: Optional[int] = None


@dataclass(frozen=True)
class InstabilityCollapse(TelemetryEvent):
    kind: ClassVar[EventKind] = EventKind.INSTABILITY_COLLAPSE

    bottle_index: Optional[int] = None


@dataclass(frozen=True)
class DecoKeyUse(TelemetryEvent):
    kind: ClassVar[EventKind] = EventKind.DECO_KEY_USE


@dataclass(frozen=True)
class CorkUnlock(TelemetryEvent):
    kind: ClassVar[EventKind] = EventKind.CORK_UNLOCK

    method: Optional[str] = None  # "keystone", "deco_key", "other"


@dataclass(frozen=True)
class KeystoneSolved(TelemetryEvent):
    kind: ClassVar[EventKind] = EventKind.KEYSTONE_SOLVED

    instability_active: Optional[bool] = None


@dataclass(frozen=True)
class LevelEnd(TelemetryEvent):
    kind: ClassVar[EventKind] = EventKind.LEVEL_END

    undos: Optional[int] = None
    moves: Optional[int] = None
    result: Optional[str] = None


EVENT_TYPES: Dict[EventKind, type] = {
    cls.kind: cls
    for cls in (
        LevelStart,
        BottleSelect,
        PourAttempt,
        PourExecute,
        UnknownReveal,
        InstabilityWarning,
        InstabilityReset,
        InstabilityCollapse,
        DecoKeyUse,
        CorkUnlock,
        KeystoneSolved,
        LevelEnd,
    )
}


# =============================================================================
# DERIVED RECORDS
# =============================================================================

@dataclass(frozen=True)
class OpportunityContext:
    """
    Which mechanics the current level physically offers.

    Valid from one level_start until the next. Scales evidence only.
    """
    sealed_unknown_count: int = 0
    corked_count: int = 0
    instability_enabled: bool = True

    @classmethod
    def from_level_start(cls, event: LevelStart) -> "OpportunityContext":
        return cls(
            sealed_unknown_count=event.sealed_unknown_count or 0,
            corked_count=event.corked_count or 0,
            instability_enabled=(
                True if event.instability_enabled is None else event.instability_enabled
            ),
        )

    def to_dict(self) -> dict:
        return {
            "sealedUnknownCount": self.sealed_unknown_count,
            "corkedCount": self.corked_count,
            "instabilityEnabled": self.instability_enabled,
        }


@dataclass(frozen=True)
class FeatureContribution:
    """
    One feature application, after scaling.

    magnitude = sum of absolute scaled components; used for ranking.
    """
    feature_id: str
    event_kind: EventKind
    weight: float                 # event weight applied
    delta: ArchetypeVector
    magnitude: float
    note: str = ""

    def to_dict(self) -> dict:
        return {
            "featureId": self.feature_id,
            "weight": self.weight,
            "delta": dict(self.delta),
            "note": self.note,
        }


@dataclass(frozen=True)
class Diagnostics:
    meaningful_events: int
    total_pour_attempts: int
    illegal_pour_attempts: int
    illegal_rate: float
    opportunities: OpportunityContext
    level_band: str

    def to_dict(self) -> dict:
        return {
            "meaningfulEvents": self.meaningful_events,
            "totalPourAttempts": self.total_pour_attempts,
            "illegalPourAttempts": self.illegal_pour_attempts,
            "illegalRate": self.illegal_rate,
            "opportunities": self.opportunities.to_dict(),
            "levelBand": self.level_band,
        }


@dataclass(frozen=True)
class InferenceResult:
    """
    Output of one inference call.

    probabilities sum to 1; scores stay within the configured clamp.
    """
    probabilities: ArchetypeVector
    confidence: float
    scores: ArchetypeVector
    evidence: List[FeatureContribution] = field(default_factory=list)
    diagnostics: Optional[Diagnostics] = None

    @property
    def top_archetype(self) -> str:
        # ties resolve to the earlier archetype in ARCHETYPES
        return max(ARCHETYPES, key=lambda k: self.probabilities[k])

    def to_dict(self) -> dict:
        """Flat JSON-serializable shape consumed by voice selection and tooling."""
        return {
            "probabilities": dict(self.probabilities),
            "confidence": self.confidence,
            "scores": dict(self.scores),
            "evidence": [e.to_dict() for e in self.evidence],
            "diagnostics": self.diagnostics.to_dict() if self.diagnostics else {},
        }
