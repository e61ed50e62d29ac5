"""
BANK Inference - deterministic player-archetype profiling from telemetry.

Scores four archetypes (Blueprint, Action, Nurturing, Knowledge) from an
ordered gameplay event log, with confidence and top-3 evidence.
"""

from game.bank.core import (
    ARCHETYPES,
    EventKind,
    TelemetryEvent,
    OpportunityContext,
    FeatureContribution,
    InferenceResult,
)
from game.bank.config import (
    BankConfig,
    get_config,
    set_config,
    reset_config,
    load_config_from_yaml,
)
from game.bank.features import FeatureId
from game.bank.normalization import InputShapeError, normalize_events
from game.bank.inference import compute_bank_profile

__all__ = [
    # Core data structures
    "ARCHETYPES",
    "EventKind",
    "TelemetryEvent",
    "OpportunityContext",
    "FeatureContribution",
    "InferenceResult",
    # Configuration
    "BankConfig",
    "get_config",
    "set_config",
    "reset_config",
    "load_config_from_yaml",
    # Features
    "FeatureId",
    # Inference
    "InputShapeError",
    "normalize_events",
    "compute_bank_profile",
]
