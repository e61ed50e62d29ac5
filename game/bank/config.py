"""
Configuration for BANK inference.

All tunable parameters live here, not in code. The defaults are locked
calibration values; config/bank_defaults.yaml mirrors them.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Union

import yaml


@dataclass(frozen=True)
class CompetenceGate:
    """Learning-regime gate: too few pours or too many illegal ones."""
    min_pours_for_full_signal: int
    illegal_rate_hard: float
    learning_damp: float
    confidence_cap_learning: float


@dataclass(frozen=True)
class OpportunityReductions:
    """Multipliers applied when a mechanic is absent from the level."""
    no_unknown_knowledge: float
    no_instability_nurturing: float
    no_corked_keystone: float


@dataclass(frozen=True)
class ConfidenceParams:
    """Shape of the confidence curve."""
    saturation_events: int
    illegal_penalty: float
    separation_floor: float
    separation_weight: float


@dataclass(frozen=True)
class FeatureThresholds:
    """Trigger thresholds for streaming and aggregate features."""
    reset_fast_max_dt: int
    reset_mid_max_dt: int
    illegal_low_rate: float
    illegal_high_rate: float
    reveal_early_ratio: float
    reveal_late_ratio: float
    avoid_min_moves: int
    key_early_fraction: float
    undo_min_count: int
    undo_max_illegal_rate: float


@dataclass(frozen=True)
class BankConfig:
    """Complete inference configuration."""
    decay_per_event: float
    softmax_tau: float
    score_clamp: float
    competence: CompetenceGate
    opportunity: OpportunityReductions
    confidence: ConfidenceParams
    thresholds: FeatureThresholds
    event_weights: Dict[str, float]
    default_event_weight: float
    expected_solve_moves: Dict[str, int] = field(default_factory=dict)


_DEFAULT_CONFIG = BankConfig(
    decay_per_event=0.985,
    softmax_tau=3.0,
    score_clamp=30.0,
    competence=CompetenceGate(
        min_pours_for_full_signal=12,
        illegal_rate_hard=0.25,
        learning_damp=0.35,
        confidence_cap_learning=0.45,
    ),
    opportunity=OpportunityReductions(
        no_unknown_knowledge=0.6,
        no_instability_nurturing=0.5,
        no_corked_keystone=0.4,
    ),
    confidence=ConfidenceParams(
        saturation_events=120,
        illegal_penalty=1.5,
        separation_floor=0.55,
        separation_weight=0.45,
    ),
    thresholds=FeatureThresholds(
        reset_fast_max_dt=2,
        reset_mid_max_dt=5,
        illegal_low_rate=0.05,
        illegal_high_rate=0.20,
        reveal_early_ratio=0.6,
        reveal_late_ratio=0.3,
        avoid_min_moves=10,
        key_early_fraction=0.20,
        undo_min_count=3,
        undo_max_illegal_rate=0.10,
    ),
    event_weights={
        "level_start": 0.8,
        "bottle_select": 0.2,
        "pour_attempt": 0.5,
        "pour_execute": 0.5,
        "unknown_reveal": 1.2,
        "instability_warning": 1.5,
        "instability_reset": 1.5,
        "instability_collapse": 1.5,
        "deco_key_use": 1.4,
        "keystone_solved": 1.8,
        "cork_unlock": 1.8,
        "level_end": 0.8,
    },
    default_event_weight=0.5,
    expected_solve_moves={
        "early": 28,
        "mid": 44,
        "late": 62,
        "infinite": 72,
    },
)

# Active configuration (can be replaced at runtime)
_active_config: BankConfig = _DEFAULT_CONFIG


def get_config() -> BankConfig:
    """Get the active inference configuration."""
    return _active_config


def set_config(config: BankConfig) -> None:
    """Set the active inference configuration."""
    global _active_config
    _active_config = config


def reset_config() -> None:
    """Reset to default configuration."""
    global _active_config
    _active_config = _DEFAULT_CONFIG


# =============================================================================
# YAML LOADING
# =============================================================================

def _require(data: dict, key: str, path: str):
    if not isinstance(data, dict) or key not in data:
        raise ValueError(f"Missing required field: {path}{key}")
    return data[key]


def _section(data: dict, key: str) -> dict:
    value = _require(data, key, "")
    if not isinstance(value, dict):
        raise ValueError(f"Field '{key}' must be a mapping, got {type(value).__name__}")
    return value


def config_from_dict(data: dict) -> BankConfig:
    """
    Build a BankConfig from a parsed mapping.

    Raises:
        ValueError: If a required field is missing or malformed
    """
    competence = _section(data, "competence")
    opportunity = _section(data, "opportunity")
    confidence = _section(data, "confidence")
    thresholds = _section(data, "thresholds")

    return BankConfig(
        decay_per_event=float(_require(data, "decay_per_event", "")),
        softmax_tau=float(_require(data, "softmax_tau", "")),
        score_clamp=float(_require(data, "score_clamp", "")),
        competence=CompetenceGate(
            min_pours_for_full_signal=int(_require(competence, "min_pours_for_full_signal", "competence.")),
            illegal_rate_hard=float(_require(competence, "illegal_rate_hard", "competence.")),
            learning_damp=float(_require(competence, "learning_damp", "competence.")),
            confidence_cap_learning=float(_require(competence, "confidence_cap_learning", "competence.")),
        ),
        opportunity=OpportunityReductions(
            no_unknown_knowledge=float(_require(opportunity, "no_unknown_knowledge", "opportunity.")),
            no_instability_nurturing=float(_require(opportunity, "no_instability_nurturing", "opportunity.")),
            no_corked_keystone=float(_require(opportunity, "no_corked_keystone", "opportunity.")),
        ),
        confidence=ConfidenceParams(
            saturation_events=int(_require(confidence, "saturation_events", "confidence.")),
            illegal_penalty=float(_require(confidence, "illegal_penalty", "confidence.")),
            separation_floor=float(_require(confidence, "separation_floor", "confidence.")),
            separation_weight=float(_require(confidence, "separation_weight", "confidence.")),
        ),
        thresholds=FeatureThresholds(
            reset_fast_max_dt=int(_require(thresholds, "reset_fast_max_dt", "thresholds.")),
            reset_mid_max_dt=int(_require(thresholds, "reset_mid_max_dt", "thresholds.")),
            illegal_low_rate=float(_require(thresholds, "illegal_low_rate", "thresholds.")),
            illegal_high_rate=float(_require(thresholds, "illegal_high_rate", "thresholds.")),
            reveal_early_ratio=float(_require(thresholds, "reveal_early_ratio", "thresholds.")),
            reveal_late_ratio=float(_require(thresholds, "reveal_late_ratio", "thresholds.")),
            avoid_min_moves=int(_require(thresholds, "avoid_min_moves", "thresholds.")),
            key_early_fraction=float(_require(thresholds, "key_early_fraction", "thresholds.")),
            undo_min_count=int(_require(thresholds, "undo_min_count", "thresholds.")),
            undo_max_illegal_rate=float(_require(thresholds, "undo_max_illegal_rate", "thresholds.")),
        ),
        event_weights={
            str(k): float(v) for k, v in _section(data, "event_weights").items()
        },
        default_event_weight=float(data.get("default_event_weight", 0.5)),
        expected_solve_moves={
            str(k): int(v) for k, v in _section(data, "expected_solve_moves").items()
        },
    )


def load_config_from_yaml(path: Union[str, Path]) -> BankConfig:
    """
    Load a BankConfig from a YAML file.

    Args:
        path: Path to a YAML file shaped like config/bank_defaults.yaml

    Returns:
        Parsed configuration (not activated; call set_config() for that)

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the YAML is malformed or a required field is missing
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    try:
        with open(config_path, "r") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ValueError(f"Failed to parse YAML in {config_path}: {e}") from e

    if not isinstance(data, dict):
        raise ValueError(
            f"YAML root must be a dictionary, got {type(data).__name__} in {config_path}"
        )

    return config_from_dict(data)
