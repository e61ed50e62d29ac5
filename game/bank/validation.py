"""
Validation for the feature table and event weights.

Ensures:
1. Every FeatureId has a delta (or variant deltas)
2. Every delta covers exactly the four archetypes with finite values
3. Every EventKind has a non-negative event weight

Run from the test suite at configure time and from tests/smoke_validate.py.
"""

import math
from typing import Dict, List, Mapping, Optional

from game.bank.config import BankConfig, get_config
from game.bank.core import ARCHETYPES, EventKind
from game.bank.features import (
    FEATURE_DELTAS,
    FEATURE_VARIANTS,
    KEYSTONE_FAMILY,
    FeatureId,
)


# =============================================================================
# VALIDATION ERRORS
# =============================================================================

class FeatureTableError(Exception):
    """Raised when the feature table or event weights are inconsistent."""
    pass


# =============================================================================
# VALIDATION FUNCTIONS
# =============================================================================

def validate_delta(delta: Mapping[str, float], label: str) -> None:
    """
    Validate a single per-archetype delta.

    Raises:
        FeatureTableError: If archetypes are missing, extra, or non-finite
    """
    keys = set(delta)
    expected = set(ARCHETYPES)
    if keys != expected:
        missing = sorted(expected - keys)
        extra = sorted(keys - expected)
        raise FeatureTableError(
            f"Delta for {label} must cover exactly {list(ARCHETYPES)} "
            f"(missing={missing}, extra={extra})"
        )

    for archetype, value in delta.items():
        if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
            raise FeatureTableError(
                f"Delta for {label} has non-finite value for {archetype}: {value!r}"
            )


def validate_feature_table(
    deltas: Optional[Dict[FeatureId, Dict[str, float]]] = None,
    variants: Optional[Dict[FeatureId, Dict[str, Dict[str, float]]]] = None
) -> int:
    """
    Validate every feature entry.

    Args:
        deltas: Plain feature table (default: FEATURE_DELTAS)
        variants: Variant-keyed table (default: FEATURE_VARIANTS)

    Returns:
        Number of deltas validated

    Raises:
        FeatureTableError: Listing every problem found
    """
    deltas = FEATURE_DELTAS if deltas is None else deltas
    variants = FEATURE_VARIANTS if variants is None else variants

    count = 0
    errors: List[str] = []

    for feature_id in FeatureId:
        if feature_id in variants:
            if not variants[feature_id]:
                errors.append(f"{feature_id.value} has no variants")
            for variant, delta in variants[feature_id].items():
                try:
                    validate_delta(delta, f"{feature_id.value}/{variant}")
                    count += 1
                except FeatureTableError as e:
                    errors.append(str(e))
        elif feature_id in deltas:
            try:
                validate_delta(deltas[feature_id], feature_id.value)
                count += 1
            except FeatureTableError as e:
                errors.append(str(e))
        else:
            errors.append(f"{feature_id.value} has no delta")

    for feature_id in KEYSTONE_FAMILY:
        if feature_id not in deltas and feature_id not in variants:
            errors.append(f"Keystone family member {feature_id.value} has no delta")

    if errors:
        raise FeatureTableError(
            f"Feature table validation failed with {len(errors)} errors:\n" +
            "\n".join(f"  - {e}" for e in errors)
        )

    return count


def validate_event_weights(config: Optional[BankConfig] = None) -> int:
    """
    Validate that every EventKind has a usable weight.

    Returns:
        Number of weights validated

    Raises:
        FeatureTableError: If a kind is missing or a weight is negative/non-finite
    """
    config = config or get_config()
    errors = []

    for kind in EventKind:
        weight = config.event_weights.get(kind.value)
        if weight is None:
            errors.append(f"No event weight for {kind.value}")
        elif not math.isfinite(weight) or weight < 0:
            errors.append(f"Event weight for {kind.value} must be finite and >= 0, got {weight}")

    unknown = sorted(set(config.event_weights) - {k.value for k in EventKind})
    for name in unknown:
        errors.append(f"Event weight for unknown kind: {name}")

    if errors:
        raise FeatureTableError(
            f"Event weight validation failed with {len(errors)} errors:\n" +
            "\n".join(f"  - {e}" for e in errors)
        )

    return len(EventKind)


def validate_bank_definitions(config: Optional[BankConfig] = None) -> None:
    """Validate the feature table and event weights together."""
    validate_feature_table()
    validate_event_weights(config)
