"""
Feature table: base per-archetype deltas, before any scaling.

Kept as data. Evaluators pick an entry by FeatureId (and variant, for the
unlock-method feature); the accumulator does all scaling.
"""

from enum import Enum
from typing import Dict, FrozenSet, Optional

from game.bank.core import ArchetypeVector


class FeatureId(str, Enum):
    # Keystone
    KS1_UNLOCK_METHOD = "KS1_UNLOCK_METHOD"
    KS2_KEY_EARLY = "KS2_KEY_EARLY"
    KS2_KEY_LATE = "KS2_KEY_LATE"

    # Sealed unknown
    U1_REVEAL_EARLY = "U1_REVEAL_EARLY"
    U1_REVEAL_LATE = "U1_REVEAL_LATE"
    U2_AVOID_UNKNOWN = "U2_AVOID_UNKNOWN"
    U3_STAGE_WITH_UNKNOWN = "U3_STAGE_WITH_UNKNOWN"

    # Instability
    I1_DT_LE2 = "I1_DT_LE2"
    I1_DT_3_5 = "I1_DT_3_5"
    I1_DT_GT5 = "I1_DT_GT5"
    I1_COLLAPSE = "I1_COLLAPSE"
    I2_STABILIZE_BEFORE_KEYSTONE = "I2_STABILIZE_BEFORE_KEYSTONE"
    I2_KEYSTONE_WHILE_UNSTABLE = "I2_KEYSTONE_WHILE_UNSTABLE"

    # Move quality
    B1_ILLEGAL_LT5PCT = "B1_ILLEGAL_LT5PCT"
    B1_ILLEGAL_GT20PCT = "B1_ILLEGAL_GT20PCT"
    B2_UNDO_REFINEMENT = "B2_UNDO_REFINEMENT"


# Features damped when the level has no corked bottles
KEYSTONE_FAMILY: FrozenSet[FeatureId] = frozenset({
    FeatureId.KS1_UNLOCK_METHOD,
    FeatureId.KS2_KEY_EARLY,
    FeatureId.KS2_KEY_LATE,
})


# Variant-keyed features (only the unlock method today)
FEATURE_VARIANTS: Dict[FeatureId, Dict[str, ArchetypeVector]] = {
    FeatureId.KS1_UNLOCK_METHOD: {
        "keystone": {"Blueprint": 3.0, "Action": -1.0, "Nurturing": 1.0, "Knowledge": 2.0},
        "deco_key": {"Blueprint": -1.0, "Action": 3.0, "Nurturing": 0.0, "Knowledge": -0.5},
    },
}


FEATURE_DELTAS: Dict[FeatureId, ArchetypeVector] = {
    FeatureId.KS2_KEY_EARLY: {"Blueprint": -1.5, "Action": 2.0, "Nurturing": -0.5, "Knowledge": 0.0},
    FeatureId.KS2_KEY_LATE: {"Blueprint": 0.2, "Action": 0.8, "Nurturing": 0.0, "Knowledge": 0.0},

    FeatureId.U1_REVEAL_EARLY: {"Blueprint": 1.0, "Action": 0.0, "Nurturing": 0.0, "Knowledge": 2.5},
    FeatureId.U1_REVEAL_LATE: {"Blueprint": 0.0, "Action": 1.5, "Nurturing": 0.0, "Knowledge": -0.5},
    FeatureId.U2_AVOID_UNKNOWN: {"Blueprint": 0.0, "Action": 1.0, "Nurturing": 0.0, "Knowledge": -1.0},
    # Reserved: staging into unknowns is not yet emitted as a feature
    FeatureId.U3_STAGE_WITH_UNKNOWN: {"Blueprint": 1.5, "Action": 0.0, "Nurturing": 0.0, "Knowledge": 1.0},

    FeatureId.I1_DT_LE2: {"Blueprint": 1.0, "Action": 0.0, "Nurturing": 3.0, "Knowledge": 0.0},
    FeatureId.I1_DT_3_5: {"Blueprint": 0.0, "Action": 0.0, "Nurturing": 1.5, "Knowledge": 0.0},
    FeatureId.I1_DT_GT5: {"Blueprint": 0.0, "Action": 1.5, "Nurturing": -0.5, "Knowledge": 0.0},
    FeatureId.I1_COLLAPSE: {"Blueprint": -1.5, "Action": 2.0, "Nurturing": -1.5, "Knowledge": 0.0},
    FeatureId.I2_STABILIZE_BEFORE_KEYSTONE: {"Blueprint": 1.0, "Action": 0.0, "Nurturing": 2.0, "Knowledge": 0.0},
    FeatureId.I2_KEYSTONE_WHILE_UNSTABLE: {"Blueprint": 0.0, "Action": 1.5, "Nurturing": -1.0, "Knowledge": 0.0},

    FeatureId.B1_ILLEGAL_LT5PCT: {"Blueprint": 2.0, "Action": 0.0, "Nurturing": 0.0, "Knowledge": 0.0},
    FeatureId.B1_ILLEGAL_GT20PCT: {"Blueprint": 0.0, "Action": 0.5, "Nurturing": 0.0, "Knowledge": 0.0},
    FeatureId.B2_UNDO_REFINEMENT: {"Blueprint": 1.5, "Action": 0.0, "Nurturing": 0.0, "Knowledge": 0.5},
}


def get_feature_delta(feature_id: FeatureId, variant: Optional[str] = None) -> ArchetypeVector:
    """
    Look up the base delta for a feature.

    Args:
        feature_id: Feature to look up
        variant: Required for variant-keyed features (e.g. unlock method)

    Returns:
        Base per-archetype delta (shared table entry; do not mutate)

    Raises:
        KeyError: If the feature or variant has no entry
    """
    if feature_id in FEATURE_VARIANTS:
        return FEATURE_VARIANTS[feature_id][variant]
    return FEATURE_DELTAS[feature_id]
