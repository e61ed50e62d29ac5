"""
Aggregate feature pass.

Runs once after the stream, on whole-log statistics. Features go through the
same accumulator and are scaled under the final competence regime and the
last level's opportunity context.
"""

from typing import Optional

from game.bank.config import BankConfig
from game.bank.core import EventKind, LevelStart
from game.bank.features import FeatureId
from game.bank.streaming import InferenceState


def infer_level_band(level_start: Optional[LevelStart]) -> str:
    """
    Coarse difficulty tier from the level number.

    Returns:
        "early" (< 8), "mid" (< 18), "late" (< 35) or "infinite".
        A missing or non-positive level number counts as "mid".
    """
    level = level_start.level if level_start is not None else None
    if level is None or level <= 0:
        return "mid"
    if level < 8:
        return "early"
    if level < 18:
        return "mid"
    if level < 35:
        return "late"
    return "infinite"


def expected_solve_moves(level_start: Optional[LevelStart], config: BankConfig) -> int:
    band = infer_level_band(level_start)
    return config.expected_solve_moves.get(band, config.expected_solve_moves.get("mid", 44))


# =============================================================================
# FEATURE GROUPS
# =============================================================================

def apply_illegal_rate_bands(state: InferenceState) -> None:
    """B1: move quality, only once there are enough pours to judge."""
    config = state.config
    if state.total_pour_attempts < config.competence.min_pours_for_full_signal:
        return

    rate = state.illegal_rate
    note = f"illegalRate={rate:.3f}"
    if rate < config.thresholds.illegal_low_rate:
        state.apply_feature(FeatureId.B1_ILLEGAL_LT5PCT, EventKind.POUR_ATTEMPT, note)
    if rate > config.thresholds.illegal_high_rate:
        state.apply_feature(FeatureId.B1_ILLEGAL_GT20PCT, EventKind.POUR_ATTEMPT, note)


def apply_reveal_timing(state: InferenceState) -> None:
    """U1: share of reveals made before any instability warning."""
    level = state.level
    if level.total_reveals <= 0:
        return

    thresholds = state.config.thresholds
    ratio = level.early_reveals / level.total_reveals
    note = f"rate={ratio:.2f}"
    if ratio >= thresholds.reveal_early_ratio:
        state.apply_feature(FeatureId.U1_REVEAL_EARLY, EventKind.UNKNOWN_REVEAL, note)
    elif ratio <= thresholds.reveal_late_ratio:
        state.apply_feature(FeatureId.U1_REVEAL_LATE, EventKind.UNKNOWN_REVEAL, note)


def apply_unknown_avoidance(state: InferenceState) -> None:
    """U2: unknowns were on the board and the player never touched one."""
    level = state.level
    min_moves = state.config.thresholds.avoid_min_moves
    if (
        state.opportunities.sealed_unknown_count > 0
        and not level.sealed_unknown_touched
        and level.moves_since_level_start >= min_moves
    ):
        state.apply_feature(
            FeatureId.U2_AVOID_UNKNOWN,
            EventKind.BOTTLE_SELECT,
            f"no unknown interaction after {min_moves} moves",
        )


def apply_key_timing(state: InferenceState) -> None:
    """KS2: first key use measured against the band's expected solve length."""
    level = state.level
    if not level.used_deco_key or level.first_deco_key_move is None:
        return

    expected = expected_solve_moves(state.last_level_start, state.config)
    first_move = level.first_deco_key_move
    note = f"firstKeyMove={first_move}, exp={expected}"
    if first_move < state.config.thresholds.key_early_fraction * expected:
        state.apply_feature(FeatureId.KS2_KEY_EARLY, EventKind.DECO_KEY_USE, note)
    else:
        state.apply_feature(FeatureId.KS2_KEY_LATE, EventKind.DECO_KEY_USE, note)


def apply_stabilize_before_keystone(state: InferenceState) -> None:
    """I2: warnings happened, yet the keystone was solved while stable."""
    level = state.level
    if (
        level.keystone_solved
        and level.instability_active_at_keystone is False
        and level.instability_seen
    ):
        state.apply_feature(
            FeatureId.I2_STABILIZE_BEFORE_KEYSTONE,
            EventKind.KEYSTONE_SOLVED,
            "warnings occurred; keystone solved after stabilization",
        )


def apply_undo_refinement(state: InferenceState) -> None:
    """B2: deliberate undos by a player who rarely tries illegal pours."""
    level_end = state.level.last_level_end
    if level_end is None or level_end.undos is None:
        return

    thresholds = state.config.thresholds
    rate = state.illegal_rate
    if level_end.undos >= thresholds.undo_min_count and rate < thresholds.undo_max_illegal_rate:
        state.apply_feature(
            FeatureId.B2_UNDO_REFINEMENT,
            EventKind.LEVEL_END,
            f"undos={level_end.undos}, illegalRate={rate:.3f}",
        )


def run_aggregate_pass(state: InferenceState) -> InferenceState:
    """Apply every whole-log feature, in fixed order."""
    apply_illegal_rate_bands(state)
    apply_reveal_timing(state)
    apply_unknown_avoidance(state)
    apply_key_timing(state)
    apply_stabilize_before_keystone(state)
    apply_undo_refinement(state)
    return state
