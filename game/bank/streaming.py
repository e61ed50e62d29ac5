"""
Streaming feature evaluator.

One pass over the normalized events, folding them into an explicit
InferenceState. Features that a single event can trigger are applied
immediately through the accumulator; the rest is left for the aggregate pass.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, Optional

from game.bank.accumulator import ScoreAccumulator, illegal_rate, in_learning_regime
from game.bank.config import BankConfig
from game.bank.core import (
    MEANINGFUL_KINDS,
    BottleSelect,
    CorkUnlock,
    DecoKeyUse,
    EventKind,
    InstabilityCollapse,
    InstabilityReset,
    InstabilityWarning,
    KeystoneSolved,
    LevelEnd,
    LevelStart,
    OpportunityContext,
    PourAttempt,
    TelemetryEvent,
    UnknownReveal,
)
from game.bank.features import FeatureId, get_feature_delta


@dataclass
class LevelState:
    """Counters that reset at every level_start."""
    total_reveals: int = 0
    early_reveals: int = 0               # reveals before the first instability warning
    instability_seen: bool = False
    sealed_unknown_touched: bool = False
    moves_since_level_start: int = 0
    used_deco_key: bool = False
    first_deco_key_move: Optional[int] = None
    keystone_solved: bool = False
    keystone_solved_move: Optional[int] = None
    instability_active_at_keystone: Optional[bool] = None
    last_unlock_method: Optional[str] = None
    last_level_end: Optional[LevelEnd] = None


@dataclass
class InferenceState:
    """
    Everything the engine knows while folding over one event log.

    Owned by a single inference call; nothing here outlives it.
    """
    config: BankConfig
    accumulator: ScoreAccumulator
    opportunities: OpportunityContext = field(default_factory=OpportunityContext)
    last_level_start: Optional[LevelStart] = None
    level: LevelState = field(default_factory=LevelState)

    total_pour_attempts: int = 0
    illegal_pour_attempts: int = 0
    meaningful_events: int = 0

    # Sparse: vessel index -> move index of its pending warning.
    # Survives level_start.
    last_warning_move: Dict[int, int] = field(default_factory=dict)

    @classmethod
    def fresh(cls, config: BankConfig) -> "InferenceState":
        return cls(config=config, accumulator=ScoreAccumulator(config=config))

    @property
    def illegal_rate(self) -> float:
        return illegal_rate(self.total_pour_attempts, self.illegal_pour_attempts)

    @property
    def learning(self) -> bool:
        return in_learning_regime(
            self.total_pour_attempts,
            self.illegal_pour_attempts,
            self.config
        )

    def apply_feature(
        self,
        feature_id: FeatureId,
        kind: EventKind,
        note: str = "",
        variant: Optional[str] = None
    ) -> None:
        """Route a feature through the accumulator under the current context."""
        self.accumulator.apply(
            feature_id,
            get_feature_delta(feature_id, variant),
            kind,
            self.opportunities,
            self.learning,
            note,
        )


# =============================================================================
# PER-KIND HANDLERS
# =============================================================================

def _on_level_start(state: InferenceState, event: LevelStart) -> None:
    state.last_level_start = event
    state.opportunities = OpportunityContext.from_level_start(event)
    state.level = LevelState()


def _on_bottle_select(state: InferenceState, event: BottleSelect) -> None:
    if event.is_sealed_unknown:
        state.level.sealed_unknown_touched = True


def _on_pour_attempt(state: InferenceState, event: PourAttempt) -> None:
    state.total_pour_attempts += 1
    if event.legal is False:
        state.illegal_pour_attempts += 1


def _on_unknown_reveal(state: InferenceState, event: UnknownReveal) -> None:
    state.level.total_reveals += 1
    if not state.level.instability_seen:
        state.level.early_reveals += 1


def _on_instability_warning(state: InferenceState, event: InstabilityWarning) -> None:
    state.level.instability_seen = True
    if event.bottle_index is not None and event.move_index is not None:
        state.last_warning_move[event.bottle_index] = event.move_index


def _on_instability_reset(state: InferenceState, event: InstabilityReset) -> None:
    if event.bottle_index is None or event.move_index is None:
        return
    warned_at = state.last_warning_move.get(event.bottle_index)
    if warned_at is None:
        return

    thresholds = state.config.thresholds
    dt = event.move_index - warned_at
    if dt <= thresholds.reset_fast_max_dt:
        feature_id = FeatureId.I1_DT_LE2
    elif dt <= thresholds.reset_mid_max_dt:
        feature_id = FeatureId.I1_DT_3_5
    else:
        feature_id = FeatureId.I1_DT_GT5

    state.apply_feature(feature_id, event.kind, f"dt={dt}")
    del state.last_warning_move[event.bottle_index]


def _on_instability_collapse(state: InferenceState, event: InstabilityCollapse) -> None:
    state.apply_feature(FeatureId.I1_COLLAPSE, event.kind, "collapse")


def _on_deco_key_use(state: InferenceState, event: DecoKeyUse) -> None:
    state.level.used_deco_key = True
    if state.level.first_deco_key_move is None and event.move_index is not None:
        state.level.first_deco_key_move = event.move_index


def _on_cork_unlock(state: InferenceState, event: CorkUnlock) -> None:
    state.level.last_unlock_method = event.method
    if event.method in ("keystone", "deco_key"):
        state.apply_feature(
            FeatureId.KS1_UNLOCK_METHOD,
            event.kind,
            f"method={event.method}",
            variant=event.method,
        )


def _on_keystone_solved(state: InferenceState, event: KeystoneSolved) -> None:
    level = state.level
    level.keystone_solved = True
    if event.move_index is not None:
        level.keystone_solved_move = event.move_index
    if event.instability_active is not None:
        level.instability_active_at_keystone = event.instability_active

    if level.instability_active_at_keystone is True:
        state.apply_feature(
            FeatureId.I2_KEYSTONE_WHILE_UNSTABLE,
            event.kind,
            "keystone solved while unstable",
        )


def _on_level_end(state: InferenceState, event: LevelEnd) -> None:
    state.level.last_level_end = event


_HANDLERS = {
    EventKind.LEVEL_START: _on_level_start,
    EventKind.BOTTLE_SELECT: _on_bottle_select,
    EventKind.POUR_ATTEMPT: _on_pour_attempt,
    EventKind.UNKNOWN_REVEAL: _on_unknown_reveal,
    EventKind.INSTABILITY_WARNING: _on_instability_warning,
    EventKind.INSTABILITY_RESET: _on_instability_reset,
    EventKind.INSTABILITY_COLLAPSE: _on_instability_collapse,
    EventKind.DECO_KEY_USE: _on_deco_key_use,
    EventKind.CORK_UNLOCK: _on_cork_unlock,
    EventKind.KEYSTONE_SOLVED: _on_keystone_solved,
    EventKind.LEVEL_END: _on_level_end,
    # pour_execute: staging heuristic is reserved; nothing to update
}


def step(state: InferenceState, event: TelemetryEvent) -> InferenceState:
    """
    Fold one event into the state.

    Args:
        state: State to update in place
        event: Next event in timestamp order

    Returns:
        The same state, for use with functools.reduce-style folds
    """
    if event.kind in MEANINGFUL_KINDS:
        state.meaningful_events += 1

    if event.kind is not EventKind.LEVEL_START and event.move_index is not None:
        state.level.moves_since_level_start = max(
            state.level.moves_since_level_start,
            event.move_index
        )

    handler = _HANDLERS.get(event.kind)
    if handler is not None:
        handler(state, event)
    return state


def run_stream(events: Iterable[TelemetryEvent], config: BankConfig) -> InferenceState:
    """Fold a normalized event sequence into a fresh InferenceState."""
    state = InferenceState.fresh(config)
    for event in events:
        step(state, event)
    return state
