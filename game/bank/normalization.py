"""
Event normalizer: raw telemetry records -> typed, time-ordered events.

Accepts the producer's wire shape (camelCase keys, `eventType`/`type`
discriminator, `ts` or legacy `t` timestamp). Malformed fields degrade to
absent; only a non-sequence top-level input is an error.
"""

import logging
import math
from typing import Any, Iterable, List, Mapping, Optional, Union

from game.bank.core import (
    EVENT_TYPES,
    BottleSelect,
    CorkUnlock,
    EventKind,
    InstabilityCollapse,
    InstabilityReset,
    InstabilityWarning,
    KeystoneSolved,
    LevelEnd,
    LevelStart,
    PourAttempt,
    PourExecute,
    TelemetryEvent,
    UnknownReveal,
)

logger = logging.getLogger(__name__)


class InputShapeError(TypeError):
    """Raised when the top-level telemetry input is not a list of events."""
    pass


# =============================================================================
# FIELD COERCION
# =============================================================================

def _number(value: Any) -> Optional[float]:
    """
    Finite number or None.

    Numeric strings ("20", " 2.5 ") are converted. Booleans are not numbers.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            return None
    elif not isinstance(value, (int, float)):
        return None
    if not math.isfinite(value):
        return None
    return float(value)


def _integer(value: Any) -> Optional[Union[int, float]]:
    """Whole numbers as int; fractional values are kept as floats, not truncated."""
    number = _number(value)
    if number is None:
        return None
    return int(number) if number.is_integer() else number


def _flag(value: Any) -> Optional[bool]:
    if value is None:
        return None
    return bool(value)


def _text(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


def _first(raw: Mapping, *keys: str) -> Any:
    """First non-None value among keys."""
    for key in keys:
        value = raw.get(key)
        if value is not None:
            return value
    return None


def event_kind(raw: Mapping) -> Optional[EventKind]:
    """
    Resolve the discriminator of a raw record.

    Checks `kind`, then `eventType`, then `type`. Unknown values give None.
    """
    name = _first(raw, "kind", "eventType", "type")
    if isinstance(name, EventKind):
        return name
    if not isinstance(name, str):
        return None
    try:
        return EventKind(name)
    except ValueError:
        return None


def event_timestamp(raw: Mapping) -> float:
    """`ts`, falling back to legacy `t`; missing or non-finite gives 0."""
    ts = _number(_first(raw, "ts", "t"))
    return 0.0 if ts is None else ts


# =============================================================================
# PARSING
# =============================================================================

def parse_event(raw: Any) -> Optional[TelemetryEvent]:
    """
    Convert one raw record into a typed event.

    Args:
        raw: A TelemetryEvent (returned as-is) or a mapping in wire shape

    Returns:
        The typed event, or None if the record is not a recognized event
    """
    if isinstance(raw, TelemetryEvent):
        return raw
    if not isinstance(raw, Mapping):
        logger.debug("Skipping non-mapping telemetry element: %r", type(raw).__name__)
        return None

    kind = event_kind(raw)
    if kind is None:
        logger.debug("Skipping telemetry element with unknown kind: %r",
                     _first(raw, "kind", "eventType", "type"))
        return None

    common = dict(
        ts=event_timestamp(raw),
        level=_integer(_first(raw, "level", "levelId")),
        move_index=_integer(raw.get("moveIndex")),
    )

    if kind is EventKind.LEVEL_START:
        return LevelStart(
            sealed_unknown_count=_integer(raw.get("sealedUnknownCount")),
            corked_count=_integer(_first(raw, "corkedCount", "lockedBottles")),
            instability_enabled=_flag(raw.get("instabilityEnabled")),
            **common,
        )
    if kind is EventKind.BOTTLE_SELECT:
        bottle_type = _text(raw.get("bottleType"))
        # Legacy records: `eventType` names the kind and `type` the bottle
        if bottle_type is None and _first(raw, "kind", "eventType") is not None:
            bottle_type = _text(raw.get("type"))
        return BottleSelect(
            bottle_index=_integer(raw.get("bottleIndex")),
            bottle_type=bottle_type,
            **common,
        )
    if kind is EventKind.POUR_ATTEMPT:
        legal = raw.get("legal")
        return PourAttempt(
            legal=legal if isinstance(legal, bool) else None,
            from_index=_integer(raw.get("from")),
            to_index=_integer(raw.get("to")),
            **common,
        )
    if kind is EventKind.POUR_EXECUTE:
        return PourExecute(
            from_index=_integer(raw.get("from")),
            to_index=_integer(raw.get("to")),
            moved_count=_integer(raw.get("movedCount")),
            to_type=_text(_first(raw, "toType", "toBottleType")),
            **common,
        )
    if kind is EventKind.UNKNOWN_REVEAL:
        return UnknownReveal(bottle_index=_integer(raw.get("bottleIndex")), **common)
    if kind is EventKind.INSTABILITY_WARNING:
        return InstabilityWarning(bottle_index=_integer(raw.get("bottleIndex")), **common)
    if kind is EventKind.INSTABILITY_RESET:
        return InstabilityReset(bottle_index=_integer(raw.get("bottleIndex")), **common)
    if kind is EventKind.INSTABILITY_COLLAPSE:
        return InstabilityCollapse(bottle_index=_integer(raw.get("bottleIndex")), **common)
    if kind is EventKind.CORK_UNLOCK:
        return CorkUnlock(method=_text(raw.get("method")), **common)
    if kind is EventKind.KEYSTONE_SOLVED:
        active = raw.get("instabilityActive")
        return KeystoneSolved(
            instability_active=active if isinstance(active, bool) else None,
            **common,
        )
    if kind is EventKind.LEVEL_END:
        return LevelEnd(
            undos=_integer(raw.get("undos")),
            moves=_integer(raw.get("moves")),
            result=_text(raw.get("result")),
            **common,
        )

    # Kinds with no payload beyond the common fields
    return EVENT_TYPES[kind](**common)


def normalize_events(events: Any) -> List[TelemetryEvent]:
    """
    Parse and stably sort a telemetry log by timestamp.

    Equal timestamps keep their input order, so the result is deterministic
    even when no event carries a timestamp.

    Args:
        events: list or tuple of raw records and/or TelemetryEvent instances

    Returns:
        Typed events, ascending by ts

    Raises:
        InputShapeError: If events is not a list or tuple
    """
    if not isinstance(events, (list, tuple)):
        raise InputShapeError(
            f"Telemetry must be a list of events, got {type(events).__name__}"
        )

    parsed = _parse_all(events)
    skipped = len(events) - len(parsed)
    if skipped:
        logger.debug("Normalized %d events, skipped %d", len(parsed), skipped)

    return sorted(parsed, key=lambda e: e.ts)


def _parse_all(events: Iterable[Any]) -> List[TelemetryEvent]:
    parsed = []
    for raw in events:
        event = parse_event(raw)
        if event is not None:
            parsed.append(event)
    return parsed
