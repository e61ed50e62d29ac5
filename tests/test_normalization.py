"""
Tests for the event normalizer.

See game/bank/normalization.py for implementation.
"""

import dataclasses
import math

import pytest

from game.bank.core import (
    BottleSelect,
    DecoKeyUse,
    EventKind,
    KeystoneSolved,
    LevelStart,
    PourAttempt,
)
from game.bank.normalization import (
    InputShapeError,
    event_kind,
    event_timestamp,
    normalize_events,
    parse_event,
)


class TestInputShape:
    """Only a non-sequence top level fails fast."""

    @pytest.mark.parametrize("bad", [None, "events", {"eventType": "level_start"}, 42])
    def test_non_list_raises(self, bad):
        with pytest.raises(InputShapeError, match="must be a list"):
            normalize_events(bad)

    def test_input_shape_error_is_type_error(self):
        assert issubclass(InputShapeError, TypeError)

    def test_tuple_accepted(self):
        events = normalize_events(({"eventType": "level_start", "ts": 1},))
        assert len(events) == 1

    def test_empty_list(self):
        assert normalize_events([]) == []


class TestKindResolution:

    def test_event_type_key(self):
        assert event_kind({"eventType": "pour_attempt"}) is EventKind.POUR_ATTEMPT

    def test_legacy_type_key(self):
        assert event_kind({"type": "unknown_reveal"}) is EventKind.UNKNOWN_REVEAL

    def test_kind_key_wins(self):
        assert event_kind({"kind": "level_end", "type": "level_start"}) is EventKind.LEVEL_END

    def test_unknown_kind_is_none(self):
        assert event_kind({"eventType": "mystery"}) is None
        assert event_kind({}) is None
        assert event_kind({"eventType": 7}) is None

    def test_unknown_and_malformed_elements_skipped(self):
        events = normalize_events([
            {"eventType": "mystery", "ts": 1},
            "not an event",
            None,
            {"ts": 3},
            {"eventType": "pour_attempt", "ts": 2, "legal": True},
        ])
        assert [e.kind for e in events] == [EventKind.POUR_ATTEMPT]


class TestTimestamps:

    def test_ts_preferred_over_t(self):
        assert event_timestamp({"ts": 5, "t": 9}) == 5.0

    def test_legacy_t(self):
        assert event_timestamp({"t": 9}) == 9.0

    @pytest.mark.parametrize("value", [None, "soon", "", "nan", float("nan"), float("inf"), True])
    def test_bad_timestamp_defaults_to_zero(self, value):
        assert event_timestamp({"ts": value}) == 0.0

    def test_sorted_ascending(self):
        events = normalize_events([
            {"eventType": "pour_attempt", "ts": 30, "moveIndex": 3},
            {"eventType": "pour_attempt", "ts": 10, "moveIndex": 1},
            {"eventType": "pour_attempt", "ts": 20, "moveIndex": 2},
        ])
        assert [e.move_index for e in events] == [1, 2, 3]

    def test_ties_keep_input_order(self):
        events = normalize_events([
            {"eventType": "pour_attempt", "moveIndex": 3},
            {"eventType": "pour_attempt", "moveIndex": 1},
            {"eventType": "pour_attempt", "ts": 0, "moveIndex": 2},
        ])
        assert [e.move_index for e in events] == [3, 1, 2]


class TestFieldCoercion:

    def test_level_start_fields(self):
        event = parse_event({
            "eventType": "level_start",
            "level": 12,
            "sealedUnknownCount": 2,
            "corkedCount": 1,
            "instabilityEnabled": False,
        })
        assert event == LevelStart(
            level=12,
            sealed_unknown_count=2,
            corked_count=1,
            instability_enabled=False,
        )

    def test_level_id_and_locked_bottles_fallbacks(self):
        event = parse_event({"eventType": "level_start", "levelId": 3, "lockedBottles": 2})
        assert event.level == 3
        assert event.corked_count == 2

    def test_non_finite_numbers_become_absent(self):
        event = parse_event({
            "eventType": "bottle_select",
            "moveIndex": float("nan"),
            "bottleIndex": "two",
            "bottleType": "sealedUnknown",
        })
        assert isinstance(event, BottleSelect)
        assert event.move_index is None
        assert event.bottle_index is None
        assert event.is_sealed_unknown

    def test_numeric_strings_are_converted(self):
        event = parse_event({
            "eventType": "level_start",
            "level": "20",
            "sealedUnknownCount": " 2 ",
            "lockedBottles": "1",
            "moveIndex": "3.0",
        })
        assert event.level == 20
        assert event.sealed_unknown_count == 2
        assert event.corked_count == 1
        assert event.move_index == 3

    def test_string_timestamp(self):
        assert event_timestamp({"ts": "12"}) == 12.0

    def test_fractional_values_are_not_truncated(self):
        event = parse_event({"eventType": "level_start", "sealedUnknownCount": 0.5, "moveIndex": 4.5})
        assert event.sealed_unknown_count == 0.5
        assert event.move_index == 4.5

    def test_whole_floats_become_ints(self):
        event = parse_event({"eventType": "level_end", "undos": 3.0, "moves": 40})
        assert event.undos == 3
        assert isinstance(event.undos, int)

    def test_legacy_type_carries_bottle_type(self):
        event = parse_event({"eventType": "bottle_select", "type": "sealedUnknown", "bottleIndex": 1})
        assert isinstance(event, BottleSelect)
        assert event.bottle_type == "sealedUnknown"
        assert event.is_sealed_unknown

    def test_bottle_type_key_wins_over_type(self):
        event = parse_event({"eventType": "bottle_select", "type": "sealedUnknown", "bottleType": "open"})
        assert not event.is_sealed_unknown

    def test_type_as_discriminator_is_not_a_bottle_type(self):
        event = parse_event({"type": "bottle_select", "bottleIndex": 1})
        assert event.bottle_type is None

    def test_legal_flag_must_be_boolean(self):
        assert parse_event({"eventType": "pour_attempt", "legal": 0}).legal is None
        assert parse_event({"eventType": "pour_attempt", "legal": False}).legal is False

    def test_instability_active_flag(self):
        event = parse_event({"eventType": "keystone_solved", "instabilityActive": False})
        assert isinstance(event, KeystoneSolved)
        assert event.instability_active is False
        assert parse_event({"eventType": "keystone_solved"}).instability_active is None

    def test_payloadless_kind(self):
        event = parse_event({"eventType": "deco_key_use", "ts": 4, "moveIndex": 7})
        assert event == DecoKeyUse(ts=4.0, move_index=7)

    def test_typed_event_passes_through(self):
        event = PourAttempt(ts=1.0, legal=True)
        assert parse_event(event) is event

    def test_events_are_immutable(self):
        event = parse_event({"eventType": "pour_attempt", "legal": True})
        with pytest.raises(dataclasses.FrozenInstanceError):
            event.legal = False

    def test_timestamps_are_finite(self):
        events = normalize_events([{"eventType": "level_end", "ts": float("-inf")}])
        assert math.isfinite(events[0].ts)
