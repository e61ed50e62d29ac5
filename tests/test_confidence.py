"""
Tests for softmax, entropy and confidence.

See game/bank/confidence.py for implementation.
"""

import math

import pytest

from game.bank.config import get_config
from game.bank.confidence import estimate_confidence, normalized_entropy, softmax
from game.bank.core import ARCHETYPES

UNIFORM = {k: 0.25 for k in ARCHETYPES}


class TestSoftmax:

    def test_zero_scores_are_uniform(self):
        assert softmax({k: 0.0 for k in ARCHETYPES}, 3.0) == UNIFORM

    def test_temperature(self):
        probs = softmax({"Blueprint": 3.0, "Action": 0.0, "Nurturing": 0.0, "Knowledge": 0.0}, 3.0)
        expected = math.e / (math.e + 3)
        assert probs["Blueprint"] == pytest.approx(expected)

    def test_extreme_scores_stay_valid(self):
        probs = softmax({"Blueprint": 30.0, "Action": -30.0, "Nurturing": -30.0, "Knowledge": -30.0}, 3.0)
        assert sum(probs.values()) == pytest.approx(1.0, abs=1e-9)
        assert all(0.0 <= p <= 1.0 for p in probs.values())


class TestEntropy:

    def test_uniform_is_one(self):
        assert normalized_entropy(UNIFORM) == pytest.approx(1.0, abs=1e-9)

    def test_certain_is_zero(self):
        probs = {"Blueprint": 1.0, "Action": 0.0, "Nurturing": 0.0, "Knowledge": 0.0}
        assert normalized_entropy(probs) == pytest.approx(0.0, abs=1e-9)


class TestConfidence:

    def test_no_events_no_confidence(self):
        assert estimate_confidence(UNIFORM, 0, 0.0, False, get_config()) == 0.0

    def test_saturates_at_120_events(self):
        sharp = {"Blueprint": 1.0, "Action": 0.0, "Nurturing": 0.0, "Knowledge": 0.0}
        assert estimate_confidence(sharp, 120, 0.0, False, get_config()) == pytest.approx(1.0, abs=1e-9)
        assert estimate_confidence(sharp, 500, 0.0, False, get_config()) == pytest.approx(1.0, abs=1e-9)

    def test_uniform_probabilities_keep_floor(self):
        assert estimate_confidence(UNIFORM, 120, 0.0, False, get_config()) == pytest.approx(0.55, abs=1e-9)

    def test_illegal_rate_penalty(self):
        full = estimate_confidence(UNIFORM, 120, 0.0, False, get_config())
        sloppy = estimate_confidence(UNIFORM, 120, 0.2, False, get_config())
        assert sloppy == pytest.approx(full * 0.7)

    def test_competence_floors_at_zero(self):
        assert estimate_confidence(UNIFORM, 120, 0.9, False, get_config()) == 0.0

    def test_learning_cap(self):
        sharp = {"Blueprint": 1.0, "Action": 0.0, "Nurturing": 0.0, "Knowledge": 0.0}
        assert estimate_confidence(sharp, 120, 0.0, True, get_config()) == 0.45

    def test_formula(self):
        probs = softmax({"Blueprint": 1.0, "Action": 0.0, "Nurturing": 0.0, "Knowledge": 0.0}, 3.0)
        base = math.log(21) / math.log(121)
        separation = 1 - normalized_entropy(probs)
        expected = base * 1.0 * (0.55 + 0.45 * separation)
        assert estimate_confidence(probs, 20, 0.0, False, get_config()) == pytest.approx(expected)
