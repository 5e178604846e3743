"""
Unit tests for the active weight profile store
==============================================
Tests cover:
1. Bootstrap equal-weight profile
2. Manual weights (validation, renormalization, round trip)
3. Activation of AHP profiles, versioning and history
4. Atomic replacement under concurrent readers
"""

import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import threading

import pytest

from ahp import (
    DEFAULT_CRITERIA,
    AhpSolver,
    ProfileSource,
    WeightProfileStore,
    equal_weight_profile,
)
from errors import InvalidInput, InvalidWeights


@pytest.fixture
def store():
    return WeightProfileStore()


class TestBootstrap:

    def test_active_profile_is_never_none(self, store):
        assert store.get_active() is not None

    def test_default_is_equal_weight(self, store):
        profile = store.get_active()
        n = len(DEFAULT_CRITERIA)
        assert profile.source == ProfileSource.DEFAULT
        assert profile.weights == pytest.approx([1 / n] * n)
        assert profile.lambda_max is None
        assert profile.is_consistent is None
        assert profile.version == 1

    def test_equal_weight_profile_sums_to_one(self):
        profile = equal_weight_profile()
        assert sum(profile.weights) == pytest.approx(1.0, abs=1e-12)


class TestManualWeights:

    def test_round_trip(self, store):
        names = ["sales", "attendance", "other"]
        weights = [0.5, 0.3, 0.2]
        store.set_weights(names, weights)

        active = store.get_active()
        assert active.criterion_names == names
        assert active.weights == pytest.approx(weights, abs=1e-6)
        assert active.source == ProfileSource.MANUAL

    def test_manual_profile_claims_no_consistency(self, store):
        profile = store.set_weights(["a", "b"], [0.6, 0.4])
        assert profile.lambda_max is None
        assert profile.consistency_index is None
        assert profile.consistency_ratio is None
        assert profile.is_consistent is None

    def test_renormalizes_within_tolerance(self, store):
        profile = store.set_weights(["a", "b"], [0.6000004, 0.4])
        assert sum(profile.weights) == pytest.approx(1.0, abs=1e-12)

    def test_rejects_sum_outside_tolerance(self, store):
        with pytest.raises(InvalidWeights, match="sum to 1"):
            store.set_weights(["a", "b"], [0.6, 0.3])

    def test_rejects_length_mismatch(self, store):
        with pytest.raises(InvalidWeights):
            store.set_weights(["a", "b", "c"], [0.5, 0.5])

    def test_rejects_negative_weight(self, store):
        with pytest.raises(InvalidWeights):
            store.set_weights(["a", "b"], [1.2, -0.2])

    def test_rejects_duplicate_names(self, store):
        with pytest.raises(InvalidWeights, match="unique"):
            store.set_weights(["a", "a"], [0.5, 0.5])

    def test_invalid_weights_is_invalid_input(self, store):
        with pytest.raises(InvalidInput):
            store.set_weights([], [])

    def test_failed_update_keeps_previous_profile(self, store):
        before = store.get_active()
        with pytest.raises(InvalidWeights):
            store.set_weights(["a", "b"], [0.9, 0.9])
        assert store.get_active() is before

    def test_zero_weight_allowed(self, store):
        profile = store.set_weights(["a", "b"], [1.0, 0.0])
        assert profile.weights == (1.0, 0.0)

    def test_keeps_known_descriptions(self, store):
        first = DEFAULT_CRITERIA[0]
        profile = store.set_weights([first.name, "new"], [0.5, 0.5])
        assert profile.criteria[0].description == first.description
        assert profile.criteria[1].description == ""


class TestActivation:

    def test_versions_increase(self, store):
        v1 = store.version
        store.set_weights(["a", "b"], [0.5, 0.5])
        profile = store.activate(AhpSolver().derive_profile(["a", "b"], [3]))
        assert profile.version == v1 + 2
        assert store.get_active().source == ProfileSource.AHP

    def test_history_keeps_previous_profiles(self, store):
        bootstrap = store.get_active()
        store.set_weights(["a", "b"], [0.5, 0.5])
        store.set_weights(["a", "b"], [0.7, 0.3])

        history = store.history()
        assert len(history) == 2
        assert history[0] == bootstrap
        assert history[1].weights == (0.5, 0.5)

    def test_history_is_bounded(self):
        store = WeightProfileStore(history_size=3)
        for i in range(10):
            w = (i + 1) / 20
            store.set_weights(["a", "b"], [w, 1 - w])
        assert len(store.history()) == 3

    def test_reset_restores_equal_weights(self, store):
        store.set_weights(["a", "b"], [0.9, 0.1])
        profile = store.reset()
        assert profile.source == ProfileSource.DEFAULT
        assert profile.criterion_names == [c.name for c in DEFAULT_CRITERIA]
        assert profile.version == 1
        assert store.history() == []

    def test_reset_restores_custom_initial_profile(self):
        initial = AhpSolver().derive_profile(["a", "b"], [3])
        store = WeightProfileStore(initial=initial)
        store.set_weights(["x", "y"], [0.5, 0.5])

        profile = store.reset()
        assert profile.source == ProfileSource.AHP
        assert profile.criterion_names == ["a", "b"]
        assert profile.weights == initial.weights
        assert profile.version == 1
        assert store.history() == []

    def test_profiles_are_immutable(self, store):
        profile = store.get_active()
        with pytest.raises(Exception):
            profile.weights = (1.0,)


class TestAtomicSwap:

    def test_readers_never_see_partial_profile(self, store):
        """Every observed profile is internally consistent"""
        stop = threading.Event()
        errors = []

        def reader():
            while not stop.is_set():
                profile = store.get_active()
                if len(profile.criteria) != len(profile.weights):
                    errors.append("shape mismatch")
                if abs(sum(profile.weights) - 1.0) > 1e-6:
                    errors.append("sum mismatch")

        readers = [threading.Thread(target=reader) for _ in range(4)]
        for t in readers:
            t.start()

        for i in range(200):
            n = 2 + i % 4
            store.set_weights([f"c{k}" for k in range(n)], [1 / n] * n)

        stop.set()
        for t in readers:
            t.join()

        assert errors == []
        assert store.version == 201
