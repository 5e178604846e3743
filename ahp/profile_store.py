"""
Active weight profile store.

Exactly one WeightProfile is active at a time. Replacement is copy-on-write:
the new frozen profile is fully built first, then a single reference is
swapped under the writer lock. Readers never lock and never observe a
half-built profile.
"""

import logging
import math
import threading
from collections import deque
from typing import List, Optional, Sequence

from pydantic import ValidationError

from errors import InvalidWeights
from .models import (
    DEFAULT_CRITERIA,
    WEIGHT_SUM_TOLERANCE,
    Criterion,
    ProfileSource,
    WeightProfile,
)

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_SIZE = 50


def equal_weight_profile(criteria: Sequence[Criterion] = DEFAULT_CRITERIA) -> WeightProfile:
    """Bootstrap profile: 1/n for each criterion"""
    n = len(criteria)
    weights = [1.0 / n] * n
    # absorb rounding so the sum check is exact
    weights[-1] = 1.0 - sum(weights[:-1])
    return WeightProfile(
        criteria=tuple(criteria),
        weights=tuple(weights),
        source=ProfileSource.DEFAULT,
        version=1,
    )


class WeightProfileStore:
    """Versioned holder of the active profile with an audit history"""

    def __init__(
        self,
        initial: Optional[WeightProfile] = None,
        history_size: int = DEFAULT_HISTORY_SIZE,
    ):
        self._lock = threading.Lock()
        self._history: deque = deque(maxlen=history_size)
        self._initial = initial or equal_weight_profile()
        self._active = self._stamp(self._initial, 1)

    @property
    def version(self) -> int:
        return self._active.version

    def get_active(self) -> WeightProfile:
        """Current profile; never None"""
        return self._active

    def history(self) -> List[WeightProfile]:
        """Previously active profiles, oldest first"""
        with self._lock:
            return list(self._history)

    def activate(self, profile: WeightProfile) -> WeightProfile:
        """Make an already-built profile (usually AHP-derived) the active one"""
        with self._lock:
            new_profile = self._stamp(profile, self._active.version + 1)
            self._swap(new_profile)
        return new_profile

    def set_weights(self, criteria_names: Sequence[str], weights: Sequence[float]) -> WeightProfile:
        """
        Assign weights directly, bypassing AHP.

        Weights within 1e-6 of summing to 1 are renormalized; anything else is
        rejected. Criteria keep the description of a same-named criterion in
        the active profile.

        Raises:
            InvalidWeights: length mismatch, duplicate/empty names, negative or
                non-finite weight, sum outside tolerance
        """
        names = list(criteria_names)
        values = [float(w) for w in weights]

        if len(names) != len(values):
            raise InvalidWeights(f"{len(names)} criteria names but {len(values)} weights")
        if not names:
            raise InvalidWeights("At least one criterion is required")
        if len(set(names)) != len(names):
            raise InvalidWeights(f"Criterion names must be unique: {names}")
        for name, w in zip(names, values):
            if not math.isfinite(w) or w < 0:
                raise InvalidWeights(f"Weight for '{name}' must be a non-negative number, got {w}")

        total = sum(values)
        if abs(total - 1.0) > WEIGHT_SUM_TOLERANCE:
            raise InvalidWeights(f"Weights must sum to 1 (got {total:.8f})")
        values = [w / total for w in values]

        known = {c.name: c for c in self._active.criteria}
        try:
            criteria = tuple(
                Criterion(
                    name=name,
                    description=known[name].description if name in known else "",
                    display_order=i + 1,
                )
                for i, name in enumerate(names)
            )
            candidate = WeightProfile(
                criteria=criteria,
                weights=tuple(values),
                source=ProfileSource.MANUAL,
            )
        except ValidationError as e:
            raise InvalidWeights(str(e)) from e

        return self.activate(candidate)

    def reset(self) -> WeightProfile:
        """Back to the bootstrap state: the initial profile at v1, empty history"""
        with self._lock:
            self._history.clear()
            self._active = self._stamp(self._initial, 1)
        logger.info(f"Weight profile store reset to its initial {self._initial.source.value} profile")
        return self._active

    def _swap(self, new_profile: WeightProfile) -> None:
        old = self._active
        self._history.append(old)
        self._active = new_profile
        logger.info(
            f"Active weight profile v{old.version} -> v{new_profile.version} "
            f"({new_profile.source.value}, {len(new_profile.criteria)} criteria)"
        )

    @staticmethod
    def _stamp(profile: WeightProfile, version: int) -> WeightProfile:
        return profile.model_copy(update={"version": version})


# Process-wide instance used by the HTTP layer
default_store = WeightProfileStore()
