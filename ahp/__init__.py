# AHP Module
# Criterion weights from pairwise judgments, plus the active profile store

from .models import (
    Criterion,
    PairwiseMatrix,
    AhpResult,
    WeightProfile,
    WeightMethod,
    ProfileSource,
    AhpCalculationRequest,
    ManualWeightsRequest,
    AhpWeightResponse,
    DEFAULT_CRITERIA,
)
from .engine import AhpSolver, random_index, solve_judgments, CONSISTENCY_THRESHOLD
from .profile_store import WeightProfileStore, equal_weight_profile, default_store

__all__ = [
    "Criterion",
    "PairwiseMatrix",
    "AhpResult",
    "WeightProfile",
    "WeightMethod",
    "ProfileSource",
    "AhpCalculationRequest",
    "ManualWeightsRequest",
    "AhpWeightResponse",
    "DEFAULT_CRITERIA",
    "AhpSolver",
    "random_index",
    "solve_judgments",
    "CONSISTENCY_THRESHOLD",
    "WeightProfileStore",
    "equal_weight_profile",
    "default_store",
]
