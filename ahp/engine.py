"""
AHP Solver
==========
Priority vector and consistency verdict for a pairwise-comparison matrix.

Algorithm (Saaty, "The Analytic Hierarchy Process", 1980):
1. Weights: normalize each column by its sum, average the rows,
   renormalize to absorb floating-point drift.
   Alternative: geometric mean of each row, normalized.
2. lambda_max = mean((A @ w)[i] / w[i])
3. CI = (lambda_max - n) / (n - 1), 0 for n == 1
4. CR = CI / RI(n), 0 when RI(n) == 0 (n <= 2)
5. Consistent when CR < 0.10

A high CR never raises. It is reported (is_consistent=False) and the caller
decides whether to block or accept with a warning.
"""

import logging
from typing import Optional, Sequence, Union

import numpy as np

from errors import DegenerateWeight, InvalidInput
from .models import (
    AhpResult,
    Criterion,
    PairwiseMatrix,
    ProfileSource,
    WeightMethod,
    WeightProfile,
)

logger = logging.getLogger(__name__)

CONSISTENCY_THRESHOLD = 0.10

# Weights at or below this are treated as zero when dividing for lambda_max
DEGENERATE_WEIGHT_EPS = 1e-12

# Random Index by matrix size, n = 1..15 (Saaty; extended rows 11-15)
RANDOM_INDEX = (
    0.00,  # n=1
    0.00,  # n=2
    0.58,  # n=3
    0.90,  # n=4
    1.12,  # n=5
    1.24,  # n=6
    1.32,  # n=7
    1.41,  # n=8
    1.45,  # n=9
    1.49,  # n=10
    1.51,  # n=11
    1.48,  # n=12
    1.56,  # n=13
    1.57,  # n=14
    1.59,  # n=15
)


def random_index(n: int) -> float:
    """RI for an n x n matrix; sizes beyond the table use the last row"""
    if n < 1:
        raise InvalidInput(f"Matrix size must be >= 1, got {n}")
    if n > len(RANDOM_INDEX):
        return RANDOM_INDEX[-1]
    return RANDOM_INDEX[n - 1]


def weights_by_column_normalization(matrix: np.ndarray) -> np.ndarray:
    """Row averages of the column-stochastic matrix"""
    col_sums = matrix.sum(axis=0)
    normalized = matrix / col_sums
    weights = normalized.mean(axis=1)
    return weights / weights.sum()


def weights_by_geometric_mean(matrix: np.ndarray) -> np.ndarray:
    """Normalized row geometric means (computed in log space)"""
    n = matrix.shape[0]
    geometric_means = np.exp(np.log(matrix).sum(axis=1) / n)
    return geometric_means / geometric_means.sum()


_WEIGHT_FUNCTIONS = {
    WeightMethod.COLUMN_NORMALIZATION: weights_by_column_normalization,
    WeightMethod.GEOMETRIC_MEAN: weights_by_geometric_mean,
}


class AhpSolver:
    """
    Derives criterion weights from pairwise judgments.

    Stateless apart from its configuration; safe to share between threads.
    """

    def __init__(
        self,
        method: WeightMethod = WeightMethod.COLUMN_NORMALIZATION,
        consistency_threshold: float = CONSISTENCY_THRESHOLD,
    ):
        self.method = WeightMethod(method)
        self.consistency_threshold = consistency_threshold

    def solve(self, matrix: PairwiseMatrix) -> AhpResult:
        """
        Compute weights, lambda_max, CI, CR and the consistency verdict.

        Raises:
            InvalidInput: matrix not square, not positive or not reciprocal
            DegenerateWeight: a weight collapsed to zero
        """
        matrix.validate()
        a = matrix.values
        n = matrix.size

        # Step 1: priority vector
        weights = _WEIGHT_FUNCTIONS[self.method](a)

        # Step 2: lambda_max
        lambda_max = self._lambda_max(a, weights)

        # Step 3: consistency index
        if n > 1:
            ci = (lambda_max - n) / (n - 1)
            # lambda_max >= n for positive reciprocal matrices; clamp rounding noise
            if ci < 0 and abs(ci) < 1e-9:
                ci = 0.0
        else:
            ci = 0.0

        # Step 4: consistency ratio
        ri = random_index(n)
        cr = ci / ri if ri > 0 else 0.0

        # Step 5: verdict
        is_consistent = cr < self.consistency_threshold

        if not is_consistent:
            logger.warning(
                f"AHP judgments inconsistent: CR={cr:.4f} (threshold {self.consistency_threshold}), n={n}"
            )

        return AhpResult(
            n=n,
            weights=tuple(float(w) for w in weights),
            lambda_max=float(lambda_max),
            consistency_index=float(ci),
            consistency_ratio=float(cr),
            random_index=ri,
            is_consistent=is_consistent,
            method=self.method,
        )

    def derive_profile(
        self,
        criteria: Sequence[Union[str, Criterion]],
        judgments: Sequence[float],
        version: int = 0,
    ) -> WeightProfile:
        """Build the matrix from judgments, solve it and wrap the result as a profile"""
        criteria = _as_criteria(criteria)
        matrix = PairwiseMatrix.build(len(criteria), judgments)
        result = self.solve(matrix)

        return WeightProfile(
            criteria=criteria,
            weights=result.weights,
            lambda_max=result.lambda_max,
            consistency_index=result.consistency_index,
            consistency_ratio=result.consistency_ratio,
            is_consistent=result.is_consistent,
            source=ProfileSource.AHP,
            method=result.method,
            judgments=tuple(float(v) for v in judgments),
            version=version,
        )

    @staticmethod
    def _lambda_max(a: np.ndarray, weights: np.ndarray) -> float:
        if np.any(weights <= DEGENERATE_WEIGHT_EPS):
            i = int(np.argmin(weights))
            raise DegenerateWeight(f"Weight for criterion #{i} collapsed to {weights[i]:.3e}")
        aw = a @ weights
        return float(np.mean(aw / weights))


def _as_criteria(criteria: Sequence[Union[str, Criterion]]) -> tuple:
    result = []
    for i, c in enumerate(criteria):
        if isinstance(c, Criterion):
            result.append(c)
        else:
            result.append(Criterion(name=str(c), display_order=i + 1))

    names = [c.name for c in result]
    if len(set(names)) != len(names):
        raise InvalidInput(f"Criterion names must be unique: {names}")
    return tuple(result)


def solve_judgments(
    n: int,
    upper_triangle_values: Sequence[float],
    method: WeightMethod = WeightMethod.COLUMN_NORMALIZATION,
    consistency_threshold: Optional[float] = None,
) -> AhpResult:
    """
    Convenience wrapper: build and solve in one call.

    Example:
        result = solve_judgments(3, [3, 5, 2])
        print(result.weights, result.consistency_ratio)
    """
    solver = AhpSolver(
        method=method,
        consistency_threshold=CONSISTENCY_THRESHOLD if consistency_threshold is None else consistency_threshold,
    )
    return solver.solve(PairwiseMatrix.build(n, upper_triangle_values))
