"""
AHP Models
==========
Data objects for deriving criterion weights with the Analytic Hierarchy Process.

Key principles:
1. Judgments are supplied as the flattened upper triangle of the pairwise
   matrix, row-major (a12, a13, ..., a1n, a23, ...). Every client follows
   this order.
2. The lower triangle and the diagonal are derived, never supplied.
3. A WeightProfile is immutable. Replacing the active profile means building
   a new one and swapping the reference (see profile_store).
4. Manual profiles bypass AHP and therefore carry no consistency figures.
"""

import math
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np
from pydantic import Field, field_validator, model_validator

from errors import InvalidInput
from records import FrozenRecord, Record

RECIPROCAL_TOLERANCE = 1e-4
WEIGHT_SUM_TOLERANCE = 1e-6


class ProfileSource(str, Enum):
    """Provenance of a weight profile"""
    AHP = "ahp"
    MANUAL = "manual"
    DEFAULT = "default"


class WeightMethod(str, Enum):
    """Priority vector approximation"""
    COLUMN_NORMALIZATION = "column_normalization"
    GEOMETRIC_MEAN = "geometric_mean"


class Criterion(FrozenRecord):
    """Evaluation criterion, identified by name"""
    name: str = Field(..., min_length=1, description="Unique criterion name")
    description: str = Field(default="", description="What the criterion measures")
    display_order: int = Field(default=0, description="Position in listings")


# Bootstrap criteria (sales outcome, attendance, other contributions)
DEFAULT_CRITERIA: Tuple[Criterion, ...] = (
    Criterion(name="sales_performance", description="Revenue achievement against BEP", display_order=1),
    Criterion(name="attendance", description="Attendance and punctuality", display_order=2),
    Criterion(name="other_contributions", description="Project and team contributions", display_order=3),
)


class PairwiseMatrix:
    """
    Reciprocal pairwise-comparison matrix.

    Invariants after build(): m[i][i] == 1 and m[i][j] == 1 / m[j][i].
    The backing array is read-only.
    """

    def __init__(self, values: np.ndarray):
        array = np.array(values, dtype=float)
        array.setflags(write=False)
        self._values = array

    @staticmethod
    def expected_judgment_count(n: int) -> int:
        return n * (n - 1) // 2

    @classmethod
    def build(cls, n: int, upper_triangle_values: Sequence[float]) -> "PairwiseMatrix":
        """
        Build the full matrix from upper-triangle judgments.

        Fill order is row-major over i < j:
            n=3 -> [a12, a13, a23]
            n=4 -> [a12, a13, a14, a23, a24, a34]

        Raises:
            InvalidInput: n < 2, wrong number of judgments, or a value <= 0
        """
        if n < 2:
            raise InvalidInput(f"Pairwise matrix needs at least 2 criteria, got n={n}")

        values = list(upper_triangle_values)
        expected = cls.expected_judgment_count(n)
        if len(values) != expected:
            raise InvalidInput(
                f"Expected {expected} upper-triangle judgments for n={n}, got {len(values)}"
            )

        for idx, value in enumerate(values):
            if not math.isfinite(value) or value <= 0:
                raise InvalidInput(f"Judgment #{idx} must be a positive number, got {value}")

        matrix = np.ones((n, n), dtype=float)
        idx = 0
        for i in range(n - 1):
            for j in range(i + 1, n):
                matrix[i, j] = values[idx]
                matrix[j, i] = 1.0 / values[idx]
                idx += 1

        return cls(matrix)

    @classmethod
    def from_rows(cls, rows: Sequence[Sequence[float]]) -> "PairwiseMatrix":
        """Wrap a full matrix supplied by the caller. Validated by the solver."""
        try:
            array = np.array(rows, dtype=float)
        except (TypeError, ValueError) as e:
            raise InvalidInput(f"Matrix rows are not numeric or not rectangular: {e}") from e
        return cls(array)

    @property
    def values(self) -> np.ndarray:
        return self._values

    @property
    def size(self) -> int:
        return self._values.shape[0] if self._values.ndim == 2 else 0

    def upper_triangle(self) -> List[float]:
        """Judgments in canonical order"""
        n = self.size
        return [float(self._values[i, j]) for i in range(n - 1) for j in range(i + 1, n)]

    def validate(self) -> None:
        """
        Check structure: square, positive, unit diagonal, reciprocal.

        Raises:
            InvalidInput: on the first violation found
        """
        m = self._values
        if m.ndim != 2 or m.shape[0] != m.shape[1]:
            raise InvalidInput(f"Pairwise matrix must be square, got shape {m.shape}")
        n = m.shape[0]
        if n < 1:
            raise InvalidInput("Pairwise matrix is empty")
        if not np.all(np.isfinite(m)):
            raise InvalidInput("Pairwise matrix contains non-finite values")
        if np.any(m <= 0):
            i, j = np.argwhere(m <= 0)[0]
            raise InvalidInput(f"All entries must be positive: matrix[{i}][{j}]={m[i, j]:.4f}")

        diagonal = np.diag(m)
        bad_diag = np.abs(diagonal - 1.0) > RECIPROCAL_TOLERANCE
        if np.any(bad_diag):
            i = int(np.argmax(bad_diag))
            raise InvalidInput(f"Diagonal entries must be 1: matrix[{i}][{i}]={m[i, i]:.4f}")

        # m[i][j] * m[j][i] == 1, checked as a product so large judgments compare relatively
        deviation = np.abs(m * m.T - 1.0)
        if np.any(deviation > RECIPROCAL_TOLERANCE):
            i, j = np.argwhere(deviation > RECIPROCAL_TOLERANCE)[0]
            raise InvalidInput(
                f"Reciprocity violated: matrix[{i}][{j}]={m[i, j]:.4f}, "
                f"expected {1.0 / m[j, i]:.4f} (1/matrix[{j}][{i}])"
            )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PairwiseMatrix):
            return NotImplemented
        return self._values.shape == other._values.shape and bool(np.allclose(self._values, other._values))

    def __repr__(self) -> str:
        return f"PairwiseMatrix(n={self.size}, judgments={self.upper_triangle()})"


class AhpResult(FrozenRecord):
    """Raw solver output for one matrix"""
    n: int
    weights: Tuple[float, ...]
    lambda_max: float
    consistency_index: float
    consistency_ratio: float
    random_index: float
    is_consistent: bool
    method: WeightMethod


class WeightProfile(FrozenRecord):
    """
    Named weight vector, one weight per criterion.

    Created by the AHP solver (with consistency figures) or by direct
    assignment (lambda_max / CI / CR / is_consistent left as None).
    """
    criteria: Tuple[Criterion, ...] = Field(..., min_length=1)
    weights: Tuple[float, ...] = Field(..., min_length=1)
    lambda_max: Optional[float] = None
    consistency_index: Optional[float] = None
    consistency_ratio: Optional[float] = None
    is_consistent: Optional[bool] = None
    source: ProfileSource = ProfileSource.DEFAULT
    method: Optional[WeightMethod] = None
    judgments: Optional[Tuple[float, ...]] = Field(
        default=None,
        description="Upper-triangle judgments the weights were derived from (AHP only)",
    )
    version: int = Field(default=0, ge=0)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @field_validator("weights")
    @classmethod
    def validate_weight_range(cls, v):
        for w in v:
            if not math.isfinite(w) or w < 0 or w > 1 + WEIGHT_SUM_TOLERANCE:
                raise ValueError(f"weights must lie in [0, 1], got {w}")
        return v

    @model_validator(mode="after")
    def validate_shape(self):
        if len(self.criteria) != len(self.weights):
            raise ValueError(
                f"{len(self.criteria)} criteria but {len(self.weights)} weights"
            )
        names = [c.name for c in self.criteria]
        if len(set(names)) != len(names):
            raise ValueError(f"criterion names must be unique: {names}")
        if abs(sum(self.weights) - 1.0) > WEIGHT_SUM_TOLERANCE:
            raise ValueError(f"weights must sum to 1, got {sum(self.weights):.8f}")
        return self

    @property
    def criterion_names(self) -> List[str]:
        return [c.name for c in self.criteria]

    def as_mapping(self) -> Dict[str, float]:
        return dict(zip(self.criterion_names, self.weights))

    def weight_of(self, name: str) -> float:
        try:
            return self.as_mapping()[name]
        except KeyError:
            raise InvalidInput(f"Unknown criterion: {name}") from None


# ============== Request models ==============

class AhpCalculationRequest(Record):
    """Criteria plus their pairwise judgments"""
    criteria: List[Criterion] = Field(..., min_length=2)
    upper_triangle_values: List[float] = Field(..., description="Judgments, row-major upper triangle")
    method: WeightMethod = WeightMethod.COLUMN_NORMALIZATION
    activate: bool = Field(default=True, description="Make the result the active profile")
    require_consistent: bool = Field(
        default=False,
        description="Refuse to activate when CR >= threshold",
    )

    @field_validator("criteria", mode="before")
    @classmethod
    def coerce_names(cls, v):
        # Bare names are accepted; display order follows list position
        if isinstance(v, list):
            return [
                {"name": c, "display_order": i + 1} if isinstance(c, str) else c
                for i, c in enumerate(v)
            ]
        return v


class ManualWeightsRequest(Record):
    """Direct weight assignment (bypasses AHP)"""
    criteria_names: List[str] = Field(..., min_length=1)
    weights: List[float] = Field(..., min_length=1)


class AhpWeightResponse(Record):
    """Profile plus a human-readable verdict"""
    profile: WeightProfile
    activated: bool
    message: str
