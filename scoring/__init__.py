# Scoring Engine Module
# Composite score, break-even sales and HCROI per employee per period

from .models import (
    ScoringParameters,
    PerformanceRecord,
    EmployeeFinancials,
    Employee,
    ScoreCompleteness,
    ScoreResult,
    PERIOD_PATTERN,
)
from .engine import ScoreEngine, score_employee

__all__ = [
    "ScoringParameters",
    "PerformanceRecord",
    "EmployeeFinancials",
    "Employee",
    "ScoreCompleteness",
    "ScoreResult",
    "PERIOD_PATTERN",
    "ScoreEngine",
    "score_employee",
]
