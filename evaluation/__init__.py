# Evaluation Module
# Scoring -> trend -> classification per employee, and roster reports

from .models import (
    EmployeeEvaluation,
    RosterEntry,
    RosterSummary,
    BepStatus,
    RosterReport,
    EmployeeEvaluationRequest,
    RosterEvaluationRequest,
)
from .pipeline import evaluate_employee, evaluate_roster

__all__ = [
    "EmployeeEvaluation",
    "RosterEntry",
    "RosterSummary",
    "BepStatus",
    "RosterReport",
    "EmployeeEvaluationRequest",
    "RosterEvaluationRequest",
    "evaluate_employee",
    "evaluate_roster",
]
