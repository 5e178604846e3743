"""
Evaluation Models
=================
Per-employee evaluation history and roster-level reports.
"""

from typing import List, Optional

from pydantic import Field

from classification.models import (
    ClassificationResult,
    ClassificationThresholds,
    PerformanceLevel,
    Tier,
    TrendSummary,
)
from records import Record
from scoring.models import Employee, PERIOD_PATTERN, ScoreResult, ScoringParameters


class EmployeeEvaluation(Record):
    """Scores, trends and tiers for every evaluated period, oldest first"""
    employee_id: str
    name: str = ""
    scores: List[ScoreResult] = Field(default_factory=list)
    trends: List[TrendSummary] = Field(default_factory=list)
    classifications: List[ClassificationResult] = Field(default_factory=list)

    @property
    def latest_score(self) -> Optional[ScoreResult]:
        return self.scores[-1] if self.scores else None

    @property
    def latest_trend(self) -> Optional[TrendSummary]:
        return self.trends[-1] if self.trends else None

    @property
    def latest_classification(self) -> Optional[ClassificationResult]:
        return self.classifications[-1] if self.classifications else None

    def at(self, period: str) -> Optional[ClassificationResult]:
        for result in self.classifications:
            if result.period == period:
                return result
        return None


class RosterEntry(Record):
    """Flat row for red-zone / watch / top-performer listings"""
    employee_id: str
    name: str = ""
    period: str
    tier: Tier
    performance_level: Optional[PerformanceLevel] = None
    reason: str
    current_salary: float
    composite_score: Optional[float] = None
    hcroi: Optional[float] = None
    achievement_rate: Optional[float] = None
    break_even_sales: float
    hcroi_delta: Optional[float] = None
    score_delta: Optional[float] = None
    consecutive_qualifying_months: int = 0
    unresolved_alert_count: int = 0
    distance_to_red_zone: Optional[float] = None


class RosterSummary(Record):
    """Headline figures for one period"""
    period: str
    employee_count: int
    average_hcroi: Optional[float] = None
    average_score: Optional[float] = None
    red_zone_count: int = 0
    watch_count: int = 0
    top_performer_count: int = 0
    unresolved_alert_count: int = 0
    company_revenue: float = 0.0


class BepStatus(Record):
    """Company-level break-even progress for one period"""
    period: str
    target_revenue: float = 0.0
    current_revenue: float = 0.0
    bep_revenue: float = 0.0
    achievement_rate: Optional[float] = None
    bep_achievement_rate: Optional[float] = None
    remaining_to_bep: float = 0.0
    remaining_to_target: float = 0.0
    bep_achieved: bool = False
    target_achieved: bool = False
    contributing_employees: int = 0


class RosterReport(Record):
    """Everything the dashboard needs for one period"""
    period: str
    profile_version: int
    evaluations: List[EmployeeEvaluation]
    summary: RosterSummary
    red_zone: List[RosterEntry] = Field(default_factory=list)
    watch_list: List[RosterEntry] = Field(default_factory=list)
    top_performers: List[RosterEntry] = Field(default_factory=list)
    bep_status: BepStatus


# ============== Request models ==============

class EmployeeEvaluationRequest(Record):
    employee: Employee
    period: Optional[str] = Field(default=None, pattern=PERIOD_PATTERN)
    parameters: ScoringParameters = Field(default_factory=ScoringParameters)
    thresholds: ClassificationThresholds = Field(default_factory=ClassificationThresholds)


class RosterEvaluationRequest(Record):
    employees: List[Employee] = Field(..., min_length=1)
    period: Optional[str] = Field(default=None, pattern=PERIOD_PATTERN)
    parameters: ScoringParameters = Field(default_factory=ScoringParameters)
    thresholds: ClassificationThresholds = Field(default_factory=ClassificationThresholds)
