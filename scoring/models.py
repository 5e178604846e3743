"""
Scoring Engine Models
=====================
Pydantic models for per-employee, per-period scoring.

Key principles:
1. Composite score is the weight-profile dot product of criterion sub-scores
   (0-1000 band).
2. Break-even sales = monthly salary x cost multiplier (fully-loaded cost).
3. HCROI = revenue / break-even sales. Measured achieved sales beat the
   estimate derived from a reported achievement rate.
4. Missing data is None, never zero: no target -> no achievement rate,
   no revenue -> no HCROI, no sub-scores -> no composite score.
5. Missing sub-scores: exclude the criterion & rescale weights, show completeness
"""

import logging
from typing import Dict, List, Literal, Optional

from pydantic import Field

from records import FrozenRecord, Record

logger = logging.getLogger(__name__)

PERIOD_PATTERN = r"^\d{4}-(0[1-9]|1[0-2])$"

SCORE_SCALE_MAX = 1000.0


class ScoringParameters(Record):
    """Cost assumptions used for BEP and HCROI"""
    cost_multiplier: float = Field(
        default=1.5, ge=0,
        description="Fully-loaded monthly cost as a multiple of base monthly salary",
    )
    insurance_rate: Optional[float] = Field(
        default=0.0945, ge=0, lt=1,
        description="Social insurance / benefits load on monthly salary (Fitz-enz HCROI)",
    )
    fixed_cost_per_person: Optional[float] = Field(
        default=500_000, ge=0,
        description="Monthly non-payroll operating cost per person (Fitz-enz HCROI)",
    )
    score_scale_max: float = Field(
        default=SCORE_SCALE_MAX, gt=0,
        description="Upper bound of the sub-score band",
    )


class PerformanceRecord(FrozenRecord):
    """Sales outcome for one employee in one month"""
    period: str = Field(..., pattern=PERIOD_PATTERN, description="Year-month, e.g. 2024-07")
    target_sales: float = Field(default=0.0, ge=0)
    achieved_sales: float = Field(default=0.0, ge=0)
    profit: float = 0.0
    sub_scores: Optional[Dict[str, float]] = Field(
        default=None,
        description="Criterion sub-scores for this period (overrides the current ones)",
    )


class EmployeeFinancials(Record):
    """Salary and current criterion sub-scores"""
    current_salary: float = Field(..., gt=0, description="Annual base salary")
    criterion_sub_scores: Dict[str, float] = Field(default_factory=dict)
    reported_achievement_rate: Optional[float] = Field(
        default=None, ge=0,
        description="Externally reported achievement % used when no record exists",
    )


class Employee(Record):
    """Employee aggregate: financials, monthly records, open alerts"""
    employee_id: str = Field(..., min_length=1)
    name: str = ""
    financials: EmployeeFinancials
    performance_records: List[PerformanceRecord] = Field(default_factory=list)
    unresolved_alert_count: int = Field(default=0, ge=0)

    def record_for(self, period: str) -> Optional[PerformanceRecord]:
        # last write wins if duplicates slipped in through the constructor
        found = None
        for record in self.performance_records:
            if record.period == period:
                found = record
        return found

    def periods(self) -> List[str]:
        """Recorded periods, chronological, without duplicates"""
        return sorted({r.period for r in self.performance_records})

    def record_performance(self, record: PerformanceRecord) -> Optional[PerformanceRecord]:
        """
        Store a record, overwriting any existing record for the same period.

        Returns the replaced record (None when the period was new).
        """
        replaced = self.record_for(record.period)
        kept = [r for r in self.performance_records if r.period != record.period]
        kept.append(record)
        kept.sort(key=lambda r: r.period)
        self.performance_records = kept

        if replaced is not None:
            logger.warning(
                f"Performance record overwritten: employee={self.employee_id}, period={record.period}, "
                f"achieved {replaced.achieved_sales} -> {record.achieved_sales}, "
                f"target {replaced.target_sales} -> {record.target_sales}"
            )
        return replaced


class ScoreCompleteness(FrozenRecord):
    """Which criteria contributed to the composite score"""
    available_criteria: List[str] = Field(default_factory=list)
    missing_criteria: List[str] = Field(default_factory=list)
    weight_coverage: float = Field(
        default=1.0,
        description="Share of profile weight backed by sub-scores (weights rescaled by 1/coverage)",
    )


class ScoreResult(FrozenRecord):
    """Derived score for one employee and one period"""
    period: str
    composite_score: Optional[float] = None
    hcroi: Optional[float] = None
    break_even_sales: float
    achievement_rate: Optional[float] = None
    current_revenue_estimate: Optional[float] = None
    revenue_source: Optional[Literal["achieved_sales", "achievement_rate"]] = None
    fitz_enz_hcroi: Optional[float] = None
    completeness: ScoreCompleteness = Field(default_factory=ScoreCompleteness)
