"""
Scoring Engine
==============
Composite score, break-even sales, achievement rate and HCROI per employee
per period.

Key features:
1. Weighted composite score from the active WeightProfile
2. BEP from monthly salary and a configured cost multiplier
3. Revenue: measured achieved sales first, reported achievement rate second
4. Missing data handling (exclude & rescale weights, None instead of zero)
5. Fitz-enz HCROI as a secondary indicator when cost parameters are set

Pure: no side effects, no I/O.
"""

import logging
import math
from typing import List, Optional, Tuple

from ahp.models import WeightProfile
from errors import InvalidInput
from .models import (
    Employee,
    PerformanceRecord,
    ScoreCompleteness,
    ScoreResult,
    ScoringParameters,
)

logger = logging.getLogger(__name__)

MONTHS_PER_YEAR = 12


class ScoreEngine:
    """
    Per-period scoring for one employee.

    Parameters are fixed at construction; the weight profile is passed per
    call so that every score is tied to exactly one profile snapshot.
    """

    def __init__(self, parameters: Optional[ScoringParameters] = None):
        self.params = parameters or ScoringParameters()

    def score(self, profile: WeightProfile, employee: Employee, period: str) -> ScoreResult:
        """Score one employee for one period"""
        salary = employee.financials.current_salary
        if salary <= 0:
            raise InvalidInput(f"Salary must be > 0 (employee={employee.employee_id})")

        record = employee.record_for(period)

        # Step 1: composite score
        sub_scores = self._sub_scores_for(employee, record)
        composite, completeness = self._composite_score(profile, sub_scores)

        # Step 2: break-even sales
        break_even = self.break_even_sales(salary)

        # Step 3: achievement rate
        achievement_rate = self.achievement_rate(record) if record is not None else None

        # Step 4: revenue (measured first, estimate second)
        revenue, source = self._revenue_estimate(employee, record, break_even)

        # Step 5: HCROI
        hcroi = None
        if revenue is not None:
            hcroi = revenue / break_even if break_even > 0 else 0.0

        fitz_enz = self._fitz_enz_hcroi(salary, record)

        logger.debug(
            f"Scored employee={employee.employee_id} period={period}: "
            f"score={composite}, hcroi={hcroi}, bep={break_even:.0f}"
        )

        return ScoreResult(
            period=period,
            composite_score=composite,
            hcroi=hcroi,
            break_even_sales=break_even,
            achievement_rate=achievement_rate,
            current_revenue_estimate=revenue,
            revenue_source=source,
            fitz_enz_hcroi=fitz_enz,
            completeness=completeness,
        )

    def score_history(self, profile: WeightProfile, employee: Employee) -> List[ScoreResult]:
        """Score every recorded period, oldest first"""
        return [self.score(profile, employee, period) for period in employee.periods()]

    def break_even_sales(self, annual_salary: float) -> float:
        """Monthly revenue needed to cover fully-loaded cost"""
        return (annual_salary / MONTHS_PER_YEAR) * self.params.cost_multiplier

    @staticmethod
    def achievement_rate(record: PerformanceRecord) -> Optional[float]:
        """Achieved / target in %, None when there is no target"""
        if record.target_sales == 0:
            return None
        return record.achieved_sales / record.target_sales * 100

    def _sub_scores_for(self, employee: Employee, record: Optional[PerformanceRecord]) -> dict:
        if record is not None and record.sub_scores is not None:
            return record.sub_scores
        return employee.financials.criterion_sub_scores

    def _composite_score(
        self, profile: WeightProfile, sub_scores: dict
    ) -> Tuple[Optional[float], ScoreCompleteness]:
        """Weighted sum, rescaled over the criteria that have a sub-score"""
        scale_max = self.params.score_scale_max
        available, missing = [], []
        weighted_sum = 0.0
        covered_weight = 0.0

        for criterion, weight in zip(profile.criteria, profile.weights):
            value = sub_scores.get(criterion.name)
            if value is None:
                missing.append(criterion.name)
                continue
            # NaN fails every comparison, so check finiteness explicitly
            if not math.isfinite(value) or value < 0 or value > scale_max:
                raise InvalidInput(
                    f"Sub-score for '{criterion.name}' must be within 0-{scale_max:g}, got {value}"
                )
            available.append(criterion.name)
            weighted_sum += weight * value
            covered_weight += weight

        if not available or covered_weight <= 0:
            composite = None
            coverage = 0.0
        else:
            composite = weighted_sum / covered_weight
            coverage = covered_weight

        completeness = ScoreCompleteness(
            available_criteria=available,
            missing_criteria=missing,
            weight_coverage=coverage,
        )
        return composite, completeness

    @staticmethod
    def _revenue_estimate(
        employee: Employee, record: Optional[PerformanceRecord], break_even: float
    ) -> Tuple[Optional[float], Optional[str]]:
        if record is not None:
            return record.achieved_sales, "achieved_sales"

        rate = employee.financials.reported_achievement_rate
        if rate is not None:
            return break_even * (rate / 100), "achievement_rate"

        return None, None

    def _fitz_enz_hcroi(self, annual_salary: float, record: Optional[PerformanceRecord]) -> Optional[float]:
        """(revenue - non-payroll cost) / (salary + benefits), monthly"""
        insurance_rate = self.params.insurance_rate
        fixed_cost = self.params.fixed_cost_per_person
        if record is None or insurance_rate is None or fixed_cost is None:
            return None

        monthly_salary = annual_salary / MONTHS_PER_YEAR
        human_capital_cost = monthly_salary * (1 + insurance_rate)
        return (record.achieved_sales - fixed_cost) / human_capital_cost


def score_employee(
    profile: WeightProfile,
    employee: Employee,
    period: str,
    parameters: Optional[ScoringParameters] = None,
) -> ScoreResult:
    """
    Score one employee with given parameters.

    Example:
        from ahp import default_store
        from scoring import Employee, EmployeeFinancials, PerformanceRecord, score_employee

        employee = Employee(
            employee_id="E-001",
            financials=EmployeeFinancials(
                current_salary=36_000_000,
                criterion_sub_scores={"sales_performance": 820, "attendance": 900},
            ),
            performance_records=[
                PerformanceRecord(period="2024-07", target_sales=4_500_000, achieved_sales=3_600_000),
            ],
        )
        result = score_employee(default_store.get_active(), employee, "2024-07")
        print(result.hcroi)  # 0.8
    """
    return ScoreEngine(parameters).score(profile, employee, period)
