"""
Evaluation Pipeline
===================
Runs scoring -> trend -> classification for one employee, and fans out over
a roster.

Within one employee, periods are processed oldest first so that deltas and
streaks see the right predecessor. Employees are independent and are
evaluated in a thread pool; the report keeps the input order.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional, Sequence

from ahp.models import WeightProfile
from classification.engine import ClassificationEngine
from classification.models import ClassificationThresholds, PerformanceLevel, Tier
from classification.trend import TrendAggregator
from errors import InvalidInput
from scoring.engine import ScoreEngine
from scoring.models import Employee, ScoringParameters
from .models import (
    BepStatus,
    EmployeeEvaluation,
    RosterEntry,
    RosterReport,
    RosterSummary,
)

logger = logging.getLogger(__name__)


def evaluate_employee(
    employee: Employee,
    profile: WeightProfile,
    parameters: Optional[ScoringParameters] = None,
    thresholds: Optional[ClassificationThresholds] = None,
    through_period: Optional[str] = None,
) -> EmployeeEvaluation:
    """
    Evaluate every recorded period up to `through_period` (inclusive).

    When `through_period` has no record it is still evaluated, so the latest
    entry always refers to the requested period (HCROI then falls back to the
    reported achievement rate, or None).
    """
    thresholds = thresholds or ClassificationThresholds()
    scorer = ScoreEngine(parameters)
    aggregator = TrendAggregator.from_thresholds(thresholds)
    classifier = ClassificationEngine(thresholds)

    periods = employee.periods()
    if through_period is not None:
        periods = [p for p in periods if p <= through_period]
        if not periods or periods[-1] != through_period:
            periods.append(through_period)

    scores = [scorer.score(profile, employee, period) for period in periods]
    trends = aggregator.aggregate_series(scores)
    classifications = [
        classifier.classify(score, trend, employee.unresolved_alert_count)
        for score, trend in zip(scores, trends)
    ]

    return EmployeeEvaluation(
        employee_id=employee.employee_id,
        name=employee.name,
        scores=scores,
        trends=trends,
        classifications=classifications,
    )


def evaluate_roster(
    employees: Sequence[Employee],
    profile: WeightProfile,
    parameters: Optional[ScoringParameters] = None,
    thresholds: Optional[ClassificationThresholds] = None,
    period: Optional[str] = None,
    max_workers: Optional[int] = None,
) -> RosterReport:
    """Evaluate all employees for one period and build the dashboard listings"""
    thresholds = thresholds or ClassificationThresholds()

    if period is None:
        all_periods = [p for e in employees for p in e.periods()]
        if not all_periods:
            raise InvalidInput("No performance records in roster and no period given")
        period = max(all_periods)

    def _evaluate(employee: Employee) -> EmployeeEvaluation:
        return evaluate_employee(employee, profile, parameters, thresholds, through_period=period)

    with ThreadPoolExecutor(max_workers=max_workers) as pool:
        evaluations = list(pool.map(_evaluate, employees))

    entries = [_entry(employee, evaluation) for employee, evaluation in zip(employees, evaluations)]

    red_zone = sorted(
        (e for e in entries if e.tier.is_red),
        key=lambda e: (
            0 if e.tier == Tier.RED_CRITICAL else 1,
            e.composite_score is None,
            e.composite_score or 0.0,
        ),
    )
    watch_list = sorted(
        (e for e in entries if e.tier.is_watch),
        key=lambda e: (e.distance_to_red_zone is None, e.distance_to_red_zone or 0.0),
    )[: thresholds.watch_list_limit]
    top_performers = sorted(
        (e for e in entries if e.tier == Tier.TOP_PERFORMER),
        key=lambda e: (
            0 if e.performance_level == PerformanceLevel.OUTSTANDING else 1,
            e.hcroi is None,
            -(e.hcroi or 0.0),
        ),
    )

    summary = _summary(period, employees, entries)
    bep_status = _bep_status(period, employees, evaluations)

    logger.info(
        f"Evaluated {len(entries)} employees for {period}: "
        f"{summary.red_zone_count} red, {summary.watch_count} watch, {summary.top_performer_count} top "
        f"(profile v{profile.version})"
    )

    return RosterReport(
        period=period,
        profile_version=profile.version,
        evaluations=evaluations,
        summary=summary,
        red_zone=red_zone,
        watch_list=watch_list,
        top_performers=top_performers,
        bep_status=bep_status,
    )


def _entry(employee: Employee, evaluation: EmployeeEvaluation) -> RosterEntry:
    score = evaluation.latest_score
    trend = evaluation.latest_trend
    result = evaluation.latest_classification

    return RosterEntry(
        employee_id=employee.employee_id,
        name=employee.name,
        period=result.period,
        tier=result.tier,
        performance_level=result.performance_level,
        reason=result.reason,
        current_salary=employee.financials.current_salary,
        composite_score=score.composite_score,
        hcroi=score.hcroi,
        achievement_rate=score.achievement_rate,
        break_even_sales=score.break_even_sales,
        hcroi_delta=trend.hcroi_delta,
        score_delta=trend.score_delta,
        consecutive_qualifying_months=trend.consecutive_qualifying_months,
        unresolved_alert_count=result.unresolved_alert_count,
        distance_to_red_zone=result.distance_to_red_zone,
    )


def _mean(values: List[float]) -> Optional[float]:
    if not values:
        return None
    return sum(values) / len(values)


def _summary(period: str, employees: Sequence[Employee], entries: List[RosterEntry]) -> RosterSummary:
    revenue = 0.0
    for employee in employees:
        record = employee.record_for(period)
        if record is not None:
            revenue += record.achieved_sales

    return RosterSummary(
        period=period,
        employee_count=len(entries),
        average_hcroi=_mean([e.hcroi for e in entries if e.hcroi is not None]),
        average_score=_mean([e.composite_score for e in entries if e.composite_score is not None]),
        red_zone_count=sum(1 for e in entries if e.tier.is_red),
        watch_count=sum(1 for e in entries if e.tier.is_watch),
        top_performer_count=sum(1 for e in entries if e.tier == Tier.TOP_PERFORMER),
        unresolved_alert_count=sum(e.unresolved_alert_count for e in employees),
        company_revenue=revenue,
    )


def _bep_status(
    period: str, employees: Sequence[Employee], evaluations: List[EmployeeEvaluation]
) -> BepStatus:
    """Totals over employees that have a record for the period"""
    total_target = 0.0
    total_revenue = 0.0
    total_bep = 0.0
    contributing = 0

    for employee, evaluation in zip(employees, evaluations):
        record = employee.record_for(period)
        if record is None:
            continue
        contributing += 1
        total_target += record.target_sales
        total_revenue += record.achieved_sales
        total_bep += evaluation.latest_score.break_even_sales

    achievement = total_revenue / total_target * 100 if total_target > 0 else None
    bep_achievement = total_revenue / total_bep * 100 if total_bep > 0 else None

    return BepStatus(
        period=period,
        target_revenue=total_target,
        current_revenue=total_revenue,
        bep_revenue=total_bep,
        achievement_rate=achievement,
        bep_achievement_rate=bep_achievement,
        remaining_to_bep=total_bep - total_revenue,
        remaining_to_target=total_target - total_revenue,
        bep_achieved=contributing > 0 and total_revenue >= total_bep,
        target_achieved=contributing > 0 and total_revenue >= total_target,
        contributing_employees=contributing,
    )
