"""
Unit tests for trend aggregation
================================
Tests cover:
1. Period-over-period deltas (None without a predecessor)
2. Consecutive qualifying months (HCROI and achievement variants, cap)
3. Trend direction with per-metric flat tolerances
4. Chronological order enforcement
"""

import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest

from classification import StreakMetric, TrendAggregator, TrendDirection
from classification.models import ClassificationThresholds
from errors import InvalidInput
from scoring.models import ScoreResult


def score(period, hcroi=None, composite=None, achievement=None):
    return ScoreResult(
        period=period,
        hcroi=hcroi,
        composite_score=composite,
        achievement_rate=achievement,
        break_even_sales=1_000_000,
    )


def monthly(hcrois, composite=800):
    return [score(f"2024-{i + 1:02d}", hcroi=h, composite=composite) for i, h in enumerate(hcrois)]


class TestDeltas:

    def test_single_period_has_no_deltas(self):
        trend = TrendAggregator().aggregate([score("2024-01", hcroi=1.2, composite=800, achievement=90)])

        assert trend.previous_period is None
        assert trend.score_delta is None
        assert trend.hcroi_delta is None
        assert trend.achievement_rate_delta is None
        assert trend.direction == TrendDirection.UNKNOWN

    def test_deltas_against_previous_period(self):
        history = [
            score("2024-01", hcroi=1.0, composite=800, achievement=90),
            score("2024-02", hcroi=1.2, composite=780, achievement=95),
        ]
        trend = TrendAggregator().aggregate(history)

        assert trend.period == "2024-02"
        assert trend.previous_period == "2024-01"
        assert trend.hcroi_delta == pytest.approx(0.2)
        assert trend.score_delta == pytest.approx(-20)
        assert trend.achievement_rate_delta == pytest.approx(5)

    def test_missing_metric_gives_missing_delta(self):
        history = [
            score("2024-01", hcroi=None, composite=800),
            score("2024-02", hcroi=1.2, composite=820),
        ]
        trend = TrendAggregator().aggregate(history)
        assert trend.hcroi_delta is None
        assert trend.score_delta == pytest.approx(20)
        assert trend.direction == TrendDirection.IMPROVING

    def test_gap_in_months_uses_previous_entry(self):
        history = [score("2024-01", hcroi=1.0), score("2024-04", hcroi=0.9)]
        trend = TrendAggregator().aggregate(history)
        assert trend.previous_period == "2024-01"
        assert trend.hcroi_delta == pytest.approx(-0.1)


class TestConsecutiveQualifyingMonths:

    def test_streak_breaks_on_failing_month(self):
        history = monthly([1.2, 1.1, 1.3, 0.8])
        aggregator = TrendAggregator(qualifying_hcroi=1.0)

        series = aggregator.aggregate_series(history)
        assert [t.consecutive_qualifying_months for t in series] == [1, 2, 3, 0]
        assert aggregator.aggregate(history).consecutive_qualifying_months == 0
        assert aggregator.aggregate(history[:3]).consecutive_qualifying_months == 3

    def test_threshold_is_inclusive(self):
        assert TrendAggregator(qualifying_hcroi=1.0).aggregate(monthly([1.0])).consecutive_qualifying_months == 1

    def test_missing_hcroi_does_not_qualify(self):
        history = monthly([1.2, None, 1.2])
        assert TrendAggregator().aggregate(history).consecutive_qualifying_months == 1

    def test_achievement_metric(self):
        history = [
            score("2024-01", achievement=100),
            score("2024-02", achievement=120),
            score("2024-03", achievement=99),
            score("2024-04", achievement=105),
            score("2024-05", achievement=110),
        ]
        aggregator = TrendAggregator(metric=StreakMetric.ACHIEVEMENT)
        assert aggregator.aggregate(history).consecutive_qualifying_months == 2
        assert aggregator.aggregate(history[:2]).consecutive_qualifying_months == 2

    def test_streak_cap(self):
        history = monthly([1.5] * 6)
        assert TrendAggregator(max_streak=3).aggregate(history).consecutive_qualifying_months == 3
        assert TrendAggregator().aggregate(history).consecutive_qualifying_months == 6

    def test_from_thresholds(self):
        thresholds = ClassificationThresholds(qualifying_hcroi=1.3, max_streak=2)
        aggregator = TrendAggregator.from_thresholds(thresholds)
        assert aggregator.qualifying_hcroi == 1.3
        assert aggregator.max_streak == 2
        assert aggregator.aggregate(monthly([1.2, 1.4])).consecutive_qualifying_months == 1


class TestDirection:

    def test_declining_when_any_metric_drops(self):
        history = [score("2024-01", hcroi=1.0, composite=800), score("2024-02", hcroi=1.1, composite=760)]
        assert TrendAggregator().aggregate(history).direction == TrendDirection.DECLINING

    def test_improving(self):
        assert TrendAggregator().aggregate(monthly([1.0, 1.1])).direction == TrendDirection.IMPROVING

    def test_flat(self):
        assert TrendAggregator().aggregate(monthly([1.0, 1.0])).direction == TrendDirection.FLAT

    def test_flat_tolerance(self):
        history = [score("2024-01", hcroi=1.00), score("2024-02", hcroi=0.97)]
        assert TrendAggregator().aggregate(history).direction == TrendDirection.DECLINING
        assert TrendAggregator(hcroi_tolerance=0.05).aggregate(history).direction == TrendDirection.FLAT

    def test_tolerances_are_per_metric(self):
        """An HCROI-sized tolerance does not absorb a score drop, and vice versa"""
        history = [
            score("2024-01", hcroi=1.10, composite=800),
            score("2024-02", hcroi=1.10, composite=799.9),
        ]
        assert TrendAggregator(hcroi_tolerance=0.05).aggregate(history).direction == TrendDirection.DECLINING
        assert TrendAggregator(score_tolerance=5).aggregate(history).direction == TrendDirection.FLAT

        hcroi_drop = [
            score("2024-01", hcroi=1.10, composite=800),
            score("2024-02", hcroi=1.00, composite=800),
        ]
        assert TrendAggregator(score_tolerance=5).aggregate(hcroi_drop).direction == TrendDirection.DECLINING

    def test_tolerances_from_thresholds(self):
        thresholds = ClassificationThresholds(flat_hcroi_tolerance=0.05, flat_score_tolerance=10)
        aggregator = TrendAggregator.from_thresholds(thresholds)
        assert aggregator.hcroi_tolerance == 0.05
        assert aggregator.score_tolerance == 10

    def test_no_comparable_metrics(self):
        history = [score("2024-01"), score("2024-02")]
        assert TrendAggregator().aggregate(history).direction == TrendDirection.UNKNOWN


class TestOrdering:

    def test_out_of_order_history(self):
        history = [score("2024-02", hcroi=1.0), score("2024-01", hcroi=1.0)]
        with pytest.raises(InvalidInput, match="chronological"):
            TrendAggregator().aggregate(history)

    def test_repeated_period(self):
        history = [score("2024-01", hcroi=1.0), score("2024-01", hcroi=1.1)]
        with pytest.raises(InvalidInput):
            TrendAggregator().aggregate_series(history)

    def test_empty_history(self):
        with pytest.raises(InvalidInput):
            TrendAggregator().aggregate([])
        assert TrendAggregator().aggregate_series([]) == []
