"""
Trend aggregation over an employee's chronological score history.
"""

from typing import List, Optional, Sequence

from errors import InvalidInput
from scoring.models import ScoreResult
from .models import ClassificationThresholds, StreakMetric, TrendDirection, TrendSummary


def _delta(latest: Optional[float], previous: Optional[float]) -> Optional[float]:
    if latest is None or previous is None:
        return None
    return latest - previous


class TrendAggregator:
    """
    Period-over-period deltas and consecutive qualifying months.

    History must be ordered oldest -> newest with no repeated period.
    """

    def __init__(
        self,
        qualifying_hcroi: float = 1.0,
        metric: StreakMetric = StreakMetric.HCROI,
        max_streak: Optional[int] = None,
        hcroi_tolerance: float = 0.0,
        score_tolerance: float = 0.0,
    ):
        self.qualifying_hcroi = qualifying_hcroi
        self.metric = StreakMetric(metric)
        self.max_streak = max_streak
        self.hcroi_tolerance = hcroi_tolerance
        self.score_tolerance = score_tolerance

    @classmethod
    def from_thresholds(cls, thresholds: ClassificationThresholds) -> "TrendAggregator":
        return cls(
            qualifying_hcroi=thresholds.qualifying_hcroi,
            metric=thresholds.streak_metric,
            max_streak=thresholds.max_streak,
            hcroi_tolerance=thresholds.flat_hcroi_tolerance,
            score_tolerance=thresholds.flat_score_tolerance,
        )

    def aggregate(self, history: Sequence[ScoreResult]) -> TrendSummary:
        """Trend at the latest period of the history"""
        if not history:
            raise InvalidInput("Trend history is empty")
        self._check_order(history)
        return self._summarize(history)

    def aggregate_series(self, history: Sequence[ScoreResult]) -> List[TrendSummary]:
        """Trend at every period, as if each were the latest"""
        if not history:
            return []
        self._check_order(history)
        return [self._summarize(history[: i + 1]) for i in range(len(history))]

    def qualifies(self, result: ScoreResult) -> bool:
        if self.metric == StreakMetric.ACHIEVEMENT:
            return result.achievement_rate is not None and result.achievement_rate >= 100
        return result.hcroi is not None and result.hcroi >= self.qualifying_hcroi

    def consecutive_qualifying_months(self, history: Sequence[ScoreResult]) -> int:
        count = 0
        for result in reversed(history):
            if self.max_streak is not None and count >= self.max_streak:
                break
            if not self.qualifies(result):
                break
            count += 1
        return count

    def _summarize(self, history: Sequence[ScoreResult]) -> TrendSummary:
        latest = history[-1]
        previous = history[-2] if len(history) >= 2 else None

        if previous is None:
            score_delta = hcroi_delta = achievement_delta = None
        else:
            score_delta = _delta(latest.composite_score, previous.composite_score)
            hcroi_delta = _delta(latest.hcroi, previous.hcroi)
            achievement_delta = _delta(latest.achievement_rate, previous.achievement_rate)

        return TrendSummary(
            period=latest.period,
            previous_period=previous.period if previous is not None else None,
            score_delta=score_delta,
            hcroi_delta=hcroi_delta,
            achievement_rate_delta=achievement_delta,
            consecutive_qualifying_months=self.consecutive_qualifying_months(history),
            direction=self._direction(score_delta, hcroi_delta),
        )

    def _direction(self, score_delta: Optional[float], hcroi_delta: Optional[float]) -> TrendDirection:
        # each delta is judged against the tolerance of its own scale
        deltas = [
            (d, tol)
            for d, tol in ((score_delta, self.score_tolerance), (hcroi_delta, self.hcroi_tolerance))
            if d is not None
        ]
        if not deltas:
            return TrendDirection.UNKNOWN
        if any(d < -tol for d, tol in deltas):
            return TrendDirection.DECLINING
        if any(d > tol for d, tol in deltas):
            return TrendDirection.IMPROVING
        return TrendDirection.FLAT

    @staticmethod
    def _check_order(history: Sequence[ScoreResult]) -> None:
        for prev, curr in zip(history, history[1:]):
            if curr.period <= prev.period:
                raise InvalidInput(
                    f"History must be strictly chronological: {prev.period} followed by {curr.period}"
                )
