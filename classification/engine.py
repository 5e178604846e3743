"""
Classification Engine
=====================
Assigns a risk/opportunity tier to one employee for one period.

The policy is an ordered list of rules, evaluated top to bottom, first match
wins:
1. RED_CRITICAL  - below a critical threshold AND unresolved alerts
2. RED_WARNING   - below a red threshold
3. TOP_PERFORMER - at/above a top threshold (OUTSTANDING / EXCELLENT)
4. WATCH_ORANGE  - in the watch band above red AND trend declining
5. WATCH_YELLOW  - in the watch band, trend flat / improving / unknown
   (optionally also any declining trend, see watch_on_decline)
6. NORMAL        - no HCROI and no score: insufficient data
7. NORMAL

No state is kept between calls: the same inputs always give the same tier
and reason. A metric that is None never satisfies a comparison.
"""

from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

from scoring.models import ScoreResult
from .models import (
    ClassificationResult,
    ClassificationThresholds,
    PerformanceLevel,
    Tier,
    TrendDirection,
    TrendSummary,
)


@dataclass(frozen=True)
class RuleContext:
    """Everything a rule may look at"""
    score: ScoreResult
    trend: Optional[TrendSummary]
    thresholds: ClassificationThresholds
    unresolved_alert_count: int = 0

    @property
    def hcroi(self) -> Optional[float]:
        return self.score.hcroi

    @property
    def composite(self) -> Optional[float]:
        return self.score.composite_score

    @property
    def declining(self) -> bool:
        return self.trend is not None and self.trend.direction == TrendDirection.DECLINING


@dataclass(frozen=True)
class ClassificationRule:
    """(predicate, tier, reason) triple"""
    name: str
    tier: Tier
    predicate: Callable[[RuleContext], bool]
    reason: Callable[[RuleContext], str]


def _below(value: Optional[float], threshold: float) -> bool:
    return value is not None and value < threshold


def _at_least(value: Optional[float], threshold: float) -> bool:
    return value is not None and value >= threshold


def _in_band(value: Optional[float], floor: float, band: float) -> bool:
    return value is not None and floor <= value < floor + band


def _fmt_hcroi(value: Optional[float]) -> str:
    return "n/a" if value is None else f"{value:.2f}"


def _fmt_score(value: Optional[float]) -> str:
    return "n/a" if value is None else f"{value:.0f}"


# ============== Predicates ==============

def _critical_metrics(ctx: RuleContext) -> List[str]:
    t = ctx.thresholds
    hits = []
    if _below(ctx.hcroi, t.critical_hcroi):
        hits.append(f"HCROI {_fmt_hcroi(ctx.hcroi)} < {t.critical_hcroi:g}")
    if _below(ctx.composite, t.critical_score):
        hits.append(f"score {_fmt_score(ctx.composite)} < {t.critical_score:g}")
    return hits


def _red_metrics(ctx: RuleContext) -> List[str]:
    t = ctx.thresholds
    hits = []
    if _below(ctx.hcroi, t.red_hcroi):
        hits.append(f"HCROI {_fmt_hcroi(ctx.hcroi)} < {t.red_hcroi:g}")
    if _below(ctx.composite, t.red_score):
        hits.append(f"score {_fmt_score(ctx.composite)} < {t.red_score:g}")
    return hits


def _top_metrics(ctx: RuleContext) -> List[str]:
    t = ctx.thresholds
    hits = []
    if _at_least(ctx.hcroi, t.top_hcroi):
        hits.append(f"HCROI {_fmt_hcroi(ctx.hcroi)} >= {t.top_hcroi:g}")
    if _at_least(ctx.composite, t.top_score):
        hits.append(f"score {_fmt_score(ctx.composite)} >= {t.top_score:g}")
    return hits


def _watch_metrics(ctx: RuleContext) -> List[str]:
    t = ctx.thresholds
    hits = []
    if _in_band(ctx.hcroi, t.red_hcroi, t.watch_hcroi_band):
        hits.append(f"HCROI {_fmt_hcroi(ctx.hcroi)} within {t.watch_hcroi_band:g} of {t.red_hcroi:g}")
    if _in_band(ctx.composite, t.red_score, t.watch_score_band):
        hits.append(f"score {_fmt_score(ctx.composite)} within {t.watch_score_band:g} of {t.red_score:g}")
    return hits


def _trend_text(trend: Optional[TrendSummary]) -> str:
    if trend is None or trend.direction == TrendDirection.UNKNOWN:
        return "no prior period"
    parts = []
    if trend.hcroi_delta is not None:
        parts.append(f"HCROI {trend.hcroi_delta:+.2f}")
    if trend.score_delta is not None:
        parts.append(f"score {trend.score_delta:+.0f}")
    return f"{trend.direction.value} ({', '.join(parts)})"


def _alerts_text(count: int) -> str:
    return f"{count} unresolved alert" + ("" if count == 1 else "s")


# ============== Default policy ==============

DEFAULT_RULES: Sequence[ClassificationRule] = (
    ClassificationRule(
        name="critical",
        tier=Tier.RED_CRITICAL,
        predicate=lambda ctx: bool(_critical_metrics(ctx)) and ctx.unresolved_alert_count > 0,
        reason=lambda ctx: (
            f"Critical: {' and '.join(_critical_metrics(ctx))} with {_alerts_text(ctx.unresolved_alert_count)}"
        ),
    ),
    ClassificationRule(
        name="red_zone",
        tier=Tier.RED_WARNING,
        predicate=lambda ctx: bool(_red_metrics(ctx)),
        reason=lambda ctx: f"Below red threshold: {' and '.join(_red_metrics(ctx))}",
    ),
    ClassificationRule(
        name="top_performer",
        tier=Tier.TOP_PERFORMER,
        predicate=lambda ctx: bool(_top_metrics(ctx)),
        reason=lambda ctx: f"Top performer: {' and '.join(_top_metrics(ctx))}",
    ),
    ClassificationRule(
        name="watch_declining",
        tier=Tier.WATCH_ORANGE,
        predicate=lambda ctx: bool(_watch_metrics(ctx)) and ctx.declining,
        reason=lambda ctx: (
            f"Near red threshold and deteriorating: {' and '.join(_watch_metrics(ctx))}; "
            f"trend {_trend_text(ctx.trend)}"
        ),
    ),
    ClassificationRule(
        name="watch_stable",
        tier=Tier.WATCH_YELLOW,
        predicate=lambda ctx: bool(_watch_metrics(ctx)),
        reason=lambda ctx: (
            f"Near red threshold: {' and '.join(_watch_metrics(ctx))}; trend {_trend_text(ctx.trend)}"
        ),
    ),
    ClassificationRule(
        name="declining",
        tier=Tier.WATCH_YELLOW,
        predicate=lambda ctx: ctx.thresholds.watch_on_decline and ctx.declining,
        reason=lambda ctx: f"Performance declining: trend {_trend_text(ctx.trend)}",
    ),
    # neither metric known: NORMAL tier, reason says why
    ClassificationRule(
        name="insufficient_data",
        tier=Tier.NORMAL,
        predicate=lambda ctx: ctx.hcroi is None and ctx.composite is None,
        reason=lambda ctx: f"Insufficient data: no HCROI or score for {ctx.score.period}",
    ),
)

_NORMAL_RULE = ClassificationRule(
    name="normal",
    tier=Tier.NORMAL,
    predicate=lambda ctx: True,
    reason=lambda ctx: (
        f"Within normal range (HCROI {_fmt_hcroi(ctx.hcroi)}, score {_fmt_score(ctx.composite)})"
    ),
)


class ClassificationEngine:
    """First-match rule evaluation over a configurable policy"""

    def __init__(
        self,
        thresholds: Optional[ClassificationThresholds] = None,
        rules: Optional[Sequence[ClassificationRule]] = None,
    ):
        self.thresholds = thresholds or ClassificationThresholds()
        self.rules = tuple(rules) if rules is not None else tuple(DEFAULT_RULES)

    def classify(
        self,
        score: ScoreResult,
        trend: Optional[TrendSummary] = None,
        unresolved_alert_count: int = 0,
    ) -> ClassificationResult:
        """Tier and reason for one period"""
        ctx = RuleContext(
            score=score,
            trend=trend,
            thresholds=self.thresholds,
            unresolved_alert_count=unresolved_alert_count,
        )
        rule = self._match(ctx)

        level = None
        if rule.tier == Tier.TOP_PERFORMER:
            level = self._performance_level(ctx)

        distance = None
        if score.hcroi is not None:
            distance = score.hcroi - self.thresholds.red_hcroi

        return ClassificationResult(
            period=score.period,
            tier=rule.tier,
            performance_level=level,
            reason=rule.reason(ctx),
            rule=rule.name,
            unresolved_alert_count=unresolved_alert_count,
            distance_to_red_zone=distance,
        )

    def _match(self, ctx: RuleContext) -> ClassificationRule:
        for rule in self.rules:
            if rule.predicate(ctx):
                return rule
        return _NORMAL_RULE

    @staticmethod
    def _performance_level(ctx: RuleContext) -> PerformanceLevel:
        t = ctx.thresholds
        both_top = _at_least(ctx.hcroi, t.top_hcroi) and _at_least(ctx.composite, t.top_score)
        outstanding = _at_least(ctx.hcroi, t.outstanding_hcroi) or _at_least(ctx.composite, t.outstanding_score)
        if both_top or outstanding:
            return PerformanceLevel.OUTSTANDING
        return PerformanceLevel.EXCELLENT
