# Classification Module
# Trend aggregation and rule-ordered risk/opportunity tiers

from .models import (
    Tier,
    PerformanceLevel,
    TrendDirection,
    StreakMetric,
    ClassificationThresholds,
    TrendSummary,
    ClassificationResult,
)
from .trend import TrendAggregator
from .engine import (
    ClassificationEngine,
    ClassificationRule,
    RuleContext,
    DEFAULT_RULES,
)

__all__ = [
    "Tier",
    "PerformanceLevel",
    "TrendDirection",
    "StreakMetric",
    "ClassificationThresholds",
    "TrendSummary",
    "ClassificationResult",
    "TrendAggregator",
    "ClassificationEngine",
    "ClassificationRule",
    "RuleContext",
    "DEFAULT_RULES",
]
