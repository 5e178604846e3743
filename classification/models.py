"""
Classification Models
=====================
Tiers, thresholds and trend summaries for risk/opportunity classification.

All tier boundaries are configuration (ClassificationThresholds), never
constants inside the engine. Each classification is a pure function of one
period's ScoreResult, its TrendSummary, the thresholds and the number of
unresolved alerts.
"""

from enum import Enum
from typing import Optional

from pydantic import Field, model_validator

from records import FrozenRecord, Record


class Tier(str, Enum):
    """Risk/opportunity tier, most severe first"""
    RED_CRITICAL = "RED_CRITICAL"
    RED_WARNING = "RED_WARNING"
    TOP_PERFORMER = "TOP_PERFORMER"
    WATCH_ORANGE = "WATCH_ORANGE"
    WATCH_YELLOW = "WATCH_YELLOW"
    NORMAL = "NORMAL"

    @property
    def is_red(self) -> bool:
        return self in (Tier.RED_CRITICAL, Tier.RED_WARNING)

    @property
    def is_watch(self) -> bool:
        return self in (Tier.WATCH_ORANGE, Tier.WATCH_YELLOW)


class PerformanceLevel(str, Enum):
    """Split of TOP_PERFORMER"""
    OUTSTANDING = "OUTSTANDING"
    EXCELLENT = "EXCELLENT"


class TrendDirection(str, Enum):
    DECLINING = "declining"
    FLAT = "flat"
    IMPROVING = "improving"
    UNKNOWN = "unknown"


class StreakMetric(str, Enum):
    """Predicate used for consecutive qualifying months"""
    HCROI = "hcroi"
    ACHIEVEMENT = "achievement"


class ClassificationThresholds(Record):
    """
    Tier boundaries. HCROI thresholds are ratios, score thresholds are on the
    0-1000 sub-score band.
    """
    # RED_CRITICAL (requires unresolved alerts)
    critical_hcroi: float = Field(default=0.7, description="HCROI below this is critical")
    critical_score: float = Field(default=600, description="Score below this is critical")

    # RED_WARNING
    red_hcroi: float = Field(default=1.0, description="HCROI below this is red zone")
    red_score: float = Field(default=700, description="Score below this is red zone")

    # TOP_PERFORMER
    top_hcroi: float = Field(default=1.5, description="HCROI at/above this is top performer")
    top_score: float = Field(default=900, description="Score at/above this is top performer")
    outstanding_hcroi: float = Field(default=2.0, description="HCROI at/above this is OUTSTANDING")
    outstanding_score: float = Field(default=950, description="Score at/above this is OUTSTANDING")

    # WATCH (band above the red thresholds)
    watch_hcroi_band: float = Field(default=0.2, ge=0, description="red_hcroi <= HCROI < red_hcroi + band")
    watch_score_band: float = Field(default=50, ge=0, description="red_score <= score < red_score + band")
    flat_hcroi_tolerance: float = Field(default=0.0, ge=0, description="|HCROI delta| <= tolerance counts as flat")
    flat_score_tolerance: float = Field(default=0.0, ge=0, description="|score delta| <= tolerance counts as flat")
    watch_on_decline: bool = Field(
        default=False,
        description="Also put declining employees outside the band on the yellow watch list",
    )

    # Trend
    qualifying_hcroi: float = Field(default=1.0, description="HCROI needed for a qualifying month")
    streak_metric: StreakMetric = StreakMetric.HCROI
    max_streak: Optional[int] = Field(default=None, ge=1, description="Cap on consecutive months")

    # Roster listings
    watch_list_limit: int = Field(default=5, ge=1)

    @model_validator(mode="after")
    def validate_ordering(self):
        if not (self.critical_hcroi <= self.red_hcroi <= self.top_hcroi <= self.outstanding_hcroi):
            raise ValueError(
                "HCROI thresholds must satisfy critical <= red <= top <= outstanding"
            )
        if not (self.critical_score <= self.red_score <= self.top_score <= self.outstanding_score):
            raise ValueError(
                "Score thresholds must satisfy critical <= red <= top <= outstanding"
            )
        return self


class TrendSummary(FrozenRecord):
    """Deltas and streak computed at one period"""
    period: str
    previous_period: Optional[str] = None
    score_delta: Optional[float] = None
    hcroi_delta: Optional[float] = None
    achievement_rate_delta: Optional[float] = None
    consecutive_qualifying_months: int = 0
    direction: TrendDirection = TrendDirection.UNKNOWN


class ClassificationResult(FrozenRecord):
    """Tier for one employee and one period"""
    period: str
    tier: Tier
    performance_level: Optional[PerformanceLevel] = None
    reason: str
    rule: str = Field(..., description="Name of the rule that matched")
    unresolved_alert_count: int = 0
    distance_to_red_zone: Optional[float] = Field(
        default=None,
        description="HCROI minus the red threshold",
    )
