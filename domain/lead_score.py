"""
Domain: Lead score rules.

Contract excerpts implemented here:
- A lead score is the sum of eight component scores, clamped to [0, 100]:
  source, stage, priority, value, activity, calls, recency, contactability.
- Source, stage and priority are matched case-insensitively against fixed
  weight tables; unmatched values fall back to the table default.
- Monetary value is mapped through ascending half-open buckets [min, max);
  the first matching bucket wins.
- Activity contributes min(count * 5, 30); calls contribute min(count * 8, 40).
- Recency is measured in whole 24-hour days since the newest activity:
  <= 1 → +20, <= 3 → +15, <= 7 → +10, <= 14 → +5, otherwise −10.
  A lead without activity gets no recency adjustment.
- Tiers: score >= 70 is hot, 40..69 is warm, below 40 is cold.

All rules are pure. The current time is always passed explicitly.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping, Optional, Tuple

from .lead import LeadScoringSnapshot
from .time import require_utc_timestamp

MIN_SCORE = 0
MAX_SCORE = 100
HOT_MIN_SCORE = 70
WARM_MIN_SCORE = 40


class ScoreCategory(str, Enum):
    HOT = "hot"
    WARM = "warm"
    COLD = "cold"

    @staticmethod
    def for_score(score: int) -> "ScoreCategory":
        """Resolve the tier for a numeric score. Total over all integers."""

        if score >= HOT_MIN_SCORE:
            return ScoreCategory.HOT
        if score >= WARM_MIN_SCORE:
            return ScoreCategory.WARM
        return ScoreCategory.COLD

    @property
    def color(self) -> str:
        return _CATEGORY_COLORS[self]


_CATEGORY_COLORS: Mapping[ScoreCategory, str] = MappingProxyType(
    {
        ScoreCategory.HOT: "#EF4444",  # red
        ScoreCategory.WARM: "#F59E0B",  # amber
        ScoreCategory.COLD: "#6B7280",  # gray
    }
)


def category_of(score: int) -> ScoreCategory:
    return ScoreCategory.for_score(score)


def color_of(score: int) -> str:
    """Presentation color for the tier of a score. Display hint only."""

    return ScoreCategory.for_score(score).color


@dataclass(frozen=True, slots=True)
class ValueBucket:
    """
    Half-open monetary range [min_value, max_value) worth a fixed number of points.

    max_value=None means the bucket is unbounded above.
    """

    min_value: float
    max_value: Optional[float]
    points: int

    def contains(self, value: float) -> bool:
        if value < self.min_value:
            return False
        return self.max_value is None or value < self.max_value


@dataclass(frozen=True, slots=True)
class ScoringWeights:
    """
    Immutable weight configuration for the scoring rules.

    Keys of the lookup tables are lower-case. A single instance is built at
    import time (DEFAULT_SCORING_WEIGHTS) and injected into the calculator.
    """

    source: Mapping[str, int]
    stage: Mapping[str, int]
    priority: Mapping[str, int]
    value_buckets: Tuple[ValueBucket, ...]
    default_source: int = 5
    default_stage: int = 10
    default_priority: int = 10
    default_value: int = 5
    points_per_activity: int = 5
    max_activity_points: int = 30
    points_per_call: int = 8
    max_call_points: int = 40

    def __post_init__(self) -> None:
        # Buckets must be ascending and non-overlapping for first-match to hold.
        previous: Optional[ValueBucket] = None
        for bucket in self.value_buckets:
            if bucket.max_value is not None and bucket.max_value <= bucket.min_value:
                raise ValueError("value bucket max_value must be > min_value")
            if previous is not None:
                if previous.max_value is None or bucket.min_value < previous.max_value:
                    raise ValueError("value buckets must be ascending and non-overlapping")
            previous = bucket


DEFAULT_SCORING_WEIGHTS = ScoringWeights(
    source=MappingProxyType(
        {
            "referral": 30,
            "website": 25,
            "linkedin": 20,
            "facebook": 18,
            "instagram": 18,
            "google": 15,
            "email": 12,
            "cold_call": 10,
            "manual": 5,
            "other": 5,
        }
    ),
    stage=MappingProxyType(
        {
            "won": 100,
            "negotiation": 80,
            "proposal": 60,
            "qualified": 40,
            "contacted": 20,
            "new": 10,
            "lost": 0,
        }
    ),
    priority=MappingProxyType(
        {
            "high": 20,
            "medium": 10,
            "low": 5,
        }
    ),
    value_buckets=(
        ValueBucket(0, 1_000, 5),
        ValueBucket(1_000, 10_000, 15),
        ValueBucket(10_000, 50_000, 25),
        ValueBucket(50_000, None, 35),
    ),
)


def _lookup(table: Mapping[str, int], key: Optional[str], default: int) -> int:
    if not key:
        return default
    # A weight of 0 (e.g. stage "lost") is a real match, not a miss.
    return table.get(key.lower(), default)


def parse_monetary_value(raw: Any) -> float:
    """Coerce a stored monetary value to float. Missing or non-numeric is 0."""

    if raw is None or isinstance(raw, bool):
        return 0.0
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(value):
        return 0.0
    return value


def source_score(source: Optional[str], weights: ScoringWeights = DEFAULT_SCORING_WEIGHTS) -> int:
    return _lookup(weights.source, source, weights.default_source)


def stage_score(stage_name: Optional[str], weights: ScoringWeights = DEFAULT_SCORING_WEIGHTS) -> int:
    return _lookup(weights.stage, stage_name, weights.default_stage)


def priority_score(priority: Optional[str], weights: ScoringWeights = DEFAULT_SCORING_WEIGHTS) -> int:
    return _lookup(weights.priority, priority, weights.default_priority)


def value_score(raw_value: Any, weights: ScoringWeights = DEFAULT_SCORING_WEIGHTS) -> int:
    value = parse_monetary_value(raw_value)
    for bucket in weights.value_buckets:
        if bucket.contains(value):
            return bucket.points
    return weights.default_value


def activity_score(activity_count: int, weights: ScoringWeights = DEFAULT_SCORING_WEIGHTS) -> int:
    return min(activity_count * weights.points_per_activity, weights.max_activity_points)


def call_score(call_count: int, weights: ScoringWeights = DEFAULT_SCORING_WEIGHTS) -> int:
    return min(call_count * weights.points_per_call, weights.max_call_points)


def days_since(last_activity_at: datetime, as_of: datetime) -> int:
    """
    Whole 24-hour days elapsed, floored:

    days = floor((as_of - last_activity_at) / 24 hours)

    Activity stamped after as_of yields a negative count.
    """

    require_utc_timestamp("last_activity_at", last_activity_at)
    require_utc_timestamp("as_of", as_of)
    return int((as_of - last_activity_at) // timedelta(days=1))


def recency_adjustment(last_activity_at: Optional[datetime], as_of: datetime) -> int:
    if last_activity_at is None:
        return 0

    days = days_since(last_activity_at, as_of)
    if days <= 1:
        return 20
    if days <= 3:
        return 15
    if days <= 7:
        return 10
    if days <= 14:
        return 5
    return -10


def contact_score(has_email: bool, has_phone: bool) -> int:
    if has_email and has_phone:
        return 10
    if has_email or has_phone:
        return 5
    return 0


def clamp_score(raw_total: int) -> int:
    return max(MIN_SCORE, min(MAX_SCORE, raw_total))


@dataclass(frozen=True, slots=True)
class ScoreBreakdown:
    """Per-component contributions for one lead, plus the clamped total."""

    source: int
    stage: int
    priority: int
    value: int
    activity: int
    calls: int
    recency: int
    contact: int

    @property
    def raw_total(self) -> int:
        return (
            self.source
            + self.stage
            + self.priority
            + self.value
            + self.activity
            + self.calls
            + self.recency
            + self.contact
        )

    @property
    def score(self) -> int:
        return clamp_score(self.raw_total)

    @property
    def category(self) -> ScoreCategory:
        return ScoreCategory.for_score(self.score)


def score_breakdown(
    snapshot: LeadScoringSnapshot,
    as_of: datetime,
    weights: ScoringWeights = DEFAULT_SCORING_WEIGHTS,
) -> ScoreBreakdown:
    """Evaluate every scoring rule against a snapshot at the instant as_of."""

    require_utc_timestamp("as_of", as_of)

    return ScoreBreakdown(
        source=source_score(snapshot.source, weights),
        stage=stage_score(snapshot.stage_name, weights),
        priority=priority_score(snapshot.priority, weights),
        value=value_score(snapshot.value, weights),
        activity=activity_score(snapshot.activity_count, weights),
        calls=call_score(snapshot.call_count, weights),
        recency=recency_adjustment(snapshot.last_activity_at, as_of),
        contact=contact_score(snapshot.has_email, snapshot.has_phone),
    )


def compute_lead_score(
    snapshot: LeadScoringSnapshot,
    as_of: datetime,
    weights: ScoringWeights = DEFAULT_SCORING_WEIGHTS,
) -> int:
    """Clamped score in [0, 100] for a snapshot at the instant as_of."""

    return score_breakdown(snapshot, as_of, weights).score


__all__ = [
    "DEFAULT_SCORING_WEIGHTS",
    "HOT_MIN_SCORE",
    "MAX_SCORE",
    "MIN_SCORE",
    "WARM_MIN_SCORE",
    "ScoreBreakdown",
    "ScoreCategory",
    "ScoringWeights",
    "ValueBucket",
    "category_of",
    "clamp_score",
    "color_of",
    "compute_lead_score",
    "parse_monetary_value",
    "recency_adjustment",
    "score_breakdown",
]
