"""
Lead scoring service.

Recomputes and persists lead scores for one lead or a whole organization.

Failure policy:
- Scoring is an enrichment. It must never block the lead create/update that
  triggered it, so no exception escapes score_lead().
- A missing lead (or one owned by another organization) is NOT_FOUND.
- Any store failure is logged with its traceback and reported as STORE_ERROR.
- calculate_lead_score() collapses both to None for callers that only need
  "score or nothing".

Bulk recompute is sequential and unbounded in size: every lead of the
organization is scored one at a time, and one failure never aborts the batch.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Callable, Iterable, List, Optional, Protocol
from uuid import UUID

from domain.lead import LeadScoringSnapshot
from domain.lead_score import (
    DEFAULT_SCORING_WEIGHTS,
    ScoreCategory,
    ScoringWeights,
    compute_lead_score,
)
from domain.time import utc_now

logger = logging.getLogger(__name__)


class LeadScoreStore(Protocol):
    """Persistence operations the calculator depends on."""

    def fetch_snapshot(self, lead_id: UUID, organization_id: UUID) -> Optional[LeadScoringSnapshot]:
        ...

    def list_lead_ids(self, organization_id: UUID) -> List[UUID]:
        ...

    def save_score(
        self,
        lead_id: UUID,
        organization_id: UUID,
        score: int,
        last_activity_at: Optional[datetime],
    ) -> None:
        ...

    def list_scores(self, organization_id: UUID) -> List[Optional[int]]:
        ...


class ScoreStatus(str, Enum):
    SCORED = "scored"
    NOT_FOUND = "not_found"
    STORE_ERROR = "store_error"


@dataclass(frozen=True, slots=True)
class LeadScoreResult:
    """
    Outcome of scoring one lead.

    score is set only when status is SCORED; reason explains the other cases.
    """
    lead_id: UUID
    status: ScoreStatus
    score: Optional[int] = None
    reason: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.status is ScoreStatus.SCORED


@dataclass(frozen=True, slots=True)
class LeadScoreReport:
    """One entry of a bulk recompute: the lead and its new score (None if skipped)."""
    lead_id: UUID
    score: Optional[int]


@dataclass(frozen=True, slots=True)
class ScoreSummary:
    """Tier counts over a bulk recompute."""
    total: int
    hot: int
    warm: int
    cold: int
    skipped: int


@dataclass(frozen=True, slots=True)
class PersistedScoreSummary:
    """Tier counts and average over the scores currently stored for an organization."""
    hot: int
    warm: int
    cold: int
    average_score: int
    total_leads: int


def summarize_scores(reports: Iterable[LeadScoreReport]) -> ScoreSummary:
    """
    Count reports per tier. Reports without a score are counted as skipped.

    Example:
        reports = calculate_all_lead_scores(org_id)
        summary = summarize_scores(reports)
        print(f"{summary.hot} hot, {summary.warm} warm, {summary.cold} cold")
    """
    counts = {category: 0 for category in ScoreCategory}
    total = 0
    skipped = 0

    for report in reports:
        total += 1
        if report.score is None:
            skipped += 1
            continue
        counts[ScoreCategory.for_score(report.score)] += 1

    return ScoreSummary(
        total=total,
        hot=counts[ScoreCategory.HOT],
        warm=counts[ScoreCategory.WARM],
        cold=counts[ScoreCategory.COLD],
        skipped=skipped,
    )


def summarize_persisted_scores(scores: Iterable[Optional[int]]) -> PersistedScoreSummary:
    """Stored scores that were never set count as 0, the column default."""

    values = [score if score is not None else 0 for score in scores]
    counts = {category: 0 for category in ScoreCategory}
    for value in values:
        counts[ScoreCategory.for_score(value)] += 1

    average = sum(values) / len(values) if values else 0.0

    return PersistedScoreSummary(
        hot=counts[ScoreCategory.HOT],
        warm=counts[ScoreCategory.WARM],
        cold=counts[ScoreCategory.COLD],
        # Round half up (Python's round() is half-to-even).
        average_score=int(math.floor(average + 0.5)),
        total_leads=len(values),
    )


class LeadScoreCalculator:
    """
    Reads a lead, scores it against the injected weights, and writes the score back.

    Args:
        store: persistence backend (see LeadScoreStore)
        weights: scoring weight tables (global defaults unless overridden)
        clock: returns the current UTC instant; injectable for deterministic tests
    """

    def __init__(
        self,
        store: LeadScoreStore,
        weights: ScoringWeights = DEFAULT_SCORING_WEIGHTS,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.store = store
        self.weights = weights
        self.clock = clock

    def score_lead(self, lead_id: UUID, organization_id: UUID) -> LeadScoreResult:
        """
        Recompute and persist the score of one lead.

        Never raises. Store failures are logged and returned as STORE_ERROR.
        """
        try:
            snapshot = self.store.fetch_snapshot(lead_id, organization_id)
            if snapshot is None:
                logger.info(
                    "Lead not found for scoring",
                    extra={"lead_id": str(lead_id), "organization_id": str(organization_id)},
                )
                return LeadScoreResult(
                    lead_id=lead_id,
                    status=ScoreStatus.NOT_FOUND,
                    reason="Lead not found",
                )

            score = compute_lead_score(snapshot, self.clock(), self.weights)
            self.store.save_score(lead_id, organization_id, score, snapshot.last_activity_at)

        except Exception as e:
            logger.exception(
                "Error calculating lead score",
                extra={"lead_id": str(lead_id), "organization_id": str(organization_id)},
            )
            return LeadScoreResult(
                lead_id=lead_id,
                status=ScoreStatus.STORE_ERROR,
                reason=str(e) or type(e).__name__,
            )

        return LeadScoreResult(lead_id=lead_id, status=ScoreStatus.SCORED, score=score)

    def calculate_lead_score(self, lead_id: UUID, organization_id: UUID) -> Optional[int]:
        """Score in [0, 100], or None when the lead could not be scored."""

        return self.score_lead(lead_id, organization_id).score

    def score_all_leads(
        self,
        organization_id: UUID,
        raise_on_listing_error: bool = False,
    ) -> List[LeadScoreResult]:
        """
        Score every lead of an organization, one at a time.

        If the lead listing itself fails, the failure is logged and an empty
        list is returned, unless raise_on_listing_error is set.
        """
        try:
            lead_ids = self.store.list_lead_ids(organization_id)
        except Exception:
            logger.exception(
                "Error listing leads for bulk scoring",
                extra={"organization_id": str(organization_id)},
            )
            if raise_on_listing_error:
                raise
            return []

        results = [self.score_lead(lead_id, organization_id) for lead_id in lead_ids]

        failed = sum(1 for result in results if not result.succeeded)
        logger.info(
            f"Recalculated {len(results) - failed}/{len(results)} lead scores",
            extra={"organization_id": str(organization_id), "skipped": failed},
        )
        return results

    def calculate_all_lead_scores(self, organization_id: UUID) -> List[LeadScoreReport]:
        return [
            LeadScoreReport(lead_id=result.lead_id, score=result.score)
            for result in self.score_all_leads(organization_id)
        ]

    def get_score_summary(self, organization_id: UUID) -> PersistedScoreSummary:
        """
        Summarize the scores currently stored for an organization.

        Unlike scoring, this is a plain read: store failures propagate.
        """
        return summarize_persisted_scores(self.store.list_scores(organization_id))


_default_calculator: Optional[LeadScoreCalculator] = None


def get_default_calculator() -> LeadScoreCalculator:
    """Calculator backed by the process-wide Supabase client, built on first use."""

    global _default_calculator
    if _default_calculator is None:
        from repositories.lead_repository import SupabaseLeadScoreStore

        _default_calculator = LeadScoreCalculator(SupabaseLeadScoreStore())
    return _default_calculator


def calculate_lead_score(lead_id: UUID, organization_id: UUID) -> Optional[int]:
    """
    Recompute and persist one lead's score with the default calculator.

    Example:
        score = calculate_lead_score(lead.id, org_id)
        category = category_of(score or 0)
    """
    return get_default_calculator().calculate_lead_score(lead_id, organization_id)


def calculate_all_lead_scores(organization_id: UUID) -> List[LeadScoreReport]:
    """Recompute and persist every lead score of an organization with the default calculator."""

    return get_default_calculator().calculate_all_lead_scores(organization_id)


__all__ = [
    "LeadScoreCalculator",
    "LeadScoreReport",
    "LeadScoreResult",
    "LeadScoreStore",
    "PersistedScoreSummary",
    "ScoreStatus",
    "ScoreSummary",
    "calculate_all_lead_scores",
    "calculate_lead_score",
    "get_default_calculator",
    "summarize_persisted_scores",
    "summarize_scores",
]
