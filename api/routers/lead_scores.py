"""
Lead Score API Endpoints.

Admin endpoints for recalculating lead scores and reading the score summary
of an organization.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException

from api.models import (
    BulkRecalculationResponse,
    ErrorResponse,
    LeadScoreResponse,
    ScoreSummaryResponse,
    TierCounts,
)
from domain.lead_score import ScoreCategory
from services.lead_scoring_service import (
    LeadScoreCalculator,
    ScoreStatus,
    get_default_calculator,
    summarize_scores,
)

router = APIRouter()


def get_calculator() -> LeadScoreCalculator:
    """Dependency hook; tests override it with an in-memory store."""
    return get_default_calculator()


@router.post(
    "/organizations/{organization_id}/leads/{lead_id}/score",
    response_model=LeadScoreResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Recalculate Lead Score",
    description="Recompute and persist the score of a single lead."
)
def recalculate_lead_score(
    organization_id: UUID,
    lead_id: UUID,
    calculator: LeadScoreCalculator = Depends(get_calculator),
):
    """
    Recalculate the score of one lead.

    A store failure does not fail the request: the lead renders as score 0
    ("cold") with status `store_error`, matching how the lead list displays
    leads that were never scored.
    """
    result = calculator.score_lead(lead_id, organization_id)

    if result.status is ScoreStatus.NOT_FOUND:
        raise HTTPException(status_code=404, detail="Lead not found")

    score = result.score or 0
    category = ScoreCategory.for_score(score)

    if result.succeeded:
        message = "Lead score recalculated successfully"
    else:
        message = "Lead score could not be recalculated"

    return LeadScoreResponse(
        lead_id=lead_id,
        score=score,
        category=category.value,
        color=category.color,
        status=result.status.value,
        message=message,
    )


@router.post(
    "/organizations/{organization_id}/leads/scores",
    response_model=BulkRecalculationResponse,
    summary="Recalculate All Lead Scores",
    description="Recompute and persist the score of every lead in the organization, one at a time."
)
def recalculate_all_lead_scores(
    organization_id: UUID,
    calculator: LeadScoreCalculator = Depends(get_calculator),
):
    """
    Recalculate every lead score of an organization.

    Leads that could not be scored are reported in `skipped` and left out of
    the tier summary. Large organizations make this a long-running request.
    """
    summary = summarize_scores(calculator.calculate_all_lead_scores(organization_id))

    return BulkRecalculationResponse(
        total_updated=summary.total - summary.skipped,
        skipped=summary.skipped,
        summary=TierCounts(hot=summary.hot, warm=summary.warm, cold=summary.cold),
        message="All lead scores recalculated successfully",
    )


@router.get(
    "/organizations/{organization_id}/leads/score-summary",
    response_model=ScoreSummaryResponse,
    responses={503: {"model": ErrorResponse}},
    summary="Lead Score Summary",
    description="Tier counts and average of the scores currently stored for the organization."
)
def get_score_summary(
    organization_id: UUID,
    calculator: LeadScoreCalculator = Depends(get_calculator),
):
    try:
        summary = calculator.get_score_summary(organization_id)
    except Exception as e:
        raise HTTPException(
            status_code=503,
            detail=f"Failed to get score summary: {str(e)}"
        )

    return ScoreSummaryResponse(
        hot_leads=summary.hot,
        warm_leads=summary.warm,
        cold_leads=summary.cold,
        average_score=summary.average_score,
        total_leads=summary.total_leads,
    )
