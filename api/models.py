"""
API Request and Response Models.

Pydantic models for serializing lead scoring responses.
"""

from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field


# ============================================================================
# Lead Score Models
# ============================================================================

class LeadScoreResponse(BaseModel):
    """Result of recalculating one lead's score."""
    lead_id: UUID
    score: int = Field(..., ge=0, le=100)
    category: str  # "hot", "warm" or "cold"
    color: str
    status: str  # "scored" or "store_error"
    message: Optional[str] = None

    class Config:
        json_schema_extra = {
            "example": {
                "lead_id": "123e4567-e89b-12d3-a456-426614174000",
                "score": 72,
                "category": "hot",
                "color": "#EF4444",
                "status": "scored",
                "message": "Lead score recalculated successfully"
            }
        }


class TierCounts(BaseModel):
    """Number of leads per score tier."""
    hot: int
    warm: int
    cold: int


class BulkRecalculationResponse(BaseModel):
    """Result of recalculating every lead score of an organization."""
    total_updated: int
    skipped: int
    summary: TierCounts
    message: Optional[str] = None

    class Config:
        json_schema_extra = {
            "example": {
                "total_updated": 42,
                "skipped": 1,
                "summary": {"hot": 8, "warm": 15, "cold": 18},
                "message": "All lead scores recalculated successfully"
            }
        }


class ScoreSummaryResponse(BaseModel):
    """Tier counts and average over the scores currently stored."""
    hot_leads: int
    warm_leads: int
    cold_leads: int
    average_score: int
    total_leads: int

    class Config:
        json_schema_extra = {
            "example": {
                "hot_leads": 8,
                "warm_leads": 15,
                "cold_leads": 19,
                "average_score": 47,
                "total_leads": 42
            }
        }


# ============================================================================
# Error Models
# ============================================================================

class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str
    detail: Optional[str] = None
    status_code: int

    class Config:
        json_schema_extra = {
            "example": {
                "error": "Not found",
                "detail": "Lead not found",
                "status_code": 404
            }
        }
