"""
Lead Scoring API - Main Application.

FastAPI application exposing the lead scoring admin endpoints.
"""

from http import HTTPStatus

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from api import __version__
from api.models import ErrorResponse
from domain.lead_score import (
    HOT_MIN_SCORE,
    MAX_SCORE,
    MIN_SCORE,
    WARM_MIN_SCORE,
    ScoreCategory,
)

# Create FastAPI application
app = FastAPI(
    title="Lead Scoring API",
    description="Recalculate and summarize CRM lead scores per organization",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)

# Configure CORS - Allow all origins for development
# TODO: Restrict origins to the CRM frontend domain in production
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Render HTTP errors as ErrorResponse bodies."""
    try:
        error = HTTPStatus(exc.status_code).phrase
    except ValueError:
        error = "Error"

    body = ErrorResponse(error=error, detail=str(exc.detail), status_code=exc.status_code)
    return JSONResponse(
        status_code=exc.status_code,
        content=body.model_dump(),
        headers=getattr(exc, "headers", None),
    )


@app.get("/health", tags=["Health"])
def health_check():
    """
    Health check endpoint.

    Returns the API status and version. Does not touch the database.
    """
    return {
        "status": "healthy",
        "version": __version__,
        "service": "lead-scoring-api"
    }


@app.get("/", tags=["Root"])
def root():
    """Service index with the score range and tier colors clients render."""
    return {
        "message": "Lead Scoring API",
        "version": __version__,
        "score_range": [MIN_SCORE, MAX_SCORE],
        "tiers": {
            "hot": {"min_score": HOT_MIN_SCORE, "color": ScoreCategory.HOT.color},
            "warm": {"min_score": WARM_MIN_SCORE, "color": ScoreCategory.WARM.color},
            "cold": {"min_score": MIN_SCORE, "color": ScoreCategory.COLD.color},
        },
        "docs": "/docs",
        "health": "/health"
    }


# Import and include routers
from api.routers import lead_scores

app.include_router(lead_scores.router, prefix="/api/v1", tags=["Lead Scores"])
