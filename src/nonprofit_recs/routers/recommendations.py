"""Recommendations router – exposes the recommendation pipeline via HTTP.

POST /recommendations
    Recommend nonprofits for an article.

GET /recommendations/cache/stats
    Cache hit/miss statistics.

POST /recommendations/cache/clear
    Drop every cached entry.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel, Field

from ..errors import DirectoryNotConfiguredError
from ..lib.orchestrator import DEFAULT_TOP_N, RecommendationOptions, RecommendationOrchestrator
from ..models import (
    ArticleContext,
    ArticleEntities,
    CacheStats,
    DebugInfo,
    EnrichedNonprofit,
    NonprofitRanked,
)
from ..security import verify_api_key

router = APIRouter(tags=["recommendations"], dependencies=[Depends(verify_api_key)])

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Request / Response models
# ---------------------------------------------------------------------------

class RecommendationRequest(BaseModel):
    """Request body for the recommend endpoint."""

    title: str = Field(..., min_length=1, description="Article title")
    description: str | None = None
    content: str | None = None
    url: str | None = None
    entities: ArticleEntities
    causes: list[str] = Field(..., description="Directory cause slugs for the article")
    keywords: list[str] = Field(default_factory=list)
    debug: bool = False
    top_n: int | None = Field(None, ge=1, le=50, description="Number of nonprofits to return")


class RecommendationResponse(BaseModel):
    success: bool = True
    nonprofits: list[EnrichedNonprofit | NonprofitRanked]
    debug: DebugInfo | None = None


class CacheStatsResponse(BaseModel):
    success: bool = True
    stats: CacheStats


class CacheClearResponse(BaseModel):
    success: bool = True
    message: str


def get_orchestrator(request: Request) -> RecommendationOrchestrator:
    orchestrator = getattr(request.app.state, "orchestrator", None)
    if orchestrator is None:
        raise HTTPException(status_code=503, detail="Recommendation engine is not initialised")
    return orchestrator


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.post("/recommendations", response_model=RecommendationResponse)
async def recommend(
    payload: RecommendationRequest,
    request: Request,
    orchestrator: RecommendationOrchestrator = Depends(get_orchestrator),
) -> RecommendationResponse:
    """Return ranked nonprofits for the supplied article."""
    context = ArticleContext(
        title=payload.title.strip(),
        description=payload.description,
        content=payload.content,
        url=payload.url,
        entities=payload.entities,
        causes=payload.causes,
        keywords=payload.keywords,
    )
    settings = getattr(request.app.state, "settings", None)
    top_n = payload.top_n or (settings.default_top_n if settings else DEFAULT_TOP_N)
    options = RecommendationOptions(debug=payload.debug, top_n=top_n)

    try:
        result = await orchestrator.recommend_nonprofits_for_article(context, options)
    except DirectoryNotConfiguredError as exc:
        logger.error("Nonprofit directory is not configured: %s", exc)
        raise HTTPException(status_code=503, detail="Nonprofit directory is not configured") from exc
    except Exception as exc:
        logger.exception("Recommendation pipeline failed")
        raise HTTPException(status_code=502, detail="Failed to get recommendations") from exc

    return RecommendationResponse(nonprofits=result.nonprofits, debug=result.debug)


@router.get("/recommendations/cache/stats", response_model=CacheStatsResponse)
async def cache_stats(
    orchestrator: RecommendationOrchestrator = Depends(get_orchestrator),
) -> CacheStatsResponse:
    return CacheStatsResponse(stats=orchestrator.get_cache_stats())


@router.post("/recommendations/cache/clear", response_model=CacheClearResponse)
async def cache_clear(
    orchestrator: RecommendationOrchestrator = Depends(get_orchestrator),
) -> CacheClearResponse:
    orchestrator.clear_cache()
    return CacheClearResponse(message="Cache cleared successfully")
