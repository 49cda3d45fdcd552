"""
Personalized job recommendations for the authenticated user.
"""

from fastapi import APIRouter, Depends, Query

from app.core.auth import get_current_user
from app.core.config import settings
from app.core.regions import DEFAULT_REGION, get_region
from app.libs.matching.signals import confidence_level
from app.log.logging import logger
from app.schemas.search import RecommendationItem, RecommendationsResponse
from app.services.matching_service import CachedMatchingService, get_matching_service

router = APIRouter(
    prefix="/recommendations",
    tags=["recommendations"],
    responses={
        401: {"description": "Not authenticated"},
        503: {"description": "Job store unavailable"},
    },
)


@router.get(
    "/jobs",
    response_model=RecommendationsResponse,
    summary="Job Recommendations",
    description="Recommends active postings in a region based on the caller's profile.",
)
async def get_job_recommendations(
    region: str = Query(DEFAULT_REGION, description="Region code, e.g. 209"),
    limit: int = Query(settings.recommendation_default_limit, ge=1),
    current_user: str = Depends(get_current_user),
    service: CachedMatchingService = Depends(get_matching_service),
):
    region_config = get_region(region)
    limit = min(limit, settings.recommendation_max_limit)

    logger.info(
        "User {current_user} is requesting recommendations",
        current_user=current_user,
        region=region_config.code,
        limit=limit,
    )

    recommendations = await service.get_job_recommendations(current_user, region_config.code, limit)
    items = [
        RecommendationItem(**rec.model_dump(), confidence=confidence_level(rec.score))
        for rec in recommendations
    ]
    return RecommendationsResponse(
        recommendations=items,
        total=len(items),
        user_id=current_user,
        region=region_config.code,
        region_name=region_config.name,
    )
