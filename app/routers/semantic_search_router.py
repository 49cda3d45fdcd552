"""
Semantic job search endpoint.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.core.config import settings
from app.core.regions import DEFAULT_REGION, get_region
from app.log.logging import logger
from app.schemas.search import SearchFilters, SemanticSearchResponse
from app.services.matching_service import CachedMatchingService, get_matching_service
from app.utils.text import sanitize_query

router = APIRouter(
    prefix="/jobs",
    tags=["jobs"],
    responses={
        400: {"description": "Invalid search parameters"},
        503: {"description": "Job store unavailable"},
    },
)


@router.get(
    "/semantic-search",
    response_model=SemanticSearchResponse,
    summary="Semantic Job Search",
    description="Ranks active postings in a region by embedding similarity to a free-text query.",
)
async def semantic_search(
    q: str = Query(..., description="Free-text search query"),
    region: str = Query(DEFAULT_REGION, description="Region code, e.g. 209"),
    job_type: Optional[str] = Query(None, description="Exact job type, e.g. full-time"),
    experience_level: Optional[str] = Query(None, description="Exact experience level, e.g. senior"),
    salary_min: Optional[float] = Query(None, ge=0, description="Minimum of the posted salary range"),
    salary_max: Optional[float] = Query(None, ge=0, description="Maximum of the posted salary range"),
    remote: Optional[bool] = Query(None, description="Only remote postings when true"),
    location: Optional[str] = Query(None, description="Posting location contains this text"),
    skills: Optional[List[str]] = Query(None, description="Posting requires any of these skills"),
    limit: int = Query(settings.search_default_limit, ge=1, le=settings.search_max_limit),
    threshold: float = Query(settings.search_similarity_threshold, ge=0.0, le=1.0),
    service: CachedMatchingService = Depends(get_matching_service),
):
    query = sanitize_query(q, settings.search_max_query_length)
    if not query:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Search query must not be empty",
        )

    filters = SearchFilters(
        job_type=job_type,
        experience_level=experience_level,
        salary_min=salary_min,
        salary_max=salary_max,
        remote=remote,
        location=location,
        skills=skills,
    )
    region_code = get_region(region).code

    logger.info(
        "Semantic search requested",
        region=region_code,
        query_length=len(query),
        limit=limit,
        threshold=threshold,
        filters=filters.cache_parts(),
    )

    results = await service.search_jobs(query, region_code, filters, limit, threshold)
    return SemanticSearchResponse(
        results=results,
        total=len(results),
        query=query,
        region=region_code,
        threshold=threshold,
    )
