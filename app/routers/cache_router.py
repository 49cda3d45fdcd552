"""
Internal cache invalidation endpoints.

Called by the posting and profile workflows after a write so that no cached
embedding or result set keeps serving the old content.
"""

from typing import Dict

from fastapi import APIRouter, Depends, Path

from app.core.auth import verify_api_key
from app.log.logging import logger
from app.schemas.search import InvalidationResponse
from app.services.matching_service import CachedMatchingService, get_matching_service

router = APIRouter(
    prefix="/cache/invalidate",
    tags=["cache"],
    dependencies=[Depends(verify_api_key)],
    responses={
        403: {"description": "Invalid API key"},
        503: {"description": "Cache invalidation failed"},
    },
)


def _response(removed: Dict[str, int]) -> InvalidationResponse:
    return InvalidationResponse(
        invalidated_tags=list(removed),
        removed_entries=sum(removed.values()),
    )


@router.post("/jobs/{job_id}", response_model=InvalidationResponse)
async def invalidate_job(
    job_id: str = Path(..., min_length=1),
    service: CachedMatchingService = Depends(get_matching_service),
):
    logger.info("Cache invalidation requested for job {job_id}", job_id=job_id)
    return _response(await service.invalidate_job(job_id))


@router.post("/users/{user_id}", response_model=InvalidationResponse)
async def invalidate_user(
    user_id: str = Path(..., min_length=1),
    service: CachedMatchingService = Depends(get_matching_service),
):
    logger.info("Cache invalidation requested for user {user_id}", user_id=user_id)
    return _response(await service.invalidate_user(user_id))


@router.post("/regions/{region}", response_model=InvalidationResponse)
async def invalidate_region(
    region: str = Path(..., min_length=1),
    service: CachedMatchingService = Depends(get_matching_service),
):
    logger.info("Cache invalidation requested for region {region}", region=region)
    return _response(await service.invalidate_region(region))
