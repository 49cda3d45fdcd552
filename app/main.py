from contextlib import asynccontextmanager
from typing import Dict

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from app.core.config import settings
from app.libs.matching.exceptions import CacheInvalidationError, CandidateStoreError, ValidationError
from app.libs.redis.factory import RedisCacheFactory
from app.log.logging import logger
from app.routers.cache_router import router as cache_router
from app.routers.healthcheck_router import router as healthcheck_router
from app.routers.recommendations_router import router as recommendations_router
from app.routers.semantic_search_router import router as semantic_search_router
from app.services.matching_service import shutdown_matching_service
from app.utils.db_utils import close_all_connection_pools, get_connection_pool


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manages application startup and shutdown.

    Args:
        app: FastAPI application instance
    """
    logger.info("Starting application", service=settings.service_name, environment=settings.environment)

    logger.info("Initializing database connection pools")
    try:
        await get_connection_pool("default")
        logger.info("Database connection pools initialized")
    except Exception as e:
        # Requests fail with 503 until the database is reachable
        logger.error(f"Failed to initialize database connection pool: {str(e)}")

    logger.info("Initializing Redis cache")
    try:
        if await RedisCacheFactory.initialize():
            logger.info("Redis cache initialized successfully")
        else:
            logger.info("Matching will use in-memory cache as fallback")
    except Exception as e:
        logger.error(f"Failed to initialize Redis cache: {str(e)}")
        logger.info("Matching will use in-memory cache as fallback")

    logger.info("Application started successfully")

    yield

    logger.info("Shutting down application")

    await shutdown_matching_service()
    logger.info("Pending cache writes flushed")

    await close_all_connection_pools()
    logger.info("Database connection pools closed")

    try:
        await RedisCacheFactory.close()
        logger.info("Redis connections closed")
    except Exception as e:
        logger.error(f"Error closing Redis connections: {str(e)}")

    logger.info("Application shut down successfully")


app = FastAPI(
    lifespan=lifespan,
    title="Job Matching API",
    description="Semantic job search and personalized job recommendations.",
    version="1.0.0",
)


@app.exception_handler(CandidateStoreError)
async def candidate_store_error_handler(request: Request, exc: CandidateStoreError):
    logger.error("Candidate store unavailable", path=request.url.path, error=str(exc))
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": "Job store is temporarily unavailable"},
    )


@app.exception_handler(CacheInvalidationError)
async def cache_invalidation_error_handler(request: Request, exc: CacheInvalidationError):
    logger.error("Cache invalidation failed", path=request.url.path, error=str(exc))
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": "Cache invalidation failed, retry the request"},
    )


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    logger.warning("Rejected invalid request", path=request.url.path, error=str(exc))
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": str(exc)},
    )


@app.get("/")
async def root() -> Dict[str, str]:
    return {"message": "Matching Service is running!"}


app.include_router(semantic_search_router)
app.include_router(recommendations_router)
app.include_router(cache_router)
app.include_router(healthcheck_router)
