from fastapi import APIRouter
from fastapi.responses import JSONResponse

from app.core.config import settings
from app.libs.redis.factory import RedisCacheFactory
from app.log.logging import logger
from app.utils.db_utils import get_db_cursor

router = APIRouter(tags=["healthcheck"])


async def _check_postgres() -> bool:
    try:
        async with get_db_cursor() as cursor:
            await cursor.execute("SELECT 1")
            await cursor.fetchone()
        return True
    except Exception as e:
        logger.error(f"Postgres health check failed: {e}")
        return False


@router.get(
    "/healthcheck",
    description="Health check endpoint",
    responses={
        200: {"description": "Health check passed"},
        503: {"description": "Job store unreachable"},
    },
)
async def health_check(withlog: bool = False):
    if withlog:
        logger.debug("healthcheck debug log")
        logger.info("healthcheck info log")
        logger.warning("healthcheck warning log")
        logger.error("healthcheck error log")

    postgres_ok = await _check_postgres()
    redis_ok = await RedisCacheFactory.ping() if settings.redis_enabled else False

    # Redis is optional: without it the service runs on local caches
    body = {
        "status": "healthy" if postgres_ok else "unhealthy",
        "service": settings.service_name,
        "checks": {
            "postgres": "healthy" if postgres_ok else "unhealthy",
            "redis": "healthy" if redis_ok else ("disabled" if not settings.redis_enabled else "degraded"),
        },
    }
    return JSONResponse(status_code=200 if postgres_ok else 503, content=body)
