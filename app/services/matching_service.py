"""
Cached matching service.

Wraps the search and recommendation engines with the result cache and owns
invalidation: a posting or profile write drops both its cached embedding and
every cached result set that may contain it.
"""

from typing import Dict, List, Optional

from app.core.config import settings
from app.core.regions import get_region
from app.libs.matching.cache import BackgroundWriter, HybridCache
from app.libs.matching.candidate_store import PostgresCandidateStore
from app.libs.matching.embedder import TextEmbedder
from app.libs.matching.embedding_cache import EmbeddingCache
from app.libs.matching.recommender import RecommendationEngine
from app.libs.matching.result_cache import (
    ResultCache,
    job_tag,
    recommendation_tags,
    search_tags,
    user_tag,
)
from app.libs.matching.search_engine import SemanticSearchEngine
from app.log.logging import logger
from app.schemas.search import Recommendation, SearchFilters, SearchResult


class CachedMatchingService:
    def __init__(
        self,
        search_engine: SemanticSearchEngine,
        recommendation_engine: RecommendationEngine,
        result_cache: ResultCache,
        embedding_cache: EmbeddingCache,
    ):
        self.search_engine = search_engine
        self.recommendation_engine = recommendation_engine
        self.result_cache = result_cache
        self.embedding_cache = embedding_cache

    async def search_jobs(
        self,
        query: str,
        region: str,
        filters: Optional[SearchFilters] = None,
        limit: int = settings.search_default_limit,
        threshold: float = settings.search_similarity_threshold,
    ) -> List[SearchResult]:
        query = SemanticSearchEngine.validate(query, limit, threshold)
        region = get_region(region).code
        filters = filters or SearchFilters()

        key = ResultCache.generate_key(
            "search",
            region,
            query=query,
            limit=limit,
            threshold=threshold,
            **filters.cache_parts(),
        )
        return await self.result_cache.get_or_compute(
            key,
            lambda: self.search_engine.search_jobs(query, region, filters, limit, threshold),
            ttl=settings.search_cache_ttl,
            tags=lambda results: search_tags(region, [r.job.id for r in results]),
            encode=lambda results: [r.model_dump(mode="json") for r in results],
            decode=lambda cached: [SearchResult.model_validate(item) for item in cached],
        )

    async def get_job_recommendations(
        self,
        user_id: str,
        region: str,
        limit: int = settings.recommendation_default_limit,
    ) -> List[Recommendation]:
        region = get_region(region).code

        key = ResultCache.generate_key("recommendations", region, user_id=user_id, limit=limit)
        return await self.result_cache.get_or_compute(
            key,
            lambda: self.recommendation_engine.get_job_recommendations(user_id, region, limit),
            ttl=settings.recommendation_cache_ttl,
            tags=lambda recs: recommendation_tags(region, user_id, [r.job.id for r in recs]),
            encode=lambda recs: [r.model_dump(mode="json") for r in recs],
            decode=lambda cached: [Recommendation.model_validate(item) for item in cached],
        )

    async def invalidate_job(self, job_id: str) -> Dict[str, int]:
        """Drop the posting's embedding and every result set that may include it."""
        removed = await self.result_cache.invalidate_job(job_id)
        removed[f"embedding:{job_tag(job_id)}"] = await self.embedding_cache.invalidate(job_tag(job_id))
        logger.info("Invalidated caches for job", job_id=job_id, removed=sum(removed.values()))
        return removed

    async def invalidate_user(self, user_id: str) -> Dict[str, int]:
        removed = await self.result_cache.invalidate_user(user_id)
        removed[f"embedding:{user_tag(user_id)}"] = await self.embedding_cache.invalidate(user_tag(user_id))
        logger.info("Invalidated caches for user", user_id=user_id, removed=sum(removed.values()))
        return removed

    async def invalidate_region(self, region: str) -> Dict[str, int]:
        return await self.result_cache.invalidate_region(get_region(region).code)

    async def flush(self) -> None:
        """Wait for pending cache writes."""
        await self.embedding_cache.writer.flush()
        await self.result_cache.writer.flush()


def build_matching_service() -> CachedMatchingService:
    """Default production wiring: Postgres candidates, OpenAI embeddings, hybrid caches."""
    embedding_store = HybridCache(
        namespace=f"{settings.redis_namespace}:embeddings", ttl=settings.embedding_cache_ttl
    )
    result_store = HybridCache(
        namespace=f"{settings.redis_namespace}:results", ttl=settings.search_cache_ttl
    )

    store = PostgresCandidateStore()
    embedding_cache = EmbeddingCache(
        embedding_store, TextEmbedder(), BackgroundWriter("embedding cache")
    )

    return CachedMatchingService(
        search_engine=SemanticSearchEngine(store, embedding_cache),
        recommendation_engine=RecommendationEngine(store, embedding_cache),
        result_cache=ResultCache(result_store, BackgroundWriter("result cache")),
        embedding_cache=embedding_cache,
    )


_matching_service: Optional[CachedMatchingService] = None


def get_matching_service() -> CachedMatchingService:
    """FastAPI dependency returning the process-wide service."""
    global _matching_service
    if _matching_service is None:
        _matching_service = build_matching_service()
    return _matching_service


async def shutdown_matching_service() -> None:
    global _matching_service
    if _matching_service is not None:
        await _matching_service.flush()
        _matching_service = None
