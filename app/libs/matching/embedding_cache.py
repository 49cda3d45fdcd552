"""
Cache-first embedding lookup.

Vectors are stored under ``embedding:<model>:<dimensions>:<entity_id>`` so a
model or dimensionality change never serves stale vectors. Only real vectors
are cached; an ``Unavailable`` result is returned to the caller but retried
on the next request.
"""

import asyncio
import hashlib
from typing import Any, Iterable, List, Optional

from loguru import logger

from app.core.config import settings
from app.libs.matching.cache import BackgroundWriter, CacheStore
from app.libs.matching.embedder import TextEmbedder
from app.libs.matching.lexical import build_job_text
from app.libs.matching.models import Embedded, EmbeddingResult
from app.schemas.job import JobPosting

EMBEDDINGS_TAG = "embeddings"


def job_entity_id(job_id: str) -> str:
    return f"job:{job_id}"


def user_entity_id(user_id: str) -> str:
    return f"user:{user_id}"


def query_entity_id(text: str) -> str:
    normalized = " ".join(text.lower().split())
    return "query:" + hashlib.sha256(normalized.encode("utf-8")).hexdigest()


class EmbeddingCache:
    def __init__(
        self,
        store: CacheStore,
        embedder: TextEmbedder,
        writer: Optional[BackgroundWriter] = None,
        ttl: int = settings.embedding_cache_ttl,
    ):
        self.store = store
        self.embedder = embedder
        self.writer = writer or BackgroundWriter("embedding cache")
        self.ttl = ttl

    def cache_key(self, entity_id: str) -> str:
        return f"embedding:{self.embedder.model}:{self.embedder.dimensions}:{entity_id}"

    def _decode(self, key: str, cached: Any) -> Optional[Embedded]:
        if not isinstance(cached, list) or len(cached) != self.embedder.dimensions:
            logger.warning(
                "Discarding cached embedding with unexpected shape",
                key=key,
                length=len(cached) if isinstance(cached, list) else None,
            )
            return None
        return Embedded([float(v) for v in cached], cached=True)

    async def get_or_compute(
        self, entity_id: str, text: str, tags: Iterable[str] = ()
    ) -> EmbeddingResult:
        """
        Return the cached vector for ``entity_id`` or compute and store it.

        Args:
            entity_id: Stable identifier of the embedded content
            text: Text to embed on a miss
            tags: Extra invalidation tags besides ``embeddings``
        """
        key = self.cache_key(entity_id)

        try:
            cached = await self.store.get(key)
        except Exception as e:
            logger.warning(f"Embedding cache read failed, treating as miss: {str(e)}", key=key)
            cached = None

        if cached is not None:
            hit = self._decode(key, cached)
            if hit is not None:
                logger.trace("Embedding cache hit", entity_id=entity_id)
                return hit

        result = await self.embedder.embed(text)
        if not result.available:
            logger.info(
                "Embedding unavailable, not caching",
                entity_id=entity_id,
                reason=result.reason,
            )
            return result

        all_tags = [EMBEDDINGS_TAG, *tags]
        self.writer.submit(
            self.store.set(key, result.vector, ttl=self.ttl, tags=all_tags),
            description=key,
        )
        return result

    async def embed_jobs(
        self, jobs: List[JobPosting], concurrency: int = settings.embedding_concurrency
    ) -> List[EmbeddingResult]:
        """Cache-first embeddings for every posting, at most ``concurrency`` in flight."""
        semaphore = asyncio.Semaphore(concurrency)

        async def embed_one(job: JobPosting) -> EmbeddingResult:
            entity_id = job_entity_id(job.id)
            async with semaphore:
                return await self.get_or_compute(entity_id, build_job_text(job), tags=(entity_id,))

        return await asyncio.gather(*(embed_one(job) for job in jobs))

    async def invalidate(self, tag: str) -> int:
        return await self.store.invalidate(tag)
