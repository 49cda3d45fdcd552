"""
Semantic job search.

Flow: structural candidate retrieval -> query embedding -> per-candidate
embeddings (bounded fan-out) -> similarity threshold -> lexical relevance ->
weighted blend -> stable sort -> top ``limit`` with explanations.
"""

from typing import List, Optional, Tuple

from loguru import logger

from app.core.config import settings
from app.libs.matching.candidate_store import CandidateStore
from app.libs.matching.embedding_cache import EmbeddingCache, query_entity_id
from app.libs.matching.exceptions import ValidationError
from app.libs.matching.lexical import (
    build_job_text,
    explain_search_match,
    extract_matched_concepts,
    relevance,
)
from app.libs.matching.models import CandidateQuery, SearchWeights
from app.libs.matching.signals import clamp
from app.libs.matching.similarity import embedding_similarity
from app.libs.matching.utils import performance_log
from app.schemas.search import SearchFilters, SearchResult


class SemanticSearchEngine:
    """Ranks job postings against a free-text query."""

    def __init__(
        self,
        store: CandidateStore,
        embedding_cache: EmbeddingCache,
        weights: Optional[SearchWeights] = None,
        candidate_limit: int = settings.search_candidate_limit,
        concurrency: int = settings.embedding_concurrency,
    ):
        self.store = store
        self.embedding_cache = embedding_cache
        self.weights = weights or SearchWeights.from_settings()
        self.candidate_limit = candidate_limit
        self.concurrency = concurrency

    @staticmethod
    def validate(query: str, limit: int, threshold: float) -> str:
        query = (query or "").strip()
        if not query:
            raise ValidationError("Search query must not be empty")
        if limit < 1:
            raise ValidationError(f"limit must be at least 1, got {limit}")
        if not 0.0 <= threshold <= 1.0:
            raise ValidationError(f"threshold must be between 0 and 1, got {threshold}")
        return query

    @performance_log
    async def search_jobs(
        self,
        query: str,
        region: str,
        filters: Optional[SearchFilters] = None,
        limit: int = settings.search_default_limit,
        threshold: float = settings.search_similarity_threshold,
    ) -> List[SearchResult]:
        """
        Search active postings in ``region`` that semantically match ``query``.

        Args:
            query: Free-text search query
            region: Region code used for candidate retrieval
            filters: Optional structural filters
            limit: Maximum number of results
            threshold: Minimum cosine similarity a result must reach

        Returns:
            Results sorted by descending combined score

        Raises:
            ValidationError: on an empty query or out-of-range limit/threshold
            CandidateStoreError: when candidates cannot be retrieved
        """
        query = self.validate(query, limit, threshold)
        filters = filters or SearchFilters()

        candidates = await self.store.find(
            CandidateQuery(region=region, filters=filters, limit=self.candidate_limit)
        )
        if not candidates:
            logger.info("No candidates for search", region=region)
            return []

        query_embedding = await self.embedding_cache.get_or_compute(query_entity_id(query), query)
        job_embeddings = await self.embedding_cache.embed_jobs(candidates, self.concurrency)

        unavailable = sum(1 for e in job_embeddings if not e.available)
        if not query_embedding.available or unavailable:
            logger.warning(
                "Semantic signal degraded",
                query_embedding_available=query_embedding.available,
                unavailable_job_embeddings=unavailable,
                candidates=len(candidates),
            )

        scored: List[Tuple[float, SearchResult]] = []
        for job, job_embedding in zip(candidates, job_embeddings):
            if not job.is_active:
                continue

            semantic = embedding_similarity(query_embedding, job_embedding)
            if semantic < threshold:
                continue

            lexical = relevance(job, query)
            combined = clamp(self.weights.semantic * semantic + self.weights.lexical * lexical)
            scored.append(
                (
                    combined,
                    SearchResult(
                        job=job,
                        semantic_score=clamp(semantic),
                        relevance_score=lexical,
                        combined_score=combined,
                        explanation="",
                    ),
                )
            )

        # sorted() is stable, so equal scores keep candidate-store order
        ranked = [result for _, result in sorted(scored, key=lambda item: item[0], reverse=True)]
        results = ranked[:limit]

        for result in results:
            result.matched_concepts = extract_matched_concepts(query, build_job_text(result.job))
            result.explanation = explain_search_match(
                result.job, query, result.semantic_score, result.matched_concepts
            )

        logger.info(
            "Semantic search completed",
            region=region,
            candidates=len(candidates),
            above_threshold=len(scored),
            returned=len(results),
        )
        return results
