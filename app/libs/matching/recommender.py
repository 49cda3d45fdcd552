"""
Personalized job recommendations.

A profile is embedded once, compared with every in-region candidate, and
blended with four structural signals. Jobs the user already applied to are
excluded both in the candidate query and again after retrieval.
"""

from typing import List, Optional

from loguru import logger

from app.core.config import settings
from app.libs.matching.candidate_store import CandidateStore
from app.libs.matching.embedding_cache import EmbeddingCache, user_entity_id
from app.libs.matching.exceptions import ValidationError
from app.libs.matching.lexical import build_profile_text
from app.libs.matching.models import CandidateQuery, RecommendationWeights
from app.libs.matching.signals import (
    blend,
    compute_signals,
    dominant_match_type,
    recommendation_reasons,
)
from app.libs.matching.similarity import embedding_similarity
from app.libs.matching.utils import performance_log
from app.schemas.search import Recommendation


class RecommendationEngine:
    def __init__(
        self,
        store: CandidateStore,
        embedding_cache: EmbeddingCache,
        weights: Optional[RecommendationWeights] = None,
        min_score: float = settings.recommendation_min_score,
        candidate_limit: int = settings.recommendation_candidate_limit,
        concurrency: int = settings.embedding_concurrency,
    ):
        self.store = store
        self.embedding_cache = embedding_cache
        self.weights = weights or RecommendationWeights.from_settings()
        self.min_score = min_score
        self.candidate_limit = candidate_limit
        self.concurrency = concurrency

    @performance_log
    async def get_job_recommendations(
        self,
        user_id: str,
        region: str,
        limit: int = settings.recommendation_default_limit,
    ) -> List[Recommendation]:
        """
        Recommend active in-region postings for ``user_id``.

        Returns an empty list when the user has no profile.

        Raises:
            ValidationError: when ``limit`` is below 1
            CandidateStoreError: when the profile or candidates cannot be read
        """
        if limit < 1:
            raise ValidationError(f"limit must be at least 1, got {limit}")

        profile = await self.store.find_user_profile(user_id)
        if profile is None:
            logger.info("No profile found, skipping recommendations", user_id=user_id)
            return []

        entity_id = user_entity_id(profile.user_id)
        profile_embedding = await self.embedding_cache.get_or_compute(
            entity_id, build_profile_text(profile), tags=(entity_id,)
        )

        applied = set(profile.applied_job_ids)
        candidates = await self.store.find(
            CandidateQuery(
                region=region,
                exclude_ids=tuple(sorted(applied)),
                limit=self.candidate_limit,
            )
        )
        candidates = [job for job in candidates if job.is_active and job.id not in applied]
        if not candidates:
            logger.info("No candidates for recommendations", user_id=user_id, region=region)
            return []

        job_embeddings = await self.embedding_cache.embed_jobs(candidates, self.concurrency)

        recommendations: List[Recommendation] = []
        for job, job_embedding in zip(candidates, job_embeddings):
            signals = compute_signals(
                profile, job, embedding_similarity(profile_embedding, job_embedding)
            )
            total = blend(signals, self.weights)
            if total <= self.min_score:
                continue

            recommendations.append(
                Recommendation(
                    job=job,
                    score=total,
                    reasons=recommendation_reasons(signals),
                    match_type=dominant_match_type(signals),
                    signals=signals,
                )
            )

        recommendations.sort(key=lambda rec: rec.score, reverse=True)
        results = recommendations[:limit]

        logger.info(
            "Recommendations generated",
            user_id=user_id,
            region=region,
            candidates=len(candidates),
            above_min_score=len(recommendations),
            returned=len(results),
            profile_embedding_available=profile_embedding.available,
        )
        return results
