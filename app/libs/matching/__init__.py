"""
Semantic job matching engine.

Query-driven search (``SemanticSearchEngine``) and profile-driven
recommendations (``RecommendationEngine``) over a pluggable candidate store,
with cache-first embeddings and a tag-invalidatable result cache.
"""

from app.libs.matching.cache import BackgroundWriter, CacheStore, HybridCache, InMemoryCache
from app.libs.matching.candidate_store import CandidateStore, PostgresCandidateStore
from app.libs.matching.embedder import TextEmbedder
from app.libs.matching.embedding_cache import EmbeddingCache
from app.libs.matching.exceptions import (
    CacheInvalidationError,
    CandidateStoreError,
    EmbeddingProviderError,
    MatchingError,
    QueryBuildingError,
    ValidationError,
)
from app.libs.matching.models import (
    CandidateQuery,
    Embedded,
    EmbeddingResult,
    RecommendationWeights,
    SearchWeights,
    Unavailable,
)
from app.libs.matching.recommender import RecommendationEngine
from app.libs.matching.result_cache import ResultCache
from app.libs.matching.search_engine import SemanticSearchEngine

__all__ = [
    "BackgroundWriter",
    "CacheStore",
    "HybridCache",
    "InMemoryCache",
    "CandidateStore",
    "PostgresCandidateStore",
    "TextEmbedder",
    "EmbeddingCache",
    "CacheInvalidationError",
    "CandidateStoreError",
    "EmbeddingProviderError",
    "MatchingError",
    "QueryBuildingError",
    "ValidationError",
    "CandidateQuery",
    "Embedded",
    "EmbeddingResult",
    "RecommendationWeights",
    "SearchWeights",
    "Unavailable",
    "RecommendationEngine",
    "ResultCache",
    "SemanticSearchEngine",
]
