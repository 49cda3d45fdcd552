from unittest.mock import AsyncMock, patch

import pytest

from app.libs.matching.cache import BackgroundWriter, InMemoryCache
from app.libs.matching.embedding_cache import EmbeddingCache
from app.libs.matching.exceptions import ValidationError
from app.libs.matching.models import RecommendationWeights, SearchWeights
from app.libs.matching.recommender import RecommendationEngine
from app.libs.matching.result_cache import ResultCache
from app.libs.matching.search_engine import SemanticSearchEngine
from app.schemas.job import UserProfile
from app.schemas.search import SearchFilters
from app.services import matching_service
from app.services.matching_service import CachedMatchingService
from app.tests.fakes import (
    QUERY_VECTOR,
    FakeCandidateStore,
    FakeEmbedder,
    make_job,
    unit_vector_with_similarity,
)

VECTORS = {
    "software engineer": QUERY_VECTOR,
    "Backend Developer": QUERY_VECTOR,
    "Senior Software Engineer": unit_vector_with_similarity(0.9),
}


@pytest.fixture
def store():
    profile = UserProfile(
        user_id="u1",
        desired_job_title="Backend Developer",
        skills=["python"],
        location="Stockton, CA",
    )
    return FakeCandidateStore(
        jobs=[make_job("1", "Senior Software Engineer", skills=["python"])],
        profiles={"u1": profile},
    )


@pytest.fixture
def embedder():
    return FakeEmbedder(vectors=VECTORS)


@pytest.fixture
def service(store, embedder):
    embedding_cache = EmbeddingCache(InMemoryCache(), embedder, BackgroundWriter("test embeddings"))
    return CachedMatchingService(
        search_engine=SemanticSearchEngine(store, embedding_cache, weights=SearchWeights()),
        recommendation_engine=RecommendationEngine(
            store, embedding_cache, weights=RecommendationWeights(), min_score=0.6
        ),
        result_cache=ResultCache(InMemoryCache(), BackgroundWriter("test results")),
        embedding_cache=embedding_cache,
    )


@pytest.mark.asyncio
async def test_search_is_cached(service, store):
    first = await service.search_jobs("software engineer", "209", threshold=0.7)
    await service.flush()
    second = await service.search_jobs("Software  Engineer", " 209 ", threshold=0.7)

    assert [r.job.id for r in first] == ["1"]
    assert second == first
    assert len(store.queries) == 1


@pytest.mark.asyncio
async def test_search_key_includes_filters(service, store):
    await service.search_jobs("software engineer", "209")
    await service.flush()
    await service.search_jobs("software engineer", "209", filters=SearchFilters(remote=True))

    assert len(store.queries) == 2


@pytest.mark.asyncio
async def test_search_validates_before_cache(service, store):
    with pytest.raises(ValidationError):
        await service.search_jobs("   ", "209")
    assert store.queries == []


@pytest.mark.asyncio
async def test_recommendations_are_cached(service, store):
    first = await service.get_job_recommendations("u1", "209", limit=5)
    await service.flush()
    second = await service.get_job_recommendations("u1", "209", limit=5)

    assert [r.job.id for r in first] == ["1"]
    assert second == first
    assert store.profile_lookups == ["u1"]


@pytest.mark.asyncio
async def test_invalidate_job_forces_recompute(service, store):
    await service.search_jobs("software engineer", "209")
    await service.get_job_recommendations("u1", "209")
    await service.flush()

    removed = await service.invalidate_job("1")

    assert removed["job:1"] >= 1
    assert removed["embedding:job:1"] == 1

    await service.search_jobs("software engineer", "209")
    await service.get_job_recommendations("u1", "209")
    assert len(store.queries) == 4


@pytest.mark.asyncio
async def test_invalidate_user_drops_profile_embedding_and_results(service, store, embedder):
    await service.get_job_recommendations("u1", "209")
    await service.flush()

    removed = await service.invalidate_user("u1")

    assert removed == {"user:u1": 1, "embedding:user:u1": 1}

    calls = len(embedder.calls)
    await service.get_job_recommendations("u1", "209")
    # profile re-embedded, job embedding still cached
    assert len(embedder.calls) == calls + 1


@pytest.mark.asyncio
async def test_invalidate_region(service, store):
    await service.search_jobs("software engineer", "209")
    await service.flush()

    assert await service.invalidate_region(" 209 ") == {"region:209": 1}


@pytest.mark.asyncio
async def test_get_matching_service_is_lazy_singleton():
    built = AsyncMock(spec=CachedMatchingService)

    with patch.object(matching_service, "_matching_service", None), patch.object(
        matching_service, "build_matching_service", return_value=built
    ) as build:
        assert matching_service.get_matching_service() is built
        assert matching_service.get_matching_service() is built
        build.assert_called_once()

        await matching_service.shutdown_matching_service()
        built.flush.assert_awaited_once()
        assert matching_service._matching_service is None
