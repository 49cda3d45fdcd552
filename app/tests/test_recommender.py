import pytest

from app.libs.matching.cache import BackgroundWriter, InMemoryCache
from app.libs.matching.embedding_cache import EmbeddingCache
from app.libs.matching.exceptions import CandidateStoreError, ValidationError
from app.libs.matching.models import RecommendationWeights
from app.libs.matching.recommender import RecommendationEngine
from app.schemas.job import UserProfile
from app.schemas.search import MatchType
from app.tests.fakes import (
    QUERY_VECTOR,
    FakeCandidateStore,
    FakeEmbedder,
    make_job,
    unit_vector_with_similarity,
)

VECTORS = {
    "Backend Developer": QUERY_VECTOR,
    "Senior Python Engineer": unit_vector_with_similarity(0.9),
    "Applied Python Engineer": unit_vector_with_similarity(0.95),
    "Python Engineer II": unit_vector_with_similarity(0.95),
    "Data Engineer": unit_vector_with_similarity(0.7),
    "Line Cook": unit_vector_with_similarity(0.2),
}


@pytest.fixture
def profile():
    return UserProfile(
        user_id="u1",
        desired_job_title="Backend Developer",
        location="Stockton, CA",
        experience_level="mid",
        desired_salary=100000,
        skills=["python", "sql"],
        applied_job_ids=["2"],
    )


@pytest.fixture
def jobs():
    return [
        make_job(
            "1",
            "Senior Python Engineer",
            skills=["python", "sql"],
            experience_level="mid",
            salary_min=90000,
            salary_max=110000,
        ),
        make_job("2", "Applied Python Engineer", skills=["python", "sql"], experience_level="mid"),
        make_job("3", "Line Cook"),
        make_job(
            "4",
            "Data Engineer",
            skills=["python", "aws", "spark"],
            experience_level="senior",
            salary_min=100000,
        ),
        make_job("5", "Python Engineer II", skills=["python", "sql"], status="INACTIVE"),
    ]


def build_engine(store, embedder=None, weights=None, min_score=0.6):
    embedder = embedder or FakeEmbedder(vectors=VECTORS)
    cache = EmbeddingCache(InMemoryCache(), embedder, BackgroundWriter("test"))
    return RecommendationEngine(
        store,
        cache,
        weights=weights or RecommendationWeights(),
        min_score=min_score,
        candidate_limit=100,
    )


@pytest.mark.asyncio
async def test_recommendations_ranked_and_filtered(profile, jobs):
    store = FakeCandidateStore(jobs=jobs, profiles={"u1": profile})
    engine = build_engine(store)

    recommendations = await engine.get_job_recommendations("u1", "209", limit=10)

    assert [r.job.id for r in recommendations] == ["1", "4"]
    assert all(r.score > 0.6 for r in recommendations)
    assert recommendations[0].score == pytest.approx(0.40 * 0.9 + 0.25 + 0.15 + 0.10 + 0.10)
    assert store.queries[0].exclude_ids == ("2",)
    assert store.queries[0].region == "209"


@pytest.mark.asyncio
async def test_recommendation_reasons_and_match_type(profile, jobs):
    engine = build_engine(FakeCandidateStore(jobs=jobs, profiles={"u1": profile}))

    top, second = await engine.get_job_recommendations("u1", "209")

    # semantic is 0.9, every other signal is 1.0; skills wins the tie by precedence
    assert top.match_type == MatchType.SKILLS
    assert top.reasons == [
        "Strong AI match based on your profile",
        "Good skills alignment",
        "Perfect experience level match",
        "Great location match",
        "Salary matches your expectations",
    ]
    assert second.match_type == MatchType.LOCATION
    assert second.reasons == ["Great location match", "Salary matches your expectations"]
    assert second.signals.skills == pytest.approx(1 / 3)


@pytest.mark.asyncio
async def test_applied_jobs_excluded_even_if_store_returns_them(profile, jobs):
    class LeakyStore(FakeCandidateStore):
        async def find(self, query):
            self.queries.append(query)
            return list(self.jobs)

    engine = build_engine(LeakyStore(jobs=jobs, profiles={"u1": profile}))

    recommendations = await engine.get_job_recommendations("u1", "209")

    ids = [r.job.id for r in recommendations]
    assert "2" not in ids
    assert "5" not in ids


@pytest.mark.asyncio
async def test_limit(profile, jobs):
    engine = build_engine(FakeCandidateStore(jobs=jobs, profiles={"u1": profile}))

    recommendations = await engine.get_job_recommendations("u1", "209", limit=1)

    assert [r.job.id for r in recommendations] == ["1"]


@pytest.mark.asyncio
async def test_score_equal_to_min_score_is_excluded(profile):
    jobs = [
        make_job("1", "Exact", location="Stockton, CA"),
        make_job("2", "Contains", location="Stockton"),
    ]
    engine = build_engine(
        FakeCandidateStore(jobs=jobs, profiles={"u1": profile}),
        weights=RecommendationWeights(semantic=0, skills=0, experience=0, location=1, salary=0),
        min_score=0.8,
    )

    recommendations = await engine.get_job_recommendations("u1", "209")

    assert [r.job.id for r in recommendations] == ["1"]


@pytest.mark.asyncio
async def test_missing_profile_returns_empty():
    store = FakeCandidateStore(jobs=[make_job("1", "Line Cook")])
    embedder = FakeEmbedder()
    engine = build_engine(store, embedder=embedder)

    assert await engine.get_job_recommendations("nobody", "209") == []
    assert store.queries == []
    assert embedder.calls == []


@pytest.mark.asyncio
async def test_no_candidates_returns_empty(profile):
    engine = build_engine(FakeCandidateStore(profiles={"u1": profile}))

    assert await engine.get_job_recommendations("u1", "209") == []


@pytest.mark.asyncio
async def test_provider_down_scores_on_structure(profile, jobs):
    engine = build_engine(
        FakeCandidateStore(jobs=jobs, profiles={"u1": profile}),
        embedder=FakeEmbedder(fail=True),
        min_score=0.5,
    )

    recommendations = await engine.get_job_recommendations("u1", "209")

    assert [r.job.id for r in recommendations] == ["1"]
    assert recommendations[0].signals.semantic == 0.0


@pytest.mark.asyncio
async def test_invalid_limit_raises(profile):
    engine = build_engine(FakeCandidateStore(profiles={"u1": profile}))

    with pytest.raises(ValidationError):
        await engine.get_job_recommendations("u1", "209", limit=0)


@pytest.mark.asyncio
async def test_store_failure_propagates():
    engine = build_engine(FakeCandidateStore(fail=True))

    with pytest.raises(CandidateStoreError):
        await engine.get_job_recommendations("u1", "209")
