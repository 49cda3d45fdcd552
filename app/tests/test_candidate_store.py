from contextlib import asynccontextmanager
from unittest.mock import AsyncMock, patch

import psycopg
import pytest

from app.libs.matching.candidate_store import PostgresCandidateStore
from app.libs.matching.exceptions import CandidateStoreError
from app.libs.matching.models import CandidateQuery
from app.libs.matching.query_builder import PROFILE_QUERY
from app.schemas.job import JobStatus


def cursor_factory(cursor):
    @asynccontextmanager
    async def fake_get_db_cursor(pool_name="default"):
        yield cursor

    return fake_get_db_cursor


@pytest.fixture
def mock_cursor():
    cursor = AsyncMock(spec=psycopg.AsyncCursor)
    cursor.fetchall = AsyncMock(return_value=[])
    cursor.fetchone = AsyncMock(return_value=None)
    return cursor


@pytest.mark.asyncio
async def test_find_maps_rows(mock_cursor):
    mock_cursor.fetchall.return_value = [
        {
            "id": 12,
            "title": "Line Cook",
            "company": None,
            "description": "Prep and grill",
            "location": "Stockton, CA",
            "region": "209",
            "remote": False,
            "job_type": "full-time",
            "experience_level": "entry",
            "salary_min": 38000,
            "salary_max": None,
            "categories": "{Hospitality,Food}",
            "skills": ["grill", "prep"],
            "status": "active",
            "created_at": None,
        }
    ]

    with patch("app.libs.matching.candidate_store.get_db_cursor", cursor_factory(mock_cursor)):
        jobs = await PostgresCandidateStore().find(CandidateQuery(region="209", limit=5))

    assert len(jobs) == 1
    job = jobs[0]
    assert job.id == "12"
    assert job.company == ""
    assert job.categories == ["Hospitality", "Food"]
    assert job.status == JobStatus.ACTIVE

    sql, params = mock_cursor.execute.await_args.args
    assert "FROM jobs AS j" in sql
    assert params[-1] == 5


@pytest.mark.asyncio
async def test_find_skips_malformed_rows(mock_cursor):
    mock_cursor.fetchall.return_value = [
        {"id": 1, "title": None},
        {"id": 2, "title": "Driver"},
    ]

    with patch("app.libs.matching.candidate_store.get_db_cursor", cursor_factory(mock_cursor)):
        jobs = await PostgresCandidateStore().find(CandidateQuery(region="209"))

    assert [job.id for job in jobs] == ["2"]


@pytest.mark.asyncio
async def test_find_wraps_database_errors(mock_cursor):
    mock_cursor.execute.side_effect = psycopg.OperationalError("connection refused")

    with patch("app.libs.matching.candidate_store.get_db_cursor", cursor_factory(mock_cursor)):
        with pytest.raises(CandidateStoreError):
            await PostgresCandidateStore().find(CandidateQuery(region="209"))


@pytest.mark.asyncio
async def test_find_wraps_pool_errors():
    @asynccontextmanager
    async def broken_cursor(pool_name="default"):
        raise psycopg.OperationalError("pool exhausted")
        yield

    with patch("app.libs.matching.candidate_store.get_db_cursor", broken_cursor):
        with pytest.raises(CandidateStoreError):
            await PostgresCandidateStore().find(CandidateQuery(region="209"))


@pytest.mark.asyncio
async def test_find_user_profile(mock_cursor):
    mock_cursor.fetchone.return_value = {
        "user_id": 7,
        "desired_job_title": "Data Analyst",
        "bio": None,
        "location": "Modesto",
        "preferred_job_type": None,
        "experience_level": "mid",
        "desired_salary": 65000,
        "skills": ["SQL", "Excel"],
        "interests": None,
        "applied_job_ids": [3, 4],
        "saved_job_ids": [],
    }

    with patch("app.libs.matching.candidate_store.get_db_cursor", cursor_factory(mock_cursor)):
        profile = await PostgresCandidateStore().find_user_profile("7")

    assert profile.user_id == "7"
    assert profile.applied_job_ids == ["3", "4"]
    assert profile.interests == []
    mock_cursor.execute.assert_awaited_once_with(PROFILE_QUERY, ["7"])


@pytest.mark.asyncio
async def test_find_user_profile_missing(mock_cursor):
    with patch("app.libs.matching.candidate_store.get_db_cursor", cursor_factory(mock_cursor)):
        assert await PostgresCandidateStore().find_user_profile("nobody") is None


@pytest.mark.asyncio
async def test_find_user_profile_wraps_errors(mock_cursor):
    mock_cursor.execute.side_effect = psycopg.OperationalError("timeout")

    with patch("app.libs.matching.candidate_store.get_db_cursor", cursor_factory(mock_cursor)):
        with pytest.raises(CandidateStoreError):
            await PostgresCandidateStore().find_user_profile("7")


@pytest.mark.asyncio
async def test_find_user_profile_malformed_row(mock_cursor):
    mock_cursor.fetchone.return_value = {"user_id": 7, "desired_salary": "a lot"}

    with patch("app.libs.matching.candidate_store.get_db_cursor", cursor_factory(mock_cursor)):
        with pytest.raises(CandidateStoreError, match="Malformed profile"):
            await PostgresCandidateStore().find_user_profile("7")
