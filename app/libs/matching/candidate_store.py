"""
Candidate store: where the engines read postings and profiles from.

The engines depend only on the ``CandidateStore`` protocol. Any failure of
the store is raised as ``CandidateStoreError``; there is no local fallback
for not knowing which postings exist.
"""

from typing import List, Optional, Protocol

from pydantic import ValidationError as PydanticValidationError

from app.libs.matching.exceptions import CandidateStoreError
from app.libs.matching.models import CandidateQuery
from app.libs.matching.query_builder import PROFILE_QUERY, CandidateQueryBuilder
from app.libs.matching.utils import performance_log, trace_sql_execution
from app.log.logging import logger
from app.schemas.job import JobPosting, UserProfile
from app.utils.db_utils import get_db_cursor


class CandidateStore(Protocol):
    async def find(self, query: CandidateQuery) -> List[JobPosting]: ...

    async def find_user_profile(self, user_id: str) -> Optional[UserProfile]: ...


class PostgresCandidateStore:
    """Candidate store backed by the job board's PostgreSQL database."""

    def __init__(self, pool_name: str = "default", query_builder: Optional[CandidateQueryBuilder] = None):
        self.pool_name = pool_name
        self.query_builder = query_builder or CandidateQueryBuilder()

    @performance_log
    async def find(self, query: CandidateQuery) -> List[JobPosting]:
        sql, params = self.query_builder.build_candidate_query(query)
        trace_sql_execution(sql, params)

        try:
            async with get_db_cursor(self.pool_name) as cursor:
                await cursor.execute(sql, params)
                rows = await cursor.fetchall()
        except Exception as e:
            logger.error(
                "Candidate query failed",
                error=str(e),
                error_type=type(e).__name__,
                region=query.region,
            )
            raise CandidateStoreError(f"Candidate query failed: {e}") from e

        jobs: List[JobPosting] = []
        for row in rows:
            try:
                jobs.append(JobPosting.model_validate(row))
            except PydanticValidationError as e:
                logger.warning("Skipping malformed job row", job_id=row.get("id"), error=str(e))

        logger.debug("Candidates retrieved", region=query.region, count=len(jobs))
        return jobs

    @performance_log
    async def find_user_profile(self, user_id: str) -> Optional[UserProfile]:
        trace_sql_execution(PROFILE_QUERY, [user_id])

        try:
            async with get_db_cursor(self.pool_name) as cursor:
                await cursor.execute(PROFILE_QUERY, [user_id])
                row = await cursor.fetchone()
        except Exception as e:
            logger.error(
                "Profile query failed",
                error=str(e),
                error_type=type(e).__name__,
                user_id=user_id,
            )
            raise CandidateStoreError(f"Profile query failed: {e}") from e

        if row is None:
            return None
        try:
            return UserProfile.model_validate(row)
        except PydanticValidationError as e:
            logger.error("Malformed profile row", user_id=user_id, error=str(e))
            raise CandidateStoreError(f"Malformed profile for user {user_id}") from e
