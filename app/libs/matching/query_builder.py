"""
SQL query building for candidate retrieval.

Every user-supplied value is bound as a parameter; literal ``%`` never
appears in the generated SQL so psycopg placeholders stay unambiguous.
"""

from time import time
from typing import Any, List, Tuple

from app.libs.matching.exceptions import QueryBuildingError
from app.libs.matching.models import CandidateQuery
from app.log.logging import logger
from app.schemas.search import SearchFilters

JOB_COLUMNS = (
    "j.id, j.title, j.company, j.description, j.location, j.region, j.remote, "
    "j.job_type, j.experience_level, j.salary_min, j.salary_max, "
    "j.categories, j.skills, j.status, j.created_at"
)

PROFILE_QUERY = """
    SELECT
        p.user_id,
        p.desired_job_title,
        p.bio,
        p.location,
        p.preferred_job_type,
        p.experience_level,
        p.desired_salary,
        p.skills,
        p.interests,
        ARRAY(SELECT a.job_id::text FROM job_applications a WHERE a.user_id = p.user_id) AS applied_job_ids,
        ARRAY(SELECT s.job_id::text FROM saved_jobs s WHERE s.user_id = p.user_id) AS saved_job_ids
    FROM user_profiles p
    WHERE p.user_id = %s
"""


def like_pattern(term: str) -> str:
    """Case-insensitive contains pattern with LIKE wildcards escaped."""
    escaped = term.lower().replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


class CandidateQueryBuilder:
    """Builder for candidate retrieval SQL."""

    def build_filter_conditions(self, query: CandidateQuery) -> Tuple[List[str], List[Any]]:
        """
        Build WHERE clauses for a candidate query.

        Returns:
            Tuple of (where clauses list, query parameters list)
        """
        start_time = time()
        try:
            where_clauses = ["j.status = %s"]
            query_params: List[Any] = [query.status.value]

            region_clauses, region_params = self._build_region_filter(query)
            where_clauses.extend(region_clauses)
            query_params.extend(region_params)

            filter_clauses, filter_params = self._build_search_filters(query.filters)
            where_clauses.extend(filter_clauses)
            query_params.extend(filter_params)

            if query.exclude_ids:
                where_clauses.append("j.id::text <> ALL(%s::text[])")
                query_params.append(list(query.exclude_ids))

            logger.debug(
                "Query conditions built",
                elapsed_time=f"{time() - start_time:.6f}s",
                conditions_count=len(where_clauses),
                params_count=len(query_params),
            )
            return where_clauses, query_params

        except Exception as e:
            logger.error(
                "Failed to build query conditions",
                error=str(e),
                error_type=type(e).__name__,
            )
            raise QueryBuildingError(f"Failed to build query conditions: {e}") from e

    def _build_region_filter(self, query: CandidateQuery) -> Tuple[List[str], List[Any]]:
        """A posting is in-region by code or when its location names the region or a member city."""
        region = query.region_config
        if not region.code:
            return [], []

        terms = region.location_terms()
        if not terms:
            return ["(LOWER(j.region) = %s)"], [region.code]

        return (
            ["(LOWER(j.region) = %s OR LOWER(j.location) LIKE ANY(%s::text[]))"],
            [region.code, [like_pattern(term) for term in terms]],
        )

    def _build_search_filters(self, filters: SearchFilters) -> Tuple[List[str], List[Any]]:
        where_clauses: List[str] = []
        query_params: List[Any] = []

        if filters.job_type:
            where_clauses.append("(LOWER(j.job_type) = %s)")
            query_params.append(filters.job_type.lower())

        if filters.experience_level:
            where_clauses.append("(LOWER(j.experience_level) = %s)")
            query_params.append(filters.experience_level.lower())

        if filters.salary_min is not None:
            where_clauses.append("(j.salary_min >= %s)")
            query_params.append(filters.salary_min)

        if filters.salary_max is not None:
            where_clauses.append("(j.salary_max <= %s)")
            query_params.append(filters.salary_max)

        if filters.remote:
            where_clauses.append("(j.remote = TRUE)")

        if filters.location:
            where_clauses.append("(LOWER(j.location) LIKE %s)")
            query_params.append(like_pattern(filters.location))

        if filters.skills:
            where_clauses.append(
                "EXISTS (SELECT 1 FROM unnest(j.skills) AS s(skill) WHERE LOWER(s.skill) = ANY(%s::text[]))"
            )
            query_params.append([skill.lower() for skill in filters.skills])

        return where_clauses, query_params

    def build_candidate_query(self, query: CandidateQuery) -> Tuple[str, List[Any]]:
        """Full SELECT for a candidate query, newest postings first."""
        where_clauses, query_params = self.build_filter_conditions(query)
        sql = (
            f"SELECT {JOB_COLUMNS}\n"
            "FROM jobs AS j\n"
            f"WHERE {' AND '.join(where_clauses)}\n"
            "ORDER BY j.created_at DESC NULLS LAST\n"
            "LIMIT %s"
        )
        return sql, [*query_params, query.limit]
