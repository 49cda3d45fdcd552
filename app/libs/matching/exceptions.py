"""
Exceptions for the matching engine.

Only ``CandidateStoreError`` and ``ValidationError`` ever reach callers of the
engines; provider and cache read/write failures are recovered locally.
``CacheInvalidationError`` is raised by the invalidation paths only.
"""


class MatchingError(Exception):
    """Base exception for matching engine errors."""
    pass


class CandidateStoreError(MatchingError):
    """The candidate store could not be queried; there is no safe fallback."""
    pass


class EmbeddingProviderError(MatchingError):
    """The embedding provider failed, timed out or returned a malformed vector."""
    pass


class ValidationError(MatchingError):
    """A search or recommendation request had invalid parameters."""
    pass


class CacheInvalidationError(MatchingError):
    """A cache tag could not be invalidated; entries carrying it may be stale."""
    pass


class QueryBuildingError(CandidateStoreError):
    """A candidate query could not be turned into SQL."""
    pass
