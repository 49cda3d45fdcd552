"""
Internal models for the matching engine.

``EmbeddingResult`` is either ``Embedded`` (a usable vector) or
``Unavailable`` (the provider could not produce one). Both expose ``vector``;
the unavailable variant yields the zero vector, so scoring code can treat
them uniformly while logs and counters can still tell them apart.
"""

from dataclasses import dataclass, field
from typing import List, Tuple, Union

from app.core.config import settings
from app.core.regions import RegionConfig, get_region
from app.schemas.job import JobStatus
from app.schemas.search import SearchFilters


@dataclass(frozen=True)
class Embedded:
    vector: List[float]
    cached: bool = False

    @property
    def available(self) -> bool:
        return True

    @property
    def dimensions(self) -> int:
        return len(self.vector)


@dataclass(frozen=True)
class Unavailable:
    reason: str
    dimensions: int = settings.embedding_dimensions

    @property
    def available(self) -> bool:
        return False

    @property
    def vector(self) -> List[float]:
        return [0.0] * self.dimensions


EmbeddingResult = Union[Embedded, Unavailable]


@dataclass(frozen=True)
class SearchWeights:
    """Blend weights for semantic search (semantic vs. lexical)."""

    semantic: float = 0.7
    lexical: float = 0.3

    @classmethod
    def from_settings(cls) -> "SearchWeights":
        return cls(
            semantic=settings.search_semantic_weight,
            lexical=settings.search_lexical_weight,
        )


@dataclass(frozen=True)
class RecommendationWeights:
    """Blend weights for the five recommendation signals."""

    semantic: float = 0.40
    skills: float = 0.25
    experience: float = 0.15
    location: float = 0.10
    salary: float = 0.10

    @classmethod
    def from_settings(cls) -> "RecommendationWeights":
        return cls(
            semantic=settings.recommendation_weight_semantic,
            skills=settings.recommendation_weight_skills,
            experience=settings.recommendation_weight_experience,
            location=settings.recommendation_weight_location,
            salary=settings.recommendation_weight_salary,
        )


@dataclass(frozen=True)
class CandidateQuery:
    """
    Coarse structural query sent to the candidate store.

    Status is always ``ACTIVE``; the engines never ask for anything else.
    """

    region: str
    filters: SearchFilters = field(default_factory=SearchFilters)
    exclude_ids: Tuple[str, ...] = ()
    limit: int = 50
    status: JobStatus = JobStatus.ACTIVE

    @property
    def region_config(self) -> RegionConfig:
        return get_region(self.region)
