from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, Field

from app.schemas.job import JobPosting


class SearchFilters(BaseModel):
    """
    Structural filters applied by the candidate store before scoring.

    Every dimension is optional; ``None`` means "no filter" for that dimension.
    ``remote`` only narrows the pool when it is ``True``.
    """

    job_type: Optional[str] = None
    experience_level: Optional[str] = None
    salary_min: Optional[float] = Field(default=None, ge=0)
    salary_max: Optional[float] = Field(default=None, ge=0)
    remote: Optional[bool] = None
    location: Optional[str] = None
    skills: Optional[List[str]] = None

    def cache_parts(self) -> Dict[str, Any]:
        """Filter values that affect the result set, for cache keys."""
        parts = self.model_dump(exclude_none=True)
        if not self.remote:
            parts.pop("remote", None)
        if parts.get("skills"):
            parts["skills"] = sorted(skill.lower() for skill in parts["skills"])
        else:
            parts.pop("skills", None)
        return parts


class SearchResult(BaseModel):
    job: JobPosting
    semantic_score: float
    relevance_score: float
    combined_score: float
    matched_concepts: List[str] = Field(default_factory=list)
    explanation: str


class MatchType(str, Enum):
    SEMANTIC = "semantic"
    SKILLS = "skills"
    EXPERIENCE = "experience"
    LOCATION = "location"
    SALARY = "salary"


class SignalScores(BaseModel):
    """The five independent recommendation signals, each in [0, 1]."""

    semantic: float
    skills: float
    experience: float
    location: float
    salary: float

    def in_precedence_order(self) -> List[Tuple[MatchType, float]]:
        return [
            (MatchType.SEMANTIC, self.semantic),
            (MatchType.SKILLS, self.skills),
            (MatchType.EXPERIENCE, self.experience),
            (MatchType.LOCATION, self.location),
            (MatchType.SALARY, self.salary),
        ]


class Recommendation(BaseModel):
    job: JobPosting
    score: float
    reasons: List[str]
    match_type: MatchType
    signals: SignalScores


class ConfidenceLevel(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class SemanticSearchResponse(BaseModel):
    """Response model for the semantic search endpoint."""

    results: List[SearchResult]
    total: int
    query: str
    region: str
    threshold: float


class RecommendationItem(Recommendation):
    confidence: ConfidenceLevel


class RecommendationsResponse(BaseModel):
    """Response model for the recommendations endpoint."""

    recommendations: List[RecommendationItem]
    total: int
    user_id: str
    region: str
    region_name: str


class InvalidationResponse(BaseModel):
    invalidated_tags: List[str]
    removed_entries: int
