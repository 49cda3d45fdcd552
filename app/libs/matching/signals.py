"""
Recommendation signals.

Each signal compares one aspect of a user profile with a posting and returns
a value in [0, 1]. Missing data yields a neutral 0.5 rather than a penalty,
except for skills where there is nothing to compare.
"""

from typing import List, Optional

from app.libs.matching.models import RecommendationWeights
from app.schemas.job import JobPosting, UserProfile
from app.schemas.search import ConfidenceLevel, MatchType, SignalScores

EXPERIENCE_LADDER = ("entry", "junior", "mid", "senior", "lead", "principal")
EXPERIENCE_STEP_PENALTY = 0.2

NEUTRAL_SCORE = 0.5
LOCATION_EXACT = 1.0
LOCATION_REMOTE = 0.9
LOCATION_CONTAINS = 0.8
LOCATION_MISMATCH = 0.3

# Per-signal bars above which a reason is shown to the user
REASON_BARS = {
    MatchType.SEMANTIC: (0.8, "Strong AI match based on your profile"),
    MatchType.SKILLS: (0.6, "Good skills alignment"),
    MatchType.EXPERIENCE: (0.8, "Perfect experience level match"),
    MatchType.LOCATION: (0.8, "Great location match"),
    MatchType.SALARY: (0.8, "Salary matches your expectations"),
}
FALLBACK_REASON = "AI recommends this job for you"


def clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    return max(low, min(high, value))


def semantic_match(similarity: float) -> float:
    """Negative cosine means no semantic match, not a penalty."""
    return clamp(similarity)


def skills_match(profile: UserProfile, job: JobPosting) -> float:
    profile_skills = {skill.strip().lower() for skill in profile.skills if skill.strip()}
    job_skills = {skill.strip().lower() for skill in job.skills if skill.strip()}
    if not profile_skills or not job_skills:
        return 0.0
    return len(profile_skills & job_skills) / max(len(profile_skills), len(job_skills))


def _experience_rank(level: Optional[str]) -> Optional[int]:
    if not level:
        return None
    normalized = level.strip().lower()
    if normalized in EXPERIENCE_LADDER:
        return EXPERIENCE_LADDER.index(normalized)
    # Accept labels such as "Mid-level" or "Senior Level"
    head = normalized.replace("_", "-").replace(" ", "-").split("-")[0]
    if head in EXPERIENCE_LADDER:
        return EXPERIENCE_LADDER.index(head)
    return None


def experience_match(profile: UserProfile, job: JobPosting) -> float:
    profile_rank = _experience_rank(profile.experience_level)
    job_rank = _experience_rank(job.experience_level)
    if profile_rank is None or job_rank is None:
        return NEUTRAL_SCORE
    distance = abs(profile_rank - job_rank)
    return max(0.0, 1.0 - distance * EXPERIENCE_STEP_PENALTY)


def location_match(profile: UserProfile, job: JobPosting) -> float:
    if not profile.location or not job.location:
        return NEUTRAL_SCORE

    profile_location = profile.location.strip().lower()
    job_location = job.location.strip().lower()

    if profile_location == job_location:
        return LOCATION_EXACT
    if profile_location in job_location or job_location in profile_location:
        return LOCATION_CONTAINS
    if job.remote:
        return LOCATION_REMOTE
    return LOCATION_MISMATCH


def salary_match(profile: UserProfile, job: JobPosting) -> float:
    desired = profile.desired_salary
    if not desired or not job.salary_min:
        return NEUTRAL_SCORE

    job_min = job.salary_min
    job_max = job.salary_max or job_min

    if job_min <= desired <= job_max:
        return 1.0
    if desired < job_min:
        return max(0.0, 1.0 - (job_min - desired) / desired)
    return max(0.0, 1.0 - (desired - job_max) / job_max)


def compute_signals(profile: UserProfile, job: JobPosting, similarity: float) -> SignalScores:
    return SignalScores(
        semantic=semantic_match(similarity),
        skills=skills_match(profile, job),
        experience=experience_match(profile, job),
        location=location_match(profile, job),
        salary=salary_match(profile, job),
    )


def blend(signals: SignalScores, weights: RecommendationWeights) -> float:
    total = (
        weights.semantic * signals.semantic
        + weights.skills * signals.skills
        + weights.experience * signals.experience
        + weights.location * signals.location
        + weights.salary * signals.salary
    )
    return clamp(total)


def dominant_match_type(signals: SignalScores) -> MatchType:
    """Highest signal; ties go to the earlier one in precedence order."""
    best_type, best_value = MatchType.SEMANTIC, float("-inf")
    for match_type, value in signals.in_precedence_order():
        if value > best_value:
            best_type, best_value = match_type, value
    return best_type


def recommendation_reasons(signals: SignalScores) -> List[str]:
    reasons = [
        REASON_BARS[match_type][1]
        for match_type, value in signals.in_precedence_order()
        if value > REASON_BARS[match_type][0]
    ]
    return reasons or [FALLBACK_REASON]


def confidence_level(score: float) -> ConfidenceLevel:
    if score >= 0.8:
        return ConfidenceLevel.HIGH
    if score >= 0.6:
        return ConfidenceLevel.MEDIUM
    return ConfidenceLevel.LOW
