"""
Keyword relevance and text assembly for matching.

The lexical score is a cheap secondary signal next to embedding similarity:
it rewards postings that literally contain the query, which embeddings can
under-rank (an exact job-title phrase, a company name).
"""

import re
from typing import List

from app.schemas.job import JobPosting, UserProfile

TITLE_WEIGHT = 0.4
COMPANY_WEIGHT = 0.2
DESCRIPTION_WEIGHT = 0.2
TAG_WEIGHT = 0.1

MIN_CONCEPT_LENGTH = 4
MAX_EXPLAINED_CONCEPTS = 3

_TOKEN_RE = re.compile(r"[\w+#]+(?:[.\-][\w+#]+)*", re.UNICODE)


def _tokens(text: str) -> List[str]:
    return _TOKEN_RE.findall(text.lower())


def relevance(job: JobPosting, query: str) -> float:
    """Weighted substring containment of the whole query, capped at 1.0."""
    needle = query.strip().lower()
    if not needle:
        return 0.0

    score = 0.0
    if needle in job.title.lower():
        score += TITLE_WEIGHT
    if needle in job.company.lower():
        score += COMPANY_WEIGHT
    if needle in job.description.lower():
        score += DESCRIPTION_WEIGHT
    if any(needle in tag.lower() for tag in [*job.categories, *job.skills]):
        score += TAG_WEIGHT

    return min(score, 1.0)


def build_job_text(job: JobPosting) -> str:
    parts = [
        job.title,
        job.company,
        job.description,
        job.location,
        job.job_type,
        job.experience_level,
        *job.categories,
        *job.skills,
    ]
    return " ".join(part for part in parts if part)


def build_profile_text(profile: UserProfile) -> str:
    parts = [
        profile.desired_job_title,
        profile.bio,
        profile.location,
        profile.preferred_job_type,
        profile.experience_level,
        *profile.skills,
        *profile.interests,
    ]
    return " ".join(part for part in parts if part)


def extract_matched_concepts(query: str, job_text: str) -> List[str]:
    """Query terms of four or more characters that also appear in the job text."""
    job_tokens = set(_tokens(job_text))
    matches: List[str] = []
    for word in _tokens(query):
        if len(word) >= MIN_CONCEPT_LENGTH and word in job_tokens and word not in matches:
            matches.append(word)
    return matches


def explain_search_match(
    job: JobPosting, query: str, semantic_score: float, matched_concepts: List[str]
) -> str:
    explanations = []

    if semantic_score > 0.8:
        explanations.append("Strong semantic match with your search")
    elif semantic_score > 0.7:
        explanations.append("Good semantic match")

    if matched_concepts:
        explanations.append(f"Matches: {', '.join(matched_concepts[:MAX_EXPLAINED_CONCEPTS])}")

    needle = query.strip().lower()
    if needle and needle in job.title.lower():
        explanations.append("Title contains your search terms")

    return ". ".join(explanations) or "Relevant based on AI analysis"
