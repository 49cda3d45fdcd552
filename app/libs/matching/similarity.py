"""
Vector similarity for embeddings.
"""

from typing import Sequence

import numpy as np

from app.libs.matching.models import EmbeddingResult


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """
    Cosine of the angle between two vectors.

    Returns 0.0 when the lengths differ (vectors from different models), when
    either vector is empty, or when either has zero magnitude. Negative values
    are returned as-is; callers decide what they mean.
    """
    if len(a) != len(b) or len(a) == 0:
        return 0.0

    va = np.asarray(a, dtype=np.float64)
    vb = np.asarray(b, dtype=np.float64)

    norm_a = np.linalg.norm(va)
    norm_b = np.linalg.norm(vb)
    if norm_a == 0.0 or norm_b == 0.0 or not np.isfinite(norm_a * norm_b):
        return 0.0

    value = float(np.dot(va, vb) / (norm_a * norm_b))
    return float(np.clip(value, -1.0, 1.0))


def embedding_similarity(a: EmbeddingResult, b: EmbeddingResult) -> float:
    """Cosine similarity of two embedding results; 0.0 if either is unavailable."""
    if not (a.available and b.available):
        return 0.0
    return cosine_similarity(a.vector, b.vector)
