"""
Cosine similarity between two embeddings.
"""

import math
from typing import Sequence, Union

import numpy as np

Vector = Union[Sequence[float], np.ndarray]


def cosine_similarity(a: Vector, b: Vector) -> float:
    """
    Compute dot(a, b) / (norm(a) * norm(b)).

    Each vector is first divided by its largest absolute value so that very
    small or very large finite values neither underflow nor overflow. Only an
    all-zero input yields NaN; callers decide how to treat a score that
    cannot be compared.

    Raises:
        ValueError: when the vectors differ in length
    """
    va = np.asarray(a, dtype=np.float64)
    vb = np.asarray(b, dtype=np.float64)
    if va.shape != vb.shape:
        raise ValueError(f"Vector dimensions differ: {va.shape} vs {vb.shape}")

    scale_a = np.max(np.abs(va)) if va.size else 0.0
    scale_b = np.max(np.abs(vb)) if vb.size else 0.0
    if scale_a == 0 or scale_b == 0:
        return math.nan

    with np.errstate(all="ignore"):
        va = va / scale_a
        vb = vb / scale_b
        score = float(np.dot(va, vb) / (np.linalg.norm(va) * np.linalg.norm(vb)))
    if math.isnan(score):
        return score
    # rounding can push identical or opposite vectors just past +/-1
    return max(-1.0, min(1.0, score))


def is_comparable(score: float) -> bool:
    """False for NaN scores produced by zero-norm vectors."""
    return not math.isnan(score)
