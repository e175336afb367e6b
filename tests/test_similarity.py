"""
Cosine similarity scoring tests.
"""

import math
import warnings

import numpy as np
import pytest

from embedindex.vector.similarity import cosine_similarity, is_comparable


def test_identical_vectors_score_one():
    """A nonzero vector is perfectly similar to itself."""
    for vector in ([1.0, 0.0], [0.3, -2.5, 7.0], [1e-3] * 16, np.array([4, 5, 6])):
        assert cosine_similarity(vector, vector) == pytest.approx(1.0)


def test_orthogonal_and_opposite_vectors():
    """Orthogonal vectors score 0, opposite vectors score -1."""
    assert cosine_similarity([1, 0], [0, 1]) == pytest.approx(0.0)
    assert cosine_similarity([1, 2, 3], [-1, -2, -3]) == pytest.approx(-1.0)


def test_known_angle():
    """[1, 0] vs [0.7, 0.7] is cos(45 degrees)."""
    assert cosine_similarity([1, 0], [0.7, 0.7]) == pytest.approx(math.sqrt(0.5))


def test_scale_invariance():
    """Scaling either vector does not change the score."""
    a = [0.2, 0.4, 0.1]
    b = [0.9, 0.1, 0.3]
    assert cosine_similarity(a, b) == pytest.approx(cosine_similarity([x * 10 for x in a], b))


def test_zero_vector_is_not_comparable():
    """A zero-norm input gives NaN instead of raising or returning 0."""
    score = cosine_similarity([0.0, 0.0], [1.0, 0.0])
    assert math.isnan(score)
    assert not is_comparable(score)
    assert is_comparable(0.0)


def test_extreme_magnitudes_keep_their_score():
    """Tiny and huge finite vectors neither underflow to NaN nor overflow."""
    tiny = [1e-200, 1e-200]
    huge = [1e200, 1e200]
    with warnings.catch_warnings():
        warnings.simplefilter("error")
        assert cosine_similarity(tiny, tiny) == pytest.approx(1.0)
        assert cosine_similarity(huge, huge) == pytest.approx(1.0)
        assert cosine_similarity([1.0, 0.0], huge) == pytest.approx(math.sqrt(0.5))
        assert cosine_similarity(tiny, [-1.0, -1.0]) == pytest.approx(-1.0)


def test_mismatched_lengths_raise():
    """Vectors of different lengths cannot be compared."""
    with pytest.raises(ValueError):
        cosine_similarity([1.0, 0.0], [1.0, 0.0, 0.0])


def test_returns_python_float():
    """Scores are plain floats, not numpy scalars."""
    assert type(cosine_similarity(np.array([1.0, 2.0]), [2.0, 1.0])) is float


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
