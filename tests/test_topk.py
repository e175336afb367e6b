"""
Bounded top-K selector tests.
"""

import random

import pytest

from embedindex.vector.topk import TopKSelector


def test_keeps_k_highest_in_descending_order():
    """Only the K best scores survive and come out best first."""
    selector = TopKSelector(3)
    for score, name in [(0.1, "a"), (0.9, "b"), (0.5, "c"), (0.7, "d"), (0.2, "e")]:
        selector.offer(score, name)

    assert selector.drain() == [(0.9, "b"), (0.7, "d"), (0.5, "c")]


def test_fewer_candidates_than_k():
    """With fewer candidates than K everything is returned."""
    selector = TopKSelector(5)
    selector.offer(0.3, "x")
    selector.offer(0.6, "y")

    assert [item for _, item in selector.drain()] == ["y", "x"]


def test_equal_score_does_not_evict():
    """A candidate equal to the current minimum is discarded."""
    selector = TopKSelector(2)
    assert selector.offer(0.5, "first")
    assert selector.offer(0.8, "second")
    assert not selector.offer(0.5, "tie")

    items = {item for _, item in selector.drain()}
    assert items == {"first", "second"}


def test_ties_are_returned_without_fixed_order():
    """Tied scores are all kept when there is room; only the scores' order is checked."""
    selector = TopKSelector(3)
    for name in ["a", "b", "c"]:
        selector.offer(0.5, name)

    drained = selector.drain()
    assert [score for score, _ in drained] == [0.5, 0.5, 0.5]
    assert {item for _, item in drained} == {"a", "b", "c"}


def test_unorderable_items_are_never_compared():
    """Items such as dicts can share a score without a TypeError."""
    selector = TopKSelector(2)
    selector.offer(1.0, {"id": 1})
    selector.offer(1.0, {"id": 2})
    selector.offer(1.0, {"id": 3})

    assert len(selector.drain()) == 2


def test_peek_min_and_len():
    """peek_min reports the eviction candidate."""
    selector = TopKSelector(2)
    assert selector.peek_min() is None
    selector.offer(0.4, "a")
    selector.offer(0.9, "b")
    selector.offer(0.6, "c")

    assert len(selector) == 2
    assert selector.peek_min() == (0.6, "c")


def test_drain_empties_selector():
    """After draining the selector is empty."""
    selector = TopKSelector(1)
    selector.offer(0.1, "a")
    selector.drain()

    assert len(selector) == 0
    assert selector.drain() == []


def test_matches_full_sort():
    """For random scores the result equals sorting everything and slicing."""
    rng = random.Random(7)
    scores = [rng.random() for _ in range(200)]
    selector = TopKSelector(10)
    for i, score in enumerate(scores):
        selector.offer(score, i)

    assert [score for score, _ in selector.drain()] == sorted(scores, reverse=True)[:10]


def test_invalid_k():
    """K must be at least 1."""
    with pytest.raises(ValueError):
        TopKSelector(0)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
