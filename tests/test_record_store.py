"""
Record store CRUD and validation tests.
"""

import math

import numpy as np
import pytest

from embedindex.core.errors import NotFoundError, ValidationError
from embedindex.core.record_store import RecordStore


def make_record(id, embedding=None, **extra):
    record = {"id": id, "embedding": embedding if embedding is not None else [float(id), 1.0], "lang": "en"}
    record.update(extra)
    return record


@pytest.fixture
def store():
    return RecordStore([make_record(1), make_record(2, lang="fr"), make_record(3)])


def test_initial_records_establish_schema(store):
    """The first initial record fixes the schema and dimension."""
    assert store.size() == 3
    assert set(store.schema.names) == {"id", "embedding", "lang"}
    assert store.dimension == 2


def test_add_then_get_returns_equal_record():
    """A record added can be found again by its attributes."""
    store = RecordStore()
    record = make_record(7, text="hello")
    store.add(record)

    found = store.get({"id": 7, "text": "hello"})
    assert found == record
    assert found is record


def test_add_missing_embedding_fails_and_leaves_store_unchanged(store):
    """A record without an embedding is rejected."""
    with pytest.raises(ValidationError):
        store.add({"id": 9, "lang": "en"})
    assert store.size() == 3


@pytest.mark.parametrize("embedding", [
    "not a vector",
    [1.0, "x"],
    [1.0, math.nan],
    [math.inf, 1.0],
    [True, False],
    [],
    None,
    np.array([[1.0, 2.0]]),
])
def test_add_rejects_malformed_embeddings(embedding):
    """Non-numeric, NaN, infinite, empty or non-1D embeddings are rejected."""
    store = RecordStore()
    with pytest.raises(ValidationError):
        store.add({"id": 1, "embedding": embedding})
    assert store.size() == 0
    assert store.schema is None


def test_add_accepts_numpy_embedding():
    """A 1-D numeric numpy array is a valid embedding."""
    store = RecordStore()
    store.add({"id": 1, "embedding": np.array([0.5, 0.25], dtype=np.float32)})
    assert store.size() == 1


def test_add_rejects_missing_schema_attribute(store):
    """Later records must carry every schema attribute."""
    with pytest.raises(ValidationError) as exc_info:
        store.add({"id": 4, "embedding": [1.0, 0.0]})
    assert store.size() == 3
    assert "missing: ['lang']" in str(exc_info.value)
    assert "'lang': 'str'" in str(exc_info.value)


def test_schema_describe_names_types(store):
    """The schema reports each attribute with the type first seen for it."""
    assert store.schema.describe() == {"id": "int", "embedding": "list", "lang": "str"}


def test_add_allows_extra_attributes(store):
    """Records may carry more attributes than the schema."""
    store.add(make_record(4, source="import"))
    assert store.get({"source": "import"})["id"] == 4


def test_add_rejects_wrong_dimension(store):
    """Embedding length is fixed by the first record."""
    with pytest.raises(ValidationError):
        store.add(make_record(5, embedding=[1.0, 2.0, 3.0]))


def test_strict_schema_types(monkeypatch, store):
    """With strict validation, attribute types must match the schema."""
    monkeypatch.setenv("SCHEMA_VALIDATION_STRICT", "true")
    with pytest.raises(ValidationError):
        store.add(make_record("six", embedding=[6.0, 1.0]))
    store.add(make_record(6.0))
    assert store.size() == 4


def test_get_returns_none_when_absent(store):
    """get never raises for a missing record."""
    assert store.get({"id": 42}) is None


def test_get_uses_first_match_and_empty_filter(store):
    """Single-target operations act on the first match in storage order."""
    assert store.get({"lang": "en"})["id"] == 1
    assert store.get({})["id"] == 1


def test_filter_is_strict(store):
    """Filter values must be strictly equal; True does not match 1."""
    assert store.get({"id": "1"}) is None
    assert store.get({"id": True}) is None
    assert store.get({"id": 1.0})["id"] == 1
    assert store.get({"missing": None}) is None


def test_update_merges_patch(store):
    """update keeps the attributes the patch does not mention."""
    updated = store.update({"id": 2}, {"x": 1})

    assert updated == {"id": 2, "embedding": [2.0, 1.0], "lang": "fr", "x": 1}
    assert store.get({"id": 2}) is updated
    assert store.size() == 3


def test_update_with_embedding_validates_without_adding(store):
    """A patch embedding is validated but never appended as a new record."""
    store.update({"id": 1}, {"embedding": [0.0, 1.0]})
    assert store.get({"id": 1})["embedding"] == [0.0, 1.0]
    assert store.size() == 3

    with pytest.raises(ValidationError):
        store.update({"id": 1}, {"embedding": [math.nan, 1.0]})
    assert store.get({"id": 1})["embedding"] == [0.0, 1.0]


def test_update_missing_raises(store):
    """Updating a record that does not exist is an error."""
    with pytest.raises(NotFoundError):
        store.update({"id": 99}, {"x": 1})


def test_remove_then_get_is_absent(store):
    """A removed record can no longer be found."""
    removed = store.remove({"id": 2})
    assert removed["id"] == 2
    assert store.get({"id": 2}) is None
    assert store.size() == 2


def test_remove_on_empty_store_raises():
    """Removing from an empty store is an error."""
    with pytest.raises(NotFoundError):
        RecordStore().remove({"id": 1})


def test_remove_batch_is_idempotent(store):
    """A second remove_batch with the same filters is a no-op."""
    filters = [{"id": 1}, {"id": 3}, {"id": 100}]
    assert store.remove_batch(filters) == 2
    assert store.remove_batch(filters) == 0
    assert [r["id"] for r in store.records()] == [2]


def test_clear_keeps_schema(store):
    """clear drops records but the schema still applies."""
    store.clear()
    assert store.size() == 0
    assert len(store) == 0
    with pytest.raises(ValidationError):
        store.add({"id": 1, "embedding": [1.0, 0.0]})


def test_records_is_a_copy(store):
    """Mutating the store does not change a list already handed out."""
    snapshot = store.records()
    store.remove({"id": 1})
    assert len(snapshot) == 3


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
