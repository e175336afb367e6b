"""
Record schema, embedding validation, filter matching and search options.
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from numbers import Real
from typing import Any, Dict, Mapping, Optional

import numpy as np
from pydantic import BaseModel, field_validator
from pydantic import ValidationError as PydanticValidationError

from .config import DEFAULT_DB_NAME, DEFAULT_TABLE_NAME, DEFAULT_TOP_K
from .errors import ValidationError

EMBEDDING_KEY = "embedding"


def _is_number(value: Any) -> bool:
    return isinstance(value, (Real, np.number)) and not isinstance(value, (bool, np.bool_))


def validate_embedding(embedding: Any, dimension: Optional[int] = None) -> int:
    """
    Check that an embedding is a non-empty sequence of finite numbers.

    Args:
        embedding: list, tuple or 1-D numpy array
        dimension: expected length, if already fixed for the index

    Returns:
        The embedding's length

    Raises:
        ValidationError: when the embedding is malformed
    """
    if isinstance(embedding, np.ndarray):
        if embedding.ndim != 1 or not np.issubdtype(embedding.dtype, np.number) \
                or np.issubdtype(embedding.dtype, np.bool_):
            raise ValidationError("Object must have an embedding property of type number[]")
        values = embedding.tolist()
    elif isinstance(embedding, (list, tuple)):
        values = embedding
    else:
        raise ValidationError("Object must have an embedding property of type number[]")

    if len(values) == 0:
        raise ValidationError("Embedding must not be empty")

    for value in values:
        if not _is_number(value):
            raise ValidationError("Object must have an embedding property of type number[]")
        if not math.isfinite(float(value)):
            raise ValidationError("Embedding must not contain NaN or infinite values")

    if dimension is not None and len(values) != dimension:
        raise ValidationError(
            f"Embedding dimension {len(values)} does not match index dimension {dimension}"
        )
    return len(values)


def values_equal(actual: Any, expected: Any) -> bool:
    """Strict equality: a bool only equals a bool, numpy arrays compare element-wise."""
    if isinstance(actual, bool) != isinstance(expected, bool):
        return False
    if isinstance(actual, np.ndarray) or isinstance(expected, np.ndarray):
        return bool(np.array_equal(actual, expected))
    return actual == expected


def matches_filter(record: Mapping[str, Any], filter: Optional[Mapping[str, Any]]) -> bool:
    """A record matches iff every filter key is present and strictly equal."""
    if not filter:
        return True
    for key, expected in filter.items():
        if key not in record:
            return False
        if not values_equal(record[key], expected):
            return False
    return True


@dataclass
class RecordSchema:
    """Attribute names (and the value type first seen for each) every record must carry."""

    fields: Dict[str, type] = field(default_factory=dict)

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "RecordSchema":
        return cls(fields={name: type(value) for name, value in record.items()})

    @property
    def names(self):
        return list(self.fields)

    def missing(self, record: Mapping[str, Any]):
        return [name for name in self.fields if name not in record]

    def type_errors(self, record: Mapping[str, Any]):
        """List attributes whose value type differs from the schema's."""
        errors = []
        for name, expected in self.fields.items():
            if name == EMBEDDING_KEY or name not in record:
                continue
            value = record[name]
            if value is None or expected is type(None):
                continue
            if _is_number(value) and issubclass(expected, Real) and not issubclass(expected, bool):
                continue
            if not isinstance(value, expected):
                errors.append(f"{name}: expected {expected.__name__}, got {type(value).__name__}")
        return errors

    def describe(self) -> Dict[str, str]:
        return {name: t.__name__ for name, t in self.fields.items()}


class StorageSource(str, Enum):
    """Where search candidates come from."""

    LOCAL = "local"
    STORAGE = "storage"


class SearchOptions(BaseModel):
    top_k: int = DEFAULT_TOP_K
    filter: Dict[str, Any] = {}
    source: StorageSource = StorageSource.LOCAL
    db_name: str = DEFAULT_DB_NAME
    table_name: str = DEFAULT_TABLE_NAME

    @field_validator('top_k')
    @classmethod
    def top_k_must_be_positive(cls, v):
        if v < 1:
            raise ValueError('top_k must be >= 1')
        return v

    @field_validator('db_name', 'table_name')
    @classmethod
    def name_must_not_be_empty(cls, v):
        if not v.strip():
            raise ValueError('storage names cannot be empty')
        return v

    @classmethod
    def build(cls, **kwargs) -> "SearchOptions":
        """Build options, turning pydantic errors into ValidationError."""
        values = {k: v for k, v in kwargs.items() if v is not None}
        try:
            return cls(**values)
        except PydanticValidationError as e:
            raise ValidationError(f"Invalid search options: {e}") from e
