"""
In-memory record store: ordered records sharing one schema and one embedding dimension.
"""

import threading
from typing import Any, Dict, Iterable, List, Mapping, Optional

from .config import schema_validation_strict
from .errors import NotFoundError, ValidationError
from .schema import EMBEDDING_KEY, RecordSchema, matches_filter, validate_embedding
from ..util.logging import logger

Record = Dict[str, Any]


class RecordStore:
    """
    Owns the in-memory records of one index.

    The schema and embedding dimension are fixed by the first record and
    survive ``clear()``. Mutations are serialized with a re-entrant lock and
    scans read a copy of the record list, so a concurrent ``add``/``remove``
    never changes a scan that is already running.
    """

    def __init__(self, initial_records: Optional[Iterable[Record]] = None):
        self._records: List[Record] = []
        self._schema: Optional[RecordSchema] = None
        self._dimension: Optional[int] = None
        self._lock = threading.RLock()

        if initial_records:
            for record in initial_records:
                self.add(record)

    @property
    def schema(self) -> Optional[RecordSchema]:
        return self._schema

    @property
    def dimension(self) -> Optional[int]:
        return self._dimension

    def _validate_record(self, record: Mapping[str, Any]) -> int:
        if not isinstance(record, Mapping):
            raise ValidationError("Record must be a mapping of attribute names to values")
        if EMBEDDING_KEY not in record:
            raise ValidationError("Object must have an embedding property of type number[]")

        dimension = validate_embedding(record[EMBEDDING_KEY], self._dimension)

        if self._schema is not None:
            missing = self._schema.missing(record)
            if missing:
                raise ValidationError(
                    f"Object must have the same properties as the initial objects "
                    f"(missing: {missing}, schema: {self._schema.describe()})"
                )
            if schema_validation_strict():
                type_errors = self._schema.type_errors(record)
                if type_errors:
                    raise ValidationError(f"Record does not match schema types: {type_errors}")
        return dimension

    def _find_index(self, filter: Optional[Mapping[str, Any]]) -> int:
        for i, record in enumerate(self._records):
            if matches_filter(record, filter):
                return i
        return -1

    def add(self, record: Record) -> None:
        """Validate and append a record; the first record establishes the schema."""
        with self._lock:
            try:
                dimension = self._validate_record(record)
            except ValidationError as e:
                logger.log_record_operation("add", status="rejected", details={"error": str(e)})
                raise

            if self._schema is None:
                self._schema = RecordSchema.from_record(record)
                self._dimension = dimension
            self._records.append(record)

    def update(self, filter: Mapping[str, Any], patch: Mapping[str, Any]) -> Record:
        """
        Shallow-merge ``patch`` into the first record matching ``filter``.

        Raises:
            NotFoundError: when nothing matches
            ValidationError: when the patch carries a malformed embedding
        """
        with self._lock:
            index = self._find_index(filter)
            if index == -1:
                logger.log_record_operation("update", filter, status="not_found")
                raise NotFoundError(filter)

            if EMBEDDING_KEY in patch:
                validate_embedding(patch[EMBEDDING_KEY], self._dimension)

            record = self._records[index]
            if schema_validation_strict() and self._schema is not None:
                type_errors = self._schema.type_errors({**record, **patch})
                if type_errors:
                    raise ValidationError(f"Patch does not match schema types: {type_errors}")

            record.update(patch)
            return record

    def remove(self, filter: Mapping[str, Any]) -> Record:
        """Remove the first record matching ``filter``; raises NotFoundError if none."""
        with self._lock:
            index = self._find_index(filter)
            if index == -1:
                logger.log_record_operation("remove", filter, status="not_found")
                raise NotFoundError(filter)
            return self._records.pop(index)

    def remove_batch(self, filters: Iterable[Mapping[str, Any]]) -> int:
        """Remove the first match of each filter, skipping filters with no match."""
        removed = 0
        with self._lock:
            for filter in filters:
                index = self._find_index(filter)
                if index != -1:
                    self._records.pop(index)
                    removed += 1
        return removed

    def get(self, filter: Mapping[str, Any]) -> Optional[Record]:
        """Return the first record matching ``filter`` or None."""
        with self._lock:
            index = self._find_index(filter)
            return self._records[index] if index != -1 else None

    def records(self) -> List[Record]:
        """Copy of the record list for scanning; the records themselves are shared."""
        with self._lock:
            return list(self._records)

    def size(self) -> int:
        return len(self._records)

    def __len__(self) -> int:
        return self.size()

    def clear(self) -> None:
        # schema and dimension are kept
        with self._lock:
            self._records = []
