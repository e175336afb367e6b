"""
EmbeddingIndex: record CRUD, top-K similarity search over local records or a
cached storage snapshot, and durable-storage persistence.
"""

import sys
import time
from typing import Any, Iterable, List, Mapping, Optional, Sequence

from ..core.config import DEFAULT_DB_NAME, DEFAULT_TABLE_NAME, get_storage_gateway
from ..core.errors import StorageFailure, StorageUnavailable, ValidationError
from ..core.record_store import RecordStore
from ..core.schema import (
    EMBEDDING_KEY,
    SearchOptions,
    StorageSource,
    matches_filter,
    validate_embedding,
)
from ..core.storage import IStorageGateway
from ..util.logging import logger
from .cache import StorageCache
from .similarity import cosine_similarity, is_comparable
from .topk import TopKSelector
from .types import Record, SearchResult

_UNSET = object()


class EmbeddingIndex:
    """
    Embedded similarity-search index.

    Records are dicts with a numeric ``embedding``. Searches run against the
    in-memory records or against a snapshot of a storage table that is
    fetched once and reused until invalidated.

    Storage errors raised by an explicit ``preload``/``save_all``/``load_all``
    or delete propagate. A preload triggered by a storage-backed ``search``
    that fails is logged and the search returns no results.
    """

    def __init__(self, initial_records: Optional[Iterable[Record]] = None,
                 storage: Optional[IStorageGateway] = _UNSET,
                 cache: Optional[StorageCache] = None):
        """
        Args:
            initial_records: records to add; the first establishes the schema
            storage: durable-storage gateway; defaults to the configured one,
                None disables storage
            cache: storage snapshot cache, a fresh one if omitted
        """
        self._store = RecordStore(initial_records)
        self._storage = get_storage_gateway() if storage is _UNSET else storage
        self._cache = cache if cache is not None else StorageCache()

    # ------------------------------------------------------------------
    # Records
    # ------------------------------------------------------------------

    @property
    def schema(self):
        return self._store.schema

    @property
    def cache(self) -> StorageCache:
        return self._cache

    def add(self, record: Record) -> None:
        self._store.add(record)

    def update(self, filter: Mapping[str, Any], patch: Mapping[str, Any]) -> Record:
        return self._store.update(filter, patch)

    def remove(self, filter: Mapping[str, Any]) -> Record:
        return self._store.remove(filter)

    def remove_batch(self, filters: Iterable[Mapping[str, Any]]) -> int:
        return self._store.remove_batch(filters)

    def get(self, filter: Mapping[str, Any]) -> Optional[Record]:
        return self._store.get(filter)

    def size(self) -> int:
        return self._store.size()

    def __len__(self) -> int:
        return self._store.size()

    def clear(self) -> None:
        self._store.clear()

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    def search(self, query_vector: Sequence[float], top_k: int = None,
               filter: Optional[Mapping[str, Any]] = None,
               source: str = None, db_name: str = None, table_name: str = None,
               options: Optional[SearchOptions] = None) -> List[SearchResult]:
        """
        Return up to ``top_k`` records most similar to ``query_vector``, best first.

        Args:
            query_vector: the query embedding
            top_k: number of results (default 3)
            filter: attribute equality filter
            source: "local" (in-memory records) or "storage" (cached table snapshot)
            db_name, table_name: storage identity for the "storage" source
            options: a prepared SearchOptions instead of the keyword arguments;
                combining it with any of them is a ValidationError

        Raises:
            ValidationError: malformed query vector or options
            StorageUnavailable: "storage" source without a storage gateway
        """
        if options is not None:
            if any(value is not None for value in (top_k, filter, source, db_name, table_name)):
                raise ValidationError("Pass either SearchOptions or search keywords, not both")
        else:
            options = SearchOptions.build(
                top_k=top_k, filter=dict(filter) if filter is not None else None,
                source=source, db_name=db_name, table_name=table_name,
            )
        if options.source == StorageSource.LOCAL:
            validate_embedding(query_vector, self._store.dimension)
        else:
            validate_embedding(query_vector)

        start_time = time.perf_counter()
        candidates = self._resolve_candidates(options)

        selector = TopKSelector(options.top_k)
        for record in candidates:
            if not isinstance(record, Mapping):
                logger.warning(f"Skipping non-record entry of type {type(record).__name__}")
                continue
            if not matches_filter(record, options.filter):
                continue
            embedding = record.get(EMBEDDING_KEY)
            try:
                validate_embedding(embedding, len(query_vector))
            except ValidationError as e:
                logger.warning(f"Record missing or has invalid embedding, skipped: {e}")
                continue

            similarity = cosine_similarity(query_vector, embedding)
            if not is_comparable(similarity):
                logger.debug("Skipping record with zero-norm embedding")
                continue
            selector.offer(similarity, record)

        results = [SearchResult(similarity=score, record=record) for score, record in selector.drain()]
        logger.log_search(options.source.value, start_time, time.perf_counter(), len(candidates), len(results))
        return results

    def _resolve_candidates(self, options: SearchOptions) -> List[Record]:
        """Pick the candidate records; the one place storage errors degrade."""
        if options.source == StorageSource.LOCAL:
            return self._store.records()

        self._require_storage()
        if self._cache.is_valid(options.db_name, options.table_name):
            logger.log_cache_event("hit", options.db_name, options.table_name)
            return self._cache.get() or []

        logger.log_cache_event("miss", options.db_name, options.table_name)
        try:
            return self.preload(options.db_name, options.table_name)
        except StorageFailure as e:
            logger.error(
                f"Failed to preload data for search from {options.db_name}/{options.table_name}: {e}"
            )
            return []

    # ------------------------------------------------------------------
    # Storage
    # ------------------------------------------------------------------

    def _require_storage(self) -> IStorageGateway:
        if self._storage is None:
            logger.error("Durable storage is not supported")
            raise StorageUnavailable("Durable storage is not supported")
        self._storage.ensure_available()
        return self._storage

    def preload(self, db_name: str = DEFAULT_DB_NAME,
                table_name: str = DEFAULT_TABLE_NAME) -> List[Record]:
        """
        Fetch every record of a storage table into the cache.

        Raises:
            StorageUnavailable: no storage gateway
            StorageFailure: the table could not be read; the cache is left empty
        """
        storage = self._require_storage()

        def fetch():
            handle = storage.open(db_name)
            return storage.read_all(handle, table_name)

        try:
            return self._cache.preload(db_name, table_name, fetch)
        except StorageFailure:
            logger.log_storage_operation("preload", db_name, table_name, status="failed")
            raise

    def invalidate_cache(self) -> None:
        """Drop the preloaded snapshot; the next storage search refetches."""
        self._cache.invalidate()

    def save_all(self, db_name: str = DEFAULT_DB_NAME,
                 table_name: str = DEFAULT_TABLE_NAME, replace: bool = False) -> int:
        """Write the in-memory records to a storage table (appending unless ``replace``)."""
        storage = self._require_storage()
        records = self._store.records()
        if not records:
            raise ValidationError("Index is empty. Nothing to save")

        try:
            handle = storage.open(db_name)
            storage.ensure_table(handle, table_name)
            written = storage.write_all(handle, table_name, records, replace=replace)
        except StorageFailure:
            logger.log_storage_operation("save", db_name, table_name, status="failed")
            raise

        logger.info(f"Index saved to database '{db_name}' object store '{table_name}'")
        return written

    def load_all(self, db_name: str = DEFAULT_DB_NAME,
                 table_name: str = DEFAULT_TABLE_NAME) -> List[Record]:
        """Read every record of a storage table without touching the cache."""
        storage = self._require_storage()
        handle = storage.open(db_name)
        return list(storage.iter_records(handle, table_name))

    def delete_database(self, db_name: str = DEFAULT_DB_NAME) -> None:
        storage = self._require_storage()
        storage.delete_database(db_name)
        logger.log_storage_operation("delete_database", db_name)

    def delete_table(self, db_name: str = DEFAULT_DB_NAME,
                     table_name: str = DEFAULT_TABLE_NAME) -> None:
        storage = self._require_storage()
        storage.delete_table(db_name, table_name)
        logger.log_storage_operation("delete_table", db_name, table_name)

    # ------------------------------------------------------------------
    # Debug
    # ------------------------------------------------------------------

    def dump(self) -> List[str]:
        """One line per record, in storage order."""
        return [f"Item {i}: {record}" for i, record in enumerate(self._store.records(), start=1)]

    def print_index(self, file=None) -> None:
        out = file or sys.stdout
        print("Index Content:", file=out)
        for line in self.dump():
            print(line, file=out)
