"""
Snapshot cache for records fetched from durable storage.
"""

import threading
import time
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from ..util.logging import logger

Record = Dict[str, Any]
Identity = Tuple[str, str]


class StorageCache:
    """
    Holds at most one snapshot of a storage table, tagged with (db_name, table_name).

    A snapshot stays valid until ``invalidate()`` or a preload of another
    identity; changes made to the underlying storage afterwards are not seen.

    Every preload takes a new generation number. A preload installs its
    snapshot only if it is still the newest generation when its fetch
    returns, so of two racing preloads the one started last wins.
    """

    def __init__(self):
        self._snapshot: Optional[List[Record]] = None
        self._identity: Optional[Identity] = None
        self._generation = 0
        self._lock = threading.Lock()
        self.fetch_count = 0

    @property
    def identity(self) -> Optional[Identity]:
        return self._identity

    def is_valid(self, db_name: str, table_name: str) -> bool:
        with self._lock:
            return self._snapshot is not None and self._identity == (db_name, table_name)

    def get(self) -> Optional[List[Record]]:
        """Return the current snapshot, or None when there is none."""
        return self._snapshot

    def invalidate(self) -> None:
        with self._lock:
            self._generation += 1
            if self._snapshot is not None:
                logger.log_cache_event("invalidate", *self._identity)
            self._snapshot = None
            self._identity = None

    def preload(self, db_name: str, table_name: str,
                fetch: Callable[[], Sequence[Record]]) -> List[Record]:
        """
        Replace the snapshot with the records returned by ``fetch``.

        The previous snapshot is dropped before fetching. If ``fetch`` raises,
        the cache stays empty and the error propagates.
        """
        with self._lock:
            self._generation += 1
            generation = self._generation
            self._snapshot = None
            self._identity = None
            self.fetch_count += 1

        logger.info(f"Preloading data from {db_name}/{table_name}...")
        start_time = time.perf_counter()
        try:
            records = list(fetch())
        except Exception:
            with self._lock:
                if generation == self._generation:
                    self._snapshot = None
                    self._identity = None
            raise

        with self._lock:
            if generation != self._generation:
                logger.log_cache_event("preload_superseded", db_name, table_name)
                return records
            self._snapshot = records
            self._identity = (db_name, table_name)

        duration_ms = round((time.perf_counter() - start_time) * 1000, 2)
        logger.log_cache_event(
            "preload", db_name, table_name,
            details={"records": len(records), "duration_ms": duration_ms},
        )
        return records
