"""
Durable-storage gateway interface and an in-process implementation.
"""

import copy
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Sequence

from .errors import StorageNotFoundError


@dataclass(frozen=True)
class StorageHandle:
    """An opened database."""

    db_name: str
    location: str = ""


class IStorageGateway(ABC):
    """Abstract interface for durable record storage (databases holding named tables)."""

    def ensure_available(self) -> None:
        """Raise StorageUnavailable if this gateway cannot work in the running environment."""

    @abstractmethod
    def open(self, db_name: str) -> StorageHandle:
        """Open a database, creating it if absent."""
        pass

    @abstractmethod
    def ensure_table(self, handle: StorageHandle, table_name: str) -> None:
        """Create the table if it does not exist."""
        pass

    @abstractmethod
    def read_all(self, handle: StorageHandle, table_name: str) -> List[Dict[str, Any]]:
        """Return every record of a table; raises StorageNotFoundError if the table is absent."""
        pass

    @abstractmethod
    def write_all(self, handle: StorageHandle, table_name: str,
                  records: Sequence[Dict[str, Any]], replace: bool = False) -> int:
        """Append (or replace with) records and return the number written."""
        pass

    @abstractmethod
    def delete_database(self, db_name: str) -> None:
        """Delete a database; raises StorageNotFoundError if absent."""
        pass

    @abstractmethod
    def delete_table(self, db_name: str, table_name: str) -> None:
        """Delete a table; raises StorageNotFoundError if absent."""
        pass

    def iter_records(self, handle: StorageHandle, table_name: str) -> Iterator[Dict[str, Any]]:
        """Yield records one at a time."""
        yield from self.read_all(handle, table_name)


class InMemoryStorageGateway(IStorageGateway):
    """Gateway keeping databases in a dict; records are deep-copied in and out."""

    def __init__(self):
        self._databases: Dict[str, Dict[str, List[Dict[str, Any]]]] = {}

    def open(self, db_name: str) -> StorageHandle:
        self._databases.setdefault(db_name, {})
        return StorageHandle(db_name=db_name, location="memory")

    def _database(self, db_name: str) -> Dict[str, List[Dict[str, Any]]]:
        if db_name not in self._databases:
            raise StorageNotFoundError(f"Database '{db_name}' not found.", db_name=db_name)
        return self._databases[db_name]

    def ensure_table(self, handle: StorageHandle, table_name: str) -> None:
        self._database(handle.db_name).setdefault(table_name, [])

    def read_all(self, handle: StorageHandle, table_name: str) -> List[Dict[str, Any]]:
        tables = self._database(handle.db_name)
        if table_name not in tables:
            raise StorageNotFoundError(
                f"Object store '{table_name}' not found.",
                db_name=handle.db_name, table_name=table_name,
            )
        return copy.deepcopy(tables[table_name])

    def write_all(self, handle: StorageHandle, table_name: str,
                  records: Sequence[Dict[str, Any]], replace: bool = False) -> int:
        self.ensure_table(handle, table_name)
        rows = [copy.deepcopy(dict(record)) for record in records]
        tables = self._database(handle.db_name)
        if replace:
            tables[table_name] = rows
        else:
            tables[table_name].extend(rows)
        return len(rows)

    def delete_database(self, db_name: str) -> None:
        self._database(db_name)
        del self._databases[db_name]

    def delete_table(self, db_name: str, table_name: str) -> None:
        tables = self._database(db_name)
        if table_name not in tables:
            raise StorageNotFoundError(
                f"Object store '{table_name}' not found.", db_name=db_name, table_name=table_name
            )
        del tables[table_name]
