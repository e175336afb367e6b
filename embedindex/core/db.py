"""
SQLite-backed durable storage: one file per database, one SQL table per table name.
Each row holds one record serialized as JSON.
"""

import json
import os
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Generator, Iterator, List, Sequence, Union

import numpy as np

from .errors import StorageConnectionError, StorageNotFoundError, StorageUnavailable, ValidationError
from .storage import IStorageGateway, StorageHandle
from ..util.logging import logger

DB_SUFFIX = ".sqlite3"


def _json_default(value: Any):
    """Serialize numpy values found in records."""
    if isinstance(value, np.ndarray):
        return value.tolist()
    if isinstance(value, np.generic):
        return value.item()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def _quote_identifier(name: str) -> str:
    return '"' + name.replace('"', '""') + '"'


class SqliteStorageGateway(IStorageGateway):
    """IStorageGateway backed by SQLite files under ``data_dir``."""

    def __init__(self, data_dir: Union[str, Path] = "./data"):
        self.data_dir = Path(data_dir)

    def ensure_available(self) -> None:
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageUnavailable(f"Storage directory {self.data_dir} is not usable: {e}") from e
        if not os.access(self.data_dir, os.W_OK):
            raise StorageUnavailable(f"Storage directory {self.data_dir} is not writable")

    def _db_path(self, db_name: str) -> Path:
        if not db_name or not db_name.strip() or "/" in db_name or "\\" in db_name or db_name in (".", ".."):
            raise ValidationError(f"Invalid database name: {db_name!r}")
        return self.data_dir / f"{db_name}{DB_SUFFIX}"

    @contextmanager
    def _connect(self, handle: StorageHandle) -> Generator[sqlite3.Connection, None, None]:
        """Get a SQLite connection for an opened database."""
        try:
            conn = sqlite3.connect(handle.location)
        except sqlite3.Error as e:
            raise StorageConnectionError(
                f"Failed to open database '{handle.db_name}': {e}", db_name=handle.db_name
            ) from e
        try:
            yield conn
        except sqlite3.Error as e:
            conn.rollback()
            raise StorageConnectionError(
                f"Database error in '{handle.db_name}': {e}", db_name=handle.db_name
            ) from e
        finally:
            conn.close()

    @staticmethod
    def _table_exists(conn: sqlite3.Connection, table_name: str) -> bool:
        row = conn.execute(
            "SELECT 1 FROM sqlite_master WHERE type='table' AND name = ?", (table_name,)
        ).fetchone()
        return row is not None

    def open(self, db_name: str) -> StorageHandle:
        self.ensure_available()
        path = self._db_path(db_name)
        handle = StorageHandle(db_name=db_name, location=str(path))
        # connecting creates the file
        with self._connect(handle) as conn:
            conn.execute("PRAGMA user_version")
        return handle

    def ensure_table(self, handle: StorageHandle, table_name: str) -> None:
        with self._connect(handle) as conn:
            conn.execute(f'''
                CREATE TABLE IF NOT EXISTS {_quote_identifier(table_name)} (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    payload TEXT NOT NULL
                )
            ''')
            conn.commit()

    def iter_records(self, handle: StorageHandle, table_name: str) -> Iterator[Dict[str, Any]]:
        with self._connect(handle) as conn:
            if not self._table_exists(conn, table_name):
                raise StorageNotFoundError(
                    f"Object store '{table_name}' not found.",
                    db_name=handle.db_name, table_name=table_name,
                )
            cursor = conn.execute(f"SELECT id, payload FROM {_quote_identifier(table_name)} ORDER BY id")
            for row_id, payload in cursor:
                try:
                    yield json.loads(payload)
                except json.JSONDecodeError as e:
                    raise StorageConnectionError(
                        f"Corrupt record {row_id} in '{handle.db_name}/{table_name}': {e}",
                        db_name=handle.db_name, table_name=table_name,
                    ) from e

    def read_all(self, handle: StorageHandle, table_name: str) -> List[Dict[str, Any]]:
        return list(self.iter_records(handle, table_name))

    def write_all(self, handle: StorageHandle, table_name: str,
                  records: Sequence[Dict[str, Any]], replace: bool = False) -> int:
        try:
            rows = [(json.dumps(dict(record), default=_json_default),) for record in records]
        except (TypeError, ValueError) as e:
            raise StorageConnectionError(
                f"Records cannot be serialized: {e}", db_name=handle.db_name, table_name=table_name
            ) from e

        self.ensure_table(handle, table_name)
        with self._connect(handle) as conn:
            table = _quote_identifier(table_name)
            if replace:
                conn.execute(f"DELETE FROM {table}")
            conn.executemany(f"INSERT INTO {table} (payload) VALUES (?)", rows)
            conn.commit()

        logger.log_storage_operation("write", handle.db_name, table_name, details={"records": len(rows), "replace": replace})
        return len(rows)

    def delete_database(self, db_name: str) -> None:
        self.ensure_available()
        path = self._db_path(db_name)
        if not path.exists():
            raise StorageNotFoundError(f"Database '{db_name}' not found.", db_name=db_name)
        try:
            path.unlink()
        except OSError as e:
            raise StorageConnectionError(f"Failed to delete database '{db_name}': {e}", db_name=db_name) from e

    def delete_table(self, db_name: str, table_name: str) -> None:
        self.ensure_available()
        path = self._db_path(db_name)
        if not path.exists():
            raise StorageNotFoundError(f"Database '{db_name}' not found.", db_name=db_name)

        handle = StorageHandle(db_name=db_name, location=str(path))
        with self._connect(handle) as conn:
            if not self._table_exists(conn, table_name):
                raise StorageNotFoundError(
                    f"Object store '{table_name}' not found.", db_name=db_name, table_name=table_name
                )
            conn.execute(f"DROP TABLE {_quote_identifier(table_name)}")
            conn.commit()
