"""Pluggable persistence backends for the book collection.

Every backend stores the whole serialized collection in a single slot:
a JSON array file, or one row under a named key in a key-value table.
There is no per-record write primitive.
"""

import contextlib
import logging
import os
import sqlite3
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path

from booky.config import HEALTH_CHECK_KEY, StorageConfig
from booky.errors import StorageUnavailable
from booky.storage.database import get_connection, initialize_database

logger = logging.getLogger(__name__)


class BookBackend(ABC):
    """Interface for a collection storage slot."""

    @abstractmethod
    def read(self) -> str | None:
        """Return the serialized collection, or None if nothing is stored.

        Raises:
            StorageUnavailable: If the backend cannot be reached.
        """

    @abstractmethod
    def write(self, payload: str) -> None:
        """Replace the serialized collection.

        Raises:
            StorageUnavailable: If the backend cannot be reached.
        """

    @abstractmethod
    def ping(self) -> bool:
        """Write, read back and remove a probe value.

        Returns:
            True if the probe value survived the round trip.

        Raises:
            StorageUnavailable: If the backend cannot be reached.
        """


class MemoryBackend(BookBackend):
    """Keeps the collection in process memory."""

    def __init__(self, payload: str | None = None) -> None:
        self._payload = payload

    def read(self) -> str | None:
        return self._payload

    def write(self, payload: str) -> None:
        self._payload = payload

    def ping(self) -> bool:
        return True


class JsonFileBackend(BookBackend):
    """Stores the collection as a single JSON array file."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def read(self) -> str | None:
        try:
            return self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StorageUnavailable(f"Cannot read {self.path}: {e}") from e

    def write(self, payload: str) -> None:
        self._write_file(self.path, payload)

    def ping(self) -> bool:
        probe = self.path.with_name(f".{self.path.name}.{HEALTH_CHECK_KEY}")
        value = datetime.now().isoformat()
        self._write_file(probe, value)
        try:
            return probe.read_text(encoding="utf-8") == value
        except OSError as e:
            raise StorageUnavailable(f"Cannot read {probe}: {e}") from e
        finally:
            with contextlib.suppress(OSError):
                probe.unlink(missing_ok=True)

    @staticmethod
    def _write_file(path: Path, payload: str) -> None:
        """Write through a temp file so readers never see a partial array."""
        tmp_path = path.with_name(f"{path.name}.tmp")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(payload, encoding="utf-8")
            os.replace(tmp_path, path)
        except OSError as e:
            with contextlib.suppress(OSError):
                tmp_path.unlink(missing_ok=True)
            raise StorageUnavailable(f"Cannot write {path}: {e}") from e


class SqliteBackend(BookBackend):
    """Stores the collection under one key of a SQLite key-value table.

    The connection is opened on first use and reused afterwards.
    """

    def __init__(
        self, db_path: str | Path, key: str = "books", timeout: float = 5.0
    ) -> None:
        if key == HEALTH_CHECK_KEY:
            raise ValueError(f"'{HEALTH_CHECK_KEY}' is reserved for health checks")
        self.db_path = Path(db_path)
        self.key = key
        self.timeout = timeout
        self._conn: sqlite3.Connection | None = None

    def read(self) -> str | None:
        return self._get(self.key)

    def write(self, payload: str) -> None:
        self._set(self.key, payload)

    def ping(self) -> bool:
        value = datetime.now().isoformat()
        self._set(HEALTH_CHECK_KEY, value)
        try:
            return self._get(HEALTH_CHECK_KEY) == value
        finally:
            try:
                self._delete(HEALTH_CHECK_KEY)
            except StorageUnavailable:
                logger.warning("Could not remove health check key", exc_info=True)

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def _connection(self) -> sqlite3.Connection:
        if self._conn is None:
            try:
                initialize_database(self.db_path, self.timeout)
                self._conn = get_connection(self.db_path, self.timeout)
            except (OSError, sqlite3.Error) as e:
                raise StorageUnavailable(
                    f"Cannot open database {self.db_path}: {e}"
                ) from e
            logger.debug("Connected to %s", self.db_path)
        return self._conn

    def _get(self, key: str) -> str | None:
        conn = self._connection()
        try:
            row = conn.execute(
                "SELECT value FROM kv_store WHERE key = ?", (key,)
            ).fetchone()
        except sqlite3.Error as e:
            raise StorageUnavailable(f"Cannot read key '{key}': {e}") from e
        return row["value"] if row else None

    def _set(self, key: str, value: str) -> None:
        conn = self._connection()
        try:
            conn.execute(
                """
                INSERT INTO kv_store (key, value, updated_at)
                VALUES (?, ?, CURRENT_TIMESTAMP)
                ON CONFLICT(key) DO UPDATE SET
                    value = excluded.value,
                    updated_at = CURRENT_TIMESTAMP
                """,
                (key, value),
            )
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise StorageUnavailable(f"Cannot write key '{key}': {e}") from e

    def _delete(self, key: str) -> None:
        conn = self._connection()
        try:
            conn.execute("DELETE FROM kv_store WHERE key = ?", (key,))
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise StorageUnavailable(f"Cannot delete key '{key}': {e}") from e


def create_backend(config: StorageConfig) -> BookBackend:
    """Build the backend named by ``config.backend``.

    Raises:
        ValueError: If the backend name is not recognized.
    """
    if config.backend == "memory":
        return MemoryBackend()
    if config.backend == "file":
        return JsonFileBackend(config.books_file)
    if config.backend == "sqlite":
        return SqliteBackend(
            config.sqlite_path, key=config.key, timeout=config.timeout_seconds
        )
    raise ValueError(
        f"Unknown storage backend: '{config.backend}'. "
        "Supported: memory, file, sqlite"
    )
