# File: bot_core/sqlite_storage.py
import asyncio
import logging
import os
import sqlite3
import threading
from typing import Any, Dict, List

import jsonpickle
from botbuilder.core import Storage  # type: ignore

logger = logging.getLogger(__name__)


class SQLiteStorageError(Exception):
    """Raised when the SQLite backend cannot complete a storage operation."""
    pass


class SQLiteStorage(Storage):
    """
    SQLite-backed storage for Bot Framework state.
    Stores each state document as a jsonpickle blob keyed by its storage key, so
    framework objects such as the dialog stack come back with their types.
    """
    # SQLite error codes that might be transient and benefit from retries
    TRANSIENT_ERROR_CODES = {
        5,    # SQLITE_BUSY: Database file is locked
        6,    # SQLITE_LOCKED: A table in the database is locked
        261,  # SQLITE_BUSY_SNAPSHOT
        262,  # SQLITE_BUSY_RECOVERY
        517,  # SQLITE_BUSY_TIMEOUT
    }

    def __init__(self, db_path: str, max_retries: int = 3):
        super().__init__()
        self.db_path = db_path
        self.max_retries = max_retries
        self._lock = threading.RLock()

        if db_path != ":memory:":
            os.makedirs(os.path.dirname(os.path.abspath(db_path)), exist_ok=True)

        self._conn = sqlite3.connect(
            db_path,
            timeout=30.0,
            isolation_level=None,  # autocommit
            check_same_thread=False,
        )
        if db_path != ":memory:":
            self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.execute("PRAGMA busy_timeout=5000")
        self._ensure_table()
        logger.info(f"SQLiteStorage ready at {db_path}")

    def _ensure_table(self):
        with self._lock:
            self._conn.execute(
                """
                CREATE TABLE IF NOT EXISTS bot_state (
                    key TEXT PRIMARY KEY,
                    data TEXT NOT NULL,
                    updated_at TEXT DEFAULT (datetime('now'))
                )
                """
            )

    async def _run(self, operation_name: str, fn, *args):
        """Run a blocking DB call, retrying transient lock errors with backoff."""
        retries_left = self.max_retries
        while True:
            try:
                with self._lock:
                    return fn(*args)
            except sqlite3.Error as e:
                error_code = getattr(e, 'sqlite_errorcode', None)
                if error_code in self.TRANSIENT_ERROR_CODES and retries_left > 0:
                    retries_left -= 1
                    wait_time = 0.1 * (2 ** (self.max_retries - retries_left))
                    logger.warning(f"Transient SQLite error {error_code} during {operation_name}, retrying in {wait_time:.2f}s. {retries_left} retries left.")
                    await asyncio.sleep(wait_time)
                    continue
                logger.error(f"SQLite error during {operation_name}: {e}")
                raise SQLiteStorageError(f"SQLite {operation_name} failed: {e}") from e

    def _select(self, keys: List[str]) -> Dict[str, Any]:
        placeholders = ",".join("?" for _ in keys)
        cur = self._conn.execute(f"SELECT key, data FROM bot_state WHERE key IN ({placeholders})", keys)
        found: Dict[str, Any] = {}
        for key, data_str in cur.fetchall():
            try:
                found[key] = jsonpickle.decode(data_str)
            except ValueError as json_err:
                logger.error(f"Error decoding JSON data for {key}: {json_err}. Data: {data_str[:500]}")
        return found

    def _upsert(self, rows: List[tuple]) -> None:
        self._conn.executemany(
            "REPLACE INTO bot_state (key, data, updated_at) VALUES (?, ?, datetime('now'))",
            rows,
        )

    def _remove(self, keys: List[str]) -> None:
        self._conn.executemany("DELETE FROM bot_state WHERE key=?", [(key,) for key in keys])

    async def read(self, keys: List[str]) -> Dict[str, Any]:
        if not keys:
            return {}
        return await self._run("read", self._select, list(keys))

    async def write(self, changes: Dict[str, Any]):
        if not changes:
            return
        rows = [(key, jsonpickle.encode(value)) for key, value in changes.items()]
        await self._run("write", self._upsert, rows)
        logger.debug(f"Wrote {len(rows)} items to SQLite.")

    async def delete(self, keys: List[str]):
        if not keys:
            return
        await self._run("delete", self._remove, list(keys))

    def close(self):
        with self._lock:
            try:
                self._conn.close()
            except sqlite3.Error as e:
                logger.error(f"Error closing SQLite connection: {e}")
