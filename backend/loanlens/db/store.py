"""Key/list record store for analyses and notification history.

Two backends share the RecordStore interface: SqlRecordStore on SQL Server
(through the pyodbc DatabasePool) and MemoryRecordStore for local runs and
tests. Records are JSON-compatible dicts; history reads are newest first and
use inclusive ``start``/``stop`` indexes, with ``stop=-1`` meaning "to the end".
"""
from __future__ import annotations

import json
import logging
import threading
from collections import defaultdict
from typing import Any, Protocol

from loanlens.db.connection import DatabasePool, db_pool
from loanlens.db.queries import records
from loanlens.errors import StoreError

logger = logging.getLogger(__name__)

LATEST_ANALYSIS_KEY = "analysis:latest"
ANALYSIS_HISTORY_KEY = "analysis:history"
EMAIL_HISTORY_KEY = "emails:history"


class RecordStore(Protocol):
    backend: str

    def set_latest(self, key: str, record: dict[str, Any]) -> None: ...

    def get_latest(self, key: str) -> dict[str, Any] | None: ...

    def append_history(self, key: str, record: dict[str, Any]) -> None: ...

    def list_history(self, key: str, start: int = 0, stop: int = -1) -> list[dict[str, Any]]: ...


def _dumps(record: dict[str, Any]) -> str:
    return json.dumps(record, default=str)


def _loads(payload: str, key: str) -> dict[str, Any] | None:
    try:
        data = json.loads(payload)
    except json.JSONDecodeError as e:
        logger.warning("Unreadable record under %s: %s", key, e)
        return None
    return data if isinstance(data, dict) else None


def _limit(start: int, stop: int) -> int | None:
    return None if stop < 0 else max(0, stop - start + 1)


class MemoryRecordStore:
    """Process-local store. Last write wins on latest keys."""

    backend = "memory"

    def __init__(self) -> None:
        self._latest: dict[str, str] = {}
        self._history: dict[str, list[str]] = defaultdict(list)
        self._lock = threading.Lock()

    def set_latest(self, key: str, record: dict[str, Any]) -> None:
        payload = _dumps(record)
        with self._lock:
            self._latest[key] = payload

    def get_latest(self, key: str) -> dict[str, Any] | None:
        with self._lock:
            payload = self._latest.get(key)
        return _loads(payload, key) if payload is not None else None

    def append_history(self, key: str, record: dict[str, Any]) -> None:
        payload = _dumps(record)
        with self._lock:
            self._history[key].insert(0, payload)

    def list_history(self, key: str, start: int = 0, stop: int = -1) -> list[dict[str, Any]]:
        limit = _limit(start, stop)
        with self._lock:
            entries = self._history.get(key, [])
            window = entries[start:] if limit is None else entries[start:start + limit]
        return [r for r in (_loads(p, key) for p in window) if r is not None]


class SqlRecordStore:
    """SQL Server backed store (tables RecordLatest / RecordHistory)."""

    backend = "sqlserver"

    def __init__(self, pool: DatabasePool | None = None) -> None:
        self._pool = pool or db_pool

    def _run(self, action: str, fn, *args):
        try:
            conn = self._pool.get_connection()
        except RuntimeError as e:
            raise StoreError(f"Cannot {action}: {e}") from e
        try:
            return fn(conn, *args)
        except Exception as e:
            raise StoreError(f"Cannot {action}: {e}") from e
        finally:
            conn.close()

    def ensure_schema(self) -> None:
        self._run("create record tables", records.ensure_schema)

    def set_latest(self, key: str, record: dict[str, Any]) -> None:
        self._run(f"write {key}", records.upsert_latest, key, _dumps(record))

    def get_latest(self, key: str) -> dict[str, Any] | None:
        payload = self._run(f"read {key}", records.fetch_latest, key)
        return _loads(payload, key) if payload is not None else None

    def append_history(self, key: str, record: dict[str, Any]) -> None:
        self._run(f"append to {key}", records.insert_history, key, _dumps(record))

    def list_history(self, key: str, start: int = 0, stop: int = -1) -> list[dict[str, Any]]:
        payloads = self._run(
            f"read {key}", records.fetch_history, key, max(0, start), _limit(start, stop)
        )
        return [r for r in (_loads(p, key) for p in payloads) if r is not None]


def create_record_store(pool: DatabasePool | None = None) -> RecordStore:
    """SQL store when the pool has a connection string, else memory."""
    pool = pool or db_pool
    if pool.is_configured:
        return SqlRecordStore(pool)
    logger.warning("Using in-memory record store; analyses will not survive a restart")
    return MemoryRecordStore()
