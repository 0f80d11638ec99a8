"""Tests for the record stores and the pyodbc connection pool."""
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from loanlens.db.connection import DatabasePool
from loanlens.db.store import MemoryRecordStore, SqlRecordStore, create_record_store
from loanlens.errors import StoreError


# --- Memory store ---


def test_latest_is_overwritten(memory_store):
    memory_store.set_latest("analysis:latest", {"n": 1})
    memory_store.set_latest("analysis:latest", {"n": 2})
    assert memory_store.get_latest("analysis:latest") == {"n": 2}


def test_missing_latest_is_none(memory_store):
    assert memory_store.get_latest("analysis:latest") is None


def test_history_newest_first_with_inclusive_range(memory_store):
    for n in range(5):
        memory_store.append_history("h", {"n": n})
    assert [r["n"] for r in memory_store.list_history("h")] == [4, 3, 2, 1, 0]
    assert [r["n"] for r in memory_store.list_history("h", 0, 1)] == [4, 3]
    assert [r["n"] for r in memory_store.list_history("h", 2, 3)] == [2, 1]
    assert memory_store.list_history("other") == []


def test_returned_records_are_copies(memory_store):
    memory_store.set_latest("k", {"items": [1]})
    memory_store.get_latest("k")["items"].append(2)
    assert memory_store.get_latest("k") == {"items": [1]}


# --- SQL store ---


def _pool_with(conn) -> MagicMock:
    pool = MagicMock()
    pool.get_connection.return_value = conn
    return pool


def test_sql_get_latest_decodes_payload():
    conn = MagicMock()
    conn.cursor.return_value.fetchone.return_value = SimpleNamespace(Payload='{"a": 1}')
    store = SqlRecordStore(_pool_with(conn))

    assert store.get_latest("analysis:latest") == {"a": 1}
    conn.close.assert_called_once()


def test_sql_set_latest_commits_json():
    conn = MagicMock()
    SqlRecordStore(_pool_with(conn)).set_latest("analysis:latest", {"a": 1})

    args = conn.cursor.return_value.execute.call_args.args
    assert "MERGE RecordLatest" in args[0]
    assert args[1:] == ("analysis:latest", '{"a": 1}')
    conn.commit.assert_called_once()


def test_sql_list_history_pages_newest_first():
    conn = MagicMock()
    conn.cursor.return_value.fetchall.return_value = [
        SimpleNamespace(Payload='{"n": 2}'), SimpleNamespace(Payload='{"n": 1}'),
    ]
    rows = SqlRecordStore(_pool_with(conn)).list_history("emails:history", 0, 49)

    args = conn.cursor.return_value.execute.call_args.args
    assert "ORDER BY EntryId DESC" in args[0]
    assert args[1:] == ("emails:history", 0, 50)
    assert rows == [{"n": 2}, {"n": 1}]


def test_sql_connection_failure_raises_store_error():
    pool = MagicMock()
    pool.get_connection.side_effect = RuntimeError("no driver")
    with pytest.raises(StoreError, match="no driver"):
        SqlRecordStore(pool).append_history("analysis:history", {})


def test_sql_query_failure_closes_connection():
    conn = MagicMock()
    conn.cursor.return_value.execute.side_effect = Exception("deadlock")
    with pytest.raises(StoreError):
        SqlRecordStore(_pool_with(conn)).append_history("analysis:history", {})
    conn.close.assert_called_once()


# --- Store selection ---


def test_unconfigured_pool_gives_memory_store():
    pool = DatabasePool()
    pool.initialize("")
    assert isinstance(create_record_store(pool), MemoryRecordStore)


def test_configured_pool_gives_sql_store():
    pool = DatabasePool()
    pool.initialize("Driver={ODBC Driver 18 for SQL Server};Server=db")
    store = create_record_store(pool)
    assert isinstance(store, SqlRecordStore)
    assert store.backend == "sqlserver"


def test_unconfigured_pool_reports_not_configured():
    pool = DatabasePool()
    pool.initialize("")
    assert pool.test_connection()["status"] == "not_configured"
