"""SQL for the latest-record and history-log tables.

RecordLatest holds one JSON payload per key (overwrite). RecordHistory is an
append-only log read newest first.
"""
from __future__ import annotations

SCHEMA_STATEMENTS = [
    """
    IF OBJECT_ID('RecordLatest', 'U') IS NULL
    CREATE TABLE RecordLatest (
        StoreKey NVARCHAR(200) NOT NULL PRIMARY KEY,
        Payload NVARCHAR(MAX) NOT NULL,
        UpdatedAt DATETIME2 NOT NULL DEFAULT SYSUTCDATETIME()
    )
    """,
    """
    IF OBJECT_ID('RecordHistory', 'U') IS NULL
    CREATE TABLE RecordHistory (
        EntryId BIGINT IDENTITY(1,1) PRIMARY KEY,
        StoreKey NVARCHAR(200) NOT NULL,
        Payload NVARCHAR(MAX) NOT NULL,
        CreatedAt DATETIME2 NOT NULL DEFAULT SYSUTCDATETIME()
    )
    """,
]


def ensure_schema(conn) -> None:
    cursor = conn.cursor()
    for statement in SCHEMA_STATEMENTS:
        cursor.execute(statement)
    conn.commit()


def upsert_latest(conn, key: str, payload: str) -> None:
    query = """
        MERGE RecordLatest AS target
        USING (SELECT ? AS StoreKey, ? AS Payload) AS source
        ON target.StoreKey = source.StoreKey
        WHEN MATCHED THEN
            UPDATE SET Payload = source.Payload, UpdatedAt = SYSUTCDATETIME()
        WHEN NOT MATCHED THEN
            INSERT (StoreKey, Payload) VALUES (source.StoreKey, source.Payload);
    """
    cursor = conn.cursor()
    cursor.execute(query, key, payload)
    conn.commit()


def fetch_latest(conn, key: str) -> str | None:
    cursor = conn.cursor()
    cursor.execute("SELECT Payload FROM RecordLatest WHERE StoreKey = ?", key)
    row = cursor.fetchone()
    return row.Payload if row else None


def insert_history(conn, key: str, payload: str) -> None:
    cursor = conn.cursor()
    cursor.execute("INSERT INTO RecordHistory (StoreKey, Payload) VALUES (?, ?)", key, payload)
    conn.commit()


def fetch_history(conn, key: str, offset: int, limit: int | None) -> list[str]:
    """Payloads for a key, newest first, skipping ``offset`` rows."""
    query = """
        SELECT Payload FROM RecordHistory
        WHERE StoreKey = ?
        ORDER BY EntryId DESC
        OFFSET ? ROWS
    """
    params: list = [key, offset]
    if limit is not None:
        query += " FETCH NEXT ? ROWS ONLY"
        params.append(limit)
    cursor = conn.cursor()
    cursor.execute(query, *params)
    return [row.Payload for row in cursor.fetchall()]
