"""
Append-only signature stores.

A store owns SignatureRecords for the ledger. Records are appended, never
updated or deleted, and queried per document in insertion order.

Concurrency:
    - Appends are serialized by a single writer lock.
    - InMemorySignatureStore publishes a new tuple on every append, so a
      reader holding the old tuple never sees a half-written record.
    - SqliteSignatureStore relies on one transaction per append.

SqliteSignatureStore conventions:
    - persistent connection for :memory:
    - _transaction() context manager with commit/rollback
    - _init_schema() via executescript
    - sqlite3.Row row factory
    - WAL mode for file-backed databases
"""

from __future__ import annotations

import json
import logging
import sqlite3
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Protocol

from lexattest.errors import StoreError
from lexattest.fingerprint import canonical_json
from lexattest.records import SignatureRecord

logger = logging.getLogger(__name__)


class SignatureStore(Protocol):
    """Append-only repository of signature records."""

    def append(self, record: SignatureRecord) -> None:
        """Append a record. Raises StoreError if the id already exists."""
        ...

    def query_by_document_id(self, document_id: str) -> list[SignatureRecord]:
        """All records for a document, oldest first."""
        ...


class InMemorySignatureStore:
    """Process-lifetime store. One instance per ledger (or per test)."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._records: tuple[SignatureRecord, ...] = ()
        self._ids: frozenset[str] = frozenset()

    def append(self, record: SignatureRecord) -> None:
        with self._lock:
            if record.id in self._ids:
                raise StoreError(
                    f"Signature record already exists: {record.id}",
                    details={"record_id": record.id},
                )
            self._records = (*self._records, record)
            self._ids = self._ids | {record.id}

    def query_by_document_id(self, document_id: str) -> list[SignatureRecord]:
        records = self._records
        return [r for r in records if r.document_id == document_id]

    def all_records(self) -> list[SignatureRecord]:
        return list(self._records)

    def __len__(self) -> int:
        return len(self._records)


_SCHEMA = """\
CREATE TABLE IF NOT EXISTS signature_records (
    seq INTEGER PRIMARY KEY AUTOINCREMENT,
    record_id TEXT NOT NULL UNIQUE,
    document_id TEXT NOT NULL,
    document_hash TEXT NOT NULL,
    created_at TEXT NOT NULL,
    record_json TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_signature_records_document
ON signature_records(document_id, seq);
"""


class SqliteSignatureStore:
    """SQLite-backed signature store.

    Args:
        db_path: Path to SQLite database file, or ":memory:" for in-memory.
    """

    def __init__(self, db_path: str | Path = ":memory:") -> None:
        self._db_path = str(db_path)
        self._is_memory = self._db_path == ":memory:"
        self._write_lock = threading.Lock()

        if self._is_memory:
            self._persistent_conn: sqlite3.Connection | None = sqlite3.connect(
                ":memory:", check_same_thread=False
            )
            self._persistent_conn.row_factory = sqlite3.Row
        else:
            self._persistent_conn = None

        self._init_schema()

    def _get_conn(self) -> sqlite3.Connection:
        """Get a database connection with proper settings."""
        if self._persistent_conn is not None:
            return self._persistent_conn

        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode = WAL")
        return conn

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        """Context manager for a database transaction."""
        conn = self._get_conn()
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            if self._persistent_conn is None:
                conn.close()

    def _init_schema(self) -> None:
        """Create tables if they don't exist."""
        with self._transaction() as conn:
            conn.executescript(_SCHEMA)

    def append(self, record: SignatureRecord) -> None:
        with self._write_lock, self._transaction() as conn:
            try:
                conn.execute(
                    """
                    INSERT INTO signature_records
                    (record_id, document_id, document_hash, created_at, record_json)
                    VALUES (?, ?, ?, ?, ?)
                    """,
                    (
                        record.id,
                        record.document_id,
                        record.document_hash,
                        record.timestamp,
                        canonical_json(record.to_dict()),
                    ),
                )
            except sqlite3.IntegrityError as e:
                raise StoreError(
                    f"Signature record already exists: {record.id}",
                    details={"record_id": record.id},
                ) from e
        logger.debug("Stored signature record %s for %s", record.id, record.document_id)

    def query_by_document_id(self, document_id: str) -> list[SignatureRecord]:
        with self._transaction() as conn:
            rows = conn.execute(
                """
                SELECT record_json FROM signature_records
                WHERE document_id = ?
                ORDER BY seq
                """,
                (document_id,),
            ).fetchall()
        return [SignatureRecord.from_dict(json.loads(row["record_json"])) for row in rows]

    def count(self) -> int:
        with self._transaction() as conn:
            (n,) = conn.execute("SELECT COUNT(*) FROM signature_records").fetchone()
        return int(n)
