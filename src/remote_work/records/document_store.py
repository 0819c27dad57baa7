# src/remote_work/records/document_store.py

from __future__ import annotations

import contextlib
import json
import logging
import sqlite3
import time
import uuid
from collections.abc import Iterator
from pathlib import Path
from typing import Any

from ..core.errors import StoreUnavailable
from .models import Collection

logger = logging.getLogger(__name__)


def new_record_id() -> str:
    return uuid.uuid4().hex


class SQLiteDocumentStore:
    """
    SQLite-backed document store.

    Every collection shares one table; a record body is a JSON object keyed by
    (collection, id). Ids are 32-char hex strings generated on insert.

    Thread-safety:
    - each method opens its own SQLite connection

    Errors:
    - any sqlite3.Error, or a data directory that cannot be created, is
      reported as StoreUnavailable
    """

    def __init__(self, db_path: str | Path = "records.sqlite3") -> None:
        self._db_path = Path(db_path)
        try:
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise StoreUnavailable(f"cannot create {self._db_path.parent}: {exc}") from exc
        self._ensure_schema()
        logger.info("DocumentStore ready db=%s", self._db_path)

    def close(self) -> None:
        """Compatibility hook for shutdown (no persistent connections to close)."""
        return

    # ---- low-level helpers ----

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), timeout=30.0)
        conn.row_factory = sqlite3.Row
        with contextlib.suppress(sqlite3.Error):
            conn.execute("PRAGMA journal_mode=WAL")
        return conn

    @contextlib.contextmanager
    def _conn(self, op: str) -> Iterator[sqlite3.Connection]:
        try:
            conn = self._get_conn()
        except sqlite3.Error as exc:
            raise StoreUnavailable(f"{op}: cannot open {self._db_path}: {exc}") from exc
        try:
            yield conn
        except sqlite3.Error as exc:
            logger.exception("DocumentStore %s failed", op)
            raise StoreUnavailable(f"{op}: {exc}") from exc
        finally:
            conn.close()

    def _ensure_schema(self) -> None:
        with self._conn("ensure_schema") as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS documents (
                    seq INTEGER PRIMARY KEY AUTOINCREMENT,
                    collection TEXT NOT NULL,
                    id TEXT NOT NULL,
                    body TEXT NOT NULL DEFAULT '{}',
                    created_at REAL NOT NULL,
                    updated_at REAL NOT NULL,
                    UNIQUE (collection, id)
                )
                """
            )
            conn.execute("CREATE INDEX IF NOT EXISTS idx_documents_collection ON documents(collection, seq)")
            conn.commit()

    @staticmethod
    def _to_body(record: dict[str, Any]) -> str:
        body = {k: v for k, v in record.items() if k != "id"}
        return json.dumps(body, ensure_ascii=False)

    @staticmethod
    def _row_to_doc(row: sqlite3.Row) -> dict[str, Any]:
        try:
            body = json.loads(row["body"] or "{}")
        except json.JSONDecodeError:
            logger.warning("Corrupt document body collection=%s id=%s", row["collection"], row["id"])
            body = {}
        if not isinstance(body, dict):
            body = {}
        body["id"] = row["id"]
        return body

    # ---- public API ----

    def count(self, collection: Collection) -> int:
        with self._conn("count") as conn:
            (n,) = conn.execute(
                "SELECT COUNT(*) FROM documents WHERE collection = ?", (collection.value,)
            ).fetchone()
            return int(n)

    def insert(self, collection: Collection, record: dict[str, Any]) -> str:
        record_id = new_record_id()
        now = time.time()
        with self._conn("insert") as conn:
            conn.execute(
                """
                INSERT INTO documents(collection, id, body, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?)
                """,
                (collection.value, record_id, self._to_body(record), now, now),
            )
            conn.commit()
        logger.debug("Inserted %s id=%s", collection.value, record_id)
        return record_id

    def find_by_id(self, collection: Collection, record_id: str) -> dict[str, Any] | None:
        with self._conn("find_by_id") as conn:
            row = conn.execute(
                "SELECT * FROM documents WHERE collection = ? AND id = ?",
                (collection.value, record_id),
            ).fetchone()
            return self._row_to_doc(row) if row else None

    def find_all(self, collection: Collection) -> list[dict[str, Any]]:
        with self._conn("find_all") as conn:
            rows = conn.execute(
                "SELECT * FROM documents WHERE collection = ? ORDER BY seq ASC",
                (collection.value,),
            ).fetchall()
            return [self._row_to_doc(r) for r in rows]

    def update_fields(self, collection: Collection, record_id: str, changes: dict[str, Any]) -> bool:
        """
        Merge `changes` into the stored body.

        A None value removes the key. Returns False when the record does not exist.
        """
        with self._conn("update_fields") as conn:
            # Read-modify-write under one write lock keeps the merge atomic per record.
            conn.execute("BEGIN IMMEDIATE")
            row = conn.execute(
                "SELECT * FROM documents WHERE collection = ? AND id = ?",
                (collection.value, record_id),
            ).fetchone()
            if row is None:
                conn.rollback()
                return False

            body = self._row_to_doc(row)
            for key, value in changes.items():
                if key == "id":
                    continue
                if value is None:
                    body.pop(key, None)
                else:
                    body[key] = value

            conn.execute(
                "UPDATE documents SET body = ?, updated_at = ? WHERE collection = ? AND id = ?",
                (self._to_body(body), time.time(), collection.value, record_id),
            )
            conn.commit()
        logger.debug("Updated %s id=%s fields=%s", collection.value, record_id, sorted(changes))
        return True
