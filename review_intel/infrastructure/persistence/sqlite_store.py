"""
SQLite Document Store - Review Data Persistence
===============================================

Keeps every collection in one table, one JSON document per row. Filtering
happens in Python after loading a collection, which is fine for a single
hotel chain's review volume and keeps the Store contract identical to the
in-memory backend.
"""

import json
import logging
import sqlite3
from contextlib import contextmanager
from typing import List, Optional

from ...domain.errors import ConflictError
from ...domain.models import new_id
from .store import Filter, Record, Store, matches_filter

logger = logging.getLogger(__name__)

DATABASE_FILE = "review_intel.db"


class SQLiteStore(Store):
    """
    SQLite store for Review Intel.

    Usage:
        store = SQLiteStore("review_intel.db")
        store.init()

        store.insert("properties", {"id": "mh001", "name": "W Juhu", "rating": 4.7})
        store.find("properties")
    """

    def __init__(self, db_path: str = DATABASE_FILE):
        self.db_path = str(db_path)

    @contextmanager
    def _get_connection(self):
        """Get database connection with context manager."""
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        finally:
            conn.close()

    def init(self) -> "SQLiteStore":
        """Initialize database tables."""
        with self._get_connection() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS documents (
                    seq INTEGER PRIMARY KEY AUTOINCREMENT,
                    collection TEXT NOT NULL,
                    id TEXT NOT NULL,
                    data TEXT NOT NULL,
                    UNIQUE(collection, id)
                )
            """)
            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_documents_collection ON documents(collection)"
            )
        logger.info(f"Database initialized: {self.db_path}")
        return self

    # ── Reads ──────────────────────────────────────────────────────

    def find(self, collection: str, filter: Filter = None) -> List[Record]:
        with self._get_connection() as conn:
            rows = conn.execute(
                "SELECT data FROM documents WHERE collection = ? ORDER BY seq",
                (collection,)
            ).fetchall()
        records = [self._row_to_record(row) for row in rows]
        return [r for r in records if matches_filter(r, filter)]

    def get_by_id(self, collection: str, record_id: str) -> Optional[Record]:
        with self._get_connection() as conn:
            row = conn.execute(
                "SELECT data FROM documents WHERE collection = ? AND id = ?",
                (collection, record_id)
            ).fetchone()
        return self._row_to_record(row) if row else None

    # ── Writes ─────────────────────────────────────────────────────

    def insert(self, collection: str, record: Record) -> Record:
        record = dict(record)
        record.setdefault("id", new_id())
        try:
            with self._get_connection() as conn:
                conn.execute(
                    "INSERT INTO documents (collection, id, data) VALUES (?, ?, ?)",
                    (collection, record["id"], json.dumps(record, default=str))
                )
        except sqlite3.IntegrityError:
            logger.warning(f"{collection} record {record['id']} already exists")
            raise ConflictError(f"{collection} record '{record['id']}' already exists")
        return record

    def update_by_id(self, collection: str, record_id: str, patch: Record) -> Optional[Record]:
        with self._get_connection() as conn:
            row = conn.execute(
                "SELECT data FROM documents WHERE collection = ? AND id = ?",
                (collection, record_id)
            ).fetchone()
            if row is None:
                return None
            record = self._row_to_record(row)
            record.update(patch)
            conn.execute(
                "UPDATE documents SET data = ? WHERE collection = ? AND id = ?",
                (json.dumps(record, default=str), collection, record_id)
            )
            return record

    def delete_by_id(self, collection: str, record_id: str) -> bool:
        with self._get_connection() as conn:
            cursor = conn.execute(
                "DELETE FROM documents WHERE collection = ? AND id = ?",
                (collection, record_id)
            )
            return cursor.rowcount > 0

    def _row_to_record(self, row: sqlite3.Row) -> Record:
        """Convert database row to a record dict."""
        return json.loads(row["data"])
