"""SQLite-backed document store."""

import json
import logging
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from edgepatch.store.base import DocumentNotFoundError, DocumentStore

logger = logging.getLogger(__name__)


class SqliteDocumentStore(DocumentStore):
    """
    Stores JSON documents in a single `documents` table keyed by storage key.
    Writes replace the whole document (last write wins).
    """

    def __init__(self, db_path: str | Path = "edgepatch.db"):
        self._db_path = Path(db_path)
        self._ensure_schema()

    def _connection(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _ensure_schema(self) -> None:
        schema_path = Path(__file__).parent / "schema.sql"
        with self._connection() as conn:
            conn.executescript(schema_path.read_text())

    def get(self, key: str) -> dict[str, Any]:
        with self._connection() as conn:
            row = conn.execute("SELECT body FROM documents WHERE key = ?", (key,)).fetchone()
        if row is None:
            raise DocumentNotFoundError(key)
        return json.loads(row["body"])

    def put(self, key: str, document: dict[str, Any]) -> None:
        now = datetime.now(timezone.utc).isoformat()
        body = json.dumps(document, indent=2)
        with self._connection() as conn:
            conn.execute(
                """
                INSERT INTO documents (key, body, updated_at) VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET body = excluded.body, updated_at = excluded.updated_at
                """,
                (key, body, now),
            )
        logger.debug("Stored %d bytes at %s", len(body), key)

