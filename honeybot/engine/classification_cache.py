"""Classification cache — DuckDB-backed memo for model-backed title analysis.

Point reads and insert-or-ignore writes keyed by (video_id, title), so two
writers can never clobber each other and a hit never costs a network call.
"""

from __future__ import annotations

import duckdb

from honeybot.database import get_db
from honeybot.models.classification import ClassificationResult
from honeybot.utils.logger import logger


class ClassificationCache:
    """Immutable key-value store for ``ClassificationResult`` objects."""

    def __init__(self, conn: duckdb.DuckDBPyConnection | None = None) -> None:
        self._conn = conn

    @property
    def db(self) -> duckdb.DuckDBPyConnection:
        return self._conn if self._conn is not None else get_db()

    def get(self, video_id: str, title: str) -> ClassificationResult | None:
        row = self.db.execute(
            "SELECT result_json FROM classification_cache "
            "WHERE video_id = ? AND title = ?",
            [video_id, title],
        ).fetchone()
        if not row:
            return None
        try:
            return ClassificationResult.model_validate_json(row[0])
        except ValueError as e:
            logger.warning("[Cache] Unreadable entry for %s: %s", video_id, e)
            return None

    def put(self, video_id: str, title: str, result: ClassificationResult) -> None:
        """Store *result* unless the key already exists (first write wins)."""
        self.db.execute(
            """
            INSERT OR IGNORE INTO classification_cache
                (video_id, title, method, model, result_json)
            VALUES (?, ?, ?, ?, ?)
            """,
            [video_id, title, result.method, result.model, result.model_dump_json()],
        )

    def count(self) -> int:
        row = self.db.execute("SELECT COUNT(*) FROM classification_cache").fetchone()
        return int(row[0]) if row else 0
