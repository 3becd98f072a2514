"""Relational sync — mirror the JSON ledger into the DuckDB ``predictions`` table.

One row per (video_id, asset). Status is ``resolved``, ``pending`` (window
not elapsed yet) or ``unresolved`` (with the reason). Re-syncing is an
upsert, so running it twice leaves the table unchanged.
"""

from __future__ import annotations

from datetime import datetime, timezone

import duckdb

from honeybot.database import get_db
from honeybot.models.prediction import (
    Prediction,
    ResolvedPrediction,
    UnresolvedPrediction,
)
from honeybot.services.ledger import PredictionLedger
from honeybot.utils.logger import logger

_COLUMNS = (
    "video_id", "asset", "ticker", "title", "published_at", "method",
    "predicted_tone", "predicted_direction", "analysis_reasoning",
    "status", "reason", "actual_direction",
    "price_at_publish", "price_after_window", "price_change",
    "is_honey", "resolved_at", "synced_at",
)


def _naive_utc(dt: datetime | None) -> datetime | None:
    # DuckDB TIMESTAMP columns are zone-less; store UTC wall time
    if dt is None:
        return None
    return dt.astimezone(timezone.utc).replace(tzinfo=None)


def sync_status(record: Prediction) -> str:
    if isinstance(record, ResolvedPrediction):
        return "resolved"
    if isinstance(record, UnresolvedPrediction) and record.pending:
        return "pending"
    return "unresolved"


def to_row(record: Prediction, synced_at: datetime) -> list:
    resolved = record if isinstance(record, ResolvedPrediction) else None
    reason = record.reason if isinstance(record, UnresolvedPrediction) else None
    return [
        record.video_id,
        record.asset,
        record.ticker,
        record.title,
        _naive_utc(record.published_at),
        record.method,
        record.tone.tone if record.tone else None,
        record.predicted_direction,
        record.tone.reasoning if record.tone else None,
        sync_status(record),
        reason,
        resolved.actual_direction if resolved else None,
        resolved.price_at_publish if resolved else None,
        resolved.price_after_window if resolved else None,
        resolved.price_change if resolved else None,
        resolved.is_honey if resolved else None,
        _naive_utc(resolved.resolved_at) if resolved else None,
        _naive_utc(synced_at),
    ]


class SyncService:
    """Upserts every ledger record into DuckDB."""

    def __init__(self, conn: duckdb.DuckDBPyConnection | None = None) -> None:
        self._conn = conn

    @property
    def db(self) -> duckdb.DuckDBPyConnection:
        return self._conn if self._conn is not None else get_db()

    def sync(self, ledger: PredictionLedger) -> dict[str, int]:
        """Upsert resolved + unresolved records; returns per-status counts."""
        ledger.load()
        synced_at = datetime.now(timezone.utc)
        counts = {"resolved": 0, "pending": 0, "unresolved": 0}

        records: list[Prediction] = [*ledger.resolved(), *ledger.unresolved()]
        rows = []
        for record in records:
            row = to_row(record, synced_at)
            counts[row[_COLUMNS.index("status")]] += 1
            rows.append(row)

        if rows:
            placeholders = ", ".join("?" for _ in _COLUMNS)
            self.db.executemany(
                f"INSERT OR REPLACE INTO predictions ({', '.join(_COLUMNS)}) "
                f"VALUES ({placeholders})",
                rows,
            )

        logger.info(
            "[Sync] upserted %d rows (resolved=%d pending=%d unresolved=%d)",
            len(rows), counts["resolved"], counts["pending"], counts["unresolved"],
        )
        return counts

    def count(self, status: str | None = None) -> int:
        if status is None:
            row = self.db.execute("SELECT COUNT(*) FROM predictions").fetchone()
        else:
            row = self.db.execute(
                "SELECT COUNT(*) FROM predictions WHERE status = ?", [status],
            ).fetchone()
        return int(row[0]) if row else 0
