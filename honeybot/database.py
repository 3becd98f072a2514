"""DuckDB session management and table initialization."""

from __future__ import annotations

import duckdb

from honeybot.config import settings
from honeybot.utils.logger import logger

_connection: duckdb.DuckDBPyConnection | None = None


def get_db() -> duckdb.DuckDBPyConnection:
    """Return the singleton DuckDB connection, creating tables on first call."""
    global _connection  # noqa: PLW0603
    if _connection is None:
        db_path = str(settings.DB_PATH)
        logger.info("Opening DuckDB at %s", db_path)
        settings.DB_PATH.parent.mkdir(parents=True, exist_ok=True)
        _connection = duckdb.connect(db_path)
        _init_tables(_connection)
    return _connection


def close_db() -> None:
    """Close the singleton connection (tests and short-lived scripts)."""
    global _connection  # noqa: PLW0603
    if _connection is not None:
        _connection.close()
        _connection = None


def _init_tables(conn: duckdb.DuckDBPyConnection) -> None:
    """Create tables if they don't exist."""
    # Model-backed classifications, memoized per (video, title).
    # Rows are never updated: a retitled video gets a new key.
    conn.execute("""
        CREATE TABLE IF NOT EXISTS classification_cache (
            video_id     VARCHAR NOT NULL,
            title        VARCHAR NOT NULL,
            method       VARCHAR,
            model        VARCHAR,
            result_json  VARCHAR NOT NULL,
            created_at   TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            PRIMARY KEY (video_id, title)
        );
    """)

    # Relational mirror of the JSON ledger for downstream consumers
    conn.execute("""
        CREATE TABLE IF NOT EXISTS predictions (
            video_id            VARCHAR NOT NULL,
            asset               VARCHAR NOT NULL,
            ticker              VARCHAR,
            title               VARCHAR,
            published_at        TIMESTAMP,
            method              VARCHAR,
            predicted_tone      VARCHAR,
            predicted_direction VARCHAR,
            analysis_reasoning  VARCHAR,
            status              VARCHAR NOT NULL,
            reason              VARCHAR,
            actual_direction    VARCHAR,
            price_at_publish    DOUBLE,
            price_after_window  DOUBLE,
            price_change        DOUBLE,
            is_honey            BOOLEAN,
            resolved_at         TIMESTAMP,
            synced_at           TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            PRIMARY KEY (video_id, asset)
        );
    """)

    logger.debug("DuckDB tables ready")
