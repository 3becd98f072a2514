from datetime import datetime, timezone

import pytest

import honeybot.database as db_module
from honeybot.config import settings
from honeybot.models.classification import ToneAnalysis
from honeybot.models.prediction import Prediction


@pytest.fixture(autouse=True, scope="session")
def use_test_dirs(tmp_path_factory):
    # Route the ledger, stats artifact and DuckDB file into a temp dir
    # so tests never touch a live run's data
    temp_dir = tmp_path_factory.mktemp("honeybot_data")
    settings.DATA_DIR = temp_dir
    settings.DB_PATH = temp_dir / "test_honeybot.duckdb"
    db_module.close_db()

    yield

    db_module.close_db()


@pytest.fixture()
def db():
    """Fresh singleton connection with both tables emptied."""
    conn = db_module.get_db()
    conn.execute("DELETE FROM classification_cache")
    conn.execute("DELETE FROM predictions")
    return conn


@pytest.fixture()
def make_prediction():
    """Factory for Predictions with sensible defaults."""

    def _make(
        video_id: str = "vid1",
        asset: str = "Bitcoin",
        ticker: str = "BTCUSDT",
        tone: str | None = "positive",
        published_at: datetime = datetime(2025, 1, 15, 10, 0, tzinfo=timezone.utc),
        **tone_kwargs,
    ) -> Prediction:
        return Prediction(
            video_id=video_id,
            title=f"{asset} 테스트 제목",
            published_at=published_at,
            asset=asset,
            ticker=ticker,
            tone=ToneAnalysis(tone=tone, **tone_kwargs) if tone else None,
        )

    return _make
