"""End-to-end pipeline run with faked YouTube and market data."""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from honeybot.config import ConfigurationError, settings
from honeybot.engine.market_resolver import MarketResolver
from honeybot.engine.pattern_classifier import PatternClassifier
from honeybot.engine.prediction_resolver import PredictionResolver
from honeybot.models.market_data import PriceWindow
from honeybot.models.video import Video
from honeybot.services.ledger import PredictionLedger, read_stats
from honeybot.services.pipeline_service import PipelineService

NOW = datetime(2025, 1, 20, 12, 0, tzinfo=timezone.utc)


def _window(asset, published_at_ms, window_hours=24):
    moves = {"Bitcoin": (100.0, 90.0), "KOSPI": (2500.0, 2550.0), "Nvidia": (130.0, 130.0)}
    if asset.key not in moves:
        return None
    before, after = moves[asset.key]
    change = (after - before) / before * 100
    direction = "up" if change > 0 else "down" if change < 0 else "flat"
    return PriceWindow(
        ticker=asset.symbol, price_at_publish=before, price_after_window=after,
        change_percent=change, direction=direction,
        trading_date=date(2025, 1, 16), source="binance",
    )


VIDEOS = [
    # bullish call, market falls → honey
    Video(id="v1", title="비트코인 지금 사야 합니다", published_at=NOW - timedelta(days=5)),
    # bullish call, market rises → not honey
    Video(id="v2", title="코스피 반등 온다", published_at=NOW - timedelta(days=4)),
    # flat close → unresolved flat_market
    Video(id="v3", title="엔비디아 급등", published_at=NOW - timedelta(days=4)),
    # tie → no prediction at all
    Video(id="v4", title="테슬라 반등 후 폭락", published_at=NOW - timedelta(days=3)),
    # too recent → pending
    Video(id="v5", title="이더리움 폭락 경고", published_at=NOW - timedelta(hours=2)),
    # lookup fails → no_market_data
    Video(id="v6", title="삼성전자 매수 기회", published_at=NOW - timedelta(days=2)),
]


def _service(tmp_path, videos=VIDEOS) -> tuple[PipelineService, MagicMock]:
    collector = MagicMock()
    collector.fetch_recent_videos = AsyncMock(return_value=list(videos))
    market = MagicMock(spec=MarketResolver)
    market.resolve_price_window = AsyncMock(side_effect=_window)
    service = PipelineService(
        collector=collector,
        classifier=PatternClassifier(),
        resolver=PredictionResolver(market, window_hours=24),
        ledger=PredictionLedger(tmp_path / "ledger"),
    )
    return service, market


@pytest.fixture()
def api_key():
    with patch.object(settings, "YOUTUBE_API_KEY", "test-key"), \
         patch.object(settings, "CLASSIFIER", "pattern"):
        yield


@pytest.mark.asyncio
async def test_full_run(tmp_path, api_key) -> None:
    service, market = _service(tmp_path)
    summary = await service.run(30, now=NOW)

    assert summary.videos == 6
    assert summary.predictions == 5
    assert summary.resolved == 2
    assert summary.pending == 1
    assert summary.failed == 2
    assert summary.reasons == {"flat_market": 1, "no_market_data": 1}
    assert summary.honey_index == pytest.approx(50.0)
    # Keys touched this run are not retried by the recovery pass
    assert summary.processed == 0
    assert market.resolve_price_window.await_count == 4

    stats = read_stats()
    assert stats["stats"]["overallIndex"] == pytest.approx(50.0)
    assert stats["summary"]["resolved"] == 2
    assert [p["videoId"] for p in stats["recentPredictions"]] == ["v2", "v1"]

    reloaded = PredictionLedger(tmp_path / "ledger").load()
    assert reloaded.count_resolved() == 2
    assert reloaded.count_unresolved() == 3


@pytest.mark.asyncio
async def test_second_run_skips_resolved(tmp_path, api_key) -> None:
    service, _ = _service(tmp_path)
    await service.run(30, now=NOW)

    again, market = _service(tmp_path)
    summary = await again.run(30, now=NOW)

    assert summary.skipped_existing == 2
    assert summary.resolved == 0
    # Flat and failed lookups hit the market again; pending ones do not
    assert market.resolve_price_window.await_count == 2
    assert PredictionLedger(tmp_path / "ledger").load().count_resolved() == 2


@pytest.mark.asyncio
async def test_recovery_picks_up_older_records(tmp_path, api_key) -> None:
    service, _ = _service(tmp_path)
    await service.run(30, now=NOW)

    # Two days later the Ethereum window has elapsed and data exists
    later = NOW + timedelta(days=2)
    recovering, market = _service(tmp_path, videos=[])

    def _eth(asset, published_at_ms, window_hours=24):
        if asset.key == "Ethereum":
            return PriceWindow(
                ticker="ETHUSDT", price_at_publish=3000.0, price_after_window=3300.0,
                change_percent=10.0, direction="up", source="binance",
            )
        return None

    market.resolve_price_window = AsyncMock(side_effect=_eth)
    summary = await recovering.run(30, now=later)

    assert summary.recovered == 1
    assert summary.honey_index == pytest.approx(200 / 3)
    eth = [p for p in recovering.ledger.resolved() if p.asset == "Ethereum"]
    assert eth[0].is_honey is True
    assert eth[0].recovered is True


@pytest.mark.asyncio
async def test_missing_api_key_aborts_before_fetch(tmp_path) -> None:
    service, _ = _service(tmp_path)
    with patch.object(settings, "YOUTUBE_API_KEY", ""):
        with pytest.raises(ConfigurationError, match="YOUTUBE_API_KEY"):
            await service.run(30, now=NOW)
    service.collector.fetch_recent_videos.assert_not_awaited()


@pytest.mark.asyncio
async def test_llm_with_openai_requires_key(tmp_path) -> None:
    service, _ = _service(tmp_path)
    with patch.object(settings, "YOUTUBE_API_KEY", "k"), \
         patch.object(settings, "CLASSIFIER", "llm"), \
         patch.object(settings, "LLM_PROVIDER", "openai"), \
         patch.object(settings, "OPENAI_API_KEY", ""):
        with pytest.raises(ConfigurationError, match="OPENAI_API_KEY"):
            await service.run(30, now=NOW)
