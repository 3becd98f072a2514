"""Market resolver — price at publish vs. price after the resolution window.

Dispatches on ``AssetDefinition.asset_class``:

  crypto       → Binance 1h klines at publish and at publish + window
  stock/index  → daily bars: the close of the trading day containing the
                 publish date vs. the previous session's close

Crypto trades continuously, so an hour-granular window is meaningful.
Exchange-listed assets only move between sessions, so the window collapses
to "next available close vs. the close before it".
"""

from __future__ import annotations

from honeybot.collectors.binance_collector import BinanceCollector
from honeybot.collectors.equity_collector import EquityCollector
from honeybot.models.market_data import PriceWindow, direction_from_change
from honeybot.registry import AssetDefinition
from honeybot.utils.logger import logger
from honeybot.utils.time_utils import HOUR_MS, from_ms, local_date


class MarketResolver:
    """Resolves a price window for any registry asset; None when unavailable."""

    def __init__(
        self,
        binance: BinanceCollector | None = None,
        equity: EquityCollector | None = None,
    ) -> None:
        self.binance = binance or BinanceCollector()
        self.equity = equity or EquityCollector()

    async def resolve_price_window(
        self,
        asset: AssetDefinition,
        published_at_ms: int,
        window_hours: int = 24,
    ) -> PriceWindow | None:
        if asset.asset_class == "crypto":
            return await self._resolve_crypto(asset, published_at_ms, window_hours)
        if asset.asset_class in ("stock", "index"):
            return await self._resolve_daily(asset, published_at_ms)
        logger.warning("[Market] unsupported asset class %s", asset.asset_class)
        return None

    async def _resolve_crypto(
        self, asset: AssetDefinition, published_at_ms: int, window_hours: int,
    ) -> PriceWindow | None:
        after_ms = published_at_ms + window_hours * HOUR_MS

        price_at = await self.binance.get_close_at(asset.symbol, published_at_ms)
        if price_at is None:
            return None
        price_after = await self.binance.get_close_at(asset.symbol, after_ms)
        if price_after is None or price_at == 0:
            return None

        change = (price_after - price_at) / price_at * 100
        return PriceWindow(
            ticker=asset.symbol,
            price_at_publish=price_at,
            price_after_window=price_after,
            change_percent=change,
            direction=direction_from_change(change),
            trading_date=from_ms(after_ms).date(),
            source="binance",
        )

    async def _resolve_daily(
        self, asset: AssetDefinition, published_at_ms: int,
    ) -> PriceWindow | None:
        day = local_date(from_ms(published_at_ms), asset.timezone)
        bar = await self.equity.get_daily_close(asset.symbol, day)
        if bar is None or bar.previous_close == 0:
            return None

        change = (bar.close_price - bar.previous_close) / bar.previous_close * 100
        return PriceWindow(
            ticker=asset.symbol,
            price_at_publish=bar.previous_close,
            price_after_window=bar.close_price,
            change_percent=change,
            direction=direction_from_change(change),
            trading_date=bar.trading_date,
            source="daily_bars",
        )
