"""Binance collector — 1h klines for crypto price-at-time lookups.

Every request is followed by a short fixed pause (CRYPTO_REQUEST_DELAY) so a
batch run stays well inside Binance's weight limits. Failures are logged and
returned as None; nothing here raises to the caller.
"""

from __future__ import annotations

import asyncio

import httpx

from honeybot.config import settings
from honeybot.models.market_data import Candle
from honeybot.utils.logger import logger
from honeybot.utils.time_utils import from_ms


class BinanceCollector:
    """Fetches the first 1h candle at-or-after a timestamp."""

    KLINES_PATH = "/api/v3/klines"

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        *,
        base_url: str | None = None,
        delay: float | None = None,
    ) -> None:
        self._client = client
        self.base_url = (base_url or settings.BINANCE_URL).rstrip("/")
        self.delay = settings.CRYPTO_REQUEST_DELAY if delay is None else delay

    async def get_candle(self, symbol: str, timestamp_ms: int) -> Candle | None:
        """Return the smallest 1h candle starting at or after *timestamp_ms*."""
        params = {
            "symbol": symbol,
            "interval": "1h",
            "startTime": str(timestamp_ms),
            "limit": "1",
        }
        try:
            if self._client is not None:
                resp = await self._client.get(
                    f"{self.base_url}{self.KLINES_PATH}", params=params,
                )
            else:
                async with httpx.AsyncClient(timeout=10.0) as client:
                    resp = await client.get(
                        f"{self.base_url}{self.KLINES_PATH}", params=params,
                    )
            resp.raise_for_status()
            rows = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("[Binance] %s @ %d failed: %s", symbol, timestamp_ms, e)
            return None
        finally:
            if self.delay > 0:
                await asyncio.sleep(self.delay)

        if not isinstance(rows, list) or not rows:
            logger.info("[Binance] no candle for %s @ %d", symbol, timestamp_ms)
            return None

        row = rows[0]
        try:
            return Candle(symbol=symbol, open_time=from_ms(int(row[0])), close=float(row[4]))
        except (IndexError, TypeError, ValueError) as e:
            logger.warning("[Binance] malformed kline for %s: %s", symbol, e)
            return None

    async def get_close_at(self, symbol: str, timestamp_ms: int) -> float | None:
        candle = await self.get_candle(symbol, timestamp_ms)
        return candle.close if candle else None
