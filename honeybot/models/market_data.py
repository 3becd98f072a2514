"""Market data models — candles, daily closes, and the resolved price window."""

from __future__ import annotations

from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel

MarketDirection = Literal["up", "down", "flat"]


def direction_from_change(change_percent: float) -> MarketDirection:
    """up for a positive move, down for a negative one, flat only at exactly 0."""
    if change_percent > 0:
        return "up"
    if change_percent < 0:
        return "down"
    return "flat"


class Candle(BaseModel):
    """Single 1h exchange kline — only the fields the resolver uses."""

    symbol: str
    open_time: datetime
    close: float


class DailyClose(BaseModel):
    """Payload of one daily-bar lookup (the out-of-process equity source)."""

    symbol: str
    requested_date: date
    trading_date: date
    close_price: float
    previous_close: float
    direction: MarketDirection


class PriceWindow(BaseModel):
    """Prices at publish and after the resolution window for one asset."""

    ticker: str
    price_at_publish: float
    price_after_window: float
    change_percent: float
    direction: MarketDirection
    trading_date: date | None = None
    source: Literal["binance", "daily_bars"]
