"""Daily-bar lookup — runs as its own process, prints one JSON object.

Usage:
    python -m honeybot.collectors.daily_bars close <TICKER> <YYYY-MM-DD>

Output on success:
    {"symbol", "date", "tradingDay", "closePrice", "previousClose",
     "change", "direction"}
Output on failure:
    {"error": "..."}

The trading day is the first session on or after the requested date, so a
weekend or holiday publish resolves against the next available close, and
the comparison is always against the session before it. A session that has
not closed yet is an error, so the caller records no market data and retries
on a later run.
"""

from __future__ import annotations

import json
import sys
from datetime import date, timedelta
from typing import Any

import pandas as pd
import yfinance as yf

from honeybot.models.market_data import direction_from_change

# Wide enough to cover long holiday runs (e.g. Korean Chuseok) on both sides
_LOOKBACK_DAYS = 14
_LOOKAHEAD_DAYS = 10


def _exchange_today(index: pd.Index) -> date:
    # yfinance indexes daily bars in the exchange's timezone
    return pd.Timestamp.now(tz=getattr(index, "tz", None)).date()


def lookup_close(
    ticker: str, requested: date, today: date | None = None,
) -> dict[str, Any]:
    """Close on the trading day containing *requested* vs. the previous close.

    A bar dated *today* (exchange-local) is still trading and its ``Close``
    is the live price, so it is reported as an error rather than a verdict.
    """
    start = requested - timedelta(days=_LOOKBACK_DAYS)
    end = requested + timedelta(days=_LOOKAHEAD_DAYS)

    df: pd.DataFrame = yf.Ticker(ticker).history(
        start=start.isoformat(), end=end.isoformat(), interval="1d",
        auto_adjust=False,
    )
    if df is None or df.empty or "Close" not in df.columns:
        return {"error": f"no data for {ticker}"}

    closes = df["Close"].dropna()
    days = [idx.date() if hasattr(idx, "date") else idx for idx in closes.index]

    target_pos = next((i for i, d in enumerate(days) if d >= requested), None)
    if target_pos is None:
        return {"error": f"no trading day on or after {requested} for {ticker}"}
    if target_pos == 0:
        return {"error": f"no previous close before {days[0]} for {ticker}"}
    if today is None:
        today = _exchange_today(closes.index)
    if days[target_pos] >= today:
        return {"error": f"session not closed: {days[target_pos]} for {ticker}"}

    close_price = float(closes.iloc[target_pos])
    previous_close = float(closes.iloc[target_pos - 1])
    if previous_close == 0:
        return {"error": f"previous close is zero for {ticker}"}

    raw_change = (close_price - previous_close) / previous_close * 100
    return {
        "symbol": ticker,
        "date": requested.isoformat(),
        "tradingDay": days[target_pos].isoformat(),
        "closePrice": close_price,
        "previousClose": previous_close,
        "change": round(raw_change, 2),
        "direction": direction_from_change(raw_change),
    }


def main(argv: list[str] | None = None) -> int:
    args = sys.argv[1:] if argv is None else argv
    if len(args) != 3 or args[0] != "close":
        print(json.dumps({"error": "usage: close <TICKER> <YYYY-MM-DD>"}))
        return 2

    _, ticker, raw_date = args
    try:
        requested = date.fromisoformat(raw_date)
    except ValueError:
        print(json.dumps({"error": f"bad date: {raw_date}"}))
        return 2

    try:
        payload = lookup_close(ticker, requested)
    except Exception as e:  # noqa: BLE001; the parent process only reads stdout
        payload = {"error": f"{type(e).__name__}: {e}"}

    print(json.dumps(payload, ensure_ascii=False))
    return 0


if __name__ == "__main__":
    sys.exit(main())
