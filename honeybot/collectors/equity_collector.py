"""Equity/index collector — daily closes via an out-of-process yfinance call.

Each lookup spawns ``python -m honeybot.collectors.daily_bars`` with a hard
timeout. yfinance can hang on Yahoo throttling; isolating it in a child
process means a stuck lookup costs at most EQUITY_LOOKUP_TIMEOUT seconds and
is treated as a failed resolution, never a crash.
"""

from __future__ import annotations

import asyncio
import json
import subprocess
from datetime import date

from pydantic import ValidationError

from honeybot.config import settings
from honeybot.models.market_data import DailyClose
from honeybot.utils.logger import logger


class EquityCollector:
    """Runs the daily-bar lookup script and parses its JSON stdout."""

    MODULE = "honeybot.collectors.daily_bars"

    def __init__(
        self,
        *,
        python: str | None = None,
        timeout: float | None = None,
    ) -> None:
        self.python = python or settings.EQUITY_PYTHON
        self.timeout = settings.EQUITY_LOOKUP_TIMEOUT if timeout is None else timeout

    def _command(self, ticker: str, day: date) -> list[str]:
        return [self.python, "-m", self.MODULE, "close", ticker, day.isoformat()]

    def _run(self, ticker: str, day: date) -> str | None:
        """Blocking subprocess call; returns stdout or None on failure."""
        try:
            result = subprocess.run(
                self._command(ticker, day),
                capture_output=True,
                text=True,
                timeout=self.timeout,
                cwd=str(settings.BASE_DIR),
            )
        except FileNotFoundError:
            logger.warning("[Equity] interpreter not found: %s", self.python)
            return None
        except subprocess.TimeoutExpired:
            logger.warning(
                "[Equity] lookup timed out after %.0fs: %s @ %s",
                self.timeout, ticker, day,
            )
            return None

        if result.returncode != 0:
            logger.warning(
                "[Equity] lookup exited %d for %s: %s",
                result.returncode, ticker, (result.stderr or "")[-300:],
            )
        return result.stdout

    @staticmethod
    def parse_output(stdout: str | None, ticker: str, day: date) -> DailyClose | None:
        """Parse the lookup's JSON line; an ``error`` field means no data."""
        if not stdout or not stdout.strip():
            return None
        # Only the last line is the payload; libraries may print warnings first
        line = stdout.strip().splitlines()[-1]
        try:
            data = json.loads(line)
        except json.JSONDecodeError:
            logger.warning("[Equity] non-JSON output for %s: %s", ticker, line[:200])
            return None
        if not isinstance(data, dict):
            return None
        if data.get("error"):
            logger.info("[Equity] %s @ %s: %s", ticker, day, data["error"])
            return None
        try:
            return DailyClose(
                symbol=data.get("symbol") or ticker,
                requested_date=data.get("date") or day,
                trading_date=data.get("tradingDay") or data.get("date"),
                close_price=data["closePrice"],
                previous_close=data["previousClose"],
                direction=data["direction"],
            )
        except (KeyError, ValidationError) as e:
            logger.warning("[Equity] malformed payload for %s: %s", ticker, e)
            return None

    async def get_daily_close(self, ticker: str, day: date) -> DailyClose | None:
        stdout = await asyncio.to_thread(self._run, ticker, day)
        return self.parse_output(stdout, ticker, day)
