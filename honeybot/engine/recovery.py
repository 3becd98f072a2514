"""Recovery pass — retry ``no_market_data`` records against fresh market data.

Each record is re-run through the full resolver using the tone already
attached to it (canonical or adapted from a legacy score pair). Recovered
records move into the resolved set; the rest stay unresolved with their
possibly-updated reason (``no_tone``, ``neutral_tone``, ``flat_market``).

Re-running over the same ledger is a no-op for everything already moved
out, and the ledger refuses duplicate resolved keys.
"""

from __future__ import annotations

from datetime import datetime

from honeybot.engine.prediction_resolver import PredictionResolver
from honeybot.models.prediction import ResolvedPrediction
from honeybot.models.stats import RunSummary
from honeybot.services.ledger import PredictionLedger
from honeybot.utils.logger import logger
from honeybot.utils.time_utils import utc_now


class RecoveryPass:
    """Promotes previously-stuck predictions once their data is available."""

    RETRY_REASON = "no_market_data"

    def __init__(self, resolver: PredictionResolver | None = None) -> None:
        self.resolver = resolver or PredictionResolver()

    async def run(
        self,
        ledger: PredictionLedger,
        *,
        now: datetime | None = None,
        summary: RunSummary | None = None,
        exclude: set[tuple[str, str]] | None = None,
    ) -> RunSummary:
        """Retry every no_market_data record except keys in *exclude*."""
        now = now or utc_now()
        summary = summary or RunSummary()
        exclude = exclude or set()

        candidates = [
            item for item in ledger.unresolved(self.RETRY_REASON)
            if item.key not in exclude
        ]
        logger.info("[Recovery] %d no_market_data records to retry", len(candidates))

        for item in candidates:
            if ledger.has_resolved(item.key, item.published_at):
                continue

            if not self.resolver.window_elapsed(item, now):
                summary.pending += 1
                continue

            summary.processed += 1
            resolution = await self.resolver.resolve(item, now=now, recovered=True)

            if isinstance(resolution, ResolvedPrediction):
                if ledger.add_resolved(resolution):
                    summary.recovered += 1
                    logger.info(
                        "[Recovery] ✅ %s %s → %s",
                        item.video_id, item.asset,
                        "honey" if resolution.is_honey else "as predicted",
                    )
                continue

            ledger.set_unresolved(resolution)
            summary.failed += 1
            summary.count_reason(resolution.reason)
            logger.info(
                "[Recovery] ❌ %s %s still unresolved (%s)",
                item.video_id, item.asset, resolution.reason,
            )

        logger.info(
            "[Recovery] processed=%d recovered=%d failed=%d",
            summary.processed, summary.recovered, summary.failed,
        )
        return summary
