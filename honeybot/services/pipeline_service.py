"""Pipeline service — one collection run, end to end.

Steps:
    1. Check required credentials (fatal if missing)
    2. Fetch the channel's recent uploads
    3. Classify every title (pattern or cached LLM strategy)
    4. Expand into one Prediction per detected asset (neutral tone → none)
    5. Resolve each prediction not already resolved in the ledger
    6. Recovery pass over older no_market_data records
    7. Aggregate the resolved set, flush the ledger, write the stats artifact

Nothing after step 2 raises for an individual title: failures surface as
counters on the returned RunSummary.
"""

from __future__ import annotations

import time
from datetime import datetime
from typing import Any

from honeybot.collectors.youtube_collector import YouTubeCollector
from honeybot.config import settings
from honeybot.engine.aggregator import aggregate, recent_predictions
from honeybot.engine.classifier import TitleClassifier, get_classifier
from honeybot.engine.prediction_resolver import (
    PredictionResolver,
    predictions_from_classification,
)
from honeybot.engine.recovery import RecoveryPass
from honeybot.models.prediction import ResolvedPrediction
from honeybot.models.stats import HoneyStats, RunSummary
from honeybot.models.video import Video
from honeybot.services.ledger import PredictionLedger, write_stats
from honeybot.utils.logger import logger
from honeybot.utils.time_utils import utc_now


def build_stats_payload(
    ledger: PredictionLedger,
    stats: HoneyStats,
    summary: RunSummary | None = None,
    *,
    limit: int | None = None,
    generated_at: datetime | None = None,
) -> dict[str, Any]:
    """The aggregate artifact consumed by the read API."""
    limit = settings.RECENT_PREDICTIONS_LIMIT if limit is None else limit
    recent = recent_predictions(ledger.resolved(), limit)
    return {
        "generatedAt": (generated_at or utc_now()).isoformat(),
        "stats": stats.model_dump(mode="json", by_alias=True),
        "summary": summary.model_dump(mode="json", by_alias=True) if summary else None,
        "unresolvedCount": ledger.count_unresolved(),
        "recentPredictions": [
            p.model_dump(mode="json", by_alias=True) for p in recent
        ],
    }


class PipelineService:
    """Orchestrates a single sequential collection run."""

    def __init__(
        self,
        *,
        collector: YouTubeCollector | None = None,
        classifier: TitleClassifier | None = None,
        resolver: PredictionResolver | None = None,
        ledger: PredictionLedger | None = None,
    ) -> None:
        self.collector = collector or YouTubeCollector()
        self.classifier = classifier or get_classifier(settings.CLASSIFIER)
        self.resolver = resolver or PredictionResolver()
        self.ledger = ledger or PredictionLedger()
        self.recovery = RecoveryPass(self.resolver)

    async def run(
        self,
        days: int | None = None,
        *,
        now: datetime | None = None,
        recover: bool = True,
    ) -> RunSummary:
        settings.require(*settings.required_for_run())

        start = time.time()
        now = now or utc_now()
        summary = RunSummary(started_at=now)
        logger.info("=" * 60)
        logger.info("[Pipeline] collection run (%s classifier)", self.classifier.method)
        logger.info("=" * 60)

        self.ledger.load()
        videos = await self.collector.fetch_recent_videos(days, now=now)
        summary.videos = len(videos)

        touched = await self.process_videos(videos, summary, now=now)

        if recover:
            await self.recovery.run(
                self.ledger, now=now, summary=summary, exclude=touched,
            )

        stats = self.finish(summary)
        logger.info(
            "[Pipeline] done in %.1fs — %d videos, %d predictions, %d resolved, "
            "%d pending, %d failed, %d recovered, honey index %.1f%%",
            time.time() - start, summary.videos, summary.predictions,
            summary.resolved, summary.pending, summary.failed,
            summary.recovered, stats.overall_index,
        )
        return summary

    async def process_videos(
        self, videos: list[Video], summary: RunSummary, *, now: datetime,
    ) -> set[tuple[str, str]]:
        """Classify and resolve each video; returns the keys attempted this run."""
        touched: set[tuple[str, str]] = set()
        for video in videos:
            classification = await self.classifier.classify(
                video.title, video_id=video.id,
            )
            predictions = predictions_from_classification(video, classification)
            if not predictions:
                logger.debug("[Pipeline] no actionable call: %s", video.title[:40])
                continue

            for prediction in predictions:
                summary.predictions += 1
                if self.ledger.has_resolved(prediction.key, prediction.published_at):
                    summary.skipped_existing += 1
                    continue

                touched.add(prediction.key)
                resolution = await self.resolver.resolve(prediction, now=now)
                self.ledger.record(resolution)

                if isinstance(resolution, ResolvedPrediction):
                    summary.resolved += 1
                elif resolution.pending:
                    summary.pending += 1
                else:
                    summary.failed += 1
                    summary.count_reason(resolution.reason)
        return touched

    def finish(self, summary: RunSummary) -> HoneyStats:
        """Aggregate, then write ledger and stats once at the end of the run."""
        stats = aggregate(self.ledger.resolved())
        summary.honey_index = stats.overall_index
        summary.finished_at = utc_now()

        self.ledger.flush()
        write_stats(build_stats_payload(self.ledger, stats, summary))
        return stats

    async def recover_only(self, *, now: datetime | None = None) -> RunSummary:
        """Recovery pass without collecting new videos."""
        summary = RunSummary()
        self.ledger.load()
        await self.recovery.run(self.ledger, now=now, summary=summary)
        self.finish(summary)
        return summary
