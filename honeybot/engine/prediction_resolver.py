"""Prediction resolver — classification + market data → verdict.

Resolution order:
  0. asset missing from the registry          → unresolved / unknown_asset
  1. window not elapsed yet                   → unresolved / no_market_data (pending)
  2. market lookup returned nothing           → unresolved / no_market_data
  3. no tone attached                         → unresolved / no_tone
  4. tone is neutral (e.g. legacy score tie)  → unresolved / neutral_tone
  5. market closed exactly flat               → unresolved / flat_market
  6. otherwise                                → resolved, is_honey = predicted != actual
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Mapping

from honeybot.config import settings
from honeybot.engine.market_resolver import MarketResolver
from honeybot.models.classification import ClassificationResult
from honeybot.models.market_data import PriceWindow
from honeybot.models.prediction import (
    Prediction,
    ResolvedPrediction,
    UnresolvedPrediction,
    UnresolvedReason,
)
from honeybot.models.video import Video
from honeybot.registry import ASSET_REGISTRY, AssetDefinition, lookup_asset
from honeybot.utils.logger import logger
from honeybot.utils.time_utils import to_ms, utc_now

Resolution = ResolvedPrediction | UnresolvedPrediction


def predictions_from_classification(
    video: Video,
    classification: ClassificationResult,
    *,
    unknown_asset_policy: str | None = None,
    registry: Mapping[str, AssetDefinition] = ASSET_REGISTRY,
) -> list[Prediction]:
    """One Prediction per detected asset; none at all for a neutral tone."""
    if not classification.is_actionable:
        return []

    policy = unknown_asset_policy or settings.UNKNOWN_ASSET_POLICY
    predictions: list[Prediction] = []
    for detected in classification.detected_assets:
        if lookup_asset(detected.asset, registry) is None and policy == "drop":
            logger.debug("[Resolver] dropping unmapped asset %s", detected.asset)
            continue
        predictions.append(
            Prediction(
                video_id=video.id,
                title=video.title,
                thumbnail=video.thumbnail,
                published_at=video.published_at,
                asset=detected.asset,
                ticker=detected.ticker,
                method=classification.method,
                tone=classification.tone,
            )
        )
    return predictions


def _explain(prediction: Prediction, window: PriceWindow, is_honey: bool) -> str:
    realized = "상승" if window.direction == "up" else "하락"
    verdict = "역지표 적중!" if is_honey else "예측대로"
    tone_label = prediction.tone.label if prediction.tone else "중립"
    return (
        f"{tone_label} 전망 → 실제 {realized} "
        f"({window.change_percent:+.2f}%) → {verdict}"
    )


class PredictionResolver:
    """Turns a Prediction into a ResolvedPrediction or an UnresolvedPrediction."""

    def __init__(
        self,
        market: MarketResolver | None = None,
        *,
        window_hours: int | None = None,
        registry: Mapping[str, AssetDefinition] = ASSET_REGISTRY,
    ) -> None:
        self.market = market or MarketResolver()
        self.window_hours = (
            settings.RESOLUTION_WINDOW_HOURS if window_hours is None else window_hours
        )
        self.registry = registry

    @staticmethod
    def unresolved(
        prediction: Prediction,
        reason: UnresolvedReason,
        *,
        pending: bool = False,
        detail: str = "",
    ) -> UnresolvedPrediction:
        return UnresolvedPrediction(
            **prediction.base_fields(), reason=reason, pending=pending, detail=detail,
        )

    def window_elapsed(self, prediction: Prediction, now: datetime) -> bool:
        return now >= prediction.published_at + timedelta(hours=self.window_hours)

    async def resolve(
        self,
        prediction: Prediction,
        registry: Mapping[str, AssetDefinition] | None = None,
        now: datetime | None = None,
        *,
        recovered: bool = False,
    ) -> Resolution:
        now = now or utc_now()
        definition = lookup_asset(prediction.asset, registry or self.registry)
        if definition is None:
            return self.unresolved(
                prediction, "unknown_asset",
                detail=f"no registry entry for {prediction.asset}",
            )

        if not self.window_elapsed(prediction, now):
            return self.unresolved(
                prediction, "no_market_data", pending=True,
                detail=f"{self.window_hours}h window not elapsed",
            )

        window = await self.market.resolve_price_window(
            definition, to_ms(prediction.published_at), self.window_hours,
        )
        if window is None:
            return self.unresolved(
                prediction, "no_market_data",
                detail=f"lookup failed for {definition.symbol}",
            )

        return self.judge(prediction, window, recovered=recovered)

    def judge(
        self,
        prediction: Prediction,
        window: PriceWindow,
        *,
        recovered: bool = False,
    ) -> Resolution:
        """Steps 3–6: decide the verdict from tone + an already-fetched window."""
        if prediction.tone is None:
            return self.unresolved(prediction, "no_tone")

        predicted = prediction.tone.predicted_direction
        if predicted is None:
            detail = ""
            if prediction.tone.positive_score is not None:
                detail = (
                    f"tie {prediction.tone.positive_score}:"
                    f"{prediction.tone.negative_score}"
                )
            return self.unresolved(prediction, "neutral_tone", detail=detail)

        if window.direction == "flat":
            return self.unresolved(
                prediction, "flat_market",
                detail=f"{window.ticker} unchanged on {window.trading_date}",
            )

        actual = "bullish" if window.direction == "up" else "bearish"
        is_honey = predicted != actual
        fields = prediction.base_fields()
        fields["ticker"] = window.ticker
        return ResolvedPrediction(
            **fields,
            price_at_publish=window.price_at_publish,
            price_after_window=window.price_after_window,
            price_change=round(window.change_percent, 4),
            market_direction=window.direction,
            actual_direction=actual,
            is_honey=is_honey,
            trading_date=window.trading_date,
            explanation=_explain(prediction, window, is_honey),
            recovered=recovered,
        )
