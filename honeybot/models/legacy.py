"""Legacy ledger adapter — schema v1 rows → canonical v2 models.

Older ledger rows encode tone in one of several ad-hoc ways:

  * keyword counts: ``positiveScore``/``negativeScore`` (or the earlier
    ``bullishScore``/``bearishScore``)
  * a bare ``sentiment`` label (``bullish``/``bearish``/``neutral``)
  * a model block (``gpt4oAnalysis``/``llmAnalysis``/``analysis.toneAnalysis``)
    carrying a ``tone`` label

Everything is converted here, once, at ingestion. Code downstream of the
ledger only ever sees ``ToneAnalysis``.
"""

from __future__ import annotations

from typing import Any

from honeybot.models.classification import UNKNOWN_TICKER, ToneAnalysis
from honeybot.models.prediction import (
    SCHEMA_VERSION,
    Prediction,
    ResolvedPrediction,
    UnresolvedPrediction,
)
from honeybot.registry import lookup_asset

_SCORE_PAIRS = (
    ("positiveScore", "negativeScore"),
    ("bullishScore", "bearishScore"),
)
_MODEL_BLOCKS = ("gpt4oAnalysis", "llmAnalysis")


def legacy_tone(raw: dict[str, Any]) -> ToneAnalysis | None:
    """Extract a canonical tone from a v1 row, or None when it has none.

    A model-provided label wins over keyword counts. For counts, strict
    inequality decides the direction; an exact tie is a neutral tone (which
    the resolver records as ``neutral_tone``).
    """
    for block_name in _MODEL_BLOCKS:
        block = raw.get(block_name)
        if isinstance(block, dict) and block.get("tone"):
            return ToneAnalysis(
                tone=block["tone"],
                keywords=block.get("keywords") or [],
                reasoning=block.get("reasoning") or "",
                confidence=block.get("confidence"),
                source="llm",
            )

    analysis = raw.get("analysis")
    if isinstance(analysis, dict):
        tone_block = analysis.get("toneAnalysis")
        if isinstance(tone_block, dict) and tone_block.get("tone"):
            return ToneAnalysis(
                tone=tone_block["tone"],
                keywords=tone_block.get("keywords") or [],
                reasoning=tone_block.get("reasoning") or "",
                confidence=tone_block.get("confidence"),
                source="llm",
            )

    for pos_key, neg_key in _SCORE_PAIRS:
        pos = raw.get(pos_key)
        neg = raw.get(neg_key)
        if pos is None or neg is None:
            continue
        pos, neg = int(pos), int(neg)
        if pos > neg:
            tone, reasoning = "positive", f"v2 점수: 긍정 {pos} > 부정 {neg}"
        elif neg > pos:
            tone, reasoning = "negative", f"v2 점수: 부정 {neg} > 긍정 {pos}"
        else:
            tone, reasoning = "neutral", f"v2 점수 동점: {pos}:{neg}"
        return ToneAnalysis(
            tone=tone,
            reasoning=reasoning,
            positive_score=pos,
            negative_score=neg,
            confidence=0.5,
            source="legacy_scores",
        )

    label = raw.get("sentiment")
    if label:
        return ToneAnalysis(tone=label, source="legacy_label")

    return None


def _ticker_for(asset: str, raw: dict[str, Any]) -> str:
    if raw.get("ticker"):
        return str(raw["ticker"])
    definition = lookup_asset(asset)
    return definition.symbol if definition else UNKNOWN_TICKER


def _common(raw: dict[str, Any]) -> dict[str, Any]:
    asset = raw.get("asset") or ""
    if not asset:
        detected = (raw.get("analysis") or {}).get("detectedAssets") or []
        asset = detected[0].get("asset", "") if detected else ""
    return {
        "video_id": raw.get("videoId") or raw.get("id") or "",
        "title": raw.get("title") or "",
        "thumbnail": raw.get("thumbnail") or "",
        "published_at": raw["publishedAt"],
        "asset": asset,
        "ticker": _ticker_for(asset, raw),
        "method": "legacy",
        "tone": legacy_tone(raw),
    }


def adapt_unresolved(raw: dict[str, Any]) -> UnresolvedPrediction:
    """Adapt a v1 ``unanalyzed.json`` row."""
    return UnresolvedPrediction(
        **_common(raw),
        reason=raw.get("reason") or "no_market_data",
        detail=raw.get("detail") or "",
    )


def adapt_resolved(raw: dict[str, Any]) -> Prediction:
    """Adapt a v1 ``analyzed.json`` row.

    Rows recorded against a flat close cannot carry ``is_honey`` under the
    current rules and come back as ``flat_market`` unresolved records.
    """
    fields = _common(raw)
    market = raw.get("marketData") or {}
    judgment = raw.get("judgment") or {}

    # Oldest rows stored the prices inline
    direction = market.get("direction") or raw.get("actualDirection")
    change = market.get("priceChange", raw.get("priceChange"))
    price_at = market.get("previousClose", raw.get("priceAtPublish"))
    price_after = market.get("closePrice", raw.get("priceAfter24h"))

    tone = fields["tone"]
    if tone is None or tone.predicted_direction is None:
        return UnresolvedPrediction(
            **fields,
            reason="no_tone" if tone is None else "neutral_tone",
            detail="adapted from legacy analyzed row",
        )
    if direction not in ("up", "down"):
        return UnresolvedPrediction(
            **fields,
            reason="flat_market" if direction == "flat" else "no_market_data",
            detail="adapted from legacy analyzed row",
        )

    actual = "bullish" if direction == "up" else "bearish"
    predicted = tone.predicted_direction
    return ResolvedPrediction(
        **fields,
        price_at_publish=float(price_at or 0.0),
        price_after_window=float(price_after or 0.0),
        price_change=float(change or 0.0),
        market_direction=direction,
        actual_direction=actual,
        is_honey=predicted != actual,
        trading_date=market.get("tradingDate"),
        explanation=judgment.get("reasoning") or "",
    )


def load_record(raw: dict[str, Any], *, resolved: bool) -> Prediction:
    """Validate a ledger row, adapting it first when it predates schema v2."""
    if int(raw.get("schemaVersion", 1)) >= SCHEMA_VERSION:
        model = ResolvedPrediction if resolved else UnresolvedPrediction
        return model.model_validate(raw)
    return adapt_resolved(raw) if resolved else adapt_unresolved(raw)
