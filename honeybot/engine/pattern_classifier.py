"""Pattern classifier — deterministic keyword matching on Korean titles.

No network, no state: the same title always yields the same result.
"""

from __future__ import annotations

import re
from typing import Mapping

from honeybot.engine.classifier import TitleClassifier
from honeybot.models.classification import (
    ClassificationResult,
    DetectedAsset,
    ToneAnalysis,
)
from honeybot.registry import (
    ASSET_REGISTRY,
    BEARISH_PATTERNS,
    BULLISH_PATTERNS,
    AssetDefinition,
)
from honeybot.utils.time_utils import utc_now


def _matches(patterns: tuple[re.Pattern[str], ...], title: str) -> list[str]:
    """Matched spans, one per pattern that hits (a pattern counts once)."""
    found: list[str] = []
    for p in patterns:
        m = p.search(title)
        if m:
            found.append(m.group(0))
    return found


class PatternClassifier(TitleClassifier):
    """Registry patterns for assets, two disjoint lexicons for tone."""

    method = "pattern"

    def __init__(
        self,
        registry: Mapping[str, AssetDefinition] = ASSET_REGISTRY,
        bullish: tuple[re.Pattern[str], ...] = BULLISH_PATTERNS,
        bearish: tuple[re.Pattern[str], ...] = BEARISH_PATTERNS,
    ) -> None:
        self.registry = registry
        self.bullish = bullish
        self.bearish = bearish

    def detect_assets(self, title: str) -> list[DetectedAsset]:
        assets: list[DetectedAsset] = []
        for definition in self.registry.values():
            span = definition.match(title)
            if span is None:
                continue
            assets.append(
                DetectedAsset(
                    asset=definition.key,
                    ticker=definition.symbol,
                    matched_text=span,
                    confidence=1.0,
                    reasoning=f"'{span}' 패턴 일치",
                )
            )
        return assets

    def score_tone(self, title: str) -> ToneAnalysis:
        """bullish-count vs bearish-count; ties and zero matches are neutral."""
        bull = _matches(self.bullish, title)
        bear = _matches(self.bearish, title)

        if len(bull) > len(bear):
            tone = "positive"
        elif len(bear) > len(bull):
            tone = "negative"
        else:
            tone = "neutral"

        return ToneAnalysis(
            tone=tone,
            keywords=bull + bear,
            reasoning=f"상승 키워드 {len(bull)}개, 하락 키워드 {len(bear)}개",
            positive_score=len(bull),
            negative_score=len(bear),
            source="pattern",
        )

    def analyze(self, title: str) -> ClassificationResult:
        """Synchronous classification — the whole strategy is pure CPU."""
        return ClassificationResult(
            method="pattern",
            model="regex-v2",
            timestamp=utc_now(),
            detected_assets=self.detect_assets(title),
            tone=self.score_tone(title),
        )

    async def classify(
        self, title: str, *, video_id: str | None = None,
    ) -> ClassificationResult:
        return self.analyze(title)
