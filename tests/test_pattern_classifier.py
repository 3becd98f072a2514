"""Tests for the keyword-pattern title classifier.

Run: python -m pytest tests/test_pattern_classifier.py -v -s
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

import pytest

from honeybot.engine.classifier import get_classifier
from honeybot.engine.pattern_classifier import PatternClassifier
from honeybot.engine.prediction_resolver import predictions_from_classification
from honeybot.models.video import Video

log = logging.getLogger(__name__)


def _video(title: str) -> Video:
    return Video(
        id="abc123", title=title, published_at="2025-01-15T10:00:00Z",
    )


class TestAssetDetection:
    def setup_method(self) -> None:
        self.classifier = PatternClassifier()

    def test_bitcoin_title(self) -> None:
        assets = self.classifier.detect_assets("비트코인 지금 사야 합니다")
        log.info("detected: %s", assets)
        assert [a.asset for a in assets] == ["Bitcoin"]
        assert assets[0].ticker == "BTCUSDT"
        assert assets[0].matched_text == "비트코인"
        assert assets[0].confidence == 1.0

    def test_multiple_assets(self) -> None:
        assets = self.classifier.detect_assets("삼성전자 엔비디아 같이 간다")
        keys = {a.asset for a in assets}
        assert {"Samsung", "Nvidia"} <= keys

    def test_case_insensitive_english(self) -> None:
        assets = self.classifier.detect_assets("NASDAQ 전망")
        assert [a.asset for a in assets] == ["NASDAQ"]

    def test_no_asset(self) -> None:
        assert self.classifier.detect_assets("오늘 점심 뭐 먹지") == []

    def test_reason_title_is_bitcoin_bullish(self) -> None:
        result = self.classifier.analyze("비트코인 지금 사야 하는 이유")
        assert [a.asset for a in result.detected_assets] == ["Bitcoin"]
        assert result.tone.predicted_direction == "bullish"


class TestToneScoring:
    def setup_method(self) -> None:
        self.classifier = PatternClassifier()

    def test_bullish(self) -> None:
        tone = self.classifier.score_tone("비트코인 지금 사야 합니다")
        assert tone.tone == "positive"
        assert tone.predicted_direction == "bullish"
        assert tone.positive_score == 1
        assert tone.negative_score == 0
        assert tone.source == "pattern"

    def test_bearish_counts_each_pattern(self) -> None:
        tone = self.classifier.score_tone("나스닥 위기, 폭락 온다")
        log.info("tone: %s", tone)
        assert tone.tone == "negative"
        assert tone.negative_score >= 2
        assert tone.positive_score == 0
        assert "위기" in tone.keywords and "폭락" in tone.keywords

    def test_tie_is_neutral(self) -> None:
        tone = self.classifier.score_tone("코스피 반등 후 폭락")
        assert tone.positive_score == tone.negative_score == 1
        assert tone.tone == "neutral"
        assert tone.predicted_direction is None

    def test_no_keywords_is_neutral(self) -> None:
        tone = self.classifier.score_tone("테슬라 이야기")
        assert tone.tone == "neutral"
        assert tone.positive_score == 0
        assert tone.negative_score == 0


class TestClassify:
    @pytest.mark.asyncio
    async def test_classify_matches_analyze(self) -> None:
        classifier = PatternClassifier()
        title = "비트코인 지금 사야 합니다"
        result = await classifier.classify(title, video_id="abc123")
        assert result.method == "pattern"
        assert result.model == "regex-v2"
        assert result.is_actionable
        again = classifier.analyze(title)
        assert again.detected_assets == result.detected_assets
        assert again.tone == result.tone

    def test_bullish_title_yields_one_prediction(self) -> None:
        result = PatternClassifier().analyze("비트코인 지금 사야 합니다")
        preds = predictions_from_classification(
            _video("비트코인 지금 사야 합니다"), result,
        )
        assert len(preds) == 1
        assert preds[0].asset == "Bitcoin"
        assert preds[0].predicted_direction == "bullish"
        assert preds[0].published_at == datetime(2025, 1, 15, 10, tzinfo=timezone.utc)

    def test_tie_yields_no_predictions(self) -> None:
        title = "코스피 반등 후 폭락"
        result = PatternClassifier().analyze(title)
        assert not result.is_actionable
        assert predictions_from_classification(_video(title), result) == []

    def test_no_asset_yields_no_predictions(self) -> None:
        title = "무조건 폭락 온다"
        result = PatternClassifier().analyze(title)
        assert result.tone.tone == "negative"
        assert predictions_from_classification(_video(title), result) == []


class TestStrategySelection:
    def test_pattern(self) -> None:
        assert isinstance(get_classifier("pattern"), PatternClassifier)

    def test_unknown_name(self) -> None:
        with pytest.raises(ValueError):
            get_classifier("magic")
