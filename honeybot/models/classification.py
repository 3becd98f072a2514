"""Classification models — assets and tone extracted from one video title.

Both classifier strategies (keyword patterns, language model) emit the same
``ClassificationResult`` shape, so the rest of the pipeline never needs to
know which one ran.
"""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field, field_validator

Tone = Literal["positive", "negative", "neutral"]
Direction = Literal["bullish", "bearish"]
ToneSource = Literal["pattern", "llm", "legacy_scores", "legacy_label"]

UNKNOWN_TICKER = "UNKNOWN"

_TONE_ALIASES: dict[str, str] = {
    "positive": "positive",
    "bullish": "positive",
    "negative": "negative",
    "bearish": "negative",
    "neutral": "neutral",
}


def normalize_tone(value: object) -> str:
    """Map positive/bullish/negative/bearish (any casing) onto the canonical tone."""
    if value is None:
        return "neutral"
    return _TONE_ALIASES.get(str(value).strip().lower(), "neutral")


class DetectedAsset(BaseModel):
    """One asset found in a title."""

    asset: str
    ticker: str = UNKNOWN_TICKER
    matched_text: str = ""
    confidence: float = Field(default=0.5, ge=0.0, le=1.0)
    reasoning: str = ""

    @field_validator("confidence", mode="before")
    @classmethod
    def _clamp_confidence(cls, v: float) -> float:
        """Clamp confidence to [0.0, 1.0]."""
        if v is None:
            return 0.5
        try:
            val = float(v)
            return max(0.0, min(1.0, val))
        except (ValueError, TypeError):
            return 0.5


class ToneAnalysis(BaseModel):
    """Directional tone of a title, in canonical positive/negative/neutral form.

    ``positive_score``/``negative_score`` are only populated by keyword
    counting (the pattern strategy or an adapted legacy record).
    """

    tone: Tone = "neutral"
    keywords: list[str] = Field(default_factory=list)
    reasoning: str = ""
    confidence: float | None = None
    positive_score: int | None = None
    negative_score: int | None = None
    source: ToneSource = "llm"

    @field_validator("tone", mode="before")
    @classmethod
    def _validate_tone(cls, v: object) -> str:
        return normalize_tone(v)

    @property
    def predicted_direction(self) -> Direction | None:
        """bullish for positive, bearish for negative, None for neutral."""
        if self.tone == "positive":
            return "bullish"
        if self.tone == "negative":
            return "bearish"
        return None

    @property
    def label(self) -> str:
        """Korean label used in human-readable explanations."""
        return {"positive": "긍정", "negative": "부정"}.get(self.tone, "중립")


class ClassificationResult(BaseModel):
    """Output of a classifier for one video title."""

    method: Literal["pattern", "llm"]
    model: str
    timestamp: datetime
    detected_assets: list[DetectedAsset] = Field(default_factory=list)
    tone: ToneAnalysis = Field(default_factory=ToneAnalysis)
    raw_response: str | None = None

    @property
    def is_actionable(self) -> bool:
        """True when at least one asset was found and the tone is not neutral."""
        return bool(self.detected_assets) and self.tone.tone != "neutral"
