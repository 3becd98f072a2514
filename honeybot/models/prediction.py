"""Prediction models — the ledger's record types.

A ``Prediction`` is one (video, asset) call. Resolution turns it into
exactly one of two variants:

* ``ResolvedPrediction``   — market data found, ``is_honey`` computed
* ``UnresolvedPrediction`` — carries a machine-readable ``reason``

``is_honey`` only exists on the resolved variant.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from honeybot.models.classification import Direction, ToneAnalysis
from honeybot.utils.time_utils import parse_iso, utc_now

SCHEMA_VERSION = 2

UnresolvedReason = Literal[
    "no_market_data",  # window not elapsed yet, or the lookup failed
    "no_tone",
    "neutral_tone",
    "unknown_asset",
    "flat_market",
]


class Prediction(BaseModel):
    """One directional call on one asset, keyed by (video_id, asset)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    schema_version: int = SCHEMA_VERSION
    video_id: str
    title: str
    thumbnail: str = ""
    published_at: datetime
    asset: str
    ticker: str
    method: str = "pattern"
    tone: ToneAnalysis | None = None
    predicted_direction: Direction | None = None

    @field_validator("published_at", mode="before")
    @classmethod
    def _to_utc(cls, v: object) -> object:
        return parse_iso(v) if isinstance(v, (str, datetime)) else v

    @model_validator(mode="after")
    def _derive_direction(self) -> Prediction:
        """Predicted direction always follows the tone, never stored independently."""
        self.predicted_direction = self.tone.predicted_direction if self.tone else None
        return self

    @property
    def key(self) -> tuple[str, str]:
        return (self.video_id, self.asset)

    def base_fields(self) -> dict:
        """Fields shared by every variant, for building the next state."""
        return {
            name: getattr(self, name)
            for name in Prediction.model_fields
            if name not in ("schema_version", "predicted_direction")
        }


class ResolvedPrediction(Prediction):
    """Terminal verdict — immutable once written to the ledger."""

    status: Literal["resolved"] = "resolved"
    price_at_publish: float
    price_after_window: float
    price_change: float
    market_direction: Literal["up", "down"]
    actual_direction: Direction
    is_honey: bool
    trading_date: date | None = None
    explanation: str = ""
    recovered: bool = False
    resolved_at: datetime = Field(default_factory=utc_now)

    @model_validator(mode="after")
    def _check_honey(self) -> ResolvedPrediction:
        if self.predicted_direction is None:
            raise ValueError("resolved prediction requires a directional tone")
        expected = self.predicted_direction != self.actual_direction
        if self.is_honey != expected:
            raise ValueError(
                f"is_honey={self.is_honey} contradicts "
                f"{self.predicted_direction} → {self.actual_direction}"
            )
        return self


class UnresolvedPrediction(Prediction):
    """A prediction that could not (yet) be resolved."""

    status: Literal["unresolved"] = "unresolved"
    reason: UnresolvedReason
    # True when the resolution window simply hasn't elapsed yet
    pending: bool = False
    detail: str = ""
    updated_at: datetime = Field(default_factory=utc_now)
