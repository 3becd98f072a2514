"""Aggregate statistics and per-run counters."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from honeybot.utils.time_utils import utc_now


class AssetStat(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    asset: str
    total: int = 0
    honey_count: int = 0
    index: float = 0.0


class HoneyStats(BaseModel):
    """Contrarian index over a set of resolved predictions."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    overall_index: float = 0.0
    total: int = 0
    honey_count: int = 0
    per_asset: dict[str, AssetStat] = Field(default_factory=dict)


class RunSummary(BaseModel):
    """Counters reported at the end of a collection or recovery run."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    started_at: datetime = Field(default_factory=utc_now)
    finished_at: datetime | None = None
    videos: int = 0
    predictions: int = 0
    skipped_existing: int = 0
    resolved: int = 0
    pending: int = 0
    failed: int = 0
    processed: int = 0
    recovered: int = 0
    honey_index: float = 0.0
    reasons: dict[str, int] = Field(default_factory=dict)

    def count_reason(self, reason: str) -> None:
        self.reasons[reason] = self.reasons.get(reason, 0) + 1
