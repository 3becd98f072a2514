"""Video model — one upload from the tracked channel."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, field_validator

from honeybot.utils.time_utils import parse_iso


class Video(BaseModel):
    """Immutable external record, sourced once per collection run."""

    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    thumbnail: str = ""
    published_at: datetime

    @field_validator("published_at", mode="before")
    @classmethod
    def _to_utc(cls, v: str | datetime) -> datetime:
        return parse_iso(v)
