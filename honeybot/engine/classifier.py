"""Title classifier interface and strategy selection."""

from __future__ import annotations

from abc import ABC, abstractmethod

from honeybot.models.classification import ClassificationResult


class TitleClassifier(ABC):
    """Maps a video title to detected assets plus a directional tone.

    Implementations must never raise for a bad title or an upstream
    failure; the worst case is an empty asset list with a neutral tone.
    """

    method: str = ""

    @abstractmethod
    async def classify(
        self, title: str, *, video_id: str | None = None,
    ) -> ClassificationResult:
        """Classify one title. ``video_id`` enables per-video caching."""


def get_classifier(name: str) -> TitleClassifier:
    """Build the classifier strategy named in settings (``pattern`` | ``llm``)."""
    if name == "llm":
        from honeybot.engine.llm_classifier import LLMClassifier

        return LLMClassifier()
    if name == "pattern":
        from honeybot.engine.pattern_classifier import PatternClassifier

        return PatternClassifier()
    raise ValueError(f"Unknown classifier strategy: {name!r}")
