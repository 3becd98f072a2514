"""LLM classifier — model-backed asset/tone extraction with a durable cache.

The model is asked for a fixed JSON shape:

    {"assets": [{"asset", "matchedText", "confidence", "reasoning"}],
     "tone":   {"tone", "keywords", "reasoning"}}

Identifiers are mapped through the asset registry; anything unmapped keeps
its identifier but gets the UNKNOWN ticker. Transport or parse failures
return an empty, neutral result instead of raising.
"""

from __future__ import annotations

import json
from typing import Any, Mapping

import httpx

from honeybot.engine.classification_cache import ClassificationCache
from honeybot.engine.classifier import TitleClassifier
from honeybot.models.classification import (
    UNKNOWN_TICKER,
    ClassificationResult,
    DetectedAsset,
    ToneAnalysis,
)
from honeybot.registry import ASSET_REGISTRY, AssetDefinition, lookup_asset
from honeybot.services.llm_service import LLMService
from honeybot.utils.logger import logger
from honeybot.utils.time_utils import utc_now


def _identifier_lines(registry: Mapping[str, AssetDefinition]) -> str:
    groups: dict[str, list[str]] = {}
    for d in registry.values():
        groups.setdefault(d.asset_class, []).append(d.key)
    labels = {"index": "지수", "stock": "종목/섹터", "crypto": "암호화폐"}
    return "\n".join(
        f"- {labels.get(cls, cls)}: {', '.join(keys)}" for cls, keys in groups.items()
    )


_SYSTEM_PROMPT = """당신은 한국 경제/투자 유튜브 영상 제목을 분석하는 전문가입니다.

주어진 영상 제목에서 다음을 추출하세요:

1. 종목/섹터 추출
   - 언급된 주식, 지수, 암호화폐, 섹터를 모두 추출
   - 섹터 예시: 조선주, 방산주, 2차전지주, 반도체주, 바이오주, 은행주, 원전주
   - 지수 예시: 코스피, 나스닥, S&P500

2. 톤 분석
   - positive: 상승, 매수, 기회 등 긍정적 전망
   - negative: 하락, 위험, 매도 등 부정적 전망
   - neutral: 판단 불가

다음 JSON 형식으로만 응답하세요:
{{
  "assets": [
    {{"asset": "영문 식별자", "matchedText": "제목에서 매칭된 텍스트",
      "confidence": 0.95, "reasoning": "추출 근거"}}
  ],
  "tone": {{"tone": "positive|negative|neutral",
            "keywords": ["판단에 사용된 키워드"], "reasoning": "톤 판단 근거"}}
}}

식별자는 다음 중 하나를 사용하세요:
{identifiers}

목록에 없는 종목이 명확하면 새 영문 식별자를 제안해도 됩니다."""


class LLMClassifier(TitleClassifier):
    """Asks the configured LLM to classify a title; memoizes per (video, title)."""

    method = "llm"

    def __init__(
        self,
        llm: LLMService | None = None,
        cache: ClassificationCache | None = None,
        registry: Mapping[str, AssetDefinition] = ASSET_REGISTRY,
    ) -> None:
        self.llm = llm or LLMService()
        self.cache = cache or ClassificationCache()
        self.registry = registry
        self.system_prompt = _SYSTEM_PROMPT.format(
            identifiers=_identifier_lines(registry),
        )

    async def classify(
        self, title: str, *, video_id: str | None = None,
    ) -> ClassificationResult:
        if video_id is not None:
            cached = self.cache.get(video_id, title)
            if cached is not None:
                logger.debug("[Classifier] cache hit %s", video_id)
                return cached

        result = await self.analyze_title(title)

        # Failures are not cached so the next run retries them
        if video_id is not None and result.raw_response is not None:
            self.cache.put(video_id, title, result)
        return result

    async def analyze_title(self, title: str) -> ClassificationResult:
        """One uncached model call."""
        logger.info("[Classifier] LLM 분석: %s", title[:40])
        try:
            raw = await self.llm.chat(
                system=self.system_prompt,
                user=f'영상 제목: "{title}"',
                response_format="json",
            )
            parsed = json.loads(LLMService.clean_json_response(raw))
            if not isinstance(parsed, dict):
                raise ValueError(f"expected a JSON object, got {type(parsed).__name__}")
        except (httpx.HTTPError, ValueError, KeyError, IndexError) as e:
            logger.warning("[Classifier] LLM analysis failed for '%s': %s", title[:40], e)
            return self._fallback(str(e))

        return ClassificationResult(
            method="llm",
            model=self.llm.model,
            timestamp=utc_now(),
            detected_assets=self._parse_assets(parsed.get("assets")),
            tone=self._parse_tone(parsed.get("tone")),
            raw_response=raw,
        )

    def _parse_assets(self, items: Any) -> list[DetectedAsset]:
        if not isinstance(items, list):
            return []
        assets: list[DetectedAsset] = []
        seen: set[str] = set()
        for item in items:
            if not isinstance(item, dict) or not item.get("asset"):
                continue
            identifier = str(item["asset"]).strip()
            definition = lookup_asset(identifier, self.registry)
            key = definition.key if definition else identifier
            if key in seen:
                continue
            seen.add(key)
            assets.append(
                DetectedAsset(
                    asset=key,
                    ticker=definition.symbol if definition else UNKNOWN_TICKER,
                    matched_text=str(item.get("matchedText") or ""),
                    confidence=item.get("confidence", 0.5),
                    reasoning=str(item.get("reasoning") or ""),
                )
            )
        return assets

    @staticmethod
    def _parse_tone(block: Any) -> ToneAnalysis:
        if isinstance(block, str):
            return ToneAnalysis(tone=block, source="llm")
        if not isinstance(block, dict):
            return ToneAnalysis(source="llm")
        keywords = block.get("keywords") or []
        return ToneAnalysis(
            tone=block.get("tone"),
            keywords=[str(k) for k in keywords] if isinstance(keywords, list) else [],
            reasoning=str(block.get("reasoning") or ""),
            source="llm",
        )

    def _fallback(self, error: str) -> ClassificationResult:
        return ClassificationResult(
            method="llm",
            model=self.llm.model,
            timestamp=utc_now(),
            detected_assets=[],
            tone=ToneAnalysis(
                tone="neutral",
                reasoning=f"LLM 분석 실패: {error}",
                source="llm",
            ),
        )
