"""FastAPI application — read-only API over the ledger and stats artifact."""

from __future__ import annotations

from typing import Literal

from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware

from honeybot.config import settings
from honeybot.engine.aggregator import aggregate
from honeybot.registry import lookup_asset
from honeybot.services.ledger import PredictionLedger, read_stats
from honeybot.services.llm_service import LLMService
from honeybot.services.pipeline_service import build_stats_payload
from honeybot.services.sync_service import sync_status
from honeybot.utils.logger import logger

app = FastAPI(
    title="Honey Index",
    description="Contrarian index over market calls made in video titles",
    version="0.1.0",
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _ledger() -> PredictionLedger:
    return PredictionLedger().load()


@app.get("/api/health")
async def health(llm: bool = Query(False, description="Also probe the LLM backend")) -> dict:
    """Status plus ledger counts."""
    ledger = _ledger()
    result = {
        "api": "ok",
        "classifier": settings.CLASSIFIER,
        "ledger": {
            "resolved": ledger.count_resolved(),
            "unresolved": ledger.count_unresolved(),
            "partitions": ledger.partitions(),
        },
        "statsWritten": settings.STATS_PATH.exists(),
    }
    if llm:
        result["llm"] = await LLMService().health_check()
    return result


@app.get("/api/stats")
async def stats() -> dict:
    """Overall and per-asset honey index with the newest resolved calls."""
    payload = read_stats()
    if payload is None:
        # No run has written the artifact yet; compute from the ledger
        logger.info("API: stats artifact missing, aggregating from ledger")
        ledger = _ledger()
        payload = build_stats_payload(ledger, aggregate(ledger.resolved()))

    body = payload.get("stats") or {}
    recent = payload.get("recentPredictions") or []
    return {
        "overallHoneyIndex": body.get("overallIndex", 0.0),
        "totalPredictions": body.get("total", 0),
        "honeyCount": body.get("honeyCount", 0),
        "assetStats": body.get("perAsset", {}),
        "recentPredictions": recent[: settings.RECENT_PREDICTIONS_LIMIT],
        "unresolvedCount": payload.get("unresolvedCount", 0),
        "collectedAt": payload.get("generatedAt"),
    }


@app.get("/api/predictions")
async def predictions(
    asset: str | None = None,
    status: Literal["resolved", "pending", "unresolved"] | None = None,
    limit: int = Query(100, ge=1, le=1000),
) -> dict:
    """Ledger listing, newest first, optionally filtered by asset and status."""
    asset_key = None
    if asset:
        definition = lookup_asset(asset)
        if definition is None:
            raise HTTPException(status_code=404, detail=f"Unknown asset: {asset}")
        asset_key = definition.key

    ledger = _ledger()
    records = [*ledger.resolved(), *ledger.unresolved()]
    if asset_key:
        records = [r for r in records if r.asset == asset_key]
    if status:
        records = [r for r in records if sync_status(r) == status]
    records.sort(key=lambda r: r.published_at, reverse=True)

    return {
        "count": len(records),
        "predictions": [
            r.model_dump(mode="json", by_alias=True) for r in records[:limit]
        ],
    }
