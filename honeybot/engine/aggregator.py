"""Aggregator — folds resolved predictions into the honey index.

honey index = honey hits / resolved predictions × 100, and 0 when nothing
has resolved yet.
"""

from __future__ import annotations

from typing import Iterable

from honeybot.models.prediction import ResolvedPrediction
from honeybot.models.stats import AssetStat, HoneyStats


def honey_index(honey_count: int, total: int) -> float:
    if total <= 0:
        return 0.0
    return honey_count / total * 100


def aggregate(resolved: Iterable[ResolvedPrediction]) -> HoneyStats:
    """Overall and per-asset contrarian index. Pure: no I/O."""
    per_asset: dict[str, AssetStat] = {}
    total = 0
    honey = 0

    for pred in resolved:
        total += 1
        stat = per_asset.setdefault(pred.asset, AssetStat(asset=pred.asset))
        stat.total += 1
        if pred.is_honey:
            honey += 1
            stat.honey_count += 1

    for stat in per_asset.values():
        stat.index = honey_index(stat.honey_count, stat.total)

    return HoneyStats(
        overall_index=honey_index(honey, total),
        total=total,
        honey_count=honey,
        per_asset=dict(sorted(per_asset.items(), key=lambda kv: -kv[1].total)),
    )


def recent_predictions(
    resolved: Iterable[ResolvedPrediction], limit: int = 20,
) -> list[ResolvedPrediction]:
    """Newest-first slice of the resolved set."""
    ordered = sorted(resolved, key=lambda p: p.published_at, reverse=True)
    return ordered[: max(limit, 0)]
