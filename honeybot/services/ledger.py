"""Prediction ledger — year/month partitioned JSON files.

Layout under ``settings.LEDGER_DIR``::

    2025/01/analyzed.json     resolved verdicts (append-only)
    2025/01/unanalyzed.json   unresolved records with a reason

Records are keyed by (video_id, asset) and partitioned by the UTC month of
``published_at``, so a key always lives in exactly one partition. Mutations
stay in memory until ``flush()``, which rewrites only dirty partitions via a
temp file + ``os.replace``.
Rows that fail validation are kept verbatim and written back, so a flush
never drops data it could not parse.
"""

from __future__ import annotations

import json
import os
import tempfile
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Iterator

from honeybot.config import settings
from honeybot.models.legacy import load_record
from honeybot.models.prediction import (
    Prediction,
    ResolvedPrediction,
    UnresolvedPrediction,
)
from honeybot.utils.logger import logger
from honeybot.utils.time_utils import partition_key

ANALYZED_FILE = "analyzed.json"
UNANALYZED_FILE = "unanalyzed.json"

Key = tuple[str, str]


@dataclass
class Partition:
    year: str
    month: str
    resolved: dict[Key, ResolvedPrediction] = field(default_factory=dict)
    unresolved: dict[Key, UnresolvedPrediction] = field(default_factory=dict)
    # Rows that failed validation, by file name; written back verbatim
    unreadable: dict[str, list[Any]] = field(default_factory=dict)
    dirty: bool = False

    @property
    def label(self) -> str:
        return f"{self.year}/{self.month}"


def _dump(records: list[Prediction]) -> list[dict[str, Any]]:
    ordered = sorted(records, key=lambda r: r.published_at, reverse=True)
    return [r.model_dump(mode="json", by_alias=True) for r in ordered]


def _atomic_write_json(path: Path, payload: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            json.dump(payload, fh, ensure_ascii=False, indent=2)
            fh.write("\n")
        os.replace(tmp, path)
    except BaseException:
        Path(tmp).unlink(missing_ok=True)
        raise


class PredictionLedger:
    """In-memory view of the partitioned ledger with explicit flush."""

    def __init__(self, root: Path | None = None) -> None:
        self.root = Path(root) if root is not None else settings.LEDGER_DIR
        self._partitions: dict[tuple[str, str], Partition] = {}
        self._loaded = False

    # ── Loading ────────────────────────────────────────────────────

    def load(self) -> PredictionLedger:
        """Read every YYYY/MM partition under the root (idempotent)."""
        if self._loaded:
            return self
        self._loaded = True
        if not self.root.exists():
            return self

        for year_dir in sorted(p for p in self.root.iterdir() if p.is_dir()):
            if not (year_dir.name.isdigit() and len(year_dir.name) == 4):
                continue
            for month_dir in sorted(p for p in year_dir.iterdir() if p.is_dir()):
                if not (month_dir.name.isdigit() and len(month_dir.name) == 2):
                    continue
                self._load_partition(year_dir.name, month_dir.name, month_dir)

        logger.info(
            "[Ledger] loaded %d partitions: %d resolved, %d unresolved",
            len(self._partitions), self.count_resolved(), self.count_unresolved(),
        )
        return self

    def _read_rows(self, path: Path) -> list[dict[str, Any]]:
        if not path.exists():
            return []
        try:
            rows = json.loads(path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError) as e:
            logger.error("[Ledger] cannot read %s: %s", path, e)
            raise
        return rows if isinstance(rows, list) else []

    def _load_partition(self, year: str, month: str, path: Path) -> None:
        part = self._partitions.setdefault((year, month), Partition(year, month))
        for name, resolved in ((ANALYZED_FILE, True), (UNANALYZED_FILE, False)):
            for raw in self._read_rows(path / name):
                try:
                    record = load_record(raw, resolved=resolved)
                except (ValueError, KeyError, TypeError, AttributeError) as e:
                    logger.warning(
                        "[Ledger] keeping unreadable row in %s/%s as-is: %s",
                        part.label, name, e,
                    )
                    part.unreadable.setdefault(name, []).append(raw)
                    continue
                target = self._partition_for(record)
                if raw.get("schemaVersion") is None or target is not part:
                    # Adapted from v1 or misfiled: rewrite both sides on flush
                    part.dirty = True
                    target.dirty = True
                self._place(target, record)

    @staticmethod
    def _place(part: Partition, record: Prediction) -> None:
        if isinstance(record, ResolvedPrediction):
            if record.key not in part.resolved:
                part.resolved[record.key] = record
            part.unresolved.pop(record.key, None)
        elif isinstance(record, UnresolvedPrediction):
            if record.key not in part.resolved:
                part.unresolved[record.key] = record

    # ── Queries ────────────────────────────────────────────────────

    def _partition_for(self, record: Prediction) -> Partition:
        year, month = partition_key(record.published_at)
        return self._partitions.setdefault((year, month), Partition(year, month))

    def has_resolved(self, key: Key, published_at: datetime | None = None) -> bool:
        if published_at is not None:
            part = self._partitions.get(partition_key(published_at))
            return part is not None and key in part.resolved
        return any(key in p.resolved for p in self._partitions.values())

    def get(self, record: Prediction) -> Prediction | None:
        part = self._partitions.get(partition_key(record.published_at))
        if part is None:
            return None
        return part.resolved.get(record.key) or part.unresolved.get(record.key)

    def resolved(self) -> Iterator[ResolvedPrediction]:
        for part in self._partitions.values():
            yield from part.resolved.values()

    def unresolved(self, reason: str | None = None) -> Iterator[UnresolvedPrediction]:
        for part in self._partitions.values():
            for rec in part.unresolved.values():
                if reason is None or rec.reason == reason:
                    yield rec

    def count_resolved(self) -> int:
        return sum(len(p.resolved) for p in self._partitions.values())

    def count_unresolved(self) -> int:
        return sum(len(p.unresolved) for p in self._partitions.values())

    def count_unreadable(self) -> int:
        return sum(
            len(rows) for p in self._partitions.values() for rows in p.unreadable.values()
        )

    def partitions(self) -> list[str]:
        return sorted(p.label for p in self._partitions.values())

    # ── Mutations ──────────────────────────────────────────────────

    def add_resolved(self, record: ResolvedPrediction) -> bool:
        """Append a verdict. Returns False (no-op) when the key already resolved."""
        part = self._partition_for(record)
        if record.key in part.resolved:
            return False
        part.resolved[record.key] = record
        part.unresolved.pop(record.key, None)
        part.dirty = True
        return True

    def set_unresolved(self, record: UnresolvedPrediction) -> bool:
        """Record/replace an unresolved state. Never demotes a resolved key."""
        part = self._partition_for(record)
        if record.key in part.resolved:
            return False
        previous = part.unresolved.get(record.key)
        if previous is not None and _same_state(previous, record):
            return False
        part.unresolved[record.key] = record
        part.dirty = True
        return True

    def record(self, resolution: Prediction) -> bool:
        if isinstance(resolution, ResolvedPrediction):
            return self.add_resolved(resolution)
        if isinstance(resolution, UnresolvedPrediction):
            return self.set_unresolved(resolution)
        raise TypeError(f"not a resolution: {type(resolution).__name__}")

    # ── Persistence ────────────────────────────────────────────────

    def flush(self) -> int:
        """Write dirty partitions; returns how many were written."""
        written = 0
        for part in self._partitions.values():
            if not part.dirty:
                continue
            base = self.root / part.year / part.month
            _atomic_write_json(
                base / ANALYZED_FILE,
                _dump(list(part.resolved.values()))
                + part.unreadable.get(ANALYZED_FILE, []),
            )
            _atomic_write_json(
                base / UNANALYZED_FILE,
                _dump(list(part.unresolved.values()))
                + part.unreadable.get(UNANALYZED_FILE, []),
            )
            part.dirty = False
            written += 1
        if written:
            logger.info("[Ledger] flushed %d partition(s)", written)
        return written


def _same_state(a: UnresolvedPrediction, b: UnresolvedPrediction) -> bool:
    """Equal apart from the bookkeeping timestamp."""
    exclude = {"updated_at"}
    return a.model_dump(exclude=exclude) == b.model_dump(exclude=exclude)


def write_stats(payload: dict[str, Any], path: Path | None = None) -> Path:
    """Write the aggregate statistics artifact atomically."""
    target = Path(path) if path is not None else settings.STATS_PATH
    _atomic_write_json(target, payload)
    logger.info("[Ledger] stats written to %s", target)
    return target


def read_stats(path: Path | None = None) -> dict[str, Any] | None:
    target = Path(path) if path is not None else settings.STATS_PATH
    if not target.exists():
        return None
    return json.loads(target.read_text(encoding="utf-8"))
