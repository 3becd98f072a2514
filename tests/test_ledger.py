"""Tests for the partitioned JSON ledger and the legacy row adapter."""

from __future__ import annotations

import json
from datetime import datetime, timezone

import pytest

from honeybot.models.legacy import legacy_tone, load_record
from honeybot.models.prediction import ResolvedPrediction, UnresolvedPrediction
from honeybot.services.ledger import PredictionLedger, read_stats, write_stats


def _resolved(pred, honey: bool = True) -> ResolvedPrediction:
    return ResolvedPrediction(
        **pred.base_fields(),
        price_at_publish=100.0, price_after_window=90.0, price_change=-10.0,
        market_direction="down", actual_direction="bearish",
        is_honey=honey,
    )


def _unresolved(pred, reason: str = "no_market_data") -> UnresolvedPrediction:
    return UnresolvedPrediction(**pred.base_fields(), reason=reason)


class TestPartitions:
    def test_flush_and_reload(self, tmp_path, make_prediction) -> None:
        ledger = PredictionLedger(tmp_path)
        ledger.load()
        jan = make_prediction("v1", published_at=datetime(2025, 1, 31, 23, tzinfo=timezone.utc))
        feb = make_prediction("v2", published_at=datetime(2025, 2, 1, 1, tzinfo=timezone.utc))
        assert ledger.add_resolved(_resolved(jan))
        assert ledger.set_unresolved(_unresolved(feb))

        assert ledger.flush() == 2
        assert (tmp_path / "2025" / "01" / "analyzed.json").exists()
        assert (tmp_path / "2025" / "02" / "unanalyzed.json").exists()
        rows = json.loads((tmp_path / "2025" / "01" / "analyzed.json").read_text("utf-8"))
        assert rows[0]["videoId"] == "v1"
        assert rows[0]["isHoney"] is True
        assert rows[0]["schemaVersion"] == 2

        reloaded = PredictionLedger(tmp_path).load()
        assert reloaded.count_resolved() == 1
        assert reloaded.count_unresolved() == 1
        assert reloaded.has_resolved(("v1", "Bitcoin"))
        assert reloaded.partitions() == ["2025/01", "2025/02"]
        # Nothing changed: a second flush writes nothing
        assert reloaded.flush() == 0

    def test_nothing_written_before_flush(self, tmp_path, make_prediction) -> None:
        ledger = PredictionLedger(tmp_path).load()
        ledger.add_resolved(_resolved(make_prediction()))
        assert not any(tmp_path.rglob("*.json"))

    def test_unreadable_partition_raises(self, tmp_path) -> None:
        part = tmp_path / "2025" / "01"
        part.mkdir(parents=True)
        (part / "analyzed.json").write_text("{not json", encoding="utf-8")
        with pytest.raises(json.JSONDecodeError):
            PredictionLedger(tmp_path).load()


class TestAppendOnly:
    def test_resolved_key_is_never_replaced(self, tmp_path, make_prediction) -> None:
        ledger = PredictionLedger(tmp_path).load()
        pred = make_prediction()
        assert ledger.add_resolved(_resolved(pred, honey=True))
        assert not ledger.add_resolved(_resolved(pred.model_copy(
            update={"tone": pred.tone.model_copy(update={"tone": "negative"})},
        ), honey=False))
        assert ledger.count_resolved() == 1
        assert next(ledger.resolved()).is_honey is True

    def test_resolution_removes_unresolved(self, tmp_path, make_prediction) -> None:
        ledger = PredictionLedger(tmp_path).load()
        pred = make_prediction()
        ledger.set_unresolved(_unresolved(pred))
        ledger.add_resolved(_resolved(pred))
        assert ledger.count_unresolved() == 0

    def test_resolved_is_never_demoted(self, tmp_path, make_prediction) -> None:
        ledger = PredictionLedger(tmp_path).load()
        pred = make_prediction()
        ledger.add_resolved(_resolved(pred))
        assert not ledger.set_unresolved(_unresolved(pred))
        assert ledger.count_unresolved() == 0

    def test_same_unresolved_state_is_not_dirty(self, tmp_path, make_prediction) -> None:
        ledger = PredictionLedger(tmp_path).load()
        pred = make_prediction()
        assert ledger.set_unresolved(_unresolved(pred))
        ledger.flush()
        assert not ledger.set_unresolved(_unresolved(pred))
        assert ledger.flush() == 0
        assert ledger.set_unresolved(_unresolved(pred, reason="flat_market"))


class TestLegacyRows:
    def _write(self, root, name: str, rows: list[dict]) -> None:
        part = root / "2024" / "11"
        part.mkdir(parents=True, exist_ok=True)
        (part / name).write_text(json.dumps(rows, ensure_ascii=False), encoding="utf-8")

    def test_v1_rows_are_adapted_and_rewritten(self, tmp_path) -> None:
        self._write(tmp_path, "analyzed.json", [{
            "videoId": "old1", "title": "비트코인 폭락", "asset": "Bitcoin",
            "publishedAt": "2024-11-02T01:00:00Z",
            "positiveScore": 0, "negativeScore": 2,
            "marketData": {"previousClose": 100.0, "closePrice": 105.0,
                           "priceChange": 5.0, "direction": "up"},
        }])
        self._write(tmp_path, "unanalyzed.json", [{
            "videoId": "old2", "title": "코스피 반등 폭락", "asset": "KOSPI",
            "publishedAt": "2024-11-03T01:00:00Z",
            "positiveScore": 1, "negativeScore": 1,
            "reason": "no_market_data",
        }])

        ledger = PredictionLedger(tmp_path).load()
        resolved = next(ledger.resolved())
        assert resolved.is_honey is True
        assert resolved.tone.source == "legacy_scores"
        assert resolved.ticker == "BTCUSDT"
        pending = next(ledger.unresolved())
        assert pending.tone.tone == "neutral"

        # Legacy partitions are rewritten in the current schema on flush
        assert ledger.flush() == 1
        rows = json.loads((tmp_path / "2024" / "11" / "analyzed.json").read_text("utf-8"))
        assert rows[0]["schemaVersion"] == 2
        assert "positiveScore" not in rows[0]

    def test_misfiled_row_moves_to_its_month(self, tmp_path) -> None:
        self._write(tmp_path, "unanalyzed.json", [{
            "videoId": "old3", "title": "테슬라 급등", "asset": "Tesla",
            "publishedAt": "2024-12-05T01:00:00Z", "sentiment": "bullish",
            "reason": "no_market_data",
        }])
        ledger = PredictionLedger(tmp_path).load()
        ledger.flush()
        moved = json.loads(
            (tmp_path / "2024" / "12" / "unanalyzed.json").read_text("utf-8"),
        )
        assert [r["videoId"] for r in moved] == ["old3"]
        left = json.loads((tmp_path / "2024" / "11" / "unanalyzed.json").read_text("utf-8"))
        assert left == []

    def test_unreadable_rows_survive_a_flush(self, tmp_path, make_prediction) -> None:
        broken = {"schemaVersion": 2, "videoId": "old1", "asset": "Bitcoin"}
        self._write(tmp_path, "unanalyzed.json", [broken, "not a row"])

        ledger = PredictionLedger(tmp_path).load()
        assert ledger.count_unresolved() == 0
        assert ledger.count_unreadable() == 2

        new = make_prediction(
            "new", published_at=datetime(2024, 11, 20, tzinfo=timezone.utc),
        )
        assert ledger.set_unresolved(_unresolved(new))
        assert ledger.flush() == 1

        rows = json.loads((tmp_path / "2024" / "11" / "unanalyzed.json").read_text("utf-8"))
        assert rows[0]["videoId"] == "new"
        assert rows[1:] == [broken, "not a row"]


class TestLegacyTone:
    def test_model_block_wins(self) -> None:
        tone = legacy_tone({
            "gpt4oAnalysis": {"tone": "bearish"}, "positiveScore": 5, "negativeScore": 0,
        })
        assert tone.tone == "negative"
        assert tone.source == "llm"

    def test_nested_analysis_block(self) -> None:
        tone = legacy_tone({"analysis": {"toneAnalysis": {"tone": "positive"}}})
        assert tone.tone == "positive"

    def test_older_score_names(self) -> None:
        tone = legacy_tone({"bullishScore": 3, "bearishScore": 1})
        assert tone.tone == "positive"
        assert (tone.positive_score, tone.negative_score) == (3, 1)

    def test_tie(self) -> None:
        tone = legacy_tone({"positiveScore": 2, "negativeScore": 2})
        assert tone.tone == "neutral"
        assert tone.source == "legacy_scores"

    def test_label_only(self) -> None:
        tone = legacy_tone({"sentiment": "bearish"})
        assert tone.tone == "negative"
        assert tone.source == "legacy_label"

    def test_nothing(self) -> None:
        assert legacy_tone({"title": "x"}) is None

    def test_legacy_resolved_tie_is_neutral_tone(self) -> None:
        record = load_record({
            "videoId": "t", "title": "t", "asset": "Bitcoin",
            "publishedAt": "2024-11-02T01:00:00Z",
            "positiveScore": 1, "negativeScore": 1,
            "marketData": {"direction": "down", "priceChange": -1.0},
        }, resolved=True)
        assert isinstance(record, UnresolvedPrediction)
        assert record.reason == "neutral_tone"

    def test_legacy_flat_close(self) -> None:
        record = load_record({
            "videoId": "t", "title": "t", "asset": "Bitcoin",
            "publishedAt": "2024-11-02T01:00:00Z", "sentiment": "bullish",
            "marketData": {"direction": "flat", "priceChange": 0.0},
        }, resolved=True)
        assert record.reason == "flat_market"


def test_stats_artifact_round_trip(tmp_path) -> None:
    path = tmp_path / "stats" / "honey-index.json"
    assert read_stats(path) is None
    write_stats({"generatedAt": "2025-01-01T00:00:00+00:00", "stats": {}}, path)
    assert read_stats(path)["generatedAt"] == "2025-01-01T00:00:00+00:00"
