"""Unit tests for RunRecordStorage."""

import json
from datetime import datetime, timezone
from decimal import Decimal

from rebalancer.core.models import (
    CycleReport,
    CycleStatus,
    InterestSnapshot,
    RunRecord,
    WeightDecision,
)
from rebalancer.persistence.storage import DecimalEncoder, RunRecordStorage


class TestRunRecordStorage:
    """Tests for RunRecordStorage."""

    def test_save_writes_record(self, tmp_path):
        storage = RunRecordStorage(tmp_path / "runs")
        decision = WeightDecision(
            trend_up=False,
            weights={"0xA": 3000, "0xB": 7000},
            trend_direction="down",
            trend_crossed=True,
            ai_signal="down",
        )
        record = RunRecord(decision=decision, timestamp=datetime(2024, 1, 1, tzinfo=timezone.utc))

        path = storage.save(record)

        with open(path) as f:
            data = json.load(f)
        assert data["signal"] == {"direction": "down", "cross": True, "trend_up": False}
        assert data["aiSignal"] == "down"
        assert data["selectedWeights"] == {"0xA": 3000, "0xB": 7000}
        assert data["timestamp"] == "2024-01-01T00:00:00+00:00"
        assert data["cycle"] is None

    def test_record_includes_cycle_summary(self, tmp_path):
        storage = RunRecordStorage(tmp_path)
        report = CycleReport(
            started_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
            snapshot=InterestSnapshot({"0xA": 5}),
        ).finish(CycleStatus.IDLE)
        record = RunRecord(decision=WeightDecision(trend_up=True, weights={"0xA": 10000}), report=report)

        storage.save(record)

        latest = storage.latest()
        assert latest["cycle"]["status"] == "idle"
        assert latest["cycle"]["interest_snapshot"] == {"0xA": "5"}

    def test_list_records_newest_first(self, tmp_path):
        storage = RunRecordStorage(tmp_path)
        for day in (1, 2):
            storage.save(
                RunRecord(
                    decision=WeightDecision(trend_up=True, weights={}),
                    timestamp=datetime(2024, 1, day, tzinfo=timezone.utc),
                )
            )

        records = storage.list_records()

        assert [r["timestamp"][:10] for r in records] == ["2024-01-02", "2024-01-01"]

    def test_decimal_encoder(self):
        assert json.dumps({"v": Decimal("1.5")}, cls=DecimalEncoder) == '{"v": "1.5"}'
