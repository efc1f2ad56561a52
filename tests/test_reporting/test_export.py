"""Tests for market_sim.reporting.export."""

from __future__ import annotations

import csv
import json
from pathlib import Path

from market_sim.models.prediction import PredictionResult, PriceStatus
from market_sim.recommendations.ranker import rank_stocks
from market_sim.reporting.export import (
    build_effects_snapshot,
    export_to_csv,
    export_to_json,
    flatten_effects_for_export,
    flatten_ranked_for_export,
)


# ── build_effects_snapshot ────────────────────────────────────────────────────


def test_snapshot_shape(engine) -> None:
    """Snapshot holds the full effects cycle and every instrument's tags."""
    snap = build_effects_snapshot(engine.session)
    assert snap["seed"] == engine.session.seed
    assert len(snap["daily_effects"]) == engine.session.effects.cycle_length
    assert set(snap["daily_effects"]) == {str(d) for d in range(1, 31)}
    assert snap["instrument_tags"] == {
        inst.id: inst.tags for inst in engine.session.instruments
    }


def test_snapshot_json_round_trip(engine, tmp_path: Path) -> None:
    snap = build_effects_snapshot(engine.session)
    out = export_to_json(snap, tmp_path / "nested" / "effects.json")
    assert out.exists()
    assert json.loads(out.read_text(encoding="utf-8")) == snap


def test_flatten_effects(engine) -> None:
    snap = build_effects_snapshot(engine.session)
    rows = flatten_effects_for_export(snap)
    expected = sum(len(v) for v in snap["daily_effects"].values())
    assert len(rows) == expected
    assert set(rows[0]) == {"day", "tag", "effect"}


# ── export_to_csv ─────────────────────────────────────────────────────────────


def test_export_to_csv_basic(tmp_path: Path) -> None:
    """Writes a valid CSV with correct headers and values."""
    records = [
        {"instrument_id": "S001", "score": 72.5, "tier": "recommend"},
        {"instrument_id": "S002", "score": 41.0, "tier": "watch"},
    ]
    out = tmp_path / "test.csv"
    result = export_to_csv(records, out)

    assert result == out
    with out.open(encoding="utf-8") as f:
        reader = list(csv.DictReader(f))
    assert len(reader) == 2
    assert reader[0]["instrument_id"] == "S001"
    assert reader[1]["tier"] == "watch"


def test_export_to_csv_custom_fieldnames(tmp_path: Path) -> None:
    """Custom fieldnames control column order."""
    out = tmp_path / "cols.csv"
    export_to_csv([{"a": 1, "b": 2, "c": 3}], out, fieldnames=["c", "a"])
    with out.open(encoding="utf-8") as f:
        header = f.readline().strip()
    assert header == "c,a"


def test_export_to_csv_empty(tmp_path: Path) -> None:
    out = export_to_csv([], tmp_path / "empty.csv")
    assert out.read_text(encoding="utf-8") == ""


# ── flatten_ranked_for_export ─────────────────────────────────────────────────


def test_flatten_ranked(make_instrument) -> None:
    inst = make_instrument([1000])
    pred = PredictionResult(
        instrument_id="S001", current_day=1, current_hour=2,
        current_price_cents=1000, limit_up_price_cents=5000,
        status=PriceStatus.RISING, safe_expected_gain=10.0, risk_level=0.4,
        remaining_good_hours=3,
    )
    rows = flatten_ranked_for_export(rank_stocks([pred], [inst]))
    assert len(rows) == 1
    row = rows[0]
    assert row["rank"] == 1
    assert row["instrument_id"] == "S001"
    assert row["status"] == "rising"
    assert row["current_price"] == 10.0
    assert row["sc_status"] == 80.0
