"""
Export helpers for external tooling.

All writers create parent directories and return the written ``Path``.
They accept generic ``dict`` / ``list[dict]`` data so they stay decoupled
from specific report shapes.

``build_effects_snapshot()`` produces the export boundary document::

    {
      "seed": 20240901,
      "daily_effects":   {"1": {"gaming": 0.12, ...}, ...},
      "instrument_tags": {"S017": ["cloud", "ai"], ...}
    }

``flatten_ranked_for_export()`` turns a ranked advisory list into flat rows
(one per instrument, score components as separate columns) for CSV.
"""

from __future__ import annotations

import csv
import json
from pathlib import Path
from typing import Any

from market_sim.recommendations.ranker import RankedEntry
from market_sim.simulation.engine import MarketSession


def build_effects_snapshot(session: MarketSession) -> dict[str, Any]:
    """Serialisable snapshot of the effects cycle and instrument tags.

    Day keys are strings so the document round-trips through JSON unchanged.
    """
    return {
        "seed": session.seed,
        "daily_effects": {
            str(day): effects for day, effects in session.effects.as_dict().items()
        },
        "instrument_tags": {inst.id: list(inst.tags) for inst in session.instruments},
    }


def export_to_json(data: dict | list, path: Path) -> Path:
    """Write ``data`` to a pretty-printed UTF-8 JSON file."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2, default=str), encoding="utf-8")
    return path


def export_to_csv(
    records: list[dict],
    path: Path,
    fieldnames: list[str] | None = None,
) -> Path:
    """Write ``records`` to a UTF-8 CSV file.

    Args:
        records:    List of row dicts.
        path:       Destination file path (parent dirs created if missing).
        fieldnames: Column order. If None, uses the keys of the first record.

    Returns:
        ``path`` as written. An empty ``records`` list writes an empty file.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    if not records:
        path.write_text("", encoding="utf-8")
        return path
    cols = fieldnames or list(records[0].keys())
    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=cols, extrasaction="ignore")
        writer.writeheader()
        writer.writerows(records)
    return path


def flatten_effects_for_export(snapshot: dict[str, Any]) -> list[dict]:
    """One ``{day, tag, effect}`` row per entry of ``snapshot["daily_effects"]``."""
    rows: list[dict] = []
    for day, effects in snapshot.get("daily_effects", {}).items():
        for tag, effect in sorted(effects.items()):
            rows.append({"day": int(day), "tag": tag, "effect": round(effect, 6)})
    return rows


def flatten_ranked_for_export(ranked: list[RankedEntry]) -> list[dict]:
    """Flatten ranked entries into CSV-ready rows (rank is 1-based)."""
    rows: list[dict] = []
    for rank, entry in enumerate(ranked, start=1):
        pred = entry.prediction
        rows.append(
            {
                "rank":               rank,
                "instrument_id":      entry.instrument_id,
                "name":               entry.name,
                "score":              entry.score,
                "tier":               entry.tier.value,
                "status":             pred.status.value,
                "trend":              pred.trend.value,
                "current_price":      pred.current_price,
                "limit_up_price":     pred.limit_up_price,
                "safe_expected_gain": pred.safe_expected_gain,
                "max_potential_gain": pred.max_potential_gain,
                "risk_level":         pred.risk_level,
                "remaining_hours":    pred.remaining_good_hours,
                "sc_gain":            entry.breakdown.gain_score,
                "sc_risk":            entry.breakdown.risk_score,
                "sc_time":            entry.breakdown.time_score,
                "sc_status":          entry.breakdown.status_score,
                "advice":             entry.advice,
            }
        )
    return rows
