"""
Daily sector-effect generation and cyclic lookup.

For each day of the base cycle, 3–5 distinct sector tags are shocked. Each
shock's magnitude is drawn in two steps: pick one of seven weighted bands,
then draw uniformly inside it.

Band table (min, max, weight)
-----------------------------
    big down    -0.90  -0.50   0.05
    down        -0.30  -0.10   0.10
    small down  -0.10   0.00   0.20
    flat        -0.02   0.02   0.20
    small up     0.01   0.10   0.20
    up           0.10   0.30   0.15
    big up       0.50   0.90   0.10

Days past the base cycle reuse the table cyclically:
``effects(day) == effects(((day - 1) % cycle_length) + 1)``.
"""

from __future__ import annotations

import logging
from typing import Iterator, Sequence

import numpy as np

from market_sim.models.effects import DailySectorEffects
from market_sim.taxonomy.sector_catalog import ALL_SECTOR_TAGS
from market_sim.utils.hashing import make_rng

logger = logging.getLogger(__name__)

DEFAULT_CYCLE_DAYS = 30

MAGNITUDE_BANDS: tuple[tuple[float, float, float], ...] = (
    (-0.90, -0.50, 0.05),
    (-0.30, -0.10, 0.10),
    (-0.10,  0.00, 0.20),
    (-0.02,  0.02, 0.20),
    ( 0.01,  0.10, 0.20),
    ( 0.10,  0.30, 0.15),
    ( 0.50,  0.90, 0.10),
)


def generate_daily_effects(
    seed: int,
    num_days: int = DEFAULT_CYCLE_DAYS,
) -> list[DailySectorEffects]:
    """Generate the base cycle of daily sector-effect tables.

    Args:
        seed:     Effects seed. The generator is keyed on ``seed * 31 + 7``.
        num_days: Base cycle length.

    Returns:
        ``num_days`` tables with ``day_index`` 1..num_days.
    """
    rng = make_rng(seed * 31 + 7)
    days: list[DailySectorEffects] = []

    for day in range(1, num_days + 1):
        count = 3 + int(rng.integers(0, 3))
        effects: dict[str, float] = {}
        while len(effects) < count:
            tag = ALL_SECTOR_TAGS[int(rng.integers(len(ALL_SECTOR_TAGS)))]
            if tag in effects:
                continue
            lo, hi = _sample_band(rng)
            effects[tag] = lo + (hi - lo) * rng.random()
        days.append(DailySectorEffects(day_index=day, tag_to_effect=effects))

    return days


def _sample_band(rng: np.random.Generator) -> tuple[float, float]:
    total = sum(w for _, _, w in MAGNITUDE_BANDS)
    r = rng.random() * total
    for lo, hi, weight in MAGNITUDE_BANDS:
        r -= weight
        if r <= 0.0:
            return lo, hi
    return 0.0, 0.0


class DailyEffectsTable:
    """Immutable base cycle of daily effects with cyclic day lookup."""

    def __init__(self, days: Sequence[DailySectorEffects]) -> None:
        if not days:
            raise ValueError("DailyEffectsTable requires at least one day.")
        self._days: tuple[DailySectorEffects, ...] = tuple(days)

    @property
    def cycle_length(self) -> int:
        return len(self._days)

    def __len__(self) -> int:
        return len(self._days)

    def __iter__(self) -> Iterator[DailySectorEffects]:
        return iter(self._days)

    def for_day(self, day_index: int) -> DailySectorEffects:
        """Effects for 1-based ``day_index``, reusing the cycle past its end.

        Raises:
            ValueError: If ``day_index < 1``.
        """
        if day_index < 1:
            raise ValueError(f"day_index must be >= 1, got {day_index}.")
        return self._days[(day_index - 1) % len(self._days)]

    def as_dict(self) -> dict[int, dict[str, float]]:
        """``{day_index: {tag: effect}}`` for the base cycle."""
        return {d.day_index: dict(d.tag_to_effect) for d in self._days}
