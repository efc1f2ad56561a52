"""
Instrument library: deterministic candidate generation and session selection.

``generate_candidates(seed)`` is a pure function of its arguments. Per
candidate, random draws happen in a fixed order (name → tags → archetype →
jittered range → initial price); changing that order changes every session.

Initial-price ranges are archetype-specific. Higher-volatility archetypes
get lower starting prices so they have more room below their upper band
(``5×`` the initial price).
"""

from __future__ import annotations

import logging
from typing import Optional

import numpy as np

from market_sim.config import MarketConfig
from market_sim.models.instrument import Instrument
from market_sim.simulation.price_math import clamp_to_config_bounds
from market_sim.simulation.volatility import get_range_with_jitter, sample_profile
from market_sim.taxonomy.archetype_taxonomy import ProfileType
from market_sim.taxonomy.sector_catalog import ALL_SECTOR_TAGS
from market_sim.utils.hashing import make_rng

logger = logging.getLogger(__name__)

_DEFAULT_MARKET = MarketConfig()

DEFAULT_CANDIDATE_COUNT = 80

NAME_PREFIXES: tuple[str, ...] = (
    "Penguin", "Ironworks", "Cloudtech", "Everfaith", "Farsail",
    "Grandreach", "Starlink", "Coremicro", "Brightlux", "Tangcrest",
    "Goldrise", "Skyforge", "Neonergy", "Virtutrust", "Ruitech",
)

# Inclusive (min_cents, max_cents) for the initial price per archetype.
INITIAL_PRICE_RANGES: dict[ProfileType, tuple[int, int]] = {
    ProfileType.BEAR:     (1000, 8000),
    ProfileType.SIDEWAYS: (500, 3000),
    ProfileType.BULL:     (300, 5000),
    ProfileType.MOONSHOT: (100, 2000),
}


def generate_candidates(
    seed: int,
    count: int = DEFAULT_CANDIDATE_COUNT,
    market: Optional[MarketConfig] = None,
) -> list[Instrument]:
    """Generate the full candidate population for ``seed``.

    Args:
        seed:   Population seed.
        count:  Number of candidates (ids ``S001`` … ``S{count:03d}``).
        market: Market constants; defaults to ``MarketConfig()``.

    Returns:
        Candidates with empty price series.
    """
    m = market or _DEFAULT_MARKET
    rng = make_rng(seed)
    candidates: list[Instrument] = []

    for i in range(count):
        name = _generate_name(i, rng)
        tags = _pick_tags(rng, 2 + int(rng.integers(0, 2)))
        profile = sample_profile(rng, m)
        rt_low, rt_high = get_range_with_jitter(profile, rng, market=m)
        initial = _generate_initial_price(rng, profile, m)

        candidates.append(
            Instrument(
                id=f"S{i + 1:03d}",
                name=name,
                tags=tags,
                profile=profile,
                rt_low=rt_low,
                rt_high=rt_high,
                initial_price_cents=initial,
            )
        )

    logger.debug("Generated %d candidates for seed=%d", len(candidates), seed)
    return candidates


def pick_session_stocks(
    candidates: list[Instrument],
    count: int,
    seed: int,
) -> list[Instrument]:
    """Deterministically shuffle ``candidates`` and take the first ``count``.

    Returned instruments are deep copies with empty series, so the caller's
    candidate list is never mutated by later simulation.
    """
    rng = make_rng(seed)
    order = rng.permutation(len(candidates))
    picked = [candidates[int(i)].without_series() for i in order[:count]]
    return picked


def _generate_name(index: int, rng: np.random.Generator) -> str:
    prefix = NAME_PREFIXES[int(rng.integers(len(NAME_PREFIXES)))]
    if int(rng.integers(0, 2)) == 0:
        suffix = chr(ord("A") + index % 26)
    else:
        suffix = str(int(rng.integers(10, 99)))
    return f"{prefix} {suffix}"


def _pick_tags(rng: np.random.Generator, count: int) -> list[str]:
    indices = rng.choice(len(ALL_SECTOR_TAGS), size=count, replace=False)
    return [ALL_SECTOR_TAGS[int(i)] for i in indices]


def _generate_initial_price(
    rng: np.random.Generator,
    profile: ProfileType,
    market: MarketConfig,
) -> int:
    min_cents, max_cents = INITIAL_PRICE_RANGES[profile]
    price = int(rng.integers(min_cents, max_cents + 1))
    return clamp_to_config_bounds(price, market)
