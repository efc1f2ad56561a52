"""
Volatility profiles: archetype sampling and hourly multiplicative ranges.

Each archetype has a base ``(rt_low, rt_high)`` range for the hourly price
multiplier. Candidates get the base range perturbed by a small jitter so
two instruments of the same archetype do not move identically.
"""

from __future__ import annotations

from typing import Optional

import numpy as np

from market_sim.config import MarketConfig
from market_sim.taxonomy.archetype_taxonomy import PROFILE_SAMPLING_ORDER, ProfileType

_DEFAULT_MARKET = MarketConfig()

BASE_RT_RANGES: dict[ProfileType, tuple[float, float]] = {
    ProfileType.BEAR:     (0.88, 0.95),
    ProfileType.SIDEWAYS: (0.94, 1.06),
    ProfileType.BULL:     (1.05, 1.12),
    ProfileType.MOONSHOT: (1.08, 1.20),
}


def profile_weights(market: Optional[MarketConfig] = None) -> dict[ProfileType, float]:
    """Configured sampling weight per archetype."""
    m = market or _DEFAULT_MARKET
    return {
        ProfileType.BEAR:     m.bear_weight,
        ProfileType.SIDEWAYS: m.sideways_weight,
        ProfileType.BULL:     m.bull_weight,
        ProfileType.MOONSHOT: m.moonshot_weight,
    }


def sample_profile(
    rng: np.random.Generator,
    market: Optional[MarketConfig] = None,
) -> ProfileType:
    """Draw an archetype with one uniform draw against cumulative weights.

    Boundaries are checked in ``PROFILE_SAMPLING_ORDER``; the first one the
    draw falls under wins. Floating-point residue past the last boundary
    falls through to the final archetype.
    """
    weights = profile_weights(market)
    r = rng.random()
    for profile in PROFILE_SAMPLING_ORDER[:-1]:
        w = weights[profile]
        if r < w:
            return profile
        r -= w
    return PROFILE_SAMPLING_ORDER[-1]


def get_base_range(profile: ProfileType) -> tuple[float, float]:
    """Base hourly multiplicative range for ``profile``."""
    return BASE_RT_RANGES[profile]


def get_range_with_jitter(
    profile: ProfileType,
    rng: np.random.Generator,
    jitter: Optional[float] = None,
    market: Optional[MarketConfig] = None,
) -> tuple[float, float]:
    """Base range with each endpoint independently perturbed by ±``jitter``.

    Both ends are clamped to ``[global_rt_min, global_rt_max]``; if the
    perturbation inverted their order they are swapped.

    Returns:
        ``(rt_low, rt_high)`` with ``rt_low <= rt_high``.
    """
    m = market or _DEFAULT_MARKET
    j = m.rt_jitter if jitter is None else jitter
    base_low, base_high = get_base_range(profile)

    low_jitter = rng.random() * j * 2.0 - j
    high_jitter = rng.random() * j * 2.0 - j

    low = _clamp(base_low + low_jitter, m.global_rt_min, m.global_rt_max)
    high = _clamp(base_high + high_jitter, m.global_rt_min, m.global_rt_max)
    if high < low:
        low, high = high, low
    return low, high


def _clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))
