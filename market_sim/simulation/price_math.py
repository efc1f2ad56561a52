"""
Pure numeric core of the price simulation.

All prices are integer minor units (cents). Real-valued intermediate
results are clamped to ``[min_price_cents, max_price_cents]`` *before*
conversion to ``int``, and rounding is half-away-from-zero (not Python's
banker's ``round()``).

Hourly update
-------------
    factor = rt * (1 + sd)
    next   = round_half_away(current / 100 * factor * 100)

If rounding swallows the move (``next == current``) while ``factor`` is
not 1.0, the price is forced one cent in the implied direction. Two
literal thresholds govern this: a move is "clear" beyond
``STAGNATION_THRESHOLD`` and still forced beyond ``STAGNATION_EPSILON``.

Band bounce
-----------
A price past a band edge is stored one cent inside that edge, never on it,
so an instrument pinned against its band still shows a non-zero move.
"""

from __future__ import annotations

import math
from typing import Iterable, Optional

import numpy as np

from market_sim.config import MarketConfig
from market_sim.models.effects import DailySectorEffects

_DEFAULT_MARKET = MarketConfig()

STAGNATION_THRESHOLD = 0.001
STAGNATION_EPSILON = 0.0001


# ── Conversions ───────────────────────────────────────────────────────────────

def round_half_away(value: float) -> int:
    """Round to the nearest integer, ties away from zero."""
    if value >= 0:
        return int(math.floor(value + 0.5))
    return -int(math.floor(-value + 0.5))


def clamp_to_config_bounds(cents: int, market: Optional[MarketConfig] = None) -> int:
    """Clamp an integer price to ``[min_price_cents, max_price_cents]``."""
    m = market or _DEFAULT_MARKET
    return max(m.min_price_cents, min(m.max_price_cents, cents))


def price_to_minor(display_price: float, market: Optional[MarketConfig] = None) -> int:
    """Convert a display-unit price to clamped integer minor units."""
    m = market or _DEFAULT_MARKET
    raw_cents = display_price * 100.0
    if raw_cents <= m.min_price_cents:
        return m.min_price_cents
    if raw_cents >= m.max_price_cents:
        return m.max_price_cents
    return clamp_to_config_bounds(round_half_away(raw_cents), m)


def minor_to_display(cents: int, market: Optional[MarketConfig] = None) -> float:
    """Convert clamped minor units to a display-unit price."""
    return clamp_to_config_bounds(cents, market) / 100.0


# ── Bands ─────────────────────────────────────────────────────────────────────

def compute_lower_band(initial_cents: int, market: Optional[MarketConfig] = None) -> int:
    m = market or _DEFAULT_MARKET
    lower = round_half_away(initial_cents * m.lower_band_multiplier)
    return clamp_to_config_bounds(lower, m)


def compute_upper_band(initial_cents: int, market: Optional[MarketConfig] = None) -> int:
    m = market or _DEFAULT_MARKET
    upper = round_half_away(initial_cents * m.upper_band_multiplier)
    return clamp_to_config_bounds(upper, m)


def clamp_to_band(price_cents: int, lower_band: int, upper_band: int) -> int:
    """Bounce a price that left the band back to one cent inside the edge.

    Below the band → ``lower_band + 1`` (capped at ``upper_band``).
    Above the band → ``upper_band - 1`` (floored at ``lower_band``).
    In-band prices are returned unchanged.
    """
    if price_cents < lower_band:
        return min(lower_band + 1, upper_band)
    if price_cents > upper_band:
        return max(upper_band - 1, lower_band)
    return price_cents


# ── Sector effects ────────────────────────────────────────────────────────────

def clamp_sector_sum(total: float, market: Optional[MarketConfig] = None) -> float:
    """Floor the sector sum so ``1 + sd`` stays positive."""
    m = market or _DEFAULT_MARKET
    return max(total, m.sector_sum_min_clamp)


def compute_sector_sum(
    tags: Iterable[str],
    day_effects: DailySectorEffects,
    market: Optional[MarketConfig] = None,
) -> float:
    """Sum of today's effects over ``tags``, floored by ``clamp_sector_sum``."""
    total = 0.0
    for tag in tags:
        total += day_effects.effect_for(tag)
    return clamp_sector_sum(total, market)


# ── Hourly update ─────────────────────────────────────────────────────────────

def apply_hourly_update(
    current_cents: int,
    rt: float,
    sd: float,
    market: Optional[MarketConfig] = None,
) -> int:
    """Apply one hour of multiplicative movement.

    Args:
        current_cents: Price at hour ``t``.
        rt:            Hourly multiplicative factor.
        sd:            Clamped sector-effect sum for the day.
        market:        Price caps; defaults to ``MarketConfig()``.

    Returns:
        Price at hour ``t + 1`` within ``[min_price_cents, max_price_cents]``.
        Band bounce is applied separately by ``clamp_to_band``.
    """
    m = market or _DEFAULT_MARKET
    if current_cents < m.min_price_cents:
        current_cents = m.min_price_cents

    factor = rt * (1.0 + sd)
    raw_cents = current_cents / 100.0 * factor * 100.0
    if raw_cents <= m.min_price_cents:
        return m.min_price_cents
    if raw_cents >= m.max_price_cents:
        return m.max_price_cents

    next_cents = clamp_to_config_bounds(round_half_away(raw_cents), m)

    if next_cents == current_cents:
        if factor > 1.0 + STAGNATION_THRESHOLD:
            next_cents = current_cents + 1
        elif factor < 1.0 - STAGNATION_THRESHOLD:
            next_cents = current_cents - 1
        elif abs(factor - 1.0) > STAGNATION_EPSILON:
            next_cents = current_cents + 1 if factor > 1.0 else current_cents - 1

    return clamp_to_config_bounds(next_cents, m)


def apply_day_boundary_effect(
    price_cents: int,
    day_sum: float,
    market: Optional[MarketConfig] = None,
) -> int:
    """Fold a full day's sector sum into a price as a one-time multiplier."""
    return price_to_minor(price_cents / 100.0 * (1.0 + day_sum), market)


def sample_rt(
    rng: np.random.Generator,
    rt_low: float,
    rt_high: float,
    market: Optional[MarketConfig] = None,
) -> float:
    """Draw one hour's multiplicative factor.

    Normal with mean at the range midpoint and σ = range / 6, clamped back
    into ``[rt_low, rt_high]``. With ``spike_probability`` an extra uniform
    shock in ``±spike_magnitude`` is added and the result clamped to
    ``[spike_rt_min, spike_rt_max]``.

    Draw order per call: one normal, one uniform, and one more uniform only
    when the spike fires.
    """
    m = market or _DEFAULT_MARKET
    mean = (rt_low + rt_high) / 2.0
    std_dev = (rt_high - rt_low) / 6.0
    rt = float(rng.normal(mean, std_dev))
    rt = max(rt_low, min(rt_high, rt))

    if rng.random() < m.spike_probability:
        spike = rng.random() * m.spike_magnitude * 2.0 - m.spike_magnitude
        rt = max(m.spike_rt_min, min(m.spike_rt_max, rt + spike))

    return rt
