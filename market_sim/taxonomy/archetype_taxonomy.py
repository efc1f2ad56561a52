"""
Volatility archetypes for simulated instruments.

An archetype fixes an instrument's behavior class: its base hourly
multiplicative range, its initial-price range, and how the predictor
scales its observed momentum and risk. All archetype branching elsewhere
goes through the lookup tables keyed by ``ProfileType`` so adding a member
without a table entry fails loudly with ``KeyError``.

This module has NO imports from any other ``market_sim`` package.
"""

from enum import StrEnum


class ProfileType(StrEnum):
    """Behavioral volatility class of an instrument."""

    BEAR = "bear"
    """Low-volatility decline: base hourly range below 1.0."""

    SIDEWAYS = "sideways"
    """Stable: base hourly range straddles 1.0."""

    BULL = "bull"
    """Steady rise: base hourly range above 1.0."""

    MOONSHOT = "moonshot"
    """High-volatility rise: widest range, highest center."""


# Sampling order for the weighted categorical draw. The first cumulative
# boundary crossed wins, so this order is fixed.
PROFILE_SAMPLING_ORDER: tuple[ProfileType, ...] = (
    ProfileType.BEAR,
    ProfileType.SIDEWAYS,
    ProfileType.BULL,
    ProfileType.MOONSHOT,
)
