"""
Prediction models — the per-instrument intraday analysis snapshot.

``PredictionResult`` is derived fresh on every query from an instrument's
series slice for the current day; it is never persisted and never mutates
the instrument. Percentages (``max_potential_gain``, ``safe_expected_gain``,
``distance_to_limit_pct``) are expressed in percent, e.g. ``12.5`` = 12.5%.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator


class TrendType(StrEnum):
    """Direction classification of the intraday slice."""

    STRONG_DOWN = "strong_down"
    DOWN = "down"
    FLAT = "flat"
    UP = "up"
    STRONG_UP = "strong_up"


class PriceStatus(StrEnum):
    """Where the instrument sits relative to its upper band and trend."""

    EARLY_STAGE = "early_stage"
    """Rising with more than 30% room to the band — best buy window."""

    RISING = "rising"
    """Rising, still buyable."""

    NEAR_LIMIT = "near_limit"
    """Within 10% of the upper band — buy with caution."""

    LIMIT_UP = "limit_up"
    """Within 2% of the upper band — no room left."""

    FALLING = "falling"
    """Falling — avoid."""

    STAGNANT = "stagnant"
    """Flat or no usable data — wait."""


class PredictionResult(BaseModel):
    """Trend/status classification and forward projection for one instrument.

    Attributes:
        instrument_id: Instrument analysed.
        current_day: 1-based day index of the query.
        current_hour: Hour within the day (0-based).
        current_price_cents: Price at the query hour (0 for degenerate results).
        limit_up_price_cents: Instrument upper band (0 for degenerate results).
        trend: Trend classification of the day slice.
        status: Price status classification.
        status_reason: Human-readable explanation of ``status``.
        distance_to_limit_pct: Distance to the upper band as % of the band.
        will_hit_limit_up: Whether the band is (or is projected to be) hit today.
        predicted_limit_up_hour: Hour within the day of the (projected) hit.
        max_potential_gain: % gain from current price to upper band.
        safe_expected_gain: Confidence-scaled gain (%).
        risk_level: Risk score in [0, 1].
        best_buy_window: Suggested buy window text.
        best_sell_window: Suggested sell window text.
        remaining_good_hours: Hours left in the buy window.
    """

    model_config = ConfigDict(frozen=True)

    instrument_id: str
    current_day: int
    current_hour: int
    current_price_cents: int = 0
    limit_up_price_cents: int = 0
    trend: TrendType = TrendType.FLAT
    status: PriceStatus = PriceStatus.STAGNANT
    status_reason: str = ""
    distance_to_limit_pct: float = 0.0
    will_hit_limit_up: bool = False
    predicted_limit_up_hour: Optional[int] = None
    max_potential_gain: float = 0.0
    safe_expected_gain: float = 0.0
    risk_level: float = 1.0
    best_buy_window: str = ""
    best_sell_window: str = ""
    remaining_good_hours: int = 0

    @field_validator("risk_level")
    @classmethod
    def validate_risk_range(cls, v: float) -> float:
        if not 0.0 <= v <= 1.0:
            raise ValueError(f"risk_level must be in [0.0, 1.0], got {v}.")
        return v

    @field_validator("remaining_good_hours")
    @classmethod
    def validate_hours_non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError(f"remaining_good_hours must be >= 0, got {v}.")
        return v

    @property
    def current_price(self) -> float:
        """Current price in display units."""
        return self.current_price_cents / 100

    @property
    def limit_up_price(self) -> float:
        """Upper band in display units."""
        return self.limit_up_price_cents / 100
