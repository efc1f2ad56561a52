"""
Holding ledger models.

``Holding`` is mutable (quantity and average cost change on each trade).
``Trade`` and ``TradeResult`` are frozen: a trade, once recorded, is an
immutable ledger entry.
"""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, field_validator

TradeDirection = Literal["buy", "sell"]


class Holding(BaseModel):
    """Position in one instrument.

    Attributes:
        instrument_id: Instrument held.
        quantity: Units currently held (never negative).
        avg_cost_cents: Running average cost per unit, integer minor units.
    """

    model_config = ConfigDict(frozen=False)

    instrument_id: str
    quantity: int = 0
    avg_cost_cents: int = 0

    @field_validator("quantity", "avg_cost_cents")
    @classmethod
    def validate_non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("Holding quantity and cost must be non-negative.")
        return v


class Trade(BaseModel):
    """Immutable ledger entry.

    Attributes:
        hour: Absolute hour index the trade executed at.
        instrument_id: Instrument traded.
        direction: ``"buy"`` or ``"sell"``.
        quantity: Units traded (positive).
        price_cents: Unit price in minor units.
        cash_delta_cents: Signed cash change: negative for buys, positive for sells.
    """

    model_config = ConfigDict(frozen=True)

    hour: int
    instrument_id: str
    direction: TradeDirection
    quantity: int
    price_cents: int
    cash_delta_cents: int

    @field_validator("quantity")
    @classmethod
    def validate_quantity(cls, v: int) -> int:
        if v <= 0:
            raise ValueError(f"Trade quantity must be positive, got {v}.")
        return v


class TradeResult(BaseModel):
    """Outcome of a buy/sell request against the engine.

    ``cash_delta_cents`` is what the caller must apply to its own balance:
    negative cost for a buy, positive proceeds for a sell, 0 on failure.
    """

    model_config = ConfigDict(frozen=True)

    ok: bool
    cash_delta_cents: int = 0
    price_cents: Optional[int] = None
    reason: Optional[str] = None

    @property
    def proceeds_cents(self) -> int:
        return max(self.cash_delta_cents, 0)
