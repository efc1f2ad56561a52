"""
Holding ledger: per-instrument positions and trade history.

The ledger records positions only. Cash lives with the caller, so
``record_buy`` assumes affordability was already checked by the engine.
``try_sell`` is the only validating entry point: it refuses to sell more
than is held and leaves state untouched on refusal.
"""

from __future__ import annotations

import logging
from typing import Optional

from market_sim.models.ledger import Holding, Trade

logger = logging.getLogger(__name__)


class HoldingLedger:
    """Holdings keyed by instrument id plus an append-only trade history."""

    def __init__(self) -> None:
        self._holdings: dict[str, Holding] = {}
        self._history: list[Trade] = []

    @property
    def holdings(self) -> dict[str, Holding]:
        return dict(self._holdings)

    @property
    def history(self) -> list[Trade]:
        return list(self._history)

    def get_holding(self, instrument_id: str) -> Optional[Holding]:
        return self._holdings.get(instrument_id)

    def quantity_of(self, instrument_id: str) -> int:
        h = self._holdings.get(instrument_id)
        return h.quantity if h is not None else 0

    def record_buy(
        self,
        instrument_id: str,
        quantity: int,
        price_cents: int,
        hour: int,
    ) -> Optional[Trade]:
        """Add ``quantity`` units at ``price_cents`` to the position.

        The average cost is recomputed with integer division over the
        combined position. Non-positive quantities are ignored.

        Returns:
            The recorded ``Trade``, or ``None`` when ``quantity <= 0``.
        """
        if quantity <= 0:
            return None

        h = self._holdings.get(instrument_id)
        if h is None:
            h = Holding(instrument_id=instrument_id)
            self._holdings[instrument_id] = h

        total_shares = h.quantity + quantity
        total_cost = h.avg_cost_cents * h.quantity + price_cents * quantity
        h.quantity = total_shares
        h.avg_cost_cents = total_cost // total_shares

        trade = Trade(
            hour=hour,
            instrument_id=instrument_id,
            direction="buy",
            quantity=quantity,
            price_cents=price_cents,
            cash_delta_cents=-(quantity * price_cents),
        )
        self._history.append(trade)
        return trade

    def try_sell(
        self,
        instrument_id: str,
        quantity: int,
        price_cents: int,
        hour: int,
    ) -> Optional[Trade]:
        """Remove ``quantity`` units from the position if enough are held.

        Average cost is unchanged by a sale.

        Returns:
            The recorded ``Trade``, or ``None`` (no mutation) when the
            quantity is non-positive or exceeds the held quantity.
        """
        if quantity <= 0:
            return None
        h = self._holdings.get(instrument_id)
        if h is None or quantity > h.quantity:
            return None

        h.quantity -= quantity
        trade = Trade(
            hour=hour,
            instrument_id=instrument_id,
            direction="sell",
            quantity=quantity,
            price_cents=price_cents,
            cash_delta_cents=quantity * price_cents,
        )
        self._history.append(trade)
        return trade
