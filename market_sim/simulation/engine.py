"""
Simulation engine: owns the session, the per-instrument random streams,
and the price series.

Lifecycle
---------
1. ``MarketEngine(config)`` builds the session deterministically from
   ``config.session.seed``:

       candidates = generate_candidates(seed)
       stocks     = pick_session_stocks(candidates, n, seed + 1)
       effects    = generate_daily_effects(seed + 2)

   then seeds every series at hour 0 and pre-generates the base horizon
   (``num_days * hours_per_day`` hours).

2. ``advance_to(hour)`` extends every series up to ``hour``, drawing from
   the *same* per-instrument stream used for the base horizon. A series
   extended in one call or in many small calls is byte-identical.

Each instrument's stream is ``make_rng(instrument_seed(seed, id))`` with
an FNV-1a hash of the id, so streams are independent of one another and
of iteration order.

The engine is single-writer: ``advance_to`` must finish before prices are
read or trades issued for the affected hours.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

import numpy as np

from market_sim.config import AppConfig, MarketConfig, SectorEffectMode
from market_sim.models.effects import DailySectorEffects
from market_sim.models.instrument import Instrument
from market_sim.models.ledger import TradeResult
from market_sim.models.prediction import PredictionResult
from market_sim.recommendations.predictor import predict
from market_sim.simulation.effects import DailyEffectsTable, generate_daily_effects
from market_sim.simulation.library import generate_candidates, pick_session_stocks
from market_sim.simulation.price_math import (
    apply_day_boundary_effect,
    apply_hourly_update,
    clamp_to_band,
    compute_lower_band,
    compute_sector_sum,
    compute_upper_band,
    sample_rt,
)
from market_sim.trading.ledger import HoldingLedger
from market_sim.utils.hashing import instrument_seed, make_rng

logger = logging.getLogger(__name__)


class MissingSeedError(ValueError):
    """Raised when the engine is built without a session seed."""


@dataclass
class MarketSession:
    """All simulated state for one game session.

    Attributes:
        seed:         Session seed.
        instruments:  Selected instruments (own their series).
        effects:      Base cycle of daily sector effects.
        current_hour: Absolute hour index of the last completed advance.
    """

    seed: int
    instruments: list[Instrument]
    effects: DailyEffectsTable
    current_hour: int = 0
    _by_id: dict[str, Instrument] = field(default_factory=dict, repr=False)

    def __post_init__(self) -> None:
        self._by_id = {inst.id: inst for inst in self.instruments}

    def get_instrument(self, instrument_id: str) -> Optional[Instrument]:
        return self._by_id.get(instrument_id)

    def get_effects_for_day(self, day_index: int) -> DailySectorEffects:
        return self.effects.for_day(day_index)


class MarketEngine:
    """Price simulation, price queries and trades for one session.

    Args:
        config: Application config. ``config.session.seed`` is required.
        ledger: Holding ledger; a fresh one is created when omitted.

    Raises:
        MissingSeedError: If no seed is configured.
    """

    def __init__(self, config: AppConfig, ledger: Optional[HoldingLedger] = None) -> None:
        seed = config.session.seed
        if seed is None:
            raise MissingSeedError(
                "No session seed configured. Set [session].seed or MARKET_SIM_SEED."
            )

        self._config = config
        self._market: MarketConfig = config.market
        self.ledger = ledger or HoldingLedger()

        candidates = generate_candidates(
            seed, config.session.candidate_stock_count, self._market
        )
        stocks = pick_session_stocks(candidates, config.session.session_stock_count, seed + 1)
        effects = DailyEffectsTable(generate_daily_effects(seed + 2, self._market.num_days))
        self.session = MarketSession(seed=seed, instruments=stocks, effects=effects)

        self._rngs: dict[str, np.random.Generator] = {}
        for inst in self.session.instruments:
            self._seed_series(inst)

        for inst in self.session.instruments:
            self._extend(inst, self._market.total_hours)

        logger.info(
            "Market initialized: seed=%d instruments=%d horizon=%dh mode=%s",
            seed,
            len(self.session.instruments),
            self._market.total_hours,
            self._market.sector_effect_mode.value,
        )

    @classmethod
    def initialize(cls, seed: int, config: Optional[AppConfig] = None) -> "MarketEngine":
        """Build an engine for ``seed`` using ``config`` (or defaults) for everything else."""
        base = config or AppConfig()
        session_cfg = base.session.model_copy(update={"seed": seed})
        return cls(base.model_copy(update={"session": session_cfg}))

    # ── Time ──────────────────────────────────────────────────────────────────

    @property
    def current_hour(self) -> int:
        return self.session.current_hour

    @property
    def current_day(self) -> int:
        """1-based day index of the current hour."""
        return self.session.current_hour // self._market.hours_per_day + 1

    @property
    def hour_of_day(self) -> int:
        return self.session.current_hour % self._market.hours_per_day

    def advance_to(self, hour: int) -> None:
        """Extend every series through ``hour`` and make it the current hour.

        Raises:
            ValueError: If ``hour`` is negative or earlier than the current hour.
        """
        if hour < 0:
            raise ValueError(f"hour must be >= 0, got {hour}.")
        if hour < self.session.current_hour:
            raise ValueError(
                f"Cannot move time backwards: current_hour={self.session.current_hour}, "
                f"requested={hour}."
            )
        for inst in self.session.instruments:
            before = inst.series_length
            self._extend(inst, hour)
            if inst.series_length > before:
                logger.debug(
                    "Extended %s series %d → %d", inst.id, before, inst.series_length
                )
        self.session.current_hour = hour

    def on_hour_advanced(self, total_hours: int) -> None:
        """Clock observer callback."""
        self.advance_to(total_hours)

    # ── Prices ────────────────────────────────────────────────────────────────

    def get_instrument(self, instrument_id: str) -> Optional[Instrument]:
        return self.session.get_instrument(instrument_id)

    def get_price(self, instrument_id: str) -> Optional[int]:
        """Price at the current hour in minor units, or ``None`` if unknown."""
        inst = self.session.get_instrument(instrument_id)
        if inst is None or not inst.price_series_cents:
            return None
        idx = max(0, min(self.session.current_hour, inst.series_length - 1))
        return inst.price_series_cents[idx]

    def get_prices(self) -> dict[str, int]:
        """Current price for every instrument."""
        prices: dict[str, int] = {}
        for inst in self.session.instruments:
            price = self.get_price(inst.id)
            if price is not None:
                prices[inst.id] = price
        return prices

    # ── Trading ───────────────────────────────────────────────────────────────

    def buy(self, instrument_id: str, quantity: int, external_balance_cents: int) -> TradeResult:
        """Buy against a caller-owned balance.

        On success the ledger is updated and ``cash_delta_cents`` (negative)
        is the amount the caller must debit. On failure nothing changes.
        """
        price = self.get_price(instrument_id)
        if price is None:
            logger.warning("Buy rejected: unknown instrument %s", instrument_id)
            return TradeResult(ok=False, reason=f"Unknown instrument '{instrument_id}'.")
        if quantity <= 0:
            return TradeResult(ok=False, price_cents=price, reason="Quantity must be positive.")

        cost = quantity * price
        if external_balance_cents < cost:
            logger.warning(
                "Buy rejected: insufficient cash for %s x%d (need %d, have %d)",
                instrument_id, quantity, cost, external_balance_cents,
            )
            return TradeResult(
                ok=False,
                price_cents=price,
                reason=f"Insufficient cash: need {cost}, have {external_balance_cents}.",
            )

        trade = self.ledger.record_buy(instrument_id, quantity, price, self.session.current_hour)
        logger.info(
            "Bought %s x%d @ %d (cost %d)", instrument_id, quantity, price, cost,
            extra={"instrument_id": instrument_id, "hour": self.session.current_hour},
        )
        return TradeResult(ok=True, cash_delta_cents=trade.cash_delta_cents, price_cents=price)

    def sell(self, instrument_id: str, quantity: int) -> TradeResult:
        """Sell from the ledger; ``cash_delta_cents`` (positive) is the proceeds."""
        price = self.get_price(instrument_id)
        if price is None:
            logger.warning("Sell rejected: unknown instrument %s", instrument_id)
            return TradeResult(ok=False, reason=f"Unknown instrument '{instrument_id}'.")
        if quantity <= 0:
            return TradeResult(ok=False, price_cents=price, reason="Quantity must be positive.")

        trade = self.ledger.try_sell(instrument_id, quantity, price, self.session.current_hour)
        if trade is None:
            held = self.ledger.quantity_of(instrument_id)
            logger.warning(
                "Sell rejected: %s x%d exceeds holding of %d", instrument_id, quantity, held
            )
            return TradeResult(
                ok=False,
                price_cents=price,
                reason=f"Insufficient holding: want {quantity}, have {held}.",
            )

        logger.info(
            "Sold %s x%d @ %d (proceeds %d)",
            instrument_id, quantity, price, trade.cash_delta_cents,
            extra={"instrument_id": instrument_id, "hour": self.session.current_hour},
        )
        return TradeResult(ok=True, cash_delta_cents=trade.cash_delta_cents, price_cents=price)

    def portfolio_value(self) -> int:
        """Market value of all holdings at the current hour (minor units)."""
        total = 0
        for holding in self.ledger.holdings.values():
            price = self.get_price(holding.instrument_id)
            if price is not None:
                total += holding.quantity * price
        return total

    # ── Analytics ─────────────────────────────────────────────────────────────

    def predict(
        self,
        instrument_id: str,
        day: int,
        hour: int,
        sector_buff_strength: Optional[float] = None,
    ) -> Optional[PredictionResult]:
        """Predict for one instrument; ``None`` when the id is unknown."""
        inst = self.session.get_instrument(instrument_id)
        if inst is None:
            return None
        return predict(
            inst, day, hour, self.session.effects, sector_buff_strength, self._market
        )

    def predict_all(self, day: int, hour: int) -> list[PredictionResult]:
        """Predictions for every session instrument at (``day``, ``hour``)."""
        return [
            predict(inst, day, hour, self.session.effects, None, self._market)
            for inst in self.session.instruments
        ]

    # ── Series generation ─────────────────────────────────────────────────────

    def _seed_series(self, inst: Instrument) -> None:
        m = self._market
        self._rngs[inst.id] = make_rng(instrument_seed(self.session.seed, inst.id))
        initial = max(inst.initial_price_cents, m.min_price_cents)
        inst.price_series_cents.clear()
        inst.price_series_cents.append(initial)
        inst.lower_band_cents = compute_lower_band(initial, m)
        inst.upper_band_cents = compute_upper_band(initial, m)

    def _extend(self, inst: Instrument, target_hour: int) -> None:
        """Append hourly prices until the series covers ``target_hour``."""
        while inst.series_length <= target_hour:
            inst.price_series_cents.append(self._next_price(inst))

    def _next_price(self, inst: Instrument) -> int:
        m = self._market
        rng = self._rngs[inst.id]
        t = inst.series_length - 1
        day_index = t // m.hours_per_day + 1
        day_effects = self.session.get_effects_for_day(day_index)
        current = inst.price_series_cents[t]

        rt = sample_rt(rng, inst.rt_low, inst.rt_high, m)

        if m.sector_effect_mode == SectorEffectMode.HOURLY:
            sd = compute_sector_sum(inst.tags, day_effects, m)
            nxt = apply_hourly_update(current, rt, sd, m)
        else:
            sd = 0.0
            nxt = apply_hourly_update(current, rt, 0.0, m)
            next_day_index = (t + 1) // m.hours_per_day + 1
            if next_day_index != day_index:
                day_sum = compute_sector_sum(inst.tags, day_effects, m)
                nxt = apply_day_boundary_effect(nxt, day_sum, m)

        bounded = clamp_to_band(nxt, inst.lower_band_cents, inst.upper_band_cents)
        if bounded == current and t > 0:
            logger.debug(
                "Price unchanged: %s hour=%d price=%d factor=%.6f computed=%d band=[%d, %d]",
                inst.id, t, current, rt * (1.0 + sd), nxt,
                inst.lower_band_cents, inst.upper_band_cents,
            )
        return bounded
