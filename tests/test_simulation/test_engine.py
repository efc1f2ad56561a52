"""
Tests for market_sim/simulation/engine.py.

What we test
------------
Initialization:
  - Missing seed raises MissingSeedError.
  - Base horizon is pre-generated for every instrument.
  - Bands come from the initial price.

Determinism and extension:
  - Same seed → byte-identical series.
  - Extending in one call or in many steps gives identical series.
  - Extension past the base cycle reuses effects cyclically.

Sector effect modes:
  - Daily-once: intraday hours are pure rt moves; the day sum is folded in
    once at the hour that crosses into the next day.
  - Hourly and daily-once diverge for instruments with a non-zero sum.

Series invariants:
  - Every price within global caps and within the band.
  - Consecutive prices differ whenever the hourly factor implies a move.

Trading:
  - Buy with insufficient balance fails without mutation.
  - Buy / sell update the ledger and report cash deltas.
  - Selling more than held fails without mutation.
  - Unknown ids return None / failed results.

Time:
  - advance_to rejects negative or backward hours.
"""

from __future__ import annotations

import pytest

from market_sim.config import AppConfig, MarketConfig, SectorEffectMode, SessionConfig
from market_sim.simulation.engine import MarketEngine, MissingSeedError
from market_sim.simulation.price_math import (
    apply_day_boundary_effect,
    apply_hourly_update,
    clamp_to_band,
    compute_lower_band,
    compute_sector_sum,
    compute_upper_band,
    sample_rt,
)
from market_sim.utils.hashing import instrument_seed, make_rng

TEST_SEED = 12345


def _small_config(seed: int = TEST_SEED, **market) -> AppConfig:
    return AppConfig(
        session=SessionConfig(seed=seed, session_stock_count=5),
        market=MarketConfig(num_days=3, **market),
    )


class TestInitialization:
    def test_missing_seed(self):
        with pytest.raises(MissingSeedError):
            MarketEngine(AppConfig())

    def test_missing_seed_is_value_error(self):
        assert issubclass(MissingSeedError, ValueError)

    def test_base_horizon_generated(self, engine):
        total = engine._market.total_hours
        assert len(engine.session.instruments) == 20
        for inst in engine.session.instruments:
            assert inst.series_length == total + 1
        assert engine.current_hour == 0

    def test_bands_from_initial_price(self, engine):
        for inst in engine.session.instruments:
            initial = inst.price_series_cents[0]
            assert initial == max(inst.initial_price_cents, 100)
            assert inst.lower_band_cents == compute_lower_band(initial)
            assert inst.upper_band_cents == compute_upper_band(initial)

    def test_initialize_classmethod(self):
        eng = MarketEngine.initialize(99, _small_config(seed=1))
        assert eng.session.seed == 99


class TestDeterminism:
    def test_same_seed_same_series(self):
        a = MarketEngine(_small_config())
        b = MarketEngine(_small_config())
        assert [i.price_series_cents for i in a.session.instruments] == [
            i.price_series_cents for i in b.session.instruments
        ]

    def test_different_seed_differs(self):
        a = MarketEngine(_small_config(seed=1))
        b = MarketEngine(_small_config(seed=2))
        assert [i.price_series_cents for i in a.session.instruments] != [
            i.price_series_cents for i in b.session.instruments
        ]

    def test_extension_independent_of_step_size(self):
        one_shot = MarketEngine(_small_config())
        stepped = MarketEngine(_small_config())
        one_shot.advance_to(200)
        for hour in range(0, 201, 7):
            stepped.advance_to(hour)
        stepped.advance_to(200)
        assert [i.price_series_cents for i in one_shot.session.instruments] == [
            i.price_series_cents for i in stepped.session.instruments
        ]

    def test_extension_keeps_existing_prefix(self):
        eng = MarketEngine(_small_config())
        before = [list(i.price_series_cents) for i in eng.session.instruments]
        eng.advance_to(500)
        for prefix, inst in zip(before, eng.session.instruments):
            assert inst.price_series_cents[: len(prefix)] == prefix
            assert inst.series_length == 501

    def test_daily_once_mode_deterministic(self):
        cfg = _small_config(sector_effect_mode=SectorEffectMode.DAILY_ONCE)
        a = MarketEngine(cfg)
        b = MarketEngine(cfg)
        assert [i.price_series_cents for i in a.session.instruments] == [
            i.price_series_cents for i in b.session.instruments
        ]


class TestSectorEffectModes:
    """Daily-once folds the day's sector sum in at the day boundary only."""

    @staticmethod
    def _rebuild_daily_once(eng: MarketEngine, inst, hours: int) -> list[int]:
        m = eng._market
        rng = make_rng(instrument_seed(eng.session.seed, inst.id))
        series = [inst.price_series_cents[0]]
        for t in range(hours):
            rt = sample_rt(rng, inst.rt_low, inst.rt_high, m)
            nxt = apply_hourly_update(series[t], rt, 0.0, m)
            if (t + 1) % m.hours_per_day == 0:
                day_effects = eng.session.get_effects_for_day(t // m.hours_per_day + 1)
                day_sum = compute_sector_sum(inst.tags, day_effects, m)
                nxt = apply_day_boundary_effect(nxt, day_sum, m)
            series.append(clamp_to_band(nxt, inst.lower_band_cents, inst.upper_band_cents))
        return series

    def test_daily_once_matches_pure_rt_then_boundary(self):
        eng = MarketEngine(_small_config(sector_effect_mode=SectorEffectMode.DAILY_ONCE))
        hours = eng._market.total_hours
        for inst in eng.session.instruments:
            assert inst.price_series_cents == self._rebuild_daily_once(eng, inst, hours)

    def test_intraday_hours_ignore_sector_effects(self):
        eng = MarketEngine(_small_config(sector_effect_mode=SectorEffectMode.DAILY_ONCE))
        m = eng._market
        for inst in eng.session.instruments:
            rng = make_rng(instrument_seed(eng.session.seed, inst.id))
            series = inst.price_series_cents
            for t in range(m.hours_per_day - 1):
                rt = sample_rt(rng, inst.rt_low, inst.rt_high, m)
                expected = clamp_to_band(
                    apply_hourly_update(series[t], rt, 0.0, m),
                    inst.lower_band_cents,
                    inst.upper_band_cents,
                )
                assert series[t + 1] == expected

    def test_boundary_hour_carries_day_multiplier(self):
        eng = MarketEngine(_small_config(sector_effect_mode=SectorEffectMode.DAILY_ONCE))
        m = eng._market
        last = m.hours_per_day - 1
        checked = 0
        for inst in eng.session.instruments:
            day_sum = compute_sector_sum(inst.tags, eng.session.get_effects_for_day(1), m)
            if day_sum == 0.0:
                continue
            rng = make_rng(instrument_seed(eng.session.seed, inst.id))
            for _ in range(last):
                sample_rt(rng, inst.rt_low, inst.rt_high, m)
            rt = sample_rt(rng, inst.rt_low, inst.rt_high, m)
            series = inst.price_series_cents
            plain = apply_hourly_update(series[last], rt, 0.0, m)
            boosted = apply_day_boundary_effect(plain, day_sum, m)
            assert series[last + 1] == clamp_to_band(
                boosted, inst.lower_band_cents, inst.upper_band_cents
            )
            checked += 1
        assert checked > 0

    def test_modes_diverge_with_non_zero_sector_sum(self):
        hourly = MarketEngine(_small_config(sector_effect_mode=SectorEffectMode.HOURLY))
        daily = MarketEngine(_small_config(sector_effect_mode=SectorEffectMode.DAILY_ONCE))
        m = hourly._market
        diverged = 0
        for a, b in zip(hourly.session.instruments, daily.session.instruments):
            assert a.id == b.id
            assert a.price_series_cents[0] == b.price_series_cents[0]
            if compute_sector_sum(a.tags, hourly.session.get_effects_for_day(1), m) != 0.0:
                assert a.price_series_cents != b.price_series_cents
                diverged += 1
        assert diverged > 0


class TestSeriesInvariants:
    @pytest.mark.parametrize("mode", list(SectorEffectMode))
    def test_prices_within_caps_and_band(self, mode):
        eng = MarketEngine(_small_config(sector_effect_mode=mode))
        eng.advance_to(300)
        market = MarketConfig()
        for inst in eng.session.instruments:
            for price in inst.price_series_cents:
                assert market.min_price_cents <= price <= market.max_price_cents
                assert inst.lower_band_cents <= price <= inst.upper_band_cents

    def test_first_hour_moves(self, engine):
        moved = sum(
            1 for inst in engine.session.instruments
            if inst.price_series_cents[1] != inst.price_series_cents[0]
        )
        assert moved >= len(engine.session.instruments) - 2

    def test_effects_cycle(self, engine):
        cycle = engine.session.effects.cycle_length
        assert engine.session.get_effects_for_day(1) == engine.session.get_effects_for_day(
            1 + cycle
        )


class TestTrading:
    def _first_id(self, engine) -> str:
        return engine.session.instruments[0].id

    def test_buy_insufficient_balance(self, engine):
        sid = self._first_id(engine)
        price = engine.get_price(sid)
        result = engine.buy(sid, 10, external_balance_cents=price * 10 - 1)
        assert not result.ok
        assert result.cash_delta_cents == 0
        assert engine.ledger.quantity_of(sid) == 0
        assert engine.ledger.history == []

    def test_buy_then_sell(self, engine):
        sid = self._first_id(engine)
        price = engine.get_price(sid)
        bought = engine.buy(sid, 10, external_balance_cents=price * 10)
        assert bought.ok
        assert bought.cash_delta_cents == -price * 10
        assert engine.ledger.quantity_of(sid) == 10
        assert engine.portfolio_value() == price * 10

        engine.advance_to(5)
        new_price = engine.get_price(sid)
        sold = engine.sell(sid, 4)
        assert sold.ok
        assert sold.proceeds_cents == new_price * 4
        assert engine.ledger.quantity_of(sid) == 6

    def test_oversell_fails(self, engine):
        sid = self._first_id(engine)
        price = engine.get_price(sid)
        engine.buy(sid, 3, external_balance_cents=price * 3)
        result = engine.sell(sid, 4)
        assert not result.ok
        assert result.reason == "Insufficient holding: want 4, have 3."
        assert engine.ledger.quantity_of(sid) == 3

    def test_non_positive_quantity_fails(self, engine):
        sid = self._first_id(engine)
        assert not engine.buy(sid, 0, external_balance_cents=10**9).ok
        sold = engine.sell(sid, -1)
        assert not sold.ok
        assert sold.reason == "Quantity must be positive."

    def test_non_positive_sell_not_logged_as_oversell(self, engine, caplog):
        sid = self._first_id(engine)
        price = engine.get_price(sid)
        engine.buy(sid, 3, external_balance_cents=price * 3)
        with caplog.at_level("WARNING", logger="market_sim.simulation.engine"):
            result = engine.sell(sid, 0)
        assert not result.ok
        assert "exceeds holding" not in caplog.text
        assert engine.ledger.quantity_of(sid) == 3

    def test_unknown_instrument(self, engine):
        assert engine.get_price("S999") is None
        assert engine.get_instrument("S999") is None
        assert not engine.buy("S999", 1, 10**9).ok
        assert not engine.sell("S999", 1).ok
        assert engine.predict("S999", 1, 0) is None


class TestTime:
    def test_price_follows_current_hour(self, engine):
        inst = engine.session.instruments[0]
        engine.advance_to(10)
        assert engine.get_price(inst.id) == inst.price_series_cents[10]
        assert engine.current_day == 1
        assert engine.hour_of_day == 10

    def test_day_index(self, engine):
        engine.advance_to(50)
        assert engine.current_day == 3
        assert engine.hour_of_day == 2

    def test_negative_hour_rejected(self, engine):
        with pytest.raises(ValueError):
            engine.advance_to(-1)

    def test_backward_rejected(self, engine):
        engine.advance_to(10)
        with pytest.raises(ValueError):
            engine.advance_to(9)

    def test_predict_all(self, engine):
        results = engine.predict_all(1, 5)
        assert len(results) == len(engine.session.instruments)
        assert {r.instrument_id for r in results} == {i.id for i in engine.session.instruments}
