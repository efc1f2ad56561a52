"""
Tests for the pydantic domain models.

What we test
------------
Instrument:
  - Valid construction; 2–3 distinct, known tags enforced.
  - rt_low <= rt_high enforced; positive initial price enforced.
  - without_series() returns an independent copy with an empty series.

DailySectorEffects:
  - Unknown tags and day_index < 1 rejected; effect_for() defaults to 0.0.
  - Frozen.

Trade / TradeResult / Holding:
  - Trade quantity must be positive; TradeResult.proceeds_cents.

PredictionResult:
  - risk_level must be in [0, 1]; display-unit properties.
"""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from market_sim.models.effects import DailySectorEffects
from market_sim.models.instrument import Instrument
from market_sim.models.ledger import Holding, Trade, TradeResult
from market_sim.models.prediction import PredictionResult, PriceStatus
from market_sim.taxonomy.archetype_taxonomy import ProfileType


def _instrument(**overrides) -> Instrument:
    fields = dict(
        id="S001",
        name="Penguin A",
        tags=["gaming", "cloud"],
        profile=ProfileType.BULL,
        rt_low=1.05,
        rt_high=1.12,
        initial_price_cents=1500,
    )
    fields.update(overrides)
    return Instrument(**fields)


class TestInstrument:
    def test_valid(self):
        inst = _instrument()
        assert inst.series_length == 0
        assert inst.last_price_cents is None

    def test_three_tags_allowed(self):
        assert len(_instrument(tags=["gaming", "cloud", "ai"]).tags) == 3

    @pytest.mark.parametrize(
        "tags",
        [["gaming"], ["gaming", "cloud", "ai", "chips"], ["gaming", "gaming"], ["gaming", "moon"]],
    )
    def test_invalid_tags(self, tags):
        with pytest.raises(ValidationError):
            _instrument(tags=tags)

    def test_rt_range_ordered(self):
        with pytest.raises(ValidationError):
            _instrument(rt_low=1.2, rt_high=1.1)

    def test_initial_price_positive(self):
        with pytest.raises(ValidationError):
            _instrument(initial_price_cents=0)

    def test_without_series_is_independent(self):
        inst = _instrument(price_series_cents=[1500, 1510], upper_band_cents=7500)
        copy = inst.without_series()
        assert copy.price_series_cents == []
        assert copy.upper_band_cents == 0
        copy.price_series_cents.append(1)
        copy.tags.append("ai")
        assert inst.price_series_cents == [1500, 1510]
        assert inst.tags == ["gaming", "cloud"]


class TestDailySectorEffects:
    def test_effect_for_defaults_to_zero(self):
        day = DailySectorEffects(day_index=1, tag_to_effect={"gaming": 0.2})
        assert day.effect_for("gaming") == 0.2
        assert day.effect_for("cloud") == 0.0

    def test_unknown_tag_rejected(self):
        with pytest.raises(ValidationError):
            DailySectorEffects(day_index=1, tag_to_effect={"moon": 0.2})

    def test_day_index_positive(self):
        with pytest.raises(ValidationError):
            DailySectorEffects(day_index=0, tag_to_effect={})

    def test_frozen(self):
        day = DailySectorEffects(day_index=1, tag_to_effect={})
        with pytest.raises(ValidationError):
            day.day_index = 2


class TestLedgerModels:
    def test_trade_quantity_positive(self):
        with pytest.raises(ValidationError):
            Trade(hour=0, instrument_id="S001", direction="buy",
                  quantity=0, price_cents=100, cash_delta_cents=0)

    def test_trade_direction_literal(self):
        with pytest.raises(ValidationError):
            Trade(hour=0, instrument_id="S001", direction="short",
                  quantity=1, price_cents=100, cash_delta_cents=-100)

    def test_holding_non_negative(self):
        with pytest.raises(ValidationError):
            Holding(instrument_id="S001", quantity=-1)

    def test_proceeds(self):
        assert TradeResult(ok=True, cash_delta_cents=500).proceeds_cents == 500
        assert TradeResult(ok=True, cash_delta_cents=-500).proceeds_cents == 0


class TestPredictionResult:
    def test_defaults_are_degenerate(self):
        res = PredictionResult(instrument_id="S001", current_day=1, current_hour=0)
        assert res.status == PriceStatus.STAGNANT
        assert res.risk_level == 1.0
        assert res.predicted_limit_up_hour is None

    def test_risk_range(self):
        with pytest.raises(ValidationError):
            PredictionResult(instrument_id="S001", current_day=1, current_hour=0, risk_level=1.5)

    def test_display_prices(self):
        res = PredictionResult(
            instrument_id="S001", current_day=1, current_hour=0,
            current_price_cents=1234, limit_up_price_cents=5000,
        )
        assert res.current_price == pytest.approx(12.34)
        assert res.limit_up_price == pytest.approx(50.0)
