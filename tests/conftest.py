"""
Shared pytest fixtures for the market simulator test suite.

Provides:
  - ``clean_env``: removes every ``MARKET_SIM_*`` variable for the test.
  - ``app_config``: default ``AppConfig`` with seed 12345.
  - ``engine``: a ``MarketEngine`` built from ``app_config`` (base horizon
    pre-generated).
  - ``make_instrument``: factory for instruments with a hand-written series.
"""

from __future__ import annotations

import os
from typing import Callable, Optional

import pytest

from market_sim.config import AppConfig, SessionConfig
from market_sim.models.instrument import Instrument
from market_sim.simulation.engine import MarketEngine
from market_sim.taxonomy.archetype_taxonomy import ProfileType

TEST_SEED = 12345


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Strip ``MARKET_SIM_*`` env vars so config tests see only the TOML."""
    for key in list(os.environ):
        if key.startswith("MARKET_SIM_"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture
def app_config() -> AppConfig:
    """Default configuration with a fixed session seed."""
    return AppConfig(session=SessionConfig(seed=TEST_SEED))


@pytest.fixture
def engine(app_config: AppConfig) -> MarketEngine:
    """Fresh engine for ``TEST_SEED``."""
    return MarketEngine(app_config)


@pytest.fixture
def make_instrument() -> Callable[..., Instrument]:
    """Return a factory building an instrument around an explicit series.

    Bands default to 0.5x / 5x of the first series value.
    """

    def _make(
        series: list[int],
        upper: Optional[int] = None,
        lower: Optional[int] = None,
        profile: ProfileType = ProfileType.BULL,
        tags: Optional[list[str]] = None,
        instrument_id: str = "S001",
    ) -> Instrument:
        first = series[0] if series else 1000
        return Instrument(
            id=instrument_id,
            name="Penguin A",
            tags=tags or ["gaming", "cloud"],
            profile=profile,
            rt_low=1.05,
            rt_high=1.12,
            initial_price_cents=first,
            price_series_cents=list(series),
            lower_band_cents=lower if lower is not None else first // 2,
            upper_band_cents=upper if upper is not None else first * 5,
        )

    return _make
