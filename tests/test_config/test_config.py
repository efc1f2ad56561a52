"""
Tests for market_sim/config.py.

What we test
------------
load_config():
  - The committed config/default.toml loads and validates.
  - A sibling local.toml is deep-merged over the base file.
  - MARKET_SIM_* env vars override file values.
  - Missing file raises FileNotFoundError.

Model validation:
  - Archetype weights must sum to 1.
  - Band multipliers and price caps must be ordered.
  - session_stock_count cannot exceed candidate_stock_count.
  - Log level is validated and upper-cased.
  - Frozen models reject mutation.

_deep_merge():
  - Nested dicts merge; scalars are replaced.
"""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from market_sim.config import (
    AppConfig,
    LoggingConfig,
    MarketConfig,
    SectorEffectMode,
    SessionConfig,
    _deep_merge,
    load_config,
)

DEFAULT_TOML = Path(__file__).resolve().parents[2] / "config" / "default.toml"


def _write(path: Path, text: str) -> Path:
    path.write_text(text, encoding="utf-8")
    return path


class TestLoadConfig:
    def test_default_toml_loads(self, clean_env):
        cfg = load_config(DEFAULT_TOML)
        assert isinstance(cfg, AppConfig)
        assert cfg.session.seed == 20240901
        assert cfg.session.candidate_stock_count == 80
        assert cfg.market.total_hours == 30 * 24
        assert cfg.market.sector_effect_mode == SectorEffectMode.HOURLY
        assert cfg.debug is False

    def test_missing_file_raises(self, clean_env, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "nope.toml")

    def test_local_toml_deep_merges(self, clean_env, tmp_path):
        base = _write(
            tmp_path / "base.toml",
            "[session]\nseed = 1\nsession_stock_count = 10\n[market]\nnum_days = 5\n",
        )
        _write(tmp_path / "local.toml", "[session]\nseed = 99\n")
        cfg = load_config(base)
        assert cfg.session.seed == 99
        assert cfg.session.session_stock_count == 10
        assert cfg.market.num_days == 5

    def test_env_overrides(self, clean_env, tmp_path, monkeypatch):
        base = _write(tmp_path / "base.toml", "[session]\nseed = 1\n")
        monkeypatch.setenv("MARKET_SIM_SEED", "777")
        monkeypatch.setenv("MARKET_SIM_SECTOR_MODE", "daily_once")
        monkeypatch.setenv("MARKET_SIM_LOG_LEVEL", "debug")
        monkeypatch.setenv("MARKET_SIM_DEBUG", "true")
        cfg = load_config(base)
        assert cfg.session.seed == 777
        assert cfg.market.sector_effect_mode == SectorEffectMode.DAILY_ONCE
        assert cfg.logging.level == "DEBUG"
        assert cfg.debug is True

    def test_seed_may_be_absent(self, clean_env, tmp_path):
        base = _write(tmp_path / "base.toml", "[market]\nnum_days = 2\n")
        cfg = load_config(base)
        assert cfg.session.seed is None

    def test_invalid_values_raise_validation_error(self, clean_env, tmp_path):
        base = _write(tmp_path / "base.toml", "[market]\nbull_weight = 0.9\n")
        with pytest.raises(ValidationError):
            load_config(base)


class TestModelValidation:
    def test_weights_must_sum_to_one(self):
        with pytest.raises(ValidationError):
            MarketConfig(bear_weight=0.5)

    def test_band_multipliers_ordered(self):
        with pytest.raises(ValidationError):
            MarketConfig(lower_band_multiplier=5.0, upper_band_multiplier=0.5)

    def test_price_caps_ordered(self):
        with pytest.raises(ValidationError):
            MarketConfig(min_price_cents=500, max_price_cents=100)

    def test_horizon_positive(self):
        with pytest.raises(ValidationError):
            MarketConfig(num_days=0)

    def test_session_count_bounded_by_candidates(self):
        with pytest.raises(ValidationError):
            SessionConfig(candidate_stock_count=10, session_stock_count=11)

    def test_log_level_normalised(self):
        assert LoggingConfig(level="warning").level == "WARNING"
        with pytest.raises(ValidationError):
            LoggingConfig(level="LOUD")

    def test_frozen(self):
        cfg = MarketConfig()
        with pytest.raises(ValidationError):
            cfg.num_days = 3


class TestDeepMerge:
    def test_nested_merge(self):
        merged = _deep_merge({"a": {"x": 1, "y": 2}, "b": 1}, {"a": {"y": 3}, "c": 4})
        assert merged == {"a": {"x": 1, "y": 3}, "b": 1, "c": 4}

    def test_scalar_replaces_dict(self):
        assert _deep_merge({"a": {"x": 1}}, {"a": 5}) == {"a": 5}
