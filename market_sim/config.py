"""
Application configuration management.

Load order (each layer overrides the previous):
  1. ``config/default.toml``      — committed static defaults
  2. ``config/local.toml``        — optional local overrides (gitignored)
  3. ``.env``                     — local overrides (gitignored)
  4. Environment variables        — ``MARKET_SIM_*`` prefix

Entry point: ``load_config(config_path=None) -> AppConfig``

The engine, predictor, ranker and CLI commands all receive an ``AppConfig``
(or one of its sections) — never raw dicts or scattered env var lookups.
"""

from __future__ import annotations

import math
import os
import tomllib
from enum import StrEnum
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, field_validator, model_validator


class SectorEffectMode(StrEnum):
    """How the daily sector effect is folded into the hourly update."""

    HOURLY = "hourly"
    """Apply the day's sector sum on every hourly update."""

    DAILY_ONCE = "daily_once"
    """Pure ``rt`` update each hour; full-day effect applied once at the day boundary."""


# ── Sub-config models ─────────────────────────────────────────────────────────


class SessionConfig(BaseModel):
    """Session seed and population sizes."""

    model_config = ConfigDict(frozen=True)

    seed: Optional[int] = None
    candidate_stock_count: int = 80
    session_stock_count: int = 20

    @model_validator(mode="after")
    def validate_counts(self) -> "SessionConfig":
        if self.candidate_stock_count < 1:
            raise ValueError("candidate_stock_count must be >= 1.")
        if not 0 < self.session_stock_count <= self.candidate_stock_count:
            raise ValueError(
                f"session_stock_count must be in [1, {self.candidate_stock_count}], "
                f"got {self.session_stock_count}."
            )
        return self


class MarketConfig(BaseModel):
    """Price-simulation constants: horizon, price caps, bands and volatility."""

    model_config = ConfigDict(frozen=True)

    num_days: int = 30
    hours_per_day: int = 24

    min_price_cents: int = 100
    max_price_cents: int = 100_000_000
    lower_band_multiplier: float = 0.5
    upper_band_multiplier: float = 5.0

    global_rt_min: float = 0.5
    global_rt_max: float = 1.5
    rt_jitter: float = 0.02

    bear_weight: float = 0.25
    sideways_weight: float = 0.15
    bull_weight: float = 0.40
    moonshot_weight: float = 0.20

    sector_sum_min_clamp: float = -0.99
    sector_effect_mode: SectorEffectMode = SectorEffectMode.HOURLY

    spike_probability: float = 0.25
    spike_magnitude: float = 0.15
    spike_rt_min: float = 0.75
    spike_rt_max: float = 1.30

    @property
    def total_hours(self) -> int:
        return self.num_days * self.hours_per_day

    @field_validator("num_days", "hours_per_day")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"Horizon values must be >= 1, got {v}.")
        return v

    @model_validator(mode="after")
    def validate_market(self) -> "MarketConfig":
        if not 0 < self.min_price_cents < self.max_price_cents:
            raise ValueError(
                "Price caps must satisfy 0 < min_price_cents < max_price_cents."
            )
        if not 0 < self.lower_band_multiplier < self.upper_band_multiplier:
            raise ValueError(
                "Band multipliers must satisfy 0 < lower < upper."
            )
        if not 0 < self.global_rt_min < self.global_rt_max:
            raise ValueError("rt bounds must satisfy 0 < global_rt_min < global_rt_max.")
        weights = (
            self.bear_weight, self.sideways_weight,
            self.bull_weight, self.moonshot_weight,
        )
        if any(w < 0 for w in weights) or not math.isclose(sum(weights), 1.0, abs_tol=1e-6):
            raise ValueError(f"Archetype weights must be non-negative and sum to 1, got {weights}.")
        if not 0.0 <= self.spike_probability <= 1.0:
            raise ValueError(
                f"spike_probability must be in [0.0, 1.0], got {self.spike_probability}."
            )
        return self


class RankingConfig(BaseModel):
    """Composite-score weights and list filters for the ranker."""

    model_config = ConfigDict(frozen=True)

    gain_weight: float = 0.4
    risk_weight: float = 0.3
    time_weight: float = 0.2
    trend_weight: float = 0.1
    top_n: int = 0
    buyable_min_score: float = 45.0

    @field_validator("top_n")
    @classmethod
    def validate_top_n(cls, v: int) -> int:
        if v < 0:
            raise ValueError(f"top_n must be >= 0 (0 = all), got {v}.")
        return v


class ExportConfig(BaseModel):
    """Filesystem paths for exported snapshots."""

    model_config = ConfigDict(frozen=True)

    output_dir: str = "data/outputs"


class LoggingConfig(BaseModel):
    """Logging output settings."""

    model_config = ConfigDict(frozen=True)

    level: str = "INFO"
    log_file: str = ""
    json_format: bool = False

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        valid = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid:
            raise ValueError(f"Log level must be one of {sorted(valid)}, got '{v}'.")
        return v.upper()


class AppConfig(BaseModel):
    """Complete application configuration — the single source of truth.

    Constructed by ``load_config()`` which merges TOML + .env + env vars.
    """

    model_config = ConfigDict(frozen=True)

    session: SessionConfig = SessionConfig()
    market: MarketConfig = MarketConfig()
    ranking: RankingConfig = RankingConfig()
    export: ExportConfig = ExportConfig()
    logging: LoggingConfig = LoggingConfig()
    debug: bool = False


# ── Loader ────────────────────────────────────────────────────────────────────

_PROJECT_ROOT = Path(__file__).parent.parent


def _find_project_root() -> Path:
    """Walk up from this file to find the project root (contains pyproject.toml)."""
    candidate = Path(__file__).parent
    for _ in range(5):
        if (candidate / "pyproject.toml").exists():
            return candidate
        candidate = candidate.parent
    return _PROJECT_ROOT


def load_config(config_path: Optional[Path] = None) -> AppConfig:
    """Load and merge application configuration.

    Args:
        config_path: Explicit path to a TOML config file. Defaults to
            ``<project_root>/config/default.toml``.

    Returns:
        Fully validated ``AppConfig`` instance.

    Raises:
        FileNotFoundError: If the config file does not exist.
        pydantic.ValidationError: If merged config values fail validation.
    """
    root = _find_project_root()

    load_dotenv(dotenv_path=root / ".env", override=False)

    if config_path is None:
        config_path = root / "config" / "default.toml"

    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(
            f"Config file not found: {config_path}\n"
            "Create config/default.toml or pass --config."
        )

    with open(config_path, "rb") as f:
        raw: dict[str, Any] = tomllib.load(f)

    local_config_path = config_path.parent / "local.toml"
    if local_config_path.exists():
        with open(local_config_path, "rb") as f:
            local_raw: dict[str, Any] = tomllib.load(f)
        raw = _deep_merge(raw, local_raw)

    raw = _apply_env_overrides(raw)

    return _build_app_config(raw)


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge ``override`` into ``base``."""
    result = dict(base)
    for key, val in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(val, dict):
            result[key] = _deep_merge(result[key], val)
        else:
            result[key] = val
    return result


def _apply_env_overrides(raw: dict[str, Any]) -> dict[str, Any]:
    """Apply MARKET_SIM_* env vars to the raw config dict.

    Supported overrides:
      MARKET_SIM_SEED         → raw["session"]["seed"]
      MARKET_SIM_SECTOR_MODE  → raw["market"]["sector_effect_mode"]
      MARKET_SIM_LOG_LEVEL    → raw["logging"]["level"]
      MARKET_SIM_DEBUG        → raw["debug"]
    """
    if seed := os.environ.get("MARKET_SIM_SEED"):
        raw.setdefault("session", {})["seed"] = int(seed)

    if mode := os.environ.get("MARKET_SIM_SECTOR_MODE"):
        raw.setdefault("market", {})["sector_effect_mode"] = mode

    if log_level := os.environ.get("MARKET_SIM_LOG_LEVEL"):
        raw.setdefault("logging", {})["level"] = log_level

    if debug := os.environ.get("MARKET_SIM_DEBUG"):
        raw["debug"] = debug.lower() in ("1", "true", "yes")

    return raw


def _build_app_config(raw: dict[str, Any]) -> AppConfig:
    """Map raw TOML dict to ``AppConfig`` model structure."""
    project = raw.pop("project", {})

    return AppConfig(
        session=SessionConfig(**raw.get("session", {})),
        market=MarketConfig(**raw.get("market", {})),
        ranking=RankingConfig(**raw.get("ranking", {})),
        export=ExportConfig(**raw.get("export", {})),
        logging=LoggingConfig(**raw.get("logging", {})),
        debug=raw.get("debug", project.get("debug", False)),
    )
