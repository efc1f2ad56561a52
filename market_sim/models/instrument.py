"""
Instrument model — one simulated security and its hourly price series.

``Instrument`` is deliberately NOT frozen: the engine appends to
``price_series_cents`` as time advances and sets the band once when the
series is seeded. The series is append-only; no code path truncates or
rewrites an existing entry.

All prices are integer **minor units** (cents).
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from market_sim.taxonomy.archetype_taxonomy import ProfileType
from market_sim.taxonomy.sector_catalog import SECTOR_TAG_SET


class Instrument(BaseModel):
    """A simulated security.

    Attributes:
        id: Stable identifier, e.g. ``"S001"``. Also keys the RNG stream.
        name: Display name.
        tags: 2–3 distinct sector tags from the catalog.
        profile: Volatility archetype.
        rt_low: Lower end of the per-hour multiplicative range.
        rt_high: Upper end of the per-hour multiplicative range.
        initial_price_cents: Price at hour 0 as generated by the library.
        price_series_cents: Price at each absolute hour index (append-only).
            Empty until the engine seeds it.
        lower_band_cents: Lower price band (0 until seeded).
        upper_band_cents: Upper price band (0 until seeded).
    """

    model_config = ConfigDict(frozen=False)

    id: str
    name: str
    tags: list[str]
    profile: ProfileType
    rt_low: float
    rt_high: float
    initial_price_cents: int
    price_series_cents: list[int] = []
    lower_band_cents: int = 0
    upper_band_cents: int = 0

    @field_validator("tags")
    @classmethod
    def validate_tags(cls, v: list[str]) -> list[str]:
        if not 2 <= len(v) <= 3:
            raise ValueError(f"Instrument must carry 2–3 sector tags, got {len(v)}.")
        if len(set(v)) != len(v):
            raise ValueError(f"Sector tags must be distinct, got {v}.")
        unknown = [t for t in v if t not in SECTOR_TAG_SET]
        if unknown:
            raise ValueError(f"Unknown sector tag(s): {unknown}.")
        return v

    @field_validator("initial_price_cents")
    @classmethod
    def validate_initial_price(cls, v: int) -> int:
        if v <= 0:
            raise ValueError(f"initial_price_cents must be positive, got {v}.")
        return v

    @model_validator(mode="after")
    def validate_rt_range(self) -> "Instrument":
        if self.rt_low > self.rt_high:
            raise ValueError(
                f"rt_low ({self.rt_low}) must be <= rt_high ({self.rt_high})."
            )
        return self

    @property
    def series_length(self) -> int:
        return len(self.price_series_cents)

    @property
    def last_price_cents(self) -> int | None:
        return self.price_series_cents[-1] if self.price_series_cents else None

    def without_series(self) -> "Instrument":
        """Return a deep copy with an empty series and unset bands."""
        return self.model_copy(
            deep=True,
            update={
                "price_series_cents": [],
                "lower_band_cents": 0,
                "upper_band_cents": 0,
            },
        )
