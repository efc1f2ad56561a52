"""
Daily sector-effect models.

``DailySectorEffects`` holds one day's shock table: a small subset of sector
tags mapped to a signed effect fraction (``0.10`` = +10%). Tables are
generated once per session and frozen thereafter.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, field_validator

from market_sim.taxonomy.sector_catalog import SECTOR_TAG_SET


class DailySectorEffects(BaseModel):
    """Sector shock table for one day of the base cycle.

    Attributes:
        day_index: 1-based day within the base cycle.
        tag_to_effect: Sector tag → signed effect fraction.
    """

    model_config = ConfigDict(frozen=True)

    day_index: int
    tag_to_effect: dict[str, float]

    @field_validator("day_index")
    @classmethod
    def validate_day_index(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"day_index must be >= 1, got {v}.")
        return v

    @field_validator("tag_to_effect")
    @classmethod
    def validate_tags(cls, v: dict[str, float]) -> dict[str, float]:
        unknown = [t for t in v if t not in SECTOR_TAG_SET]
        if unknown:
            raise ValueError(f"Unknown sector tag(s): {unknown}.")
        return v

    def effect_for(self, tag: str) -> float:
        """Effect for ``tag``, or 0.0 when the tag is not shocked today."""
        return self.tag_to_effect.get(tag, 0.0)
