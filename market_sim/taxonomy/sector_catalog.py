"""
Sector tag catalog.

Every instrument carries 2–3 of these tags and every daily sector-effect
table is keyed by them. The order of ``ALL_SECTOR_TAGS`` is part of the
determinism contract: candidate generation and daily-effect generation
index into it with seeded random draws, so reordering or renaming a tag
changes every generated session.

This module has NO imports from any other ``market_sim`` package.
"""

ALL_SECTOR_TAGS: tuple[str, ...] = (
    "internet",
    "gaming",
    "cloud",
    "raw_materials",
    "infrastructure",
    "ai",
    "chips",
    "semiconductors",
    "automotive",
    "new_energy",
    "solar",
    "pharma",
    "liquor",
    "banking",
    "insurance",
    "brokerage",
    "5g",
    "consumer_electronics",
    "defense",
    "logistics",
    "aviation",
    "shipping",
    "steel",
    "nonferrous_metals",
    "rare_earths",
    "education",
    "entertainment",
    "smart_home",
    "real_estate",
    "building_materials",
    "chemicals",
    "agriculture",
    "livestock",
    "environmental",
    "ecommerce",
    "social_media",
    "property_services",
    "iot",
    "big_data",
    "cloud_security",
)

SECTOR_TAG_SET: frozenset[str] = frozenset(ALL_SECTOR_TAGS)


def is_known_tag(tag: str) -> bool:
    """Return ``True`` if ``tag`` belongs to the catalog."""
    return tag in SECTOR_TAG_SET
