"""
Static taxonomies: sector tags and volatility archetypes.

Modules
-------
sector_catalog     : ALL_SECTOR_TAGS — fixed, ordered tag catalog.
archetype_taxonomy : ProfileType enum + PROFILE_SAMPLING_ORDER.
"""
