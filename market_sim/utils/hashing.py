"""
Stable hashing and RNG construction for reproducible sessions.

Python's built-in ``hash()`` on ``str`` is salted per process
(``PYTHONHASHSEED``), so it can never key a reproducible random stream.
These helpers are pure integer arithmetic and give identical results on
every interpreter and platform.
"""

from __future__ import annotations

import numpy as np

FNV1A_32_OFFSET = 0x811C9DC5
FNV1A_32_PRIME = 0x01000193

_MASK_32 = 0xFFFFFFFF
_MASK_64 = 0xFFFFFFFFFFFFFFFF


def fnv1a_32(text: str) -> int:
    """Return the 32-bit FNV-1a hash of ``text`` encoded as UTF-8."""
    h = FNV1A_32_OFFSET
    for byte in text.encode("utf-8"):
        h ^= byte
        h = (h * FNV1A_32_PRIME) & _MASK_32
    return h


def combine_seed(seed: int, key: int) -> int:
    """Combine a session seed with a key hash into one non-negative 64-bit seed.

    Uses the ``17 * 31 + a`` combination, masked to 64 bits so the result is
    a valid ``numpy`` seed regardless of the sign of ``seed``.
    """
    h = 17
    h = (h * 31 + seed) & _MASK_64
    h = (h * 31 + key) & _MASK_64
    return h


def instrument_seed(session_seed: int, instrument_id: str) -> int:
    """Seed for the persistent random stream of one instrument."""
    return combine_seed(session_seed, fnv1a_32(instrument_id))


def make_rng(seed: int) -> np.random.Generator:
    """Return a PCG64 ``numpy`` generator for any integer ``seed``.

    Negative seeds are folded into the unsigned 64-bit range so callers can
    derive sub-seeds with plain arithmetic (``seed * 31 + 7`` and the like).
    """
    return np.random.default_rng(seed & _MASK_64)
