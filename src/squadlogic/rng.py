"""Seeded random streams for reproducible team generation.

A seed string is hashed with xmur3 and the hash feeds a mulberry32 generator.
Both are reproduced bit-for-bit (32-bit unsigned arithmetic), so the same
seed yields the same float stream as the JavaScript client that shares
saved seeds with us.
"""

import random as _random
from numbers import Real
from typing import Callable

_MASK = 0xFFFFFFFF

RandomFn = Callable[[], float]


def _imul(a: int, b: int) -> int:
    return (a * b) & _MASK


def xmur3(text: str) -> Callable[[], int]:
    """Return a generator of 32-bit hashes derived from `text`."""
    # charCodeAt semantics: iterate UTF-16 code units, not code points
    units = text.encode("utf-16-le")
    codes = [units[i] | (units[i + 1] << 8) for i in range(0, len(units), 2)]

    h = (1779033703 ^ len(codes)) & _MASK
    for code in codes:
        h = _imul(h ^ code, 3432918353)
        h = ((h << 13) | (h >> 19)) & _MASK

    def next_hash() -> int:
        nonlocal h
        h = _imul(h ^ (h >> 16), 2246822507)
        h = _imul(h ^ (h >> 13), 3266489909)
        h = (h ^ (h >> 16)) & _MASK
        return h

    return next_hash


def mulberry32(state: int) -> RandomFn:
    """Return a callable producing floats in [0, 1) from a 32-bit state."""
    a = state & _MASK

    def next_float() -> float:
        nonlocal a
        a = (a + 0x6D2B79F5) & _MASK
        t = a
        t = _imul(t ^ (t >> 15), t | 1)
        t ^= (t + _imul(t ^ (t >> 7), t | 61)) & _MASK
        return ((t ^ (t >> 14)) & _MASK) / 4294967296

    return next_float


def seeded_random(seed: str | int) -> RandomFn:
    """Build a deterministic stream from a seed string or number."""
    if isinstance(seed, str):
        return mulberry32(xmur3(seed)())
    if isinstance(seed, bool) or not isinstance(seed, Real):
        raise TypeError("seed must be a string or a number")
    return mulberry32(int(seed))


def resolve_random(random: RandomFn | None = None,
                   seed: str | int | None = None) -> RandomFn:
    """Pick the random source for a run.

    A non-empty seed always wins over `random`; with neither, the process-wide
    `random.random` is used.
    """
    if seed is not None and seed != "":
        return seeded_random(seed)
    if random is None:
        return _random.random
    if not callable(random):
        raise TypeError("random must be callable")
    return random
