"""Flag order for a quiz run.

Daily runs use a seeded Fisher-Yates shuffle so every player gets the same
flags for a given calendar day. The hash (FNV-1a 32-bit) and generator
(mulberry32) match the browser client bit for bit, so both must stay in
unsigned 32-bit arithmetic.
"""

import random
from typing import Callable, List, Optional, Sequence, TypeVar

T = TypeVar('T')

MASK32 = 0xFFFFFFFF
FNV_OFFSET = 2166136261
FNV_PRIME = 16777619
MULBERRY_INCREMENT = 0x6D2B79F5

DAILY_FLAG_COUNT = 10


def seed_from_string(seed: str) -> int:
    h = FNV_OFFSET
    for byte in seed.encode('utf-8'):
        h ^= byte
        h = (h * FNV_PRIME) & MASK32
    return h


def _imul(a: int, b: int) -> int:
    return (a * b) & MASK32


def mulberry32(seed: int) -> Callable[[], float]:
    """Return a generator of floats in [0, 1) seeded with a 32-bit integer."""
    state = seed & MASK32

    def next_float() -> float:
        nonlocal state
        state = (state + MULBERRY_INCREMENT) & MASK32
        t = state
        t = _imul(t ^ (t >> 15), t | 1)
        t ^= (t + _imul(t ^ (t >> 7), t | 61)) & MASK32
        return ((t ^ (t >> 14)) & MASK32) / 4294967296

    return next_float


def fisher_yates(items: Sequence[T], rand: Callable[[], float]) -> List[T]:
    shuffled = list(items)
    for i in range(len(shuffled) - 1, 0, -1):
        j = int(rand() * (i + 1))
        shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
    return shuffled


def seeded_shuffle(items: Sequence[T], seed: str) -> List[T]:
    return fisher_yates(items, mulberry32(seed_from_string(seed)))


def shuffle(items: Sequence[T], rng: Optional[random.Random] = None) -> List[T]:
    rng = rng or random
    return fisher_yates(items, rng.random)


def daily_seed(day: str) -> str:
    return f"daily:{day}"


def build_daily_order(countries: Sequence[T], day: str, count: int = DAILY_FLAG_COUNT) -> List[T]:
    return seeded_shuffle(countries, daily_seed(day))[:count]


def build_classic_order(countries: Sequence[T], rng: Optional[random.Random] = None) -> List[T]:
    # classic plays every country
    return shuffle(countries, rng)
