"""
Random sources for rally resolution. Injected at construction, never global:
SystemRandomSource for live play, SeededRandomSource for replayable runs.
"""
from __future__ import annotations

import random
from typing import Protocol, runtime_checkable

_MASK_64 = (1 << 64) - 1
_LCG_MULTIPLIER = 6364136223846793005
_LCG_INCREMENT = 1442695040888963407


@runtime_checkable
class RandomSource(Protocol):
    def next_double(self) -> float:
        """Uniform float in [0, 1)."""
        ...

    def next_int(self, low: int, high: int) -> int:
        """Uniform int in [low, high], both inclusive."""
        ...


class SystemRandomSource:
    """Entropy-seeded generator; each instance owns its own random.Random."""

    def __init__(self) -> None:
        self._rng = random.Random()

    def next_double(self) -> float:
        return self._rng.random()

    def next_int(self, low: int, high: int) -> int:
        return self._rng.randint(low, high)


class SeededRandomSource:
    """
    64-bit linear congruential generator for byte-for-byte reproducible matches.
    The top 53 bits of the state become the double, so output covers [0, 1).
    Owned by exactly one engine; sharing it across matches breaks replay.
    """

    def __init__(self, seed: int) -> None:
        self._seed = seed
        self._state = seed & _MASK_64

    @property
    def seed(self) -> int:
        return self._seed

    def next_double(self) -> float:
        self._state = (self._state * _LCG_MULTIPLIER + _LCG_INCREMENT) & _MASK_64
        return (self._state >> 11) / float(1 << 53)

    def next_int(self, low: int, high: int) -> int:
        if high < low:
            raise ValueError("high must be >= low")
        span = high - low + 1
        return low + min(span - 1, int(self.next_double() * span))
