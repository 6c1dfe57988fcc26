"""Random number generation utilities for navigation brains."""

import numpy as np
from typing import Optional, Sequence, TypeVar

T = TypeVar("T")


class SeededRNG:
    """
    Seeded random number generator for reproducible results.

    Each brain owns its own instance, so seeding one agent never disturbs the
    random stream of another.
    """

    def __init__(self, seed: Optional[int] = None):
        self.seed = seed
        self._generator = np.random.default_rng(seed)

    def random(self) -> float:
        """Generate random float in [0, 1)."""
        return float(self._generator.random())

    def randint(self, a: int, b: int) -> int:
        """Generate random integer in [a, b]."""
        return int(self._generator.integers(a, b + 1))

    def choice(self, seq: Sequence[T]) -> T:
        """Choose random element from a non-empty sequence."""
        if not seq:
            raise IndexError("Cannot choose from an empty sequence")
        return seq[int(self._generator.integers(len(seq)))]

    def reseed(self, seed: Optional[int]) -> None:
        """Restart the stream from a new seed."""
        self.seed = seed
        self._generator = np.random.default_rng(seed)
