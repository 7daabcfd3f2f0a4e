"""Seeded pseudo-random generator for reproducible fuzzing."""

from typing import Sequence, TypeVar

T = TypeVar("T")

MULTIPLIER = 1664525
INCREMENT = 1013904223
MODULUS = 2**32


class SeededRandom:
    """Linear congruential generator.

    Each generation call owns one instance and threads it through every
    strategy, so a seed fully determines the output.
    """

    def __init__(self, seed: int):
        self.seed = int(seed)
        self.state = self.seed % MODULUS

    def random(self) -> float:
        """Next float in [0, 1)."""
        self.state = (self.state * MULTIPLIER + INCREMENT) % MODULUS
        return self.state / MODULUS

    def randint_below(self, n: int) -> int:
        """Integer in [0, n)."""
        return int(self.random() * n)

    def choice(self, items: Sequence[T]) -> T:
        return items[self.randint_below(len(items))]

    def shuffle(self, items: Sequence[T]) -> list[T]:
        """Fisher-Yates shuffle into a new list."""
        result = list(items)
        for i in range(len(result) - 1, 0, -1):
            j = self.randint_below(i + 1)
            result[i], result[j] = result[j], result[i]
        return result
