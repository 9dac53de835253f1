"""
Deterministic pseudo-random number generator.

A 32-bit linear congruential generator (Numerical Recipes constants). All
arithmetic is done on Python integers masked to 32 bits, so a given seed
produces the same stream on every platform. Not cryptographically secure;
it only exists to make clustering initialization and synthetic datasets
reproducible.
"""

from typing import Tuple

MULTIPLIER = 1664525
INCREMENT = 1013904223
MODULUS = 2 ** 32
MASK = MODULUS - 1


def seed_state(seed: int) -> int:
    """
    Reduce an integer seed to a 32-bit unsigned state.

    Args:
        seed: Any integer (negative values wrap around)

    Returns:
        State in [0, 2**32)
    """
    return int(seed) & MASK


def next_value(state: int) -> Tuple[float, int]:
    """
    Advance the generator by one step.

    Args:
        state: Current 32-bit state

    Returns:
        Tuple of (value in [0, 1), next state)
    """
    new_state = (MULTIPLIER * (state & MASK) + INCREMENT) & MASK
    return new_state / MODULUS, new_state


class LCG:
    """
    Stateful wrapper around :func:`next_value`.
    """

    def __init__(self, seed: int = 42):
        self.state = seed_state(seed)

    def random(self) -> float:
        """Return the next float in [0, 1)."""
        value, self.state = next_value(self.state)
        return value

    def randint(self, a: int, b: int) -> int:
        """Return an integer in the closed range [a, b]."""
        return a + int(self.random() * (b - a + 1))

    def choice_index(self, n: int) -> int:
        """Return an index in [0, n)."""
        if n <= 0:
            raise ValueError("choice_index requires n > 0")
        return int(self.random() * n)

    def __repr__(self) -> str:
        return f"LCG(state={self.state})"
