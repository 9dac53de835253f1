"""
Tests for the deterministic random number generator.
"""

import pytest
import sys
import os

# Add the parent directory to the path to import the module
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from dataroom.math.prng import LCG, MASK, MODULUS, next_value, seed_state


# First states produced from seed 42
SEED_42_STATES = [1083814273, 378494188, 2479403867, 955863294, 1613448261, 110225632]


class TestNextValue:
    """Tests for the single-step function."""

    def test_known_sequence(self):
        """Seed 42 produces the pinned state sequence."""
        state = 42
        for expected in SEED_42_STATES:
            value, state = next_value(state)
            assert state == expected
            assert value == expected / MODULUS

    def test_values_in_unit_interval(self):
        """Every value lies in [0, 1)."""
        state = 0
        for _ in range(1000):
            value, state = next_value(state)
            assert 0.0 <= value < 1.0

    def test_state_stays_32_bit(self):
        """The state never leaves the 32-bit range."""
        _, state = next_value(MASK)
        assert 0 <= state <= MASK


class TestSeedState:
    """Tests for seed reduction."""

    def test_negative_seed_wraps(self):
        assert seed_state(-1) == MASK

    def test_large_seed_is_masked(self):
        assert seed_state(2 ** 32 + 5) == 5


class TestLCG:
    """Tests for the stateful generator."""

    def test_same_seed_same_stream(self):
        """Two generators with the same seed agree."""
        a = LCG(7)
        b = LCG(7)
        assert [a.random() for _ in range(20)] == [b.random() for _ in range(20)]

    def test_different_seeds_differ(self):
        a = LCG(1)
        b = LCG(2)
        assert [a.random() for _ in range(5)] != [b.random() for _ in range(5)]

    def test_default_seed(self):
        rng = LCG()
        rng.random()
        assert rng.state == SEED_42_STATES[0]

    def test_randint_bounds(self):
        """randint stays within the closed range."""
        rng = LCG(3)
        draws = [rng.randint(1, 6) for _ in range(500)]
        assert min(draws) >= 1
        assert max(draws) <= 6
        assert set(draws) == {1, 2, 3, 4, 5, 6}

    def test_choice_index(self):
        """choice_index scales the next value to [0, n)."""
        rng = LCG(42)
        # 1083814273 / 2**32 = 0.2523... -> index 1 of 4
        assert rng.choice_index(4) == 1
        # 378494188 / 2**32 = 0.0881... -> index 0 of 4
        assert rng.choice_index(4) == 0

    def test_choice_index_requires_positive_n(self):
        with pytest.raises(ValueError):
            LCG(42).choice_index(0)
