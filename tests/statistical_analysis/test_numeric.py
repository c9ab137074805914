"""Unit tests for src.statistical_analysis.numeric."""

import math

import numpy as np
import pytest

from src.statistical_analysis.numeric import mean, rank_with_ties, std, variance

RANDOM_SEED = 42


class TestMeanVariance:
    """Mean and variance with population and sample divisors."""

    def test_mean_of_empty_is_nan(self):
        assert math.isnan(mean([]))

    def test_variance_ddof(self):
        values = [10, 12, 14]
        assert mean(values) == pytest.approx(12.0)
        assert variance(values, 1) == pytest.approx(4.0)
        assert variance(values, 0) == pytest.approx(8.0 / 3.0)
        assert std(values, 1) == pytest.approx(2.0)

    @pytest.mark.parametrize("values,ddof", [([], 0), ([1.0], 1), ([1.0, 2.0], 2)])
    def test_variance_undefined_is_nan(self, values, ddof):
        assert math.isnan(variance(values, ddof))

    def test_matches_numpy(self):
        rng = np.random.default_rng(RANDOM_SEED)
        values = rng.normal(5, 3, size=500)
        assert variance(values, 1) == pytest.approx(np.var(values, ddof=1))
        assert std(values) == pytest.approx(np.std(values))


class TestRankWithTies:
    """Midrank assignment."""

    def test_no_ties(self):
        np.testing.assert_array_equal(rank_with_ties([30, 10, 20]), [3.0, 1.0, 2.0])

    def test_ties_receive_average_rank(self):
        # Sorted: 1, 2, 2, 2, 5 -> ranks 1, 3, 3, 3, 5
        np.testing.assert_array_equal(rank_with_ties([2, 1, 2, 5, 2]), [3.0, 1.0, 3.0, 5.0, 3.0])

    def test_all_tied(self):
        np.testing.assert_array_equal(rank_with_ties([7, 7, 7, 7]), [2.5] * 4)

    def test_empty(self):
        assert rank_with_ties([]).size == 0

    @pytest.mark.parametrize("n,n_distinct", [(1, 1), (10, 3), (101, 101), (500, 7)])
    def test_rank_sum_is_invariant_to_ties(self, n, n_distinct):
        """Sum of ranks is n(n+1)/2 whatever the tie structure."""
        rng = np.random.default_rng(RANDOM_SEED)
        values = rng.integers(0, n_distinct, size=n)
        assert rank_with_ties(values).sum() == pytest.approx(n * (n + 1) / 2)
