"""
Tests for summary statistics, correlation and linear regression.
"""

import pytest
import numpy as np
import sys
import os

# Add the parent directory to the path to import the module
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from dataroom.math.dataset import Dataset
from dataroom.math.errors import DegenerateInputError, InvalidColumnError
from dataroom.math.stats import describe, summarize, summarize_column, numeric_summaries
from dataroom.math.corr import aligned_pairs, pearson, column_correlation, correlation_matrix
from dataroom.math.regression import linear_regression, regress_columns


class TestDescribe:
    """Tests for summary statistics."""

    def test_describe(self):
        stats = describe([1, 2, 3, 4])
        assert stats['count'] == 4
        assert np.isclose(stats['mean'], 2.5)
        assert np.isclose(stats['median'], 2.5)
        # Population standard deviation
        assert np.isclose(stats['stdev'], np.sqrt(1.25))
        assert stats['min'] == 1.0
        assert stats['max'] == 4.0

    def test_median_odd(self):
        assert describe([5, 1, 3])['median'] == 3.0

    @pytest.mark.parametrize("value", [3.5, 0.1, 0.7, 1.1, -2.3, 1e-9])
    @pytest.mark.parametrize("n", [2, 3, 6, 10])
    def test_identical_values(self, value, n):
        """Repeated values give zero spread and the value itself, exactly."""
        stats = describe([value] * n)
        assert stats['stdev'] == 0.0
        assert stats['mean'] == stats['median'] == stats['min'] == stats['max'] == value

    def test_single_value(self):
        stats = describe([7])
        assert stats['stdev'] == 0.0
        assert stats['mean'] == 7.0

    def test_empty(self):
        with pytest.raises(ValueError):
            describe([])


class TestSummarize:
    """Tests for per-column summaries."""

    def setup_method(self):
        self.ds = Dataset(["x", "mixed", "name"], [
            ["1", "1", "ann"],
            ["2", "x", "bob"],
            ["3", "", "cy"],
            ["4", "3", "di"],
        ])

    def test_numeric_column(self):
        s = summarize_column(self.ds, 0)
        assert s.name == "x"
        assert s.count == 4
        assert np.isclose(s.mean, 2.5)

    def test_mixed_column_ignores_text(self):
        s = summarize_column(self.ds, 1)
        assert s.count == 2
        assert np.isclose(s.mean, 2.0)

    def test_text_column(self):
        s = summarize_column(self.ds, 2)
        assert s.count == 0
        assert s.mean is None
        assert not s.is_numeric

    def test_constant_column(self):
        ds = Dataset(["p"], [["0.1"], ["0.1"], ["0.1"]])
        s = summarize_column(ds, 0)
        assert s.mean == 0.1
        assert s.stdev == 0.0

    def test_summarize_all(self):
        summaries = summarize(self.ds)
        assert [s.index for s in summaries] == [0, 1, 2]
        assert [s.name for s in numeric_summaries(summaries)] == ["x", "mixed"]

    def test_to_dict(self):
        d = summarize_column(self.ds, 0).to_dict()
        assert d['count'] == 4
        assert set(d) == {'index', 'name', 'count', 'mean', 'median', 'stdev', 'min', 'max'}

    def test_invalid_column(self):
        with pytest.raises(InvalidColumnError):
            summarize_column(self.ds, 3)


class TestPearson:
    """Tests for the correlation coefficient."""

    def test_perfect_positive(self):
        assert np.isclose(pearson([1, 2, 3], [2, 4, 6]), 1.0)

    def test_perfect_negative(self):
        assert np.isclose(pearson([1, 2, 3], [3, 2, 1]), -1.0)

    def test_too_few_pairs(self):
        assert pearson([1], [2]) is None
        assert pearson([], []) is None

    def test_constant_sample(self):
        assert pearson([1, 2, 3], [5, 5, 5]) == 0.0
        assert pearson([4, 4, 4], [1, 2, 3]) == 0.0

    def test_bounded(self):
        r = pearson([0.1, 0.2, 0.3, 0.4], [0.3, 0.6, 0.9, 1.2])
        assert -1.0 <= r <= 1.0

    def test_symmetric(self):
        xs = [1, 4, 2, 8, 5]
        ys = [3, 1, 4, 1, 5]
        assert np.isclose(pearson(xs, ys), pearson(ys, xs))

    def test_length_mismatch(self):
        with pytest.raises(ValueError):
            pearson([1, 2], [1, 2, 3])


class TestAlignedPairs:
    """Tests for row-wise pairing."""

    def test_drops_incomplete_rows(self):
        ds = Dataset(["x", "y"], [["1", "2"], ["a", "4"], ["3", ""], ["5", "10"]])
        rows, xs, ys = aligned_pairs(ds, 0, 1)
        assert rows == [1, 4]
        assert xs.tolist() == [1.0, 5.0]
        assert ys.tolist() == [2.0, 10.0]

    def test_no_pairs(self):
        ds = Dataset(["x", "y"], [["a", "b"]])
        rows, xs, ys = aligned_pairs(ds, 0, 1)
        assert rows == []
        assert xs.size == 0 and ys.size == 0


class TestCorrelationMatrix:
    """Tests for the pairwise matrix."""

    def test_matrix(self):
        ds = Dataset(["a", "b", "name"], [
            ["1", "3", "x"],
            ["2", "2", "y"],
            ["3", "1", "z"],
        ])
        result = correlation_matrix(ds)
        assert result['columns'] == [0, 1]
        assert result['names'] == ["a", "b"]
        corr = np.array(result['correlation'], dtype=float)
        assert np.allclose(corr, [[1.0, -1.0], [-1.0, 1.0]])

    def test_column_correlation_not_computable(self):
        ds = Dataset(["a", "b"], [["1", "x"], ["2", "y"]])
        assert column_correlation(ds, 0, 1) is None

    def test_invalid_column(self):
        ds = Dataset(["a"], [["1"]])
        with pytest.raises(InvalidColumnError):
            correlation_matrix(ds, [0, 3])


class TestLinearRegression:
    """Tests for least-squares fitting."""

    def test_exact_line(self):
        result = linear_regression([1, 2, 3, 4], [2, 4, 6, 8])
        assert np.isclose(result.slope, 2.0)
        assert np.isclose(result.intercept, 0.0)
        assert np.isclose(result.r, 1.0)
        assert np.isclose(result.r2, 1.0)
        assert result.n == 4
        assert np.isclose(result.predict(10), 20.0)

    def test_line_with_intercept(self):
        result = linear_regression([1, 2, 3, 4], [5, 7, 9, 11])
        assert abs(result.slope - 2.0) < 1e-9
        assert abs(result.intercept - 3.0) < 1e-9
        assert abs(result.r2 - 1.0) < 1e-9
        assert abs(result.r - 1.0) < 1e-9

    def test_noisy_line(self):
        xs = [0, 0, 10, 10]
        ys = [0, 1, 10, 11]
        result = linear_regression(xs, ys)
        assert np.isclose(result.slope, 1.0)
        assert np.isclose(result.intercept, 0.5)
        assert 0.0 <= result.r2 <= 1.0
        assert np.isclose(result.r2, result.r ** 2)

    def test_constant_y(self):
        result = linear_regression([1, 2, 3], [5, 5, 5])
        assert result.slope == 0.0
        assert np.isclose(result.intercept, 5.0)
        assert result.r == 0.0
        assert result.r2 == 0.0

    def test_constant_x(self):
        with pytest.raises(DegenerateInputError):
            linear_regression([2, 2, 2], [1, 2, 3])

    def test_degenerate_is_value_error(self):
        with pytest.raises(ValueError):
            linear_regression([2, 2], [1, 2])

    def test_too_few_pairs(self):
        assert linear_regression([1], [1]) is None

    def test_regress_columns(self):
        ds = Dataset(["x", "y"], [["1", "3"], ["2", "5"], ["oops", "9"], ["3", "7"]])
        result = regress_columns(ds, 0, 1)
        assert np.isclose(result.slope, 2.0)
        assert np.isclose(result.intercept, 1.0)
        assert result.x_col == 0
        assert result.y_col == 1
        assert result.points == ((1.0, 3.0), (2.0, 5.0), (3.0, 7.0))

    def test_regress_columns_invalid(self):
        ds = Dataset(["x", "y"], [["1", "3"]])
        with pytest.raises(InvalidColumnError):
            regress_columns(ds, 0, 4)
