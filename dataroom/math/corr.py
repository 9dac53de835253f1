"""
Pearson correlation between dataset columns.

Pairs are always aligned row-wise: a row contributes an (x, y) pair only if
both of its cells parse to finite numbers. Independently extracted columns
are never zipped by position.
"""

import math
from typing import Any, Dict, List, Optional, Sequence, Tuple

import numpy as np

from dataroom.math.dataset import Dataset


def aligned_pairs(dataset: Dataset, x_col: int, y_col: int) -> Tuple[List[int], np.ndarray, np.ndarray]:
    """
    Build aligned (x, y) pairs from two columns.

    Args:
        dataset: Source dataset
        x_col: Column index of x
        y_col: Column index of y

    Returns:
        Tuple of (1-based row indices, x values, y values)

    Raises:
        InvalidColumnError: If either column index is out of range
    """
    rows, matrix = dataset.numeric_rows([x_col, y_col])
    if not rows:
        return [], np.empty(0), np.empty(0)
    return rows, matrix[:, 0].copy(), matrix[:, 1].copy()


def pearson(xs: Sequence[float], ys: Sequence[float]) -> Optional[float]:
    """
    Pearson correlation coefficient of two aligned samples.

    Uses sample covariance over the product of sample standard deviations.

    Args:
        xs: x values
        ys: y values, same length as xs

    Returns:
        Coefficient in [-1, 1]; 0.0 when either sample is constant;
        None when fewer than 2 pairs are given
    """
    x = np.asarray(xs, dtype=float)
    y = np.asarray(ys, dtype=float)
    if x.shape != y.shape:
        raise ValueError("pearson() needs samples of equal length")

    n = x.size
    if n < 2:
        return None

    dx = x - x.mean()
    dy = y - y.mean()
    cov = float(np.sum(dx * dy)) / (n - 1)
    sx = math.sqrt(float(np.sum(dx * dx)) / (n - 1))
    sy = math.sqrt(float(np.sum(dy * dy)) / (n - 1))

    if np.ptp(x) == 0 or np.ptp(y) == 0:
        return 0.0

    r = cov / (sx * sy)
    return float(min(1.0, max(-1.0, r)))


def column_correlation(dataset: Dataset, x_col: int, y_col: int) -> Optional[float]:
    """
    Pearson correlation of two dataset columns.

    Returns:
        Coefficient, or None if fewer than 2 aligned pairs exist
    """
    _, xs, ys = aligned_pairs(dataset, x_col, y_col)
    return pearson(xs, ys)


def correlation_matrix(dataset: Dataset, cols: Optional[Sequence[int]] = None) -> Dict[str, Any]:
    """
    Pairwise correlations between columns.

    Each pair is aligned on its own, so different cells may be dropped for
    different pairs.

    Args:
        dataset: Source dataset
        cols: Column indices (defaults to every column with numeric cells)

    Returns:
        Dictionary with 'columns', 'names' and 'correlation' (nested lists,
        None where a pair is not computable)
    """
    if cols is None:
        cols = [j for j in range(dataset.n_columns) if dataset.numeric_column(j)]
    else:
        for col in cols:
            dataset.check_column(col)
        cols = list(cols)

    n = len(cols)
    corr: List[List[Optional[float]]] = [[None] * n for _ in range(n)]

    for i in range(n):
        for j in range(i, n):
            r = column_correlation(dataset, cols[i], cols[j])
            corr[i][j] = r
            corr[j][i] = r

    names = dataset.header
    return {
        'columns': cols,
        'names': [names[c] for c in cols],
        'correlation': corr
    }
