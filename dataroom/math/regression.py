"""
Ordinary least-squares linear regression of one column on another.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Sequence, Tuple

import numpy as np

from dataroom.math.corr import aligned_pairs, pearson
from dataroom.math.dataset import Dataset
from dataroom.math.errors import DegenerateInputError


@dataclass(frozen=True)
class RegressionResult:
    """
    Fitted line y = slope * x + intercept over aligned pairs.
    """

    slope: float
    intercept: float
    r: float
    r2: float
    points: Tuple[Tuple[float, float], ...] = field(repr=False)
    x_col: Optional[int] = None
    y_col: Optional[int] = None

    @property
    def n(self) -> int:
        return len(self.points)

    def predict(self, x: float) -> float:
        """Evaluate the fitted line at x."""
        return self.slope * x + self.intercept

    def to_dict(self) -> Dict[str, Any]:
        return {
            'x_col': self.x_col,
            'y_col': self.y_col,
            'slope': self.slope,
            'intercept': self.intercept,
            'r': self.r,
            'r2': self.r2,
            'n': self.n,
            'points': [list(p) for p in self.points],
        }


def linear_regression(xs: Sequence[float],
                      ys: Sequence[float],
                      x_col: Optional[int] = None,
                      y_col: Optional[int] = None) -> Optional[RegressionResult]:
    """
    Fit y on x by ordinary least squares.

    Args:
        xs: x values
        ys: y values aligned with xs
        x_col: Optional source column of x, recorded on the result
        y_col: Optional source column of y, recorded on the result

    Returns:
        RegressionResult, or None when fewer than 2 pairs are given

    Raises:
        DegenerateInputError: If every x value is the same
    """
    x = np.asarray(xs, dtype=float)
    y = np.asarray(ys, dtype=float)
    if x.shape != y.shape:
        raise ValueError("linear_regression() needs samples of equal length")

    if x.size < 2:
        return None

    if np.ptp(x) == 0:
        raise DegenerateInputError(
            f"All {x.size} x values equal {x[0]!r}; slope is undefined"
        )

    x_mean = x.mean()
    y_mean = y.mean()
    dx = x - x_mean
    dy = y - y_mean

    slope = float(np.sum(dx * dy) / np.sum(dx * dx))
    intercept = float(y_mean - slope * x_mean)

    residuals = y - (slope * x + intercept)
    ss_res = float(np.sum(residuals * residuals))
    ss_tot = float(np.sum(dy * dy))

    # Constant y: the line fits exactly but explains no variance
    r2 = 1.0 - ss_res / ss_tot if ss_tot > 0 else 0.0

    return RegressionResult(
        slope=slope,
        intercept=intercept,
        r=pearson(x, y),
        r2=float(r2),
        points=tuple(zip(x.tolist(), y.tolist())),
        x_col=x_col,
        y_col=y_col
    )


def regress_columns(dataset: Dataset, x_col: int, y_col: int) -> Optional[RegressionResult]:
    """
    Regress column ``y_col`` on column ``x_col`` over aligned rows.

    Returns:
        RegressionResult, or None if fewer than 2 rows have both cells numeric

    Raises:
        InvalidColumnError: If either column index is out of range
        DegenerateInputError: If every aligned x value is the same
    """
    _, xs, ys = aligned_pairs(dataset, x_col, y_col)
    return linear_regression(xs, ys, x_col=x_col, y_col=y_col)
