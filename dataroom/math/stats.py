"""
Descriptive statistics for dataset columns.

Each column's numeric view is summarized with count, mean, median,
population standard deviation, min and max. Columns with no numeric cells
report a zero count and no statistics.
"""

from dataclasses import dataclass, asdict
from typing import Any, Dict, List, Optional, Sequence

import numpy as np

from dataroom.math.dataset import Dataset


@dataclass(frozen=True)
class ColumnSummary:
    """Summary of one column's numeric cells."""

    index: int
    name: str
    count: int
    mean: Optional[float] = None
    median: Optional[float] = None
    stdev: Optional[float] = None
    min: Optional[float] = None
    max: Optional[float] = None

    @property
    def is_numeric(self) -> bool:
        return self.count > 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def describe(values: Sequence[float]) -> Dict[str, float]:
    """
    Compute summary statistics of a non-empty sequence.

    Args:
        values: Finite numbers

    Returns:
        Dictionary with count, mean, median, stdev (population), min and max

    Raises:
        ValueError: If values is empty
    """
    arr = np.asarray(values, dtype=float)
    if arr.size == 0:
        raise ValueError("describe() requires at least one value")

    lo, hi = float(np.min(arr)), float(np.max(arr))
    if lo == hi:
        # Constant column: exact mean, zero spread
        return {'count': int(arr.size), 'mean': lo, 'median': lo, 'stdev': 0.0, 'min': lo, 'max': hi}

    return {
        'count': int(arr.size),
        'mean': float(np.mean(arr)),
        # np.median averages the two middle values for even counts
        'median': float(np.median(arr)),
        'stdev': float(np.std(arr, ddof=0)),
        'min': lo,
        'max': hi,
    }


def summarize_column(dataset: Dataset, col: int) -> ColumnSummary:
    """
    Summarize a single column.

    Args:
        dataset: Source dataset
        col: Column index

    Returns:
        ColumnSummary; count is 0 for non-numeric or empty columns

    Raises:
        InvalidColumnError: If the column index is out of range
    """
    values = dataset.numeric_values(col)
    name = dataset.header[col]

    if values.size == 0:
        return ColumnSummary(index=col, name=name, count=0)

    return ColumnSummary(index=col, name=name, **describe(values))


def summarize(dataset: Dataset) -> List[ColumnSummary]:
    """
    Summarize every column of a dataset, in header order.
    """
    return [summarize_column(dataset, j) for j in range(dataset.n_columns)]


def numeric_summaries(summaries: Sequence[ColumnSummary]) -> List[ColumnSummary]:
    """Only the summaries of columns that hold numbers."""
    return [s for s in summaries if s.is_numeric]
