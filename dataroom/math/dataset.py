"""
Dataset implementation for the dataroom numeric core.

A dataset is a rectangular grid of string cells: one header row of column
names (not required to be unique) followed by data rows. Cells are kept as
strings in a pandas DataFrame indexed by 1-based data-row number; numeric
views are derived lazily and never written back.

Datasets are treated as immutable values. Editing operations return a new
Dataset, mirroring how the rest of the package passes snapshots around.
"""

from typing import Any, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from dataroom.math.errors import InvalidColumnError
from dataroom.utils.general import distinct, parse_number


DEFAULT_ROWS = 8
DEFAULT_COLS = 4


def default_column_name(position: int) -> str:
    """Header name for the column at 0-based ``position``."""
    return f"col_{position + 1}"


class Dataset:
    """
    A header row plus rectangular rows of string cells.
    """

    def __init__(self,
                 header: Sequence[Any],
                 rows: Optional[Sequence[Sequence[Any]]] = None):
        """
        Initialize a dataset.

        Args:
            header: Column names
            rows: Data rows; each must have exactly ``len(header)`` cells

        Raises:
            ValueError: If the header is empty or a row has the wrong width
        """
        header = ['' if h is None else str(h) for h in header]
        if not header:
            raise ValueError("A dataset needs at least one column")

        rows = [] if rows is None else rows
        width = len(header)
        cells = []
        for i, row in enumerate(rows, start=1):
            if len(row) != width:
                raise ValueError(
                    f"Row {i} has {len(row)} cells, expected {width}"
                )
            cells.append(['' if c is None else str(c) for c in row])

        self._header = header
        self._cells = pd.DataFrame(
            cells,
            index=pd.RangeIndex(1, len(cells) + 1),
            columns=pd.RangeIndex(width),
            dtype=object
        )
        self._numeric = None

    @classmethod
    def blank(cls, rows: int = DEFAULT_ROWS, cols: int = DEFAULT_COLS) -> 'Dataset':
        """
        Create an empty grid.

        Args:
            rows: Total row count including the header row
            cols: Column count

        Returns:
            Dataset with ``col_1..col_n`` headers and empty cells
        """
        cols = max(1, cols)
        header = [default_column_name(j) for j in range(cols)]
        body = [[''] * cols for _ in range(max(0, rows - 1))]
        return cls(header, body)

    @classmethod
    def from_rows(cls, rows: Sequence[Sequence[Any]]) -> 'Dataset':
        """
        Build a dataset from imported rows, normalizing the shape.

        Rows with only blank cells are dropped, short rows are padded with
        empty strings to the longest row, header names are stripped and blank
        header names become ``"col"``.

        Args:
            rows: Header row followed by data rows

        Returns:
            Normalized Dataset

        Raises:
            ValueError: If no non-blank rows remain
        """
        kept = [
            list(r) for r in rows
            if len(r) and any(str('' if x is None else x).strip() != '' for x in r)
        ]
        if not kept:
            raise ValueError("No non-blank rows to import")

        width = max(len(r) for r in kept)
        padded = [
            ['' if j >= len(r) or r[j] is None else str(r[j]) for j in range(width)]
            for r in kept
        ]
        header = [h.strip() or 'col' for h in padded[0]]
        return cls(header, padded[1:])

    @property
    def header(self) -> List[str]:
        """Column names in order."""
        return list(self._header)

    @property
    def cells(self) -> pd.DataFrame:
        """Copy of the underlying string DataFrame."""
        return self._cells.copy()

    @property
    def n_columns(self) -> int:
        return len(self._header)

    @property
    def n_rows(self) -> int:
        """Number of data rows (the header is not counted)."""
        return len(self._cells.index)

    def to_rows(self) -> List[List[str]]:
        """Header plus data rows as nested lists."""
        return [self.header] + [list(r) for r in self._cells.itertuples(index=False, name=None)]

    def preview(self, n: int = 20) -> List[List[str]]:
        """First ``n`` grid rows, header included."""
        return self.to_rows()[:max(0, n)]

    def cell(self, row: int, col: int) -> str:
        """
        Get a cell; row 0 is the header.
        """
        self.check_column(col)
        self._check_row(row)
        if row == 0:
            return self._header[col]
        return self._cells.at[row, col]

    def check_column(self, col: int) -> None:
        """
        Validate a column index.

        Raises:
            InvalidColumnError: If the index is outside the header
        """
        if isinstance(col, bool) or not isinstance(col, (int, np.integer)):
            raise InvalidColumnError(col, self.n_columns)
        if col < 0 or col >= self.n_columns:
            raise InvalidColumnError(col, self.n_columns)

    def _check_row(self, row: int) -> None:
        if row < 0 or row > self.n_rows:
            raise IndexError(f"Row index {row} out of range for {self.n_rows} data rows")

    # Numeric views

    def numeric_frame(self) -> pd.DataFrame:
        """
        Float view of every cell; cells that do not parse are NaN.

        Computed once per dataset and cached.
        """
        if self._numeric is None:
            self._numeric = pd.DataFrame(
                {col: self._cells[col].map(parse_number).astype(float)
                 for col in self._cells.columns},
                index=self._cells.index,
                columns=self._cells.columns
            )
        return self._numeric

    def numeric_column(self, col: int) -> List[Tuple[int, float]]:
        """
        Extract the finite numbers of one column.

        Args:
            col: Column index

        Returns:
            Ordered (row_index, value) pairs, row_index 1-based over data rows

        Raises:
            InvalidColumnError: If the column index is out of range
        """
        self.check_column(col)
        series = self.numeric_frame()[col].dropna()
        return [(int(idx), float(v)) for idx, v in series.items()]

    def numeric_values(self, col: int) -> np.ndarray:
        """Values of :meth:`numeric_column` without the row indices."""
        return np.array([v for _, v in self.numeric_column(col)], dtype=float)

    def numeric_rows(self, cols: Sequence[int]) -> Tuple[List[int], np.ndarray]:
        """
        Rows where every given column parses to a finite number.

        Args:
            cols: Column indices, in feature order

        Returns:
            Tuple of (1-based row indices, matrix of shape (n_rows, len(cols)))

        Raises:
            InvalidColumnError: If any column index is out of range
        """
        for col in cols:
            self.check_column(col)

        cols = list(cols)
        if not cols:
            return [], np.empty((0, 0))

        sub = self.numeric_frame()[cols]
        mask = sub.notna().all(axis=1)
        matrix = sub[mask].to_numpy(dtype=float)
        return [int(i) for i in sub.index[mask]], matrix

    # Editing

    def set_cell(self, row: int, col: int, value: Any) -> 'Dataset':
        """
        Return a copy with one cell replaced; row 0 edits the header.

        Raises:
            InvalidColumnError: If the column index is out of range
            IndexError: If the row index is out of range
        """
        self.check_column(col)
        self._check_row(row)
        rows = self.to_rows()
        rows[row][col] = '' if value is None else str(value)
        return Dataset(rows[0], rows[1:])

    def add_row(self, cells: Optional[Sequence[Any]] = None) -> 'Dataset':
        """Append a data row (blank unless ``cells`` is given)."""
        rows = self.to_rows()
        if cells is None:
            new_row = [''] * self.n_columns
        else:
            new_row = ['' if c is None else str(c) for c in cells][:self.n_columns]
            new_row += [''] * (self.n_columns - len(new_row))
        rows.append(new_row)
        return Dataset(rows[0], rows[1:])

    def delete_row(self, row: Optional[int] = None) -> 'Dataset':
        """
        Remove a data row (the last one by default).

        The grid always keeps at least one data row; deleting the only one
        returns the dataset unchanged.
        """
        if self.n_rows <= 1:
            return self
        row = self.n_rows if row is None else row
        if row < 1 or row > self.n_rows:
            raise IndexError(f"Row index {row} out of range for {self.n_rows} data rows")
        rows = self.to_rows()
        del rows[row]
        return Dataset(rows[0], rows[1:])

    def add_column(self, name: Optional[str] = None) -> 'Dataset':
        """Append a column named ``col_{n+1}`` unless ``name`` is given."""
        rows = self.to_rows()
        rows[0].append(default_column_name(self.n_columns) if name is None else str(name))
        for r in rows[1:]:
            r.append('')
        return Dataset(rows[0], rows[1:])

    def delete_column(self, col: Optional[int] = None) -> 'Dataset':
        """
        Remove a column (the last one by default).

        The grid always keeps at least one column.
        """
        if self.n_columns <= 1:
            return self
        col = self.n_columns - 1 if col is None else col
        self.check_column(col)
        rows = [r[:col] + r[col + 1:] for r in self.to_rows()]
        return Dataset(rows[0], rows[1:])

    def valid_columns(self, cols: Sequence[int]) -> List[int]:
        """Distinct column indices from ``cols`` that exist in this dataset."""
        return [c for c in distinct(cols)
                if isinstance(c, (int, np.integer)) and not isinstance(c, bool)
                and 0 <= c < self.n_columns]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Dataset):
            return NotImplemented
        return self.to_rows() == other.to_rows()

    def __repr__(self) -> str:
        return f"Dataset(rows={self.n_rows}, cols={self.n_columns})"

    def __str__(self) -> str:
        frame = self._cells.copy()
        frame.columns = self._header
        return f"Dataset with {self.n_rows} rows and {self.n_columns} columns\n{frame}"
