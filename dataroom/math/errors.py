"""
Exceptions raised by the dataroom numeric core.

"Not computable" outcomes (too few aligned rows, fewer row-vectors than
clusters) are expected during editing and are returned as ``None`` rather
than raised.
"""


class DataroomError(Exception):
    """Base class for all dataroom errors."""


class InvalidColumnError(DataroomError, IndexError):
    """A column index is outside the dataset's header."""

    def __init__(self, column: int, n_columns: int):
        self.column = column
        self.n_columns = n_columns
        super().__init__(f"Column index {column} out of range for {n_columns} columns")


class DegenerateInputError(DataroomError, ValueError):
    """Input has no spread where the computation needs some (e.g. constant x)."""
