"""
Workspace manager holding the current dataset.

The workspace is the single owner of mutable state: the current Dataset and
the current analysis parameters. The dataset is replaced wholesale on
import, generation and reset, or edited one operation at a time; each
change swaps in a new immutable Dataset. The analysis is cached for the
current (dataset, params) pair only.
"""

import logging
import threading
from typing import Any, Optional, Sequence, Tuple

from dataroom.math.dataset import Dataset, DEFAULT_COLS, DEFAULT_ROWS
from dataroom.llm.prompts import build_ask_prompt
from dataroom.utils.csv_io import read_csv_text, write_csv_text
from dataroom.utils.report import build_report
from dataroom.workspace.analysis import Analysis, AnalysisParams, analyze

logger = logging.getLogger(__name__)


class Workspace:
    """
    In-memory owner of the current dataset.
    """

    def __init__(self,
                 dataset: Optional[Dataset] = None,
                 params: Optional[AnalysisParams] = None):
        """
        Initialize a workspace.

        Args:
            dataset: Initial dataset (a blank grid by default)
            params: Initial analysis parameters
        """
        self._dataset = dataset if dataset is not None else Dataset.blank()
        self._params = params or AnalysisParams()
        self._version = 0
        self._cached: Optional[Tuple[int, AnalysisParams, Analysis]] = None
        self.lock = threading.RLock()

    @property
    def dataset(self) -> Dataset:
        """Snapshot of the current dataset."""
        with self.lock:
            return self._dataset

    @property
    def params(self) -> AnalysisParams:
        with self.lock:
            return self._params

    @property
    def version(self) -> int:
        """Counter bumped on every dataset change."""
        with self.lock:
            return self._version

    def replace(self, dataset: Dataset) -> Dataset:
        """
        Replace the current dataset wholesale.

        Args:
            dataset: New dataset

        Returns:
            The new current dataset
        """
        with self.lock:
            self._dataset = dataset
            self._version += 1
            logger.info(f"Dataset replaced ({dataset.n_rows} rows, {dataset.n_columns} columns)")
            return dataset

    def _edit(self, operation: str, *args: Any) -> Dataset:
        with self.lock:
            updated = getattr(self._dataset, operation)(*args)
            if updated is not self._dataset:
                self._dataset = updated
                self._version += 1
            return self._dataset

    def set_cell(self, row: int, col: int, value: Any) -> Dataset:
        """Set one cell; row 0 is the header."""
        return self._edit('set_cell', row, col, value)

    def add_row(self, cells: Optional[Sequence[Any]] = None) -> Dataset:
        return self._edit('add_row', cells)

    def delete_row(self, row: Optional[int] = None) -> Dataset:
        return self._edit('delete_row', row)

    def add_column(self, name: Optional[str] = None) -> Dataset:
        return self._edit('add_column', name)

    def delete_column(self, col: Optional[int] = None) -> Dataset:
        return self._edit('delete_column', col)

    def reset(self, rows: int = DEFAULT_ROWS, cols: int = DEFAULT_COLS) -> Dataset:
        """Replace the dataset with a blank grid."""
        return self.replace(Dataset.blank(rows, cols))

    def import_csv(self, text: str) -> bool:
        """
        Replace the dataset with parsed CSV text.

        Returns:
            False (and no change) if the text has no non-blank rows
        """
        dataset = read_csv_text(text)
        if dataset is None:
            return False
        self.replace(dataset)
        return True

    def export_csv(self) -> str:
        return write_csv_text(self.dataset)

    def set_params(self, **changes: Any) -> AnalysisParams:
        """
        Update analysis parameters (x_col, y_col, features, k, seed, ...).
        """
        with self.lock:
            self._params = self._params.update(**changes)
            return self._params

    def analysis(self) -> Analysis:
        """
        Analysis of the current dataset with the current parameters.

        Recomputed only when the dataset or the parameters changed since the
        last call. Selections missing from the dataset are noted, not raised.
        """
        return self._snapshot()[1]

    def _snapshot(self) -> Tuple[Dataset, Analysis]:
        with self.lock:
            dataset, params, version = self._dataset, self._params, self._version
            cached = self._cached
            if cached is not None and cached[0] == version and cached[1] == params:
                return dataset, cached[2]

        result = analyze(dataset, params)

        with self.lock:
            if self._version == version and self._params == params:
                self._cached = (version, params, result)
        return dataset, result

    def report(self) -> str:
        """Markdown report of the current analysis."""
        dataset, result = self._snapshot()
        return build_report(dataset, result.summary, result.regression, result.clusters)

    def ask_prompt(self, question: str) -> str:
        """Question prompt embedding the current dataset and analysis."""
        dataset, result = self._snapshot()
        return build_ask_prompt(dataset, question, result.summary, result.regression, result.clusters)
