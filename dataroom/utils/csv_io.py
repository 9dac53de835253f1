"""
CSV import and export for datasets.
"""

import csv
import io
import logging
from typing import Optional, Sequence

from dataroom.math.dataset import Dataset

logger = logging.getLogger(__name__)


def read_csv_text(text: str) -> Optional[Dataset]:
    """
    Parse CSV text into a normalized dataset.

    Args:
        text: CSV content; the first non-blank row is the header

    Returns:
        Dataset, or None if the text holds no non-blank rows
    """
    rows = list(csv.reader(io.StringIO(text)))
    try:
        return Dataset.from_rows(rows)
    except ValueError:
        logger.warning("CSV input has no non-blank rows; nothing imported")
        return None


def read_csv(filepath: str) -> Optional[Dataset]:
    """
    Read a CSV file into a normalized dataset.

    Args:
        filepath: Path to the CSV file

    Returns:
        Dataset, or None if the file holds no non-blank rows
    """
    with open(filepath, 'r', newline='', encoding='utf-8-sig') as f:
        return read_csv_text(f.read())


def rows_to_csv_text(rows: Sequence[Sequence[str]]) -> str:
    """
    Serialize rows to CSV text.

    Fields are quoted only when they contain a delimiter, quote or newline.
    """
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerows(rows)
    return buf.getvalue()


def write_csv_text(dataset: Dataset) -> str:
    """Serialize a dataset, header included, to CSV text."""
    return rows_to_csv_text(dataset.to_rows())


def write_csv(dataset: Dataset, filepath: str) -> None:
    """
    Write a dataset to a CSV file.

    Args:
        dataset: Dataset to write
        filepath: Destination path
    """
    with open(filepath, 'w', newline='', encoding='utf-8') as f:
        f.write(write_csv_text(dataset))
    logger.info(f"Wrote {dataset.n_rows} rows to {filepath}")
