"""
General utility functions for the dataroom package.

Small helpers shared by the dataset model, the CSV synthesizer and the
configuration layer.
"""

import math
import re
from typing import Any, Iterable, List, Optional, TypeVar

T = TypeVar('T')


def parse_number(cell: Any) -> Optional[float]:
    """
    Parse a grid cell into a finite float.

    Integers, decimals and exponent notation are accepted. Blank cells,
    non-numeric tokens and non-finite values (nan, inf) are rejected.

    Args:
        cell: Cell value, usually a string

    Returns:
        Parsed float, or None if the cell is not a finite number
    """
    if cell is None:
        return None

    text = str(cell).strip()

    # float() accepts "1_000" but a spreadsheet cell should not
    if not text or '_' in text:
        return None

    try:
        value = float(text)
    except ValueError:
        return None

    if not math.isfinite(value):
        return None

    return value


def to_snake(text: Any) -> str:
    """
    Convert free text to a snake_case identifier.

    Args:
        text: Text to convert

    Returns:
        Lower-case identifier made of [a-z0-9_]
    """
    s = str(text).strip().lower()
    s = re.sub(r'[^a-z0-9]+', '_', s)
    s = re.sub(r'^_+|_+$', '', s)
    return re.sub(r'_{2,}', '_', s)


def clamp(value: float, lower: float, upper: float) -> float:
    """
    Clamp a value to the closed interval [lower, upper].

    Args:
        value: Value to clamp
        lower: Lower bound
        upper: Upper bound

    Returns:
        Clamped value
    """
    return min(max(value, lower), upper)


def distinct(coll: Iterable[T]) -> List[T]:
    """
    Return a list with duplicates removed, preserving order.

    Args:
        coll: Collection to process

    Returns:
        List with duplicates removed
    """
    seen = set()
    result = []
    for item in coll:
        if item not in seen:
            seen.add(item)
            result.append(item)
    return result


def format_number(value: Optional[float], digits: int) -> str:
    """Fixed-point formatting that tolerates missing values."""
    if value is None:
        return 'n/a'
    return f"{value:.{digits}f}"
