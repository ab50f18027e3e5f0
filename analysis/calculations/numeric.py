"""
Numeric coercion for loosely-typed records.
Single boundary where cell values become floats - pure functions, no IO.
"""

import math
import re
from typing import Any, Optional


# Plain decimal literal: optional sign, digits with optional fraction, optional exponent.
# Rejects things float() would accept such as 'nan', 'inf' and '1_000'.
_NUMBER_PATTERN = re.compile(r'^[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?$')


def parse_number(value: Any) -> Optional[float]:
    """
    Parse a cell value as a finite float.

    Args:
        value: Scalar cell value (str, int, float or None)

    Returns:
        Finite float, or None if the value is not numeric
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, (int, float)):
        number = float(value)
        return number if math.isfinite(number) else None

    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text or not _NUMBER_PATTERN.match(text):
        return None

    try:
        number = float(text)
    except (ValueError, OverflowError):
        return None

    # Very large exponents overflow to inf
    return number if math.isfinite(number) else None


def is_number(value: Any) -> bool:
    """True if the value parses as a finite number."""
    return parse_number(value) is not None


def chart_value(value: Any) -> float:
    """Chart series value - non-numeric cells plot as zero."""
    number = parse_number(value)
    return number if number is not None else 0.0


def display_text(value: Any) -> str:
    """
    Stringify a cell for matching and ordering.

    None renders as an empty string and integral floats drop the
    trailing '.0' so that 3.0 and "3" read the same.
    """
    if value is None:
        return ''

    if isinstance(value, float) and math.isfinite(value) and value.is_integer():
        return str(int(value))

    return str(value)


def column_values(dataset, column: str):
    """
    Extract the finite-number values of a column, dropping the rest.

    Args:
        dataset: List of record dictionaries
        column: Column name

    Returns:
        List of floats in row order
    """
    values = []
    for record in dataset:
        number = parse_number(record.get(column))
        if number is not None:
            values.append(number)
    return values
