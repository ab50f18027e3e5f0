"""
Display formatters for CLI output.
Deterministic string formatting for file sizes, statistics and timestamps.
"""

from datetime import datetime
from typing import Optional, Union


FILE_SIZE_UNITS = ('Bytes', 'KB', 'MB', 'GB')
NOT_AVAILABLE = "Not available"


class FormatterError(Exception):
    """Raised when formatter input validation fails."""
    pass


def format_file_size(size_bytes: int) -> str:
    """
    Format byte count with 1024-based units.

    Args:
        size_bytes: Size in bytes

    Returns:
        Formatted size (e.g., "0 Bytes", "1.5 KB", "2 MB")
    """
    if not isinstance(size_bytes, int) or isinstance(size_bytes, bool):
        raise FormatterError(f"File size must be an integer, got {type(size_bytes)}")
    if size_bytes < 0:
        raise FormatterError(f"File size must not be negative, got {size_bytes}")

    if size_bytes == 0:
        return "0 Bytes"

    exponent = 0
    scaled = float(size_bytes)
    while scaled >= 1024 and exponent < len(FILE_SIZE_UNITS) - 1:
        scaled /= 1024
        exponent += 1

    # Drop trailing zeros: 1.50 -> 1.5, 2.00 -> 2
    number = f"{scaled:.2f}".rstrip('0').rstrip('.')
    return f"{number} {FILE_SIZE_UNITS[exponent]}"


def format_stat(value: Optional[Union[int, float]], decimal_places: int = 2) -> str:
    """
    Format a statistic with fixed precision.

    Args:
        value: Numeric statistic
        decimal_places: Number of decimal places (default: 2)

    Returns:
        Formatted string (e.g., "3.50")
    """
    if value is None:
        return NOT_AVAILABLE

    if not isinstance(value, (int, float)) or isinstance(value, bool):
        raise FormatterError(f"Statistic must be numeric, got {type(value)}")

    return f"{value:.{decimal_places}f}"


def format_coefficient(value: Optional[float]) -> str:
    """Format a correlation coefficient with sign, e.g. "+0.87"."""
    if value is None:
        return NOT_AVAILABLE
    return f"{value:+.2f}"


def format_timestamp(value: Optional[datetime]) -> str:
    """Format a stored timestamp as 'YYYY-MM-DD HH:MM'."""
    if value is None:
        return NOT_AVAILABLE
    return value.strftime('%Y-%m-%d %H:%M')
