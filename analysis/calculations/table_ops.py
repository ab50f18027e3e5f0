"""
Row filtering and sorting for dataset previews.
Pure functions - inputs are never mutated, new lists are returned.
"""

import locale
from functools import cmp_to_key
from typing import Dict, Any, List, Optional

from analysis.calculations.numeric import parse_number, display_text


SORT_DIRECTIONS = ('asc', 'desc')


def filter_rows(dataset: List[Dict[str, Any]], search_text: Optional[str]) -> List[Dict[str, Any]]:
    """
    Keep records where any field contains the search text.

    Matching is a case-insensitive substring test on the stringified
    value of every field. Empty search text keeps every row.

    Args:
        dataset: List of record dictionaries
        search_text: Text to look for

    Returns:
        New list of matching records in input order
    """
    if not search_text:
        return list(dataset)

    needle = search_text.lower()
    return [
        record for record in dataset
        if any(needle in display_text(value).lower() for value in record.values())
    ]


def collation_key(value: Any) -> str:
    """
    Sort key for text under the current LC_COLLATE locale.

    strxfrm rejects embedded NUL characters, so they are dropped first.
    """
    return locale.strxfrm(display_text(value).lower().replace('\x00', ''))


def compare_values(a: Any, b: Any) -> int:
    """
    Three-way comparison used for sorting.

    Numeric when both values parse as finite numbers, otherwise
    locale-aware comparison of the lower-cased strings.
    """
    number_a = parse_number(a)
    number_b = parse_number(b)

    if number_a is not None and number_b is not None:
        return (number_a > number_b) - (number_a < number_b)

    key_a = collation_key(a)
    key_b = collation_key(b)
    return (key_a > key_b) - (key_a < key_b)


def sort_rows(
    dataset: List[Dict[str, Any]],
    column: Optional[str],
    direction: str = 'asc'
) -> List[Dict[str, Any]]:
    """
    Stable sort by one column.

    Records with equal keys keep their input order in both directions.

    Args:
        dataset: List of record dictionaries
        column: Column to sort by (None or '' keeps input order)
        direction: 'asc' or 'desc'

    Returns:
        New sorted list

    Raises:
        ValueError: If direction is not 'asc' or 'desc'
    """
    if direction not in SORT_DIRECTIONS:
        raise ValueError(f"Sort direction must be one of {SORT_DIRECTIONS}, got {direction!r}")

    if not column:
        return list(dataset)

    sign = 1 if direction == 'asc' else -1

    def comparator(record_a: Dict[str, Any], record_b: Dict[str, Any]) -> int:
        return sign * compare_values(record_a.get(column), record_b.get(column))

    # sorted() is stable, and flipping the sign keeps ties at 0
    return sorted(dataset, key=cmp_to_key(comparator))


def paginate(dataset: List[Dict[str, Any]], page: int = 1, page_size: int = 10) -> List[Dict[str, Any]]:
    """Rows for a 1-based page."""
    if page < 1 or page_size < 1:
        raise ValueError(f"page and page_size must be positive, got {page}, {page_size}")
    start = (page - 1) * page_size
    return dataset[start:start + page_size]
