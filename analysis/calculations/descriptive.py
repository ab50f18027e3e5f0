"""
Descriptive statistics for tabular datasets.
Pure functions over in-memory records - no IO, network, or side effects.
"""

import math
from dataclasses import dataclass, asdict
from typing import Dict, Any, List, Optional

import numpy as np

from analysis.calculations.numeric import parse_number, column_values


DISPLAY_DECIMALS = 2


@dataclass(frozen=True)
class StatisticsSummary:
    """Snapshot of one numeric column. Values keep full float precision."""
    column: str
    count: int
    sum: float
    mean: float
    median: float
    min: float
    max: float
    variance: float
    std_dev: float

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def rounded(self, decimals: int = DISPLAY_DECIMALS) -> Dict[str, Any]:
        """Numeric fields rounded for display; count stays an integer."""
        result = self.as_dict()
        for key, value in result.items():
            if isinstance(value, float):
                result[key] = round(value, decimals)
        return result

    def display(self, decimals: int = DISPLAY_DECIMALS) -> Dict[str, Any]:
        """
        Fixed-point strings for tables and exported reports.

        Returns:
            Dictionary like {'column': 'x', 'count': 3, 'mean': '2.00', ...}
        """
        result = self.as_dict()
        for key, value in result.items():
            if isinstance(value, float):
                result[key] = f"{value:.{decimals}f}"
        return result


def numeric_columns(dataset: List[Dict[str, Any]]) -> List[str]:
    """
    Columns where at least one record holds a finite number.

    The first record's keys define the schema; partially numeric
    columns qualify.

    Args:
        dataset: List of record dictionaries

    Returns:
        Qualifying column names in first-record key order
    """
    if not dataset:
        return []

    columns = []
    for column in dataset[0].keys():
        if any(parse_number(record.get(column)) is not None for record in dataset):
            columns.append(column)
    return columns


def all_columns(dataset: List[Dict[str, Any]]) -> List[str]:
    """Column names of the first record, or [] for an empty dataset."""
    if not dataset:
        return []
    return list(dataset[0].keys())


def summarize(dataset: List[Dict[str, Any]], column: str) -> Optional[StatisticsSummary]:
    """
    Compute count, sum, mean, median, extrema and population variance.

    Non-numeric entries are dropped, not treated as zero.

    Args:
        dataset: List of record dictionaries
        column: Column name (expected to be numeric-qualified)

    Returns:
        StatisticsSummary, or None when the column has no numeric values
    """
    if not dataset or not column:
        return None

    values = column_values(dataset, column)
    if not values:
        return None

    array = np.array(values, dtype=np.float64)
    count = len(values)

    total = float(np.sum(array))
    mean = total / count

    # Even count averages the two central values
    ordered = np.sort(array)
    middle = count // 2
    if count % 2 == 0:
        median = float((ordered[middle - 1] + ordered[middle]) / 2)
    else:
        median = float(ordered[middle])

    # Population variance (divisor = count)
    variance = float(np.sum((array - mean) ** 2) / count)
    std_dev = math.sqrt(variance)

    return StatisticsSummary(
        column=column,
        count=count,
        sum=total,
        mean=mean,
        median=median,
        min=float(ordered[0]),
        max=float(ordered[-1]),
        variance=variance,
        std_dev=std_dev
    )


def summarize_all(dataset: List[Dict[str, Any]]) -> Dict[str, StatisticsSummary]:
    """Summaries for every numeric column, keyed by column name."""
    summaries = {}
    for column in numeric_columns(dataset):
        summary = summarize(dataset, column)
        if summary is not None:
            summaries[column] = summary
    return summaries
