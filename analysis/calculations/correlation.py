"""
Pearson correlation matrix across numeric columns.
Pure functions - no IO, network, or side effects.
"""

import math
from typing import Dict, Any, Iterable, List, Optional, Tuple

import numpy as np

from analysis.calculations.numeric import parse_number, column_values
from analysis.calculations.descriptive import numeric_columns


PAIRWISE = 'pairwise'
INDEPENDENT = 'independent'
POLICIES = (PAIRWISE, INDEPENDENT)


def pearson(values_a: List[float], values_b: List[float]) -> float:
    """
    Pearson's r for two equally long sequences.

    Returns 0 for zero variance or fewer than two pairs, and clamps the
    result to [-1, 1].

    Args:
        values_a: First numeric sequence
        values_b: Second numeric sequence, same length as values_a

    Returns:
        Correlation coefficient
    """
    if len(values_a) != len(values_b):
        raise ValueError(f"Sequences differ in length: {len(values_a)} vs {len(values_b)}")

    if len(values_a) < 2:
        return 0.0

    a = np.array(values_a, dtype=np.float64)
    b = np.array(values_b, dtype=np.float64)

    deviation_a = a - a.mean()
    deviation_b = b - b.mean()

    numerator = float(np.sum(deviation_a * deviation_b))
    denominator = math.sqrt(float(np.sum(deviation_a ** 2)) * float(np.sum(deviation_b ** 2)))

    if denominator == 0:
        return 0.0

    return max(-1.0, min(1.0, numerator / denominator))


def aligned_pairs(
    dataset: List[Dict[str, Any]],
    column_a: str,
    column_b: str
) -> Tuple[List[float], List[float]]:
    """
    Values of two columns on rows where both are numeric.

    Args:
        dataset: List of record dictionaries
        column_a: First column name
        column_b: Second column name

    Returns:
        Tuple of (values_a, values_b), aligned by row
    """
    values_a = []
    values_b = []
    for record in dataset:
        a = parse_number(record.get(column_a))
        b = parse_number(record.get(column_b))
        if a is not None and b is not None:
            values_a.append(a)
            values_b.append(b)
    return values_a, values_b


def pair_coefficient(
    dataset: List[Dict[str, Any]],
    column_a: str,
    column_b: str,
    policy: str = PAIRWISE
) -> float:
    """
    Correlation of two columns under the given missing-value policy.

    'pairwise' keeps rows where both columns are numeric. 'independent'
    filters each column on its own and yields 0 when the filtered
    lengths differ.
    """
    if policy not in POLICIES:
        raise ValueError(f"Unknown correlation policy: {policy} (expected one of {POLICIES})")

    if column_a == column_b:
        # Diagonal: exactly 1 unless the column has zero variance
        values = column_values(dataset, column_a)
        if len(values) < 2 or float(np.ptp(values)) == 0.0:
            return 0.0
        return 1.0

    if policy == PAIRWISE:
        values_a, values_b = aligned_pairs(dataset, column_a, column_b)
        return pearson(values_a, values_b)

    values_a = column_values(dataset, column_a)
    values_b = column_values(dataset, column_b)
    if len(values_a) != len(values_b):
        return 0.0
    return pearson(values_a, values_b)


def correlation_matrix(
    dataset: List[Dict[str, Any]],
    columns: Optional[Iterable[str]] = None,
    policy: str = PAIRWISE
) -> Optional[Dict[str, Dict[str, float]]]:
    """
    Pairwise Pearson correlation matrix.

    Args:
        dataset: List of record dictionaries
        columns: Candidate columns (defaults to every numeric column);
            non-numeric candidates are ignored
        policy: 'pairwise' (default) or 'independent'

    Returns:
        Nested dict matrix[a][b], or None with fewer than two numeric columns
    """
    if policy not in POLICIES:
        raise ValueError(f"Unknown correlation policy: {policy} (expected one of {POLICIES})")

    qualified = numeric_columns(dataset)
    if columns is not None:
        requested = list(columns)
        qualified = [column for column in requested if column in qualified]

    # Preserve order, drop repeats
    selected = list(dict.fromkeys(qualified))
    if len(selected) < 2:
        return None

    matrix = {column: {} for column in selected}
    for i, column_a in enumerate(selected):
        for column_b in selected[i:]:
            coefficient = pair_coefficient(dataset, column_a, column_b, policy)
            # Symmetric by construction
            matrix[column_a][column_b] = coefficient
            matrix[column_b][column_a] = coefficient

    # Keep inner dicts in column order
    return {a: {b: matrix[a][b] for b in selected} for a in selected}


def strongest_pairs(
    matrix: Optional[Dict[str, Dict[str, float]]],
    limit: int = 5
) -> List[Dict[str, Any]]:
    """
    Off-diagonal pairs ordered by absolute coefficient.

    Returns:
        List of {'columns': (a, b), 'coefficient': r}
    """
    if not matrix:
        return []

    columns = list(matrix.keys())
    pairs = []
    for i, column_a in enumerate(columns):
        for column_b in columns[i + 1:]:
            pairs.append({
                'columns': (column_a, column_b),
                'coefficient': matrix[column_a][column_b]
            })

    pairs.sort(key=lambda pair: abs(pair['coefficient']), reverse=True)
    return pairs[:limit]
