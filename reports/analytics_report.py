"""
Analytics export document.
Pure transformation of dataset, statistics and correlations into a report dict.
"""

from typing import Dict, Any, List, Optional

from analysis.calculations.descriptive import StatisticsSummary, numeric_columns, all_columns


DATA_SAMPLE_LIMIT = 1000


def export_report(
    dataset: List[Dict[str, Any]],
    filtered_dataset: List[Dict[str, Any]],
    summary: Optional[StatisticsSummary],
    correlation: Optional[Dict[str, Dict[str, float]]]
) -> Dict[str, Any]:
    """
    Build the analytics export document.

    Args:
        dataset: Full dataset
        filtered_dataset: Rows after filtering and sorting
        summary: Statistics for the selected column (None if absent)
        correlation: Correlation matrix (None if absent)

    Returns:
        Dictionary ready for JSON serialization
    """
    return {
        'total_rows': len(dataset),
        'filtered_rows': len(filtered_dataset),
        'column_count': len(all_columns(dataset)),
        'numeric_column_count': len(numeric_columns(dataset)),
        'statistics': summary.display() if summary is not None else None,
        'correlation_matrix': correlation,
        'data_sample': [dict(record) for record in filtered_dataset[:DATA_SAMPLE_LIMIT]]
    }
