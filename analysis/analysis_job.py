"""
Orchestrated analysis job - stored file to statistics and export report.
Loads the dataset from SQLite, runs the pure engine, persists the export JSON.
"""

import sqlite3
import logging
from datetime import datetime
from pathlib import Path
from typing import Dict, Any, Optional, List

from analysis.analysis_view import AnalysisView
from analysis.calculations.correlation import PAIRWISE, strongest_pairs
from ingestion.file_parsers import parse_file_record, preview_rows, IngestionError
from reports.atomic_writer import write_json_atomic
from storage.files import get_file
from storage.system_logs import create_log, LogLevel

# Set up logger
logger = logging.getLogger(__name__)


PREVIEW_LIMIT = 5


class AnalysisJobError(Exception):
    """Raised when analysis job fails."""
    pass


def load_dataset(
    conn: sqlite3.Connection,
    user_id: int,
    file_id: int
) -> List[Dict[str, Any]]:
    """
    Load and parse one of the user's files.

    Args:
        conn: SQLite database connection
        user_id: Owning user
        file_id: Stored file ID

    Returns:
        Dataset (list of records)

    Raises:
        AnalysisJobError: If the file is missing or cannot be parsed
    """
    file_row = get_file(conn, file_id, user_id)
    if file_row is None:
        raise AnalysisJobError(f"File {file_id} not found")

    try:
        dataset = parse_file_record(file_row)
    except IngestionError as e:
        raise AnalysisJobError(str(e))

    logger.info(f"Loaded file {file_id} ({file_row['original_name']}): {len(dataset)} rows")
    return dataset


def build_view(
    dataset: List[Dict[str, Any]],
    column: Optional[str] = None,
    search: str = '',
    sort_column: Optional[str] = None,
    direction: str = 'asc',
    policy: str = PAIRWISE
) -> AnalysisView:
    """Analysis view over a dataset with the given inputs applied."""
    return (
        AnalysisView(correlation_policy=policy)
        .with_dataset(dataset)
        .with_column(column)
        .with_filter(search)
        .with_sort(sort_column, direction)
    )


def run_analysis(
    conn: sqlite3.Connection,
    user_id: int,
    file_id: int,
    column: Optional[str] = None,
    search: str = '',
    sort_column: Optional[str] = None,
    direction: str = 'asc',
    policy: str = PAIRWISE
) -> Dict[str, Any]:
    """
    Run the statistics engine over a stored file.

    Args:
        conn: SQLite database connection
        user_id: Owning user
        file_id: Stored file ID
        column: Column to summarize (optional)
        search: Row filter text
        sort_column: Column to sort the preview by
        direction: 'asc' or 'desc'
        policy: Correlation missing-value policy

    Returns:
        Dictionary with job status and results
    """
    start_time = datetime.now()

    try:
        dataset = load_dataset(conn, user_id, file_id)
        view = build_view(dataset, column, search, sort_column, direction, policy)

        statistics = view.statistics
        correlation = view.correlation
        visible = view.sorted_rows

        return {
            'file_id': file_id,
            'status': 'completed',
            'columns': view.columns,
            'numeric_columns': view.numeric_columns,
            'total_rows': len(dataset),
            'filtered_rows': len(visible),
            'statistics': statistics.as_dict() if statistics is not None else None,
            'correlation_matrix': correlation,
            'strongest_pairs': strongest_pairs(correlation) if correlation else [],
            'preview': preview_rows(visible, limit=PREVIEW_LIMIT),
            'duration_seconds': (datetime.now() - start_time).total_seconds()
        }

    except (AnalysisJobError, ValueError) as e:
        logger.warning(f"Analysis of file {file_id} failed: {e}")
        return {
            'file_id': file_id,
            'status': 'failed',
            'error_message': str(e),
            'duration_seconds': (datetime.now() - start_time).total_seconds()
        }


def export_analysis(
    conn: sqlite3.Connection,
    user_id: int,
    file_id: int,
    output_path: Path,
    column: Optional[str] = None,
    search: str = '',
    sort_column: Optional[str] = None,
    direction: str = 'asc',
    policy: str = PAIRWISE
) -> Dict[str, Any]:
    """
    Write the analytics export report for a stored file.

    Returns:
        Dictionary with job status, output path and report summary
    """
    try:
        dataset = load_dataset(conn, user_id, file_id)
        report = build_view(dataset, column, search, sort_column, direction, policy).report()
    except (AnalysisJobError, ValueError) as e:
        logger.warning(f"Export of file {file_id} failed: {e}")
        return {'file_id': file_id, 'status': 'failed', 'error_message': str(e), 'output_path': None}

    write_result = write_json_atomic(report, Path(output_path))
    if write_result['status'] != 'completed':
        return {
            'file_id': file_id,
            'status': 'failed',
            'error_message': write_result.get('error', 'Unknown write error'),
            'output_path': None
        }

    create_log(
        conn, LogLevel.SUCCESS, 'Analytics report exported', user_id,
        {'file_id': file_id, 'path': str(output_path)}
    )
    logger.info(f"Analytics report exported: {output_path}")

    return {
        'file_id': file_id,
        'status': 'completed',
        'output_path': str(output_path),
        'bytes_written': write_result['bytes_written'],
        'total_rows': report['total_rows'],
        'filtered_rows': report['filtered_rows']
    }
