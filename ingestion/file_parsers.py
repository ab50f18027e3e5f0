"""
Parsers from uploaded file content to datasets (lists of records).
Pure functions - no IO, network, or side effects.
"""

import io
import json
from pathlib import PurePath
from typing import Dict, Any, List, Optional

import pandas as pd


CSV_MIME_TYPES = {'text/csv', 'application/csv'}
JSON_MIME_TYPES = {'application/json'}


class IngestionError(Exception):
    """Raised when file content cannot be turned into a dataset."""
    pass


def parse_csv_content(text: str) -> List[Dict[str, Any]]:
    """
    Parse CSV text with a header row.

    Every cell stays a string; blank lines are skipped and missing
    trailing cells become None.

    Args:
        text: CSV content

    Returns:
        List of record dictionaries

    Raises:
        IngestionError: If the CSV is malformed
    """
    if not text or not text.strip():
        return []

    try:
        df = pd.read_csv(
            io.StringIO(text),
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True
        )
    except pd.errors.EmptyDataError:
        return []
    except (pd.errors.ParserError, ValueError) as e:
        raise IngestionError(f"CSV parsing error: {e}")

    # Short rows are padded with NaN even when keep_default_na=False
    df = df.astype(object).where(pd.notna(df), None)
    return df.to_dict('records')


def parse_json_content(text: str) -> List[Dict[str, Any]]:
    """
    Parse JSON text into records.

    An array is used as is (scalar items become {'value': item}); a
    single object becomes a one-record dataset.

    Args:
        text: JSON content

    Returns:
        List of record dictionaries

    Raises:
        IngestionError: If the JSON is invalid
    """
    try:
        data = json.loads(text or '[]')
    except json.JSONDecodeError as e:
        raise IngestionError(f"JSON parsing error: {e}")

    items = data if isinstance(data, list) else [data]

    records = []
    for item in items:
        if isinstance(item, dict):
            records.append(item)
        else:
            records.append({'value': item})
    return records


def detect_format(mime_type: Optional[str], filename: Optional[str]) -> Optional[str]:
    """Return 'csv', 'json' or None from MIME type or file extension."""
    extension = PurePath(filename).suffix.lower() if filename else ''

    if mime_type in CSV_MIME_TYPES or extension == '.csv':
        return 'csv'
    if mime_type in JSON_MIME_TYPES or extension == '.json':
        return 'json'
    return None


def parse_file_record(file_row: Dict[str, Any]) -> List[Dict[str, Any]]:
    """
    Parse a stored file row into a dataset.

    Args:
        file_row: File dictionary with 'mime_type', 'original_name', 'content'

    Returns:
        List of record dictionaries

    Raises:
        IngestionError: If the file type is not tabular or parsing fails
    """
    file_format = detect_format(file_row.get('mime_type'), file_row.get('original_name'))
    content = file_row.get('content') or ''

    if file_format == 'csv':
        return parse_csv_content(content)
    if file_format == 'json':
        return parse_json_content(content)

    raise IngestionError(
        f"Unsupported file type for analysis: {file_row.get('original_name')} "
        f"({file_row.get('mime_type')})"
    )


def preview_rows(
    dataset: List[Dict[str, Any]],
    limit: int = 5,
    max_chars: int = 50
) -> List[Dict[str, str]]:
    """
    First rows with every value stringified and truncated.

    Args:
        dataset: List of record dictionaries
        limit: Number of rows
        max_chars: Maximum characters per value before '...'

    Returns:
        List of string-valued dictionaries
    """
    preview = []
    for record in dataset[:limit]:
        row = {}
        for key, value in record.items():
            text = '' if value is None else str(value)
            row[key] = text[:max_chars] + '...' if len(text) > max_chars else text
        preview.append(row)
    return preview
