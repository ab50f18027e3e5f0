"""
Filename and path policy for exports.
Deterministic, sortable names for reports, charts and memory snapshots.
"""

import os
import re
from datetime import datetime
from pathlib import Path
from typing import Optional, List

from dotenv import load_dotenv

# Load environment variables
load_dotenv()


DEFAULT_EXPORT_DIR = './exports'

# kind -> (filename prefix, strftime format, extension)
EXPORT_KINDS = {
    'report': ('analytics-report-', '%Y%m%d_%H%M%S', '.json'),
    'chart': ('chart-', '%Y%m%d_%H%M%S', '.png'),
    'memory': ('workbench_memory_', '%Y-%m-%d', '.json'),
}


class PathPolicyError(Exception):
    """Raised when path policy validation fails."""
    pass


def get_export_dir() -> Path:
    return Path(os.getenv('WORKBENCH_EXPORT_DIR', DEFAULT_EXPORT_DIR))


def export_filename(kind: str, timestamp: datetime) -> str:
    """
    Build the filename for an export.

    Args:
        kind: 'report', 'chart' or 'memory'
        timestamp: Local export time

    Returns:
        Filename such as 'analytics-report-20250906_143000.json'

    Raises:
        PathPolicyError: If kind is unknown
    """
    if kind not in EXPORT_KINDS:
        raise PathPolicyError(f"Unknown export kind: {kind} (expected one of {sorted(EXPORT_KINDS)})")

    prefix, time_format, extension = EXPORT_KINDS[kind]
    return f"{prefix}{timestamp.strftime(time_format)}{extension}"


def create_export_path(
    kind: str,
    timestamp: Optional[datetime] = None,
    base_dir: Optional[Path] = None
) -> Path:
    """
    Create the full path for an export.

    Args:
        kind: 'report', 'chart' or 'memory'
        timestamp: Export time (defaults to now, local)
        base_dir: Export directory (defaults to env WORKBENCH_EXPORT_DIR)

    Returns:
        Path under base_dir
    """
    if timestamp is None:
        timestamp = datetime.now()
    if base_dir is None:
        base_dir = get_export_dir()

    return Path(base_dir) / export_filename(kind, timestamp)


def parse_timestamp_from_filename(filename: str) -> datetime:
    """
    Parse timestamp from an export filename.

    Raises:
        PathPolicyError: If filename format is invalid
    """
    for prefix, time_format, extension in EXPORT_KINDS.values():
        if filename.startswith(prefix) and filename.endswith(extension):
            stamp = filename[len(prefix):-len(extension)]
            try:
                return datetime.strptime(stamp, time_format)
            except ValueError as e:
                raise PathPolicyError(f"Invalid date/time in filename {filename}: {e}")

    raise PathPolicyError(f"Invalid filename format: {filename}")


def list_exports(base_dir: Path, kind: str) -> List[Path]:
    """
    List exports of one kind, newest first.

    Args:
        base_dir: Export directory
        kind: 'report', 'chart' or 'memory'

    Returns:
        List of export paths
    """
    if kind not in EXPORT_KINDS:
        raise PathPolicyError(f"Unknown export kind: {kind}")

    base_dir = Path(base_dir)
    if not base_dir.exists():
        return []

    prefix, _, extension = EXPORT_KINDS[kind]
    files = [
        path for path in base_dir.glob(f'{prefix}*{extension}')
        if re.match(rf'^{re.escape(prefix)}[\d_-]+{re.escape(extension)}$', path.name)
    ]

    # Names sort chronologically by construction
    files.sort(reverse=True)
    return files
