"""
System activity log - user-visible record of what happened and when.
Thin IO layer with level enumeration and per-user queries.
"""

import sqlite3
from typing import Dict, Any, List, Optional
from enum import Enum

from storage.database import now_iso, parse_timestamp, dump_json, load_json


DEFAULT_LOG_LIMIT = 100


class LogLevel(str, Enum):
    """Enumeration of log levels."""
    INFO = 'info'
    WARN = 'warn'
    ERROR = 'error'
    SUCCESS = 'success'


class InvalidLogLevelError(ValueError):
    """Raised when a log level is not recognised."""
    pass


def _row_to_log(row) -> Dict[str, Any]:
    return {
        'id': row[0],
        'user_id': row[1],
        'level': LogLevel(row[2]),
        'message': row[3],
        'metadata': load_json(row[4]),
        'created_at': parse_timestamp(row[5])
    }


def create_log(
    conn: sqlite3.Connection,
    level: str,
    message: str,
    user_id: Optional[int] = None,
    metadata: Optional[Dict[str, Any]] = None
) -> int:
    """
    Append an activity log entry.

    Args:
        conn: SQLite connection
        level: One of info, warn, error, success
        message: Human-readable message
        user_id: Acting user (None for system events)
        metadata: Extra JSON details

    Returns:
        Log entry ID

    Raises:
        InvalidLogLevelError: If level is unknown
    """
    try:
        level = LogLevel(level)
    except ValueError:
        raise InvalidLogLevelError(f"Unknown log level: {level}")

    cursor = conn.execute("""
        INSERT INTO system_logs (user_id, level, message, metadata, created_at)
        VALUES (?, ?, ?, ?, ?)
    """, (user_id, level.value, message, dump_json(metadata), now_iso()))

    conn.commit()
    return cursor.lastrowid


def get_logs(
    conn: sqlite3.Connection,
    user_id: Optional[int] = None,
    limit: int = DEFAULT_LOG_LIMIT
) -> List[Dict[str, Any]]:
    """
    List log entries, most recent first.

    Args:
        conn: SQLite connection
        user_id: Filter by user (optional)
        limit: Maximum number of entries

    Returns:
        List of log dictionaries
    """
    if user_id is not None:
        query = """
            SELECT id, user_id, level, message, metadata, created_at
            FROM system_logs
            WHERE user_id = ?
            ORDER BY created_at DESC, id DESC
            LIMIT ?
        """
        params = (user_id, limit)
    else:
        query = """
            SELECT id, user_id, level, message, metadata, created_at
            FROM system_logs
            ORDER BY created_at DESC, id DESC
            LIMIT ?
        """
        params = (limit,)

    cursor = conn.execute(query, params)
    return [_row_to_log(row) for row in cursor.fetchall()]


def clear_logs(conn: sqlite3.Connection, user_id: int) -> int:
    """Delete a user's log entries. Returns the number removed."""
    cursor = conn.execute("DELETE FROM system_logs WHERE user_id = ?", (user_id,))
    conn.commit()
    return cursor.rowcount


def get_level_counts(conn: sqlite3.Connection, user_id: Optional[int] = None) -> Dict[str, int]:
    """
    Count log entries per level.

    Returns:
        Dictionary mapping every level to its count (zero if absent)
    """
    if user_id is not None:
        cursor = conn.execute(
            "SELECT level, COUNT(*) FROM system_logs WHERE user_id = ? GROUP BY level",
            (user_id,)
        )
    else:
        cursor = conn.execute("SELECT level, COUNT(*) FROM system_logs GROUP BY level")

    counts = {level.value: 0 for level in LogLevel}
    for level, count in cursor.fetchall():
        counts[level] = count
    return counts
