"""
Uploaded file records.
Files are stored with their text content; every query is scoped to the owner.
"""

import sqlite3
from typing import Dict, Any, List, Optional

from storage.database import now_iso, parse_timestamp, dump_json, load_json


_FILE_COLUMNS = "id, user_id, filename, original_name, mime_type, size, content, metadata, created_at"


def _row_to_file(row) -> Dict[str, Any]:
    return {
        'id': row[0],
        'user_id': row[1],
        'filename': row[2],
        'original_name': row[3],
        'mime_type': row[4],
        'size': row[5],
        'content': row[6],
        'metadata': load_json(row[7]),
        'created_at': parse_timestamp(row[8])
    }


def create_file(
    conn: sqlite3.Connection,
    user_id: int,
    filename: str,
    original_name: str,
    mime_type: str,
    size: int,
    content: Optional[str] = None,
    metadata: Optional[Dict[str, Any]] = None
) -> Dict[str, Any]:
    """
    Insert an uploaded file.

    Args:
        conn: SQLite connection
        user_id: Owning user
        filename: Stored file name
        original_name: Name as uploaded
        mime_type: MIME type
        size: Size in bytes
        content: Text content
        metadata: Extra JSON metadata

    Returns:
        Created file dictionary
    """
    cursor = conn.execute("""
        INSERT INTO files (user_id, filename, original_name, mime_type, size, content, metadata, created_at)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?)
    """, (user_id, filename, original_name, mime_type, size, content, dump_json(metadata), now_iso()))

    conn.commit()
    return get_file(conn, cursor.lastrowid, user_id)


def get_files_by_user(conn: sqlite3.Connection, user_id: int) -> List[Dict[str, Any]]:
    """All files of a user, newest first."""
    cursor = conn.execute(f"""
        SELECT {_FILE_COLUMNS} FROM files
        WHERE user_id = ?
        ORDER BY created_at DESC, id DESC
    """, (user_id,))
    return [_row_to_file(row) for row in cursor.fetchall()]


def get_file(conn: sqlite3.Connection, file_id: int, user_id: int) -> Optional[Dict[str, Any]]:
    """File by ID, or None if missing or owned by someone else."""
    cursor = conn.execute(
        f"SELECT {_FILE_COLUMNS} FROM files WHERE id = ? AND user_id = ?",
        (file_id, user_id)
    )
    row = cursor.fetchone()
    return _row_to_file(row) if row else None


def delete_file(conn: sqlite3.Connection, file_id: int, user_id: int) -> bool:
    """Delete a user's file. Returns True if a row was removed."""
    cursor = conn.execute("DELETE FROM files WHERE id = ? AND user_id = ?", (file_id, user_id))
    conn.commit()
    return cursor.rowcount > 0
