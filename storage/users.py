"""
User and session records.
Thin IO layer over the users and sessions tables.
"""

import sqlite3
import time
import uuid
from typing import Dict, Any, Optional

from storage.database import now_iso, parse_timestamp, dump_json, load_json


class DuplicateUserError(Exception):
    """Raised when username or email is already registered."""
    pass


_USER_COLUMNS = "id, username, email, password, created_at, updated_at"


def _row_to_user(row) -> Dict[str, Any]:
    return {
        'id': row[0],
        'username': row[1],
        'email': row[2],
        'password': row[3],
        'created_at': parse_timestamp(row[4]),
        'updated_at': parse_timestamp(row[5])
    }


def create_user(conn: sqlite3.Connection, username: str, email: str, password_hash: str) -> Dict[str, Any]:
    """
    Insert a new user.

    Args:
        conn: SQLite connection
        username: Unique user name
        email: Unique email address
        password_hash: Already hashed password

    Returns:
        Created user dictionary

    Raises:
        DuplicateUserError: If username or email is taken
    """
    timestamp = now_iso()
    try:
        cursor = conn.execute("""
            INSERT INTO users (username, email, password, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?)
        """, (username, email, password_hash, timestamp, timestamp))
    except sqlite3.IntegrityError as e:
        raise DuplicateUserError(f"User already exists: {e}")

    conn.commit()
    return get_user(conn, cursor.lastrowid)


def get_user(conn: sqlite3.Connection, user_id: int) -> Optional[Dict[str, Any]]:
    cursor = conn.execute(f"SELECT {_USER_COLUMNS} FROM users WHERE id = ?", (user_id,))
    row = cursor.fetchone()
    return _row_to_user(row) if row else None


def get_user_by_email(conn: sqlite3.Connection, email: str) -> Optional[Dict[str, Any]]:
    cursor = conn.execute(f"SELECT {_USER_COLUMNS} FROM users WHERE email = ?", (email,))
    row = cursor.fetchone()
    return _row_to_user(row) if row else None


def get_user_by_username(conn: sqlite3.Connection, username: str) -> Optional[Dict[str, Any]]:
    cursor = conn.execute(f"SELECT {_USER_COLUMNS} FROM users WHERE username = ?", (username,))
    row = cursor.fetchone()
    return _row_to_user(row) if row else None


def public_user(user: Dict[str, Any]) -> Dict[str, Any]:
    """User fields safe to show or return (no password hash)."""
    return {'id': user['id'], 'username': user['username'], 'email': user['email']}


def create_session(conn: sqlite3.Connection, user_id: int, data: Dict[str, Any]) -> str:
    """
    Create a session and return its ID.

    Args:
        conn: SQLite connection
        user_id: Owning user
        data: Arbitrary JSON-serializable session data

    Returns:
        Session ID like 'session_1700000000000_1a2b3c4d5'
    """
    session_id = f"session_{int(time.time() * 1000)}_{uuid.uuid4().hex[:9]}"
    timestamp = now_iso()

    conn.execute("""
        INSERT INTO sessions (id, user_id, data, created_at, updated_at)
        VALUES (?, ?, ?, ?, ?)
    """, (session_id, user_id, dump_json(data), timestamp, timestamp))

    conn.commit()
    return session_id


def get_session(conn: sqlite3.Connection, session_id: str) -> Optional[Dict[str, Any]]:
    """Session data, or None if the session does not exist."""
    cursor = conn.execute("SELECT data FROM sessions WHERE id = ?", (session_id,))
    row = cursor.fetchone()
    return load_json(row[0]) if row else None


def update_session(conn: sqlite3.Connection, session_id: str, data: Dict[str, Any]) -> None:
    conn.execute(
        "UPDATE sessions SET data = ?, updated_at = ? WHERE id = ?",
        (dump_json(data), now_iso(), session_id)
    )
    conn.commit()


def delete_session(conn: sqlite3.Connection, session_id: str) -> None:
    conn.execute("DELETE FROM sessions WHERE id = ?", (session_id,))
    conn.commit()
