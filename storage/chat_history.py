"""
Chat message history - one row per user message and assistant response.
"""

import sqlite3
from typing import Dict, Any, List, Optional

from storage.database import now_iso, parse_timestamp, dump_json, load_json


DEFAULT_HISTORY_LIMIT = 50


def _row_to_message(row) -> Dict[str, Any]:
    return {
        'id': row[0],
        'user_id': row[1],
        'message': row[2],
        'response': row[3],
        'context': load_json(row[4]),
        'created_at': parse_timestamp(row[5])
    }


def create_chat_message(
    conn: sqlite3.Connection,
    user_id: int,
    message: str,
    response: str,
    context: Optional[Any] = None
) -> Dict[str, Any]:
    """
    Persist one chat exchange.

    Args:
        conn: SQLite connection
        user_id: Owning user
        message: User message
        response: Assistant response
        context: Optional JSON context sent with the message

    Returns:
        Created message dictionary
    """
    cursor = conn.execute("""
        INSERT INTO chat_messages (user_id, message, response, context, created_at)
        VALUES (?, ?, ?, ?, ?)
    """, (user_id, message, response, dump_json(context), now_iso()))
    conn.commit()

    row = conn.execute(
        "SELECT id, user_id, message, response, context, created_at FROM chat_messages WHERE id = ?",
        (cursor.lastrowid,)
    ).fetchone()
    return _row_to_message(row)


def get_chat_history(
    conn: sqlite3.Connection,
    user_id: int,
    limit: int = DEFAULT_HISTORY_LIMIT
) -> List[Dict[str, Any]]:
    """
    Most recent chat exchanges, newest first.

    Args:
        conn: SQLite connection
        user_id: Owning user
        limit: Maximum number of messages

    Returns:
        List of message dictionaries
    """
    cursor = conn.execute("""
        SELECT id, user_id, message, response, context, created_at
        FROM chat_messages
        WHERE user_id = ?
        ORDER BY created_at DESC, id DESC
        LIMIT ?
    """, (user_id, limit))
    return [_row_to_message(row) for row in cursor.fetchall()]
