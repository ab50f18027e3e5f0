"""
Personal task records.
Thin IO layer for task lifecycle - create, list, update, delete.
"""

import sqlite3
from datetime import datetime
from typing import Dict, Any, List, Optional, Union

from dateutil import parser as date_parser

from storage.database import now_iso, parse_timestamp


UPDATABLE_FIELDS = ('title', 'description', 'completed', 'due_at')


class TaskError(ValueError):
    """Raised when task data is invalid."""
    pass


_TASK_COLUMNS = "id, user_id, title, description, completed, due_at, created_at, updated_at"


def _row_to_task(row) -> Dict[str, Any]:
    return {
        'id': row[0],
        'user_id': row[1],
        'title': row[2],
        'description': row[3],
        'completed': bool(row[4]),
        'due_at': parse_timestamp(row[5]),
        'created_at': parse_timestamp(row[6]),
        'updated_at': parse_timestamp(row[7])
    }


def normalize_due_at(due_at: Union[str, datetime, None]) -> Optional[str]:
    """
    Parse a due date into ISO text.

    Accepts datetimes or free-form strings ('2025-08-01', 'Aug 1 2025 5pm').

    Raises:
        TaskError: If the string cannot be parsed
    """
    if due_at is None or due_at == '':
        return None

    if isinstance(due_at, datetime):
        parsed = due_at
    else:
        try:
            parsed = date_parser.parse(due_at)
        except (ValueError, OverflowError) as e:
            raise TaskError(f"Invalid due date '{due_at}': {e}")

    # Stored as naive local time
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)

    return parsed.isoformat(sep=' ')


def _validate_title(title: Optional[str]) -> str:
    if title is None or not str(title).strip():
        raise TaskError("Task title must not be empty")
    return str(title).strip()


def create_task(
    conn: sqlite3.Connection,
    user_id: int,
    title: str,
    description: Optional[str] = None,
    due_at: Union[str, datetime, None] = None,
    completed: bool = False
) -> Dict[str, Any]:
    """
    Insert a task.

    Args:
        conn: SQLite connection
        user_id: Owning user
        title: Task title (required, non-empty)
        description: Optional details
        due_at: Optional due date
        completed: Initial completion flag

    Returns:
        Created task dictionary

    Raises:
        TaskError: If the title is empty or the due date invalid
    """
    title = _validate_title(title)
    timestamp = now_iso()

    cursor = conn.execute("""
        INSERT INTO tasks (user_id, title, description, completed, due_at, created_at, updated_at)
        VALUES (?, ?, ?, ?, ?, ?, ?)
    """, (user_id, title, description, int(bool(completed)), normalize_due_at(due_at), timestamp, timestamp))

    conn.commit()
    return get_task(conn, cursor.lastrowid, user_id)


def get_task(conn: sqlite3.Connection, task_id: int, user_id: int) -> Optional[Dict[str, Any]]:
    cursor = conn.execute(
        f"SELECT {_TASK_COLUMNS} FROM tasks WHERE id = ? AND user_id = ?",
        (task_id, user_id)
    )
    row = cursor.fetchone()
    return _row_to_task(row) if row else None


def get_tasks_by_user(conn: sqlite3.Connection, user_id: int) -> List[Dict[str, Any]]:
    """All tasks of a user, newest first."""
    cursor = conn.execute(f"""
        SELECT {_TASK_COLUMNS} FROM tasks
        WHERE user_id = ?
        ORDER BY created_at DESC, id DESC
    """, (user_id,))
    return [_row_to_task(row) for row in cursor.fetchall()]


def update_task(
    conn: sqlite3.Connection,
    task_id: int,
    user_id: int,
    updates: Dict[str, Any]
) -> Optional[Dict[str, Any]]:
    """
    Apply partial updates to a task.

    Only title, description, completed and due_at can change; other
    keys are ignored.

    Args:
        conn: SQLite connection
        task_id: Task ID
        user_id: Owning user
        updates: Field updates

    Returns:
        Updated task, or None if the task does not exist for this user

    Raises:
        TaskError: If an updated title is empty or due date invalid
    """
    if get_task(conn, task_id, user_id) is None:
        return None

    assignments = []
    params = []
    for field_name in UPDATABLE_FIELDS:
        if field_name not in updates:
            continue

        value = updates[field_name]
        if field_name == 'title':
            value = _validate_title(value)
        elif field_name == 'completed':
            value = int(bool(value))
        elif field_name == 'due_at':
            value = normalize_due_at(value)

        assignments.append(f"{field_name} = ?")
        params.append(value)

    assignments.append("updated_at = ?")
    params.append(now_iso())
    params.extend([task_id, user_id])

    conn.execute(
        f"UPDATE tasks SET {', '.join(assignments)} WHERE id = ? AND user_id = ?",
        params
    )
    conn.commit()
    return get_task(conn, task_id, user_id)


def delete_task(conn: sqlite3.Connection, task_id: int, user_id: int) -> bool:
    """Delete a user's task. Returns True if a row was removed."""
    cursor = conn.execute("DELETE FROM tasks WHERE id = ? AND user_id = ?", (task_id, user_id))
    conn.commit()
    return cursor.rowcount > 0


def summarize_tasks(tasks: List[Dict[str, Any]], now: Optional[datetime] = None) -> Dict[str, int]:
    """
    Counts for the task list header.

    Returns:
        Dictionary with total, completed, pending and overdue counts
    """
    if now is None:
        now = datetime.now()

    completed = sum(1 for task in tasks if task['completed'])
    overdue = sum(
        1 for task in tasks
        if not task['completed'] and task['due_at'] is not None and task['due_at'] < now
    )

    return {
        'total': len(tasks),
        'completed': completed,
        'pending': len(tasks) - completed,
        'overdue': overdue
    }
