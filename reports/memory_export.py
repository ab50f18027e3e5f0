"""
Workbench memory snapshot export and import.
Bundles a user's activity into one JSON document that can be restored later.
"""

import json
import logging
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Dict, Any, List, Optional

from storage.files import get_files_by_user
from storage.tasks import create_task, get_tasks_by_user, normalize_due_at, TaskError
from storage.chat_history import get_chat_history
from storage.system_logs import get_logs

# Set up logger
logger = logging.getLogger(__name__)


SNAPSHOT_VERSION = '1.0'
SNAPSHOT_LOG_LIMIT = 100
REQUIRED_SECTIONS = ('files', 'urls', 'chat_history', 'logs', 'tasks')


class MemoryImportError(Exception):
    """Raised when a memory snapshot cannot be read or restored."""
    pass


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def build_memory_snapshot(
    conn: sqlite3.Connection,
    user_id: int,
    now: Optional[datetime] = None
) -> Dict[str, Any]:
    """
    Collect a user's workbench memory.

    File contents are left out; fetched URLs are recovered from log metadata.

    Args:
        conn: SQLite connection
        user_id: Owning user
        now: Export time (defaults to current time)

    Returns:
        JSON-ready snapshot dictionary
    """
    now = now or datetime.now()

    files = [
        {
            'id': f['id'],
            'original_name': f['original_name'],
            'mime_type': f['mime_type'],
            'size': f['size'],
            'created_at': _iso(f['created_at'])
        }
        for f in get_files_by_user(conn, user_id)
    ]

    logs = [
        {
            'level': log['level'].value,
            'message': log['message'],
            'metadata': log['metadata'],
            'created_at': _iso(log['created_at'])
        }
        for log in get_logs(conn, user_id=user_id, limit=SNAPSHOT_LOG_LIMIT)
    ]

    urls = [
        {'url': log['metadata']['url'], 'fetched_at': log['created_at']}
        for log in logs
        if isinstance(log['metadata'], dict) and log['metadata'].get('url')
    ]

    chat_history = [
        {
            'message': chat['message'],
            'response': chat['response'],
            'context': chat['context'],
            'created_at': _iso(chat['created_at'])
        }
        for chat in get_chat_history(conn, user_id)
    ]

    tasks = [
        {
            'title': task['title'],
            'description': task['description'],
            'completed': task['completed'],
            'due_at': _iso(task['due_at']),
            'created_at': _iso(task['created_at'])
        }
        for task in get_tasks_by_user(conn, user_id)
    ]

    logger.info(
        f"Memory snapshot for user {user_id}: files={len(files)}, urls={len(urls)}, "
        f"chats={len(chat_history)}, logs={len(logs)}, tasks={len(tasks)}"
    )

    return {
        'files': files,
        'urls': urls,
        'chat_history': chat_history,
        'logs': logs,
        'tasks': tasks,
        'export_date': now.isoformat(),
        'version': SNAPSHOT_VERSION
    }


def validate_memory_snapshot(snapshot: Any) -> Dict[str, Any]:
    """
    Check snapshot version and section shapes.

    Raises:
        MemoryImportError: If the snapshot is malformed or from another version
    """
    if not isinstance(snapshot, dict):
        raise MemoryImportError("Memory snapshot must be a JSON object")

    version = snapshot.get('version')
    if version != SNAPSHOT_VERSION:
        raise MemoryImportError(f"Unsupported memory snapshot version: {version!r}")

    for section in REQUIRED_SECTIONS:
        if not isinstance(snapshot.get(section, []), list):
            raise MemoryImportError(f"Memory snapshot section '{section}' must be a list")

    return snapshot


def load_memory_snapshot(path: Path) -> Dict[str, Any]:
    """
    Read and validate a snapshot file.

    Raises:
        MemoryImportError: If the file is missing, not JSON or malformed
    """
    path = Path(path)
    if not path.exists():
        raise MemoryImportError(f"Memory snapshot not found: {path}")

    try:
        with open(path, 'r', encoding='utf-8') as f:
            snapshot = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise MemoryImportError(f"Failed to read memory snapshot {path}: {e}")

    return validate_memory_snapshot(snapshot)


def restore_tasks(
    conn: sqlite3.Connection,
    user_id: int,
    snapshot: Dict[str, Any]
) -> List[Dict[str, Any]]:
    """
    Re-create snapshot tasks the user does not already have.

    Tasks are matched by title; existing titles are skipped. Every entry is
    checked before the first insert, so an invalid snapshot restores nothing.

    Returns:
        List of created task dictionaries

    Raises:
        MemoryImportError: If a task entry is invalid
    """
    existing_titles = {task['title'] for task in get_tasks_by_user(conn, user_id)}
    pending = []

    for entry in snapshot.get('tasks', []):
        if not isinstance(entry, dict):
            raise MemoryImportError(f"Invalid task entry: {entry!r}")

        title = (entry.get('title') or '').strip()
        if not title or title in existing_titles:
            continue

        try:
            due_at = normalize_due_at(entry.get('due_at'))
        except TaskError as e:
            raise MemoryImportError(f"Cannot restore task '{title}': {e}")

        existing_titles.add(title)
        pending.append((title, entry, due_at))

    created = [
        create_task(
            conn,
            user_id,
            title,
            description=entry.get('description'),
            due_at=due_at,
            completed=bool(entry.get('completed', False))
        )
        for title, entry, due_at in pending
    ]

    logger.info(f"Restored {len(created)} tasks for user {user_id}")
    return created
