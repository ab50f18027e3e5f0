"""
Database setup - schema creation and connection helpers for SQLite.
Thin IO layer with focus on data integrity and idempotence.
"""

import os
import json
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv

# Load environment variables
load_dotenv()


DEFAULT_DB_PATH = './data/workbench.db'


def init_database(conn: sqlite3.Connection) -> None:
    """
    Initialize database with required tables.
    Idempotent - safe to call multiple times.

    Args:
        conn: SQLite connection
    """
    # Enable foreign keys
    conn.execute("PRAGMA foreign_keys = ON")

    conn.execute("""
        CREATE TABLE IF NOT EXISTS users (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            username TEXT NOT NULL UNIQUE,
            email TEXT NOT NULL UNIQUE,
            password TEXT NOT NULL,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        )
    """)

    conn.execute("""
        CREATE TABLE IF NOT EXISTS sessions (
            id TEXT PRIMARY KEY,
            user_id INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            data TEXT NOT NULL,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        )
    """)

    conn.execute("""
        CREATE TABLE IF NOT EXISTS files (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            user_id INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            filename TEXT NOT NULL,
            original_name TEXT NOT NULL,
            mime_type TEXT NOT NULL,
            size INTEGER NOT NULL,
            content TEXT,
            metadata TEXT,
            created_at TEXT NOT NULL
        )
    """)

    conn.execute("""
        CREATE TABLE IF NOT EXISTS tasks (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            user_id INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            title TEXT NOT NULL,
            description TEXT,
            completed INTEGER NOT NULL DEFAULT 0,
            due_at TEXT,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        )
    """)

    conn.execute("""
        CREATE TABLE IF NOT EXISTS chat_messages (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            user_id INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            message TEXT NOT NULL,
            response TEXT NOT NULL,
            context TEXT,
            created_at TEXT NOT NULL
        )
    """)

    conn.execute("""
        CREATE TABLE IF NOT EXISTS system_logs (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            user_id INTEGER REFERENCES users(id) ON DELETE CASCADE,
            level TEXT NOT NULL CHECK(level IN ('info', 'warn', 'error', 'success')),
            message TEXT NOT NULL,
            metadata TEXT,
            created_at TEXT NOT NULL
        )
    """)

    # Create indices for performance
    conn.execute("CREATE INDEX IF NOT EXISTS idx_files_user ON files(user_id)")
    conn.execute("CREATE INDEX IF NOT EXISTS idx_tasks_user ON tasks(user_id)")
    conn.execute("CREATE INDEX IF NOT EXISTS idx_chat_user ON chat_messages(user_id)")
    conn.execute("CREATE INDEX IF NOT EXISTS idx_logs_user ON system_logs(user_id)")
    conn.execute("CREATE INDEX IF NOT EXISTS idx_sessions_user ON sessions(user_id)")

    conn.commit()


def get_db_path() -> str:
    """Database path from env WORKBENCH_DB_PATH."""
    return os.getenv('WORKBENCH_DB_PATH', DEFAULT_DB_PATH)


def get_connection(db_path: Optional[str] = None) -> sqlite3.Connection:
    """
    Get SQLite connection with proper configuration.
    Creates the parent directory and schema if needed.

    Args:
        db_path: Path to SQLite database file (defaults to env)

    Returns:
        Configured SQLite connection
    """
    db_path = db_path or get_db_path()
    if db_path != ':memory:':
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(db_path)
    conn.execute("PRAGMA foreign_keys = ON")
    if db_path != ':memory:':
        conn.execute("PRAGMA journal_mode = WAL")
    init_database(conn)
    return conn


def now_iso() -> str:
    """Current local time as ISO-8601 text."""
    return datetime.now().isoformat(sep=' ', timespec='microseconds')


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """ISO-8601 text back to datetime."""
    if not value:
        return None
    return datetime.fromisoformat(value.replace(' ', 'T'))


def dump_json(value: Any) -> Optional[str]:
    """Serialize a JSON column value, None stays NULL."""
    if value is None:
        return None
    return json.dumps(value, default=str)


def load_json(value: Optional[str]) -> Any:
    """Deserialize a JSON column value."""
    if value is None:
        return None
    return json.loads(value)


def get_table_counts(conn: sqlite3.Connection) -> dict:
    """Row counts per table, for status reporting."""
    counts = {}
    for table in ('users', 'sessions', 'files', 'tasks', 'chat_messages', 'system_logs'):
        cursor = conn.execute(f"SELECT COUNT(*) FROM {table}")
        counts[table] = cursor.fetchone()[0]
    return counts
