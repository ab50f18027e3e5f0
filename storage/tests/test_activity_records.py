"""
Tests for chat history and system log records.
Uses in-memory SQLite for fast, isolated tests.
"""

import pytest
import sqlite3

from storage.database import init_database
from storage.users import create_user
from storage.chat_history import create_chat_message, get_chat_history
from storage.system_logs import (
    create_log,
    get_logs,
    clear_logs,
    get_level_counts,
    LogLevel,
    InvalidLogLevelError
)


@pytest.fixture
def in_memory_db():
    """Create in-memory SQLite database with two users."""
    conn = sqlite3.connect(':memory:')
    init_database(conn)
    create_user(conn, 'alice', 'alice@example.com', 'hash')
    create_user(conn, 'bob', 'bob@example.com', 'hash')
    return conn


class TestChatHistory:
    """Tests for chat message storage."""

    def test_create_message(self, in_memory_db):
        stored = create_chat_message(in_memory_db, 1, 'hi', 'hello', {'file_id': 2})

        assert stored['message'] == 'hi'
        assert stored['response'] == 'hello'
        assert stored['context'] == {'file_id': 2}
        assert stored['created_at'] is not None

    def test_history_newest_first_with_limit(self, in_memory_db):
        for i in range(4):
            create_chat_message(in_memory_db, 1, f'q{i}', f'a{i}')
        create_chat_message(in_memory_db, 2, 'other', 'other')

        history = get_chat_history(in_memory_db, 1, limit=3)
        assert [chat['message'] for chat in history] == ['q3', 'q2', 'q1']

    def test_context_optional(self, in_memory_db):
        assert create_chat_message(in_memory_db, 1, 'q', 'a')['context'] is None


class TestSystemLogs:
    """Tests for the activity log."""

    def test_create_and_list(self, in_memory_db):
        log_id = create_log(in_memory_db, 'info', 'URL fetched: https://example.com', 1,
                            {'url': 'https://example.com'})
        assert isinstance(log_id, int)

        logs = get_logs(in_memory_db, user_id=1)
        assert len(logs) == 1
        assert logs[0]['level'] == LogLevel.INFO
        assert logs[0]['metadata'] == {'url': 'https://example.com'}

    def test_accepts_enum(self, in_memory_db):
        create_log(in_memory_db, LogLevel.SUCCESS, 'done', 1)
        assert get_logs(in_memory_db, user_id=1)[0]['level'] == LogLevel.SUCCESS

    def test_invalid_level(self, in_memory_db):
        with pytest.raises(InvalidLogLevelError):
            create_log(in_memory_db, 'debug', 'nope', 1)

    def test_system_events_without_user(self, in_memory_db):
        create_log(in_memory_db, 'warn', 'startup')
        create_log(in_memory_db, 'info', 'mine', 1)

        assert len(get_logs(in_memory_db)) == 2
        assert [log['message'] for log in get_logs(in_memory_db, user_id=1)] == ['mine']

    def test_newest_first_and_limit(self, in_memory_db):
        for i in range(5):
            create_log(in_memory_db, 'info', f'event {i}', 1)
        logs = get_logs(in_memory_db, user_id=1, limit=2)
        assert [log['message'] for log in logs] == ['event 4', 'event 3']

    def test_clear_only_own_logs(self, in_memory_db):
        create_log(in_memory_db, 'info', 'a', 1)
        create_log(in_memory_db, 'error', 'b', 1)
        create_log(in_memory_db, 'info', 'c', 2)

        assert clear_logs(in_memory_db, 1) == 2
        assert get_logs(in_memory_db, user_id=1) == []
        assert len(get_logs(in_memory_db, user_id=2)) == 1

    def test_level_counts(self, in_memory_db):
        create_log(in_memory_db, 'info', 'a', 1)
        create_log(in_memory_db, 'info', 'b', 1)
        create_log(in_memory_db, 'error', 'c', 2)

        assert get_level_counts(in_memory_db) == {'info': 2, 'warn': 0, 'error': 1, 'success': 0}
        assert get_level_counts(in_memory_db, user_id=2)['error'] == 1
