"""
Tests for task records and due-date handling.
"""

import pytest
import sqlite3
from datetime import datetime

from storage.database import init_database
from storage.users import create_user
from storage.tasks import (
    create_task,
    get_task,
    get_tasks_by_user,
    update_task,
    delete_task,
    summarize_tasks,
    normalize_due_at,
    TaskError
)


@pytest.fixture
def in_memory_db():
    """Create in-memory SQLite database with two users."""
    conn = sqlite3.connect(':memory:')
    init_database(conn)
    create_user(conn, 'alice', 'alice@example.com', 'hash')
    create_user(conn, 'bob', 'bob@example.com', 'hash')
    return conn


class TestNormalizeDueAt:
    """Tests for due date parsing."""

    def test_free_form_dates(self):
        assert normalize_due_at('2025-08-01') == '2025-08-01 00:00:00'
        assert normalize_due_at('Aug 1 2025 5pm') == '2025-08-01 17:00:00'

    def test_datetime_passthrough(self):
        assert normalize_due_at(datetime(2025, 8, 1, 9, 30)) == '2025-08-01 09:30:00'

    def test_empty(self):
        assert normalize_due_at(None) is None
        assert normalize_due_at('') is None

    def test_invalid(self):
        with pytest.raises(TaskError):
            normalize_due_at('not a date at all')


class TestTasks:
    """Tests for task CRUD."""

    def test_create(self, in_memory_db):
        task = create_task(in_memory_db, 1, '  Clean data  ', description='dedupe', due_at='2025-08-01')

        assert task['title'] == 'Clean data'
        assert task['description'] == 'dedupe'
        assert task['completed'] is False
        assert task['due_at'] == datetime(2025, 8, 1)
        assert task['created_at'] == task['updated_at']

    def test_empty_title_rejected(self, in_memory_db):
        with pytest.raises(TaskError):
            create_task(in_memory_db, 1, '   ')

    def test_update_partial(self, in_memory_db):
        task = create_task(in_memory_db, 1, 'Report')
        updated = update_task(in_memory_db, task['id'], 1, {'completed': True, 'user_id': 2})

        assert updated['completed'] is True
        assert updated['title'] == 'Report'
        assert updated['user_id'] == 1
        assert updated['updated_at'] >= task['updated_at']

    def test_update_validates(self, in_memory_db):
        task = create_task(in_memory_db, 1, 'Report')
        with pytest.raises(TaskError):
            update_task(in_memory_db, task['id'], 1, {'title': ''})

    def test_update_missing_or_foreign(self, in_memory_db):
        task = create_task(in_memory_db, 1, 'Report')
        assert update_task(in_memory_db, 999, 1, {'completed': True}) is None
        assert update_task(in_memory_db, task['id'], 2, {'completed': True}) is None
        assert get_task(in_memory_db, task['id'], 1)['completed'] is False

    def test_delete(self, in_memory_db):
        task = create_task(in_memory_db, 1, 'Report')
        assert delete_task(in_memory_db, task['id'], 2) is False
        assert delete_task(in_memory_db, task['id'], 1) is True
        assert get_tasks_by_user(in_memory_db, 1) == []

    def test_list_newest_first(self, in_memory_db):
        create_task(in_memory_db, 1, 'first')
        create_task(in_memory_db, 1, 'second')
        create_task(in_memory_db, 2, 'other')

        assert [t['title'] for t in get_tasks_by_user(in_memory_db, 1)] == ['second', 'first']


class TestSummarizeTasks:
    """Tests for task counts."""

    def test_counts(self):
        now = datetime(2025, 8, 10)
        tasks = [
            {'completed': True, 'due_at': datetime(2025, 8, 1)},
            {'completed': False, 'due_at': datetime(2025, 8, 1)},
            {'completed': False, 'due_at': datetime(2025, 8, 20)},
            {'completed': False, 'due_at': None},
        ]
        assert summarize_tasks(tasks, now=now) == {
            'total': 4, 'completed': 1, 'pending': 3, 'overdue': 1
        }

    def test_empty(self):
        assert summarize_tasks([]) == {'total': 0, 'completed': 0, 'pending': 0, 'overdue': 0}
