#!/usr/bin/env python3
"""
Main CLI for the Data Workbench.
Usage: workbench COMMAND [options]   (or: python cli.py COMMAND [options])
"""

import sys
import json
import getpass
import locale
import logging
import argparse
import mimetypes
import sqlite3
import uuid
from pathlib import Path
from typing import Dict, Any, List, Optional

from rapidfuzz import fuzz, process

from analysis.analysis_job import load_dataset, run_analysis, export_analysis, AnalysisJobError
from analysis.calculations.correlation import POLICIES, PAIRWISE
from analysis.calculations.descriptive import all_columns
from analysis.chart_series import build_chart_series, CHART_TYPES, DEFAULT_ROW_LIMIT, ChartSeriesError
from assistant.chat import converse, AssistantError
from assistant.data_analysis_chain import analyze_data
from assistant.langchain_setup import get_langchain_status, LangChainSetupError
from assistant.ollama_client import get_ollama_status, OllamaError
from auth.service import register, login, authenticate, AuthError
from auth.token_store import FileTokenStore
from ingestion.file_parsers import parse_file_record, preview_rows, detect_format, IngestionError
from ingestion.upload_validators import validate_upload, UploadValidationError
from reports.atomic_writer import write_json_atomic
from reports.chart_renderer import render_chart, ChartRenderError
from reports.formatters import format_file_size, format_stat, format_coefficient, format_timestamp
from reports.memory_export import build_memory_snapshot, load_memory_snapshot, restore_tasks, MemoryImportError
from reports.path_policy import create_export_path
from storage.chat_history import get_chat_history
from storage.database import get_connection, get_table_counts, now_iso
from storage.files import create_file, get_files_by_user, get_file, delete_file
from storage.system_logs import create_log, get_logs, clear_logs, LogLevel
from storage.tasks import (
    create_task,
    get_tasks_by_user,
    update_task,
    delete_task,
    summarize_tasks,
    TaskError
)
from web.url_fetcher import fetch_and_analyze, UrlFetchError

# Set up logger
logger = logging.getLogger(__name__)


STAT_FIELDS = ('count', 'sum', 'mean', 'median', 'min', 'max', 'variance', 'std_dev')
FUZZY_MATCH_THRESHOLD = 60


class CliError(Exception):
    """Raised for user-facing command errors."""
    pass


HANDLED_ERRORS = (
    CliError,
    AuthError,
    UploadValidationError,
    IngestionError,
    AnalysisJobError,
    ChartSeriesError,
    ChartRenderError,
    AssistantError,
    OllamaError,
    LangChainSetupError,
    UrlFetchError,
    TaskError,
    MemoryImportError,
    OSError,
)


def resolve_column(name: Optional[str], columns: List[str]) -> Optional[str]:
    """
    Match a user-typed column name: exact, then case-insensitive.

    Raises:
        CliError: With a fuzzy suggestion when nothing matches
    """
    if name is None:
        return None
    if name in columns:
        return name

    by_lower = {column.lower(): column for column in columns}
    if name.lower() in by_lower:
        return by_lower[name.lower()]

    hint = ''
    if columns:
        match = process.extractOne(name, columns, scorer=fuzz.WRatio)
        if match and match[1] >= FUZZY_MATCH_THRESHOLD:
            hint = f" Did you mean '{match[0]}'?"

    raise CliError(f"Unknown column '{name}'.{hint} Available: {', '.join(columns) or 'none'}")


def _current_user(conn: sqlite3.Connection, store) -> Dict[str, Any]:
    return authenticate(conn, store.load())


def _read_password(args) -> str:
    return args.password if args.password is not None else getpass.getpass('Password: ')


def _print_json(payload: Any) -> None:
    print(json.dumps(payload, indent=2, default=str))


def _print_rows(rows: List[Dict[str, str]]) -> None:
    if not rows:
        print("  (no rows)")
        return
    for index, row in enumerate(rows, start=1):
        cells = ', '.join(f"{key}={value}" for key, value in row.items())
        print(f"  {index}. {cells}")


# Accounts

def cmd_register(conn, store, args) -> int:
    result = register(conn, args.username, args.email, _read_password(args))
    store.save(result['token'])
    print(f"Registered {result['user']['username']} (id {result['user']['id']})")
    return 0


def cmd_login(conn, store, args) -> int:
    result = login(conn, args.email, _read_password(args))
    store.save(result['token'])
    print(f"Logged in as {result['user']['username']}")
    return 0


def cmd_logout(conn, store, args) -> int:
    store.clear()
    print("Logged out")
    return 0


def cmd_whoami(conn, store, args) -> int:
    user = _current_user(conn, store)
    print(f"{user['username']} <{user['email']}> (id {user['id']})")
    return 0


# Files

def cmd_upload(conn, store, args) -> int:
    user = _current_user(conn, store)
    path = Path(args.path)
    if not path.is_file():
        raise CliError(f"File not found: {path}")

    raw = path.read_bytes()
    validate_upload(path.name, len(raw))

    try:
        content = raw.decode('utf-8')
    except UnicodeDecodeError:
        raise CliError(f"{path.name} is not UTF-8 text")

    mime_type = mimetypes.guess_type(path.name)[0] or 'text/plain'
    stored = create_file(
        conn,
        user['id'],
        filename=f"{uuid.uuid4().hex}{path.suffix.lower()}",
        original_name=path.name,
        mime_type=mime_type,
        size=len(raw),
        content=content,
        metadata={'uploaded_at': now_iso()}
    )
    create_log(conn, LogLevel.INFO, f"File uploaded: {path.name}", user['id'])

    print(f"Uploaded {path.name} as file {stored['id']} ({format_file_size(len(raw))})")

    if detect_format(mime_type, path.name) in ('csv', 'json'):
        try:
            dataset = parse_file_record(stored)
        except IngestionError as e:
            print(f"WARNING: File stored but could not be parsed: {e}")
        else:
            print(f"{len(dataset)} rows, columns: {', '.join(all_columns(dataset)) or 'none'}")
    return 0


def cmd_files_list(conn, store, args) -> int:
    user = _current_user(conn, store)
    files = get_files_by_user(conn, user['id'])
    if not files:
        print("No files uploaded")
        return 0
    for f in files:
        print(f"{f['id']:>4}  {f['original_name']:<30} {format_file_size(f['size']):>10}  {format_timestamp(f['created_at'])}")
    return 0


def cmd_files_show(conn, store, args) -> int:
    user = _current_user(conn, store)
    file_row = get_file(conn, args.file_id, user['id'])
    if file_row is None:
        raise CliError(f"File {args.file_id} not found")

    print(f"{file_row['original_name']} ({file_row['mime_type']}, {format_file_size(file_row['size'])})")
    if detect_format(file_row['mime_type'], file_row['original_name']) is None:
        print((file_row['content'] or '')[:args.chars])
        return 0

    dataset = parse_file_record(file_row)
    print(f"{len(dataset)} rows, columns: {', '.join(all_columns(dataset)) or 'none'}")
    _print_rows(preview_rows(dataset, limit=args.rows))
    return 0


def cmd_files_delete(conn, store, args) -> int:
    user = _current_user(conn, store)
    if not delete_file(conn, args.file_id, user['id']):
        raise CliError(f"File {args.file_id} not found")
    create_log(conn, LogLevel.INFO, f"File deleted: {args.file_id}", user['id'])
    print(f"Deleted file {args.file_id}")
    return 0


# Analysis

def _resolve_view_args(conn, user, args) -> Dict[str, Any]:
    columns = all_columns(load_dataset(conn, user['id'], args.file_id))
    return {
        'column': resolve_column(args.column, columns),
        'search': args.search,
        'sort_column': resolve_column(args.sort, columns),
        'direction': 'desc' if args.desc else 'asc',
        'policy': args.policy
    }


def cmd_stats(conn, store, args) -> int:
    user = _current_user(conn, store)
    view_args = _resolve_view_args(conn, user, args)
    result = run_analysis(conn, user['id'], args.file_id, **view_args)

    if result['status'] != 'completed':
        raise CliError(result['error_message'])

    if args.json:
        _print_json(result)
        return 0

    print(f"Rows: {result['total_rows']} total, {result['filtered_rows']} shown")
    print(f"Numeric columns: {', '.join(result['numeric_columns']) or 'none'}")

    statistics = result['statistics']
    if statistics:
        print()
        print(f"Statistics for '{statistics['column']}':")
        for field in STAT_FIELDS:
            value = statistics[field]
            shown = value if field == 'count' else format_stat(value)
            print(f"  {field:<9} {shown}")
    elif view_args['column']:
        print(f"No numeric values in column '{view_args['column']}'")

    matrix = result['correlation_matrix']
    if matrix:
        names = list(matrix)
        width = max(len(name) for name in names) + 2
        print()
        print(f"Correlation ({args.policy}):")
        print(' ' * width + ''.join(f"{name:>{width}}" for name in names))
        for row_name in names:
            cells = ''.join(f"{format_coefficient(matrix[row_name][col]):>{width}}" for col in names)
            print(f"{row_name:<{width}}{cells}")

        if result['strongest_pairs']:
            print()
            print("Strongest pairs:")
            for pair in result['strongest_pairs']:
                column_a, column_b = pair['columns']
                print(f"  {column_a} / {column_b}: {format_coefficient(pair['coefficient'])}")

    print()
    print("Preview:")
    _print_rows(result['preview'])
    return 0


def cmd_export(conn, store, args) -> int:
    user = _current_user(conn, store)
    view_args = _resolve_view_args(conn, user, args)
    output_path = Path(args.output) if args.output else create_export_path('report')

    result = export_analysis(conn, user['id'], args.file_id, output_path, **view_args)
    if result['status'] != 'completed':
        raise CliError(result['error_message'])

    print(f"Report written to {result['output_path']} ({result['filtered_rows']} of {result['total_rows']} rows)")
    return 0


def cmd_chart(conn, store, args) -> int:
    user = _current_user(conn, store)
    dataset = load_dataset(conn, user['id'], args.file_id)

    columns = None
    if args.columns:
        available = all_columns(dataset)
        columns = [resolve_column(name.strip(), available) for name in args.columns.split(',') if name.strip()]

    series = build_chart_series(
        dataset,
        columns=columns,
        start=args.start,
        end=args.end,
        chart_type=args.type,
        theme=args.theme
    )
    output_path = Path(args.output) if args.output else create_export_path('chart')

    result = render_chart(series, output_path)
    if result['status'] != 'completed':
        raise CliError(result['error'])

    create_log(conn, LogLevel.SUCCESS, 'Chart exported', user['id'], {'path': str(output_path)})
    print(f"Chart written to {result['output_path']} ({', '.join(d['label'] for d in series['datasets'])})")
    return 0


# Assistant

def cmd_ask(conn, store, args) -> int:
    user = _current_user(conn, store)
    dataset = load_dataset(conn, user['id'], args.file_id)

    analysis = analyze_data(dataset, args.query)
    create_log(conn, LogLevel.INFO, 'Data analysis performed', user['id'])

    if args.json:
        _print_json(analysis)
        return 0

    print(analysis['summary'])
    for section in ('insights', 'recommendations', 'trends'):
        if analysis[section]:
            print()
            print(f"{section.capitalize()}:")
            for item in analysis[section]:
                print(f"  - {item}")
    return 0


def cmd_chat(conn, store, args) -> int:
    user = _current_user(conn, store)

    context = None
    if args.file_id is not None:
        result = run_analysis(conn, user['id'], args.file_id)
        if result['status'] != 'completed':
            raise CliError(result['error_message'])
        context = {
            'file_id': args.file_id,
            'columns': result['columns'],
            'numeric_columns': result['numeric_columns'],
            'total_rows': result['total_rows'],
            'correlation_matrix': result['correlation_matrix']
        }

    response = converse(conn, user, args.message, context)
    print(response['message'])
    return 0


def cmd_history(conn, store, args) -> int:
    user = _current_user(conn, store)
    history = get_chat_history(conn, user['id'], limit=args.limit)
    if not history:
        print("No chat history")
        return 0
    for chat in reversed(history):
        print(f"[{format_timestamp(chat['created_at'])}] you: {chat['message']}")
        print(f"  assistant: {chat['response']}")
    return 0


def cmd_fetch_url(conn, store, args) -> int:
    user = _current_user(conn, store)
    result = fetch_and_analyze(conn, user, args.url)

    if args.json:
        _print_json({key: result[key] for key in ('url', 'content', 'analysis')})
        return 0

    print(f"Fetched {result['url']} ({len(result['full_content'])} chars)")
    print()
    print(result['analysis'])
    return 0


# Tasks

def cmd_tasks_add(conn, store, args) -> int:
    user = _current_user(conn, store)
    task = create_task(conn, user['id'], args.title, description=args.description, due_at=args.due)
    create_log(conn, LogLevel.INFO, f"Task created: {task['title']}", user['id'])
    print(f"Added task {task['id']}: {task['title']}")
    return 0


def cmd_tasks_list(conn, store, args) -> int:
    user = _current_user(conn, store)
    tasks = get_tasks_by_user(conn, user['id'])
    counts = summarize_tasks(tasks)

    for task in tasks:
        mark = 'x' if task['completed'] else ' '
        due = f" (due {format_timestamp(task['due_at'])})" if task['due_at'] else ''
        print(f"[{mark}] {task['id']:>3}  {task['title']}{due}")

    print(f"{counts['total']} tasks: {counts['completed']} done, {counts['pending']} pending, {counts['overdue']} overdue")
    return 0


def _set_completed(conn, store, args, completed: bool) -> int:
    user = _current_user(conn, store)
    task = update_task(conn, args.task_id, user['id'], {'completed': completed})
    if task is None:
        raise CliError(f"Task {args.task_id} not found")
    create_log(conn, LogLevel.INFO, f"Task updated: {task['title']}", user['id'])
    print(f"Task {task['id']} marked {'done' if completed else 'pending'}")
    return 0


def cmd_tasks_done(conn, store, args) -> int:
    return _set_completed(conn, store, args, True)


def cmd_tasks_undo(conn, store, args) -> int:
    return _set_completed(conn, store, args, False)


def cmd_tasks_delete(conn, store, args) -> int:
    user = _current_user(conn, store)
    if not delete_task(conn, args.task_id, user['id']):
        raise CliError(f"Task {args.task_id} not found")
    create_log(conn, LogLevel.INFO, f"Task deleted: {args.task_id}", user['id'])
    print(f"Deleted task {args.task_id}")
    return 0


# Logs and memory

def cmd_logs(conn, store, args) -> int:
    user = _current_user(conn, store)
    if args.clear:
        removed = clear_logs(conn, user['id'])
        print(f"Cleared {removed} log entries")
        return 0

    for entry in get_logs(conn, user_id=user['id'], limit=args.limit):
        print(f"{format_timestamp(entry['created_at'])}  {entry['level'].value.upper():<7} {entry['message']}")
    return 0


def cmd_memory_export(conn, store, args) -> int:
    user = _current_user(conn, store)
    snapshot = build_memory_snapshot(conn, user['id'])
    output_path = Path(args.output) if args.output else create_export_path('memory')

    result = write_json_atomic(snapshot, output_path)
    if result['status'] != 'completed':
        raise CliError(result['error'])

    print(f"Memory exported to {result['output_path']}")
    return 0


def cmd_memory_import(conn, store, args) -> int:
    user = _current_user(conn, store)
    snapshot = load_memory_snapshot(Path(args.path))
    created = restore_tasks(conn, user['id'], snapshot)
    create_log(conn, LogLevel.INFO, 'Memory imported', user['id'], {'tasks_restored': len(created)})

    print(f"Snapshot from {snapshot.get('export_date', 'unknown date')}: "
          f"{len(snapshot.get('logs', []))} logs, {len(snapshot.get('chat_history', []))} chats")
    print(f"Restored {len(created)} tasks")
    return 0


def cmd_status(conn, store, args) -> int:
    ollama = get_ollama_status()
    langchain = get_langchain_status()
    counts = get_table_counts(conn)

    token = store.load()
    try:
        user = authenticate(conn, token) if token else None
    except AuthError:
        user = None

    print(f"User: {user['username'] if user else 'not logged in'}")
    print(f"Ollama: {ollama['service_url']} "
          f"({'up' if ollama['service_available'] else 'down'}), "
          f"model {ollama['model_name']} {'available' if ollama['model_available'] else 'missing'}")
    if ollama['error']:
        print(f"  {ollama['error']}")
    print(f"LangChain: {'ready' if langchain['ready'] else 'not ready'}")
    environment = langchain['environment']
    for problem in langchain['imports']['errors'] + environment['errors'] + environment['warnings']:
        print(f"  {problem}")
    print("Database:")
    for table, count in counts.items():
        print(f"  {table:<14} {count}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='workbench',
        description='Data Workbench - upload datasets, explore statistics and correlations',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  workbench register alice alice@example.com
  workbench upload sales.csv
  workbench stats 1 --column revenue --sort region
  workbench chart 1 --type bar --theme neon
        """
    )
    parser.add_argument('--db-path', help='Path to SQLite database (default: env WORKBENCH_DB_PATH)')
    parser.add_argument('--verbose', '-v', action='store_true', help='Show info logging')

    sub = parser.add_subparsers(dest='command')

    p = sub.add_parser('register', help='Create an account')
    p.add_argument('username')
    p.add_argument('email')
    p.add_argument('--password', help='Password (prompted when omitted)')
    p.set_defaults(handler=cmd_register)

    p = sub.add_parser('login', help='Log in')
    p.add_argument('email')
    p.add_argument('--password', help='Password (prompted when omitted)')
    p.set_defaults(handler=cmd_login)

    sub.add_parser('logout', help='Forget the stored token').set_defaults(handler=cmd_logout)
    sub.add_parser('whoami', help='Show the logged-in user').set_defaults(handler=cmd_whoami)

    p = sub.add_parser('upload', help='Upload a CSV, JSON, TXT or HTML file')
    p.add_argument('path')
    p.set_defaults(handler=cmd_upload)

    files = sub.add_parser('files', help='Manage uploaded files').add_subparsers(dest='files_command')
    files.add_parser('list').set_defaults(handler=cmd_files_list)
    p = files.add_parser('show')
    p.add_argument('file_id', type=int)
    p.add_argument('--rows', type=int, default=5, help='Preview rows (default: 5)')
    p.add_argument('--chars', type=int, default=500, help='Characters of non-tabular content (default: 500)')
    p.set_defaults(handler=cmd_files_show)
    p = files.add_parser('delete')
    p.add_argument('file_id', type=int)
    p.set_defaults(handler=cmd_files_delete)

    for name, handler, help_text in (
        ('stats', cmd_stats, 'Statistics and correlation for a file'),
        ('export', cmd_export, 'Write the analytics report JSON'),
    ):
        p = sub.add_parser(name, help=help_text)
        p.add_argument('file_id', type=int)
        p.add_argument('--column', help='Column to summarize')
        p.add_argument('--search', default='', help='Row filter text')
        p.add_argument('--sort', help='Column to sort by')
        p.add_argument('--desc', action='store_true', help='Sort descending')
        p.add_argument('--policy', choices=POLICIES, default=PAIRWISE, help='Correlation missing-value policy')
        if name == 'stats':
            p.add_argument('--json', action='store_true', help='Print raw JSON')
        else:
            p.add_argument('--output', help='Output path (default: exports/analytics-report-<timestamp>.json)')
        p.set_defaults(handler=handler)

    p = sub.add_parser('chart', help='Render a chart PNG')
    p.add_argument('file_id', type=int)
    p.add_argument('--columns', help='Comma-separated numeric columns (default: first 3)')
    p.add_argument('--start', type=int, default=0, help='First row (default: 0)')
    p.add_argument('--end', type=int, default=DEFAULT_ROW_LIMIT, help=f'Row after last (default: {DEFAULT_ROW_LIMIT})')
    p.add_argument('--type', choices=CHART_TYPES, default='line')
    p.add_argument('--theme', help='Theme from config/chart_themes.yml')
    p.add_argument('--output', help='Output path (default: exports/chart-<timestamp>.png)')
    p.set_defaults(handler=cmd_chart)

    p = sub.add_parser('ask', help='AI analysis of a file')
    p.add_argument('file_id', type=int)
    p.add_argument('query', nargs='?', help='Question about the data')
    p.add_argument('--json', action='store_true', help='Print raw JSON')
    p.set_defaults(handler=cmd_ask)

    p = sub.add_parser('chat', help='Chat with the assistant')
    p.add_argument('message')
    p.add_argument('--file-id', type=int, help='Attach a file summary as context')
    p.set_defaults(handler=cmd_chat)

    p = sub.add_parser('history', help='Show chat history')
    p.add_argument('--limit', type=int, default=20)
    p.set_defaults(handler=cmd_history)

    p = sub.add_parser('fetch-url', help='Fetch and analyze a web page')
    p.add_argument('url')
    p.add_argument('--json', action='store_true', help='Print raw JSON')
    p.set_defaults(handler=cmd_fetch_url)

    tasks = sub.add_parser('tasks', help='Manage tasks').add_subparsers(dest='tasks_command')
    p = tasks.add_parser('add')
    p.add_argument('title')
    p.add_argument('--description')
    p.add_argument('--due', help="Due date, e.g. '2025-08-01 17:00'")
    p.set_defaults(handler=cmd_tasks_add)
    tasks.add_parser('list').set_defaults(handler=cmd_tasks_list)
    for name, handler in (('done', cmd_tasks_done), ('undo', cmd_tasks_undo), ('delete', cmd_tasks_delete)):
        p = tasks.add_parser(name)
        p.add_argument('task_id', type=int)
        p.set_defaults(handler=handler)

    p = sub.add_parser('logs', help='Show activity log')
    p.add_argument('--limit', type=int, default=50)
    p.add_argument('--clear', action='store_true', help='Delete your log entries')
    p.set_defaults(handler=cmd_logs)

    memory = sub.add_parser('memory', help='Export or import workbench memory').add_subparsers(dest='memory_command')
    p = memory.add_parser('export')
    p.add_argument('--output', help='Output path (default: exports/workbench_memory_<date>.json)')
    p.set_defaults(handler=cmd_memory_export)
    p = memory.add_parser('import')
    p.add_argument('path')
    p.set_defaults(handler=cmd_memory_import)

    sub.add_parser('status', help='Service and database status').set_defaults(handler=cmd_status)

    return parser


def main(argv: Optional[List[str]] = None, store=None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s'
    )

    try:
        locale.setlocale(locale.LC_COLLATE, '')
    except locale.Error as e:
        logger.warning(f"Cannot use system collation locale, sorting by code point: {e}")

    handler = getattr(args, 'handler', None)
    if handler is None:
        parser.print_help()
        return 1

    if store is None:
        store = FileTokenStore()

    try:
        conn = get_connection(args.db_path)
    except sqlite3.Error as e:
        print(f"ERROR: Database connection failed: {e}", file=sys.stderr)
        return 1

    try:
        return handler(conn, store, args)
    except HANDLED_ERRORS as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1
    finally:
        conn.close()


if __name__ == '__main__':
    sys.exit(main())
