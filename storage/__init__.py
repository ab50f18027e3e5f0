"""
Storage Module

SQLite persistence for users, sessions, files, tasks, chat history and
system logs.
"""

__version__ = "0.0.1"
