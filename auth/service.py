"""
Registration, login and token authentication.
"""

import re
import logging
import sqlite3
from typing import Dict, Any, Optional

from auth.passwords import hash_password, verify_password
from auth.tokens import issue_token, decode_token, TokenError
from storage.users import (
    create_user,
    get_user,
    get_user_by_email,
    get_user_by_username,
    public_user,
    DuplicateUserError
)
from storage.system_logs import create_log, LogLevel

# Set up logger
logger = logging.getLogger(__name__)


EMAIL_PATTERN = re.compile(r'^[^@\s]+@[^@\s]+\.[^@\s]+$')
MIN_PASSWORD_LENGTH = 6
MAX_PASSWORD_BYTES = 72  # bcrypt limit


class AuthError(Exception):
    """Raised when registration, login or authentication fails."""
    pass


def _validate_registration(username: str, email: str, password: str) -> None:
    if not username or not username.strip():
        raise AuthError("Username must not be empty")
    if not email or not EMAIL_PATTERN.match(email):
        raise AuthError(f"Invalid email address: {email}")
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise AuthError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    if len(password.encode('utf-8')) > MAX_PASSWORD_BYTES:
        raise AuthError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")


def register(
    conn: sqlite3.Connection,
    username: str,
    email: str,
    password: str,
    secret: Optional[str] = None
) -> Dict[str, Any]:
    """
    Create an account and issue a token.

    Args:
        conn: SQLite connection
        username: Unique user name
        email: Unique email address
        password: Plain password (hashed before storage)
        secret: JWT secret override

    Returns:
        Dictionary with 'token' and public 'user' fields

    Raises:
        AuthError: If input is invalid or the user already exists
    """
    _validate_registration(username, email, password)

    if get_user_by_email(conn, email) or get_user_by_username(conn, username.strip()):
        raise AuthError("User already exists")

    try:
        user = create_user(conn, username.strip(), email, hash_password(password))
    except DuplicateUserError:
        raise AuthError("User already exists")

    token = issue_token(user['id'], secret=secret)
    create_log(conn, LogLevel.INFO, 'User registered', user['id'])
    logger.info(f"Registered user {user['id']} ({user['username']})")

    return {'token': token, 'user': public_user(user)}


def login(
    conn: sqlite3.Connection,
    email: str,
    password: str,
    secret: Optional[str] = None
) -> Dict[str, Any]:
    """
    Check credentials and issue a token.

    Raises:
        AuthError: 'Invalid credentials' for unknown email or wrong password
    """
    user = get_user_by_email(conn, email)
    if user is None or not verify_password(password, user['password']):
        logger.info(f"Failed login for {email}")
        raise AuthError("Invalid credentials")

    token = issue_token(user['id'], secret=secret)
    create_log(conn, LogLevel.INFO, 'User logged in', user['id'])

    return {'token': token, 'user': public_user(user)}


def authenticate(
    conn: sqlite3.Connection,
    token: Optional[str],
    secret: Optional[str] = None
) -> Dict[str, Any]:
    """
    Resolve a token to its user.

    Returns:
        Public user dictionary

    Raises:
        AuthError: If the token is missing, invalid or its user is gone
    """
    if not token:
        raise AuthError("Access token required")

    try:
        user_id = decode_token(token, secret=secret)
    except TokenError as e:
        logger.info(f"Token rejected: {e}")
        raise AuthError("Invalid token")

    user = get_user(conn, user_id)
    if user is None:
        raise AuthError("Invalid token")

    return public_user(user)
