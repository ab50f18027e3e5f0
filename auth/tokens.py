"""
Access tokens - HS256 JWTs carrying the user ID.
"""

import os
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# Set up logger
logger = logging.getLogger(__name__)


ALGORITHM = 'HS256'
DEFAULT_EXPIRES_DAYS = 7
DEVELOPMENT_SECRET = 'workbench-development-secret-key'


class TokenError(Exception):
    """Raised when a token is missing, malformed or expired."""
    pass


def get_jwt_secret() -> str:
    """Signing secret from env JWT_SECRET."""
    secret = os.getenv('JWT_SECRET', '').strip()
    if not secret:
        logger.warning("JWT_SECRET not set, using development secret")
        return DEVELOPMENT_SECRET
    return secret


def issue_token(
    user_id: int,
    secret: Optional[str] = None,
    expires_days: Optional[int] = None,
    now: Optional[datetime] = None
) -> str:
    """
    Create a signed access token.

    Args:
        user_id: User the token authenticates
        secret: Signing secret (defaults to env JWT_SECRET)
        expires_days: Lifetime in days (defaults to env JWT_EXPIRES_DAYS or 7)
        now: Issue time (defaults to current UTC time)

    Returns:
        Encoded JWT string
    """
    if expires_days is None:
        expires_days = int(os.getenv('JWT_EXPIRES_DAYS', str(DEFAULT_EXPIRES_DAYS)))
    if now is None:
        now = datetime.now(timezone.utc)

    payload = {
        'user_id': user_id,
        'iat': now,
        'exp': now + timedelta(days=expires_days)
    }
    return jwt.encode(payload, secret or get_jwt_secret(), algorithm=ALGORITHM)


def decode_token(token: str, secret: Optional[str] = None) -> int:
    """
    Verify a token and return its user ID.

    Raises:
        TokenError: If the token is expired, tampered with or malformed
    """
    try:
        payload = jwt.decode(token, secret or get_jwt_secret(), algorithms=[ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise TokenError("Token expired")
    except jwt.InvalidTokenError as e:
        raise TokenError(f"Invalid token: {e}")

    user_id = payload.get('user_id')
    if not isinstance(user_id, int):
        raise TokenError("Invalid token: missing user_id")
    return user_id
