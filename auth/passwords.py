"""
Password hashing with bcrypt.
"""

import bcrypt


BCRYPT_ROUNDS = 10


def hash_password(password: str, rounds: int = BCRYPT_ROUNDS) -> str:
    """Hash a password; the salt is embedded in the result."""
    hashed = bcrypt.hashpw(password.encode('utf-8'), bcrypt.gensalt(rounds=rounds))
    return hashed.decode('utf-8')


def verify_password(password: str, password_hash: str) -> bool:
    """Check a password against a stored bcrypt hash."""
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        # Stored value is not a bcrypt hash
        return False
