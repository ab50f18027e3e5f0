"""
Token persistence between CLI invocations.
The store is injected where a token is needed, so tests can swap it out.
"""

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Load environment variables
load_dotenv()


DEFAULT_TOKEN_PATH = Path.home() / '.data_workbench' / 'token'


class MemoryTokenStore:
    """Keeps the token in process memory."""

    def __init__(self, token: Optional[str] = None):
        self._token = token

    def load(self) -> Optional[str]:
        return self._token

    def save(self, token: str) -> None:
        self._token = token

    def clear(self) -> None:
        self._token = None


class FileTokenStore:
    """Keeps the token in a user-only readable file."""

    def __init__(self, path: Optional[Path] = None):
        if path is None:
            path = Path(os.getenv('WORKBENCH_TOKEN_PATH', str(DEFAULT_TOKEN_PATH)))
        self.path = Path(path)

    def load(self) -> Optional[str]:
        if not self.path.exists():
            return None
        token = self.path.read_text(encoding='utf-8').strip()
        return token or None

    def save(self, token: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(token, encoding='utf-8')
        os.chmod(self.path, 0o600)

    def clear(self) -> None:
        if self.path.exists():
            self.path.unlink()
