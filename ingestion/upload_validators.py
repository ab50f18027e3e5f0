"""
Validators for uploaded files and fetched URLs.
Pure functions - no IO, network, or side effects.
"""

import os
from pathlib import PurePath
from typing import Optional
from urllib.parse import urlparse

from dotenv import load_dotenv

# Load environment variables
load_dotenv()


ALLOWED_EXTENSIONS = {'.csv', '.json', '.txt', '.html'}
DEFAULT_MAX_UPLOAD_BYTES = 10 * 1024 * 1024


class UploadValidationError(ValueError):
    """Raised when an upload or URL fails validation."""
    pass


def max_upload_bytes() -> int:
    """Upload size limit from env MAX_UPLOAD_BYTES (default 10 MiB)."""
    raw = os.getenv('MAX_UPLOAD_BYTES', str(DEFAULT_MAX_UPLOAD_BYTES))
    try:
        limit = int(raw)
    except ValueError:
        raise UploadValidationError(f"Invalid MAX_UPLOAD_BYTES: {raw}")
    if limit <= 0:
        raise UploadValidationError(f"MAX_UPLOAD_BYTES must be positive, got {limit}")
    return limit


def validate_upload(filename: str, size_bytes: int, max_bytes: Optional[int] = None) -> None:
    """
    Validate an upload by name and size.

    Args:
        filename: Original file name
        size_bytes: File size in bytes
        max_bytes: Size limit (defaults to env MAX_UPLOAD_BYTES)

    Raises:
        UploadValidationError: If validation fails
    """
    if not filename or not filename.strip():
        raise UploadValidationError("No file uploaded")

    extension = PurePath(filename).suffix.lower()
    if extension not in ALLOWED_EXTENSIONS:
        raise UploadValidationError(
            f"Unsupported file type '{extension or filename}' "
            f"(allowed: {', '.join(sorted(ALLOWED_EXTENSIONS))})"
        )

    if size_bytes < 0:
        raise UploadValidationError(f"size must be non-negative, got {size_bytes}")

    limit = max_bytes if max_bytes is not None else max_upload_bytes()
    if size_bytes > limit:
        raise UploadValidationError(f"File too large: {size_bytes} bytes (limit {limit})")


def validate_url(url: str) -> str:
    """
    Validate a URL for fetching.

    Args:
        url: Candidate URL

    Returns:
        Stripped URL

    Raises:
        UploadValidationError: If the URL is not http(s) or has no host
    """
    if not url:
        raise UploadValidationError("Invalid URL: empty")

    candidate = url.strip()
    if not (candidate.startswith('http://') or candidate.startswith('https://')):
        raise UploadValidationError(f"Invalid URL: {url} (must start with http:// or https://)")

    if not urlparse(candidate).netloc:
        raise UploadValidationError(f"Invalid URL: {url} (missing host)")

    return candidate
