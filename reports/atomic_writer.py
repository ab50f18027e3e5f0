"""
Atomic file writer - ensures no partial writes or corrupted exports.
Implements temp-write → fsync → rename pattern for durability.
"""

import os
import json
import time
import tempfile
from pathlib import Path
from typing import Dict, Any, Union


class AtomicWriteError(Exception):
    """Raised when atomic write operations fail."""
    pass


def write_bytes_atomic(content: bytes, output_path: Path) -> Dict[str, Any]:
    """
    Write bytes atomically to prevent partial files.

    Uses temp-write → fsync → rename pattern for atomicity.

    Args:
        content: Bytes to write
        output_path: Final path for the file

    Returns:
        Dictionary with write results ('status' is 'completed' or 'failed')
    """
    start_time = time.time()
    output_path = Path(output_path)
    temp_path = None

    try:
        # Create parent directory if needed
        output_path.parent.mkdir(parents=True, exist_ok=True)

        # Create temp file in same directory for atomic rename
        temp_fd, temp_path_str = tempfile.mkstemp(
            suffix='.tmp',
            prefix=f'{output_path.stem}_',
            dir=output_path.parent
        )
        temp_path = Path(temp_path_str)

        with os.fdopen(temp_fd, 'wb') as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())  # Force write to disk

        os.replace(temp_path, output_path)

        return {
            'status': 'completed',
            'output_path': str(output_path),
            'bytes_written': len(content),
            'duration_seconds': time.time() - start_time
        }

    except OSError as e:
        # Cleanup temp file on error
        if temp_path is not None and temp_path.exists():
            try:
                temp_path.unlink()
            except OSError:
                pass

        return {
            'status': 'failed',
            'error': str(e),
            'output_path': str(output_path),
            'bytes_written': 0,
            'duration_seconds': time.time() - start_time
        }


def write_text_atomic(content: str, output_path: Path) -> Dict[str, Any]:
    """Write UTF-8 text atomically."""
    return write_bytes_atomic(content.encode('utf-8'), output_path)


def write_json_atomic(payload: Union[Dict[str, Any], list], output_path: Path) -> Dict[str, Any]:
    """
    Write JSON document atomically.

    Args:
        payload: JSON-serializable object
        output_path: Path for JSON file

    Returns:
        Dictionary with write results
    """
    try:
        # Serialize first so a bad payload never touches the filesystem
        json_content = json.dumps(payload, indent=2, default=str)
    except (TypeError, ValueError) as e:
        return {
            'status': 'failed',
            'error': f'JSON serialization failed: {e}',
            'output_path': str(output_path),
            'bytes_written': 0
        }

    return write_text_atomic(json_content, output_path)


def verify_file_integrity(file_path: Path, expected_size: int = None) -> bool:
    """
    Verify file integrity after atomic write.

    Args:
        file_path: Path to file to verify
        expected_size: Expected file size in bytes (optional)

    Returns:
        True if file appears intact, False otherwise
    """
    file_path = Path(file_path)
    if not file_path.exists():
        return False

    actual_size = file_path.stat().st_size
    if expected_size is not None and actual_size != expected_size:
        return False

    try:
        file_path.read_bytes()
    except OSError:
        return False

    return True
