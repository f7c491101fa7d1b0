"""
Common utilities: logging setup, atomic JSON writes, ids and timestamps.
"""
import json
import logging
import os
import random
import string
import sys
import tempfile
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional, Union

_logging_configured = False

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def setup_logging(level=None, log_dir: Optional[str] = None, log_file: str = 'writer_memory.log'):
    """Configure the root logger once.

    Args:
        level: log level; defaults to the LOG_LEVEL environment variable, else INFO
        log_dir: directory for the log file; without it only stderr is used
        log_file: log file name inside log_dir
    """
    global _logging_configured
    if _logging_configured:
        return

    if level is None:
        level_str = os.getenv('LOG_LEVEL', 'INFO').upper()
        level = getattr(logging, level_str, logging.INFO)

    # stdout carries command output, so logs go to stderr
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_dir:
        Path(log_dir).mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(Path(log_dir) / log_file, encoding='utf-8'))

    logging.basicConfig(level=level, format=LOG_FORMAT, handlers=handlers, force=True)
    _logging_configured = True


logger = logging.getLogger(__name__)


def atomic_write_json(file_path: Union[str, Path],
                      data: Dict[str, Any],
                      indent: int = 2) -> None:
    """Write JSON atomically: temp file in the same directory, fsync, then rename.

    The target is never opened for writing, so readers see either the old
    document or the new one.

    Raises:
        OSError: file operation failed
        TypeError, ValueError: data is not JSON serializable
    """
    file_path = Path(file_path)
    file_path.parent.mkdir(parents=True, exist_ok=True)

    temp_fd, temp_path = tempfile.mkstemp(
        suffix='.tmp',
        prefix=file_path.name + '_',
        dir=file_path.parent
    )

    try:
        with os.fdopen(temp_fd, 'w', encoding='utf-8') as f:
            json.dump(data, f, ensure_ascii=False, indent=indent)
            f.flush()
            os.fsync(f.fileno())

        os.replace(temp_path, file_path)
        logger.debug(f"Atomic write committed: {file_path}")

    except Exception as e:
        try:
            os.unlink(temp_path)
        except (OSError, FileNotFoundError):
            pass
        logger.error(f"Atomic write failed: {file_path}, error: {e}")
        raise


def read_json(file_path: Union[str, Path]) -> Any:
    """Read a UTF-8 JSON file.

    Raises:
        FileNotFoundError: file does not exist
        json.JSONDecodeError / UnicodeDecodeError: content is not valid JSON text
    """
    with open(file_path, 'r', encoding='utf-8') as f:
        return json.load(f)


def write_json(file_path: Union[str, Path], data: Any, indent: int = 2) -> None:
    """Plain (non-atomic) JSON write, used for backup snapshots."""
    file_path = Path(file_path)
    file_path.parent.mkdir(parents=True, exist_ok=True)
    with open(file_path, 'w', encoding='utf-8') as f:
        json.dump(data, f, ensure_ascii=False, indent=indent)


def now_iso() -> str:
    """Current UTC time, fixed-width ISO 8601 with milliseconds, e.g. 2026-10-17T09:30:00.123Z"""
    return datetime.now(timezone.utc).isoformat(timespec='milliseconds').replace('+00:00', 'Z')


def filename_timestamp(moment: Optional[datetime] = None) -> str:
    """Filename-safe sortable timestamp: ':' and '.' replaced by '-'.

    Microsecond precision keeps consecutive saves apart.
    """
    moment = moment or datetime.now(timezone.utc)
    stamp = moment.isoformat(timespec='microseconds').replace('+00:00', 'Z')
    return stamp.replace(':', '-').replace('.', '-')


_ID_ALPHABET = string.ascii_lowercase + string.digits


def generate_id(prefix: str) -> str:
    """Prefixed id from unix seconds plus a random base36 suffix, e.g. char_1706123456_a3f9k2"""
    suffix = ''.join(random.choices(_ID_ALPHABET, k=6))
    return f"{prefix}_{int(time.time())}_{suffix}"




def truncate_text(text: Optional[str], max_length: int = 100, suffix: str = "...") -> str:
    """Truncate text so the result never exceeds max_length (suffix included)."""
    if not text:
        return ""
    if len(text) <= max_length:
        return text
    return text[:max_length-len(suffix)] + suffix


def first_sentence(text: str) -> str:
    """Everything before the first '.'"""
    return text.split('.')[0]
