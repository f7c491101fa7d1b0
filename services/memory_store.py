"""
Persistence layer for .writer-memory/

Loads and saves the whole document, keeps timestamped backups of the prior
state, and brackets every service operation in a load-mutate-save cycle.
"""

import logging
import shutil
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Callable, TypeVar

from config import BACKUP_DIR_NAME, MEMORY_DIR_NAME, MEMORY_FILE_NAME, get_store_config
from exceptions import (
    ConfigurationError,
    CorruptMemoryError,
    MemoryNotFoundError,
    StorageError,
    WriterMemoryError,
)
from models.document import Document
from utils import atomic_write_json, filename_timestamp, now_iso, read_json, write_json
from validators import validate_non_empty, validate_project_root

logger = logging.getLogger(__name__)

T = TypeVar("T")

BACKUP_PREFIX = "memory-"
BACKUP_SUFFIX = ".json"
_BACKUP_TIME_FORMAT = "%Y-%m-%dT%H-%M-%S-%fZ"


class MemoryStore:
    """File-backed store for one project's writer memory"""

    def __init__(self, project_root: str | Path | None = None, max_backups: int | None = None):
        config = get_store_config()
        root = project_root if project_root is not None else config.project_root
        self.project_root = validate_project_root(root)
        self.max_backups = max_backups if max_backups is not None else config.max_backups
        if self.max_backups <= 0:
            raise ConfigurationError(f"max_backups must be greater than 0, got {self.max_backups}")

    @property
    def memory_dir(self) -> Path:
        return self.project_root / MEMORY_DIR_NAME

    @property
    def memory_path(self) -> Path:
        return self.memory_dir / MEMORY_FILE_NAME

    @property
    def backup_dir(self) -> Path:
        return self.memory_dir / BACKUP_DIR_NAME

    def exists(self) -> bool:
        return self.memory_path.is_file()

    # --- load ------------------------------------------------------------

    def load(self) -> Document:
        """
        Read memory.json

        Returns:
            Document: the parsed document

        Raises:
            MemoryNotFoundError: no memory file yet
            CorruptMemoryError: the file cannot be parsed into a document
            StorageError: the file exists but could not be read
        """
        path = self.memory_path
        if not path.exists():
            raise MemoryNotFoundError(f"Memory file not found: {path}", path=str(path))

        try:
            data = read_json(path)
        except FileNotFoundError as e:
            raise MemoryNotFoundError(f"Memory file not found: {path}", path=str(path)) from e
        except (ValueError, UnicodeDecodeError) as e:
            self._preserve_corrupt(path)
            raise CorruptMemoryError(f"Memory file is not valid JSON: {path}", path=str(path), details=str(e)) from e
        except OSError as e:
            raise StorageError(f"Failed to read memory file: {path}", details=str(e)) from e

        try:
            doc = Document.from_dict(data)
        except (ValueError, TypeError, AttributeError) as e:
            self._preserve_corrupt(path)
            raise CorruptMemoryError(
                f"Memory file has an invalid structure: {path}", path=str(path), details=str(e)
            ) from e

        logger.debug(f"Loaded memory: {len(doc.characters)} characters, {len(doc.scenes)} scenes")
        return doc

    def load_or_none(self) -> Document | None:
        """Load the document, treating a missing or unusable store as None"""
        try:
            return self.load()
        except MemoryNotFoundError:
            logger.info(f"No writer memory at {self.memory_path}; run init first")
        except CorruptMemoryError as e:
            logger.error(f"Writer memory is corrupt: {e.message} ({e.details})")
        except WriterMemoryError as e:
            logger.error(f"Failed to load writer memory: {e.message}")
        return None

    def _preserve_corrupt(self, path: Path) -> None:
        """Keep a copy of an unreadable file next to it before anything overwrites it"""
        corrupt_path = path.with_name(path.name + ".corrupt")
        try:
            shutil.copy2(path, corrupt_path)
            logger.warning(f"Corrupt memory file copied to {corrupt_path}")
        except OSError as e:
            logger.warning(f"Could not preserve corrupt memory file: {e}")

    # --- save ------------------------------------------------------------

    def save(self, doc: Document) -> None:
        """
        Persist the document atomically

        The raw prior file (if any) is backed up first; project.updated is
        refreshed on the passed document.

        Raises:
            StorageError: directory creation, serialization or rename failed
        """
        try:
            self.memory_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"Failed to create memory directory: {self.memory_dir}", details=str(e)) from e

        if self.memory_path.exists():
            try:
                previous = read_json(self.memory_path)
            except (OSError, ValueError) as e:
                logger.warning(f"Previous memory unreadable, saving without backup: {e}")
            else:
                self.backup(previous)

        doc.project.updated = now_iso()
        try:
            atomic_write_json(self.memory_path, doc.to_dict())
        except (OSError, TypeError, ValueError) as e:
            raise StorageError(f"Failed to save memory: {self.memory_path}", details=str(e)) from e

        logger.debug(f"Memory saved: {self.memory_path}")

    # --- backups ---------------------------------------------------------

    def backup(self, doc: Document | dict[str, Any]) -> str:
        """
        Snapshot a document into backups/ and prune old snapshots

        Returns:
            str: path of the backup file, or "" when the backup failed
        """
        data = doc.to_dict() if isinstance(doc, Document) else doc
        try:
            self.backup_dir.mkdir(parents=True, exist_ok=True)
            backup_path = self._next_backup_path()
            write_json(backup_path, data)
        except (OSError, TypeError, ValueError) as e:
            logger.warning(f"Failed to create backup: {e}")
            return ""

        logger.debug(f"Backup created: {backup_path}")
        self.prune_backups()
        return str(backup_path)

    def _next_backup_path(self) -> Path:
        moment = datetime.now(timezone.utc)

        # names must keep sorting chronologically even when the clock repeats
        existing = self.list_backups()
        if existing:
            newest = _parse_backup_time(existing[-1])
            if newest is not None and moment <= newest:
                moment = newest + timedelta(microseconds=1)

        path = self.backup_dir / f"{BACKUP_PREFIX}{filename_timestamp(moment)}{BACKUP_SUFFIX}"
        while path.exists():
            moment += timedelta(microseconds=1)
            path = self.backup_dir / f"{BACKUP_PREFIX}{filename_timestamp(moment)}{BACKUP_SUFFIX}"
        return path

    def list_backups(self) -> list[str]:
        """Backup file names, oldest first"""
        if not self.backup_dir.is_dir():
            return []
        return sorted(
            p.name
            for p in self.backup_dir.glob(f"{BACKUP_PREFIX}*{BACKUP_SUFFIX}")
            if p.is_file()
        )

    def prune_backups(self) -> int:
        """Delete the oldest backups beyond max_backups; failures are logged only"""
        removed = 0
        try:
            names = self.list_backups()
            for name in names[: max(len(names) - self.max_backups, 0)]:
                (self.backup_dir / name).unlink()
                removed += 1
                logger.debug(f"Pruned backup: {name}")
        except OSError as e:
            logger.warning(f"Failed to prune backups: {e}")
        return removed

    def restore_backup(self, name: str | None = None) -> Document:
        """
        Make a backup the current document

        Args:
            name: backup file name; the newest backup when omitted

        Raises:
            MemoryNotFoundError: no such backup
            CorruptMemoryError: the backup cannot be parsed
            StorageError: saving the restored document failed
        """
        names = self.list_backups()
        if not names:
            raise MemoryNotFoundError("No backups available", path=str(self.backup_dir))

        name = name or names[-1]
        if name not in names:
            raise MemoryNotFoundError(f"Backup not found: {name}", path=str(self.backup_dir / name))

        backup_path = self.backup_dir / name
        try:
            doc = Document.from_dict(read_json(backup_path))
        except (OSError, ValueError, TypeError, AttributeError) as e:
            raise CorruptMemoryError(
                f"Backup is unreadable: {name}", path=str(backup_path), details=str(e)
            ) from e

        # the current state is itself backed up by save()
        self.save(doc)
        logger.info(f"Restored memory from backup {name}")
        return doc

    # --- project level ---------------------------------------------------

    def init(self, project_name: str, genre: str = "") -> Document:
        """Create a fresh document; an existing one is kept as a backup"""
        project_name = validate_non_empty(project_name, "project_name")
        if self.exists():
            logger.warning(f"Re-initializing existing memory at {self.memory_path}")

        try:
            self.backup_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"Failed to create backup directory: {self.backup_dir}", details=str(e)) from e

        doc = Document.new(project_name, genre or "", now_iso())
        self.save(doc)
        logger.info(f"Initialized writer memory for '{project_name}'")
        return doc

    def stats(self, doc: Document) -> dict[str, Any]:
        """Aggregate counts plus the on-disk size of memory.json"""
        try:
            storage_size_kb = round(self.memory_path.stat().st_size / 1024, 2)
        except OSError:
            storage_size_kb = 0

        return {
            "characterCount": len(doc.characters),
            "relationshipCount": len(doc.relationships),
            "sceneCount": len(doc.scenes),
            "themeCount": len(doc.themes),
            "totalEmotionPoints": sum(len(c.timeline) for c in doc.characters.values()),
            "lastUpdated": doc.project.updated,
            "storageSizeKB": storage_size_kb,
        }

    # --- orchestration ---------------------------------------------------

    def apply(self, operation: Callable[[Document], T], default: Any = None) -> T | Any:
        """
        Run a mutating operation inside a load-mutate-save bracket

        The document is saved only if the operation changed it.

        Args:
            operation: callable that mutates the document in place
            default: returned when the store is unusable or the operation fails

        Returns:
            the operation's result, or ``default``
        """
        doc = self.load_or_none()
        if doc is None:
            return default

        before = doc.to_dict()
        try:
            result = operation(doc)
        except (WriterMemoryError, ValueError) as e:
            logger.warning(f"Operation rejected: {e}")
            return default

        if doc.to_dict() != before:
            try:
                self.save(doc)
            except StorageError as e:
                logger.error(f"{e.message}: {e.details}")
                return default
        return result

    def read(self, query: Callable[[Document], T], default: Any = None) -> T | Any:
        """Run a read-only query against the current document"""
        doc = self.load_or_none()
        if doc is None:
            return default
        try:
            return query(doc)
        except (WriterMemoryError, ValueError) as e:
            logger.warning(f"Query failed: {e}")
            return default


def _parse_backup_time(name: str) -> datetime | None:
    stamp = name[len(BACKUP_PREFIX):-len(BACKUP_SUFFIX)]
    try:
        return datetime.strptime(stamp, _BACKUP_TIME_FORMAT).replace(tzinfo=timezone.utc)
    except ValueError:
        return None
