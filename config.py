"""
Configuration module.

Settings come from environment variables (optionally loaded from a .env file
via init_config) so that every short-lived invocation resolves the same store.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

from exceptions import ConfigurationError

MEMORY_DIR_NAME = ".writer-memory"
MEMORY_FILE_NAME = "memory.json"
BACKUP_DIR_NAME = "backups"
DEFAULT_MAX_BACKUPS = 20
SUPPORTED_VERSION = "1.0"


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from e


@dataclass
class StoreConfig:
    """Where the memory store lives and how it is maintained."""

    project_root: str = field(default_factory=lambda: os.getenv("WRITER_MEMORY_ROOT") or os.getcwd())
    max_backups: int = field(
        default_factory=lambda: _int_env("WRITER_MEMORY_MAX_BACKUPS", DEFAULT_MAX_BACKUPS)
    )
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO").upper())
    log_dir: str | None = field(default_factory=lambda: os.getenv("WRITER_MEMORY_LOG_DIR") or None)

    @property
    def memory_dir(self) -> Path:
        return Path(self.project_root) / MEMORY_DIR_NAME

    @property
    def memory_path(self) -> Path:
        return self.memory_dir / MEMORY_FILE_NAME

    @property
    def backup_dir(self) -> Path:
        return self.memory_dir / BACKUP_DIR_NAME

    def validate(self) -> None:
        """Reject settings that would make the store unusable."""
        if not self.project_root:
            raise ConfigurationError("WRITER_MEMORY_ROOT must not be empty")

        if self.max_backups <= 0:
            raise ConfigurationError("WRITER_MEMORY_MAX_BACKUPS must be greater than 0")

        if self.log_level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ConfigurationError(f"Unsupported LOG_LEVEL: {self.log_level}")


_store_config: StoreConfig | None = None


def get_store_config() -> StoreConfig:
    """Return the store configuration singleton."""
    global _store_config
    if _store_config is None:
        _store_config = StoreConfig()
    return _store_config


def init_config(env_file: str | None = None) -> StoreConfig:
    """Load a .env file (if any), rebuild and validate the configuration."""
    global _store_config
    load_dotenv(env_file)
    _store_config = StoreConfig()
    _store_config.validate()
    return _store_config


def reset_config() -> None:
    """Drop the cached configuration so the next access re-reads the environment."""
    global _store_config
    _store_config = None
