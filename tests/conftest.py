"""
Pytest configuration
Every test gets an isolated project root and a fresh configuration
"""
import pytest

from config import reset_config
from models.document import Document
from services.memory_store import MemoryStore


@pytest.fixture(autouse=True)
def setup_test_env(monkeypatch, tmp_path):
    """Point the store at a temporary project root"""
    monkeypatch.setenv("WRITER_MEMORY_ROOT", str(tmp_path))
    monkeypatch.delenv("WRITER_MEMORY_MAX_BACKUPS", raising=False)
    monkeypatch.delenv("WRITER_MEMORY_LOG_DIR", raising=False)
    monkeypatch.delenv("LOG_LEVEL", raising=False)
    reset_config()
    yield
    reset_config()


@pytest.fixture
def store(tmp_path):
    """Store with an initialized project"""
    memory_store = MemoryStore(tmp_path)
    memory_store.init("이별의 온도", "멜로 / 성장 드라마")
    return memory_store


@pytest.fixture
def doc():
    """Empty in-memory document"""
    return Document.new("이별의 온도", "멜로", "2026-01-01T00:00:00.000Z")
