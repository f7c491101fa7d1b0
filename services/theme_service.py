"""
Theme operations
"""

import logging
from typing import Any

from models.document import Document
from models.theme import Theme
from services.memory_store import MemoryStore
from utils import generate_id

logger = logging.getLogger(__name__)


def add_theme(doc: Document, name: str, options: dict[str, Any] | None = None) -> Theme | None:
    """New theme; None for an empty or duplicate name"""
    name = (name or "").strip()
    if not name or doc.find_theme(name) is not None:
        return None

    theme = Theme(id=generate_id("theme"), name=name)
    theme.apply_updates({key: value for key, value in (options or {}).items() if key != "name"})
    doc.themes.append(theme)
    return theme


def get_theme(doc: Document, id_or_name: str) -> Theme | None:
    return doc.find_theme(id_or_name)


def update_theme(doc: Document, id_or_name: str, updates: dict[str, Any] | None) -> Theme | None:
    theme = doc.find_theme(id_or_name)
    if theme is None:
        return None

    new_name = (updates or {}).get("name")
    if new_name and new_name != theme.name and doc.find_theme(new_name) is not None:
        logger.info(f"Theme name already taken: {new_name}")
        return None

    theme.apply_updates(updates)
    return theme


def remove_theme(doc: Document, id_or_name: str) -> bool:
    theme = doc.find_theme(id_or_name)
    if theme is None:
        return False
    doc.themes.remove(theme)
    return True


def list_themes(doc: Document) -> list[Theme]:
    return list(doc.themes)


class ThemeService:
    """Theme operations against the persistent store"""

    def __init__(self, store: MemoryStore | None = None):
        self.store = store or MemoryStore()

    def add_theme(self, name: str, options: dict[str, Any] | None = None) -> Theme | None:
        return self.store.apply(lambda doc: add_theme(doc, name, options))

    def get_theme(self, id_or_name: str) -> Theme | None:
        return self.store.read(lambda doc: get_theme(doc, id_or_name))

    def update_theme(self, id_or_name: str, updates: dict[str, Any] | None) -> Theme | None:
        return self.store.apply(lambda doc: update_theme(doc, id_or_name, updates))

    def remove_theme(self, id_or_name: str) -> bool:
        return self.store.apply(lambda doc: remove_theme(doc, id_or_name), False)

    def list_themes(self) -> list[Theme]:
        return self.store.read(list_themes, [])
