"""
Cross-entity queries: full-text search, statistics and integrity validation
"""

import logging
from dataclasses import dataclass
from typing import Any

from models.document import Document
from services.memory_store import MemoryStore
from utils import truncate_text
from validators import ValidationReport, validate_memory

logger = logging.getLogger(__name__)

SNIPPET_LENGTH = 120
ELLIPSIS = "…"


@dataclass
class SearchResult:
    type: str  # character | relationship | scene | theme | world
    id: str
    title: str
    relevance: str  # name | title | content
    snippet: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "id": self.id,
            "title": self.title,
            "relevance": self.relevance,
            "snippet": self.snippet,
        }


def _snippet(text: str | None) -> str:
    return truncate_text(text, SNIPPET_LENGTH, ELLIPSIS)


def search_memory(doc: Document, query: str) -> list[SearchResult]:
    """
    Case-insensitive substring search across every entity collection

    Results follow collection order (characters, relationships, scenes,
    themes, world) rather than match strength.
    """
    needle = (query or "").strip().lower()
    if not needle:
        return []

    def matches(text: str | None) -> bool:
        return bool(text) and needle in text.lower()

    results: list[SearchResult] = []

    for character in doc.characters.values():
        fields = (character.name, character.arc, character.tone, character.attitude, character.notes)
        if any(matches(text) for text in fields) or any(
            matches(text) for text in character.aliases + character.keywords
        ):
            results.append(
                SearchResult(
                    type="character",
                    id=character.id,
                    title=character.name,
                    relevance="name" if matches(character.name) else "content",
                    snippet=_snippet(" | ".join(p for p in (character.arc, character.tone, character.attitude) if p)),
                )
            )

    for relationship in doc.relationships:
        name_hit = matches(relationship.source) or matches(relationship.target)
        if name_hit or matches(relationship.dynamic) or matches(relationship.notes):
            results.append(
                SearchResult(
                    type="relationship",
                    id=relationship.id,
                    title=f"{relationship.source} <-> {relationship.target}",
                    relevance="name" if name_hit else "content",
                    snippet=_snippet(relationship.dynamic),
                )
            )

    for scene in doc.scenes_in_order():
        if (
            matches(scene.title)
            or matches(scene.narration_tone)
            or matches(scene.notes)
            or any(matches(tag) for tag in scene.emotion_tags)
            or any(matches(cut.content) for cut in scene.cuts)
        ):
            results.append(
                SearchResult(
                    type="scene",
                    id=scene.id,
                    title=scene.title,
                    relevance="title" if matches(scene.title) else "content",
                    snippet=_snippet(" / ".join(cut.content for cut in scene.cuts[:2])),
                )
            )

    for theme in doc.themes:
        if matches(theme.name) or matches(theme.description) or any(matches(k) for k in theme.keywords):
            results.append(
                SearchResult(
                    type="theme",
                    id=theme.id,
                    title=theme.name,
                    relevance="name" if matches(theme.name) else "content",
                    snippet=_snippet(theme.description),
                )
            )

    world = doc.world
    if (
        any(matches(text) for text in (world.name, world.era, world.atmosphere, world.notes))
        or any(matches(note) for note in world.cultural_notes)
        or any(matches(rule.description) for rule in world.rules)
        or any(
            matches(loc.name) or matches(loc.description) or matches(loc.atmosphere)
            for loc in world.locations
        )
    ):
        location = next(
            (loc for loc in world.locations if matches(loc.name) or matches(loc.description)), None
        )
        results.append(
            SearchResult(
                type="world",
                id=location.id if location else "world",
                title=location.name if location else (world.name or "World"),
                relevance="content",
                snippet=_snippet(location.description if location else (world.atmosphere or world.notes)),
            )
        )

    logger.debug(f"Search {query!r}: {len(results)} results")
    return results


class QueryService:
    """Read-only queries against the persistent store"""

    def __init__(self, store: MemoryStore | None = None):
        self.store = store or MemoryStore()

    def search(self, query: str) -> list[SearchResult]:
        return self.store.read(lambda doc: search_memory(doc, query), [])

    def stats(self) -> dict[str, Any] | None:
        return self.store.read(self.store.stats)

    def validate(self) -> ValidationReport | None:
        return self.store.read(validate_memory)
