"""
Relationship operations

Relationships connect an unordered pair of character names: (a, b) and
(b, a) are the same relationship, while the stored from/to orientation is
kept for display.
"""

import logging
from dataclasses import dataclass
from typing import Any

from models.document import Document
from models.relationship import Relationship, RelationshipEvent, RelationshipType
from services.memory_store import MemoryStore
from utils import generate_id, now_iso
from validators import validate_non_empty

logger = logging.getLogger(__name__)

NO_CHANGE = "변화 없음"


@dataclass
class Connection:
    """One relationship seen from a given character"""

    relationship: Relationship
    other_character: str
    direction: str = "mutual"

    def to_dict(self) -> dict[str, Any]:
        return {
            "relationship": self.relationship.to_dict(),
            "direction": self.direction,
            "otherCharacter": self.other_character,
        }


def _canonical(doc: Document, name: str) -> str:
    """Stored name for a character given by name or alias; unknown names pass through"""
    character = doc.find_character(name)
    return character.name if character else name


def get_relation_label(rel_type: RelationshipType | str) -> str:
    return RelationshipType(rel_type).label


def get_relation_symbol(rel_type: RelationshipType | str) -> str:
    return RelationshipType(rel_type).symbol


# --- CRUD ----------------------------------------------------------------

def add_relationship(
    doc: Document,
    name_a: str,
    name_b: str,
    rel_type: RelationshipType | str,
    options: dict[str, Any] | None = None,
) -> Relationship | None:
    """
    Connect two characters

    Args:
        doc: document to modify
        name_a: stored as ``from``
        name_b: stored as ``to``
        rel_type: one of RelationshipType
        options: dynamic, speechLevel, notes

    Returns:
        Relationship | None: None if the pair already has a relationship in
        either orientation or the type is unknown
    """
    try:
        rel_type = RelationshipType(rel_type)
    except ValueError:
        logger.info(f"Unknown relationship type: {rel_type}")
        return None

    name_a = _canonical(doc, validate_non_empty(name_a, "from"))
    name_b = _canonical(doc, validate_non_empty(name_b, "to"))
    if doc.find_relationship(name_a, name_b) is not None:
        logger.info(f"Relationship already exists: {name_a} - {name_b}")
        return None

    relationship = Relationship(
        id=generate_id("rel"),
        source=name_a,
        target=name_b,
        type=rel_type,
        created=now_iso(),
    )
    options = {key: value for key, value in (options or {}).items() if key != "type"}
    relationship.apply_updates(options)
    if not relationship.dynamic:
        relationship.dynamic = "stable"

    doc.relationships.append(relationship)
    return relationship


def get_relationship(doc: Document, name_a: str, name_b: str) -> Relationship | None:
    return doc.find_relationship(_canonical(doc, name_a), _canonical(doc, name_b))


def update_relationship(
    doc: Document, name_a: str, name_b: str, updates: dict[str, Any] | None
) -> Relationship | None:
    """Partial update of type, dynamic, speechLevel and notes"""
    relationship = get_relationship(doc, name_a, name_b)
    if relationship is None:
        return None
    relationship.apply_updates(updates)
    return relationship


def remove_relationship(doc: Document, name_a: str, name_b: str) -> bool:
    relationship = get_relationship(doc, name_a, name_b)
    if relationship is None:
        return False
    doc.relationships.remove(relationship)
    return True


def list_relationships(doc: Document, character: str | None = None) -> list[Relationship]:
    if not character:
        return list(doc.relationships)
    name = _canonical(doc, character)
    return [relationship for relationship in doc.relationships if relationship.involves(name)]


# --- evolution -----------------------------------------------------------

def add_relationship_event(
    doc: Document,
    name_a: str,
    name_b: str,
    change: str,
    catalyst: str = "",
    scene_id: str | None = None,
) -> RelationshipEvent | None:
    change = validate_non_empty(change, "change")
    relationship = get_relationship(doc, name_a, name_b)
    if relationship is None:
        return None

    event = RelationshipEvent(timestamp=now_iso(), change=change, catalyst=catalyst or "", scene_id=scene_id or None)
    relationship.evolution.append(event)
    return event


def get_relationship_timeline(doc: Document, name_a: str, name_b: str) -> list[RelationshipEvent]:
    """Events sorted by timestamp; stored order is left untouched"""
    relationship = get_relationship(doc, name_a, name_b)
    return relationship.sorted_evolution() if relationship else []


def get_relationship_arc(doc: Document, name_a: str, name_b: str) -> str:
    timeline = get_relationship_timeline(doc, name_a, name_b)
    if not timeline:
        return NO_CHANGE
    return " → ".join(event.change for event in timeline)


# --- graph ---------------------------------------------------------------

def get_character_connections(doc: Document, character: str) -> list[Connection]:
    name = _canonical(doc, character)
    return [
        Connection(relationship=relationship, other_character=relationship.other_party(name))
        for relationship in list_relationships(doc, name)
    ]


def get_relationship_web(doc: Document) -> dict[str, Any]:
    """Every endpoint name (resolvable or not) as a node, every relationship as an edge"""
    nodes: list[str] = []
    edges: list[dict[str, str]] = []
    for relationship in doc.relationships:
        for name in (relationship.source, relationship.target):
            if name not in nodes:
                nodes.append(name)
        edges.append({"from": relationship.source, "to": relationship.target, "type": relationship.type.value})
    return {"nodes": nodes, "edges": edges}


# --- rendering -----------------------------------------------------------

def generate_relationship_profile(doc: Document, name_a: str, name_b: str) -> str:
    relationship = get_relationship(doc, name_a, name_b)
    header = f"# {name_a} ↔ {name_b}\n\n"
    if relationship is None:
        return header + "관계 정보 없음"

    profile = header
    profile += f"**관계 유형**: {relationship.type.label}\n"
    profile += f"**상태**: {relationship.dynamic}\n"
    if relationship.speech_level:
        profile += f"**말투**: {relationship.speech_level.label}\n"
    if relationship.notes:
        profile += f"\n## 설명\n{relationship.notes}\n"

    timeline = relationship.sorted_evolution()
    if timeline:
        profile += f"\n## 관계 흐름\n{get_relationship_arc(doc, name_a, name_b)}\n\n"
        profile += "## 주요 사건\n"
        for event in timeline:
            line = f"- **{event.change}**: {event.catalyst}"
            if event.scene_id:
                line += f" ({event.scene_id})"
            profile += line + "\n"
    return profile


def generate_relationship_map(doc: Document) -> str:
    web = get_relationship_web(doc)
    if not web["nodes"]:
        return "관계 없음"

    lines = ["# 관계 지도", ""]
    for node in web["nodes"]:
        connections = get_character_connections(doc, node)
        if not connections:
            continue
        lines.append(f"{node}:")
        for connection in connections:
            rel_type = connection.relationship.type
            lines.append(f"  {rel_type.symbol} {connection.other_character} ({rel_type.label})")
        lines.append("")
    return "\n".join(lines) + "\n"


class RelationshipService:
    """Relationship operations against the persistent store"""

    def __init__(self, store: MemoryStore | None = None):
        self.store = store or MemoryStore()

    def add_relationship(
        self, name_a: str, name_b: str, rel_type: str, options: dict[str, Any] | None = None
    ) -> Relationship | None:
        return self.store.apply(lambda doc: add_relationship(doc, name_a, name_b, rel_type, options))

    def update_relationship(self, name_a: str, name_b: str, updates: dict[str, Any] | None) -> Relationship | None:
        return self.store.apply(lambda doc: update_relationship(doc, name_a, name_b, updates))

    def remove_relationship(self, name_a: str, name_b: str) -> bool:
        return self.store.apply(lambda doc: remove_relationship(doc, name_a, name_b), False)

    def get_relationship(self, name_a: str, name_b: str) -> Relationship | None:
        return self.store.read(lambda doc: get_relationship(doc, name_a, name_b))

    def list_relationships(self, character: str | None = None) -> list[Relationship]:
        return self.store.read(lambda doc: list_relationships(doc, character), [])

    def add_relationship_event(
        self, name_a: str, name_b: str, change: str, catalyst: str = "", scene_id: str | None = None
    ) -> RelationshipEvent | None:
        return self.store.apply(
            lambda doc: add_relationship_event(doc, name_a, name_b, change, catalyst, scene_id)
        )

    def get_relationship_timeline(self, name_a: str, name_b: str) -> list[RelationshipEvent]:
        return self.store.read(lambda doc: get_relationship_timeline(doc, name_a, name_b), [])

    def get_relationship_arc(self, name_a: str, name_b: str) -> str:
        return self.store.read(lambda doc: get_relationship_arc(doc, name_a, name_b), NO_CHANGE)

    def get_character_connections(self, character: str) -> list[Connection]:
        return self.store.read(lambda doc: get_character_connections(doc, character), [])

    def get_relationship_web(self) -> dict[str, Any]:
        return self.store.read(get_relationship_web, {"nodes": [], "edges": []})

    def generate_relationship_profile(self, name_a: str, name_b: str) -> str:
        return self.store.read(
            lambda doc: generate_relationship_profile(doc, name_a, name_b),
            f"# {name_a} ↔ {name_b}\n\n관계 정보 없음",
        )

    def generate_relationship_map(self) -> str:
        return self.store.read(generate_relationship_map, "관계 없음")
