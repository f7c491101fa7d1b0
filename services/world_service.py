"""
World model operations: setting, rules, locations and cultural notes
"""

import logging
from typing import Any

from models.base import merge_fields, text
from models.document import Document
from models.world import Location, World, WorldRule
from services.memory_store import MemoryStore
from utils import generate_id
from validators import validate_non_empty

logger = logging.getLogger(__name__)

LOCATION_FIELDS = {"description": "description", "atmosphere": "atmosphere"}


def get_world(doc: Document) -> World:
    return doc.world


def update_world(doc: Document, updates: dict[str, Any] | None) -> World:
    """Partial update of name, era, atmosphere, culturalNotes and notes"""
    doc.world.apply_updates(updates)
    return doc.world


def add_world_rule(doc: Document, category: str, description: str) -> WorldRule:
    """
    Raises:
        MemoryValidationError: empty description
    """
    rule = WorldRule(
        id=generate_id("rule"),
        category=(category or "").strip(),
        description=validate_non_empty(description, "description"),
    )
    doc.world.rules.append(rule)
    return rule


def remove_world_rule(doc: Document, rule_id: str) -> bool:
    for rule in doc.world.rules:
        if rule.id == rule_id:
            doc.world.rules.remove(rule)
            return True
    return False


def add_location(doc: Document, name: str, options: dict[str, Any] | None = None) -> Location | None:
    """New location; None for an empty or duplicate name"""
    name = (name or "").strip()
    if not name or any(location.name == name for location in doc.world.locations):
        return None

    location = Location(id=generate_id("loc"), name=name)
    merge_fields(location, options, LOCATION_FIELDS, coercers={"description": text, "atmosphere": text})
    doc.world.locations.append(location)
    return location


def connect_locations(doc: Document, location_a: str, location_b: str) -> bool:
    """Link two locations both ways; already linked counts as success"""
    first = doc.world.find_location(location_a)
    second = doc.world.find_location(location_b)
    if first is None or second is None or first is second:
        return False

    if second.id not in first.connected_to:
        first.connected_to.append(second.id)
    if first.id not in second.connected_to:
        second.connected_to.append(first.id)
    return True


def remove_location(doc: Document, id_or_name: str) -> bool:
    """Delete a location and detach it from every other location"""
    location = doc.world.find_location(id_or_name)
    if location is None:
        return False

    doc.world.locations.remove(location)
    for other in doc.world.locations:
        if location.id in other.connected_to:
            other.connected_to = [target for target in other.connected_to if target != location.id]
    return True


def add_cultural_note(doc: Document, note: str) -> bool:
    note = (note or "").strip()
    if not note:
        return False
    if note not in doc.world.cultural_notes:
        doc.world.cultural_notes.append(note)
    return True


class WorldService:
    """World operations against the persistent store"""

    def __init__(self, store: MemoryStore | None = None):
        self.store = store or MemoryStore()

    def get_world(self) -> World | None:
        return self.store.read(get_world)

    def update_world(self, updates: dict[str, Any] | None) -> World | None:
        return self.store.apply(lambda doc: update_world(doc, updates))

    def add_world_rule(self, category: str, description: str) -> WorldRule | None:
        return self.store.apply(lambda doc: add_world_rule(doc, category, description))

    def remove_world_rule(self, rule_id: str) -> bool:
        return self.store.apply(lambda doc: remove_world_rule(doc, rule_id), False)

    def add_location(self, name: str, options: dict[str, Any] | None = None) -> Location | None:
        return self.store.apply(lambda doc: add_location(doc, name, options))

    def connect_locations(self, location_a: str, location_b: str) -> bool:
        return self.store.apply(lambda doc: connect_locations(doc, location_a, location_b), False)

    def remove_location(self, id_or_name: str) -> bool:
        return self.store.apply(lambda doc: remove_location(doc, id_or_name), False)

    def add_cultural_note(self, note: str) -> bool:
        return self.store.apply(lambda doc: add_cultural_note(doc, note), False)
