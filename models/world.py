"""
World model: a singleton per document
"""
from dataclasses import dataclass, field
from typing import Any, ClassVar

from models.base import merge_fields, string_list, text, text_field


@dataclass
class WorldRule:
    id: str
    category: str
    description: str

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "category": self.category, "description": self.description}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "WorldRule":
        return cls(
            id=text_field(data, "id"),
            category=text_field(data, "category"),
            description=text_field(data, "description"),
        )


@dataclass
class Location:
    id: str
    name: str
    description: str = ""
    atmosphere: str = ""
    connected_to: list[str] = field(default_factory=list)  # location ids

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "atmosphere": self.atmosphere,
            "connectedTo": list(self.connected_to),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Location":
        return cls(
            id=text_field(data, "id"),
            name=text_field(data, "name"),
            description=text_field(data, "description"),
            atmosphere=text_field(data, "atmosphere"),
            connected_to=string_list(data.get("connectedTo") or []),
        )


@dataclass
class World:
    name: str = ""
    era: str = ""
    atmosphere: str = ""
    rules: list[WorldRule] = field(default_factory=list)
    locations: list[Location] = field(default_factory=list)
    cultural_notes: list[str] = field(default_factory=list)
    notes: str = ""

    UPDATABLE_FIELDS: ClassVar[dict[str, str]] = {
        "name": "name",
        "era": "era",
        "atmosphere": "atmosphere",
        "culturalNotes": "cultural_notes",
        "notes": "notes",
    }

    def apply_updates(self, updates: dict[str, Any] | None) -> list[str]:
        return merge_fields(
            self,
            updates,
            self.UPDATABLE_FIELDS,
            coercers={
                "name": text,
                "era": text,
                "atmosphere": text,
                "cultural_notes": string_list,
                "notes": text,
            },
        )

    def find_location(self, id_or_name: str) -> Location | None:
        for location in self.locations:
            if location.id == id_or_name or location.name == id_or_name:
                return location
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "era": self.era,
            "atmosphere": self.atmosphere,
            "rules": [rule.to_dict() for rule in self.rules],
            "locations": [location.to_dict() for location in self.locations],
            "culturalNotes": list(self.cultural_notes),
            "notes": self.notes,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "World":
        data = data or {}
        return cls(
            name=text_field(data, "name"),
            era=text_field(data, "era"),
            atmosphere=text_field(data, "atmosphere"),
            rules=[WorldRule.from_dict(rule) for rule in data.get("rules") or []],
            locations=[Location.from_dict(location) for location in data.get("locations") or []],
            cultural_notes=string_list(data.get("culturalNotes") or []),
            notes=text_field(data, "notes"),
        )
