"""
Relationship data models
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar

from models.base import merge_fields, optional_text_field, text, text_field
from models.character import SpeechLevel


class RelationshipType(str, Enum):
    """Fixed relationship categories"""

    ROMANTIC = "romantic"
    FAMILIAL = "familial"
    FRIENDSHIP = "friendship"
    ANTAGONISTIC = "antagonistic"
    PROFESSIONAL = "professional"
    MENTOR = "mentor"
    COMPLEX = "complex"

    @property
    def label(self) -> str:
        return RELATIONSHIP_LABELS[self]

    @property
    def symbol(self) -> str:
        return RELATIONSHIP_SYMBOLS[self]


RELATIONSHIP_LABELS = {
    RelationshipType.ROMANTIC: "연인",
    RelationshipType.FAMILIAL: "가족",
    RelationshipType.FRIENDSHIP: "우정",
    RelationshipType.ANTAGONISTIC: "적대",
    RelationshipType.PROFESSIONAL: "직업적",
    RelationshipType.MENTOR: "사제",
    RelationshipType.COMPLEX: "복합적",
}

RELATIONSHIP_SYMBOLS = {
    RelationshipType.ROMANTIC: "♥",
    RelationshipType.FAMILIAL: "家",
    RelationshipType.FRIENDSHIP: "友",
    RelationshipType.ANTAGONISTIC: "敵",
    RelationshipType.PROFESSIONAL: "職",
    RelationshipType.MENTOR: "師",
    RelationshipType.COMPLEX: "複",
}


@dataclass
class RelationshipEvent:
    """A change in a relationship"""

    timestamp: str
    change: str
    catalyst: str
    scene_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "timestamp": self.timestamp,
            "change": self.change,
            "catalyst": self.catalyst,
        }
        if self.scene_id is not None:
            data["sceneId"] = self.scene_id
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RelationshipEvent":
        return cls(
            timestamp=text_field(data, "timestamp"),
            change=text_field(data, "change"),
            catalyst=text_field(data, "catalyst"),
            scene_id=optional_text_field(data, "sceneId"),
        )


@dataclass
class Relationship:
    """Relationship between two characters, stored with its original orientation"""

    id: str
    source: str
    target: str
    type: RelationshipType
    created: str
    dynamic: str = "stable"
    speech_level: SpeechLevel | None = None
    evolution: list[RelationshipEvent] = field(default_factory=list)
    notes: str | None = None

    UPDATABLE_FIELDS: ClassVar[dict[str, str]] = {
        "type": "type",
        "dynamic": "dynamic",
        "speechLevel": "speech_level",
        "notes": "notes",
    }

    def __str__(self) -> str:
        return f"{self.source} - {self.target}: {self.type.value}"

    @property
    def pair(self) -> tuple[str, str]:
        """Sorted character pair"""
        return tuple(sorted([self.source, self.target]))

    def connects(self, name_a: str, name_b: str) -> bool:
        """True for the pair in either orientation"""
        return (self.source == name_a and self.target == name_b) or (
            self.source == name_b and self.target == name_a
        )

    def involves(self, name: str) -> bool:
        return name in (self.source, self.target)

    def other_party(self, name: str) -> str:
        return self.target if self.source == name else self.source

    def apply_updates(self, updates: dict[str, Any] | None) -> list[str]:
        return merge_fields(
            self,
            updates,
            self.UPDATABLE_FIELDS,
            coercers={
                "type": RelationshipType,
                "dynamic": text,
                "speech_level": SpeechLevel.parse,
                "notes": text,
            },
            nullable=frozenset({"speech_level", "notes"}),
        )

    def sorted_evolution(self) -> list[RelationshipEvent]:
        """Events ordered by timestamp string, regardless of insertion order"""
        return sorted(self.evolution, key=lambda event: event.timestamp)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "from": self.source,
            "to": self.target,
            "type": self.type.value,
            "dynamic": self.dynamic,
        }
        if self.speech_level is not None:
            data["speechLevel"] = self.speech_level.value
        data["evolution"] = [event.to_dict() for event in self.evolution]
        if self.notes is not None:
            data["notes"] = self.notes
        data["created"] = self.created
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Relationship":
        speech_level = data.get("speechLevel")
        return cls(
            id=text_field(data, "id"),
            source=text_field(data, "from"),
            target=text_field(data, "to"),
            type=RelationshipType(data.get("type", RelationshipType.COMPLEX.value)),
            created=text_field(data, "created"),
            dynamic=text_field(data, "dynamic"),
            speech_level=SpeechLevel.parse(speech_level) if speech_level is not None else None,
            evolution=[RelationshipEvent.from_dict(event) for event in data.get("evolution") or []],
            notes=optional_text_field(data, "notes"),
        )
