"""
Character data models
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar

from models.base import (
    int_field,
    merge_fields,
    optional_list,
    optional_text_field,
    string_list,
    text,
    text_field,
)


class SpeechLevel(str, Enum):
    """Register a character speaks in"""

    FORMAL = "formal"      # 존댓말
    INFORMAL = "informal"  # 반말
    CASUAL = "casual"      # 해체
    MIXED = "mixed"        # 혼합

    @property
    def label(self) -> str:
        return SPEECH_LEVEL_LABELS[self]

    @classmethod
    def parse(cls, value: Any) -> "SpeechLevel":
        """Accept an enum member, its value, or its Korean label"""
        if isinstance(value, cls):
            return value
        text = str(value).strip()
        for level in cls:
            if text.lower() == level.value or text == SPEECH_LEVEL_LABELS[level]:
                return level
        raise ValueError(f"Unknown speech level: {value!r}")


SPEECH_LEVEL_LABELS = {
    SpeechLevel.FORMAL: "존댓말",
    SpeechLevel.INFORMAL: "반말",
    SpeechLevel.CASUAL: "해체",
    SpeechLevel.MIXED: "혼합",
}


@dataclass
class EmotionPoint:
    """One entry on a character's emotion timeline"""

    timestamp: str
    emotion: str
    trigger: str
    intensity: int = 3
    scene_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"timestamp": self.timestamp}
        if self.scene_id is not None:
            data["sceneId"] = self.scene_id
        data.update({"emotion": self.emotion, "trigger": self.trigger, "intensity": self.intensity})
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "EmotionPoint":
        return cls(
            timestamp=text_field(data, "timestamp"),
            emotion=text_field(data, "emotion"),
            trigger=text_field(data, "trigger"),
            intensity=int_field(data, "intensity", 3),
            scene_id=optional_text_field(data, "sceneId"),
        )


@dataclass
class Character:
    """A character, keyed in the document by its immutable id"""

    id: str
    name: str
    created: str
    updated: str
    aliases: list[str] = field(default_factory=list)
    arc: str = ""
    tone: str = ""
    speech_level: SpeechLevel = SpeechLevel.INFORMAL
    keywords: list[str] = field(default_factory=list)
    attitude: str = ""
    timeline: list[EmotionPoint] = field(default_factory=list)
    notes: str = ""
    taboo: list[str] | None = None
    emotional_baseline: str | None = None
    triggers: list[str] | None = None

    # identity fields and the append-only timeline are not updatable
    UPDATABLE_FIELDS: ClassVar[dict[str, str]] = {
        "aliases": "aliases",
        "arc": "arc",
        "tone": "tone",
        "speechLevel": "speech_level",
        "keywords": "keywords",
        "attitude": "attitude",
        "notes": "notes",
        "taboo": "taboo",
        "emotional_baseline": "emotional_baseline",
        "triggers": "triggers",
    }

    def __str__(self) -> str:
        return f"Character({self.name}, emotions={len(self.timeline)})"

    def apply_updates(self, updates: dict[str, Any] | None) -> list[str]:
        """Partial merge of caller-supplied fields"""
        return merge_fields(
            self,
            updates,
            self.UPDATABLE_FIELDS,
            coercers={
                "speech_level": SpeechLevel.parse,
                "arc": text,
                "tone": text,
                "attitude": text,
                "notes": text,
                "emotional_baseline": text,
                "aliases": string_list,
                "keywords": string_list,
                "taboo": string_list,
                "triggers": string_list,
            },
            nullable=frozenset({"taboo", "emotional_baseline", "triggers"}),
        )

    def has_alias(self, alias: str) -> bool:
        return alias in self.aliases

    @property
    def latest_emotion(self) -> EmotionPoint | None:
        return self.timeline[-1] if self.timeline else None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "aliases": list(self.aliases),
            "arc": self.arc,
            "tone": self.tone,
            "speechLevel": self.speech_level.value,
            "keywords": list(self.keywords),
            "attitude": self.attitude,
            "timeline": [point.to_dict() for point in self.timeline],
            "notes": self.notes,
            "created": self.created,
            "updated": self.updated,
        }
        if self.taboo is not None:
            data["taboo"] = list(self.taboo)
        if self.emotional_baseline is not None:
            data["emotional_baseline"] = self.emotional_baseline
        if self.triggers is not None:
            data["triggers"] = list(self.triggers)
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Character":
        return cls(
            id=text_field(data, "id"),
            name=text_field(data, "name"),
            created=text_field(data, "created"),
            updated=text_field(data, "updated"),
            aliases=string_list(data.get("aliases") or []),
            arc=text_field(data, "arc"),
            tone=text_field(data, "tone"),
            speech_level=SpeechLevel.parse(data.get("speechLevel", SpeechLevel.INFORMAL)),
            keywords=string_list(data.get("keywords") or []),
            attitude=text_field(data, "attitude"),
            timeline=[EmotionPoint.from_dict(point) for point in data.get("timeline") or []],
            notes=text_field(data, "notes"),
            taboo=optional_list(data.get("taboo")),
            emotional_baseline=optional_text_field(data, "emotional_baseline"),
            triggers=optional_list(data.get("triggers")),
        )
