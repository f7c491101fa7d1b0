"""
Scene and cut data models
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar

from models.base import int_field, merge_fields, optional_text_field, string_list, text, text_field


class CutType(str, Enum):
    DIALOGUE = "dialogue"
    NARRATION = "narration"
    ACTION = "action"
    INTERNAL = "internal"

    @property
    def label(self) -> str:
        return CUT_TYPE_LABELS[self]


CUT_TYPE_LABELS = {
    CutType.DIALOGUE: "대사",
    CutType.NARRATION: "내레이션",
    CutType.ACTION: "액션",
    CutType.INTERNAL: "내면",
}


@dataclass
class Cut:
    """Smallest narrative unit inside a scene"""

    order: int
    type: CutType
    content: str
    character: str | None = None
    emotion_tag: str | None = None

    UPDATABLE_FIELDS: ClassVar[dict[str, str]] = {
        "type": "type",
        "content": "content",
        "character": "character",
        "emotionTag": "emotion_tag",
    }

    def apply_updates(self, updates: dict[str, Any] | None) -> list[str]:
        return merge_fields(
            self,
            updates,
            self.UPDATABLE_FIELDS,
            coercers={"type": CutType, "content": text, "character": text, "emotion_tag": text},
            nullable=frozenset({"character", "emotion_tag"}),
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"order": self.order, "type": self.type.value, "content": self.content}
        if self.character is not None:
            data["character"] = self.character
        if self.emotion_tag is not None:
            data["emotionTag"] = self.emotion_tag
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Cut":
        return cls(
            order=int_field(data, "order"),
            type=CutType(data.get("type", CutType.NARRATION.value)),
            content=text_field(data, "content"),
            character=optional_text_field(data, "character"),
            emotion_tag=optional_text_field(data, "emotionTag"),
        )


@dataclass
class Scene:
    """A scene; ``order`` is its position in the dense narrative sequence"""

    id: str
    title: str
    order: int
    created: str
    chapter: str | None = None
    characters: list[str] = field(default_factory=list)
    emotion_tags: list[str] = field(default_factory=list)
    cuts: list[Cut] = field(default_factory=list)
    narration_tone: str | None = None
    notes: str | None = None

    # order and cuts are maintained by the scene operations only
    UPDATABLE_FIELDS: ClassVar[dict[str, str]] = {
        "title": "title",
        "chapter": "chapter",
        "characters": "characters",
        "emotionTags": "emotion_tags",
        "narrationTone": "narration_tone",
        "notes": "notes",
    }

    def __str__(self) -> str:
        return f"Scene({self.order}: {self.title}, cuts={len(self.cuts)})"

    def apply_updates(self, updates: dict[str, Any] | None) -> list[str]:
        return merge_fields(
            self,
            updates,
            self.UPDATABLE_FIELDS,
            coercers={
                "title": text,
                "chapter": text,
                "characters": string_list,
                "emotion_tags": string_list,
                "narration_tone": text,
                "notes": text,
            },
            nullable=frozenset({"chapter", "narration_tone", "notes"}),
        )

    def find_cut(self, order: int) -> Cut | None:
        for cut in self.cuts:
            if cut.order == order:
                return cut
        return None

    def renumber_cuts(self) -> None:
        for index, cut in enumerate(self.cuts):
            cut.order = index

    @property
    def primary_emotion(self) -> str | None:
        return self.emotion_tags[0] if self.emotion_tags else None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"id": self.id, "title": self.title}
        if self.chapter is not None:
            data["chapter"] = self.chapter
        data.update(
            {
                "order": self.order,
                "characters": list(self.characters),
                "emotionTags": list(self.emotion_tags),
                "cuts": [cut.to_dict() for cut in self.cuts],
            }
        )
        if self.narration_tone is not None:
            data["narrationTone"] = self.narration_tone
        if self.notes is not None:
            data["notes"] = self.notes
        data["created"] = self.created
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Scene":
        return cls(
            id=text_field(data, "id"),
            title=text_field(data, "title"),
            order=int_field(data, "order"),
            created=text_field(data, "created"),
            chapter=optional_text_field(data, "chapter"),
            characters=string_list(data.get("characters") or []),
            emotion_tags=string_list(data.get("emotionTags") or []),
            cuts=[Cut.from_dict(cut) for cut in data.get("cuts") or []],
            narration_tone=optional_text_field(data, "narrationTone"),
            notes=optional_text_field(data, "notes"),
        )
