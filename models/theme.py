"""
Theme data model
"""
from dataclasses import dataclass, field
from typing import Any, ClassVar

from models.base import merge_fields, string_list, text, text_field


@dataclass
class Theme:
    id: str
    name: str
    description: str = ""
    keywords: list[str] = field(default_factory=list)
    related_characters: list[str] = field(default_factory=list)
    related_scenes: list[str] = field(default_factory=list)

    UPDATABLE_FIELDS: ClassVar[dict[str, str]] = {
        "name": "name",
        "description": "description",
        "keywords": "keywords",
        "relatedCharacters": "related_characters",
        "relatedScenes": "related_scenes",
    }

    def apply_updates(self, updates: dict[str, Any] | None) -> list[str]:
        return merge_fields(
            self,
            updates,
            self.UPDATABLE_FIELDS,
            coercers={
                "name": text,
                "description": text,
                "keywords": string_list,
                "related_characters": string_list,
                "related_scenes": string_list,
            },
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "keywords": list(self.keywords),
            "relatedCharacters": list(self.related_characters),
            "relatedScenes": list(self.related_scenes),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Theme":
        return cls(
            id=text_field(data, "id"),
            name=text_field(data, "name"),
            description=text_field(data, "description"),
            keywords=string_list(data.get("keywords") or []),
            related_characters=string_list(data.get("relatedCharacters") or []),
            related_scenes=string_list(data.get("relatedScenes") or []),
        )
