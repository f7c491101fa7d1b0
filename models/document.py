"""
The root document: everything persisted for one project
"""
from dataclasses import dataclass, field
from typing import Any, ClassVar

from config import SUPPORTED_VERSION
from models.base import optional_text_field, text_field
from models.character import Character
from models.relationship import Relationship
from models.scene import Scene
from models.theme import Theme
from models.world import World


@dataclass
class ProjectMeta:
    name: str
    genre: str
    created: str
    updated: str

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "genre": self.genre, "created": self.created, "updated": self.updated}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ProjectMeta":
        return cls(
            name=text_field(data, "name"),
            genre=text_field(data, "genre"),
            created=text_field(data, "created"),
            updated=text_field(data, "updated"),
        )


@dataclass
class SynopsisState:
    """Five authorable synopsis slots"""

    protagonist_attitude: str = ""
    core_relationships: str = ""
    emotional_theme: str = ""
    genre_vs_real_emotion: str = ""
    ending_aftertaste: str = ""
    last_generated: str | None = None

    ELEMENTS: ClassVar[dict[str, str]] = {
        "protagonistAttitude": "protagonist_attitude",
        "coreRelationships": "core_relationships",
        "emotionalTheme": "emotional_theme",
        "genreVsRealEmotion": "genre_vs_real_emotion",
        "endingAftertaste": "ending_aftertaste",
    }

    @classmethod
    def element_attr(cls, element: str) -> str | None:
        """Attribute name for a camelCase or snake_case element name"""
        if element in cls.ELEMENTS:
            return cls.ELEMENTS[element]
        if element in cls.ELEMENTS.values():
            return element
        return None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {wire: getattr(self, attr) for wire, attr in self.ELEMENTS.items()}
        if self.last_generated is not None:
            data["lastGenerated"] = self.last_generated
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SynopsisState":
        values = {attr: text_field(data, wire) for wire, attr in cls.ELEMENTS.items()}
        return cls(last_generated=optional_text_field(data, "lastGenerated"), **values)


@dataclass
class Document:
    """In-memory form of memory.json"""

    project: ProjectMeta
    version: str = SUPPORTED_VERSION
    characters: dict[str, Character] = field(default_factory=dict)  # keyed by character id
    relationships: list[Relationship] = field(default_factory=list)
    scenes: list[Scene] = field(default_factory=list)
    themes: list[Theme] = field(default_factory=list)
    world: World = field(default_factory=World)
    synopsis: SynopsisState | None = None

    @classmethod
    def new(cls, project_name: str, genre: str, timestamp: str) -> "Document":
        return cls(
            project=ProjectMeta(name=project_name, genre=genre, created=timestamp, updated=timestamp),
            synopsis=SynopsisState(),
        )

    # --- lookups -------------------------------------------------------

    def find_character_by_name(self, name: str) -> Character | None:
        for character in self.characters.values():
            if character.name == name:
                return character
        return None

    def find_character_by_alias(self, alias: str) -> Character | None:
        for character in self.characters.values():
            if character.has_alias(alias):
                return character
        return None

    def find_character(self, name_or_alias: str) -> Character | None:
        """Resolve by map key, then name, then alias"""
        character = self.characters.get(name_or_alias)
        if character is not None:
            return character
        return self.find_character_by_name(name_or_alias) or self.find_character_by_alias(name_or_alias)

    def character_names(self) -> set[str]:
        return {character.name for character in self.characters.values()}

    def find_relationship(self, name_a: str, name_b: str) -> Relationship | None:
        for relationship in self.relationships:
            if relationship.connects(name_a, name_b):
                return relationship
        return None

    def find_scene(self, scene_id: str) -> Scene | None:
        for scene in self.scenes:
            if scene.id == scene_id:
                return scene
        return None

    def scenes_in_order(self) -> list[Scene]:
        return sorted(self.scenes, key=lambda scene: scene.order)

    def renumber_scenes(self) -> None:
        for index, scene in enumerate(self.scenes):
            scene.order = index

    def find_theme(self, id_or_name: str) -> Theme | None:
        for theme in self.themes:
            if theme.id == id_or_name or theme.name == id_or_name:
                return theme
        return None

    # --- serialization -------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "version": self.version,
            "project": self.project.to_dict(),
            "characters": {key: character.to_dict() for key, character in self.characters.items()},
            "world": self.world.to_dict(),
            "relationships": [relationship.to_dict() for relationship in self.relationships],
            "scenes": [scene.to_dict() for scene in self.scenes],
            "themes": [theme.to_dict() for theme in self.themes],
        }
        if self.synopsis is not None:
            data["synopsis"] = self.synopsis.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: Any) -> "Document":
        """Build a document from parsed JSON.

        Raises:
            ValueError: the structure is not a writer-memory document
        """
        if not isinstance(data, dict):
            raise ValueError("Document root must be a JSON object")
        if not isinstance(data.get("project"), dict):
            raise ValueError("Document has no project object")

        characters = data.get("characters") or {}
        if not isinstance(characters, dict):
            raise ValueError("'characters' must be an object")
        for key in ("relationships", "scenes", "themes"):
            if not isinstance(data.get(key) or [], list):
                raise ValueError(f"'{key}' must be an array")

        synopsis = data.get("synopsis")
        return cls(
            version=text_field(data, "version"),
            project=ProjectMeta.from_dict(data["project"]),
            characters={key: Character.from_dict(value) for key, value in characters.items()},
            relationships=[Relationship.from_dict(item) for item in data.get("relationships") or []],
            scenes=[Scene.from_dict(item) for item in data.get("scenes") or []],
            themes=[Theme.from_dict(item) for item in data.get("themes") or []],
            world=World.from_dict(data.get("world")),
            synopsis=SynopsisState.from_dict(synopsis) if isinstance(synopsis, dict) else None,
        )
