"""
Payload schemas for JSON-shaped command-line options

Each model validates a partial update; only the keys the caller actually
sent survive into the dict handed to the services.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator

from models.character import SpeechLevel
from models.relationship import RelationshipType
from models.scene import CutType


class FieldsPayload(BaseModel):
    model_config = ConfigDict(extra="forbid")

    def updates(self) -> dict[str, Any]:
        return self.model_dump(exclude_unset=True)


class CharacterFields(FieldsPayload):
    aliases: list[str] | None = None
    arc: str | None = None
    tone: str | None = None
    speechLevel: SpeechLevel | None = None
    keywords: list[str] | None = None
    attitude: str | None = None
    notes: str | None = None
    taboo: list[str] | None = None
    emotional_baseline: str | None = None
    triggers: list[str] | None = None

    @field_validator("speechLevel", mode="before")
    @classmethod
    def parse_speech_level(cls, value: Any) -> Any:
        # Korean labels (반말, 존댓말, ...) are accepted as well
        return None if value is None else SpeechLevel.parse(value)


class RelationshipFields(FieldsPayload):
    type: RelationshipType | None = None
    dynamic: str | None = None
    speechLevel: SpeechLevel | None = None
    notes: str | None = None

    @field_validator("speechLevel", mode="before")
    @classmethod
    def parse_speech_level(cls, value: Any) -> Any:
        return None if value is None else SpeechLevel.parse(value)


class SceneFields(FieldsPayload):
    title: str | None = None
    chapter: str | None = None
    characters: list[str] | None = None
    emotionTags: list[str] | None = None
    narrationTone: str | None = None
    notes: str | None = None


class CutFields(FieldsPayload):
    type: CutType | None = None
    content: str | None = None
    character: str | None = None
    emotionTag: str | None = None


class ThemeFields(FieldsPayload):
    name: str | None = None
    description: str | None = None
    keywords: list[str] | None = None
    relatedCharacters: list[str] | None = None
    relatedScenes: list[str] | None = None


class WorldFields(FieldsPayload):
    name: str | None = None
    era: str | None = None
    atmosphere: str | None = None
    culturalNotes: list[str] | None = None
    notes: str | None = None


class LocationFields(FieldsPayload):
    description: str | None = None
    atmosphere: str | None = None


class SynopsisFields(FieldsPayload):
    protagonistAttitude: str = ""
    coreRelationships: str = ""
    emotionalTheme: str = ""
    genreVsRealEmotion: str = ""
    endingAftertaste: str = ""


def parse_fields(model: type[FieldsPayload], raw: str | None) -> dict[str, Any]:
    """
    Validate a JSON object string against a payload model

    Raises:
        pydantic.ValidationError: malformed JSON, unknown keys or bad values
    """
    if not raw:
        return {}
    return model.model_validate_json(raw).updates()
