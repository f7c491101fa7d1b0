"""
Character operations

Module-level functions operate on a loaded Document and mutate it in place;
CharacterService runs them through a MemoryStore so each call is one
load-mutate-save cycle.
"""

import logging
from typing import Any

from models.character import Character, EmotionPoint
from models.document import Document
from services.dialogue import DialogueCheck, SpeechLevelClassifier, SuffixPatternClassifier, check_dialogue
from services.memory_store import MemoryStore
from utils import generate_id, now_iso
from validators import validate_intensity, validate_non_empty

logger = logging.getLogger(__name__)


# --- CRUD ----------------------------------------------------------------

def add_character(doc: Document, name: str, options: dict[str, Any] | None = None) -> Character | None:
    """
    Register a new character

    Args:
        doc: document to modify
        name: display name, unique among characters
        options: initial narrative fields (arc, tone, speechLevel, keywords, ...)

    Returns:
        Character | None: the new character; None for an empty or taken name
    """
    name = (name or "").strip()
    if not name:
        return None
    if doc.find_character_by_name(name) is not None:
        logger.info(f"Character already exists: {name}")
        return None

    timestamp = now_iso()
    character = Character(id=generate_id("char"), name=name, created=timestamp, updated=timestamp)
    character.apply_updates(options)
    character.aliases = [alias for alias in dict.fromkeys(character.aliases) if alias != name]

    doc.characters[character.id] = character
    return character


def update_character(doc: Document, name: str, updates: dict[str, Any] | None) -> Character | None:
    """Partial update; identity fields and the timeline are left alone"""
    character = doc.find_character(name)
    if character is None:
        return None

    character.apply_updates(updates)
    character.updated = now_iso()
    return character


def rename_character(doc: Document, name: str, new_name: str) -> Character | None:
    """
    Change a character's display name and rewrite every soft reference to it

    Relationships, scene casts, cut attributions and theme character lists
    that held the old name are updated.

    Returns:
        Character | None: None when the character is unknown or new_name is taken
    """
    character = doc.find_character(name)
    new_name = (new_name or "").strip()
    if character is None or not new_name:
        return None
    if new_name == character.name:
        return character
    if doc.find_character_by_name(new_name) is not None:
        logger.info(f"Cannot rename to {new_name}: name already taken")
        return None

    old_name = character.name
    character.name = new_name
    if new_name in character.aliases:
        character.aliases.remove(new_name)
    character.updated = now_iso()

    for relationship in doc.relationships:
        if relationship.source == old_name:
            relationship.source = new_name
        if relationship.target == old_name:
            relationship.target = new_name
    for scene in doc.scenes:
        scene.characters = [new_name if member == old_name else member for member in scene.characters]
        for cut in scene.cuts:
            if cut.character == old_name:
                cut.character = new_name
    for theme in doc.themes:
        theme.related_characters = [
            new_name if member == old_name else member for member in theme.related_characters
        ]

    logger.info(f"Renamed character {old_name} -> {new_name}")
    return character


def remove_character(doc: Document, name: str) -> bool:
    """Delete a character; references elsewhere are left dangling"""
    character = doc.find_character(name)
    if character is None:
        return False

    for key, candidate in list(doc.characters.items()):
        if candidate is character:
            del doc.characters[key]
    return True


def list_characters(doc: Document) -> list[dict[str, Any]]:
    return [
        {
            "id": character.id,
            "name": character.name,
            "arc": character.arc,
            "tone": character.tone,
            "emotionCount": len(character.timeline),
            "lastUpdated": character.updated,
        }
        for character in doc.characters.values()
    ]


def resolve_character(doc: Document, name_or_alias: str) -> Character | None:
    return doc.find_character(name_or_alias)


# --- aliases -------------------------------------------------------------

def add_alias(doc: Document, name: str, alias: str) -> bool:
    """Idempotent: adding a known alias (or the name itself) succeeds without change"""
    character = doc.find_character(name)
    alias = (alias or "").strip()
    if character is None or not alias:
        return False

    if alias != character.name and not character.has_alias(alias):
        character.aliases.append(alias)
        character.updated = now_iso()
    return True


def remove_alias(doc: Document, name: str, alias: str) -> bool:
    """Idempotent: removing an unknown alias succeeds without change"""
    character = doc.find_character(name)
    if character is None:
        return False

    if character.has_alias(alias):
        character.aliases.remove(alias)
        character.updated = now_iso()
    return True


# --- emotion timeline ----------------------------------------------------

def add_emotion_point(
    doc: Document,
    name: str,
    emotion: str,
    trigger: str = "",
    intensity: int | None = None,
    scene_id: str | None = None,
) -> EmotionPoint | None:
    """
    Append an emotion to a character's timeline

    Raises:
        MemoryValidationError: empty emotion or intensity outside 1-5
    """
    emotion = validate_non_empty(emotion, "emotion")
    intensity = 3 if intensity is None else validate_intensity(intensity)

    character = doc.find_character(name)
    if character is None:
        return None

    timestamp = now_iso()
    point = EmotionPoint(
        timestamp=timestamp,
        emotion=emotion,
        trigger=trigger or "",
        intensity=intensity,
        scene_id=scene_id or None,
    )
    character.timeline.append(point)
    character.updated = timestamp
    return point


def get_emotion_timeline(doc: Document, name: str) -> list[EmotionPoint]:
    character = doc.find_character(name)
    return list(character.timeline) if character else []


def get_latest_emotion(doc: Document, name: str) -> EmotionPoint | None:
    character = doc.find_character(name)
    return character.latest_emotion if character else None


def get_emotion_arc(doc: Document, name: str) -> str:
    """Emotion labels in insertion order, e.g. 체념 → 설렘 → 결의"""
    return " → ".join(point.emotion for point in get_emotion_timeline(doc, name))


# --- dialogue and profile ------------------------------------------------

def validate_dialogue(
    doc: Document,
    name: str,
    dialogue: str,
    classifier: SpeechLevelClassifier | None = None,
) -> DialogueCheck:
    return check_dialogue(doc.find_character(name), dialogue, classifier, requested_name=name)


def generate_character_profile(doc: Document, name: str) -> str:
    """Markdown profile; empty fields are left out"""
    character = doc.find_character(name)
    if character is None:
        return f'# "{name}" 캐릭터를 찾을 수 없습니다'

    lines = [f"# {character.name}"]
    if character.aliases:
        lines.append(f"**별칭**: {', '.join(character.aliases)}")
    if character.arc:
        lines.append(f"**캐릭터 아크**: {character.arc}")
    if character.tone:
        lines.append(f"**대사 톤**: {character.tone}")
    lines.append(f"**말투**: {character.speech_level.label}")
    if character.keywords:
        lines.append(f"**핵심 키워드**: {', '.join(character.keywords)}")

    latest = character.latest_emotion
    if latest:
        lines.append(f"**현재 감정**: {latest.emotion} (강도: {latest.intensity}/5)")
    if character.attitude:
        lines.append(f"**태도**: {character.attitude}")
    if character.emotional_baseline:
        lines.append(f"**기본 정서**: {character.emotional_baseline}")
    if character.triggers:
        lines.append(f"**감정 트리거**: {', '.join(character.triggers)}")
    if character.taboo:
        lines.append(f"**금기 표현**: {', '.join(character.taboo)}")

    arc = get_emotion_arc(doc, name)
    if arc:
        lines.append(f"**감정 궤도**: {arc}")
    if character.notes:
        lines.append(f"**메모**: {character.notes}")

    return "\n\n".join(lines)


class CharacterService:
    """Character operations against the persistent store"""

    def __init__(self, store: MemoryStore | None = None, classifier: SpeechLevelClassifier | None = None):
        self.store = store or MemoryStore()
        self.classifier = classifier or SuffixPatternClassifier()

    def add_character(self, name: str, options: dict[str, Any] | None = None) -> Character | None:
        return self.store.apply(lambda doc: add_character(doc, name, options))

    def update_character(self, name: str, updates: dict[str, Any] | None) -> Character | None:
        return self.store.apply(lambda doc: update_character(doc, name, updates))

    def rename_character(self, name: str, new_name: str) -> Character | None:
        return self.store.apply(lambda doc: rename_character(doc, name, new_name))

    def remove_character(self, name: str) -> bool:
        return self.store.apply(lambda doc: remove_character(doc, name), False)

    def list_characters(self) -> list[dict[str, Any]]:
        return self.store.read(list_characters, [])

    def resolve_character(self, name_or_alias: str) -> Character | None:
        return self.store.read(lambda doc: resolve_character(doc, name_or_alias))

    def add_alias(self, name: str, alias: str) -> bool:
        return self.store.apply(lambda doc: add_alias(doc, name, alias), False)

    def remove_alias(self, name: str, alias: str) -> bool:
        return self.store.apply(lambda doc: remove_alias(doc, name, alias), False)

    def add_emotion_point(
        self,
        name: str,
        emotion: str,
        trigger: str = "",
        intensity: int | None = None,
        scene_id: str | None = None,
    ) -> EmotionPoint | None:
        return self.store.apply(
            lambda doc: add_emotion_point(doc, name, emotion, trigger, intensity, scene_id)
        )

    def get_emotion_timeline(self, name: str) -> list[EmotionPoint]:
        return self.store.read(lambda doc: get_emotion_timeline(doc, name), [])

    def get_latest_emotion(self, name: str) -> EmotionPoint | None:
        return self.store.read(lambda doc: get_latest_emotion(doc, name))

    def get_emotion_arc(self, name: str) -> str:
        return self.store.read(lambda doc: get_emotion_arc(doc, name), "")

    def validate_dialogue(self, name: str, dialogue: str) -> DialogueCheck:
        result = self.store.read(lambda doc: validate_dialogue(doc, name, dialogue, self.classifier))
        return result if result is not None else check_dialogue(None, dialogue, requested_name=name)

    def generate_character_profile(self, name: str) -> str:
        return self.store.read(
            lambda doc: generate_character_profile(doc, name),
            f'# "{name}" 캐릭터를 찾을 수 없습니다',
        )
