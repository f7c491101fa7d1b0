"""
Synopsis builder

An emotion-first synopsis is assembled from five elements: protagonist
attitude, core relationships, emotional theme, genre vs. real emotion and
ending aftertaste. Elements that cannot be derived yet are rendered as
placeholders starting with ⚠️ or ❌, which is_placeholder() detects.
"""

import logging
from dataclasses import dataclass
from typing import Any

from exceptions import MemoryValidationError
from models.base import text
from models.character import Character
from models.document import Document, SynopsisState
from services.memory_store import MemoryStore
from utils import first_sentence, now_iso

logger = logging.getLogger(__name__)

PLACEHOLDER_MARKERS = ("⚠️", "❌")
SYNOPSIS_FORMATS = ("full", "brief", "pitch")
RULE = "═══════════════════════════════"


def is_placeholder(text: str | None) -> bool:
    """True when an element has no authored or derivable content yet"""
    return bool(text) and text.startswith(PLACEHOLDER_MARKERS)


def find_protagonist(doc: Document, name: str | None = None) -> Character | None:
    """The named character (by name or alias), else the first registered one"""
    if name:
        return doc.find_character_by_name(name) or doc.find_character_by_alias(name)
    return next(iter(doc.characters.values()), None)


def _protagonist_relationships(doc: Document, protagonist: Character | None) -> list:
    if protagonist is None:
        return []
    return [relationship for relationship in doc.relationships if relationship.involves(protagonist.name)]


# --- element extractors --------------------------------------------------

def extract_protagonist_attitude(doc: Document, protagonist: str | None = None) -> str:
    character = find_protagonist(doc, protagonist)
    if character is None:
        return "⚠️ 주인공 정보 없음. 캐릭터를 먼저 등록하세요."

    parts = [part for part in (character.arc, character.attitude) if part]
    if not parts:
        return f"⚠️ {character.name}의 태도 정보 미입력. arc와 attitude 필드를 채우세요."
    return ". ".join(parts)


def extract_core_relationships(doc: Document, protagonist: str | None = None) -> str:
    character = find_protagonist(doc, protagonist)
    if character is None:
        return "⚠️ 주인공 정보 없음."

    relationships = _protagonist_relationships(doc, character)
    if not relationships:
        return f"⚠️ {character.name} 중심의 관계 정보 없음. 관계를 등록하세요."

    return "\n".join(
        f"{character.name}-{relationship.other_party(character.name)}: "
        f"{relationship.dynamic or relationship.type.value}"
        for relationship in relationships
    )


def extract_emotional_theme(doc: Document) -> str:
    if not doc.themes:
        return "⚠️ 테마 정보 없음. 작품의 정서적 주제를 입력하세요."
    return ". ".join(theme.description or theme.name for theme in doc.themes)


def extract_genre_vs_emotion(doc: Document) -> str:
    if doc.synopsis and doc.synopsis.genre_vs_real_emotion:
        return doc.synopsis.genre_vs_real_emotion
    genre = doc.project.genre or "미지정"
    return f"⚠️ 장르: {genre}. 실제 정서: 미정의. genreVsRealEmotion 필드를 입력하세요."


def extract_ending_aftertaste(doc: Document) -> str:
    if doc.synopsis and doc.synopsis.ending_aftertaste:
        return doc.synopsis.ending_aftertaste
    return '❌ 엔딩 정서 잔상 미입력. synopsis update endingAftertaste "..." 로 추가하세요.'


def extract_elements(doc: Document, protagonist: str | None = None) -> dict[str, str]:
    return {
        "protagonistAttitude": extract_protagonist_attitude(doc, protagonist),
        "coreRelationships": extract_core_relationships(doc, protagonist),
        "emotionalTheme": extract_emotional_theme(doc),
        "genreVsRealEmotion": extract_genre_vs_emotion(doc),
        "endingAftertaste": extract_ending_aftertaste(doc),
    }


# --- formats -------------------------------------------------------------

def format_full_synopsis(elements: dict[str, str], doc: Document) -> str:
    project_name = doc.project.name or "제목 미정"
    cast = "\n".join(
        f"- **{character.name}**: {character.attitude or character.arc or '설명 없음'}"
        for character in doc.characters.values()
    )
    emotion_flow = " → ".join(
        scene.primary_emotion for scene in doc.scenes_in_order() if scene.primary_emotion
    ) or "아직 정의되지 않음"

    return (
        f"{RULE}\n"
        f"시놉시스: {project_name}\n"
        f"{RULE}\n\n"
        f"## 1. 주인공의 태도\n{elements['protagonistAttitude']}\n\n"
        f"## 2. 관계의 핵심 구도\n{elements['coreRelationships']}\n\n"
        f"## 3. 정서적 테마\n{elements['emotionalTheme']}\n\n"
        f"## 4. 장르와 실제 감정의 거리\n{elements['genreVsRealEmotion']}\n\n"
        f"## 5. 엔딩이 남기는 잔상\n{elements['endingAftertaste']}\n\n"
        f"---\n"
        f"**등장인물**:\n{cast or '(등장인물 없음)'}\n\n"
        f"**장면 수**: {len(doc.scenes)}개\n\n"
        f"**감정 흐름**: {emotion_flow}\n"
    )


def format_brief_synopsis(elements: dict[str, str], protagonist_name: str) -> str:
    relationship = elements["coreRelationships"].split("\n")[0] or "관계를 형성하며"
    return (
        f"{protagonist_name}은 {first_sentence(elements['protagonistAttitude'])}. "
        f"{first_sentence(elements['emotionalTheme'])}을 통해 {relationship} 변화한다."
    )


def format_pitch_synopsis(elements: dict[str, str], protagonist_name: str, doc: Document) -> str:
    project_name = doc.project.name or "이 이야기"
    return (
        f"{project_name}는 {first_sentence(elements['protagonistAttitude'])} {protagonist_name}이 "
        f"{first_sentence(elements['emotionalTheme'])}을 깨닫는 이야기. "
        f"{first_sentence(elements['genreVsRealEmotion'])}."
    )


def generate_synopsis(doc: Document, protagonist: str | None = None, format: str = "full") -> str:
    """
    Render the synopsis in one of the supported formats

    Args:
        doc: source document
        protagonist: name or alias; the first character when omitted
        format: full, brief or pitch

    Raises:
        ValueError: unknown format
    """
    if format not in SYNOPSIS_FORMATS:
        raise ValueError(f"Unknown synopsis format: {format} (expected one of {', '.join(SYNOPSIS_FORMATS)})")

    elements = extract_elements(doc, protagonist)
    character = find_protagonist(doc, protagonist)
    name = character.name if character else "주인공"

    if format == "brief":
        return format_brief_synopsis(elements, name)
    if format == "pitch":
        return format_pitch_synopsis(elements, name, doc)
    return format_full_synopsis(elements, doc)


# --- checklist -----------------------------------------------------------

@dataclass
class ChecklistItem:
    element: str
    element_kr: str
    status: str  # complete | partial | missing
    source: str
    suggestion: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "element": self.element,
            "elementKr": self.element_kr,
            "status": self.status,
            "source": self.source,
            "suggestion": self.suggestion,
        }


def get_synopsis_checklist(doc: Document, protagonist: str | None = None) -> list[ChecklistItem]:
    """Completeness of each element with a suggested command to fill it"""
    character = find_protagonist(doc, protagonist)
    has_arc = bool(character and character.arc)
    has_attitude = bool(character and character.attitude)
    relationship_count = len(_protagonist_relationships(doc, character))
    theme_count = len(doc.themes)
    has_contrast = bool(doc.synopsis and doc.synopsis.genre_vs_real_emotion)
    has_aftertaste = bool(doc.synopsis and doc.synopsis.ending_aftertaste)

    if has_arc and has_attitude:
        attitude_status = "complete"
    elif has_arc or has_attitude:
        attitude_status = "partial"
    else:
        attitude_status = "missing"

    if relationship_count >= 2:
        relationship_status = "complete"
    elif relationship_count == 1:
        relationship_status = "partial"
    else:
        relationship_status = "missing"

    return [
        ChecklistItem(
            element="protagonistAttitude",
            element_kr="주인공 태도 요약",
            status=attitude_status,
            source=f"캐릭터 '{character.name}'에서 추출" if character else "주인공 없음",
            suggestion="" if attitude_status == "complete" else 'char update <name> arc "..." attitude "..."',
        ),
        ChecklistItem(
            element="coreRelationships",
            element_kr="관계 핵심 구도",
            status=relationship_status,
            source=f"관계 {relationship_count}개 등록됨",
            suggestion="" if relationship_status == "complete" else "rel add <from> <to> <type>",
        ),
        ChecklistItem(
            element="emotionalTheme",
            element_kr="정서적 테마",
            status="complete" if theme_count else "missing",
            source=f"테마 {theme_count}개 등록됨",
            suggestion="" if theme_count else "theme add <name>",
        ),
        ChecklistItem(
            element="genreVsRealEmotion",
            element_kr="장르와 실제 감정의 거리",
            status="complete" if has_contrast else "missing",
            source="명시적으로 입력됨" if has_contrast else "미입력",
            suggestion="" if has_contrast else 'synopsis update genreVsRealEmotion "..."',
        ),
        ChecklistItem(
            element="endingAftertaste",
            element_kr="엔딩 정서 잔상",
            status="complete" if has_aftertaste else "missing",
            source="명시적으로 입력됨" if has_aftertaste else "미입력",
            suggestion="" if has_aftertaste else 'synopsis update endingAftertaste "..."',
        ),
    ]


# --- stored state --------------------------------------------------------

def save_synopsis_state(doc: Document, state: SynopsisState | dict[str, Any]) -> SynopsisState:
    """Replace the stored synopsis elements and stamp lastGenerated"""
    if isinstance(state, dict):
        state = SynopsisState.from_dict(state)
    state.last_generated = now_iso()
    doc.synopsis = state
    return state


def load_synopsis_state(doc: Document) -> SynopsisState | None:
    return doc.synopsis


def update_synopsis_element(doc: Document, element: str, value: str) -> SynopsisState:
    """
    Set one element; camelCase and snake_case names are both accepted

    Raises:
        MemoryValidationError: unknown element name
    """
    attr = SynopsisState.element_attr(element)
    if attr is None:
        raise MemoryValidationError(
            f"Unknown synopsis element: {element} (expected one of {', '.join(SynopsisState.ELEMENTS)})",
            field="element",
        )

    if doc.synopsis is None:
        doc.synopsis = SynopsisState()
    setattr(doc.synopsis, attr, text(value or ""))
    doc.synopsis.last_generated = now_iso()
    return doc.synopsis


# --- export --------------------------------------------------------------

def export_synopsis_markdown(doc: Document, protagonist: str | None = None) -> str:
    front_matter = (
        "---\n"
        f"project: {doc.project.name or 'Untitled'}\n"
        f"genre: {doc.project.genre or 'Unspecified'}\n"
        f"generated: {now_iso()}\n"
        "---\n\n"
    )
    return front_matter + generate_synopsis(doc, protagonist, "full")


def export_synopsis_json(doc: Document, protagonist: str | None = None) -> dict[str, Any]:
    return {
        "metadata": {
            "project": doc.project.name,
            "genre": doc.project.genre,
            "generated": now_iso(),
        },
        "elements": extract_elements(doc, protagonist),
        "checklist": [item.to_dict() for item in get_synopsis_checklist(doc, protagonist)],
        "formats": {fmt: generate_synopsis(doc, protagonist, fmt) for fmt in SYNOPSIS_FORMATS},
    }


class SynopsisService:
    """Synopsis operations against the persistent store"""

    def __init__(self, store: MemoryStore | None = None):
        self.store = store or MemoryStore()

    def generate_synopsis(self, protagonist: str | None = None, format: str = "full") -> str | None:
        return self.store.read(lambda doc: generate_synopsis(doc, protagonist, format))

    def get_synopsis_checklist(self, protagonist: str | None = None) -> list[ChecklistItem]:
        return self.store.read(lambda doc: get_synopsis_checklist(doc, protagonist), [])

    def save_synopsis_state(self, state: SynopsisState | dict[str, Any]) -> SynopsisState | None:
        return self.store.apply(lambda doc: save_synopsis_state(doc, state))

    def load_synopsis_state(self) -> SynopsisState | None:
        return self.store.read(load_synopsis_state)

    def update_synopsis_element(self, element: str, value: str) -> SynopsisState | None:
        return self.store.apply(lambda doc: update_synopsis_element(doc, element, value))

    def export_markdown(self, protagonist: str | None = None) -> str:
        return self.store.read(
            lambda doc: export_synopsis_markdown(doc, protagonist), "# Error: No memory found"
        )

    def export_json(self, protagonist: str | None = None) -> dict[str, Any]:
        return self.store.read(
            lambda doc: export_synopsis_json(doc, protagonist), {"error": "No memory found"}
        )
