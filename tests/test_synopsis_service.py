"""
Synopsis builder tests
"""

import pytest

from exceptions import MemoryValidationError
from services.character_service import add_character
from services.memory_store import MemoryStore
from services.relationship_service import add_relationship
from services.scene_service import add_scene
from services.synopsis_service import (
    SynopsisService,
    extract_elements,
    export_synopsis_json,
    export_synopsis_markdown,
    generate_synopsis,
    get_synopsis_checklist,
    is_placeholder,
    save_synopsis_state,
    update_synopsis_element,
)
from services.theme_service import add_theme


@pytest.fixture
def story(doc):
    add_character(doc, "서연", {"arc": "체념에서 희망으로", "attitude": "버티는 사람"})
    add_character(doc, "준호")
    add_character(doc, "미나")
    add_relationship(doc, "서연", "준호", "romantic", {"dynamic": "엇갈림"})
    add_relationship(doc, "미나", "서연", "friendship")
    add_theme(doc, "상실", {"description": "잃어버린 것과 화해하기"})
    add_scene(doc, "첫 만남", {"emotionTags": ["설렘"]})
    add_scene(doc, "이별", {"emotionTags": ["체념"]})
    return doc


class TestPlaceholders:
    """Empty documents render placeholders"""

    def test_empty_document_elements(self, doc):
        elements = extract_elements(doc)
        assert set(elements) == {
            "protagonistAttitude",
            "coreRelationships",
            "emotionalTheme",
            "genreVsRealEmotion",
            "endingAftertaste",
        }
        assert all(is_placeholder(value) for value in elements.values())
        assert elements["endingAftertaste"].startswith("❌")
        assert elements["genreVsRealEmotion"].startswith("⚠️ ")
        assert "멜로" in elements["genreVsRealEmotion"]

    def test_is_placeholder(self):
        assert is_placeholder("⚠️ 없음")
        assert is_placeholder("❌ 없음")
        assert not is_placeholder("정상 문장")
        assert not is_placeholder("")
        assert not is_placeholder(None)

    def test_character_without_attitude(self, doc):
        add_character(doc, "서연")
        attitude = extract_elements(doc)["protagonistAttitude"]
        assert is_placeholder(attitude)
        assert "서연" in attitude


class TestElements:
    def test_derived_elements(self, story):
        elements = extract_elements(story)
        assert elements["protagonistAttitude"] == "체념에서 희망으로. 버티는 사람"
        assert elements["coreRelationships"] == "서연-준호: 엇갈림\n서연-미나: stable"
        assert elements["emotionalTheme"] == "잃어버린 것과 화해하기"

    def test_stored_elements_win(self, story):
        update_synopsis_element(story, "genreVsRealEmotion", "멜로지만 실은 애도")
        update_synopsis_element(story, "ending_aftertaste", "오래 남는 여운")
        elements = extract_elements(story)
        assert elements["genreVsRealEmotion"] == "멜로지만 실은 애도"
        assert elements["endingAftertaste"] == "오래 남는 여운"
        assert story.synopsis.last_generated is not None

    def test_named_protagonist(self, story):
        elements = extract_elements(story, "준호")
        assert elements["coreRelationships"] == "준호-서연: 엇갈림"

    def test_unknown_element(self, story):
        with pytest.raises(MemoryValidationError):
            update_synopsis_element(story, "climax", "x")


class TestFormats:
    """full / brief / pitch"""

    def test_full(self, story):
        text = generate_synopsis(story)
        assert "시놉시스: 이별의 온도" in text
        assert "## 1. 주인공의 태도\n체념에서 희망으로. 버티는 사람" in text
        assert "**장면 수**: 2개" in text
        assert "**감정 흐름**: 설렘 → 체념" in text
        assert "- **서연**: 버티는 사람" in text

    def test_brief(self, story):
        text = generate_synopsis(story, format="brief")
        assert text.startswith("서연은 체념에서 희망으로. ")
        assert "서연-준호: 엇갈림" in text

    def test_pitch(self, story):
        text = generate_synopsis(story, format="pitch")
        assert text.startswith("이별의 온도는 ")
        assert "서연이" in text

    def test_unknown_format(self, story):
        with pytest.raises(ValueError):
            generate_synopsis(story, format="poem")

    def test_service_unknown_format(self, store):
        assert SynopsisService(store).generate_synopsis(format="poem") is None


class TestChecklist:
    """Element completeness thresholds"""

    def _statuses(self, doc):
        return {item.element: item.status for item in get_synopsis_checklist(doc)}

    def test_empty(self, doc):
        statuses = self._statuses(doc)
        assert set(statuses.values()) == {"missing"}
        assert list(statuses) == [
            "protagonistAttitude",
            "coreRelationships",
            "emotionalTheme",
            "genreVsRealEmotion",
            "endingAftertaste",
        ]

    def test_partial(self, doc):
        add_character(doc, "서연", {"arc": "체념"})
        add_relationship(doc, "서연", "준호", "romantic")
        statuses = self._statuses(doc)
        assert statuses["protagonistAttitude"] == "partial"
        assert statuses["coreRelationships"] == "partial"

    def test_complete(self, story):
        update_synopsis_element(story, "genreVsRealEmotion", "x")
        update_synopsis_element(story, "endingAftertaste", "y")
        items = get_synopsis_checklist(story)
        assert all(item.status == "complete" for item in items)
        assert all(item.suggestion == "" for item in items)
        assert items[1].source == "관계 2개 등록됨"


class TestStateAndExport:
    def test_save_and_load_state(self, store):
        service = SynopsisService(store)
        state = service.save_synopsis_state({"endingAftertaste": "여운", "emotionalTheme": "애도"})
        assert state.last_generated is not None

        loaded = service.load_synopsis_state()
        assert loaded.ending_aftertaste == "여운"
        assert loaded.protagonist_attitude == ""

    def test_save_state_replaces(self, doc):
        update_synopsis_element(doc, "endingAftertaste", "여운")
        save_synopsis_state(doc, {"emotionalTheme": "애도"})
        assert doc.synopsis.ending_aftertaste == ""
        assert doc.synopsis.emotional_theme == "애도"

    def test_update_element_persisted(self, store):
        service = SynopsisService(store)
        service.update_synopsis_element("endingAftertaste", "여운")
        assert service.load_synopsis_state().ending_aftertaste == "여운"
        assert service.update_synopsis_element("climax", "x") is None

    def test_markdown_export(self, story):
        text = export_synopsis_markdown(story)
        assert text.startswith("---\nproject: 이별의 온도\ngenre: 멜로\n")
        assert "시놉시스: 이별의 온도" in text

    def test_json_export(self, story):
        data = export_synopsis_json(story)
        assert data["metadata"]["project"] == "이별의 온도"
        assert set(data["formats"]) == {"full", "brief", "pitch"}
        assert len(data["checklist"]) == 5
        assert data["checklist"][3]["element"] == "genreVsRealEmotion"

    def test_export_without_memory(self, tmp_path):
        service = SynopsisService(MemoryStore(tmp_path / "none"))
        assert service.export_json() == {"error": "No memory found"}
