"""
Document model tests
"""

import pytest

from models import (
    Character,
    Cut,
    CutType,
    Document,
    EmotionPoint,
    Relationship,
    RelationshipType,
    Scene,
    SpeechLevel,
    SynopsisState,
)


def _sample_dict():
    return {
        "version": "1.0",
        "project": {
            "name": "이별의 온도",
            "genre": "멜로",
            "created": "2026-01-01T00:00:00.000Z",
            "updated": "2026-01-02T00:00:00.000Z",
        },
        "characters": {
            "char_1_aaaaaa": {
                "id": "char_1_aaaaaa",
                "name": "서연",
                "aliases": ["연이"],
                "arc": "체념 → 희망",
                "tone": "담백",
                "speechLevel": "존댓말",
                "keywords": ["괜찮아"],
                "attitude": "",
                "timeline": [
                    {
                        "timestamp": "2026-01-01T00:00:01.000Z",
                        "sceneId": "scene_1_bbbbbb",
                        "emotion": "체념",
                        "trigger": "이별 통보",
                        "intensity": 4,
                    }
                ],
                "notes": "",
                "created": "2026-01-01T00:00:00.000Z",
                "updated": "2026-01-01T00:00:01.000Z",
            }
        },
        "world": {"name": "", "era": "현대", "atmosphere": "", "rules": [], "locations": [],
                  "culturalNotes": [], "notes": ""},
        "relationships": [],
        "scenes": [
            {
                "id": "scene_1_bbbbbb",
                "title": "첫 만남",
                "order": 0,
                "characters": ["서연"],
                "emotionTags": ["설렘"],
                "cuts": [{"order": 0, "type": "dialogue", "content": "안녕하세요.", "character": "서연"}],
                "created": "2026-01-01T00:00:00.000Z",
            }
        ],
        "themes": [],
        "synopsis": {
            "protagonistAttitude": "",
            "coreRelationships": "",
            "emotionalTheme": "",
            "genreVsRealEmotion": "",
            "endingAftertaste": "",
        },
    }


class TestSpeechLevel:
    """SpeechLevel parsing and labels"""

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("formal", SpeechLevel.FORMAL),
            ("존댓말", SpeechLevel.FORMAL),
            ("반말", SpeechLevel.INFORMAL),
            ("해체", SpeechLevel.CASUAL),
            ("MIXED", SpeechLevel.MIXED),
            (SpeechLevel.CASUAL, SpeechLevel.CASUAL),
        ],
    )
    def test_parse(self, raw, expected):
        assert SpeechLevel.parse(raw) is expected

    def test_parse_unknown(self):
        with pytest.raises(ValueError):
            SpeechLevel.parse("shouting")

    def test_label(self):
        assert SpeechLevel.INFORMAL.label == "반말"


class TestDocumentSerialization:
    """Document.to_dict / from_dict"""

    def test_round_trip(self):
        data = _sample_dict()
        doc = Document.from_dict(data)

        # labels are normalized to enum values on load
        data["characters"]["char_1_aaaaaa"]["speechLevel"] = "formal"
        assert doc.to_dict() == data

    def test_loaded_structure(self):
        doc = Document.from_dict(_sample_dict())
        character = doc.characters["char_1_aaaaaa"]

        assert character.speech_level is SpeechLevel.FORMAL
        assert character.timeline[0].scene_id == "scene_1_bbbbbb"
        assert doc.scenes[0].cuts[0].type is CutType.DIALOGUE
        assert doc.synopsis == SynopsisState()

    def test_optional_keys_omitted(self):
        """Unset optional fields do not appear in the JSON form"""
        character = Character(id="c", name="서연", created="t", updated="t")
        data = character.to_dict()
        for key in ("taboo", "emotional_baseline", "triggers"):
            assert key not in data

        point = EmotionPoint(timestamp="t", emotion="체념", trigger="")
        assert "sceneId" not in point.to_dict()

        scene = Scene(id="s", title="첫 만남", order=0, created="t")
        for key in ("chapter", "narrationTone", "notes"):
            assert key not in scene.to_dict()

        relationship = Relationship(id="r", source="a", target="b", type=RelationshipType.MENTOR, created="t")
        assert "speechLevel" not in relationship.to_dict()
        assert "notes" not in relationship.to_dict()

    def test_relationship_wire_names(self):
        relationship = Relationship(id="r", source="서연", target="준호", type=RelationshipType.ROMANTIC, created="t")
        data = relationship.to_dict()
        assert data["from"] == "서연"
        assert data["to"] == "준호"
        assert Relationship.from_dict(data) == relationship

    def test_synopsis_missing_is_none(self):
        data = _sample_dict()
        del data["synopsis"]
        doc = Document.from_dict(data)
        assert doc.synopsis is None
        assert "synopsis" not in doc.to_dict()

    def test_new_document(self):
        doc = Document.new("제목", "멜로", "2026-01-01T00:00:00.000Z")
        assert doc.version == "1.0"
        assert doc.project.created == doc.project.updated
        assert doc.characters == {}
        assert doc.synopsis is not None

    @pytest.mark.parametrize(
        "mutate",
        [
            lambda d: d.pop("project"),
            lambda d: d.update(characters=["서연"]),
            lambda d: d.update(scenes={"id": "s"}),
            lambda d: d["relationships"].append(
                {"id": "r", "from": "a", "to": "b", "type": "enemy", "created": "t"}
            ),
            lambda d: d["scenes"][0]["cuts"].append({"order": 1, "type": "monologue", "content": ""}),
        ],
    )
    def test_invalid_structure(self, mutate):
        data = _sample_dict()
        mutate(data)
        with pytest.raises(ValueError):
            Document.from_dict(data)

    def test_non_object_root(self):
        with pytest.raises(ValueError):
            Document.from_dict([1, 2, 3])


class TestLookups:
    """Character resolution and relationship matching"""

    def test_find_character_by_key_name_alias(self, doc):
        character = Character(id="char_1", name="서연", created="t", updated="t", aliases=["연이"])
        doc.characters[character.id] = character

        assert doc.find_character("char_1") is character
        assert doc.find_character("서연") is character
        assert doc.find_character("연이") is character
        assert doc.find_character("준호") is None

    def test_name_wins_over_alias(self, doc):
        first = Character(id="c1", name="민", created="t", updated="t")
        second = Character(id="c2", name="민수", created="t", updated="t", aliases=["민"])
        doc.characters.update({first.id: first, second.id: second})
        assert doc.find_character("민") is first

    def test_relationship_either_orientation(self, doc):
        relationship = Relationship(id="r", source="서연", target="준호", type=RelationshipType.ROMANTIC, created="t")
        doc.relationships.append(relationship)
        assert doc.find_relationship("준호", "서연") is relationship
        assert relationship.pair == ("서연", "준호")


class TestPartialUpdates:
    """apply_updates merges only known, updatable fields"""

    def test_character_updates(self):
        character = Character(id="c", name="서연", created="t", updated="t")
        applied = character.apply_updates(
            {"tone": "담백", "speechLevel": "존댓말", "id": "hacked", "name": "x", "timeline": []}
        )
        assert set(applied) == {"tone", "speech_level"}
        assert character.speech_level is SpeechLevel.FORMAL
        assert character.id == "c"
        assert character.name == "서연"

    def test_none_only_clears_nullable_fields(self):
        character = Character(id="c", name="서연", created="t", updated="t", keywords=["a"], taboo=["b"])
        character.apply_updates({"keywords": None, "taboo": None})
        assert character.keywords == ["a"]
        assert character.taboo is None

    def test_list_fields_take_string_lists_only(self):
        character = Character(id="c", name="서연", created="t", updated="t")
        character.apply_updates({"keywords": ("우산", "비")})
        assert character.keywords == ["우산", "비"]

        for bad in ("abc", 5, ["우산", 1], {"우산": 1}):
            with pytest.raises(ValueError):
                character.apply_updates({"keywords": bad})
        assert character.keywords == ["우산", "비"]

    def test_text_fields_take_strings_only(self):
        scene = Scene(id="s", title="t", order=0, created="c")
        with pytest.raises(ValueError):
            scene.apply_updates({"title": 3})
        with pytest.raises(ValueError):
            scene.apply_updates({"notes": ["메모"]})
        scene.apply_updates({"notes": None})
        assert scene.notes is None

    def test_scene_order_and_cuts_not_updatable(self):
        scene = Scene(id="s", title="t", order=3, created="c", cuts=[Cut(order=0, type=CutType.ACTION, content="x")])
        scene.apply_updates({"order": 0, "cuts": [], "title": "새 제목"})
        assert scene.order == 3
        assert len(scene.cuts) == 1
        assert scene.title == "새 제목"

    def test_synopsis_element_names(self):
        assert SynopsisState.element_attr("genreVsRealEmotion") == "genre_vs_real_emotion"
        assert SynopsisState.element_attr("ending_aftertaste") == "ending_aftertaste"
        assert SynopsisState.element_attr("climax") is None
