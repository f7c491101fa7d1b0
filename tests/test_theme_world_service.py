"""
Theme and world service tests
"""

import pytest

from exceptions import MemoryValidationError
from services.theme_service import ThemeService, add_theme, get_theme, remove_theme, update_theme
from services.world_service import (
    WorldService,
    add_cultural_note,
    add_location,
    add_world_rule,
    connect_locations,
    remove_location,
    remove_world_rule,
    update_world,
)


class TestThemes:
    """Theme CRUD"""

    def test_add_and_get(self, doc):
        theme = add_theme(doc, "상실", {"description": "잃은 것을 받아들이기", "keywords": ["이별"]})
        assert theme.id.startswith("theme_")
        assert get_theme(doc, "상실") is theme
        assert get_theme(doc, theme.id) is theme
        assert theme.keywords == ["이별"]

    def test_duplicate_and_empty(self, doc):
        add_theme(doc, "상실")
        assert add_theme(doc, "상실") is None
        assert add_theme(doc, " ") is None

    def test_update(self, doc):
        theme = add_theme(doc, "상실")
        updated = update_theme(doc, theme.id, {"name": "애도", "relatedCharacters": ["서연"], "id": "x"})
        assert updated.name == "애도"
        assert updated.related_characters == ["서연"]
        assert updated.id == theme.id

    def test_update_name_collision(self, doc):
        add_theme(doc, "상실")
        add_theme(doc, "성장")
        assert update_theme(doc, "성장", {"name": "상실"}) is None
        assert get_theme(doc, "성장") is not None

    def test_remove(self, doc):
        add_theme(doc, "상실")
        assert remove_theme(doc, "상실") is True
        assert remove_theme(doc, "상실") is False

    def test_service_persistence(self, store):
        service = ThemeService(store)
        service.add_theme("상실")
        assert [theme.name for theme in service.list_themes()] == ["상실"]
        assert service.update_theme("없음", {"name": "x"}) is None


class TestWorld:
    """World fields, rules, locations and notes"""

    def test_update_world(self, doc):
        world = update_world(doc, {"era": "1990년대", "atmosphere": "습한 여름", "rules": ["ignored"]})
        assert world.era == "1990년대"
        assert world.atmosphere == "습한 여름"
        assert world.rules == []

    def test_rules(self, doc):
        rule = add_world_rule(doc, "사회", "휴대폰이 없다")
        assert rule.id.startswith("rule_")
        assert remove_world_rule(doc, rule.id) is True
        assert remove_world_rule(doc, rule.id) is False

    def test_rule_requires_description(self, doc):
        with pytest.raises(MemoryValidationError):
            add_world_rule(doc, "사회", "")

    def test_locations(self, doc):
        cafe = add_location(doc, "카페", {"atmosphere": "조용함"})
        station = add_location(doc, "역")
        assert add_location(doc, "카페") is None

        assert connect_locations(doc, "카페", station.id) is True
        assert connect_locations(doc, "카페", "역") is True
        assert cafe.connected_to == [station.id]
        assert station.connected_to == [cafe.id]
        assert connect_locations(doc, "카페", "카페") is False
        assert connect_locations(doc, "카페", "없는곳") is False

        assert remove_location(doc, "역") is True
        assert cafe.connected_to == []
        assert cafe.atmosphere == "조용함"

    def test_cultural_notes(self, doc):
        assert add_cultural_note(doc, "명절엔 모두 고향에 간다") is True
        assert add_cultural_note(doc, "명절엔 모두 고향에 간다") is True
        assert add_cultural_note(doc, "") is False
        assert doc.world.cultural_notes == ["명절엔 모두 고향에 간다"]

    def test_service_persistence(self, store):
        service = WorldService(store)
        service.update_world({"name": "서울"})
        service.add_location("카페")
        assert service.add_world_rule("사회", "  ") is None

        world = service.get_world()
        assert world.name == "서울"
        assert [location.name for location in world.locations] == ["카페"]
