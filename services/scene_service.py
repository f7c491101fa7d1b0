"""
Scene and cut operations

Scene ``order`` values always form 0..n-1 across the document, and cut
``order`` values always form 0..n-1 within their scene. Every structural
change renumbers to restore that.
"""

import logging
from typing import Any

from exceptions import MemoryValidationError
from models.document import Document
from models.scene import Cut, CutType, Scene
from services.memory_store import MemoryStore
from utils import generate_id, now_iso
from validators import validate_permutation

logger = logging.getLogger(__name__)

EMOTION_UNSET = "감정 미설정"


def _summary(scene: Scene) -> dict[str, Any]:
    data: dict[str, Any] = {"id": scene.id, "title": scene.title}
    if scene.chapter is not None:
        data["chapter"] = scene.chapter
    data.update(
        {
            "order": scene.order,
            "characterCount": len(scene.characters),
            "cutCount": len(scene.cuts),
            "emotionTags": list(scene.emotion_tags),
        }
    )
    return data


def _sorted_cuts(scene: Scene) -> list[Cut]:
    return sorted(scene.cuts, key=lambda cut: cut.order)


# --- scenes --------------------------------------------------------------

def add_scene(doc: Document, title: str, options: dict[str, Any] | None = None) -> Scene | None:
    """
    Append a scene at the end of the narrative order

    Args:
        doc: document to modify
        title: scene title
        options: chapter, characters, emotionTags, narrationTone, notes

    Returns:
        Scene | None: None for an empty title
    """
    title = (title or "").strip()
    if not title:
        return None

    scene = Scene(id=generate_id("scene"), title=title, order=len(doc.scenes), created=now_iso())
    scene.apply_updates({key: value for key, value in (options or {}).items() if key != "title"})
    scene.emotion_tags = list(dict.fromkeys(scene.emotion_tags))

    doc.scenes.append(scene)
    return scene


def update_scene(doc: Document, scene_id: str, updates: dict[str, Any] | None) -> Scene | None:
    """Partial update; id, created, order and cuts are kept"""
    scene = doc.find_scene(scene_id)
    if scene is None:
        return None
    scene.apply_updates(updates)
    scene.emotion_tags = list(dict.fromkeys(scene.emotion_tags))
    return scene


def remove_scene(doc: Document, scene_id: str) -> bool:
    scene = doc.find_scene(scene_id)
    if scene is None:
        return False

    doc.scenes = [candidate for candidate in doc.scenes_in_order() if candidate is not scene]
    doc.renumber_scenes()
    return True


def get_scene(doc: Document, scene_id: str) -> Scene | None:
    return doc.find_scene(scene_id)


def list_scenes(
    doc: Document,
    chapter: str | None = None,
    character: str | None = None,
    emotion_tag: str | None = None,
) -> list[dict[str, Any]]:
    """Scene summaries sorted by order, filtered by any given criteria"""
    scenes = doc.scenes_in_order()
    if chapter:
        scenes = [scene for scene in scenes if scene.chapter == chapter]
    if character:
        scenes = [scene for scene in scenes if character in scene.characters]
    if emotion_tag:
        scenes = [scene for scene in scenes if emotion_tag in scene.emotion_tags]
    return [_summary(scene) for scene in scenes]


def scenes_by_chapter(doc: Document, chapter: str) -> list[Scene]:
    return [scene for scene in doc.scenes_in_order() if scene.chapter == chapter]


def scenes_by_character(doc: Document, character: str) -> list[Scene]:
    return [scene for scene in doc.scenes_in_order() if character in scene.characters]


def scenes_by_emotion(doc: Document, emotion_tag: str) -> list[Scene]:
    return [scene for scene in doc.scenes_in_order() if emotion_tag in scene.emotion_tags]


def reorder_scenes(doc: Document, scene_ids: list[str]) -> bool:
    """
    Put scenes in the given sequence

    Raises:
        MemoryValidationError: scene_ids is not exactly the current id set
    """
    if not isinstance(scene_ids, (list, tuple)) or not all(isinstance(scene_id, str) for scene_id in scene_ids):
        raise MemoryValidationError("scene ids must be a list of strings", field="scene_ids")
    if len(scene_ids) != len(doc.scenes) or len(set(scene_ids)) != len(scene_ids):
        raise MemoryValidationError("scene ids must list every scene exactly once", field="scene_ids")

    by_id = {scene.id: scene for scene in doc.scenes}
    missing = [scene_id for scene_id in scene_ids if scene_id not in by_id]
    if missing:
        raise MemoryValidationError(f"Scene not found: {', '.join(missing)}", field="scene_ids")

    doc.scenes = [by_id[scene_id] for scene_id in scene_ids]
    doc.renumber_scenes()
    return True


# --- cuts ----------------------------------------------------------------

def add_cut(
    doc: Document,
    scene_id: str,
    cut_type: CutType | str,
    content: str,
    character: str | None = None,
    emotion_tag: str | None = None,
) -> Cut | None:
    """
    Append a cut to a scene

    Raises:
        ValueError: unknown cut type
    """
    cut_type = CutType(cut_type)
    scene = doc.find_scene(scene_id)
    if scene is None:
        return None

    cut = Cut(
        order=len(scene.cuts),
        type=cut_type,
        content=content or "",
        character=character or None,
        emotion_tag=emotion_tag or None,
    )
    scene.cuts.append(cut)
    return cut


def update_cut(doc: Document, scene_id: str, order: int, updates: dict[str, Any] | None) -> Cut | None:
    scene = doc.find_scene(scene_id)
    cut = scene.find_cut(order) if scene else None
    if cut is None:
        return None
    cut.apply_updates(updates)
    return cut


def remove_cut(doc: Document, scene_id: str, order: int) -> bool:
    scene = doc.find_scene(scene_id)
    cut = scene.find_cut(order) if scene else None
    if cut is None:
        return False

    scene.cuts = [candidate for candidate in _sorted_cuts(scene) if candidate is not cut]
    scene.renumber_cuts()
    return True


def reorder_cuts(doc: Document, scene_id: str, new_order: list[int]) -> bool:
    """
    Rearrange cuts; new_order[i] is the current order of the cut that becomes i

    Raises:
        MemoryValidationError: new_order is not a permutation of 0..n-1
    """
    scene = doc.find_scene(scene_id)
    if scene is None:
        return False

    new_order = validate_permutation(new_order, len(scene.cuts))
    current = _sorted_cuts(scene)
    scene.cuts = [current[index] for index in new_order]
    scene.renumber_cuts()
    return True


# --- emotion tags --------------------------------------------------------

def add_emotion_tag(doc: Document, scene_id: str, tag: str) -> bool:
    scene = doc.find_scene(scene_id)
    tag = (tag or "").strip()
    if scene is None or not tag:
        return False
    if tag not in scene.emotion_tags:
        scene.emotion_tags.append(tag)
    return True


def remove_emotion_tag(doc: Document, scene_id: str, tag: str) -> bool:
    scene = doc.find_scene(scene_id)
    if scene is None:
        return False
    if tag in scene.emotion_tags:
        scene.emotion_tags.remove(tag)
    return True


def get_all_emotion_tags(doc: Document) -> list[dict[str, Any]]:
    """Tag frequencies, most used first; ties keep first-seen order"""
    counts: dict[str, int] = {}
    for scene in doc.scenes:
        for tag in scene.emotion_tags:
            counts[tag] = counts.get(tag, 0) + 1
    ranked = sorted(counts.items(), key=lambda item: -item[1])
    return [{"tag": tag, "count": count} for tag, count in ranked]


def get_scene_flow(doc: Document) -> list[dict[str, Any]]:
    flow = []
    for scene in doc.scenes_in_order():
        entry: dict[str, Any] = {"order": scene.order + 1, "title": scene.title}
        if scene.chapter is not None:
            entry["chapter"] = scene.chapter
        entry.update(
            {
                "primaryEmotion": scene.primary_emotion or EMOTION_UNSET,
                "characters": list(scene.characters),
                "cutCount": len(scene.cuts),
            }
        )
        flow.append(entry)
    return flow


# --- rendering -----------------------------------------------------------

def generate_scene_profile(doc: Document, scene_id: str) -> str:
    scene = doc.find_scene(scene_id)
    if scene is None:
        return f"# 오류: 장면을 찾을 수 없습니다 ({scene_id})"

    profile = f"# 장면: {scene.title}\n\n"
    if scene.chapter:
        profile += f"**챕터**: {scene.chapter}\n"
    if scene.characters:
        profile += f"**등장인물**: {', '.join(scene.characters)}\n"
    if scene.emotion_tags:
        profile += f"**감정 태그**: {', '.join(scene.emotion_tags)}\n"
    if scene.narration_tone:
        profile += f"**내레이션 톤**: {scene.narration_tone}\n"
    if scene.notes:
        profile += f"\n**노트**: {scene.notes}\n"

    profile += "\n## 컷 구성\n\n"
    if not scene.cuts:
        return profile + "*(컷이 아직 추가되지 않았습니다)*\n"

    for cut in _sorted_cuts(scene):
        speaker = f"/{cut.character}" if cut.character else ""
        emotion = f" (감정: {cut.emotion_tag})" if cut.emotion_tag else ""
        profile += f"{cut.order + 1}. [{cut.type.label}{speaker}] {cut.content}{emotion}\n"
    return profile


def generate_scene_list(doc: Document) -> str:
    """All scenes as a markdown table"""
    table = "## 전체 장면 목록\n\n"
    table += "| # | 제목 | 챕터 | 감정 | 등장인물 | 컷 수 |\n"
    table += "|---|------|------|------|---------|-------|\n"

    if not doc.scenes:
        return table + "| - | *(장면이 아직 추가되지 않았습니다)* | - | - | - | - |\n"

    for scene in doc.scenes_in_order():
        emotions = ", ".join(scene.emotion_tags) or "-"
        characters = ", ".join(scene.characters) or "-"
        table += (
            f"| {scene.order + 1} | {scene.title} | {scene.chapter or '-'} | "
            f"{emotions} | {characters} | {len(scene.cuts)} |\n"
        )
    return table


class SceneService:
    """Scene operations against the persistent store"""

    def __init__(self, store: MemoryStore | None = None):
        self.store = store or MemoryStore()

    def add_scene(self, title: str, options: dict[str, Any] | None = None) -> Scene | None:
        return self.store.apply(lambda doc: add_scene(doc, title, options))

    def update_scene(self, scene_id: str, updates: dict[str, Any] | None) -> Scene | None:
        return self.store.apply(lambda doc: update_scene(doc, scene_id, updates))

    def remove_scene(self, scene_id: str) -> bool:
        return self.store.apply(lambda doc: remove_scene(doc, scene_id), False)

    def get_scene(self, scene_id: str) -> Scene | None:
        return self.store.read(lambda doc: get_scene(doc, scene_id))

    def list_scenes(
        self, chapter: str | None = None, character: str | None = None, emotion_tag: str | None = None
    ) -> list[dict[str, Any]]:
        return self.store.read(lambda doc: list_scenes(doc, chapter, character, emotion_tag), [])

    def scenes_by_chapter(self, chapter: str) -> list[Scene]:
        return self.store.read(lambda doc: scenes_by_chapter(doc, chapter), [])

    def scenes_by_character(self, character: str) -> list[Scene]:
        return self.store.read(lambda doc: scenes_by_character(doc, character), [])

    def scenes_by_emotion(self, emotion_tag: str) -> list[Scene]:
        return self.store.read(lambda doc: scenes_by_emotion(doc, emotion_tag), [])

    def reorder_scenes(self, scene_ids: list[str]) -> bool:
        return self.store.apply(lambda doc: reorder_scenes(doc, scene_ids), False)

    def add_cut(
        self,
        scene_id: str,
        cut_type: str,
        content: str,
        character: str | None = None,
        emotion_tag: str | None = None,
    ) -> Cut | None:
        return self.store.apply(lambda doc: add_cut(doc, scene_id, cut_type, content, character, emotion_tag))

    def update_cut(self, scene_id: str, order: int, updates: dict[str, Any] | None) -> Cut | None:
        return self.store.apply(lambda doc: update_cut(doc, scene_id, order, updates))

    def remove_cut(self, scene_id: str, order: int) -> bool:
        return self.store.apply(lambda doc: remove_cut(doc, scene_id, order), False)

    def reorder_cuts(self, scene_id: str, new_order: list[int]) -> bool:
        return self.store.apply(lambda doc: reorder_cuts(doc, scene_id, new_order), False)

    def add_emotion_tag(self, scene_id: str, tag: str) -> bool:
        return self.store.apply(lambda doc: add_emotion_tag(doc, scene_id, tag), False)

    def remove_emotion_tag(self, scene_id: str, tag: str) -> bool:
        return self.store.apply(lambda doc: remove_emotion_tag(doc, scene_id, tag), False)

    def get_all_emotion_tags(self) -> list[dict[str, Any]]:
        return self.store.read(get_all_emotion_tags, [])

    def get_scene_flow(self) -> list[dict[str, Any]]:
        return self.store.read(get_scene_flow, [])

    def generate_scene_profile(self, scene_id: str) -> str:
        return self.store.read(
            lambda doc: generate_scene_profile(doc, scene_id),
            f"# 오류: 장면을 찾을 수 없습니다 ({scene_id})",
        )

    def generate_scene_list(self) -> str:
        return self.store.read(generate_scene_list, "## 오류: 장면 목록 생성 실패")
