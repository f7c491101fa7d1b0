"""
Writer memory command-line entry point

Parses arguments, validates JSON payloads, calls the services and prints
their results as JSON or markdown. Exit status: 0 on success, 1 when the
operation found nothing or failed, 2 for invalid input or configuration.
"""

import argparse
import json
import logging
import sys
from dataclasses import dataclass
from typing import Any, Callable

from pydantic import ValidationError

from config import init_config
from exceptions import ConfigurationError, MemoryValidationError, WriterMemoryError
from models.relationship import RelationshipType
from models.scene import CutType
from schemas import (
    CharacterFields,
    CutFields,
    LocationFields,
    RelationshipFields,
    SceneFields,
    SynopsisFields,
    ThemeFields,
    WorldFields,
    parse_fields,
)
from services import (
    CharacterService,
    MemoryStore,
    QueryService,
    RelationshipService,
    SceneService,
    SynopsisService,
    ThemeService,
    WorldService,
)
from services.synopsis_service import SYNOPSIS_FORMATS
from utils import setup_logging
from validators import ValidationReport

logger = logging.getLogger(__name__)


@dataclass
class Services:
    """Every service bound to one store"""

    store: MemoryStore
    characters: CharacterService
    relationships: RelationshipService
    scenes: SceneService
    themes: ThemeService
    world: WorldService
    synopsis: SynopsisService
    query: QueryService

    @classmethod
    def for_store(cls, store: MemoryStore) -> "Services":
        return cls(
            store=store,
            characters=CharacterService(store),
            relationships=RelationshipService(store),
            scenes=SceneService(store),
            themes=ThemeService(store),
            world=WorldService(store),
            synopsis=SynopsisService(store),
            query=QueryService(store),
        )


Handler = Callable[[argparse.Namespace, Services], Any]


def to_jsonable(value: Any) -> Any:
    if hasattr(value, "to_dict"):
        return value.to_dict()
    if isinstance(value, dict):
        return {key: to_jsonable(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_jsonable(item) for item in value]
    return value


def emit(result: Any) -> None:
    if isinstance(result, str):
        print(result)
    else:
        print(json.dumps(to_jsonable(result), ensure_ascii=False, indent=2))


def _command(subparsers, name: str, handler: Handler, help_text: str) -> argparse.ArgumentParser:
    parser = subparsers.add_parser(name, help=help_text)
    parser.set_defaults(handler=handler)
    return parser


def _fields_option(parser: argparse.ArgumentParser, required: bool = False) -> None:
    parser.add_argument("--fields", required=required, help="JSON object with the fields to set")


# --- command groups ------------------------------------------------------

def _add_character_commands(subparsers) -> None:
    group = subparsers.add_parser("char", help="characters").add_subparsers(dest="action", required=True)

    p = _command(group, "add", lambda a, s: s.characters.add_character(
        a.name, parse_fields(CharacterFields, a.fields)), "register a character")
    p.add_argument("name")
    _fields_option(p)

    p = _command(group, "update", lambda a, s: s.characters.update_character(
        a.name, parse_fields(CharacterFields, a.fields)), "update character fields")
    p.add_argument("name")
    _fields_option(p, required=True)

    p = _command(group, "rename", lambda a, s: s.characters.rename_character(a.name, a.new_name),
                 "rename a character and its references")
    p.add_argument("name")
    p.add_argument("new_name")

    p = _command(group, "remove", lambda a, s: s.characters.remove_character(a.name), "remove a character")
    p.add_argument("name")

    _command(group, "list", lambda a, s: s.characters.list_characters(), "list characters")

    p = _command(group, "show", lambda a, s: s.characters.generate_character_profile(a.name),
                 "markdown profile")
    p.add_argument("name")

    p = _command(group, "alias-add", lambda a, s: s.characters.add_alias(a.name, a.alias), "add an alias")
    p.add_argument("name")
    p.add_argument("alias")

    p = _command(group, "alias-remove", lambda a, s: s.characters.remove_alias(a.name, a.alias),
                 "remove an alias")
    p.add_argument("name")
    p.add_argument("alias")

    p = _command(group, "emotion", lambda a, s: s.characters.add_emotion_point(
        a.name, a.emotion, a.trigger, a.intensity, a.scene), "record an emotion")
    p.add_argument("name")
    p.add_argument("emotion")
    p.add_argument("--trigger", default="")
    p.add_argument("--intensity", type=int)
    p.add_argument("--scene")

    p = _command(group, "timeline", lambda a, s: s.characters.get_emotion_timeline(a.name), "emotion timeline")
    p.add_argument("name")

    p = _command(group, "arc", lambda a, s: s.characters.get_emotion_arc(a.name) or None, "emotion arc")
    p.add_argument("name")

    p = _command(group, "check", lambda a, s: s.characters.validate_dialogue(a.name, a.dialogue),
                 "check a line of dialogue against the character")
    p.add_argument("name")
    p.add_argument("dialogue")


def _add_relationship_commands(subparsers) -> None:
    group = subparsers.add_parser("rel", help="relationships").add_subparsers(dest="action", required=True)
    types = [t.value for t in RelationshipType]

    p = _command(group, "add", lambda a, s: s.relationships.add_relationship(
        a.name_a, a.name_b, a.type, parse_fields(RelationshipFields, a.fields)), "connect two characters")
    p.add_argument("name_a")
    p.add_argument("name_b")
    p.add_argument("type", choices=types)
    _fields_option(p)

    p = _command(group, "update", lambda a, s: s.relationships.update_relationship(
        a.name_a, a.name_b, parse_fields(RelationshipFields, a.fields)), "update a relationship")
    p.add_argument("name_a")
    p.add_argument("name_b")
    _fields_option(p, required=True)

    for name, handler, help_text in (
        ("remove", lambda a, s: s.relationships.remove_relationship(a.name_a, a.name_b), "remove a relationship"),
        ("get", lambda a, s: s.relationships.get_relationship(a.name_a, a.name_b), "relationship record"),
        ("show", lambda a, s: s.relationships.generate_relationship_profile(a.name_a, a.name_b),
         "markdown profile"),
        ("timeline", lambda a, s: s.relationships.get_relationship_timeline(a.name_a, a.name_b),
         "evolution events"),
        ("arc", lambda a, s: s.relationships.get_relationship_arc(a.name_a, a.name_b), "evolution arc"),
    ):
        p = _command(group, name, handler, help_text)
        p.add_argument("name_a")
        p.add_argument("name_b")

    p = _command(group, "list", lambda a, s: s.relationships.list_relationships(a.character), "list relationships")
    p.add_argument("--character")

    p = _command(group, "event", lambda a, s: s.relationships.add_relationship_event(
        a.name_a, a.name_b, a.change, a.catalyst, a.scene), "record a relationship change")
    p.add_argument("name_a")
    p.add_argument("name_b")
    p.add_argument("change")
    p.add_argument("--catalyst", default="")
    p.add_argument("--scene")

    p = _command(group, "connections", lambda a, s: s.relationships.get_character_connections(a.name),
                 "relationships of one character")
    p.add_argument("name")

    _command(group, "web", lambda a, s: s.relationships.get_relationship_web(), "nodes and edges")
    _command(group, "map", lambda a, s: s.relationships.generate_relationship_map(), "text relationship map")


def _add_scene_commands(subparsers) -> None:
    group = subparsers.add_parser("scene", help="scenes and cuts").add_subparsers(dest="action", required=True)

    p = _command(group, "add", lambda a, s: s.scenes.add_scene(a.title, parse_fields(SceneFields, a.fields)),
                 "append a scene")
    p.add_argument("title")
    _fields_option(p)

    p = _command(group, "update", lambda a, s: s.scenes.update_scene(
        a.scene_id, parse_fields(SceneFields, a.fields)), "update scene fields")
    p.add_argument("scene_id")
    _fields_option(p, required=True)

    for name, handler, help_text in (
        ("remove", lambda a, s: s.scenes.remove_scene(a.scene_id), "remove a scene"),
        ("get", lambda a, s: s.scenes.get_scene(a.scene_id), "scene record"),
        ("show", lambda a, s: s.scenes.generate_scene_profile(a.scene_id), "markdown profile"),
    ):
        p = _command(group, name, handler, help_text)
        p.add_argument("scene_id")

    p = _command(group, "list", lambda a, s: s.scenes.list_scenes(a.chapter, a.character, a.emotion),
                 "scene summaries")
    p.add_argument("--chapter")
    p.add_argument("--character")
    p.add_argument("--emotion")

    p = _command(group, "reorder", lambda a, s: s.scenes.reorder_scenes(a.scene_ids), "set the scene sequence")
    p.add_argument("scene_ids", nargs="+")

    p = _command(group, "cut-add", lambda a, s: s.scenes.add_cut(
        a.scene_id, a.type, a.content, a.character, a.emotion), "append a cut")
    p.add_argument("scene_id")
    p.add_argument("type", choices=[t.value for t in CutType])
    p.add_argument("content")
    p.add_argument("--character")
    p.add_argument("--emotion")

    p = _command(group, "cut-update", lambda a, s: s.scenes.update_cut(
        a.scene_id, a.order, parse_fields(CutFields, a.fields)), "update a cut")
    p.add_argument("scene_id")
    p.add_argument("order", type=int)
    _fields_option(p, required=True)

    p = _command(group, "cut-remove", lambda a, s: s.scenes.remove_cut(a.scene_id, a.order), "remove a cut")
    p.add_argument("scene_id")
    p.add_argument("order", type=int)

    p = _command(group, "cut-reorder", lambda a, s: s.scenes.reorder_cuts(a.scene_id, a.order),
                 "rearrange cuts by current order")
    p.add_argument("scene_id")
    p.add_argument("order", type=int, nargs="+")

    p = _command(group, "tag-add", lambda a, s: s.scenes.add_emotion_tag(a.scene_id, a.tag), "add an emotion tag")
    p.add_argument("scene_id")
    p.add_argument("tag")

    p = _command(group, "tag-remove", lambda a, s: s.scenes.remove_emotion_tag(a.scene_id, a.tag),
                 "remove an emotion tag")
    p.add_argument("scene_id")
    p.add_argument("tag")

    _command(group, "tags", lambda a, s: s.scenes.get_all_emotion_tags(), "emotion tag frequencies")
    _command(group, "flow", lambda a, s: s.scenes.get_scene_flow(), "narrative flow")
    _command(group, "table", lambda a, s: s.scenes.generate_scene_list(), "markdown scene table")


def _add_theme_commands(subparsers) -> None:
    group = subparsers.add_parser("theme", help="themes").add_subparsers(dest="action", required=True)

    p = _command(group, "add", lambda a, s: s.themes.add_theme(a.name, parse_fields(ThemeFields, a.fields)),
                 "add a theme")
    p.add_argument("name")
    _fields_option(p)

    p = _command(group, "update", lambda a, s: s.themes.update_theme(a.theme, parse_fields(ThemeFields, a.fields)),
                 "update a theme")
    p.add_argument("theme", help="theme id or name")
    _fields_option(p, required=True)

    p = _command(group, "remove", lambda a, s: s.themes.remove_theme(a.theme), "remove a theme")
    p.add_argument("theme", help="theme id or name")

    _command(group, "list", lambda a, s: s.themes.list_themes(), "list themes")


def _add_world_commands(subparsers) -> None:
    group = subparsers.add_parser("world", help="world model").add_subparsers(dest="action", required=True)

    _command(group, "show", lambda a, s: s.world.get_world(), "world record")

    p = _command(group, "update", lambda a, s: s.world.update_world(parse_fields(WorldFields, a.fields)),
                 "update world fields")
    _fields_option(p, required=True)

    p = _command(group, "rule-add", lambda a, s: s.world.add_world_rule(a.category, a.description), "add a rule")
    p.add_argument("category")
    p.add_argument("description")

    p = _command(group, "rule-remove", lambda a, s: s.world.remove_world_rule(a.rule_id), "remove a rule")
    p.add_argument("rule_id")

    p = _command(group, "location-add", lambda a, s: s.world.add_location(
        a.name, parse_fields(LocationFields, a.fields)), "add a location")
    p.add_argument("name")
    _fields_option(p)

    p = _command(group, "connect", lambda a, s: s.world.connect_locations(a.location_a, a.location_b),
                 "connect two locations")
    p.add_argument("location_a")
    p.add_argument("location_b")

    p = _command(group, "location-remove", lambda a, s: s.world.remove_location(a.location),
                 "remove a location")
    p.add_argument("location", help="location id or name")

    p = _command(group, "note", lambda a, s: s.world.add_cultural_note(a.note), "add a cultural note")
    p.add_argument("note")


def _export_synopsis(args: argparse.Namespace, services: Services) -> Any:
    if args.as_json:
        return services.synopsis.export_json(args.protagonist)
    return services.synopsis.export_markdown(args.protagonist)


def _add_synopsis_commands(subparsers) -> None:
    group = subparsers.add_parser("synopsis", help="synopsis").add_subparsers(dest="action", required=True)

    p = _command(group, "generate", lambda a, s: s.synopsis.generate_synopsis(a.protagonist, a.format),
                 "render the synopsis")
    p.add_argument("--protagonist")
    p.add_argument("--format", choices=SYNOPSIS_FORMATS, default="full")

    p = _command(group, "checklist", lambda a, s: s.synopsis.get_synopsis_checklist(a.protagonist),
                 "element completeness")
    p.add_argument("--protagonist")

    p = _command(group, "update", lambda a, s: s.synopsis.update_synopsis_element(a.element, a.value),
                 "set one synopsis element")
    p.add_argument("element")
    p.add_argument("value")

    p = _command(group, "save", lambda a, s: s.synopsis.save_synopsis_state(parse_fields(SynopsisFields, a.fields)),
                 "replace all synopsis elements")
    _fields_option(p, required=True)

    _command(group, "show", lambda a, s: s.synopsis.load_synopsis_state(), "stored synopsis elements")

    p = _command(group, "export", _export_synopsis, "export as markdown or JSON")
    p.add_argument("--protagonist")
    p.add_argument("--json", dest="as_json", action="store_true")


def _add_backup_commands(subparsers) -> None:
    group = subparsers.add_parser("backup", help="backups").add_subparsers(dest="action", required=True)

    _command(group, "list", lambda a, s: s.store.list_backups(), "list backups, oldest first")

    p = _command(group, "restore", lambda a, s: s.store.restore_backup(a.name), "restore a backup")
    p.add_argument("name", nargs="?", help="backup file name; newest when omitted")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="writer-memory", description="Persistent memory for narrative writing")
    parser.add_argument("--root", help="project root containing .writer-memory/ (default: WRITER_MEMORY_ROOT or cwd)")
    parser.add_argument("--env-file", help=".env file to load")
    parser.add_argument("--log-level", choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"])

    subparsers = parser.add_subparsers(dest="command", required=True)

    p = _command(subparsers, "init", lambda a, s: s.store.init(a.name, a.genre), "create a new memory store")
    p.add_argument("name")
    p.add_argument("--genre", default="")

    _add_character_commands(subparsers)
    _add_relationship_commands(subparsers)
    _add_scene_commands(subparsers)
    _add_theme_commands(subparsers)
    _add_world_commands(subparsers)
    _add_synopsis_commands(subparsers)

    p = _command(subparsers, "search", lambda a, s: s.query.search(a.query), "full-text search")
    p.add_argument("query")

    _command(subparsers, "stats", lambda a, s: s.query.stats(), "store statistics")
    _command(subparsers, "validate", lambda a, s: s.query.validate(), "integrity report")

    _add_backup_commands(subparsers)
    return parser


def main(argv: list[str] | None = None) -> int:
    """Entry point for the writer-memory console script"""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = init_config(args.env_file)
        setup_logging(level=args.log_level or config.log_level, log_dir=config.log_dir)
        store = MemoryStore(args.root or config.project_root, config.max_backups)
        result = args.handler(args, Services.for_store(store))
    except ValidationError as e:
        print(f"❌ Invalid fields: {e}", file=sys.stderr)
        return 2
    except (ConfigurationError, MemoryValidationError) as e:
        print(f"❌ {e}", file=sys.stderr)
        return 2
    except WriterMemoryError as e:
        logger.error(f"{e.message} ({e.details})" if e.details else e.message)
        print(f"❌ {e}", file=sys.stderr)
        return 1

    if result is None or result is False:
        print("❌ Nothing found or operation failed (see log for details)", file=sys.stderr)
        return 1

    emit(result)
    if isinstance(result, ValidationReport) and not result.valid:
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
