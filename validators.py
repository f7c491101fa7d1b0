"""
Validation module

validate_memory() checks a loaded document for structural and referential
soundness; the remaining helpers reject bad caller input before it reaches
the document.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from config import SUPPORTED_VERSION
from exceptions import MemoryValidationError
from models.document import Document


@dataclass
class ValidationReport:
    """Outcome of validate_memory"""

    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.errors

    def to_dict(self) -> dict[str, Any]:
        return {"valid": self.valid, "errors": list(self.errors), "warnings": list(self.warnings)}


def validate_memory(doc: Document) -> ValidationReport:
    """Check a document without modifying it.

    Errors make the document unsafe for programmatic use; warnings flag
    incomplete authoring (dangling soft references, empty scenes).

    Args:
        doc: loaded document

    Returns:
        ValidationReport: errors and warnings, in document order
    """
    report = ValidationReport()
    errors, warnings = report.errors, report.warnings

    if doc.version != SUPPORTED_VERSION:
        errors.append(f'Unsupported version: "{doc.version}" (expected "{SUPPORTED_VERSION}")')

    if not doc.project.name:
        errors.append("Project name is empty")
    if not doc.project.genre:
        warnings.append("Project genre is empty")
    if not doc.project.created:
        errors.append("Project created timestamp is missing")

    scene_ids = [scene.id for scene in doc.scenes]
    known_scenes = set(scene_ids)
    names = doc.character_names()

    for key, character in doc.characters.items():
        if character.id != key:
            errors.append(f'Character key "{key}" does not match character.id "{character.id}"')
        if not character.name:
            errors.append(f'Character "{key}" has no name')
        for point in character.timeline:
            if not isinstance(point.intensity, int) or not 1 <= point.intensity <= 5:
                warnings.append(
                    f'Character "{character.name}" has emotion point with intensity '
                    f"{point.intensity} (expected 1-5)"
                )
            if point.scene_id and point.scene_id not in known_scenes:
                warnings.append(
                    f'Character "{character.name}" references non-existent scene '
                    f'"{point.scene_id}" in timeline'
                )

    for relationship in doc.relationships:
        for endpoint in (relationship.source, relationship.target):
            if endpoint not in names:
                errors.append(
                    f'Relationship "{relationship.id}" references non-existent character "{endpoint}"'
                )
            # a self-referential pair names the same endpoint twice
            if relationship.source == relationship.target:
                break
        if relationship.source == relationship.target:
            warnings.append(
                f'Relationship "{relationship.id}" is self-referential '
                f'(from == to == "{relationship.source}")'
            )

    seen: set[str] = set()
    for scene in doc.scenes:
        if scene.id in seen:
            errors.append(f'Duplicate scene ID: "{scene.id}"')
        seen.add(scene.id)

        for name in scene.characters:
            if name not in names:
                warnings.append(f'Scene "{scene.title}" references non-existent character "{name}"')
        if not scene.cuts:
            warnings.append(f'Scene "{scene.title}" has no cuts')
        elif sorted(cut.order for cut in scene.cuts) != list(range(len(scene.cuts))):
            warnings.append(f'Scene "{scene.title}" has non-contiguous cut order')

    if sorted(scene.order for scene in doc.scenes) != list(range(len(doc.scenes))):
        warnings.append("Scene order is not a contiguous 0..n-1 sequence")

    for theme in doc.themes:
        for name in theme.related_characters:
            if name not in names:
                warnings.append(f'Theme "{theme.name}" references non-existent character "{name}"')
        for scene_id in theme.related_scenes:
            if scene_id not in known_scenes:
                warnings.append(f'Theme "{theme.name}" references non-existent scene "{scene_id}"')

    location_ids = {location.id for location in doc.world.locations}
    for location in doc.world.locations:
        for target in location.connected_to:
            if target not in location_ids:
                warnings.append(
                    f'Location "{location.name}" connects to non-existent location "{target}"'
                )

    return report


def validate_non_empty(value: str | None, name: str) -> str:
    """Reject empty or whitespace-only strings

    Returns:
        str: the value with surrounding whitespace removed
    """
    if not isinstance(value, str) or not value.strip():
        raise MemoryValidationError(f"{name} must not be empty", field=name)
    return value.strip()


def validate_intensity(value: Any) -> int:
    """Emotion intensity must be an integer in [1, 5]"""
    if isinstance(value, bool) or not isinstance(value, int) or not 1 <= value <= 5:
        raise MemoryValidationError(f"intensity must be an integer 1-5, got {value!r}", field="intensity")
    return value


def validate_permutation(order: Any, size: int) -> list[int]:
    """Check that order holds every index 0..size-1 exactly once"""
    if not isinstance(order, (list, tuple)):
        raise MemoryValidationError(f"order must be a list of indices, got {order!r}", field="order")
    if any(isinstance(index, bool) or not isinstance(index, int) for index in order):
        raise MemoryValidationError(f"order must contain integers only, got {list(order)!r}", field="order")
    if len(order) != size:
        raise MemoryValidationError(
            f"order has {len(order)} entries, expected {size}", field="order"
        )
    if sorted(order) != list(range(size)):
        raise MemoryValidationError("order must contain every index 0..n-1 exactly once", field="order")
    return list(order)


def validate_project_root(project_root: str | Path) -> Path:
    """Validate the directory that will hold .writer-memory/

    Relative paths, ``..`` included, are resolved against the working directory.

    Raises:
        MemoryValidationError: empty path or not a directory
    """
    if isinstance(project_root, Path):
        project_root = str(project_root)

    if not project_root or not isinstance(project_root, str):
        raise MemoryValidationError("Project root must not be empty", field="project_root")

    path_obj = Path(project_root).expanduser().resolve()
    if path_obj.exists() and not path_obj.is_dir():
        raise MemoryValidationError(f"Project root is not a directory: {project_root}", field="project_root")

    return path_obj
