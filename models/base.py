"""
Shared helpers for the document models
"""
import logging
from typing import Any, Callable

logger = logging.getLogger(__name__)


def merge_fields(
    target: Any,
    updates: dict[str, Any] | None,
    fields: dict[str, str],
    coercers: dict[str, Callable[[Any], Any]] | None = None,
    nullable: frozenset[str] = frozenset(),
) -> list[str]:
    """Apply a JSON-shaped partial update onto a dataclass instance.

    Args:
        target: model instance to mutate
        updates: caller payload, keyed by wire name (camelCase) or attribute name
        fields: wire name -> attribute name for every updatable field
        coercers: attribute name -> converter applied to non-None values
        nullable: attributes that may be cleared with None

    Returns:
        list[str]: attribute names that were assigned

    Keys outside ``fields`` (identity fields included) are skipped, as are
    None values for attributes that are not nullable.
    """
    accepted = dict(fields)
    accepted.update({attr: attr for attr in fields.values()})

    applied: list[str] = []
    for key, value in (updates or {}).items():
        attr = accepted.get(key)
        if attr is None:
            logger.debug(f"Ignoring field {key!r} on {type(target).__name__}")
            continue
        if value is None:
            if attr not in nullable:
                logger.debug(f"Ignoring None for required field {key!r} on {type(target).__name__}")
                continue
        elif coercers and attr in coercers:
            value = coercers[attr](value)
        setattr(target, attr, value)
        applied.append(attr)
    return applied


def string_list(value: Any) -> list[str]:
    """Copy a JSON array of strings; any other shape raises ValueError"""
    if isinstance(value, (list, tuple)) and all(isinstance(item, str) for item in value):
        return list(value)
    raise ValueError(f"Expected a list of strings, got {value!r}")


def optional_list(value: Any) -> list[str] | None:
    """Like string_list, keeping None as None"""
    if value is None:
        return None
    return string_list(value)


def text(value: Any) -> str:
    if isinstance(value, str):
        return value
    raise ValueError(f"Expected a string, got {value!r}")


def text_field(data: dict[str, Any], key: str, default: str = "") -> str:
    """Read a string field from stored JSON"""
    value = data.get(key, default)
    if not isinstance(value, str):
        raise ValueError(f"'{key}' must be a string, got {value!r}")
    return value


def optional_text_field(data: dict[str, Any], key: str) -> str | None:
    value = data.get(key)
    if value is None:
        return None
    return text_field(data, key)


def int_field(data: dict[str, Any], key: str, default: int = 0) -> int:
    """Read an integer field from stored JSON; bools are rejected"""
    value = data.get(key, default)
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"'{key}' must be an integer, got {value!r}")
    return value
