"""
Data model module
Dataclasses for everything stored in memory.json
"""

from .character import Character, EmotionPoint, SpeechLevel
from .document import Document, ProjectMeta, SynopsisState
from .relationship import Relationship, RelationshipEvent, RelationshipType
from .scene import Cut, CutType, Scene
from .theme import Theme
from .world import Location, World, WorldRule

__all__ = [
    "Document",
    "ProjectMeta",
    "SynopsisState",
    "Character",
    "EmotionPoint",
    "SpeechLevel",
    "Relationship",
    "RelationshipEvent",
    "RelationshipType",
    "Scene",
    "Cut",
    "CutType",
    "Theme",
    "World",
    "WorldRule",
    "Location",
]
