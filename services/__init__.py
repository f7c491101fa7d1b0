"""
Service layer
Each service runs document operations through a MemoryStore
"""

from .character_service import CharacterService
from .memory_store import MemoryStore
from .query_service import QueryService
from .relationship_service import RelationshipService
from .scene_service import SceneService
from .synopsis_service import SynopsisService
from .theme_service import ThemeService
from .world_service import WorldService

__all__ = [
    "MemoryStore",
    "CharacterService",
    "RelationshipService",
    "SceneService",
    "ThemeService",
    "WorldService",
    "SynopsisService",
    "QueryService",
]
