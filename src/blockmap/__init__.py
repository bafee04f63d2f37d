"""
blockmap: isometric tile maps of voxel worlds

Renders a block world into a quadtree of map tiles that web map viewers
can page through at several zoom levels.
"""

__version__ = "0.1.0"
__author__ = "blockmap Contributors"

from .render import TileRenderer, TileSet, FileTileStore, MemoryTileStore
from .textures import BlockTextures
from .thread import RenderSummary, RenderStatus, create_dispatcher
from .world import World, WorldCache, MemoryWorld
from .utils.logging_config import setup_logging

__all__ = [
    # Rendering
    'TileRenderer',
    'TileSet',
    'FileTileStore',
    'MemoryTileStore',
    'BlockTextures',

    # Dispatch
    'RenderSummary',
    'RenderStatus',
    'create_dispatcher',

    # Worlds
    'World',
    'WorldCache',
    'MemoryWorld',

    # Logging
    'setup_logging',
]
