"""Tile rendering: block enumeration, compositing, quadtree layout and tile storage."""

from .iterators import TileTopBlockIterator, BlockRowIterator
from .neighbors import (
    NeighborRules, NeighborRule, OcclusionRule, ConnectionRule, LiquidRule,
    default_neighbor_rules,
)
from .tile_renderer import RenderBlock, TileRenderer, render_composite_tile
from .tileset import TileSet, QUADRANTS
from .tile_store import TileStore, TileIndex, MemoryTileStore, FileTileStore

__all__ = [
    "TileTopBlockIterator",
    "BlockRowIterator",
    "NeighborRules",
    "NeighborRule",
    "OcclusionRule",
    "ConnectionRule",
    "LiquidRule",
    "default_neighbor_rules",
    "RenderBlock",
    "TileRenderer",
    "render_composite_tile",
    "TileSet",
    "QUADRANTS",
    "TileStore",
    "TileIndex",
    "MemoryTileStore",
    "FileTileStore",
]
