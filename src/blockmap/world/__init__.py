"""World model: positions and block sources."""

from .positions import (
    BlockPos, ChunkPos, TilePos, CHUNK_SIZE,
    NORTH, SOUTH, EAST, WEST, TOP, BOTTOM,
)
from .blocks import AIR
from .cache import World, MemoryWorld, WorldCache, CollaboratorError, WorldError

__all__ = [
    "BlockPos",
    "ChunkPos",
    "TilePos",
    "CHUNK_SIZE",
    "NORTH",
    "SOUTH",
    "EAST",
    "WEST",
    "TOP",
    "BOTTOM",
    "AIR",
    "World",
    "MemoryWorld",
    "WorldCache",
    "CollaboratorError",
    "WorldError",
]
