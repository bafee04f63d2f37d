"""Tile quadtree layout.

The leaf level covers the world with screen tiles; every coarser level
halves the resolution until a single root tile (level 0) is left.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, Iterator

from blockmap.world.cache import World
from blockmap.world.positions import ChunkPos, TilePos, CHUNK_SIZE

logger = logging.getLogger(__name__)

# Child quadrants in paste order: top-left, top-right, bottom-left, bottom-right
QUADRANTS = ((0, 0), (1, 0), (0, 1), (1, 1))

TileRange = tuple[int, int, int, int]


def chunk_tile_range(chunk: ChunkPos, min_z: int, max_z: int,
                     block_size: int, tile_size: int) -> TileRange:
    """Inclusive range (x0, y0, x1, y1) of screen tiles a chunk can draw into."""
    half = block_size // 2
    quarter = block_size // 4
    ox, oy = chunk.origin
    last = CHUNK_SIZE - 1

    min_col = ox + oy
    max_col = ox + oy + 2 * last
    min_row = oy - (ox + last) - 2 * max_z
    max_row = (oy + last) - ox - 2 * min_z

    left = min_col * half
    right = max_col * half + block_size - 1
    top = min_row * quarter
    bottom = max_row * quarter + block_size - 1
    return (left // tile_size, top // tile_size, right // tile_size, bottom // tile_size)


def world_tile_range(chunks: Iterable[ChunkPos], min_z: int, max_z: int,
                     block_size: int, tile_size: int) -> TileRange | None:
    """Bounding range of all chunk ranges, or None for an empty world."""
    bounds: TileRange | None = None
    for chunk in chunks:
        x0, y0, x1, y1 = chunk_tile_range(chunk, min_z, max_z, block_size, tile_size)
        if bounds is None:
            bounds = (x0, y0, x1, y1)
        else:
            bounds = (min(bounds[0], x0), min(bounds[1], y0), max(bounds[2], x1), max(bounds[3], y1))
    return bounds


@dataclass(frozen=True)
class TileSet:
    """Quadtree of tiles with ``4 ** level`` tiles on each level.

    Leaf tile (c, r) at ``depth`` is screen tile (c + offset_x, r + offset_y).
    """

    depth: int
    offset_x: int = 0
    offset_y: int = 0

    @classmethod
    def for_world(cls, world: World, block_size: int, tile_size: int) -> "TileSet":
        """Smallest quadtree whose leaf level covers every chunk of the world.

        The covered area is centered in the leaf grid.
        """
        bounds = world_tile_range(world.chunk_positions(), world.min_z, world.max_z,
                                  block_size, tile_size)
        if bounds is None:
            logger.warning("World has no chunks, producing a single empty tile")
            return cls(0)

        x0, y0, x1, y1 = bounds
        width = x1 - x0 + 1
        height = y1 - y0 + 1
        depth = 0
        while 2 ** depth < max(width, height):
            depth += 1
        size = 2 ** depth
        tile_set = cls(depth, x0 - (size - width) // 2, y0 - (size - height) // 2)
        logger.debug(f"World spans {width}x{height} tiles, quadtree depth {depth}")
        return tile_set

    def level_size(self, level: int) -> int:
        """Tiles per side at ``level``."""
        self._check_level(level)
        return 2 ** level

    def count(self, level: int) -> int:
        return self.level_size(level) ** 2

    @property
    def total(self) -> int:
        """Tiles on all levels."""
        return sum(self.count(level) for level in range(self.depth + 1))

    def tiles(self, level: int) -> Iterator[TilePos]:
        """All tiles of a level, row by row."""
        size = self.level_size(level)
        for y in range(size):
            for x in range(size):
                yield TilePos(x, y)

    def children(self, level: int, tile: TilePos) -> tuple[TilePos, ...]:
        """Children on ``level + 1`` in quadrant order."""
        if level >= self.depth:
            return ()
        return tuple(TilePos(2 * tile.x + dx, 2 * tile.y + dy) for dx, dy in QUADRANTS)

    def parent(self, level: int, tile: TilePos) -> TilePos:
        """Tile on ``level - 1`` containing ``tile``."""
        if level <= 0:
            raise ValueError("The root tile has no parent")
        return TilePos(tile.x // 2, tile.y // 2)

    def to_screen(self, tile: TilePos) -> TilePos:
        """Screen tile rendered for a leaf tile."""
        return TilePos(tile.x + self.offset_x, tile.y + self.offset_y)

    def from_screen(self, tile: TilePos) -> TilePos:
        return TilePos(tile.x - self.offset_x, tile.y - self.offset_y)

    def _check_level(self, level: int) -> None:
        if not 0 <= level <= self.depth:
            raise ValueError(f"Level {level} outside 0..{self.depth}")
