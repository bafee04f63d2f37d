"""
Position types shared by the world, the renderer and the dispatcher.

World axes: x grows east, y grows south, z grows up. The isometric view
looks at the world from the west/south/above, so the visible faces of a
block are its top, south and west faces.
"""

from dataclasses import dataclass

# Width and depth of a chunk in blocks
CHUNK_SIZE = 16


@dataclass(frozen=True)
class BlockPos:
    """Integer block position in world-block units."""

    x: int
    y: int
    z: int

    def __add__(self, other: "BlockPos") -> "BlockPos":
        return BlockPos(self.x + other.x, self.y + other.y, self.z + other.z)

    def __sub__(self, other: "BlockPos") -> "BlockPos":
        return BlockPos(self.x - other.x, self.y - other.y, self.z - other.z)

    @property
    def col(self) -> int:
        """Isometric column of the block (half block widths)."""
        return self.x + self.y

    @property
    def row(self) -> int:
        """Isometric row of the block (quarter block heights)."""
        return self.y - self.x - 2 * self.z

    @property
    def chunk(self) -> "ChunkPos":
        """Chunk containing this block."""
        return ChunkPos(self.x // CHUNK_SIZE, self.y // CHUNK_SIZE)

    @property
    def local(self) -> tuple[int, int]:
        """Horizontal position inside the containing chunk."""
        return (self.x % CHUNK_SIZE, self.y % CHUNK_SIZE)


@dataclass(frozen=True)
class ChunkPos:
    """Horizontal position of a chunk column in chunk units."""

    x: int
    y: int

    @property
    def origin(self) -> tuple[int, int]:
        """World x/y of the north-west corner block."""
        return (self.x * CHUNK_SIZE, self.y * CHUNK_SIZE)


@dataclass(frozen=True)
class TilePos:
    """Column/row of a tile. The zoom level comes from the traversal context."""

    x: int
    y: int

    def __str__(self) -> str:
        return f"{self.x}:{self.y}"


# Direction offsets for neighbor lookups
NORTH = BlockPos(0, -1, 0)
SOUTH = BlockPos(0, 1, 0)
EAST = BlockPos(1, 0, 0)
WEST = BlockPos(-1, 0, 0)
TOP = BlockPos(0, 0, 1)
BOTTOM = BlockPos(0, 0, -1)

HORIZONTAL_DIRECTIONS = (NORTH, SOUTH, EAST, WEST)

# One step along a view ray, away from the viewer. Every block on a ray
# projects onto the same screen cell.
RAY_STEP = BlockPos(1, -1, -1)


def screen_position(pos: BlockPos, block_size: int) -> tuple[int, int]:
    """Top-left pixel of a block image in global screen space.

    Args:
        pos: Block position
        block_size: Edge length of a block image in pixels (multiple of 4)

    Returns:
        (pixel_x, pixel_y) tuple
    """
    return (pos.col * block_size // 2, pos.row * block_size // 4)
