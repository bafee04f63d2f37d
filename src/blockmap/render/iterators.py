"""Block enumeration for tiles and view rays.

Both iterators are restartable: iterating the same object again starts a
new, independent pass, so several workers can share nothing but the
parameters.
"""

from typing import Iterator

from blockmap.world.positions import BlockPos, TilePos, RAY_STEP


def _ceil_div(a: int, b: int) -> int:
    return -(-a // b)


class TileTopBlockIterator:
    """Top layer blocks of every view ray whose block image touches a tile.

    Yields ``(BlockPos, draw_x, draw_y)`` where the draw offset is the
    top-left pixel of the block image relative to the tile. Rays are
    scanned row by row from the top of the tile, columns left to right.
    Compositing relies on this order being stable.
    """

    def __init__(self, tile: TilePos, block_size: int, tile_size: int, top_z: int):
        if block_size <= 0 or block_size % 4:
            raise ValueError(f"Block size must be a positive multiple of 4: {block_size}")
        if tile_size <= 0:
            raise ValueError(f"Tile size must be positive: {tile_size}")
        self.tile = tile
        self.block_size = block_size
        self.tile_size = tile_size
        self.top_z = top_z

        half = block_size // 2
        quarter = block_size // 4
        left = tile.x * tile_size
        top = tile.y * tile_size

        # A block image [p, p + block_size) intersects [left, left + tile_size)
        self.min_col = _ceil_div(left - block_size + 1, half)
        self.max_col = (left + tile_size - 1) // half
        self.min_row = _ceil_div(top - block_size + 1, quarter)
        self.max_row = (top + tile_size - 1) // quarter

    def __iter__(self) -> Iterator[tuple[BlockPos, int, int]]:
        half = self.block_size // 2
        quarter = self.block_size // 4
        left = self.tile.x * self.tile_size
        top = self.tile.y * self.tile_size
        z = self.top_z

        for row in range(self.min_row, self.max_row + 1):
            # only cells with an even col + row lie on the block lattice
            first_col = self.min_col + ((self.min_col + row) % 2)
            for col in range(first_col, self.max_col + 1, 2):
                pos = BlockPos((col - row - 2 * z) // 2, (col + row + 2 * z) // 2, z)
                yield pos, col * half - left, row * quarter - top

    def __len__(self) -> int:
        return sum(1 for _ in self)


class BlockRowIterator:
    """Positions along a view ray, starting at ``start`` and moving away
    from the viewer until the bottom of the world is passed."""

    def __init__(self, start: BlockPos, min_z: int):
        self.start = start
        self.min_z = min_z

    def __iter__(self) -> Iterator[BlockPos]:
        current = self.start
        while current.z >= self.min_z:
            yield current
            current = current + RAY_STEP
