"""Tests for the tile quadtree layout."""

import pytest

from blockmap.render import TileSet, QUADRANTS
from blockmap.render.tileset import chunk_tile_range, world_tile_range
from blockmap.world import BlockPos, ChunkPos, MemoryWorld, TilePos
from blockmap.world.positions import CHUNK_SIZE, screen_position


class TestTileRanges:
    """Test screen tile ranges of chunks."""

    def test_chunk_range_contains_every_block(self) -> None:
        """Test every block image of a chunk lies inside its tile range."""
        chunk = ChunkPos(1, -1)
        x0, y0, x1, y1 = chunk_tile_range(chunk, 0, 3, 16, 64)
        ox, oy = chunk.origin
        for z in (0, 3):
            for ly in (0, CHUNK_SIZE - 1):
                for lx in (0, CHUNK_SIZE - 1):
                    px, py = screen_position(BlockPos(ox + lx, oy + ly, z), 16)
                    assert x0 * 64 <= px and px + 15 < (x1 + 1) * 64
                    assert y0 * 64 <= py and py + 15 < (y1 + 1) * 64

    def test_empty_world_range(self) -> None:
        assert world_tile_range([], 0, 15, 16, 64) is None


class TestTileSet:
    """Test quadtree arithmetic."""

    def test_counts(self) -> None:
        """Test tiles per level and in total."""
        tile_set = TileSet(3)

        assert [tile_set.count(level) for level in range(4)] == [1, 4, 16, 64]
        assert tile_set.total == 85
        assert len(list(tile_set.tiles(2))) == 16
        with pytest.raises(ValueError):
            tile_set.count(4)

    def test_children_and_parent(self) -> None:
        """Test children are in quadrant order and map back to the parent."""
        tile_set = TileSet(2)
        children = tile_set.children(1, TilePos(1, 0))

        assert children == (TilePos(2, 0), TilePos(3, 0), TilePos(2, 1), TilePos(3, 1))
        assert [(c.x - 2, c.y) for c in children] == list(QUADRANTS)
        assert all(tile_set.parent(2, child) == TilePos(1, 0) for child in children)
        assert tile_set.children(2, TilePos(0, 0)) == ()
        with pytest.raises(ValueError):
            tile_set.parent(0, TilePos(0, 0))

    def test_screen_offset(self) -> None:
        """Test leaf tiles translate to screen tiles and back."""
        tile_set = TileSet(1, offset_x=-3, offset_y=5)

        assert tile_set.to_screen(TilePos(1, 0)) == TilePos(-2, 5)
        assert tile_set.from_screen(TilePos(-2, 5)) == TilePos(1, 0)

    def test_empty_world(self) -> None:
        """Test a world without chunks still gets a root tile."""
        tile_set = TileSet.for_world(MemoryWorld(), 16, 64)

        assert tile_set.depth == 0
        assert tile_set.total == 1

    def test_for_world_covers_data(self, world) -> None:
        """Test every screen tile with world data has a leaf tile."""
        tile_set = TileSet.for_world(world, 16, 64)
        size = tile_set.level_size(tile_set.depth)

        for chunk in world.chunk_positions():
            x0, y0, x1, y1 = chunk_tile_range(chunk, world.min_z, world.max_z, 16, 64)
            for y in range(y0, y1 + 1):
                for x in range(x0, x1 + 1):
                    leaf = tile_set.from_screen(TilePos(x, y))
                    assert 0 <= leaf.x < size and 0 <= leaf.y < size

    def test_depth_is_minimal(self, world) -> None:
        """Test one level less would not cover the world."""
        tile_set = TileSet.for_world(world, 16, 64)
        x0, y0, x1, y1 = world_tile_range(world.chunk_positions(), world.min_z, world.max_z, 16, 64)

        assert 2 ** (tile_set.depth - 1) < max(x1 - x0 + 1, y1 - y0 + 1) <= 2 ** tile_set.depth
