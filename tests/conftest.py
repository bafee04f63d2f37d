"""Shared fixtures for blockmap tests."""

import logging
from typing import Optional

import pytest
from PIL import Image

from blockmap.render import MemoryTileStore, TileRenderer, TileSet
from blockmap.textures import BlockTextures, make_block_image
from blockmap.thread import RenderWorkContext
from blockmap.world import BlockPos, MemoryWorld
from blockmap.world.blocks import DIRT, GLASS, GRASS, STONE, WATER

BLOCK_SIZE = 16

COLORS = {
    STONE: (128, 128, 128, 255),
    GRASS: (60, 160, 40, 255),
    DIRT: (120, 80, 40, 255),
    WATER: (40, 80, 220, 128),
    GLASS: (220, 230, 255, 64),
}


def solid_textures(block_size: int = BLOCK_SIZE, colors: Optional[dict] = None) -> BlockTextures:
    """Flat shaded cubes, one color per block id."""
    images: dict[tuple[int, Optional[int]], Image.Image] = {}
    for block_id, color in (colors or COLORS).items():
        images[(block_id, None)] = make_block_image(color, block_size)
    return BlockTextures(block_size, images)


def hill_world() -> MemoryWorld:
    """Two chunks of dirt with a grass cover, a small hill and a pond."""
    world = MemoryWorld(min_z=0, max_z=7)
    world.fill(BlockPos(0, 0, 0), BlockPos(31, 15, 1), DIRT)
    world.fill(BlockPos(0, 0, 2), BlockPos(31, 15, 2), GRASS)
    world.fill(BlockPos(4, 4, 3), BlockPos(8, 8, 4), STONE)
    world.fill(BlockPos(20, 5, 2), BlockPos(24, 9, 2), WATER)
    world.set_block(BlockPos(12, 12, 3), GLASS)
    return world


def make_context(world: MemoryWorld, tile_size: int = 64,
                 renderer: Optional[TileRenderer] = None) -> RenderWorkContext:
    textures = solid_textures()
    renderer = renderer or TileRenderer(world, textures, tile_size)
    tile_set = TileSet.for_world(world, textures.block_size, tile_size)
    return RenderWorkContext(renderer, tile_set, MemoryTileStore())


@pytest.fixture
def textures() -> BlockTextures:
    return solid_textures()


@pytest.fixture
def world() -> MemoryWorld:
    return hill_world()


@pytest.fixture
def settings_file(tmp_path):
    """INI file for AppSettings so tests never touch the user's settings."""
    return tmp_path / "settings.ini"


@pytest.fixture(autouse=True)
def restore_logging():
    """Undo handler changes made by setup_logging."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)
