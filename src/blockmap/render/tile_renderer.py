"""Isometric tile rendering.

A tile is drawn by walking every view ray that crosses it from the top of
the world downwards, collecting blocks until an opaque one is reached,
and compositing the collected blocks farthest first.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional, Protocol, Sequence

from PIL import Image

from blockmap.world.blocks import AIR, HIDDEN
from blockmap.world.cache import World
from blockmap.world.positions import BlockPos, TilePos

from .iterators import BlockRowIterator, TileTopBlockIterator
from .neighbors import NeighborRules, default_neighbor_rules
from .tileset import QUADRANTS, chunk_tile_range


class Textures(Protocol):
    block_size: int

    def texture_for(self, block_id: int, data: int) -> Image.Image: ...

    def is_transparent(self, block_id: int, data: int) -> bool: ...


@dataclass(eq=False)
class RenderBlock:
    """A block ready to be composited onto a tile."""

    x: int
    y: int
    transparent: bool
    image: Image.Image = field(repr=False)
    pos: BlockPos
    id: int
    data: int

    def sort_key(self) -> tuple[int, int, int, int, int]:
        # lower blocks first, then north to south, then east to west
        return (self.pos.z, self.pos.y, -self.pos.x, self.id, self.data)

    def __lt__(self, other: "RenderBlock") -> bool:
        return self.sort_key() < other.sort_key()


def _blit(tile: Image.Image, image: Image.Image, x: int, y: int) -> None:
    """Alpha-composite ``image`` at (x, y), clipped to the tile."""
    width, height = image.size
    src_x = max(0, -x)
    src_y = max(0, -y)
    dest_x = max(0, x)
    dest_y = max(0, y)
    w = min(width - src_x, tile.width - dest_x)
    h = min(height - src_y, tile.height - dest_y)
    if w <= 0 or h <= 0:
        return
    tile.alpha_composite(image, dest=(dest_x, dest_y), source=(src_x, src_y, src_x + w, src_y + h))


class TileRenderer:
    """Renders screen tiles of a world.

    The world and textures are borrowed and must outlive the renderer.
    Rendering only reads them, so one renderer can be shared by all workers.
    """

    def __init__(
        self,
        world: World,
        textures: Textures,
        tile_size: int,
        neighbor_rules: Optional[NeighborRules] = None,
    ):
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")
        self.world = world
        self.textures = textures
        self.block_size = textures.block_size
        self.tile_size = tile_size
        self.neighbor_rules = neighbor_rules or default_neighbor_rules()

        # screen tiles any loaded chunk can draw into
        self._data_tiles: set[TilePos] = set()
        for chunk in world.chunk_positions():
            x0, y0, x1, y1 = chunk_tile_range(chunk, world.min_z, world.max_z,
                                              self.block_size, tile_size)
            for y in range(y0, y1 + 1):
                for x in range(x0, x1 + 1):
                    self._data_tiles.add(TilePos(x, y))
        self.logger.debug(f"{len(self._data_tiles)} screen tiles contain world data")

    def has_data(self, tile: TilePos) -> bool:
        return tile in self._data_tiles

    def check_neighbors(self, pos: BlockPos, block_id: int, data: int) -> int:
        """Effective data of a block from its neighborhood."""
        return self.neighbor_rules.check(self.world, self.textures, pos, block_id, data)

    def collect_blocks(self, tile: TilePos) -> list[RenderBlock]:
        """Blocks to draw for a screen tile, in ray scan order."""
        blocks: list[RenderBlock] = []
        if not self.has_data(tile):
            return blocks

        top_blocks = TileTopBlockIterator(tile, self.block_size, self.tile_size, self.world.max_z)
        for top, draw_x, draw_y in top_blocks:
            for pos in BlockRowIterator(top, self.world.min_z):
                found = self.world.block_at(pos)
                if found is None or found[0] == AIR:
                    continue
                block_id, data = found
                effective = self.check_neighbors(pos, block_id, data)
                if effective & HIDDEN:
                    # covered on every visible face; so is everything behind it
                    break
                transparent = self.textures.is_transparent(block_id, effective)
                blocks.append(RenderBlock(
                    x=draw_x,
                    y=draw_y,
                    transparent=transparent,
                    image=self.textures.texture_for(block_id, effective),
                    pos=pos,
                    id=block_id,
                    data=effective,
                ))
                if not transparent:
                    break
        return blocks

    def render_tile(self, tile: TilePos, image: Optional[Image.Image] = None) -> Image.Image:
        """Render a screen tile.

        Args:
            tile: Screen tile position
            image: Optional RGBA target of tile_size x tile_size; a
                transparent one is created when omitted

        Returns:
            The rendered tile image
        """
        if image is None:
            image = Image.new("RGBA", (self.tile_size, self.tile_size), (0, 0, 0, 0))
        elif image.size != (self.tile_size, self.tile_size) or image.mode != "RGBA":
            raise ValueError(f"Tile image must be RGBA {self.tile_size}x{self.tile_size}")

        blocks = self.collect_blocks(tile)
        blocks.sort()
        for block in blocks:
            _blit(image, block.image, block.x, block.y)
        return image


def render_composite_tile(children: Sequence[Optional[Image.Image]], tile_size: int) -> Image.Image:
    """Build a tile from its four children.

    Args:
        children: Child images in quadrant order (see `QUADRANTS`); None
            leaves a transparent quadrant
        tile_size: Edge length of the children and the result

    Returns:
        Downsampled RGBA tile
    """
    if len(children) != len(QUADRANTS):
        raise ValueError(f"Expected {len(QUADRANTS)} children, got {len(children)}")
    half = tile_size // 2
    image = Image.new("RGBA", (tile_size, tile_size), (0, 0, 0, 0))
    # straight stitching, no alpha blending
    for (dx, dy), child in zip(QUADRANTS, children):
        if child is None:
            continue
        if child.mode != "RGBA":
            child = child.convert("RGBA")
        quad = child.resize((half, half), Image.Resampling.BOX)
        image.paste(quad, (dx * half, dy * half))
    return image
