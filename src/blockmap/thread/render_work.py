"""Units of render work and the function executing them."""

import logging
from dataclasses import dataclass
from typing import Optional

from PIL import Image

from blockmap.render.tile_renderer import TileRenderer, render_composite_tile
from blockmap.render.tile_store import TileStore
from blockmap.render.tileset import TileSet
from blockmap.world.cache import CollaboratorError
from blockmap.world.positions import TilePos

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RenderWork:
    """One tile to produce.

    Leaf tiles have no children and are rendered from the world; composite
    tiles are built from their children one level deeper.
    """

    level: int
    tile: TilePos
    children: tuple[TilePos, ...] = ()

    @property
    def is_composite(self) -> bool:
        return bool(self.children)

    def __str__(self) -> str:
        return f"tile {self.tile} on level {self.level}"


@dataclass
class RenderWorkResult:
    """Outcome of a `RenderWork`.

    ``fatal`` marks failures of the world or texture source, which make
    every other tile untrustworthy. ``degraded`` marks composites built
    from fewer than four children.
    """

    work: RenderWork
    image: Optional[Image.Image] = None
    error: Optional[str] = None
    fatal: bool = False
    degraded: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None and self.image is not None


@dataclass
class RenderWorkContext:
    """Everything a worker needs, shared read-only by all workers."""

    renderer: TileRenderer
    tile_set: TileSet
    tile_store: TileStore

    @property
    def tile_size(self) -> int:
        return self.renderer.tile_size


def _render_leaf(context: RenderWorkContext, work: RenderWork) -> RenderWorkResult:
    screen_tile = context.tile_set.to_screen(work.tile)
    image = context.renderer.render_tile(screen_tile)
    context.tile_store.write(work.level, work.tile, image)
    return RenderWorkResult(work, image=image)


def _render_composite(context: RenderWorkContext, work: RenderWork) -> RenderWorkResult:
    store = context.tile_store
    children = [store.read(work.level + 1, child) for child in work.children]
    image = render_composite_tile(children, context.tile_size)
    store.write(work.level, work.tile, image)
    return RenderWorkResult(work, image=image, degraded=any(child is None for child in children))


def render_work(context: RenderWorkContext, work: RenderWork) -> RenderWorkResult:
    """Produce and store one tile.

    Never raises: failures are returned in the result so that one broken
    tile does not stop the others.
    """
    try:
        if work.is_composite:
            return _render_composite(context, work)
        return _render_leaf(context, work)
    except CollaboratorError as e:
        logger.error(f"Data source failure while rendering {work}: {e}")
        return RenderWorkResult(work, error=str(e), fatal=True)
    except Exception as e:
        logger.exception(f"Failed to render {work}")
        return RenderWorkResult(work, error=f"{type(e).__name__}: {e}")
