"""Render pass orchestration.

A pass renders the leaf level of the tile quadtree from the world and then
builds every coarser level from the one below, up to the root. Levels are
separated by barriers: no tile of a level is started before every tile of
the deeper level has been reported.

`Dispatcher` is the contract implemented by the single-threaded and the
multi-threaded strategy. `RenderPass` holds the bookkeeping both share.
"""

import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from blockmap.render.tile_store import TileKey

from .progress import ProgressHandler
from .render_work import RenderWork, RenderWorkContext, RenderWorkResult

logger = logging.getLogger(__name__)


class RenderStatus(Enum):
    """Final state of a render pass."""

    COMPLETE = "complete"
    DEGRADED = "complete with degraded tiles"
    ABORTED = "aborted"

    @property
    def exit_code(self) -> int:
        return {RenderStatus.COMPLETE: 0, RenderStatus.DEGRADED: 2, RenderStatus.ABORTED: 3}[self]


@dataclass
class RenderSummary:
    """Counts of a finished (or aborted) render pass."""

    status: RenderStatus
    total: int
    rendered: int
    failed: int
    degraded: int
    skipped: int
    errors: list[str] = field(default_factory=list)

    @property
    def exit_code(self) -> int:
        return self.status.exit_code

    def __str__(self) -> str:
        return (
            f"Render {self.status.value}: {self.rendered} of {self.total} tiles rendered, "
            f"{self.failed} failed, {self.degraded} degraded, {self.skipped} skipped"
        )


class RenderPass:
    """Work planning and result accounting for one pass over a tile set.

    `record` is called concurrently by workers; it forwards progress while
    holding its lock so handlers see monotonically increasing values.
    """

    def __init__(self, context: RenderWorkContext, progress: Optional[ProgressHandler] = None):
        self.context = context
        self.tile_set = context.tile_set
        self.progress = progress or ProgressHandler()
        self.total = self.tile_set.total

        self._lock = threading.RLock()
        self.done = 0
        self.rendered = 0
        self.failed: set[TileKey] = set()
        self.degraded: set[TileKey] = set()
        self.errors: list[str] = []
        self.fatal_error: Optional[str] = None

    def start(self) -> None:
        logger.info(
            f"Render pass over {self.tile_set.depth + 1} zoom levels, {self.total} tiles"
        )
        self.progress.set_max(self.total)
        self.progress.set_value(0)

    def levels(self) -> range:
        """Levels in render order: leaves first, root last."""
        return range(self.tile_set.depth, -1, -1)

    def level_work(self, level: int) -> list[RenderWork]:
        return [
            RenderWork(level, tile, self.tile_set.children(level, tile))
            for tile in self.tile_set.tiles(level)
        ]

    def record(self, result: RenderWorkResult) -> None:
        work = result.work
        key = (work.level, work.tile)
        with self._lock:
            self.done += 1
            if result.ok:
                self.rendered += 1
                children = [(work.level + 1, child) for child in work.children]
                if result.degraded or any(c in self.failed or c in self.degraded for c in children):
                    self.degraded.add(key)
            else:
                self.failed.add(key)
                self.errors.append(f"{work}: {result.error}")
                if result.fatal and self.fatal_error is None:
                    self.fatal_error = result.error
            self.progress.set_value(self.done)

    @property
    def fatal(self) -> bool:
        with self._lock:
            return self.fatal_error is not None

    def finish_level(self, level: int) -> None:
        with self._lock:
            failed = sum(1 for key_level, _ in self.failed if key_level == level)
        if failed:
            logger.warning(f"Zoom level {level}: {failed} tiles failed")
        self.progress.level_finished(level)

    def summary(self, cancelled: bool) -> RenderSummary:
        with self._lock:
            if cancelled or self.fatal_error is not None:
                status = RenderStatus.ABORTED
            elif self.failed or self.degraded:
                status = RenderStatus.DEGRADED
            else:
                status = RenderStatus.COMPLETE
            return RenderSummary(
                status=status,
                total=self.total,
                rendered=self.rendered,
                failed=len(self.failed),
                degraded=len(self.degraded),
                skipped=self.total - self.done,
                errors=list(self.errors),
            )


class Dispatcher(ABC):
    """Runs a full render pass over a tile set."""

    @abstractmethod
    def dispatch(
        self, context: RenderWorkContext, progress: Optional[ProgressHandler] = None
    ) -> RenderSummary:
        """Render every level, leaves first. Blocks until the pass ends."""

    @abstractmethod
    def cancel(self) -> None:
        """Stop the pass at the next unit boundary. Safe from any thread."""
