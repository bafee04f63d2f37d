"""Reference dispatcher running every unit in the calling thread."""

import logging
import threading
from typing import Optional

from .dispatcher import Dispatcher, RenderPass, RenderSummary
from .progress import ProgressHandler
from .render_work import RenderWorkContext, render_work


class SingleThreadDispatcher(Dispatcher):
    """Renders tiles one after another in a fixed order."""

    def __init__(self):
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")
        self._cancelled = threading.Event()

    def cancel(self) -> None:
        self._cancelled.set()

    def dispatch(
        self, context: RenderWorkContext, progress: Optional[ProgressHandler] = None
    ) -> RenderSummary:
        self._cancelled.clear()
        render_pass = RenderPass(context, progress)
        render_pass.start()

        for level in render_pass.levels():
            if self._cancelled.is_set() or render_pass.fatal:
                break
            for work in render_pass.level_work(level):
                if self._cancelled.is_set() or render_pass.fatal:
                    break
                render_pass.record(render_work(context, work))
            else:
                render_pass.finish_level(level)

        # a cancel arriving after the root level was rendered skips nothing
        cancelled = self._cancelled.is_set() and render_pass.done < render_pass.total
        if cancelled:
            self.logger.warning("Render pass cancelled")
        return render_pass.summary(cancelled)
