"""Dispatcher rendering each zoom level with a pool of worker threads."""

import logging
import os
import threading
from collections import deque
from typing import Callable, Iterable, Optional

from .dispatcher import Dispatcher, RenderPass, RenderSummary
from .progress import ProgressHandler
from .render_work import RenderWork, RenderWorkContext, RenderWorkResult, render_work
from .worker_manager import WorkerManager, WorkerPool


class ThreadManager(WorkerManager[RenderWork, RenderWorkResult]):
    """Work queue of the current batch plus the barrier waiting for it.

    Results are forwarded to ``on_result`` before the unit stops counting
    as in flight, so once `wait_for_batch` returns every result of the
    batch has been recorded. The first exception raised while rendering or
    recording a unit cancels the queue and is re-raised by `wait_for_batch`.
    """

    def __init__(self, on_result: Callable[[RenderWorkResult], None]):
        self.on_result = on_result
        self._pending: deque[RenderWork] = deque()
        self._in_flight = 0
        self._cancelled = False
        self._error: Optional[Exception] = None
        self._condition = threading.Condition()

    def add_work(self, works: Iterable[RenderWork]) -> int:
        with self._condition:
            before = len(self._pending)
            if not self._cancelled:
                self._pending.extend(works)
            return len(self._pending) - before

    def get_work(self) -> Optional[RenderWork]:
        with self._condition:
            if self._cancelled or not self._pending:
                return None
            self._in_flight += 1
            return self._pending.popleft()

    def work_finished(self, work: RenderWork, result: RenderWorkResult) -> None:
        try:
            self.on_result(result)
        except Exception as e:
            self._stop(e)
            raise
        finally:
            self._unit_done()

    def work_failed(self, work: RenderWork, error: Exception) -> None:
        self._stop(error)
        self._unit_done()

    def _stop(self, error: Exception) -> None:
        with self._condition:
            if self._error is None:
                self._error = error
            self._cancelled = True
            self._pending.clear()

    def _unit_done(self) -> None:
        with self._condition:
            self._in_flight -= 1
            self._condition.notify_all()

    def wait_for_batch(self) -> None:
        """Block until the queue is empty and no unit is in flight.

        Raises:
            Exception: The first error raised by a worker, once the batch drained
        """
        with self._condition:
            while self._pending or self._in_flight:
                self._condition.wait()
            if self._error is not None:
                raise self._error

    def cancel(self) -> int:
        """Drop queued units; running ones still finish. Returns the number dropped."""
        with self._condition:
            self._cancelled = True
            dropped = len(self._pending)
            self._pending.clear()
            self._condition.notify_all()
            return dropped

    @property
    def cancelled(self) -> bool:
        with self._condition:
            return self._cancelled


class MultiThreadingDispatcher(Dispatcher):
    """Renders the tiles of each level in parallel.

    The worker threads are started once per pass and reused for every
    level. Output is identical to `SingleThreadDispatcher` because tiles of
    one level never depend on each other.
    """

    def __init__(self, thread_count: Optional[int] = None):
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")
        self.thread_count = thread_count or os.cpu_count() or 1
        self._cancelled = threading.Event()
        self._manager: Optional[ThreadManager] = None
        self._lock = threading.Lock()

    def cancel(self) -> None:
        self._cancelled.set()
        with self._lock:
            manager = self._manager
        if manager is not None:
            dropped = manager.cancel()
            self.logger.debug(f"Cancelled, dropped {dropped} queued tiles")

    def dispatch(
        self, context: RenderWorkContext, progress: Optional[ProgressHandler] = None
    ) -> RenderSummary:
        self._cancelled.clear()
        render_pass = RenderPass(context, progress)

        def on_result(result: RenderWorkResult) -> None:
            render_pass.record(result)
            if result.fatal:
                self.cancel()

        manager = ThreadManager(on_result)
        with self._lock:
            self._manager = manager
        pool = WorkerPool(manager, lambda work: render_work(context, work),
                          self.thread_count, name="render")

        render_pass.start()
        pool.start()
        self.logger.info(f"Rendering with {self.thread_count} threads")
        try:
            for level in render_pass.levels():
                if self._cancelled.is_set():
                    break
                manager.add_work(render_pass.level_work(level))
                pool.wake()
                manager.wait_for_batch()
                if manager.cancelled:
                    break
                render_pass.finish_level(level)
        finally:
            pool.shutdown()
            with self._lock:
                self._manager = None

        # a cancel arriving after the root level was rendered skips nothing
        cancelled = self._cancelled.is_set() and render_pass.done < render_pass.total
        if cancelled and not render_pass.fatal:
            self.logger.warning("Render pass cancelled")
        return render_pass.summary(cancelled)
