"""Generic worker pool.

A `WorkerManager` hands out work and collects results; a `WorkerPool`
runs a fixed set of threads against it. The pool outlives single batches:
when the manager runs dry the workers idle until `WorkerPool.wake`
announces more work.
"""

import logging
import threading
from abc import ABC, abstractmethod
from typing import Callable, Generic, Optional, TypeVar

W = TypeVar("W")
R = TypeVar("R")


class WorkerManager(ABC, Generic[W, R]):
    """Source of work and sink of results. Both methods are called
    concurrently from every worker thread."""

    @abstractmethod
    def get_work(self) -> Optional[W]:
        """Next unit of work, or None when the current batch is exhausted."""

    @abstractmethod
    def work_finished(self, work: W, result: R) -> None:
        """Record the result of a finished unit."""

    def work_failed(self, work: W, error: Exception) -> None:
        """Called when ``work_func`` raised for a unit; `work_finished` is skipped."""


class WorkerPool(Generic[W, R]):
    """Fixed set of threads pulling work from a manager.

    ``work_func`` should report failures through its result. An exception
    escaping it is logged and handed to `WorkerManager.work_failed`, one
    escaping `WorkerManager.work_finished` is logged. The worker keeps
    running either way.
    """

    def __init__(
        self,
        manager: WorkerManager[W, R],
        work_func: Callable[[W], R],
        thread_count: int,
        name: str = "worker",
    ):
        if thread_count < 1:
            raise ValueError(f"Thread count must be at least 1: {thread_count}")
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")
        self.manager = manager
        self.work_func = work_func
        self.thread_count = thread_count
        self.name = name

        self._threads: list[threading.Thread] = []
        self._condition = threading.Condition()
        # bumped for every new batch so a worker never sleeps through one
        self._batch = 0
        self._stopped = False

    @property
    def running(self) -> bool:
        return bool(self._threads) and not self._stopped

    def start(self) -> None:
        if self._threads:
            raise RuntimeError("Worker pool already started")
        for i in range(self.thread_count):
            thread = threading.Thread(target=self._run, name=f"{self.name}-{i}", daemon=True)
            self._threads.append(thread)
            thread.start()
        self.logger.debug(f"Started {self.thread_count} worker threads")

    def wake(self) -> None:
        """Tell idle workers that the manager has new work."""
        with self._condition:
            self._batch += 1
            self._condition.notify_all()

    def shutdown(self, wait: bool = True) -> None:
        """Release the workers after they finish their current unit."""
        with self._condition:
            self._stopped = True
            self._condition.notify_all()
        if wait:
            for thread in self._threads:
                thread.join()
            self.logger.debug("Worker threads stopped")

    def _run(self) -> None:
        while True:
            with self._condition:
                if self._stopped:
                    return
                seen = self._batch

            work = self.manager.get_work()
            if work is None:
                with self._condition:
                    while self._batch == seen and not self._stopped:
                        self._condition.wait()
                continue

            try:
                result = self.work_func(work)
            except Exception as e:
                self.logger.exception(f"Processing {work} failed")
                self.manager.work_failed(work, e)
                continue

            try:
                self.manager.work_finished(work, result)
            except Exception:
                self.logger.exception(f"Recording result of {work} failed")
