"""Render work scheduling: work units, worker pool and dispatch strategies."""

from typing import Optional

from .dispatcher import Dispatcher, RenderPass, RenderStatus, RenderSummary
from .multithreading import MultiThreadingDispatcher, ThreadManager
from .progress import LoggingProgressHandler, ProgressHandler
from .render_work import RenderWork, RenderWorkContext, RenderWorkResult, render_work
from .single_thread import SingleThreadDispatcher
from .worker_manager import WorkerManager, WorkerPool


def create_dispatcher(thread_count: Optional[int] = None, single_thread: bool = False) -> Dispatcher:
    """Pick a dispatch strategy. One thread means the single-threaded one."""
    if single_thread or thread_count == 1:
        return SingleThreadDispatcher()
    return MultiThreadingDispatcher(thread_count)


__all__ = [
    "Dispatcher",
    "RenderPass",
    "RenderStatus",
    "RenderSummary",
    "MultiThreadingDispatcher",
    "ThreadManager",
    "LoggingProgressHandler",
    "ProgressHandler",
    "RenderWork",
    "RenderWorkContext",
    "RenderWorkResult",
    "render_work",
    "SingleThreadDispatcher",
    "WorkerManager",
    "WorkerPool",
    "create_dispatcher",
]
