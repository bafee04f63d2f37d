"""Tests for render passes with both dispatch strategies."""

import threading

import pytest

from blockmap.render import TileRenderer
from blockmap.thread import (
    MultiThreadingDispatcher, ProgressHandler, RenderStatus, RenderWork, RenderWorkResult,
    SingleThreadDispatcher, ThreadManager, WorkerPool, create_dispatcher, render_work,
)
from blockmap.world import TilePos, WorldError

from conftest import hill_world, make_context, solid_textures

TILE_SIZE = 128

DISPATCHERS = [
    pytest.param(SingleThreadDispatcher, id="single"),
    pytest.param(lambda: MultiThreadingDispatcher(4), id="multi"),
]


class RecordingProgress(ProgressHandler):
    def __init__(self):
        self.total = 0
        self.values: list[int] = []
        self.levels: list[int] = []
        self._lock = threading.Lock()

    def set_max(self, total: int) -> None:
        self.total = total

    def set_value(self, done: int) -> None:
        with self._lock:
            self.values.append(done)

    def level_finished(self, level: int) -> None:
        self.levels.append(level)


class CancelAfterLevel(RecordingProgress):
    """Cancels the pass once a level's barrier has been passed."""

    def __init__(self, level: int):
        super().__init__()
        self.level = level
        self.dispatcher = None

    def level_finished(self, level: int) -> None:
        super().level_finished(level)
        if level == self.level:
            self.dispatcher.cancel()


class BrokenProgress(RecordingProgress):
    """Raises once a few tiles have been reported."""

    def set_value(self, done: int) -> None:
        super().set_value(done)
        if done == 3:
            raise RuntimeError("progress display broke")


class FailingRenderer(TileRenderer):
    """Raises for one screen tile."""

    def __init__(self, *args, fail_on: TilePos, error: Exception, **kwargs):
        super().__init__(*args, **kwargs)
        self.fail_on = fail_on
        self.error = error

    def render_tile(self, tile, image=None):
        if tile == self.fail_on:
            raise self.error
        return super().render_tile(tile, image)


def failing_context(error: Exception):
    world = hill_world()
    context = make_context(world, TILE_SIZE)
    fail_on = context.tile_set.to_screen(TilePos(0, 0))
    renderer = FailingRenderer(world, solid_textures(), TILE_SIZE, fail_on=fail_on, error=error)
    return make_context(world, TILE_SIZE, renderer)


class TestRenderPass:
    """Test complete passes."""

    @pytest.mark.parametrize("make_dispatcher", DISPATCHERS)
    def test_quadtree_complete(self, make_dispatcher) -> None:
        """Test every level holds 4**level tiles and the status is complete."""
        context = make_context(hill_world(), TILE_SIZE)
        progress = RecordingProgress()

        summary = make_dispatcher().dispatch(context, progress)

        depth = context.tile_set.depth
        assert depth >= 2
        for level in range(depth + 1):
            assert len(context.tile_store.tiles(level)) == 4 ** level
        assert summary.status is RenderStatus.COMPLETE
        assert summary.exit_code == 0
        assert summary.rendered == summary.total == context.tile_set.total
        assert (summary.failed, summary.degraded, summary.skipped) == (0, 0, 0)
        assert progress.total == summary.total
        assert progress.values[-1] == summary.total
        assert progress.values == sorted(progress.values)
        assert progress.levels == list(range(depth, -1, -1))

    @pytest.mark.parametrize("make_dispatcher", DISPATCHERS)
    def test_children_written_before_parent(self, make_dispatcher) -> None:
        """Test no composite is written before its four children."""
        context = make_context(hill_world(), TILE_SIZE)
        make_dispatcher().dispatch(context)

        store = context.tile_store
        position = {key: i for i, key in enumerate(store.write_log)}
        assert len(position) == len(store.write_log)
        for level in range(context.tile_set.depth):
            for tile in context.tile_set.tiles(level):
                for child in context.tile_set.children(level, tile):
                    assert position[(level + 1, child)] < position[(level, tile)]

    def test_strategies_render_identical_tiles(self) -> None:
        """Test single- and multi-threaded passes produce the same pixels."""
        single = make_context(hill_world(), TILE_SIZE)
        multi = make_context(hill_world(), TILE_SIZE)
        SingleThreadDispatcher().dispatch(single)
        MultiThreadingDispatcher(4).dispatch(multi)

        for level in range(single.tile_set.depth + 1):
            assert single.tile_store.tiles(level) == multi.tile_store.tiles(level)
            for tile in single.tile_store.tiles(level):
                a = single.tile_store.read(level, tile)
                b = multi.tile_store.read(level, tile)
                assert a.tobytes() == b.tobytes(), f"tile {tile} on level {level} differs"

    def test_root_shows_the_world(self) -> None:
        """Test the root tile is not empty."""
        context = make_context(hill_world(), TILE_SIZE)
        SingleThreadDispatcher().dispatch(context)

        root = context.tile_store.read(0, TilePos(0, 0))
        assert root.getchannel("A").getextrema()[1] > 0


class TestCancellation:
    """Test cooperative cancellation."""

    @pytest.mark.parametrize("make_dispatcher", DISPATCHERS)
    def test_cancel_after_level_barrier(self, make_dispatcher) -> None:
        """Test finished levels stay intact and coarser ones are never written."""
        context = make_context(hill_world(), TILE_SIZE)
        depth = context.tile_set.depth
        dispatcher = make_dispatcher()
        progress = CancelAfterLevel(depth - 1)
        progress.dispatcher = dispatcher

        summary = dispatcher.dispatch(context, progress)

        assert summary.status is RenderStatus.ABORTED
        assert summary.exit_code == 3
        assert len(context.tile_store.tiles(depth)) == 4 ** depth
        assert len(context.tile_store.tiles(depth - 1)) == 4 ** (depth - 1)
        for level in range(depth - 1):
            assert context.tile_store.tiles(level) == []
        assert summary.skipped == sum(4 ** level for level in range(depth - 1))

    @pytest.mark.parametrize("make_dispatcher", DISPATCHERS)
    def test_cancel_after_root_keeps_pass_complete(self, make_dispatcher) -> None:
        """Test a cancel arriving after the last barrier does not abort a finished pass."""
        context = make_context(hill_world(), TILE_SIZE)
        dispatcher = make_dispatcher()
        progress = CancelAfterLevel(0)
        progress.dispatcher = dispatcher

        summary = dispatcher.dispatch(context, progress)

        assert summary.status is RenderStatus.COMPLETE
        assert summary.exit_code == 0
        assert summary.skipped == 0
        assert progress.levels[-1] == 0

    def test_cancel_drops_queued_work(self) -> None:
        """Test a cancelled manager hands out nothing more."""
        manager = ThreadManager(lambda result: None)
        manager.add_work([RenderWork(1, TilePos(x, 0)) for x in range(3)])

        work = manager.get_work()
        assert manager.cancel() == 2
        assert manager.get_work() is None
        assert manager.add_work([RenderWork(1, TilePos(5, 5))]) == 0

        manager.work_finished(work, RenderWorkResult(work))
        manager.wait_for_batch()
        assert manager.cancelled


class TestFailures:
    """Test tile-local and fatal failures."""

    @pytest.mark.parametrize("make_dispatcher", DISPATCHERS)
    def test_failing_tile_degrades_ancestors(self, make_dispatcher) -> None:
        """Test one broken leaf leaves a hole and marks its ancestors degraded."""
        context = failing_context(RuntimeError("broken texture"))
        depth = context.tile_set.depth

        summary = make_dispatcher().dispatch(context)

        assert summary.status is RenderStatus.DEGRADED
        assert summary.exit_code == 2
        assert summary.failed == 1
        assert summary.degraded == depth
        assert summary.rendered == summary.total - 1
        assert not context.tile_store.exists(depth, TilePos(0, 0))
        assert context.tile_store.exists(0, TilePos(0, 0))
        assert "broken texture" in summary.errors[0]

    @pytest.mark.parametrize("make_dispatcher", DISPATCHERS)
    def test_collaborator_failure_aborts(self, make_dispatcher) -> None:
        """Test a world failure aborts the pass before any composite."""
        context = failing_context(WorldError("chunk file vanished"))

        summary = make_dispatcher().dispatch(context)

        assert summary.status is RenderStatus.ABORTED
        assert summary.failed >= 1
        for level in range(context.tile_set.depth):
            assert context.tile_store.tiles(level) == []

    @pytest.mark.parametrize("make_dispatcher", DISPATCHERS)
    def test_progress_handler_error_propagates(self, make_dispatcher) -> None:
        """Test an exception from the progress handler ends the pass with that exception."""
        context = make_context(hill_world(), TILE_SIZE)
        dispatcher = make_dispatcher()
        raised: list[BaseException] = []

        def run() -> None:
            try:
                dispatcher.dispatch(context, BrokenProgress())
            except RuntimeError as e:
                raised.append(e)

        thread = threading.Thread(target=run, daemon=True)
        thread.start()
        thread.join(timeout=30)

        assert not thread.is_alive(), "dispatch did not return"
        assert len(raised) == 1
        assert str(raised[0]) == "progress display broke"
        assert context.tile_store.tiles(0) == []

    def test_worker_survives_failing_unit(self) -> None:
        """Test an exception in the work function cancels the batch and reaches the waiter."""
        results: list[RenderWorkResult] = []
        manager = ThreadManager(results.append)
        manager.add_work([RenderWork(1, TilePos(x, 0)) for x in range(3)])

        def work_func(work: RenderWork) -> RenderWorkResult:
            if work.tile.x == 0:
                raise RuntimeError("unit broke")
            return RenderWorkResult(work)

        pool = WorkerPool(manager, work_func, 1, name="test")
        pool.start()
        try:
            with pytest.raises(RuntimeError, match="unit broke"):
                manager.wait_for_batch()
            assert pool.running
        finally:
            pool.shutdown()

        assert results == []
        assert manager.cancelled

    def test_render_work_reports_errors(self) -> None:
        """Test failures come back in the result instead of raising."""
        context = failing_context(ValueError("bad"))
        work = RenderWork(context.tile_set.depth, TilePos(0, 0))

        result = render_work(context, work)
        assert not result.ok
        assert not result.fatal
        assert "ValueError" in result.error


class TestCreateDispatcher:
    """Test strategy selection."""

    def test_selection(self) -> None:
        assert isinstance(create_dispatcher(single_thread=True), SingleThreadDispatcher)
        assert isinstance(create_dispatcher(1), SingleThreadDispatcher)
        multi = create_dispatcher(3)
        assert isinstance(multi, MultiThreadingDispatcher)
        assert multi.thread_count == 3
