"""Tests for tile storage."""

import threading

import orjson
from PIL import Image

from blockmap.render import FileTileStore, MemoryTileStore, TileIndex
from blockmap.world import TilePos


def red_tile(size: int = 8) -> Image.Image:
    return Image.new("RGBA", (size, size), (255, 0, 0, 255))


class TestTileIndex:
    """Test the shared index of existing tiles."""

    def test_concurrent_adds(self) -> None:
        """Test adds from several threads are all recorded."""
        index = TileIndex()

        def add_row(y: int) -> None:
            for x in range(50):
                index.add(3, TilePos(x, y))

        threads = [threading.Thread(target=add_row, args=(y,)) for y in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(index) == 400
        assert (3, TilePos(49, 7)) in index

    def test_tiles_sorted_by_row(self) -> None:
        """Test tiles of a level come back row by row."""
        index = TileIndex()
        for tile in (TilePos(1, 1), TilePos(0, 1), TilePos(1, 0)):
            index.add(1, tile)
        index.add(0, TilePos(0, 0))
        index.discard(1, TilePos(5, 5))

        assert index.tiles(1) == [TilePos(1, 0), TilePos(0, 1), TilePos(1, 1)]
        index.clear()
        assert len(index) == 0


class TestMemoryTileStore:
    """Test the in-memory store."""

    def test_write_and_read(self) -> None:
        """Test stored tiles are copies and writes are logged."""
        store = MemoryTileStore()
        image = red_tile()
        store.write(2, TilePos(1, 3), image)
        image.putpixel((0, 0), (0, 0, 0, 0))

        assert store.exists(2, TilePos(1, 3))
        assert store.read(2, TilePos(1, 3)).getpixel((0, 0)) == (255, 0, 0, 255)
        assert store.read(2, TilePos(0, 0)) is None
        assert store.write_log == [(2, TilePos(1, 3))]


class TestFileTileStore:
    """Test the on-disk store."""

    def test_layout(self, tmp_path) -> None:
        """Test tiles are written to level/x/y.png."""
        store = FileTileStore(tmp_path / "map")
        store.write(1, TilePos(0, 1), red_tile())

        path = tmp_path / "map" / "1" / "0" / "1.png"
        assert store.path_for(1, TilePos(0, 1)) == path
        assert path.is_file()
        assert store.read(1, TilePos(0, 1)).getpixel((3, 3)) == (255, 0, 0, 255)
        assert store.tiles(1) == [TilePos(0, 1)]

    def test_leftover_files_do_not_count(self, tmp_path) -> None:
        """Test files of an earlier pass are not read back."""
        FileTileStore(tmp_path).write(0, TilePos(0, 0), red_tile())
        store = FileTileStore(tmp_path)

        assert not store.exists(0, TilePos(0, 0))
        assert store.read(0, TilePos(0, 0)) is None

    def test_jpeg(self, tmp_path) -> None:
        """Test JPEG tiles are stored without alpha."""
        store = FileTileStore(tmp_path, image_format="jpg")
        store.write(0, TilePos(0, 0), red_tile())

        with Image.open(tmp_path / "0" / "0" / "0.jpg") as image:
            assert image.mode == "RGB"

    def test_metadata(self, tmp_path) -> None:
        """Test map.json holds the given metadata."""
        store = FileTileStore(tmp_path)
        path = store.write_metadata({"depth": 2, "tile_size": 256})

        assert orjson.loads(path.read_bytes()) == {"depth": 2, "tile_size": 256}
