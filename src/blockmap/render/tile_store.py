"""
Storage for rendered tiles.

Each tile is written by exactly one worker, but the index of existing
tiles is shared by all of them and kept behind a lock.
"""

import logging
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Optional

import orjson
from PIL import Image

from blockmap.world.positions import TilePos

logger = logging.getLogger(__name__)

TileKey = tuple[int, TilePos]


class TileIndex:
    """Thread-safe set of (level, tile) keys."""

    def __init__(self):
        self._keys: set[TileKey] = set()
        self._lock = threading.Lock()

    def add(self, level: int, tile: TilePos) -> None:
        with self._lock:
            self._keys.add((level, tile))

    def discard(self, level: int, tile: TilePos) -> None:
        with self._lock:
            self._keys.discard((level, tile))

    def __contains__(self, key: TileKey) -> bool:
        with self._lock:
            return key in self._keys

    def tiles(self, level: int) -> list[TilePos]:
        with self._lock:
            found = [tile for key_level, tile in self._keys if key_level == level]
        return sorted(found, key=lambda t: (t.y, t.x))

    def clear(self) -> None:
        with self._lock:
            self._keys.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._keys)


class TileStore(ABC):
    """Where the dispatcher reads and writes tiles."""

    def __init__(self):
        self.index = TileIndex()

    def exists(self, level: int, tile: TilePos) -> bool:
        return (level, tile) in self.index

    def tiles(self, level: int) -> list[TilePos]:
        """Existing tiles of a level, row by row."""
        return self.index.tiles(level)

    @abstractmethod
    def write(self, level: int, tile: TilePos, image: Image.Image) -> None:
        """Store a tile and record it in the index."""

    @abstractmethod
    def read(self, level: int, tile: TilePos) -> Optional[Image.Image]:
        """Stored tile, or None if it does not exist."""


class MemoryTileStore(TileStore):
    """Keeps tiles in memory and remembers the order they were written in."""

    def __init__(self):
        super().__init__()
        self._images: dict[TileKey, Image.Image] = {}
        self._lock = threading.Lock()
        self.write_log: list[TileKey] = []

    def write(self, level: int, tile: TilePos, image: Image.Image) -> None:
        with self._lock:
            self._images[(level, tile)] = image.copy()
            self.write_log.append((level, tile))
        self.index.add(level, tile)

    def read(self, level: int, tile: TilePos) -> Optional[Image.Image]:
        with self._lock:
            image = self._images.get((level, tile))
        return image.copy() if image is not None else None


class FileTileStore(TileStore):
    """Tiles as image files under ``<root>/<level>/<x>/<y>.<ext>``.

    Only tiles written through this instance count as existing; files
    left over from an earlier pass are overwritten, never read.
    """

    def __init__(self, root: Path, image_format: str = "png"):
        super().__init__()
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")
        self.root = Path(root)
        self.image_format = image_format.lower()
        self.root.mkdir(parents=True, exist_ok=True)

    def path_for(self, level: int, tile: TilePos) -> Path:
        return self.root / str(level) / str(tile.x) / f"{tile.y}.{self.image_format}"

    def write(self, level: int, tile: TilePos, image: Image.Image) -> None:
        path = self.path_for(level, tile)
        path.parent.mkdir(parents=True, exist_ok=True)
        if self.image_format in ("jpg", "jpeg"):
            image = image.convert("RGB")
        image.save(path)
        self.index.add(level, tile)

    def read(self, level: int, tile: TilePos) -> Optional[Image.Image]:
        if not self.exists(level, tile):
            return None
        with Image.open(self.path_for(level, tile)) as image:
            return image.convert("RGBA")

    def write_metadata(self, metadata: dict[str, Any]) -> Path:
        """Write ``map.json`` describing the tile pyramid for a viewer."""
        path = self.root / "map.json"
        path.write_bytes(orjson.dumps(metadata, option=orjson.OPT_INDENT_2 | orjson.OPT_SORT_KEYS))
        return path

