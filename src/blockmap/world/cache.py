"""
World access for rendering.

A world is a set of chunk columns (16x16 blocks, ``min_z..max_z`` high)
holding a block id and a data value per block. Renderers only need
``block_at`` plus the list of loaded chunks; how chunks are stored is up
to the implementation.

On-disk layout read by `WorldCache`::

    <world>/world.json            {"name": ..., "min_z": 0, "max_z": 63}
    <world>/chunks/<cx>.<cy>.json {"x": cx, "y": cy, "blocks": [...], "data": [...]}

``blocks`` and ``data`` are flat z-major arrays with
``16 * 16 * (max_z - min_z + 1)`` entries.
"""

import logging
import threading
from abc import ABC, abstractmethod
from collections import OrderedDict
from pathlib import Path
from typing import Iterable, Optional

import orjson

from .blocks import AIR
from .positions import BlockPos, ChunkPos, CHUNK_SIZE

logger = logging.getLogger(__name__)

# (block id, data) or None for positions in chunks that are not loaded
Block = Optional[tuple[int, int]]


class CollaboratorError(Exception):
    """A data source the renderer depends on is unusable. Aborts a render pass."""
    pass


class WorldError(CollaboratorError):
    """Raised when world data cannot be read."""
    pass


class World(ABC):
    """Read-only block source used by the tile renderer.

    Implementations must be safe for concurrent reads.
    """

    min_z: int
    max_z: int

    @abstractmethod
    def block_at(self, pos: BlockPos) -> Block:
        """Return (id, data) at ``pos``, or None if its chunk is not loaded.

        Must not raise for positions outside the loaded area.
        """

    @abstractmethod
    def chunk_positions(self) -> Iterable[ChunkPos]:
        """All chunks that hold data."""

    @property
    def height(self) -> int:
        return self.max_z - self.min_z + 1


class ChunkData:
    """Decoded block arrays of one chunk column."""

    def __init__(self, pos: ChunkPos, min_z: int, height: int,
                 blocks: list[int], data: list[int]):
        expected = CHUNK_SIZE * CHUNK_SIZE * height
        if len(blocks) != expected or len(data) != expected:
            raise ValueError(
                f"Chunk {pos.x},{pos.y} has {len(blocks)}/{len(data)} entries, expected {expected}"
            )
        self.pos = pos
        self.min_z = min_z
        self.height = height
        self.blocks = blocks
        self.data = data

    def _index(self, lx: int, ly: int, z: int) -> int:
        return ((z - self.min_z) * CHUNK_SIZE + ly) * CHUNK_SIZE + lx

    def get(self, lx: int, ly: int, z: int) -> tuple[int, int]:
        if not 0 <= z - self.min_z < self.height:
            return (AIR, 0)
        index = self._index(lx, ly, z)
        return (self.blocks[index], self.data[index])


class MemoryWorld(World):
    """Dict-backed world, mainly for tests and generated scenes.

    A chunk counts as loaded as soon as one block in it was set.
    """

    def __init__(self, min_z: int = 0, max_z: int = 63):
        if max_z < min_z:
            raise ValueError(f"Invalid height range {min_z}..{max_z}")
        self.min_z = min_z
        self.max_z = max_z
        self._blocks: dict[BlockPos, tuple[int, int]] = {}
        self._chunks: set[ChunkPos] = set()

    def set_block(self, pos: BlockPos, block_id: int, data: int = 0) -> None:
        if not self.min_z <= pos.z <= self.max_z:
            raise ValueError(f"Block {pos} is outside height range {self.min_z}..{self.max_z}")
        self._chunks.add(pos.chunk)
        if block_id == AIR:
            self._blocks.pop(pos, None)
        else:
            self._blocks[pos] = (block_id, data)

    def fill(self, start: BlockPos, end: BlockPos, block_id: int, data: int = 0) -> None:
        """Set every block of the inclusive box between ``start`` and ``end``."""
        for z in range(min(start.z, end.z), max(start.z, end.z) + 1):
            for y in range(min(start.y, end.y), max(start.y, end.y) + 1):
                for x in range(min(start.x, end.x), max(start.x, end.x) + 1):
                    self.set_block(BlockPos(x, y, z), block_id, data)

    def load_chunk(self, chunk: ChunkPos) -> None:
        """Mark a chunk as loaded without placing blocks (all air)."""
        self._chunks.add(chunk)

    def block_at(self, pos: BlockPos) -> Block:
        if pos.chunk not in self._chunks:
            return None
        return self._blocks.get(pos, (AIR, 0))

    def chunk_positions(self) -> Iterable[ChunkPos]:
        return sorted(self._chunks, key=lambda c: (c.y, c.x))

    def save(self, path: Path, name: str = "world") -> None:
        """Write the world in the directory layout read by `WorldCache`."""
        path = Path(path)
        chunk_dir = path / "chunks"
        chunk_dir.mkdir(parents=True, exist_ok=True)
        (path / "world.json").write_bytes(
            orjson.dumps({"name": name, "min_z": self.min_z, "max_z": self.max_z})
        )
        size = CHUNK_SIZE * CHUNK_SIZE * self.height
        for chunk in self.chunk_positions():
            blocks = [AIR] * size
            data = [0] * size
            ox, oy = chunk.origin
            for z in range(self.min_z, self.max_z + 1):
                for ly in range(CHUNK_SIZE):
                    for lx in range(CHUNK_SIZE):
                        block = self._blocks.get(BlockPos(ox + lx, oy + ly, z))
                        if block:
                            index = ((z - self.min_z) * CHUNK_SIZE + ly) * CHUNK_SIZE + lx
                            blocks[index], data[index] = block
            payload = {"x": chunk.x, "y": chunk.y, "blocks": blocks, "data": data}
            (chunk_dir / f"{chunk.x}.{chunk.y}.json").write_bytes(orjson.dumps(payload))
        logger.debug(f"Saved {len(self._chunks)} chunks to {path}")


class WorldCache(World):
    """World read from a chunk directory with an LRU of decoded chunks.

    Chunk files are discovered once on construction; decoding happens on
    first access. The cache is guarded by a lock so workers can share one
    instance.
    """

    def __init__(self, path: Path, cache_size: int = 256):
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")
        self.path = Path(path)
        self.cache_size = cache_size

        meta_file = self.path / "world.json"
        try:
            meta = orjson.loads(meta_file.read_bytes())
            self.name = str(meta.get("name", self.path.name))
            self.min_z = int(meta.get("min_z", 0))
            self.max_z = int(meta["max_z"])
        except FileNotFoundError:
            raise WorldError(f"World metadata not found: {meta_file}")
        except (OSError, orjson.JSONDecodeError, KeyError, TypeError, ValueError) as e:
            raise WorldError(f"Unable to read world metadata {meta_file}: {e}")

        self._files: dict[ChunkPos, Path] = {}
        chunk_dir = self.path / "chunks"
        if chunk_dir.is_dir():
            for chunk_file in chunk_dir.glob("*.json"):
                parts = chunk_file.stem.split(".")
                try:
                    chunk = ChunkPos(int(parts[0]), int(parts[1]))
                except (IndexError, ValueError):
                    self.logger.warning(f"Ignoring unexpected file in chunk directory: {chunk_file.name}")
                    continue
                self._files[chunk] = chunk_file
        else:
            self.logger.warning(f"World {self.name} has no chunk directory")

        self._cache: OrderedDict[ChunkPos, ChunkData] = OrderedDict()
        self._lock = threading.Lock()
        self.logger.info(f"Opened world '{self.name}' with {len(self._files)} chunks")

    def chunk_positions(self) -> Iterable[ChunkPos]:
        return sorted(self._files, key=lambda c: (c.y, c.x))

    def _load_chunk(self, chunk: ChunkPos) -> ChunkData:
        chunk_file = self._files[chunk]
        try:
            payload = orjson.loads(chunk_file.read_bytes())
            return ChunkData(chunk, self.min_z, self.height, payload["blocks"], payload["data"])
        except (OSError, orjson.JSONDecodeError, KeyError, TypeError, ValueError) as e:
            raise WorldError(f"Corrupt chunk file {chunk_file}: {e}")

    def get_chunk(self, chunk: ChunkPos) -> Optional[ChunkData]:
        """Decoded chunk, or None if the world has no such chunk."""
        if chunk not in self._files:
            return None
        with self._lock:
            cached = self._cache.get(chunk)
            if cached is not None:
                self._cache.move_to_end(chunk)
                return cached

        # decode outside the lock; a concurrent duplicate decode is harmless
        data = self._load_chunk(chunk)
        with self._lock:
            self._cache[chunk] = data
            while len(self._cache) > self.cache_size:
                self._cache.popitem(last=False)
        return data

    def block_at(self, pos: BlockPos) -> Block:
        chunk = self.get_chunk(pos.chunk)
        if chunk is None:
            return None
        lx, ly = pos.local
        return chunk.get(lx, ly, pos.z)
