"""
Block texture lookup for the tile renderer.

Every block is drawn from a single ``block_size x block_size`` RGBA image
showing the cube from the viewer's side: a top diamond above the west and
south faces. The directory layout read by `BlockTextures.load`::

    <dir>/textures.json   {"block_size": 16,
                           "blocks": {"1": "stone.png", "9:256": "water_deep.png"}}
    <dir>/stone.png ...

Keys are ``"<id>"`` for the default image of a block id or
``"<id>:<data>"`` for a specific (effective) data value.
"""

import logging
import threading
from pathlib import Path
from typing import Optional

import orjson
from PIL import Image, ImageChops, ImageDraw

from blockmap.world.blocks import AIR, DATA_MASK
from blockmap.world.cache import CollaboratorError

logger = logging.getLogger(__name__)

PLACEHOLDER_COLOR = (255, 0, 255, 255)

Color = tuple[int, int, int, int]


class TextureError(CollaboratorError):
    """Raised when the texture set cannot be loaded."""
    pass


def _hexagon(block_size: int) -> list[tuple[int, int]]:
    last = block_size - 1
    half = block_size // 2
    quarter = block_size // 4
    return [
        (half, 0),
        (last, quarter),
        (last, 3 * quarter),
        (half, last),
        (0, 3 * quarter),
        (0, quarter),
    ]


def block_mask(block_size: int) -> Image.Image:
    """Mask ("L" mode) of the cube silhouette inside a block image."""
    mask = Image.new("L", (block_size, block_size), 0)
    ImageDraw.Draw(mask).polygon(_hexagon(block_size), fill=255)
    return mask


def _shade(color: Color, factor: float) -> Color:
    r, g, b, a = color
    return (int(r * factor), int(g * factor), int(b * factor), a)


def make_block_image(color: Color, block_size: int) -> Image.Image:
    """Draw a flat shaded cube in ``color``.

    The silhouette is exactly `block_mask`, so an opaque color yields an
    opaque block.
    """
    last = block_size - 1
    half = block_size // 2
    quarter = block_size // 4

    image = Image.new("RGBA", (block_size, block_size), (0, 0, 0, 0))
    draw = ImageDraw.Draw(image)
    draw.polygon(_hexagon(block_size), fill=_shade(color, 0.8))
    # south face
    draw.polygon([(half, 2 * quarter), (last, quarter), (last, 3 * quarter), (half, last)],
                 fill=_shade(color, 0.6))
    # top face
    draw.polygon([(half, 0), (last, quarter), (half, 2 * quarter), (0, quarter)], fill=color)
    return image


class BlockTextures:
    """Resolved block images with placeholder fallback.

    Lookups never fail: unknown (id, data) pairs get a magenta placeholder
    cube. Transparency per (id, data) is computed from the image alpha
    inside the cube silhouette and cached; the cache is lock-guarded so one
    instance can serve all workers.
    """

    def __init__(self, block_size: int, images: dict[tuple[int, Optional[int]], Image.Image]):
        """Initialize from already decoded images.

        Args:
            block_size: Edge length of every block image
            images: (id, data) -> image; data None is the default for the id

        Raises:
            TextureError: If an image has the wrong size
        """
        if block_size <= 0 or block_size % 4:
            raise TextureError(f"Block size must be a positive multiple of 4: {block_size}")
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")
        self.block_size = block_size

        self._images: dict[tuple[int, Optional[int]], Image.Image] = {}
        for key, image in images.items():
            if image.size != (block_size, block_size):
                raise TextureError(
                    f"Texture for {key} is {image.size[0]}x{image.size[1]}, expected {block_size}x{block_size}"
                )
            self._images[key] = image.convert("RGBA")

        self._mask = block_mask(block_size)
        self._inverted_mask = ImageChops.invert(self._mask)
        self._empty = Image.new("RGBA", (block_size, block_size), (0, 0, 0, 0))
        self._placeholder = make_block_image(PLACEHOLDER_COLOR, block_size)
        self._transparency: dict[tuple[int, int], bool] = {}
        self._lock = threading.Lock()

    @classmethod
    def load(cls, directory: Path) -> "BlockTextures":
        """Load a texture directory.

        Raises:
            TextureError: If the index or one of the images cannot be read
        """
        directory = Path(directory)
        index_file = directory / "textures.json"
        try:
            index = orjson.loads(index_file.read_bytes())
            block_size = int(index["block_size"])
            entries = dict(index.get("blocks", {}))
        except FileNotFoundError:
            raise TextureError(f"Texture index not found: {index_file}")
        except (OSError, orjson.JSONDecodeError, KeyError, TypeError, ValueError) as e:
            raise TextureError(f"Unable to read texture index {index_file}: {e}")

        images: dict[tuple[int, Optional[int]], Image.Image] = {}
        for key, filename in entries.items():
            try:
                block_id, _, data = str(key).partition(":")
                parsed = (int(block_id), int(data) if data else None)
            except ValueError:
                raise TextureError(f"Invalid texture key '{key}' in {index_file}")
            try:
                with Image.open(directory / filename) as image:
                    images[parsed] = image.convert("RGBA")
            except OSError as e:
                raise TextureError(f"Unable to read texture {filename}: {e}")

        logger.info(f"Loaded {len(images)} block textures from {directory}")
        return cls(block_size, images)

    def save(self, directory: Path) -> None:
        """Write all images and the index in the layout read by `load`."""
        directory = Path(directory)
        directory.mkdir(parents=True, exist_ok=True)
        blocks: dict[str, str] = {}
        for (block_id, data), image in sorted(self._images.items(), key=lambda kv: (kv[0][0], kv[0][1] or -1)):
            key = str(block_id) if data is None else f"{block_id}:{data}"
            filename = f"block_{key.replace(':', '_')}.png"
            image.save(directory / filename)
            blocks[key] = filename
        payload = {"block_size": self.block_size, "blocks": blocks}
        (directory / "textures.json").write_bytes(orjson.dumps(payload, option=orjson.OPT_INDENT_2))

    def has_texture(self, block_id: int, data: Optional[int] = None) -> bool:
        return (block_id, data) in self._images

    def texture_for(self, block_id: int, data: int) -> Image.Image:
        """Image for a block with its effective data.

        Lookup order: exact data, raw data, id default, placeholder.
        """
        if block_id == AIR:
            return self._empty
        for key in ((block_id, data), (block_id, data & DATA_MASK), (block_id, None)):
            image = self._images.get(key)
            if image is not None:
                return image
        return self._placeholder

    def is_transparent(self, block_id: int, data: int) -> bool:
        """Whether anything behind the block can show through its silhouette."""
        if block_id == AIR:
            return True
        key = (block_id, data)
        with self._lock:
            cached = self._transparency.get(key)
        if cached is not None:
            return cached

        alpha = self.texture_for(block_id, data).getchannel("A")
        # pixels outside the silhouette count as fully opaque
        lowest, _ = ImageChops.lighter(alpha, self._inverted_mask).getextrema()
        transparent = lowest < 255
        with self._lock:
            self._transparency[key] = transparent
        return transparent
