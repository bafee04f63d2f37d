"""Block textures."""

from .block_textures import BlockTextures, TextureError, block_mask, make_block_image

__all__ = ["BlockTextures", "TextureError", "block_mask", "make_block_image"]
