"""
Texture Size Loading

Reads pixel dimensions of the textures a shape references so face UVs
can be normalized per texture. Only image headers are needed; pixel
data is never decoded.
"""

from pathlib import Path
from typing import Sequence, Tuple, Union
from PIL import Image

from .shape import TextureSizeTable, DEFAULT_TEXTURE_SIZE


def read_texture_size(image_path: Union[str, Path]) -> Tuple[int, int]:
    """
    Get the (width, height) of an image file in pixels.

    Args:
        image_path: Path to the texture image

    Returns:
        (width, height)
    """
    image_path = Path(image_path)
    if not image_path.exists():
        raise FileNotFoundError(f"Texture not found: {image_path}")

    with Image.open(image_path) as img:
        return img.size


def load_texture_sizes(
    image_paths: Sequence[Union[str, Path]],
    default_size: Tuple[int, int] = (DEFAULT_TEXTURE_SIZE, DEFAULT_TEXTURE_SIZE)
) -> TextureSizeTable:
    """
    Build a texture size table from image files.

    The texture index of each image is its position in image_paths.

    Args:
        image_paths: Texture image paths, in texture index order
        default_size: Size for indices beyond the given images

    Returns:
        TextureSizeTable
    """
    sizes = {
        index: read_texture_size(path)
        for index, path in enumerate(image_paths)
    }
    return TextureSizeTable(sizes, default_size=default_size)
