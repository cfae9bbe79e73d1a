"""
Image Stitcher - composite ordered tiles into one tall image

Tiles are pasted top to bottom in plan order. Where two tiles overlap the
later one wins: it was taken after the page had settled further.
"""

import io
import logging
from dataclasses import dataclass
from typing import Iterable, Sequence, Tuple

from PIL import Image

from .capturer import Tile
from .exceptions import StitchError

logger = logging.getLogger(__name__)

WHITE = (255, 255, 255, 255)

_PIL_FORMATS = {"png": "PNG", "jpeg": "JPEG"}


@dataclass(frozen=True)
class Layer:
    """Encoded raster placed at (x, y) on the canvas"""
    image: bytes
    x: int
    y: int


class Canvas:
    """Thin wrapper over a Pillow RGBA image"""

    def __init__(self, image: Image.Image):
        self._image = image

    @classmethod
    def create(cls, width: int, height: int, background: Tuple[int, int, int, int] = WHITE) -> 'Canvas':
        if width <= 0 or height <= 0:
            raise StitchError(f"Invalid canvas size {width}x{height}")
        try:
            image = Image.new("RGBA", (width, height), background)
        except (ValueError, MemoryError) as e:
            raise StitchError(f"Could not allocate {width}x{height} canvas: {e}") from e
        return cls(image)

    @property
    def size(self) -> Tuple[int, int]:
        return self._image.size

    def composite(self, layers: Iterable[Layer]) -> 'Canvas':
        """Paste layers in order; later layers overwrite earlier ones."""
        for layer in layers:
            try:
                with Image.open(io.BytesIO(layer.image)) as tile:
                    self._image.paste(tile.convert("RGBA"), (layer.x, layer.y))
            except (OSError, ValueError, Image.DecompressionBombError) as e:
                raise StitchError(f"Could not composite tile at y={layer.y}: {e}") from e
        return self

    def encode(self, image_format: str = "png") -> bytes:
        pil_format = _PIL_FORMATS.get(image_format.lower())
        if pil_format is None:
            raise StitchError(f"Unsupported image format: {image_format}")
        image = self._image if pil_format == "PNG" else self._image.convert("RGB")
        buffer = io.BytesIO()
        try:
            image.save(buffer, format=pil_format)
        except (OSError, ValueError) as e:
            raise StitchError(f"Could not encode {image_format}: {e}") from e
        return buffer.getvalue()


def stitch(
    tiles: Sequence[Tile],
    total_height: int,
    viewport_width: int,
    image_format: str = "png",
) -> bytes:
    """
    Stitch tiles into a single image of ``viewport_width`` x ``total_height``.

    Args:
        tiles: Tiles in plan (ascending offset) order
        total_height: Canvas height, the page height measured before tiling
        viewport_width: Canvas width
        image_format: "png" or "jpeg"

    Returns:
        Encoded image bytes

    Raises:
        StitchError: allocation, decoding, compositing or encoding failed
    """
    if not tiles:
        raise StitchError("No tiles to stitch")

    canvas = Canvas.create(viewport_width, total_height)
    canvas.composite(Layer(image=tile.image, x=0, y=tile.offset) for tile in tiles)
    data = canvas.encode(image_format)
    logger.debug(
        f"Stitched {len(tiles)} tile(s) into {viewport_width}x{total_height} "
        f"{image_format} ({len(data)} bytes)"
    )
    return data
