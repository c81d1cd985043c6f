"""
Quantization encoder: image -> palette indices -> "u:v,u:v,..." string
"""

from typing import Optional

import cv2
import numpy as np
from numpy.typing import NDArray

from .color_utils import nearest_palette_indices
from .config import GridConfig
from .errors import EmptyPaletteError, InvalidImageError
from .palette import Palette, as_rgb
from .uv_codec import TOKEN_SEPARATOR, uv_token_table


def _image_array(image) -> NDArray[np.uint8]:
    # CapturedImage and friends expose to_array(); bare arrays pass through
    if hasattr(image, "to_array"):
        image = image.to_array()
    return as_rgb(image)


def _palette_colors(palette, cols: int, rows: int) -> NDArray[np.uint8]:
    colors = np.asarray(getattr(palette, "colors", palette), dtype=np.uint8)
    if colors.size == 0 or cols <= 0 or rows <= 0:
        raise EmptyPaletteError("palette is empty")
    colors = colors.reshape(-1, 3)
    if len(colors) != cols * rows:
        raise EmptyPaletteError(
            f"palette has {len(colors)} colours but grid is {cols}x{rows}"
        )
    return colors


def downsample(image, out_width: int, out_height: int) -> NDArray[np.uint8]:
    """
    Resize to exactly out_width x out_height with nearest-neighbour sampling.

    Each output pixel copies the source pixel under its centre; no blending.
    """
    if out_width <= 0 or out_height <= 0:
        raise ValueError("output dimensions must be > 0")
    img = np.ascontiguousarray(_image_array(image))
    if img.shape[:2] == (out_height, out_width):
        return img.copy()
    return cv2.resize(img, (out_width, out_height), interpolation=cv2.INTER_NEAREST_EXACT)


def quantize(image, palette) -> NDArray[np.intp]:
    """Palette index for every pixel of an (H, W, 3) image."""
    return nearest_palette_indices(_image_array(image), palette)


def traversal_order(indices) -> NDArray:
    """
    Flatten an (H, W) grid column by column, each column bottom to top.
    """
    grid = np.asarray(indices)
    if grid.ndim != 2:
        raise ValueError(f"expected 2-D grid, got shape {grid.shape}")
    return grid[::-1, :].T.reshape(-1)


def encode(
    captured_image,
    palette,
    cols: int,
    rows: int,
    out_width: int,
    out_height: int,
) -> str:
    """
    Encode an image as a comma separated list of palette-cell UV centres.

    Args:
        captured_image: CapturedImage or (H, W, 3|4) uint8 RGB(A) array
        palette: Palette or (cols*rows, 3) uint8 array, row-major
        cols, rows: palette grid geometry
        out_width, out_height: resolution the image is reduced to

    Returns:
        out_width*out_height "u:v" tokens joined by ","

    Raises:
        EmptyPaletteError: palette empty or not cols*rows long
        InvalidImageError: image buffer malformed
        ValueError: non-positive output size
    """
    colors = _palette_colors(palette, cols, rows)
    small = downsample(captured_image, out_width, out_height)
    indices = nearest_palette_indices(small, colors)
    tokens = uv_token_table(cols, rows)
    return TOKEN_SEPARATOR.join(tokens[i] for i in traversal_order(indices))


def render_preview(indices, palette, scale: int = 1) -> NDArray[np.uint8]:
    """
    Paint an (H, W) index grid with its palette colours.

    Returns an RGB image scaled up by `scale` with hard cell edges.
    """
    if scale <= 0:
        raise ValueError("scale must be > 0")
    colors = np.asarray(getattr(palette, "colors", palette), dtype=np.uint8).reshape(-1, 3)
    grid = np.asarray(indices)
    if grid.size and (grid.min() < 0 or grid.max() >= len(colors)):
        raise InvalidImageError("index grid refers to colours outside the palette")
    image = colors[grid]
    if scale > 1:
        image = np.repeat(np.repeat(image, scale, axis=0), scale, axis=1)
    return image


class GridEncoder:
    """Binds one palette and grid geometry for repeated encode calls"""

    def __init__(self, palette: Palette, config: Optional[GridConfig] = None):
        self.config = config or GridConfig(palette_cols=palette.cols, palette_rows=palette.rows)
        if (palette.cols, palette.rows) != (self.config.palette_cols, self.config.palette_rows):
            raise EmptyPaletteError(
                f"palette is {palette.cols}x{palette.rows} but config expects "
                f"{self.config.palette_cols}x{self.config.palette_rows}"
            )
        self.palette = palette

    def encode(self, image) -> str:
        c = self.config
        return encode(image, self.palette, c.palette_cols, c.palette_rows, c.out_width, c.out_height)

    def quantize(self, image) -> NDArray[np.intp]:
        c = self.config
        return quantize(downsample(image, c.out_width, c.out_height), self.palette)
