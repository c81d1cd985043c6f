"""
Perceptual colour distance and nearest-palette lookup
"""

import numpy as np
from numpy.typing import NDArray
from skimage import color

from .errors import EmptyPaletteError, InvalidImageError


def rgb_to_lab(colors) -> NDArray[np.float64]:
    """
    Convert 8-bit sRGB colours to CIE L*a*b* (D65, 2 degree observer).

    Args:
        colors: array-like with last axis of length 3, values 0-255

    Returns:
        float64 array of the same shape: L in [0, 100], a/b roughly [-128, 127]
    """
    arr = np.asarray(colors)
    if arr.shape[-1:] != (3,):
        raise InvalidImageError(f"colours must have 3 channels, got shape {arr.shape}")
    shape = arr.shape
    rgb = arr.reshape(-1, 1, 3).astype(np.float64) / 255.0
    lab = color.rgb2lab(rgb)
    return lab.reshape(shape)


def lab_distance(a, b) -> float:
    """Euclidean distance between two RGB colours in L*a*b* space."""
    lab = rgb_to_lab(np.array([a, b], dtype=np.uint8))
    return float(np.sqrt(np.sum((lab[0] - lab[1]) ** 2)))


def nearest_palette_indices(pixels, palette) -> NDArray[np.intp]:
    """
    Index of the perceptually closest palette entry for every pixel.

    Linear search over the whole palette. Ties go to the lowest index.

    Args:
        pixels: (..., 3) uint8 RGB
        palette: Palette or (N, 3) uint8 RGB array

    Returns:
        int array with the leading shape of `pixels`
    """
    colors = np.asarray(getattr(palette, "colors", palette))
    if colors.size == 0:
        raise EmptyPaletteError("palette is empty")

    arr = np.asarray(pixels)
    lead = arr.shape[:-1]
    pixel_lab = rgb_to_lab(arr).reshape(-1, 3)
    palette_lab = rgb_to_lab(colors.reshape(-1, 3))

    # (num_pixels, num_colors)
    diff = pixel_lab[:, None, :] - palette_lab[None, :, :]
    distances = np.sqrt(np.sum(diff ** 2, axis=2))
    return np.argmin(distances, axis=1).reshape(lead)


class ColorDetector:
    """Detects which palette entry a pixel belongs to"""

    def __init__(self, palette):
        self.palette = palette

    def detect_color(self, pixel) -> int:
        """
        Determine which colour the pixel is closest to.

        Args:
            pixel: (R, G, B) tuple

        Returns:
            color_index (0 to len(palette)-1)
        """
        pixel = np.array([pixel], dtype=np.uint8)
        return int(nearest_palette_indices(pixel, self.palette)[0])

    def detect_colors_batch(self, image_region) -> NDArray[np.intp]:
        """
        Detect colours for a region of pixels at once.

        Args:
            image_region: shape (H, W, 3) RGB image

        Returns:
            color_indices: shape (H, W)
        """
        return nearest_palette_indices(image_region, self.palette)
