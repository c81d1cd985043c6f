"""
Palette sampler: pick one representative colour per cell of a reference image
"""

import math
from pathlib import Path
from typing import Iterator, List, Optional, Tuple, Union

import cv2
import numpy as np
from numpy.typing import NDArray

from .config import DEFAULT_PALETTE_PATH, PALETTE_COLS, PALETTE_ROWS, PATCH_RADIUS
from .errors import EmptyPaletteError, InvalidImageError, PaletteLoadError

Color = Tuple[int, int, int]


class Palette:
    """
    Immutable, row-major sequence of cols x rows RGB colours.

    Index i maps to (row, col) = (i // cols, i % cols); row 0 is the top row
    of the reference image.
    """

    def __init__(self, colors, cols: int, rows: int):
        arr = np.array(colors, dtype=np.uint8)
        if cols <= 0 or rows <= 0 or arr.size == 0:
            raise EmptyPaletteError("palette must contain at least one cell")
        if arr.size % 3:
            raise EmptyPaletteError(f"palette data holds {arr.size} values, not whole RGB triples")
        arr = arr.reshape(-1, 3)
        if len(arr) != cols * rows:
            raise EmptyPaletteError(
                f"palette has {len(arr)} colours, expected {cols}x{rows}={cols * rows}"
            )
        arr.setflags(write=False)
        self._colors = arr
        self.cols = int(cols)
        self.rows = int(rows)

    @property
    def colors(self) -> NDArray[np.uint8]:
        """Read-only (N, 3) uint8 view"""
        return self._colors

    def __len__(self) -> int:
        return len(self._colors)

    def __getitem__(self, index: int) -> Color:
        r, g, b = self._colors[index]
        return int(r), int(g), int(b)

    def __iter__(self) -> Iterator[Color]:
        for i in range(len(self)):
            yield self[i]

    def __eq__(self, other) -> bool:
        if not isinstance(other, Palette):
            return NotImplemented
        return (
            self.cols == other.cols
            and self.rows == other.rows
            and np.array_equal(self._colors, other._colors)
        )

    def __hash__(self) -> int:
        return hash((self.cols, self.rows, self._colors.tobytes()))

    def __repr__(self) -> str:
        return f"Palette(cols={self.cols}, rows={self.rows})"

    def index_to_cell(self, index: int) -> Tuple[int, int]:
        if not 0 <= index < len(self):
            raise IndexError(f"palette index {index} out of range")
        return index // self.cols, index % self.cols

    def to_list(self) -> List[Color]:
        return list(self)


def as_rgb(image) -> NDArray[np.uint8]:
    """Coerce an (H, W), (H, W, 3) or (H, W, 4) uint8 array to (H, W, 3) RGB."""
    arr = np.asarray(image)
    if arr.dtype != np.uint8:
        raise InvalidImageError(f"image must be uint8, got {arr.dtype}")
    if arr.ndim == 2:
        arr = np.repeat(arr[:, :, None], 3, axis=2)
    if arr.ndim != 3 or arr.shape[2] not in (3, 4):
        raise InvalidImageError(f"image must be (H, W, 3|4), got shape {arr.shape}")
    if arr.shape[0] < 1 or arr.shape[1] < 1:
        raise InvalidImageError("image must be at least 1x1 pixels")
    return arr[:, :, :3]


def _cell_center(index: int, cells: int, extent: int) -> int:
    # single-precision like the reference build, rounded half away from zero
    cell = np.float32(extent) / np.float32(cells)
    pos = float(np.float32(index + 0.5) * cell)
    return min(int(math.floor(pos + 0.5)), extent - 1)


def average_patch(image, cx: int, cy: int, radius: int = PATCH_RADIUS) -> Color:
    """
    Average a (2r+1)x(2r+1) neighbourhood around (cx, cy).

    Reads outside the image are clamped to the nearest edge pixel, so every
    patch averages the same number of reads. Channel means are truncated.
    """
    img = as_rgb(image)
    h, w = img.shape[:2]
    offsets = np.arange(-radius, radius + 1)
    xs = np.clip(cx + offsets, 0, w - 1)
    ys = np.clip(cy + offsets, 0, h - 1)
    patch = img[ys][:, xs].reshape(-1, 3).astype(np.uint32)
    r, g, b = patch.sum(axis=0) // len(patch)
    return int(r), int(g), int(b)


def sample_palette(reference_image, cols: int = PALETTE_COLS, rows: int = PALETTE_ROWS) -> Palette:
    """
    Sample one colour per grid cell of a reference image.

    Args:
        reference_image: (H, W, 3|4) RGB(A) or (H, W) grey uint8 array
        cols: palette cells per row
        rows: palette rows

    Returns:
        Palette of cols*rows colours, row-major from the top-left cell
    """
    if cols <= 0 or rows <= 0:
        raise EmptyPaletteError("cols and rows must be > 0")
    img = as_rgb(reference_image)
    h, w = img.shape[:2]

    colors = []
    for row in range(rows):
        cy = _cell_center(row, rows, h)
        for col in range(cols):
            cx = _cell_center(col, cols, w)
            colors.append(average_patch(img, cx, cy))

    return Palette(colors, cols, rows)


def decode_reference_image(data: bytes) -> NDArray[np.uint8]:
    """Decode encoded image bytes (PNG, PPM, ...) into an RGB array."""
    buf = np.frombuffer(data, dtype=np.uint8)
    if buf.size == 0:
        raise PaletteLoadError("reference image is empty")
    img = cv2.imdecode(buf, cv2.IMREAD_COLOR)
    if img is None:
        raise PaletteLoadError("reference image could not be decoded")
    return cv2.cvtColor(img, cv2.COLOR_BGR2RGB)


def load_reference_image(path: Union[str, Path]) -> NDArray[np.uint8]:
    path = Path(path)
    try:
        data = path.read_bytes()
    except OSError as e:
        raise PaletteLoadError(f"cannot read reference image {path}: {e}") from e
    return decode_reference_image(data)


def load_palette(
    path: Optional[Union[str, Path]] = None,
    cols: int = PALETTE_COLS,
    rows: int = PALETTE_ROWS,
) -> Palette:
    """Load the reference image (bundled one by default) and sample it."""
    if path is None:
        path = DEFAULT_PALETTE_PATH
    return sample_palette(load_reference_image(path), cols, rows)
