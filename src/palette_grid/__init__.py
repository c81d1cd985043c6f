"""Palette Grid - quantize images to a fixed colour palette and encode them as UV coordinates"""

__version__ = "0.1.0"

from .config import GridConfig
from .errors import (
    PaletteGridError,
    InvalidImageError,
    EmptyPaletteError,
    PaletteLoadError,
    SinkError,
)
from .palette import Palette, sample_palette, load_palette
from .color_utils import lab_distance, nearest_palette_indices
from .quantizer import GridEncoder, encode, downsample
from .uv_codec import index_to_uv, uv_to_index, decode_indices
from .capture import CapturedImage
from .watcher import CaptureWatcher

__all__ = [
    "GridConfig",
    "PaletteGridError",
    "InvalidImageError",
    "EmptyPaletteError",
    "PaletteLoadError",
    "SinkError",
    "Palette",
    "sample_palette",
    "load_palette",
    "lab_distance",
    "nearest_palette_indices",
    "GridEncoder",
    "encode",
    "downsample",
    "index_to_uv",
    "uv_to_index",
    "decode_indices",
    "CapturedImage",
    "CaptureWatcher",
]
