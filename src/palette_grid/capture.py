"""
Capture sources - produce CapturedImage values from the clipboard or a file
"""
import dataclasses
import hashlib
import sys
from pathlib import Path
from typing import Optional, Union

import cv2
import numpy as np
from numpy.typing import NDArray

from .errors import InvalidImageError

CHANNELS = {"RGB": 3, "RGBA": 4}


@dataclasses.dataclass(frozen=True)
class CapturedImage:
    """Raw pixel buffer with its declared geometry, top-left origin, row-major"""

    width: int
    height: int
    pixels: bytes
    mode: str = "RGBA"

    @property
    def channels(self) -> int:
        if self.mode not in CHANNELS:
            raise InvalidImageError(f"unsupported pixel format {self.mode!r}")
        return CHANNELS[self.mode]

    def to_array(self) -> NDArray[np.uint8]:
        """
        Validate the buffer and return it as an (H, W, 3) RGB array.

        Raises:
            InvalidImageError: non-positive size, unknown mode or length mismatch
        """
        channels = self.channels
        if self.width <= 0 or self.height <= 0:
            raise InvalidImageError(f"invalid image size {self.width}x{self.height}")
        expected = self.width * self.height * channels
        if len(self.pixels) != expected:
            raise InvalidImageError(
                f"buffer holds {len(self.pixels)} bytes, "
                f"{self.width}x{self.height} {self.mode} needs {expected}"
            )
        arr = np.frombuffer(self.pixels, dtype=np.uint8).reshape(self.height, self.width, channels)
        return arr[:, :, :3]

    @classmethod
    def from_array(cls, array) -> "CapturedImage":
        arr = np.asarray(array)
        if arr.dtype != np.uint8 or arr.ndim != 3 or arr.shape[2] not in (3, 4):
            raise InvalidImageError(f"expected (H, W, 3|4) uint8 array, got {arr.dtype} {arr.shape}")
        mode = "RGB" if arr.shape[2] == 3 else "RGBA"
        return cls(width=arr.shape[1], height=arr.shape[0], pixels=arr.tobytes(), mode=mode)

    def digest(self) -> str:
        """Content hash used for change detection between polls"""
        h = hashlib.blake2b(digest_size=16)
        h.update(f"{self.mode}:{self.width}x{self.height}:".encode("ascii"))
        h.update(self.pixels)
        return h.hexdigest()


class ClipboardSource:
    """Reads bitmap images from the system clipboard via Pillow"""

    name = "clipboard"

    def grab(self) -> Optional[CapturedImage]:
        """
        Returns:
            CapturedImage, or None when the clipboard holds no image
        """
        from PIL import Image, ImageGrab

        try:
            content = ImageGrab.grabclipboard()
        except (OSError, NotImplementedError) as e:
            # no clipboard tool available on this platform
            print(f"[CAPTURE] Clipboard unavailable: {e}", file=sys.stderr)
            return None

        if not isinstance(content, Image.Image):
            return None
        rgba = content.convert("RGBA")
        return CapturedImage(width=rgba.width, height=rgba.height, pixels=rgba.tobytes(), mode="RGBA")

    def close(self):
        pass


class FileSource:
    """Reads an image file; returns None while it is missing or unreadable"""

    name = "file"

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def grab(self) -> Optional[CapturedImage]:
        if not self.path.is_file():
            return None
        data = np.fromfile(str(self.path), dtype=np.uint8)
        if data.size == 0:
            return None
        img = cv2.imdecode(data, cv2.IMREAD_UNCHANGED)
        if img is None:
            # partially written file; pick it up on the next poll
            return None
        if img.ndim == 2:
            img = cv2.cvtColor(img, cv2.COLOR_GRAY2RGB)
        elif img.shape[2] == 4:
            img = cv2.cvtColor(img, cv2.COLOR_BGRA2RGBA)
        else:
            img = cv2.cvtColor(img, cv2.COLOR_BGR2RGB)
        if img.dtype == np.uint16:
            img = (img // 257).astype(np.uint8)
        elif img.dtype in (np.float32, np.float64):
            # floating point files (TIFF, EXR) store 0.0-1.0 per channel
            img = (np.clip(img, 0.0, 1.0) * 255.0 + 0.5).astype(np.uint8)
        return CapturedImage.from_array(img)

    def close(self):
        pass
