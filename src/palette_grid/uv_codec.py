"""
UV coordinate codec: palette index <-> "u:v" token, and whole-grid strings
"""

import math
from typing import List, Tuple

import numpy as np
from numpy.typing import NDArray

from .config import UV_DECIMALS

TOKEN_SEPARATOR = ","
UV_SEPARATOR = ":"


def index_to_uv(index: int, cols: int, rows: int) -> Tuple[float, float]:
    """
    Centre of a palette cell in normalised texture space.

    v is measured from the bottom row, so row 0 (top of the reference image)
    gets the largest v.
    """
    if cols <= 0 or rows <= 0:
        raise ValueError("cols/rows must be > 0")
    if not 0 <= index < cols * rows:
        raise ValueError(f"index {index} outside palette of {cols * rows} cells")
    row = index // cols
    col = index % cols
    row_from_bottom = rows - 1 - row
    u = (col + 0.5) / cols
    v = (row_from_bottom + 0.5) / rows
    return u, v


def uv_to_cell(u: float, v: float, cols: int, rows: int) -> Tuple[int, int]:
    """Inverse of index_to_uv: returns (row, col), row counted from the top."""
    col = min(max(int(math.floor(u * cols)), 0), cols - 1)
    row_from_bottom = min(max(int(math.floor(v * rows)), 0), rows - 1)
    return rows - 1 - row_from_bottom, col


def uv_to_index(u: float, v: float, cols: int, rows: int) -> int:
    row, col = uv_to_cell(u, v, cols, rows)
    return row * cols + col


def format_token(u: float, v: float, decimals: int = UV_DECIMALS) -> str:
    return f"{u:.{decimals}f}{UV_SEPARATOR}{v:.{decimals}f}"


def uv_token_table(cols: int, rows: int) -> List[str]:
    """Token for every palette index, in index order."""
    return [format_token(*index_to_uv(i, cols, rows)) for i in range(cols * rows)]


def parse_encoded(text: str) -> List[Tuple[float, float]]:
    """
    Split an encoded string back into (u, v) pairs.

    Raises:
        ValueError: on empty input or a malformed token
    """
    if not text:
        raise ValueError("encoded string is empty")
    pairs = []
    for position, token in enumerate(text.split(TOKEN_SEPARATOR)):
        parts = token.split(UV_SEPARATOR)
        if len(parts) != 2:
            raise ValueError(f"malformed token {token!r} at position {position}")
        try:
            u, v = float(parts[0]), float(parts[1])
        except ValueError:
            raise ValueError(f"malformed token {token!r} at position {position}") from None
        pairs.append((u, v))
    return pairs


def decode_indices(
    text: str, cols: int, rows: int, out_width: int, out_height: int
) -> NDArray[np.intp]:
    """
    Rebuild the (out_height, out_width) palette-index grid from an encoded string.

    Tokens arrive column by column, each column bottom to top.
    """
    pairs = parse_encoded(text)
    expected = out_width * out_height
    if len(pairs) != expected:
        raise ValueError(f"expected {expected} tokens, got {len(pairs)}")

    flat = np.array([uv_to_index(u, v, cols, rows) for u, v in pairs], dtype=np.intp)
    # flat[x * H + k] holds pixel (y = H - 1 - k, x)
    return flat.reshape(out_width, out_height).T[::-1, :].copy()
