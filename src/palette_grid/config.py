"""Configuration shared by the encoder, the watcher and any consumer of the grid."""

import dataclasses
from pathlib import Path

# Output grid resolution. Changing either value changes the encoded schema.
OUTPUT_WIDTH = 100
OUTPUT_HEIGHT = 66

# Palette layout inside the reference image (row-major cells).
PALETTE_COLS = 7
PALETTE_ROWS = 6

# Averaging patch half-size: 1 -> 3x3 pixels around each cell centre.
PATCH_RADIUS = 1

# Digits after the decimal point for each u/v value.
UV_DECIMALS = 2

# Seconds between capture polls.
POLL_INTERVAL = 1.0

# Registry location read by the consumer (HKEY_CURRENT_USER).
REGISTRY_PATH = "Software\\jrsjams\\MageArena"
REGISTRY_VALUE_NAME = "flagGrid_h3042110417"

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

DEFAULT_PALETTE_PATH = Path(__file__).parent / "data" / "palette.ppm"


@dataclasses.dataclass(frozen=True)
class GridConfig:
    palette_cols: int = PALETTE_COLS
    palette_rows: int = PALETTE_ROWS
    out_width: int = OUTPUT_WIDTH
    out_height: int = OUTPUT_HEIGHT

    def __post_init__(self):
        for field in dataclasses.fields(self):
            value = getattr(self, field.name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise TypeError(f"{field.name} must be an int")
            if value <= 0:
                raise ValueError(f"{field.name} must be > 0")

    @classmethod
    def default(cls) -> "GridConfig":
        return cls()

    @property
    def palette_size(self) -> int:
        return self.palette_cols * self.palette_rows

    @property
    def token_count(self) -> int:
        return self.out_width * self.out_height
