"""
Exception types raised by the quantization pipeline and its collaborators
"""


class PaletteGridError(Exception):
    """Base class for all palette-grid failures"""


class InvalidImageError(PaletteGridError, ValueError):
    """Pixel buffer does not match its declared size or format"""


class EmptyPaletteError(PaletteGridError, ValueError):
    """Palette has no cells, or its length disagrees with the grid geometry"""


class PaletteLoadError(PaletteGridError, RuntimeError):
    """Reference image could not be read or decoded"""


class SinkError(PaletteGridError, RuntimeError):
    """Encoded string could not be persisted"""
