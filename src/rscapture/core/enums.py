"""Core enumerations for rscapture."""

from enum import Enum, auto
from typing import Tuple


class StreamKind(str, Enum):
    """Sensor a frame was captured from."""
    DEPTH = "depth"
    COLOR = "color"
    INFRARED = "infrared"

    @property
    def channels(self) -> int:
        """Channel count of the exported PNG for this kind."""
        return _KIND_CHANNELS[self]

    @property
    def label(self) -> str:
        """Human-readable stream type, as written in metadata sidecars."""
        return _KIND_LABELS[self]


_KIND_CHANNELS = {
    StreamKind.DEPTH: 3,  # colorized before export
    StreamKind.COLOR: 3,
    StreamKind.INFRARED: 1,
}

_KIND_LABELS = {
    StreamKind.DEPTH: "Depth",
    StreamKind.COLOR: "Color",
    StreamKind.INFRARED: "Infrared",
}


class PixelFormat(str, Enum):
    """Pixel layouts a frame can declare."""
    RGB8 = "rgb8"
    BGR8 = "bgr8"
    Y8 = "y8"
    Z16 = "z16"
    Y16 = "y16"

    @property
    def channels(self) -> int:
        return _FORMAT_LAYOUT[self][0]

    @property
    def bytes_per_channel(self) -> int:
        return _FORMAT_LAYOUT[self][1]

    @property
    def bytes_per_pixel(self) -> int:
        channels, width = _FORMAT_LAYOUT[self]
        return channels * width


# (channels, bytes per channel)
_FORMAT_LAYOUT = {
    PixelFormat.RGB8: (3, 1),
    PixelFormat.BGR8: (3, 1),
    PixelFormat.Y8: (1, 1),
    PixelFormat.Z16: (1, 2),
    PixelFormat.Y16: (1, 2),
}


class Quadrant(Enum):
    """Cell of the four-way split display window."""
    TOP_LEFT = (0, 0)
    TOP_RIGHT = (1, 0)
    BOTTOM_LEFT = (0, 1)
    BOTTOM_RIGHT = (1, 1)

    def rect(self, width: int, height: int) -> Tuple[int, int, int, int]:
        """``(x, y, w, h)`` of this cell in a ``width`` x ``height`` window."""
        cell_w, cell_h = width // 2, height // 2
        col, row = self.value
        return (col * cell_w, row * cell_h, cell_w, cell_h)


class CaptureState(Enum):
    """Lifecycle of a capture loop."""
    IDLE = auto()
    WARMING_UP = auto()
    STREAMING = auto()
    STOPPED = auto()
