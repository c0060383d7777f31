"""Display sinks: where streamed frames are drawn."""

import logging
from abc import ABC, abstractmethod
from typing import Dict, Optional

import cv2
import numpy as np

from rscapture.core.enums import PixelFormat, Quadrant
from rscapture.core.types import VideoFrame

logger = logging.getLogger(__name__)

_QUIT_KEYS = (ord("q"), 27)  # q, Esc


class DisplaySink(ABC):
    """Something that shows up to four frames, one per quadrant."""

    @abstractmethod
    def render(self, frame: VideoFrame, quadrant: Quadrant) -> None:
        """Queue ``frame`` to be drawn into ``quadrant``."""

    @abstractmethod
    def present(self) -> None:
        """Show everything rendered since the last call."""

    @property
    @abstractmethod
    def is_open(self) -> bool:
        """``False`` once the user has closed the display."""

    def close(self) -> None:
        """Release the display."""


class HeadlessDisplay(DisplaySink):
    """Display that draws nothing.

    Args:
        max_presents: Report closed after this many :meth:`present` calls
            (``None`` = never closes).
    """

    def __init__(self, max_presents: Optional[int] = None):
        self._max_presents = max_presents
        self.presents = 0
        self.rendered: Dict[Quadrant, VideoFrame] = {}

    def render(self, frame: VideoFrame, quadrant: Quadrant) -> None:
        self.rendered[quadrant] = frame

    def present(self) -> None:
        self.presents += 1

    @property
    def is_open(self) -> bool:
        return self._max_presents is None or self.presents < self._max_presents


class OpenCVDisplay(DisplaySink):
    """One OpenCV window split into four quadrants.

    The window counts as closed once the user closes it or presses
    ``q`` / Esc.

    Args:
        title: Window title.
        width: Canvas width in pixels.
        height: Canvas height in pixels.
    """

    def __init__(
        self,
        title: str = "RealSense Capture Example",
        width: int = 1280,
        height: int = 720,
    ):
        self.title = title
        self.width = width
        self.height = height
        self._canvas = np.zeros((height, width, 3), dtype=np.uint8)
        self._created = False
        self._closed = False

    def render(self, frame: VideoFrame, quadrant: Quadrant) -> None:
        x, y, w, h = quadrant.rect(self.width, self.height)
        self._canvas[y:y + h, x:x + w] = cv2.resize(
            to_bgr(frame), (w, h), interpolation=cv2.INTER_AREA,
        )

    def present(self) -> None:
        if self._closed:
            return
        if not self._created:
            cv2.namedWindow(self.title, cv2.WINDOW_AUTOSIZE)
            self._created = True
        cv2.imshow(self.title, self._canvas)
        key = cv2.waitKey(1) & 0xFF
        if key in _QUIT_KEYS:
            logger.info("Quit requested from display window")
            self._closed = True

    @property
    def is_open(self) -> bool:
        if self._closed:
            return False
        if not self._created:
            return True
        if cv2.getWindowProperty(self.title, cv2.WND_PROP_VISIBLE) < 1:
            logger.info("Display window closed")
            self._closed = True
        return not self._closed

    def close(self) -> None:
        if self._created:
            cv2.destroyWindow(self.title)
            self._created = False
        self._closed = True


def to_bgr(frame: VideoFrame) -> np.ndarray:
    """Convert any supported frame to an 8-bit BGR image for display."""
    image = frame.to_image()
    fmt = frame.pixel_format
    if fmt is PixelFormat.RGB8:
        return cv2.cvtColor(image, cv2.COLOR_RGB2BGR)
    if fmt is PixelFormat.BGR8:
        return image
    if fmt.bytes_per_channel == 2:
        image = cv2.convertScaleAbs(image, alpha=255.0 / max(int(image.max()), 1))
    return cv2.cvtColor(image, cv2.COLOR_GRAY2BGR)
