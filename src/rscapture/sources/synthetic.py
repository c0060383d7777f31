"""Generated frame bundles, for running the pipeline without a camera."""

import logging
import time
from typing import Optional

import numpy as np

from rscapture.core.enums import PixelFormat, StreamKind
from rscapture.core.errors import DeviceError
from rscapture.core.types import FrameBundle, VideoFrame
from rscapture.metadata import MetadataAttribute
from rscapture.sources.base import FrameSource
from rscapture.sources.colorize import colorize_depth

logger = logging.getLogger(__name__)


class SyntheticSource(FrameSource):
    """Deterministic stand-in for a depth camera.

    Produces a moving color gradient, a depth ramp (colorized like the
    device colorizer would), and two infrared patterns per bundle, each
    with frame counter and timestamp metadata.

    Args:
        width: Frame width in pixels.
        height: Frame height in pixels.
        row_padding: Extra bytes appended to every row, to emulate devices
            whose stride exceeds ``width * bytes_per_pixel``.
        max_bundles: After this many bundles :meth:`wait_for_bundle` fails
            like a timed-out device (``None`` = unlimited).
        fps: Nominal rate used for timestamps; no sleeping happens.
    """

    def __init__(
        self,
        width: int = 640,
        height: int = 480,
        row_padding: int = 0,
        max_bundles: Optional[int] = None,
        fps: float = 30.0,
    ):
        if width <= 0 or height <= 0:
            raise ValueError(f"Invalid resolution {width}x{height}")
        self._width = width
        self._height = height
        self._row_padding = row_padding
        self._max_bundles = max_bundles
        self._fps = fps

        self._open = False
        self._count = 0
        self._start_ms = 0.0

    def open(self) -> None:
        if self._open:
            return
        self._open = True
        self._count = 0
        self._start_ms = time.time() * 1000.0
        logger.info(
            "SyntheticSource opened: %dx%d  padding=%d  max=%s",
            self._width, self._height, self._row_padding, self._max_bundles,
        )

    def close(self) -> None:
        if self._open:
            self._open = False
            logger.info("SyntheticSource closed after %d bundles", self._count)

    @property
    def is_open(self) -> bool:
        return self._open

    @property
    def bundles_produced(self) -> int:
        return self._count

    def wait_for_bundle(self) -> FrameBundle:
        if not self._open:
            raise DeviceError("Source is not open", "wait_for_frames")
        if self._max_bundles is not None and self._count >= self._max_bundles:
            raise DeviceError(
                "Frame didn't arrive within 5000", "wait_for_frames", "5000",
            )

        n = self._count
        self._count += 1
        timestamp = self._start_ms + n * 1000.0 / self._fps

        depth = colorize_depth(self._depth_image(n))
        bundle = FrameBundle(
            depth=self._frame(depth, StreamKind.DEPTH, PixelFormat.RGB8, n, timestamp),
            color=self._frame(self._color_image(n), StreamKind.COLOR,
                              PixelFormat.RGB8, n, timestamp),
            infrared=(
                self._frame(self._infrared_image(n, 0), StreamKind.INFRARED,
                            PixelFormat.Y8, n, timestamp, index=0),
                self._frame(self._infrared_image(n, 1), StreamKind.INFRARED,
                            PixelFormat.Y8, n, timestamp, index=1),
            ),
            number=n,
        )
        return bundle

    # ------------------------------------------------------------------
    # Pattern generation
    # ------------------------------------------------------------------

    def _frame(
        self,
        image: np.ndarray,
        kind: StreamKind,
        fmt: PixelFormat,
        n: int,
        timestamp: float,
        index: int = 0,
    ) -> VideoFrame:
        stride = self._width * fmt.bytes_per_pixel + self._row_padding
        return VideoFrame.from_image(
            image,
            kind,
            fmt,
            stride=stride,
            index=index,
            metadata={
                MetadataAttribute.FRAME_COUNTER.value: n,
                MetadataAttribute.FRAME_TIMESTAMP.value: int(timestamp),
                MetadataAttribute.TIME_OF_ARRIVAL.value: int(timestamp) + 2,
            },
            timestamp=timestamp,
            frame_number=n,
        )

    def _color_image(self, n: int) -> np.ndarray:
        h, w = self._height, self._width
        x = np.linspace(0, 255, w, dtype=np.float32)
        y = np.linspace(0, 255, h, dtype=np.float32)
        image = np.empty((h, w, 3), dtype=np.uint8)
        image[..., 0] = ((x[None, :] + n * 4) % 256).astype(np.uint8)
        image[..., 1] = y[:, None].astype(np.uint8)
        image[..., 2] = 128
        return image

    def _depth_image(self, n: int) -> np.ndarray:
        h, w = self._height, self._width
        ramp = np.linspace(300, 4000, w, dtype=np.float32)
        depth = np.tile(ramp, (h, 1)) + (n % 50) * 10
        return depth.astype(np.uint16)

    def _infrared_image(self, n: int, index: int) -> np.ndarray:
        h, w = self._height, self._width
        yy, xx = np.mgrid[0:h, 0:w]
        shift = n + index * 8
        return (((xx + shift) // 16 + yy // 16) % 2 * 200 + 30).astype(np.uint8)
