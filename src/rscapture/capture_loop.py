"""Capture loop: acquire, display and export synchronized bundles."""

import logging
import time
from typing import Dict, Optional, Protocol, Tuple, Union

from rscapture.core.enums import CaptureState, Quadrant, StreamKind
from rscapture.core.types import FrameBundle, VideoFrame
from rscapture.display import DisplaySink, HeadlessDisplay
from rscapture.sources.base import FrameSource

logger = logging.getLogger(__name__)

DEFAULT_WARMUP_BUNDLES = 30

QUADRANTS: Dict[Tuple[StreamKind, int], Quadrant] = {
    (StreamKind.DEPTH, 0): Quadrant.TOP_LEFT,
    (StreamKind.COLOR, 0): Quadrant.TOP_RIGHT,
    (StreamKind.INFRARED, 0): Quadrant.BOTTOM_LEFT,
    (StreamKind.INFRARED, 1): Quadrant.BOTTOM_RIGHT,
}


class Exporter(Protocol):
    """What the loop needs from :class:`FrameExporter` or the worker pool."""

    def export_frame(
        self,
        frame: Optional[VideoFrame],
        stream_kind: Union[StreamKind, str],
        sequence: int = 0,
        frame_counter: int = 0,
    ): ...

    def close(self) -> None: ...


class CaptureLoop:
    """Warm-up followed by a blocking acquire / display / export loop.

    The loop owns the frame counter: it starts at 0, is handed to the
    exporter with every frame and advances once per streamed bundle,
    whether or not all four frames were exported.

    Args:
        source: Opened frame source.
        exporter: Receives every frame of every streamed bundle.
        display: Where frames are drawn; the loop ends once it closes.
            Defaults to a :class:`HeadlessDisplay` that never closes.
        warmup_bundles: Bundles discarded before streaming starts, to let
            auto-exposure settle.
        max_bundles: Stop after this many streamed bundles (``None`` = run
            until the display closes).
    """

    def __init__(
        self,
        source: FrameSource,
        exporter: Exporter,
        display: Optional[DisplaySink] = None,
        warmup_bundles: int = DEFAULT_WARMUP_BUNDLES,
        max_bundles: Optional[int] = None,
    ):
        if warmup_bundles < 0:
            raise ValueError(f"warmup_bundles must be >= 0, got {warmup_bundles}")
        self._source = source
        self._exporter = exporter
        self._display = display or HeadlessDisplay()
        self.warmup_bundles = warmup_bundles
        self.max_bundles = max_bundles

        self._state = CaptureState.IDLE
        self._frame_counter = 0

    @property
    def state(self) -> CaptureState:
        return self._state

    @property
    def frame_counter(self) -> int:
        """Counter value the next streamed bundle will be exported with."""
        return self._frame_counter

    # ------------------------------------------------------------------
    # States
    # ------------------------------------------------------------------

    def warm_up(self) -> None:
        """Request and discard ``warmup_bundles`` bundles."""
        self._state = CaptureState.WARMING_UP
        logger.info("Warming up: discarding %d bundles", self.warmup_bundles)
        for _ in range(self.warmup_bundles):
            self._source.wait_for_bundle()
        self._state = CaptureState.STREAMING

    def step(self) -> FrameBundle:
        """Acquire one bundle, draw it, export it, advance the counter."""
        bundle = self._source.wait_for_bundle()

        for kind, sequence, frame in bundle.frames():
            if frame is not None and frame.is_image:
                self._display.render(frame, QUADRANTS[(kind, sequence)])
        self._display.present()

        for kind, sequence, frame in bundle.frames():
            self._exporter.export_frame(frame, kind, sequence, self._frame_counter)

        logger.debug("Bundle %d exported as frame %d",
                     bundle.number, self._frame_counter)
        self._frame_counter += 1
        return bundle

    def run(self) -> int:
        """Warm up, then stream until the display closes.

        Any error ends the loop and propagates.

        Returns:
            Number of bundles streamed.
        """
        streamed = 0
        start = time.monotonic()
        try:
            self.warm_up()
            logger.info("Streaming")
            while self._display.is_open:
                if self.max_bundles is not None and streamed >= self.max_bundles:
                    break
                self.step()
                streamed += 1
        finally:
            self._state = CaptureState.STOPPED
            elapsed = time.monotonic() - start
            logger.info(
                "Streaming stopped: %d bundles in %.1fs", streamed, elapsed,
            )
        return streamed
