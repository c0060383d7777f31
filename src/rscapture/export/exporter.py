"""Frame exporter: one frame in, one PNG plus a metadata sidecar out."""

import logging
import threading
from pathlib import Path
from typing import Optional, Union

import cv2
import numpy as np

from rscapture.core.enums import PixelFormat, StreamKind
from rscapture.core.errors import FrameFormatError, FrameSizeMismatchError
from rscapture.core.types import ExportTarget, VideoFrame
from rscapture.metadata import write_metadata_csv

logger = logging.getLogger(__name__)


class FrameExporter:
    """Writes frames to ``<kind>-<sequence>_<counter>.png`` files.

    Args:
        output_dir: Directory images and sidecars are written to. Created
            on first export if missing.
        write_metadata: Also write ``<stream name>-metadata.csv`` for every
            exported frame.
    """

    def __init__(
        self,
        output_dir: Union[str, Path] = ".",
        write_metadata: bool = True,
    ):
        self.output_dir = Path(output_dir)
        self.write_metadata = write_metadata
        self.frames_written = 0
        self._count_lock = threading.Lock()

    def export_frame(
        self,
        frame: Optional[VideoFrame],
        stream_kind: Union[StreamKind, str],
        sequence: int = 0,
        frame_counter: int = 0,
    ) -> Optional[ExportTarget]:
        """Encode ``frame`` as PNG and write it with its metadata table.

        Frames without pixel data are skipped and ``None`` is returned.

        Raises:
            ValueError: Unknown ``stream_kind`` or negative ``sequence``.
            FrameSizeMismatchError: The frame's layout disagrees with the
                channel count of ``stream_kind`` or its buffer is too small.
                Nothing is written in that case.
            OSError: Writing either file failed.
        """
        kind = StreamKind(stream_kind)
        if sequence < 0:
            raise ValueError(f"sequence must be non-negative, got {sequence}")

        if not isinstance(frame, VideoFrame) or not frame.is_image:
            logger.debug("Skipping %s-%d: no image data", kind.value, sequence)
            return None

        target = ExportTarget.for_frame(
            kind, sequence, frame_counter, frame.stream_name, self.output_dir,
        )
        png = encode_png(frame, kind)

        self.output_dir.mkdir(parents=True, exist_ok=True)
        _write_bytes(target.image_path, png)
        with self._count_lock:
            self.frames_written += 1
        logger.info("Saved %s", target.image_path)

        if self.write_metadata:
            write_metadata_csv(frame, target.metadata_path)
        return target

    def close(self) -> None:
        """Nothing is buffered; present for parity with the worker pool."""


def check_layout(frame: VideoFrame, kind: StreamKind) -> None:
    """Raise unless ``frame`` can be stored as an 8-bit ``kind`` image."""
    fmt = frame.pixel_format
    if fmt.channels != kind.channels or fmt.bytes_per_channel != 1:
        raise FrameSizeMismatchError(
            f"{frame.stream_name}: {kind.value} frames are exported as "
            f"{kind.channels}x8-bit, frame is {fmt.value} "
            f"({fmt.channels}x{fmt.bytes_per_channel * 8}-bit)"
        )


def encode_png(frame: VideoFrame, kind: StreamKind) -> bytes:
    """Losslessly encode ``frame`` with the channel count ``kind`` implies."""
    check_layout(frame, kind)
    image = frame.to_image()
    expected = (frame.height, frame.width, kind.channels)
    if image.size != int(np.prod(expected)):
        raise FrameSizeMismatchError(
            f"{frame.stream_name}: decoded {image.shape}, expected {expected}"
        )

    if frame.pixel_format is PixelFormat.RGB8:
        image = cv2.cvtColor(image, cv2.COLOR_RGB2BGR)

    ok, encoded = cv2.imencode(".png", image)
    if not ok:
        raise FrameFormatError(f"PNG encoding failed for {frame.stream_name}")
    return encoded.tobytes()


def _write_bytes(path: Path, payload: bytes) -> None:
    f = open(path, "wb")
    try:
        with f:
            f.write(payload)
    except OSError:
        # no truncated PNG may survive a failed write
        path.unlink(missing_ok=True)
        raise
