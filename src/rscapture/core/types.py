"""Core data types for rscapture."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterator, Optional, Tuple, Union

import numpy as np
from numpy.lib.stride_tricks import as_strided

from .enums import PixelFormat, StreamKind
from .errors import FrameSizeMismatchError


# ============================================================================
# Frames
# ============================================================================

@dataclass
class VideoFrame:
    """A rectangular pixel frame with its stream description and metadata.

    ``data`` is the raw byte buffer as delivered by the device: ``height``
    rows spaced ``stride`` bytes apart, each holding ``width`` pixels of
    ``pixel_format``. Bytes past ``width * bytes_per_pixel`` in a row are
    padding.

    Attributes:
        data: Flat ``uint8`` buffer (``None`` for frames without pixels).
        width: Frame width in pixels.
        height: Frame height in pixels.
        pixel_format: Declared pixel layout.
        kind: Sensor the frame came from.
        stride: Row pitch in bytes; ``0`` means tightly packed.
        index: Infrared channel (0 or 1); 0 for other kinds.
        stream_name: Human-readable stream name, e.g. ``"Infrared 1"``.
        metadata: Sparse map of metadata attribute id to value.
        timestamp: Device timestamp in milliseconds.
        frame_number: Device frame number.
    """
    data: Optional[np.ndarray]
    width: int
    height: int
    pixel_format: PixelFormat
    kind: StreamKind
    stride: int = 0
    index: int = 0
    stream_name: str = ""
    metadata: Dict[int, int] = field(default_factory=dict)
    timestamp: float = 0.0
    frame_number: int = 0

    def __post_init__(self) -> None:
        self.pixel_format = PixelFormat(self.pixel_format)
        self.kind = StreamKind(self.kind)
        if not self.stride:
            self.stride = self.row_bytes
        if not self.stream_name:
            self.stream_name = default_stream_name(self.kind, self.index)

    @property
    def channels(self) -> int:
        return self.pixel_format.channels

    @property
    def bytes_per_pixel(self) -> int:
        return self.pixel_format.bytes_per_pixel

    @property
    def row_bytes(self) -> int:
        """Bytes of pixel data per row, padding excluded."""
        return self.width * self.bytes_per_pixel

    @property
    def is_image(self) -> bool:
        """``True`` if the frame carries a non-empty pixel grid."""
        return (
            self.data is not None
            and self.width > 0
            and self.height > 0
        )

    def to_image(self) -> np.ndarray:
        """Return the pixels as ``(H, W)`` or ``(H, W, C)``, padding removed.

        Raises:
            FrameSizeMismatchError: If the buffer is too small for the
                declared width, height, stride and pixel format.
        """
        buf = np.asarray(self.data, dtype=np.uint8).reshape(-1)
        row_bytes = self.row_bytes
        if self.stride < row_bytes:
            raise FrameSizeMismatchError(
                f"{self.stream_name}: stride {self.stride} is smaller than "
                f"{self.width} px x {self.bytes_per_pixel} B"
            )
        needed = self.stride * (self.height - 1) + row_bytes
        if buf.size < needed:
            raise FrameSizeMismatchError(
                f"{self.stream_name}: buffer holds {buf.size} bytes, "
                f"{self.width}x{self.height} {self.pixel_format.value} "
                f"with stride {self.stride} needs {needed}"
            )

        rows = as_strided(
            buf, shape=(self.height, row_bytes), strides=(self.stride, 1),
            writeable=False,
        )
        rows = np.ascontiguousarray(rows)
        if self.pixel_format.bytes_per_channel == 2:
            rows = rows.view("<u2")
        if self.channels == 1:
            return rows.reshape(self.height, self.width)
        return rows.reshape(self.height, self.width, self.channels)

    def copy(self) -> "VideoFrame":
        """Deep copy that owns its pixel buffer and metadata."""
        return VideoFrame(
            data=None if self.data is None else np.array(self.data, copy=True),
            width=self.width,
            height=self.height,
            pixel_format=self.pixel_format,
            kind=self.kind,
            stride=self.stride,
            index=self.index,
            stream_name=self.stream_name,
            metadata=dict(self.metadata),
            timestamp=self.timestamp,
            frame_number=self.frame_number,
        )

    @classmethod
    def from_image(
        cls,
        image: np.ndarray,
        kind: Union[StreamKind, str],
        pixel_format: Optional[Union[PixelFormat, str]] = None,
        stride: Optional[int] = None,
        **kwargs,
    ) -> "VideoFrame":
        """Pack a numpy image into a frame, optionally with padded rows.

        ``pixel_format`` defaults to ``RGB8`` for 3-channel images, ``Y8``
        for 2-D ``uint8`` and ``Z16`` for 2-D ``uint16`` images.
        """
        if pixel_format is None:
            pixel_format = _guess_format(image)
        pixel_format = PixelFormat(pixel_format)

        height, width = image.shape[:2]
        row_bytes = width * pixel_format.bytes_per_pixel
        stride = stride or row_bytes
        if stride < row_bytes:
            raise ValueError(f"stride {stride} < row size {row_bytes}")

        dtype = "<u2" if pixel_format.bytes_per_channel == 2 else np.uint8
        raw = np.ascontiguousarray(image, dtype=dtype).view(np.uint8)
        raw = raw.reshape(height, -1)
        if raw.shape[1] != row_bytes:
            raise ValueError(
                f"image shape {image.shape} does not match {pixel_format.value}"
            )

        data = np.zeros(stride * height, dtype=np.uint8)
        data.reshape(height, stride)[:, :row_bytes] = raw
        return cls(
            data=data,
            width=width,
            height=height,
            pixel_format=pixel_format,
            kind=StreamKind(kind),
            stride=stride,
            **kwargs,
        )


def _guess_format(image: np.ndarray) -> PixelFormat:
    if image.ndim == 3 and image.shape[2] == 3:
        return PixelFormat.RGB8
    if image.ndim == 2 and image.dtype == np.uint16:
        return PixelFormat.Z16
    if image.ndim == 2:
        return PixelFormat.Y8
    raise ValueError(f"Cannot infer pixel format for shape {image.shape}")


def default_stream_name(kind: StreamKind, index: int = 0) -> str:
    """Stream name the device reports, e.g. ``"Depth"`` or ``"Infrared 2"``."""
    if kind is StreamKind.INFRARED:
        return f"{kind.label} {index + 1}"
    return kind.label


@dataclass
class FrameBundle:
    """One set of time-synchronized frames from a single acquisition."""
    depth: Optional[VideoFrame] = None
    color: Optional[VideoFrame] = None
    infrared: Tuple[Optional[VideoFrame], Optional[VideoFrame]] = (None, None)
    number: int = 0

    def frames(self) -> Iterator[Tuple[StreamKind, int, Optional[VideoFrame]]]:
        """Yield ``(kind, sequence, frame)`` as depth, color, IR 0, IR 1."""
        yield StreamKind.DEPTH, 0, self.depth
        yield StreamKind.COLOR, 0, self.color
        for sequence, frame in enumerate(self.infrared):
            yield StreamKind.INFRARED, sequence, frame


# ============================================================================
# Export
# ============================================================================

def image_filename(kind: StreamKind, sequence: int, frame_counter: int) -> str:
    """``"<kind>-<sequence>_<counter>.png"``"""
    return f"{StreamKind(kind).value}-{sequence}_{frame_counter}.png"


def metadata_filename(stream_name: str) -> str:
    """``"<stream name>-metadata.csv"``"""
    return f"{stream_name}-metadata.csv"


@dataclass(frozen=True)
class ExportTarget:
    """Files one exported frame is written to."""
    image_path: Path
    metadata_path: Path

    @classmethod
    def for_frame(
        cls,
        kind: StreamKind,
        sequence: int,
        frame_counter: int,
        stream_name: str,
        output_dir: Union[str, Path] = ".",
    ) -> "ExportTarget":
        output_dir = Path(output_dir)
        return cls(
            image_path=output_dir / image_filename(kind, sequence, frame_counter),
            metadata_path=output_dir / metadata_filename(stream_name),
        )
