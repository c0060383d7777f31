"""Core types, enums and errors for rscapture."""

from .enums import (
    CaptureState,
    PixelFormat,
    Quadrant,
    StreamKind,
)

from .errors import (
    CaptureError,
    DeviceError,
    FrameFormatError,
    FrameSizeMismatchError,
)

from .types import (
    ExportTarget,
    FrameBundle,
    VideoFrame,
    default_stream_name,
    image_filename,
    metadata_filename,
)

__all__ = [
    # Enums
    "CaptureState",
    "PixelFormat",
    "Quadrant",
    "StreamKind",
    # Errors
    "CaptureError",
    "DeviceError",
    "FrameFormatError",
    "FrameSizeMismatchError",
    # Types
    "ExportTarget",
    "FrameBundle",
    "VideoFrame",
    "default_stream_name",
    "image_filename",
    "metadata_filename",
]
