"""Intel RealSense frame source using pyrealsense2."""

import logging
from contextlib import contextmanager
from typing import Iterator, Optional

import numpy as np
import pyrealsense2 as rs

from rscapture.core.enums import PixelFormat, StreamKind
from rscapture.core.errors import DeviceError, FrameFormatError
from rscapture.core.types import FrameBundle, VideoFrame
from rscapture.metadata import MetadataAttribute
from rscapture.sources.base import FrameSource
from rscapture.utils.config import DeviceConfig, StreamConfig

logger = logging.getLogger(__name__)

_FORMATS = {
    rs.format.rgb8: PixelFormat.RGB8,
    rs.format.bgr8: PixelFormat.BGR8,
    rs.format.y8: PixelFormat.Y8,
    rs.format.z16: PixelFormat.Z16,
    rs.format.y16: PixelFormat.Y16,
}

# Device infrared streams are numbered 1 and 2; exports use 0 and 1.
_INFRARED_STREAMS = (1, 2)


class RealSenseSource(FrameSource):
    """Live synchronized depth / color / infrared x2 bundles.

    Depth frames are colorized with the SDK colorizer before they are
    handed out, so every bundle holds RGB depth, RGB color and two Y8
    infrared frames. Every frame is copied out of the SDK's buffer pool.

    Args:
        config: Device and stream settings.
    """

    def __init__(self, config: Optional[DeviceConfig] = None):
        self._config = config or DeviceConfig()
        self._pipeline: Optional[rs.pipeline] = None
        self._colorizer = rs.colorizer()
        self._count = 0

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def open(self) -> None:
        if self._pipeline is not None:
            return
        cfg = rs.config()
        if self._config.serial:
            cfg.enable_device(self._config.serial)
        if self._config.color.enabled:
            _enable_stream(cfg, rs.stream.color, self._config.color)
        if self._config.depth.enabled:
            _enable_stream(cfg, rs.stream.depth, self._config.depth)
        if self._config.infrared.enabled:
            for index in _INFRARED_STREAMS:
                _enable_stream(cfg, rs.stream.infrared, self._config.infrared, index)

        pipeline = rs.pipeline()
        with _sdk_errors("pipeline.start"):
            profile = pipeline.start(cfg)
        self._pipeline = pipeline
        self._count = 0

        device = profile.get_device()
        logger.info(
            "RealSenseSource opened: %s (serial %s)",
            device.get_info(rs.camera_info.name),
            device.get_info(rs.camera_info.serial_number),
        )

    def close(self) -> None:
        if self._pipeline is not None:
            with _sdk_errors("pipeline.stop"):
                self._pipeline.stop()
            self._pipeline = None
            logger.info("RealSenseSource closed after %d bundles", self._count)

    @property
    def is_open(self) -> bool:
        return self._pipeline is not None

    # ------------------------------------------------------------------
    # Acquisition
    # ------------------------------------------------------------------

    def wait_for_bundle(self) -> FrameBundle:
        if self._pipeline is None:
            raise DeviceError("Source is not open", "wait_for_frames")

        timeout = self._config.wait_timeout_ms
        with _sdk_errors("wait_for_frames", str(timeout)):
            frames = self._pipeline.wait_for_frames(timeout)
            depth = frames.get_depth_frame()
            if depth:
                depth = self._colorizer.colorize(depth)
            bundle = FrameBundle(
                depth=frame_from_rs(depth, StreamKind.DEPTH),
                color=frame_from_rs(frames.get_color_frame(), StreamKind.COLOR),
                infrared=tuple(
                    frame_from_rs(frames.get_infrared_frame(stream),
                                  StreamKind.INFRARED, index)
                    for index, stream in enumerate(_INFRARED_STREAMS)
                ),
                number=self._count,
            )
        self._count += 1
        return bundle


def frame_from_rs(
    rs_frame,
    kind: StreamKind,
    index: int = 0,
) -> Optional[VideoFrame]:
    """Copy an SDK frame into a :class:`VideoFrame`.

    Returns ``None`` for missing frames and frames without video data.

    Raises:
        FrameFormatError: The frame has a pixel format rscapture does not
            handle.
    """
    if not rs_frame or not rs_frame.is_video_frame():
        return None
    vf = rs_frame.as_video_frame()
    profile = vf.get_profile()

    fmt = _FORMATS.get(profile.format())
    if fmt is None:
        raise FrameFormatError(
            f"{profile.stream_name()}: unsupported pixel format {profile.format()}"
        )

    # get_data() is an (H, W[, C]) view over padded rows; the copy is packed
    data = np.array(np.asanyarray(vf.get_data()), copy=True)
    metadata = {
        attribute.value: int(vf.get_frame_metadata(value))
        for attribute, value in _metadata_values()
        if vf.supports_frame_metadata(value)
    }
    return VideoFrame(
        data=data.reshape(-1).view(np.uint8),
        width=vf.get_width(),
        height=vf.get_height(),
        pixel_format=fmt,
        kind=kind,
        stride=vf.get_width() * fmt.bytes_per_pixel,
        index=index,
        stream_name=profile.stream_name(),
        metadata=metadata,
        timestamp=vf.get_timestamp(),
        frame_number=vf.get_frame_number(),
    )


def _metadata_values() -> Iterator:
    for attribute in MetadataAttribute:
        value = getattr(rs.frame_metadata_value, attribute.name.lower(), None)
        if value is not None:
            yield attribute, value


def _enable_stream(cfg, stream, settings: StreamConfig, index: Optional[int] = None):
    fmt = getattr(rs.format, settings.format) if settings.format else rs.format.any
    if settings.width and settings.height:
        if index is None:
            cfg.enable_stream(stream, settings.width, settings.height, fmt, settings.fps)
        else:
            cfg.enable_stream(stream, index, settings.width, settings.height,
                              fmt, settings.fps)
    elif index is None:
        cfg.enable_stream(stream)
    else:
        cfg.enable_stream(stream, index)


@contextmanager
def _sdk_errors(function: str, args: str = ""):
    """Re-raise SDK failures as :class:`DeviceError`."""
    try:
        yield
    except rs.error as e:
        raise DeviceError(
            str(e),
            _call(e, "get_failed_function") or function,
            _call(e, "get_failed_args") or args,
        ) from e
    except RuntimeError as e:
        # wait_for_frames reports timeouts as a plain RuntimeError
        raise DeviceError(str(e), function, args) from e


def _call(error, method: str) -> Optional[str]:
    getter = getattr(error, method, None)
    return getter() if callable(getter) else None
