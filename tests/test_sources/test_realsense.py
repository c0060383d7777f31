"""Tests for the RealSense source.

Conversion is tested with stand-in SDK frame objects; streaming from a
device only runs with ``--hardware`` and a camera attached.
"""

import numpy as np
import pytest
from numpy.lib.stride_tricks import as_strided
from PIL import Image

rs = pytest.importorskip("pyrealsense2")

from rscapture.core import DeviceError, FrameFormatError, PixelFormat, StreamKind  # noqa: E402
from rscapture.export import FrameExporter  # noqa: E402
from rscapture.sources.realsense import RealSenseSource, frame_from_rs  # noqa: E402
from rscapture.utils.config import DeviceConfig  # noqa: E402


class FakeProfile:
    def __init__(self, fmt, name):
        self._fmt = fmt
        self._name = name

    def format(self):
        return self._fmt

    def stream_name(self):
        return self._name


def padded_view(image, stride):
    """Return ``image`` as a view over rows spaced ``stride`` bytes apart."""
    buf = np.full(image.shape[0] * stride, 0xAB, dtype=np.uint8)
    view = as_strided(buf, shape=image.shape,
                      strides=(stride,) + image.strides[1:])
    view[...] = image
    return view


class FakeVideoFrame:
    """Mimics the parts of ``rs.video_frame`` the source reads."""

    def __init__(self, image, fmt, name, stride=None, metadata=None):
        self._image = image
        self._profile = FakeProfile(fmt, name)
        self._stride = stride or image.shape[1] * image.itemsize * (
            image.shape[2] if image.ndim == 3 else 1)
        self._metadata = metadata or {}

    def __bool__(self):
        return True

    def is_video_frame(self):
        return True

    def as_video_frame(self):
        return self

    def get_profile(self):
        return self._profile

    def get_data(self):
        return self._image

    def get_width(self):
        return self._image.shape[1]

    def get_height(self):
        return self._image.shape[0]

    def get_stride_in_bytes(self):
        return self._stride

    def get_timestamp(self):
        return 1234.5

    def get_frame_number(self):
        return 99

    def supports_frame_metadata(self, value):
        return value in self._metadata

    def get_frame_metadata(self, value):
        return self._metadata[value]


class TestFrameFromRs:
    def test_color(self, rgb_image):
        fake = FakeVideoFrame(
            rgb_image, rs.format.rgb8, "Color",
            metadata={rs.frame_metadata_value.frame_counter: 17},
        )
        frame = frame_from_rs(fake, StreamKind.COLOR)
        assert frame.pixel_format is PixelFormat.RGB8
        assert frame.stream_name == "Color"
        assert frame.metadata == {0: 17}
        assert frame.frame_number == 99
        np.testing.assert_array_equal(frame.to_image(), rgb_image)

    def test_infrared_index(self, gray_image):
        fake = FakeVideoFrame(gray_image, rs.format.y8, "Infrared 2")
        frame = frame_from_rs(fake, StreamKind.INFRARED, 1)
        assert frame.index == 1
        assert frame.channels == 1

    def test_buffer_is_copied(self, gray_image):
        fake = FakeVideoFrame(gray_image, rs.format.y8, "Infrared 1")
        frame = frame_from_rs(fake, StreamKind.INFRARED)
        gray_image[:] = 0
        assert frame.to_image().any()

    def test_padded_rows(self, gray_image):
        fake = FakeVideoFrame(padded_view(gray_image, 80), rs.format.y8,
                              "Infrared 1", stride=80)
        frame = frame_from_rs(fake, StreamKind.INFRARED)
        assert frame.stride == 64
        np.testing.assert_array_equal(frame.to_image(), gray_image)

    def test_padded_rows_export(self, tmp_path, rgb_image):
        fake = FakeVideoFrame(padded_view(rgb_image, 256), rs.format.rgb8,
                              "Color", stride=256)
        frame = frame_from_rs(fake, StreamKind.COLOR)
        target = FrameExporter(tmp_path).export_frame(frame, StreamKind.COLOR)
        with Image.open(target.image_path) as img:
            assert img.size == (64, 48)
            np.testing.assert_array_equal(np.asarray(img), rgb_image)

    def test_missing_frame(self):
        assert frame_from_rs(None, StreamKind.DEPTH) is None

    def test_unsupported_format(self, gray_image):
        fake = FakeVideoFrame(gray_image, rs.format.yuyv, "Color")
        with pytest.raises(FrameFormatError):
            frame_from_rs(fake, StreamKind.COLOR)


class TestRealSenseSource:
    def test_not_open(self):
        with pytest.raises(DeviceError):
            RealSenseSource().wait_for_bundle()

    @pytest.mark.hardware
    def test_stream_one_bundle(self):
        config = DeviceConfig(wait_timeout_ms=10000)
        with RealSenseSource(config) as src:
            bundle = src.wait_for_bundle()
        assert bundle.color.width == 1280
        assert bundle.depth.pixel_format is PixelFormat.RGB8
