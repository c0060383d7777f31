"""Pytest configuration for rscapture tests."""

import numpy as np
import pytest

from rscapture.core import PixelFormat, StreamKind, VideoFrame


def pytest_addoption(parser):
    parser.addoption(
        "--hardware", action="store_true", default=False,
        help="run tests that need a connected RealSense camera",
    )


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "hardware: test needs a connected RealSense camera"
    )


def pytest_collection_modifyitems(config, items):
    if config.getoption("--hardware"):
        return
    skip = pytest.mark.skip(reason="needs --hardware and a RealSense camera")
    for item in items:
        if "hardware" in item.keywords:
            item.add_marker(skip)


@pytest.fixture
def rgb_image():
    """48x64 RGB image with distinct values per channel."""
    image = np.zeros((48, 64, 3), dtype=np.uint8)
    image[..., 0] = 200
    image[..., 1] = np.arange(64, dtype=np.uint8)[None, :]
    image[..., 2] = 10
    return image


@pytest.fixture
def gray_image():
    return (np.arange(48 * 64) % 256).astype(np.uint8).reshape(48, 64)


@pytest.fixture
def color_frame(rgb_image):
    return VideoFrame.from_image(
        rgb_image, StreamKind.COLOR, PixelFormat.RGB8,
        metadata={0: 7, 1: 1234},
    )


@pytest.fixture
def depth_frame(rgb_image):
    return VideoFrame.from_image(rgb_image, StreamKind.DEPTH, PixelFormat.RGB8)


@pytest.fixture
def infrared_frames(gray_image):
    return tuple(
        VideoFrame.from_image(gray_image, StreamKind.INFRARED, PixelFormat.Y8,
                              index=i)
        for i in range(2)
    )
