"""Synchronized frame source abstraction.

Quick start::

    from rscapture.sources import SyntheticSource

    with SyntheticSource(640, 480) as src:
        bundle = src.wait_for_bundle()

The RealSense source needs ``pyrealsense2`` and is imported explicitly::

    from rscapture.sources.realsense import RealSenseSource
"""

from rscapture.sources.base import FrameSource
from rscapture.sources.colorize import colorize_depth
from rscapture.sources.synthetic import SyntheticSource

__all__ = [
    "FrameSource",
    "SyntheticSource",
    "colorize_depth",
]
