"""Per-frame metadata sidecar export.

Every frame may report a sparse set of integer metadata attributes
(timestamps, exposure, gain, ...). :func:`write_metadata_csv` dumps the
attributes a frame carries into a two-column CSV table::

    Stream,Depth
    Metadata Attribute,Value
    Frame Counter,120
    Frame Timestamp,1700000000123

Rows follow ascending attribute id; attributes the frame does not report
produce no row.
"""

import csv
import logging
from enum import IntEnum
from pathlib import Path
from typing import List, Tuple, Union

from rscapture.core.types import VideoFrame

logger = logging.getLogger(__name__)


class MetadataAttribute(IntEnum):
    """Frame metadata ids, numbered as the RealSense SDK numbers them."""
    FRAME_COUNTER = 0
    FRAME_TIMESTAMP = 1
    SENSOR_TIMESTAMP = 2
    ACTUAL_EXPOSURE = 3
    GAIN_LEVEL = 4
    AUTO_EXPOSURE = 5
    WHITE_BALANCE = 6
    TIME_OF_ARRIVAL = 7
    TEMPERATURE = 8
    BACKEND_TIMESTAMP = 9
    ACTUAL_FPS = 10
    FRAME_LASER_POWER = 11
    FRAME_LASER_POWER_MODE = 12
    EXPOSURE_PRIORITY = 13
    EXPOSURE_ROI_LEFT = 14
    EXPOSURE_ROI_RIGHT = 15
    EXPOSURE_ROI_TOP = 16
    EXPOSURE_ROI_BOTTOM = 17
    BRIGHTNESS = 18
    CONTRAST = 19
    SATURATION = 20
    SHARPNESS = 21
    AUTO_WHITE_BALANCE_TEMPERATURE = 22
    BACKLIGHT_COMPENSATION = 23
    HUE = 24
    GAMMA = 25
    MANUAL_WHITE_BALANCE = 26
    POWER_LINE_FREQUENCY = 27
    LOW_LIGHT_COMPENSATION = 28
    FRAME_EMITTER_MODE = 29
    FRAME_LED_POWER = 30
    RAW_FRAME_SIZE = 31
    GPIO_INPUT_DATA = 32
    SEQUENCE_NAME = 33
    SEQUENCE_ID = 34
    SEQUENCE_SIZE = 35

    @property
    def display_name(self) -> str:
        """``FRAME_COUNTER`` -> ``"Frame Counter"``"""
        return " ".join(word.capitalize() for word in self.name.split("_"))


def metadata_rows(frame: VideoFrame) -> List[Tuple[str, int]]:
    """``(attribute name, value)`` for every attribute present on ``frame``."""
    return [
        (attribute.display_name, frame.metadata[attribute.value])
        for attribute in MetadataAttribute
        if attribute.value in frame.metadata
    ]


def write_metadata_csv(frame: VideoFrame, path: Union[str, Path]) -> Path:
    """Write the metadata table of ``frame`` to ``path``, overwriting it.

    Raises:
        OSError: If ``path`` cannot be opened for writing.
    """
    path = Path(path)
    rows = metadata_rows(frame)
    with open(path, "w", newline="") as f:
        writer = csv.writer(f, lineterminator="\n")
        writer.writerow(["Stream", frame.kind.label])
        writer.writerow(["Metadata Attribute", "Value"])
        writer.writerows(rows)
    logger.debug("Wrote %d metadata rows to %s", len(rows), path)
    return path
