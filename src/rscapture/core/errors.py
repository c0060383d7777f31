"""Exception hierarchy for rscapture."""

from typing import Optional


class CaptureError(Exception):
    """Base class for all rscapture errors."""


class DeviceError(CaptureError):
    """A call into the camera SDK failed.

    Attributes:
        failed_function: Name of the SDK call that failed, when known.
        failed_args: Arguments of that call as reported by the SDK.
    """

    def __init__(
        self,
        message: str,
        failed_function: Optional[str] = None,
        failed_args: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.failed_function = failed_function
        self.failed_args = failed_args

    def __str__(self) -> str:
        if self.failed_function:
            return (
                f"RealSense error calling {self.failed_function}"
                f"({self.failed_args or ''}):\n    {self.message}"
            )
        return self.message


class FrameFormatError(CaptureError, ValueError):
    """A frame cannot be exported with the requested layout."""


class FrameSizeMismatchError(FrameFormatError):
    """The frame buffer does not hold the pixels its layout implies."""
