"""Abstract base class for all synchronized frame sources."""

from abc import ABC, abstractmethod
from typing import Iterator

from rscapture.core.types import FrameBundle


class FrameSource(ABC):
    """Uniform interface for devices producing synchronized frame bundles.

    Each call to :meth:`wait_for_bundle` blocks until the device has a
    complete set of time-aligned depth, color and infrared frames. The
    returned frames are owned by the caller.

    Usage::

        with RealSenseSource(config.device) as src:
            for bundle in src:
                exporter.export_frame(bundle.color, StreamKind.COLOR)
    """

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @abstractmethod
    def open(self) -> None:
        """Configure and start the underlying device."""

    @abstractmethod
    def close(self) -> None:
        """Stop the underlying device."""

    @abstractmethod
    def wait_for_bundle(self) -> FrameBundle:
        """Block until the next synchronized bundle is available.

        Raises:
            DeviceError: On timeout or any device failure.
        """

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    @abstractmethod
    def is_open(self) -> bool:
        """``True`` when the source has been opened and not yet closed."""

    @property
    def name(self) -> str:
        """Human-readable identifier used in log lines."""
        return type(self).__name__

    # ------------------------------------------------------------------
    # Context manager
    # ------------------------------------------------------------------

    def __enter__(self) -> "FrameSource":
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Iterator protocol
    # ------------------------------------------------------------------

    def __iter__(self) -> Iterator[FrameBundle]:
        return self

    def __next__(self) -> FrameBundle:
        return self.wait_for_bundle()
