"""Background export: one bounded queue and one worker thread per stream."""

import logging
import queue
import threading
from typing import Dict, Optional, Tuple, Union

from rscapture.core.enums import StreamKind
from rscapture.core.types import VideoFrame
from rscapture.export.exporter import FrameExporter

logger = logging.getLogger(__name__)

_STOP = object()

StreamKey = Tuple[StreamKind, int]


class ExportWorkerPool:
    """Decouples export latency from acquisition.

    :meth:`export_frame` has the same signature as
    :meth:`FrameExporter.export_frame` but only enqueues an owned copy of
    the frame, together with the counter value at enqueue time. Each
    ``(kind, sequence)`` stream gets its own bounded queue and worker, so
    files of one stream are written in order.

    The first exception raised by a worker is re-raised in the caller's
    thread on the next :meth:`export_frame` or on :meth:`close`.

    Args:
        exporter: Exporter the workers delegate to.
        capacity: Maximum pending frames per stream; producers block when
            a queue is full.
    """

    def __init__(self, exporter: FrameExporter, capacity: int = 100):
        if capacity < 1:
            raise ValueError(f"capacity must be >= 1, got {capacity}")
        self._exporter = exporter
        self._capacity = capacity
        self._queues: Dict[StreamKey, queue.Queue] = {}
        self._threads: Dict[StreamKey, threading.Thread] = {}
        self._error: Optional[BaseException] = None
        self._error_lock = threading.Lock()
        self._closed = False

    # ------------------------------------------------------------------
    # Producer side
    # ------------------------------------------------------------------

    def export_frame(
        self,
        frame: Optional[VideoFrame],
        stream_kind: Union[StreamKind, str],
        sequence: int = 0,
        frame_counter: int = 0,
    ) -> None:
        if self._closed:
            raise RuntimeError("ExportWorkerPool is closed")
        self.raise_pending()

        kind = StreamKind(stream_kind)
        if sequence < 0:
            raise ValueError(f"sequence must be non-negative, got {sequence}")
        if not isinstance(frame, VideoFrame) or not frame.is_image:
            logger.debug("Skipping %s-%d: no image data", kind.value, sequence)
            return

        q = self._queue_for((kind, sequence))
        q.put((frame.copy(), frame_counter))

    def raise_pending(self) -> None:
        """Re-raise the first worker failure, if any."""
        with self._error_lock:
            error, self._error = self._error, None
        if error is not None:
            raise error

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def pending(self) -> int:
        """Frames enqueued but not yet written."""
        return sum(q.qsize() for q in self._queues.values())

    def close(self) -> None:
        """Drain all queues, stop the workers and surface any failure."""
        if self._closed:
            return
        self._closed = True
        for q in self._queues.values():
            q.put(_STOP)
        for thread in self._threads.values():
            thread.join()
        logger.debug("Export workers stopped (%d streams)", len(self._threads))
        self.raise_pending()

    # ------------------------------------------------------------------
    # Worker side
    # ------------------------------------------------------------------

    def _queue_for(self, key: StreamKey) -> queue.Queue:
        q = self._queues.get(key)
        if q is None:
            q = queue.Queue(maxsize=self._capacity)
            thread = threading.Thread(
                target=self._run,
                args=(key, q),
                name=f"export-{key[0].value}-{key[1]}",
                daemon=True,
            )
            self._queues[key] = q
            self._threads[key] = thread
            thread.start()
        return q

    def _run(self, key: StreamKey, q: queue.Queue) -> None:
        kind, sequence = key
        while True:
            item = q.get()
            if item is _STOP:
                return
            frame, counter = item
            try:
                self._exporter.export_frame(frame, kind, sequence, counter)
            except Exception as e:
                logger.error("Export of %s-%d_%d failed: %s",
                             kind.value, sequence, counter, e)
                with self._error_lock:
                    if self._error is None:
                        self._error = e
