"""Frame export to PNG images and metadata sidecars."""

from rscapture.export.exporter import FrameExporter, check_layout, encode_png
from rscapture.export.workers import ExportWorkerPool

__all__ = [
    "FrameExporter",
    "ExportWorkerPool",
    "check_layout",
    "encode_png",
]
