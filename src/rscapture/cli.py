"""Command line entry point for rscapture.

Usage:
    rscapture                              # RealSense camera, preview window
    rscapture --source synthetic --no-display --max-bundles 10
    rscapture --config config/synthetic.yaml --output-dir captures
"""

import argparse
import logging
import sys
from typing import Any, Dict, List, Optional

from rscapture import __version__
from rscapture.capture_loop import CaptureLoop
from rscapture.core.errors import DeviceError
from rscapture.display import DisplaySink, HeadlessDisplay, OpenCVDisplay
from rscapture.export import ExportWorkerPool, FrameExporter
from rscapture.sources.base import FrameSource
from rscapture.sources.synthetic import SyntheticSource
from rscapture.utils.config import RsCaptureConfig, load_config

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rscapture",
        description="Capture depth, color and infrared frames to PNG + metadata CSV",
    )
    parser.add_argument("--config", help="YAML configuration file")
    parser.add_argument("--source", choices=["realsense", "synthetic"],
                        help="Frame source")
    parser.add_argument("--output-dir", help="Directory for images and sidecars")
    parser.add_argument("--warmup", type=int, metavar="N",
                        help="Bundles discarded before streaming")
    parser.add_argument("--max-bundles", type=int, metavar="N",
                        help="Stop after N streamed bundles")
    parser.add_argument("--no-display", action="store_true",
                        help="Run without a preview window")
    parser.add_argument("--no-metadata", action="store_true",
                        help="Do not write metadata CSV files")
    parser.add_argument("--concurrent", action="store_true",
                        help="Export on background worker threads")
    parser.add_argument("--log-level", help="DEBUG, INFO, WARNING, ...")
    parser.add_argument("--version", action="version",
                        version=f"%(prog)s {__version__}")
    return parser


def overrides_from_args(args: argparse.Namespace) -> Dict[str, Any]:
    """Turn CLI flags into dotted config overrides."""
    overrides: Dict[str, Any] = {}
    if args.source:
        overrides["capture.source"] = args.source
    if args.output_dir:
        overrides["export.output_dir"] = args.output_dir
    if args.warmup is not None:
        overrides["capture.warmup_bundles"] = args.warmup
    if args.max_bundles is not None:
        overrides["capture.max_bundles"] = args.max_bundles
    if args.no_display:
        overrides["display.enabled"] = False
    if args.no_metadata:
        overrides["export.write_metadata"] = False
    if args.concurrent:
        overrides["export.concurrent"] = True
    if args.log_level:
        overrides["logging.level"] = args.log_level
    return overrides


def create_source(config: RsCaptureConfig) -> FrameSource:
    if config.capture.source == "synthetic":
        return SyntheticSource(
            width=config.capture.synthetic_width,
            height=config.capture.synthetic_height,
        )
    # pyrealsense2 is only needed for real devices
    from rscapture.sources.realsense import RealSenseSource
    return RealSenseSource(config.device)


def create_display(config: RsCaptureConfig) -> DisplaySink:
    if not config.display.enabled:
        return HeadlessDisplay()
    return OpenCVDisplay(
        title=config.display.window_title,
        width=config.display.width,
        height=config.display.height,
    )


def create_exporter(config: RsCaptureConfig):
    exporter = FrameExporter(
        output_dir=config.export.output_dir,
        write_metadata=config.export.write_metadata,
    )
    if config.export.concurrent:
        return ExportWorkerPool(exporter, capacity=config.export.queue_capacity)
    return exporter


def run(config: RsCaptureConfig) -> int:
    """Run a full capture session; errors propagate."""
    source = create_source(config)
    display = create_display(config)
    exporter = create_exporter(config)
    try:
        with source:
            loop = CaptureLoop(
                source,
                exporter,
                display,
                warmup_bundles=config.capture.warmup_bundles,
                max_bundles=config.capture.max_bundles,
            )
            streamed = loop.run()
    except BaseException:
        display.close()
        # keep the error that ended the session; log any close failure
        try:
            exporter.close()
        except Exception as e:
            logger.error("Closing exporter failed: %s: %s", type(e).__name__, e)
        raise
    display.close()
    exporter.close()
    return streamed


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point for the rscapture command.

    Returns:
        Process exit status: 0 on success, 1 on any error, 130 when
        interrupted.
    """
    args = build_parser().parse_args(argv)
    try:
        config = load_config(args.config, overrides_from_args(args))
        config.setup_logging()
        run(config)
    except DeviceError as e:
        logger.error("%s", e)
        return 1
    except KeyboardInterrupt:
        logger.info("Interrupted")
        return 130
    except Exception as e:
        logger.error("%s: %s", type(e).__name__, e)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
