"""Tests for the command line entry point."""

import logging

import pytest

from rscapture import cli
from rscapture.core import DeviceError, FrameSizeMismatchError
from rscapture.display import HeadlessDisplay
from rscapture.export import ExportWorkerPool, FrameExporter
from rscapture.sources import SyntheticSource
from rscapture.utils.config import RsCaptureConfig


@pytest.fixture(autouse=True)
def restore_logging():
    """``main`` reconfigures the root logger; undo that after each test."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


def _synthetic_args(tmp_path, *extra):
    return [
        "--source", "synthetic",
        "--no-display",
        "--warmup", "2",
        "--output-dir", str(tmp_path),
        *extra,
    ]


class TestOverrides:
    def test_flags(self):
        args = cli.build_parser().parse_args([
            "--source", "synthetic", "--output-dir", "out", "--warmup", "0",
            "--max-bundles", "3", "--no-display", "--no-metadata",
            "--concurrent", "--log-level", "debug",
        ])
        assert cli.overrides_from_args(args) == {
            "capture.source": "synthetic",
            "export.output_dir": "out",
            "capture.warmup_bundles": 0,
            "capture.max_bundles": 3,
            "display.enabled": False,
            "export.write_metadata": False,
            "export.concurrent": True,
            "logging.level": "debug",
        }

    def test_no_flags(self):
        assert cli.overrides_from_args(cli.build_parser().parse_args([])) == {}


class TestFactories:
    def test_synthetic_headless(self):
        config = RsCaptureConfig(capture={"source": "synthetic"},
                                 display={"enabled": False})
        assert isinstance(cli.create_source(config), SyntheticSource)
        assert isinstance(cli.create_display(config), HeadlessDisplay)

    def test_exporters(self):
        assert isinstance(cli.create_exporter(RsCaptureConfig()), FrameExporter)
        pool = cli.create_exporter(RsCaptureConfig(export={"concurrent": True}))
        assert isinstance(pool, ExportWorkerPool)
        pool.close()


class TestMain:
    def test_synthetic_run(self, tmp_path):
        status = cli.main(_synthetic_args(tmp_path, "--max-bundles", "2"))

        assert status == 0
        assert len(list(tmp_path.glob("*.png"))) == 8
        assert (tmp_path / "infrared-1_1.png").exists()
        assert (tmp_path / "Depth-metadata.csv").exists()

    def test_concurrent_run(self, tmp_path):
        status = cli.main(_synthetic_args(tmp_path, "--max-bundles", "3",
                                          "--concurrent", "--no-metadata"))
        assert status == 0
        assert len(list(tmp_path.glob("*.png"))) == 12
        assert list(tmp_path.glob("*.csv")) == []

    def test_device_error_exit_status(self, tmp_path, monkeypatch, capsys):
        monkeypatch.setattr(
            cli, "create_source",
            lambda config: SyntheticSource(8, 8, max_bundles=3),
        )
        status = cli.main(_synthetic_args(tmp_path))

        assert status == 1
        err = capsys.readouterr().err
        assert "RealSense error calling wait_for_frames(5000)" in err
        assert "Frame didn't arrive within 5000" in err

    def test_generic_error_exit_status(self, tmp_path, monkeypatch, capsys):
        def broken(config):
            raise RuntimeError("no space left")

        monkeypatch.setattr(cli, "create_exporter", broken)
        status = cli.main(_synthetic_args(tmp_path))

        assert status == 1
        assert "no space left" in capsys.readouterr().err

    def test_invalid_config_exit_status(self, tmp_path):
        assert cli.main(_synthetic_args(tmp_path, "--warmup", "-5")) == 1

    def test_device_error_message_without_function(self):
        assert str(DeviceError("boom")) == "boom"


class FailingCloseExporter(FrameExporter):
    """Exporter whose close reports a background export failure."""

    def close(self):
        raise FrameSizeMismatchError("Infrared 1: buffer holds 0 bytes")


class TestRunShutdown:
    def test_device_error_survives_close_failure(self, tmp_path, monkeypatch,
                                                 capsys):
        monkeypatch.setattr(
            cli, "create_source",
            lambda config: SyntheticSource(8, 8, max_bundles=3),
        )
        monkeypatch.setattr(
            cli, "create_exporter",
            lambda config: FailingCloseExporter(tmp_path),
        )
        status = cli.main(_synthetic_args(tmp_path))

        assert status == 1
        lines = capsys.readouterr().err.splitlines()
        assert any("Closing exporter failed" in line for line in lines)
        assert any("RealSense error calling wait_for_frames(5000)" in line
                   for line in lines)

    def test_close_failure_after_clean_run(self, tmp_path, monkeypatch):
        monkeypatch.setattr(
            cli, "create_exporter",
            lambda config: FailingCloseExporter(tmp_path),
        )
        config = RsCaptureConfig(
            capture={"source": "synthetic", "warmup_bundles": 0, "max_bundles": 1},
            display={"enabled": False},
        )
        with pytest.raises(FrameSizeMismatchError):
            cli.run(config)
