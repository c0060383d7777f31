"""Configuration management for rscapture."""

import logging
from pathlib import Path
from typing import Optional, Dict, Any, Literal

import yaml
from pydantic import BaseModel, Field, field_validator


logger = logging.getLogger(__name__)

PIXEL_FORMATS = ("rgb8", "bgr8", "y8", "z16", "y16")


class StreamConfig(BaseModel):
    """Configuration for a single device stream.

    ``width``/``height`` of 0 and ``format`` of ``None`` leave the choice
    to the device.
    """
    enabled: bool = True
    width: int = Field(default=0, ge=0)
    height: int = Field(default=0, ge=0)
    format: Optional[str] = None
    fps: int = Field(default=0, ge=0)

    @field_validator("format")
    @classmethod
    def validate_format(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = v.lower()
        if v not in PIXEL_FORMATS:
            raise ValueError(f"format must be one of {PIXEL_FORMATS}, got {v!r}")
        return v


class DeviceConfig(BaseModel):
    """Configuration for the depth camera."""
    serial: Optional[str] = None  # first device found if None
    wait_timeout_ms: int = Field(default=5000, gt=0)
    color: StreamConfig = Field(
        default_factory=lambda: StreamConfig(width=1280, height=720, format="rgb8")
    )
    depth: StreamConfig = Field(default_factory=StreamConfig)
    infrared: StreamConfig = Field(default_factory=StreamConfig)


class CaptureConfig(BaseModel):
    """Configuration for the capture loop."""
    source: Literal["realsense", "synthetic"] = "realsense"
    warmup_bundles: int = Field(default=30, ge=0)
    max_bundles: Optional[int] = Field(default=None, gt=0)
    # Synthetic source only
    synthetic_width: int = Field(default=640, gt=0)
    synthetic_height: int = Field(default=480, gt=0)


class ExportConfig(BaseModel):
    """Configuration for image and metadata export."""
    output_dir: str = "."
    write_metadata: bool = True
    concurrent: bool = False  # export on background workers
    queue_capacity: int = Field(default=100, gt=0)


class DisplayConfig(BaseModel):
    """Configuration for the preview window."""
    enabled: bool = True
    window_title: str = "RealSense Capture Example"
    width: int = Field(default=1280, gt=0)
    height: int = Field(default=720, gt=0)


class LoggingConfig(BaseModel):
    """Configuration for logging."""
    level: str = "INFO"
    log_to_file: bool = False
    log_directory: str = "logs"
    max_log_size_mb: int = 100
    backup_count: int = 5

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        v = v.upper()
        if not isinstance(logging.getLevelName(v), int):
            raise ValueError(f"Unknown log level: {v}")
        return v


class RsCaptureConfig(BaseModel):
    """Root configuration for rscapture."""

    project_name: str = "rscapture"
    version: str = "0.1.0"

    device: DeviceConfig = Field(default_factory=DeviceConfig)
    capture: CaptureConfig = Field(default_factory=CaptureConfig)
    export: ExportConfig = Field(default_factory=ExportConfig)
    display: DisplayConfig = Field(default_factory=DisplayConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    def setup_logging(self) -> None:
        """Configure logging based on config."""
        log_level = getattr(logging, self.logging.level.upper())

        handlers = []

        # Console handler
        console_handler = logging.StreamHandler()
        console_handler.setLevel(log_level)
        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )
        console_handler.setFormatter(formatter)
        handlers.append(console_handler)

        # File handler
        if self.logging.log_to_file:
            log_dir = Path(self.logging.log_directory)
            log_dir.mkdir(exist_ok=True, parents=True)

            from logging.handlers import RotatingFileHandler
            file_handler = RotatingFileHandler(
                log_dir / "rscapture.log",
                maxBytes=self.logging.max_log_size_mb * 1024 * 1024,
                backupCount=self.logging.backup_count
            )
            file_handler.setLevel(log_level)
            file_handler.setFormatter(formatter)
            handlers.append(file_handler)

        logging.basicConfig(
            level=log_level,
            handlers=handlers,
            force=True
        )

        logger.debug(f"Logging configured: level={self.logging.level}")


def load_config(
    config_path: Optional[str] = None,
    overrides: Optional[Dict[str, Any]] = None
) -> RsCaptureConfig:
    """Load configuration from YAML file with optional overrides.

    Args:
        config_path: Path to YAML config file. If None, uses default.yaml
        overrides: Dictionary of config overrides (nested keys with dots)

    Returns:
        Validated RsCaptureConfig instance

    Example:
        >>> config = load_config("config/synthetic.yaml")
        >>> config = load_config(overrides={"capture.warmup_bundles": 0})
    """
    if config_path is None:
        repo_root = Path(__file__).parent.parent.parent.parent
        config_path = repo_root / "config" / "default.yaml"
    else:
        config_path = Path(config_path)

    config_dict = {}
    if config_path.exists():
        logger.info(f"Loading config from {config_path}")
        with open(config_path) as f:
            config_dict = yaml.safe_load(f) or {}
    else:
        logger.warning(f"Config file not found: {config_path}, using defaults")

    if overrides:
        config_dict = _apply_overrides(config_dict, overrides)

    return RsCaptureConfig(**config_dict)


def _apply_overrides(
    config_dict: Dict[str, Any],
    overrides: Dict[str, Any]
) -> Dict[str, Any]:
    """Apply nested overrides to config dictionary.

    Example:
        overrides = {"export.output_dir": "captures"}
        -> config_dict["export"]["output_dir"] = "captures"
    """
    for key, value in overrides.items():
        keys = key.split(".")
        d = config_dict
        for k in keys[:-1]:
            d = d.setdefault(k, {})
        d[keys[-1]] = value
    return config_dict
