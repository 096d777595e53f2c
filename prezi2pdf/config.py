"""
prezi2pdf Configuration
=======================

Configuration for a capture run.

Configuration Sources (in order of precedence):
    1. Environment variables (highest priority)
    2. prezi2pdf.yaml file (or the path passed with --config)
    3. Default values (lowest priority)

Environment Variable Mapping:
    PREZI2PDF_HEADLESS        -> browser.headless
    PREZI2PDF_BROWSER_PATH    -> browser.executable_path
    PREZI2PDF_SETTLE_SECONDS  -> timing.settle_seconds
    PREZI2PDF_MAX_WAIT        -> timing.readiness_timeout_seconds
    PREZI2PDF_LOG_LEVEL       -> logging.level

Example:
    from prezi2pdf.config import load_config

    settings = load_config()
    print(settings.window.width, settings.timing.settle_seconds)
"""

import os
import logging
from pathlib import Path
from typing import Literal, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError

from prezi2pdf.errors import ConfigError


logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILES = ("prezi2pdf.yaml", "prezi2pdf.yml")


# =============================================================================
# Configuration Models
# =============================================================================

class ViewerConfig(BaseModel):
    """Selectors and URL shape of the remote presentation viewer."""

    url_template: str = Field(
        default="https://prezi.com/view/{id}/",
        description="URL used when only a presentation id is given",
    )
    overlay_selector: str = Field(
        default="div.viewer-common-info-overlay-center-block",
        description="Intro overlay that must be clicked before slides show",
    )
    spinner_selector: str = Field(
        default="div.viewer-common-loading-spinner",
        description="Loading spinner that must disappear before capture",
    )
    next_selector: str = Field(
        default="div.viewer-common-navigation-next",
        description="Affordance that advances to the next slide",
    )


class WindowConfig(BaseModel):
    """Browser window geometry."""

    width: int = Field(default=1024, gt=0, description="Window width in pixels")
    height: int = Field(default=768, gt=0, description="Window height in pixels")
    border_x: int = Field(default=0, ge=0, description="Horizontal window chrome in pixels")
    border_y: int = Field(default=130, ge=0, description="Vertical window chrome in pixels")
    device_scale_factor: float = Field(
        default=2.0,
        gt=0,
        description="Device pixel ratio of the captured viewport",
    )

    @property
    def viewport(self) -> dict:
        """Content area handed to the browser (window minus its chrome)."""
        return {
            "width": self.width - self.border_x,
            "height": self.height - self.border_y,
        }


class TimingConfig(BaseModel):
    """Blind pauses, poll cadence and collaborator timeouts."""

    settle_seconds: float = Field(
        default=3.0,
        ge=0,
        description="Pause after overlay dismissal and after every slide advance",
    )
    poll_interval_seconds: float = Field(
        default=3.0,
        gt=0,
        description="Delay between loading spinner polls",
    )
    readiness_timeout_seconds: float = Field(
        default=120.0,
        ge=0,
        description="Maximum total spinner wait (0 = unlimited)",
    )
    element_timeout_ms: int = Field(
        default=30000,
        ge=0,
        description="Browser wait timeout for element lookups",
    )
    navigation_timeout_ms: int = Field(
        default=60000,
        ge=0,
        description="Browser navigation timeout",
    )
    next_lookup_retries: int = Field(
        default=0,
        ge=0,
        description="Extra lookups of the next affordance before concluding the last slide",
    )
    next_lookup_backoff_seconds: float = Field(
        default=0.5,
        ge=0,
        description="Pause between next affordance lookups",
    )


class BrowserConfig(BaseModel):
    """Browser launch configuration."""

    headless: bool = Field(default=True, description="Run Chromium without a window")
    executable_path: Optional[str] = Field(
        default=None,
        description="Explicit Chromium/Chrome binary (None = Playwright's bundled one)",
    )


class OutputConfig(BaseModel):
    """Raster and document output configuration."""

    image_format: Literal["png", "jpeg"] = Field(default="png", description="Screenshot encoding")
    quality: int = Field(default=100, ge=0, le=100, description="Screenshot quality (jpeg only)")
    dpi: float = Field(default=300.0, gt=0, description="Resolution hint for placed images")
    px_to_mm: float = Field(
        default=0.084666667,
        gt=0,
        description="Pixel to millimetre conversion factor",
    )


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="INFO", description="Log level")
    format: str = Field(default="text", description="Log format: json or text")


class Settings(BaseModel):
    """
    Settings for one capture run.

    Passed explicitly into the pipeline so tests can swap any value.
    """

    viewer: ViewerConfig = Field(default_factory=ViewerConfig)
    window: WindowConfig = Field(default_factory=WindowConfig)
    timing: TimingConfig = Field(default_factory=TimingConfig)
    browser: BrowserConfig = Field(default_factory=BrowserConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


# =============================================================================
# Configuration Loading
# =============================================================================

def load_config(config_path: Optional[str] = None) -> Settings:
    """
    Load configuration from a YAML file and environment variables.

    Args:
        config_path: Path to a YAML file. If None, the working directory is
            searched for prezi2pdf.yaml / prezi2pdf.yml.

    Returns:
        Settings: Validated configuration

    Raises:
        ConfigError: If the file is missing, malformed or holds invalid values
    """
    if config_path is None:
        for name in DEFAULT_CONFIG_FILES:
            if Path(name).exists():
                config_path = name
                break
    elif not Path(config_path).exists():
        raise ConfigError(f"Config file not found: {config_path}")

    config_data = {}
    if config_path:
        logger.info(f"Loading config from: {config_path}")
        try:
            with open(config_path, "r") as f:
                config_data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {config_path}: {e}") from e
        if not isinstance(config_data, dict):
            raise ConfigError(f"Config file {config_path} must contain a mapping")
    else:
        logger.debug("No config file found, using defaults and environment variables")

    try:
        _apply_env_overrides(config_data)
        return Settings.model_validate(config_data)
    except (ValueError, ValidationError) as e:
        raise ConfigError(f"Invalid configuration: {e}") from e


def _apply_env_overrides(config_data: dict) -> None:
    """Apply environment variable overrides to config data."""

    if env_headless := os.environ.get("PREZI2PDF_HEADLESS"):
        config_data.setdefault("browser", {})["headless"] = env_headless.lower() not in ("0", "false", "no")
    if env_browser := os.environ.get("PREZI2PDF_BROWSER_PATH"):
        config_data.setdefault("browser", {})["executable_path"] = env_browser

    if env_settle := os.environ.get("PREZI2PDF_SETTLE_SECONDS"):
        config_data.setdefault("timing", {})["settle_seconds"] = float(env_settle)
    if env_wait := os.environ.get("PREZI2PDF_MAX_WAIT"):
        config_data.setdefault("timing", {})["readiness_timeout_seconds"] = float(env_wait)

    if env_log := os.environ.get("PREZI2PDF_LOG_LEVEL"):
        config_data.setdefault("logging", {})["level"] = env_log


def apply_overrides(settings: Settings, overrides: dict) -> Settings:
    """
    Merge section overrides (e.g. from the command line) into settings.

    The merged result is validated again, so overrides obey the same
    constraints as file and environment values.

    Raises:
        ConfigError: If an override is out of range
    """
    data = settings.model_dump()
    for section, values in overrides.items():
        data.setdefault(section, {}).update(values)
    try:
        return Settings.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e


def setup_logging(settings: Settings) -> None:
    """Configure logging based on settings."""
    log_level = getattr(logging, settings.logging.level.upper(), logging.INFO)

    if settings.logging.format == "json":
        log_format = '{"time": "%(asctime)s", "level": "%(levelname)s", "module": "%(name)s", "message": "%(message)s"}'
    else:
        log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    logging.basicConfig(
        level=log_level,
        format=log_format,
        datefmt="%Y-%m-%dT%H:%M:%S",
    )
