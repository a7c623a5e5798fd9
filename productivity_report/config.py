"""Settings and logging setup for the productivity report generator.

Settings are read from a YAML file (config/report.yaml by default, or the
path in $PRODUCTIVITY_REPORT_CONFIG). A missing file means defaults.
"""

import logging
import os
from dataclasses import dataclass, fields
from pathlib import Path

import yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("config/report.yaml")
CONFIG_ENV_VAR = "PRODUCTIVITY_REPORT_CONFIG"

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


@dataclass(frozen=True)
class ReportSettings:
    """Runtime settings for one report invocation."""

    api_url: str = "http://localhost:5000"
    request_timeout: float = 30.0
    timezone: str = "America/Santiago"
    export_dir: Path = Path("data/exports")
    max_bar_width: int = 5
    creator: str = "Sistema Gestión Clínica"


def load_settings(config_path: Path | str | None = None) -> ReportSettings:
    """Load settings from YAML, falling back to defaults.

    Args:
        config_path: Path to the YAML file. Defaults to $PRODUCTIVITY_REPORT_CONFIG,
            then config/report.yaml.

    Returns:
        ReportSettings instance.

    Raises:
        ValueError: If the file exists but does not hold a mapping.
    """
    if config_path is None:
        config_path = os.getenv(CONFIG_ENV_VAR) or DEFAULT_CONFIG_PATH
    config_path = Path(config_path)

    if not config_path.exists():
        logger.debug(f"No settings file at {config_path}, using defaults")
        return ReportSettings()

    with open(config_path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise ValueError(f"Settings file {config_path} must contain a mapping")

    known = {f.name for f in fields(ReportSettings)}
    unknown = sorted(set(data) - known)
    if unknown:
        logger.warning(f"Ignoring unknown settings in {config_path}: {', '.join(unknown)}")

    values = {k: v for k, v in data.items() if k in known}
    if "export_dir" in values:
        values["export_dir"] = Path(values["export_dir"])
    if "request_timeout" in values:
        values["request_timeout"] = float(values["request_timeout"])
    if "max_bar_width" in values:
        values["max_bar_width"] = int(values["max_bar_width"])

    logger.info(f"Loaded settings from {config_path}")
    return ReportSettings(**values)


def setup_logging(level: str = "INFO") -> None:
    """Configure root logging for scripts and services embedding the generator."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
    )
