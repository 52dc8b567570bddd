"""
stockout_config -- single public entrypoint for stock-out engine configuration.

Responsibility:
    ``get_active_config()`` loads a YAML configuration set, validates it and
    returns the kernel's frozen ``StockOutSettings``.

Architecture position:
    Configuration.  Sits above ``stockout_kernel``; the kernel never imports
    this package.

Failure modes:
    - ``FileNotFoundError`` -- the configuration file does not exist.
    - ``yaml.YAMLError`` -- malformed YAML.
    - ``ConfigurationError`` -- a value failed validation.

Audit relevance:
    Every successful call emits a ``stockout_config_loaded`` log entry with
    the config id, version and content checksum, tying stock-outs to the
    configuration that governed them.
"""

from __future__ import annotations

import logging
from pathlib import Path

from stockout_config.bridges import build_settings
from stockout_config.loader import compute_checksum, load_yaml_file
from stockout_kernel.domain.settings import StockOutSettings

_logger = logging.getLogger("stockout_kernel.config")

DEFAULT_CONFIG_PATH = Path(__file__).parent / "sets" / "default.yaml"


def get_active_config(config_path: Path | str | None = None) -> StockOutSettings:
    """
    Load, validate and bridge a configuration set.

    Args:
        config_path: YAML file to load.  Defaults to sets/default.yaml.

    Returns:
        StockOutSettings for the kernel services.

    Raises:
        FileNotFoundError, yaml.YAMLError, ConfigurationError.
    """
    path = Path(config_path) if config_path is not None else DEFAULT_CONFIG_PATH
    data = load_yaml_file(path)
    settings = build_settings(data)

    _logger.info(
        "stockout_config_loaded",
        extra={
            "config_id": settings.config_id,
            "config_version": settings.version,
            "checksum": compute_checksum(data),
            "config_path": str(path),
            "posting_mode": settings.posting.mode.value,
            "decrement_strategy": settings.inventory.decrement_strategy.value,
        },
    )
    return settings


__all__ = [
    "DEFAULT_CONFIG_PATH",
    "StockOutSettings",
    "build_settings",
    "compute_checksum",
    "get_active_config",
    "load_yaml_file",
]
