"""
inventory_config -- single public entrypoint for core configuration.

Responsibility:
    Provides the one way to obtain configuration at runtime through
    ``get_active_config()``, which returns a frozen ``CoreConfig``.

Architecture position:
    Configuration.  Sits above ``inventory_kernel`` and is consumed by
    ``inventory_services`` and ``inventory_batch``.  The kernel never
    imports from this package; orchestrators hand it plain values.

Failure modes:
    - ``FileNotFoundError`` -- the requested YAML file does not exist.
    - ``ValueError`` -- a section is unknown or a value is out of range.

Audit relevance:
    Every successful ``get_active_config()`` call emits an
    ``INVENTORY_CONFIG_TRACE`` log entry with the config id, version and
    checksum, tying stored predictions and alerts to the settings that
    produced them.
"""

from __future__ import annotations

from pathlib import Path

from inventory_config.loader import load_config
from inventory_config.schema import (
    AlertConfig,
    CacheConfig,
    CacheSpec,
    CoreConfig,
    DatabaseConfig,
    ForecastConfig,
    JobConfig,
)
from inventory_kernel.logging_config import get_logger

_logger = get_logger("config")

_DEFAULT_CONFIG_FILE = Path(__file__).parent / "sets" / "default.yaml"


def get_active_config(path: Path | str | None = None) -> CoreConfig:
    """
    Load and validate the core configuration.

    Args:
        path: YAML file to load.  Defaults to inventory_config/sets/default.yaml.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If validation fails.
    """
    config_path = Path(path) if path is not None else _DEFAULT_CONFIG_FILE
    config = load_config(config_path)

    _logger.info(
        "INVENTORY_CONFIG_TRACE",
        extra={
            "trace_type": "INVENTORY_CONFIG_TRACE",
            "config_id": config.config_id,
            "config_version": config.version,
            "checksum": config.checksum,
            "source": str(config_path),
        },
    )
    return config


__all__ = [
    "AlertConfig",
    "CacheConfig",
    "CacheSpec",
    "CoreConfig",
    "DatabaseConfig",
    "ForecastConfig",
    "JobConfig",
    "get_active_config",
]
