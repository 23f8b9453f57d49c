"""
Configuration Loader (``inventory_config.loader``).

Responsibility
--------------
Loads a YAML configuration file and parses it into the frozen
``inventory_config.schema`` dataclasses.  Runtime callers go through
``inventory_config.get_active_config()``.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing required keys  -> ``KeyError`` propagates.
* Out-of-range values  -> ``ValueError`` from the schema ``__post_init__``.
* Unknown section names  -> ``ValueError`` (typos are not ignored).
"""

from __future__ import annotations

import hashlib
import json
from pathlib import Path
from typing import Any

import yaml

from inventory_config.schema import (
    AlertConfig,
    CacheConfig,
    CacheSpec,
    CoreConfig,
    DatabaseConfig,
    ForecastConfig,
    JobConfig,
)

_SECTIONS = frozenset({"config_id", "version", "database", "cache", "alerts", "forecast", "jobs"})


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def parse_database(data: dict[str, Any]) -> DatabaseConfig:
    return DatabaseConfig(**data)


def parse_cache(data: dict[str, Any]) -> CacheConfig:
    """Parse the cache section; ``caches`` is a list of name/ttl/max_size maps."""
    if "caches" not in data:
        return CacheConfig()
    return CacheConfig(
        caches=tuple(
            CacheSpec(
                name=c["name"],
                ttl_seconds=c["ttl_seconds"],
                max_size=c.get("max_size", 1000),
            )
            for c in data["caches"]
        )
    )


def parse_alerts(data: dict[str, Any]) -> AlertConfig:
    return AlertConfig(**data)


def parse_forecast(data: dict[str, Any]) -> ForecastConfig:
    """Parse the forecast section; ``weights`` is a nested short/long/trend map."""
    values = dict(data)
    weights = values.pop("weights", None) or {}
    if "short" in weights:
        values["weight_short"] = weights["short"]
    if "long" in weights:
        values["weight_long"] = weights["long"]
    if "trend" in weights:
        values["weight_trend"] = weights["trend"]
    return ForecastConfig(**values)


def parse_jobs(data: dict[str, Any]) -> JobConfig:
    return JobConfig(**data)


def parse_config(data: dict[str, Any]) -> CoreConfig:
    """
    Build a CoreConfig from a parsed YAML document.

    Sections left out of the document take their defaults.
    """
    unknown = set(data) - _SECTIONS
    if unknown:
        raise ValueError(f"Unknown configuration sections: {sorted(unknown)}")

    return CoreConfig(
        config_id=data.get("config_id", "default"),
        version=data.get("version", 1),
        database=parse_database(data.get("database") or {}),
        cache=parse_cache(data.get("cache") or {}),
        alerts=parse_alerts(data.get("alerts") or {}),
        forecast=parse_forecast(data.get("forecast") or {}),
        jobs=parse_jobs(data.get("jobs") or {}),
        checksum=compute_checksum(data),
    )


def load_config(path: Path) -> CoreConfig:
    return parse_config(load_yaml_file(path))


def compute_checksum(data: dict[str, Any]) -> str:
    """SHA-256 of the canonical JSON form; identical input, identical hash."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
