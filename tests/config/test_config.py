"""
Configuration: frozen schema defaults, YAML loading, range checks and the
INVENTORY_CONFIG_TRACE audit line.
"""

from dataclasses import FrozenInstanceError

import pytest
import yaml

from inventory_config import (
    AlertConfig,
    CacheConfig,
    CacheSpec,
    CoreConfig,
    DatabaseConfig,
    ForecastConfig,
    JobConfig,
    get_active_config,
)
from inventory_config.loader import compute_checksum, parse_config


def _write(tmp_path, data, name="core.yaml"):
    path = tmp_path / name
    path.write_text(yaml.safe_dump(data))
    return path


# =============================================================================
# Defaults
# =============================================================================


class TestDefaults:
    def test_with_defaults(self):
        config = CoreConfig.with_defaults()

        assert config.alerts.default_threshold == 10
        assert config.alerts.critical_ratio == 0.5
        assert config.alerts.resolve_ratio == 1.5
        assert config.forecast.window_days == 30
        assert (config.forecast.short_period, config.forecast.long_period) == (7, 30)
        assert config.jobs.low_stock_check == "0 * * * *"
        assert [c.name for c in config.cache.caches] == [
            "default",
            "reference",
            "dashboard",
        ]

    def test_frozen(self):
        config = CoreConfig.with_defaults()
        with pytest.raises(FrozenInstanceError):
            config.version = 2  # type: ignore[misc]

    def test_shipped_file_matches_defaults(self):
        shipped = get_active_config()
        defaults = CoreConfig.with_defaults()

        assert shipped.config_id == "default"
        assert shipped.alerts == defaults.alerts
        assert shipped.forecast == defaults.forecast
        assert shipped.jobs == defaults.jobs
        assert shipped.cache == defaults.cache
        assert shipped.checksum


# =============================================================================
# Loading
# =============================================================================


class TestLoadYaml:
    def test_partial_document(self, tmp_path):
        path = _write(
            tmp_path,
            {
                "config_id": "store-7",
                "version": 3,
                "alerts": {"default_threshold": 25},
            },
        )

        config = get_active_config(path)

        assert config.config_id == "store-7"
        assert config.version == 3
        assert config.alerts.default_threshold == 25
        assert config.alerts.resolve_ratio == 1.5
        assert config.forecast == ForecastConfig()

    def test_nested_forecast_weights(self, tmp_path):
        path = _write(tmp_path, {"forecast": {"weights": {"short": 1.0, "long": 0, "trend": 0}}})

        forecast = get_active_config(path).forecast

        assert forecast.weight_short == 1.0
        assert forecast.weight_long == 0
        assert forecast.weight_trend == 0

    def test_cache_list(self, tmp_path):
        path = _write(
            tmp_path,
            {
                "cache": {
                    "caches": [
                        {"name": "default", "ttl_seconds": 60},
                        {"name": "reference", "ttl_seconds": 120},
                        {"name": "dashboard", "ttl_seconds": 10, "max_size": 50},
                    ]
                }
            },
        )

        caches = get_active_config(path).cache.caches

        assert caches == (
            CacheSpec("default", 60, 1000),
            CacheSpec("reference", 120, 1000),
            CacheSpec("dashboard", 10, 50),
        )

    def test_empty_file_is_all_defaults(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")

        config = get_active_config(path)

        assert config.alerts == AlertConfig()
        assert config.jobs == JobConfig()

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            get_active_config(tmp_path / "absent.yaml")

    def test_unknown_section(self):
        with pytest.raises(ValueError, match="Unknown configuration sections"):
            parse_config({"alertz": {}})

    def test_unknown_key_in_section(self):
        with pytest.raises(TypeError):
            parse_config({"alerts": {"threshold": 5}})

    def test_trace_logged(self, tmp_path, captured_logs):
        path = _write(tmp_path, {"config_id": "traced", "version": 4})

        config = get_active_config(path)

        traces = [r for r in captured_logs() if r["message"] == "INVENTORY_CONFIG_TRACE"]
        assert len(traces) == 1
        assert traces[0]["logger"] == "inventory_kernel.config"
        assert traces[0]["config_id"] == "traced"
        assert traces[0]["config_version"] == 4
        assert traces[0]["checksum"] == config.checksum


class TestChecksum:
    def test_key_order_irrelevant(self):
        a = {"version": 1, "alerts": {"default_threshold": 5, "critical_ratio": 0.4}}
        b = {"alerts": {"critical_ratio": 0.4, "default_threshold": 5}, "version": 1}
        assert compute_checksum(a) == compute_checksum(b)

    def test_value_change_changes_hash(self):
        assert compute_checksum({"version": 1}) != compute_checksum({"version": 2})

    def test_same_file_same_checksum(self, tmp_path):
        path = _write(tmp_path, {"alerts": {"default_threshold": 12}})
        assert get_active_config(path).checksum == get_active_config(path).checksum


# =============================================================================
# Validation
# =============================================================================


class TestValidation:
    @pytest.mark.parametrize(
        "factory",
        [
            lambda: DatabaseConfig(url=""),
            lambda: DatabaseConfig(pool_size=0),
            lambda: CacheSpec("default", 0),
            lambda: CacheSpec("default", 60, max_size=0),
            lambda: CacheConfig(caches=(CacheSpec("default", 60),)),
            lambda: CacheConfig(
                caches=(
                    CacheSpec("default", 60),
                    CacheSpec("default", 30),
                    CacheSpec("dashboard", 30),
                )
            ),
            lambda: AlertConfig(default_threshold=-1),
            lambda: AlertConfig(critical_ratio=1.0),
            lambda: AlertConfig(resolve_ratio=1.0),
            lambda: ForecastConfig(window_days=0),
            lambda: ForecastConfig(short_period=40),
            lambda: ForecastConfig(weight_short=0, weight_long=0, weight_trend=0),
            lambda: ForecastConfig(weight_trend=-0.1),
            lambda: ForecastConfig(confidence_step=0),
            lambda: ForecastConfig(recent_limit=0),
            lambda: JobConfig(low_stock_check="0 * * *"),
        ],
    )
    def test_out_of_range(self, factory):
        with pytest.raises(ValueError):
            factory()

    def test_invalid_value_in_file(self, tmp_path):
        path = _write(tmp_path, {"forecast": {"window_days": -5}})
        with pytest.raises(ValueError, match="window_days"):
            get_active_config(path)
