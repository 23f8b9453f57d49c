"""
Configuration schema -- frozen dataclasses for the inventory core.

Every section validates itself in ``__post_init__`` and raises ValueError
with a message naming the offending field.  ``CoreConfig.with_defaults()``
gives the production defaults without reading any file.
"""

from __future__ import annotations

from dataclasses import dataclass, field


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DatabaseConfig:
    url: str = "sqlite:///inventory.db"
    echo: bool = False
    pool_size: int = 20
    max_overflow: int = 10
    pool_timeout: int = 30

    def __post_init__(self) -> None:
        if not self.url:
            raise ValueError("database.url must be non-empty")
        if self.pool_size < 1:
            raise ValueError(f"database.pool_size must be >= 1, got {self.pool_size}")
        if self.max_overflow < 0:
            raise ValueError(
                f"database.max_overflow must be >= 0, got {self.max_overflow}"
            )


# ---------------------------------------------------------------------------
# Cache
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CacheSpec:
    """One named cache: default TTL in seconds and capacity."""

    name: str
    ttl_seconds: int
    max_size: int = 1000

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("cache name must be non-empty")
        if self.ttl_seconds <= 0:
            raise ValueError(
                f"cache '{self.name}' ttl_seconds must be positive, got {self.ttl_seconds}"
            )
        if self.max_size < 1:
            raise ValueError(
                f"cache '{self.name}' max_size must be >= 1, got {self.max_size}"
            )


def _default_caches() -> tuple[CacheSpec, ...]:
    return (
        CacheSpec("default", 30 * 60),
        CacheSpec("reference", 60 * 60),
        CacheSpec("dashboard", 5 * 60),
    )


REQUIRED_CACHES = frozenset({"default", "reference", "dashboard"})


@dataclass(frozen=True)
class CacheConfig:
    caches: tuple[CacheSpec, ...] = field(default_factory=_default_caches)

    def __post_init__(self) -> None:
        names = [c.name for c in self.caches]
        if len(names) != len(set(names)):
            raise ValueError(f"cache names must be unique, got {names}")
        missing = REQUIRED_CACHES - set(names)
        if missing:
            raise ValueError(f"required caches missing: {sorted(missing)}")


# ---------------------------------------------------------------------------
# Alerts
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AlertConfig:
    default_threshold: int = 10
    critical_ratio: float = 0.5
    resolve_ratio: float = 1.5
    notification_recipient: str = "inventory-alerts"

    def __post_init__(self) -> None:
        if self.default_threshold < 0:
            raise ValueError(
                f"alerts.default_threshold must be >= 0, got {self.default_threshold}"
            )
        if not 0 < self.critical_ratio < 1:
            raise ValueError(
                f"alerts.critical_ratio must be in (0, 1), got {self.critical_ratio}"
            )
        if self.resolve_ratio <= 1:
            raise ValueError(
                f"alerts.resolve_ratio must be > 1, got {self.resolve_ratio}"
            )
        if not self.notification_recipient:
            raise ValueError("alerts.notification_recipient must be non-empty")


# ---------------------------------------------------------------------------
# Forecasting
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ForecastConfig:
    window_days: int = 30
    short_period: int = 7
    long_period: int = 30
    weight_short: float = 0.3
    weight_long: float = 0.5
    weight_trend: float = 0.2
    confidence_step: float = 0.33
    model_version: str = "1.0"
    recent_limit: int = 20

    def __post_init__(self) -> None:
        if self.window_days < 1:
            raise ValueError(f"forecast.window_days must be >= 1, got {self.window_days}")
        if not 1 <= self.short_period <= self.long_period:
            raise ValueError(
                "forecast periods must satisfy 1 <= short_period <= long_period, "
                f"got {self.short_period} / {self.long_period}"
            )
        weights = (self.weight_short, self.weight_long, self.weight_trend)
        if any(w < 0 for w in weights) or not any(w > 0 for w in weights):
            raise ValueError(
                f"forecast weights must be >= 0 with at least one > 0, got {weights}"
            )
        if not 0 < self.confidence_step <= 1:
            raise ValueError(
                f"forecast.confidence_step must be in (0, 1], got {self.confidence_step}"
            )
        if self.recent_limit < 1:
            raise ValueError(f"forecast.recent_limit must be >= 1, got {self.recent_limit}")


# ---------------------------------------------------------------------------
# Jobs
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class JobConfig:
    """Cron expression per periodic job; parsed when the jobs are built."""

    low_stock_check: str = "0 * * * *"
    demand_predictions: str = "0 2 * * *"
    seasonal_analysis: str = "0 3 * * 0"
    cache_cleanup: str = "*/5 * * * *"

    def __post_init__(self) -> None:
        for name in ("low_stock_check", "demand_predictions", "seasonal_analysis", "cache_cleanup"):
            expr = getattr(self, name)
            if not isinstance(expr, str) or len(expr.split()) != 5:
                raise ValueError(f"jobs.{name} must be a 5-field cron expression, got {expr!r}")

    def as_dict(self) -> dict[str, str]:
        return {
            "low_stock_check": self.low_stock_check,
            "demand_predictions": self.demand_predictions,
            "seasonal_analysis": self.seasonal_analysis,
            "cache_cleanup": self.cache_cleanup,
        }


# ---------------------------------------------------------------------------
# Root
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CoreConfig:
    """The complete runtime configuration of the inventory core."""

    config_id: str = "default"
    version: int = 1
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)
    alerts: AlertConfig = field(default_factory=AlertConfig)
    forecast: ForecastConfig = field(default_factory=ForecastConfig)
    jobs: JobConfig = field(default_factory=JobConfig)
    checksum: str = ""

    @classmethod
    def with_defaults(cls) -> CoreConfig:
        return cls()
