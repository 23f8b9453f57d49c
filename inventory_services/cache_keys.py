"""Cache keys shared by the orchestrators that fill and invalidate them."""

from uuid import UUID

DASHBOARD_STATS = "dashboard:stats"
ANALYTICS_DASHBOARD = "analytics:dashboard"


def product_key(product_id: UUID) -> str:
    return f"product:{product_id}"


def keys_for_products(product_ids) -> list[str]:
    """Every key whose value depends on the given products' stock."""
    return [product_key(pid) for pid in product_ids]


def seasonal_trends_key(year: int) -> str:
    return f"seasonal_trends:{year}"
