"""
inventory_engines.tracer -- ``@traced_engine`` and INVENTORY_ENGINE_TRACE.

Each traced call emits one DEBUG record carrying the engine name and
version, a fingerprint of the chosen inputs and the wall time.  Two calls
with equal inputs produce equal fingerprints, so a stored prediction can be
matched to the trace line that computed it.

The logger sits under ``inventory_kernel`` so the kernel's JSON handler
formats it, but this module only touches stdlib ``logging``: engines stay
free of kernel imports.

Usage:
    @traced_engine("forecasting", "1.0", fingerprint_fields=("daily_sales",))
    def estimate_demand(*, daily_sales, ...):
        ...
"""

from __future__ import annotations

import functools
import hashlib
import inspect
import json
import logging
import time
from collections.abc import Callable, Mapping
from typing import Any

_logger = logging.getLogger("inventory_kernel.engines.tracer")

FINGERPRINT_LENGTH = 16


def fingerprint(values: Mapping[str, Any]) -> str:
    """SHA-256 prefix of the canonical JSON form of ``values``."""
    canonical = json.dumps(values, sort_keys=True, default=str, separators=(",", ":"))
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()[:FINGERPRINT_LENGTH]


def traced_engine(
    engine_name: str,
    engine_version: str,
    fingerprint_fields: tuple[str, ...] = (),
) -> Callable:
    """
    Decorate a pure engine function.

    ``fingerprint_fields`` name parameters of the decorated function; they
    are read whether passed positionally or by keyword.  A field with no
    value fingerprints as null.
    """

    def decorator(func: Callable) -> Callable:
        signature = inspect.signature(func)

        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            bound = signature.bind_partial(*args, **kwargs)
            selected = {name: bound.arguments.get(name) for name in fingerprint_fields}

            started = time.perf_counter()
            result = func(*args, **kwargs)
            elapsed_ms = (time.perf_counter() - started) * 1000

            _logger.debug(
                "INVENTORY_ENGINE_TRACE",
                extra={
                    "trace_type": "INVENTORY_ENGINE_TRACE",
                    "engine_name": engine_name,
                    "engine_version": engine_version,
                    "function": func.__qualname__,
                    "input_fingerprint": fingerprint(selected) if fingerprint_fields else "",
                    "duration_ms": round(elapsed_ms, 2),
                },
            )
            return result

        return wrapper

    return decorator
