"""
inventory_engines.tracer -- trace records for FEFO plan construction.

Every planner in ``inventory_engines.fefo`` is wrapped with
``@traced_engine``.  After a plan is built successfully one DEBUG record,
``INVENTORY_ENGINE_TRACE``, is written under the kernel's logger namespace
with:

    engine_name / engine_version    which planner ran
    input_fingerprint               16 hex chars over the chosen kwargs
    duration_ms                     wall time of the call
    plan_*                          fields returned by the ``summarize`` hook

A planner that raises (insufficient stock, no open batches) emits nothing;
the service that called it logs the rejection.
"""

from __future__ import annotations

import functools
import hashlib
import json
import time
from collections.abc import Callable, Mapping
from typing import Any

from inventory_kernel.logging_config import get_logger

_logger = get_logger("engines.tracer")

TRACE_MESSAGE = "INVENTORY_ENGINE_TRACE"


def compute_input_fingerprint(
    fingerprint_fields: tuple[str, ...],
    kwargs: Mapping[str, Any],
) -> str:
    """Hash the named keyword arguments; absent names hash as null."""
    selected = {name: kwargs.get(name) for name in fingerprint_fields}
    canonical = json.dumps(selected, sort_keys=True, default=str, separators=(",", ":"))
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()[:16]


def traced_engine(
    engine_name: str,
    engine_version: str,
    fingerprint_fields: tuple[str, ...] = (),
    summarize: Callable[[Any], Mapping[str, Any]] | None = None,
) -> Callable:
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            started = time.perf_counter()
            result = func(*args, **kwargs)
            elapsed = time.perf_counter() - started

            extra: dict[str, Any] = {
                "trace_type": TRACE_MESSAGE,
                "engine_name": engine_name,
                "engine_version": engine_version,
                "input_fingerprint": (
                    compute_input_fingerprint(fingerprint_fields, kwargs)
                    if fingerprint_fields
                    else ""
                ),
                "duration_ms": round(elapsed * 1000, 3),
                "function": func.__qualname__,
            }
            if summarize is not None:
                extra.update(
                    (f"plan_{key}", value) for key, value in summarize(result).items()
                )
            _logger.debug(TRACE_MESSAGE, extra=extra)
            return result

        return wrapper

    return decorator
