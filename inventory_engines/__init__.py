"""
Module: inventory_engines
Responsibility:
    Package entrypoint for the pure calculation engines.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import inventory_kernel.domain, inventory_kernel.exceptions and
    inventory_kernel.logging_config.  MUST NOT import kernel services,
    selectors or models.

Invariants enforced:
    - Purity: engines never call ``datetime.now()``; time arrives on the
      snapshots they are given.
    - Determinism: identical inputs always produce identical plans.
"""

from inventory_engines.fefo import (
    DrawPlan,
    PlannedDraw,
    build_draw_plan,
    build_targeted_plan,
    build_waste_plan,
    fefo_sort_key,
    order_open_batches,
)
from inventory_engines.tracer import compute_input_fingerprint, traced_engine

__all__ = [
    "DrawPlan",
    "PlannedDraw",
    "build_draw_plan",
    "build_waste_plan",
    "build_targeted_plan",
    "fefo_sort_key",
    "order_open_batches",
    "traced_engine",
    "compute_input_fingerprint",
]
