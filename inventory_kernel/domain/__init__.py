"""Pure domain values for the inventory kernel. Zero I/O."""

from inventory_kernel.domain.access import MUTATION_ROLE, ActorContext, Role
from inventory_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from inventory_kernel.domain.stock import (
    BatchedStock,
    BatchSnapshot,
    Stock,
    StockMode,
    UnbatchedStock,
)

__all__ = [
    "ActorContext",
    "Role",
    "MUTATION_ROLE",
    "Clock",
    "SystemClock",
    "DeterministicClock",
    "StockMode",
    "Stock",
    "BatchSnapshot",
    "UnbatchedStock",
    "BatchedStock",
]
