"""Selectors for the inventory kernel (read side)."""

from inventory_kernel.selectors.audit_selector import AuditSelector
from inventory_kernel.selectors.batch_selector import BatchSelector
from inventory_kernel.selectors.ledger_selector import LedgerSelector
from inventory_kernel.selectors.waste_selector import WasteSelector

__all__ = [
    "AuditSelector",
    "BatchSelector",
    "LedgerSelector",
    "WasteSelector",
]
