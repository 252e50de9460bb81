"""Services for the inventory kernel (write side)."""

from inventory_kernel.services.audit_service import AuditService
from inventory_kernel.services.batch_ledger import OPENING_BALANCE_LOT, BatchLedgerService
from inventory_kernel.services.consumption_service import ConsumptionService
from inventory_kernel.services.event_service import EventService
from inventory_kernel.services.item_service import ItemService, normalize_unit_price
from inventory_kernel.services.orchestrator import StockOrchestrator
from inventory_kernel.services.unit_of_work import (
    run_in_transaction,
    translate_db_error,
    translate_db_errors,
)
from inventory_kernel.services.waste_service import WasteService

__all__ = [
    "AuditService",
    "BatchLedgerService",
    "ConsumptionService",
    "EventService",
    "ItemService",
    "OPENING_BALANCE_LOT",
    "StockOrchestrator",
    "WasteService",
    "normalize_unit_price",
    "run_in_transaction",
    "translate_db_error",
    "translate_db_errors",
]
