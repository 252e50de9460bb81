"""Domain models for the inventory kernel."""

from inventory_kernel.models.audit_log import AuditLog
from inventory_kernel.models.batch import ItemBatch
from inventory_kernel.models.event import Event
from inventory_kernel.models.item import Item
from inventory_kernel.models.waste_log import WasteLog, WasteReason

__all__ = [
    "Event",
    "Item",
    "ItemBatch",
    "WasteLog",
    "WasteReason",
    "AuditLog",
]
