"""
WasteService -- write-offs with a reason code and frozen cost impact.

Responsibility:
    Removes stock lost to spoilage, damage and the like.  Same draw-down
    mechanics as consumption, plus a WasteLog row carrying the reason, the
    optional targeted batch and the cost impact at the current unit price.

Architecture position:
    Kernel > Services -- imperative shell, flush only.

Invariants enforced:
    - Targeted waste (batch_id given): the batch must exist, belong to the
      item and be open; only that batch is decremented.
    - Untargeted waste on a batch-tracked item: validated against the sum
      of open batches, drawn in FEFO order; the log references the item
      only.
    - Unbatched items: the counter is decremented directly.
    - cost_impact = quantity * item.unit_price at waste time, or None when
      the item has no price.  It is never recomputed.
    - Stock writes and the log commit together.

Failure modes:
    - InvalidQuantityError, InvalidWasteReasonError on input.
    - BatchNotFoundError, BatchItemMismatchError, BatchNotOpenError,
      BatchQuantityExceededError for a bad targeted batch.
    - InsufficientStockError, NoOpenBatchesError for untargeted waste.
"""

from uuid import UUID

from inventory_engines.fefo import build_targeted_plan, build_waste_plan
from inventory_kernel.db.types import cost_impact
from inventory_kernel.domain.dtos import WasteRecord, WasteResult
from inventory_kernel.domain.stock import StockMode
from inventory_kernel.exceptions import (
    BatchItemMismatchError,
    BatchNotFoundError,
    BatchNotOpenError,
    InvalidQuantityError,
    InvalidWasteReasonError,
    InventoryKernelError,
)
from inventory_kernel.logging_config import get_logger
from inventory_kernel.models.waste_log import WasteLog, WasteReason
from inventory_kernel.services.base import BaseService
from inventory_kernel.services.batch_ledger import BatchLedgerService, snapshot_batch

logger = get_logger("services.waste")


def parse_reason(reason: "str | WasteReason") -> WasteReason:
    if isinstance(reason, WasteReason):
        return reason
    try:
        return WasteReason(str(reason).strip().lower())
    except ValueError:
        raise InvalidWasteReasonError(str(reason)) from None


class WasteService(BaseService[WasteLog]):
    """Records waste against an item."""

    def record_waste(
        self,
        item_id: UUID,
        quantity: int,
        reason: "str | WasteReason",
        batch_id: UUID | None = None,
        notes: str | None = None,
        actor_id: UUID | None = None,
        event_id: UUID | None = None,
    ) -> WasteResult:
        """
        Record a waste event and remove the stock.

        Args:
            item_id: Item being written off.
            quantity: Units wasted (> 0).
            reason: One of WasteReason.
            batch_id: Restrict the draw to this batch.
            notes: Free-form explanation.
            actor_id: Who recorded it.
            event_id: Event the caller is acting in, checked against the item.

        Returns:
            WasteResult with the persisted log and the batches drawn from.
        """
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
            raise InvalidQuantityError("quantity", quantity, "must be a positive integer")
        waste_reason = parse_reason(reason)

        ledger = BatchLedgerService(self.session, self.clock)
        item = ledger.lock_item(item_id, event_id)

        logger.info(
            "waste_started",
            extra={
                "item_id": str(item.id),
                "quantity": quantity,
                "reason": waste_reason.value,
                "batch_id": str(batch_id) if batch_id else None,
            },
        )

        try:
            if batch_id is not None:
                batch = ledger.lock_batch(batch_id)
                if batch is None:
                    raise BatchNotFoundError(str(batch_id))
                if batch.item_id != item.id:
                    raise BatchItemMismatchError(str(batch_id), str(item.id))
                if not batch.is_open:
                    raise BatchNotOpenError(str(batch_id))
                batches = [batch]
                plan = build_targeted_plan(
                    item_id=item.id, batch=snapshot_batch(batch), quantity=quantity
                )
            else:
                batches = []
                if item.mode is StockMode.BATCHED:
                    batches = ledger.lock_open_batches(item.id)
                plan = build_waste_plan(
                    stock=ledger.stock_of(item, batches), quantity=quantity
                )
        except InventoryKernelError as exc:
            logger.info(
                "waste_rejected",
                extra={
                    "item_id": str(item.id),
                    "quantity": quantity,
                    "error_code": exc.code,
                },
            )
            raise

        lines = ledger.apply_plan(item, plan, batches)

        log = WasteLog(
            item_id=item.id,
            batch_id=batch_id,
            quantity=quantity,
            reason=waste_reason.value,
            notes=notes,
            cost_impact=cost_impact(quantity, item.unit_price),
            created_by=actor_id,
            timestamp=self.clock.now(),
        )
        self.session.add(log)
        self.session.flush()

        logger.info(
            "waste_completed",
            extra={
                "item_id": str(item.id),
                "waste_log_id": str(log.id),
                "quantity": quantity,
                "reason": waste_reason.value,
                "cost_impact": log.cost_impact,
                "item_quantity": item.quantity,
            },
        )
        return WasteResult(
            log=WasteRecord.from_model(log),
            item_quantity=item.quantity,
            lines=lines,
        )
