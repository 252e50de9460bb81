"""
ConsumptionService -- plan-then-commit stock consumption.

Responsibility:
    Removes stock that was used.  Dispatches on the item's StockMode: an
    unbatched counter is decremented directly, a batch-tracked item is
    drawn down first-expired-first-out across its open batches.

Architecture position:
    Kernel > Services -- imperative shell, flush only.
    Planning is delegated to inventory_engines.fefo (pure); writes go
    through BatchLedgerService.apply_plan.

Invariants enforced:
    - The request is checked against the item total before any batch is
      considered.
    - Nothing is written unless the plan covers the full request.
    - Batches are drawn in FEFO order and never go negative.

Failure modes:
    - InvalidQuantityError: quantity <= 0.
    - InsufficientStockError: request exceeds the item total or the open
      batches.
    - NoOpenBatchesError: batch-tracked item with nothing open.
"""

from uuid import UUID

from inventory_engines.fefo import build_draw_plan
from inventory_kernel.domain.dtos import ConsumptionResult
from inventory_kernel.domain.stock import StockMode
from inventory_kernel.exceptions import InvalidQuantityError, InventoryKernelError
from inventory_kernel.logging_config import get_logger
from inventory_kernel.models.batch import ItemBatch
from inventory_kernel.services.base import BaseService
from inventory_kernel.services.batch_ledger import BatchLedgerService

logger = get_logger("services.consumption")


class ConsumptionService(BaseService[ItemBatch]):
    """Consumes stock from an item."""

    def consume(
        self,
        item_id: UUID,
        quantity: int,
        event_id: UUID | None = None,
    ) -> ConsumptionResult:
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
            raise InvalidQuantityError("quantity", quantity, "must be a positive integer")

        ledger = BatchLedgerService(self.session, self.clock)
        item = ledger.lock_item(item_id, event_id)

        logger.info(
            "consumption_started",
            extra={
                "item_id": str(item.id),
                "quantity": quantity,
                "stock_mode": item.stock_mode,
                "item_quantity": item.quantity,
            },
        )

        batches = []
        if item.mode is StockMode.BATCHED and quantity <= item.quantity:
            batches = ledger.lock_open_batches(item.id)

        try:
            plan = build_draw_plan(stock=ledger.stock_of(item, batches), quantity=quantity)
        except InventoryKernelError as exc:
            logger.info(
                "consumption_rejected",
                extra={
                    "item_id": str(item.id),
                    "quantity": quantity,
                    "error_code": exc.code,
                },
            )
            raise

        lines = ledger.apply_plan(item, plan, batches)

        logger.info(
            "consumption_completed",
            extra={
                "item_id": str(item.id),
                "total_consumed": quantity,
                "batches_touched": len(lines),
                "item_quantity": item.quantity,
            },
        )
        return ConsumptionResult(
            item_id=item.id,
            total_consumed=quantity,
            item_quantity=item.quantity,
            lines=lines,
        )
