"""
AuditService -- physical count reconciliation.

Responsibility:
    Records a physical count against the expected quantity and stamps the
    item as audited.  Never corrects stock: a discrepancy is resolved by a
    separate receive or waste.

Architecture position:
    Kernel > Services -- imperative shell, flush only.

Invariants enforced:
    - discrepancy = actual - expected.
    - item.quantity and batches are untouched; only last_audited_at moves.
"""

from uuid import UUID

from inventory_kernel.domain.dtos import AuditRecord
from inventory_kernel.exceptions import InvalidQuantityError
from inventory_kernel.logging_config import get_logger
from inventory_kernel.models.audit_log import AuditLog
from inventory_kernel.services.base import BaseService
from inventory_kernel.services.batch_ledger import BatchLedgerService

logger = get_logger("services.audit")


def _require_count(field: str, value) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise InvalidQuantityError(field, value, "must be a non-negative integer")


class AuditService(BaseService[AuditLog]):
    """Records audit counts."""

    def record_audit(
        self,
        item_id: UUID,
        actual_quantity: int,
        expected_quantity: int,
        notes: str | None = None,
        context_id: str | None = None,
        actor_id: UUID | None = None,
        event_id: UUID | None = None,
    ) -> AuditRecord:
        _require_count("actual_quantity", actual_quantity)
        _require_count("expected_quantity", expected_quantity)

        item = BatchLedgerService(self.session, self.clock).lock_item(item_id, event_id)
        now = self.clock.now()
        discrepancy = actual_quantity - expected_quantity

        log = AuditLog(
            item_id=item.id,
            event_id=item.event_id,
            actual_quantity=actual_quantity,
            expected_quantity=expected_quantity,
            discrepancy=discrepancy,
            notes=notes,
            context_id=context_id,
            created_by=actor_id,
            timestamp=now,
        )
        self.session.add(log)
        item.last_audited_at = now
        self.session.flush()

        log_fn = logger.warning if discrepancy else logger.info
        log_fn(
            "audit_recorded",
            extra={
                "item_id": str(item.id),
                "audit_log_id": str(log.id),
                "actual_quantity": actual_quantity,
                "expected_quantity": expected_quantity,
                "discrepancy": discrepancy,
                "context_id": context_id,
            },
        )
        return AuditRecord.from_model(log)
