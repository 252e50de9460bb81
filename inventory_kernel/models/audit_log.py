"""
Module: inventory_kernel.models.audit_log
Responsibility: ORM persistence for physical-count audits.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - actual_quantity >= 0 and expected_quantity >= 0 (CHECK).
    - discrepancy == actual_quantity - expected_quantity (CHECK).
    - Immutable from creation (db/immutability.py).

An audit never changes stock.  It is informational until someone issues a
compensating receive or waste.
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from inventory_kernel.db.base import Base, UUIDString


class AuditLog(Base):
    """One physical count of an item compared to the expected quantity."""

    __tablename__ = "audit_logs"

    __table_args__ = (
        CheckConstraint("actual_quantity >= 0", name="ck_audit_logs_actual_non_negative"),
        CheckConstraint("expected_quantity >= 0", name="ck_audit_logs_expected_non_negative"),
        CheckConstraint(
            "discrepancy = actual_quantity - expected_quantity",
            name="ck_audit_logs_discrepancy",
        ),
        Index("idx_audit_logs_event_timestamp", "event_id", "timestamp"),
        Index("idx_audit_logs_item", "item_id"),
        Index("idx_audit_logs_context", "context_id"),
    )

    item_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("items.id", ondelete="CASCADE"),
        nullable=False,
    )

    # Denormalized from the item for per-event listing
    event_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)

    actual_quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    expected_quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    discrepancy: Mapped[int] = mapped_column(Integer, nullable=False)

    notes: Mapped[str | None] = mapped_column(String(4000), nullable=True)
    # Session identifier from the calling agent or client
    context_id: Mapped[str | None] = mapped_column(String(255), nullable=True)

    created_by: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )

    item: Mapped["Item"] = relationship()  # noqa: F821

    def __repr__(self) -> str:
        return (
            f"<AuditLog {self.id}: item={self.item_id} actual={self.actual_quantity} "
            f"expected={self.expected_quantity} diff={self.discrepancy}>"
        )
