"""
Module: inventory_kernel.models.waste_log
Responsibility: ORM persistence for waste events: stock removed because of
    loss rather than use.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - quantity > 0 (CHECK).
    - reason is one of WasteReason (CHECK).
    - cost_impact is frozen at creation from the item's unit price at that
      moment; later price changes never touch it.
    - Immutable from creation (db/immutability.py).
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from inventory_kernel.db.base import Base, UUIDString


class WasteReason(str, Enum):
    """Why stock was written off."""

    SPOILAGE = "spoilage"
    OVERPRODUCTION = "overproduction"
    DAMAGE = "damage"
    CONTAMINATION = "contamination"
    OTHER = "other"


_REASON_VALUES = ", ".join(f"'{r.value}'" for r in WasteReason)


class WasteLog(Base):
    """One waste event against an item, optionally pinned to one batch."""

    __tablename__ = "waste_logs"

    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_waste_logs_quantity_positive"),
        CheckConstraint(f"reason IN ({_REASON_VALUES})", name="ck_waste_logs_reason"),
        Index("idx_waste_logs_item_timestamp", "item_id", "timestamp"),
        Index("idx_waste_logs_reason", "reason"),
    )

    item_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("items.id", ondelete="CASCADE"),
        nullable=False,
    )

    batch_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("item_batches.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    reason: Mapped[str] = mapped_column(String(20), nullable=False)
    notes: Mapped[str | None] = mapped_column(String(4000), nullable=True)

    cost_impact: Mapped[Decimal | None] = mapped_column(Numeric(18, 4), nullable=True)

    created_by: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )

    item: Mapped["Item"] = relationship()  # noqa: F821

    @property
    def reason_enum(self) -> WasteReason:
        return WasteReason(self.reason)

    def __repr__(self) -> str:
        return (
            f"<WasteLog {self.id}: item={self.item_id} batch={self.batch_id} "
            f"qty={self.quantity} reason={self.reason} cost={self.cost_impact}>"
        )
