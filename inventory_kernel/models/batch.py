"""
Module: inventory_kernel.models.batch
Responsibility: ORM persistence for item batches: discrete received lots
    with their own remaining quantity and optional expiration.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - 0 <= quantity <= initial_quantity, initial_quantity > 0 (CHECK).
    - is_open == (quantity > 0) (CHECK).  The flag is persisted so the
      FEFO scan can filter on an index instead of a computed predicate.
    - initial_quantity is immutable; quantity only decreases; a closed
      batch never reopens (db/immutability.py).
    - Batches are never deleted by ledger operations.  Closed batches are
      history.

Indexes:
    idx_item_batches_fefo supports the FEFO scan: open batches of one item
    ordered by (expiration_date NULLS LAST, received_at, created_at).
"""

from __future__ import annotations

from datetime import date, datetime
from uuid import UUID

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from inventory_kernel.db.base import Base, UUIDString


class ItemBatch(Base):
    """
    One received lot of an item.

    State machine: OPEN (quantity > 0) -> CLOSED (quantity == 0), monotonic.
    """

    __tablename__ = "item_batches"

    __table_args__ = (
        CheckConstraint("initial_quantity > 0", name="ck_item_batches_initial_positive"),
        CheckConstraint("quantity >= 0", name="ck_item_batches_quantity_non_negative"),
        CheckConstraint(
            "quantity <= initial_quantity",
            name="ck_item_batches_quantity_within_initial",
        ),
        CheckConstraint(
            "is_open = (quantity > 0)",
            name="ck_item_batches_open_flag",
        ),
        Index(
            "idx_item_batches_fefo",
            "item_id",
            "is_open",
            "expiration_date",
            "received_at",
            "created_at",
        ),
    )

    item_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("items.id", ondelete="CASCADE"),
        nullable=False,
    )

    # Free-form label, not unique
    lot_number: Mapped[str | None] = mapped_column(String(255), nullable=True)

    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    initial_quantity: Mapped[int] = mapped_column(Integer, nullable=False)

    expiration_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    received_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )
    manufactured_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    is_open: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    notes: Mapped[str | None] = mapped_column(String(4000), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )

    item: Mapped["Item"] = relationship(back_populates="batches")  # noqa: F821

    def __repr__(self) -> str:
        state = "open" if self.is_open else "closed"
        return (
            f"<ItemBatch {self.id}: item={self.item_id} lot={self.lot_number} "
            f"{self.quantity}/{self.initial_quantity} exp={self.expiration_date} {state}>"
        )


def fefo_order_by():
    """ORDER BY clause matching inventory_engines.fefo.fefo_sort_key."""
    return (
        ItemBatch.expiration_date.asc().nulls_last(),
        ItemBatch.received_at.asc(),
        ItemBatch.created_at.asc(),
        ItemBatch.id.asc(),
    )
