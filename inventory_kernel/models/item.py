"""
Module: inventory_kernel.models.item
Responsibility: ORM persistence for the item aggregate: the denormalized
    total quantity the batch ledger keeps in sync.
Architecture position: Kernel > Models.  May import from db/base.py and
    domain/stock.py (for the StockMode tag).

Invariants enforced:
    - quantity >= 0 (CHECK constraint).
    - Batch tracking: once ``stock_mode`` is BATCHED it never reverts, and
      ``quantity == sum(open batch quantity)`` (maintained by services,
      verified by LedgerSelector.check_conservation).
    - Optimistic guard: ``version`` is SQLAlchemy's version_id_col, so a
      concurrent writer that slipped past the row lock is detected as
      StaleDataError at flush.

Failure modes:
    - IntegrityError if quantity would go negative.
    - StaleDataError on version mismatch (translated to OptimisticLockError).
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from inventory_kernel.db.base import Base, UUIDString
from inventory_kernel.domain.stock import StockMode


class Item(Base):
    """
    An inventory item belonging to one event.

    Contract:
        ``quantity`` is the authoritative current total.  While
        ``stock_mode`` is UNBATCHED it is a plain counter; once the first
        batch is received it is BATCHED and only ledger operations move it.
    """

    __tablename__ = "items"

    __table_args__ = (
        CheckConstraint("quantity >= 0", name="ck_items_quantity_non_negative"),
    )

    event_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("events.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    sku: Mapped[str] = mapped_column(String(255), nullable=False)

    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    unit_of_measure: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="each",
    )

    unit_price: Mapped[Decimal | None] = mapped_column(Numeric(18, 4), nullable=True)

    # 'unbatched' | 'batched'
    stock_mode: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=StockMode.UNBATCHED.value,
    )

    last_audited_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    event: Mapped["Event"] = relationship(back_populates="items")  # noqa: F821
    batches: Mapped[list["ItemBatch"]] = relationship(  # noqa: F821
        back_populates="item",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="ItemBatch.received_at",
    )

    @property
    def mode(self) -> StockMode:
        return StockMode(self.stock_mode)

    @property
    def is_batch_tracked(self) -> bool:
        return self.mode is StockMode.BATCHED

    def __repr__(self) -> str:
        return (
            f"<Item {self.id}: {self.sku} qty={self.quantity} "
            f"{self.unit_of_measure} mode={self.stock_mode}>"
        )
