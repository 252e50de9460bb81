"""
Module: inventory_kernel.models.event
Responsibility: ORM persistence for events, the owners of inventory items.
Architecture position: Kernel > Models.  May import from db/base.py only.

Membership, roles and scheduling live in the application layer; the ledger
only needs the event identity to check that an item belongs to the event a
caller is acting in.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from inventory_kernel.db.base import Base


class Event(Base):
    """An event whose inventory is tracked."""

    __tablename__ = "events"

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    items: Mapped[list["Item"]] = relationship(  # noqa: F821
        back_populates="event",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<Event {self.id}: {self.name}>"
