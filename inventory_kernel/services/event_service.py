"""
EventService -- creation and lookup of the events that own items.

Responsibility:
    Minimal event lifecycle the ledger needs: create an event so items can
    be registered under it, and resolve an event by id.  Membership and
    scheduling live in the application layer.

Architecture position:
    Kernel > Services -- imperative shell, flush only.
"""

from uuid import UUID

from inventory_kernel.exceptions import EventNotFoundError, InvalidArgumentError
from inventory_kernel.logging_config import get_logger
from inventory_kernel.models.event import Event
from inventory_kernel.services.base import BaseService

logger = get_logger("services.event")


class EventService(BaseService[Event]):
    """Creates and resolves events."""

    def create_event(self, name: str) -> Event:
        name = (name or "").strip()
        if not name:
            raise InvalidArgumentError("Event name is required")

        event = Event(name=name, created_at=self.clock.now())
        self.session.add(event)
        self.session.flush()

        logger.info(
            "event_created",
            extra={"event_id": str(event.id), "event_name": name},
        )
        return event

    def get_event(self, event_id: UUID) -> Event:
        event = self.session.get(Event, event_id)
        if event is None:
            raise EventNotFoundError(str(event_id))
        return event
