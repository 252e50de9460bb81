"""
Access -- Role hierarchy and the acting principal.

Responsibility:
    Answers one question for the orchestrator: may this actor mutate stock?
    How roles are granted to members is decided elsewhere.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
"""

from dataclasses import dataclass
from enum import IntEnum
from uuid import UUID


class Role(IntEnum):
    """Event membership roles, ordered by privilege."""

    VIEWER = 1
    EDITOR = 2
    ADMIN = 3
    OWNER = 4

    def allows(self, required: "Role") -> bool:
        """True if this role is at or above ``required``."""
        return self >= required

    @classmethod
    def parse(cls, value: "str | Role") -> "Role":
        if isinstance(value, Role):
            return value
        try:
            return cls[value.strip().upper()]
        except KeyError:
            raise ValueError(f"Unknown role: {value}") from None


# Minimum role for receive, consume, waste and audit
MUTATION_ROLE = Role.EDITOR


@dataclass(frozen=True)
class ActorContext:
    """Who is performing an operation and with what role."""

    actor_id: UUID
    role: Role

    @property
    def can_mutate(self) -> bool:
        return self.role.allows(MUTATION_ROLE)
