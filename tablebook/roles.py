"""Requester roles and the fixed set of bookable time slots."""
from dataclasses import dataclass
from datetime import time
from enum import Enum

TIME_SLOTS = ("18:00", "19:00", "20:00", "21:00", "22:00")

MIN_GUESTS = 1
MAX_GUESTS = 6


class Role(str, Enum):
    ADMIN = "admin"
    STAFF = "staff"
    CUSTOMER = "customer"
    ANONYMOUS = "anonymous"

    @property
    def is_staff(self) -> bool:
        """Admin and Staff share the same booking privileges."""
        return self in (Role.ADMIN, Role.STAFF)


@dataclass(frozen=True)
class CurrentUser:
    role: Role
    email: str | None = None
    customer_id: int | None = None

    @property
    def is_authenticated(self) -> bool:
        return self.role is not Role.ANONYMOUS


ANONYMOUS = CurrentUser(role=Role.ANONYMOUS)


def slot_time(slot: str) -> time:
    """Parses a recognized slot literal such as "19:00" into a time of day."""
    if slot not in TIME_SLOTS:
        raise ValueError(f"Unknown time slot {slot!r}; expected one of {', '.join(TIME_SLOTS)}.")
    hour, minute = slot.split(":")
    return time(int(hour), int(minute))
