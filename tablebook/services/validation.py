"""Business rules checked before a reservation is allocated a table."""
from dataclasses import dataclass
from datetime import date, datetime

from .. import store
from ..errors import Violation
from ..roles import MAX_GUESTS, MIN_GUESTS, Role, slot_time


@dataclass
class ReservationDraft:
    """An unpersisted reservation request; ``id`` is set when editing, ``customer_id`` is None for a staff walk-in."""
    customer_id: int | None
    reservation_date: date
    time_slot: str
    guests: int
    id: int | None = None


def validate_reservation(draft: ReservationDraft, role: Role, *, today: date, now: datetime) -> list[Violation]:
    """
    Checks every rule independently and returns all violations found.

    Never writes to the session and never looks for a table.
    """
    violations = []

    if draft.reservation_date < today:
        violations.append(Violation(
            "reservation_date", "date_in_past",
            "Sorry about that, but the reservation date must be today or later.",
        ))
    elif draft.reservation_date == today and slot_time(draft.time_slot) <= now.time():
        violations.append(Violation(
            "time_slot", "slot_in_past",
            "Sorry about that, but the time slot must be later than the current time.",
        ))

    if not role.is_staff and store.customer_has_reservation_on(
        draft.customer_id, draft.reservation_date, exclude_id=draft.id
    ):
        violations.append(Violation(
            "reservation_date", "duplicate_per_day",
            "Sorry about that, but you already have a reservation on this date. "
            "However, you are welcome to modify the time slot or the number of guests if needed.",
        ))

    if not MIN_GUESTS <= draft.guests <= MAX_GUESTS:
        violations.append(Violation(
            "guests", "guests_out_of_range",
            f"Please enter the number of guests between {MIN_GUESTS} and {MAX_GUESTS}. "
            "For larger groups, please call the restaurant.",
        ))

    return violations
