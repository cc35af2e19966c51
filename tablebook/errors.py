"""Exceptions raised by the reservation engine.

Blueprints translate these into JSON error envelopes; see ``http.jerror``.
"""
from dataclasses import asdict, dataclass


@dataclass(frozen=True)
class Violation:
    field: str
    code: str
    message: str

    def to_dict(self) -> dict:
        return asdict(self)


class ReservationError(Exception):
    """Base class for every error the engine reports to its callers."""


class MalformedInput(ReservationError):
    """Unparseable date or time, or a slot outside the recognized set."""

    def __init__(self, message: str, details=None):
        super().__init__(message)
        self.details = details


class BusinessRuleViolation(ReservationError):
    def __init__(self, violations: list[Violation]):
        super().__init__("; ".join(v.message for v in violations))
        self.violations = violations


class CapacityExhausted(ReservationError):
    NO_TABLE_LARGE_ENOUGH = "no_table_large_enough"
    FULLY_BOOKED = "fully_booked"

    def __init__(self, reason: str = FULLY_BOOKED):
        if reason == self.NO_TABLE_LARGE_ENOUGH:
            message = "No table in the restaurant can seat a party of this size."
        else:
            message = (
                "Unfortunately, we don't have any available tables for your selected "
                "date and time slot. Please try choosing a different time or date."
            )
        super().__init__(message)
        self.reason = reason


class ConcurrencyConflict(ReservationError):
    """A commit clashed with a reservation committed concurrently for the same table."""

    def __init__(self, table_id: int):
        super().__init__(f"Table {table_id} was booked concurrently.")
        self.table_id = table_id


class ReservationNotFound(ReservationError):
    def __init__(self, reservation_id: int):
        super().__init__(f"Reservation {reservation_id} not found")
        self.reservation_id = reservation_id


class AccessDenied(ReservationError):
    pass
