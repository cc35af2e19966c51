"""Table allocation for a requested date, slot and party size."""
from datetime import date

from .. import store
from ..models import DiningTable
from ..roles import TIME_SLOTS


def find_table(
    reservation_date: date,
    time_slot: str,
    guests: int,
    *,
    exclude_table_ids=(),
    ignore_reservation_id: int | None = None,
    prefer_table_id: int | None = None,
) -> DiningTable | None:
    """
    Returns the smallest free table that seats ``guests``, or None.

    None covers both "no table is large enough" and "every large-enough table is
    already booked for this date and slot". When editing, ``ignore_reservation_id``
    keeps the edited booking from conflicting with itself and ``prefer_table_id``
    keeps its current table if that one still works.
    """
    candidates = [t for t in store.tables_seating(guests) if t.id not in exclude_table_ids]
    if prefer_table_id is not None:
        candidates.sort(key=lambda t: t.id != prefer_table_id)

    for table in candidates:
        booked = store.count_slot_reservations(
            table.id, reservation_date, time_slot, ignore_id=ignore_reservation_id
        )
        if booked == 0:
            return table
    return None


def slot_availability(reservation_date: date, guests: int) -> list[dict]:
    """Free-table counts for every slot on a date, for a party of ``guests``."""
    tables = store.tables_seating(guests)
    summary = []
    for slot in TIME_SLOTS:
        free = sum(
            1 for t in tables
            if store.count_slot_reservations(t.id, reservation_date, slot) == 0
        )
        summary.append({"slot": slot, "suitableTables": len(tables), "freeTables": free, "available": free > 0})
    return summary
