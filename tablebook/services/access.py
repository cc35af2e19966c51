"""Which reservations a requester may see or change."""
from ..roles import Role


def visible_reservations(reservations, role: Role, customer_id: int | None) -> list:
    if role.is_staff:
        rows = list(reservations)
    elif role is Role.CUSTOMER and customer_id is not None:
        rows = [r for r in reservations if r.customer_id == customer_id]
    else:
        return []
    return sorted(rows, key=lambda r: (r.reservation_date, r.time_slot))


def can_modify(reservation, role: Role, customer_id: int | None) -> bool:
    if role.is_staff:
        return True
    return role is Role.CUSTOMER and customer_id is not None and reservation.customer_id == customer_id
