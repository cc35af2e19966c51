"""Query helpers over the Flask-SQLAlchemy session.

Everything here reads or stages rows on ``db.session``; committing is left to the
caller so a whole lifecycle step can be committed (or rolled back) as one unit.
"""
from datetime import date

from sqlalchemy import exists, func, select

from .extensions import db
from .models import Customer, DiningTable, Reservation, Staff


def get(model, key: int):
    return db.session.get(model, key)


def add(row):
    db.session.add(row)
    db.session.flush()
    return row


def delete(row) -> None:
    db.session.delete(row)


def find_customer_by_email(email: str) -> Customer | None:
    return db.session.execute(
        select(Customer).where(func.lower(Customer.email) == email.lower())
    ).scalar_one_or_none()


def find_staff_by_email(email: str) -> Staff | None:
    return db.session.execute(
        select(Staff).where(func.lower(Staff.email) == email.lower())
    ).scalar_one_or_none()


def list_all(model, *order_by):
    return list(db.session.execute(select(model).order_by(*(order_by or (model.id,)))).scalars())


def reservations_where(*criteria) -> list[Reservation]:
    """Reservations matching every SQLAlchemy criterion given, in booking order."""
    stmt = select(Reservation).where(*criteria).order_by(
        Reservation.reservation_date.asc(), Reservation.time_slot.asc(), Reservation.id.asc()
    )
    return list(db.session.execute(stmt).scalars())


def customer_has_reservation_on(customer_id: int, day: date, exclude_id: int | None = None) -> bool:
    criteria = [Reservation.customer_id == customer_id, Reservation.reservation_date == day]
    if exclude_id is not None:
        criteria.append(Reservation.id != exclude_id)
    return db.session.execute(select(exists().where(*criteria))).scalar()


def count_slot_reservations(table_id: int, day: date, time_slot: str, ignore_id: int | None = None) -> int:
    q = select(func.count()).select_from(Reservation).where(
        Reservation.table_id == table_id,
        Reservation.reservation_date == day,
        Reservation.time_slot == time_slot,
    )
    if ignore_id is not None:
        q = q.where(Reservation.id != ignore_id)
    return db.session.execute(q).scalar_one()


def tables_seating(guests: int) -> list[DiningTable]:
    """Tables able to seat ``guests``, smallest first, ties broken by id."""
    return list(db.session.execute(
        select(DiningTable)
        .where(DiningTable.capacity >= guests)
        .order_by(DiningTable.capacity.asc(), DiningTable.id.asc())
    ).scalars())


def largest_capacity() -> int:
    return db.session.execute(select(func.coalesce(func.max(DiningTable.capacity), 0))).scalar_one()
