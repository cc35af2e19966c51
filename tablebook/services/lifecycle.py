"""
Reservation lifecycle: validate, allocate a table, persist, then notify.

Validation, allocation and commit run under a lock for the customer and date,
and allocation and commit additionally under a lock for the requested
(date, slot). The (table, date, slot) unique constraint catches clashes with
other processes. A clash is retried once against the next free table.
"""
import logging
import threading
from datetime import date, datetime
from enum import Enum
from typing import Callable

from sqlalchemy.exc import IntegrityError

from .. import store
from ..errors import (
    AccessDenied,
    BusinessRuleViolation,
    CapacityExhausted,
    ConcurrencyConflict,
    MalformedInput,
    ReservationNotFound,
)
from ..extensions import db
from ..models import SLOT_CONSTRAINT, Customer, Reservation
from ..notifications import ChangeKind, Notifier, ReservationEvent, dispatch
from ..roles import TIME_SLOTS, CurrentUser, Role
from .access import can_modify, visible_reservations
from .availability import find_table
from .validation import ReservationDraft, validate_reservation

logger = logging.getLogger(__name__)

COMMIT_ATTEMPTS = 2

# sqlite names the columns rather than the constraint
_SQLITE_SLOT_CLASH = (
    "UNIQUE constraint failed: reservations.table_id, "
    "reservations.reservation_date, reservations.time_slot"
)


class ReservationState(str, Enum):
    DRAFT = "draft"
    VALIDATED = "validated"
    ALLOCATED = "allocated"
    PERSISTED = "persisted"
    CANCELLED = "cancelled"


class KeyedLocks:
    """One lock per (date, ...) key; unrelated keys never wait on each other."""

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: dict[tuple, threading.Lock] = {}

    def __call__(self, day: date, *rest) -> threading.Lock:
        with self._guard:
            return self._locks.setdefault((day, *rest), threading.Lock())

    def __len__(self) -> int:
        return len(self._locks)

    def discard_before(self, day: date) -> None:
        """Drops idle locks for dates before ``day``."""
        with self._guard:
            stale = [key for key, lock in self._locks.items() if key[0] < day and not lock.locked()]
            for key in stale:
                del self._locks[key]


class ReservationCoordinator:
    def __init__(
        self,
        notifier: Notifier,
        restaurant: str = "",
        clock: Callable[[], datetime] = datetime.now,
        locks: KeyedLocks | None = None,
        customer_locks: KeyedLocks | None = None,
    ):
        self.notifier = notifier
        self.restaurant = restaurant
        self.clock = clock
        self.locks = locks or KeyedLocks()
        self.customer_locks = customer_locks or KeyedLocks()

    def create_reservation(
        self,
        customer_id: int | None,
        reservation_date: date,
        time_slot: str,
        guests: int,
        requester: CurrentUser,
    ) -> Reservation:
        """
        Books a table for ``customer_id``.

        Staff may pass ``customer_id=None`` for a walk-in; the booking is then
        filed under their house customer (see ``house_customer``).
        """
        _check_slot(time_slot)
        if not requester.is_authenticated:
            raise AccessDenied("Sign in to make a reservation.")
        if customer_id is None:
            if not requester.role.is_staff:
                raise MalformedInput("customerId is required.")
            if not requester.email:
                raise MalformedInput("customerId is required without X-User-Email.")
        elif store.get(Customer, customer_id) is None:
            raise MalformedInput(f"Customer {customer_id} does not exist.")
        elif not requester.role.is_staff and requester.customer_id != customer_id:
            raise AccessDenied("Customers can only book for themselves.")

        draft = ReservationDraft(customer_id, reservation_date, time_slot, guests)
        staff_id = self._staff_id(requester)

        def build(table):
            owner_id = draft.customer_id
            if owner_id is None:
                owner_id = self.house_customer(requester).id
            return Reservation(
                customer_id=owner_id,
                table_id=table.id,
                staff_id=staff_id,
                reservation_date=draft.reservation_date,
                time_slot=draft.time_slot,
                guests=draft.guests,
            )

        owner_key = customer_id if customer_id is not None else requester.email.lower()
        with self.customer_locks(reservation_date, owner_key):
            self._check_rules(draft, requester.role)
            reservation = self._allocate_and_persist(draft, build)

        logger.info("Reservation %s booked: table %s on %s at %s for %s guests",
                    reservation.id, reservation.table_id, reservation.reservation_date,
                    reservation.time_slot, reservation.guests)
        self._notify(reservation, ChangeKind.CREATED)
        return reservation

    def edit_reservation(
        self,
        reservation_id: int,
        reservation_date: date,
        time_slot: str,
        guests: int,
        requester: CurrentUser,
    ) -> Reservation:
        _check_slot(time_slot)
        reservation = store.get(Reservation, reservation_id)
        if reservation is None:
            raise ReservationNotFound(reservation_id)
        if not can_modify(reservation, requester.role, requester.customer_id):
            raise AccessDenied("You can only change your own reservations.")

        draft = ReservationDraft(reservation.customer_id, reservation_date, time_slot, guests, id=reservation.id)
        current_table_id = reservation.table_id

        def apply(table):
            row = store.get(Reservation, reservation_id)
            if row is None:
                raise ReservationNotFound(reservation_id)
            row.reservation_date = draft.reservation_date
            row.time_slot = draft.time_slot
            row.guests = draft.guests
            row.table_id = table.id
            return row

        with self.customer_locks(reservation_date, draft.customer_id):
            self._check_rules(draft, requester.role)
            reservation = self._allocate_and_persist(draft, apply, prefer_table_id=current_table_id)

        logger.info("Reservation %s updated: table %s on %s at %s for %s guests",
                    reservation.id, reservation.table_id, reservation.reservation_date,
                    reservation.time_slot, reservation.guests)
        self._notify(reservation, ChangeKind.UPDATED)
        return reservation

    def cancel_reservation(self, reservation_id: int, requester: CurrentUser | None = None) -> None:
        """Deletes a reservation. A missing id is treated as already cancelled."""
        reservation = store.get(Reservation, reservation_id)
        if reservation is None:
            logger.info("Reservation %s already absent; nothing to cancel", reservation_id)
            return
        if requester is not None and not can_modify(reservation, requester.role, requester.customer_id):
            raise AccessDenied("You can only cancel your own reservations.")

        event = self._event(reservation, ChangeKind.CANCELLED)
        try:
            store.delete(reservation)
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise
        logger.info("Reservation %s %s", reservation_id, ReservationState.CANCELLED.value)
        dispatch(self.notifier, event, self.restaurant)

    def list_visible_reservations(self, requester: CurrentUser) -> list[Reservation]:
        if requester.role.is_staff:
            rows = store.reservations_where()
        elif requester.role is Role.CUSTOMER and requester.customer_id is not None:
            rows = store.reservations_where(Reservation.customer_id == requester.customer_id)
        else:
            rows = []
        return visible_reservations(rows, requester.role, requester.customer_id)

    def house_customer(self, requester: CurrentUser) -> Customer:
        """
        The customer record staff walk-ins are filed under, keyed by the staff email.

        A new record is only flushed, so it is committed or rolled back together
        with the reservation that needed it.
        """
        email = requester.email.lower()
        customer = store.find_customer_by_email(email)
        if customer is not None:
            return customer
        try:
            return store.add(Customer(name=email, phone="N/A", email=email))
        except IntegrityError:
            # another process created it between the lookup and the insert
            db.session.rollback()
            return store.find_customer_by_email(email)

    def _check_rules(self, draft: ReservationDraft, role: Role) -> None:
        now = self.clock()
        self.locks.discard_before(now.date())
        self.customer_locks.discard_before(now.date())
        _log_state(draft, ReservationState.DRAFT)
        violations = validate_reservation(draft, role, today=now.date(), now=now)
        if violations:
            logger.warning("Reservation for customer %s rejected: %s", draft.customer_id,
                           ", ".join(v.code for v in violations))
            raise BusinessRuleViolation(violations)
        _log_state(draft, ReservationState.VALIDATED)

    def _allocate_and_persist(self, draft: ReservationDraft, stage, prefer_table_id: int | None = None) -> Reservation:
        exclude = set()
        with self.locks(draft.reservation_date, draft.time_slot):
            for attempt in range(1, COMMIT_ATTEMPTS + 1):
                table = find_table(
                    draft.reservation_date,
                    draft.time_slot,
                    draft.guests,
                    exclude_table_ids=exclude,
                    ignore_reservation_id=draft.id,
                    prefer_table_id=prefer_table_id,
                )
                if table is None:
                    raise CapacityExhausted(_exhaustion_reason(draft.guests))
                table_id = table.id
                _log_state(draft, ReservationState.ALLOCATED)

                try:
                    row = stage(table)
                    db.session.add(row)
                    _commit(table_id)
                except ConcurrencyConflict as conflict:
                    logger.warning("Commit attempt %s failed: %s", attempt, conflict)
                    exclude.add(conflict.table_id)
                    continue

                _log_state(draft, ReservationState.PERSISTED)
                return row

        raise CapacityExhausted(CapacityExhausted.FULLY_BOOKED)

    def _staff_id(self, requester: CurrentUser) -> int | None:
        if not requester.role.is_staff or not requester.email:
            return None
        staff = store.find_staff_by_email(requester.email)
        return staff.id if staff else None

    def _event(self, reservation: Reservation, kind: ChangeKind) -> ReservationEvent:
        return ReservationEvent(
            customer_email=reservation.customer.email,
            customer_name=reservation.customer.name,
            reservation_date=reservation.reservation_date,
            time_slot=reservation.time_slot,
            guests=reservation.guests,
            change_kind=kind,
        )

    def _notify(self, reservation: Reservation, kind: ChangeKind) -> None:
        dispatch(self.notifier, self._event(reservation, kind), self.restaurant)


def _commit(table_id: int) -> None:
    """Commits the staged row; a clash on the table/date/slot constraint becomes ConcurrencyConflict."""
    try:
        db.session.commit()
    except IntegrityError as e:
        db.session.rollback()
        if _is_slot_clash(e):
            raise ConcurrencyConflict(table_id) from e
        raise
    except Exception:
        db.session.rollback()
        raise


def _is_slot_clash(exc: IntegrityError) -> bool:
    message = str(exc.orig)
    return SLOT_CONSTRAINT in message or _SQLITE_SLOT_CLASH in message


def _check_slot(time_slot: str) -> None:
    if time_slot not in TIME_SLOTS:
        raise MalformedInput(f"Unknown time slot {time_slot!r}.")


def _exhaustion_reason(guests: int) -> str:
    if guests > store.largest_capacity():
        return CapacityExhausted.NO_TABLE_LARGE_ENOUGH
    return CapacityExhausted.FULLY_BOOKED


def _log_state(draft: ReservationDraft, state: ReservationState) -> None:
    logger.debug("Reservation %s for customer %s on %s at %s: %s",
                 draft.id or "(new)", draft.customer_id, draft.reservation_date, draft.time_slot, state.value)
