from datetime import timedelta

from conftest import NOW, TODAY, TOMORROW

from tablebook.roles import Role
from tablebook.services.validation import ReservationDraft, validate_reservation


def _codes(draft, role=Role.CUSTOMER):
    return [v.code for v in validate_reservation(draft, role, today=TODAY, now=NOW)]


def test_future_request_passes(app, alice):
    assert _codes(ReservationDraft(alice.id, TOMORROW, "19:00", 4)) == []


def test_date_in_the_past(app, alice):
    violations = validate_reservation(
        ReservationDraft(alice.id, TODAY - timedelta(days=1), "19:00", 2), Role.CUSTOMER, today=TODAY, now=NOW
    )

    assert [(v.field, v.code) for v in violations] == [("reservation_date", "date_in_past")]


def test_slot_already_started_today_is_rejected(app, alice):
    # NOW is 21:30
    assert _codes(ReservationDraft(alice.id, TODAY, "21:00", 2)) == ["slot_in_past"]
    assert _codes(ReservationDraft(alice.id, TODAY, "18:00", 2)) == ["slot_in_past"]


def test_later_slot_today_is_accepted(app, alice):
    assert _codes(ReservationDraft(alice.id, TODAY, "22:00", 2)) == []


def test_slot_equal_to_current_time_is_rejected(app, alice):
    now = NOW.replace(hour=22, minute=0)
    violations = validate_reservation(ReservationDraft(alice.id, TODAY, "22:00", 2), Role.CUSTOMER, today=TODAY, now=now)

    assert [v.code for v in violations] == ["slot_in_past"]


def test_second_booking_same_day_is_a_duplicate(app, alice, make_tables, book):
    (table,) = make_tables(4)
    book(alice, table, slot="18:00")

    violations = validate_reservation(
        ReservationDraft(alice.id, TOMORROW, "20:00", 2), Role.CUSTOMER, today=TODAY, now=NOW
    )

    assert [(v.field, v.code) for v in violations] == [("reservation_date", "duplicate_per_day")]


def test_editing_own_booking_is_not_a_duplicate(app, alice, make_tables, book):
    (table,) = make_tables(4)
    res = book(alice, table, slot="18:00")

    assert _codes(ReservationDraft(alice.id, TOMORROW, "20:00", 3, id=res.id)) == []


def test_other_customers_bookings_do_not_count(app, alice, bob, make_tables, book):
    (table,) = make_tables(4)
    book(bob, table, slot="18:00")

    assert _codes(ReservationDraft(alice.id, TOMORROW, "20:00", 2)) == []


def test_staff_and_admin_are_exempt_from_one_per_day(app, alice, make_tables, book):
    (table,) = make_tables(4)
    book(alice, table, slot="18:00")
    draft = ReservationDraft(alice.id, TOMORROW, "20:00", 2)

    assert _codes(draft, Role.STAFF) == []
    assert _codes(draft, Role.ADMIN) == []


def test_guest_count_bounds(app, alice):
    assert _codes(ReservationDraft(alice.id, TOMORROW, "19:00", 0)) == ["guests_out_of_range"]
    assert _codes(ReservationDraft(alice.id, TOMORROW, "19:00", 7)) == ["guests_out_of_range"]
    assert _codes(ReservationDraft(alice.id, TOMORROW, "19:00", 1)) == []
    assert _codes(ReservationDraft(alice.id, TOMORROW, "19:00", 6)) == []


def test_guest_range_applies_to_staff_too(app, alice):
    assert _codes(ReservationDraft(alice.id, TOMORROW, "19:00", 8), Role.ADMIN) == ["guests_out_of_range"]


def test_all_violations_are_reported_together(app, alice, make_tables, book):
    (table,) = make_tables(4)
    book(alice, table, day=TODAY - timedelta(days=2), slot="19:00")

    codes = _codes(ReservationDraft(alice.id, TODAY - timedelta(days=2), "20:00", 9))

    assert codes == ["date_in_past", "duplicate_per_day", "guests_out_of_range"]
