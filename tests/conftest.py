"""Shared fixtures: an app on a throwaway SQLite file, a fixed clock and a recording notifier."""
from datetime import datetime, timedelta

import pytest

from tablebook.app import create_app
from tablebook.extensions import db
from tablebook.models import Customer, DiningTable, Reservation, Staff
from tablebook.notifications import Notifier
from tablebook.roles import CurrentUser, Role

NOW = datetime(2030, 5, 14, 21, 30)
TODAY = NOW.date()
TOMORROW = TODAY + timedelta(days=1)

ADMIN_TOKEN = "test-admin-token"
STAFF_TOKEN = "test-staff-token"

ADMIN = CurrentUser(role=Role.ADMIN, email="admin@example.com")
STAFF = CurrentUser(role=Role.STAFF, email="host@example.com")


class RecordingNotifier(Notifier):
    def __init__(self):
        self.sent = []
        self.fail = False

    def send(self, to_email, subject, html_body):
        if self.fail:
            raise ConnectionError("SMTP server unreachable")
        self.sent.append((to_email, subject, html_body))
        return True


@pytest.fixture
def app(tmp_path, monkeypatch):
    monkeypatch.setenv("ADMIN_TOKEN", ADMIN_TOKEN)
    monkeypatch.setenv("STAFF_TOKEN", STAFF_TOKEN)
    app = create_app({
        "TESTING": True,
        "SQLALCHEMY_DATABASE_URI": f"sqlite:///{tmp_path / 'test.db'}",
        "SQLALCHEMY_ENGINE_OPTIONS": {"connect_args": {"check_same_thread": False, "timeout": 30}},
        "RATE_LIMIT_PER_MINUTE": 0,
        "MAIL_BACKEND": "log",
    })
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def coordinator(app, notifier):
    coordinator = app.extensions["reservation_coordinator"]
    coordinator.notifier = notifier
    coordinator.clock = lambda: NOW
    return coordinator


@pytest.fixture
def make_tables(app):
    def _make(*capacities):
        tables = [DiningTable(capacity=c) for c in capacities]
        db.session.add_all(tables)
        db.session.commit()
        return tables
    return _make


@pytest.fixture
def make_customer(app):
    def _make(name, email=None, phone="083123456"):
        customer = Customer(name=name, email=email or f"{name.lower()}@example.com", phone=phone)
        db.session.add(customer)
        db.session.commit()
        return customer
    return _make


@pytest.fixture
def alice(make_customer):
    return make_customer("Alice")


@pytest.fixture
def bob(make_customer):
    return make_customer("Bob")


@pytest.fixture
def host(app):
    member = Staff(name="Front of House", email=STAFF.email)
    db.session.add(member)
    db.session.commit()
    return member


@pytest.fixture
def book(app):
    """Inserts a reservation row directly, bypassing the coordinator."""
    def _book(customer, table, day=TOMORROW, slot="19:00", guests=2):
        res = Reservation(customer_id=customer.id, table_id=table.id,
                          reservation_date=day, time_slot=slot, guests=guests)
        db.session.add(res)
        db.session.commit()
        return res
    return _book


def as_customer(customer) -> CurrentUser:
    return CurrentUser(role=Role.CUSTOMER, email=customer.email, customer_id=customer.id)
