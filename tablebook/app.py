import logging
from datetime import date, timedelta
import click
from flask import Flask, current_app, jsonify
from flask.cli import with_appcontext
from flask_cors import CORS
from .extensions import db
from .config import Config
from .blueprints.reservations import bp as reservations_bp
from .blueprints.customers import bp as customers_bp
from .blueprints.tables import bp as tables_bp
from .blueprints.staff import bp as staff_bp
from .errors import ReservationError
from .models import Customer, DiningTable, Reservation, Staff
from .notifications import notifier_from_config
from .roles import TIME_SLOTS, CurrentUser, Role
from .services.lifecycle import ReservationCoordinator

DEFAULT_TABLE_CAPACITIES = (2, 2, 4, 4, 6)

def create_app(overrides: dict | None = None):
    app = Flask(__name__)
    app.config.from_object(Config)
    if overrides:
        app.config.update(overrides)

    logging.basicConfig(format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    logging.getLogger("tablebook").setLevel(app.config["LOG_LEVEL"])

    CORS(app)

    db.init_app(app)

    app.extensions["reservation_coordinator"] = ReservationCoordinator(
        notifier_from_config(app.config),
        restaurant=app.config["RESTAURANT_NAME"],
    )

    app.register_blueprint(reservations_bp, url_prefix="/api/reservations")
    app.register_blueprint(customers_bp, url_prefix="/api/customers")
    app.register_blueprint(tables_bp, url_prefix="/api/tables")
    app.register_blueprint(staff_bp, url_prefix="/api/staff")

    @app.get("/health")
    def health():
        return jsonify(status="ok")

    app.cli.add_command(init_db_command)
    app.cli.add_command(seed_command)

    return app


@click.command("init-db")
@with_appcontext
def init_db_command():
    """Creates every table that does not exist yet."""
    db.create_all()
    click.echo("Database initialised.")


@click.command("seed")
@with_appcontext
def seed_command():
    """Creates sample data for the database."""
    db.create_all()
    db.session.query(Reservation).delete()
    db.session.query(Customer).delete()
    db.session.query(DiningTable).delete()
    db.session.query(Staff).delete()
    db.session.commit()
    click.echo("Cleared existing data.")

    db.session.add_all(DiningTable(capacity=c) for c in DEFAULT_TABLE_CAPACITIES)
    db.session.add(Staff(name="Front of House", email="host@example.com"))
    customers = [
        Customer(name=f"Customer {i+1}", email=f"customer{i+1}@example.com", phone=f"083-555-000{i}")
        for i in range(5)
    ]
    db.session.add_all(customers)
    db.session.commit()
    click.echo(f"Created {len(DEFAULT_TABLE_CAPACITIES)} tables and {len(customers)} customers.")

    coordinator = current_app.extensions["reservation_coordinator"]
    host = CurrentUser(role=Role.STAFF, email="host@example.com")
    tomorrow = date.today() + timedelta(days=1)
    booked = 0
    for i, customer in enumerate(customers):
        try:
            coordinator.create_reservation(
                customer.id, tomorrow, TIME_SLOTS[i % len(TIME_SLOTS)], 2 + i % 3, host
            )
            booked += 1
        except ReservationError as e:
            click.echo(f"Skipped {customer.email}: {e}")
    click.echo(f"Created {booked} reservations.")
    click.echo("Database seeded!")
