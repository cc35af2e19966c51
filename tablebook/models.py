
from sqlalchemy import CheckConstraint, UniqueConstraint, func
from .extensions import db
from .roles import MAX_GUESTS, MIN_GUESTS

SLOT_CONSTRAINT = "uq_reservation_table_date_slot"

class Customer(db.Model):
    __tablename__ = "customers"
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    phone = db.Column(db.String(32), nullable=False)
    email = db.Column(db.String(255), nullable=False, unique=True, index=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=func.now())

    reservations = db.relationship("Reservation", back_populates="customer", cascade="all, delete")

class DiningTable(db.Model):
    __tablename__ = "tables"
    id = db.Column(db.Integer, primary_key=True)
    capacity = db.Column(db.Integer, nullable=False)

    reservations = db.relationship("Reservation", back_populates="table", cascade="all, delete")

    __table_args__ = (
        CheckConstraint("capacity > 0", name="ck_table_capacity_positive"),
    )

class Staff(db.Model):
    __tablename__ = "staff"
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    email = db.Column(db.String(255), nullable=False, unique=True, index=True)

    # no delete cascade: removing a staff member only clears reservation.staff_id
    reservations = db.relationship("Reservation", back_populates="staff")

class Reservation(db.Model):
    __tablename__ = "reservations"
    id = db.Column(db.Integer, primary_key=True)
    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id", ondelete="CASCADE"), nullable=False, index=True)
    table_id = db.Column(db.Integer, db.ForeignKey("tables.id", ondelete="CASCADE"), nullable=False, index=True)
    staff_id = db.Column(db.Integer, db.ForeignKey("staff.id", ondelete="SET NULL"), nullable=True)
    reservation_date = db.Column(db.Date, nullable=False, index=True)
    time_slot = db.Column(db.String(5), nullable=False)
    guests = db.Column(db.Integer, nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    customer = db.relationship("Customer", back_populates="reservations")
    table = db.relationship("DiningTable", back_populates="reservations")
    staff = db.relationship("Staff", back_populates="reservations")

    __table_args__ = (
        UniqueConstraint("table_id", "reservation_date", "time_slot", name=SLOT_CONSTRAINT),
        CheckConstraint(f"guests BETWEEN {MIN_GUESTS} AND {MAX_GUESTS}", name="ck_reservation_guests_range"),
    )
