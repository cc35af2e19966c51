from flask import Blueprint, jsonify
from sqlalchemy.exc import IntegrityError
from ..auth import current_user
from ..extensions import db
from ..http import jerror, parse_json, unauthorized
from ..models import Customer
from ..schemas import CustomerRequest, CustomerUpdateRequest
from .. import store


bp = Blueprint("customers", __name__)


def customer_json(c: Customer) -> dict:
    return {"id": c.id, "name": c.name, "email": c.email, "phone": c.phone}


def _load_for(user, customer_id: int):
    """The customer row if ``user`` may manage it, otherwise an error response."""
    customer = store.get(Customer, customer_id)
    if customer is None:
        return None, jerror(404, "NOT_FOUND", f"Customer {customer_id} not found")
    if not user.role.is_staff and user.customer_id != customer.id:
        return None, jerror(403, "FORBIDDEN", "You can only manage your own profile.")
    return customer, None


@bp.post("")
def create_customer():
    user = current_user()
    if not user.is_authenticated:
        return unauthorized()

    data, error = parse_json(CustomerRequest)
    if error:
        return error

    if user.role.is_staff:
        if data.email is None:
            return jerror(400, "MALFORMED_INPUT", "email is required.")
        email = data.email
    else:
        # a customer profile is always bound to the signed-in identity
        email = user.email

    customer = Customer(name=data.name, phone=data.phone, email=email.lower())
    db.session.add(customer)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        return jerror(409, "DUPLICATE_EMAIL", "A customer with this email already exists.")

    return jsonify(customer_json(customer)), 201

@bp.get("")
def list_customers():
    user = current_user()
    if not user.is_authenticated:
        return unauthorized()
    if not user.role.is_staff:
        return jerror(403, "FORBIDDEN", "Only staff can list customers.")

    customers = store.list_all(Customer, Customer.name.asc(), Customer.id.asc())
    return jsonify(customers=[customer_json(c) for c in customers])

@bp.get("/<int:customer_id>")
def customer_detail(customer_id: int):
    user = current_user()
    if not user.is_authenticated:
        return unauthorized()

    customer, error = _load_for(user, customer_id)
    if error:
        return error
    return jsonify(customer_json(customer))

@bp.put("/<int:customer_id>")
def update_customer(customer_id: int):
    user = current_user()
    if not user.is_authenticated:
        return unauthorized()

    customer, error = _load_for(user, customer_id)
    if error:
        return error
    data, error = parse_json(CustomerUpdateRequest)
    if error:
        return error

    if data.name is not None:
        customer.name = data.name
    if data.phone is not None:
        customer.phone = data.phone
    db.session.commit()
    return jsonify(customer_json(customer))

@bp.delete("/<int:customer_id>")
def delete_customer(customer_id: int):
    user = current_user()
    if not user.is_authenticated:
        return unauthorized()

    customer, error = _load_for(user, customer_id)
    if error:
        return error

    # reservations go with the customer (delete cascade)
    store.delete(customer)
    db.session.commit()
    return jsonify(status="deleted", customerId=customer_id)
