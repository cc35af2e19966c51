import threading
from flask import Blueprint, request, jsonify, current_app
from datetime import datetime, timezone
from pydantic import ValidationError
from ..auth import current_user
from ..errors import ReservationError
from ..http import jerror, from_exception, parse_json, unauthorized, validation_details
from ..models import Reservation
from ..schemas import AvailabilityQuery, CreateReservationRequest, EditReservationRequest
from ..services.access import visible_reservations
from ..services.availability import slot_availability
from .. import store

bp = Blueprint("reservations", __name__)

_rate_state: dict[str, tuple[int, int]] = {}
_rate_lock = threading.Lock()
_RATE_WINDOW = 60

def _allow(ip: str) -> bool:
    limit = current_app.config.get("RATE_LIMIT_PER_MINUTE", 0)
    if limit <= 0:
        return True
    now = int(datetime.now(tz=timezone.utc).timestamp())
    window = now // _RATE_WINDOW
    with _rate_lock:
        # only the current window's counters are kept
        for stale in [key for key, (_, win) in _rate_state.items() if win != window]:
            del _rate_state[stale]
        count, _ = _rate_state.get(ip, (0, window))
        count += 1
        _rate_state[ip] = (count, window)
    return count <= limit


def _client_ip() -> str:
    fwd = request.headers.get("X-Forwarded-For")
    return (fwd.split(",")[0].strip() if fwd else request.remote_addr or "0.0.0.0")


def _coordinator():
    return current_app.extensions["reservation_coordinator"]


def reservation_json(res: Reservation) -> dict:
    return {
        "id": res.id,
        "date": res.reservation_date.isoformat(),
        "timeSlot": res.time_slot,
        "guests": res.guests,
        "tableId": res.table_id,
        "tableCapacity": res.table.capacity,
        "staffId": res.staff_id,
        "customer": {
            "id": res.customer.id,
            "name": res.customer.name,
            "email": res.customer.email,
            "phone": res.customer.phone,
        },
    }


@bp.get("/availability")
def availability():
    try:
        query = AvailabilityQuery.model_validate(request.args.to_dict())
    except ValidationError as e:
        return jerror(400, "MALFORMED_INPUT", "Expected ?date=YYYY-MM-DD&guests=N.",
                      details=validation_details(e))

    return jsonify(
        date=query.reservation_date.isoformat(),
        guests=query.guests,
        slots=slot_availability(query.reservation_date, query.guests),
    )

@bp.post("")
def create_reservation():
    ip = _client_ip()
    if not _allow(ip):
        return jerror(429, "RATE_LIMITED", "Too many requests. Try again shortly.")

    user = current_user()
    if not user.is_authenticated:
        return unauthorized()

    data, error = parse_json(CreateReservationRequest)
    if error:
        return error

    # staff without a customerId book a walk-in under their house customer
    customer_id = data.customer_id
    if customer_id is None and not user.role.is_staff:
        if user.customer_id is None:
            return jerror(409, "CUSTOMER_PROFILE_REQUIRED", "Create your customer profile before booking.")
        customer_id = user.customer_id

    try:
        res = _coordinator().create_reservation(
            customer_id, data.reservation_date, data.time_slot, data.guests, user
        )
    except ReservationError as e:
        return from_exception(e)

    return jsonify(reservation_json(res)), 201

@bp.get("")
def list_reservations():
    user = current_user()
    if not user.is_authenticated:
        return unauthorized()

    rows = _coordinator().list_visible_reservations(user)
    return jsonify(total=len(rows), reservations=[reservation_json(r) for r in rows])

@bp.get("/<int:reservation_id>")
def reservation_detail(reservation_id: int):
    user = current_user()
    if not user.is_authenticated:
        return unauthorized()

    res = store.get(Reservation, reservation_id)
    if res is None or not visible_reservations([res], user.role, user.customer_id):
        return jerror(404, "NOT_FOUND", f"Reservation {reservation_id} not found")
    return jsonify(reservation_json(res))

@bp.put("/<int:reservation_id>")
def edit_reservation(reservation_id: int):
    user = current_user()
    if not user.is_authenticated:
        return unauthorized()

    data, error = parse_json(EditReservationRequest)
    if error:
        return error

    try:
        res = _coordinator().edit_reservation(
            reservation_id, data.reservation_date, data.time_slot, data.guests, user
        )
    except ReservationError as e:
        return from_exception(e)

    return jsonify(reservation_json(res))

@bp.delete("/<int:reservation_id>")
def cancel_reservation(reservation_id: int):
    user = current_user()
    if not user.is_authenticated:
        return unauthorized()

    try:
        _coordinator().cancel_reservation(reservation_id, user)
    except ReservationError as e:
        return from_exception(e)

    return jsonify(status="cancelled", reservationId=reservation_id)
