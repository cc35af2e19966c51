from flask import Blueprint, jsonify
from sqlalchemy.exc import IntegrityError
from ..auth import check_admin, current_user
from ..extensions import db
from ..http import jerror, parse_json, unauthorized
from ..models import Staff
from ..schemas import StaffRequest, StaffUpdateRequest
from .. import store


bp = Blueprint("staff", __name__)


def staff_json(s: Staff) -> dict:
    return {"id": s.id, "name": s.name, "email": s.email}


@bp.before_request
def admin_only():
    if not current_user().is_authenticated:
        return unauthorized()
    if not check_admin():
        return jerror(403, "FORBIDDEN", "Only admins can manage staff.")


def _commit_unique():
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        return jerror(409, "DUPLICATE_EMAIL", "A staff member with this email already exists.")
    return None


@bp.get("")
def list_staff():
    return jsonify(staff=[staff_json(s) for s in store.list_all(Staff, Staff.name.asc())])

@bp.get("/<int:staff_id>")
def staff_detail(staff_id: int):
    member = store.get(Staff, staff_id)
    if member is None:
        return jerror(404, "NOT_FOUND", f"Staff member {staff_id} not found")
    return jsonify(staff_json(member))

@bp.post("")
def create_staff():
    data, error = parse_json(StaffRequest)
    if error:
        return error

    member = Staff(name=data.name, email=data.email.lower())
    db.session.add(member)
    error = _commit_unique()
    if error:
        return error
    return jsonify(staff_json(member)), 201

@bp.put("/<int:staff_id>")
def update_staff(staff_id: int):
    member = store.get(Staff, staff_id)
    if member is None:
        return jerror(404, "NOT_FOUND", f"Staff member {staff_id} not found")
    data, error = parse_json(StaffUpdateRequest)
    if error:
        return error

    if data.name is not None:
        member.name = data.name
    if data.email is not None:
        member.email = data.email.lower()
    error = _commit_unique()
    if error:
        return error
    return jsonify(staff_json(member))

@bp.delete("/<int:staff_id>")
def delete_staff(staff_id: int):
    member = store.get(Staff, staff_id)
    if member is None:
        return jerror(404, "NOT_FOUND", f"Staff member {staff_id} not found")

    # reservations keep existing with staff_id cleared
    store.delete(member)
    db.session.commit()
    return jsonify(status="deleted", staffId=staff_id)
