from flask import Blueprint, jsonify
from ..auth import current_user
from ..extensions import db
from ..http import jerror, parse_json, unauthorized
from ..models import DiningTable
from ..roles import Role
from ..schemas import TableRequest
from .. import store


bp = Blueprint("tables", __name__)


def table_json(t: DiningTable) -> dict:
    return {"id": t.id, "capacity": t.capacity}


def _require(*roles: Role):
    user = current_user()
    if not user.is_authenticated:
        return unauthorized()
    if user.role not in roles:
        return jerror(403, "FORBIDDEN", "Not allowed.")
    return None


@bp.get("")
def list_tables():
    error = _require(Role.ADMIN, Role.STAFF)
    if error:
        return error
    tables = store.list_all(DiningTable, DiningTable.capacity.asc(), DiningTable.id.asc())
    return jsonify(tables=[table_json(t) for t in tables])

@bp.get("/<int:table_id>")
def table_detail(table_id: int):
    error = _require(Role.ADMIN, Role.STAFF)
    if error:
        return error
    table = store.get(DiningTable, table_id)
    if table is None:
        return jerror(404, "NOT_FOUND", f"Table {table_id} not found")
    return jsonify(table_json(table))

@bp.post("")
def create_table():
    error = _require(Role.ADMIN)
    if error:
        return error
    data, error = parse_json(TableRequest)
    if error:
        return error

    table = DiningTable(capacity=data.capacity)
    db.session.add(table)
    db.session.commit()
    return jsonify(table_json(table)), 201

@bp.put("/<int:table_id>")
def update_table(table_id: int):
    error = _require(Role.ADMIN)
    if error:
        return error
    table = store.get(DiningTable, table_id)
    if table is None:
        return jerror(404, "NOT_FOUND", f"Table {table_id} not found")
    data, error = parse_json(TableRequest)
    if error:
        return error

    too_small = [r.id for r in table.reservations if r.guests > data.capacity]
    if too_small:
        return jerror(409, "CAPACITY_IN_USE", "Existing reservations need a larger table.",
                      {"reservationIds": too_small})

    table.capacity = data.capacity
    db.session.commit()
    return jsonify(table_json(table))

@bp.delete("/<int:table_id>")
def delete_table(table_id: int):
    error = _require(Role.ADMIN)
    if error:
        return error
    table = store.get(DiningTable, table_id)
    if table is None:
        return jerror(404, "NOT_FOUND", f"Table {table_id} not found")

    store.delete(table)
    db.session.commit()
    return jsonify(status="deleted", tableId=table_id)
