from flask import jsonify, request
from pydantic import ValidationError
from .errors import AccessDenied, BusinessRuleViolation, CapacityExhausted, MalformedInput, ReservationNotFound

def jerror(status: int, code: str, message: str, details=None):
    payload = {"code": code, "message": message}
    if details:
        payload["details"] = details
    return jsonify(payload), status

def unauthorized():
    return jerror(401, "UNAUTHORIZED", "Sign in to continue.")

def from_exception(exc: Exception):
    """Maps an engine exception onto its JSON error envelope."""
    if isinstance(exc, MalformedInput):
        return jerror(400, "MALFORMED_INPUT", str(exc), exc.details)
    if isinstance(exc, BusinessRuleViolation):
        return jerror(422, "BUSINESS_RULE_VIOLATION", "The reservation breaks one or more booking rules.",
                      [v.to_dict() for v in exc.violations])
    if isinstance(exc, CapacityExhausted):
        return jerror(409, "CAPACITY_EXHAUSTED", str(exc), {"reason": exc.reason})
    if isinstance(exc, ReservationNotFound):
        return jerror(404, "NOT_FOUND", str(exc))
    if isinstance(exc, AccessDenied):
        return jerror(403, "FORBIDDEN", str(exc) or "Not allowed.")
    raise exc

def parse_json(schema):
    """Validates the JSON body against a pydantic schema: (data, None) or (None, error response)."""
    payload = request.get_json(silent=True)
    if not payload:
        return None, jerror(400, "INVALID_PAYLOAD", "Missing or invalid JSON payload.")
    try:
        return schema.model_validate(payload), None
    except ValidationError as e:
        return None, jerror(400, "MALFORMED_INPUT", "Invalid input.", details=validation_details(e))

def validation_details(e: ValidationError) -> list:
    return e.errors(include_url=False, include_context=False)
