"""
Role checks for the clinic API.

Every API route expects ``Authorization: Bearer <token>`` (see
``clinic.core.security``). Role membership is the only authorization fact
the scheduling core consumes.

Example:
    @appointment_bp.route("/<int:appointment_id>/confirm", methods=["POST"])
    @require_roles(*ClinicRoles.STAFF)
    def confirm_appointment(appointment_id):
        ...

With ``LOGIN_DISABLED`` set in the app config every request runs as a test
user holding all roles.
"""

from functools import wraps
from types import SimpleNamespace
from typing import Any, Optional, Tuple

from flask import current_app, g, jsonify, request

from clinic.core.security import get_user_from_token
from clinic.domain.entities import ClinicRoles

TEST_USER_ID = 999


def get_current_user() -> Any:
    """The user set by ``require_roles`` for this request, if any."""
    return g.get("current_user")


def _error(message: str, status: int) -> Tuple[Any, int]:
    return jsonify({"error": message}), status


def _resolve_user() -> Optional[SimpleNamespace]:
    if current_app.config.get("LOGIN_DISABLED", False):
        return SimpleNamespace(
            id=TEST_USER_ID, email="test@clinic.local", roles=list(ClinicRoles.ALL)
        )

    scheme, _, token = request.headers.get("Authorization", "").partition(" ")
    if scheme != "Bearer" or not token:
        return None
    user_data = get_user_from_token(token)
    if user_data is None:
        return None
    return SimpleNamespace(
        id=user_data["user_id"], email=user_data["email"], roles=user_data["roles"]
    )


def require_roles(*roles: str):
    """Decorator factory: authenticated user holding one of ``roles``.

    Returns:
        - 401 when the header is missing or the token is invalid/expired
        - 403 when the user holds none of the roles
    """
    allowed = frozenset(roles)

    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not request.headers.get("Authorization") and not current_app.config.get(
                "LOGIN_DISABLED", False
            ):
                return _error("Missing or invalid Authorization header", 401)

            user = _resolve_user()
            if user is None:
                return _error("Invalid or expired token", 401)
            g.current_user = user

            if allowed.isdisjoint(user.roles):
                return _error(
                    "Access denied. Your role is not allowed to perform this operation.",
                    403,
                )
            return f(*args, **kwargs)

        return decorated_function

    return decorator
