from __future__ import annotations

import logging
from functools import wraps

from flask import jsonify, session

from ..core.enums import Role
from ..core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    DomainError,
    DuplicateActiveToken,
    InvalidToken,
    SessionClosed,
    SessionNotFound,
    TokenExpired,
    ValidationError,
)

logger = logging.getLogger(__name__)

# Most specific first: lookup walks this list with isinstance.
STATUS_BY_ERROR = [
    (ValidationError, 400),
    (AuthenticationError, 401),
    (AuthorizationError, 403),
    (SessionNotFound, 404),
    (InvalidToken, 404),
    (SessionClosed, 409),
    (TokenExpired, 410),
]


def error_response(exc: Exception):
    """Map a service exception to a JSON error body and HTTP status.

    DuplicateActiveToken and anything unexpected become a generic 500; the
    detail only goes to the log.
    """

    if isinstance(exc, DomainError) and not isinstance(exc, DuplicateActiveToken):
        for error_type, status in STATUS_BY_ERROR:
            if isinstance(exc, error_type):
                return jsonify({"success": False, "error": type(exc).__name__, "message": str(exc)}), status

    logger.error("Unhandled error: %s", exc, exc_info=exc)
    return jsonify({"success": False, "error": "InternalError", "message": "Internal server error"}), 500


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session:
            return jsonify({"success": False, "message": "Please log in to continue"}), 401
        return view(*args, **kwargs)

    return wrapper


def roles_required(*roles: Role):
    allowed = {r.value for r in roles}

    def decorator(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            if "user_id" not in session:
                return jsonify({"success": False, "message": "Please log in to continue"}), 401
            if session.get("role") not in allowed:
                return jsonify({"success": False, "message": "Forbidden"}), 403
            return view(*args, **kwargs)

        return wrapper

    return decorator


def current_user() -> tuple[int, Role]:
    return int(session["user_id"]), Role(session["role"])
