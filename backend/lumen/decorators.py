# Overview: Request decorators for API routes.

from functools import wraps
from flask import request, jsonify, g

from .services import session_service


def bearer_token() -> str | None:
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        return None
    return auth_header.split(" ", 1)[1].strip() or None


def require_auth(f):
    """
    Require a valid bearer session.

    Sets g.current_user for the route. Routes pass g.current_user.id into
    service calls explicitly; services never read g.

    Returns 401 if the Authorization header is missing, the token is
    unknown, expired or revoked, or the account is deactivated.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = bearer_token()
        if token is None:
            return jsonify({"error": "Authentication required", "code": "AUTH_REQUIRED"}), 401

        user = session_service.validate_session(token)
        if user is None:
            return jsonify({"error": "Invalid or expired token", "code": "INVALID_TOKEN"}), 401

        g.current_user = user
        return f(*args, **kwargs)

    return decorated_function
