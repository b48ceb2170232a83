# Overview: Flask API routes for login, registration and logout.

from datetime import timedelta

from flask import Blueprint, request, jsonify, g, current_app

from ..services import auth_service, session_service
from ..services.auth_service import AuthenticationError
from ..services.errors import InventoryError
from ..decorators import require_auth, bearer_token
from .errors import inventory_error_response


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


def _session_payload(user):
    ttl = timedelta(hours=current_app.config["SESSION_TTL_HOURS"])
    session, token = session_service.create_session(user.id, ttl=ttl)
    return {"user": user.to_dict(), "token": token, "expires_in": int(ttl.total_seconds())}


@auth_bp.post("/register")
def register_route():
    data = request.get_json(silent=True) or {}
    try:
        user = auth_service.register_user(
            email=data.get("email"),
            password=data.get("password"),
            name=data.get("name"),
        )
        return jsonify(_session_payload(user)), 201
    except InventoryError as e:
        return inventory_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to register user")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.post("/login")
def login_route():
    data = request.get_json(silent=True) or {}
    email = data.get("email")
    password = data.get("password")
    if not email or not password:
        return jsonify({"error": "email and password required", "code": "VALIDATION_ERROR"}), 400

    try:
        user = auth_service.authenticate(email, password)
        return jsonify(_session_payload(user)), 200
    except AuthenticationError as e:
        current_app.logger.info("Failed login for %s", email)
        return jsonify({"error": str(e), "code": "INVALID_CREDENTIALS"}), 401
    except Exception:
        current_app.logger.exception("Failed to login user")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.post("/logout")
@require_auth
def logout_route():
    session_service.revoke_session(bearer_token())
    return jsonify({"message": "Logged out"}), 200


@auth_bp.get("/me")
@require_auth
def me_route():
    return jsonify({"user": g.current_user.to_dict()}), 200
