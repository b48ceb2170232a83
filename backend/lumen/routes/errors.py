# Overview: HTTP mapping for inventory core errors and JSON fallbacks for framework errors.

from flask import jsonify, current_app
from werkzeug.exceptions import HTTPException

from ..services.errors import (
    InventoryError,
    NotFoundError,
    InvalidInputError,
    InsufficientStockError,
    NotCancellableError,
    LedgerIntegrityError,
    ConflictError,
)


ERROR_STATUS = {
    NotFoundError: 404,
    InvalidInputError: 400,
    InsufficientStockError: 400,
    NotCancellableError: 400,
    ConflictError: 409,
    LedgerIntegrityError: 409,
}


def status_for(error: InventoryError) -> int:
    for error_type, status in ERROR_STATUS.items():
        if isinstance(error, error_type):
            return status
    return 400


def inventory_error_response(error: InventoryError):
    status = status_for(error)
    if isinstance(error, (InsufficientStockError, NotCancellableError)):
        current_app.logger.warning("%s: %s %s", error.code, error.message, error.details)
    elif isinstance(error, LedgerIntegrityError):
        current_app.logger.error("%s: %s %s", error.code, error.message, error.details)
    return jsonify(error.to_dict()), status


def validation_error_response(error: ValueError):
    return jsonify({"error": str(error), "code": "VALIDATION_ERROR", "details": {}}), 400


def register_error_handlers(app) -> None:
    @app.errorhandler(InventoryError)
    def handle_inventory_error(error):
        return inventory_error_response(error)

    @app.errorhandler(HTTPException)
    def handle_http_error(error):
        return jsonify({
            "error": error.description,
            "code": (error.name or "HTTP_ERROR").upper().replace(" ", "_"),
            "details": {},
        }), error.code
