# Overview: Flask API routes for sales operations; parses input and returns JSON responses.

from datetime import timedelta

from flask import Blueprint, request, jsonify, g, current_app

from ..models import Sale
from ..services import sales_service
from ..services.errors import InventoryError
from ..validation import ModelValidationPolicy, validate_payload, ValidationError, enforce_rules_sale
from ..decorators import require_auth
from .errors import inventory_error_response, validation_error_response


sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")

SALE_POLICY = ModelValidationPolicy(
    writable_fields={"product_id", "quantity", "unit_price_cents", "notes"},
    required_on_create={"product_id", "quantity"},
)


@sales_bp.post("")
@require_auth
def record_sale_route():
    """
    Record a sale and decrement stock.

    400 INSUFFICIENT_STOCK when stock cannot cover the quantity; no sale is stored.
    """
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(models=Sale, payload=payload, policy=SALE_POLICY, partial=False)
        enforce_rules_sale(patch)
    except ValidationError as e:
        return validation_error_response(e)

    try:
        sale = sales_service.record_sale(
            product_id=patch["product_id"],
            user_id=g.current_user.id,
            quantity=patch["quantity"],
            unit_price_cents=patch.get("unit_price_cents"),
            notes=patch.get("notes"),
        )
    except InventoryError as e:
        return inventory_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to record sale")
        return jsonify({"error": "Internal server error"}), 500

    current_app.logger.info("Sale recorded receipt=%s product_id=%s quantity=%s",
                            sale.receipt_number, sale.product_id, sale.quantity)
    return jsonify({"sale": sale.to_dict()}), 201


@sales_bp.get("")
@require_auth
def list_sales_route():
    status = request.args.get("status")
    product_id = request.args.get("product_id", type=int)
    limit = min(request.args.get("limit", default=50, type=int) or 50, 200)

    try:
        sales = sales_service.list_sales(g.current_user.id, status=status, product_id=product_id, limit=limit)
    except InventoryError as e:
        return inventory_error_response(e)

    return jsonify({"items": [s.to_dict() for s in sales]}), 200


@sales_bp.get("/<int:sale_id>")
@require_auth
def get_sale_route(sale_id: int):
    try:
        sale = sales_service.get_sale(sale_id, g.current_user.id)
    except InventoryError as e:
        return inventory_error_response(e)
    return jsonify({"sale": sale.to_dict()}), 200


@sales_bp.post("/<int:sale_id>/cancel")
@require_auth
def cancel_sale_route(sale_id: int):
    """
    Cancel a completed sale inside the cancellation window and restock it.

    400 NOT_CANCELLABLE outside the window or when already cancelled.
    """
    data = request.get_json(silent=True) or {}
    reason = data.get("reason")
    if reason is not None and not isinstance(reason, str):
        return jsonify({"error": "reason must be a string", "code": "VALIDATION_ERROR"}), 400
    if reason is not None and len(reason) > 255:
        return jsonify({"error": "reason exceeds max length 255", "code": "VALIDATION_ERROR"}), 400

    window = timedelta(hours=current_app.config["SALE_CANCELLATION_WINDOW_HOURS"])
    try:
        sale = sales_service.cancel_sale(
            sale_id=sale_id,
            user_id=g.current_user.id,
            reason=reason,
            window=window,
        )
    except InventoryError as e:
        return inventory_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to cancel sale")
        return jsonify({"error": "Internal server error"}), 500

    current_app.logger.info("Sale cancelled receipt=%s", sale.receipt_number)
    return jsonify({"sale": sale.to_dict()}), 200
