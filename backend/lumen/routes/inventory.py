# backend/lumen/routes/inventory.py
"""
Inventory routes.

All routes require authentication and only ever see the caller's products.
Quantity changes go through POST /adjust (the adjustment engine); PATCH on a
record only accepts thresholds.
"""
from flask import Blueprint, request, jsonify, g, current_app

from ..models import StockAdjustment, InventoryRecord
from ..services import adjustment_service, inventory_service
from ..services.errors import InventoryError
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    ValidationError,
    enforce_rules_adjustment,
)
from ..decorators import require_auth
from .errors import inventory_error_response, validation_error_response


inventory_bp = Blueprint("inventory", __name__, url_prefix="/api/inventory")

ADJUSTMENT_POLICY = ModelValidationPolicy(
    writable_fields={"product_id", "adjustment_type", "quantity_change", "reason", "reference"},
    required_on_create={"product_id", "adjustment_type", "quantity_change"},
)

THRESHOLD_POLICY = ModelValidationPolicy(
    writable_fields={"minimum_stock", "maximum_stock"},
)


@inventory_bp.get("")
@require_auth
def list_inventory_route():
    records = inventory_service.list_inventory(g.current_user.id)
    return jsonify({"items": [r.to_dict() for r in records]}), 200


@inventory_bp.get("/low-stock")
@require_auth
def low_stock_route():
    records = inventory_service.low_stock(g.current_user.id)
    return jsonify({"items": [r.to_dict() for r in records]}), 200


@inventory_bp.get("/out-of-stock")
@require_auth
def out_of_stock_route():
    records = inventory_service.out_of_stock(g.current_user.id)
    return jsonify({"items": [r.to_dict() for r in records]}), 200


@inventory_bp.get("/<int:product_id>")
@require_auth
def get_inventory_route(product_id: int):
    try:
        record = inventory_service.get_inventory(product_id, g.current_user.id)
    except InventoryError as e:
        return inventory_error_response(e)
    return jsonify({"inventory": record.to_dict()}), 200


@inventory_bp.patch("/<int:product_id>")
@require_auth
def update_thresholds_route(product_id: int):
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(
            models=InventoryRecord,
            payload=payload,
            policy=THRESHOLD_POLICY,
            partial=True,
        )
    except ValidationError as e:
        return validation_error_response(e)

    try:
        record = inventory_service.update_thresholds(product_id, g.current_user.id, **patch)
    except InventoryError as e:
        return inventory_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to update inventory thresholds")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"inventory": record.to_dict()}), 200


@inventory_bp.post("/adjust")
@require_auth
def adjust_stock_route():
    """
    Apply a manual stock adjustment (addition, damage, correction, ...).

    400 on invalid input or when the change would take stock below zero.
    """
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(
            models=StockAdjustment,
            payload=payload,
            policy=ADJUSTMENT_POLICY,
            partial=False,
        )
        enforce_rules_adjustment(patch)
    except ValidationError as e:
        return validation_error_response(e)

    user_id = g.current_user.id
    try:
        entry = adjustment_service.apply_adjustment(
            product_id=patch["product_id"],
            user_id=user_id,
            adjustment_type=patch["adjustment_type"],
            quantity_change=patch["quantity_change"],
            reason=patch.get("reason"),
            reference=patch.get("reference"),
        )
    except InventoryError as e:
        return inventory_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to adjust stock")
        return jsonify({"error": "Internal server error"}), 500

    current_app.logger.info(
        "Stock adjusted product_id=%s type=%s change=%s new_quantity=%s",
        entry.product_id, entry.adjustment_type, entry.quantity_change, entry.new_quantity,
    )
    record = inventory_service.get_inventory(entry.product_id, user_id)
    return jsonify({"adjustment": entry.to_dict(), "inventory": record.to_dict()}), 201


@inventory_bp.get("/<int:product_id>/history")
@require_auth
def adjustment_history_route(product_id: int):
    days = request.args.get("days", default=30, type=int)
    if days is None or days < 0:
        return jsonify({"error": "days must be a non-negative integer", "code": "VALIDATION_ERROR"}), 400

    try:
        entries = adjustment_service.adjustment_history(
            product_id=product_id,
            user_id=g.current_user.id,
            since_days=days,
        )
    except InventoryError as e:
        return inventory_error_response(e)

    return jsonify({"items": [e.to_dict() for e in entries]}), 200


@inventory_bp.get("/<int:product_id>/verify")
@require_auth
def verify_ledger_route(product_id: int):
    try:
        report = adjustment_service.verify_ledger(product_id=product_id, user_id=g.current_user.id)
    except InventoryError as e:
        return inventory_error_response(e)

    if not report["consistent"]:
        current_app.logger.error("Ledger replay mismatch: %s", report)
    return jsonify(report), 200
