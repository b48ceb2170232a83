# Overview: Flask API routes for product creation and lookup.

from flask import Blueprint, request, jsonify, g, current_app

from ..models import Product, InventoryRecord
from ..services import products_service
from ..services.errors import InventoryError
from ..validation import ModelValidationPolicy, validate_payload, ValidationError, enforce_rules_product
from ..decorators import require_auth
from .errors import inventory_error_response, validation_error_response


products_bp = Blueprint("products", __name__, url_prefix="/api/products")

PRODUCT_CREATE_POLICY = ModelValidationPolicy(
    writable_fields={
        "name",
        "description",
        "barcode",
        "category",
        "brand",
        "price_cents",
        "initial_quantity",
        "minimum_stock",
        "maximum_stock",
    },
    required_on_create={"name", "barcode", "price_cents"},
)


@products_bp.post("")
@require_auth
def create_product_route():
    """Create a product and its inventory record with an opening quantity."""
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(
            models=(Product, InventoryRecord),
            payload=payload,
            policy=PRODUCT_CREATE_POLICY,
            partial=False,
        )
        enforce_rules_product(patch)
    except ValidationError as e:
        return validation_error_response(e)

    patch.setdefault("minimum_stock", current_app.config["LOW_STOCK_DEFAULT_MINIMUM"])

    try:
        product = products_service.create_product(user_id=g.current_user.id, **patch)
    except InventoryError as e:
        return inventory_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to create product")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({
        "product": product.to_dict(),
        "inventory": product.inventory.to_dict(include_product=False),
    }), 201


@products_bp.get("/<int:product_id>")
@require_auth
def get_product_route(product_id: int):
    try:
        product = products_service.get_owned_product(product_id, g.current_user.id, require_active=True)
    except InventoryError as e:
        return inventory_error_response(e)

    return jsonify({
        "product": product.to_dict(),
        "inventory": product.inventory.to_dict(include_product=False) if product.inventory else None,
    }), 200


@products_bp.delete("/<int:product_id>")
@require_auth
def delete_product_route(product_id: int):
    """Soft delete; refused with 409 once the product has sales history."""
    try:
        products_service.deactivate_product(product_id, g.current_user.id)
    except InventoryError as e:
        return inventory_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to delete product")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"message": "Product deleted successfully"}), 200
