# Overview: Product lookup and creation; the upstream collaborator of the inventory core.

from __future__ import annotations

from ..extensions import db
from ..models import Product, InventoryRecord, Sale
from .errors import ConflictError, InvalidInputError, NotFoundError
from .unit_of_work import UnitOfWork


# $9,999,999.99; sale totals are checked separately against MAX_AMOUNT_CENTS
MAX_PRICE_CENTS = 999_999_999

# Largest value a 32-bit INTEGER money column can hold
MAX_AMOUNT_CENTS = 2_147_483_647


def _require_int(name: str, value, *, minimum: int | None = None, allow_none: bool = False) -> None:
    if value is None and allow_none:
        return
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidInputError(f"{name} must be an integer")
    if minimum is not None and value < minimum:
        raise InvalidInputError(f"{name} must be >= {minimum}")


def validate_thresholds(minimum_stock: int, maximum_stock: int | None) -> None:
    _require_int("minimum_stock", minimum_stock, minimum=0)
    _require_int("maximum_stock", maximum_stock, minimum=0, allow_none=True)
    if maximum_stock is not None and maximum_stock < minimum_stock:
        raise InvalidInputError(
            "Maximum stock must be greater than or equal to minimum stock",
            details={"minimum_stock": minimum_stock, "maximum_stock": maximum_stock},
        )


def get_owned_product(product_id: int, user_id: int, *, require_active: bool = False) -> Product:
    """
    Product lookup scoped to its owner.

    A product owned by someone else is reported exactly like a missing one.
    """
    product = db.session.query(Product).filter_by(id=product_id, user_id=user_id).first()
    if product is None:
        raise NotFoundError("Product not found", details={"product_id": product_id})
    if require_active and not product.is_active:
        raise NotFoundError("Product not found", details={"product_id": product_id})
    return product


def create_product(
    *,
    user_id: int,
    name: str,
    barcode: str,
    price_cents: int,
    initial_quantity: int = 0,
    minimum_stock: int = 0,
    maximum_stock: int | None = None,
    description: str | None = None,
    category: str | None = None,
    brand: str | None = None,
) -> Product:
    """
    Create a product together with its one inventory record.

    initial_quantity seeds both quantity and the immutable initial_quantity
    the ledger replays from; it is not itself a ledger entry.
    """
    if not name or not str(name).strip():
        raise InvalidInputError("name is required")
    if not barcode or not str(barcode).strip():
        raise InvalidInputError("barcode is required")
    _require_int("price_cents", price_cents, minimum=1)
    if price_cents > MAX_PRICE_CENTS:
        raise InvalidInputError(f"price_cents cannot exceed {MAX_PRICE_CENTS}")
    _require_int("initial_quantity", initial_quantity, minimum=0)
    validate_thresholds(minimum_stock, maximum_stock)

    with UnitOfWork():
        existing = (
            db.session.query(Product.id)
            .filter_by(user_id=user_id, barcode=barcode.strip())
            .first()
        )
        if existing is not None:
            raise ConflictError("Product with this barcode already exists", details={"barcode": barcode})

        product = Product(
            user_id=user_id,
            name=name.strip(),
            barcode=barcode.strip(),
            price_cents=price_cents,
            description=description,
            category=category,
            brand=brand,
            is_active=True,
        )
        db.session.add(product)
        db.session.flush()

        record = InventoryRecord(
            product_id=product.id,
            quantity=initial_quantity,
            initial_quantity=initial_quantity,
            minimum_stock=minimum_stock,
            maximum_stock=maximum_stock,
        )
        db.session.add(record)
        db.session.flush()

    return product


def deactivate_product(product_id: int, user_id: int) -> Product:
    """
    Soft-delete a product that has never been sold.

    Sales are never deleted, so a product with sales history stays active
    and is reported as a conflict.
    """
    with UnitOfWork():
        product = get_owned_product(product_id, user_id, require_active=True)

        sales_count = db.session.query(Sale).filter_by(product_id=product.id).count()
        if sales_count:
            raise ConflictError(
                "Cannot delete product with existing sales history",
                details={"product_id": product.id, "sales": sales_count},
            )

        product.is_active = False

    return product
