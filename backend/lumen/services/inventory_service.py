# Overview: Read-only stock projections and threshold maintenance for inventory records.

from __future__ import annotations

from sqlalchemy import Float, case, cast

from ..extensions import db
from ..models import Product, InventoryRecord
from .errors import InvalidInputError, NotFoundError
from .products_service import validate_thresholds
from .unit_of_work import UnitOfWork

_UNSET = object()


def _owned_records(user_id: int):
    return (
        db.session.query(InventoryRecord)
        .join(Product, Product.id == InventoryRecord.product_id)
        .filter(Product.user_id == user_id, Product.is_active.is_(True))
    )


def get_inventory(product_id: int, user_id: int) -> InventoryRecord:
    record = _owned_records(user_id).filter(InventoryRecord.product_id == product_id).first()
    if record is None:
        raise NotFoundError("Inventory item not found", details={"product_id": product_id})
    return record


def list_inventory(user_id: int) -> list[InventoryRecord]:
    """All active records for the user, lowest quantity first."""
    return _owned_records(user_id).order_by(
        InventoryRecord.quantity.asc(),
        InventoryRecord.id.asc(),
    ).all()


def low_stock(user_id: int) -> list[InventoryRecord]:
    """
    Records at or below their minimum_stock, most critical first.

    Criticality is quantity / minimum_stock ascending. A record with
    minimum_stock == 0 only passes the filter when quantity == 0; it is then
    out of stock and ranks with ratio 0 instead of dividing by zero.
    """
    ratio = case(
        (InventoryRecord.minimum_stock == 0, 0.0),
        else_=cast(InventoryRecord.quantity, Float) / cast(InventoryRecord.minimum_stock, Float),
    )
    return (
        _owned_records(user_id)
        .filter(InventoryRecord.quantity <= InventoryRecord.minimum_stock)
        .order_by(ratio.asc(), InventoryRecord.quantity.asc(), InventoryRecord.id.asc())
        .all()
    )


def out_of_stock(user_id: int) -> list[InventoryRecord]:
    """Records with nothing on hand, most recently changed first."""
    return (
        _owned_records(user_id)
        .filter(InventoryRecord.quantity == 0)
        .order_by(InventoryRecord.updated_at.desc(), InventoryRecord.id.desc())
        .all()
    )


def update_thresholds(
    product_id: int,
    user_id: int,
    *,
    minimum_stock=_UNSET,
    maximum_stock=_UNSET,
) -> InventoryRecord:
    """
    Change minimum/maximum stock levels.

    Quantity is not writable here; stock changes go through
    adjustment_service.apply_adjustment. Pass maximum_stock=None to clear it.
    """
    if minimum_stock is _UNSET and maximum_stock is _UNSET:
        raise InvalidInputError("minimum_stock or maximum_stock is required")

    with UnitOfWork() as uow:
        query = (
            db.session.query(InventoryRecord)
            .join(Product, Product.id == InventoryRecord.product_id)
            .filter(
                InventoryRecord.product_id == product_id,
                Product.user_id == user_id,
                Product.is_active.is_(True),
            )
        )
        record = uow.lock(query.populate_existing(), of=InventoryRecord).first()
        if record is None:
            raise NotFoundError("Inventory item not found", details={"product_id": product_id})

        new_minimum = record.minimum_stock if minimum_stock is _UNSET else minimum_stock
        new_maximum = record.maximum_stock if maximum_stock is _UNSET else maximum_stock
        validate_thresholds(new_minimum, new_maximum)

        record.minimum_stock = new_minimum
        record.maximum_stock = new_maximum

    return record
