"""
Sales Service - sale recording and cancellation orchestrators

A sale is a {Sale row, stock decrement, "sale" ledger entry} triple written
in one UnitOfWork: either all three exist or none do. Cancellation is a
logical reversal: the sale flips to "cancelled" and a compensating
"correction" entry is appended; the original ledger entry is never touched.
"""

from __future__ import annotations

import secrets
from datetime import datetime, timedelta

from ..extensions import db
from ..models import Sale, Product, SALE_STATUSES
from ..time_utils import utcnow, to_utc_naive
from .adjustment_service import apply_adjustment
from .errors import InvalidInputError, NotCancellableError, NotFoundError
from .products_service import MAX_AMOUNT_CENTS, MAX_PRICE_CENTS
from .unit_of_work import UnitOfWork


DEFAULT_CANCELLATION_WINDOW = timedelta(hours=24)


def generate_receipt_number(now: datetime | None = None) -> str:
    """RCP-<UTC yyyymmddHHMMSS>-<6 hex>; uniqueness is backed by a DB constraint."""
    stamp = (now or utcnow()).strftime("%Y%m%d%H%M%S")
    return f"RCP-{stamp}-{secrets.token_hex(3).upper()}"


def _require_positive_int(name: str, value) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidInputError(f"{name} must be an integer")
    if value <= 0:
        raise InvalidInputError(f"{name} must be greater than zero")


def record_sale(
    *,
    product_id: int,
    user_id: int,
    quantity: int,
    unit_price_cents: int | None = None,
    notes: str | None = None,
    now: datetime | None = None,
) -> Sale:
    """
    Record a completed sale and decrement stock in one transaction.

    unit_price_cents defaults to the product's current price. Raises
    NotFoundError when the product is missing, inactive or not owned by
    user_id, and InsufficientStockError when stock cannot cover quantity;
    in both cases no Sale row persists.
    """
    _require_positive_int("quantity", quantity)
    if unit_price_cents is not None:
        _require_positive_int("unit_price_cents", unit_price_cents)
        if unit_price_cents > MAX_PRICE_CENTS:
            raise InvalidInputError(f"unit_price_cents cannot exceed {MAX_PRICE_CENTS}")

    sale_date = to_utc_naive(now) if now is not None else utcnow()

    with UnitOfWork() as uow:
        product = (
            db.session.query(Product)
            .filter_by(id=product_id, user_id=user_id, is_active=True)
            .first()
        )
        if product is None:
            raise NotFoundError("Product not found", details={"product_id": product_id})

        price = unit_price_cents if unit_price_cents is not None else product.price_cents
        total = quantity * price
        if total > MAX_AMOUNT_CENTS:
            raise InvalidInputError(
                "Sale total is too large",
                details={"quantity": quantity, "unit_price_cents": price},
            )
        receipt_number = generate_receipt_number(sale_date)

        sale = Sale(
            user_id=user_id,
            product_id=product.id,
            quantity=quantity,
            unit_price_cents=price,
            total_amount_cents=total,
            sale_date=sale_date,
            notes=notes,
            status="completed",
            receipt_number=receipt_number,
        )
        db.session.add(sale)
        uow.flush()

        # InsufficientStockError here unwinds the sale insert as well
        apply_adjustment(
            product_id=product.id,
            user_id=user_id,
            adjustment_type="sale",
            quantity_change=-quantity,
            reason=f"Sale: {receipt_number}",
            reference=sale.id,
            uow=uow,
        )

    return sale


def cancel_sale(
    *,
    sale_id: int,
    user_id: int,
    reason: str | None = None,
    now: datetime | None = None,
    window: timedelta = DEFAULT_CANCELLATION_WINDOW,
) -> Sale:
    """
    Cancel a completed sale within `window` of its sale_date and restock it.

    Raises NotFoundError for a missing or foreign sale and NotCancellableError
    when the sale is not completed or the window has passed.
    """
    current = to_utc_naive(now) if now is not None else utcnow()

    with UnitOfWork() as uow:
        query = db.session.query(Sale).filter_by(id=sale_id, user_id=user_id)
        sale = uow.lock(query.populate_existing()).first()
        if sale is None:
            raise NotFoundError("Sale not found", details={"sale_id": sale_id})

        if sale.status != "completed":
            raise NotCancellableError(
                f"Only completed sales can be cancelled (status is {sale.status})",
                details={"sale_id": sale.id, "status": sale.status},
            )

        elapsed = current - to_utc_naive(sale.sale_date)
        if elapsed > window:
            hours = int(window.total_seconds() // 3600)
            raise NotCancellableError(
                f"Sale cannot be cancelled. Only sales within {hours} hours can be cancelled.",
                details={
                    "sale_id": sale.id,
                    "window_hours": hours,
                    "elapsed_hours": round(elapsed.total_seconds() / 3600, 2),
                },
            )

        sale.status = "cancelled"
        sale.cancelled_by_user_id = user_id
        sale.cancelled_at = current
        sale.cancel_reason = reason

        apply_adjustment(
            product_id=sale.product_id,
            user_id=user_id,
            adjustment_type="correction",
            quantity_change=sale.quantity,
            reason=f"Sale cancellation: {reason or 'No reason provided'}",
            reference=sale.id,
            uow=uow,
        )

    return sale


def get_sale(sale_id: int, user_id: int) -> Sale:
    sale = db.session.query(Sale).filter_by(id=sale_id, user_id=user_id).first()
    if sale is None:
        raise NotFoundError("Sale not found", details={"sale_id": sale_id})
    return sale


def list_sales(
    user_id: int,
    *,
    status: str | None = None,
    product_id: int | None = None,
    limit: int = 50,
) -> list[Sale]:
    """Newest-first sales for the user, optionally filtered."""
    if status is not None and status not in SALE_STATUSES:
        raise InvalidInputError(f"status must be one of: {', '.join(SALE_STATUSES)}")

    q = db.session.query(Sale).filter_by(user_id=user_id)
    if status is not None:
        q = q.filter_by(status=status)
    if product_id is not None:
        q = q.filter_by(product_id=product_id)

    return q.order_by(Sale.sale_date.desc(), Sale.id.desc()).limit(limit).all()
