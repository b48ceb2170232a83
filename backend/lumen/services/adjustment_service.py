# Overview: Adjustment engine, the sole writer of InventoryRecord.quantity, plus ledger reads.

"""
Lumen Stock Ledger Invariants (authoritative)

Quantity model:
- InventoryRecord.quantity is the current stock on hand and is never negative.
- quantity == initial_quantity + SUM(StockAdjustment.quantity_change) for the product.
- compute_new_quantity() is the one place the post-adjustment quantity is derived.

Mutation rules:
- apply_adjustment() is the only code path that writes quantity.
- Each call locks the record, writes the new quantity and inserts exactly one
  ledger entry in the same transaction, or writes nothing at all.
- Concurrent calls for one product serialize on the record lock; the second
  caller computes from the first caller's committed quantity.

Audit:
- The ledger is append-only (models/guards.py).
- previous_quantity/new_quantity snapshot the record around each change.
- reference carries the originating sale id for "sale" and compensating
  "correction" entries.
"""

from __future__ import annotations

from datetime import datetime

from ..extensions import db
from ..models import Product, InventoryRecord, StockAdjustment, ADJUSTMENT_TYPES
from ..time_utils import utcnow, days_before
from .errors import InvalidInputError, InsufficientStockError, NotFoundError
from .unit_of_work import UnitOfWork


def compute_new_quantity(previous: int, delta: int) -> int:
    return previous + delta


def _validate_adjustment(adjustment_type: str, quantity_change) -> None:
    if adjustment_type not in ADJUSTMENT_TYPES:
        raise InvalidInputError(
            f"adjustment_type must be one of: {', '.join(ADJUSTMENT_TYPES)}",
            details={"adjustment_type": adjustment_type},
        )
    # bool is an int subclass; reject it explicitly
    if isinstance(quantity_change, bool) or not isinstance(quantity_change, int):
        raise InvalidInputError("quantity_change must be an integer")
    if quantity_change == 0:
        raise InvalidInputError("quantity_change cannot be zero")


def _apply_adjustment_locked(
    uow: UnitOfWork,
    *,
    product_id: int,
    user_id: int,
    adjustment_type: str,
    quantity_change: int,
    reason: str | None,
    reference: str | None,
) -> StockAdjustment:
    query = (
        db.session.query(InventoryRecord)
        .join(Product, Product.id == InventoryRecord.product_id)
        .filter(InventoryRecord.product_id == product_id, Product.user_id == user_id)
    )
    # populate_existing: a stale identity-map copy would defeat the lock
    record = uow.lock(query.populate_existing(), of=InventoryRecord).first()
    if record is None:
        raise NotFoundError("Inventory record not found", details={"product_id": product_id})

    previous = record.quantity
    new_quantity = compute_new_quantity(previous, quantity_change)
    if new_quantity < 0:
        raise InsufficientStockError(
            product_id=product_id,
            current_quantity=previous,
            requested_change=quantity_change,
        )

    record.quantity = new_quantity
    if adjustment_type == "addition":
        record.last_restocked = utcnow()

    entry = StockAdjustment(
        product_id=product_id,
        user_id=user_id,
        adjustment_type=adjustment_type,
        quantity_change=quantity_change,
        previous_quantity=previous,
        new_quantity=new_quantity,
        reason=reason,
        reference=str(reference) if reference is not None else None,
    )
    db.session.add(entry)
    uow.flush()
    return entry


def apply_adjustment(
    *,
    product_id: int,
    user_id: int,
    adjustment_type: str,
    quantity_change: int,
    reason: str | None = None,
    reference: str | int | None = None,
    uow: UnitOfWork | None = None,
) -> StockAdjustment:
    """
    Change a product's stock by quantity_change and append the ledger entry.

    With uow=None the adjustment runs (and commits) in its own transaction.
    Orchestrators pass their UnitOfWork so the adjustment commits or rolls
    back together with their other writes.

    Raises InvalidInputError, NotFoundError or InsufficientStockError; on any
    of them nothing is written.
    """
    _validate_adjustment(adjustment_type, quantity_change)

    kwargs = dict(
        product_id=product_id,
        user_id=user_id,
        adjustment_type=adjustment_type,
        quantity_change=quantity_change,
        reason=reason,
        reference=reference,
    )
    if uow is not None:
        return _apply_adjustment_locked(uow, **kwargs)

    with UnitOfWork() as own_uow:
        entry = _apply_adjustment_locked(own_uow, **kwargs)
    return entry


def adjustment_history(
    *,
    product_id: int,
    user_id: int,
    since_days: int = 30,
    now: datetime | None = None,
) -> list[StockAdjustment]:
    """Ledger entries for an owned product from the last since_days days, newest first."""
    if isinstance(since_days, bool) or not isinstance(since_days, int) or since_days < 0:
        raise InvalidInputError("since_days must be a non-negative integer")

    product = db.session.query(Product).filter_by(id=product_id, user_id=user_id).first()
    if product is None:
        raise NotFoundError("Product not found", details={"product_id": product_id})

    start = days_before(since_days, now)
    return (
        db.session.query(StockAdjustment)
        .filter(
            StockAdjustment.product_id == product_id,
            StockAdjustment.created_at >= start,
        )
        .order_by(StockAdjustment.created_at.desc(), StockAdjustment.id.desc())
        .all()
    )


def entries_for_reference(*, product_id: int, reference: str | int) -> list[StockAdjustment]:
    """All ledger entries pointing at one originating document, oldest first."""
    return (
        db.session.query(StockAdjustment)
        .filter_by(product_id=product_id, reference=str(reference))
        .order_by(StockAdjustment.created_at.asc(), StockAdjustment.id.asc())
        .all()
    )


def verify_ledger(*, product_id: int, user_id: int) -> dict:
    """
    Replay the ledger for one product and compare it with the stored quantity.

    Walks entries in (created_at, id) order and also checks that each
    entry's previous_quantity continues the running total.
    """
    record = (
        db.session.query(InventoryRecord)
        .join(Product, Product.id == InventoryRecord.product_id)
        .filter(InventoryRecord.product_id == product_id, Product.user_id == user_id)
        .first()
    )
    if record is None:
        raise NotFoundError("Inventory record not found", details={"product_id": product_id})

    entries = (
        db.session.query(StockAdjustment)
        .filter_by(product_id=product_id)
        .order_by(StockAdjustment.created_at.asc(), StockAdjustment.id.asc())
        .all()
    )

    running = record.initial_quantity
    breaks = []
    for entry in entries:
        if entry.previous_quantity != running:
            breaks.append({
                "adjustment_id": entry.id,
                "expected_previous_quantity": running,
                "previous_quantity": entry.previous_quantity,
            })
        running = compute_new_quantity(running, entry.quantity_change)

    ledger_total = sum(entry.quantity_change for entry in entries)
    return {
        "product_id": product_id,
        "initial_quantity": record.initial_quantity,
        "ledger_total": ledger_total,
        "expected_quantity": record.initial_quantity + ledger_total,
        "actual_quantity": record.quantity,
        "entries": len(entries),
        "chain_breaks": breaks,
        "consistent": record.initial_quantity + ledger_total == record.quantity and not breaks,
    }
