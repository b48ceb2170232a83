# Overview: ORM event listeners that keep the stock ledger append-only and
# force every quantity change through a paired ledger entry.

"""
Ledger integrity rules (enforced at flush time):

- StockAdjustment rows are insert-only: UPDATE and DELETE raise.
- An InventoryRecord whose quantity changed in a flush must be accompanied,
  in that same flush, by a new StockAdjustment for the same product whose
  previous_quantity/new_quantity match the old and new values.

The adjustment engine satisfies the second rule by construction; any other
code path that assigns InventoryRecord.quantity fails loudly instead of
silently desynchronising stock from its audit trail.
"""

from __future__ import annotations

from sqlalchemy import event, inspect
from sqlalchemy.orm import Session

from ..services.errors import LedgerIntegrityError
from .inventory import InventoryRecord, StockAdjustment


def _reject_ledger_update(mapper, connection, target):
    raise LedgerIntegrityError(
        "Stock adjustments are append-only and cannot be modified",
        details={"adjustment_id": target.id},
    )


def _reject_ledger_delete(mapper, connection, target):
    raise LedgerIntegrityError(
        "Stock adjustments are append-only and cannot be deleted",
        details={"adjustment_id": target.id},
    )


def _check_quantity_paired_with_ledger(session, flush_context, instances):
    new_entries = [obj for obj in session.new if isinstance(obj, StockAdjustment)]

    for record in session.dirty:
        if not isinstance(record, InventoryRecord):
            continue

        history = inspect(record).attrs.quantity.history
        if not history.has_changes():
            continue

        previous = history.deleted[0] if history.deleted else None
        current = record.quantity

        paired = any(
            entry.product_id == record.product_id
            and entry.new_quantity == current
            and (previous is None or entry.previous_quantity == previous)
            for entry in new_entries
        )
        if not paired:
            raise LedgerIntegrityError(
                "Inventory quantity may only change through a stock adjustment",
                details={
                    "product_id": record.product_id,
                    "previous_quantity": previous,
                    "new_quantity": current,
                },
            )


event.listen(StockAdjustment, "before_update", _reject_ledger_update)
event.listen(StockAdjustment, "before_delete", _reject_ledger_delete)
event.listen(Session, "before_flush", _check_quantity_paired_with_ledger)
