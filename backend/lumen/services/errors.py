# Overview: Typed errors raised by the inventory core.

"""
Every error a core operation can return is a subclass of InventoryError
with a stable machine-readable ``code`` and a ``details`` dict. Errors
raised inside a UnitOfWork roll the whole transaction back before they
reach the caller; routes/errors.py maps them to HTTP responses.
"""

from __future__ import annotations


class InventoryError(Exception):
    """Base class for inventory core failures."""

    code = "INVENTORY_ERROR"

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict:
        return {"error": self.message, "code": self.code, "details": self.details}


class NotFoundError(InventoryError):
    """Product, sale or inventory record is missing or not owned by the caller."""

    code = "NOT_FOUND"


class InvalidInputError(InventoryError):
    code = "INVALID_INPUT"


class InsufficientStockError(InventoryError):
    """A decrement would drive quantity below zero."""

    code = "INSUFFICIENT_STOCK"

    def __init__(self, *, product_id: int, current_quantity: int, requested_change: int):
        super().__init__(
            f"Insufficient inventory. Current: {current_quantity}, Requested change: {requested_change}",
            details={
                "product_id": product_id,
                "current_quantity": current_quantity,
                "requested_change": requested_change,
            },
        )
        self.product_id = product_id
        self.current_quantity = current_quantity
        self.requested_change = requested_change


class NotCancellableError(InventoryError):
    """Sale is outside the cancellation window or not in 'completed' status."""

    code = "NOT_CANCELLABLE"


class LedgerIntegrityError(InventoryError):
    code = "LEDGER_INTEGRITY"


class ConflictError(InventoryError):
    """Business-rule conflict such as a duplicate barcode."""

    code = "CONFLICT"
