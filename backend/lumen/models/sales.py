from __future__ import annotations

from ..extensions import db
from ..time_utils import utcnow, to_utc_z


SALE_STATUSES = ("completed", "cancelled", "refunded")


class Sale(db.Model):
    """
    Single-product sale.

    Created only by sales_service.record_sale together with its "sale"
    ledger entry; never physically deleted. Cancellation flips status and
    appends a compensating "correction" entry.
    """
    __tablename__ = "sales"
    __table_args__ = (
        db.CheckConstraint("quantity > 0", name="ck_sales_quantity_positive"),
        db.CheckConstraint("unit_price_cents > 0", name="ck_sales_unit_price_positive"),
        db.CheckConstraint(
            "status IN ('completed', 'cancelled', 'refunded')",
            name="ck_sales_status",
        ),
        db.Index("ix_sales_user_status_date", "user_id", "status", "sale_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)

    quantity = db.Column(db.Integer, nullable=False)
    unit_price_cents = db.Column(db.Integer, nullable=False)
    total_amount_cents = db.Column(db.Integer, nullable=False)

    sale_date = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, index=True)
    notes = db.Column(db.Text, nullable=True)

    status = db.Column(db.String(16), nullable=False, default="completed", index=True)

    # Human-readable receipt (e.g., "RCP-20260114093015-4F2A9C")
    receipt_number = db.Column(db.String(50), nullable=False, unique=True)

    # Cancellation audit trail
    cancelled_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    cancelled_at = db.Column(db.DateTime(timezone=True), nullable=True)
    cancel_reason = db.Column(db.String(255), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    product = db.relationship("Product", backref=db.backref("sales", lazy=True))

    def __repr__(self) -> str:
        return f"<Sale id={self.id} receipt={self.receipt_number!r} status={self.status}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "product_id": self.product_id,
            "quantity": self.quantity,
            "unit_price_cents": self.unit_price_cents,
            "total_amount_cents": self.total_amount_cents,
            "sale_date": to_utc_z(self.sale_date),
            "notes": self.notes,
            "status": self.status,
            "receipt_number": self.receipt_number,
            "cancelled_by_user_id": self.cancelled_by_user_id,
            "cancelled_at": to_utc_z(self.cancelled_at),
            "cancel_reason": self.cancel_reason,
            "created_at": to_utc_z(self.created_at),
            "product": self.product.summary() if self.product is not None else None,
        }
