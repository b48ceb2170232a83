from __future__ import annotations

from ..extensions import db
from ..time_utils import utcnow, to_utc_z


ADJUSTMENT_TYPES = ("addition", "subtraction", "sale", "damage", "expired", "correction")


class Product(db.Model):
    """
    Product master data, owned by exactly one user.

    The inventory core only relies on (id, user_id, price_cents, is_active);
    the rest is catalog data carried for the client.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.UniqueConstraint("user_id", "barcode", name="uq_products_user_barcode"),
        db.Index("ix_products_user_active", "user_id", "is_active"),
        db.CheckConstraint("price_cents > 0", name="ck_products_price_positive"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
    barcode = db.Column(db.String(100), nullable=False)
    category = db.Column(db.String(100), nullable=True)
    brand = db.Column(db.String(100), nullable=True)

    # Authoritative storage in cents (client only formats for display)
    price_cents = db.Column(db.Integer, nullable=False)

    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    user = db.relationship("User", backref=db.backref("products", lazy=True))
    # Inventory rows and ledger entries go with the product at the database level
    inventory = db.relationship(
        "InventoryRecord",
        back_populates="product",
        uselist=False,
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<Product id={self.id} name={self.name!r} user_id={self.user_id}>"

    def summary(self) -> dict:
        """Short form joined onto sales and ledger entries."""
        return {
            "id": self.id,
            "name": self.name,
            "barcode": self.barcode,
            "category": self.category,
            "brand": self.brand,
        }

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "name": self.name,
            "description": self.description,
            "barcode": self.barcode,
            "category": self.category,
            "brand": self.brand,
            "price_cents": self.price_cents,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class InventoryRecord(db.Model):
    """
    Current stock on hand for one product (exactly one row per product).

    quantity is written only by the adjustment engine; see
    services/adjustment_service.py and the flush guard in models/guards.py.
    initial_quantity is the stock the product was created with and never
    changes, so initial_quantity + sum(ledger changes) == quantity.
    """
    __tablename__ = "inventory_records"
    __table_args__ = (
        db.CheckConstraint("quantity >= 0", name="ck_inventory_quantity_nonnegative"),
        db.CheckConstraint("initial_quantity >= 0", name="ck_inventory_initial_nonnegative"),
        db.CheckConstraint("minimum_stock >= 0", name="ck_inventory_minimum_nonnegative"),
        db.CheckConstraint(
            "maximum_stock IS NULL OR maximum_stock >= minimum_stock",
            name="ck_inventory_maximum_gte_minimum",
        ),
        db.Index("ix_inventory_records_quantity", "quantity"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(
        db.Integer,
        db.ForeignKey("products.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )

    quantity = db.Column(db.Integer, nullable=False, default=0)
    initial_quantity = db.Column(db.Integer, nullable=False, default=0)

    minimum_stock = db.Column(db.Integer, nullable=False, default=0)
    maximum_stock = db.Column(db.Integer, nullable=True)

    # Touched only by "addition" adjustments
    last_restocked = db.Column(db.DateTime(timezone=True), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    product = db.relationship("Product", back_populates="inventory")

    def __repr__(self) -> str:
        return f"<InventoryRecord product_id={self.product_id} quantity={self.quantity}>"

    def is_low_stock(self) -> bool:
        return self.quantity <= self.minimum_stock

    def is_out_of_stock(self) -> bool:
        return self.quantity == 0

    def can_fulfill(self, requested_quantity: int) -> bool:
        return self.quantity >= requested_quantity

    def to_dict(self, include_product: bool = True) -> dict:
        data = {
            "id": self.id,
            "product_id": self.product_id,
            "quantity": self.quantity,
            "initial_quantity": self.initial_quantity,
            "minimum_stock": self.minimum_stock,
            "maximum_stock": self.maximum_stock,
            "last_restocked": to_utc_z(self.last_restocked),
            "is_low_stock": self.is_low_stock(),
            "is_out_of_stock": self.is_out_of_stock(),
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
        if include_product and self.product is not None:
            data["product"] = self.product.summary()
        return data


class StockAdjustment(db.Model):
    """
    Append-only ledger entry: one row per committed quantity change.

    Rows are never updated or deleted (models/guards.py). Entries for a
    product ordered by (created_at, id) form a running total from the
    record's initial_quantity to its current quantity.
    """
    __tablename__ = "stock_adjustments"
    __table_args__ = (
        db.CheckConstraint("quantity_change <> 0", name="ck_stock_adjustments_nonzero"),
        db.CheckConstraint("previous_quantity >= 0", name="ck_stock_adjustments_previous_nonnegative"),
        db.CheckConstraint("new_quantity >= 0", name="ck_stock_adjustments_new_nonnegative"),
        db.CheckConstraint(
            "new_quantity = previous_quantity + quantity_change",
            name="ck_stock_adjustments_running_total",
        ),
        db.CheckConstraint(
            "adjustment_type IN ('addition', 'subtraction', 'sale', 'damage', 'expired', 'correction')",
            name="ck_stock_adjustments_type",
        ),
        db.Index("ix_stock_adjustments_product_created", "product_id", "created_at"),
        db.Index("ix_stock_adjustments_reference", "reference"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    product_id = db.Column(
        db.Integer,
        db.ForeignKey("products.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    adjustment_type = db.Column(db.String(16), nullable=False, index=True)

    quantity_change = db.Column(db.Integer, nullable=False)
    previous_quantity = db.Column(db.Integer, nullable=False)
    new_quantity = db.Column(db.Integer, nullable=False)

    reason = db.Column(db.Text, nullable=True)

    # Originating sale id, batch number, etc.
    reference = db.Column(db.String(100), nullable=True)

    # Python-side default keeps sub-second ordering on SQLite
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, index=True)

    product = db.relationship("Product")

    def is_positive(self) -> bool:
        return self.quantity_change > 0

    def description(self) -> str:
        change = self.quantity_change
        units = abs(change)
        if self.adjustment_type == "addition":
            return f"Added {units} units to inventory"
        if self.adjustment_type == "subtraction":
            return f"Removed {units} units from inventory"
        if self.adjustment_type == "sale":
            return f"Sold {units} units"
        if self.adjustment_type == "damage":
            return f"Damaged/lost {units} units"
        if self.adjustment_type == "expired":
            return f"Expired {units} units"
        if self.adjustment_type == "correction":
            return f"Inventory correction: {'added' if change > 0 else 'removed'} {units} units"
        return f"Stock adjustment: {change:+d} units"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "user_id": self.user_id,
            "adjustment_type": self.adjustment_type,
            "quantity_change": self.quantity_change,
            "previous_quantity": self.previous_quantity,
            "new_quantity": self.new_quantity,
            "reason": self.reason,
            "reference": self.reference,
            "description": self.description(),
            "created_at": to_utc_z(self.created_at),
        }
