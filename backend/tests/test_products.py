# Overview: Pytest coverage for product creation and soft deletion.

import pytest
from lumen.models import StockAdjustment
from lumen.services import adjustment_service, inventory_service, products_service, sales_service
from lumen.services.errors import ConflictError, InvalidInputError, NotFoundError


class TestCreateProduct:
    def test_creates_inventory_record(self, db_session, owner):
        product = products_service.create_product(
            user_id=owner.id,
            name="  Oat Milk  ",
            barcode="0001",
            price_cents=349,
            initial_quantity=12,
            minimum_stock=4,
            category="Dairy",
        )

        assert product.name == "Oat Milk"
        record = inventory_service.get_inventory(product.id, owner.id)
        assert record.quantity == 12
        assert record.initial_quantity == 12
        assert record.minimum_stock == 4
        # Opening stock is the ledger's starting point, not an entry
        assert db_session.query(StockAdjustment).count() == 0
        assert adjustment_service.verify_ledger(product_id=product.id, user_id=owner.id)["consistent"]

    def test_duplicate_barcode_conflicts(self, db_session, owner, other_owner):
        products_service.create_product(user_id=owner.id, name="A", barcode="DUP", price_cents=100)

        with pytest.raises(ConflictError):
            products_service.create_product(user_id=owner.id, name="B", barcode="DUP", price_cents=100)

        # Barcodes are unique per owner only
        products_service.create_product(user_id=other_owner.id, name="C", barcode="DUP", price_cents=100)

    @pytest.mark.parametrize("kwargs", [
        {"price_cents": 0},
        {"price_cents": -5},
        {"initial_quantity": -1},
        {"minimum_stock": 10, "maximum_stock": 5},
        {"name": "   "},
    ])
    def test_invalid_input(self, db_session, owner, kwargs):
        params = {"user_id": owner.id, "name": "Widget", "barcode": "W-1", "price_cents": 100}
        params.update(kwargs)
        with pytest.raises(InvalidInputError):
            products_service.create_product(**params)


class TestDeactivateProduct:
    def test_unsold_product_is_deactivated(self, db_session, owner, product):
        products_service.deactivate_product(product.id, owner.id)

        with pytest.raises(NotFoundError):
            products_service.get_owned_product(product.id, owner.id, require_active=True)
        with pytest.raises(NotFoundError):
            inventory_service.get_inventory(product.id, owner.id)

    def test_sold_product_cannot_be_deleted(self, db_session, owner, product):
        sales_service.record_sale(product_id=product.id, user_id=owner.id, quantity=1)

        with pytest.raises(ConflictError):
            products_service.deactivate_product(product.id, owner.id)
        assert products_service.get_owned_product(product.id, owner.id).is_active is True

    def test_foreign_product_not_found(self, db_session, other_owner, product):
        with pytest.raises(NotFoundError):
            products_service.deactivate_product(product.id, other_owner.id)
