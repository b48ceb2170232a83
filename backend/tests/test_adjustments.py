# Overview: Pytest coverage for the adjustment engine and stock ledger reads.

"""
Adjustment engine tests.

Every committed quantity change must leave exactly one ledger entry whose
snapshot fields agree with the record, and a rejected change must leave
neither.
"""

from datetime import timedelta

import pytest
from lumen.models import StockAdjustment
from lumen.services import adjustment_service, inventory_service
from lumen.services.adjustment_service import compute_new_quantity
from lumen.services.errors import InsufficientStockError, InvalidInputError, NotFoundError
from lumen.time_utils import utcnow


def _entries(db_session, product_id):
    return (
        db_session.query(StockAdjustment)
        .filter_by(product_id=product_id)
        .order_by(StockAdjustment.id.asc())
        .all()
    )


class TestComputeNewQuantity:
    def test_adds_delta(self):
        assert compute_new_quantity(10, 20) == 30
        assert compute_new_quantity(10, -10) == 0

    def test_does_not_clamp(self):
        """Negative results are reported, the engine decides what to do."""
        assert compute_new_quantity(3, -5) == -2


class TestApplyAdjustment:
    def test_addition_updates_quantity_and_restock_time(self, db_session, owner, product):
        """quantity=10 + addition(+20) -> 30 with last_restocked set."""
        before = utcnow()
        entry = adjustment_service.apply_adjustment(
            product_id=product.id,
            user_id=owner.id,
            adjustment_type="addition",
            quantity_change=20,
            reason="Weekly delivery",
        )

        record = inventory_service.get_inventory(product.id, owner.id)
        assert record.quantity == 30
        assert record.last_restocked is not None
        assert record.last_restocked >= before - timedelta(seconds=1)

        assert entry.adjustment_type == "addition"
        assert entry.quantity_change == 20
        assert entry.previous_quantity == 10
        assert entry.new_quantity == 30
        assert entry.user_id == owner.id
        assert entry.reason == "Weekly delivery"

    def test_decrement_does_not_touch_restock_time(self, db_session, owner, product):
        adjustment_service.apply_adjustment(
            product_id=product.id,
            user_id=owner.id,
            adjustment_type="damage",
            quantity_change=-2,
        )
        record = inventory_service.get_inventory(product.id, owner.id)
        assert record.quantity == 8
        assert record.last_restocked is None

    def test_reduce_to_exactly_zero(self, db_session, owner, product):
        entry = adjustment_service.apply_adjustment(
            product_id=product.id,
            user_id=owner.id,
            adjustment_type="expired",
            quantity_change=-10,
        )
        assert entry.new_quantity == 0
        assert inventory_service.get_inventory(product.id, owner.id).quantity == 0

    def test_insufficient_stock_writes_nothing(self, db_session, owner, product):
        with pytest.raises(InsufficientStockError) as exc:
            adjustment_service.apply_adjustment(
                product_id=product.id,
                user_id=owner.id,
                adjustment_type="subtraction",
                quantity_change=-11,
            )

        assert exc.value.current_quantity == 10
        assert exc.value.requested_change == -11
        assert str(exc.value) == "Insufficient inventory. Current: 10, Requested change: -11"
        assert inventory_service.get_inventory(product.id, owner.id).quantity == 10
        assert _entries(db_session, product.id) == []

    @pytest.mark.parametrize("change", [0, True, 1.5, "3"])
    def test_rejects_non_integer_or_zero_change(self, db_session, owner, product, change):
        with pytest.raises(InvalidInputError):
            adjustment_service.apply_adjustment(
                product_id=product.id,
                user_id=owner.id,
                adjustment_type="correction",
                quantity_change=change,
            )
        assert _entries(db_session, product.id) == []

    def test_rejects_unknown_type(self, db_session, owner, product):
        with pytest.raises(InvalidInputError):
            adjustment_service.apply_adjustment(
                product_id=product.id,
                user_id=owner.id,
                adjustment_type="theft",
                quantity_change=-1,
            )

    def test_foreign_product_is_not_found(self, db_session, owner, other_owner, product):
        with pytest.raises(NotFoundError):
            adjustment_service.apply_adjustment(
                product_id=product.id,
                user_id=other_owner.id,
                adjustment_type="addition",
                quantity_change=5,
            )
        assert inventory_service.get_inventory(product.id, owner.id).quantity == 10

    def test_missing_product_is_not_found(self, db_session, owner):
        with pytest.raises(NotFoundError):
            adjustment_service.apply_adjustment(
                product_id=99999,
                user_id=owner.id,
                adjustment_type="addition",
                quantity_change=5,
            )


class TestLedger:
    def _run_sequence(self, owner, product):
        for adjustment_type, change in [
            ("addition", 15),
            ("subtraction", -4),
            ("damage", -1),
            ("correction", 2),
            ("expired", -3),
        ]:
            adjustment_service.apply_adjustment(
                product_id=product.id,
                user_id=owner.id,
                adjustment_type=adjustment_type,
                quantity_change=change,
            )

    def test_replay_matches_quantity(self, db_session, owner, product):
        self._run_sequence(owner, product)

        report = adjustment_service.verify_ledger(product_id=product.id, user_id=owner.id)
        assert report["initial_quantity"] == 10
        assert report["ledger_total"] == 9
        assert report["actual_quantity"] == 19
        assert report["expected_quantity"] == 19
        assert report["entries"] == 5
        assert report["chain_breaks"] == []
        assert report["consistent"] is True

    def test_entries_chain_previous_to_new(self, db_session, owner, product):
        self._run_sequence(owner, product)

        entries = _entries(db_session, product.id)
        running = 10
        for entry in entries:
            assert entry.previous_quantity == running
            assert entry.new_quantity == entry.previous_quantity + entry.quantity_change
            running = entry.new_quantity

    def test_history_is_newest_first(self, db_session, owner, product):
        self._run_sequence(owner, product)

        history = adjustment_service.adjustment_history(product_id=product.id, user_id=owner.id)
        assert [e.adjustment_type for e in history] == [
            "expired", "correction", "damage", "subtraction", "addition",
        ]

    def test_history_window_excludes_old_entries(self, db_session, owner, product):
        self._run_sequence(owner, product)

        history = adjustment_service.adjustment_history(
            product_id=product.id,
            user_id=owner.id,
            since_days=30,
            now=utcnow() + timedelta(days=31),
        )
        assert history == []

    def test_history_of_foreign_product_is_not_found(self, db_session, owner, other_owner, product):
        with pytest.raises(NotFoundError):
            adjustment_service.adjustment_history(product_id=product.id, user_id=other_owner.id)

    def test_entries_for_reference(self, db_session, owner, product):
        adjustment_service.apply_adjustment(
            product_id=product.id,
            user_id=owner.id,
            adjustment_type="addition",
            quantity_change=5,
            reference="BATCH-7",
        )
        adjustment_service.apply_adjustment(
            product_id=product.id,
            user_id=owner.id,
            adjustment_type="addition",
            quantity_change=1,
        )

        entries = adjustment_service.entries_for_reference(product_id=product.id, reference="BATCH-7")
        assert len(entries) == 1
        assert entries[0].quantity_change == 5

    def test_descriptions(self, db_session, owner, product):
        adjustment_service.apply_adjustment(
            product_id=product.id, user_id=owner.id, adjustment_type="addition", quantity_change=4,
        )
        adjustment_service.apply_adjustment(
            product_id=product.id, user_id=owner.id, adjustment_type="correction", quantity_change=-2,
        )

        added, corrected = _entries(db_session, product.id)
        assert added.description() == "Added 4 units to inventory"
        assert corrected.description() == "Inventory correction: removed 2 units"
