# Overview: Concurrency coverage for stock decrements against a file-backed database.

"""
Two sales racing for the last unit of a product.

Uses its own SQLite file (the shared in-memory database has one connection)
so each thread gets a real connection and the writers actually contend.
"""

import threading

import pytest
from lumen import create_app
from lumen.extensions import db
from lumen.models import Sale, User
from lumen.services import adjustment_service, inventory_service, products_service, sales_service
from lumen.services.errors import InsufficientStockError


@pytest.fixture
def file_app(tmp_path):
    db_path = tmp_path / "concurrency.db"
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': f"sqlite:///{db_path}",
    })

    with app.app_context():
        db.create_all()

    yield app

    with app.app_context():
        db.session.remove()
        db.drop_all()
        db.session.remove()
        db.engine.dispose()


def _seed(app, quantity):
    with app.app_context():
        user = User(email="race@shop.test", password_hash="dummy", is_active=True)
        db.session.add(user)
        db.session.commit()

        product = products_service.create_product(
            user_id=user.id,
            name="Last Loaf",
            barcode="RACE-1",
            price_cents=300,
            initial_quantity=quantity,
        )
        return user.id, product.id


def _run_concurrently(app, workers):
    results = []
    lock = threading.Lock()
    barrier = threading.Barrier(len(workers))

    def run(fn):
        with app.app_context():
            try:
                barrier.wait()
                outcome = ("ok", fn())
            except Exception as e:
                outcome = ("error", e)
            finally:
                db.session.remove()
        with lock:
            results.append(outcome)

    threads = [threading.Thread(target=run, args=(fn,)) for fn in workers]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=30)
    return results


class TestConcurrentSales:
    def test_only_one_sale_gets_the_last_unit(self, file_app):
        user_id, product_id = _seed(file_app, quantity=1)

        def sell():
            return sales_service.record_sale(product_id=product_id, user_id=user_id, quantity=1).id

        results = _run_concurrently(file_app, [sell, sell])

        successes = [r for r in results if r[0] == "ok"]
        failures = [r for r in results if r[0] == "error"]
        assert len(successes) == 1
        assert len(failures) == 1
        assert isinstance(failures[0][1], InsufficientStockError)

        with file_app.app_context():
            assert inventory_service.get_inventory(product_id, user_id).quantity == 0
            assert db.session.query(Sale).count() == 1
            report = adjustment_service.verify_ledger(product_id=product_id, user_id=user_id)
            assert report["consistent"] is True
            assert report["entries"] == 1

    def test_concurrent_adjustments_all_land(self, file_app):
        user_id, product_id = _seed(file_app, quantity=0)

        def restock():
            return adjustment_service.apply_adjustment(
                product_id=product_id,
                user_id=user_id,
                adjustment_type="addition",
                quantity_change=2,
            ).id

        results = _run_concurrently(file_app, [restock] * 4)

        assert all(r[0] == "ok" for r in results), results
        with file_app.app_context():
            assert inventory_service.get_inventory(product_id, user_id).quantity == 8
            report = adjustment_service.verify_ledger(product_id=product_id, user_id=user_id)
            assert report["consistent"] is True
            assert report["chain_breaks"] == []
