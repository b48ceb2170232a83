"""
Pytest fixtures for Lumen backend tests.

Provides test database setup, owner/product factories, and test client.
"""

import pytest
from lumen import create_app
from lumen.extensions import db
from lumen.models import User
from lumen.services import products_service, session_service
from lumen.services.auth_service import hash_password


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='session')
def password_hash():
    """bcrypt is slow on purpose; hash the shared test password once."""
    return hash_password("Password123!")


def _make_user(db_session, password_hash, email):
    user = User(email=email, name=email.split("@")[0], password_hash=password_hash, is_active=True)
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture(scope='function')
def owner(db_session, password_hash):
    """Shop owner whose products the tests exercise."""
    return _make_user(db_session, password_hash, "owner@shop.test")


@pytest.fixture(scope='function')
def other_owner(db_session, password_hash):
    """Second, unrelated shop owner."""
    return _make_user(db_session, password_hash, "other@shop.test")


@pytest.fixture(scope='function')
def make_product(db_session):
    """Factory creating a product plus inventory record for a user."""
    counter = {"n": 0}

    def _make(user, *, quantity=10, minimum_stock=5, maximum_stock=None, price_cents=200, name=None):
        counter["n"] += 1
        return products_service.create_product(
            user_id=user.id,
            name=name or f"Product {counter['n']}",
            barcode=f"BC-{counter['n']:05d}",
            price_cents=price_cents,
            initial_quantity=quantity,
            minimum_stock=minimum_stock,
            maximum_stock=maximum_stock,
        )

    return _make


@pytest.fixture(scope='function')
def product(owner, make_product):
    """Quantity 10, minimum 5, price 2.00."""
    return make_product(owner)


def auth_headers(user) -> dict:
    """Issue a session for user and return Authorization headers."""
    _, token = session_service.create_session(user.id)
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture(scope='function')
def owner_headers(owner):
    return auth_headers(owner)


@pytest.fixture(scope='function')
def other_headers(other_owner):
    return auth_headers(other_owner)
