# Overview: Pytest coverage for the transaction scope shared by the orchestrators.

import pytest
from lumen.extensions import db
from lumen.models import User
from lumen.services.errors import InvalidInputError
from lumen.services.unit_of_work import UnitOfWork


class TestUnitOfWork:
    def test_commits_on_clean_exit(self, db_session):
        with UnitOfWork():
            db.session.add(User(email="uow@shop.test", password_hash="x"))

        db_session.expire_all()
        assert db_session.query(User).filter_by(email="uow@shop.test").count() == 1

    def test_rolls_back_and_reraises(self, db_session):
        with pytest.raises(InvalidInputError):
            with UnitOfWork() as uow:
                db.session.add(User(email="gone@shop.test", password_hash="x"))
                uow.flush()
                raise InvalidInputError("stop")

        assert db_session.query(User).filter_by(email="gone@shop.test").count() == 0

    def test_can_be_reused_after_failure(self, db_session):
        with pytest.raises(InvalidInputError):
            with UnitOfWork():
                raise InvalidInputError("first")

        with UnitOfWork():
            db.session.add(User(email="again@shop.test", password_hash="x"))

        assert db_session.query(User).filter_by(email="again@shop.test").count() == 1
