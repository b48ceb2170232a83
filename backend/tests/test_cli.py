# Overview: Pytest coverage for the flask CLI command groups.

from lumen.models import User
from lumen.services import adjustment_service


class TestUsersCommands:
    def test_create_user(self, app, db_session):
        runner = app.test_cli_runner()
        result = runner.invoke(args=[
            'users', 'create', '--email', 'cli@shop.test', '--password', 'secret123', '--name', 'Cli',
        ])

        assert result.exit_code == 0, result.output
        assert 'PASS Created user: cli@shop.test' in result.output
        assert db_session.query(User).filter_by(email='cli@shop.test').count() == 1

    def test_duplicate_user_fails(self, app, db_session, owner):
        runner = app.test_cli_runner()
        result = runner.invoke(args=['users', 'create', '--email', owner.email, '--password', 'secret123'])

        assert result.exit_code != 0
        assert 'Email already registered' in result.output


class TestInventoryCommands:
    def test_low_stock(self, app, db_session, owner, make_product):
        make_product(owner, quantity=1, minimum_stock=5, name="Rye Flour")
        make_product(owner, quantity=50, minimum_stock=5, name="Sugar")

        result = app.test_cli_runner().invoke(args=['inventory', 'low-stock', '--user-id', str(owner.id)])

        assert result.exit_code == 0, result.output
        assert 'Rye Flour' in result.output
        assert 'Sugar' not in result.output

    def test_low_stock_empty(self, app, db_session, owner):
        result = app.test_cli_runner().invoke(args=['inventory', 'low-stock', '--user-id', str(owner.id)])
        assert 'No low-stock items.' in result.output

    def test_verify(self, app, db_session, owner, product):
        adjustment_service.apply_adjustment(
            product_id=product.id,
            user_id=owner.id,
            adjustment_type="addition",
            quantity_change=4,
        )

        result = app.test_cli_runner().invoke(args=[
            'inventory', 'verify', '--product-id', str(product.id), '--user-id', str(owner.id),
        ])

        assert result.exit_code == 0, result.output
        assert 'Actual quantity:   14' in result.output
        assert 'PASS Ledger consistent' in result.output

    def test_verify_unknown_product(self, app, db_session, owner):
        result = app.test_cli_runner().invoke(args=[
            'inventory', 'verify', '--product-id', '99999', '--user-id', str(owner.id),
        ])
        assert result.exit_code != 0


class TestSystemCommands:
    def test_reset_db_requires_confirmation(self, app, db_session, owner):
        result = app.test_cli_runner().invoke(args=['system', 'reset-db'], input='n\n')

        assert result.exit_code != 0
        assert db_session.query(User).count() == 1
