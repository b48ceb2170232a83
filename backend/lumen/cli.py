# Overview: Flask CLI command groups for bootstrap and ledger inspection.

# backend/lumen/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to lumen (PowerShell: $env:FLASK_APP="lumen").
# - Use: python -m flask <group> <command> [options]
#
# System:
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Users:
# - python -m flask users create --email owner@shop.local --password "secret123" --name "Owner"
#   Create a shop owner account (prompts if options are omitted).
#
# Inventory:
# - python -m flask inventory low-stock --user-id 1
#   List records at or below their minimum stock, most critical first.
# - python -m flask inventory verify --product-id 3 --user-id 1
#   Replay the stock ledger for a product and compare with the stored quantity.

import click
from flask.cli import with_appcontext

from .extensions import db
from .services import adjustment_service, inventory_service
from .services.auth_service import register_user
from .services.errors import InventoryError


@click.group('system')
def system_group():
    """System maintenance commands."""


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """
    DANGER: Drop all tables and recreate schema.

    This will DELETE ALL DATA!
    """
    if not yes:
        click.confirm("WARN This will DELETE ALL DATA. Are you sure?", abort=True)

    click.echo("DELETE  Dropping all tables...")
    db.drop_all()

    click.echo("BUILD  Creating all tables...")
    db.create_all()

    click.echo("PASS Database reset complete. Run 'python -m flask users create' to add an owner.")


@click.group('users')
def users_group():
    """User account commands."""


@users_group.command('create')
@click.option('--email', prompt=True, help='Email address')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--name', default=None, help='Display name')
@with_appcontext
def create_user_cli(email, password, name):
    """Create a shop owner account."""
    try:
        user = register_user(email=email, password=password, name=name)
    except InventoryError as e:
        db.session.rollback()
        raise click.ClickException(e.message)

    click.echo(f"PASS Created user: {user.email} (ID: {user.id})")


@click.group('inventory')
def inventory_group():
    """Stock inspection commands."""


@inventory_group.command('low-stock')
@click.option('--user-id', type=int, required=True, help='Owner user ID')
@with_appcontext
def low_stock_cli(user_id):
    """List low-stock records, most critical first."""
    records = inventory_service.low_stock(user_id)
    if not records:
        click.echo("No low-stock items.")
        return

    click.echo(f"{'Product':<32} {'Qty':>6} {'Min':>6}")
    click.echo("-" * 46)
    for record in records:
        click.echo(f"{record.product.name[:32]:<32} {record.quantity:>6} {record.minimum_stock:>6}")


@inventory_group.command('verify')
@click.option('--product-id', type=int, required=True, help='Product ID')
@click.option('--user-id', type=int, required=True, help='Owner user ID')
@with_appcontext
def verify_ledger_cli(product_id, user_id):
    """
    Replay a product's ledger.

    Exits non-zero when the replayed total does not match the stored quantity.
    """
    try:
        report = adjustment_service.verify_ledger(product_id=product_id, user_id=user_id)
    except InventoryError as e:
        raise click.ClickException(e.message)

    click.echo(f"Initial quantity:  {report['initial_quantity']}")
    click.echo(f"Ledger entries:    {report['entries']} (net {report['ledger_total']:+d})")
    click.echo(f"Expected quantity: {report['expected_quantity']}")
    click.echo(f"Actual quantity:   {report['actual_quantity']}")
    for brk in report["chain_breaks"]:
        click.echo(
            f"WARN  Entry {brk['adjustment_id']}: previous_quantity {brk['previous_quantity']} "
            f"(expected {brk['expected_previous_quantity']})"
        )

    if not report["consistent"]:
        raise click.ClickException("Ledger does not match stored quantity")
    click.echo("PASS Ledger consistent")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(inventory_group)
