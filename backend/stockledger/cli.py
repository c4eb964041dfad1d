# Overview: Flask CLI command groups for schema bootstrap, inspection, and maintenance.

# backend/stockledger/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# Schema:
# - python -m flask system init-db
#   Create missing tables (idempotent).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
# - python -m flask system wipe --yes
#   Delete all ledger rows and products, keep the schema.
#
# Inspection:
# - python -m flask products list
#   One line per product with quantity, price and status.
# - python -m flask profit summary
#   Total profit across all sales.

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import Product
from .services import ledger_service, profit_service
from .services.concurrency import unit_of_work


@click.group('system')
def system_group():
    """Schema bootstrap and repair commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables that do not exist yet."""
    db.create_all()
    click.echo("PASS Tables created.")


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

    click.echo("PASS Database reset complete.")


@system_group.command('wipe')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def wipe_data(yes):
    """Delete every inbound/outbound row and every product."""
    if not yes:
        click.confirm("WARN This will DELETE all products and transactions. Are you sure?", abort=True)

    with unit_of_work(db.session):
        counts = ledger_service.wipe_all(db.session)

    click.echo(
        f"PASS Deleted {counts['products']} products, "
        f"{counts['inbound']} inbound and {counts['outbound']} outbound transactions."
    )


@click.group('products')
def products_group():
    """Catalog inspection commands."""


@products_group.command('list')
@with_appcontext
def list_products():
    """List all products."""
    products = db.session.query(Product).order_by(Product.id.asc()).all()
    if not products:
        click.echo("No products.")
        return
    for p in products:
        interface = p.interface or "-"
        form_factor = p.form_factor or "-"
        click.echo(
            f"[{p.id}] {p.brand} {p.model} {p.capacity}{p.capacity_unit} {interface}/{form_factor} "
            f"qty={p.quantity} price={p.unit_price} status={p.condition_status} "
            f"active={'yes' if p.is_active else 'no'}"
        )


@click.group('profit')
def profit_group():
    """Profit reporting commands."""


@profit_group.command('summary')
@with_appcontext
def profit_summary():
    """Print total profit."""
    total = profit_service.compute_profit_summary(db.session)
    click.echo(f"Total profit: {total}")


def register_commands(app):
    app.cli.add_command(system_group)
    app.cli.add_command(products_group)
    app.cli.add_command(profit_group)
