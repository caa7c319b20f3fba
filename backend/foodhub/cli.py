# Overview: Flask CLI command groups for schema bootstrap and order inspection.

# backend/foodhub/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap:
# - python -m flask system init-db
#   Create all tables (idempotent).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Order inspection:
# - python -m flask orders list [--association-id 1]
#   List sales orders with reference and total.
# - python -m flask orders show 12
#   Show one sales order with its rows.
# - python -m flask orders activities 12
#   Show the activity stream of a sales order.
# - python -m flask orders producer 3
#   Show a producer's orders for the next occurrence of each of its branches.

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import Activity, Producer, SalesOrder
from .services.activity_service import ActivityManager
from .services import producer_sales_order_service


def _format_cents(cents) -> str:
    return ActivityManager().format_amount(cents)


@click.group('system')
def system_group():
    """Schema bootstrap commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables that do not exist yet."""
    db.create_all()
    click.echo("PASS Database tables created")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Confirm destructive reset')
@with_appcontext
def reset_db(yes):
    """Drop and recreate all tables. DEV/TEST only."""
    if not yes:
        click.echo("FAIL Refusing to reset without --yes")
        raise SystemExit(1)
    db.drop_all()
    db.create_all()
    click.echo("PASS Database reset")


@click.group('orders')
def orders_group():
    """Sales order inspection commands."""


@orders_group.command('list')
@click.option('--association-id', type=int, default=None, help='Filter by association')
@click.option('--limit', type=int, default=50, show_default=True)
@with_appcontext
def list_orders(association_id, limit):
    """List sales orders, newest first."""
    q = db.session.query(SalesOrder)
    if association_id:
        q = q.filter(SalesOrder.association_id == association_id)
    orders = q.order_by(SalesOrder.id.desc()).limit(limit).all()

    if not orders:
        click.echo("No sales orders found")
        return

    for order in orders:
        buyer = " ".join(p for p in (order.firstname, order.lastname) if p)
        click.echo(f"{order.id:>6}  {order.ref or '-':<16} {buyer:<30} {_format_cents(order.total_cents):>10}")


@orders_group.command('show')
@click.argument('order_id', type=int)
@with_appcontext
def show_order(order_id):
    """Show one sales order with its rows."""
    order = db.session.get(SalesOrder, order_id)
    if not order:
        click.echo(f"FAIL Sales order {order_id} not found")
        raise SystemExit(1)

    click.echo(f"Order {order.ref} (id={order.id}, association={order.association_id})")
    click.echo(f"Buyer: {order.firstname or ''} {order.lastname or ''}, {order.city or ''}")
    if order.consumer_comment:
        click.echo(f"Comment: {order.consumer_comment}")
    for row in order.sales_order_rows:
        bio = " (bio)" if row.is_bio else ""
        click.echo(f"  {row.ref:<12} {row.name}{bio}  x{row.quantity}  {_format_cents(row.total_cents)}")
    click.echo(f"Total: {_format_cents(order.total_cents)}")


@orders_group.command('activities')
@click.argument('order_id', type=int)
@with_appcontext
def order_activities(order_id):
    """Show the activity stream of a sales order."""
    manager = ActivityManager()
    activities = (
        db.session.query(Activity)
        .filter_by(object_type="sales_order", object_id=order_id)
        .order_by(Activity.id.asc())
        .all()
    )
    if not activities:
        click.echo("No activity recorded")
        return
    for activity in activities:
        click.echo(f"{activity.created_at}  [{activity.target_type}:{activity.target_id}]  {manager.render(activity)}")


@orders_group.command('producer')
@click.argument('producer_id', type=int)
@with_appcontext
def producer_orders(producer_id):
    """Show a producer's orders for its next branch occurrences."""
    producer = db.session.get(Producer, producer_id)
    if not producer:
        click.echo(f"FAIL Producer {producer_id} not found")
        raise SystemExit(1)

    result = producer_sales_order_service.get_for_next_branch_occurrences(producer)
    if not result.branch_occurrences:
        click.echo("No upcoming branch occurrence")
        return

    for group in result.branch_occurrences:
        occurrence = group.branch_occurrence
        click.echo(f"{occurrence.branch.name} - {occurrence.begin}: {len(group.sales_orders)} order(s), "
                   f"{_format_cents(group.total_cents)}")
        for producer_order in group.sales_orders:
            click.echo(f"  {producer_order.sales_order.ref:<16} {_format_cents(producer_order.total_cents):>10}")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(orders_group)
