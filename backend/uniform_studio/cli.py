# Overview: Flask CLI command groups for bootstrap and inspection.

# backend/uniform_studio/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
# - python -m flask system seed
#   Create the demo Admin/Sales/Production users and the sample sheet OS-2025290.
#
# User inspection/bootstrap:
# - python -m flask users list
#   List all users with roles.
# - python -m flask users create --email admin@us81.local --name "System Admin" --role Admin --password "admin123"
#   Create a user (prompts if options are omitted).

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import User, OrderSheet, VALID_ROLES, ROLE_ADMIN, ROLE_SALES, ROLE_PRODUCTION
from .models.orders import ORDER_TYPE_FINAL
from .services import auth_service, order_service
from .validation import ValidationError, ConflictError


DEMO_PASSWORD = "password123"

DEMO_USERS = (
    ("admin@us81.local", "System Admin", ROLE_ADMIN),
    ("sales@us81.local", "Sales Desk", ROLE_SALES),
    ("production@us81.local", "Production Floor", ROLE_PRODUCTION),
)

DEMO_SHEET = {
    "orderNumber": "OS-2025290",
    "type": ORDER_TYPE_FINAL,
    "startDate": "2025-01-16T09:00:00Z",
    "deliveryDate": "2025-02-15T17:00:00Z",
    "clientName": "Al Gurg Group",
    "brand": "CUROSCAPE - ELV",
    "items": [
        {
            "productName": "SPORTS JERSEY",
            "itemDescription": "SPORTS JERSY SUBLIMATION POLO",
            "fabric": ["Dry-fit Mesh"],
            "color": "Teal Blue",
            "sleeve": "Short Sleeve",
            "fabricSupplier": ["Textile Hub"],
            "accessories": ["Rib Collar", "2 Buttons"],
            "patternFollowed": "US-81-STD-01",
            "cmPrice": [22],
            "cmUnit": ["CRT"],
            "cmPartner": "Master Factory",
            "embroideryPrint": ["Chest & Sleeve Sublimation"],
            "sizes": [{"size": "M", "quantity": 4}, {"size": "XL", "quantity": 4}],
        },
    ],
}


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


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

    click.echo("PASS Database reset complete. Run 'python -m flask system seed' to add demo data.")


@system_group.command('seed')
@with_appcontext
def seed():
    """
    Idempotently create demo users and the sample order sheet.

    Users: admin@us81.local, sales@us81.local, production@us81.local
    All passwords default to: "password123"

    SECURITY: Do not run against a production database!
    """
    click.echo("START Seeding demo data...")

    admin = None
    for email, name, role in DEMO_USERS:
        user = db.session.query(User).filter_by(email=email).first()
        if user:
            click.echo(f"PASS User already exists: {email}")
        else:
            user = auth_service.create_user(email=email, password=DEMO_PASSWORD, name=name, role=role)
            click.echo(f"PASS Created user: {email} ({role})")
        if role == ROLE_ADMIN:
            admin = user

    if db.session.query(OrderSheet).filter_by(order_number=DEMO_SHEET["orderNumber"]).first():
        click.echo(f"PASS Sample sheet already exists: {DEMO_SHEET['orderNumber']}")
    else:
        sheet = order_service.create_sheet(DEMO_SHEET, admin.id)
        # The demo item is mid-production
        sheet.items[0].status = "Stitching"
        db.session.commit()
        click.echo(f"PASS Created sample sheet: {sheet.order_number}")

    click.echo(f"\nSECURITY Demo password for all users: {DEMO_PASSWORD}")


@click.group('users')
def users_group():
    """User inspection and bootstrap commands."""


@users_group.command('create')
@click.option('--email', prompt=True, help='Email address')
@click.option('--name', prompt=True, help='Display name')
@click.option('--role', type=click.Choice(list(VALID_ROLES)), prompt=True, help='Role')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--organization', default=None, help='Organization (optional)')
@with_appcontext
def create_user_cli(email, name, role, password, organization):
    """
    Create a new user.

    Same rules as registration: password at least 6 characters, name at
    least 2, email unique.
    """
    try:
        fields = auth_service.validate_registration({
            "email": email,
            "password": password,
            "name": name,
            "role": role,
            "organization": organization,
        })
        user = auth_service.create_user(**fields)
        click.echo(f"PASS Created user: {user.email} with role '{user.role}' (ID: {user.id})")
        click.echo("SECURITY Password securely hashed with bcrypt")

    except ValidationError as e:
        click.echo(f"FAIL {e}")
        for detail in e.details:
            click.echo(f"     {detail['field']}: {detail['message']}")
    except ConflictError as e:
        click.echo(f"FAIL {e}")


@users_group.command('list')
@with_appcontext
def list_users():
    """List all users with their roles."""
    users = db.session.query(User).order_by(User.id).all()

    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "="*90)
    click.echo(f"{'ID':<5} {'Email':<30} {'Name':<25} {'Role':<12} {'Organization'}")
    click.echo("="*90)

    for user in users:
        click.echo(f"{user.id:<5} {user.email:<30} {user.name:<25} {user.role:<12} {user.organization or ''}")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
