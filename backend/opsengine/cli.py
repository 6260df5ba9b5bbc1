# Overview: Flask CLI command groups for bootstrap, inspection and maintenance.

# backend/opsengine/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init [--no-demo]
#   Idempotent bootstrap: creates tables, default roles and a demo catalogue.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Roles and capabilities:
# - python -m flask roles list
#   List roles with their capabilities.
# - python -m flask perms check <employee_id> VIEW_INVENTORY
#   Check whether an employee's resolved role grants a capability.
#
# Employees:
# - python -m flask employees create --name "Asha" --email asha@example.com --role Supervisor
#   Create an employee profile.
# - python -m flask employees token <employee_id>
#   DEV only: issue a signed bearer token for an employee.
#
# Inventory:
# - python -m flask inventory reconcile [--item-id 3]
#   Verify stock == opening_stock + IN - OUT for one or all items.

import uuid

import click
from flask.cli import with_appcontext

from .engine import get_engine
from .extensions import db
from .models import Employee, InventoryItem, Role
from .permissions import get_all_permission_codes, validate_permission_code
from .services import inventory_service, permission_service
from .services.auth_service import DEFAULT_DEPARTMENT, get_employee
from .errors import OperationsError

DEMO_ITEMS = [
    # (name, barcode, category, unit, opening stock, threshold)
    ("A4 Copier Paper", "8901234500011", "Stationery", "ream", 40, 10),
    ("Nitrile Gloves (M)", "8901234500028", "Safety", "box", 25, 8),
    ("Packing Tape 48mm", "8901234500035", "Packaging", "roll", 60, 15),
    ("Corrugated Box Large", "8901234500042", "Packaging", "pcs", 120, 30),
    ("Hand Sanitizer 500ml", "8901234500059", "Hygiene", "bottle", 12, 6),
]


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@click.option('--no-demo', is_flag=True, help='Skip the demo inventory catalogue')
@with_appcontext
def init_system(no_demo):
    """Create tables, default roles and (optionally) demo inventory items."""
    click.echo("START Initializing operations engine...")

    db.create_all()
    created = permission_service.ensure_default_roles()
    if created:
        click.echo(f"PASS Created roles: {', '.join(r.name for r in created)}")
    else:
        click.echo("PASS Roles already present")

    if not no_demo:
        added = 0
        for name, barcode, category, unit, opening, threshold in DEMO_ITEMS:
            if db.session.query(InventoryItem).filter_by(barcode=barcode).first():
                continue
            db.session.add(InventoryItem(
                name=name,
                barcode=barcode,
                category=category,
                unit=unit,
                opening_stock=opening,
                stock=opening,
                threshold=threshold,
            ))
            added += 1
        db.session.commit()
        click.echo(f"PASS Demo catalogue: {added} item(s) added")

    click.echo("DONE Initialized")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Confirm destructive reset')
@with_appcontext
def reset_db(yes):
    """DEV/TEST only: drop and recreate all tables."""
    if not yes:
        click.echo("FAIL Refusing to reset without --yes")
        raise SystemExit(1)
    db.drop_all()
    db.create_all()
    permission_service.ensure_default_roles()
    click.echo("PASS Database reset; default roles seeded")


@click.group('roles')
def roles_group():
    """Role inspection commands."""


@roles_group.command('list')
@with_appcontext
def list_roles():
    for role in permission_service.list_roles():
        if role.full_access:
            caps = "FULL ACCESS"
        else:
            caps = ", ".join(code for code, allowed in role.permission_map().items() if allowed) or "(none)"
        click.echo(f"{role.id:>3}  {role.name:<20} {caps}")


@click.group('perms')
def perms_group():
    """Capability inspection commands."""


@perms_group.command('check')
@click.argument('employee_id')
@click.argument('code')
@with_appcontext
def check_permission(employee_id, code):
    if not validate_permission_code(code):
        click.echo(f"FAIL Unknown capability {code}. Known: {', '.join(get_all_permission_codes())}")
        raise SystemExit(1)
    try:
        employee = get_employee(employee_id)
        role = permission_service.resolve_role(employee, get_engine().default_role_name)
    except OperationsError as e:
        click.echo(f"FAIL {e.message}")
        raise SystemExit(1)
    allowed = permission_service.can(role, code)
    click.echo(f"{'ALLOW' if allowed else 'DENY'} {employee.name} ({role.name}) {code}")


@click.group('employees')
def employees_group():
    """Employee bootstrap commands."""


@employees_group.command('create')
@click.option('--name', prompt=True)
@click.option('--email', prompt=True)
@click.option('--role', 'role_name', default='Staff', show_default=True)
@click.option('--id', 'employee_id', default=None, help='Identity provider user id')
@with_appcontext
def create_employee(name, email, role_name, employee_id):
    role = db.session.query(Role).filter_by(name=role_name).first()
    if role is None:
        click.echo(f"FAIL Role '{role_name}' not found. Run 'flask system init' first.")
        raise SystemExit(1)
    employee = Employee(
        id=employee_id or uuid.uuid4().hex,
        name=name,
        email=email,
        role_id=role.id,
        designation=role.name,
        department=DEFAULT_DEPARTMENT,
        status="active",
    )
    db.session.add(employee)
    db.session.commit()
    click.echo(f"PASS Created employee {employee.name} ({employee.id}) as {role.name}")


@employees_group.command('token')
@click.argument('employee_id')
@with_appcontext
def issue_token(employee_id):
    """DEV only: print a signed bearer token."""
    try:
        employee = get_employee(employee_id)
    except OperationsError as e:
        click.echo(f"FAIL {e.message}")
        raise SystemExit(1)
    identity = get_engine().identity
    if not hasattr(identity, "issue_token"):
        click.echo("FAIL Configured identity provider cannot issue tokens")
        raise SystemExit(1)
    click.echo(identity.issue_token(employee.id, employee.email, employee.name))


@click.group('inventory')
def inventory_group():
    """Inventory maintenance commands."""


@inventory_group.command('reconcile')
@click.option('--item-id', type=int, default=None)
@with_appcontext
def reconcile(item_id):
    """Exit status 1 if any item's stock disagrees with its ledger."""
    ids = [item_id] if item_id else [item.id for item in inventory_service.list_items()]
    failures = 0
    for current in ids:
        try:
            report = inventory_service.reconcile(current)
        except OperationsError as e:
            click.echo(f"FAIL {e.message}")
            raise SystemExit(1)
        status = "PASS" if report["balanced"] else "FAIL"
        if not report["balanced"]:
            failures += 1
        click.echo(
            f"{status} {report['barcode']}: opening {report['opening_stock']} "
            f"+ in {report['inbound']} - out {report['outbound']} "
            f"= {report['expected_stock']} (actual {report['actual_stock']})"
        )
    if failures:
        raise SystemExit(1)


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(roles_group)
    app.cli.add_command(perms_group)
    app.cli.add_command(employees_group)
    app.cli.add_command(inventory_group)
