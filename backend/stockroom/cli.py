# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/stockroom/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init --email manager@zola-pizza.com --password "Password123!"
#   Create tables and a bootstrap manager account (idempotent).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
# - python -m flask system cleanup-sessions
#   Delete expired/revoked sessions older than 30 days.
#
# User inspection/bootstrap:
# - python -m flask users list [--status pending]
# - python -m flask users create --email a@zola-pizza.com --password "Password123!" --role supervisor
#   Create an active user directly (prompts if options are omitted).
# - python -m flask users approve a@zola-pizza.com [--role staff]
#
# Permission inspection/repair:
# - python -m flask perms list [--category products]
# - python -m flask perms check a@zola-pizza.com can_add_products
# - python -m flask perms grant a@zola-pizza.com can_add_products
# - python -m flask perms revoke a@zola-pizza.com can_add_products
#
# Alerts:
# - python -m flask alerts fraud-report --severity high --description "Repeated invoice deletions by one user"
#   File a fraud alert for the notification panel.
# - python -m flask alerts list

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import User
from .permissions import (
    ASSIGNABLE_ROLES,
    ROLE_MANAGER,
    ROLE_STAFF,
    PERMISSION_DEFINITIONS,
    effective_permissions,
)
from .services.auth_service import create_user, PasswordValidationError, SignUpError, normalize_email
from .services import permission_service
from .services import session_service
from .services import stock_service
from .validation import ValidationError


def _find_user(email: str) -> User | None:
    return db.session.query(User).filter_by(email=normalize_email(email)).first()


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@click.option('--email', default='manager@zola-pizza.com', help='Bootstrap manager email')
@click.option('--full-name', default='Manager', help='Bootstrap manager name')
@click.option('--password', default='Password123!', help='Bootstrap manager password')
@with_appcontext
def init_system(email, full_name, password):
    """
    Create all tables and make sure at least one active manager exists.

    SECURITY: Change the default password immediately in production!
    """
    click.echo("START Initializing stockroom...")

    db.create_all()
    click.echo("PASS Tables created")

    existing_manager = db.session.query(User).filter_by(role=ROLE_MANAGER, status="active").first()
    if existing_manager:
        click.echo(f"PASS Using existing manager: {existing_manager.email}")
        return

    try:
        user = create_user(email, password, full_name=full_name, role=ROLE_MANAGER, status="active")
    except PasswordValidationError as e:
        click.echo(f"FAIL Password validation failed: {str(e)}")
        return
    except SignUpError as e:
        click.echo(f"FAIL Failed to create manager: {str(e)}")
        return

    click.echo(f"PASS Created manager {user.email} (ID: {user.id})")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Confirm destructive reset')
@with_appcontext
def reset_db(yes):
    """DEV/TEST only: drop and recreate all tables."""
    if not yes:
        click.echo("FAIL Refusing to reset without --yes")
        return
    db.drop_all()
    db.create_all()
    click.echo("PASS Database reset complete. Run 'python -m flask system init' to initialize.")


@system_group.command('cleanup-sessions')
@with_appcontext
def cleanup_sessions():
    deleted = session_service.cleanup_expired_sessions()
    click.echo(f"PASS Deleted {deleted} old session(s)")


@click.group('users')
def users_group():
    """User inspection and bootstrap commands."""


@users_group.command('list')
@click.option('--status', default=None, help='Filter by status (active, pending, inactive)')
@with_appcontext
def list_users(status):
    """List all users with role and status."""
    query = db.session.query(User)
    if status:
        query = query.filter_by(status=status)

    users = query.order_by(User.id.asc()).all()

    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "="*90)
    click.echo(f"{'ID':<5} {'Email':<35} {'Name':<25} {'Role':<12} {'Status'}")
    click.echo("="*90)

    for user in users:
        click.echo(f"{user.id:<5} {user.email:<35} {(user.full_name or ''):<25} {user.role:<12} {user.status}")


@users_group.command('create')
@click.option('--email', prompt=True)
@click.option('--full-name', default='', help='Display name')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True)
@click.option('--role', type=click.Choice(ASSIGNABLE_ROLES), default=ROLE_STAFF)
@with_appcontext
def create_user_cli(email, full_name, password, role):
    """Create an already-approved user."""
    try:
        user = create_user(email, password, full_name=full_name, role=role, status="active")
    except PasswordValidationError as e:
        click.echo(f"FAIL Password validation failed: {str(e)}")
        return
    except SignUpError as e:
        click.echo(f"FAIL Failed to create user: {str(e)}")
        return

    click.echo(f"PASS Created {role} {user.email} (ID: {user.id})")


@users_group.command('approve')
@click.argument('email')
@click.option('--role', type=click.Choice(ASSIGNABLE_ROLES), default=ROLE_STAFF)
@with_appcontext
def approve_user_cli(email, role):
    """Activate a pending account."""
    user = _find_user(email)
    if not user:
        click.echo(f"FAIL User '{email}' not found")
        return

    user.status = "active"
    user.role = role
    permission_service.log_security_event(
        user_id=None,
        event_type="USER_UPDATED",
        success=True,
        resource=f"user:{user.id}",
        action="cli_approve",
        reason=f"approved as {role}",
        commit=False,
    )
    db.session.commit()
    click.echo(f"PASS {user.email} is now active ({role})")


@click.group('perms')
def perms_group():
    """Permission inspection commands."""


@perms_group.command('list')
@click.option('--category', default=None, help='Filter by category')
@with_appcontext
def list_permissions_cli(category):
    for code, name, description, perm_category in PERMISSION_DEFINITIONS:
        if category and perm_category != category:
            continue
        click.echo(f"{code:<28} {perm_category:<16} {name}")


@perms_group.command('check')
@click.argument('email')
@click.argument('permission_code')
@with_appcontext
def check_permission_cli(email, permission_code):
    user = _find_user(email)
    if not user:
        click.echo(f"FAIL User '{email}' not found")
        return

    if permission_service.user_has_permission(user, permission_code):
        click.echo(f"PASS User '{email}' HAS permission '{permission_code}'")
    else:
        click.echo(f"FAIL User '{email}' DOES NOT HAVE permission '{permission_code}'")

    granted = permission_service.get_user_grants(user.id)
    click.echo(f"     role={user.role} effective={sorted(effective_permissions(user.role, granted))}")


@perms_group.command('grant')
@click.argument('email')
@click.argument('permission_code')
@with_appcontext
def grant_permission_cli(email, permission_code):
    user = _find_user(email)
    if not user:
        click.echo(f"FAIL User '{email}' not found")
        return
    try:
        permission_service.grant_permission(
            user_id=user.id,
            permission_code=permission_code,
            granted_by_user_id=None,
        )
    except ValueError as e:
        click.echo(f"FAIL Error: {str(e)}")
        return
    click.echo(f"PASS Granted {permission_code} to {user.email}")


@perms_group.command('revoke')
@click.argument('email')
@click.argument('permission_code')
@with_appcontext
def revoke_permission_cli(email, permission_code):
    user = _find_user(email)
    if not user:
        click.echo(f"FAIL User '{email}' not found")
        return
    if permission_service.revoke_permission(
        user_id=user.id,
        permission_code=permission_code,
        revoked_by_user_id=None,
    ):
        click.echo(f"PASS Revoked {permission_code} from {user.email}")
    else:
        click.echo(f"FAIL {user.email} had no grant for {permission_code}")


@click.group('alerts')
def alerts_group():
    """Low-stock and fraud alert commands."""


@alerts_group.command('fraud-report')
@click.option('--severity', type=click.Choice(stock_service.FRAUD_SEVERITIES), default='medium')
@click.option('--description', prompt=True)
@with_appcontext
def fraud_report_cli(severity, description):
    """File a fraud alert for manager review."""
    try:
        alert = stock_service.record_fraud_alert(severity, description)
    except ValidationError as e:
        click.echo(f"FAIL {str(e)}")
        return
    click.echo(f"PASS Fraud alert #{alert.id} filed ({alert.severity})")


@alerts_group.command('list')
@with_appcontext
def list_alerts_cli():
    """Show open low-stock and fraud alerts."""
    low_stock = stock_service.list_open_alerts(limit=50)
    fraud = stock_service.list_open_fraud_alerts(limit=50)

    click.echo(f"Low stock ({len(low_stock)}):")
    for alert in low_stock:
        name = alert.product.name if alert.product else alert.product_id
        click.echo(f"  #{alert.id:<5} {alert.severity:<9} {name} ({alert.quantity_at_alert}/{alert.threshold})")

    click.echo(f"Fraud ({len(fraud)}):")
    for alert in fraud:
        click.echo(f"  #{alert.id:<5} {alert.severity:<9} {alert.description}")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(perms_group)
    app.cli.add_command(alerts_group)
