# Overview: Flask CLI command groups for bootstrap, user provisioning and backups.

# backend/stockroom/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init [--email admin@stockroom.local --password admin123]
#   Idempotent bootstrap: creates tables and the first super_admin.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Users:
# - python -m flask users list
#   List profiles with role, company and active status.
# - python -m flask users create --username jane --email jane@shop.test --password secret1 --role staff
#   Provision an identity + profile (prompts if options are omitted).
#
# Backups:
# - python -m flask backup export [--output backups/]
#   Write inventory-backup-<timestamp>.json.
# - python -m flask backup restore FILE [--atomic]
#   Replace products, sales, purchases and purchase_returns from FILE.

import os

import click
from flask.cli import with_appcontext

from .errors import StockroomError, RestoreError
from .extensions import db
from .models import UserProfile
from .permissions import ROLE_SUPER_ADMIN, ROLES
from .services import backup_service, profile_service, provisioning_service


@click.group('system')
def system_group():
    """System bootstrap and maintenance."""


@system_group.command('init')
@click.option('--username', default='admin', help='Username of the first super admin')
@click.option('--email', default='admin@stockroom.local', help='Email of the first super admin')
@click.option('--password', default='admin123', help='Password of the first super admin')
@with_appcontext
def init_system(username, email, password):
    """
    Create tables and the first super_admin. Safe to run repeatedly.
    """
    click.echo("START Initializing stockroom...")
    db.create_all()
    click.echo("PASS Tables ready")

    existing = db.session.query(UserProfile).filter_by(role=ROLE_SUPER_ADMIN).first()
    if existing:
        click.echo(f"WARN  Super admin '{existing.username}' already exists, skipping...")
        return

    try:
        user = provisioning_service.provision_user(
            username=username,
            email=email,
            password=password,
            role=ROLE_SUPER_ADMIN,
        )
    except StockroomError as e:
        click.echo(f"FAIL Failed to create super admin: {e}")
        raise SystemExit(1)

    click.echo(f"PASS Created super admin: {user['username']} ({user['email']})")
    click.echo("\nDefault credentials (CHANGE IN PRODUCTION!):")
    click.echo(f"   {user['email']} / {password}")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """
    DANGER: Drop all tables and recreate schema.
    """
    if not yes:
        click.confirm("WARN This will DELETE ALL DATA. Are you sure?", abort=True)

    click.echo("DELETE  Dropping all tables...")
    db.drop_all()

    click.echo("BUILD  Creating all tables...")
    db.create_all()

    click.echo("PASS Database reset complete. Run 'python -m flask system init' to initialize.")


@click.group('users')
def users_group():
    """User provisioning and inspection."""


@users_group.command('list')
@with_appcontext
def list_users():
    profiles = profile_service.list_profiles()
    if not profiles:
        click.echo("No users found.")
        return

    click.echo("\n" + "=" * 90)
    click.echo(f"{'Username':<20} {'Email':<32} {'Role':<12} {'Active':<8} {'Company'}")
    click.echo("=" * 90)
    for p in profiles:
        company = p["company"]["name"] if p.get("company") else "-"
        active = "yes" if p["is_active"] else "no"
        click.echo(f"{p['username']:<20} {p['email'] or '-':<32} {p['role']:<12} {active:<8} {company}")
    click.echo("=" * 90 + "\n")


@users_group.command('create')
@click.option('--username', prompt=True, help='Unique username')
@click.option('--email', prompt=True, help='Login email')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password (6+ chars)')
@click.option('--role', type=click.Choice(ROLES), default='staff', show_default=True, help='Profile role')
@click.option('--company-id', default=None, help='Company id (omit for none)')
@with_appcontext
def create_user_cli(username, email, password, role, company_id):
    try:
        user = provisioning_service.provision_user(
            username=username,
            email=email,
            password=password,
            role=role,
            company_id=company_id,
        )
    except StockroomError as e:
        click.echo(f"FAIL {e}")
        raise SystemExit(1)

    click.echo(f"PASS Created user: {user['username']} ({user['email']}) with role '{role}'")


@click.group('backup')
def backup_group():
    """Backup export and restore."""


@backup_group.command('export')
@click.option('--output', default='.', type=click.Path(file_okay=False), help='Directory for the backup file')
@with_appcontext
def export_backup(output):
    document = backup_service.create_backup()
    os.makedirs(output, exist_ok=True)
    path = os.path.join(output, backup_service.backup_filename(document["exported_at"]))
    with open(path, "w", encoding="utf-8") as fh:
        fh.write(backup_service.dump_backup(document))

    counts = ", ".join(f"{name}={len(document[name])}" for name, _ in backup_service.BACKUP_TABLES)
    click.echo(f"PASS Backup written to {path} ({counts})")


@backup_group.command('restore')
@click.argument('file', type=click.Path(exists=True, dir_okay=False))
@click.option('--atomic', is_flag=True, default=None, help='Run all tables in one transaction')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def restore_backup(file, atomic, yes):
    """
    DANGER: Replace products, sales, purchases and purchase_returns with FILE.
    """
    if not yes:
        click.confirm("WARN This will REPLACE current data. Are you sure?", abort=True)

    with open(file, "rb") as fh:
        raw = fh.read()

    try:
        result = backup_service.restore_from_backup(raw, atomic=atomic)
    except RestoreError as e:
        click.echo(f"FAIL {e}")
        click.echo(f"     completed: {', '.join(e.completed_tables) or '-'}; failed: {e.failed_table or '-'}")
        raise SystemExit(1)
    except StockroomError as e:
        click.echo(f"FAIL {e}")
        raise SystemExit(1)

    counts = ", ".join(f"{name}={count}" for name, count in result["restored"].items())
    click.echo(f"PASS Restore complete (atomic={result['atomic']}): {counts}")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(backup_group)
