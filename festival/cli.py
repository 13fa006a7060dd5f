"""
Flask CLI commands.

    flask --app festival guest-photos migrate
    flask --app festival guest-photos status
"""

import click
from flask import current_app
from flask.cli import AppGroup

guest_photos = AppGroup('guest-photos', help='Guest photo migration to object storage.')


def _migration_service():
    service = getattr(current_app, 'photo_migration', None)
    if service is None:
        raise click.ClickException('Image storage is not configured (STORAGE_BACKEND=none)')
    return service


@guest_photos.command('migrate')
def migrate_command():
    """Move base64 guest photos into object storage."""
    result = _migration_service().migrate_guest_photos()

    if result['skipped']:
        click.echo('Photo migration already in progress, skipping.')
        return

    click.echo(f"Guests selected: {result['total']}")
    click.echo(f"Migrated: {result['migrated']}")
    click.echo(f"Failed: {result['failed']}")
    for error in result['errors']:
        click.echo(f"  - {error}")

    if result['failed']:
        raise click.ClickException('Some photos failed to migrate; run the command again to retry.')


@guest_photos.command('status')
def status_command():
    """Show guest photo migration counts."""
    status = _migration_service().get_migration_status()
    for name, value in status.items():
        click.echo(f"{name}: {value}")


def register_commands(app):
    app.cli.add_command(guest_photos)
