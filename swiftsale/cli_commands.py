"""
Flask CLI commands for data management.

Commands:
- flask seed-data: Seed sample catalog, customers, settings and admin user
- flask reset-data: Wipe every collection and seed again
- flask create-user: Create a user with a hashed password
"""

import click

from swiftsale.database import get_store
from swiftsale.exceptions import SwiftSaleError
from swiftsale.services.auth_service import ROLES, create_user
from swiftsale.services.data_init_service import initialize_data, reset_data


def init_cli_commands(app):
    """Register CLI commands with Flask app."""

    @app.cli.command('seed-data')
    def seed_data():
        """Seed sample data into an empty store."""
        seeded = initialize_data(
            get_store(),
            app.config['DEFAULT_ADMIN_EMAIL'],
            app.config['DEFAULT_ADMIN_PASSWORD'],
            activity=app.extensions['activity'],
        )
        if seeded:
            click.echo(click.style('Sample data created.', fg='green'))
        else:
            click.echo(click.style('Products already exist, nothing to seed.', fg='yellow'))

    @app.cli.command('reset-data')
    @click.confirmation_option(prompt='This deletes every sale, product and customer. Continue?')
    def reset_data_command():
        """Wipe all collections and seed sample data again."""
        reset_data(
            get_store(),
            app.config['DEFAULT_ADMIN_EMAIL'],
            app.config['DEFAULT_ADMIN_PASSWORD'],
            activity=app.extensions['activity'],
        )
        click.echo(click.style('Data reset.', fg='green'))

    @app.cli.command('create-user')
    @click.option('--email', prompt=True, help='User email address')
    @click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='User password')
    @click.option('--name', default='', help='Display name')
    @click.option('--role', type=click.Choice(ROLES), default='cashier', show_default=True)
    def create_user_command(email, password, name, role):
        """Create a user for the POS."""
        try:
            user = create_user(get_store(), name, email, password, role=role, activity=app.extensions['activity'])
        except SwiftSaleError as e:
            click.echo(click.style(f'Error: {e.message}', fg='red'))
            raise SystemExit(1)
        click.echo(click.style(f'User created: #{user["id"]} {user["email"]} ({user["role"]})', fg='green'))
