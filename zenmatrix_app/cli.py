"""
Flask CLI commands.

``promote-user`` is the only way to grant the ADMIN role, since the
registration endpoint always creates plain users::

    flask --app wsgi promote-user alice@example.com --role ADMIN
"""

from __future__ import annotations

import logging

import click
from flask import Flask
from flask.cli import with_appcontext

from .context import get_services
from .models import UserRole

logger = logging.getLogger(__name__)


@click.command("promote-user")
@with_appcontext
@click.argument("email")
@click.option(
    "--role",
    type=click.Choice([role.value for role in UserRole]),
    default=UserRole.ADMIN.value,
    show_default=True,
    help="Role to assign.",
)
def promote_user_command(email: str, role: str) -> None:
    """Set the role of the user registered with EMAIL."""
    users = get_services().users
    user = users.get_by_email(email)
    if user is None:
        raise click.ClickException(f"No user registered with email '{email}'")

    users.set_role(user, UserRole(role))
    logger.info("User id=%s role set to %s", user.id, role)
    click.echo(f"{user.email} is now {role}")


def register_commands(app: Flask) -> None:
    app.cli.add_command(promote_user_command)
