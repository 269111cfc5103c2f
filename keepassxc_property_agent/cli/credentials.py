"""CLI commands for the pairing credentials file.

This module provides the ``keepassxc-properties credentials`` command group.
The file only holds the pairing identity; removing it makes the agent pair
with KeePassXC again on the next run.

Commands:
    - status: Show where the pairing credentials are and whether they are usable
    - forget: Delete the pairing credentials
"""

import sys

import click

from keepassxc_property_agent.cli.properties import options_option
from keepassxc_property_agent.config.settings import AgentSettings
from keepassxc_property_agent.credentials import CredentialsError, FileCredentialsStore


def _open_store(options: str) -> FileCredentialsStore:
    settings = AgentSettings.parse(options)
    return FileCredentialsStore(settings.resolve_credentials_store_file())


@click.group(name="credentials")
def credentials_group():
    """Manage the KeePassXC pairing credentials file.

    Examples:

        # Where is the pairing stored and is it usable?
        keepassxc-properties credentials status

        # Pair again on the next run
        keepassxc-properties credentials forget
    """
    pass


@credentials_group.command(name="status")
@options_option
def status_command(options: str) -> None:
    """Show the pairing credentials file and its state."""
    store = _open_store(options)
    click.echo(f"Credentials file: {store.path}")

    if not store.exists():
        click.echo(click.style("Not paired", fg="yellow"))
        return

    try:
        credentials = store.load()
    except CredentialsError as e:
        click.echo(click.style(f"Error: {e.message}", fg="red"), err=True)
        sys.exit(1)

    if credentials is None:
        click.echo(click.style("Unreadable, KeePassXC will be paired again on the next run", fg="yellow"))
    else:
        click.echo(click.style("Paired", fg="green"))


@credentials_group.command(name="forget")
@options_option
@click.confirmation_option(prompt="Delete the KeePassXC pairing credentials?")
def forget_command(options: str) -> None:
    """Delete the pairing credentials file."""
    store = _open_store(options)

    try:
        deleted = store.delete()
    except CredentialsError as e:
        click.echo(click.style(f"Error: {e.message}", fg="red"), err=True)
        sys.exit(1)

    if deleted:
        click.echo(click.style(f"Deleted {store.path}", fg="green"))
    else:
        click.echo(f"No pairing credentials at {store.path}")
