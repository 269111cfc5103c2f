"""CLI commands for reading properties from KeePassXC.

Commands:
    - read: Read properties for the configured entry URIs and print them
    - show-config: Print the settings parsed from an options string

The KeePassXC transport is an external component, so ``read`` is told where
to find a factory for it with an import path such as
``my_package.keepassxc:create_transport``.

Example:
    Read properties and print them as JSON::

        $ keepassxc-properties read \\
            --options "entryUri=python://billing,unlockMaxWaitTime=PT30S" \\
            --transport my_package.keepassxc:create_transport --format json
"""

import importlib
import json
import sys
from typing import Any

import click

from keepassxc_property_agent.config.settings import AgentSettings, credentials_base_directory
from keepassxc_property_agent.engine import AcquisitionEngine, TransportFactory
from keepassxc_property_agent.exceptions import (
    AcquisitionInterruptedError,
    ConfigurationError,
    KeepassAgentError,
)
from keepassxc_property_agent.utils.console import format_duration

options_option = click.option(
    "--options",
    "options",
    envvar="KEEPASSXC_PROPERTY_AGENT_OPTIONS",
    default="",
    show_envvar=True,
    help="Comma-separated agent options, e.g. entryUri=python://app,unlockMaxWaitTime=PT30S",
)


def load_transport_factory(import_path: str) -> TransportFactory:
    """Load a transport factory from a ``module:attribute`` import path.

    Raises:
        ConfigurationError: If the path is malformed or cannot be imported
    """
    module_name, separator, attribute = import_path.partition(":")
    if not separator or not module_name or not attribute:
        raise ConfigurationError(f"Transport must be given as module:factory, got {import_path!r}")

    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise ConfigurationError(f"Cannot import transport module {module_name!r}: {e}") from e

    factory = module
    for part in attribute.split("."):
        try:
            factory = getattr(factory, part)
        except AttributeError as e:
            raise ConfigurationError(f"Transport factory {import_path!r} not found") from e

    if not callable(factory):
        raise ConfigurationError(f"Transport factory {import_path!r} is not callable")
    return factory


def format_properties(properties: dict[str, Any], output_format: str) -> str:
    """Render properties as ``key=value`` lines or a JSON object."""
    if output_format == "json":
        return json.dumps(properties, indent=2, default=str)
    return "\n".join(f"{key}={value}" for key, value in properties.items())


@click.command(name="read")
@options_option
@click.option(
    "--transport",
    "transport_path",
    envvar="KEEPASSXC_PROPERTY_AGENT_TRANSPORT",
    required=True,
    show_envvar=True,
    help="Import path of a KeePassXC transport factory (module:factory)",
)
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["properties", "json"]),
    default="properties",
    show_default=True,
    help="Output format",
)
def read_command(options: str, transport_path: str, output_format: str) -> None:
    """Read properties from KeePassXC and print them to stdout.

    Properties read before a failure are still printed; the exit code is 1
    if any entry URI failed.
    """
    try:
        settings = AgentSettings.parse(options)
        transport_factory = load_transport_factory(transport_path)
        result = AcquisitionEngine(settings, transport_factory).acquire()
    except AcquisitionInterruptedError:
        click.echo("\nInterrupted by user", err=True)
        sys.exit(130)
    except KeyboardInterrupt:
        click.echo("\nInterrupted by user", err=True)
        sys.exit(130)
    except KeepassAgentError as e:
        click.echo(click.style(f"Error: {e.message}", fg="red"), err=True)
        sys.exit(1)

    if result.properties:
        click.echo(format_properties(result.properties, output_format))

    if result.failure is not None:
        click.echo(click.style(f"Error: {result.failure}", fg="red"), err=True)
        if result.skipped_uris:
            click.echo(f"Skipped entry URIs: {', '.join(result.skipped_uris)}", err=True)
        sys.exit(1)


@click.command(name="show-config")
@options_option
def show_config_command(options: str) -> None:
    """Show the settings parsed from the agent options."""
    settings = AgentSettings.parse(options)

    click.echo("Entry URIs:")
    for uri in settings.entry_uris:
        click.echo(f"  - {uri}")
    click.echo(f"Credentials file: {settings.resolve_credentials_store_file(credentials_base_directory())}")
    click.echo(f"Unlock max wait time: {format_duration(settings.unlock_max_wait_time)}")
    click.echo(f"Unlock message repeat time: {format_duration(settings.unlock_message_repeat_time)}")
    click.echo(f"Property prefix: {settings.property_prefix!r}")
