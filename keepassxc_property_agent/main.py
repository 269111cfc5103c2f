"""CLI entry point for keepassxc-property-agent."""

import click

from keepassxc_property_agent.cli import credentials_group, read_command, show_config_command
from keepassxc_property_agent.config.settings import AgentEnvironment
from keepassxc_property_agent.utils.logging_config import configure_logging


@click.group()
@click.option("--log-level", default=None, help="Logging level (default: KEEPASSXC_PROPERTY_AGENT_LOG_LEVEL or WARNING)")
@click.option(
    "--log-format",
    type=click.Choice(["console", "json"]),
    default=None,
    help="Log output format (default: KEEPASSXC_PROPERTY_AGENT_LOG_FORMAT or console)",
)
def cli(log_level: str | None, log_format: str | None) -> None:
    """keepassxc-properties: read application properties from KeePassXC."""
    environment = AgentEnvironment()
    configure_logging(
        log_level or environment.log_level,
        json_output=(log_format or environment.log_format) == "json",
    )


cli.add_command(read_command)
cli.add_command(show_config_command)
cli.add_command(credentials_group)


if __name__ == "__main__":
    cli()
