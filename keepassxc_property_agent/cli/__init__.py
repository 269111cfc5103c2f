"""CLI commands for keepassxc-property-agent.

The CLI is built using Click with the main entry point
``keepassxc-properties``.

Key Commands:
    read (keepassxc_property_agent.cli.properties):
        Read properties from KeePassXC and print them.

    show-config (keepassxc_property_agent.cli.properties):
        Show the settings parsed from an options string.

    credentials (keepassxc_property_agent.cli.credentials):
        Inspect or delete the pairing credentials file.
"""

from keepassxc_property_agent.cli.credentials import credentials_group
from keepassxc_property_agent.cli.properties import read_command, show_config_command

__all__ = ["credentials_group", "read_command", "show_config_command"]
