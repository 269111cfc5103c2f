"""Configuration for the property agent.

Key Components:
    - AgentSettings: Immutable per-run settings parsed from the options string
    - AgentEnvironment: Environment-sourced options, log level and log format
    - parse_options: Options string parser

Example:
    >>> from keepassxc_property_agent.config import parse_options
    >>> settings = parse_options("entryUri=python://billing,unlockMaxWaitTime=PT30S")
    >>> settings.entry_uris
    ('python://billing',)
"""

from keepassxc_property_agent.config.settings import (
    AgentEnvironment,
    AgentSettings,
    credentials_base_directory,
    parse_duration,
    parse_options,
)

__all__ = [
    "AgentEnvironment",
    "AgentSettings",
    "credentials_base_directory",
    "parse_duration",
    "parse_options",
]
