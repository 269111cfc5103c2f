"""
Agent settings using Pydantic for type-safe, immutable configuration.

Settings come from a single comma-separated options string such as::

    entryUri=python://billing,entryUri=python://shared,unlockMaxWaitTime=PT30S

which the host environment hands over in ``KEEPASSXC_PROPERTY_AGENT_OPTIONS``.
The resulting ``AgentSettings`` value is threaded explicitly through the
engine; there is no process-wide configuration state.
"""

from __future__ import annotations

from datetime import timedelta
from pathlib import Path
from typing import Literal

import structlog
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

log = structlog.get_logger(__name__)

DEFAULT_ENTRY_URI = "python://app"
DEFAULT_CREDENTIALS_STORE_FILE = Path("keepassxc-property-agent-credentials")
DEFAULT_PROPERTY_PREFIX = "KPH: property:"
CREDENTIALS_BASE_DIRECTORY_NAME = ".keepassxc-property-agent"

OPTION_ENTRY_URI = "entryUri"
OPTION_CREDENTIALS_STORE_FILE = "credentialsStoreFile"
OPTION_UNLOCK_MAX_WAIT_TIME = "unlockMaxWaitTime"
OPTION_UNLOCK_MESSAGE_REPEAT_TIME = "unlockMessageRepeatTime"
OPTION_PROPERTY_PREFIX = "propertyPrefix"

_duration_adapter: TypeAdapter[timedelta] = TypeAdapter(timedelta)


def credentials_base_directory() -> Path:
    """Per-user directory that relative credentials file paths resolve against."""
    return Path.home() / CREDENTIALS_BASE_DIRECTORY_NAME


def parse_duration(value: str) -> timedelta:
    """Parse a duration literal.

    Accepts ISO-8601 durations (``PT2M``, ``PT1M30S``) as well as the other
    forms Pydantic understands for ``timedelta``.

    Raises:
        ValueError: If the value is not a duration
    """
    try:
        return _duration_adapter.validate_python(value.strip())
    except ValidationError as e:
        raise ValueError(f"invalid duration {value!r}") from e


class AgentSettings(BaseModel):
    """Immutable settings for one acquisition run."""

    model_config = ConfigDict(frozen=True)

    entry_uris: tuple[str, ...] = Field(
        default=(DEFAULT_ENTRY_URI,),
        description="KeePassXC entry URIs to read, in order; later URIs win on conflicting keys",
    )
    credentials_store_file: Path = Field(
        default=DEFAULT_CREDENTIALS_STORE_FILE,
        description="Pairing credentials file, relative paths resolve under ~/.keepassxc-property-agent",
    )
    unlock_max_wait_time: timedelta = Field(
        default=timedelta(minutes=2),
        description="How long to wait for KeePassXC to start and be unlocked",
    )
    unlock_message_repeat_time: timedelta = Field(
        default=timedelta(seconds=5),
        description="Interval between repeated 'please unlock' messages",
    )
    property_prefix: str = Field(
        default=DEFAULT_PROPERTY_PREFIX,
        description="String field name prefix marking fields exposed as properties",
    )

    @field_validator("entry_uris")
    @classmethod
    def validate_entry_uris(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        """At least one entry URI is always configured."""
        if not value:
            raise ValueError("at least one entry URI is required")
        return value

    def resolve_credentials_store_file(self, base_directory: Path | None = None) -> Path:
        """Get the absolute credentials file path.

        Args:
            base_directory: Directory for relative paths (defaults to
                ``~/.keepassxc-property-agent``)

        Returns:
            ``credentials_store_file`` if absolute, otherwise resolved
            under the base directory
        """
        if base_directory is None:
            base_directory = credentials_base_directory()
        return base_directory / self.credentials_store_file.expanduser()

    @classmethod
    def parse(cls, options: str | None) -> AgentSettings:
        """Build settings from a comma-separated ``key=value`` options string.

        Segments without ``=`` and unknown keys are ignored. ``entryUri``
        may be repeated. Duration values that cannot be parsed are logged
        and the default is kept. ``propertyPrefix`` is taken verbatim,
        including surrounding whitespace.

        Args:
            options: The options string, or None for all defaults

        Returns:
            AgentSettings instance
        """
        values: dict[str, object] = {}
        entry_uris: list[str] = []

        for segment in (options or "").split(","):
            key, separator, value = segment.partition("=")
            if not separator:
                continue

            if key == OPTION_ENTRY_URI:
                entry_uris.append(value)
            elif key == OPTION_CREDENTIALS_STORE_FILE:
                values["credentials_store_file"] = Path(value)
            elif key == OPTION_UNLOCK_MAX_WAIT_TIME:
                _set_duration(values, "unlock_max_wait_time", key, value)
            elif key == OPTION_UNLOCK_MESSAGE_REPEAT_TIME:
                _set_duration(values, "unlock_message_repeat_time", key, value)
            elif key == OPTION_PROPERTY_PREFIX:
                values["property_prefix"] = value
            else:
                log.debug("option_ignored", key=key)

        if entry_uris:
            values["entry_uris"] = tuple(entry_uris)

        return cls(**values)


def _set_duration(values: dict[str, object], field_name: str, key: str, value: str) -> None:
    try:
        values[field_name] = parse_duration(value)
    except ValueError as e:
        log.warning("option_parse_failed", option=key, value=value, error=str(e))


def parse_options(options: str | None) -> AgentSettings:
    """Parse an options string into ``AgentSettings``.

    See ``AgentSettings.parse``.
    """
    return AgentSettings.parse(options)


class AgentEnvironment(BaseSettings):
    """Settings sourced from the process environment.

    Example:
        KEEPASSXC_PROPERTY_AGENT_OPTIONS="entryUri=python://billing"
        KEEPASSXC_PROPERTY_AGENT_LOG_LEVEL=DEBUG
    """

    model_config = SettingsConfigDict(
        env_prefix="KEEPASSXC_PROPERTY_AGENT_",
        case_sensitive=False,
    )

    options: str = Field(default="", description="Comma-separated agent options string")
    log_level: str = Field(default="WARNING", description="Minimum log level")
    log_format: Literal["console", "json"] = Field(default="console", description="Log renderer")

    def agent_settings(self) -> AgentSettings:
        """Parse ``options`` into agent settings."""
        return AgentSettings.parse(self.options)
