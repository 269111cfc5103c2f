"""User-facing progress messages and duration formatting.

Progress messages ("please unlock your database") are meant for the person
running the host application, so they are written as plain prefixed lines to
stderr rather than as structured log events.
"""

from collections.abc import Callable
from datetime import timedelta

import click
import structlog

log = structlog.get_logger(__name__)

MESSAGE_PREFIX = "keepassxc-property-agent"

Notifier = Callable[[str], None]


def notify_user(message: str) -> None:
    """Write a progress message to stderr."""
    click.echo(f"{MESSAGE_PREFIX}: {message}", err=True)
    log.debug("user_notified", message=message)


def format_duration(duration: timedelta) -> str:
    """Format a duration as ISO-8601, the same form accepted in options.

    Examples:
        >>> format_duration(timedelta(minutes=2))
        'PT2M'
        >>> format_duration(timedelta(seconds=115))
        'PT1M55S'
        >>> format_duration(timedelta(0))
        'PT0S'
    """
    total_microseconds = (duration.days * 86_400 + duration.seconds) * 1_000_000 + duration.microseconds
    sign = "-" if total_microseconds < 0 else ""
    total_microseconds = abs(total_microseconds)

    total_seconds, microseconds = divmod(total_microseconds, 1_000_000)
    hours, remainder = divmod(total_seconds, 3600)
    minutes, seconds = divmod(remainder, 60)

    parts = []
    if hours:
        parts.append(f"{sign}{hours}H")
    if minutes:
        parts.append(f"{sign}{minutes}M")
    if seconds or microseconds or not parts:
        if microseconds:
            fraction = f"{microseconds:06d}".rstrip("0")
            parts.append(f"{sign}{seconds}.{fraction}S")
        elif seconds:
            parts.append(f"{sign}{seconds}S")
        else:
            parts.append("0S")

    return "PT" + "".join(parts)


def truncate_to_seconds(duration: timedelta) -> timedelta:
    """Drop sub-second precision, rounding toward zero."""
    microseconds = (duration.days * 86_400 + duration.seconds) * 1_000_000 + duration.microseconds
    whole_seconds = int(microseconds / 1_000_000)
    return timedelta(seconds=whole_seconds)
