"""Deadline-bounded retry for waiting on KeePassXC.

KeePassXC may not be running yet, may not have browser integration enabled,
or may be running with the database locked. Rather than failing straight
away, the agent keeps polling until a deadline and periodically tells the user
what it is waiting for.

Key Exports:
    RetryCoordinator: Polls an attempt until it succeeds or the deadline passes.

Example:
    >>> coordinator = RetryCoordinator(timedelta(minutes=2), timedelta(seconds=5))
    >>> coordinator.run(
    ...     connection.connect,
    ...     failure_message="Please start KeePassXC",
    ...     timeout_message="Failed to connect to KeePassXC",
    ... )

Timing:
    The first attempt always runs, even with a zero or negative maximum wait.
    Later attempts only run while the deadline has not passed. Attempts are
    spaced by a fixed poll interval (500ms), and a failure message is shown
    at most once per message repeat interval.
"""

import threading
import time
from collections.abc import Callable
from datetime import timedelta
from typing import TypeVar

import structlog

from keepassxc_property_agent.config.settings import AgentSettings
from keepassxc_property_agent.exceptions import (
    AcquisitionInterruptedError,
    RecoverableConnectionError,
    WaitTimeoutError,
)
from keepassxc_property_agent.utils.console import Notifier, format_duration, notify_user, truncate_to_seconds

log = structlog.get_logger(__name__)

T = TypeVar("T")

DEFAULT_POLL_INTERVAL = timedelta(milliseconds=500)


class RetryCoordinator:
    """Runs an attempt repeatedly until it succeeds or a deadline passes.

    Only ``RecoverableConnectionError`` counts as "not yet"; any other
    exception from the attempt propagates immediately.

    Attributes:
        max_wait: How long to keep retrying after the first attempt starts
        message_repeat: Minimum time between repeated failure messages
        poll_interval: Pause between attempts
    """

    def __init__(
        self,
        max_wait: timedelta,
        message_repeat: timedelta,
        *,
        notify: Notifier = notify_user,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
        cancel_event: threading.Event | None = None,
        poll_interval: timedelta = DEFAULT_POLL_INTERVAL,
    ) -> None:
        """Initialize the coordinator.

        Args:
            max_wait: Maximum time to keep retrying
            message_repeat: Minimum interval between failure messages
            notify: Receives user-facing progress and timeout messages
            clock: Monotonic clock in seconds
            sleep: Sleep function, used when no cancel event is given
            cancel_event: When set, waiting stops with AcquisitionInterruptedError
            poll_interval: Pause between attempts
        """
        self.max_wait = max_wait
        self.message_repeat = message_repeat
        self.poll_interval = poll_interval
        self._notify = notify
        self._clock = clock
        self._sleep = sleep
        self._cancel_event = cancel_event

    @classmethod
    def from_settings(cls, settings: AgentSettings, **kwargs) -> "RetryCoordinator":
        """Create a coordinator using the unlock wait settings."""
        return cls(settings.unlock_max_wait_time, settings.unlock_message_repeat_time, **kwargs)

    def run(self, attempt: Callable[[], T], failure_message: str, timeout_message: str) -> T:
        """Run ``attempt`` until it succeeds or the deadline passes.

        Args:
            attempt: Zero-argument callable; raises RecoverableConnectionError
                when it should be retried
            failure_message: Shown (throttled) after failed attempts
            timeout_message: Shown once when giving up

        Returns:
            The return value of the first successful attempt

        Raises:
            WaitTimeoutError: If no attempt succeeded before the deadline
            AcquisitionInterruptedError: If cancelled while waiting
        """
        deadline = self._clock() + self.max_wait.total_seconds()
        repeat_seconds = self.message_repeat.total_seconds()
        last_message_time: float | None = None
        failure: RecoverableConnectionError | None = None
        attempts = 0

        while failure is None or self._clock() < deadline:
            attempts += 1
            try:
                return attempt()
            except RecoverableConnectionError as e:
                failure = e

            now = self._clock()
            remaining = truncate_to_seconds(timedelta(seconds=deadline - now))
            log.debug("attempt_failed", attempt=attempts, error=failure.message, remaining=format_duration(remaining))

            if last_message_time is None or now - last_message_time >= repeat_seconds:
                self._notify(f"{failure_message} (timeout in {format_duration(remaining)})...")
                last_message_time = now

            self._pause()

        message = f"{timeout_message} (within {format_duration(self.max_wait)})"
        log.warning("wait_timed_out", attempts=attempts, max_wait=format_duration(self.max_wait))
        self._notify(message)
        raise WaitTimeoutError(message, timeout=self.max_wait) from failure

    def _pause(self) -> None:
        seconds = self.poll_interval.total_seconds()
        try:
            if self._cancel_event is None:
                self._sleep(seconds)
            elif self._cancel_event.wait(seconds):
                raise AcquisitionInterruptedError("Cancelled while waiting for KeePassXC")
        except KeyboardInterrupt as e:
            raise AcquisitionInterruptedError("Interrupted while waiting for KeePassXC") from e
