"""Custom exception hierarchy for keepassxc-property-agent.

This module defines the errors raised while acquiring properties from a
running KeePassXC instance. Callers can catch ``KeepassAgentError`` to handle
every agent-specific failure with a single except clause.

Exception Hierarchy:
    KeepassAgentError (base)
    ├── ConfigurationError
    ├── RecoverableConnectionError
    ├── WaitTimeoutError
    ├── AcquisitionInterruptedError
    ├── ProtocolError
    │   └── TransportError
    └── CredentialsError
        ├── PersistenceError
        └── CorruptCredentialsError

Example Usage:
    >>> from keepassxc_property_agent.exceptions import PersistenceError
    >>> try:
    ...     store.save(credentials)
    ... except PersistenceError as e:
    ...     log.error("credentials_save_failed", error=e.message)
"""

from datetime import timedelta
from pathlib import Path


class KeepassAgentError(Exception):
    """Base exception for all keepassxc-property-agent errors.

    Attributes:
        message: Human-readable error description
    """

    def __init__(self, message: str) -> None:
        """Initialize exception.

        Args:
            message: Error message
        """
        self.message = message
        super().__init__(message)


class ConfigurationError(KeepassAgentError):
    """Agent options could not be turned into usable settings.

    Unparsable individual option values are logged and ignored; this is only
    raised when no usable settings can be built at all.
    """

    pass


class RecoverableConnectionError(KeepassAgentError):
    """KeePassXC is not reachable yet, not associated, or still locked.

    This is the "not yet" signal for the retry coordinator: it is retried
    until the configured deadline passes.
    """

    pass


class WaitTimeoutError(KeepassAgentError):
    """Deadline exceeded while connecting to or waiting for KeePassXC.

    Attributes:
        timeout: The configured maximum wait that was exceeded
    """

    def __init__(self, message: str, timeout: timedelta | None = None) -> None:
        """Initialize exception.

        Args:
            message: Error message
            timeout: The maximum wait that was exceeded
        """
        self.timeout = timeout
        super().__init__(message)


class AcquisitionInterruptedError(KeepassAgentError):
    """Cancelled while waiting for KeePassXC.

    Terminal for the whole run, not only the current lookup URI.
    """

    pass


class ProtocolError(KeepassAgentError):
    """KeePassXC or the transport reported a protocol-level failure.

    Attributes:
        lookup_uri: The entry URI being read when the failure happened
    """

    def __init__(self, message: str, lookup_uri: str | None = None) -> None:
        """Initialize exception.

        Args:
            message: Error message
            lookup_uri: Entry URI being read, if known
        """
        self.lookup_uri = lookup_uri

        full_message = message
        if lookup_uri:
            full_message = f"{message} (entry: {lookup_uri})"

        super().__init__(full_message)
        # Keep the short form, super() stored the decorated one
        self.message = message


class TransportError(ProtocolError):
    """Raised by transport implementations for structural failures.

    Transports raise ``OSError`` for plain I/O problems and this error for
    everything KeePassXC itself rejects (bad association, malformed reply,
    database closed mid-request).
    """

    pass


class CredentialsError(KeepassAgentError):
    """Pairing credentials could not be loaded or stored.

    Attributes:
        message: Human-readable error description
        path: Credentials file involved, if any
    """

    def __init__(self, message: str, path: Path | None = None) -> None:
        """Initialize exception.

        Args:
            message: Error message
            path: Credentials file involved
        """
        self.path = path

        full_message = message
        if path is not None:
            full_message = f"{message} (file: {path})"

        super().__init__(full_message)
        self.message = message


class PersistenceError(CredentialsError):
    """I/O failure reading or writing the credentials file. Never retried."""

    pass


class CorruptCredentialsError(CredentialsError):
    """Credentials file exists but cannot be decoded.

    Only used inside the credentials store, where it is logged and treated
    as "never paired".
    """

    pass
