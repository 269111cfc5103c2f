"""Protocols for talking to KeePassXC.

Two layers are involved:

``KeepassTransport``
    The external native-messaging client: encrypted channel, key exchange,
    message framing. The agent does not implement it; any object with these
    methods can be plugged in.

``Connection``
    The session operations the acquisition engine needs, implemented by
    ``KeepassConnection`` on top of a transport and a credentials store.
"""

from collections.abc import Callable, Mapping
from typing import Any, Protocol

from keepassxc_property_agent.credentials.backend import PairingCredentials

CredentialsListener = Callable[[PairingCredentials], None]


class KeepassTransport(Protocol):
    """Protocol for the KeePassXC browser integration client.

    Methods raise ``OSError`` (including ``ConnectionError``) for I/O failures
    and ``TransportError`` for replies KeePassXC rejected.
    """

    credentials: PairingCredentials | None
    """Pairing identity in use; set before connecting to reuse a pairing."""

    @property
    def associate_id(self) -> str | None:
        """Association id KeePassXC assigned to this client, if paired."""
        ...

    @property
    def public_key(self) -> str | None:
        """Public half of the client's identity key pair, if paired."""
        ...

    def add_credentials_listener(self, listener: CredentialsListener) -> None:
        """Register a callback for renegotiated credentials."""
        ...

    def remove_credentials_listener(self, listener: CredentialsListener) -> None:
        """Unregister a credentials callback."""
        ...

    def connect(self) -> None:
        """Open the channel to KeePassXC and exchange session keys."""
        ...

    def associate(self) -> None:
        """Ask the user to pair this client with the open database."""
        ...

    def test_associate(self, associate_id: str, public_key: str) -> None:
        """Check the association is known and the database is unlocked."""
        ...

    def get_logins(
        self,
        url: str,
        submit_url: str | None,
        http_auth: bool,
        keys: list[dict[str, str]],
    ) -> Mapping[str, Any] | None:
        """Find entries matching ``url``, returning the raw reply."""
        ...

    def close(self) -> None:
        """Release the channel."""
        ...


class Connection(Protocol):
    """Protocol for one session with KeePassXC, as used by the engine."""

    def connect(self) -> None:
        """Connect to KeePassXC.

        Raises:
            RecoverableConnectionError: If KeePassXC is not reachable yet
        """
        ...

    def is_live(self) -> bool:
        """Check the pairing is valid and the database is unlocked."""
        ...

    def attempt_pairing(self) -> bool:
        """Try to pair with KeePassXC; False means "not confirmed", not failure."""
        ...

    def export_identity(self) -> dict[str, str]:
        """Describe the current identity for ``fetch_entries``."""
        ...

    def fetch_entries(
        self,
        lookup_uri: str,
        submit_uri: str | None,
        http_auth: bool,
        identities: list[dict[str, str]],
    ) -> Mapping[str, Any] | None:
        """Fetch entries matching ``lookup_uri``.

        Raises:
            ProtocolError: If KeePassXC or the transport failed
        """
        ...

    def close(self) -> None:
        """Close the session, persisting renegotiated credentials."""
        ...
