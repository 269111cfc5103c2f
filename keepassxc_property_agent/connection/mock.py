"""Scripted in-memory KeePassXC transport.

Behaves like a KeePassXC instance that may start late, may be locked for a
while and pairs clients on request, without any native messaging. Used by
the test suite and handy for trying the CLI without KeePassXC::

    keepassxc-properties read --transport keepassxc_property_agent.connection.mock:demo_transport
"""

import json
import secrets
from collections.abc import Callable, Mapping
from typing import Any

from keepassxc_property_agent.connection.base import CredentialsListener
from keepassxc_property_agent.credentials.backend import PairingCredentials
from keepassxc_property_agent.exceptions import TransportError

LoginsResponse = Mapping[str, Any] | None


def encode_identity(associate_id: str, public_key: str) -> PairingCredentials:
    """Encode a mock identity the way a real transport serializes its state."""
    return PairingCredentials(json.dumps({"id": associate_id, "key": public_key}).encode("utf-8"))


def decode_identity(credentials: PairingCredentials | None) -> tuple[str | None, str | None]:
    if credentials is None:
        return None, None
    try:
        identity = json.loads(credentials.data)
        return identity["id"], identity["key"]
    except (ValueError, TypeError, KeyError):
        return None, None


class MockTransport:
    """Mock KeePassXC transport.

    Attributes:
        connect_failures: Number of ``connect()`` calls that fail before one succeeds
        locked_probes: Number of ``test_associate()`` calls answered "locked"
        known_associations: Association ids KeePassXC accepts
        responses: ``get-logins`` replies by URL, values may be callables
        pairing_quirk: Make ``associate()`` raise after pairing succeeded
        get_logins_error: Raised from ``get_logins()`` when set
        calls: Names of the transport methods called, in order

    Example:
        >>> transport = MockTransport(
        ...     responses={"python://app": {"entries": [{"stringFields": [{"KPH: property: a": "1"}]}]}},
        ...     locked_probes=2,
        ... )
    """

    def __init__(
        self,
        responses: Mapping[str, LoginsResponse | Callable[[str], LoginsResponse]] | None = None,
        connect_failures: int = 0,
        locked_probes: int = 0,
        known_associations: set[str] | None = None,
        pairing_quirk: bool = True,
        get_logins_error: Exception | None = None,
    ) -> None:
        self.responses = dict(responses or {})
        self.connect_failures = connect_failures
        self.locked_probes = locked_probes
        self.known_associations = set(known_associations or ())
        self.pairing_quirk = pairing_quirk
        self.get_logins_error = get_logins_error
        self.calls: list[str] = []
        self.connected = False
        self.closed = False
        self._credentials: PairingCredentials | None = None
        self._listeners: list[CredentialsListener] = []

    @property
    def credentials(self) -> PairingCredentials | None:
        return self._credentials

    @credentials.setter
    def credentials(self, value: PairingCredentials | None) -> None:
        self._credentials = value

    @property
    def associate_id(self) -> str | None:
        return decode_identity(self._credentials)[0]

    @property
    def public_key(self) -> str | None:
        return decode_identity(self._credentials)[1]

    def add_credentials_listener(self, listener: CredentialsListener) -> None:
        self._listeners.append(listener)

    def remove_credentials_listener(self, listener: CredentialsListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def connect(self) -> None:
        self.calls.append("connect")
        if self.connect_failures > 0:
            self.connect_failures -= 1
            raise ConnectionRefusedError("KeePassXC is not running")
        self.connected = True

    def associate(self) -> None:
        self.calls.append("associate")
        self._require_connection()

        associate_id = f"agent-{secrets.token_hex(4)}"
        self.known_associations.add(associate_id)
        self._credentials = encode_identity(associate_id, secrets.token_hex(16))
        for listener in list(self._listeners):
            listener(self._credentials)

        if self.pairing_quirk:
            raise TransportError("Association reply could not be verified")

    def test_associate(self, associate_id: str, public_key: str) -> None:
        self.calls.append("test_associate")
        self._require_connection()
        if self.locked_probes > 0:
            self.locked_probes -= 1
            raise TransportError("Database is locked")
        if associate_id not in self.known_associations:
            raise TransportError(f"Unknown association {associate_id}")

    def get_logins(
        self,
        url: str,
        submit_url: str | None,
        http_auth: bool,
        keys: list[dict[str, str]],
    ) -> Mapping[str, Any] | None:
        self.calls.append("get_logins")
        self._require_connection()
        if self.get_logins_error is not None:
            raise self.get_logins_error

        response = self.responses.get(url)
        if callable(response):
            return response(url)
        return response

    def close(self) -> None:
        self.calls.append("close")
        self.connected = False
        self.closed = True

    def _require_connection(self) -> None:
        if not self.connected:
            raise ConnectionError("Not connected to KeePassXC")


def demo_transport() -> MockTransport:
    """Transport factory returning a mock KeePassXC with one sample entry."""
    return MockTransport(
        responses={
            "python://app": {
                "entries": [
                    {
                        "name": "demo",
                        "login": "demo",
                        "password": "demo",
                        "stringFields": [
                            {"KPH: property: db.user": "demo"},
                            {"KPH: property: db.password": "not-a-real-secret"},
                        ],
                    }
                ]
            }
        },
        locked_probes=1,
    )
