"""Connections to KeePassXC.

Key Components:
    - KeepassTransport: Protocol for the external browser integration client
    - Connection: Protocol for the session operations the engine uses
    - KeepassConnection: Connection over a transport, persisting pairing credentials
    - MockTransport: Scripted in-memory transport
"""

from keepassxc_property_agent.connection.base import Connection, CredentialsListener, KeepassTransport
from keepassxc_property_agent.connection.keepass import KeepassConnection
from keepassxc_property_agent.connection.mock import MockTransport

__all__ = [
    "Connection",
    "CredentialsListener",
    "KeepassConnection",
    "KeepassTransport",
    "MockTransport",
]
