"""Pairing credentials storage.

KeePassXC only answers clients it has been paired with. The pairing result
(key pair and association id, opaque to the agent) is kept here between runs
so the user confirms the pairing once.

Key Components:
    - PairingCredentials: Opaque pairing identity
    - CredentialsStore: Storage protocol
    - FileCredentialsStore: Atomic, owner-only file storage
"""

from keepassxc_property_agent.credentials.backend import CredentialsStore, PairingCredentials
from keepassxc_property_agent.credentials.file_store import FileCredentialsStore
from keepassxc_property_agent.exceptions import (
    CorruptCredentialsError,
    CredentialsError,
    PersistenceError,
)

__all__ = [
    "CorruptCredentialsError",
    "CredentialsError",
    "CredentialsStore",
    "FileCredentialsStore",
    "PairingCredentials",
    "PersistenceError",
]
