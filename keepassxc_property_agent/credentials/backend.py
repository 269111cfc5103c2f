"""Pairing credentials value and the store protocol."""

from dataclasses import dataclass
from pathlib import Path
from typing import Protocol


@dataclass(frozen=True)
class PairingCredentials:
    """Opaque pairing identity negotiated with KeePassXC.

    The transport decides what goes in here (its key pair, the association
    id, the server key); the agent only stores, loads and replaces it as a
    unit.
    """

    data: bytes

    def __repr__(self) -> str:
        return f"PairingCredentials(<{len(self.data)} bytes>)"


class CredentialsStore(Protocol):
    """Protocol defining durable storage for pairing credentials.

    Implementations must never delete credentials on their own. Unreadable
    content is reported as "not paired" so the agent pairs again.
    """

    @property
    def path(self) -> Path:
        """Location of the stored credentials."""
        ...

    def load(self) -> PairingCredentials | None:
        """Load stored credentials.

        Returns:
            Stored credentials, or None if never paired or unreadable

        Raises:
            PersistenceError: On I/O failure other than a missing file
        """
        ...

    def save(self, credentials: PairingCredentials) -> None:
        """Replace stored credentials.

        Args:
            credentials: Credentials to persist

        Raises:
            PersistenceError: If the credentials could not be written
        """
        ...
