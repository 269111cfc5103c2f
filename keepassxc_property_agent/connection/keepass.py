"""Session with KeePassXC that keeps the pairing credentials file current."""

from collections.abc import Mapping
from types import TracebackType
from typing import Any

import structlog

from keepassxc_property_agent.connection.base import KeepassTransport
from keepassxc_property_agent.credentials.backend import CredentialsStore, PairingCredentials
from keepassxc_property_agent.exceptions import (
    PersistenceError,
    ProtocolError,
    RecoverableConnectionError,
    TransportError,
)

log = structlog.get_logger(__name__)


class KeepassConnection:
    """Connection to KeePassXC backed by a transport and a credentials store.

    The transport is seeded with the stored pairing credentials. Whenever the
    transport renegotiates them, the new credentials are saved straight away,
    and once more on ``close()`` if the last save did not go through.

    Example:
        >>> with KeepassConnection(store, transport) as connection:
        ...     connection.connect()
        ...     if not connection.is_live():
        ...         connection.attempt_pairing()
        ...     reply = connection.fetch_entries(
        ...         "python://app", None, True, [connection.export_identity()]
        ...     )
    """

    def __init__(self, store: CredentialsStore, transport: KeepassTransport) -> None:
        """Create the connection.

        Args:
            store: Loads and saves pairing credentials
            transport: KeePassXC browser integration client

        Raises:
            PersistenceError: If stored credentials cannot be read; the
                transport is closed before the error propagates
        """
        self._store = store
        self._transport = transport
        self._closed = False

        try:
            self._persisted: PairingCredentials | None = store.load()
        except BaseException:
            # The caller never gets a connection to close, so release the transport here
            self._close_transport_quietly()
            raise

        transport.credentials = self._persisted
        transport.add_credentials_listener(self._on_credentials_changed)

    def __enter__(self) -> "KeepassConnection":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        if exc is None:
            self.close()
            return

        # Keep the error that ended the session
        try:
            self.close()
        except ProtocolError as e:
            log.error("close_failed", error=e.message, pending_error=type(exc).__name__)

    def connect(self) -> None:
        try:
            self._transport.connect()
        except (OSError, TransportError) as e:
            raise RecoverableConnectionError(f"Could not connect to KeePassXC: {e}") from e

    def is_live(self) -> bool:
        public_key = self._transport.public_key
        associate_id = self._transport.associate_id
        if not public_key or not associate_id:
            return False

        try:
            self._transport.test_associate(associate_id, public_key)
        except (OSError, TransportError) as e:
            log.debug("liveness_probe_failed", error=str(e))
            return False

        return True

    def attempt_pairing(self) -> bool:
        # KeePassXC tends to report an error even when pairing went through,
        # so callers confirm with is_live() afterwards
        try:
            self._transport.associate()
        except (OSError, TransportError) as e:
            log.debug("pairing_not_confirmed", error=str(e))
            return False

        return True

    def export_identity(self) -> dict[str, str]:
        return {
            "id": self._transport.associate_id or "",
            "key": self._transport.public_key or "",
        }

    def fetch_entries(
        self,
        lookup_uri: str,
        submit_uri: str | None,
        http_auth: bool,
        identities: list[dict[str, str]],
    ) -> Mapping[str, Any] | None:
        try:
            return self._transport.get_logins(lookup_uri, submit_uri, http_auth, identities)
        except (OSError, TransportError) as e:
            raise ProtocolError(f"Error getting entries: {e}", lookup_uri=lookup_uri) from e

    def close(self) -> None:
        """Close the transport, saving renegotiated credentials first.

        Raises:
            ProtocolError: If the transport fails to close
        """
        if self._closed:
            return
        self._closed = True

        self._transport.remove_credentials_listener(self._on_credentials_changed)

        current = self._transport.credentials
        if current is not None and current != self._persisted:
            self._persist(current)

        try:
            self._transport.close()
        except OSError as e:
            raise ProtocolError(f"Error closing KeePassXC connection: {e}") from e

    def _close_transport_quietly(self) -> None:
        try:
            self._transport.close()
        except OSError as e:
            log.error("close_failed", error=str(e))

    def _on_credentials_changed(self, credentials: PairingCredentials) -> None:
        if credentials != self._persisted:
            self._persist(credentials)

    def _persist(self, credentials: PairingCredentials) -> None:
        try:
            self._store.save(credentials)
        except PersistenceError as e:
            # Reading entries still works this session, only the pairing is not remembered
            log.error("credentials_save_failed", path=str(self._store.path), error=e.message)
            return

        self._persisted = credentials
        log.info("credentials_saved", path=str(self._store.path))
