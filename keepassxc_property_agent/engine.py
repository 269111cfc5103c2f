"""Acquisition engine: read properties for every configured entry URI.

For each entry URI, in order, the engine:

1. opens the pairing credentials store,
2. creates a connection seeded with the stored pairing,
3. waits for KeePassXC to accept the connection,
4. pairs if the stored pairing is missing or stale,
5. waits for the database to be unlocked,
6. fetches matching entries and extracts prefixed string fields,
7. closes the connection and merges them into one property map.

A URI that times out or fails stops the run, but properties already read
from earlier URIs are kept. Later URIs overwrite earlier ones on conflicting
keys.

Example:
    >>> engine = AcquisitionEngine(parse_options("entryUri=python://billing"), make_transport)
    >>> result = engine.acquire()
    >>> if not result.ok:
    ...     print(result.failure)
    >>> result.properties
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import structlog

from keepassxc_property_agent.config.settings import AgentEnvironment, AgentSettings
from keepassxc_property_agent.connection.base import KeepassTransport
from keepassxc_property_agent.connection.keepass import KeepassConnection
from keepassxc_property_agent.credentials import CredentialsStore, FileCredentialsStore
from keepassxc_property_agent.enums import AcquisitionState
from keepassxc_property_agent.exceptions import (
    AcquisitionInterruptedError,
    PersistenceError,
    ProtocolError,
    RecoverableConnectionError,
    WaitTimeoutError,
)
from keepassxc_property_agent.extraction import EntryExtractor
from keepassxc_property_agent.retry import RetryCoordinator
from keepassxc_property_agent.utils.console import Notifier, notify_user

log = structlog.get_logger(__name__)

TransportFactory = Callable[[], KeepassTransport]
StoreFactory = Callable[[Path], CredentialsStore]
RetryFactory = Callable[[AgentSettings], RetryCoordinator]

CONNECT_MESSAGE = (
    "Reading properties from KeePassXC, please start KeePassXC, "
    "ensure browser integration is enabled and open your database"
)
CONNECT_TIMEOUT_MESSAGE = "Failed to connect to KeePassXC"
UNLOCK_MESSAGE = "Reading properties from KeePassXC, please unlock your database"
UNLOCK_TIMEOUT_MESSAGE = "Failed to connect to KeePassXC - database remained locked"


@dataclass
class LookupFailure:
    """Terminal failure reading one entry URI."""

    uri: str
    state: AcquisitionState
    error: Exception

    def __str__(self) -> str:
        return f"{self.uri}: {self.error}"


@dataclass
class AcquisitionResult:
    """Outcome of one acquisition run.

    ``properties`` holds everything read from the URIs in ``completed_uris``.
    A URI that fails, including while closing its connection, contributes no
    properties; the URIs after it are listed in ``skipped_uris``.
    """

    properties: dict[str, Any] = field(default_factory=dict)
    completed_uris: list[str] = field(default_factory=list)
    skipped_uris: list[str] = field(default_factory=list)
    failure: LookupFailure | None = None

    @property
    def ok(self) -> bool:
        return self.failure is None


class AcquisitionEngine:
    """Reads properties from KeePassXC for the configured entry URIs."""

    def __init__(
        self,
        settings: AgentSettings,
        transport_factory: TransportFactory,
        *,
        store_factory: StoreFactory = FileCredentialsStore,
        retry_factory: RetryFactory | None = None,
        notify: Notifier = notify_user,
        credentials_directory: Path | None = None,
    ) -> None:
        """Initialize the engine.

        Args:
            settings: Settings for this run
            transport_factory: Creates a new KeePassXC transport per entry URI
            store_factory: Creates the credentials store for a file path
            retry_factory: Creates the retry coordinator; defaults to one
                built from the unlock wait settings
            notify: Receives user-facing progress messages
            credentials_directory: Base directory for a relative credentials
                file (defaults to ~/.keepassxc-property-agent)
        """
        self.settings = settings
        self.state = AcquisitionState.IDLE
        self._transport_factory = transport_factory
        self._store_factory = store_factory
        self._retry_factory = retry_factory or (lambda s: RetryCoordinator.from_settings(s, notify=notify))
        self._credentials_directory = credentials_directory
        self._notify = notify
        self._extractor = EntryExtractor(settings.property_prefix)

    def acquire(self, properties: dict[str, Any] | None = None) -> AcquisitionResult:
        """Read every configured entry URI into one property map.

        Args:
            properties: Map to merge into; a new one is created if omitted

        Returns:
            The merged properties and the failure that stopped the run, if any

        Raises:
            AcquisitionInterruptedError: If cancelled while waiting on KeePassXC
        """
        result = AcquisitionResult(properties=properties if properties is not None else {})
        uris = self.settings.entry_uris

        for index, uri in enumerate(uris):
            try:
                self.read_properties(uri, result.properties)
            except AcquisitionInterruptedError:
                self.state = AcquisitionState.INTERRUPTED
                log.warning("acquisition_interrupted", entry_uri=uri)
                raise
            except (WaitTimeoutError, ProtocolError, PersistenceError) as e:
                if isinstance(e, WaitTimeoutError):
                    self.state = AcquisitionState.TIMED_OUT
                else:
                    self.state = AcquisitionState.FAILED

                result.failure = LookupFailure(uri=uri, state=self.state, error=e)
                result.skipped_uris = list(uris[index + 1 :])
                log.error(
                    "lookup_failed",
                    entry_uri=uri,
                    state=str(self.state),
                    error=str(e),
                    skipped=result.skipped_uris,
                )
                break

            result.completed_uris.append(uri)

        return result

    def read_properties(self, uri: str, properties: dict[str, Any]) -> None:
        """Read the entries matching one URI into ``properties``.

        Args:
            uri: Entry URI to look up
            properties: Map to merge extracted properties into

        Raises:
            WaitTimeoutError: If KeePassXC was not reachable or stayed locked
            ProtocolError: If KeePassXC rejected the request
            PersistenceError: If the credentials file could not be read
            AcquisitionInterruptedError: If cancelled while waiting
        """
        log.info("lookup_started", entry_uri=uri)
        self._notify(f"Reading properties from KeePassXC entry: {uri}")
        self.state = AcquisitionState.IDLE

        try:
            store = self._store_factory(
                self.settings.resolve_credentials_store_file(self._credentials_directory)
            )
            self.state = AcquisitionState.STORE_OPENED

            with KeepassConnection(store, self._transport_factory()) as connection:
                self._establish(connection)

                self.state = AcquisitionState.FETCHING
                response = connection.fetch_entries(uri, None, True, [connection.export_identity()])

                extracted = self._extractor.extract(response)
                self.state = AcquisitionState.EXTRACTED
        except KeyboardInterrupt as e:
            raise AcquisitionInterruptedError("Interrupted while reading from KeePassXC") from e
        except ProtocolError as e:
            if e.lookup_uri is None:
                raise ProtocolError(e.message, lookup_uri=uri) from e
            raise

        # Merged only once the connection closed cleanly, a failed URI contributes nothing
        for key, value in extracted:
            properties[key] = value
        self.state = AcquisitionState.CLOSED
        log.info("lookup_completed", entry_uri=uri, properties=len(extracted))

    def _establish(self, connection: KeepassConnection) -> None:
        retry = self._retry_factory(self.settings)

        self.state = AcquisitionState.CONNECTING
        retry.run(connection.connect, CONNECT_MESSAGE, CONNECT_TIMEOUT_MESSAGE)

        if not connection.is_live():
            # The result is unreliable, the unlock wait below confirms the pairing
            connection.attempt_pairing()

        self.state = AcquisitionState.AWAITING_UNLOCK
        retry.run(lambda: _require_live(connection), UNLOCK_MESSAGE, UNLOCK_TIMEOUT_MESSAGE)


def _require_live(connection: KeepassConnection) -> None:
    if not connection.is_live():
        raise RecoverableConnectionError("KeePassXC database is locked or the pairing is not confirmed")


def load_properties(
    options: str | None = None,
    *,
    transport_factory: TransportFactory,
    notify: Notifier = notify_user,
    **engine_options: Any,
) -> dict[str, Any]:
    """Read properties for a host application.

    Reads the options string from ``KEEPASSXC_PROPERTY_AGENT_OPTIONS`` when
    not given. A timeout or KeePassXC error is reported to the user and the
    properties read so far are returned.

    Args:
        options: Agent options string
        transport_factory: Creates KeePassXC transports
        notify: Receives user-facing messages
        **engine_options: Passed through to ``AcquisitionEngine``

    Returns:
        The properties read

    Raises:
        AcquisitionInterruptedError: If cancelled while waiting on KeePassXC
    """
    if options is None:
        options = AgentEnvironment().options

    settings = AgentSettings.parse(options)
    engine = AcquisitionEngine(settings, transport_factory, notify=notify, **engine_options)
    result = engine.acquire()

    if result.failure is not None:
        notify(f"Failed to read values from KeePassXC: {result.failure}")

    return result.properties
