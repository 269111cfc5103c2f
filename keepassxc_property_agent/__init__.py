"""Read application properties from KeePassXC entries.

keepassxc-property-agent connects to a running KeePassXC through its browser
integration, finds the entries matching one or more entry URIs and turns their
prefixed custom string fields into a flat property map. Secrets only live in
memory; the one thing persisted to disk is the pairing identity negotiated
with KeePassXC.

Example:
    >>> from keepassxc_property_agent import load_properties
    >>> properties = load_properties(
    ...     "entryUri=python://billing,propertyPrefix=KPH: property:",
    ...     transport_factory=my_transport_factory,
    ... )
    >>> properties["db.password"]
"""

from keepassxc_property_agent.config.settings import AgentEnvironment, AgentSettings, parse_options
from keepassxc_property_agent.connection import KeepassConnection, KeepassTransport
from keepassxc_property_agent.credentials import FileCredentialsStore, PairingCredentials
from keepassxc_property_agent.engine import (
    AcquisitionEngine,
    AcquisitionResult,
    AcquisitionState,
    LookupFailure,
    load_properties,
)
from keepassxc_property_agent.exceptions import (
    AcquisitionInterruptedError,
    ConfigurationError,
    KeepassAgentError,
    PersistenceError,
    ProtocolError,
    RecoverableConnectionError,
    TransportError,
    WaitTimeoutError,
)
from keepassxc_property_agent.extraction import EntryExtractor, KeepassEntry, extract_properties
from keepassxc_property_agent.retry import RetryCoordinator

__version__ = "0.1.0"

__all__ = [
    "AcquisitionEngine",
    "AcquisitionInterruptedError",
    "AcquisitionResult",
    "AcquisitionState",
    "AgentEnvironment",
    "AgentSettings",
    "ConfigurationError",
    "EntryExtractor",
    "FileCredentialsStore",
    "KeepassAgentError",
    "KeepassConnection",
    "KeepassEntry",
    "KeepassTransport",
    "LookupFailure",
    "PairingCredentials",
    "PersistenceError",
    "ProtocolError",
    "RecoverableConnectionError",
    "RetryCoordinator",
    "TransportError",
    "WaitTimeoutError",
    "extract_properties",
    "load_properties",
    "parse_options",
]
