"""Tests for keepassxc_property_agent.exceptions module."""

from datetime import timedelta
from pathlib import Path

import pytest

from keepassxc_property_agent.exceptions import (
    AcquisitionInterruptedError,
    ConfigurationError,
    CorruptCredentialsError,
    CredentialsError,
    KeepassAgentError,
    PersistenceError,
    ProtocolError,
    RecoverableConnectionError,
    TransportError,
    WaitTimeoutError,
)


class TestKeepassAgentError:
    """Test base KeepassAgentError class."""

    def test_init_with_message(self):
        error = KeepassAgentError("Test error message")

        assert error.message == "Test error message"
        assert str(error) == "Test error message"

    @pytest.mark.parametrize(
        "error_class",
        [
            ConfigurationError,
            RecoverableConnectionError,
            WaitTimeoutError,
            AcquisitionInterruptedError,
            ProtocolError,
            TransportError,
            CredentialsError,
            PersistenceError,
            CorruptCredentialsError,
        ],
    )
    def test_all_errors_catchable_as_base(self, error_class):
        with pytest.raises(KeepassAgentError):
            raise error_class("failure")


class TestWaitTimeoutError:
    """Test WaitTimeoutError."""

    def test_carries_timeout(self):
        error = WaitTimeoutError("Failed to connect", timeout=timedelta(minutes=2))

        assert error.timeout == timedelta(minutes=2)
        assert str(error) == "Failed to connect"

    def test_timeout_optional(self):
        assert WaitTimeoutError("gave up").timeout is None


class TestProtocolError:
    """Test ProtocolError and TransportError."""

    def test_with_lookup_uri(self):
        error = ProtocolError("Error getting entries", lookup_uri="python://app")

        assert error.message == "Error getting entries"
        assert error.lookup_uri == "python://app"
        assert str(error) == "Error getting entries (entry: python://app)"

    def test_without_lookup_uri(self):
        error = ProtocolError("Connection dropped")

        assert error.lookup_uri is None
        assert str(error) == "Connection dropped"

    def test_transport_error_is_protocol_error(self):
        assert issubclass(TransportError, ProtocolError)
        assert not issubclass(TransportError, RecoverableConnectionError)


class TestCredentialsError:
    """Test credentials errors."""

    def test_with_path(self):
        error = PersistenceError("Failed to save", path=Path("/tmp/creds"))

        assert error.message == "Failed to save"
        assert error.path == Path("/tmp/creds")
        assert str(error) == "Failed to save (file: /tmp/creds)"

    def test_without_path(self):
        error = CorruptCredentialsError("bad envelope")

        assert error.path is None
        assert str(error) == "bad envelope"

    def test_hierarchy(self):
        assert issubclass(PersistenceError, CredentialsError)
        assert issubclass(CorruptCredentialsError, CredentialsError)
        assert not issubclass(PersistenceError, ProtocolError)
