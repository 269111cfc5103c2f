"""Unit tests for the keepassxc-properties CLI."""

import json
from pathlib import Path
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from keepassxc_property_agent.cli.properties import format_properties, load_transport_factory
from keepassxc_property_agent.connection.mock import demo_transport, encode_identity
from keepassxc_property_agent.credentials import FileCredentialsStore
from keepassxc_property_agent.engine import AcquisitionResult, LookupFailure
from keepassxc_property_agent.enums import AcquisitionState
from keepassxc_property_agent.exceptions import AcquisitionInterruptedError, ConfigurationError, WaitTimeoutError
from keepassxc_property_agent.main import cli

DEMO_TRANSPORT = "keepassxc_property_agent.connection.mock:demo_transport"


@pytest.fixture
def cli_runner():
    """Create CLI runner for testing Click commands."""
    return CliRunner()


@pytest.fixture
def home(monkeypatch, tmp_path) -> Path:
    """Point the home directory at a temp dir and clear agent variables."""
    monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))
    for name in ("OPTIONS", "TRANSPORT", "LOG_LEVEL", "LOG_FORMAT"):
        monkeypatch.delenv(f"KEEPASSXC_PROPERTY_AGENT_{name}", raising=False)
    return tmp_path


@pytest.fixture
def credentials_file(home) -> Path:
    return home / ".keepassxc-property-agent" / "keepassxc-property-agent-credentials"


@pytest.fixture
def mock_engine():
    """Replace the acquisition engine used by the read command."""
    with patch("keepassxc_property_agent.cli.properties.AcquisitionEngine") as mock_class:
        yield mock_class.return_value


def invoke(cli_runner, *args):
    return cli_runner.invoke(cli, ["--log-level", "ERROR", *args])


class TestLoadTransportFactory:
    """Tests for load_transport_factory."""

    def test_loads_factory(self):
        assert load_transport_factory(DEMO_TRANSPORT) is demo_transport

    def test_loads_nested_attribute(self):
        factory = load_transport_factory("keepassxc_property_agent.connection.mock:MockTransport.close")

        assert callable(factory)

    @pytest.mark.parametrize("path", ["no_colon", ":factory", "module:"])
    def test_malformed_path(self, path):
        with pytest.raises(ConfigurationError, match="module:factory"):
            load_transport_factory(path)

    def test_missing_module(self):
        with pytest.raises(ConfigurationError, match="Cannot import"):
            load_transport_factory("keepassxc_property_agent.no_such_module:factory")

    def test_missing_attribute(self):
        with pytest.raises(ConfigurationError, match="not found"):
            load_transport_factory("keepassxc_property_agent.connection.mock:no_such_factory")

    def test_not_callable(self):
        with pytest.raises(ConfigurationError, match="not callable"):
            load_transport_factory("keepassxc_property_agent.utils.console:MESSAGE_PREFIX")


class TestFormatProperties:
    """Tests for format_properties."""

    def test_properties_format(self):
        assert format_properties({"a": "1", "b.c": "x=y"}, "properties") == "a=1\nb.c=x=y"

    def test_json_format(self):
        assert json.loads(format_properties({"a": "1"}, "json")) == {"a": "1"}


class TestReadCommand:
    """Tests for the read command."""

    def test_reads_from_demo_transport(self, cli_runner, home, credentials_file):
        """End to end against the scripted KeePassXC, including one locked probe."""
        result = invoke(cli_runner, "read", "--transport", DEMO_TRANSPORT)

        assert result.exit_code == 0, result.output
        assert "db.user=demo" in result.output
        assert "db.password=not-a-real-secret" in result.output
        assert "please unlock your database" in result.output
        assert credentials_file.exists()

    def test_transport_from_environment(self, cli_runner, home, monkeypatch):
        monkeypatch.setenv("KEEPASSXC_PROPERTY_AGENT_TRANSPORT", DEMO_TRANSPORT)

        result = invoke(cli_runner, "read", "--format", "json")

        assert result.exit_code == 0, result.output
        assert '"db.user": "demo"' in result.output

    def test_transport_required(self, cli_runner, home):
        result = invoke(cli_runner, "read")

        assert result.exit_code == 2
        assert "--transport" in result.output

    def test_bad_transport_path(self, cli_runner, home):
        result = invoke(cli_runner, "read", "--transport", "not-a-path")

        assert result.exit_code == 1
        assert "Error: Transport must be given as module:factory" in result.output

    def test_partial_result_printed_on_failure(self, cli_runner, home, mock_engine):
        mock_engine.acquire.return_value = AcquisitionResult(
            properties={"a": "1"},
            completed_uris=["python://a"],
            skipped_uris=["python://c"],
            failure=LookupFailure(
                "python://b", AcquisitionState.TIMED_OUT, WaitTimeoutError("Failed to connect to KeePassXC")
            ),
        )

        result = invoke(cli_runner, "read", "--transport", DEMO_TRANSPORT)

        assert result.exit_code == 1
        assert "a=1" in result.output
        assert "Error: python://b: Failed to connect to KeePassXC" in result.output
        assert "Skipped entry URIs: python://c" in result.output

    def test_interrupted(self, cli_runner, home, mock_engine):
        mock_engine.acquire.side_effect = AcquisitionInterruptedError("Interrupted while waiting")

        result = invoke(cli_runner, "read", "--transport", DEMO_TRANSPORT)

        assert result.exit_code == 130
        assert "Interrupted by user" in result.output

    def test_options_passed_to_engine(self, cli_runner, home):
        with patch("keepassxc_property_agent.cli.properties.AcquisitionEngine") as mock_class:
            mock_class.return_value.acquire.return_value = AcquisitionResult()

            result = invoke(cli_runner, "read", "--transport", DEMO_TRANSPORT, "--options", "entryUri=python://x")

        assert result.exit_code == 0, result.output
        settings, factory = mock_class.call_args.args
        assert settings.entry_uris == ("python://x",)
        assert factory is demo_transport


class TestShowConfigCommand:
    """Tests for the show-config command."""

    def test_defaults(self, cli_runner, home, credentials_file):
        result = invoke(cli_runner, "show-config")

        assert result.exit_code == 0, result.output
        assert "  - python://app" in result.output
        assert f"Credentials file: {credentials_file}" in result.output
        assert "Unlock max wait time: PT2M" in result.output
        assert "Unlock message repeat time: PT5S" in result.output
        assert "Property prefix: 'KPH: property:'" in result.output

    def test_json_log_format(self, cli_runner, home):
        result = cli_runner.invoke(cli, ["--log-level", "DEBUG", "--log-format", "json", "show-config"])

        assert result.exit_code == 0, result.output
        assert "Entry URIs:" in result.output

    def test_options(self, cli_runner, home):
        result = invoke(
            cli_runner,
            "show-config",
            "--options",
            "entryUri=python://a,entryUri=python://b,unlockMaxWaitTime=PT1M30S",
        )

        assert "  - python://a\n  - python://b" in result.output
        assert "Unlock max wait time: PT1M30S" in result.output


class TestCredentialsCommands:
    """Tests for the credentials command group."""

    def test_status_not_paired(self, cli_runner, home, credentials_file):
        result = invoke(cli_runner, "credentials", "status")

        assert result.exit_code == 0
        assert f"Credentials file: {credentials_file}" in result.output
        assert "Not paired" in result.output

    def test_status_paired(self, cli_runner, credentials_file):
        FileCredentialsStore(credentials_file).save(encode_identity("agent-1", "key"))

        result = invoke(cli_runner, "credentials", "status")

        assert result.exit_code == 0
        assert "Paired" in result.output

    def test_status_corrupted(self, cli_runner, credentials_file):
        credentials_file.parent.mkdir(parents=True)
        credentials_file.write_text("{not json")

        result = invoke(cli_runner, "credentials", "status")

        assert result.exit_code == 0
        assert "Unreadable" in result.output

    def test_status_unreadable_file(self, cli_runner, credentials_file):
        credentials_file.mkdir(parents=True)

        result = invoke(cli_runner, "credentials", "status")

        assert result.exit_code == 1
        assert "Error:" in result.output

    def test_forget_deletes_file(self, cli_runner, credentials_file):
        FileCredentialsStore(credentials_file).save(encode_identity("agent-1", "key"))

        result = invoke(cli_runner, "credentials", "forget", "--yes")

        assert result.exit_code == 0
        assert "Deleted" in result.output
        assert not credentials_file.exists()

    def test_forget_without_file(self, cli_runner, home):
        result = invoke(cli_runner, "credentials", "forget", "--yes")

        assert result.exit_code == 0
        assert "No pairing credentials" in result.output

    def test_forget_asks_for_confirmation(self, cli_runner, credentials_file):
        FileCredentialsStore(credentials_file).save(encode_identity("agent-1", "key"))

        result = cli_runner.invoke(cli, ["credentials", "forget"], input="n\n")

        assert result.exit_code == 1
        assert credentials_file.exists()

    def test_custom_credentials_file(self, cli_runner, home, tmp_path):
        target = tmp_path / "custom" / "creds"

        result = invoke(cli_runner, "credentials", "status", "--options", f"credentialsStoreFile={target}")

        assert f"Credentials file: {target}" in result.output
