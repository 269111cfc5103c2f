"""Pytest configuration and shared fixtures."""

import logging
from datetime import timedelta
from pathlib import Path

import pytest
import structlog

from keepassxc_property_agent.config.settings import AgentSettings
from keepassxc_property_agent.connection.mock import MockTransport
from keepassxc_property_agent.retry import RetryCoordinator


class FakeClock:
    """Monotonic clock that only moves when told to."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture(autouse=True)
def reset_logging():
    """Undo logging configuration done by CLI invocations."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    structlog.reset_defaults()
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def clock() -> FakeClock:
    """Fake monotonic clock with a sleep that advances it."""
    return FakeClock()


@pytest.fixture
def messages() -> list[str]:
    """Collects user-facing messages."""
    return []


@pytest.fixture
def credentials_dir(tmp_path: Path) -> Path:
    """Directory for pairing credentials files."""
    return tmp_path / "agent-home"


@pytest.fixture
def settings() -> AgentSettings:
    """Settings with short waits."""
    return AgentSettings(
        entry_uris=("python://app",),
        unlock_max_wait_time=timedelta(seconds=10),
        unlock_message_repeat_time=timedelta(seconds=5),
        property_prefix="KPH: spring:",
    )


@pytest.fixture
def retry_factory(clock: FakeClock, messages: list[str]):
    """Builds retry coordinators on the fake clock."""

    def factory(settings: AgentSettings) -> RetryCoordinator:
        return RetryCoordinator.from_settings(settings, notify=messages.append, clock=clock, sleep=clock.sleep)

    return factory


def _entry_response(*fields: tuple[str, str], name: str = "entry") -> dict:
    """Build a get-logins response with one entry holding the given string fields."""
    return {
        "count": 1,
        "entries": [
            {
                "name": name,
                "login": "user",
                "password": "pass",
                "group": "Apps",
                "stringFields": [{key: value} for key, value in fields],
            }
        ],
    }


@pytest.fixture
def entry_response():
    """Factory for get-logins responses with one entry."""
    return _entry_response


@pytest.fixture
def mock_transport() -> MockTransport:
    """Transport for an unlocked KeePassXC with one matching entry."""
    return MockTransport(
        responses={"python://app": _entry_response(("KPH: spring: db.password", " secret123 "))},
    )
