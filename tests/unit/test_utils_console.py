"""Tests for keepassxc_property_agent/utils/console.py."""

from datetime import timedelta

import pytest

from keepassxc_property_agent.utils.console import (
    MESSAGE_PREFIX,
    format_duration,
    notify_user,
    truncate_to_seconds,
)


class TestFormatDuration:
    """Tests for ISO-8601 duration formatting."""

    @pytest.mark.parametrize(
        ("duration", "expected"),
        [
            (timedelta(0), "PT0S"),
            (timedelta(seconds=5), "PT5S"),
            (timedelta(minutes=2), "PT2M"),
            (timedelta(seconds=115), "PT1M55S"),
            (timedelta(hours=1, seconds=1), "PT1H1S"),
            (timedelta(days=1), "PT24H"),
            (timedelta(milliseconds=500), "PT0.5S"),
            (timedelta(seconds=-3), "PT-3S"),
            (timedelta(seconds=-61), "PT-1M-1S"),
        ],
    )
    def test_format(self, duration, expected):
        assert format_duration(duration) == expected


class TestTruncateToSeconds:
    """Tests for truncate_to_seconds."""

    @pytest.mark.parametrize(
        ("duration", "expected"),
        [
            (timedelta(seconds=119.3), timedelta(seconds=119)),
            (timedelta(seconds=0.9), timedelta(0)),
            (timedelta(seconds=-0.4), timedelta(0)),
            (timedelta(seconds=-1.5), timedelta(seconds=-1)),
        ],
    )
    def test_rounds_toward_zero(self, duration, expected):
        assert truncate_to_seconds(duration) == expected


class TestNotifyUser:
    """Tests for notify_user."""

    def test_writes_prefixed_line_to_stderr(self, capsys):
        notify_user("please unlock your database")

        captured = capsys.readouterr()
        assert captured.err == f"{MESSAGE_PREFIX}: please unlock your database\n"
