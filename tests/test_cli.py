"""
Tests for the Typer CLI running against the mock store.
"""

import pytest
from typer.testing import CliRunner

from cleanerbooking import __version__
from cleanerbooking.cli.app import app

runner = CliRunner()


@pytest.fixture
def no_config(tmp_path):
    """Path to a config file that does not exist, so mock mode uses defaults."""
    return str(tmp_path / "config.yaml")


def _invoke(*args, config=None):
    argv = list(args) + ["--mock"]
    if config:
        argv += ["--config", config]
    return runner.invoke(app, argv)


class TestCheckCommand:
    def test_conflict_is_reported(self, no_config):
        result = _invoke("check", "anna@example.com", "2026-01-05", "12:15", "--hours", "1", config=no_config)

        assert result.exit_code == 0
        assert "Conflict" in result.output
        assert "bk-1001" in result.output

    def test_free_slot(self, no_config):
        result = _invoke("check", "anna@example.com", "2026-01-05", "12:35", "--hours", "1", config=no_config)

        assert result.exit_code == 0
        assert "No conflict" in result.output

    def test_exclude_own_booking(self, no_config):
        result = _invoke(
            "check", "anna@example.com", "2026-01-05", "10:00", "--exclude", "bk-1001", config=no_config
        )

        assert "No conflict" in result.output

    def test_invalid_date(self, no_config):
        result = _invoke("check", "anna@example.com", "05.01.2026", "10:00", config=no_config)

        assert result.exit_code == 1
        assert "Error" in result.output

    def test_missing_config_without_mock(self, no_config):
        result = runner.invoke(app, ["check", "anna@example.com", "2026-01-05", "10:00", "--config", no_config])

        assert result.exit_code == 1
        assert "Config file not found" in result.output


class TestScheduleCommands:
    def test_fits_inside_hours(self, no_config):
        result = _invoke("fits", "anna@example.com", "2026-01-05", "09:00", config=no_config)

        assert "Within working hours" in result.output

    def test_fits_outside_hours(self, no_config):
        result = _invoke("fits", "anna@example.com", "2026-01-05", "16:00", config=no_config)

        assert "Outside working hours" in result.output

    def test_enforce_closed_day(self, no_config):
        result = _invoke("enforce", "anna@example.com", "2026-01-07", "09:00", config=no_config)

        assert result.exit_code == 0
        assert "Not available" in result.output
        assert "Wednesdays" in result.output

    def test_slots(self, no_config):
        result = _invoke("slots", "anna@example.com", "2026-01-05", "--hours", "2", config=no_config)

        assert result.exit_code == 0
        assert "12:30" in result.output
        assert "15:00" in result.output
        assert "08:00" not in result.output

    def test_slots_on_day_off(self, no_config):
        result = _invoke("slots", "anna@example.com", "2026-01-11", config=no_config)

        assert "No open start times" in result.output


def test_version():
    result = runner.invoke(app, ["version"])

    assert result.exit_code == 0
    assert __version__ in result.output
