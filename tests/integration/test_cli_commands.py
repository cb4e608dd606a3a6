"""
Tests for CLI commands.

These tests verify the command-line interface functionality including:
- ingest, simulate and inject-test writing to the event store
- summary, daily and events output
- export-csv and clear
- db and config command groups
"""

import json

import pytest

from click.testing import CliRunner

from smartinhale.cli import cli
from smartinhale.database.session import cleanup_database
from tests.helpers.synthetic_data import make_binary_payload


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    return CliRunner()


@pytest.fixture(autouse=True)
def reset_database_state():
    """Reset global database state before and after each test."""
    cleanup_database()
    yield
    cleanup_database()


@pytest.fixture
def db_args(temp_db):
    return ["--db", str(temp_db)]


def invoke(runner, *args, **kwargs):
    result = runner.invoke(cli, list(args), **kwargs)
    assert result.exit_code == 0, result.output
    return result


class TestEventCommands:
    """Commands that add events."""

    def test_simulate(self, cli_runner, db_args):
        result = invoke(cli_runner, "simulate", "-n", "3", "--seed", "42", *db_args)

        assert "✓ Simulated 3 events" in result.output

        listing = invoke(cli_runner, "events", *db_args)
        rows = [
            line
            for line in listing.output.splitlines()
            if line.endswith(("Correct", "Improper"))
        ]
        assert len(rows) == 3

    def test_inject_test_event(self, cli_runner, db_args):
        result = invoke(cli_runner, "inject-test", *db_args)

        assert "✓ Injected test event at" in result.output
        assert "(Correct)" in result.output

    def test_ingest_capture(self, cli_runner, db_args, tmp_path):
        capture = tmp_path / "capture.txt"
        capture.write_text(
            '{"force": 0.9, "inhale_ms": 1500, "shakeOk": true}\n'
            f"{make_binary_payload(1_700_000_000_000, 0.75, 1.5).hex()}\n"
            "abcd\n"
        )

        result = invoke(cli_runner, "ingest", str(capture), *db_args)

        assert "✓ Ingested 2 event(s)" in result.output
        assert "⚠ Dropped 1 unparseable payload(s)" in result.output
        assert "Status: disconnected" in result.output

    def test_ingest_missing_file(self, cli_runner, db_args, tmp_path):
        result = cli_runner.invoke(
            cli, ["ingest", str(tmp_path / "absent.txt"), *db_args]
        )

        assert result.exit_code != 0


class TestSummaryCommands:
    """Metrics output."""

    def test_summary_after_test_event(self, cli_runner, db_args):
        invoke(cli_runner, "inject-test", *db_args)

        result = invoke(cli_runner, "summary", *db_args)

        assert "Adherence: 50%" in result.output
        assert "Today's doses: 1 of 2" in result.output
        assert "Total stored events: 1" in result.output
        assert "Not shaken: 0" in result.output

    def test_summary_json(self, cli_runner, db_args):
        invoke(cli_runner, "inject-test", *db_args)
        invoke(cli_runner, "inject-test", *db_args)

        result = invoke(cli_runner, "summary", "--json", *db_args)
        data = json.loads(result.stdout)

        assert data["adherence_percent"] == 100
        assert data["todays_count"] == 2
        assert data["last_event"]["shakeOk"] is True
        assert len(data["daily"]) == 1

    def test_summary_uses_configured_target(self, cli_runner, db_args):
        invoke(cli_runner, "config", "set", "metrics.expected_doses_per_day", "4")
        invoke(cli_runner, "inject-test", *db_args)

        result = invoke(cli_runner, "summary", *db_args)

        assert "Adherence: 25%" in result.output
        assert "Today's doses: 1 of 4" in result.output

    def test_daily_empty(self, cli_runner, db_args):
        result = invoke(cli_runner, "daily", *db_args)
        assert "No events stored" in result.output

    def test_daily_table(self, cli_runner, db_args):
        invoke(cli_runner, "inject-test", *db_args)

        result = invoke(cli_runner, "daily", *db_args)

        assert "Correct" in result.output
        assert "Improper" in result.output

    def test_events_empty(self, cli_runner, db_args):
        result = invoke(cli_runner, "events", "--today", *db_args)
        assert "No events found" in result.output

    def test_events_limit(self, cli_runner, db_args):
        invoke(cli_runner, "simulate", "-n", "5", "--seed", "1", *db_args)

        result = invoke(cli_runner, "events", "--limit", "2", *db_args)

        assert "Showing 2 of 5 events" in result.output


class TestExportAndClear:
    def test_export_csv(self, cli_runner, db_args, tmp_path):
        invoke(cli_runner, "simulate", "-n", "4", "--seed", "3", *db_args)
        output = tmp_path / "out.csv"

        result = invoke(cli_runner, "export-csv", "-o", str(output), *db_args)

        assert "✓ Exported 4 event(s)" in result.output
        lines = output.read_text().splitlines()
        assert lines[0] == "ts,strength,duration,shakeOk,orientationOk"
        assert len(lines) == 5

    def test_clear_cancelled(self, cli_runner, db_args):
        invoke(cli_runner, "inject-test", *db_args)

        result = cli_runner.invoke(cli, ["clear", *db_args], input="n\n")

        assert result.exit_code == 1
        assert "Aborted" in result.output
        listing = invoke(cli_runner, "events", *db_args)
        assert "No events found" not in listing.output

    def test_clear_confirmed(self, cli_runner, db_args):
        invoke(cli_runner, "simulate", "-n", "2", *db_args)

        result = invoke(cli_runner, "clear", *db_args, input="y\n")

        assert "✓ Cleared 2 event(s)" in result.output
        listing = invoke(cli_runner, "events", *db_args)
        assert "No events found" in listing.output

    def test_clear_empty_store_needs_no_confirmation(self, cli_runner, db_args):
        result = invoke(cli_runner, "clear", *db_args)
        assert "✓ Cleared 0 event(s)" in result.output


class TestDbCommands:
    def test_db_init(self, cli_runner, temp_db):
        result = invoke(cli_runner, "db", "init", "--db", str(temp_db))

        assert "✓ Database initialized" in result.output
        assert temp_db.exists()

    def test_db_stats(self, cli_runner, db_args):
        invoke(cli_runner, "simulate", "-n", "3", *db_args)

        result = invoke(cli_runner, "db", "stats", *db_args)

        assert "Database Statistics" in result.output
        assert "Events: 3 (capacity 1000)" in result.output
        assert "Date range:" in result.output

    def test_patients_default(self, cli_runner, db_args):
        result = invoke(cli_runner, "patients", *db_args)
        assert "SivaReddy" in result.output
        assert "device-001" in result.output


class TestConfigCommands:
    def test_show_without_file(self, cli_runner):
        result = invoke(cli_runner, "config", "show")
        assert "No config file" in result.output

    def test_set_show_unset(self, cli_runner):
        result = invoke(cli_runner, "config", "set", "store.capacity", "50")
        assert "✓ store.capacity = 50" in result.output

        shown = invoke(cli_runner, "config", "show")
        assert "[store]" in shown.output
        assert "capacity = 50" in shown.output

        removed = invoke(cli_runner, "config", "unset", "store.capacity")
        assert "✓ Removed store.capacity" in removed.output

        again = invoke(cli_runner, "config", "unset", "store.capacity")
        assert "was not configured" in again.output

    def test_set_invalid_value(self, cli_runner):
        result = cli_runner.invoke(
            cli, ["config", "set", "metrics.expected_doses_per_day", "two"]
        )

        assert result.exit_code != 0
        assert "Invalid value" in result.output

    def test_set_unknown_key(self, cli_runner):
        result = cli_runner.invoke(cli, ["config", "set", "metrics.colour", "red"])
        assert result.exit_code != 0
