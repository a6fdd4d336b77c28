"""CLI tests for the sheets sub-commands."""

from __future__ import annotations

import json

import pytest
from typer.testing import CliRunner

from hypoflow import cli
from hypoflow.services.sheets import cli as sheets_cli
from hypoflow.services.sheets.store import RowStore


@pytest.fixture
def cli_runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def wired_transport(hypothesis_transport, monkeypatch: pytest.MonkeyPatch):
    def fake_resolve(profile):
        return RowStore(hypothesis_transport), hypothesis_transport

    monkeypatch.setattr(sheets_cli, "_resolve_store", fake_resolve)
    return hypothesis_transport


def test_load_prints_records_as_json(cli_runner: CliRunner, wired_transport) -> None:
    result = cli_runner.invoke(cli.app, ["sheets", "load"])

    assert result.exit_code == 0, result.output
    payload = json.loads(result.stdout)
    assert [item["ID"] for item in payload] == ["H1", "H2"]
    assert payload[0]["Quote 1"] is None
    assert wired_transport.closed


def test_get_unknown_id_exits_with_error(cli_runner: CliRunner, wired_transport) -> None:
    result = cli_runner.invoke(cli.app, ["sheets", "get", "--id", "H9"])

    assert result.exit_code == 1
    assert "H9" in result.output


def test_tables_marks_record_table(cli_runner: CliRunner, wired_transport) -> None:
    result = cli_runner.invoke(cli.app, ["sheets", "tables"])

    assert result.exit_code == 0, result.output
    assert result.stdout.splitlines() == ["  Notes", "* Hypotheses"]


def test_update_with_set_and_data(cli_runner: CliRunner, wired_transport) -> None:
    result = cli_runner.invoke(
        cli.app,
        ["sheets", "update", "--id", "H1", "--set", "Status=VALIDATED", "--data", '{"Confidence %": 90}'],
    )

    assert result.exit_code == 0, result.output
    assert "row 2" in result.stdout
    row = wired_transport.written_row()
    assert row[5] == "VALIDATED"
    assert row[7] == 0.9


def test_update_requires_assignments(cli_runner: CliRunner, wired_transport) -> None:
    result = cli_runner.invoke(cli.app, ["sheets", "update", "--id", "H1"])

    assert result.exit_code != 0
    assert wired_transport.writes == []


def test_assess_reports_status(cli_runner: CliRunner, wired_transport) -> None:
    result = cli_runner.invoke(
        cli.app,
        ["sheets", "assess", "--id", "H1", "--score", "85", "--reasoning", "strong signal", "--quote", "we lose a day"],
    )

    assert result.exit_code == 0, result.output
    assert "85% confidence, status: VALIDATED" in result.stdout
    assert wired_transport.written_row()[6:] == ["strong signal", 0.85, "we lose a day", ""]


def test_headers_prints_header_row(cli_runner: CliRunner, wired_transport) -> None:
    result = cli_runner.invoke(cli.app, ["sheets", "headers"])

    assert result.exit_code == 0, result.output
    assert json.loads(result.stdout)[:3] == ["ID", "Category", "Problem Title"]


def test_update_set_percent_is_stored_as_fraction(cli_runner: CliRunner, wired_transport) -> None:
    result = cli_runner.invoke(cli.app, ["sheets", "update", "--id", "H1", "--set", "Confidence %=80"])

    assert result.exit_code == 0, result.output
    assert wired_transport.written_row()[7] == 0.8


def test_update_set_percent_as_text_is_left_to_the_sheet(cli_runner: CliRunner, wired_transport) -> None:
    result = cli_runner.invoke(
        cli.app,
        ["sheets", "update", "--id", "H1", "--set", "Confidence %=80", "--set", "Status=OPEN", "--percent-as-text"],
    )

    assert result.exit_code == 0, result.output
    assert wired_transport.written_row()[5:8] == ["OPEN", "", "80"]


def test_update_set_percent_with_sign_passes_through(cli_runner: CliRunner, wired_transport) -> None:
    result = cli_runner.invoke(cli.app, ["sheets", "update", "--id", "H1", "--set", "Confidence %=75%"])

    assert result.exit_code == 0, result.output
    assert wired_transport.written_row()[7] == "75%"


def test_update_set_non_numeric_percent_is_rejected(cli_runner: CliRunner, wired_transport) -> None:
    result = cli_runner.invoke(cli.app, ["sheets", "update", "--id", "H1", "--set", "Confidence %=high"])

    assert result.exit_code == 2
    assert wired_transport.writes == []
    assert wired_transport.closed
