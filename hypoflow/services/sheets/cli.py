"""Typer CLI entry points for the spreadsheet row store."""

from __future__ import annotations

import json
from typing import Any, List, NoReturn, Optional

import typer

from hypoflow.core.errors import HypoflowError
from hypoflow.core.logger import get_logger

from .config import resolve_config
from .hypotheses import HypothesisAssessment, apply_assessment
from .models import NotFoundError
from .records import Record
from .store import RowStore
from .transport import GoogleSheetsTransport

LOGGER = get_logger()

app = typer.Typer(name="sheets", help="Read and update hypothesis records in Google Sheets.")


def _resolve_store(profile: Optional[str]) -> tuple[RowStore, GoogleSheetsTransport]:
    try:
        config = resolve_config(profile)
    except HypoflowError as exc:
        _handle_error(exc)
    transport = GoogleSheetsTransport(config)
    return RowStore.from_config(config, transport=transport), transport


def _handle_error(exc: Exception) -> NoReturn:
    LOGGER.error("sheets operation failed: %s", exc, exc_info=True)
    typer.secho(f"Error: {exc}", fg=typer.colors.RED, err=True)
    raise typer.Exit(code=1)


def _dump(payload: Any) -> None:
    typer.echo(json.dumps(payload, indent=2, ensure_ascii=False, default=str))


def _record_payload(record: Record) -> dict[str, Any]:
    return record.to_dict()


def _parse_data(raw_json: Optional[str]) -> dict[str, Any]:
    if not raw_json:
        return {}
    try:
        parsed = json.loads(raw_json)
    except json.JSONDecodeError as exc:
        raise typer.BadParameter(f"--data is not valid JSON: {exc.msg}") from exc
    if not isinstance(parsed, dict):
        raise typer.BadParameter("--data must be a JSON object")
    return parsed


def _parse_assignments(assignments: List[str]) -> dict[str, str]:
    updates: dict[str, str] = {}
    for assignment in assignments:
        name, sep, value = assignment.partition("=")
        if not sep or not name.strip():
            raise typer.BadParameter(f"Expected FIELD=VALUE, got {assignment!r}")
        updates[name.strip()] = value
    return updates


def _percent_numbers(assignments: dict[str, str], fields: tuple[str, ...]) -> dict[str, Any]:
    """Turn ``--set`` percent values such as ``80`` into numbers the store converts to fractions.

    Empty values and values written with a ``%`` sign are left as text.
    """

    coerced: dict[str, Any] = dict(assignments)
    for name in fields:
        value = assignments.get(name)
        if value is None or not value.strip() or value.strip().endswith("%"):
            continue
        try:
            coerced[name] = float(value)
        except ValueError as exc:
            raise typer.BadParameter(f"{name} expects a number from 0 to 100, got {value!r}") from exc
    return coerced


@app.command("tables")
def cmd_tables(
    profile: Optional[str] = typer.Option(None, "--profile", help="Sheets profile name"),
) -> None:
    """List tables in the spreadsheet and the one holding the records."""

    store, transport = _resolve_store(profile)
    try:
        tables = transport.list_tables()
        try:
            record_table = store.find_table() if tables else None
        except NotFoundError:
            record_table = None
    except HypoflowError as exc:
        _handle_error(exc)
    else:
        if not tables:
            typer.echo("<empty>")
        for table in tables:
            marker = "*" if table.name == record_table else " "
            typer.echo(f"{marker} {table.name}")
    finally:
        transport.close()


@app.command("headers")
def cmd_headers(
    profile: Optional[str] = typer.Option(None, "--profile", help="Sheets profile name"),
) -> None:
    """Print the header row of the record table."""

    store, transport = _resolve_store(profile)
    try:
        _dump(list(store.get_headers()))
    except HypoflowError as exc:
        _handle_error(exc)
    finally:
        transport.close()


@app.command("load")
def cmd_load(
    profile: Optional[str] = typer.Option(None, "--profile", help="Sheets profile name"),
) -> None:
    """Print every record as JSON."""

    store, transport = _resolve_store(profile)
    try:
        records = store.load_records()
    except HypoflowError as exc:
        _handle_error(exc)
    else:
        _dump([_record_payload(record) for record in records])
    finally:
        transport.close()


@app.command("get")
def cmd_get(
    record_id: str = typer.Option(..., "--id", help="Record identifier (ID column)"),
    profile: Optional[str] = typer.Option(None, "--profile", help="Sheets profile name"),
) -> None:
    """Print a single record as JSON."""

    store, transport = _resolve_store(profile)
    try:
        record = store.get_record(record_id)
    except HypoflowError as exc:
        _handle_error(exc)
    else:
        _dump(_record_payload(record))
    finally:
        transport.close()


@app.command("update")
def cmd_update(
    record_id: str = typer.Option(..., "--id", help="Record identifier (ID column)"),
    assignments: Optional[List[str]] = typer.Option(None, "--set", help="FIELD=VALUE, repeatable"),
    raw_json: Optional[str] = typer.Option(None, "--data", help="JSON object of typed field values"),
    percent_as_number: bool = typer.Option(
        True,
        "--percent-as-number/--percent-as-text",
        help="Read --set values of percent fields as numbers (80 is stored as 0.8)",
    ),
    profile: Optional[str] = typer.Option(None, "--profile", help="Sheets profile name"),
) -> None:
    """Apply a partial update to one record."""

    data = _parse_data(raw_json)
    assigned = _parse_assignments(assignments or [])
    if not data and not assigned:
        raise typer.BadParameter("Provide at least one --set FIELD=VALUE or --data")
    store, transport = _resolve_store(profile)
    try:
        if percent_as_number:
            assigned = _percent_numbers(assigned, store.percent_fields)
        record = store.update_record(record_id, {**data, **assigned})
    except HypoflowError as exc:
        _handle_error(exc)
    else:
        typer.echo(f"Updated record {record_id} (row {record.row_number})")
    finally:
        transport.close()


@app.command("assess")
def cmd_assess(
    record_id: str = typer.Option(..., "--id", help="Hypothesis identifier"),
    score: float = typer.Option(..., "--score", min=0, max=100, help="Confidence score 0-100"),
    reasoning: str = typer.Option(..., "--reasoning", help="Why the score was given"),
    quotes: Optional[List[str]] = typer.Option(None, "--quote", help="Supporting quote, repeatable"),
    profile: Optional[str] = typer.Option(None, "--profile", help="Sheets profile name"),
) -> None:
    """Record a confidence assessment and the recommended status."""

    assessment = HypothesisAssessment(confidence_score=score, reasoning=reasoning, quotes=tuple(quotes or ()))
    store, transport = _resolve_store(profile)
    try:
        result = apply_assessment(store, record_id, assessment)
    except HypoflowError as exc:
        _handle_error(exc)
    else:
        status = result.status.value if result.status else "unchanged"
        typer.echo(f"Updated hypothesis {record_id}: {score:g}% confidence, status: {status}")
    finally:
        transport.close()


__all__ = ["app"]
