"""Row store adapter translating between a spreadsheet grid and header-keyed records.

The grid and its header row are read fresh on every call; nothing is cached.
Updates rewrite the whole row span (column A through the last header) in one
request, so concurrent updates to the same record follow last-writer-wins.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Iterable, Iterator, Mapping, Sequence

from hypoflow.core.logger import get_logger

from .columns import column_range, header_range, row_range, table_range
from .config import DEFAULT_ID_COLUMN, DEFAULT_PERCENT_FIELDS, DEFAULT_REQUIRED_HEADERS, SheetsConfig
from .models import NotFoundError, SchemaError, TransportError, WriteMode
from .records import Record, clean_headers, decode_grid, validate_headers
from .transforms import PercentToFraction, ValueTransform, apply_transforms, percent_rules
from .transport import GoogleSheetsTransport, GridTransport

LOGGER = get_logger()


@contextmanager
def _transport_context(message: str, **context: Any) -> Iterator[None]:
    """Re-raise collaborator failures with operation context, keeping the cause."""

    try:
        yield
    except TransportError as exc:
        payload = dict(context)
        payload["cause"] = str(exc)
        raise type(exc)(message, status_code=exc.status_code, payload=payload) from exc


class RowStore:
    """Record-level access to the table whose header row holds the required names."""

    def __init__(
        self,
        transport: GridTransport,
        *,
        required_headers: Sequence[str] = DEFAULT_REQUIRED_HEADERS,
        id_column: str = DEFAULT_ID_COLUMN,
        transforms: Iterable[ValueTransform] | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._transport = transport
        self._required_headers = tuple(required_headers)
        self._id_column = id_column
        if transforms is None:
            transforms = percent_rules(DEFAULT_PERCENT_FIELDS)
        self._transforms = tuple(transforms)
        self._logger = logger or LOGGER

    @classmethod
    def from_config(cls, config: SheetsConfig, *, transport: GridTransport | None = None) -> "RowStore":
        return cls(
            transport or GoogleSheetsTransport(config),
            required_headers=config.required_headers,
            id_column=config.id_column,
            transforms=percent_rules(config.percent_fields),
        )

    @property
    def transport(self) -> GridTransport:
        return self._transport

    @property
    def id_column(self) -> str:
        return self._id_column

    @property
    def percent_fields(self) -> tuple[str, ...]:
        return tuple(rule.field for rule in self._transforms if isinstance(rule, PercentToFraction))

    def find_table(self) -> str:
        """Return the first table (document order) whose header row contains every required name."""

        with _transport_context("could not list tables"):
            tables = self._transport.list_tables()
        if not tables:
            raise NotFoundError("No tables found in the document")

        required = set(self._required_headers)
        for table in tables:
            with _transport_context(f"could not read header row of table '{table.name}'", table=table.name):
                grid = self._transport.read_range(header_range(table.name))
            if not grid or not grid[0]:
                continue
            if required.issubset(clean_headers(grid[0])):
                self._logger.debug("sheets.store table_resolved table=%s", table.name)
                return table.name
        raise NotFoundError(
            "Could not find a table with the required headers",
            payload={"required": sorted(required), "tables": [table.name for table in tables]},
        )

    def get_headers(self) -> tuple[str, ...]:
        table = self.find_table()
        return self._read_headers(table)

    def load_records(self) -> list[Record]:
        """Decode every data row of the resolved table, keeping sheet order."""

        _, records = self._load_table()
        return records

    def get_record(self, record_id: str) -> Record:
        """Return the first record whose identifier cell equals ``record_id`` exactly."""

        headers, records = self._load_table()
        if self._id_column not in headers:
            raise SchemaError(f'Could not find "{self._id_column}" column in the table')
        for record in records:
            if record[self._id_column] == record_id:
                return record
        raise NotFoundError(f"Record {record_id} not found", payload={"record_id": record_id})

    def update_record(self, record_id: str, updates: Mapping[str, Any]) -> Record:
        """Merge ``updates`` into the record's row and write the full row back.

        Unknown field names are ignored and the identifier column is never
        rewritten. Returns the record as written.
        """

        table = self.find_table()
        headers = self._read_headers(table)
        if self._id_column not in headers:
            raise SchemaError(
                f'Could not find "{self._id_column}" column in the table', payload={"table": table}
            )

        # Only fields the table has are checked; malformed values fail before the write.
        applicable = apply_transforms(self._applicable_updates(headers, updates, record_id), self._transforms)

        row_number = self._locate_row(table, headers.index(self._id_column), record_id)
        current = self.get_record(record_id)

        merged_values = {header: current.get(header) for header in headers}
        merged_values.update(applicable)
        merged = Record.from_mapping(headers, merged_values, row_number=row_number)

        address = row_range(table, row_number, len(headers))
        with _transport_context(
            f"could not update record '{record_id}' in table '{table}'", table=table, record_id=record_id
        ):
            self._transport.write_range(address, [merged.to_row()], WriteMode.USER_ENTERED)
        self._logger.info(
            "sheets.store record_updated table=%s id=%s row=%d fields=%s",
            table,
            record_id,
            row_number,
            ",".join(applicable),
        )
        return merged

    # Internal helpers -------------------------------------------------

    def _load_table(self) -> tuple[tuple[str, ...], list[Record]]:
        table = self.find_table()
        self._logger.info("sheets.store loading table=%s", table)
        with _transport_context(f"could not read table '{table}'", table=table):
            grid = self._transport.read_range(table_range(table))
        if len(grid) < 2:
            self._logger.warning("sheets.store no_records table=%s", table)
            return (clean_headers(grid[0]) if grid else ()), []
        headers, records = decode_grid(grid)
        self._logger.info("sheets.store records_loaded table=%s count=%d", table, len(records))
        return headers, records

    def _read_headers(self, table: str) -> tuple[str, ...]:
        with _transport_context(f"could not read header row of table '{table}'", table=table):
            grid = self._transport.read_range(header_range(table))
        headers = clean_headers(grid[0]) if grid else ()
        if not headers:
            raise SchemaError("Could not read table headers", payload={"table": table})
        validate_headers(headers)
        return headers

    def _locate_row(self, table: str, id_index: int, record_id: str) -> int:
        """Return the absolute 1-based row number holding ``record_id``."""

        with _transport_context(f"could not read id column of table '{table}'", table=table, record_id=record_id):
            cells = self._transport.read_range(column_range(table, id_index))
        # Row 1 is the header; empty cells come back as empty rows.
        for position, row in enumerate(cells[1:]):
            if row and row[0] == record_id:
                return position + 2
        raise NotFoundError(f"Record {record_id} not found in table", payload={"table": table, "record_id": record_id})

    def _applicable_updates(
        self, headers: Sequence[str], updates: Mapping[str, Any], record_id: str
    ) -> dict[str, Any]:
        applicable: dict[str, Any] = {}
        for name, value in updates.items():
            if name == self._id_column:
                if value != record_id:
                    self._logger.warning(
                        "sheets.store id_update_ignored id=%s requested=%s", record_id, value
                    )
                continue
            if name not in headers:
                self._logger.debug("sheets.store unknown_field_ignored id=%s field=%s", record_id, name)
                continue
            applicable[name] = value
        return applicable


__all__ = ["RowStore"]
