from __future__ import annotations

import copy
import re
from typing import Any, Callable, Sequence

import pytest

from hypoflow.services.sheets.columns import letter_to_index
from hypoflow.services.sheets.models import Grid, RequestError, TableInfo, WriteMode

_ADDRESS = re.compile(r"^(?P<table>'(?:[^']|'')+'|[^!]+)(?:!(?P<rest>.+))?$")
_SPAN = re.compile(r"^(?P<c1>[A-Z]+)(?P<r1>\d+):(?P<c2>[A-Z]+)(?P<r2>\d*)$")

HYPOTHESIS_HEADERS = [
    "ID",
    "Category",
    "Problem Title",
    "Hypothesis",
    "Questions to Ask in Meeting",
    "Status",
    "Confidence",
    "Confidence %",
    "Quote 1",
    "Quote 2",
]


class FakeGridTransport:
    """In-memory grid behaving like the Sheets values API for the ranges the store uses."""

    def __init__(self, tables: dict[str, Grid], *, fail_on: Sequence[str] = ()) -> None:
        self.tables = {name: [list(row) for row in rows] for name, rows in tables.items()}
        self.fail_on = set(fail_on)
        self.reads: list[str] = []
        self.writes: list[tuple[str, list[list[Any]], WriteMode]] = []
        self.closed = False

    def list_tables(self) -> list[TableInfo]:
        if "list" in self.fail_on:
            raise RequestError("list failed", status_code=500)
        return [TableInfo(name=name, index=position) for position, name in enumerate(self.tables)]

    def read_range(self, address: str) -> Grid:
        self.reads.append(address)
        if "read" in self.fail_on:
            raise RequestError("read failed", status_code=500)
        table, rest = self._split(address)
        if rest is None and "read_table" in self.fail_on:
            raise RequestError("table read failed", status_code=503)
        grid = self.tables[table]
        if rest is None:
            rows = copy.deepcopy(grid)
        elif rest == "1:1":
            rows = [list(grid[0])] if grid else []
        else:
            c1, r1, c2, r2 = self._span(rest, len(grid))
            rows = [list(row[c1 : c2 + 1]) for row in grid[r1 - 1 : r2]]
        return self._trim(rows)

    def write_range(
        self,
        address: str,
        values: Sequence[Sequence[Any]],
        mode: WriteMode = WriteMode.USER_ENTERED,
    ) -> None:
        if "write" in self.fail_on:
            raise RequestError("write failed", status_code=500)
        self.writes.append((address, [list(row) for row in values], mode))
        table, rest = self._split(address)
        grid = self.tables[table]
        c1, r1, c2, _ = self._span(rest or "", len(grid))
        for offset, new_values in enumerate(values):
            row_index = r1 - 1 + offset
            while len(grid) <= row_index:
                grid.append([])
            row = grid[row_index]
            if len(row) <= c2:
                row.extend([""] * (c2 + 1 - len(row)))
            row[c1 : c2 + 1] = list(new_values)

    def close(self) -> None:
        self.closed = True

    def written_row(self, index: int = -1) -> list[Any]:
        return self.writes[index][1][0]

    @staticmethod
    def _split(address: str) -> tuple[str, str | None]:
        match = _ADDRESS.match(address)
        assert match, address
        table = match.group("table")
        if table.startswith("'"):
            table = table[1:-1].replace("''", "'")
        return table, match.group("rest")

    @staticmethod
    def _span(rest: str, height: int) -> tuple[int, int, int, int]:
        match = _SPAN.match(rest)
        assert match, rest
        r2 = int(match.group("r2")) if match.group("r2") else height
        return (
            letter_to_index(match.group("c1")),
            int(match.group("r1")),
            letter_to_index(match.group("c2")),
            r2,
        )

    @staticmethod
    def _trim(rows: list[list[Any]]) -> Grid:
        # Sheets omits trailing empty cells and trailing empty rows.
        trimmed = []
        for row in rows:
            row = list(row)
            while row and row[-1] in ("", None):
                row.pop()
            trimmed.append(row)
        while trimmed and not trimmed[-1]:
            trimmed.pop()
        return trimmed


@pytest.fixture
def make_transport() -> Callable[..., FakeGridTransport]:
    def _factory(tables: dict[str, Grid], **kwargs: Any) -> FakeGridTransport:
        return FakeGridTransport(tables, **kwargs)

    return _factory


@pytest.fixture
def hypothesis_transport() -> FakeGridTransport:
    return FakeGridTransport(
        {
            "Notes": [["Date", "Note"], ["2024-01-01", "kickoff"]],
            "Hypotheses": [
                HYPOTHESIS_HEADERS,
                ["H1", "Ops", "Slow deploys", "Deploys take too long", "How long?", "NEEDS_MORE_DATA", "", "0.4"],
                ["H2", "Sales", "Churn", "Users leave after trial", "Why leave?", "", "", "0.8", "quote a"],
            ],
        }
    )
