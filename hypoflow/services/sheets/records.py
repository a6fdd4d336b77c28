"""Header-keyed record view over grid rows."""

from __future__ import annotations

from collections.abc import Iterator, Mapping, Sequence
from typing import Any

from .models import Grid, SchemaError


def clean_headers(cells: Sequence[Any]) -> tuple[str, ...]:
    """Trim header cells; string cells are stripped, others stringified."""

    return tuple(cell.strip() if isinstance(cell, str) else str(cell) for cell in cells)


def validate_headers(headers: Sequence[str]) -> None:
    """Reject blank or repeated header names."""

    seen: set[str] = set()
    for position, name in enumerate(headers):
        if not name:
            raise SchemaError(f"Header cell {position + 1} is blank", payload={"position": position})
        if name in seen:
            raise SchemaError(f"Duplicate header name: {name}", payload={"header": name})
        seen.add(name)


class Record(Mapping[str, Any]):
    """Immutable mapping from header name to cell value for one data row.

    Every header is present; cells missing from the grid hold ``None``.
    Indexing with a name that is not a header raises ``KeyError``.
    """

    __slots__ = ("_headers", "_values", "_row_number")

    def __init__(self, headers: Sequence[str], cells: Sequence[Any], *, row_number: int | None = None) -> None:
        self._headers = tuple(headers)
        padded = list(cells[: len(self._headers)])
        padded.extend([None] * (len(self._headers) - len(padded)))
        self._values = dict(zip(self._headers, padded))
        self._row_number = row_number

    @classmethod
    def from_mapping(
        cls, headers: Sequence[str], values: Mapping[str, Any], *, row_number: int | None = None
    ) -> "Record":
        return cls(headers, [values.get(header) for header in headers], row_number=row_number)

    @property
    def headers(self) -> tuple[str, ...]:
        return self._headers

    @property
    def row_number(self) -> int | None:
        """Absolute 1-based sheet row, when known."""

        return self._row_number

    def identifier(self, id_column: str = "ID") -> Any:
        return self[id_column]

    def to_row(self) -> list[Any]:
        """Serialize in header order, writing absent values as empty strings."""

        return ["" if self._values[header] is None else self._values[header] for header in self._headers]

    def to_dict(self) -> dict[str, Any]:
        return dict(self._values)

    def __getitem__(self, key: str) -> Any:
        return self._values[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._headers)

    def __len__(self) -> int:
        return len(self._headers)

    def __repr__(self) -> str:
        return f"Record(row={self._row_number}, {self._values!r})"


def decode_grid(grid: Grid) -> tuple[tuple[str, ...], list[Record]]:
    """Decode a grid whose first row is the header row.

    Returns ``((), [])`` for an empty grid. Data rows are zipped positionally
    against the headers: surplus cells are dropped, missing cells become None.
    """

    if not grid:
        return (), []
    headers = clean_headers(grid[0])
    validate_headers(headers)
    records = [
        Record(headers, row, row_number=offset + 2)
        for offset, row in enumerate(grid[1:])
    ]
    return headers, records


__all__ = ["Record", "clean_headers", "validate_headers", "decode_grid"]
