"""Column-letter arithmetic and A1 range helpers."""

from __future__ import annotations

import re

_BARE_NAME = re.compile(r"^[A-Za-z0-9_]+$")


def index_to_letter(index: int) -> str:
    """Translate a zero-based column index into its letter name (0 -> A, 26 -> AA)."""

    if index < 0:
        raise ValueError(f"Column index must be non-negative, got {index}")
    dividend = index + 1
    name = ""
    while dividend > 0:
        dividend, remainder = divmod(dividend - 1, 26)
        name = chr(ord("A") + remainder) + name
    return name


def letter_to_index(letters: str) -> int:
    """Translate a column letter name back into its zero-based index."""

    normalized = letters.strip().upper()
    if not normalized or not normalized.isascii() or not normalized.isalpha():
        raise ValueError(f"Invalid column letters: {letters!r}")
    value = 0
    for char in normalized:
        value = value * 26 + (ord(char) - ord("A") + 1)
    return value - 1


def quote_table_name(name: str) -> str:
    """Quote a sheet name for A1 notation when it contains special characters."""

    if _BARE_NAME.match(name):
        return name
    escaped = name.replace("'", "''")
    return f"'{escaped}'"


def table_range(table: str) -> str:
    """Range covering the entire table."""

    return quote_table_name(table)


def header_range(table: str) -> str:
    return f"{quote_table_name(table)}!1:1"


def column_range(table: str, index: int) -> str:
    """Whole column starting at row 1, e.g. ``Sheet!C1:C``."""

    letter = index_to_letter(index)
    return f"{quote_table_name(table)}!{letter}1:{letter}"


def row_range(table: str, row_number: int, width: int) -> str:
    """Row span from column A through the ``width``-th column."""

    if row_number < 1:
        raise ValueError(f"Row numbers start at 1, got {row_number}")
    if width < 1:
        raise ValueError("Row range must cover at least one column")
    end = index_to_letter(width - 1)
    return f"{quote_table_name(table)}!A{row_number}:{end}{row_number}"


__all__ = [
    "index_to_letter",
    "letter_to_index",
    "quote_table_name",
    "table_range",
    "header_range",
    "column_range",
    "row_range",
]
