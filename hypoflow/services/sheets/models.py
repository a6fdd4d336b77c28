"""Domain models and exceptions for the spreadsheet row store."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from hypoflow.core.errors import HypoflowError

Grid = list[list[Any]]


class SheetsError(HypoflowError, RuntimeError):
    """Base error raised for spreadsheet store failures."""

    def __init__(self, message: str, *, status_code: int | None = None, payload: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.payload = payload or {}


class NotFoundError(SheetsError):
    """Raised when a table with the required headers or a record id cannot be located."""


class SchemaError(SheetsError):
    """Raised when the header row is empty, lacks ``ID`` or repeats a name."""


class InvalidUpdateError(SheetsError, ValueError):
    """Raised for malformed update requests (e.g. a percent outside 0-100)."""


class TransportError(SheetsError):
    """Raised when reading or writing the remote grid fails."""


class SheetsAuthError(TransportError):
    """Raised when authentication with the Sheets API fails."""


class RetryableError(TransportError):
    """Raised for retryable I/O issues (network/server errors)."""


class RequestError(TransportError):
    """Raised for non-retryable HTTP or protocol errors from the Sheets API."""


class WriteMode(str, Enum):
    """How the remote store treats written values."""

    RAW = "RAW"
    USER_ENTERED = "USER_ENTERED"


@dataclass(frozen=True, slots=True)
class TableInfo:
    """A sheet inside the spreadsheet document."""

    name: str
    index: int = 0


__all__ = [
    "Grid",
    "SheetsError",
    "NotFoundError",
    "SchemaError",
    "InvalidUpdateError",
    "TransportError",
    "SheetsAuthError",
    "RetryableError",
    "RequestError",
    "WriteMode",
    "TableInfo",
]
