"""Grid transport contract and its Google Sheets implementation."""

from __future__ import annotations

import logging
from typing import Any, Protocol, Sequence
from urllib.parse import quote

from requests import Response

from hypoflow.core.logger import get_logger

from .auth import AuthClient
from .config import SheetsConfig, resolve_config
from .http import HttpClient
from .models import Grid, RequestError, TableInfo, WriteMode

LOGGER = get_logger()


class GridTransport(Protocol):
    """Key-range read/write access to a multi-table grid document."""

    def list_tables(self) -> list[TableInfo]:
        """Return the document's tables in document order."""

    def read_range(self, address: str) -> Grid:
        """Return cell values for an A1 range; a bare table name reads the whole table."""

    def write_range(self, address: str, values: Sequence[Sequence[Any]], mode: WriteMode = WriteMode.USER_ENTERED) -> None:
        """Write a rectangular block of values at an A1 range."""


class GoogleSheetsTransport(GridTransport):
    """Sheets REST v4 client bound to a single spreadsheet."""

    def __init__(
        self,
        config: SheetsConfig,
        *,
        http_client: HttpClient | None = None,
        auth: AuthClient | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._config = config
        self._logger = logger or LOGGER
        if http_client is None:
            self._http = HttpClient(config, auth_client=auth, logger=self._logger)
        else:
            self._http = http_client

    @classmethod
    def from_profile(cls, profile_name: str | None = None) -> "GoogleSheetsTransport":
        """Instantiate a transport from ``profiles.yaml`` and environment overrides."""

        return cls(resolve_config(profile_name))

    @property
    def spreadsheet_id(self) -> str:
        return self._config.spreadsheet_id

    def list_tables(self) -> list[TableInfo]:
        response = self._http.request(
            "GET",
            f"/spreadsheets/{self._config.spreadsheet_id}",
            params={"fields": "sheets.properties(title,index)"},
        )
        payload = self._json(response, spreadsheet_id=self._config.spreadsheet_id)
        tables: list[TableInfo] = []
        for position, sheet in enumerate(payload.get("sheets") or []):
            properties = sheet.get("properties") or {}
            title = properties.get("title")
            if not title:
                continue
            tables.append(TableInfo(name=str(title), index=int(properties.get("index", position))))
        tables.sort(key=lambda table: table.index)
        return tables

    def read_range(self, address: str) -> Grid:
        response = self._http.request(
            "GET",
            self._values_path(address),
            params={"majorDimension": "ROWS"},
        )
        payload = self._json(response, range=address)
        values = payload.get("values") or []
        if not isinstance(values, list):
            raise RequestError("Invalid values response", payload={"range": address})
        return [list(row) for row in values]

    def write_range(
        self,
        address: str,
        values: Sequence[Sequence[Any]],
        mode: WriteMode = WriteMode.USER_ENTERED,
    ) -> None:
        body = {
            "range": address,
            "majorDimension": "ROWS",
            "values": [list(row) for row in values],
        }
        response = self._http.request(
            "PUT",
            self._values_path(address),
            params={"valueInputOption": WriteMode(mode).value},
            json_body=body,
        )
        updated = self._json(response, range=address).get("updatedCells") if response.content else None
        self._logger.info("sheets.transport range_written range=%s cells=%s mode=%s", address, updated, WriteMode(mode).value)

    def close(self) -> None:
        """Release the underlying HTTP session."""

        self._http.close()

    def _values_path(self, address: str) -> str:
        return f"/spreadsheets/{self._config.spreadsheet_id}/values/{quote(address, safe='')}"

    @staticmethod
    def _json(response: Response, **context: Any) -> dict[str, Any]:
        try:
            payload = response.json()
        except ValueError as exc:
            raise RequestError("Invalid JSON response", status_code=response.status_code, payload=context) from exc
        if not isinstance(payload, dict):
            raise RequestError("Invalid JSON response", status_code=response.status_code, payload=context)
        return payload


__all__ = ["GridTransport", "GoogleSheetsTransport"]
