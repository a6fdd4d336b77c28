"""Google Sheets backed hypothesis row store."""

from .cli import app as sheets_app
from .store import RowStore
from .transport import GoogleSheetsTransport, GridTransport

__all__ = [
    "RowStore",
    "GoogleSheetsTransport",
    "GridTransport",
    "sheets_app",
]
