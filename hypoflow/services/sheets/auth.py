"""Bearer token provider for the Google Sheets API."""

from __future__ import annotations

import threading
from typing import Any, Optional

import requests
from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import Request as GoogleAuthRequest
from google.oauth2 import service_account

from hypoflow.core.logger import get_logger

from .config import SheetsConfig, load_access_token, load_credentials_info
from .models import SheetsAuthError

LOGGER = get_logger()

SCOPES = ("https://www.googleapis.com/auth/spreadsheets",)


class AuthClient:
    """Fetch and cache access tokens with thread safety.

    A static token (``GOOGLE_SHEETS_ACCESS_TOKEN``) takes precedence over
    service account credentials.
    """

    def __init__(
        self,
        config: SheetsConfig,
        *,
        session: Optional[requests.Session] = None,
        credentials: Any | None = None,
    ) -> None:
        self._config = config
        self._session = session or requests.Session()
        self._lock = threading.RLock()
        self._static_token = load_access_token(config)
        self._credentials = credentials

    @property
    def session(self) -> requests.Session:
        """Expose the session used for token retrieval."""

        return self._session

    def get_token(self, *, force_refresh: bool = False) -> str:
        """Return a cached access token, refreshing when necessary."""

        if self._static_token:
            return self._static_token
        with self._lock:
            credentials = self._ensure_credentials()
            if force_refresh or not credentials.valid:
                self._refresh_locked(credentials)
            return str(credentials.token)

    def invalidate(self) -> None:
        """Drop the cached service account token forcing a refresh on next access."""

        with self._lock:
            if self._credentials is not None:
                self._credentials.token = None

    # Internal helpers -------------------------------------------------

    def _ensure_credentials(self) -> Any:
        if self._credentials is not None:
            return self._credentials
        info = load_credentials_info(self._config)
        if not info:
            raise SheetsAuthError("No Google credentials configured")
        try:
            self._credentials = service_account.Credentials.from_service_account_info(
                dict(info), scopes=list(SCOPES)
            )
        except (ValueError, KeyError) as exc:
            raise SheetsAuthError("Invalid service account credentials") from exc
        return self._credentials

    def _refresh_locked(self, credentials: Any) -> None:
        try:
            credentials.refresh(GoogleAuthRequest(session=self._session))
        except GoogleAuthError as exc:
            LOGGER.warning("sheets.auth token_refresh_failed error=%s", type(exc).__name__, exc_info=exc)
            raise SheetsAuthError("Failed to obtain Google access token") from exc
        if not credentials.token:
            raise SheetsAuthError("Google token response missing access_token")
        LOGGER.info("sheets.auth token_refreshed expiry=%s", getattr(credentials, "expiry", None))


__all__ = ["AuthClient", "SCOPES"]
