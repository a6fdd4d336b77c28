"""HTTP utilities for the Google Sheets API."""

from __future__ import annotations

import logging
import random
import time
from dataclasses import dataclass
from typing import Iterable, Mapping, MutableMapping

import requests
from requests import Response
from requests.exceptions import ConnectionError, RequestException, Timeout

from hypoflow.core.logger import get_logger

from .auth import AuthClient
from .config import SheetsConfig, load_retry_config, load_timeout
from .models import RequestError, RetryableError, SheetsAuthError, TransportError

LOGGER = get_logger()

USER_AGENT = "Hypoflow-Sheets/1.0"
RETRYABLE_STATUS = {429, 500, 502, 503, 504}


@dataclass(slots=True)
class RequestDiagnostics:
    """Captured diagnostics for troubleshooting."""

    method: str
    url: str
    status: int | None


class HttpClient:
    """Request helper wrapping retries, auth, and diagnostics."""

    def __init__(
        self,
        config: SheetsConfig,
        *,
        session: requests.Session | None = None,
        auth_client: AuthClient | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._config = config
        self._session = session or requests.Session()
        self._session.verify = config.verify_tls
        self._session.trust_env = config.trust_env
        if config.proxies:
            self._session.proxies.update(config.proxies)
        self._session.headers.setdefault("User-Agent", USER_AGENT)
        self._auth = auth_client or AuthClient(config, session=self._session)
        self._logger = logger or LOGGER
        self._retry_config = load_retry_config(config)
        self._timeout = load_timeout(config)

    @property
    def session(self) -> requests.Session:
        return self._session

    @property
    def auth_client(self) -> AuthClient:
        """Return the authentication helper used by this client."""

        return self._auth

    def request(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, str] | None = None,
        json_body: Mapping[str, object] | None = None,
        expected_status: Iterable[int] = (200,),
        timeout: float | None = None,
        allow_retry: bool = True,
    ) -> Response:
        """Perform an authenticated API request."""

        url = self._compose_url(path)
        attempts = self._retry_config.max_attempts if allow_retry else 1
        base_backoff = max(0.05, self._retry_config.backoff_ms / 1000.0)
        max_backoff = max(base_backoff, self._retry_config.max_backoff_ms / 1000.0)
        timeout_value = timeout or self._timeout
        expected = tuple(expected_status)
        refresh_token_next = False
        last_error: TransportError | None = None

        for attempt in range(1, attempts + 1):
            request_headers: MutableMapping[str, str] = {
                "Authorization": f"Bearer {self._auth.get_token(force_refresh=refresh_token_next)}"
            }
            refresh_token_next = False
            diagnostics = RequestDiagnostics(method=method, url=url, status=None)

            try:
                response = self._session.request(
                    method,
                    url,
                    headers=request_headers,
                    params=dict(params or {}),
                    json=json_body,
                    timeout=timeout_value,
                )
            except Timeout as exc:
                last_error = RetryableError("Request timed out", payload={"url": url})
                self._logger.warning(
                    "sheets.http timeout method=%s url=%s attempt=%d", method, url, attempt, exc_info=exc
                )
            except (ConnectionError, RequestException) as exc:
                last_error = RetryableError("Request failed", payload={"url": url})
                self._logger.warning(
                    "sheets.http connection_error method=%s url=%s attempt=%d error=%s",
                    method,
                    url,
                    attempt,
                    type(exc).__name__,
                    exc_info=exc,
                )
            else:
                status = response.status_code
                diagnostics.status = status
                if status in expected:
                    return response

                payload = self._safe_json(response)
                message = self._error_message(payload) or f"Unexpected status {status}"
                if status == 401:
                    self._auth.invalidate()
                    self._logger.info(
                        "sheets.http unauthorized method=%s url=%s -- refreshing token", method, url
                    )
                    last_error = SheetsAuthError("Unauthorized", status_code=status, payload=payload)
                    refresh_token_next = True
                elif status == 403:
                    self._logger.error(
                        "sheets.http forbidden method=%s url=%s status=%s message=%s",
                        diagnostics.method,
                        diagnostics.url,
                        diagnostics.status,
                        message,
                    )
                    raise SheetsAuthError(message, status_code=status, payload=payload)
                elif allow_retry and status in RETRYABLE_STATUS:
                    self._logger.warning(
                        "sheets.http retryable_status method=%s url=%s status=%d attempt=%d",
                        method,
                        url,
                        status,
                        attempt,
                    )
                    last_error = RetryableError(message, status_code=status, payload=payload)
                else:
                    raise RequestError(message, status_code=status, payload=payload)

            if attempt < attempts:
                self._sleep_with_backoff(base_backoff, max_backoff, attempt)

        if last_error is not None:
            raise last_error
        raise RetryableError("Exhausted retries", payload={"url": url})

    def close(self) -> None:
        self._session.close()

    # Internal helpers -------------------------------------------------

    def _compose_url(self, path: str) -> str:
        base = self._config.base_url.rstrip("/")
        if path.startswith("http://") or path.startswith("https://"):
            return path
        if not path.startswith("/"):
            path = f"/{path}"
        return f"{base}{path}"

    def _sleep_with_backoff(self, base: float, maximum: float, attempt: int) -> None:
        delay = min(maximum, base * (2 ** (attempt - 1)))
        jitter = random.uniform(0, delay / 2)
        time.sleep(delay + jitter)

    def _error_message(self, payload: Mapping[str, object]) -> str | None:
        error = payload.get("error")
        if isinstance(error, Mapping):
            message = error.get("message")
            return str(message) if message else None
        return None

    def _safe_json(self, response: Response) -> dict[str, object]:
        try:
            data = response.json()
        except ValueError:
            text = response.text
            if len(text) > 200:
                text = text[:200] + "..."
            return {"body": text}
        return data if isinstance(data, dict) else {"body": data}


__all__ = ["HttpClient", "RETRYABLE_STATUS"]
