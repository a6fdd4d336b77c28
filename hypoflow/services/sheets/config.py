"""Configuration loader for the Google Sheets row store."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Mapping

import yaml

from hypoflow.core.errors import ConfigError
from hypoflow.core.logger import get_logger
from hypoflow.core.profiles import resolve_config_path

LOGGER = get_logger()

DEFAULT_BASE_URL = "https://sheets.googleapis.com/v4"
DEFAULT_TIMEOUT = 10.0
DEFAULT_REQUIRED_HEADERS = ("Problem Title", "Hypothesis", "Questions to Ask in Meeting")
DEFAULT_ID_COLUMN = "ID"
DEFAULT_PERCENT_FIELDS = ("Confidence %",)

SPREADSHEET_ID_ENV = "GOOGLE_SHEETS_SPREADSHEET_ID"
CREDENTIALS_ENV = "GOOGLE_APPLICATION_CREDENTIALS"
ACCESS_TOKEN_ENV = "GOOGLE_SHEETS_ACCESS_TOKEN"
TIMEOUT_ENV = "SHEETS_TIMEOUT_SEC"
RETRY_ATTEMPTS_ENV = "SHEETS_RETRY_ATTEMPTS"
RETRY_BACKOFF_MS_ENV = "SHEETS_RETRY_BACKOFF_MS"
RETRY_MAX_BACKOFF_MS_ENV = "SHEETS_RETRY_MAX_BACKOFF_MS"


@dataclass(slots=True)
class RetryConfig:
    """Retry parameters for Sheets HTTP requests."""

    max_attempts: int = 3
    backoff_ms: int = 200
    max_backoff_ms: int = 2000

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None) -> "RetryConfig":
        if not data:
            return cls()
        return cls(
            max_attempts=int(data.get("max_attempts", 3)),
            backoff_ms=int(data.get("backoff_ms", 200)),
            max_backoff_ms=int(data.get("max_backoff_ms", 2000)),
        )


@dataclass(slots=True)
class SheetsConfig:
    """Resolved configuration for spreadsheet operations."""

    spreadsheet_id: str
    credentials_info: Mapping[str, Any] | None = None
    access_token: str | None = None
    timeout_sec: float = DEFAULT_TIMEOUT
    retries: RetryConfig = field(default_factory=RetryConfig)
    verify_tls: bool = True
    trust_env: bool = True
    base_url: str = DEFAULT_BASE_URL
    required_headers: tuple[str, ...] = DEFAULT_REQUIRED_HEADERS
    id_column: str = DEFAULT_ID_COLUMN
    percent_fields: tuple[str, ...] = DEFAULT_PERCENT_FIELDS
    proxies: Mapping[str, str] | None = None

    @classmethod
    def from_profile(cls, profile_name: str, *, config_path: str | Path | None = None) -> "SheetsConfig":
        """Create a configuration instance from profiles.yaml.

        Args:
            profile_name: Logical profile name under the ``sheets`` section.
            config_path: Optional override for the config file path.

        Raises:
            ConfigError: If the configuration cannot be loaded or is invalid.
        """

        raw = _load_profiles_file(path=config_path).get(profile_name)
        if raw is None:
            raise ConfigError(f"sheets profile '{profile_name}' not found in profiles.yaml")
        return cls.from_mapping(raw)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "SheetsConfig":
        """Create a configuration instance from a mapping."""

        spreadsheet_id = _expand_env(data.get("spreadsheet_id"))
        if not spreadsheet_id or not str(spreadsheet_id).strip():
            raise ConfigError("Missing required sheets config value: spreadsheet_id")

        credentials_raw = data.get("credentials")
        credentials_info = None
        if isinstance(credentials_raw, Mapping):
            credentials_info = dict(credentials_raw)
        elif credentials_raw:
            credentials_info = parse_credentials(str(_expand_env(credentials_raw)))

        proxies_raw = data.get("proxies")
        proxies: Mapping[str, str] | None = None
        if isinstance(proxies_raw, Mapping):
            proxies = {k: _expand_env(v) for k, v in proxies_raw.items()}

        return cls(
            spreadsheet_id=str(spreadsheet_id).strip(),
            credentials_info=credentials_info,
            access_token=_expand_env(data.get("access_token")),
            timeout_sec=float(data.get("timeout_sec", DEFAULT_TIMEOUT)),
            retries=RetryConfig.from_mapping(_ensure_mapping(data.get("retries"))),
            verify_tls=bool(data.get("verify_tls", True)),
            trust_env=bool(data.get("trust_env", True)),
            base_url=_expand_env(data.get("base_url", DEFAULT_BASE_URL)),
            required_headers=_string_tuple(data.get("required_headers"), DEFAULT_REQUIRED_HEADERS),
            id_column=str(data.get("id_column", DEFAULT_ID_COLUMN)),
            percent_fields=_string_tuple(data.get("percent_fields"), DEFAULT_PERCENT_FIELDS),
            proxies=proxies,
        )


def parse_credentials(raw: str) -> dict[str, Any]:
    """Parse service account credentials given as a JSON string or a path to a JSON file."""

    trimmed = raw.strip()
    if trimmed.startswith("{"):
        try:
            return json.loads(trimmed)
        except json.JSONDecodeError as exc:
            raise ConfigError("Service account credentials are not valid JSON") from exc
    path = Path(trimmed).expanduser()
    if not path.is_file():
        raise ConfigError(f"Service account credentials file not found: {path}")
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Service account credentials file is not valid JSON: {path}") from exc


def _read_env(key: str) -> str | None:
    value = os.getenv(key)
    if value is None:
        return None
    return value.strip()


def _read_env_int(key: str) -> int | None:
    value = _read_env(key)
    if value is None or value == "":
        return None
    try:
        return int(value)
    except ValueError as exc:  # noqa: BLE001 - configuration validation
        raise ConfigError(f"Environment variable {key} must be an integer") from exc


def _read_env_float(key: str) -> float | None:
    value = _read_env(key)
    if value is None or value == "":
        return None
    try:
        return float(value)
    except ValueError as exc:  # noqa: BLE001 - configuration validation
        raise ConfigError(f"Environment variable {key} must be a number") from exc


def load_spreadsheet_id(config: SheetsConfig | None = None) -> str:
    """Return the spreadsheet identifier from env or configuration."""

    value = _read_env(SPREADSHEET_ID_ENV) or (config.spreadsheet_id if config else None)
    if not value:
        raise ConfigError("Spreadsheet id not configured")
    return value


def load_credentials_info(config: SheetsConfig | None = None) -> Mapping[str, Any] | None:
    """Return service account info from env (JSON or path) or configuration."""

    raw = _read_env(CREDENTIALS_ENV)
    if raw:
        return parse_credentials(raw)
    return config.credentials_info if config else None


def load_access_token(config: SheetsConfig | None = None) -> str | None:
    return _read_env(ACCESS_TOKEN_ENV) or (config.access_token if config else None)


def load_timeout(config: SheetsConfig | None = None) -> float:
    """Return the request timeout in seconds."""

    value = _read_env_float(TIMEOUT_ENV)
    if value is not None:
        return value
    if config:
        return float(config.timeout_sec)
    return DEFAULT_TIMEOUT


def load_retry_config(config: SheetsConfig | None = None) -> RetryConfig:
    """Return retry configuration applying environment overrides."""

    attempts = _read_env_int(RETRY_ATTEMPTS_ENV)
    backoff = _read_env_int(RETRY_BACKOFF_MS_ENV)
    max_backoff = _read_env_int(RETRY_MAX_BACKOFF_MS_ENV)
    base = config.retries if config is not None else RetryConfig()
    return RetryConfig(
        max_attempts=attempts or base.max_attempts,
        backoff_ms=backoff or base.backoff_ms,
        max_backoff_ms=max_backoff or base.max_backoff_ms,
    )


def resolve_config(profile: str | None = None) -> SheetsConfig:
    """Resolve configuration from a profile or environment variables with overrides."""

    if profile:
        base = SheetsConfig.from_profile(profile)
    else:
        base = SheetsConfig(spreadsheet_id=load_spreadsheet_id(None))
    resolved = replace(
        base,
        spreadsheet_id=load_spreadsheet_id(base),
        credentials_info=load_credentials_info(base),
        access_token=load_access_token(base),
        timeout_sec=load_timeout(base),
        retries=load_retry_config(base),
    )
    if resolved.credentials_info is None and not resolved.access_token:
        LOGGER.warning(
            "sheets.config no_credentials hint=set %s or %s", CREDENTIALS_ENV, ACCESS_TOKEN_ENV
        )
    return resolved


def _string_tuple(value: Any, default: tuple[str, ...]) -> tuple[str, ...]:
    if value is None:
        return default
    if isinstance(value, str):
        return (value,)
    return tuple(str(item) for item in value)


def _ensure_mapping(value: Any) -> Mapping[str, Any] | None:
    if isinstance(value, Mapping):
        return value
    return None


def _expand_env(value: Any) -> Any:
    if isinstance(value, str):
        expanded = os.path.expandvars(value)
        if "${" in value and "}" in value and expanded == value:
            raise ConfigError(f"Environment variable not set for value: {value}")
        return expanded
    return value


def _load_profiles_file(*, path: str | Path | None) -> dict[str, Mapping[str, Any]]:
    cfg_path = resolve_config_path(path or "profiles.yaml")
    if not cfg_path.exists():
        raise ConfigError(f"profiles.yaml not found at {cfg_path}")
    with cfg_path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
    section = data.get("sheets")
    if not isinstance(section, Mapping):
        raise ConfigError("profiles.yaml missing 'sheets' section")
    profiles: dict[str, Mapping[str, Any]] = {}
    for key, value in section.items():
        if not isinstance(value, Mapping):
            LOGGER.warning("Ignoring sheets profile %s with invalid type", key)
            continue
        profiles[str(key)] = value
    if not profiles:
        raise ConfigError("No sheets profiles defined in profiles.yaml")
    return profiles


__all__ = [
    "SheetsConfig",
    "RetryConfig",
    "SPREADSHEET_ID_ENV",
    "CREDENTIALS_ENV",
    "ACCESS_TOKEN_ENV",
    "TIMEOUT_ENV",
    "RETRY_ATTEMPTS_ENV",
    "RETRY_BACKOFF_MS_ENV",
    "RETRY_MAX_BACKOFF_MS_ENV",
    "parse_credentials",
    "load_spreadsheet_id",
    "load_credentials_info",
    "load_access_token",
    "load_timeout",
    "load_retry_config",
    "resolve_config",
]
