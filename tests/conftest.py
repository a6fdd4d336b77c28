from __future__ import annotations

import os
import sys
import tempfile
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# Keep the rotating log file out of the source tree.
os.environ.setdefault("HYPOFLOW_ROOT", tempfile.mkdtemp(prefix="hypoflow-tests-"))

SHEETS_ENV_VARS = (
    "GOOGLE_SHEETS_SPREADSHEET_ID",
    "GOOGLE_APPLICATION_CREDENTIALS",
    "GOOGLE_SHEETS_ACCESS_TOKEN",
    "SHEETS_TIMEOUT_SEC",
    "SHEETS_RETRY_ATTEMPTS",
    "SHEETS_RETRY_BACKOFF_MS",
    "SHEETS_RETRY_MAX_BACKOFF_MS",
)


@pytest.fixture(autouse=True)
def _isolate_sheets_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Ignore credentials a developer may have exported or put in .env."""

    for key in SHEETS_ENV_VARS:
        monkeypatch.delenv(key, raising=False)
