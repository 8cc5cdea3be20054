"""Environment-driven configuration.

Values are read lazily from the process environment on every call so tests
and the CLI (which loads a local ``.env`` via ``python-dotenv`` first) can
adjust them with ``monkeypatch.setenv``. Recognized variables:

- ``BR_API_URL``: base URL of the REST API (default
  ``http://localhost:5000/api``).
- ``BR_API_TOKEN``: bearer token sent with every request.
- ``BR_STATE_DIR``: directory holding local client state such as the invoice
  status overrides (default ``./.state``).
- ``BR_HTTP_TIMEOUT``: request timeout in seconds (default 30).
- ``BR_FETCH_MAX_WORKERS``: concurrency cap for the report fetches.
"""

from __future__ import annotations

import os
from pathlib import Path

DEFAULT_API_URL = "http://localhost:5000/api"
DEFAULT_TIMEOUT_S = 30.0
OVERRIDES_FILENAME = "client_invoices.json"


def get_api_url() -> str:
    url = (os.getenv("BR_API_URL") or "").strip()
    return (url or DEFAULT_API_URL).rstrip("/")


def get_api_token() -> str | None:
    token = (os.getenv("BR_API_TOKEN") or "").strip()
    return token or None


def get_state_dir() -> Path:
    """Return the local state directory.

    Default: ``./.state`` under the current working directory.
    Override: ``BR_STATE_DIR`` environment variable (absolute or relative).
    """

    root = os.getenv("BR_STATE_DIR")
    if root and root.strip():
        return Path(root).expanduser().resolve()
    return (Path.cwd() / ".state").resolve()


def get_overrides_path() -> Path:
    return get_state_dir() / OVERRIDES_FILENAME


def get_http_timeout() -> float:
    raw = os.getenv("BR_HTTP_TIMEOUT")
    try:
        value = float(raw) if raw else DEFAULT_TIMEOUT_S
    except ValueError:
        value = DEFAULT_TIMEOUT_S
    return value if value > 0 else DEFAULT_TIMEOUT_S


def resolve_max_workers(n_tasks: int) -> int:
    """Resolve a worker count for concurrent fetches.

    Honors ``BR_FETCH_MAX_WORKERS`` when it is a positive integer, caps to
    ``n_tasks`` and ensures a minimum of 1.
    """

    env_workers = os.getenv("BR_FETCH_MAX_WORKERS")
    try:
        max_workers = int(env_workers) if env_workers else None
    except ValueError:
        max_workers = None

    if max_workers is not None and max_workers > 0:
        return max(1, min(max_workers, n_tasks))
    return max(1, n_tasks)


__all__ = [
    "DEFAULT_API_URL",
    "get_api_token",
    "get_api_url",
    "get_http_timeout",
    "get_overrides_path",
    "get_state_dir",
    "resolve_max_workers",
]
