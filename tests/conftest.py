"""Pytest configuration for test isolation.

The status overlay persists overrides under a project-relative state
directory (``./.state``) by default. When tests run in the same working tree
those files would leak statuses from one test into the next, so an autouse
fixture redirects the state directory to a per-test temporary directory and
clears the API settings a developer's shell or ``.env`` might carry.
"""

from __future__ import annotations

import os
from pathlib import Path

import pytest


@pytest.fixture(autouse=True)
def _isolate_state_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Force a per-test state directory so tests don't share on-disk state."""

    state_root = tmp_path / "state"
    state_root.mkdir(parents=True, exist_ok=True)
    monkeypatch.setenv("BR_STATE_DIR", os.fspath(state_root))
    for var in ("BR_API_URL", "BR_API_TOKEN", "BR_FETCH_MAX_WORKERS", "BR_PDF_FONT"):
        monkeypatch.delenv(var, raising=False)
