"""Client-side invoice status overlay.

Status changes made from this client are remembered locally, keyed by record
id, and laid over whatever the server returns on the next fetch. The server
value is never consulted again for an overridden id until the overrides are
cleared.

Storage layout (relative to the state directory, default ``./.state``):

  ``<state_dir>/client_invoices.json``

Atomicity: writes target ``.tmp`` first and then ``os.replace`` into place.
"""

from __future__ import annotations

import contextlib
import json
import os
from collections.abc import Iterable, Mapping
from dataclasses import replace
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

from pydantic import ValidationError

from .config import get_overrides_path
from .logging_setup import get_logger
from .models import CanonicalRecord, ResourceKind, StatusOverrideEntry, StatusOverrideFile

if TYPE_CHECKING:
    from .client import ApiClient

# Bump only when the on-disk override JSON shape changes.
SCHEMA_VERSION: int = 1

_logger = get_logger("business_reports.overrides")


def apply_overrides(
    records: Iterable[CanonicalRecord], overrides: Mapping[str, str]
) -> list[CanonicalRecord]:
    """Return copies of ``records`` with overridden statuses.

    Records without an id, or whose id has no override, are returned as-is.
    Inputs are never mutated.
    """

    out: list[CanonicalRecord] = []
    for r in records:
        status = overrides.get(r.id) if r.id is not None else None
        out.append(replace(r, status=status) if status is not None else r)
    return out


class StatusOverrideStore:
    """Durable id → status map backed by a small JSON file."""

    def __init__(self, path: str | os.PathLike[str] | None = None) -> None:
        self.path = Path(path) if path is not None else get_overrides_path()

    def load(self) -> dict[str, str]:
        """Return the stored overrides; a missing or unreadable file is empty."""

        if not self.path.exists():
            return {}
        try:
            parsed = StatusOverrideFile.model_validate_json(
                self.path.read_text(encoding="utf-8")
            )
        except (OSError, UnicodeDecodeError, ValidationError):
            _logger.warning(
                "overrides:read_failed; treating as empty path=%s",
                os.fspath(self.path),
                exc_info=True,
            )
            return {}
        if parsed.schema_version != SCHEMA_VERSION:
            _logger.warning(
                "overrides:schema_mismatch found=%d expected=%d path=%s",
                parsed.schema_version,
                SCHEMA_VERSION,
                os.fspath(self.path),
            )
            return {}
        return {e.id: e.status for e in parsed.overrides}

    def _write(self, overrides: Mapping[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        doc = StatusOverrideFile(
            schema_version=SCHEMA_VERSION,
            overrides=[StatusOverrideEntry(id=k, status=v) for k, v in overrides.items()],
        )
        try:
            tmp.write_text(
                json.dumps(doc.model_dump(mode="json"), ensure_ascii=False, indent=2),
                encoding="utf-8",
            )
            os.replace(tmp, self.path)
        except Exception:
            with contextlib.suppress(FileNotFoundError):
                tmp.unlink()
            raise

    def record_override(self, record_id: str, status: str) -> dict[str, str]:
        """Upsert one override and persist immediately; returns the new map."""

        record_id = str(record_id).strip()
        status = str(status).strip()
        if not record_id or not status:
            raise ValueError("record id and status must be non-empty")

        current = self.load()
        current[record_id] = status
        self._write(current)
        _logger.info("overrides:recorded id=%s status=%s", record_id, status)
        return current

    def clear(self) -> None:
        with contextlib.suppress(FileNotFoundError):
            self.path.unlink()
        _logger.info("overrides:cleared path=%s", os.fspath(self.path))

    def apply(self, records: Iterable[CanonicalRecord]) -> list[CanonicalRecord]:
        return apply_overrides(records, self.load())


# ---------------------------------------------------------------------------
# Status updaters
# ---------------------------------------------------------------------------


class StatusUpdater(Protocol):
    """Where a user-initiated status change goes."""

    def update_status(self, record_id: str, status: str) -> None: ...


class LocalStatusUpdater:
    """Record the change in the local overlay only; the API is never called."""

    def __init__(self, store: StatusOverrideStore) -> None:
        self.store = store

    def update_status(self, record_id: str, status: str) -> None:
        self.store.record_override(record_id, status)


class RemoteStatusUpdater:
    """Send the change to the server (``PATCH /<resource>/<id>/status``)."""

    def __init__(self, client: ApiClient, kind: ResourceKind = ResourceKind.INVOICES) -> None:
        self.client = client
        self.kind = kind

    def update_status(self, record_id: str, status: str) -> None:
        self.client.update_status(self.kind, record_id, status)


__all__ = [
    "LocalStatusUpdater",
    "RemoteStatusUpdater",
    "StatusOverrideStore",
    "StatusUpdater",
    "apply_overrides",
]
