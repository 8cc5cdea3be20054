"""Concurrent loading of all resource collections for a report.

A :class:`ReportSession` fetches the five collections on a thread pool, one
task per resource. Each fetch fails on its own: the error is recorded in
``Overview.errors`` and that resource is summarized as empty. A 401 on any
fetch sets ``Overview.auth_failed``.

Once :meth:`ReportSession.close` has been called the session is dead and a
load that completes afterwards is discarded (``load()`` returns ``None``).
"""

from __future__ import annotations

import threading
from collections.abc import Iterable
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import date

from .client import ApiClient, ApiError, AuthenticationError
from .config import resolve_max_workers
from .logging_setup import get_logger
from .models import CanonicalRecord, Overview, ResourceKind
from .normalizers import normalize
from .report import build_overview

_logger = get_logger("business_reports.session")

REPORT_KINDS: tuple[ResourceKind, ...] = (
    ResourceKind.EXPENSES,
    ResourceKind.PRODUCTS,
    ResourceKind.INVOICES,
    ResourceKind.PURCHASE_ORDERS,
    ResourceKind.SALES_ORDERS,
)


def fetch_records(client: ApiClient, kind: ResourceKind) -> list[CanonicalRecord]:
    """Fetch and normalize one collection; API errors propagate."""

    records = normalize(client.get_collection(kind), kind)
    _logger.info("fetch:done kind=%s records=%d", kind.value, len(records))
    return records


class ReportSession:
    """Loads every collection and keeps the latest :class:`Overview`.

    ``overview`` and ``records`` are only written by the thread calling
    :meth:`load`, after all fetches have finished; the last completed load
    wins.
    """

    def __init__(
        self,
        client: ApiClient,
        *,
        year: int | None = None,
        max_workers: int | None = None,
    ) -> None:
        self.client = client
        self.year = year if year is not None else date.today().year
        self.max_workers = max_workers
        self.overview: Overview | None = None
        self.records: dict[ResourceKind, list[CanonicalRecord]] = {}
        self._alive = threading.Event()
        self._alive.set()

    @property
    def alive(self) -> bool:
        return self._alive.is_set()

    def close(self) -> None:
        self._alive.clear()
        _logger.debug("session:closed")

    def __enter__(self) -> ReportSession:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def load(self, kinds: Iterable[ResourceKind] = REPORT_KINDS) -> Overview | None:
        """Fetch ``kinds`` concurrently and summarize them.

        Returns ``None`` (and leaves the session state untouched) when the
        session was closed before the fetches completed.
        """

        kinds = list(kinds)
        if not self.alive:
            return None

        records: dict[ResourceKind, list[CanonicalRecord]] = {}
        errors: dict[ResourceKind, str] = {}
        auth_failed = False

        workers = self.max_workers or resolve_max_workers(len(kinds))
        with ThreadPoolExecutor(max_workers=max(1, workers)) as pool:
            futures = {pool.submit(fetch_records, self.client, k): k for k in kinds}
            for fut in as_completed(futures):
                kind = futures[fut]
                try:
                    records[kind] = fut.result()
                except AuthenticationError as e:
                    auth_failed = True
                    errors[kind] = str(e)
                    records[kind] = []
                except ApiError as e:
                    _logger.warning("fetch:failed kind=%s err=%s", kind.value, e)
                    errors[kind] = str(e)
                    records[kind] = []

        if not self.alive:
            _logger.debug("session:discarding_late_results")
            return None

        overview = build_overview(
            records, year=self.year, errors=errors, auth_failed=auth_failed
        )
        self.records = records
        self.overview = overview
        return overview


__all__ = ["REPORT_KINDS", "ReportSession", "fetch_records"]
