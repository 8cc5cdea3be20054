"""Per-resource summary metrics computed from normalized records.

Every function here is pure: it takes a sequence of
:class:`~business_reports.models.CanonicalRecord` and returns a frozen summary.
A resource whose fetch failed is simply summarized from an empty sequence,
which yields all-zero metrics, so one resource never blocks another.

Paid/unpaid classification is a case-insensitive membership test against
:data:`PAID_STATUSES`. Everything else, including a missing or unknown status,
counts as unpaid.
"""

from __future__ import annotations

import math
from collections.abc import Callable, Iterable, Sequence
from datetime import UTC, datetime

from .formatting import parse_date
from .models import (
    CanonicalRecord,
    DashboardMetrics,
    DocumentTotals,
    ExpenseSummary,
    GroupTotal,
    InvoiceSummary,
    LineItem,
    OrderSummary,
    ProductSummary,
    ResourceKind,
)

PAID_STATUSES: frozenset[str] = frozenset({"paid", "completed", "settled"})
PENDING_ORDER_STATUSES: frozenset[str] = frozenset({"pending", "processing", "confirmed"})
COMPLETED_ORDER_STATUSES: frozenset[str] = frozenset({"delivered", "completed"})

LOW_STOCK_THRESHOLD = 5
TOP_N = 5
DEFAULT_GST_RATE = 18.0

UNCATEGORIZED = "Uncategorized"
UNKNOWN_PARTY = "Unknown"
DEFAULT_ORDER_STATUS = "pending"


# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------


def group_totals(
    records: Iterable[CanonicalRecord],
    key: Callable[[CanonicalRecord], str | None],
    *,
    default: str,
) -> tuple[GroupTotal, ...]:
    """Group by ``key`` (``default`` when it returns a falsy value).

    Buckets keep first-seen order.
    """

    counts: dict[str, int] = {}
    amounts: dict[str, float] = {}
    for r in records:
        label = key(r) or default
        counts[label] = counts.get(label, 0) + 1
        amounts[label] = amounts.get(label, 0.0) + r.amount
    return tuple(GroupTotal(label=k, count=counts[k], amount=amounts[k]) for k in counts)


def top_n(groups: Iterable[GroupTotal], n: int = TOP_N) -> tuple[GroupTotal, ...]:
    """Highest amounts first; ties keep their original order."""

    return tuple(sorted(groups, key=lambda g: g.amount, reverse=True)[:n])


def is_paid(status: str | None) -> bool:
    return (status or "").strip().lower() in PAID_STATUSES


def monthly_series(records: Iterable[CanonicalRecord], year: int) -> tuple[float, ...]:
    """Sum record amounts into 12 calendar-month slots for ``year``.

    Records without a parseable date, or dated in another year, are skipped.
    """

    months = [0.0] * 12
    for r in records:
        dt = parse_date(r.date)
        if dt is None or dt.year != year:
            continue
        months[dt.month - 1] += r.amount
    return tuple(months)


# ---------------------------------------------------------------------------
# Per-resource summaries
# ---------------------------------------------------------------------------


def summarize_expenses(records: Sequence[CanonicalRecord]) -> ExpenseSummary:
    total = sum(r.amount for r in records)
    by_category = group_totals(records, lambda r: r.category, default=UNCATEGORIZED)

    max_category = "None"
    max_amount = 0.0
    for g in by_category:
        if g.amount > max_amount:
            max_category, max_amount = g.label, g.amount

    return ExpenseSummary(
        total_count=len(records),
        total_expenses=total,
        by_category=by_category,
        max_expense_category=max_category,
        max_category_amount=max_amount,
        avg_expense=total / (len(records) or 1),
    )


def summarize_products(records: Sequence[CanonicalRecord]) -> ProductSummary:
    return ProductSummary(
        total_products=len(records),
        total_stock_value=sum(r.amount for r in records),
        by_category=group_totals(records, lambda r: r.category, default=UNCATEGORIZED),
        low_stock_products=tuple(
            r for r in records if r.stock is not None and r.stock < LOW_STOCK_THRESHOLD
        ),
    )


def summarize_invoices(records: Sequence[CanonicalRecord], *, year: int) -> InvoiceSummary:
    paid = [r for r in records if is_paid(r.status)]
    unpaid = [r for r in records if not is_paid(r.status)]
    return InvoiceSummary(
        year=year,
        total_invoices=len(records),
        total_revenue=sum(r.amount for r in records),
        paid_invoices=len(paid),
        unpaid_invoices=len(unpaid),
        paid_amount=sum(r.amount for r in paid),
        unpaid_amount=sum(r.amount for r in unpaid),
        monthly_revenue=monthly_series(records, year),
    )


def _summarize_orders(records: Sequence[CanonicalRecord], kind: ResourceKind) -> OrderSummary:
    return OrderSummary(
        kind=kind,
        total_orders=len(records),
        total_amount=sum(r.amount for r in records),
        by_status=group_totals(records, lambda r: r.status, default=DEFAULT_ORDER_STATUS),
        top_parties=top_n(group_totals(records, lambda r: r.party, default=UNKNOWN_PARTY)),
    )


def summarize_purchase_orders(records: Sequence[CanonicalRecord]) -> OrderSummary:
    """Purchase-order totals, status breakdown and top 5 vendors."""

    return _summarize_orders(records, ResourceKind.PURCHASE_ORDERS)


def summarize_sales_orders(records: Sequence[CanonicalRecord]) -> OrderSummary:
    """Sales-order totals, status breakdown and top 5 customers."""

    return _summarize_orders(records, ResourceKind.SALES_ORDERS)


# ---------------------------------------------------------------------------
# Document totals
# ---------------------------------------------------------------------------


def apply_tax_rate(subtotal: float, rate: float = DEFAULT_GST_RATE) -> DocumentTotals:
    """GST on an already-known subtotal; used when only the rate changes.

    Raises ``ValueError`` for a rate that is not a number in ``[0, 100]``.
    """

    rate = float(rate)
    if not math.isfinite(rate) or not 0 <= rate <= 100:
        raise ValueError(f"GST rate must be between 0 and 100, got {rate!r}")
    tax = subtotal * rate / 100
    return DocumentTotals(subtotal=subtotal, tax_rate=rate, tax=tax, total=subtotal + tax)


def document_totals(
    items: Iterable[LineItem], rate: float = DEFAULT_GST_RATE
) -> DocumentTotals:
    """Subtotal of the line totals plus GST at ``rate`` percent."""

    return apply_tax_rate(sum((i.total for i in items), 0.0), rate)


# ---------------------------------------------------------------------------
# Dashboard and list helpers
# ---------------------------------------------------------------------------


def dashboard_metrics(sales_orders: Sequence[CanonicalRecord]) -> DashboardMetrics:
    statuses = [(r.status or "").lower() for r in sales_orders]
    return DashboardMetrics(
        total_sales=len(sales_orders),
        pending_orders=sum(1 for s in statuses if s in PENDING_ORDER_STATUSES),
        completed_orders=sum(1 for s in statuses if s in COMPLETED_ORDER_STATUSES),
        total_revenue=sum(r.amount for r in sales_orders),
    )


def recent_products(
    products: Sequence[CanonicalRecord], limit: int = TOP_N
) -> list[CanonicalRecord]:
    """Newest products first by ``createdAt``; undated ones sort by id, descending."""

    dated: list[tuple[datetime, CanonicalRecord]] = []
    undated: list[CanonicalRecord] = []
    for p in products:
        dt = parse_date(p.created_at)
        if dt is None:
            undated.append(p)
        else:
            # Naive stamps are taken as UTC so every key is comparable.
            dated.append((dt if dt.tzinfo else dt.replace(tzinfo=UTC), p))
    dated.sort(key=lambda pair: pair[0], reverse=True)
    undated.sort(key=lambda p: p.id or "", reverse=True)
    return ([p for _, p in dated] + undated)[:limit]


def filter_records(
    records: Iterable[CanonicalRecord],
    *,
    search: str | None = None,
    status: str | None = None,
    category: str | None = None,
    month: str | None = None,
) -> list[CanonicalRecord]:
    """Case-insensitive search over number/party/name/category/id plus exact filters.

    ``status`` and ``category`` compare case-insensitively. ``month`` is a
    ``YYYY-MM`` prefix of the record's raw date string. Any filter that is
    ``None``, blank or ``"all"`` is disabled.
    """

    def _wanted(value: str | None) -> str:
        v = (value or "").strip()
        return "" if v.lower() == "all" else v

    needle = (search or "").strip().lower()
    want_status = _wanted(status).lower()
    want_category = _wanted(category).lower()
    want_month = _wanted(month)
    out: list[CanonicalRecord] = []
    for r in records:
        if want_status and (r.status or "").lower() != want_status:
            continue
        if want_category and (r.category or "").strip().lower() != want_category:
            continue
        if want_month and not (r.date or "").strip().startswith(want_month):
            continue
        if needle:
            haystack = (r.number, r.party, r.name, r.category, r.id)
            if not any(needle in (h or "").lower() for h in haystack):
                continue
        out.append(r)
    return out


__all__ = [
    "DEFAULT_GST_RATE",
    "PAID_STATUSES",
    "apply_tax_rate",
    "dashboard_metrics",
    "document_totals",
    "filter_records",
    "group_totals",
    "is_paid",
    "monthly_series",
    "recent_products",
    "summarize_expenses",
    "summarize_invoices",
    "summarize_products",
    "summarize_purchase_orders",
    "summarize_sales_orders",
    "top_n",
]
