"""Cross-resource report composition.

:func:`build_overview` turns per-resource record lists into an
:class:`~business_reports.models.Overview`; :func:`compose_series` picks one
headline scalar per resource and produces the :class:`CombinedSeries` that
feeds both the interactive chart/table and the printable document.
:func:`build_document` derives the document purely from that same series and
the summaries, so the two outputs cannot drift apart.
"""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from datetime import datetime
from typing import Any

from .aggregate import (
    UNCATEGORIZED,
    summarize_expenses,
    summarize_invoices,
    summarize_products,
    summarize_purchase_orders,
    summarize_sales_orders,
)
from .formatting import format_currency, format_date, format_timestamp, round_half_up
from .models import (
    CanonicalRecord,
    CombinedSeries,
    ExpenseListDocument,
    MetricRow,
    Overview,
    ReportDocument,
    ReportSection,
    ResourceKind,
    SeriesEntry,
)

REPORT_TITLE = "Business Management System"
REPORT_SUBTITLE = "Business Overview Report"

PLACEHOLDER_LABEL = "No Data Available"
PLACEHOLDER_VALUE = 100.0
PLACEHOLDER_COLOR = ("rgba(200, 200, 200, 0.8)", "rgba(200, 200, 200, 1)")

# (label, background, border) per resource, in chart order.
SERIES_STYLE: dict[ResourceKind, tuple[str, str, str]] = {
    ResourceKind.EXPENSES: ("Total Expenses", "rgba(255, 99, 132, 0.8)", "rgba(255, 99, 132, 1)"),
    ResourceKind.PRODUCTS: (
        "Product Inventory Value",
        "rgba(54, 162, 235, 0.8)",
        "rgba(54, 162, 235, 1)",
    ),
    ResourceKind.INVOICES: ("Invoice Revenue", "rgba(46, 204, 113, 0.8)", "rgba(46, 204, 113, 1)"),
    ResourceKind.PURCHASE_ORDERS: (
        "Purchase Orders Value",
        "rgba(255, 159, 64, 0.8)",
        "rgba(255, 159, 64, 1)",
    ),
    ResourceKind.SALES_ORDERS: (
        "Sales Orders Value",
        "rgba(153, 102, 255, 0.8)",
        "rgba(153, 102, 255, 1)",
    ),
}

SECTION_COLORS: dict[ResourceKind, str] = {
    ResourceKind.EXPENSES: "#e74c3c",
    ResourceKind.PRODUCTS: "#3498db",
    ResourceKind.INVOICES: "#2ecc71",
    ResourceKind.PURCHASE_ORDERS: "#f39c12",
    ResourceKind.SALES_ORDERS: "#9b59b6",
}

_RGB_RE = re.compile(r"rgba?\((\d+),\s*(\d+),\s*(\d+)")


# ---------------------------------------------------------------------------
# Overview
# ---------------------------------------------------------------------------


def build_overview(
    records: Mapping[ResourceKind, Sequence[CanonicalRecord]],
    *,
    year: int,
    errors: Mapping[ResourceKind, str] | None = None,
    auth_failed: bool = False,
) -> Overview:
    """Summarize every resource; missing kinds are summarized as empty."""

    def _get(kind: ResourceKind) -> Sequence[CanonicalRecord]:
        return records.get(kind, ())

    return Overview(
        expenses=summarize_expenses(_get(ResourceKind.EXPENSES)),
        products=summarize_products(_get(ResourceKind.PRODUCTS)),
        invoices=summarize_invoices(_get(ResourceKind.INVOICES), year=year),
        purchase_orders=summarize_purchase_orders(_get(ResourceKind.PURCHASE_ORDERS)),
        sales_orders=summarize_sales_orders(_get(ResourceKind.SALES_ORDERS)),
        errors=dict(errors or {}),
        auth_failed=auth_failed,
    )


def headline_values(overview: Overview) -> dict[ResourceKind, float]:
    """The one scalar each resource contributes to the combined series."""

    return {
        ResourceKind.EXPENSES: overview.expenses.total_expenses,
        ResourceKind.PRODUCTS: overview.products.total_stock_value,
        ResourceKind.INVOICES: overview.invoices.total_revenue,
        ResourceKind.PURCHASE_ORDERS: overview.purchase_orders.total_amount,
        ResourceKind.SALES_ORDERS: overview.sales_orders.total_amount,
    }


# ---------------------------------------------------------------------------
# Combined series
# ---------------------------------------------------------------------------


def compose_series(overview: Overview) -> CombinedSeries:
    """Build the combined series, omitting resources whose value is not > 0."""

    entries: list[SeriesEntry] = []
    for kind, value in headline_values(overview).items():
        if value > 0:
            label, bg, border = SERIES_STYLE[kind]
            entries.append(SeriesEntry(label=label, value=value, color=bg, border_color=border))

    if not entries:
        bg, border = PLACEHOLDER_COLOR
        placeholder = SeriesEntry(
            label=PLACEHOLDER_LABEL, value=PLACEHOLDER_VALUE, color=bg, border_color=border
        )
        return CombinedSeries(entries=(placeholder,), placeholder=True)
    return CombinedSeries(entries=tuple(entries))


def percentages(series: CombinedSeries) -> list[float]:
    """Each entry's share of the total in percent, rounded half-up to one decimal.

    Every entry is rounded on its own, so equal values always get equal shares
    and the sum may be off 100.0 by a tenth. A non-positive total yields 0.0
    for every entry.
    """

    values = series.values
    total = sum(values)
    if total <= 0:
        return [0.0] * len(values)
    return [float(round_half_up(v / total * 100, "0.1")) for v in values]


def percentage_labels(series: CombinedSeries) -> list[str]:
    return [f"{p:.1f}%" if p else "0%" for p in percentages(series)]


def chart_data(series: CombinedSeries) -> dict[str, Any]:
    """Chart.js-style payload for the combined pie chart."""

    return {
        "labels": series.labels,
        "datasets": [
            {
                "data": series.values,
                "backgroundColor": [e.color for e in series.entries],
                "borderColor": [e.border_color for e in series.entries],
            }
        ],
    }


# ---------------------------------------------------------------------------
# Printable document
# ---------------------------------------------------------------------------


def _hex_color(rgba: str, fallback: str = "#333333") -> str:
    m = _RGB_RE.match(rgba)
    if not m:
        return fallback
    r, g, b = (int(x) for x in m.groups())
    return f"#{r:02x}{g:02x}{b:02x}"


def _money(value: float) -> str:
    return format_currency(value, for_document=True)


def _sections(overview: Overview) -> tuple[ReportSection, ...]:
    exp = overview.expenses
    prod = overview.products
    inv = overview.invoices
    po = overview.purchase_orders
    so = overview.sales_orders
    return (
        ReportSection(
            title="Expense Summary",
            rows=(
                ("Total Expenses", _money(exp.total_expenses)),
                ("Highest Category", exp.max_expense_category),
                ("Highest Amount", _money(exp.max_category_amount)),
                ("Average Expense", _money(exp.avg_expense)),
            ),
            color=SECTION_COLORS[ResourceKind.EXPENSES],
        ),
        ReportSection(
            title="Product Summary",
            rows=(
                ("Total Products", str(prod.total_products)),
                ("Stock Value", _money(prod.total_stock_value)),
                ("Low Stock Items", str(len(prod.low_stock_products))),
            ),
            color=SECTION_COLORS[ResourceKind.PRODUCTS],
        ),
        ReportSection(
            title="Invoice Summary",
            rows=(
                ("Total Invoices", str(inv.total_invoices)),
                ("Total Revenue", _money(inv.total_revenue)),
                ("Paid Invoices", f"{inv.paid_invoices} ({_money(inv.paid_amount)})"),
                ("Unpaid Invoices", f"{inv.unpaid_invoices} ({_money(inv.unpaid_amount)})"),
            ),
            color=SECTION_COLORS[ResourceKind.INVOICES],
        ),
        ReportSection(
            title="Purchase Order Summary",
            rows=(
                ("Total Purchase Orders", str(po.total_orders)),
                ("Total Amount", _money(po.total_amount)),
            ),
            color=SECTION_COLORS[ResourceKind.PURCHASE_ORDERS],
        ),
        ReportSection(
            title="Sales Order Summary",
            rows=(
                ("Total Sales Orders", str(so.total_orders)),
                ("Total Amount", _money(so.total_amount)),
            ),
            color=SECTION_COLORS[ResourceKind.SALES_ORDERS],
        ),
    )


def build_document(
    overview: Overview,
    *,
    generated_at: datetime,
    series: CombinedSeries | None = None,
) -> ReportDocument:
    """Assemble the printable report from the overview and its combined series.

    When ``series`` is omitted it is composed from ``overview``. A placeholder
    series produces no metric rows and no total row.
    """

    series = series if series is not None else compose_series(overview)

    rows: tuple[MetricRow, ...] = ()
    total_row: MetricRow | None = None
    if not series.placeholder:
        rows = tuple(
            MetricRow(
                label=e.label,
                amount=_money(e.value),
                percentage=pct,
                color=_hex_color(e.color),
            )
            for e, pct in zip(series.entries, percentage_labels(series), strict=True)
        )
        total_row = MetricRow(
            label="TOTAL", amount=_money(series.total), percentage="100%", color="#000000"
        )

    return ReportDocument(
        title=REPORT_TITLE,
        subtitle=REPORT_SUBTITLE,
        generated_at=generated_at,
        generated_label=f"Generated on: {format_timestamp(generated_at)}",
        metric_rows=rows,
        total_row=total_row,
        sections=_sections(overview),
    )


# ---------------------------------------------------------------------------
# Expense listing
# ---------------------------------------------------------------------------

EXPENSE_LIST_TITLE = "Expenses Report"
EXPENSE_COLUMNS = ("Date", "Description", "Category", "Amount", "Payment Method")


def build_expense_list(
    expenses: Sequence[CanonicalRecord], *, generated_at: datetime
) -> ExpenseListDocument:
    """Printable listing of already-filtered expenses with their total.

    Raises ``ValueError`` when there is nothing to list.
    """

    if not expenses:
        raise ValueError("No expenses to export.")
    rows = tuple(
        (
            format_date(r.date),
            r.name or "",
            r.category or UNCATEGORIZED,
            _money(r.amount),
            r.payment_method or "",
        )
        for r in expenses
    )
    return ExpenseListDocument(
        title=REPORT_TITLE,
        subtitle=EXPENSE_LIST_TITLE,
        generated_at=generated_at,
        generated_label=f"Generated on: {format_timestamp(generated_at)}",
        columns=EXPENSE_COLUMNS,
        rows=rows,
        total_label="Total Expenses",
        total_amount=_money(sum(r.amount for r in expenses)),
    )


__all__ = [
    "PLACEHOLDER_LABEL",
    "build_document",
    "build_expense_list",
    "build_overview",
    "chart_data",
    "compose_series",
    "headline_values",
    "percentage_labels",
    "percentages",
]
