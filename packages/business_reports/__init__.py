"""Public interface for the ``business_reports`` package.

This module exposes the package's pure computation functions and public
models/types as the stable import surface. There is no runtime logic here,
only symbol re-exports. The HTTP client, report session and CLI live in their
own modules (``business_reports.client``, ``.session``, ``.cli``).
"""

from .aggregate import (
    apply_tax_rate,
    dashboard_metrics,
    document_totals,
    filter_records,
    recent_products,
    summarize_expenses,
    summarize_invoices,
    summarize_products,
    summarize_purchase_orders,
    summarize_sales_orders,
)
from .formatting import format_currency, format_date, parse_amount, parse_date
from .models import (
    CanonicalRecord,
    CombinedSeries,
    DocumentTotals,
    LineItem,
    Overview,
    ReportDocument,
    ResourceKind,
)
from .normalizers import extract_records, normalize, to_record
from .overrides import StatusOverrideStore, apply_overrides
from .report import (
    build_document,
    build_expense_list,
    build_overview,
    compose_series,
    percentages,
)

__all__ = [
    # Formatting
    "format_currency",
    "format_date",
    "parse_amount",
    "parse_date",
    # Normalization
    "extract_records",
    "normalize",
    "to_record",
    # Aggregation
    "apply_tax_rate",
    "dashboard_metrics",
    "document_totals",
    "filter_records",
    "recent_products",
    "summarize_expenses",
    "summarize_invoices",
    "summarize_products",
    "summarize_purchase_orders",
    "summarize_sales_orders",
    # Reports
    "build_document",
    "build_expense_list",
    "build_overview",
    "compose_series",
    "percentages",
    # Overrides
    "StatusOverrideStore",
    "apply_overrides",
    # Models / types
    "CanonicalRecord",
    "CombinedSeries",
    "DocumentTotals",
    "LineItem",
    "Overview",
    "ReportDocument",
    "ResourceKind",
]
