"""Data models and type aliases for ``business_reports``.

Raw API records are opaque mappings; everything downstream of the normalizer
works on frozen dataclasses so aggregation and report composition stay pure
functions of their inputs. The on-disk status-override file is modelled with
Pydantic to validate what is read back from local state.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import Any, TypeAlias

from pydantic import BaseModel, ConfigDict, field_validator

# ---------------------------------------------------------------------------
# Resource kinds and raw records
# ---------------------------------------------------------------------------

# A single record as returned by the API, before field mapping. Keys and value
# types are untrusted.
RawRecord: TypeAlias = Mapping[str, Any]


class ResourceKind(StrEnum):
    """The five resource collections exposed by the API."""

    EXPENSES = "expenses"
    PRODUCTS = "products"
    INVOICES = "invoices"
    PURCHASE_ORDERS = "purchase-orders"
    SALES_ORDERS = "sales-orders"

    @property
    def path(self) -> str:
        return f"/{self.value}"

    @property
    def collection_key(self) -> str:
        """Name of the array field some endpoints wrap their payload in."""

        return _COLLECTION_KEYS[self]


_COLLECTION_KEYS: dict[ResourceKind, str] = {
    ResourceKind.EXPENSES: "expenses",
    ResourceKind.PRODUCTS: "products",
    ResourceKind.INVOICES: "invoices",
    ResourceKind.PURCHASE_ORDERS: "purchaseOrders",
    ResourceKind.SALES_ORDERS: "salesOrders",
}


# ---------------------------------------------------------------------------
# Canonical records
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class LineItem:
    """One line of an invoice or order.

    ``discount`` and ``tax`` are percentages. The line total is always derived
    from the other fields; a ``total`` stored by the server is ignored because
    it may be stale.
    """

    name: str | None = None
    quantity: float = 1.0
    price: float = 0.0
    discount: float = 0.0
    tax: float = 0.0

    @property
    def total(self) -> float:
        subtotal = self.quantity * self.price
        discounted = subtotal - subtotal * (self.discount / 100)
        return discounted + discounted * (self.tax / 100)


@dataclass(frozen=True, slots=True)
class CanonicalRecord:
    """A normalized invoice, expense, product, purchase order or sales order.

    ``amount`` is the record's monetary value: the first direct total field
    present, otherwise the sum of its line items. For products it is the stock
    value (``price * stock``). ``date`` keeps the raw string so callers decide
    how to parse/format it. ``raw`` is the untouched source mapping.
    """

    kind: ResourceKind
    id: str | None = None
    number: str | None = None
    party: str | None = None
    date: str | None = None
    due_date: str | None = None
    created_at: str | None = None
    amount: float = 0.0
    status: str | None = None
    category: str | None = None
    name: str | None = None
    payment_method: str | None = None
    price: float = 0.0
    stock: float | None = None
    items: tuple[LineItem, ...] = ()
    raw: RawRecord = field(default_factory=dict, compare=False, repr=False)


# ---------------------------------------------------------------------------
# Summary metrics
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class GroupTotal:
    """Per-bucket count and summed amount of a group-by breakdown."""

    label: str
    count: int
    amount: float


@dataclass(frozen=True, slots=True)
class ExpenseSummary:
    total_count: int = 0
    total_expenses: float = 0.0
    by_category: tuple[GroupTotal, ...] = ()
    max_expense_category: str = "None"
    max_category_amount: float = 0.0
    avg_expense: float = 0.0


@dataclass(frozen=True, slots=True)
class ProductSummary:
    total_products: int = 0
    total_stock_value: float = 0.0
    by_category: tuple[GroupTotal, ...] = ()
    low_stock_products: tuple[CanonicalRecord, ...] = ()


@dataclass(frozen=True, slots=True)
class InvoiceSummary:
    year: int
    total_invoices: int = 0
    total_revenue: float = 0.0
    paid_invoices: int = 0
    unpaid_invoices: int = 0
    paid_amount: float = 0.0
    unpaid_amount: float = 0.0
    monthly_revenue: tuple[float, ...] = (0.0,) * 12


@dataclass(frozen=True, slots=True)
class OrderSummary:
    """Purchase-order or sales-order metrics.

    ``top_parties`` holds vendors for purchase orders and customers for sales
    orders, highest amount first.
    """

    kind: ResourceKind
    total_orders: int = 0
    total_amount: float = 0.0
    by_status: tuple[GroupTotal, ...] = ()
    top_parties: tuple[GroupTotal, ...] = ()


@dataclass(frozen=True, slots=True)
class DocumentTotals:
    """Subtotal, GST and grand total of one invoice or order.

    ``tax_rate`` is a percentage; ``tax = subtotal * tax_rate / 100``.
    """

    subtotal: float
    tax_rate: float
    tax: float
    total: float


@dataclass(frozen=True, slots=True)
class DashboardMetrics:
    total_sales: int = 0
    pending_orders: int = 0
    completed_orders: int = 0
    total_revenue: float = 0.0


@dataclass(frozen=True, slots=True)
class Overview:
    """Per-resource summaries feeding the combined report.

    ``errors`` maps a resource kind to the message of its failed fetch; such a
    resource carries an empty summary. ``auth_failed`` is set when any fetch
    was rejected with 401.
    """

    expenses: ExpenseSummary
    products: ProductSummary
    invoices: InvoiceSummary
    purchase_orders: OrderSummary
    sales_orders: OrderSummary
    errors: Mapping[ResourceKind, str] = field(default_factory=dict)
    auth_failed: bool = False


# ---------------------------------------------------------------------------
# Combined series and printable document
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class SeriesEntry:
    label: str
    value: float
    color: str
    border_color: str


@dataclass(frozen=True, slots=True)
class CombinedSeries:
    """Cross-resource series shared by the chart/table output and the PDF."""

    entries: tuple[SeriesEntry, ...]
    placeholder: bool = False

    @property
    def labels(self) -> list[str]:
        return [e.label for e in self.entries]

    @property
    def values(self) -> list[float]:
        return [e.value for e in self.entries]

    @property
    def total(self) -> float:
        return sum(self.values)


@dataclass(frozen=True, slots=True)
class MetricRow:
    label: str
    amount: str
    percentage: str
    color: str


@dataclass(frozen=True, slots=True)
class ReportSection:
    title: str
    rows: tuple[tuple[str, str], ...]
    color: str


@dataclass(frozen=True, slots=True)
class ReportDocument:
    title: str
    subtitle: str
    generated_at: datetime
    generated_label: str
    metric_rows: tuple[MetricRow, ...]
    total_row: MetricRow | None
    sections: tuple[ReportSection, ...]


@dataclass(frozen=True, slots=True)
class ExpenseListDocument:
    """Printable expense listing: one row per expense plus the filtered total.

    Row cells are (date, description, category, amount, payment method), all
    already formatted.
    """

    title: str
    subtitle: str
    generated_at: datetime
    generated_label: str
    columns: tuple[str, ...]
    rows: tuple[tuple[str, str, str, str, str], ...]
    total_label: str
    total_amount: str


# ---------------------------------------------------------------------------
# DTOs for the local status-override file
# ---------------------------------------------------------------------------


class StatusOverrideEntry(BaseModel):
    model_config = ConfigDict(strict=True, extra="forbid", str_strip_whitespace=True)

    id: str
    status: str

    @field_validator("id", "status")
    @classmethod
    def _non_empty(cls, v: str) -> str:
        if not v:
            raise ValueError("must be non-empty")
        return v


class StatusOverrideFile(BaseModel):
    """Top-level schema of the override JSON file."""

    model_config = ConfigDict(strict=True, extra="forbid")

    schema_version: int
    overrides: list[StatusOverrideEntry]
