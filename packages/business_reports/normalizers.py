"""API response → canonical record normalizers.

Endpoints return loosely shaped JSON: sometimes a bare array, sometimes an
envelope such as ``{"invoices": [...], "total": 3}``, occasionally a single
object or an object keyed by id. Extraction is modelled as a fixed chain of
:class:`ResponseShapeStrategy` objects; the first one that recognizes the
payload wins and an unrecognized payload yields an empty list instead of an
error.

Each extracted record is then field-mapped independently by
:func:`to_record`, which probes the several key names the backend has used over
time for ids, dates, parties and totals.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from typing import Any, Protocol

from .formatting import parse_amount
from .logging_setup import get_logger
from .models import CanonicalRecord, LineItem, RawRecord, ResourceKind

_logger = get_logger("business_reports.normalizers")

# ---------------------------------------------------------------------------
# Field-name vocabularies
# ---------------------------------------------------------------------------

ID_KEYS: tuple[str, ...] = ("_id", "id")
NUMBER_KEYS: tuple[str, ...] = ("invoiceNumber", "orderNumber", "poNumber", "soNumber", "number")
DATE_KEYS: tuple[str, ...] = (
    "issueDate",
    "orderDate",
    "expenseDate",
    "date",
    "createdAt",
    "created",
)
AMOUNT_KEYS: tuple[str, ...] = ("total", "amount", "value")
NAME_KEYS: tuple[str, ...] = ("name", "description", "title")

# A top-level object carrying one of these is itself a record.
IDENTIFYING_KEYS: tuple[str, ...] = ("invoiceNumber", "orderNumber", "poNumber", "id", "_id")
# Object-of-objects candidates must expose at least one of these.
RECOGNIZABLE_KEYS: tuple[str, ...] = (*IDENTIFYING_KEYS, "total", "amount", "items")


def _has_any(obj: Mapping[str, Any], keys: Iterable[str]) -> bool:
    return any(obj.get(k) not in (None, "", 0, False) for k in keys)


def _only_mappings(values: Iterable[Any]) -> list[RawRecord]:
    return [v for v in values if isinstance(v, Mapping)]


# ---------------------------------------------------------------------------
# Shape strategies
# ---------------------------------------------------------------------------


class ResponseShapeStrategy(Protocol):
    """One way of locating records in a response payload.

    ``extract`` returns ``None`` when the payload does not have this shape so
    the next strategy in the chain gets a chance.
    """

    name: str

    def extract(self, payload: Any, kind: ResourceKind) -> list[RawRecord] | None: ...


class BareArrayStrategy:
    name = "bare_array"

    def extract(self, payload: Any, kind: ResourceKind) -> list[RawRecord] | None:
        if isinstance(payload, list):
            return _only_mappings(payload)
        return None


class NamedCollectionStrategy:
    name = "named_collection"

    def extract(self, payload: Any, kind: ResourceKind) -> list[RawRecord] | None:
        if isinstance(payload, Mapping):
            value = payload.get(kind.collection_key)
            if isinstance(value, list):
                return _only_mappings(value)
        return None


class FirstArrayStrategy:
    name = "first_array"

    def extract(self, payload: Any, kind: ResourceKind) -> list[RawRecord] | None:
        if isinstance(payload, Mapping):
            for value in payload.values():
                if isinstance(value, list):
                    return _only_mappings(value)
        return None


class SingleRecordStrategy:
    name = "single_record"

    def extract(self, payload: Any, kind: ResourceKind) -> list[RawRecord] | None:
        if isinstance(payload, Mapping) and _has_any(payload, IDENTIFYING_KEYS):
            return [payload]
        return None


class ObjectOfObjectsStrategy:
    name = "object_of_objects"

    def extract(self, payload: Any, kind: ResourceKind) -> list[RawRecord] | None:
        if not isinstance(payload, Mapping):
            return None
        found = [
            v
            for v in payload.values()
            if isinstance(v, Mapping) and _has_any(v, RECOGNIZABLE_KEYS)
        ]
        return found or None


DEFAULT_STRATEGIES: tuple[ResponseShapeStrategy, ...] = (
    BareArrayStrategy(),
    NamedCollectionStrategy(),
    FirstArrayStrategy(),
    SingleRecordStrategy(),
    ObjectOfObjectsStrategy(),
)


def extract_records(
    payload: Any,
    kind: ResourceKind,
    *,
    strategies: Sequence[ResponseShapeStrategy] = DEFAULT_STRATEGIES,
) -> list[RawRecord]:
    """Return the raw records contained in ``payload`` (possibly empty)."""

    for strategy in strategies:
        found = strategy.extract(payload, kind)
        if found is not None:
            _logger.debug(
                "extract:%s kind=%s records=%d", strategy.name, kind.value, len(found)
            )
            return found
    _logger.debug("extract:no_match kind=%s type=%s", kind.value, type(payload).__name__)
    return []


# ---------------------------------------------------------------------------
# Field mapping
# ---------------------------------------------------------------------------


def _first_present(raw: Mapping[str, Any], keys: Iterable[str]) -> Any:
    for k in keys:
        v = raw.get(k)
        if v is not None:
            return v
    return None


def _first_text(raw: Mapping[str, Any], keys: Iterable[str]) -> str | None:
    for k in keys:
        v = raw.get(k)
        if v is None or isinstance(v, (Mapping, list)):
            continue
        s = str(v).strip()
        if s:
            return s
    return None


def _nested_name(value: Any) -> str | None:
    if isinstance(value, Mapping):
        return _first_text(value, ("name",))
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _party(raw: Mapping[str, Any]) -> str | None:
    # Nested object first (``customer: {name}``), then flat fields.
    return (
        _nested_name(raw.get("customer"))
        or _first_text(raw, ("customerName",))
        or _nested_name(raw.get("vendor"))
        or _first_text(raw, ("vendorName", "supplier"))
    )


def to_line_item(raw: Mapping[str, Any]) -> LineItem:
    # Falsy quantities (missing, 0, "") count as a single unit.
    quantity = parse_amount(raw.get("quantity")) or 1.0
    return LineItem(
        name=_first_text(raw, ("description", "name")),
        quantity=quantity,
        price=parse_amount(_first_present(raw, ("price", "unitPrice"))),
        discount=parse_amount(raw.get("discount")),
        tax=parse_amount(_first_present(raw, ("tax", "taxRate"))),
    )


def _line_items(raw: Mapping[str, Any]) -> tuple[LineItem, ...]:
    items = raw.get("items")
    if not isinstance(items, list):
        return ()
    return tuple(to_line_item(i) for i in items if isinstance(i, Mapping))


def record_amount(raw: Mapping[str, Any], items: Sequence[LineItem] = ()) -> float:
    """Direct total when present, otherwise the sum of line-item totals."""

    direct = _first_present(raw, AMOUNT_KEYS)
    if direct is not None:
        return parse_amount(direct)
    if items:
        return sum(i.total for i in items)
    return 0.0


def to_record(raw: RawRecord, kind: ResourceKind) -> CanonicalRecord:
    """Map one raw API record onto :class:`CanonicalRecord`."""

    items = _line_items(raw)
    price = parse_amount(_first_present(raw, ("price", "unitPrice")))
    stock_raw = raw.get("stock")
    stock = parse_amount(stock_raw) if stock_raw is not None else None

    if kind is ResourceKind.PRODUCTS:
        amount = price * (stock or 0.0)
    else:
        amount = record_amount(raw, items)

    status = _first_text(raw, ("status",))
    ident = _first_text(raw, ID_KEYS)

    return CanonicalRecord(
        kind=kind,
        id=ident,
        number=_first_text(raw, NUMBER_KEYS),
        party=_party(raw),
        date=_first_text(raw, DATE_KEYS),
        due_date=_first_text(raw, ("dueDate",)),
        created_at=_first_text(raw, ("createdAt", "created")),
        amount=amount,
        status=status,
        category=_first_text(raw, ("category",)),
        name=_first_text(raw, NAME_KEYS),
        payment_method=_first_text(raw, ("paymentMethod",)),
        price=price,
        stock=stock,
        items=items,
        raw=raw,
    )


def normalize(payload: Any, kind: ResourceKind) -> list[CanonicalRecord]:
    """Extract and field-map every record in an API response payload."""

    return [to_record(raw, kind) for raw in extract_records(payload, kind)]


__all__ = [
    "DEFAULT_STRATEGIES",
    "BareArrayStrategy",
    "FirstArrayStrategy",
    "NamedCollectionStrategy",
    "ObjectOfObjectsStrategy",
    "ResponseShapeStrategy",
    "SingleRecordStrategy",
    "extract_records",
    "normalize",
    "record_amount",
    "to_line_item",
    "to_record",
]
