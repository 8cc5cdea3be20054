"""Amount and date parsing/formatting helpers.

Amounts arrive from the API either as numbers or as pre-formatted localized
strings (e.g. ``"₹2,36,000.00"``). :func:`parse_amount` turns any of those into
a finite ``float`` and never raises; :func:`format_currency` renders a float
back using the Indian numbering convention (``1,23,456.00``) with a rupee
prefix.

Two rendering paths exist. The display path mirrors what an interactive view
shows (``-₹1,234.50``); the document path is used for generated PDFs and keeps
the sign after the symbol (``₹-1,234.50``). Both quantize through the same
``Decimal`` half-up rounding so they always agree on the numeric value.

Dates are parsed leniently; anything unparseable (including the literal
``"Invalid Date"`` produced by browsers) maps to ``None`` so it can never leak
into date-bucketed aggregation.
"""

from __future__ import annotations

import math
import re
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Context, Decimal, InvalidOperation
from typing import Any

CURRENCY_SYMBOL = "₹"
UNAVAILABLE = "N/A"
INVALID_DATE = "Invalid Date"

# Wide enough to quantize any finite float to cents.
_QUANT_CONTEXT = Context(prec=400)
_STRIP_RE = re.compile(r"[^0-9.\-]")
# Longest leading float literal, matching JavaScript ``parseFloat`` on the
# already-stripped text (only digits, '-' and '.' remain at this point).
_LEADING_FLOAT_RE = re.compile(r"-?(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)")

_DATE_FORMATS: tuple[str, ...] = (
    "%d %B %Y",
    "%d %b %Y",
    "%B %d, %Y",
    "%b %d, %Y",
    "%B %d %Y",
    "%b %d %Y",
    "%m/%d/%Y",
    "%Y/%m/%d",
)


# ---------------------------------------------------------------------------
# Amounts
# ---------------------------------------------------------------------------


def parse_amount(value: Any) -> float:
    """Return ``value`` as a finite float, or ``0.0`` when it cannot be parsed.

    - ``int``/``float``/``Decimal`` are used as-is (NaN and infinities map to 0).
    - Strings keep only digits, ``-`` and ``.``; the leading float literal of
      the remainder is parsed (``"₹1,234.50"`` → ``1234.5``).
    - ``None``, booleans and any other type map to 0.
    """

    if isinstance(value, bool) or value is None:
        return 0.0
    if isinstance(value, (int, float, Decimal)):
        try:
            result = float(value)
        except (OverflowError, ValueError, InvalidOperation):
            return 0.0
        return result if math.isfinite(result) else 0.0
    if isinstance(value, str):
        stripped = _STRIP_RE.sub("", value)
        m = _LEADING_FLOAT_RE.match(stripped)
        if m is None:
            return 0.0
        try:
            result = float(m.group(0))
        except ValueError:
            return 0.0
        return result if math.isfinite(result) else 0.0
    return 0.0


def round_half_up(amount: float, places: str = "0.01") -> Decimal:
    """Quantize ``amount`` with ``ROUND_HALF_UP`` using its shortest repr."""

    return Decimal(repr(float(amount))).quantize(
        Decimal(places), rounding=ROUND_HALF_UP, context=_QUANT_CONTEXT
    )


def _group_indian(digits: str) -> str:
    # Last three digits form the first group; the rest is grouped in pairs.
    if len(digits) <= 3:
        return digits
    head, tail = digits[:-3], digits[-3:]
    pairs: list[str] = []
    while len(head) > 2:
        pairs.append(head[-2:])
        head = head[:-2]
    if head:
        pairs.append(head)
    return ",".join([*reversed(pairs), tail])


def _split_quantized(amount: Any) -> tuple[str, str, str]:
    q = round_half_up(parse_amount(amount))
    sign = "-" if q < 0 else ""
    int_part, _, dec_part = f"{abs(q):.2f}".partition(".")
    return sign, _group_indian(int_part), dec_part


def format_currency(amount: Any, *, for_document: bool = False) -> str:
    """Format ``amount`` as rupees with Indian digit grouping and 2 decimals.

    ``amount`` may be a number or a currency string; strings go through
    :func:`parse_amount` first. ``for_document`` selects the generated-document
    presentation (sign after the symbol).
    """

    sign, grouped, decimals = _split_quantized(amount)
    if for_document:
        return f"{CURRENCY_SYMBOL}{sign}{grouped}.{decimals}"
    return f"{sign}{CURRENCY_SYMBOL}{grouped}.{decimals}"


# ---------------------------------------------------------------------------
# Dates
# ---------------------------------------------------------------------------


def parse_date(value: Any) -> datetime | None:
    """Parse ISO or common locale date strings; return ``None`` on failure."""

    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if not isinstance(value, str):
        return None
    s = value.strip()
    if not s or s == INVALID_DATE:
        return None
    try:
        return datetime.fromisoformat(s)
    except ValueError:
        pass
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(s, fmt)
        except ValueError:
            continue
    return None


def format_date(value: Any) -> str:
    """Return a long-form date such as ``15 May 2025`` or ``"N/A"``."""

    dt = parse_date(value)
    if dt is None:
        return UNAVAILABLE
    return f"{dt.day} {dt:%B %Y}"


def format_timestamp(dt: datetime) -> str:
    """Render a generation stamp, e.g. ``October 19, 2026 at 02:30 PM``."""

    return f"{dt:%B} {dt.day}, {dt:%Y} at {dt:%I:%M %p}"


__all__ = [
    "CURRENCY_SYMBOL",
    "INVALID_DATE",
    "UNAVAILABLE",
    "format_currency",
    "format_date",
    "format_timestamp",
    "parse_amount",
    "parse_date",
    "round_half_up",
]
