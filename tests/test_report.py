from datetime import datetime
from io import BytesIO

import pytest
from pypdf import PdfReader

from business_reports.models import CanonicalRecord, CombinedSeries, ResourceKind, SeriesEntry
from business_reports.pdf import render_expense_pdf, render_pdf
from business_reports.report import (
    PLACEHOLDER_LABEL,
    build_document,
    build_expense_list,
    build_overview,
    chart_data,
    compose_series,
    percentage_labels,
    percentages,
)

GENERATED = datetime(2026, 10, 19, 14, 30)


def _overview(**amounts):
    records = {
        ResourceKind.EXPENSES: [
            CanonicalRecord(kind=ResourceKind.EXPENSES, amount=amounts.get("expenses", 0))
        ],
        ResourceKind.INVOICES: [
            CanonicalRecord(
                kind=ResourceKind.INVOICES,
                amount=amounts.get("invoices", 0),
                status="paid",
                date="2025-02-01",
            )
        ],
        ResourceKind.SALES_ORDERS: [
            CanonicalRecord(kind=ResourceKind.SALES_ORDERS, amount=amounts.get("sales", 0))
        ],
    }
    return build_overview(records, year=2025)


def _series(*values):
    return CombinedSeries(
        entries=tuple(SeriesEntry(label=str(v), value=v, color="", border_color="") for v in values)
    )


def test_compose_series_orders_and_omits_zero_values():
    series = compose_series(_overview(expenses=100, invoices=300, sales=0))
    assert series.labels == ["Total Expenses", "Invoice Revenue"]
    assert series.values == [100, 300]
    assert not series.placeholder
    assert chart_data(series)["datasets"][0]["backgroundColor"] == [
        "rgba(255, 99, 132, 0.8)",
        "rgba(46, 204, 113, 0.8)",
    ]


def test_compose_series_placeholder_when_everything_is_zero():
    series = compose_series(build_overview({}, year=2025))
    assert series.placeholder
    assert series.labels == [PLACEHOLDER_LABEL]
    assert series.values == [100]


@pytest.mark.parametrize(
    ("values", "expected"),
    [
        ((1, 1, 1), [33.3, 33.3, 33.3]),
        ((2, 2, 2, 1), [28.6, 28.6, 28.6, 14.3]),
        ((100, 300), [25.0, 75.0]),
        ((1, 7), [12.5, 87.5]),
        ((1, 2, 3, 4, 5), [6.7, 13.3, 20.0, 26.7, 33.3]),
        ((7,), [100.0]),
    ],
)
def test_percentages_round_each_entry_half_up(values, expected):
    pcts = percentages(_series(*values))
    assert pcts == expected
    assert sum(pcts) == pytest.approx(100.0, abs=0.1 * len(values))


def test_percentages_equal_values_get_equal_shares():
    pcts = percentages(_series(5, 5, 5, 5, 5, 5))
    assert len(set(pcts)) == 1
    assert percentage_labels(_series(5, 5, 5)) == ["33.3%", "33.3%", "33.3%"]


def test_percentages_zero_total():
    series = _series(0, 0)
    assert percentages(series) == [0.0, 0.0]
    assert percentage_labels(series) == ["0%", "0%"]


def test_percentage_labels_one_decimal():
    assert percentage_labels(_series(100, 300)) == ["25.0%", "75.0%"]


def test_build_document_rows_match_series():
    overview = _overview(expenses=1000, invoices=3000)
    series = compose_series(overview)
    doc = build_document(overview, generated_at=GENERATED, series=series)

    assert doc.title == "Business Management System"
    assert doc.generated_label == "Generated on: October 19, 2026 at 02:30 PM"
    assert [r.label for r in doc.metric_rows] == series.labels
    assert [r.amount for r in doc.metric_rows] == ["₹1,000.00", "₹3,000.00"]
    assert [r.percentage for r in doc.metric_rows] == ["25.0%", "75.0%"]
    assert doc.metric_rows[0].color == "#ff6384"
    assert doc.total_row is not None
    assert doc.total_row.amount == "₹4,000.00"
    assert doc.total_row.percentage == "100%"

    titles = [s.title for s in doc.sections]
    assert titles == [
        "Expense Summary",
        "Product Summary",
        "Invoice Summary",
        "Purchase Order Summary",
        "Sales Order Summary",
    ]
    invoice_rows = dict(doc.sections[2].rows)
    assert invoice_rows["Total Invoices"] == "1"
    assert invoice_rows["Paid Invoices"] == "1 (₹3,000.00)"


def test_build_document_is_deterministic():
    overview = _overview(expenses=10, sales=5)
    assert build_document(overview, generated_at=GENERATED) == build_document(
        overview, generated_at=GENERATED
    )


def test_build_document_negative_amounts_use_document_format():
    doc = build_document(_overview(expenses=-50, invoices=100), generated_at=GENERATED)
    expense_rows = dict(doc.sections[0].rows)
    assert expense_rows["Total Expenses"] == "₹-50.00"


def test_placeholder_document_has_no_metric_rows():
    doc = build_document(build_overview({}, year=2025), generated_at=GENERATED)
    assert doc.metric_rows == ()
    assert doc.total_row is None


def _pdf_text(data: bytes) -> str:
    reader = PdfReader(BytesIO(data))
    return "\n".join(page.extract_text() for page in reader.pages)


def test_render_pdf_contains_metrics_table_and_sections(tmp_path):
    doc = build_document(_overview(expenses=1000, invoices=3000), generated_at=GENERATED)
    target = tmp_path / "report.pdf"
    data = render_pdf(doc, target)
    assert data.startswith(b"%PDF")
    assert target.read_bytes() == data

    text = _pdf_text(data)
    assert "Business Management System" in text
    assert "Generated on: October 19, 2026 at 02:30 PM" in text
    assert "Business Metrics Overview" in text
    for label in ("Total Expenses", "Invoice Revenue", "TOTAL", "25.0%", "75.0%", "100%"):
        assert label in text
    assert "Sales Order Summary" in text
    assert "Page 1 of" in text


def test_render_pdf_placeholder_document():
    doc = build_document(build_overview({}, year=2025), generated_at=GENERATED)
    text = _pdf_text(render_pdf(doc))
    assert "No financial data available" in text
    assert "TOTAL" not in text


def _expenses():
    return [
        CanonicalRecord(
            kind=ResourceKind.EXPENSES,
            date="2025-03-04",
            name="Office rent",
            category="Rent",
            amount=1200,
            payment_method="Bank Transfer",
        ),
        CanonicalRecord(kind=ResourceKind.EXPENSES, date="2025-03-09", name="Taxi", amount=300),
    ]


def test_build_expense_list_rows_and_total():
    listing = build_expense_list(_expenses(), generated_at=GENERATED)
    assert listing.subtitle == "Expenses Report"
    assert listing.columns == ("Date", "Description", "Category", "Amount", "Payment Method")
    assert listing.rows[0] == (
        "4 March 2025",
        "Office rent",
        "Rent",
        "₹1,200.00",
        "Bank Transfer",
    )
    assert listing.rows[1][2] == "Uncategorized"
    assert listing.total_amount == "₹1,500.00"


def test_build_expense_list_rejects_empty_selection():
    with pytest.raises(ValueError, match="No expenses"):
        build_expense_list([], generated_at=GENERATED)


def test_render_expense_pdf_is_landscape_with_total():
    data = render_expense_pdf(build_expense_list(_expenses(), generated_at=GENERATED))
    reader = PdfReader(BytesIO(data))
    box = reader.pages[0].mediabox
    assert box.width > box.height
    text = _pdf_text(data)
    assert "Expenses Report" in text
    assert "Office rent" in text
    assert "Total Expenses:" in text
