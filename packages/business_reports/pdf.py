"""Render a :class:`~business_reports.models.ReportDocument` to PDF.

Layout follows the printed business-overview report: header, generation
stamp, the metrics table (label, amount, percentage and a total row), one
key/value table per resource section and a footer with page numbers.
:func:`render_expense_pdf` prints a filtered expense listing under the same
header and footer. All content comes from the document; nothing is
recomputed here.

The standard Helvetica fonts have no rupee glyph. Set ``BR_PDF_FONT`` to a
TrueType font file that does (e.g. DejaVuSans.ttf) to embed it instead.
"""

from __future__ import annotations

import os
from io import BytesIO
from os import PathLike
from pathlib import Path

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFont
from reportlab.pdfgen.canvas import Canvas
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from .logging_setup import get_logger
from .models import ExpenseListDocument, ReportDocument

_logger = get_logger("business_reports.pdf")

HEADER_BLUE = colors.Color(52 / 255, 152 / 255, 219 / 255)
MARGIN = 15 * mm
_CUSTOM_FONT = "ReportSans"


def _fonts() -> tuple[str, str]:
    """Return ``(regular, bold)`` font names, registering ``BR_PDF_FONT`` if set."""

    path = os.getenv("BR_PDF_FONT")
    if path and path.strip():
        try:
            if _CUSTOM_FONT not in pdfmetrics.getRegisteredFontNames():
                pdfmetrics.registerFont(TTFont(_CUSTOM_FONT, path.strip()))
            return _CUSTOM_FONT, _CUSTOM_FONT
        except Exception:
            _logger.warning("pdf:font_register_failed path=%s", path, exc_info=True)
    return "Helvetica", "Helvetica-Bold"


def _numbered_canvas(font: str) -> type[Canvas]:
    """Canvas class that stamps ``Page i of n`` once the page count is known."""

    class _NumberedCanvas(Canvas):
        def __init__(self, *args, **kwargs) -> None:
            super().__init__(*args, **kwargs)
            self._page_states: list[dict] = []

        def showPage(self) -> None:  # noqa: N802 - reportlab API
            self._page_states.append(dict(self.__dict__))
            self._startPage()

        def save(self) -> None:
            total = len(self._page_states)
            for state in self._page_states:
                self.__dict__.update(state)
                page_w = self._pagesize[0]
                self.setFont(font, 8)
                self.setFillColor(colors.HexColor("#555555"))
                self.drawRightString(
                    page_w - MARGIN, 14 * mm, f"Page {self._pageNumber} of {total}"
                )
                super().showPage()
            super().save()

    return _NumberedCanvas


def _metrics_table(document: ReportDocument, regular: str, bold: str) -> Table:
    data: list[list[str]] = [["Metric", "Amount", "Percentage"]]
    style: list[tuple] = [
        ("FONTNAME", (0, 0), (-1, 0), bold),
        ("FONTNAME", (0, 1), (-1, -1), regular),
        ("FONTSIZE", (0, 0), (-1, -1), 10),
        ("BACKGROUND", (0, 0), (-1, 0), colors.Color(0.9, 0.95, 1)),
        ("LINEBELOW", (0, 0), (-1, 0), 0.5, colors.black),
        ("BOTTOMPADDING", (0, 0), (-1, -1), 6),
    ]

    if not document.metric_rows:
        data.append(["No financial data available", "", ""])
        style += [
            ("SPAN", (0, 1), (-1, 1)),
            ("ALIGN", (0, 1), (-1, 1), "CENTER"),
            ("TEXTCOLOR", (0, 1), (-1, 1), colors.HexColor("#CC0000")),
            ("BACKGROUND", (0, 1), (-1, 1), colors.Color(1, 0.94, 0.94)),
        ]
    else:
        for i, row in enumerate(document.metric_rows, start=1):
            data.append([row.label, row.amount, row.percentage])
            style.append(("TEXTCOLOR", (0, i), (-1, i), colors.HexColor(row.color)))
            if i % 2 == 1:
                style.append(("BACKGROUND", (0, i), (-1, i), colors.Color(0.96, 0.96, 0.96)))
        if document.total_row is not None:
            t = document.total_row
            data.append([t.label, t.amount, t.percentage])
            style += [
                ("FONTNAME", (0, -1), (-1, -1), bold),
                ("BACKGROUND", (0, -1), (-1, -1), colors.Color(0.9, 0.9, 0.9)),
                ("LINEABOVE", (0, -1), (-1, -1), 0.5, colors.black),
                ("LINEBELOW", (0, -1), (-1, -1), 0.5, colors.black),
            ]

    table = Table(data, colWidths=[80 * mm, 55 * mm, 45 * mm])
    table.setStyle(TableStyle(style))
    return table


def _section_table(title: str, rows, color: str, regular: str, bold: str) -> Table:
    data: list[list[str]] = [[title, ""]]
    data += [[f"{key}:", value] for key, value in rows]
    style: list[tuple] = [
        ("SPAN", (0, 0), (-1, 0)),
        ("FONTNAME", (0, 0), (-1, 0), bold),
        ("FONTSIZE", (0, 0), (-1, 0), 12),
        ("BACKGROUND", (0, 0), (-1, 0), colors.Color(0.9, 0.9, 0.9)),
        ("FONTNAME", (0, 1), (0, -1), regular),
        ("FONTNAME", (1, 1), (1, -1), bold),
        ("TEXTCOLOR", (1, 1), (1, -1), colors.HexColor(color)),
        ("FONTSIZE", (0, 1), (-1, -1), 10),
        ("BOTTOMPADDING", (0, 0), (-1, -1), 6),
    ]
    for i in range(1, len(data), 2):
        style.append(("BACKGROUND", (0, i), (-1, i), colors.Color(0.97, 0.97, 0.97)))
    table = Table(data, colWidths=[80 * mm, 100 * mm])
    table.setStyle(TableStyle(style))
    return table


def _build(
    elements: list,
    *,
    title: str,
    subtitle: str,
    pagesize: tuple[float, float],
    fonts: tuple[str, str],
    target: str | PathLike[str] | None,
) -> bytes:
    """Lay out ``elements`` under the shared header band and footer."""

    regular, bold = fonts
    buf = BytesIO()
    page_w, page_h = pagesize

    def _decorate(canvas, doc) -> None:
        canvas.saveState()
        # Header band
        canvas.setFillColor(HEADER_BLUE)
        canvas.rect(0, page_h - 40 * mm, page_w, 40 * mm, fill=1, stroke=0)
        canvas.setFillColor(colors.white)
        canvas.setFont(bold, 24)
        canvas.drawCentredString(page_w / 2, page_h - 15 * mm, title)
        canvas.setFont(bold, 16)
        canvas.drawCentredString(page_w / 2, page_h - 25 * mm, subtitle)
        # Footer
        canvas.setFillColor(colors.Color(0.94, 0.94, 0.94))
        canvas.rect(0, 0, page_w, 20 * mm, fill=1, stroke=0)
        canvas.setFillColor(colors.HexColor("#555555"))
        canvas.setFont(regular, 8)
        canvas.drawCentredString(page_w / 2, 10 * mm, title)
        canvas.drawCentredString(page_w / 2, 6 * mm, f"Generated by {title} Reports Module")
        canvas.restoreState()

    pdf = SimpleDocTemplate(
        buf,
        pagesize=pagesize,
        leftMargin=MARGIN,
        rightMargin=MARGIN,
        topMargin=45 * mm,
        bottomMargin=25 * mm,
        title=subtitle,
    )
    pdf.build(
        elements,
        onFirstPage=_decorate,
        onLaterPages=_decorate,
        canvasmaker=_numbered_canvas(regular),
    )

    data = buf.getvalue()
    if target is not None:
        Path(target).write_bytes(data)
        _logger.info("pdf:written path=%s bytes=%d", os.fspath(target), len(data))
    return data


def _stamp_style(regular: str) -> ParagraphStyle:
    return ParagraphStyle(
        "Stamp",
        parent=getSampleStyleSheet()["Normal"],
        fontName=regular,
        fontSize=10,
        alignment=1,
        textColor=colors.HexColor("#555555"),
    )


def render_pdf(
    document: ReportDocument, target: str | PathLike[str] | None = None
) -> bytes:
    """Render ``document`` and return the PDF bytes; also write to ``target``."""

    regular, bold = _fonts()
    heading_style = ParagraphStyle(
        "MetricsHeading",
        parent=getSampleStyleSheet()["Heading2"],
        fontName=bold,
        fontSize=14,
        alignment=1,
        textColor=colors.HexColor("#333333"),
    )

    elements: list = [
        Paragraph(document.generated_label, _stamp_style(regular)),
        Spacer(1, 6 * mm),
        Paragraph("Business Metrics Overview", heading_style),
        Spacer(1, 3 * mm),
        _metrics_table(document, regular, bold),
        Spacer(1, 10 * mm),
    ]
    for section in document.sections:
        elements.append(_section_table(section.title, section.rows, section.color, regular, bold))
        elements.append(Spacer(1, 8 * mm))

    return _build(
        elements,
        title=document.title,
        subtitle=document.subtitle,
        pagesize=A4,
        fonts=(regular, bold),
        target=target,
    )


def render_expense_pdf(
    document: ExpenseListDocument, target: str | PathLike[str] | None = None
) -> bytes:
    """Render an expense listing on landscape A4; the total row closes the table."""

    regular, bold = _fonts()
    data: list[list[str]] = [list(document.columns)]
    data += [list(row) for row in document.rows]
    data.append(["", "", f"{document.total_label}:", document.total_amount, ""])

    style: list[tuple] = [
        ("FONTNAME", (0, 0), (-1, 0), bold),
        ("FONTNAME", (0, 1), (-1, -1), regular),
        ("FONTSIZE", (0, 0), (-1, -1), 10),
        ("BACKGROUND", (0, 0), (-1, 0), colors.Color(0.9, 0.95, 1)),
        ("LINEBELOW", (0, 0), (-1, 0), 0.5, colors.black),
        ("ALIGN", (3, 0), (3, -1), "RIGHT"),
        ("FONTNAME", (0, -1), (-1, -1), bold),
        ("LINEABOVE", (0, -1), (-1, -1), 0.5, colors.black),
        ("BOTTOMPADDING", (0, 0), (-1, -1), 6),
    ]
    for i in range(1, len(data) - 1, 2):
        style.append(("BACKGROUND", (0, i), (-1, i), colors.Color(0.96, 0.96, 0.96)))
    table = Table(
        data, colWidths=[40 * mm, 80 * mm, 50 * mm, 45 * mm, 45 * mm], repeatRows=1
    )
    table.setStyle(TableStyle(style))

    elements: list = [
        Paragraph(document.generated_label, _stamp_style(regular)),
        Spacer(1, 6 * mm),
        table,
    ]
    return _build(
        elements,
        title=document.title,
        subtitle=document.subtitle,
        pagesize=landscape(A4),
        fonts=(regular, bold),
        target=target,
    )


__all__ = ["render_expense_pdf", "render_pdf"]
