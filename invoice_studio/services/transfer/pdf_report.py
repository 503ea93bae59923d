"""
PDF Invoice Report

Renders the currently displayed invoices as a one-document report:
title, generation timestamp, invoice table and a summary block.
"""

import io
from datetime import datetime
from typing import Iterable, Optional
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFError, TTFont
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from invoice_studio.logs import get_logger
from invoice_studio.models.invoice import Invoice, InvoiceStatus
from invoice_studio.queries.engine import summarize


logger = get_logger(__name__)


PDF_MIME_TYPE = "application/pdf"

TABLE_COLUMNS = ["Date", "Supplier", "Invoice #", "Category", "Status", "Amount (€)"]

HEADER_COLOR = colors.HexColor("#4472C4")

CUSTOM_FONT_NAME = "InvoiceReportFont"


def _resolve_fonts(font_path: Optional[str]) -> tuple[str, str]:
    """
    Return (regular, bold) font names.

    The built-in Helvetica only covers Latin-1; a TTF font can be supplied
    for other scripts. The custom font has no bold face, so it is used for
    both. A font that cannot be loaded falls back to Helvetica.
    """
    if not font_path:
        return "Helvetica", "Helvetica-Bold"

    if CUSTOM_FONT_NAME not in pdfmetrics.getRegisteredFontNames():
        try:
            pdfmetrics.registerFont(TTFont(CUSTOM_FONT_NAME, font_path))
        except (OSError, ValueError, TTFError) as e:
            logger.warning(
                "pdf_font_unavailable",
                font_path=font_path,
                error=str(e),
                hint="non-Latin text may not render",
            )
            return "Helvetica", "Helvetica-Bold"
        logger.info("pdf_font_registered", font_path=font_path)
    return CUSTOM_FONT_NAME, CUSTOM_FONT_NAME


def _truncate(value: str, limit: int) -> str:
    if len(value) > limit:
        return value[:limit - 3] + "..."
    return value


def render_pdf(
    invoices: Iterable[Invoice],
    workspace_name: str,
    generated_at: Optional[datetime] = None,
    font_path: Optional[str] = None,
) -> bytes:
    """
    Render invoices as a PDF report.

    Args:
        invoices: Invoices in display order
        workspace_name: Shown in the title
        generated_at: Timestamp printed under the title (default: now)
        font_path: Optional TTF font for non-Latin text

    Returns:
        The PDF document as bytes
    """
    invoices = list(invoices)
    generated_at = generated_at or datetime.now()
    regular_font, bold_font = _resolve_fonts(font_path)

    buffer = io.BytesIO()
    doc = SimpleDocTemplate(
        buffer, pagesize=A4,
        leftMargin=15 * mm, rightMargin=15 * mm,
        topMargin=20 * mm, bottomMargin=20 * mm,
        title=f"Invoice Report: {workspace_name}",
    )

    styles = getSampleStyleSheet()
    title_style = ParagraphStyle(
        "ReportTitle", parent=styles["Title"], fontName=bold_font, fontSize=16, spaceAfter=12,
    )
    heading_style = ParagraphStyle(
        "ReportHeading", parent=styles["Heading2"], fontName=bold_font, fontSize=12, spaceAfter=6,
    )
    body_style = ParagraphStyle("ReportBody", parent=styles["Normal"], fontName=regular_font)

    elements = []

    # Title
    elements.append(Paragraph(escape(f"Invoice Report: {workspace_name}"), title_style))
    elements.append(Paragraph(
        f"Generated on: {generated_at.strftime('%Y-%m-%d %H:%M')}", body_style,
    ))
    elements.append(Spacer(1, 8 * mm))

    # Invoice table
    table_data = [TABLE_COLUMNS]
    for invoice in invoices:
        table_data.append([
            invoice.date.isoformat(),
            _truncate(invoice.supplier, 35),
            _truncate(invoice.invoice_number, 20),
            invoice.category.value,
            invoice.status.value,
            f"{invoice.amount:.2f}",
        ])

    table = Table(table_data, colWidths=[60, 150, 80, 85, 55, 60], repeatRows=1)
    table.setStyle(TableStyle([
        ("BACKGROUND", (0, 0), (-1, 0), HEADER_COLOR),
        ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
        ("FONTNAME", (0, 0), (-1, 0), bold_font),
        ("FONTNAME", (0, 1), (-1, -1), regular_font),
        ("FONTSIZE", (0, 0), (-1, -1), 8),
        ("GRID", (0, 0), (-1, -1), 0.5, colors.grey),
        ("ALIGN", (5, 0), (5, -1), "RIGHT"),
        ("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.white, colors.HexColor("#F2F2F2")]),
    ]))
    elements.append(table)
    elements.append(Spacer(1, 8 * mm))

    # Summary
    totals = summarize(invoices)
    elements.append(Paragraph("Summary", heading_style))
    summary_lines = [
        f"Total Invoices: {totals.total_count}",
        f"Total Amount: €{totals.total_amount:.2f}",
        (
            f"Paid: {totals.count_for(InvoiceStatus.PAID)} | "
            f"Pending: {totals.count_for(InvoiceStatus.PENDING)} | "
            f"Overdue: {totals.count_for(InvoiceStatus.OVERDUE)}"
        ),
    ]
    if invoices:
        first = min(invoice.date for invoice in invoices)
        last = max(invoice.date for invoice in invoices)
        summary_lines.append(f"Period: {first.isoformat()} - {last.isoformat()}")

    for line in summary_lines:
        elements.append(Paragraph(line, body_style))

    doc.build(elements)
    logger.info("pdf_report_rendered", workspace=workspace_name, invoice_count=len(invoices))
    return buffer.getvalue()
