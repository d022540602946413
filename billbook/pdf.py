"""PDF export of bills using ReportLab."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path
from xml.sax.saxutils import escape

from .dashboard import compute_stats, format_money
from .models import BillRecord

_DEFAULT_FONT = "Helvetica"
_CUSTOM_FONT = "BillFont"

_BILL_HEADERS = [
    "Customer Name",
    "Product Name",
    "Quantity",
    "Price per Unit",
    "Total",
    "Paid",
    "Remaining",
]



def _register_font(font_path: str = "") -> str:
    """Register a TTF font with ReportLab and return the font name.

    The built-in Helvetica is used when no path is configured. Helvetica
    has no glyphs outside Latin-1, so symbols such as the rupee sign need
    a TTF font.

    Raises:
        FileNotFoundError: If ``font_path`` is set but doesn't exist.
    """
    if not font_path:
        return _DEFAULT_FONT

    from reportlab.pdfbase import pdfmetrics
    from reportlab.pdfbase.ttfonts import TTFont

    path = Path(font_path).expanduser()
    if not path.exists():
        raise FileNotFoundError(f"Font not found: {path}")
    pdfmetrics.registerFont(TTFont(_CUSTOM_FONT, str(path)))
    return _CUSTOM_FONT


def _import_reportlab():
    try:
        from reportlab.lib import colors
        from reportlab.lib.pagesizes import A4
        from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
        from reportlab.lib.units import mm
        from reportlab.platypus import (
            Paragraph,
            SimpleDocTemplate,
            Spacer,
            Table,
            TableStyle,
        )
    except ImportError:
        raise ImportError("reportlab is required: pip install 'billbook[pdf]'")
    return (
        colors, A4, ParagraphStyle, getSampleStyleSheet, mm,
        Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle,
    )


def _table_style(TableStyle, colors, font_name: str, header_color: str):
    return TableStyle([
        ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor(header_color)),
        ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
        ("FONTNAME", (0, 0), (-1, -1), font_name),
        ("FONTSIZE", (0, 0), (-1, -1), 8),
        ("ALIGN", (0, 0), (-1, -1), "LEFT"),
        ("ALIGN", (2, 1), (-1, -1), "RIGHT"),
        ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
        ("GRID", (0, 0), (-1, -1), 0.5, colors.grey),
        ("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.white, colors.HexColor("#F5F5F5")]),
        ("TOPPADDING", (0, 0), (-1, -1), 3),
        ("BOTTOMPADDING", (0, 0), (-1, -1), 3),
        ("LEFTPADDING", (0, 0), (-1, -1), 4),
        ("RIGHTPADDING", (0, 0), (-1, -1), 4),
    ])


def generate_bills_pdf(
    bills: Sequence[BillRecord],
    output_path: str | Path,
    *,
    currency: str = "$",
    font_path: str = "",
    title: str = "Bills",
) -> Path:
    """Render a table of bill rows with a totals summary.

    Args:
        bills: Rows to list, in display order.
        output_path: Where to save the PDF file.
        currency: Symbol placed in front of amounts.
        font_path: Optional TTF font for non-Latin text.
        title: Heading printed above the table.

    Returns:
        Path to the generated PDF file.

    Raises:
        ImportError: If reportlab is not installed.
        FileNotFoundError: If ``font_path`` doesn't exist.
    """
    (
        colors, A4, ParagraphStyle, getSampleStyleSheet, mm,
        Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle,
    ) = _import_reportlab()

    font_name = _register_font(font_path)
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    doc = SimpleDocTemplate(
        str(output_path),
        pagesize=A4,
        leftMargin=12 * mm,
        rightMargin=12 * mm,
        topMargin=15 * mm,
        bottomMargin=15 * mm,
        title=title,
    )
    styles = getSampleStyleSheet()
    title_style = ParagraphStyle(
        "Title_Bill", parent=styles["Title"], fontName=font_name,
        fontSize=18, leading=24, alignment=0,
    )
    body_style = ParagraphStyle(
        "Body_Bill", parent=styles["Normal"], fontName=font_name,
        fontSize=10, leading=14,
    )

    elements: list = [Paragraph(escape(title), title_style), Spacer(1, 3 * mm)]

    if not bills:
        elements.append(Paragraph("No bills found.", body_style))
    else:
        table_data = [_BILL_HEADERS]
        for bill in bills:
            table_data.append([
                bill.customer_name,
                bill.product_name,
                str(bill.quantity),
                format_money(bill.price_per_unit, currency),
                format_money(bill.total, currency),
                format_money(bill.paid_amount, currency),
                format_money(bill.remaining_amount, currency),
            ])
        col_widths = [32 * mm, 38 * mm, 16 * mm, 24 * mm, 24 * mm, 24 * mm, 24 * mm]
        t = Table(table_data, colWidths=col_widths, repeatRows=1)
        t.setStyle(_table_style(TableStyle, colors, font_name, "#4A90D9"))
        elements.append(t)

        stats = compute_stats(bills)
        elements.append(Spacer(1, 5 * mm))
        elements.append(Paragraph(f"Bills: {stats.total_bills}", body_style))
        elements.append(Paragraph(
            f"Total Amount: {format_money(stats.total_amount, currency)}", body_style
        ))
        elements.append(Paragraph(
            f"Total Paid: {format_money(stats.total_paid, currency)}", body_style
        ))
        elements.append(Paragraph(
            f"Total Remaining: {format_money(stats.total_remaining, currency)}",
            body_style,
        ))

    doc.build(elements)
    return output_path


def generate_bill_receipt_pdf(
    group: Sequence[BillRecord],
    output_path: str | Path,
    *,
    currency: str = "$",
    font_path: str = "",
) -> Path:
    """Render a receipt for one bill group.

    The first row supplies the customer, date and bill number; every row
    becomes a product line and the summary sums the group.

    Raises:
        ValueError: If ``group`` is empty.
        ImportError: If reportlab is not installed.
        FileNotFoundError: If ``font_path`` doesn't exist.
    """
    if not group:
        raise ValueError("Cannot render a receipt without bills")

    (
        colors, A4, ParagraphStyle, getSampleStyleSheet, mm,
        Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle,
    ) = _import_reportlab()

    font_name = _register_font(font_path)
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    head = group[0]
    doc = SimpleDocTemplate(
        str(output_path),
        pagesize=A4,
        leftMargin=15 * mm,
        rightMargin=15 * mm,
        topMargin=15 * mm,
        bottomMargin=15 * mm,
        title=f"Bill {head.id}",
    )
    styles = getSampleStyleSheet()
    title_style = ParagraphStyle(
        "Receipt_Title", parent=styles["Title"], fontName=font_name,
        fontSize=20, leading=26, alignment=0,
    )
    body_style = ParagraphStyle(
        "Receipt_Body", parent=styles["Normal"], fontName=font_name,
        fontSize=12, leading=18,
    )

    elements: list = [
        Paragraph("Bill Receipt", title_style),
        Paragraph(f"Customer: {escape(head.customer_name)}", body_style),
        Paragraph(f"Date: {head.created_at[:10]}", body_style),
        Paragraph(f"Bill #: {head.id}", body_style),
        Spacer(1, 4 * mm),
    ]

    table_data = [["Product", "Quantity", "Price per Unit", "Total"]]
    for bill in group:
        table_data.append([
            bill.product_name,
            str(bill.quantity),
            format_money(bill.price_per_unit, currency),
            format_money(bill.total, currency),
        ])
    t = Table(table_data, colWidths=[70 * mm, 25 * mm, 40 * mm, 40 * mm])
    t.setStyle(_table_style(TableStyle, colors, font_name, "#2E7D32"))
    elements.append(t)

    stats = compute_stats(group)
    elements.append(Spacer(1, 6 * mm))
    elements.append(Paragraph(
        f"Total Amount: {format_money(stats.total_amount, currency)}", body_style
    ))
    elements.append(Paragraph(
        f"Amount Paid: {format_money(stats.total_paid, currency)}", body_style
    ))
    elements.append(Paragraph(
        f"Remaining: {format_money(stats.total_remaining, currency)}", body_style
    ))

    doc.build(elements)
    return output_path
