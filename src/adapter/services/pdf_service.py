"""ReportLab PDF Generation Service Implementation

Implements invoice rendering using ReportLab library.
"""

from decimal import Decimal
from io import BytesIO
from typing import List, Optional

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import mm
from reportlab.platypus import (
    SimpleDocTemplate,
    Table,
    TableStyle,
    Paragraph,
    Spacer,
)

from src.app.services.pdf_service import PdfService
from src.domain.customer import Customer
from src.domain.invoice import Invoice, InvoiceStatus
from src.domain.invoice_line import InvoiceLine

COLUMN_WIDTHS = [80 * mm, 25 * mm, 30 * mm, 35 * mm]


def _money(amount_cents: int, currency: str) -> str:
    return f"{currency} {amount_cents / 100:,.2f}"


def _quantity(value) -> str:
    return f"{value:,.6f}".rstrip("0").rstrip(".")


class ReportLabPdfService(PdfService):
    """
    ReportLab implementation of PdfService

    Draft invoices carry a PROFORMA label and a non-binding footer.
    """

    def render_invoice(
        self,
        invoice: Invoice,
        invoice_lines: List[InvoiceLine],
        customer: Optional[Customer] = None,
        company_name: str = "Billing Hub",
        company_address: str = "",
    ) -> bytes:
        buffer = BytesIO()
        doc = SimpleDocTemplate(
            buffer,
            pagesize=A4,
            rightMargin=20 * mm,
            leftMargin=20 * mm,
            topMargin=20 * mm,
            bottomMargin=20 * mm,
            title=invoice.invoice_number,
        )

        is_proforma = invoice.status == InvoiceStatus.DRAFT
        styles = getSampleStyleSheet()
        elements = []

        title_style = ParagraphStyle(
            "TitleStyle",
            parent=styles["Heading1"],
            fontSize=24,
            spaceAfter=10,
            textColor=colors.HexColor("#2C3E50"),
        )
        label_style = ParagraphStyle(
            "LabelStyle",
            parent=styles["Heading2"],
            fontSize=14,
            textColor=colors.HexColor("#E74C3C" if is_proforma else "#2C3E50"),
            spaceAfter=20,
        )
        header_style = ParagraphStyle(
            "HeaderStyle",
            parent=styles["Normal"],
            fontSize=10,
            textColor=colors.HexColor("#7F8C8D"),
        )
        normal_style = ParagraphStyle("NormalStyle", parent=styles["Normal"], fontSize=10)
        bold_style = ParagraphStyle(
            "BoldStyle",
            parent=styles["Normal"],
            fontSize=10,
            fontName="Helvetica-Bold",
        )

        elements.append(Paragraph(company_name, title_style))
        if company_address:
            elements.append(Paragraph(company_address, header_style))
        elements.append(Spacer(1, 10 * mm))
        elements.append(Paragraph("PROFORMA INVOICE" if is_proforma else "INVOICE", label_style))

        invoice_info = [
            ["Invoice Number:", invoice.invoice_number],
            ["Status:", invoice.status.value.upper()],
            ["Currency:", invoice.currency],
            ["Created:", invoice.created_at.strftime("%Y-%m-%d")],
        ]
        if invoice.issued_at:
            invoice_info.append(["Issued:", invoice.issued_at.strftime("%Y-%m-%d")])
        if invoice.due_date:
            invoice_info.append(["Due:", invoice.due_date.strftime("%Y-%m-%d")])
        if invoice.paid_at:
            invoice_info.append(["Paid:", invoice.paid_at.strftime("%Y-%m-%d")])

        invoice_table = Table(invoice_info, colWidths=[40 * mm, 100 * mm])
        invoice_table.setStyle(
            TableStyle(
                [
                    ("FONTNAME", (0, 0), (0, -1), "Helvetica-Bold"),
                    ("FONTSIZE", (0, 0), (-1, -1), 10),
                    ("TEXTCOLOR", (0, 0), (0, -1), colors.HexColor("#7F8C8D")),
                    ("VALIGN", (0, 0), (-1, -1), "TOP"),
                    ("BOTTOMPADDING", (0, 0), (-1, -1), 4),
                ]
            )
        )
        elements.append(invoice_table)
        elements.append(Spacer(1, 10 * mm))

        elements.append(Paragraph("Bill To:", bold_style))
        if customer:
            elements.append(Paragraph(customer.name, normal_style))
            if customer.email:
                elements.append(Paragraph(customer.email, normal_style))
        else:
            elements.append(Paragraph(f"Customer ID: {invoice.customer_id}", normal_style))
        elements.append(Spacer(1, 10 * mm))

        line_data = [["Description", "Quantity", "Unit Price", "Total"]]
        for line in invoice_lines:
            line_data.append(
                [
                    Paragraph(line.description, normal_style),
                    _quantity(line.quantity),
                    _money(line.unit_price_cents, invoice.currency),
                    _money(line.total_cents, invoice.currency),
                ]
            )

        line_table = Table(line_data, colWidths=COLUMN_WIDTHS, repeatRows=1)
        line_table.setStyle(
            TableStyle(
                [
                    # Header row
                    ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#2C3E50")),
                    ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
                    ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
                    ("FONTSIZE", (0, 0), (-1, 0), 10),
                    ("ALIGN", (0, 0), (-1, 0), "CENTER"),
                    # Data rows
                    ("FONTSIZE", (0, 1), (-1, -1), 9),
                    ("ALIGN", (1, 1), (-1, -1), "RIGHT"),
                    ("GRID", (0, 0), (-1, -1), 0.5, colors.HexColor("#BDC3C7")),
                    ("BOTTOMPADDING", (0, 0), (-1, -1), 6),
                    ("TOPPADDING", (0, 0), (-1, -1), 6),
                    ("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.white, colors.HexColor("#F8F9F9")]),
                ]
            )
        )
        elements.append(line_table)
        elements.append(Spacer(1, 5 * mm))

        totals_data = [
            ["", "", "Subtotal:", _money(invoice.subtotal_cents, invoice.currency)],
            ["", "", f"Tax ({Decimal(str(invoice.tax_rate)).normalize():f}%):", _money(invoice.tax_amount_cents, invoice.currency)],
            ["", "", "Total:", _money(invoice.total_amount_cents, invoice.currency)],
        ]
        totals_table = Table(totals_data, colWidths=COLUMN_WIDTHS)
        totals_table.setStyle(
            TableStyle(
                [
                    ("FONTSIZE", (0, 0), (-1, -1), 10),
                    ("ALIGN", (2, 0), (-1, -1), "RIGHT"),
                    ("FONTNAME", (2, -1), (-1, -1), "Helvetica-Bold"),
                    ("FONTSIZE", (2, -1), (-1, -1), 11),
                    ("LINEABOVE", (2, -1), (-1, -1), 1.5, colors.HexColor("#2C3E50")),
                    ("TOPPADDING", (0, 0), (-1, -1), 4),
                ]
            )
        )
        elements.append(totals_table)

        if invoice.notes:
            elements.append(Spacer(1, 10 * mm))
            elements.append(Paragraph("Notes:", bold_style))
            elements.append(Paragraph(invoice.notes, normal_style))

        if is_proforma:
            elements.append(Spacer(1, 15 * mm))
            elements.append(
                Paragraph(
                    "<i>This is a proforma invoice for preview purposes only. "
                    "It is not a legally binding document until officially issued.</i>",
                    ParagraphStyle(
                        "FooterNote",
                        parent=styles["Normal"],
                        fontSize=9,
                        textColor=colors.HexColor("#95A5A6"),
                    ),
                )
            )

        doc.build(elements)
        pdf_bytes = buffer.getvalue()
        buffer.close()

        return pdf_bytes
