"""ReportLab PDF Generation Service Implementation

Implements invoice PDF rendering using ReportLab library.
"""

from io import BytesIO
from xml.sax.saxutils import escape
from typing import List
from decimal import Decimal

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
from src.domain.currency import CurrencyRegistry
from src.domain.invoice import Invoice, InvoiceStatus
from src.domain.invoice_item import InvoiceItem
from src.domain.payment import Payment

STATUS_COLORS = {
    InvoiceStatus.DRAFT: "#7F8C8D",
    InvoiceStatus.SENT: "#2980B9",
    InvoiceStatus.PAID: "#27AE60",
    InvoiceStatus.CANCELLED: "#E74C3C",
}


def _format_quantity(quantity: Decimal) -> str:
    return f"{quantity:,.4f}".rstrip("0").rstrip(".")


class ReportLabPdfService(PdfService):
    """
    ReportLab implementation of PdfService

    Renders header, item table, totals block and payment history.
    Amounts are formatted through CurrencyRegistry.format.
    """

    def generate_invoice(
        self,
        invoice: Invoice,
        items: List[InvoiceItem],
        payments: List[Payment],
        company_name: str = "Health Clinic",
        company_address: str = "",
    ) -> bytes:
        """
        Generate an invoice PDF

        Args:
            invoice: Invoice entity with totals and dates
            items: Line items of the invoice
            payments: Payments recorded against the invoice
            company_name: Issuer name displayed in the header
            company_address: Issuer address displayed in the header

        Returns:
            PDF document as bytes
        """
        currency = invoice.currency

        def money(amount) -> str:
            return CurrencyRegistry.format(amount, currency)

        buffer = BytesIO()
        doc = SimpleDocTemplate(
            buffer,
            pagesize=A4,
            rightMargin=20 * mm,
            leftMargin=20 * mm,
            topMargin=20 * mm,
            bottomMargin=20 * mm,
            title=f"Invoice {invoice.invoice_number}",
        )

        styles = getSampleStyleSheet()
        elements = []

        title_style = ParagraphStyle(
            "TitleStyle",
            parent=styles["Heading1"],
            fontSize=24,
            spaceAfter=10,
            textColor=colors.HexColor("#2C3E50"),
        )
        status_style = ParagraphStyle(
            "StatusStyle",
            parent=styles["Heading2"],
            fontSize=14,
            textColor=colors.HexColor(STATUS_COLORS.get(invoice.status, "#2C3E50")),
            spaceAfter=20,
        )
        header_style = ParagraphStyle(
            "HeaderStyle",
            parent=styles["Normal"],
            fontSize=10,
            textColor=colors.HexColor("#7F8C8D"),
        )
        normal_style = ParagraphStyle(
            "NormalStyle",
            parent=styles["Normal"],
            fontSize=10,
        )
        bold_style = ParagraphStyle(
            "BoldStyle",
            parent=styles["Normal"],
            fontSize=10,
            fontName="Helvetica-Bold",
        )

        # Header
        elements.append(Paragraph(escape(company_name), title_style))
        if company_address:
            elements.append(Paragraph(escape(company_address), header_style))
        elements.append(Spacer(1, 10 * mm))
        elements.append(Paragraph(f"INVOICE - {invoice.status.value.upper()}", status_style))

        invoice_info = [
            ["Invoice Number:", invoice.invoice_number],
            ["Issue Date:", invoice.issue_date.strftime("%Y-%m-%d")],
            ["Due Date:", invoice.due_date.strftime("%Y-%m-%d")],
            ["Currency:", currency],
        ]
        if invoice.paid_date:
            invoice_info.append(["Paid:", invoice.paid_date.strftime("%Y-%m-%d %H:%M UTC")])

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

        # Bill To
        elements.append(Paragraph("Bill To:", bold_style))
        elements.append(Paragraph(f"Patient ID: {invoice.patient_id}", normal_style))
        for line in (invoice.billing_address or {}).values():
            if line:
                elements.append(Paragraph(escape(str(line)), normal_style))
        elements.append(Spacer(1, 10 * mm))

        # Line Items
        item_data = [["Description", "Qty", "Unit Price", "Tax %", "Discount", "Total"]]
        for item in items:
            item_data.append(
                [
                    Paragraph(escape(item.description), normal_style),
                    _format_quantity(item.quantity),
                    money(item.unit_price),
                    f"{item.tax_rate:.2f}",
                    money(item.discount),
                    money(item.total_amount),
                ]
            )

        item_table = Table(
            item_data,
            colWidths=[60 * mm, 15 * mm, 27 * mm, 15 * mm, 23 * mm, 30 * mm],
        )
        item_table.setStyle(
            TableStyle(
                [
                    ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#2C3E50")),
                    ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
                    ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
                    ("FONTSIZE", (0, 0), (-1, 0), 10),
                    ("ALIGN", (0, 0), (-1, 0), "CENTER"),
                    ("FONTSIZE", (0, 1), (-1, -1), 9),
                    ("ALIGN", (1, 1), (-1, -1), "RIGHT"),
                    ("GRID", (0, 0), (-1, -1), 0.5, colors.HexColor("#BDC3C7")),
                    ("BOTTOMPADDING", (0, 0), (-1, -1), 6),
                    ("TOPPADDING", (0, 0), (-1, -1), 6),
                    (
                        "ROWBACKGROUNDS",
                        (0, 1),
                        (-1, -1),
                        [colors.white, colors.HexColor("#F8F9F9")],
                    ),
                ]
            )
        )
        elements.append(item_table)
        elements.append(Spacer(1, 5 * mm))

        # Totals
        totals_data = [
            ["Subtotal:", money(invoice.subtotal)],
            ["Discount:", f"-{money(invoice.discount_amount)}"],
            ["Tax:", money(invoice.tax_amount)],
            ["Total:", money(invoice.total_amount)],
            ["Paid:", money(invoice.paid_amount)],
            ["Balance Due:", money(invoice.balance_amount)],
        ]
        totals_table = Table(totals_data, colWidths=[135 * mm, 35 * mm])
        totals_table.setStyle(
            TableStyle(
                [
                    ("ALIGN", (0, 0), (-1, -1), "RIGHT"),
                    ("FONTSIZE", (0, 0), (-1, -1), 10),
                    ("FONTNAME", (0, 3), (-1, 3), "Helvetica-Bold"),
                    ("FONTNAME", (0, 5), (-1, 5), "Helvetica-Bold"),
                    ("LINEABOVE", (1, 3), (1, 3), 1.5, colors.HexColor("#2C3E50")),
                    ("TOPPADDING", (0, 0), (-1, -1), 3),
                ]
            )
        )
        elements.append(totals_table)

        # Payment history
        if payments:
            elements.append(Spacer(1, 10 * mm))
            elements.append(Paragraph("Payments:", bold_style))
            payment_data = [["Date", "Method", "Reference", "Amount"]]
            for payment in payments:
                payment_data.append(
                    [
                        payment.payment_date.strftime("%Y-%m-%d"),
                        payment.payment_method.value.replace("_", " ").title(),
                        payment.transaction_id or "-",
                        money(payment.amount),
                    ]
                )
            payment_table = Table(payment_data, colWidths=[35 * mm, 40 * mm, 60 * mm, 35 * mm])
            payment_table.setStyle(
                TableStyle(
                    [
                        ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
                        ("FONTSIZE", (0, 0), (-1, -1), 9),
                        ("ALIGN", (3, 0), (3, -1), "RIGHT"),
                        ("LINEBELOW", (0, 0), (-1, 0), 0.5, colors.HexColor("#BDC3C7")),
                    ]
                )
            )
            elements.append(payment_table)

        if invoice.notes:
            elements.append(Spacer(1, 10 * mm))
            elements.append(
                Paragraph(
                    f"<i>{escape(invoice.notes)}</i>",
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
