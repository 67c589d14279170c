"""GenerateInvoicePdf Use Case

Renders an invoice with its items and payments to PDF.
"""

import base64
from datetime import datetime
from libs.result import Result, Return, Error
from src.app.repositories.invoice_repository import InvoiceRepository
from src.app.repositories.invoice_item_repository import InvoiceItemRepository
from src.app.repositories.payment_repository import PaymentRepository
from src.app.services.pdf_service import PdfService
from src.domain.errors import BillingError, NotFoundError
from .dtos import InvoicePdfResponseDTO


class GenerateInvoicePdf:
    """
    Use Case: Generate invoice PDF

    Business Rules:
    1. Invoice must exist
    2. Any status can be rendered; the status is printed on the document
    3. Returns PDF as base64-encoded string

    Flow:
    1. Retrieve invoice, items and payments
    2. Generate PDF using PDF service
    3. Return response with PDF as base64
    """

    def __init__(
        self,
        invoice_repo: InvoiceRepository,
        item_repo: InvoiceItemRepository,
        payment_repo: PaymentRepository,
        pdf_service: PdfService,
        company_name: str = "Health Clinic",
        company_address: str = "",
    ):
        self.invoice_repo = invoice_repo
        self.item_repo = item_repo
        self.payment_repo = payment_repo
        self.pdf_service = pdf_service
        self.company_name = company_name
        self.company_address = company_address

    async def execute(self, invoice_id: int) -> Result[InvoicePdfResponseDTO]:
        """
        Execute invoice PDF generation

        Args:
            invoice_id: Invoice ID to render

        Returns:
            Result[InvoicePdfResponseDTO]: Success with PDF or error
        """
        try:
            # Step 1: Retrieve invoice data
            invoice = await self.invoice_repo.get_by_id(invoice_id)
            if not invoice:
                raise NotFoundError("Invoice", invoice_id)

            items = await self.item_repo.get_by_invoice_id(invoice_id)
            payments = await self.payment_repo.list(invoice_id=invoice_id)

            # Step 2: Generate PDF
            pdf_bytes = self.pdf_service.generate_invoice(
                invoice=invoice,
                items=items,
                payments=payments,
                company_name=self.company_name,
                company_address=self.company_address,
            )

            # Step 3: Build response
            return Return.ok(
                InvoicePdfResponseDTO(
                    invoice_id=invoice.id,
                    invoice_number=invoice.invoice_number,
                    status=invoice.status.value,
                    pdf_base64=base64.b64encode(pdf_bytes).decode("utf-8"),
                    generated_at=datetime.utcnow(),
                )
            )

        except BillingError as e:
            return Return.err(e.to_error())

        except Exception as e:
            return Return.err(
                Error(
                    code="GENERATE_INVOICE_PDF_FAILED",
                    message="Failed to generate invoice PDF",
                    reason=str(e),
                )
            )
