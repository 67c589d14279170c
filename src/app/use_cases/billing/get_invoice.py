"""GetInvoice Use Case

Retrieves an invoice with its items and payments.
"""

from libs.result import Result, Return, Error
from src.app.repositories.invoice_repository import InvoiceRepository
from src.app.repositories.invoice_item_repository import InvoiceItemRepository
from src.app.repositories.payment_repository import PaymentRepository
from src.domain.errors import BillingError, NotFoundError
from .dtos import InvoiceResponseDTO


class GetInvoice:
    """
    Use Case: Get invoice details

    Read-only; returns the invoice with items and payment history.
    """

    def __init__(
        self,
        invoice_repo: InvoiceRepository,
        item_repo: InvoiceItemRepository,
        payment_repo: PaymentRepository,
    ):
        self.invoice_repo = invoice_repo
        self.item_repo = item_repo
        self.payment_repo = payment_repo

    async def execute(self, invoice_id: int) -> Result[InvoiceResponseDTO]:
        try:
            invoice = await self.invoice_repo.get_by_id(invoice_id)
            if not invoice:
                raise NotFoundError("Invoice", invoice_id)

            items = await self.item_repo.get_by_invoice_id(invoice_id)
            payments = await self.payment_repo.list(invoice_id=invoice_id)

            return Return.ok(InvoiceResponseDTO.from_entities(invoice, items, payments))

        except BillingError as e:
            return Return.err(e.to_error())

        except Exception as e:
            return Return.err(
                Error(
                    code="GET_INVOICE_FAILED",
                    message="Failed to retrieve invoice",
                    reason=str(e),
                )
            )
