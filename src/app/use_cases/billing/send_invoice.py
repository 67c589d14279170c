"""SendInvoice Use Case

Explicit draft -> sent transition.
"""

import logging
from libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from src.app.repositories.invoice_repository import InvoiceRepository
from src.app.repositories.invoice_item_repository import InvoiceItemRepository
from src.domain.errors import (
    BillingError,
    ConflictError,
    NotFoundError,
    CONCURRENT_MODIFICATION,
    INVALID_STATUS_TRANSITION,
)
from src.domain.invoice import InvoiceStatus
from .dtos import InvoiceResponseDTO

logger = logging.getLogger(__name__)


class SendInvoice:
    """
    Use Case: Mark a draft invoice as sent

    Business Rules:
    1. Only draft invoices can be sent
    2. Payments never move an invoice to sent; this is the only way in
    """

    def __init__(
        self,
        uow: UnitOfWork,
        invoice_repo: InvoiceRepository,
        item_repo: InvoiceItemRepository,
    ):
        self.uow = uow
        self.invoice_repo = invoice_repo
        self.item_repo = item_repo

    async def execute(self, invoice_id: int) -> Result[InvoiceResponseDTO]:
        try:
            invoice = await self.invoice_repo.get_by_id(invoice_id, for_update=True)
            if not invoice:
                raise NotFoundError("Invoice", invoice_id)

            if invoice.status != InvoiceStatus.DRAFT:
                raise ConflictError(
                    f"Only draft invoices can be sent; invoice {invoice.invoice_number} "
                    f"is {invoice.status.value}",
                    code=INVALID_STATUS_TRANSITION,
                )

            applied = await self.invoice_repo.update_guarded(
                invoice, invoice.paid_amount, {"status": InvoiceStatus.SENT}
            )
            if not applied:
                raise ConflictError(
                    f"Invoice {invoice.invoice_number} was modified concurrently",
                    code=CONCURRENT_MODIFICATION,
                )

            items = await self.item_repo.get_by_invoice_id(invoice_id)
            await self.uow.commit()

            logger.info(f"Invoice {invoice.invoice_number} sent")
            return Return.ok(InvoiceResponseDTO.from_entities(invoice, items))

        except BillingError as e:
            await self.uow.rollback()
            return Return.err(e.to_error())

        except Exception as e:
            await self.uow.rollback()
            return Return.err(
                Error(
                    code="SEND_INVOICE_FAILED",
                    message="Failed to send invoice",
                    reason=str(e),
                )
            )
