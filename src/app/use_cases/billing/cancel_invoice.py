"""CancelInvoice Use Case

Explicit draft|sent -> cancelled transition.
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
)
from src.domain.invoice import InvoiceStatus
from .dtos import InvoiceResponseDTO

logger = logging.getLogger(__name__)


class CancelInvoice:
    """
    Use Case: Cancel an invoice

    Business Rules:
    1. Draft and sent invoices can be cancelled
    2. Paid and cancelled invoices are terminal
    3. A cancelled invoice accepts no further payments or changes
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

            invoice.ensure_transition(InvoiceStatus.CANCELLED)

            applied = await self.invoice_repo.update_guarded(
                invoice, invoice.paid_amount, {"status": InvoiceStatus.CANCELLED}
            )
            if not applied:
                raise ConflictError(
                    f"Invoice {invoice.invoice_number} was modified concurrently",
                    code=CONCURRENT_MODIFICATION,
                )

            items = await self.item_repo.get_by_invoice_id(invoice_id)
            await self.uow.commit()

            if invoice.paid_amount > 0:
                logger.warning(
                    f"Invoice {invoice.invoice_number} cancelled with "
                    f"{invoice.paid_amount} {invoice.currency} already collected"
                )
            else:
                logger.info(f"Invoice {invoice.invoice_number} cancelled")
            return Return.ok(InvoiceResponseDTO.from_entities(invoice, items))

        except BillingError as e:
            await self.uow.rollback()
            return Return.err(e.to_error())

        except Exception as e:
            await self.uow.rollback()
            return Return.err(
                Error(
                    code="CANCEL_INVOICE_FAILED",
                    message="Failed to cancel invoice",
                    reason=str(e),
                )
            )
