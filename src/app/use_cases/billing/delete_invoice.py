"""DeleteInvoice Use Case

Removes an unpaid invoice together with its items.
"""

import logging
from libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from src.app.repositories.invoice_repository import InvoiceRepository
from src.app.repositories.invoice_item_repository import InvoiceItemRepository
from src.app.repositories.payment_repository import PaymentRepository
from src.domain.errors import (
    BillingError,
    ConflictError,
    NotFoundError,
    INVOICE_ALREADY_PAID,
    INVOICE_HAS_PAYMENTS,
)
from src.domain.invoice import InvoiceStatus
from .dtos import DeleteInvoiceResponseDTO

logger = logging.getLogger(__name__)


class DeleteInvoice:
    """
    Use Case: Delete an invoice

    Business Rules:
    1. Paid invoices cannot be deleted
    2. Invoices with recorded payments cannot be deleted (payments are never removed)
    3. All items of the invoice are removed with it
    """

    def __init__(
        self,
        uow: UnitOfWork,
        invoice_repo: InvoiceRepository,
        item_repo: InvoiceItemRepository,
        payment_repo: PaymentRepository,
    ):
        self.uow = uow
        self.invoice_repo = invoice_repo
        self.item_repo = item_repo
        self.payment_repo = payment_repo

    async def execute(self, invoice_id: int) -> Result[DeleteInvoiceResponseDTO]:
        try:
            invoice = await self.invoice_repo.get_by_id(invoice_id, for_update=True)
            if not invoice:
                raise NotFoundError("Invoice", invoice_id)

            if invoice.status == InvoiceStatus.PAID:
                raise ConflictError(
                    f"Cannot delete paid invoice {invoice.invoice_number}",
                    code=INVOICE_ALREADY_PAID,
                )

            if invoice.paid_amount > 0 or await self.payment_repo.count_by_invoice_id(invoice_id) > 0:
                raise ConflictError(
                    f"Cannot delete invoice {invoice.invoice_number} with recorded payments",
                    code=INVOICE_HAS_PAYMENTS,
                )

            deleted_items = await self.item_repo.delete_by_invoice_id(invoice_id)
            await self.invoice_repo.delete(invoice)

            await self.uow.commit()

            logger.info(f"Deleted invoice {invoice.invoice_number} and {deleted_items} items")
            return Return.ok(
                DeleteInvoiceResponseDTO(
                    invoice_id=invoice_id,
                    invoice_number=invoice.invoice_number,
                    deleted_items=deleted_items,
                )
            )

        except BillingError as e:
            await self.uow.rollback()
            return Return.err(e.to_error())

        except Exception as e:
            await self.uow.rollback()
            logger.error(f"Invoice deletion failed for invoice {invoice_id}: {e}")
            return Return.err(
                Error(
                    code="DELETE_INVOICE_FAILED",
                    message="Failed to delete invoice",
                    reason=str(e),
                )
            )
