"""ListPayments Use Case

Lists payment ledger entries, optionally for a single invoice.
"""

from typing import Optional
from libs.result import Result, Return, Error
from src.app.repositories.invoice_repository import InvoiceRepository
from src.app.repositories.payment_repository import PaymentRepository
from src.domain.errors import BillingError, NotFoundError
from .dtos import PaymentDTO, PaymentListResponseDTO


class ListPayments:
    """
    Use Case: List payments

    Business Rules:
    1. Ordered by payment_date descending
    2. Filtering by an unknown invoice is a not-found error
    """

    def __init__(
        self,
        invoice_repo: InvoiceRepository,
        payment_repo: PaymentRepository,
    ):
        self.invoice_repo = invoice_repo
        self.payment_repo = payment_repo

    async def execute(self, invoice_id: Optional[int] = None) -> Result[PaymentListResponseDTO]:
        try:
            if invoice_id is not None:
                invoice = await self.invoice_repo.get_by_id(invoice_id)
                if not invoice:
                    raise NotFoundError("Invoice", invoice_id)

            payments = await self.payment_repo.list(invoice_id=invoice_id)

            return Return.ok(
                PaymentListResponseDTO(
                    payments=[PaymentDTO.from_entity(payment) for payment in payments],
                    total=len(payments),
                )
            )

        except BillingError as e:
            return Return.err(e.to_error())

        except Exception as e:
            return Return.err(
                Error(
                    code="LIST_PAYMENTS_FAILED",
                    message="Failed to list payments",
                    reason=str(e),
                )
            )
