"""ListInvoices Use Case

Pages through invoices with optional filters.
"""

import math
from libs.result import Result, Return, Error
from src.app.repositories.invoice_repository import InvoiceRepository
from src.domain.currency import CurrencyRegistry
from src.domain.errors import BillingError, ValidationError
from src.domain.invoice import InvoiceStatus
from .dtos import ListInvoicesQueryDTO, InvoiceListResponseDTO, InvoiceResponseDTO


class ListInvoices:
    """
    Use Case: List invoices

    Business Rules:
    1. Filters: patient_id, status, currency, issue date range (inclusive)
    2. Ordered by issue_date descending
    3. Limit is capped at 100 per page
    """

    def __init__(self, invoice_repo: InvoiceRepository):
        self.invoice_repo = invoice_repo

    async def execute(self, query: ListInvoicesQueryDTO) -> Result[InvoiceListResponseDTO]:
        """
        Execute invoice listing

        Args:
            query: ListInvoicesQueryDTO with filters and paging

        Returns:
            Result[InvoiceListResponseDTO]: Page of invoices with total count
        """
        try:
            status = None
            if query.status:
                try:
                    status = InvoiceStatus(query.status)
                except ValueError:
                    raise ValidationError(
                        f"Unknown invoice status: {query.status}",
                        code="INVALID_STATUS",
                    )

            currency = CurrencyRegistry.normalize(query.currency) if query.currency else None

            if query.start_date and query.end_date and query.start_date > query.end_date:
                raise ValidationError(
                    f"start_date {query.start_date} is after end_date {query.end_date}",
                    code="INVALID_DATE_RANGE",
                )

            invoices, total = await self.invoice_repo.list(
                patient_id=query.patient_id,
                status=status,
                currency=currency,
                start_date=query.start_date,
                end_date=query.end_date,
                limit=query.limit,
                offset=(query.page - 1) * query.limit,
            )

            return Return.ok(
                InvoiceListResponseDTO(
                    invoices=[InvoiceResponseDTO.from_entities(invoice) for invoice in invoices],
                    total=total,
                    page=query.page,
                    limit=query.limit,
                    total_pages=math.ceil(total / query.limit) if total else 0,
                )
            )

        except BillingError as e:
            return Return.err(e.to_error())

        except Exception as e:
            return Return.err(
                Error(
                    code="LIST_INVOICES_FAILED",
                    message="Failed to list invoices",
                    reason=str(e),
                )
            )
