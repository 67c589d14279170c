"""ReconcileInvoices Use Case

Checks stored invoice balances against the payment ledger and the totals
identities to detect discrepancies.
"""

import logging
import time
from datetime import datetime
from decimal import Decimal
from typing import List
from libs.result import Result, Return, Error
from src.app.repositories.invoice_repository import InvoiceRepository
from src.app.repositories.payment_repository import PaymentRepository
from src.domain.invoice import Invoice, InvoiceStatus
from .dtos import InvoiceDiscrepancyDTO, ReconciliationResultDTO

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


class ReconcileInvoices:
    """
    Use Case: Reconcile invoices against payments

    Business Rules:
    1. paid_amount == sum of completed payments
    2. total_amount == subtotal - discount_amount + tax_amount
    3. balance_amount == total_amount - paid_amount
    4. balance_amount >= 0
    5. status == paid implies balance_amount == 0
    6. Does NOT modify any data (read-only reconciliation)
    """

    def __init__(
        self,
        invoice_repo: InvoiceRepository,
        payment_repo: PaymentRepository,
    ):
        self.invoice_repo = invoice_repo
        self.payment_repo = payment_repo

    async def execute(self) -> Result[ReconciliationResultDTO]:
        """
        Execute invoice reconciliation

        Returns:
            Result[ReconciliationResultDTO]: Reconciliation result with any discrepancies
        """
        start_time = time.time()
        reconciliation_time = datetime.utcnow()

        try:
            logger.info("Starting invoice reconciliation")

            # Step 1: Load invoices and payment sums
            invoices = await self.invoice_repo.get_all()
            payment_sums = await self.payment_repo.sum_by_invoice()

            logger.info(f"Found {len(invoices)} invoices to reconcile")

            # Step 2: Check each invoice
            discrepancies: List[InvoiceDiscrepancyDTO] = []
            for invoice in invoices:
                found = self._check(invoice, payment_sums.get(invoice.id, ZERO))
                for discrepancy in found:
                    logger.warning(
                        f"Discrepancy on invoice {invoice.invoice_number} "
                        f"(invoice_id={invoice.id}): check={discrepancy.check}, "
                        f"expected={discrepancy.expected}, actual={discrepancy.actual}"
                    )
                discrepancies.extend(found)

            # Step 3: Build response
            execution_time_ms = int((time.time() - start_time) * 1000)

            response = ReconciliationResultDTO(
                total_invoices_checked=len(invoices),
                discrepancies_found=len(discrepancies),
                discrepancies=discrepancies,
                reconciliation_time=reconciliation_time,
                execution_time_ms=execution_time_ms,
            )

            if discrepancies:
                logger.warning(
                    f"Reconciliation complete. Found {len(discrepancies)} discrepancies "
                    f"across {len(invoices)} invoices in {execution_time_ms}ms"
                )
            else:
                logger.info(
                    f"Reconciliation complete. All {len(invoices)} invoices balanced "
                    f"in {execution_time_ms}ms"
                )

            return Return.ok(response)

        except Exception as e:
            logger.error(f"Invoice reconciliation failed: {e}")
            return Return.err(
                Error(
                    code="RECONCILIATION_FAILED",
                    message="Failed to reconcile invoices",
                    reason=str(e),
                )
            )

    @staticmethod
    def _check(invoice: Invoice, payments_total: Decimal) -> List[InvoiceDiscrepancyDTO]:
        def discrepancy(check: str, expected: Decimal, actual: Decimal) -> InvoiceDiscrepancyDTO:
            return InvoiceDiscrepancyDTO(
                invoice_id=invoice.id,
                invoice_number=invoice.invoice_number,
                check=check,
                expected=expected,
                actual=actual,
            )

        found = []
        if invoice.paid_amount != payments_total:
            found.append(discrepancy("paid_amount", payments_total, invoice.paid_amount))

        expected_total = invoice.subtotal - invoice.discount_amount + invoice.tax_amount
        if invoice.total_amount != expected_total:
            found.append(discrepancy("total_amount", expected_total, invoice.total_amount))

        expected_balance = max(invoice.total_amount - invoice.paid_amount, ZERO)
        if invoice.balance_amount != expected_balance:
            found.append(discrepancy("balance_amount", expected_balance, invoice.balance_amount))

        if invoice.balance_amount < 0:
            found.append(discrepancy("negative_balance", ZERO, invoice.balance_amount))

        if invoice.status == InvoiceStatus.PAID and invoice.balance_amount != 0:
            found.append(discrepancy("paid_status", ZERO, invoice.balance_amount))

        return found
