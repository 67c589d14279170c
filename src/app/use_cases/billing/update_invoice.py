"""UpdateInvoice Use Case

Patches a draft or sent invoice, optionally replacing its item set.
"""

import logging
from datetime import datetime
from typing import Any, Dict
from libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from src.app.repositories.invoice_repository import InvoiceRepository
from src.app.repositories.invoice_item_repository import InvoiceItemRepository
from src.domain.currency import CurrencyRegistry
from src.domain.errors import (
    BillingError,
    ConflictError,
    NotFoundError,
    ValidationError,
    CONCURRENT_MODIFICATION,
    INVOICE_HAS_PAYMENTS,
    NEGATIVE_BALANCE,
)
from src.domain.invoice import InvoiceStatus
from src.domain.invoice_totals import InvoiceTotalsCalculator
from .create_invoice import build_invoice_items
from .dtos import UpdateInvoiceCommandDTO, InvoiceResponseDTO

logger = logging.getLogger(__name__)

PLAIN_FIELDS = ("notes", "billing_address", "related_entity_type", "related_entity_id")


class UpdateInvoice:
    """
    Use Case: Update an invoice

    Business Rules:
    1. Paid and cancelled invoices cannot be modified
    2. Passing items deletes the existing item set and recreates it
    3. Totals are recomputed and balance_amount = new total - paid_amount
    4. A new total below paid_amount is rejected
    5. Currency cannot change once payments exist
    6. A status change must be a manual transition (sent or cancelled)
    7. due_date must not precede issue_date

    The item replacement and the invoice row update share one transaction.
    The row update is guarded on paid_amount so a concurrent payment makes
    this update fail instead of being overwritten.
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

    async def execute(self, command: UpdateInvoiceCommandDTO) -> Result[InvoiceResponseDTO]:
        """
        Execute invoice update

        Args:
            command: UpdateInvoiceCommandDTO; only explicitly set fields are applied

        Returns:
            Result[InvoiceResponseDTO]: Updated invoice with its items or error
        """
        fields = command.model_fields_set

        try:
            # Step 1: Load and lock invoice
            invoice = await self.invoice_repo.get_by_id(command.invoice_id, for_update=True)
            if not invoice:
                raise NotFoundError("Invoice", command.invoice_id)

            invoice.ensure_mutable()
            expected_paid = invoice.paid_amount
            values: Dict[str, Any] = {}

            # Step 2: Currency
            currency = invoice.currency
            if "currency" in fields and command.currency is not None:
                currency = CurrencyRegistry.normalize(command.currency)
                if currency != invoice.currency:
                    if invoice.paid_amount > 0:
                        raise ConflictError(
                            f"Cannot change currency of invoice {invoice.invoice_number} "
                            f"after payments were recorded",
                            code=INVOICE_HAS_PAYMENTS,
                        )
                    values["currency"] = currency

            # Step 3: Dates
            issue_date = command.issue_date if "issue_date" in fields and command.issue_date else invoice.issue_date
            due_date = command.due_date if "due_date" in fields and command.due_date else invoice.due_date
            if due_date < issue_date:
                raise ValidationError(
                    f"Due date {due_date} is before issue date {issue_date}",
                    code="INVALID_DUE_DATE",
                )
            if issue_date != invoice.issue_date:
                values["issue_date"] = issue_date
            if due_date != invoice.due_date:
                values["due_date"] = due_date

            # Step 4: Status
            if "status" in fields and command.status is not None:
                try:
                    target = InvoiceStatus(command.status)
                except ValueError:
                    raise ValidationError(
                        f"Unknown invoice status: {command.status}",
                        code="INVALID_STATUS",
                    )
                invoice.ensure_transition(target)
                if target != invoice.status:
                    values["status"] = target

            for name in PLAIN_FIELDS:
                if name in fields:
                    values[name] = getattr(command, name)

            # Step 5: Recompute totals when items or currency change
            replace_items = "items" in fields and command.items is not None
            totals = None
            if replace_items:
                totals = InvoiceTotalsCalculator.compute(command.items, currency)
            elif "currency" in values:
                existing_items = await self.item_repo.get_by_invoice_id(invoice.id)
                totals = InvoiceTotalsCalculator.compute(existing_items, currency)
                replace_items = True

            if totals is not None:
                if totals.total_amount < invoice.paid_amount:
                    raise ConflictError(
                        f"New total {totals.total_amount} is below paid amount "
                        f"{invoice.paid_amount} for invoice {invoice.invoice_number}",
                        code=NEGATIVE_BALANCE,
                        reason="Reducing an invoice below collected payments would leave a negative balance",
                    )
                balance = totals.total_amount - invoice.paid_amount
                values.update(
                    subtotal=totals.subtotal,
                    tax_amount=totals.tax_amount,
                    discount_amount=totals.discount_amount,
                    total_amount=totals.total_amount,
                    balance_amount=balance,
                )
                # A reduced total fully covered by earlier payments settles the invoice
                if balance == 0 and invoice.paid_amount > 0 and values.get("status") != InvoiceStatus.CANCELLED:
                    values["status"] = InvoiceStatus.PAID

            # Step 6: Replace items and write invoice row
            if replace_items:
                await self.item_repo.delete_by_invoice_id(invoice.id)
                await self.item_repo.create_many(build_invoice_items(invoice.id, totals))

            if values:
                if values.get("status") == InvoiceStatus.PAID:
                    values["paid_date"] = invoice.paid_date or datetime.utcnow()
                applied = await self.invoice_repo.update_guarded(invoice, expected_paid, values)
                if not applied:
                    raise ConflictError(
                        f"Invoice {invoice.invoice_number} was modified concurrently",
                        code=CONCURRENT_MODIFICATION,
                    )

            items = await self.item_repo.get_by_invoice_id(invoice.id)

            # Step 7: Commit transaction
            await self.uow.commit()

            logger.info(f"Updated invoice {invoice.invoice_number}: {sorted(values)}")
            return Return.ok(InvoiceResponseDTO.from_entities(invoice, items))

        except BillingError as e:
            await self.uow.rollback()
            return Return.err(e.to_error())

        except Exception as e:
            await self.uow.rollback()
            logger.error(f"Invoice update failed for invoice {command.invoice_id}: {e}")
            return Return.err(
                Error(
                    code="UPDATE_INVOICE_FAILED",
                    message="Failed to update invoice",
                    reason=str(e),
                )
            )
