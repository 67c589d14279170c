"""CreateInvoice Use Case

Creates a draft invoice for a patient from a set of line items.
"""

import logging
from datetime import datetime, timedelta
from typing import List, Optional
from libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from src.app.services.patient_directory import PatientDirectory
from src.app.services.invoice_number_sequencer import InvoiceNumberSequencer
from src.app.repositories.billing_settings_repository import BillingSettingsRepository
from src.app.repositories.invoice_repository import InvoiceRepository
from src.app.repositories.invoice_item_repository import InvoiceItemRepository
from src.domain.currency import CurrencyRegistry
from src.domain.errors import BillingError, NotFoundError, ValidationError
from src.domain.invoice import Invoice, InvoiceStatus
from src.domain.invoice_item import InvoiceItem
from src.domain.invoice_totals import InvoiceTotals, InvoiceTotalsCalculator
from .dtos import CreateInvoiceCommandDTO, InvoiceResponseDTO

logger = logging.getLogger(__name__)


def build_invoice_items(invoice_id: int, totals: InvoiceTotals) -> List[InvoiceItem]:
    """Turn computed line totals into InvoiceItem entities for an invoice"""
    return [
        InvoiceItem(
            invoice_id=invoice_id,
            description=line.description,
            quantity=line.quantity,
            unit_price=line.unit_price,
            tax_rate=line.tax_rate,
            discount=line.discount,
            total_amount=line.total_amount,
            service_code=line.service_code,
            category=line.category,
        )
        for line in totals.lines
    ]


class CreateInvoice:
    """
    Use Case: Create draft invoice for a patient

    Business Rules:
    1. Patient must exist in the patient service
    2. Currency defaults to the billing settings currency and must be supported
    3. At least one line item is required
    4. Invoice number is allocated atomically (<prefix>-NNNN)
    5. issue_date defaults to today, due_date to issue_date + payment terms
    6. Invoice is created with status=draft, paid_amount=0, balance_amount=total_amount

    Flow:
    1. Validate patient
    2. Resolve currency and dates from billing settings
    3. Compute totals
    4. Allocate invoice number
    5. Persist invoice and items
    6. Commit transaction
    """

    def __init__(
        self,
        uow: UnitOfWork,
        settings_repo: BillingSettingsRepository,
        invoice_repo: InvoiceRepository,
        item_repo: InvoiceItemRepository,
        patient_directory: PatientDirectory,
        sequencer: Optional[InvoiceNumberSequencer] = None,
    ):
        self.uow = uow
        self.settings_repo = settings_repo
        self.invoice_repo = invoice_repo
        self.item_repo = item_repo
        self.patient_directory = patient_directory
        self.sequencer = sequencer or InvoiceNumberSequencer(settings_repo)

    async def execute(self, command: CreateInvoiceCommandDTO) -> Result[InvoiceResponseDTO]:
        """
        Execute invoice creation

        Args:
            command: CreateInvoiceCommandDTO with patient, items and optional currency/dates

        Returns:
            Result[InvoiceResponseDTO]: Success with invoice details or error
        """
        try:
            # Step 1: Validate patient
            patient_id = (command.patient_id or "").strip()
            if not patient_id:
                raise ValidationError("patient_id is required", code="INVALID_PATIENT_ID")

            if not await self.patient_directory.exists(patient_id):
                raise NotFoundError("Patient", patient_id)

            # Step 2: Resolve currency and dates
            settings = await self.settings_repo.get_or_create()
            currency = CurrencyRegistry.normalize(command.currency or settings.default_currency)

            issue_date = command.issue_date or datetime.utcnow().date()
            due_date = command.due_date or issue_date + timedelta(days=settings.payment_terms_days)
            if due_date < issue_date:
                raise ValidationError(
                    f"Due date {due_date} is before issue date {issue_date}",
                    code="INVALID_DUE_DATE",
                )

            # Step 3: Compute totals
            totals = InvoiceTotalsCalculator.compute(command.items, currency)

            # Step 4: Allocate invoice number
            invoice_number = await self.sequencer.next_number()

            # Step 5: Persist invoice and items
            invoice = Invoice(
                patient_id=patient_id,
                invoice_number=invoice_number,
                status=InvoiceStatus.DRAFT,
                currency=currency,
                subtotal=totals.subtotal,
                tax_amount=totals.tax_amount,
                discount_amount=totals.discount_amount,
                total_amount=totals.total_amount,
                paid_amount=CurrencyRegistry.quantize(0, currency),
                balance_amount=totals.total_amount,
                issue_date=issue_date,
                due_date=due_date,
                notes=command.notes,
                billing_address=command.billing_address,
                related_entity_type=command.related_entity_type,
                related_entity_id=command.related_entity_id,
                created_by=command.created_by,
            )
            invoice = await self.invoice_repo.create(invoice)
            items = await self.item_repo.create_many(build_invoice_items(invoice.id, totals))

            # Step 6: Commit transaction
            await self.uow.commit()

            logger.info(
                f"Created invoice {invoice.invoice_number} for patient {patient_id} "
                f"(total={invoice.total_amount} {currency})"
            )
            return Return.ok(InvoiceResponseDTO.from_entities(invoice, items))

        except BillingError as e:
            await self.uow.rollback()
            return Return.err(e.to_error())

        except Exception as e:
            await self.uow.rollback()
            logger.error(f"Invoice creation failed for patient {command.patient_id}: {e}")
            return Return.err(
                Error(
                    code="CREATE_INVOICE_FAILED",
                    message="Failed to create invoice",
                    reason=str(e),
                )
            )
