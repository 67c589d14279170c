"""ApplyPayment Use Case

Records a payment against an invoice and updates its balance atomically.
"""

import logging
from datetime import datetime
from decimal import Decimal, InvalidOperation
from libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from src.app.repositories.invoice_repository import InvoiceRepository
from src.app.repositories.payment_repository import PaymentRepository
from src.domain.currency import CurrencyRegistry
from src.domain.errors import (
    BillingError,
    ConflictError,
    NotFoundError,
    ValidationError,
    CONCURRENT_MODIFICATION,
    INVOICE_ALREADY_PAID,
    INVOICE_NOT_MUTABLE,
)
from src.domain.invoice import InvoiceStatus
from src.domain.payment import Payment, PaymentStatus
from .dtos import ApplyPaymentCommandDTO, PaymentDTO, PaymentResponseDTO, InvoiceResponseDTO

logger = logging.getLogger(__name__)


class ApplyPayment:
    """
    Use Case: Apply a payment to an invoice

    Business Rules:
    1. Invoice must exist and be draft or sent
    2. Currency defaults to the invoice currency and must match it
    3. 0 < amount <= balance_amount, at most the currency's minor-unit precision
    4. paid_amount += amount, balance_amount = total_amount - paid_amount
    5. When the balance reaches zero: status=paid, paid_date=payment_date
    6. A partial payment leaves the status unchanged

    Flow:
    1. Lock invoice row (SELECT FOR UPDATE)
    2. Validate status, currency and amount (no writes on failure)
    3. Insert payment ledger entry
    4. Update invoice guarded on the paid_amount read in step 1
    5. Commit payment and invoice together
    """

    def __init__(
        self,
        uow: UnitOfWork,
        invoice_repo: InvoiceRepository,
        payment_repo: PaymentRepository,
    ):
        self.uow = uow
        self.invoice_repo = invoice_repo
        self.payment_repo = payment_repo

    async def execute(self, command: ApplyPaymentCommandDTO) -> Result[PaymentResponseDTO]:
        """
        Execute payment application

        Args:
            command: ApplyPaymentCommandDTO with invoice, amount and method

        Returns:
            Result[PaymentResponseDTO]: Recorded payment and updated invoice, or error
        """
        try:
            # Step 1: Lock invoice
            invoice = await self.invoice_repo.get_by_id(command.invoice_id, for_update=True)
            if not invoice:
                raise NotFoundError("Invoice", command.invoice_id)

            # Step 2: Validate
            if invoice.status == InvoiceStatus.PAID:
                raise ConflictError(
                    f"Invoice {invoice.invoice_number} is already paid",
                    code=INVOICE_ALREADY_PAID,
                )
            if invoice.is_terminal:
                raise ConflictError(
                    f"Cannot apply payment to {invoice.status.value} invoice {invoice.invoice_number}",
                    code=INVOICE_NOT_MUTABLE,
                )

            currency = CurrencyRegistry.normalize(command.currency or invoice.currency)
            if currency != invoice.currency:
                raise ValidationError(
                    f"Payment currency {currency} does not match invoice currency {invoice.currency}",
                    code="CURRENCY_MISMATCH",
                )

            amount = self._validate_amount(command.amount, currency, invoice.balance_amount)

            # Step 3: Insert payment
            payment_date = command.payment_date or datetime.utcnow()
            payment = await self.payment_repo.create(
                Payment(
                    invoice_id=invoice.id,
                    amount=amount,
                    currency=currency,
                    payment_method=command.payment_method,
                    status=PaymentStatus.COMPLETED,
                    transaction_id=command.transaction_id,
                    payment_date=payment_date,
                    notes=command.notes,
                    processed_by=command.processed_by,
                )
            )

            # Step 4: Update invoice balance
            expected_paid = invoice.paid_amount
            paid_amount = expected_paid + amount
            balance = invoice.total_amount - paid_amount
            values = {"paid_amount": paid_amount, "balance_amount": balance}
            if balance <= 0:
                values.update(
                    status=InvoiceStatus.PAID,
                    balance_amount=CurrencyRegistry.quantize(0, currency),
                    paid_date=payment_date,
                )

            applied = await self.invoice_repo.update_guarded(invoice, expected_paid, values)
            if not applied:
                raise ConflictError(
                    f"Invoice {invoice.invoice_number} was modified concurrently",
                    code=CONCURRENT_MODIFICATION,
                    reason="Another payment or update changed the balance; retry with the current balance",
                )

            # Step 5: Commit
            await self.uow.commit()

            logger.info(
                f"Applied payment {payment.id} of {amount} {currency} to invoice "
                f"{invoice.invoice_number} (balance={invoice.balance_amount}, status={invoice.status.value})"
            )
            return Return.ok(
                PaymentResponseDTO(
                    payment=PaymentDTO.from_entity(payment),
                    invoice=InvoiceResponseDTO.from_entities(invoice),
                )
            )

        except BillingError as e:
            await self.uow.rollback()
            return Return.err(e.to_error())

        except Exception as e:
            await self.uow.rollback()
            logger.error(f"Payment failed for invoice {command.invoice_id}: {e}")
            return Return.err(
                Error(
                    code="APPLY_PAYMENT_FAILED",
                    message="Failed to apply payment",
                    reason=str(e),
                )
            )

    @staticmethod
    def _validate_amount(raw_amount, currency: str, balance: Decimal) -> Decimal:
        try:
            amount = Decimal(str(raw_amount))
        except (InvalidOperation, ValueError):
            raise ValidationError(f"Invalid payment amount: {raw_amount}", code="INVALID_PAYMENT_AMOUNT")

        if not amount.is_finite() or amount <= 0:
            raise ValidationError(
                "Payment amount must be greater than 0",
                code="INVALID_PAYMENT_AMOUNT",
            )
        if not CurrencyRegistry.has_valid_precision(amount, currency):
            raise ValidationError(
                f"Payment amount {amount} has more precision than {currency} allows",
                code="INVALID_PAYMENT_AMOUNT",
            )
        if amount > balance:
            raise ValidationError(
                f"Payment amount {amount} exceeds outstanding balance {balance}",
                code="PAYMENT_EXCEEDS_BALANCE",
            )
        return CurrencyRegistry.quantize(amount, currency)
