"""Unit tests for ApplyPayment use case

Tests cover:
- Full payment settles the invoice (status=paid, balance=0)
- Partial payments keep the status and reduce the balance
- Overpayment, currency mismatch and precision are rejected without writes
- Terminal invoices reject payments
- Concurrent modification is reported as a conflict
"""

import pytest
from datetime import datetime
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

from src.app.use_cases.billing.apply_payment import ApplyPayment
from src.app.use_cases.billing.dtos import ApplyPaymentCommandDTO
from src.domain.invoice import InvoiceStatus
from src.domain.payment import PaymentMethod


@pytest.fixture
def mock_invoice_repo(guarded_update):
    repo = MagicMock()
    repo.update_guarded = AsyncMock(side_effect=guarded_update)
    return repo


@pytest.fixture
def mock_payment_repo():
    """Mock payment repository assigning ids on create"""
    repo = MagicMock()

    async def create(payment):
        payment.id = 10
        return payment

    repo.create = AsyncMock(side_effect=create)
    return repo


@pytest.fixture
def apply_payment_use_case(mock_uow, mock_invoice_repo, mock_payment_repo):
    return ApplyPayment(
        uow=mock_uow,
        invoice_repo=mock_invoice_repo,
        payment_repo=mock_payment_repo,
    )


def payment_command(amount, **overrides) -> ApplyPaymentCommandDTO:
    data = {
        "invoice_id": 1,
        "amount": Decimal(amount),
        "payment_method": PaymentMethod.CARD,
        "processed_by": "user_42",
        "payment_date": datetime(2024, 1, 10, 12, 0, 0),
    }
    data.update(overrides)
    return ApplyPaymentCommandDTO(**data)


@pytest.mark.asyncio
class TestApplyPaymentSuccess:
    async def test_full_payment_marks_invoice_paid(
        self, apply_payment_use_case, mock_invoice_repo, mock_payment_repo, mock_uow, make_invoice
    ):
        """
        Given: Invoice with total=220, balance=220
        When: A payment of 220 is applied
        Then: paid_amount=220, balance=0, status=paid, paid_date=payment_date
        """
        # Arrange
        mock_invoice_repo.get_by_id = AsyncMock(return_value=make_invoice(status=InvoiceStatus.SENT))

        # Act
        result = await apply_payment_use_case.execute(payment_command("220.00"))

        # Assert
        assert result.is_ok()
        invoice = result.value.invoice
        assert invoice.paid_amount == Decimal("220.00")
        assert invoice.balance_amount == Decimal("0.00")
        assert invoice.status == "paid"
        assert invoice.paid_date == datetime(2024, 1, 10, 12, 0, 0)

        payment = result.value.payment
        assert payment.id == 10
        assert payment.amount == Decimal("220.00")
        assert payment.currency == "USD"
        assert payment.status == "completed"
        assert payment.payment_method == "card"

        mock_invoice_repo.get_by_id.assert_called_once_with(1, for_update=True)
        mock_payment_repo.create.assert_called_once()
        mock_uow.commit.assert_called_once()

    async def test_full_payment_on_draft_invoice(
        self, apply_payment_use_case, mock_invoice_repo, make_invoice
    ):
        mock_invoice_repo.get_by_id = AsyncMock(return_value=make_invoice(status=InvoiceStatus.DRAFT))

        result = await apply_payment_use_case.execute(payment_command("220"))

        assert result.is_ok()
        assert result.value.invoice.status == "paid"

    async def test_partial_payment_keeps_status(
        self, apply_payment_use_case, mock_invoice_repo, make_invoice
    ):
        """
        Given: Draft invoice with balance=220
        When: A payment of 100 is applied
        Then: paid_amount=100, balance=120 and status stays draft
        """
        # Arrange
        mock_invoice_repo.get_by_id = AsyncMock(return_value=make_invoice(status=InvoiceStatus.DRAFT))

        # Act
        result = await apply_payment_use_case.execute(payment_command("100.00"))

        # Assert
        assert result.is_ok()
        invoice = result.value.invoice
        assert invoice.paid_amount == Decimal("100.00")
        assert invoice.balance_amount == Decimal("120.00")
        assert invoice.status == "draft"
        assert invoice.paid_date is None

    async def test_second_partial_payment_settles_invoice(
        self, apply_payment_use_case, mock_invoice_repo, make_invoice
    ):
        mock_invoice_repo.get_by_id = AsyncMock(
            return_value=make_invoice(status=InvoiceStatus.SENT, paid=Decimal("100.00"))
        )

        result = await apply_payment_use_case.execute(payment_command("120.00"))

        assert result.is_ok()
        assert result.value.invoice.paid_amount == Decimal("220.00")
        assert result.value.invoice.status == "paid"

    async def test_currency_defaults_to_invoice_currency(
        self, apply_payment_use_case, mock_invoice_repo, mock_payment_repo, make_invoice
    ):
        mock_invoice_repo.get_by_id = AsyncMock(return_value=make_invoice(currency="EUR"))

        result = await apply_payment_use_case.execute(payment_command("50.00"))

        assert result.is_ok()
        created = mock_payment_repo.create.call_args.args[0]
        assert created.currency == "EUR"


@pytest.mark.asyncio
class TestApplyPaymentValidation:
    async def test_overpayment_rejected_without_writes(
        self, apply_payment_use_case, mock_invoice_repo, mock_payment_repo, mock_uow, make_invoice
    ):
        """
        Given: Invoice with balance=220
        When: A payment of 221 is applied
        Then: PAYMENT_EXCEEDS_BALANCE and neither payment nor invoice is written
        """
        # Arrange
        mock_invoice_repo.get_by_id = AsyncMock(return_value=make_invoice())

        # Act
        result = await apply_payment_use_case.execute(payment_command("221.00"))

        # Assert
        assert result.is_err()
        assert result.error.code == "PAYMENT_EXCEEDS_BALANCE"
        mock_payment_repo.create.assert_not_called()
        mock_invoice_repo.update_guarded.assert_not_called()
        mock_uow.commit.assert_not_called()
        mock_uow.rollback.assert_called_once()

    async def test_currency_mismatch_rejected(
        self, apply_payment_use_case, mock_invoice_repo, mock_payment_repo, make_invoice
    ):
        mock_invoice_repo.get_by_id = AsyncMock(return_value=make_invoice(currency="USD"))

        result = await apply_payment_use_case.execute(payment_command("10.00", currency="EUR"))

        assert result.is_err()
        assert result.error.code == "CURRENCY_MISMATCH"
        mock_payment_repo.create.assert_not_called()

    async def test_unknown_currency_rejected(
        self, apply_payment_use_case, mock_invoice_repo, make_invoice
    ):
        mock_invoice_repo.get_by_id = AsyncMock(return_value=make_invoice())

        result = await apply_payment_use_case.execute(payment_command("10.00", currency="XYZ"))

        assert result.is_err()
        assert result.error.code == "INVALID_CURRENCY"

    async def test_excess_precision_rejected(
        self, apply_payment_use_case, mock_invoice_repo, mock_payment_repo, make_invoice
    ):
        mock_invoice_repo.get_by_id = AsyncMock(return_value=make_invoice())

        result = await apply_payment_use_case.execute(payment_command("10.005"))

        assert result.is_err()
        assert result.error.code == "INVALID_PAYMENT_AMOUNT"
        mock_payment_repo.create.assert_not_called()

    async def test_zero_amount_rejected(
        self, apply_payment_use_case, mock_invoice_repo, mock_payment_repo, make_invoice
    ):
        mock_invoice_repo.get_by_id = AsyncMock(return_value=make_invoice())

        result = await apply_payment_use_case.execute(payment_command("0"))

        assert result.is_err()
        assert result.error.code == "INVALID_PAYMENT_AMOUNT"
        mock_payment_repo.create.assert_not_called()

    async def test_invoice_not_found(self, apply_payment_use_case, mock_invoice_repo):
        mock_invoice_repo.get_by_id = AsyncMock(return_value=None)

        result = await apply_payment_use_case.execute(payment_command("10.00", invoice_id=999))

        assert result.is_err()
        assert result.error.code == "INVOICE_NOT_FOUND"

    async def test_paid_invoice_rejected(
        self, apply_payment_use_case, mock_invoice_repo, mock_payment_repo, make_invoice
    ):
        mock_invoice_repo.get_by_id = AsyncMock(
            return_value=make_invoice(status=InvoiceStatus.PAID, paid=Decimal("220.00"))
        )

        result = await apply_payment_use_case.execute(payment_command("1.00"))

        assert result.is_err()
        assert result.error.code == "INVOICE_ALREADY_PAID"
        mock_payment_repo.create.assert_not_called()

    async def test_cancelled_invoice_rejected(
        self, apply_payment_use_case, mock_invoice_repo, make_invoice
    ):
        mock_invoice_repo.get_by_id = AsyncMock(return_value=make_invoice(status=InvoiceStatus.CANCELLED))

        result = await apply_payment_use_case.execute(payment_command("1.00"))

        assert result.is_err()
        assert result.error.code == "INVOICE_NOT_MUTABLE"


@pytest.mark.asyncio
class TestApplyPaymentConcurrency:
    async def test_guarded_update_failure_is_conflict(
        self, apply_payment_use_case, mock_invoice_repo, mock_uow, make_invoice
    ):
        """
        Given: Another transaction changed paid_amount after the invoice was read
        When: The guarded update affects no row
        Then: CONCURRENT_MODIFICATION is returned and the transaction is rolled back
        """
        # Arrange
        mock_invoice_repo.get_by_id = AsyncMock(return_value=make_invoice())
        mock_invoice_repo.update_guarded = AsyncMock(return_value=False)

        # Act
        result = await apply_payment_use_case.execute(payment_command("100.00"))

        # Assert
        assert result.is_err()
        assert result.error.code == "CONCURRENT_MODIFICATION"
        mock_uow.rollback.assert_called_once()
        mock_uow.commit.assert_not_called()

    async def test_unexpected_error_returns_failure(
        self, apply_payment_use_case, mock_invoice_repo, mock_payment_repo, make_invoice
    ):
        mock_invoice_repo.get_by_id = AsyncMock(return_value=make_invoice())
        mock_payment_repo.create = AsyncMock(side_effect=Exception("disk I/O error"))

        result = await apply_payment_use_case.execute(payment_command("100.00"))

        assert result.is_err()
        assert result.error.code == "APPLY_PAYMENT_FAILED"
        assert "disk I/O error" in result.error.reason
