"""Unit tests for read-side use cases

Tests cover GetInvoice, ListInvoices, GetPayment, ListPayments and
GenerateInvoicePdf.
"""

import base64
import pytest
from datetime import date, datetime
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

from src.app.use_cases.billing.dtos import ListInvoicesQueryDTO
from src.app.use_cases.billing.generate_invoice_pdf import GenerateInvoicePdf
from src.app.use_cases.billing.get_invoice import GetInvoice
from src.app.use_cases.billing.get_payment import GetPayment
from src.app.use_cases.billing.list_invoices import ListInvoices
from src.app.use_cases.billing.list_payments import ListPayments
from src.domain.invoice import InvoiceStatus
from src.domain.payment import Payment, PaymentMethod, PaymentStatus


@pytest.fixture
def sample_payment():
    return Payment(
        id=5,
        invoice_id=1,
        amount=Decimal("100.00"),
        currency="USD",
        payment_method=PaymentMethod.CASH,
        status=PaymentStatus.COMPLETED,
        payment_date=datetime(2024, 1, 5, 10, 0, 0),
        processed_by="user_42",
        created_at=datetime(2024, 1, 5, 10, 0, 0),
    )


@pytest.fixture
def mock_invoice_repo():
    return MagicMock()


@pytest.fixture
def mock_item_repo():
    repo = MagicMock()
    repo.get_by_invoice_id = AsyncMock(return_value=[])
    return repo


@pytest.fixture
def mock_payment_repo(sample_payment):
    repo = MagicMock()
    repo.list = AsyncMock(return_value=[sample_payment])
    repo.get_by_id = AsyncMock(return_value=sample_payment)
    return repo


@pytest.mark.asyncio
class TestGetInvoice:
    async def test_invoice_with_payments(
        self, mock_invoice_repo, mock_item_repo, mock_payment_repo, make_invoice
    ):
        mock_invoice_repo.get_by_id = AsyncMock(
            return_value=make_invoice(status=InvoiceStatus.SENT, paid=Decimal("100.00"))
        )
        use_case = GetInvoice(mock_invoice_repo, mock_item_repo, mock_payment_repo)

        result = await use_case.execute(1)

        assert result.is_ok()
        assert result.value.balance_amount == Decimal("120.00")
        assert result.value.formatted_balance == "$120.00"
        assert [p.id for p in result.value.payments] == [5]
        mock_payment_repo.list.assert_called_once_with(invoice_id=1)

    async def test_missing_invoice(self, mock_invoice_repo, mock_item_repo, mock_payment_repo):
        mock_invoice_repo.get_by_id = AsyncMock(return_value=None)
        use_case = GetInvoice(mock_invoice_repo, mock_item_repo, mock_payment_repo)

        result = await use_case.execute(99)

        assert result.is_err()
        assert result.error.code == "INVOICE_NOT_FOUND"


@pytest.mark.asyncio
class TestListInvoices:
    async def test_filters_and_paging_forwarded(self, mock_invoice_repo, make_invoice):
        """
        Given: 45 matching invoices
        When: Page 2 with limit 20 is requested for sent USD invoices
        Then: The repository receives offset 20 and total_pages is 3
        """
        # Arrange
        mock_invoice_repo.list = AsyncMock(return_value=([make_invoice(status=InvoiceStatus.SENT)], 45))
        query = ListInvoicesQueryDTO(
            patient_id="patient_123",
            status="sent",
            currency="usd",
            start_date=date(2024, 1, 1),
            end_date=date(2024, 1, 31),
            page=2,
            limit=20,
        )

        # Act
        result = await ListInvoices(mock_invoice_repo).execute(query)

        # Assert
        assert result.is_ok()
        assert result.value.total == 45
        assert result.value.total_pages == 3
        assert result.value.page == 2
        mock_invoice_repo.list.assert_called_once_with(
            patient_id="patient_123",
            status=InvoiceStatus.SENT,
            currency="USD",
            start_date=date(2024, 1, 1),
            end_date=date(2024, 1, 31),
            limit=20,
            offset=20,
        )

    async def test_empty_result(self, mock_invoice_repo):
        mock_invoice_repo.list = AsyncMock(return_value=([], 0))

        result = await ListInvoices(mock_invoice_repo).execute(ListInvoicesQueryDTO())

        assert result.is_ok()
        assert result.value.invoices == []
        assert result.value.total_pages == 0

    async def test_unknown_status_rejected(self, mock_invoice_repo):
        mock_invoice_repo.list = AsyncMock()

        result = await ListInvoices(mock_invoice_repo).execute(ListInvoicesQueryDTO(status="overdue"))

        assert result.is_err()
        assert result.error.code == "INVALID_STATUS"
        mock_invoice_repo.list.assert_not_called()

    async def test_inverted_date_range_rejected(self, mock_invoice_repo):
        mock_invoice_repo.list = AsyncMock()
        query = ListInvoicesQueryDTO(start_date=date(2024, 2, 1), end_date=date(2024, 1, 1))

        result = await ListInvoices(mock_invoice_repo).execute(query)

        assert result.is_err()
        assert result.error.code == "INVALID_DATE_RANGE"


@pytest.mark.asyncio
class TestPaymentQueries:
    async def test_get_payment(self, mock_payment_repo):
        result = await GetPayment(mock_payment_repo).execute(5)

        assert result.is_ok()
        assert result.value.amount == Decimal("100.00")
        assert result.value.payment_method == "cash"

    async def test_get_missing_payment(self, mock_payment_repo):
        mock_payment_repo.get_by_id = AsyncMock(return_value=None)

        result = await GetPayment(mock_payment_repo).execute(6)

        assert result.is_err()
        assert result.error.code == "PAYMENT_NOT_FOUND"

    async def test_list_payments_for_invoice(self, mock_invoice_repo, mock_payment_repo, make_invoice):
        mock_invoice_repo.get_by_id = AsyncMock(return_value=make_invoice())

        result = await ListPayments(mock_invoice_repo, mock_payment_repo).execute(invoice_id=1)

        assert result.is_ok()
        assert result.value.total == 1
        mock_payment_repo.list.assert_called_once_with(invoice_id=1)

    async def test_list_payments_for_unknown_invoice(self, mock_invoice_repo, mock_payment_repo):
        mock_invoice_repo.get_by_id = AsyncMock(return_value=None)

        result = await ListPayments(mock_invoice_repo, mock_payment_repo).execute(invoice_id=3)

        assert result.is_err()
        assert result.error.code == "INVOICE_NOT_FOUND"
        mock_payment_repo.list.assert_not_called()


@pytest.mark.asyncio
class TestGenerateInvoicePdf:
    async def test_pdf_is_base64_encoded(
        self, mock_invoice_repo, mock_item_repo, mock_payment_repo, make_invoice, sample_payment
    ):
        # Arrange
        invoice = make_invoice()
        mock_invoice_repo.get_by_id = AsyncMock(return_value=invoice)
        pdf_service = MagicMock()
        pdf_service.generate_invoice = MagicMock(return_value=b"%PDF-1.4 test")
        use_case = GenerateInvoicePdf(
            mock_invoice_repo,
            mock_item_repo,
            mock_payment_repo,
            pdf_service,
            company_name="Lakeside Clinic",
        )

        # Act
        result = await use_case.execute(1)

        # Assert
        assert result.is_ok()
        assert base64.b64decode(result.value.pdf_base64) == b"%PDF-1.4 test"
        assert result.value.invoice_number == "INV-0001"
        pdf_service.generate_invoice.assert_called_once_with(
            invoice=invoice,
            items=[],
            payments=[sample_payment],
            company_name="Lakeside Clinic",
            company_address="",
        )

    async def test_missing_invoice(self, mock_invoice_repo, mock_item_repo, mock_payment_repo):
        mock_invoice_repo.get_by_id = AsyncMock(return_value=None)
        use_case = GenerateInvoicePdf(mock_invoice_repo, mock_item_repo, mock_payment_repo, MagicMock())

        result = await use_case.execute(1)

        assert result.is_err()
        assert result.error.code == "INVOICE_NOT_FOUND"
