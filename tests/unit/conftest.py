import pytest
from unittest.mock import AsyncMock, MagicMock


@pytest.fixture
def mock_uow():
    """Mock unit of work"""
    uow = MagicMock()
    uow.__aenter__ = AsyncMock(return_value=uow)
    uow.__aexit__ = AsyncMock(return_value=False)
    uow.commit = AsyncMock()
    uow.rollback = AsyncMock()
    return uow


@pytest.fixture
def make_invoice():
    """Factory for Invoice entities with consistent totals"""
    from datetime import date, datetime
    from decimal import Decimal
    from src.domain.invoice import Invoice, InvoiceStatus

    def _make(
        status=InvoiceStatus.DRAFT,
        total=Decimal("220.00"),
        paid=Decimal("0.00"),
        currency="USD",
        invoice_id=1,
    ):
        return Invoice(
            id=invoice_id,
            patient_id="patient_123",
            invoice_number=f"INV-{invoice_id:04d}",
            status=status,
            currency=currency,
            subtotal=total,
            tax_amount=Decimal("0.00"),
            discount_amount=Decimal("0.00"),
            total_amount=total,
            paid_amount=paid,
            balance_amount=total - paid,
            issue_date=date(2024, 1, 1),
            due_date=date(2024, 1, 31),
            created_by="user_1",
            created_at=datetime(2024, 1, 1, 9, 0, 0),
            updated_at=datetime(2024, 1, 1, 9, 0, 0),
        )

    return _make


@pytest.fixture
def guarded_update():
    """Side effect for update_guarded that applies the values like the SQL adapter"""

    async def _update(invoice, expected_paid_amount, values):
        if invoice.paid_amount != expected_paid_amount:
            return False
        for key, value in values.items():
            setattr(invoice, key, value)
        return True

    return _update
