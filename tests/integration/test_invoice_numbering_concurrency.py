"""Concurrency tests for invoice numbering and payment application"""

import asyncio
import pytest
from decimal import Decimal

from src.adapter.repositories.billing_settings_repository import SqlAlchemyBillingSettingsRepository
from src.adapter.repositories.invoice_repository import SqlAlchemyInvoiceRepository
from src.adapter.repositories.invoice_item_repository import SqlAlchemyInvoiceItemRepository
from src.adapter.repositories.payment_repository import SqlAlchemyPaymentRepository
from src.adapter.services.patient_directory import AllowAllPatientDirectory
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.app.use_cases.billing import ApplyPayment, CreateInvoice
from src.app.use_cases.billing.dtos import (
    ApplyPaymentCommandDTO,
    CreateInvoiceCommandDTO,
    InvoiceItemInputDTO,
)
from src.domain.payment import PaymentMethod

CONCURRENT_CREATIONS = 50


async def create_in_own_session(session_factory, index: int):
    async with session_factory() as session:
        use_case = CreateInvoice(
            SqlAlchemyUnitOfWork(session),
            SqlAlchemyBillingSettingsRepository(session),
            SqlAlchemyInvoiceRepository(session),
            SqlAlchemyInvoiceItemRepository(session),
            AllowAllPatientDirectory(),
        )
        return await use_case.execute(
            CreateInvoiceCommandDTO(
                patient_id=f"patient_{index}",
                items=[InvoiceItemInputDTO(description="Consultation", unit_price=Decimal("50"))],
                created_by="user_42",
            )
        )


async def pay_in_own_session(session_factory, invoice_id: int, amount: str):
    async with session_factory() as session:
        use_case = ApplyPayment(
            SqlAlchemyUnitOfWork(session),
            SqlAlchemyInvoiceRepository(session),
            SqlAlchemyPaymentRepository(session),
        )
        return await use_case.execute(
            ApplyPaymentCommandDTO(
                invoice_id=invoice_id,
                amount=Decimal(amount),
                payment_method=PaymentMethod.CARD,
                processed_by="user_42",
            )
        )


@pytest.mark.asyncio
async def test_concurrent_creations_get_distinct_numbers(session_factory):
    """
    Given: Billing settings with the default prefix and counter
    When: 50 invoices are created concurrently in separate sessions
    Then: Every invoice gets a distinct number and the counter advances by 50
    """
    # Arrange
    async with session_factory() as session:
        await SqlAlchemyBillingSettingsRepository(session).get_or_create()
        await session.commit()

    # Act
    results = await asyncio.gather(
        *(create_in_own_session(session_factory, i) for i in range(CONCURRENT_CREATIONS))
    )

    # Assert
    assert all(result.is_ok() for result in results), [r.error for r in results if r.is_err()]
    numbers = {result.value.invoice_number for result in results}
    assert len(numbers) == CONCURRENT_CREATIONS
    assert numbers == {f"INV-{n:04d}" for n in range(1, CONCURRENT_CREATIONS + 1)}

    async with session_factory() as session:
        settings = await SqlAlchemyBillingSettingsRepository(session).get()
        assert settings.invoice_counter == CONCURRENT_CREATIONS + 1


@pytest.mark.asyncio
async def test_concurrent_payments_never_overpay(session_factory):
    """
    Given: An invoice with total=50
    When: Five payments of 20 race against each other
    Then: At most two succeed and paid_amount matches the payment ledger
    """
    # Arrange
    created = await create_in_own_session(session_factory, 0)
    invoice_id = created.value.invoice_id

    # Act
    results = await asyncio.gather(
        *(pay_in_own_session(session_factory, invoice_id, "20.00") for _ in range(5))
    )

    # Assert
    succeeded = [result for result in results if result.is_ok()]
    assert len(succeeded) == 2
    for result in results:
        if result.is_err():
            assert result.error.code in ("PAYMENT_EXCEEDS_BALANCE", "CONCURRENT_MODIFICATION")

    async with session_factory() as session:
        invoice = await SqlAlchemyInvoiceRepository(session).get_by_id(invoice_id)
        payments = await SqlAlchemyPaymentRepository(session).list(invoice_id=invoice_id)
        assert invoice.paid_amount == Decimal("40.00")
        assert invoice.balance_amount == Decimal("10.00")
        assert sum(payment.amount for payment in payments) == Decimal("40.00")
