"""Payment API Routes

FastAPI routes for recording and reading payments.
"""

from typing import Optional
from fastapi import APIRouter, Depends, status
from sqlmodel.ext.asyncio.session import AsyncSession

from src.api.schemas.billing_request import CreatePaymentRequestSchema
from src.app.use_cases.billing.dtos import (
    ApplyPaymentCommandDTO,
    PaymentDTO,
    PaymentListResponseDTO,
    PaymentResponseDTO,
)
from src.app.use_cases.billing.apply_payment import ApplyPayment
from src.app.use_cases.billing.get_payment import GetPayment
from src.app.use_cases.billing.list_payments import ListPayments
from src.adapter.repositories.invoice_repository import SqlAlchemyInvoiceRepository
from src.adapter.repositories.payment_repository import SqlAlchemyPaymentRepository
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.depends import get_session, get_current_user_id
from src.api.error import ClientError

router = APIRouter(prefix="/billing/payments", tags=["Payments"])


@router.post(
    "",
    response_model=PaymentResponseDTO,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {
            "description": "Invalid amount or currency",
            "content": {
                "application/json": {
                    "example": {
                        "error": {
                            "code": "PAYMENT_EXCEEDS_BALANCE",
                            "message": "Payment amount 221.00 exceeds outstanding balance 220.00"
                        }
                    }
                }
            }
        },
        409: {
            "description": "Invoice is paid or cancelled",
            "content": {
                "application/json": {
                    "example": {
                        "error": {
                            "code": "INVOICE_ALREADY_PAID",
                            "message": "Invoice INV-0001 is already paid"
                        }
                    }
                }
            }
        }
    }
)
async def create_payment(
    request: CreatePaymentRequestSchema,
    session: AsyncSession = Depends(get_session),
    user_id: str = Depends(get_current_user_id),
):
    """
    Record a payment against an invoice.

    The payment and the invoice balance update are committed together.
    A payment that clears the balance marks the invoice as paid.

    **Example request:**
    ```json
    {
      "invoice_id": 1,
      "amount": "220.00",
      "payment_method": "card",
      "transaction_id": "ch_3Nf9"
    }
    ```

    **Returns:**
    - 201: Payment recorded
    - 400: Invalid amount, precision or currency
    - 404: Invoice not found
    - 409: Invoice is paid/cancelled or was modified concurrently
    """
    uow = SqlAlchemyUnitOfWork(session)
    invoice_repo = SqlAlchemyInvoiceRepository(session)
    payment_repo = SqlAlchemyPaymentRepository(session)

    command = ApplyPaymentCommandDTO(
        **request.model_dump(),
        processed_by=user_id,
    )

    use_case = ApplyPayment(uow, invoice_repo, payment_repo)
    result = await use_case.execute(command)

    if result.is_err():
        raise ClientError(result.error)

    return result.value


@router.get("", response_model=PaymentListResponseDTO)
async def list_payments(
    invoice_id: Optional[int] = None,
    session: AsyncSession = Depends(get_session),
):
    """List payments, most recent first, optionally for one invoice."""
    use_case = ListPayments(
        SqlAlchemyInvoiceRepository(session),
        SqlAlchemyPaymentRepository(session),
    )
    result = await use_case.execute(invoice_id)

    if result.is_err():
        raise ClientError(result.error)

    return result.value


@router.get("/{payment_id}", response_model=PaymentDTO)
async def get_payment(
    payment_id: int,
    session: AsyncSession = Depends(get_session),
):
    """Get a single payment."""
    use_case = GetPayment(SqlAlchemyPaymentRepository(session))
    result = await use_case.execute(payment_id)

    if result.is_err():
        raise ClientError(result.error)

    return result.value
