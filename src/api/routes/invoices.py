"""Invoice API Routes

FastAPI routes for the invoice lifecycle and invoice PDF rendering.
"""

import base64
from datetime import date
from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import Response
from sqlmodel.ext.asyncio.session import AsyncSession

from config import ApplicationConfig
from src.api.schemas.billing_request import (
    CreateInvoiceRequestSchema,
    UpdateInvoiceRequestSchema,
)
from src.app.services.patient_directory import PatientDirectory
from src.app.use_cases.billing.dtos import (
    CreateInvoiceCommandDTO,
    UpdateInvoiceCommandDTO,
    ListInvoicesQueryDTO,
    InvoiceResponseDTO,
    InvoiceListResponseDTO,
    DeleteInvoiceResponseDTO,
)
from src.app.use_cases.billing.create_invoice import CreateInvoice
from src.app.use_cases.billing.update_invoice import UpdateInvoice
from src.app.use_cases.billing.delete_invoice import DeleteInvoice
from src.app.use_cases.billing.send_invoice import SendInvoice
from src.app.use_cases.billing.cancel_invoice import CancelInvoice
from src.app.use_cases.billing.get_invoice import GetInvoice
from src.app.use_cases.billing.list_invoices import ListInvoices
from src.app.use_cases.billing.generate_invoice_pdf import GenerateInvoicePdf
from src.adapter.repositories.billing_settings_repository import SqlAlchemyBillingSettingsRepository
from src.adapter.repositories.invoice_repository import SqlAlchemyInvoiceRepository
from src.adapter.repositories.invoice_item_repository import SqlAlchemyInvoiceItemRepository
from src.adapter.repositories.payment_repository import SqlAlchemyPaymentRepository
from src.adapter.services.pdf_service import ReportLabPdfService
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.depends import get_session, get_patient_directory, get_current_user_id
from src.api.error import ClientError

router = APIRouter(prefix="/billing", tags=["Invoices"])

NOT_FOUND_RESPONSE = {
    "description": "Invoice not found",
    "content": {
        "application/json": {
            "example": {
                "error": {
                    "code": "INVOICE_NOT_FOUND",
                    "message": "Invoice with ID 123 not found"
                }
            }
        }
    }
}

CONFLICT_RESPONSE = {
    "description": "Operation not allowed in the current invoice state",
    "content": {
        "application/json": {
            "example": {
                "error": {
                    "code": "INVOICE_NOT_MUTABLE",
                    "message": "Cannot modify paid invoice INV-0001"
                }
            }
        }
    }
}


async def _list_invoices(session: AsyncSession, query: ListInvoicesQueryDTO) -> InvoiceListResponseDTO:
    use_case = ListInvoices(SqlAlchemyInvoiceRepository(session))
    result = await use_case.execute(query)

    if result.is_err():
        raise ClientError(result.error)

    return result.value


@router.post(
    "/invoices",
    response_model=InvoiceResponseDTO,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {
            "description": "Validation error",
            "content": {
                "application/json": {
                    "example": {
                        "error": {
                            "code": "INVALID_CURRENCY",
                            "message": "Invalid currency code: XYZ"
                        }
                    }
                }
            }
        },
        404: {
            "description": "Patient not found",
            "content": {
                "application/json": {
                    "example": {
                        "error": {
                            "code": "PATIENT_NOT_FOUND",
                            "message": "Patient with ID patient_123 not found"
                        }
                    }
                }
            }
        }
    }
)
async def create_invoice(
    request: CreateInvoiceRequestSchema,
    session: AsyncSession = Depends(get_session),
    patient_directory: PatientDirectory = Depends(get_patient_directory),
    user_id: str = Depends(get_current_user_id),
):
    """
    Create a draft invoice for a patient.

    Totals are computed from the items; the invoice number is allocated from
    the billing settings counter.

    **Example request:**
    ```json
    {
      "patient_id": "patient_123",
      "currency": "USD",
      "items": [
        {"description": "General consultation", "quantity": "2", "unit_price": "100.00", "tax_rate": "10"}
      ]
    }
    ```

    **Returns:**
    - 201: Invoice created (status=draft)
    - 400: Invalid currency, items or dates
    - 404: Patient not found
    """
    # Create UnitOfWork and repositories
    uow = SqlAlchemyUnitOfWork(session)
    settings_repo = SqlAlchemyBillingSettingsRepository(session)
    invoice_repo = SqlAlchemyInvoiceRepository(session)
    item_repo = SqlAlchemyInvoiceItemRepository(session)

    # Convert request schema to command DTO
    command = CreateInvoiceCommandDTO(
        **request.model_dump(),
        created_by=user_id,
    )

    # Execute use case
    use_case = CreateInvoice(uow, settings_repo, invoice_repo, item_repo, patient_directory)
    result = await use_case.execute(command)

    if result.is_err():
        raise ClientError(result.error)

    return result.value


@router.get("/invoices", response_model=InvoiceListResponseDTO)
async def list_invoices(
    patient_id: Optional[str] = None,
    status_filter: Optional[str] = Query(default=None, alias="status"),
    currency: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    session: AsyncSession = Depends(get_session),
):
    """
    List invoices, newest issue date first.

    **Query parameters:**
    - `patient_id`, `status`, `currency` (optional): Filters
    - `start_date`, `end_date` (optional): Inclusive issue date range
    - `page` (default 1), `limit` (default 20, max 100)
    """
    query = ListInvoicesQueryDTO(
        patient_id=patient_id,
        status=status_filter,
        currency=currency,
        start_date=start_date,
        end_date=end_date,
        page=page,
        limit=limit,
    )
    return await _list_invoices(session, query)


@router.get("/patients/{patient_id}/invoices", response_model=InvoiceListResponseDTO)
async def list_patient_invoices(
    patient_id: str,
    status_filter: Optional[str] = Query(default=None, alias="status"),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    session: AsyncSession = Depends(get_session),
):
    """List the invoices of one patient."""
    query = ListInvoicesQueryDTO(patient_id=patient_id, status=status_filter, page=page, limit=limit)
    return await _list_invoices(session, query)


@router.get(
    "/invoices/{invoice_id}",
    response_model=InvoiceResponseDTO,
    responses={404: NOT_FOUND_RESPONSE},
)
async def get_invoice(
    invoice_id: int,
    session: AsyncSession = Depends(get_session),
):
    """Get an invoice with its items and payment history."""
    use_case = GetInvoice(
        SqlAlchemyInvoiceRepository(session),
        SqlAlchemyInvoiceItemRepository(session),
        SqlAlchemyPaymentRepository(session),
    )
    result = await use_case.execute(invoice_id)

    if result.is_err():
        raise ClientError(result.error)

    return result.value


@router.put(
    "/invoices/{invoice_id}",
    response_model=InvoiceResponseDTO,
    responses={404: NOT_FOUND_RESPONSE, 409: CONFLICT_RESPONSE},
)
async def update_invoice(
    invoice_id: int,
    request: UpdateInvoiceRequestSchema,
    session: AsyncSession = Depends(get_session),
):
    """
    Update a draft or sent invoice.

    Only the fields present in the body are changed. `items` replaces the
    whole item set and recomputes totals.

    **Returns:**
    - 200: Invoice updated
    - 400: Invalid currency, items, dates or status
    - 404: Invoice not found
    - 409: Invoice is paid/cancelled, or the new total is below the paid amount
    """
    uow = SqlAlchemyUnitOfWork(session)
    command = UpdateInvoiceCommandDTO(
        invoice_id=invoice_id,
        **request.model_dump(exclude_unset=True),
    )

    use_case = UpdateInvoice(
        uow,
        SqlAlchemyInvoiceRepository(session),
        SqlAlchemyInvoiceItemRepository(session),
    )
    result = await use_case.execute(command)

    if result.is_err():
        raise ClientError(result.error)

    return result.value


@router.delete(
    "/invoices/{invoice_id}",
    response_model=DeleteInvoiceResponseDTO,
    responses={404: NOT_FOUND_RESPONSE, 409: CONFLICT_RESPONSE},
)
async def delete_invoice(
    invoice_id: int,
    session: AsyncSession = Depends(get_session),
):
    """
    Delete an invoice and its items.

    **Returns:**
    - 200: Invoice deleted
    - 404: Invoice not found
    - 409: Invoice is paid or has recorded payments
    """
    use_case = DeleteInvoice(
        SqlAlchemyUnitOfWork(session),
        SqlAlchemyInvoiceRepository(session),
        SqlAlchemyInvoiceItemRepository(session),
        SqlAlchemyPaymentRepository(session),
    )
    result = await use_case.execute(invoice_id)

    if result.is_err():
        raise ClientError(result.error)

    return result.value


@router.post(
    "/invoices/{invoice_id}/send",
    response_model=InvoiceResponseDTO,
    responses={404: NOT_FOUND_RESPONSE, 409: CONFLICT_RESPONSE},
)
async def send_invoice(
    invoice_id: int,
    session: AsyncSession = Depends(get_session),
):
    """Mark a draft invoice as sent."""
    use_case = SendInvoice(
        SqlAlchemyUnitOfWork(session),
        SqlAlchemyInvoiceRepository(session),
        SqlAlchemyInvoiceItemRepository(session),
    )
    result = await use_case.execute(invoice_id)

    if result.is_err():
        raise ClientError(result.error)

    return result.value


@router.post(
    "/invoices/{invoice_id}/cancel",
    response_model=InvoiceResponseDTO,
    responses={404: NOT_FOUND_RESPONSE, 409: CONFLICT_RESPONSE},
)
async def cancel_invoice(
    invoice_id: int,
    session: AsyncSession = Depends(get_session),
):
    """Cancel a draft or sent invoice."""
    use_case = CancelInvoice(
        SqlAlchemyUnitOfWork(session),
        SqlAlchemyInvoiceRepository(session),
        SqlAlchemyInvoiceItemRepository(session),
    )
    result = await use_case.execute(invoice_id)

    if result.is_err():
        raise ClientError(result.error)

    return result.value


@router.get(
    "/invoices/{invoice_id}/pdf",
    responses={
        200: {
            "content": {"application/pdf": {}},
            "description": "PDF document"
        },
        404: NOT_FOUND_RESPONSE,
    }
)
async def download_invoice_pdf(
    invoice_id: int,
    session: AsyncSession = Depends(get_session),
):
    """
    Download the invoice as a PDF file.

    **Returns:**
    - 200: PDF file (application/pdf)
    - 404: Invoice not found
    """
    use_case = GenerateInvoicePdf(
        SqlAlchemyInvoiceRepository(session),
        SqlAlchemyInvoiceItemRepository(session),
        SqlAlchemyPaymentRepository(session),
        ReportLabPdfService(),
        company_name=ApplicationConfig.INVOICE_COMPANY_NAME,
        company_address=ApplicationConfig.INVOICE_COMPANY_ADDRESS,
    )
    result = await use_case.execute(invoice_id)

    if result.is_err():
        raise ClientError(result.error)

    pdf_bytes = base64.b64decode(result.value.pdf_base64)
    filename = f"invoice_{result.value.invoice_number}.pdf"

    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
