"""Billing Settings API Routes"""

from fastapi import APIRouter, Depends
from sqlmodel.ext.asyncio.session import AsyncSession

from src.api.schemas.billing_request import UpdateBillingSettingsRequestSchema
from src.app.use_cases.billing.dtos import BillingSettingsDTO, UpdateBillingSettingsCommandDTO
from src.app.use_cases.billing.get_billing_settings import GetBillingSettings
from src.app.use_cases.billing.update_billing_settings import UpdateBillingSettings
from src.adapter.repositories.billing_settings_repository import SqlAlchemyBillingSettingsRepository
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.depends import get_session
from src.api.error import ClientError

router = APIRouter(prefix="/billing/settings", tags=["Settings"])


@router.get("", response_model=BillingSettingsDTO)
async def get_billing_settings(session: AsyncSession = Depends(get_session)):
    """Get billing settings, creating the defaults on first access."""
    use_case = GetBillingSettings(
        SqlAlchemyUnitOfWork(session),
        SqlAlchemyBillingSettingsRepository(session),
    )
    result = await use_case.execute()

    if result.is_err():
        raise ClientError(result.error)

    return result.value


@router.put("", response_model=BillingSettingsDTO)
async def update_billing_settings(
    request: UpdateBillingSettingsRequestSchema,
    session: AsyncSession = Depends(get_session),
):
    """
    Update billing settings.

    **Request body** (all optional):
    - `default_currency`: Supported ISO 4217 code
    - `invoice_prefix`: 1-10 characters of A-Z, 0-9, '_' or '/'
    - `invoice_counter`: Next invoice number; can only move forward
    - `payment_terms_days`: Days until due (>= 0)
    """
    command = UpdateBillingSettingsCommandDTO(**request.model_dump())

    use_case = UpdateBillingSettings(
        SqlAlchemyUnitOfWork(session),
        SqlAlchemyBillingSettingsRepository(session),
    )
    result = await use_case.execute(command)

    if result.is_err():
        raise ClientError(result.error)

    return result.value
