"""GetBillingSettings Use Case"""

from libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from src.app.repositories.billing_settings_repository import BillingSettingsRepository
from .dtos import BillingSettingsDTO


class GetBillingSettings:
    """
    Use Case: Get billing settings

    Creates the settings row with defaults on first access.
    """

    def __init__(self, uow: UnitOfWork, settings_repo: BillingSettingsRepository):
        self.uow = uow
        self.settings_repo = settings_repo

    async def execute(self) -> Result[BillingSettingsDTO]:
        try:
            settings = await self.settings_repo.get_or_create()
            await self.uow.commit()
            return Return.ok(BillingSettingsDTO.from_entity(settings))

        except Exception as e:
            await self.uow.rollback()
            return Return.err(
                Error(
                    code="GET_BILLING_SETTINGS_FAILED",
                    message="Failed to retrieve billing settings",
                    reason=str(e),
                )
            )
