"""UpdateBillingSettings Use Case

Merges a patch into the billing settings singleton.
"""

import logging
import re
from libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from src.app.repositories.billing_settings_repository import BillingSettingsRepository
from src.domain.currency import CurrencyRegistry
from src.domain.errors import BillingError, ValidationError
from .dtos import UpdateBillingSettingsCommandDTO, BillingSettingsDTO

logger = logging.getLogger(__name__)

INVOICE_PREFIX_PATTERN = re.compile(r"^[A-Z0-9_/]{1,10}$")


class UpdateBillingSettings:
    """
    Use Case: Update billing settings

    Business Rules:
    1. default_currency must be a supported currency
    2. invoice_prefix is 1-10 characters of A-Z, 0-9, '_' or '/'
    3. payment_terms_days must be >= 0
    4. invoice_counter may only move forward so numbers are never reissued
    """

    def __init__(self, uow: UnitOfWork, settings_repo: BillingSettingsRepository):
        self.uow = uow
        self.settings_repo = settings_repo

    async def execute(self, command: UpdateBillingSettingsCommandDTO) -> Result[BillingSettingsDTO]:
        try:
            # Lock the row so the counter check sees concurrent allocations
            settings = await self.settings_repo.get_or_create(for_update=True)

            if command.default_currency is not None:
                settings.default_currency = CurrencyRegistry.normalize(command.default_currency)

            if command.invoice_prefix is not None:
                prefix = command.invoice_prefix.strip().upper()
                if not INVOICE_PREFIX_PATTERN.match(prefix):
                    raise ValidationError(
                        f"Invalid invoice prefix: {command.invoice_prefix!r}",
                        code="INVALID_INVOICE_PREFIX",
                        reason="Use 1-10 characters from A-Z, 0-9, '_' and '/'",
                    )
                settings.invoice_prefix = prefix

            if command.payment_terms_days is not None:
                if command.payment_terms_days < 0:
                    raise ValidationError(
                        "payment_terms_days cannot be negative",
                        code="INVALID_PAYMENT_TERMS",
                    )
                settings.payment_terms_days = command.payment_terms_days

            if command.invoice_counter is not None:
                if command.invoice_counter < settings.invoice_counter:
                    raise ValidationError(
                        f"invoice_counter cannot move back from {settings.invoice_counter} "
                        f"to {command.invoice_counter}",
                        code="INVALID_INVOICE_COUNTER",
                        reason="Invoice numbers are never reissued",
                    )
                settings.invoice_counter = command.invoice_counter

            settings = await self.settings_repo.update(settings)
            await self.uow.commit()

            logger.info(
                f"Billing settings updated: currency={settings.default_currency}, "
                f"prefix={settings.invoice_prefix}, counter={settings.invoice_counter}, "
                f"terms={settings.payment_terms_days}"
            )
            return Return.ok(BillingSettingsDTO.from_entity(settings))

        except BillingError as e:
            await self.uow.rollback()
            return Return.err(e.to_error())

        except Exception as e:
            await self.uow.rollback()
            return Return.err(
                Error(
                    code="UPDATE_BILLING_SETTINGS_FAILED",
                    message="Failed to update billing settings",
                    reason=str(e),
                )
            )
