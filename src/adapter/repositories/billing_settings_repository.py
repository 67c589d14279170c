"""SQLAlchemy implementation of BillingSettingsRepository

The invoice counter is advanced with a single UPDATE ... RETURNING so that
concurrent invoice creations serialize on the settings row instead of
racing on a read-modify-write.
"""

import logging
from typing import Optional
from datetime import datetime
from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.billing_settings_repository import BillingSettingsRepository
from src.domain.billing_settings import BillingSettings, BILLING_SETTINGS_ID

logger = logging.getLogger(__name__)


class SqlAlchemyBillingSettingsRepository(BillingSettingsRepository):
    """
    SQLAlchemy implementation of BillingSettingsRepository

    Features:
    - Lazy creation of the singleton row
    - Atomic counter increment via UPDATE ... RETURNING
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, for_update: bool = False) -> Optional[BillingSettings]:
        stmt = (
            select(BillingSettings)
            .where(BillingSettings.id == BILLING_SETTINGS_ID)
            .execution_options(populate_existing=True)
        )
        if for_update:
            stmt = stmt.with_for_update()
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_or_create(self, for_update: bool = False) -> BillingSettings:
        settings = await self.get(for_update=for_update)
        if settings:
            return settings

        try:
            async with self.session.begin_nested():
                settings = BillingSettings(id=BILLING_SETTINGS_ID)
                self.session.add(settings)
            logger.info("Created default billing settings")
        except IntegrityError:
            # Another transaction created the row first
            settings = await self.get(for_update=for_update)
        return settings

    async def update(self, settings: BillingSettings) -> BillingSettings:
        """
        Update the settings row

        Args:
            settings: BillingSettings with updated values

        Returns:
            Updated BillingSettings
        """
        settings.updated_at = datetime.utcnow()
        self.session.add(settings)
        await self.session.flush()
        await self.session.refresh(settings)
        return settings

    async def increment_invoice_counter(self) -> Optional[int]:
        """
        Atomically increment invoice_counter

        Returns:
            The counter value before the increment, or None if the row is missing
        """
        stmt = (
            update(BillingSettings)
            .where(BillingSettings.id == BILLING_SETTINGS_ID)
            .values(
                invoice_counter=BillingSettings.invoice_counter + 1,
                updated_at=datetime.utcnow(),
            )
            .returning(BillingSettings.invoice_counter)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        new_counter = result.scalar_one_or_none()
        if new_counter is None:
            return None
        return new_counter - 1
