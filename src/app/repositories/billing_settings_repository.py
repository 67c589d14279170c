"""Billing Settings Repository Interface

Defines the contract for billing settings persistence, including the atomic
invoice counter primitive.
"""

from abc import ABC, abstractmethod
from typing import Optional
from src.domain.billing_settings import BillingSettings


class BillingSettingsRepository(ABC):
    """
    Repository interface for the BillingSettings singleton

    increment_invoice_counter must be a single atomic read-increment-return
    against the store, never a read followed by a separate write.
    """

    @abstractmethod
    async def get(self, for_update: bool = False) -> Optional[BillingSettings]:
        """
        Retrieve the settings row

        Args:
            for_update: If True, locks the row with SELECT FOR UPDATE

        Returns:
            BillingSettings if it exists, None otherwise
        """
        pass

    @abstractmethod
    async def get_or_create(self, for_update: bool = False) -> BillingSettings:
        """
        Retrieve the settings row, creating it with defaults if absent

        Args:
            for_update: If True, locks the row until the transaction ends

        Returns:
            BillingSettings singleton
        """
        pass

    @abstractmethod
    async def update(self, settings: BillingSettings) -> BillingSettings:
        """
        Persist changes to the settings row

        Args:
            settings: BillingSettings with updated values

        Returns:
            Updated BillingSettings
        """
        pass

    @abstractmethod
    async def increment_invoice_counter(self) -> Optional[int]:
        """
        Atomically allocate the next invoice counter value

        Returns:
            The allocated value (the counter before increment),
            or None if the settings row does not exist
        """
        pass
