"""Invoice Number Sequencer

Allocates unique, gap-free invoice numbers of the form <prefix>-<NNNN>.
"""

import logging
from src.app.repositories.billing_settings_repository import BillingSettingsRepository
from src.domain.errors import BillingError

logger = logging.getLogger(__name__)


def format_invoice_number(prefix: str, counter: int) -> str:
    """Render an invoice number, zero-padding the counter to at least 4 digits"""
    return f"{prefix}-{counter:04d}"


class InvoiceNumberSequencer:
    """
    Issues invoice numbers from the billing settings counter

    The counter is incremented with a single atomic statement inside the
    caller's transaction, so concurrent creations never observe the same
    value and a rolled-back creation releases its number.
    """

    def __init__(self, settings_repo: BillingSettingsRepository):
        self.settings_repo = settings_repo

    async def next_number(self) -> str:
        counter = await self.settings_repo.increment_invoice_counter()
        if counter is None:
            # Settings row is created lazily on first use
            await self.settings_repo.get_or_create()
            counter = await self.settings_repo.increment_invoice_counter()
            if counter is None:
                raise BillingError(
                    "Billing settings are unavailable",
                    code="INVOICE_NUMBER_UNAVAILABLE",
                )

        settings = await self.settings_repo.get()
        invoice_number = format_invoice_number(settings.invoice_prefix, counter)
        logger.debug(f"Allocated invoice number {invoice_number}")
        return invoice_number
