from .billing_settings_repository import BillingSettingsRepository
from .invoice_repository import InvoiceRepository
from .invoice_item_repository import InvoiceItemRepository
from .payment_repository import PaymentRepository

__all__ = [
    "BillingSettingsRepository",
    "InvoiceRepository",
    "InvoiceItemRepository",
    "PaymentRepository",
]
