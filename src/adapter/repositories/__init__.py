from .billing_settings_repository import SqlAlchemyBillingSettingsRepository
from .invoice_repository import SqlAlchemyInvoiceRepository
from .invoice_item_repository import SqlAlchemyInvoiceItemRepository
from .payment_repository import SqlAlchemyPaymentRepository

__all__ = [
    "SqlAlchemyBillingSettingsRepository",
    "SqlAlchemyInvoiceRepository",
    "SqlAlchemyInvoiceItemRepository",
    "SqlAlchemyPaymentRepository",
]
