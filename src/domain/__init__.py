from .base import BaseModel
from .billing_settings import BillingSettings
from .invoice import Invoice, InvoiceStatus
from .invoice_item import InvoiceItem
from .payment import Payment, PaymentMethod, PaymentStatus

__all__ = [
    "BaseModel",
    "BillingSettings",
    "Invoice",
    "InvoiceStatus",
    "InvoiceItem",
    "Payment",
    "PaymentMethod",
    "PaymentStatus",
]
