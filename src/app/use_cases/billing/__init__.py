from .create_invoice import CreateInvoice
from .update_invoice import UpdateInvoice
from .delete_invoice import DeleteInvoice
from .send_invoice import SendInvoice
from .cancel_invoice import CancelInvoice
from .get_invoice import GetInvoice
from .list_invoices import ListInvoices
from .apply_payment import ApplyPayment
from .get_payment import GetPayment
from .list_payments import ListPayments
from .get_billing_settings import GetBillingSettings
from .update_billing_settings import UpdateBillingSettings
from .generate_invoice_pdf import GenerateInvoicePdf
from .reconcile_invoices import ReconcileInvoices

__all__ = [
    "CreateInvoice",
    "UpdateInvoice",
    "DeleteInvoice",
    "SendInvoice",
    "CancelInvoice",
    "GetInvoice",
    "ListInvoices",
    "ApplyPayment",
    "GetPayment",
    "ListPayments",
    "GetBillingSettings",
    "UpdateBillingSettings",
    "GenerateInvoicePdf",
    "ReconcileInvoices",
]
