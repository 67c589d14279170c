"""Background workers for billing service"""
from .invoice_reconciler import InvoiceReconcilerWorker

__all__ = ["InvoiceReconcilerWorker"]
