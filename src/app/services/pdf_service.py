"""PDF Generation Service Interface

Defines the contract for PDF generation operations.
"""

from abc import ABC, abstractmethod
from typing import List
from src.domain.invoice import Invoice
from src.domain.invoice_item import InvoiceItem
from src.domain.payment import Payment


class PdfService(ABC):
    """
    Service interface for PDF generation

    Provides PDF rendering of patient invoices.
    """

    @abstractmethod
    def generate_invoice(
        self,
        invoice: Invoice,
        items: List[InvoiceItem],
        payments: List[Payment],
        company_name: str = "Health Clinic",
        company_address: str = "",
    ) -> bytes:
        """
        Generate an invoice PDF

        Args:
            invoice: Invoice entity with totals and dates
            items: Line items of the invoice
            payments: Payments recorded against the invoice
            company_name: Issuer name displayed in the header
            company_address: Issuer address displayed in the header

        Returns:
            PDF document as bytes
        """
        pass
