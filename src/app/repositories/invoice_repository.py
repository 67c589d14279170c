"""Invoice Repository Interface

Defines the contract for invoice persistence operations.
"""

from abc import ABC, abstractmethod
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple
from src.domain.invoice import Invoice, InvoiceStatus


class InvoiceRepository(ABC):
    """
    Repository interface for Invoice persistence

    Balance-changing writes go through update_guarded so a concurrent
    payment can never be overwritten by a stale read.
    """

    @abstractmethod
    async def create(self, invoice: Invoice) -> Invoice:
        """
        Create a new invoice

        Args:
            invoice: Invoice entity to persist

        Returns:
            Created Invoice with generated ID
        """
        pass

    @abstractmethod
    async def get_by_id(self, invoice_id: int, for_update: bool = False) -> Optional[Invoice]:
        """
        Retrieve invoice by ID

        Args:
            invoice_id: Invoice ID
            for_update: If True, lock the row with SELECT FOR UPDATE

        Returns:
            Invoice if found, None otherwise
        """
        pass

    @abstractmethod
    async def get_by_invoice_number(self, invoice_number: str) -> Optional[Invoice]:
        """
        Retrieve invoice by invoice number

        Args:
            invoice_number: Unique invoice number

        Returns:
            Invoice if found, None otherwise
        """
        pass

    @abstractmethod
    async def list(
        self,
        patient_id: Optional[str] = None,
        status: Optional[InvoiceStatus] = None,
        currency: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> Tuple[List[Invoice], int]:
        """
        Retrieve invoices matching the filters, newest issue date first

        Returns:
            Tuple of (page of invoices, total matching count)
        """
        pass

    @abstractmethod
    async def get_all(self) -> List[Invoice]:
        """
        Retrieve every invoice

        Used by reconciliation.
        """
        pass

    @abstractmethod
    async def update(self, invoice: Invoice) -> Invoice:
        """
        Update non-balance fields of an existing invoice

        Args:
            invoice: Invoice entity with updated values

        Returns:
            Updated Invoice
        """
        pass

    @abstractmethod
    async def update_guarded(
        self,
        invoice: Invoice,
        expected_paid_amount: Decimal,
        values: Dict[str, Any],
    ) -> bool:
        """
        Apply values only if paid_amount still equals expected_paid_amount

        Args:
            invoice: Invoice being updated (refreshed on success)
            expected_paid_amount: paid_amount observed when the change was computed
            values: Column values to write

        Returns:
            True if the row was updated, False on a concurrent modification
        """
        pass

    @abstractmethod
    async def delete(self, invoice: Invoice) -> None:
        """
        Delete an invoice

        Args:
            invoice: Invoice to remove
        """
        pass
