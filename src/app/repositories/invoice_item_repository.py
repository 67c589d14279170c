"""Invoice Item Repository Interface

Defines the contract for invoice item persistence operations.
"""

from abc import ABC, abstractmethod
from typing import List
from src.domain.invoice_item import InvoiceItem


class InvoiceItemRepository(ABC):
    """
    Repository interface for InvoiceItem persistence

    Items are written and removed as a whole set per invoice.
    """

    @abstractmethod
    async def get_by_invoice_id(self, invoice_id: int) -> List[InvoiceItem]:
        """
        Retrieve all line items for an invoice

        Args:
            invoice_id: Invoice ID

        Returns:
            List of InvoiceItem in creation order
        """
        pass

    @abstractmethod
    async def create_many(self, items: List[InvoiceItem]) -> List[InvoiceItem]:
        """
        Create a set of line items

        Args:
            items: InvoiceItem entities to persist

        Returns:
            Created items with generated IDs
        """
        pass

    @abstractmethod
    async def delete_by_invoice_id(self, invoice_id: int) -> int:
        """
        Remove every line item of an invoice

        Args:
            invoice_id: Invoice ID

        Returns:
            Number of removed items
        """
        pass
