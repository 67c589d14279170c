"""Payment Repository Interface

Defines the contract for payment persistence operations.
"""

from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Dict, List, Optional
from src.domain.payment import Payment


class PaymentRepository(ABC):
    """
    Repository interface for Payment persistence

    Payments are immutable and append-only: there is deliberately no
    update or delete operation.
    """

    @abstractmethod
    async def create(self, payment: Payment) -> Payment:
        """
        Create a new payment ledger entry

        Args:
            payment: Payment entity to persist

        Returns:
            Created Payment with generated ID
        """
        pass

    @abstractmethod
    async def get_by_id(self, payment_id: int) -> Optional[Payment]:
        """
        Retrieve payment by ID

        Args:
            payment_id: Payment ID

        Returns:
            Payment if found, None otherwise
        """
        pass

    @abstractmethod
    async def list(self, invoice_id: Optional[int] = None) -> List[Payment]:
        """
        Retrieve payments, most recent payment date first

        Args:
            invoice_id: Optional filter by invoice

        Returns:
            List of payments
        """
        pass

    @abstractmethod
    async def count_by_invoice_id(self, invoice_id: int) -> int:
        """
        Count payments recorded against an invoice
        """
        pass

    @abstractmethod
    async def sum_by_invoice(self) -> Dict[int, Decimal]:
        """
        Sum of payment amounts grouped by invoice

        Returns:
            Mapping of invoice_id to total paid
        """
        pass
