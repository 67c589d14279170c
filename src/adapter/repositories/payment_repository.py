"""SQLAlchemy Payment Repository Implementation

Implements append-only payment persistence using SQLAlchemy async session.
"""

from decimal import Decimal
from typing import Dict, List, Optional
from sqlmodel import select, func
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.payment_repository import PaymentRepository
from src.domain.payment import Payment, PaymentStatus


class SqlAlchemyPaymentRepository(PaymentRepository):
    """
    SQLAlchemy implementation of PaymentRepository

    Only completed payments count towards invoice sums.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, payment: Payment) -> Payment:
        """
        Create a payment ledger entry

        Args:
            payment: Payment entity to persist

        Returns:
            Created Payment with generated ID
        """
        self.session.add(payment)
        await self.session.flush()
        await self.session.refresh(payment)
        return payment

    async def get_by_id(self, payment_id: int) -> Optional[Payment]:
        statement = select(Payment).where(Payment.id == payment_id)
        result = await self.session.execute(statement)
        return result.scalar_one_or_none()

    async def list(self, invoice_id: Optional[int] = None) -> List[Payment]:
        """
        Retrieve payments, most recent first

        Args:
            invoice_id: Optional filter by invoice

        Returns:
            List of payments ordered by payment_date descending
        """
        statement = select(Payment)
        if invoice_id is not None:
            statement = statement.where(Payment.invoice_id == invoice_id)
        statement = statement.order_by(Payment.payment_date.desc(), Payment.id.desc())

        result = await self.session.execute(statement)
        return list(result.scalars().all())

    async def count_by_invoice_id(self, invoice_id: int) -> int:
        statement = (
            select(func.count())
            .select_from(Payment)
            .where(Payment.invoice_id == invoice_id)
        )
        result = await self.session.execute(statement)
        return result.scalar_one()

    async def sum_by_invoice(self) -> Dict[int, Decimal]:
        statement = (
            select(Payment.invoice_id, func.sum(Payment.amount))
            .where(Payment.status == PaymentStatus.COMPLETED)
            .group_by(Payment.invoice_id)
        )
        result = await self.session.execute(statement)
        return {
            invoice_id: Decimal(str(total)) if total is not None else Decimal("0")
            for invoice_id, total in result.all()
        }
