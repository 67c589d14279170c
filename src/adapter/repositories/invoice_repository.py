"""SQLAlchemy Invoice Repository Implementation

Implements invoice persistence using SQLAlchemy async session.
"""

from typing import Any, Dict, List, Optional, Tuple
from datetime import date, datetime
from decimal import Decimal
from sqlalchemy import update
from sqlmodel import select, func
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.invoice_repository import InvoiceRepository
from src.domain.invoice import Invoice, InvoiceStatus


class SqlAlchemyInvoiceRepository(InvoiceRepository):
    """
    SQLAlchemy implementation of InvoiceRepository

    Uses async session for database operations. Reads refresh already-loaded
    instances so a row changed by a guarded update is never served stale.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, invoice: Invoice) -> Invoice:
        """
        Create a new invoice

        Args:
            invoice: Invoice entity to persist

        Returns:
            Created Invoice with generated ID
        """
        self.session.add(invoice)
        await self.session.flush()
        await self.session.refresh(invoice)
        return invoice

    async def get_by_id(self, invoice_id: int, for_update: bool = False) -> Optional[Invoice]:
        """
        Retrieve invoice by ID with optional row-level locking

        Args:
            invoice_id: Invoice ID
            for_update: If True, locks the row with SELECT FOR UPDATE

        Returns:
            Invoice if found, None otherwise
        """
        stmt = (
            select(Invoice)
            .where(Invoice.id == invoice_id)
            .execution_options(populate_existing=True)
        )

        if for_update:
            stmt = stmt.with_for_update()

        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_invoice_number(self, invoice_number: str) -> Optional[Invoice]:
        """
        Retrieve invoice by invoice number

        Args:
            invoice_number: Unique invoice number

        Returns:
            Invoice if found, None otherwise
        """
        statement = select(Invoice).where(Invoice.invoice_number == invoice_number)
        result = await self.session.execute(statement)
        return result.scalar_one_or_none()

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
        Retrieve a filtered page of invoices

        Args:
            patient_id: Optional filter by patient
            status: Optional filter by status
            currency: Optional filter by currency
            start_date: Optional lower bound on issue_date (inclusive)
            end_date: Optional upper bound on issue_date (inclusive)
            limit: Maximum number of invoices to return
            offset: Offset for pagination

        Returns:
            Tuple of (invoices, total matching count)
        """
        conditions = []
        if patient_id:
            conditions.append(Invoice.patient_id == patient_id)
        if status:
            conditions.append(Invoice.status == status)
        if currency:
            conditions.append(Invoice.currency == currency)
        if start_date:
            conditions.append(Invoice.issue_date >= start_date)
        if end_date:
            conditions.append(Invoice.issue_date <= end_date)

        count_stmt = select(func.count()).select_from(Invoice).where(*conditions)
        total = (await self.session.execute(count_stmt)).scalar_one()

        statement = (
            select(Invoice)
            .where(*conditions)
            .order_by(Invoice.issue_date.desc(), Invoice.id.desc())
            .limit(limit)
            .offset(offset)
        )
        result = await self.session.execute(statement)
        return list(result.scalars().all()), total

    async def get_all(self) -> List[Invoice]:
        statement = select(Invoice).order_by(Invoice.id)
        result = await self.session.execute(statement)
        return list(result.scalars().all())

    async def update(self, invoice: Invoice) -> Invoice:
        """
        Update an existing invoice

        Args:
            invoice: Invoice entity with updated values

        Returns:
            Updated Invoice
        """
        invoice.updated_at = datetime.utcnow()
        self.session.add(invoice)
        await self.session.flush()
        await self.session.refresh(invoice)
        return invoice

    async def update_guarded(
        self,
        invoice: Invoice,
        expected_paid_amount: Decimal,
        values: Dict[str, Any],
    ) -> bool:
        """
        Compare-and-set update keyed on paid_amount

        Args:
            invoice: Invoice being updated
            expected_paid_amount: paid_amount the new values were computed from
            values: Column values to write

        Returns:
            True if applied, False if another transaction changed paid_amount
        """
        stmt = (
            update(Invoice)
            .where(Invoice.id == invoice.id)
            .where(Invoice.paid_amount == expected_paid_amount)
            .values(**values, updated_at=datetime.utcnow())
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        if result.rowcount == 0:
            return False

        await self.session.refresh(invoice)
        return True

    async def delete(self, invoice: Invoice) -> None:
        await self.session.delete(invoice)
        await self.session.flush()
