"""SQLAlchemy Invoice Item Repository Implementation

Implements invoice item persistence using SQLAlchemy async session.
"""

from typing import List
from sqlalchemy import delete
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.invoice_item_repository import InvoiceItemRepository
from src.domain.invoice_item import InvoiceItem


class SqlAlchemyInvoiceItemRepository(InvoiceItemRepository):
    """SQLAlchemy implementation of InvoiceItemRepository"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_invoice_id(self, invoice_id: int) -> List[InvoiceItem]:
        statement = (
            select(InvoiceItem)
            .where(InvoiceItem.invoice_id == invoice_id)
            .order_by(InvoiceItem.id)
        )
        result = await self.session.execute(statement)
        return list(result.scalars().all())

    async def create_many(self, items: List[InvoiceItem]) -> List[InvoiceItem]:
        """
        Create line items in one flush

        Args:
            items: InvoiceItem entities to persist

        Returns:
            Created items with generated IDs
        """
        self.session.add_all(items)
        await self.session.flush()
        return items

    async def delete_by_invoice_id(self, invoice_id: int) -> int:
        # Bulk delete bypasses the identity map; drop loaded items so later
        # reads in this session do not see them
        for obj in list(self.session.identity_map.values()):
            if isinstance(obj, InvoiceItem) and obj.invoice_id == invoice_id:
                self.session.expunge(obj)

        stmt = (
            delete(InvoiceItem)
            .where(InvoiceItem.invoice_id == invoice_id)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount
