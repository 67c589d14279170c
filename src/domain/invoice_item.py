"""Invoice Item Domain Entity

Tracks individual line items within an invoice.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from sqlmodel import Field, Column, Index
from sqlalchemy import BigInteger, ForeignKey, Numeric, String
from src.domain.base import BaseModel, BigIntId, MONEY_PRECISION, PRICE_PRECISION, RATE_PRECISION


class InvoiceItem(BaseModel, table=True):
    """
    Invoice Item - Individual chargeable entry within an invoice

    Domain Rules:
    - Each item belongs to exactly one invoice
    - total_amount = (quantity * unit_price - discount) * (1 + tax_rate / 100)
    - The item set is replaced as a whole on update, never patched per item
    - Immutable once the invoice is paid or cancelled
    """

    __tablename__ = "invoice_items"
    __table_args__ = (
        Index('ix_invoice_items_invoice_id', 'invoice_id'),
    )

    id: Optional[int] = Field(
        default=None,
        sa_column=Column(BigIntId, primary_key=True, autoincrement=True),
        description="Unique invoice item identifier (auto-increment)"
    )

    invoice_id: int = Field(
        sa_column=Column(BigInteger, ForeignKey("invoices.id", ondelete="CASCADE"), nullable=False),
        description="Foreign key to Invoice"
    )

    description: str = Field(
        sa_column=Column(String(255), nullable=False),
        description="Line item description (e.g., 'General consultation')"
    )

    quantity: Decimal = Field(
        default=Decimal("1"),
        sa_column=Column(Numeric(*PRICE_PRECISION), nullable=False),
        description="Quantity (e.g., number of sessions or units)"
    )

    unit_price: Decimal = Field(
        sa_column=Column(Numeric(*PRICE_PRECISION), nullable=False),
        description="Price per unit"
    )

    tax_rate: Decimal = Field(
        default=Decimal("0"),
        sa_column=Column(Numeric(*RATE_PRECISION), nullable=False),
        description="Tax rate in percent"
    )

    discount: Decimal = Field(
        default=Decimal("0"),
        sa_column=Column(Numeric(*PRICE_PRECISION), nullable=False),
        description="Absolute discount amount"
    )

    total_amount: Decimal = Field(
        sa_column=Column(Numeric(*MONEY_PRECISION), nullable=False),
        description="Computed line total after discount and tax"
    )

    service_code: Optional[str] = Field(
        default=None,
        sa_column=Column(String(50), nullable=True),
    )

    category: Optional[str] = Field(
        default=None,
        sa_column=Column(String(50), nullable=True),
    )

    created_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="Line item creation timestamp"
    )
