"""Payment Domain Entity

Immutable append-only ledger entry of money received against an invoice.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from sqlmodel import Field, Column, Index
from sqlalchemy import BigInteger, CheckConstraint, ForeignKey, Numeric, String, Text
from src.domain.base import BaseModel, BigIntId, MONEY_PRECISION


class PaymentMethod(str, Enum):
    """Payment methods"""
    CASH = "cash"
    CARD = "card"
    BANK_TRANSFER = "bank_transfer"
    MOBILE_MONEY = "mobile_money"
    INSURANCE = "insurance"
    CHECK = "check"
    OTHER = "other"


class PaymentStatus(str, Enum):
    """Payment status types"""
    COMPLETED = "completed"   # Money received and applied to the invoice
    PENDING = "pending"       # Reserved for externally settled methods
    FAILED = "failed"         # Reserved for externally settled methods


class Payment(BaseModel, table=True):
    """
    Payment - Immutable ledger entry against an invoice

    Domain Rules:
    - Payments are immutable (append-only); no update or delete exists
    - amount > 0 and never exceeds the invoice balance at recording time
    - currency matches the invoice currency
    - Recorded only against non-terminal invoices
    """

    __tablename__ = "payments"
    __table_args__ = (
        Index('ix_payments_invoice_id', 'invoice_id'),
        Index('ix_payments_payment_date', 'payment_date'),
        CheckConstraint('amount > 0', name='payment_amount_positive'),
    )

    id: Optional[int] = Field(
        default=None,
        sa_column=Column(BigIntId, primary_key=True, autoincrement=True),
        description="Unique payment identifier (auto-increment)"
    )

    invoice_id: int = Field(
        sa_column=Column(BigInteger, ForeignKey("invoices.id"), nullable=False),
        description="Foreign key to Invoice"
    )

    amount: Decimal = Field(
        sa_column=Column(Numeric(*MONEY_PRECISION), nullable=False),
        description="Amount received"
    )

    currency: str = Field(
        sa_column=Column(String(3), nullable=False),
        description="Currency code (ISO 4217)"
    )

    payment_method: PaymentMethod = Field(
        description="How the payment was made"
    )

    status: PaymentStatus = Field(
        default=PaymentStatus.COMPLETED,
        description="Payment status"
    )

    transaction_id: Optional[str] = Field(
        default=None,
        sa_column=Column(String(255), nullable=True),
        description="External processor transaction reference"
    )

    payment_date: datetime = Field(
        description="When the payment was received"
    )

    notes: Optional[str] = Field(
        default=None,
        sa_column=Column(Text, nullable=True),
    )

    processed_by: str = Field(
        sa_column=Column(String(64), nullable=False),
        description="User who recorded the payment"
    )

    created_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="Ledger entry timestamp (immutable)"
    )
