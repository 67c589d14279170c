"""Invoice Domain Entity

Patient invoice with money balances and a strict status state machine.
"""

from datetime import datetime, date
from decimal import Decimal
from enum import Enum
from typing import Optional
from sqlmodel import Field, Column, Index
from sqlalchemy import CheckConstraint, Numeric, String, Date, Text, JSON
from src.domain.base import BaseModel, BigIntId, MONEY_PRECISION
from src.domain.errors import (
    ConflictError,
    INVALID_STATUS_TRANSITION,
    INVOICE_NOT_MUTABLE,
)


class InvoiceStatus(str, Enum):
    """Invoice status types"""
    DRAFT = "draft"
    SENT = "sent"
    PAID = "paid"
    CANCELLED = "cancelled"


TERMINAL_STATUSES = frozenset({InvoiceStatus.PAID, InvoiceStatus.CANCELLED})

# paid is reachable only through a payment that clears the balance
ALLOWED_TRANSITIONS = {
    InvoiceStatus.DRAFT: frozenset({InvoiceStatus.SENT, InvoiceStatus.CANCELLED, InvoiceStatus.PAID}),
    InvoiceStatus.SENT: frozenset({InvoiceStatus.CANCELLED, InvoiceStatus.PAID}),
    InvoiceStatus.PAID: frozenset(),
    InvoiceStatus.CANCELLED: frozenset(),
}
MANUAL_TRANSITIONS = {
    status: targets - {InvoiceStatus.PAID}
    for status, targets in ALLOWED_TRANSITIONS.items()
}


class Invoice(BaseModel, table=True):
    """
    Invoice - Billable statement issued against a patient

    Domain Rules:
    - invoice_number must be unique (<prefix>-<4-digit counter>)
    - total_amount == subtotal - discount_amount + tax_amount
    - balance_amount == total_amount - paid_amount and balance_amount >= 0
    - status == paid implies balance_amount == 0
    - Status transitions: draft -> sent -> paid, draft|sent -> cancelled,
      draft -> paid when a single payment clears the balance
    - paid and cancelled invoices (and their items) are immutable
    """

    __tablename__ = "invoices"
    __table_args__ = (
        Index('ix_invoices_patient_id', 'patient_id'),
        Index('ix_invoices_status', 'status'),
        Index('ix_invoices_issue_date', 'issue_date'),
        CheckConstraint('balance_amount >= 0', name='invoice_balance_non_negative'),
        CheckConstraint('paid_amount >= 0', name='invoice_paid_non_negative'),
    )

    id: Optional[int] = Field(
        default=None,
        sa_column=Column(BigIntId, primary_key=True, autoincrement=True),
        description="Unique invoice identifier (auto-increment)"
    )

    patient_id: str = Field(
        sa_column=Column(String(64), nullable=False),
        description="Patient the invoice is issued against"
    )

    invoice_number: str = Field(
        sa_column=Column(String(50), nullable=False, unique=True),
        description="Unique invoice number (e.g., INV-0001)"
    )

    status: InvoiceStatus = Field(
        default=InvoiceStatus.DRAFT,
        description="Invoice status (draft, sent, paid, cancelled)"
    )

    currency: str = Field(
        default="USD",
        sa_column=Column(String(3), nullable=False),
        description="Currency code (ISO 4217)"
    )

    subtotal: Decimal = Field(
        sa_column=Column(Numeric(*MONEY_PRECISION), nullable=False),
        description="Sum of quantity * unit_price over all items"
    )

    tax_amount: Decimal = Field(
        sa_column=Column(Numeric(*MONEY_PRECISION), nullable=False),
        description="Sum of item taxes"
    )

    discount_amount: Decimal = Field(
        sa_column=Column(Numeric(*MONEY_PRECISION), nullable=False),
        description="Sum of item discounts"
    )

    total_amount: Decimal = Field(
        sa_column=Column(Numeric(*MONEY_PRECISION), nullable=False),
        description="subtotal - discount_amount + tax_amount"
    )

    paid_amount: Decimal = Field(
        default=Decimal("0"),
        sa_column=Column(Numeric(*MONEY_PRECISION), nullable=False),
        description="Sum of recorded payments"
    )

    balance_amount: Decimal = Field(
        sa_column=Column(Numeric(*MONEY_PRECISION), nullable=False),
        description="total_amount - paid_amount (never negative)"
    )

    issue_date: date = Field(
        sa_column=Column(Date, nullable=False),
        description="Invoice issue date"
    )

    due_date: date = Field(
        sa_column=Column(Date, nullable=False),
        description="Payment due date"
    )

    paid_date: Optional[datetime] = Field(
        default=None,
        description="Date of the payment that cleared the balance"
    )

    notes: Optional[str] = Field(
        default=None,
        sa_column=Column(Text, nullable=True),
    )

    billing_address: Optional[dict] = Field(
        default=None,
        sa_column=Column(JSON, nullable=True),
    )

    related_entity_type: Optional[str] = Field(
        default=None,
        sa_column=Column(String(50), nullable=True),
        description="Type of related clinical entity (e.g., 'appointment')"
    )

    related_entity_id: Optional[str] = Field(
        default=None,
        sa_column=Column(String(64), nullable=True),
        description="ID of related clinical entity"
    )

    created_by: str = Field(
        sa_column=Column(String(64), nullable=False),
        description="User who created the invoice"
    )

    created_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="Invoice creation timestamp"
    )

    updated_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="Last update timestamp"
    )

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def ensure_mutable(self) -> None:
        """Raise ConflictError if the invoice is paid or cancelled"""
        if self.is_terminal:
            raise ConflictError(
                f"Cannot modify {self.status.value} invoice {self.invoice_number}",
                code=INVOICE_NOT_MUTABLE,
                reason="Paid and cancelled invoices are immutable",
            )

    def ensure_transition(self, target: InvoiceStatus) -> None:
        """Raise ConflictError unless target is a manual transition from the current status"""
        if target == self.status and not self.is_terminal:
            return
        if target not in MANUAL_TRANSITIONS[self.status]:
            raise ConflictError(
                f"Cannot change invoice status from {self.status.value} to {target.value}",
                code=INVALID_STATUS_TRANSITION,
                reason="paid is reached only through payment; paid and cancelled are terminal",
            )
