"""Billing Settings Domain Entity

Single process-wide configuration row for invoicing.
"""

from datetime import datetime
from typing import Optional
from sqlmodel import Field, Column
from sqlalchemy import CheckConstraint, Integer, String
from src.domain.base import BaseModel

BILLING_SETTINGS_ID = 1

DEFAULT_CURRENCY = "USD"
DEFAULT_INVOICE_PREFIX = "INV"
DEFAULT_INVOICE_COUNTER = 1
DEFAULT_PAYMENT_TERMS_DAYS = 30


class BillingSettings(BaseModel, table=True):
    """
    Billing Settings - Singleton configuration row

    Domain Rules:
    - Exactly one row, primary key fixed at BILLING_SETTINGS_ID
    - Created lazily with defaults on first access
    - invoice_counter is the next invoice number to issue and only moves forward
    - invoice_counter is incremented atomically by the invoice number sequencer
    """

    __tablename__ = "billing_settings"
    __table_args__ = (
        CheckConstraint('invoice_counter >= 1', name='invoice_counter_positive'),
        CheckConstraint('payment_terms_days >= 0', name='payment_terms_non_negative'),
    )

    id: Optional[int] = Field(
        default=BILLING_SETTINGS_ID,
        sa_column=Column(Integer, primary_key=True, autoincrement=False),
        description="Singleton identifier (always 1)"
    )

    default_currency: str = Field(
        default=DEFAULT_CURRENCY,
        sa_column=Column(String(3), nullable=False),
        description="Default invoice currency (ISO 4217)"
    )

    invoice_prefix: str = Field(
        default=DEFAULT_INVOICE_PREFIX,
        sa_column=Column(String(10), nullable=False),
        description="Prefix for invoice numbers (e.g., INV)"
    )

    invoice_counter: int = Field(
        default=DEFAULT_INVOICE_COUNTER,
        sa_column=Column(Integer, nullable=False),
        description="Next invoice number to issue"
    )

    payment_terms_days: int = Field(
        default=DEFAULT_PAYMENT_TERMS_DAYS,
        sa_column=Column(Integer, nullable=False),
        description="Days between issue date and default due date"
    )

    created_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="Settings creation timestamp"
    )

    updated_at: datetime = Field(
        default_factory=datetime.utcnow,
        description="Last update timestamp"
    )
