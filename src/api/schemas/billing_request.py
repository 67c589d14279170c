"""Request schemas for Billing API

Pydantic models for validating incoming HTTP requests.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional, Dict, Any, List
from pydantic import BaseModel, Field, field_validator
from src.domain.payment import PaymentMethod


class InvoiceItemRequestSchema(BaseModel):
    """Line item of an invoice request"""

    description: str = Field(..., description="Line item description")
    quantity: Decimal = Field(default=Decimal("1"), description="Quantity (must be > 0)")
    unit_price: Decimal = Field(..., description="Price per unit")
    tax_rate: Decimal = Field(default=Decimal("0"), description="Tax rate in percent (0-100)")
    discount: Decimal = Field(default=Decimal("0"), description="Absolute discount amount")
    service_code: Optional[str] = Field(default=None)
    category: Optional[str] = Field(default=None)


class CreateInvoiceRequestSchema(BaseModel):
    """
    Request schema for creating an invoice

    Used for POST /billing/invoices endpoint.
    """

    patient_id: str = Field(
        ...,
        min_length=1,
        description="Patient identifier (required, non-empty)"
    )

    currency: Optional[str] = Field(
        default=None,
        description="Currency code (defaults to billing settings currency)"
    )

    items: List[InvoiceItemRequestSchema] = Field(
        default_factory=list,
        description="Line items (at least one)"
    )

    issue_date: Optional[date] = Field(default=None)
    due_date: Optional[date] = Field(default=None)
    notes: Optional[str] = Field(default=None)
    billing_address: Optional[Dict[str, Any]] = Field(default=None)
    related_entity_type: Optional[str] = Field(default=None)
    related_entity_id: Optional[str] = Field(default=None)

    class Config:
        json_schema_extra = {
            "example": {
                "patient_id": "patient_123",
                "currency": "USD",
                "items": [
                    {
                        "description": "General consultation",
                        "quantity": "2",
                        "unit_price": "100.00",
                        "tax_rate": "10",
                        "discount": "0",
                    }
                ],
                "notes": "Follow-up visit",
            }
        }


class UpdateInvoiceRequestSchema(BaseModel):
    """
    Request schema for patching an invoice

    Used for PUT /billing/invoices/{invoice_id}. Omitted fields are left unchanged;
    items, when present, replace the whole item set.
    """

    currency: Optional[str] = None
    items: Optional[List[InvoiceItemRequestSchema]] = None
    issue_date: Optional[date] = None
    due_date: Optional[date] = None
    status: Optional[str] = Field(default=None, description="sent or cancelled")
    notes: Optional[str] = None
    billing_address: Optional[Dict[str, Any]] = None
    related_entity_type: Optional[str] = None
    related_entity_id: Optional[str] = None


class CreatePaymentRequestSchema(BaseModel):
    """
    Request schema for recording a payment

    Used for POST /billing/payments endpoint.
    """

    invoice_id: int = Field(..., description="Invoice to apply the payment to")

    amount: Decimal = Field(
        ...,
        gt=0,
        description="Amount received (must be > 0)"
    )

    payment_method: PaymentMethod = Field(..., description="Payment method")
    payment_date: Optional[datetime] = Field(default=None)
    currency: Optional[str] = Field(default=None)
    transaction_id: Optional[str] = Field(default=None)
    notes: Optional[str] = Field(default=None)

    @field_validator('amount')
    @classmethod
    def validate_amount(cls, v):
        """Reject NaN and infinity"""
        if not v.is_finite():
            raise ValueError("Amount must be a finite number")
        return v

    class Config:
        json_schema_extra = {
            "example": {
                "invoice_id": 1,
                "amount": "220.00",
                "payment_method": "card",
                "transaction_id": "ch_3Nf9",
            }
        }


class UpdateBillingSettingsRequestSchema(BaseModel):
    """
    Request schema for updating billing settings

    Used for PUT /billing/settings endpoint.
    """

    default_currency: Optional[str] = None
    invoice_prefix: Optional[str] = None
    invoice_counter: Optional[int] = None
    payment_terms_days: Optional[int] = None
