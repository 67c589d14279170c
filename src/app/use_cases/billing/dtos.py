"""Data Transfer Objects for Billing Use Cases

Pydantic models for command inputs and response outputs.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional, Dict, Any, List
from pydantic import BaseModel, Field
from src.domain.billing_settings import BillingSettings
from src.domain.currency import CurrencyRegistry
from src.domain.invoice import Invoice
from src.domain.invoice_item import InvoiceItem
from src.domain.payment import Payment, PaymentMethod


class InvoiceItemInputDTO(BaseModel):
    """
    Line item input for creating or replacing invoice items

    Figures are validated by the totals calculator, not here.
    """

    description: str = Field(
        ...,
        description="Line item description"
    )

    quantity: Decimal = Field(
        default=Decimal("1"),
        description="Quantity (must be > 0)"
    )

    unit_price: Decimal = Field(
        ...,
        description="Price per unit (must be >= 0)"
    )

    tax_rate: Decimal = Field(
        default=Decimal("0"),
        description="Tax rate in percent (0-100)"
    )

    discount: Decimal = Field(
        default=Decimal("0"),
        description="Absolute discount (0 to quantity * unit_price)"
    )

    service_code: Optional[str] = Field(
        default=None,
        description="Optional service/procedure code"
    )

    category: Optional[str] = Field(
        default=None,
        description="Optional category (e.g., 'consultation', 'lab')"
    )


class CreateInvoiceCommandDTO(BaseModel):
    """
    Command DTO for creating an invoice

    Used as input to CreateInvoice use case.
    """

    patient_id: str = Field(
        ...,
        description="Patient the invoice is issued against"
    )

    currency: Optional[str] = Field(
        default=None,
        description="Currency code (defaults to billing settings currency)"
    )

    items: List[InvoiceItemInputDTO] = Field(
        default_factory=list,
        description="Line items (at least one)"
    )

    issue_date: Optional[date] = Field(
        default=None,
        description="Issue date (defaults to today)"
    )

    due_date: Optional[date] = Field(
        default=None,
        description="Due date (defaults to issue_date + payment terms)"
    )

    notes: Optional[str] = Field(default=None)

    billing_address: Optional[Dict[str, Any]] = Field(default=None)

    related_entity_type: Optional[str] = Field(
        default=None,
        description="Type of related clinical entity (e.g., 'appointment')"
    )

    related_entity_id: Optional[str] = Field(
        default=None,
        description="ID of related clinical entity"
    )

    created_by: str = Field(
        ...,
        description="User creating the invoice"
    )

    class Config:
        json_schema_extra = {
            "example": {
                "patient_id": "patient_123",
                "currency": "USD",
                "items": [
                    {"description": "Consultation", "quantity": "2", "unit_price": "100.00", "tax_rate": "10"}
                ],
                "created_by": "user_42",
            }
        }


class UpdateInvoiceCommandDTO(BaseModel):
    """
    Command DTO for patching an invoice

    Only fields explicitly set are applied. Passing items replaces the
    whole item set.
    """

    invoice_id: int = Field(
        ...,
        description="Invoice ID"
    )

    currency: Optional[str] = Field(default=None)

    items: Optional[List[InvoiceItemInputDTO]] = Field(
        default=None,
        description="Replacement item set"
    )

    issue_date: Optional[date] = Field(default=None)

    due_date: Optional[date] = Field(default=None)

    status: Optional[str] = Field(
        default=None,
        description="Target status (sent or cancelled)"
    )

    notes: Optional[str] = Field(default=None)

    billing_address: Optional[Dict[str, Any]] = Field(default=None)

    related_entity_type: Optional[str] = Field(default=None)

    related_entity_id: Optional[str] = Field(default=None)


class ApplyPaymentCommandDTO(BaseModel):
    """
    Command DTO for recording a payment

    Used as input to ApplyPayment use case.
    """

    invoice_id: int = Field(
        ...,
        description="Invoice the payment is applied to"
    )

    amount: Decimal = Field(
        ...,
        description="Amount received (0 < amount <= balance)"
    )

    payment_method: PaymentMethod = Field(
        ...,
        description="How the payment was made"
    )

    payment_date: Optional[datetime] = Field(
        default=None,
        description="When the payment was received (defaults to now)"
    )

    currency: Optional[str] = Field(
        default=None,
        description="Payment currency (defaults to invoice currency)"
    )

    transaction_id: Optional[str] = Field(
        default=None,
        description="External processor reference"
    )

    notes: Optional[str] = Field(default=None)

    processed_by: str = Field(
        ...,
        description="User recording the payment"
    )

    class Config:
        json_schema_extra = {
            "example": {
                "invoice_id": 1,
                "amount": "220.00",
                "payment_method": "card",
                "transaction_id": "ch_3Nf9",
                "processed_by": "user_42",
            }
        }


class ListInvoicesQueryDTO(BaseModel):
    """Filter and paging parameters for ListInvoices"""

    patient_id: Optional[str] = None
    status: Optional[str] = None
    currency: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=20, ge=1, le=100)


class UpdateBillingSettingsCommandDTO(BaseModel):
    """Patch for the billing settings singleton"""

    default_currency: Optional[str] = None
    invoice_prefix: Optional[str] = None
    invoice_counter: Optional[int] = None
    payment_terms_days: Optional[int] = None


class InvoiceItemDTO(BaseModel):
    """Line item details"""

    id: int
    description: str
    quantity: Decimal
    unit_price: Decimal
    tax_rate: Decimal
    discount: Decimal
    total_amount: Decimal
    service_code: Optional[str] = None
    category: Optional[str] = None

    @classmethod
    def from_entity(cls, item: InvoiceItem) -> "InvoiceItemDTO":
        return cls(
            id=item.id,
            description=item.description,
            quantity=item.quantity,
            unit_price=item.unit_price,
            tax_rate=item.tax_rate,
            discount=item.discount,
            total_amount=item.total_amount,
            service_code=item.service_code,
            category=item.category,
        )


class PaymentDTO(BaseModel):
    """
    Response DTO for a payment ledger entry

    Returned by ApplyPayment, GetPayment and ListPayments.
    """

    id: int = Field(..., description="Payment ID")
    invoice_id: int = Field(..., description="Invoice ID")
    amount: Decimal = Field(..., description="Amount received")
    currency: str = Field(..., description="Currency code")
    payment_method: str = Field(..., description="Payment method")
    status: str = Field(..., description="Payment status")
    transaction_id: Optional[str] = None
    payment_date: datetime
    notes: Optional[str] = None
    processed_by: str
    created_at: datetime

    @classmethod
    def from_entity(cls, payment: Payment) -> "PaymentDTO":
        return cls(
            id=payment.id,
            invoice_id=payment.invoice_id,
            amount=payment.amount,
            currency=payment.currency,
            payment_method=payment.payment_method.value,
            status=payment.status.value,
            transaction_id=payment.transaction_id,
            payment_date=payment.payment_date,
            notes=payment.notes,
            processed_by=payment.processed_by,
            created_at=payment.created_at,
        )


class InvoiceResponseDTO(BaseModel):
    """
    Response DTO for invoice operations

    Returned by CreateInvoice, GetInvoice, UpdateInvoice, SendInvoice and
    CancelInvoice.
    """

    invoice_id: int = Field(..., description="Invoice ID")
    invoice_number: str = Field(..., description="Unique invoice number")
    patient_id: str = Field(..., description="Patient identifier")
    status: str = Field(..., description="Invoice status")
    currency: str = Field(..., description="Currency code")
    subtotal: Decimal
    tax_amount: Decimal
    discount_amount: Decimal
    total_amount: Decimal
    paid_amount: Decimal
    balance_amount: Decimal
    formatted_total: str = Field(..., description="Total formatted for display")
    formatted_balance: str = Field(..., description="Balance formatted for display")
    issue_date: date
    due_date: date
    paid_date: Optional[datetime] = None
    notes: Optional[str] = None
    billing_address: Optional[Dict[str, Any]] = None
    related_entity_type: Optional[str] = None
    related_entity_id: Optional[str] = None
    created_by: str
    created_at: datetime
    updated_at: datetime
    items: List[InvoiceItemDTO] = Field(default_factory=list)
    payments: List[PaymentDTO] = Field(default_factory=list)

    @classmethod
    def from_entities(
        cls,
        invoice: Invoice,
        items: Optional[List[InvoiceItem]] = None,
        payments: Optional[List[Payment]] = None,
    ) -> "InvoiceResponseDTO":
        return cls(
            invoice_id=invoice.id,
            invoice_number=invoice.invoice_number,
            patient_id=invoice.patient_id,
            status=invoice.status.value,
            currency=invoice.currency,
            subtotal=invoice.subtotal,
            tax_amount=invoice.tax_amount,
            discount_amount=invoice.discount_amount,
            total_amount=invoice.total_amount,
            paid_amount=invoice.paid_amount,
            balance_amount=invoice.balance_amount,
            formatted_total=CurrencyRegistry.format(invoice.total_amount, invoice.currency),
            formatted_balance=CurrencyRegistry.format(invoice.balance_amount, invoice.currency),
            issue_date=invoice.issue_date,
            due_date=invoice.due_date,
            paid_date=invoice.paid_date,
            notes=invoice.notes,
            billing_address=invoice.billing_address,
            related_entity_type=invoice.related_entity_type,
            related_entity_id=invoice.related_entity_id,
            created_by=invoice.created_by,
            created_at=invoice.created_at,
            updated_at=invoice.updated_at,
            items=[InvoiceItemDTO.from_entity(item) for item in items or []],
            payments=[PaymentDTO.from_entity(payment) for payment in payments or []],
        )

    class Config:
        json_schema_extra = {
            "example": {
                "invoice_id": 1,
                "invoice_number": "INV-0001",
                "patient_id": "patient_123",
                "status": "draft",
                "currency": "USD",
                "subtotal": "200.00",
                "tax_amount": "20.00",
                "discount_amount": "0.00",
                "total_amount": "220.00",
                "paid_amount": "0.00",
                "balance_amount": "220.00",
                "formatted_total": "$220.00",
                "formatted_balance": "$220.00",
                "issue_date": "2024-01-01",
                "due_date": "2024-01-31",
                "created_by": "user_42",
            }
        }


class InvoiceListResponseDTO(BaseModel):
    """Paged list of invoices (without items or payments)"""

    invoices: List[InvoiceResponseDTO]
    total: int = Field(..., description="Total matching invoices")
    page: int
    limit: int
    total_pages: int


class PaymentListResponseDTO(BaseModel):
    payments: List[PaymentDTO]
    total: int


class PaymentResponseDTO(BaseModel):
    """
    Response DTO for ApplyPayment

    Carries the recorded payment and the invoice state after it was applied.
    """

    payment: PaymentDTO
    invoice: InvoiceResponseDTO


class DeleteInvoiceResponseDTO(BaseModel):
    invoice_id: int
    invoice_number: str
    deleted_items: int


class BillingSettingsDTO(BaseModel):
    """Response DTO for billing settings"""

    default_currency: str
    invoice_prefix: str
    invoice_counter: int = Field(..., description="Next invoice number to issue")
    payment_terms_days: int
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_entity(cls, settings: BillingSettings) -> "BillingSettingsDTO":
        return cls(
            default_currency=settings.default_currency,
            invoice_prefix=settings.invoice_prefix,
            invoice_counter=settings.invoice_counter,
            payment_terms_days=settings.payment_terms_days,
            created_at=settings.created_at,
            updated_at=settings.updated_at,
        )


class InvoicePdfResponseDTO(BaseModel):
    """
    Response DTO for invoice PDF generation

    Contains the rendered PDF as base64 encoded string.
    """

    invoice_id: int
    invoice_number: str
    status: str
    pdf_base64: str = Field(..., description="PDF document as base64 encoded string")
    generated_at: datetime


class InvoiceDiscrepancyDTO(BaseModel):
    """
    A single invoice failing a ledger invariant

    Used in reconciliation results.
    """

    invoice_id: int
    invoice_number: str
    check: str = Field(
        ...,
        description="Violated check (paid_amount, total_amount, balance_amount, negative_balance, paid_status)"
    )
    expected: Decimal
    actual: Decimal


class ReconciliationResultDTO(BaseModel):
    """
    Response DTO for invoice reconciliation

    Returned by ReconcileInvoices use case.
    """

    total_invoices_checked: int = Field(
        ...,
        description="Total number of invoices checked"
    )

    discrepancies_found: int = Field(
        ...,
        description="Number of discrepancies found"
    )

    discrepancies: List[InvoiceDiscrepancyDTO] = Field(
        default_factory=list,
        description="List of discrepancies found"
    )

    reconciliation_time: datetime = Field(
        ...,
        description="When reconciliation was performed"
    )

    execution_time_ms: int = Field(
        ...,
        description="Execution time in milliseconds"
    )
