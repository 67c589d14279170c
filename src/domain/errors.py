"""Billing Error Taxonomy

Domain errors raised by billing components. Use cases translate them into
libs.result Error values; the API maps the codes onto HTTP statuses.

- ValidationError: invalid input, rejected before any write
- NotFoundError: unknown patient/invoice/payment id
- ConflictError: operation not allowed in the current invoice state
"""

from typing import Optional
from libs.result import Error


# Conflict codes
INVOICE_NOT_MUTABLE = "INVOICE_NOT_MUTABLE"
INVOICE_ALREADY_PAID = "INVOICE_ALREADY_PAID"
INVOICE_HAS_PAYMENTS = "INVOICE_HAS_PAYMENTS"
INVALID_STATUS_TRANSITION = "INVALID_STATUS_TRANSITION"
NEGATIVE_BALANCE = "NEGATIVE_BALANCE"
CONCURRENT_MODIFICATION = "CONCURRENT_MODIFICATION"

CONFLICT_CODES = frozenset({
    INVOICE_NOT_MUTABLE,
    INVOICE_ALREADY_PAID,
    INVOICE_HAS_PAYMENTS,
    INVALID_STATUS_TRANSITION,
    NEGATIVE_BALANCE,
    CONCURRENT_MODIFICATION,
})


class BillingError(Exception):
    """Base class for billing domain errors"""

    default_code = "BILLING_ERROR"

    def __init__(self, message: str, code: Optional[str] = None, reason: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.reason = reason

    def to_error(self) -> Error:
        return Error(code=self.code, message=self.message, reason=self.reason)


class ValidationError(BillingError):
    default_code = "VALIDATION_ERROR"


class NotFoundError(BillingError):
    def __init__(self, entity: str, entity_id):
        super().__init__(
            f"{entity} with ID {entity_id} not found",
            code=f"{entity.upper()}_NOT_FOUND",
            reason=f"{entity} does not exist",
        )
        self.entity = entity
        self.entity_id = entity_id


class ConflictError(BillingError):
    default_code = "CONFLICT"
