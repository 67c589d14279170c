"""Invoice Totals Calculator

Pure computation of invoice figures from line items.

Per item:
    item_subtotal  = quantity * unit_price
    after_discount = item_subtotal - discount
    item_tax       = after_discount * tax_rate / 100
    item_total     = after_discount + item_tax

Aggregates are summed unrounded and rounded once, half-up, at the currency's
minor unit. total_amount is derived from the rounded aggregates so that
total_amount == subtotal - discount_amount + tax_amount holds exactly.
"""

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import List, Optional, Sequence
from src.domain.base import MONEY_PRECISION
from src.domain.currency import CurrencyRegistry
from src.domain.errors import ValidationError

ZERO = Decimal("0")
HUNDRED = Decimal("100")
INPUT_QUANTUM = Decimal("0.0001")
# Exclusive upper bound of a Numeric(18, 2) money column
MAX_AMOUNT = Decimal(10) ** (MONEY_PRECISION[0] - MONEY_PRECISION[1])


@dataclass(frozen=True)
class LineTotals:
    description: str
    quantity: Decimal
    unit_price: Decimal
    tax_rate: Decimal
    discount: Decimal
    subtotal: Decimal
    tax_amount: Decimal
    total_amount: Decimal
    service_code: Optional[str] = None
    category: Optional[str] = None


@dataclass(frozen=True)
class InvoiceTotals:
    subtotal: Decimal
    tax_amount: Decimal
    discount_amount: Decimal
    total_amount: Decimal
    lines: List[LineTotals]


def _to_decimal(value, field: str, default: Optional[Decimal] = None) -> Decimal:
    if value is None:
        if default is None:
            raise ValidationError(f"Item {field} is required", code="INVALID_INVOICE_ITEM")
        return default
    if isinstance(value, float):
        value = str(value)
    try:
        result = Decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError(f"Item {field} is not a number: {value!r}", code="INVALID_INVOICE_ITEM")
    if not result.is_finite():
        raise ValidationError(f"Item {field} must be finite", code="INVALID_INVOICE_ITEM")
    # Item inputs are persisted with four decimal places
    if result != result.quantize(INPUT_QUANTUM):
        raise ValidationError(
            f"Item {field} has more than 4 decimal places: {value}",
            code="INVALID_INVOICE_ITEM",
        )
    return result


class InvoiceTotalsCalculator:
    """Computes line and invoice totals with decimal arithmetic"""

    @staticmethod
    def compute(items: Sequence, currency: str) -> InvoiceTotals:
        """
        Compute invoice totals

        Args:
            items: Line items exposing description, quantity, unit_price,
                   tax_rate, discount, service_code and category attributes
            currency: Validated currency code (drives the rounding quantum)

        Returns:
            InvoiceTotals with rounded aggregates and per-line figures

        Raises:
            ValidationError: If there are no items or an item is invalid
        """
        if not items:
            raise ValidationError(
                "Invoice must have at least one item",
                code="EMPTY_INVOICE_ITEMS",
            )

        subtotal = ZERO
        discount_total = ZERO
        tax_total = ZERO
        lines: List[LineTotals] = []

        for index, item in enumerate(items):
            description = (getattr(item, "description", None) or "").strip()
            if not description:
                raise ValidationError(
                    f"Item {index + 1} must have a description",
                    code="INVALID_INVOICE_ITEM",
                )

            quantity = _to_decimal(getattr(item, "quantity", None), "quantity", Decimal("1"))
            unit_price = _to_decimal(getattr(item, "unit_price", None), "unit_price")
            tax_rate = _to_decimal(getattr(item, "tax_rate", None), "tax_rate", ZERO)
            discount = _to_decimal(getattr(item, "discount", None), "discount", ZERO)

            if quantity <= ZERO:
                raise ValidationError(
                    f"Item {index + 1} quantity must be greater than 0",
                    code="INVALID_INVOICE_ITEM",
                )
            if unit_price < ZERO:
                raise ValidationError(
                    f"Item {index + 1} unit price cannot be negative",
                    code="INVALID_INVOICE_ITEM",
                )
            if tax_rate < ZERO or tax_rate > HUNDRED:
                raise ValidationError(
                    f"Item {index + 1} tax rate must be between 0 and 100",
                    code="INVALID_INVOICE_ITEM",
                )

            item_subtotal = quantity * unit_price
            if discount < ZERO or discount > item_subtotal:
                raise ValidationError(
                    f"Item {index + 1} discount must be between 0 and {item_subtotal}",
                    code="INVALID_INVOICE_ITEM",
                )

            after_discount = item_subtotal - discount
            item_tax = after_discount * tax_rate / HUNDRED
            item_total = after_discount + item_tax
            if item_subtotal >= MAX_AMOUNT or CurrencyRegistry.quantize(item_total, currency) >= MAX_AMOUNT:
                raise ValidationError(
                    f"Item {index + 1} total must be less than {MAX_AMOUNT}",
                    code="INVALID_INVOICE_ITEM",
                )
            line_total = CurrencyRegistry.quantize(item_total, currency)

            subtotal += item_subtotal
            discount_total += discount
            tax_total += item_tax

            lines.append(
                LineTotals(
                    description=description,
                    quantity=quantity,
                    unit_price=unit_price,
                    tax_rate=tax_rate,
                    discount=discount,
                    subtotal=item_subtotal,
                    tax_amount=item_tax,
                    # Stored per-line total is display-only
                    total_amount=line_total,
                    service_code=getattr(item, "service_code", None),
                    category=getattr(item, "category", None),
                )
            )

        subtotal = CurrencyRegistry.quantize(subtotal, currency)
        discount_total = CurrencyRegistry.quantize(discount_total, currency)
        tax_total = CurrencyRegistry.quantize(tax_total, currency)

        if subtotal >= MAX_AMOUNT or subtotal - discount_total + tax_total >= MAX_AMOUNT:
            raise ValidationError(
                f"Invoice total must be less than {MAX_AMOUNT}",
                code="INVOICE_TOTAL_TOO_LARGE",
            )

        return InvoiceTotals(
            subtotal=subtotal,
            tax_amount=tax_total,
            discount_amount=discount_total,
            total_amount=subtotal - discount_total + tax_total,
            lines=lines,
        )
