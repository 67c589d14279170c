"""Currency Registry

Static table of supported ISO 4217 currencies with display metadata.
Write paths validate codes through normalize(); format() falls back to USD
rules for unknown codes and is display-only.
"""

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, List, Union
from src.domain.errors import ValidationError


@dataclass(frozen=True)
class CurrencyInfo:
    code: str
    symbol: str
    name: str
    symbol_position: str  # "before" | "after"
    decimal_places: int


CURRENCIES: Dict[str, CurrencyInfo] = {
    "USD": CurrencyInfo("USD", "$", "US Dollar", "before", 2),
    "NGN": CurrencyInfo("NGN", "₦", "Nigerian Naira", "before", 2),
    "EUR": CurrencyInfo("EUR", "€", "Euro", "before", 2),
    "GBP": CurrencyInfo("GBP", "£", "British Pound", "before", 2),
    "CAD": CurrencyInfo("CAD", "C$", "Canadian Dollar", "before", 2),
    "AUD": CurrencyInfo("AUD", "A$", "Australian Dollar", "before", 2),
    "JPY": CurrencyInfo("JPY", "¥", "Japanese Yen", "before", 0),
    "INR": CurrencyInfo("INR", "₹", "Indian Rupee", "before", 2),
    "ZAR": CurrencyInfo("ZAR", "R", "South African Rand", "before", 2),
    "GHS": CurrencyInfo("GHS", "₵", "Ghanaian Cedi", "before", 2),
    "KES": CurrencyInfo("KES", "KSh", "Kenyan Shilling", "before", 2),
    "UGX": CurrencyInfo("UGX", "USh", "Ugandan Shilling", "before", 0),
}

DEFAULT_CURRENCY = "USD"


class CurrencyRegistry:
    """
    Lookup and formatting over the supported currency table

    All methods are classmethods; the table is process-wide and immutable.
    """

    @classmethod
    def is_valid(cls, code) -> bool:
        if not isinstance(code, str):
            return False
        return code.strip().upper() in CURRENCIES

    @classmethod
    def normalize(cls, code) -> str:
        """
        Return the canonical upper-case code

        Raises:
            ValidationError: If the code is not a supported currency
        """
        if not cls.is_valid(code):
            raise ValidationError(
                f"Invalid currency code: {code}",
                code="INVALID_CURRENCY",
                reason=f"Supported currencies: {', '.join(CURRENCIES)}",
            )
        return code.strip().upper()

    @classmethod
    def get(cls, code) -> CurrencyInfo:
        """Currency metadata, falling back to the default currency"""
        if cls.is_valid(code):
            return CURRENCIES[code.strip().upper()]
        return CURRENCIES[DEFAULT_CURRENCY]

    @classmethod
    def supported(cls) -> List[CurrencyInfo]:
        return list(CURRENCIES.values())

    @classmethod
    def minor_unit(cls, code) -> Decimal:
        """Smallest denomination as a quantum, e.g. Decimal('0.01')"""
        return Decimal(1).scaleb(-cls.get(code).decimal_places)

    @classmethod
    def quantize(cls, amount: Decimal, code) -> Decimal:
        """Round half-up at the currency's minor-unit boundary"""
        return Decimal(amount).quantize(cls.minor_unit(code), rounding=ROUND_HALF_UP)

    @classmethod
    def has_valid_precision(cls, amount: Decimal, code) -> bool:
        """True if amount carries no digits beyond the minor unit"""
        return Decimal(amount) == cls.quantize(amount, code)

    @classmethod
    def format(cls, amount: Union[Decimal, int, str, None], code) -> str:
        """
        Format an amount for display, e.g. format(Decimal("1234.5"), "USD") -> "$1,234.50"

        Unknown codes use the default currency's rules. Unparseable amounts
        render as zero.
        """
        info = cls.get(code)
        try:
            value = Decimal(str(amount)) if amount is not None else Decimal(0)
        except ArithmeticError:
            value = Decimal(0)
        if not value.is_finite():
            value = Decimal(0)

        value = value.quantize(Decimal(1).scaleb(-info.decimal_places), rounding=ROUND_HALF_UP)
        sign = "-" if value < 0 else ""
        number = f"{abs(value):,.{info.decimal_places}f}"

        if info.symbol_position == "before":
            return f"{sign}{info.symbol}{number}"
        return f"{sign}{number} {info.symbol}"
