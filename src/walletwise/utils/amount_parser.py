"""Amount parsing utilities."""

import re
from decimal import Decimal, InvalidOperation

from walletwise.domain.entities import fits_money_precision

_CURRENCY = re.compile(r"^(rp\.?|idr|usd|\$|€|£|¥)", re.IGNORECASE)
_IDR_GROUPED = re.compile(r"^[1-9]\d{0,2}(\.\d{3})+$")


def _to_decimal(amount_str: str) -> Decimal:
    if not amount_str or not amount_str.strip():
        raise ValueError("Empty amount string")

    text = amount_str.strip()
    negative = text.startswith("-")
    if negative:
        text = text[1:].strip()

    text = _CURRENCY.sub("", text).strip()
    if _IDR_GROUPED.match(text):
        text = text.replace(".", "")
    else:
        text = text.replace(",", "")

    try:
        amount = Decimal(text)
    except InvalidOperation as e:
        raise ValueError(f"Could not parse amount '{amount_str}': {e}")
    if not amount.is_finite():
        raise ValueError(f"Could not parse amount '{amount_str}'")
    if not fits_money_precision(amount):
        raise ValueError(f"Amount cannot have more than two decimal places (got '{amount_str}')")
    return -amount if negative else amount


def parse_amount(amount_str: str) -> Decimal:
    """Parse an amount string into a positive magnitude.

    Transactions store magnitudes only; the sign comes from the transaction
    type. Handles various formats:
    - "25000", "25000.50"
    - "Rp 25.000", "Rp25.000.000" (dots as thousand separators)
    - "$1,234.56"

    Args:
        amount_str: Amount string

    Returns:
        Decimal amount greater than zero

    Raises:
        ValueError: If the string cannot be parsed or is not positive
    """
    amount = _to_decimal(amount_str)
    if amount <= 0:
        raise ValueError(f"Amount must be greater than zero (got '{amount_str}')")
    return amount


def parse_balance(amount_str: str) -> Decimal:
    """Parse a wallet balance, which may be zero or negative."""
    return _to_decimal(amount_str)


def format_amount(amount: Decimal, currency: str = "IDR") -> str:
    """Render an amount for display: "Rp 3.000.000" or "$3,000.50"."""
    sign = "-" if amount < 0 else ""
    magnitude = abs(amount)
    if currency.upper() == "IDR":
        grouped = f"{int(magnitude):,}".replace(",", ".")
        return f"{sign}Rp {grouped}"
    text = f"{magnitude:,.2f}"
    if text.endswith(".00"):
        text = text[:-3]
    return f"{sign}${text}"
