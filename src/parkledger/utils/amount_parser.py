"""Amount parsing utilities."""

from decimal import Decimal, InvalidOperation
import re

_CURRENCY_SYMBOLS = re.compile(r"[$€£¥]|\b(MXN|USD)\b", re.IGNORECASE)


def parse_amount(value: str | int | float | Decimal) -> Decimal:
    """Parse an amount into a Decimal rounded to cents.

    Handles:
    - Decimal, int and float values (floats go through str() to avoid
      binary noise)
    - "1500", "1500.00", "$1,500.00", "1,500 MXN"
    - "(1500.00)" (negative in parentheses)

    Args:
        value: Amount value

    Returns:
        Decimal amount

    Raises:
        ValueError: If the value cannot be parsed
    """
    if isinstance(value, bool):
        raise ValueError(f"Could not parse amount {value!r}")
    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, (int, float)):
        amount = Decimal(str(value))
    else:
        if value is None or not str(value).strip():
            raise ValueError("Empty amount string")

        amount_str = str(value).strip()
        is_negative = False
        if amount_str.startswith("(") and amount_str.endswith(")"):
            is_negative = True
            amount_str = amount_str[1:-1]

        amount_str = _CURRENCY_SYMBOLS.sub("", amount_str).replace(",", "").strip()

        try:
            amount = Decimal(amount_str)
        except InvalidOperation:
            raise ValueError(f"Could not parse amount '{value}'") from None
        if is_negative:
            amount = -amount

    if not amount.is_finite():
        raise ValueError(f"Could not parse amount '{value}'")
    return amount.quantize(Decimal("0.01"))
