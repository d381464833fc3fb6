"""Base-unit token amounts to display strings and back.

All arithmetic is done on Python integers or Decimal, never float, so
balances above 2**53 keep every digit.
"""

from decimal import Decimal, InvalidOperation, ROUND_DOWN, localcontext
from typing import Any, Optional

from .config import DEFAULT_COINS
from .helpers import is_integer_text

APT_COIN_TYPE = DEFAULT_COINS['APT']
APT_SYMBOL = 'APT'
APT_DECIMALS = 8


def parse_base_units(amount: Any) -> Optional[int]:
    """Integer base units from an int or a digit string, None otherwise"""
    if isinstance(amount, bool):
        return None
    if isinstance(amount, int):
        return amount
    if isinstance(amount, str):
        text = amount.strip()
        if is_integer_text(text):
            return int(text)
    return None


def format_base_units(value: int, decimals: int = APT_DECIMALS) -> str:
    """Exact fixed-point rendering of an integer amount"""
    sign = '-' if value < 0 else ''
    whole, fraction = divmod(abs(value), 10 ** decimals)
    if decimals == 0:
        return f"{sign}{whole}"
    return f"{sign}{whole}.{fraction:0{decimals}d}"


def format_amount(amount: Any, token_type: str, symbol: Optional[str] = None) -> str:
    """Display string for a base-unit amount.

    The native coin is shown with 8 decimals and an APT suffix. Other
    tokens have unknown precision, so they are shown as grouped integers,
    suffixed with ``symbol`` when given.
    """
    value = parse_base_units(amount)
    if value is None:
        return str(amount) if amount is not None else ''
    if token_type == APT_COIN_TYPE:
        return f"{format_base_units(value, APT_DECIMALS)} {APT_SYMBOL}"
    grouped = f"{value:,}"
    return f"{grouped} {symbol}" if symbol else grouped


def parse_display_amount(display: str, decimals: int = APT_DECIMALS) -> int:
    """Inverse of the native coin display format: '1.00000000 APT' -> 100000000"""
    number = display.split()[0]
    whole, _, fraction = number.partition('.')
    negative = whole.startswith('-')
    fraction = fraction.ljust(decimals, '0')[:decimals]
    value = int(whole.lstrip('-') or '0') * 10 ** decimals + int(fraction or '0')
    return -value if negative else value


def to_base_units(amount: Any, decimals: int = APT_DECIMALS) -> int:
    """Convert a user-supplied decimal amount ('1.5') into base units, rounding down"""
    try:
        value = Decimal(str(amount).strip())
    except (InvalidOperation, ValueError):
        raise ValueError(f"Invalid amount: {amount}")
    if not value.is_finite():
        raise ValueError(f"Invalid amount: {amount}")
    if value <= 0:
        raise ValueError(f"Amount must be greater than 0: {amount}")
    with localcontext() as ctx:
        ctx.prec = max(28, len(value.as_tuple().digits) + decimals + 2)
        scaled = (value * (Decimal(10) ** decimals)).to_integral_value(rounding=ROUND_DOWN)
    if scaled <= 0:
        raise ValueError(f"Amount is smaller than one base unit: {amount}")
    return int(scaled)
