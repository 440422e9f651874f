"""Display formatting for dollar amounts, numbers and percentages."""

from decimal import Decimal, InvalidOperation
from typing import Any


def _to_float(value: Any) -> float | None:
    if value is None:
        return None
    try:
        result = float(Decimal(str(value)))
    except (ValueError, TypeError, InvalidOperation):
        return None
    if result != result:  # NaN
        return None
    return result


def money(value: Any, decimals: int = 2) -> str:
    """
    Format as $1,234.56; invalid input renders as $0.00.

    Examples:
        money(1234.5)     -> $1,234.50
        money(-1234.5)    -> -$1,234.50
        money(1234.5, 0)  -> $1,234
    """
    val = _to_float(value)
    if val is None:
        val = 0.0
    formatted = f"${abs(val):,.{decimals}f}"
    return f"-{formatted}" if val < 0 else formatted


def number(value: Any, decimals: int = 2) -> str:
    """Format as 1,234.56; invalid input renders as 0.00."""
    val = _to_float(value)
    if val is None:
        val = 0.0
    return f"{val:,.{decimals}f}"


def percent(value: Any, decimals: int = 2) -> str:
    """Format as 12.35%."""
    return f"{number(value, decimals)}%"


def signed_percent(value: Any, decimals: int = 2) -> str:
    """Format a deviation as +1.25% / -1.25%."""
    val = _to_float(value) or 0.0
    sign = "+" if val > 0 else ""
    return f"{sign}{number(val, decimals)}%"
