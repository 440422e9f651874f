"""
Price snapshot helpers.

The engine never fetches quotes. Whatever collaborator does (quote API,
manual entry, restored backup) hands over a raw symbol -> price mapping,
which is normalized here into a PriceMap of cent-precision Decimals.
"""

from collections.abc import Mapping
from decimal import ROUND_FLOOR, ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

import structlog

from portfolio_tracker.domain.categories import normalize_symbol
from portfolio_tracker.exceptions import PricingError
from portfolio_tracker.types import PriceMap

logger = structlog.get_logger(__name__)

CENTS = Decimal("0.01")
ZERO = Decimal("0")
SHARE_PRECISION = Decimal("1e-9")


def to_decimal(value: Any) -> Decimal:
    """Convert a number to Decimal via its string form (avoids float artifacts)."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def quantize_money(value: Any) -> Decimal:
    return to_decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)


def normalize_prices(raw: Mapping[str, Any]) -> PriceMap:
    """
    Build a PriceMap from raw quote data.

    Args:
        raw: {symbol: price} with any numeric (or numeric string) prices

    Returns:
        {SYMBOL: Decimal price quantized to cents}

    Raises:
        PricingError: If a price is not a number or is negative
    """
    prices: PriceMap = {}
    for symbol, value in raw.items():
        try:
            price = quantize_money(value)
        except (InvalidOperation, TypeError, ValueError) as e:
            raise PricingError(f"Invalid price for {symbol}: {value!r}") from e
        if not price.is_finite() or price < 0:
            raise PricingError(f"Price for {symbol} must be a non-negative number, got {value!r}")
        prices[normalize_symbol(symbol)] = price

    logger.debug("prices_normalized", symbol_count=len(prices))
    return prices


def price_for(prices: Mapping[str, Any], symbol: str) -> Decimal:
    """Price of a symbol, or zero when the snapshot has none."""
    value = prices.get(normalize_symbol(symbol))
    if value is None:
        return ZERO
    return to_decimal(value)


def whole_shares(amount: Any, price: Any) -> int:
    """Number of whole shares ``amount`` dollars buys at ``price``."""
    amount_d = to_decimal(amount)
    price_d = to_decimal(price)
    if price_d <= 0 or amount_d <= 0:
        return 0
    # Percent round-trips leave float noise (9.9999999999 shares for 10)
    ratio = (amount_d / price_d).quantize(SHARE_PRECISION, rounding=ROUND_HALF_UP)
    return int(ratio.to_integral_value(rounding=ROUND_FLOOR))


def affordable_shares(cash: Decimal, price: Decimal) -> int:
    """Whole shares that fit in ``cash`` without ever exceeding it."""
    if price <= 0 or cash <= 0:
        return 0
    return int(cash // price)
