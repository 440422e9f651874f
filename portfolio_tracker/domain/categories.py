from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass

from portfolio_tracker.exceptions import CategoryError
from portfolio_tracker.types import UNCATEGORIZED, UNCATEGORIZED_LABEL


def normalize_symbol(symbol: str) -> str:
    """Return the canonical (stripped, uppercase) form of a ticker."""

    return symbol.strip().upper()


@dataclass(frozen=True)
class Category:
    """User-defined asset class used to group symbols.

    The ``uncategorized`` id is reserved for the implicit bucket and can not be
    used for a user category.
    """

    id: str
    name: str

    def __post_init__(self) -> None:
        if not self.id:
            raise CategoryError("Category id must not be empty")
        if self.id == UNCATEGORIZED:
            raise CategoryError(f"'{UNCATEGORIZED}' is a reserved category id")


def category_ids(categories: Iterable[Category]) -> list[str]:
    """Category ids in display order, followed by the uncategorized bucket."""

    return [c.id for c in categories] + [UNCATEGORIZED]


def category_name(category_id: str, categories: Iterable[Category]) -> str:
    for category in categories:
        if category.id == category_id:
            return category.name
    return UNCATEGORIZED_LABEL


def category_of(
    symbol: str,
    stock_categories: Mapping[str, str],
    known_ids: Iterable[str] | None = None,
) -> str:
    """Resolve the category id for a symbol.

    Unmapped symbols, and symbols mapped to a category that no longer exists,
    fall into the uncategorized bucket.
    """

    category_id = stock_categories.get(normalize_symbol(symbol))
    if not category_id:
        return UNCATEGORIZED
    if known_ids is not None and category_id not in set(known_ids):
        return UNCATEGORIZED
    return category_id
