"""
Category allocation calculations.

Public API:
    - aggregate(accounts, stock_categories, prices, categories) -> AllocationMap
    - aggregate_model(model_portfolio, stock_categories, categories) -> AllocationMap
    - deviate(model, current, categories) -> DeviationMap
"""

from collections.abc import Iterable, Mapping

from portfolio_tracker.domain import Account, Category, ModelPortfolio
from portfolio_tracker.types import AllocationMap, DeviationMap

from .calculations import AllocationCalculator, CategoryAllocation

__all__ = [
    "AllocationCalculator",
    "CategoryAllocation",
    "aggregate",
    "aggregate_model",
    "deviate",
]


def aggregate(
    accounts: Iterable[Account],
    stock_categories: Mapping[str, str],
    prices: Mapping,
    categories: Iterable[Category],
) -> AllocationMap:
    """Current allocation percentages by category."""
    return AllocationCalculator().aggregate(accounts, stock_categories, prices, categories).percentages


def aggregate_model(
    model_portfolio: ModelPortfolio | None,
    stock_categories: Mapping[str, str],
    categories: Iterable[Category],
) -> AllocationMap:
    """Model allocation percentages by category."""
    return AllocationCalculator().aggregate_model(model_portfolio, stock_categories, categories)


def deviate(
    model: Mapping[str, float],
    current: Mapping[str, float],
    categories: Iterable[Category] | None = None,
) -> DeviationMap:
    """Signed per-category deviation, current minus model."""
    return AllocationCalculator().deviate(model, current, categories)
