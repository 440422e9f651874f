"""Rebalancing suggestions for a portfolio against a model portfolio.

Three modes share the category allocation computed by
``portfolio_tracker.services.allocations``:

- sell-buy: one whole-share trade per off-target category
- buy-only: spread new cash across underweight categories and stocks
- what-if: apply hypothetical category trades to the current allocation

Usage:
    from portfolio_tracker.services.rebalancing import PortfolioSnapshot, RebalancingEngine

    engine = RebalancingEngine(snapshot)
    for suggestion in engine.sell_buy("Growth"):
        print(f"{suggestion.action} {suggestion.shares} {suggestion.symbol}")
"""

from collections.abc import Iterable, Mapping
from decimal import Decimal

from portfolio_tracker.domain import Account, Category, ModelPortfolio, Trade
from portfolio_tracker.services.rebalancing.buy_only import BuyOnlyRebalancer
from portfolio_tracker.services.rebalancing.dataclasses import (
    AllocationComparison,
    BuyOnlyPlan,
    BuyOnlyProjection,
    CategoryAction,
    Suggestion,
    WhatIfResult,
)
from portfolio_tracker.services.rebalancing.engine import PortfolioSnapshot, RebalancingEngine
from portfolio_tracker.services.rebalancing.sell_buy import SellBuyRebalancer
from portfolio_tracker.services.rebalancing.symbol_drift import SymbolDriftRebalancer
from portfolio_tracker.services.rebalancing.what_if import WhatIfScenario, WhatIfSimulator
from portfolio_tracker.types import AllocationMap, DeviationMap

__all__ = [
    "AllocationComparison",
    "BuyOnlyPlan",
    "BuyOnlyProjection",
    "BuyOnlyRebalancer",
    "CategoryAction",
    "PortfolioSnapshot",
    "RebalancingEngine",
    "SellBuyRebalancer",
    "Suggestion",
    "SymbolDriftRebalancer",
    "WhatIfResult",
    "WhatIfScenario",
    "WhatIfSimulator",
    "reallocate_buy_only",
    "simulate",
    "suggest_buy_only",
    "suggest_sell_buy",
]


def suggest_sell_buy(
    deviations: DeviationMap,
    categories: Iterable[Category],
    accounts: Iterable[Account],
    stock_categories: Mapping[str, str],
    prices: Mapping,
    model_portfolio: ModelPortfolio | None,
    total_value: float,
) -> list[Suggestion]:
    """Sell the smallest overweight position, buy the largest underweight one."""
    return SellBuyRebalancer().suggest(
        deviations, categories, accounts, stock_categories, prices, model_portfolio, total_value
    )


def suggest_buy_only(
    investment_amount: float | Decimal,
    model_portfolio: ModelPortfolio | None,
    accounts: Iterable[Account],
    categories: Iterable[Category],
    stock_categories: Mapping[str, str],
    prices: Mapping,
    model_allocation: AllocationMap,
    current_allocation: AllocationMap,
    total_value: float,
    selected: Iterable[str] | None = None,
) -> BuyOnlyPlan:
    """Distribute new cash over underweight categories, never selling."""
    return BuyOnlyRebalancer().plan(
        investment_amount,
        model_portfolio,
        accounts,
        categories,
        stock_categories,
        prices,
        model_allocation,
        current_allocation,
        total_value,
        selected=selected,
    )


def reallocate_buy_only(
    selected: Iterable[str],
    investment_amount: float | Decimal,
    model_portfolio: ModelPortfolio | None,
    accounts: Iterable[Account],
    categories: Iterable[Category],
    stock_categories: Mapping[str, str],
    prices: Mapping,
    model_allocation: AllocationMap,
    current_allocation: AllocationMap,
    total_value: float,
) -> BuyOnlyPlan:
    """Buy-only plan restricted to the selected symbols' suggestions."""
    return suggest_buy_only(
        investment_amount,
        model_portfolio,
        accounts,
        categories,
        stock_categories,
        prices,
        model_allocation,
        current_allocation,
        total_value,
        selected=selected,
    )


def simulate(
    trades: Iterable[Trade],
    current_allocation: AllocationMap,
    total_value: float,
    model_allocation: AllocationMap,
) -> WhatIfResult:
    """Allocation and deviations after hypothetical category trades."""
    return WhatIfSimulator().simulate(trades, current_allocation, total_value, model_allocation)
