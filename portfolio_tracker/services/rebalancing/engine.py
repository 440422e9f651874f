"""High-level orchestration for allocation comparison and rebalancing."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from decimal import Decimal

import structlog

from portfolio_tracker.domain import Account, Category, ModelPortfolio, Trade, find_model_portfolio
from portfolio_tracker.services.allocations import AllocationCalculator
from portfolio_tracker.services.pricing import to_decimal
from portfolio_tracker.services.rebalancing.buy_only import BuyOnlyRebalancer
from portfolio_tracker.services.rebalancing.dataclasses import (
    AllocationComparison,
    BuyOnlyPlan,
    CategoryAction,
    Suggestion,
    WhatIfResult,
)
from portfolio_tracker.services.rebalancing.sell_buy import SellBuyRebalancer
from portfolio_tracker.services.rebalancing.symbol_drift import SymbolDriftRebalancer
from portfolio_tracker.services.rebalancing.what_if import WhatIfScenario, WhatIfSimulator
from portfolio_tracker.types import PriceMap, StockCategoryMap

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class PortfolioSnapshot:
    """Everything the engine reads, captured at one point in time."""

    categories: list[Category] = field(default_factory=list)
    accounts: list[Account] = field(default_factory=list)
    stock_categories: StockCategoryMap = field(default_factory=dict)
    prices: PriceMap = field(default_factory=dict)
    model_portfolios: list[ModelPortfolio] = field(default_factory=list)

    def model(self, name: str | None) -> ModelPortfolio | None:
        return find_model_portfolio(self.model_portfolios, name)


class RebalancingEngine:
    """Runs the comparison pipeline for a model portfolio selected by name.

    Aggregation and deviation feed one of the rebalancing modes. An unknown
    model name is not an error: every mode returns an empty result.
    """

    def __init__(
        self,
        snapshot: PortfolioSnapshot,
        calculator: AllocationCalculator | None = None,
    ) -> None:
        """Initialize engine for given snapshot.

        Args:
            snapshot: Categories, accounts, mappings, prices and models
            calculator: Allocation calculator shared by every mode
        """
        self.snapshot = snapshot
        self.calculator = calculator or AllocationCalculator()
        self.sell_buy_rebalancer = SellBuyRebalancer(calculator=self.calculator)
        self.buy_only_rebalancer = BuyOnlyRebalancer(calculator=self.calculator)
        self.symbol_rebalancer = SymbolDriftRebalancer(calculator=self.calculator)
        self.simulator = WhatIfSimulator(calculator=self.calculator)

    def compare(self, model_name: str | None) -> AllocationComparison:
        """Model vs current allocation and deviations for the named model."""
        snapshot = self.snapshot
        model = snapshot.model(model_name)
        model_allocation = self.calculator.aggregate_model(
            model, snapshot.stock_categories, snapshot.categories
        )
        current = self.calculator.aggregate(
            snapshot.accounts, snapshot.stock_categories, snapshot.prices, snapshot.categories
        )
        deviations = self.calculator.deviate(
            model_allocation, current.percentages, snapshot.categories
        )

        logger.info(
            "allocation_compared",
            model=model_name,
            model_found=model is not None,
            total_value=current.total_value,
        )
        return AllocationComparison(
            model_allocation=model_allocation,
            current_allocation=current.percentages,
            deviations=deviations,
            total_value=current.total_value,
        )

    def sell_buy(self, model_name: str | None) -> list[Suggestion]:
        model = self.snapshot.model(model_name)
        if model is None:
            return []
        comparison = self.compare(model_name)
        return self.sell_buy_rebalancer.suggest(
            deviations=comparison.deviations,
            categories=self.snapshot.categories,
            accounts=self.snapshot.accounts,
            stock_categories=self.snapshot.stock_categories,
            prices=self.snapshot.prices,
            model_portfolio=model,
            total_value=comparison.total_value,
        )

    def category_actions(self, model_name: str | None) -> list[CategoryAction]:
        model = self.snapshot.model(model_name)
        if model is None:
            return []
        comparison = self.compare(model_name)
        return self.sell_buy_rebalancer.category_actions(
            comparison.deviations,
            self.snapshot.categories,
            comparison.total_value,
            model,
        )

    def symbol_suggestions(self, model_name: str | None) -> list[Suggestion]:
        return self.symbol_rebalancer.suggest(
            self.snapshot.accounts,
            self.snapshot.stock_categories,
            self.snapshot.prices,
            self.snapshot.categories,
            self.snapshot.model(model_name),
        )

    def buy_only(
        self,
        model_name: str | None,
        investment_amount: float | Decimal,
        selected: Iterable[str] | None = None,
    ) -> BuyOnlyPlan:
        model = self.snapshot.model(model_name)
        if model is None:
            investment = to_decimal(investment_amount)
            return BuyOnlyPlan(investment_amount=investment, unspent=max(investment, Decimal("0")))
        comparison = self.compare(model_name)
        return self.buy_only_rebalancer.plan(
            investment_amount=investment_amount,
            model_portfolio=model,
            accounts=self.snapshot.accounts,
            categories=self.snapshot.categories,
            stock_categories=self.snapshot.stock_categories,
            prices=self.snapshot.prices,
            model_allocation=comparison.model_allocation,
            current_allocation=comparison.current_allocation,
            total_value=comparison.total_value,
            selected=selected,
        )

    def what_if(self, model_name: str | None, trades: Iterable[Trade]) -> WhatIfResult:
        comparison = self.compare(model_name)
        return self.simulator.simulate(
            trades,
            comparison.current_allocation,
            comparison.total_value,
            comparison.model_allocation,
        )

    def what_if_scenario(self, model_name: str | None) -> WhatIfScenario:
        comparison = self.compare(model_name)
        return WhatIfScenario(
            comparison.current_allocation,
            comparison.total_value,
            comparison.model_allocation,
            simulator=self.simulator,
        )
