"""Per-symbol drift suggestions against a model portfolio's stock weights."""

from __future__ import annotations

from collections.abc import Iterable, Mapping

import structlog

from config import settings
from portfolio_tracker.domain import Account, Category, ModelPortfolio
from portfolio_tracker.domain.categories import category_name, category_of
from portfolio_tracker.services.allocations import AllocationCalculator
from portfolio_tracker.services.pricing import price_for, whole_shares
from portfolio_tracker.services.rebalancing.dataclasses import Suggestion

logger = structlog.get_logger(__name__)


class SymbolDriftRebalancer:
    """Compares each symbol's weight with its model weight.

    Held symbols more than ``drift_threshold`` points above their model weight
    are trimmed back to target; model symbols whose target value exceeds the
    held value by more than ``min_buy_value`` dollars are topped up.
    """

    def __init__(
        self,
        drift_threshold: float | None = None,
        min_buy_value: float | None = None,
        calculator: AllocationCalculator | None = None,
        tolerance: float | None = None,
    ) -> None:
        self.drift_threshold = (
            settings.SYMBOL_DRIFT_THRESHOLD if drift_threshold is None else drift_threshold
        )
        self.min_buy_value = settings.SYMBOL_MIN_BUY_VALUE if min_buy_value is None else min_buy_value
        self.tolerance = settings.PERCENT_TOLERANCE if tolerance is None else tolerance
        self.calculator = calculator or AllocationCalculator()

    def suggest(
        self,
        accounts: Iterable[Account],
        stock_categories: Mapping[str, str],
        prices: Mapping,
        categories: Iterable[Category],
        model_portfolio: ModelPortfolio | None,
    ) -> list[Suggestion]:
        """Return buys first, then sells, each by descending value."""
        if model_portfolio is None:
            return []

        categories = list(categories)
        known_ids = [c.id for c in categories]
        holdings_df = self.calculator.holdings_dataframe(
            accounts, stock_categories, prices, categories
        )
        by_symbol = self.calculator.symbol_values(holdings_df)
        total = float(by_symbol["value"].astype(float).sum()) if not by_symbol.empty else 0.0
        if total <= 0:
            return []

        model_pcts = model_portfolio.normalized_percentages()
        suggestions: list[Suggestion] = []

        for symbol, row in by_symbol.iterrows():
            value = float(row["value"])
            model_pct = model_pcts.get(symbol, 0.0)
            current_pct = value / total * 100
            if current_pct <= model_pct + self.drift_threshold + self.tolerance:
                continue

            price = price_for(prices, symbol)
            shares = whole_shares(value - model_pct / 100 * total, price)
            if shares > 0:
                suggestions.append(
                    Suggestion(
                        symbol=symbol,
                        action="SELL",
                        category=row["category"],
                        category_name=category_name(row["category"], categories),
                        shares=shares,
                        price=price,
                        value=price * shares,
                        current_percentage=current_pct,
                        target_percentage=model_pct,
                        deviation=current_pct - model_pct,
                    )
                )

        for symbol, model_pct in model_pcts.items():
            current_value = float(by_symbol.at[symbol, "value"]) if symbol in by_symbol.index else 0.0
            gap = model_pct / 100 * total - current_value
            if round(gap, 2) <= self.min_buy_value:
                continue

            price = price_for(prices, symbol)
            shares = whole_shares(gap, price)
            if shares <= 0:
                continue

            category_id = category_of(symbol, stock_categories, known_ids)
            current_pct = current_value / total * 100
            suggestions.append(
                Suggestion(
                    symbol=symbol,
                    action="BUY",
                    category=category_id,
                    category_name=category_name(category_id, categories),
                    shares=shares,
                    price=price,
                    value=price * shares,
                    current_percentage=current_pct,
                    target_percentage=model_pct,
                    deviation=current_pct - model_pct,
                )
            )

        suggestions.sort(key=lambda s: (s.action != "BUY", -s.value))
        logger.info(
            "symbol_drift_suggestions_generated",
            model=model_portfolio.name,
            suggestion_count=len(suggestions),
        )
        return suggestions
