"""Sell-buy rebalancing: trim overweight categories, fill underweight ones."""

from __future__ import annotations

from collections.abc import Iterable, Mapping

import pandas as pd
import structlog

from config import settings
from portfolio_tracker.domain import Account, Category, ModelPortfolio
from portfolio_tracker.domain.categories import category_name, category_of
from portfolio_tracker.services.allocations import AllocationCalculator
from portfolio_tracker.services.pricing import price_for, quantize_money, to_decimal, whole_shares
from portfolio_tracker.services.rebalancing.dataclasses import CategoryAction, Suggestion
from portfolio_tracker.types import DeviationMap, OrderAction

logger = structlog.get_logger(__name__)


class SellBuyRebalancer:
    """Picks one symbol per off-target category and sizes a whole-share trade.

    Overweight categories sell their smallest position; underweight categories
    buy their largest position, or the model's heaviest stock in that category
    when nothing is held there yet.
    """

    def __init__(
        self,
        threshold: float | None = None,
        calculator: AllocationCalculator | None = None,
        tolerance: float | None = None,
    ) -> None:
        self.threshold = (
            settings.REBALANCE_DEVIATION_THRESHOLD if threshold is None else threshold
        )
        self.tolerance = settings.PERCENT_TOLERANCE if tolerance is None else tolerance
        self.calculator = calculator or AllocationCalculator()

    def suggest(
        self,
        deviations: DeviationMap,
        categories: Iterable[Category],
        accounts: Iterable[Account],
        stock_categories: Mapping[str, str],
        prices: Mapping,
        model_portfolio: ModelPortfolio | None,
        total_value: float,
    ) -> list[Suggestion]:
        """Generate sell suggestions for every overweight category, then buys.

        Args:
            deviations: current - model percentage per category id
            categories: User categories
            accounts: Accounts holding the positions
            stock_categories: Symbol -> category id
            prices: Symbol -> price
            model_portfolio: Selected model, None when the selection is unknown
            total_value: Current total portfolio value

        Returns:
            Suggestions in deviation-key order, all sells before all buys
        """
        total = float(total_value or 0.0)
        if model_portfolio is None or total <= 0:
            return []

        categories = list(categories)
        holdings_df = self.calculator.holdings_dataframe(
            accounts, stock_categories, prices, categories
        )
        by_symbol = self.calculator.symbol_values(holdings_df)

        significant = {
            category_id: deviation
            for category_id, deviation in deviations.items()
            if abs(deviation) >= self.threshold - self.tolerance
        }

        suggestions: list[Suggestion] = []
        for category_id, deviation in significant.items():
            if deviation > 0:
                suggestion = self._sell(category_id, deviation, by_symbol, prices, categories, total)
                if suggestion is not None:
                    suggestions.append(suggestion)

        for category_id, deviation in significant.items():
            if deviation < 0:
                suggestion = self._buy(
                    category_id,
                    deviation,
                    by_symbol,
                    prices,
                    categories,
                    stock_categories,
                    model_portfolio,
                    total,
                )
                if suggestion is not None:
                    suggestions.append(suggestion)

        logger.info(
            "sell_buy_suggestions_generated",
            model=model_portfolio.name,
            suggestion_count=len(suggestions),
            total_value=total,
        )
        return suggestions

    def _sell(
        self,
        category_id: str,
        deviation: float,
        by_symbol: pd.DataFrame,
        prices: Mapping,
        categories: list[Category],
        total: float,
    ) -> Suggestion | None:
        held = by_symbol[by_symbol["category"] == category_id]
        if held.empty:
            logger.debug("no_position_to_sell", category=category_id)
            return None

        # idxmin keeps the first symbol on ties
        symbol = held["value"].astype(float).idxmin()
        return self._build(
            "SELL", symbol, category_id, deviation, held, prices, categories, total
        )

    def _buy(
        self,
        category_id: str,
        deviation: float,
        by_symbol: pd.DataFrame,
        prices: Mapping,
        categories: list[Category],
        stock_categories: Mapping[str, str],
        model_portfolio: ModelPortfolio,
        total: float,
    ) -> Suggestion | None:
        held = by_symbol[by_symbol["category"] == category_id]
        if not held.empty:
            symbol = held["value"].astype(float).idxmax()
        else:
            known_ids = [c.id for c in categories]
            in_category = [
                (symbol, pct)
                for symbol, pct in model_portfolio.normalized_percentages().items()
                if category_of(symbol, stock_categories, known_ids) == category_id
            ]
            if not in_category:
                logger.debug("no_candidate_to_buy", category=category_id)
                return None
            symbol = max(in_category, key=lambda item: item[1])[0]

        return self._build("BUY", symbol, category_id, deviation, held, prices, categories, total)

    def _build(
        self,
        action: OrderAction,
        symbol: str,
        category_id: str,
        deviation: float,
        held: pd.DataFrame,
        prices: Mapping,
        categories: list[Category],
        total: float,
    ) -> Suggestion | None:
        price = price_for(prices, symbol)
        amount = to_decimal(abs(deviation) / 100 * total)
        shares = whole_shares(amount, price)
        if shares <= 0:
            logger.debug(
                "suggestion_below_one_share",
                category=category_id,
                symbol=symbol,
                price=float(price),
                amount=float(amount),
            )
            return None

        current_pct = float(held["value"].astype(float).sum()) / total * 100
        return Suggestion(
            symbol=symbol,
            action=action,
            category=category_id,
            category_name=category_name(category_id, categories),
            shares=shares,
            price=price,
            value=price * shares,
            current_percentage=current_pct,
            target_percentage=current_pct - deviation,
            deviation=deviation,
        )

    def category_actions(
        self,
        deviations: DeviationMap,
        categories: Iterable[Category],
        total_value: float,
        model_portfolio: ModelPortfolio | None,
        threshold: float | None = None,
    ) -> list[CategoryAction]:
        """Dollar amount to buy or sell per category beyond the action threshold."""
        total = float(total_value or 0.0)
        if model_portfolio is None or total <= 0:
            return []

        threshold = settings.CATEGORY_ACTION_THRESHOLD if threshold is None else threshold
        categories = list(categories)
        actions = []
        for category_id, deviation in deviations.items():
            if abs(deviation) <= threshold + self.tolerance:
                continue
            actions.append(
                CategoryAction(
                    category=category_id,
                    category_name=category_name(category_id, categories),
                    action="SELL" if deviation > 0 else "BUY",
                    percent=abs(deviation),
                    amount=quantize_money(abs(deviation) / 100 * total),
                )
            )
        return actions
