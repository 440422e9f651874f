"""Buy-only rebalancing: spend new cash on underweight positions, never sell."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from decimal import Decimal

import structlog

from config import settings
from portfolio_tracker.domain import Account, Category, ModelPortfolio, Position
from portfolio_tracker.domain.categories import category_name, category_of, normalize_symbol
from portfolio_tracker.services.allocations import AllocationCalculator
from portfolio_tracker.services.pricing import affordable_shares, price_for, to_decimal
from portfolio_tracker.services.rebalancing.dataclasses import (
    BuyOnlyPlan,
    BuyOnlyProjection,
    Suggestion,
)
from portfolio_tracker.types import AllocationMap

logger = structlog.get_logger(__name__)

ZERO = Decimal("0")
HUNDRED = Decimal("100")
PURCHASES_ACCOUNT_ID = "__buy_only_purchases__"


@dataclass(frozen=True)
class _Candidate:
    """A model stock eligible to receive part of a category's cash."""

    symbol: str
    category: str
    price: Decimal
    current_value: Decimal
    current_pct: float
    target_pct: float
    shortfall: Decimal

    @property
    def deviation(self) -> float:
        return self.current_pct - self.target_pct


@dataclass(frozen=True)
class _Context:
    """Inputs shared by the first computation and any reallocation."""

    investment: Decimal
    categories: list[Category]
    accounts: list[Account]
    stock_categories: Mapping[str, str]
    prices: Mapping
    model_allocation: AllocationMap
    current_allocation: AllocationMap
    total_value: Decimal
    future_total: Decimal
    underweight: list[str]
    candidates: dict[str, list[_Candidate]]

    def category_shortfall(self, category_id: str) -> Decimal:
        model_pct = to_decimal(self.model_allocation.get(category_id, 0.0))
        current_pct = to_decimal(self.current_allocation.get(category_id, 0.0))
        return model_pct / HUNDRED * self.future_total - current_pct / HUNDRED * self.total_value

    def candidate(self, symbol: str) -> _Candidate | None:
        for candidates in self.candidates.values():
            for candidate in candidates:
                if candidate.symbol == symbol:
                    return candidate
        return None


def split_by_weight(cash: Decimal, weights: Mapping[str, Decimal]) -> dict[str, Decimal]:
    """Split cash proportionally to the positive weights; others get zero."""
    positive = {key: weight for key, weight in weights.items() if weight > 0}
    total = sum(positive.values(), ZERO)
    if total <= 0 or cash <= 0:
        return dict.fromkeys(weights, ZERO)
    return {key: cash * positive.get(key, ZERO) / total for key in weights}


class BuyOnlyRebalancer:
    """Allocates a fixed amount of new money across underweight categories.

    Cash is split across categories deviating below ``-threshold`` in
    proportion to their dollar shortfall against the post-investment total,
    then within each category across its model stocks the same way. Trades are
    floored to whole shares; what a category has left after one pass goes to
    its most underweight stocks, each visited once.
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

    def plan(
        self,
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
        """
        Build a buy-only plan.

        Args:
            investment_amount: New money to invest
            model_portfolio: Selected model, None when the selection is unknown
            accounts: Accounts holding the positions
            categories: User categories
            stock_categories: Symbol -> category id
            prices: Symbol -> price
            model_allocation: Model percentages per category id
            current_allocation: Current percentages per category id
            total_value: Current total portfolio value
            selected: Symbols of suggestions the caller kept. Cash from the
                dropped ones is spread over the kept ones. None keeps all.

        Returns:
            BuyOnlyPlan; projections is None when no category is underweight
        """
        investment = to_decimal(investment_amount)
        if model_portfolio is None or investment <= 0:
            return BuyOnlyPlan(
                investment_amount=investment,
                unspent=max(investment, ZERO),
            )

        context = self._context(
            investment,
            model_portfolio,
            accounts,
            categories,
            stock_categories,
            prices,
            model_allocation,
            current_allocation,
            total_value,
        )
        if not context.underweight:
            logger.info("buy_only_no_underweight_categories", model=model_portfolio.name)
            return BuyOnlyPlan(investment_amount=investment, unspent=investment)

        category_cash = split_by_weight(
            investment,
            {cid: context.category_shortfall(cid) for cid in context.underweight},
        )

        shares: dict[str, int] = {}
        for category_id in context.underweight:
            cash = min(category_cash[category_id], investment - self._spent(shares, context))
            bought, leftover = self._fill(cash, context.candidates[category_id])
            logger.debug(
                "buy_only_category_filled",
                category=category_id,
                cash=float(cash),
                leftover=float(leftover),
                symbols=sorted(bought),
            )
            for symbol, count in bought.items():
                shares[symbol] = shares.get(symbol, 0) + count

        plan = self._build_plan(shares, context)
        logger.info(
            "buy_only_plan_built",
            model=model_portfolio.name,
            suggestion_count=len(plan.suggestions),
            investment=float(investment),
            unspent=float(plan.unspent),
        )

        if selected is None:
            return plan
        return self._reallocate(plan, selected, context)

    def _context(
        self,
        investment: Decimal,
        model_portfolio: ModelPortfolio,
        accounts: Iterable[Account],
        categories: Iterable[Category],
        stock_categories: Mapping[str, str],
        prices: Mapping,
        model_allocation: AllocationMap,
        current_allocation: AllocationMap,
        total_value: float,
    ) -> _Context:
        categories = list(categories)
        accounts = list(accounts)
        known_ids = [c.id for c in categories]
        total = to_decimal(total_value or 0)
        future_total = total + investment

        deviations = self.calculator.deviate(model_allocation, current_allocation, categories)
        floor = -(self.threshold + self.tolerance)
        underweight = [cid for cid, dev in deviations.items() if dev < floor]

        holdings_df = self.calculator.holdings_dataframe(
            accounts, stock_categories, prices, categories
        )
        by_symbol = self.calculator.symbol_values(holdings_df)
        held_values = {symbol: to_decimal(value) for symbol, value in by_symbol["value"].items()}

        candidates: dict[str, list[_Candidate]] = {cid: [] for cid in underweight}
        for symbol, target_pct in model_portfolio.normalized_percentages().items():
            category_id = category_of(symbol, stock_categories, known_ids)
            if category_id not in candidates:
                continue
            price = price_for(prices, symbol)
            if price <= 0:
                continue
            current_value = held_values.get(symbol, ZERO)
            current_pct = float(current_value / total * HUNDRED) if total > 0 else 0.0
            candidates[category_id].append(
                _Candidate(
                    symbol=symbol,
                    category=category_id,
                    price=price,
                    current_value=current_value,
                    current_pct=current_pct,
                    target_pct=target_pct,
                    shortfall=to_decimal(target_pct) / HUNDRED * future_total - current_value,
                )
            )

        # Largest underweight deviation first; sort is stable for ties
        for category_candidates in candidates.values():
            category_candidates.sort(key=lambda c: c.deviation)

        return _Context(
            investment=investment,
            categories=categories,
            accounts=accounts,
            stock_categories=stock_categories,
            prices=prices,
            model_allocation=dict(model_allocation),
            current_allocation=dict(current_allocation),
            total_value=total,
            future_total=future_total,
            underweight=underweight,
            candidates=candidates,
        )

    def _fill(
        self,
        cash: Decimal,
        candidates: list[_Candidate],
        already_spent: Mapping[str, Decimal] | None = None,
    ) -> tuple[dict[str, int], Decimal]:
        """
        Spend one category's cash across its candidates.

        Args:
            cash: Cash available to the category
            candidates: Candidates sorted most underweight first
            already_spent: Per-symbol dollars already committed, reducing
                each candidate's remaining shortfall

        Returns:
            Tuple of ({symbol: shares bought}, cash left over)
        """
        already_spent = already_spent or {}
        shortfalls = {
            c.symbol: c.shortfall - already_spent.get(c.symbol, ZERO) for c in candidates
        }
        eligible = [c for c in candidates if shortfalls[c.symbol] > 0]
        total_shortfall = sum((shortfalls[c.symbol] for c in eligible), ZERO)

        bought: dict[str, int] = {}
        remaining = cash
        if cash <= 0 or total_shortfall <= 0:
            return bought, max(remaining, ZERO)

        for candidate in eligible:
            proportional = cash * shortfalls[candidate.symbol] / total_shortfall
            allocation = min(proportional, shortfalls[candidate.symbol], remaining)
            count = affordable_shares(allocation, candidate.price)
            if count > 0:
                bought[candidate.symbol] = count
                remaining -= candidate.price * count

        # Leftover goes to the most underweight candidate that can still
        # afford a whole share; each candidate is visited at most once.
        for candidate in eligible:
            count = affordable_shares(remaining, candidate.price)
            if count > 0:
                bought[candidate.symbol] = bought.get(candidate.symbol, 0) + count
                remaining -= candidate.price * count
            if remaining <= 0:
                break

        return bought, remaining

    def _reallocate(
        self, plan: BuyOnlyPlan, selected: Iterable[str], context: _Context
    ) -> BuyOnlyPlan:
        """Spread the cash of deselected suggestions over the selected ones."""
        selected_set = frozenset(normalize_symbol(symbol) for symbol in selected)
        planned = {s.symbol: s for s in plan.suggestions}
        if set(planned) <= selected_set:
            return plan

        kept = {symbol: s.shares for symbol, s in planned.items() if symbol in selected_set}
        freed = sum(
            (s.value for symbol, s in planned.items() if symbol not in selected_set), ZERO
        )
        kept_spent = {symbol: planned[symbol].value for symbol in kept}

        by_category: dict[str, list[_Candidate]] = {}
        for symbol in kept:
            candidate = context.candidate(symbol)
            if candidate is not None:
                by_category.setdefault(candidate.category, []).append(candidate)
        for category_candidates in by_category.values():
            category_candidates.sort(key=lambda c: c.deviation)

        weights = {
            cid: context.category_shortfall(cid)
            - sum((kept_spent[c.symbol] for c in candidates), ZERO)
            for cid, candidates in by_category.items()
        }
        category_cash = split_by_weight(freed, weights)

        shares = dict(kept)
        for category_id in context.underweight:
            if category_id not in by_category:
                continue
            bought, _ = self._fill(category_cash[category_id], by_category[category_id], kept_spent)
            for symbol, count in bought.items():
                shares[symbol] = shares.get(symbol, 0) + count

        result = self._build_plan(shares, context, selected=selected_set)
        logger.info(
            "buy_only_plan_reallocated",
            selected_count=len(kept),
            deselected_count=len(planned) - len(kept),
            freed=float(freed),
            unspent=float(result.unspent),
        )
        return result

    def _spent(self, shares: Mapping[str, int], context: _Context) -> Decimal:
        total = ZERO
        for symbol, count in shares.items():
            candidate = context.candidate(symbol)
            if candidate is not None:
                total += candidate.price * count
        return total

    def _build_plan(
        self,
        shares: Mapping[str, int],
        context: _Context,
        selected: frozenset[str] | None = None,
    ) -> BuyOnlyPlan:
        """Turn share counts into suggestions and project the resulting allocation."""
        purchases = Account(
            id=PURCHASES_ACCOUNT_ID,
            name="Buy-only purchases",
            positions=[
                Position(symbol=symbol, shares=count) for symbol, count in shares.items() if count > 0
            ],
        )
        projected = self.calculator.aggregate(
            context.accounts + [purchases],
            context.stock_categories,
            context.prices,
            context.categories,
        )
        projected_total = to_decimal(projected.total_value)

        suggestions = []
        for symbol, count in shares.items():
            candidate = context.candidate(symbol)
            if candidate is None or count <= 0:
                continue
            cost = candidate.price * count
            projected_pct = (
                float((candidate.current_value + cost) / projected_total * HUNDRED)
                if projected_total > 0
                else 0.0
            )
            suggestions.append(
                Suggestion(
                    symbol=symbol,
                    action="BUY",
                    category=candidate.category,
                    category_name=category_name(candidate.category, context.categories),
                    shares=count,
                    price=candidate.price,
                    value=cost,
                    current_percentage=candidate.current_pct,
                    target_percentage=candidate.target_pct,
                    deviation=candidate.deviation,
                    allocation_percent=float(cost / context.investment * HUNDRED),
                    projected_percentage=projected_pct,
                    projected_deviation=projected_pct - candidate.target_pct,
                )
            )

        total_invested = sum((s.value for s in suggestions), ZERO)
        return BuyOnlyPlan(
            suggestions=suggestions,
            projections=BuyOnlyProjection(
                category_allocation=projected.percentages,
                deviations=self.calculator.deviate(
                    context.model_allocation, projected.percentages, context.categories
                ),
                total_value=projected.total_value,
            ),
            investment_amount=context.investment,
            total_invested=total_invested,
            unspent=context.investment - total_invested,
            selected=selected,
        )
