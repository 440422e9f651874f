"""Pure calculation logic using pandas vectorization."""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

import pandas as pd
import structlog

from portfolio_tracker.domain import Account, Category, ModelPortfolio
from portfolio_tracker.domain.categories import category_ids, category_of
from portfolio_tracker.services.pricing import price_for
from portfolio_tracker.types import UNCATEGORIZED, AllocationMap, DeviationMap

logger = structlog.get_logger(__name__)

HOLDINGS_COLUMNS = ["account_id", "symbol", "shares", "price", "value", "category"]


@dataclass(frozen=True)
class CategoryAllocation:
    """Category totals for one holdings snapshot.

    Attributes:
        values: Dollar value per category id (every category plus uncategorized)
        percentages: Share of total value per category id, 0-100
        total_value: Sum of all position values
    """

    values: dict[str, float] = field(default_factory=dict)
    percentages: AllocationMap = field(default_factory=dict)
    total_value: float = 0.0


class AllocationCalculator:
    """
    Pure pandas calculations for category allocations.

    All methods are stateless; inputs are never mutated.
    """

    def holdings_dataframe(
        self,
        accounts: Iterable[Account],
        stock_categories: Mapping[str, str],
        prices: Mapping,
        categories: Iterable[Category],
    ) -> pd.DataFrame:
        """
        Flatten every account position into one row.

        Returns:
            Long-format DataFrame with columns:
            account_id, symbol, shares, price, value, category
        """
        known_ids = [c.id for c in categories]
        records = []
        for account in accounts:
            for position in account.positions:
                price = float(price_for(prices, position.symbol))
                records.append(
                    {
                        "account_id": account.id,
                        "symbol": position.symbol,
                        "shares": float(position.shares),
                        "price": price,
                        "value": price * float(position.shares),
                        "category": category_of(position.symbol, stock_categories, known_ids),
                    }
                )
        return pd.DataFrame(records, columns=HOLDINGS_COLUMNS)

    def category_allocation(
        self, holdings_df: pd.DataFrame, categories: Iterable[Category]
    ) -> CategoryAllocation:
        """Sum position values by category and convert to percentages."""
        ids = category_ids(categories)
        totals = (
            holdings_df.groupby("category", sort=False)["value"].sum()
            if not holdings_df.empty
            else pd.Series(dtype=float)
        )
        # Every category is present, even at zero
        totals = totals.reindex(ids, fill_value=0.0).astype(float)
        total_value = float(totals.sum())

        if total_value > 0:
            percentages = totals / total_value * 100
        else:
            percentages = totals * 0.0

        return CategoryAllocation(
            values={k: float(v) for k, v in totals.items()},
            percentages={k: float(v) for k, v in percentages.items()},
            total_value=total_value,
        )

    def aggregate(
        self,
        accounts: Iterable[Account],
        stock_categories: Mapping[str, str],
        prices: Mapping,
        categories: Iterable[Category],
    ) -> CategoryAllocation:
        """Current allocation of real holdings by category."""
        categories = list(categories)
        holdings_df = self.holdings_dataframe(accounts, stock_categories, prices, categories)
        allocation = self.category_allocation(holdings_df, categories)
        logger.debug(
            "current_allocation_calculated",
            position_count=len(holdings_df),
            total_value=allocation.total_value,
        )
        return allocation

    def symbol_values(self, holdings_df: pd.DataFrame) -> pd.DataFrame:
        """
        Aggregate positions across accounts by symbol.

        Symbols keep the order in which they are first encountered, which is
        what tie-breaks in the rebalancers rely on.

        Returns:
            DataFrame indexed by symbol with columns: shares, value, price, category
        """
        if holdings_df.empty:
            return pd.DataFrame(columns=["shares", "value", "price", "category"])
        return holdings_df.groupby("symbol", sort=False).agg(
            shares=("shares", "sum"),
            value=("value", "sum"),
            price=("price", "first"),
            category=("category", "first"),
        )

    def aggregate_model(
        self,
        model_portfolio: ModelPortfolio | None,
        stock_categories: Mapping[str, str],
        categories: Iterable[Category],
    ) -> AllocationMap:
        """
        Target allocation by category for a model portfolio.

        Stock percentages are normalized to a 100 total first, so a model
        saved with a slightly-off total still compares on the same scale.
        A missing model yields all zeros.
        """
        categories = list(categories)
        ids = category_ids(categories)
        if model_portfolio is None:
            return dict.fromkeys(ids, 0.0)

        known_ids = [c.id for c in categories]
        model_df = pd.DataFrame(
            [
                {
                    "symbol": symbol,
                    "percentage": pct,
                    "category": category_of(symbol, stock_categories, known_ids),
                }
                for symbol, pct in model_portfolio.normalized_percentages().items()
            ],
            columns=["symbol", "percentage", "category"],
        )
        totals = (
            model_df.groupby("category", sort=False)["percentage"].sum()
            if not model_df.empty
            else pd.Series(dtype=float)
        )
        totals = totals.reindex(ids, fill_value=0.0).astype(float)
        return {k: float(v) for k, v in totals.items()}

    def deviate(
        self,
        model: Mapping[str, float],
        current: Mapping[str, float],
        categories: Iterable[Category] | None = None,
    ) -> DeviationMap:
        """
        Signed deviation (current - model) per category.

        With ``categories`` the keys are exactly the category ids plus
        uncategorized; without, the union of both maps' keys.
        """
        if categories is not None:
            keys = category_ids(categories)
        else:
            keys = list(current.keys()) + [k for k in model if k not in current]
            if UNCATEGORIZED not in keys:
                keys.append(UNCATEGORIZED)
        return {k: float(current.get(k, 0.0)) - float(model.get(k, 0.0)) for k in keys}
