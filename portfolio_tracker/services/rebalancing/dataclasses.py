"""Data structures for rebalancing calculations."""

from dataclasses import dataclass, field
from decimal import Decimal

from portfolio_tracker.types import AllocationMap, DeviationMap, OrderAction


@dataclass(frozen=True)
class Suggestion:
    """A single share-level buy or sell suggestion.

    Attributes:
        symbol: Ticker to trade
        action: Whether to BUY or SELL
        category: Category id the symbol belongs to
        category_name: Display name of that category
        shares: Number of whole shares to trade
        price: Price used for estimation
        value: Realized dollar amount (shares * price)
        current_percentage: Current weight (category or symbol, see producer)
        target_percentage: Model weight on the same basis
        deviation: current_percentage - target_percentage
        allocation_percent: Share of the new money (buy-only)
        projected_percentage: Weight after the purchase (buy-only)
        projected_deviation: projected_percentage - target_percentage (buy-only)
    """

    symbol: str
    action: OrderAction
    category: str
    category_name: str
    shares: int
    price: Decimal
    value: Decimal
    current_percentage: float
    target_percentage: float
    deviation: float
    allocation_percent: float | None = None
    projected_percentage: float | None = None
    projected_deviation: float | None = None

    def __post_init__(self) -> None:
        """Validate suggestion data."""
        if self.shares < 0:
            raise ValueError(f"Shares must be non-negative, got {self.shares}")
        if self.value < 0:
            raise ValueError(f"Value must be non-negative, got {self.value}")


@dataclass(frozen=True)
class CategoryAction:
    """Category-level Buy/Sell amount needed to reach the model weight."""

    category: str
    category_name: str
    action: OrderAction
    percent: float
    amount: Decimal


@dataclass(frozen=True)
class BuyOnlyProjection:
    """Portfolio-wide allocation after applying buy-only purchases."""

    category_allocation: AllocationMap
    deviations: DeviationMap
    total_value: float


@dataclass(frozen=True)
class BuyOnlyPlan:
    """Result of distributing new cash across underweight positions.

    Attributes:
        suggestions: Purchases with shares > 0
        projections: Allocation after purchases, None when nothing qualifies
        investment_amount: New money offered
        total_invested: Sum of suggestion values
        unspent: investment_amount - total_invested
        selected: Symbols the plan was restricted to, None when unconstrained
    """

    suggestions: list[Suggestion] = field(default_factory=list)
    projections: BuyOnlyProjection | None = None
    investment_amount: Decimal = Decimal("0")
    total_invested: Decimal = Decimal("0")
    unspent: Decimal = Decimal("0")
    selected: frozenset[str] | None = None

    @property
    def symbols(self) -> list[str]:
        return [s.symbol for s in self.suggestions]


@dataclass(frozen=True)
class WhatIfResult:
    """Allocation after applying hypothetical trades."""

    allocation: AllocationMap
    deviations: DeviationMap
    projected_total_value: float
    category_values: dict[str, float] = field(default_factory=dict)


@dataclass(frozen=True)
class AllocationComparison:
    """Model vs current allocation for one model portfolio."""

    model_allocation: AllocationMap
    current_allocation: AllocationMap
    deviations: DeviationMap
    total_value: float
