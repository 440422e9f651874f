from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import UTC, datetime

from config import settings
from portfolio_tracker.domain.categories import normalize_symbol
from portfolio_tracker.exceptions import AllocationError


def _tolerance(tolerance: float | None) -> float:
    return settings.PERCENT_TOLERANCE if tolerance is None else tolerance


def _now() -> datetime:
    return datetime.now(UTC)


@dataclass
class ModelStock:
    """Target weight for one symbol, on a 0-100 scale."""

    symbol: str
    target_percentage: float

    def __post_init__(self) -> None:
        self.symbol = normalize_symbol(self.symbol)


@dataclass
class ModelPortfolio:
    """Named target allocation expressed as symbol -> target percentage."""

    name: str
    stocks: list[ModelStock] = field(default_factory=list)
    created_at: datetime = field(default_factory=_now)
    updated_at: datetime = field(default_factory=_now)

    @property
    def total_percentage(self) -> float:
        return sum((s.target_percentage for s in self.stocks), 0.0)

    def is_balanced(self, tolerance: float | None = None) -> bool:
        return abs(self.total_percentage - 100) <= _tolerance(tolerance)

    def validate(self, tolerance: float | None = None) -> None:
        """Check the portfolio the way the editing form does.

        Raises:
            AllocationError: On a repeated symbol, an out-of-range percentage,
                or a total that is not 100 within tolerance.
        """

        seen: set[str] = set()
        for stock in self.stocks:
            if stock.symbol in seen:
                raise AllocationError(f"{stock.symbol} appears more than once in {self.name}")
            seen.add(stock.symbol)
            if not 0 < stock.target_percentage <= 100:
                raise AllocationError(
                    f"Percentage for {stock.symbol} must be in (0, 100], "
                    f"got {stock.target_percentage}"
                )
        if not self.is_balanced(tolerance):
            raise AllocationError(
                f"Percentages in {self.name} must total 100%, got {self.total_percentage:.2f}%"
            )

    def normalized_percentages(self, tolerance: float | None = None) -> dict[str, float]:
        """Symbol -> percentage, rescaled to total 100 when the stocks do not.

        Repeated symbols are summed. A zero total is returned unscaled.
        """

        result: dict[str, float] = {}
        for stock in self.stocks:
            result[stock.symbol] = result.get(stock.symbol, 0.0) + stock.target_percentage

        total = self.total_percentage
        if total > 0 and abs(total - 100) > _tolerance(tolerance):
            return {symbol: pct / total * 100 for symbol, pct in result.items()}
        return result

    def add_stock(self, symbol: str, target_percentage: float) -> ModelStock:
        stock = ModelStock(symbol=symbol, target_percentage=target_percentage)
        self.stocks.append(stock)
        self.updated_at = _now()
        return stock

    def remove_stock(self, symbol: str) -> None:
        symbol = normalize_symbol(symbol)
        self.stocks = [s for s in self.stocks if s.symbol != symbol]
        self.updated_at = _now()


def find_model_portfolio(
    portfolios: Iterable[ModelPortfolio], name: str | None
) -> ModelPortfolio | None:
    """Find a model portfolio by its (unique) name."""

    if not name:
        return None
    for portfolio in portfolios:
        if portfolio.name == name:
            return portfolio
    return None
