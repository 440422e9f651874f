from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field

from portfolio_tracker.domain.categories import normalize_symbol


@dataclass
class Position:
    """Shares of one symbol held in an account. Shares may be fractional."""

    symbol: str
    shares: float

    def __post_init__(self) -> None:
        self.symbol = normalize_symbol(self.symbol)
        if self.shares < 0:
            raise ValueError(f"Shares must be non-negative, got {self.shares}")


@dataclass
class Account:
    """Named container of positions representing real holdings."""

    id: str
    name: str
    positions: list[Position] = field(default_factory=list)

    def __iter__(self) -> Iterator[Position]:
        return iter(self.positions)

    def __len__(self) -> int:
        return len(self.positions)

    def add_position(self, symbol: str, shares: float) -> Position:
        """Add shares of a symbol, merging into an existing position."""

        new = Position(symbol=symbol, shares=shares)
        for position in self.positions:
            if position.symbol == new.symbol:
                position.shares += new.shares
                return position
        self.positions.append(new)
        return new

    def remove_position(self, symbol: str) -> None:
        symbol = normalize_symbol(symbol)
        self.positions = [p for p in self.positions if p.symbol != symbol]

    def total_shares(self, symbol: str) -> float:
        symbol = normalize_symbol(symbol)
        return sum((p.shares for p in self.positions if p.symbol == symbol), 0.0)
