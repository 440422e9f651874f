from __future__ import annotations

from dataclasses import dataclass

from portfolio_tracker.types import TradeAction


@dataclass(frozen=True)
class Trade:
    """Hypothetical category-level trade for what-if simulation.

    Attributes:
        category: Category id the trade applies to
        action: 'buy' or 'sell'
        amount: Dollar amount, strictly positive; stored as float
    """

    category: str
    action: TradeAction
    amount: float

    def __post_init__(self) -> None:
        """Validate trade data."""
        if self.action not in ("buy", "sell"):
            raise ValueError(f"Action must be 'buy' or 'sell', got {self.action!r}")
        if self.amount <= 0:
            raise ValueError(f"Amount must be positive, got {self.amount}")
        # Category values in a simulation are floats
        object.__setattr__(self, "amount", float(self.amount))
