"""What-if simulation of category-level trades over an allocation snapshot."""

from __future__ import annotations

from collections.abc import Iterable, Mapping

import structlog

from portfolio_tracker.domain import Trade
from portfolio_tracker.services.allocations import AllocationCalculator
from portfolio_tracker.services.rebalancing.dataclasses import WhatIfResult
from portfolio_tracker.types import AllocationMap

logger = structlog.get_logger(__name__)


class WhatIfSimulator:
    """Applies hypothetical trades to category dollar values.

    Never touches real holdings: the result is derived from the trade list and
    the before-snapshot alone.
    """

    def __init__(self, calculator: AllocationCalculator | None = None) -> None:
        self.calculator = calculator or AllocationCalculator()

    def simulate(
        self,
        trades: Iterable[Trade],
        current_allocation: AllocationMap,
        total_value: float,
        model_allocation: AllocationMap,
    ) -> WhatIfResult:
        """
        Apply trades in order and recompute percentages and deviations.

        A sell larger than the category's value empties the category and only
        removes what was held from the running total.

        Args:
            trades: Trades to apply, in order
            current_allocation: Percentages per category id before the trades
            total_value: Portfolio value before the trades
            model_allocation: Model percentages per category id

        Returns:
            WhatIfResult with the new allocation, deviations and total
        """
        total = float(total_value or 0.0)
        values = {
            category_id: float(pct) * total / 100
            for category_id, pct in current_allocation.items()
        }

        trade_count = 0
        for trade in trades:
            trade_count += 1
            held = values.get(trade.category, 0.0)
            if trade.action == "buy":
                values[trade.category] = held + trade.amount
                total += trade.amount
            else:
                sold = min(trade.amount, held)
                values[trade.category] = held - sold
                total -= sold

        if total > 0:
            allocation = {category_id: value / total * 100 for category_id, value in values.items()}
        else:
            allocation = dict.fromkeys(values, 0.0)

        deviations = self.calculator.deviate(model_allocation, allocation)
        logger.debug("what_if_simulated", trade_count=trade_count, projected_total=total)
        return WhatIfResult(
            allocation=allocation,
            deviations=deviations,
            projected_total_value=total,
            category_values=values,
        )


class WhatIfScenario:
    """Editable list of hypothetical trades over a fixed before-snapshot.

    Every result is recomputed from the snapshot, so adding, removing and
    resetting trades in any order never accumulates error.
    """

    def __init__(
        self,
        current_allocation: Mapping[str, float],
        total_value: float,
        model_allocation: Mapping[str, float],
        simulator: WhatIfSimulator | None = None,
    ) -> None:
        self.current_allocation = dict(current_allocation)
        self.total_value = total_value
        self.model_allocation = dict(model_allocation)
        self.simulator = simulator or WhatIfSimulator()
        self._trades: list[Trade] = []

    @property
    def trades(self) -> list[Trade]:
        return list(self._trades)

    def add_trade(self, category: str, action: str, amount: float) -> Trade:
        trade = Trade(category=category, action=action, amount=amount)  # type: ignore[arg-type]
        self._trades.append(trade)
        return trade

    def remove_trade(self, index: int) -> Trade:
        return self._trades.pop(index)

    def reset(self) -> None:
        self._trades.clear()

    def result(self) -> WhatIfResult:
        return self.simulator.simulate(
            self._trades, self.current_allocation, self.total_value, self.model_allocation
        )
