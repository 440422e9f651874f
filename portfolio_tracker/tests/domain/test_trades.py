"""
Tests for the what-if Trade value object.

Tests: portfolio_tracker/domain/trades.py
"""

from decimal import Decimal

import pytest

from portfolio_tracker.domain import Trade


@pytest.mark.domain
@pytest.mark.unit
class TestTrade:
    def test_valid_trade(self) -> None:
        trade = Trade(category="tech", action="buy", amount=100)
        assert trade.amount == 100

    def test_rejects_unknown_action(self) -> None:
        with pytest.raises(ValueError, match="'buy' or 'sell'"):
            Trade(category="tech", action="hold", amount=100)  # type: ignore[arg-type]

    @pytest.mark.parametrize("amount", [0, -5])
    def test_rejects_non_positive_amount(self, amount) -> None:
        with pytest.raises(ValueError, match="positive"):
            Trade(category="tech", action="sell", amount=amount)

    def test_decimal_amount_stored_as_float(self) -> None:
        trade = Trade(category="tech", action="buy", amount=Decimal("250.75"))

        assert trade.amount == 250.75
        assert isinstance(trade.amount, float)
