"""Unit tests for what-if simulation."""

from decimal import Decimal

import pytest

from portfolio_tracker.domain import Trade
from portfolio_tracker.services.rebalancing import WhatIfScenario, WhatIfSimulator, simulate

CURRENT = {"tech": 50.0, "finance": 50.0}
MODEL = {"tech": 60.0, "finance": 40.0}


@pytest.mark.unit
@pytest.mark.services
class TestWhatIfSimulator:
    def test_buy_increases_category_and_total(self) -> None:
        result = simulate([Trade("tech", "buy", 500)], CURRENT, 1000, MODEL)

        assert result.projected_total_value == pytest.approx(1500)
        assert result.allocation["tech"] == pytest.approx(1000 / 15)
        assert result.allocation["finance"] == pytest.approx(500 / 15)
        assert result.deviations["tech"] == pytest.approx(1000 / 15 - 60)
        assert result.category_values["tech"] == pytest.approx(1000)

    def test_sell_is_capped_at_held_value(self) -> None:
        result = simulate([Trade("tech", "sell", 900)], CURRENT, 1000, MODEL)

        assert result.category_values["tech"] == 0.0
        assert result.projected_total_value == pytest.approx(500)
        assert result.allocation == pytest.approx({"tech": 0.0, "finance": 100.0})

    def test_sell_of_unheld_category_changes_nothing(self) -> None:
        result = simulate([Trade("energy", "sell", 100)], CURRENT, 1000, MODEL)

        assert result.projected_total_value == pytest.approx(1000)
        assert result.allocation["energy"] == 0.0
        assert result.allocation["tech"] == pytest.approx(50.0)

    def test_trades_apply_in_order(self) -> None:
        """Buying first leaves more to sell than selling first."""
        buy_then_sell = simulate(
            [Trade("tech", "buy", 200), Trade("tech", "sell", 700)], CURRENT, 1000, MODEL
        )
        sell_then_buy = simulate(
            [Trade("tech", "sell", 700), Trade("tech", "buy", 200)], CURRENT, 1000, MODEL
        )

        assert buy_then_sell.category_values["tech"] == pytest.approx(0.0)
        assert sell_then_buy.category_values["tech"] == pytest.approx(200.0)

    def test_everything_sold_yields_zero_allocation(self) -> None:
        result = simulate(
            [Trade("tech", "sell", 500), Trade("finance", "sell", 500)], CURRENT, 1000, MODEL
        )

        assert result.projected_total_value == pytest.approx(0.0)
        assert result.allocation == {"tech": 0.0, "finance": 0.0}

    def test_no_trades_keeps_allocation(self) -> None:
        result = WhatIfSimulator().simulate([], CURRENT, 1000, MODEL)

        assert result.allocation == pytest.approx(CURRENT)
        assert result.deviations["tech"] == pytest.approx(-10.0)

    def test_inputs_not_mutated(self) -> None:
        current = dict(CURRENT)
        model = dict(MODEL)

        simulate([Trade("tech", "buy", 100)], current, 1000, model)

        assert current == CURRENT
        assert model == MODEL


@pytest.mark.unit
@pytest.mark.services
class TestWhatIfScenario:
    def test_add_and_remove_trades(self) -> None:
        scenario = WhatIfScenario(CURRENT, 1000, MODEL)

        scenario.add_trade("tech", "buy", 500)
        scenario.add_trade("finance", "sell", 100)
        assert len(scenario.trades) == 2

        removed = scenario.remove_trade(1)
        assert removed == Trade("finance", "sell", 100)
        assert scenario.result().allocation["tech"] == pytest.approx(1000 / 15)

    def test_reset_restores_snapshot(self) -> None:
        scenario = WhatIfScenario(CURRENT, 1000, MODEL)
        scenario.add_trade("tech", "sell", 250)

        scenario.reset()

        assert scenario.trades == []
        assert scenario.result().allocation == pytest.approx(CURRENT)
        assert scenario.result().projected_total_value == pytest.approx(1000)

    def test_invalid_trade_rejected(self) -> None:
        scenario = WhatIfScenario(CURRENT, 1000, MODEL)

        with pytest.raises(ValueError, match="Amount must be positive"):
            scenario.add_trade("tech", "buy", 0)
        assert scenario.trades == []

    def test_trades_property_is_a_copy(self) -> None:
        scenario = WhatIfScenario(CURRENT, 1000, MODEL)
        scenario.add_trade("tech", "buy", 100)

        scenario.trades.clear()

        assert len(scenario.trades) == 1


@pytest.mark.unit
@pytest.mark.services
def test_decimal_trade_amounts() -> None:
    result = simulate(
        [Trade("tech", "buy", Decimal("500")), Trade("finance", "sell", Decimal("100.50"))],
        CURRENT,
        1000,
        MODEL,
    )

    assert result.projected_total_value == pytest.approx(1399.5)
    assert result.category_values["tech"] == pytest.approx(1000.0)
    assert result.category_values["finance"] == pytest.approx(399.5)
