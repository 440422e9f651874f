"""Integration tests for RebalancingEngine over scenario A."""

import json
from decimal import Decimal

import pytest

from portfolio_tracker.domain import Trade
from portfolio_tracker.services.exports import comparison_payload, suggestions_to_csv, to_json
from portfolio_tracker.services.rebalancing import PortfolioSnapshot, RebalancingEngine
from portfolio_tracker.tests.constants import DEFAULT_MODEL_NAME, SCENARIO_A_TOTAL
from portfolio_tracker.tests.factories import make_model
from portfolio_tracker.types import UNCATEGORIZED


@pytest.mark.integration
class TestCompare:
    def test_scenario_a(self, engine) -> None:
        comparison = engine.compare(DEFAULT_MODEL_NAME)

        assert comparison.total_value == pytest.approx(SCENARIO_A_TOTAL)
        assert comparison.model_allocation == pytest.approx(
            {"tech": 80.0, "finance": 20.0, UNCATEGORIZED: 0.0}
        )
        assert comparison.current_allocation["tech"] == pytest.approx(40.0)
        assert comparison.deviations["tech"] == pytest.approx(-40.0)
        assert comparison.deviations[UNCATEGORIZED] == pytest.approx(46.316, abs=0.001)

    def test_unknown_model_compares_against_zero(self, engine) -> None:
        comparison = engine.compare("Does Not Exist")

        assert set(comparison.model_allocation.values()) == {0.0}
        assert comparison.deviations == pytest.approx(comparison.current_allocation)


@pytest.mark.integration
class TestSuggestions:
    def test_sell_buy(self, engine) -> None:
        suggestions = engine.sell_buy(DEFAULT_MODEL_NAME)

        assert [(s.action, s.symbol, s.shares) for s in suggestions] == [
            ("SELL", "VTI", 10),
            ("BUY", "AAPL", 12),
            ("BUY", "JPM", 2),
        ]

    def test_category_actions(self, engine) -> None:
        actions = engine.category_actions(DEFAULT_MODEL_NAME)

        assert [(a.category, a.action, a.amount) for a in actions] == [
            ("tech", "BUY", Decimal("1900.00")),
            ("finance", "BUY", Decimal("300.00")),
            (UNCATEGORIZED, "SELL", Decimal("2200.00")),
        ]

    def test_symbol_suggestions(self, engine) -> None:
        """Buys by descending value, then the sell of unmodelled VTI."""
        suggestions = engine.symbol_suggestions(DEFAULT_MODEL_NAME)

        assert [(s.action, s.symbol, s.shares, s.value) for s in suggestions] == [
            ("BUY", "MSFT", 7, Decimal("1400.00")),
            ("BUY", "AAPL", 2, Decimal("300.00")),
            ("BUY", "JPM", 2, Decimal("260.00")),
            ("SELL", "VTI", 10, Decimal("2200.00")),
        ]

    def test_unknown_model_yields_nothing(self, engine) -> None:
        assert engine.sell_buy("Does Not Exist") == []
        assert engine.category_actions("Does Not Exist") == []
        assert engine.symbol_suggestions("Does Not Exist") == []
        assert engine.symbol_suggestions(None) == []

        plan = engine.buy_only("Does Not Exist", 1000)
        assert plan.suggestions == []
        assert plan.unspent == Decimal("1000")

    def test_empty_portfolio(self, categories) -> None:
        model = make_model({"AAPL": 100}, name=DEFAULT_MODEL_NAME)
        engine = RebalancingEngine(
            PortfolioSnapshot(
                categories=categories,
                stock_categories={"AAPL": "tech"},
                model_portfolios=[model],
            )
        )

        assert engine.compare(DEFAULT_MODEL_NAME).total_value == 0.0
        assert engine.sell_buy(DEFAULT_MODEL_NAME) == []
        assert engine.category_actions(DEFAULT_MODEL_NAME) == []
        assert engine.symbol_suggestions(DEFAULT_MODEL_NAME) == []


@pytest.mark.integration
class TestBuyOnly:
    def test_scenario_a_plan(self, engine) -> None:
        """
        $1,000 over tech ($843.75) and finance ($156.25) by shortfall.

        Tech: MSFT 2 + 1 leftover share, AAPL 1 share. Finance: JPM 1 share.
        """
        plan = engine.buy_only(DEFAULT_MODEL_NAME, 1000)

        assert {s.symbol: s.shares for s in plan.suggestions} == {"MSFT": 3, "AAPL": 1, "JPM": 1}
        assert plan.total_invested == Decimal("880.00")
        assert plan.unspent == Decimal("120.00")
        assert plan.projections.total_value == pytest.approx(SCENARIO_A_TOTAL + 880)

    def test_selection_round_trip(self, engine) -> None:
        original = engine.buy_only(DEFAULT_MODEL_NAME, 1000)

        narrowed = engine.buy_only(DEFAULT_MODEL_NAME, 1000, selected={"MSFT"})
        restored = engine.buy_only(DEFAULT_MODEL_NAME, 1000, selected=original.symbols)

        assert narrowed.symbols == ["MSFT"]
        assert narrowed.total_invested <= Decimal("1000")
        assert restored.suggestions == original.suggestions


@pytest.mark.integration
class TestWhatIf:
    def test_moving_uncategorized_into_tech(self, engine) -> None:
        result = engine.what_if(
            DEFAULT_MODEL_NAME,
            [Trade(UNCATEGORIZED, "sell", 2200), Trade("tech", "buy", 2200)],
        )

        assert result.projected_total_value == pytest.approx(SCENARIO_A_TOTAL)
        assert result.allocation["tech"] == pytest.approx(4100 / SCENARIO_A_TOTAL * 100)
        assert result.allocation[UNCATEGORIZED] == pytest.approx(0.0, abs=1e-6)
        assert result.deviations["tech"] == pytest.approx(4100 / SCENARIO_A_TOTAL * 100 - 80)

    def test_scenario_starts_from_current_allocation(self, engine) -> None:
        scenario = engine.what_if_scenario(DEFAULT_MODEL_NAME)

        assert scenario.result().allocation == pytest.approx(
            engine.compare(DEFAULT_MODEL_NAME).current_allocation
        )


@pytest.mark.integration
class TestExport:
    def test_comparison_json(self, engine, scenario_a) -> None:
        comparison = engine.compare(DEFAULT_MODEL_NAME)
        payload = comparison_payload(
            scenario_a.model,
            comparison,
            actions=engine.category_actions(DEFAULT_MODEL_NAME),
            suggestions=engine.sell_buy(DEFAULT_MODEL_NAME),
        )

        exported = json.loads(to_json(payload))

        assert exported["modelPortfolio"]["name"] == DEFAULT_MODEL_NAME
        assert exported["totalPortfolioValue"] == pytest.approx(SCENARIO_A_TOTAL)
        assert exported["deviations"]["tech"] == pytest.approx(-40.0)
        assert exported["rebalanceActions"][0]["amount"] == 1900.0
        assert exported["specificSuggestions"][0]["symbol"] == "VTI"
        assert exported["specificSuggestions"][0]["price"] == 220.0

    def test_suggestions_csv(self, engine) -> None:
        lines = suggestions_to_csv(engine.sell_buy(DEFAULT_MODEL_NAME)).split("\r\n")

        assert lines[0] == (
            "Symbol,Action,Shares,Value,Category,CurrentAllocation,TargetAllocation,Deviation"
        )
        assert lines[1].startswith('VTI,SELL,10,"$2,200.00",Uncategorized,46.32%,0.00%,46.32%')
        assert len(lines) == 5
