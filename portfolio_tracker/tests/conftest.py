"""
Root-level pytest fixtures for the portfolio_tracker test suite.

Fixture Hierarchy:
- categories: tech and finance user categories
- scenario_a: categories, accounts, mappings, prices and the Growth model
- engine: RebalancingEngine over scenario_a
"""

from types import SimpleNamespace
from typing import Any

import pytest

from portfolio_tracker.services.allocations import AllocationCalculator
from portfolio_tracker.services.pricing import normalize_prices
from portfolio_tracker.services.rebalancing import PortfolioSnapshot, RebalancingEngine
from portfolio_tracker.tests.constants import DEFAULT_ACCOUNT_NAME, DEFAULT_MODEL_NAME
from portfolio_tracker.tests.factories import CategoryFactory, make_account, make_model


@pytest.fixture
def categories():
    return [
        CategoryFactory(id="tech", name="Technology"),
        CategoryFactory(id="finance", name="Finance"),
    ]


@pytest.fixture
def calculator():
    return AllocationCalculator()


@pytest.fixture
def scenario_a(categories):
    """
    Mixed portfolio partly outside the model.

    Holdings: AAPL 10 @ 150, MSFT 2 @ 200, JPM 5 @ 130, VTI 10 @ 220 (unmapped)
    Model:    AAPL 40%, MSFT 40%, JPM 20%
    """
    data: Any = SimpleNamespace()
    data.categories = categories
    data.stock_categories = {"AAPL": "tech", "MSFT": "tech", "JPM": "finance"}
    data.prices = normalize_prices({"AAPL": 150, "MSFT": 200, "JPM": 130, "VTI": 220})
    data.accounts = [
        make_account({"AAPL": 10, "MSFT": 2}, name=DEFAULT_ACCOUNT_NAME),
        make_account({"JPM": 5, "VTI": 10}, name="IRA"),
    ]
    data.model = make_model({"AAPL": 40, "MSFT": 40, "JPM": 20}, name=DEFAULT_MODEL_NAME)
    data.snapshot = PortfolioSnapshot(
        categories=data.categories,
        accounts=data.accounts,
        stock_categories=data.stock_categories,
        prices=data.prices,
        model_portfolios=[data.model],
    )
    return data


@pytest.fixture
def engine(scenario_a):
    return RebalancingEngine(scenario_a.snapshot)
