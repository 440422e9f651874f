"""Tests for the exception hierarchy."""

import pytest

from portfolio_tracker.exceptions import (
    AllocationError,
    CategoryError,
    PortfolioError,
    PricingError,
)


@pytest.mark.unit
@pytest.mark.parametrize(
    "error_class", [PricingError, AllocationError, CategoryError]
)
def test_errors_share_a_base(error_class) -> None:
    with pytest.raises(PortfolioError, match="boom"):
        raise error_class("boom")


@pytest.mark.unit
def test_portfolio_error_is_an_exception() -> None:
    assert issubclass(PortfolioError, Exception)
    assert not issubclass(PortfolioError, ValueError)
