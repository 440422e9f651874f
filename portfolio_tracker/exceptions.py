class PortfolioError(Exception):
    """Base exception for all portfolio related errors."""

    pass


class PricingError(PortfolioError):
    """Raised when there is an issue with pricing data (e.g., negative price)."""

    pass


class AllocationError(PortfolioError):
    """Raised when allocation validation fails (e.g., sum != 100%)."""

    pass


class CategoryError(PortfolioError):
    """Raised when a category definition is invalid (e.g., reserved id)."""

    pass
