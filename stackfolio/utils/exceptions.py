"""Custom exceptions for stackfolio.

This module defines the exception hierarchy for the application.
"""

from typing import Optional


class StackfolioError(Exception):
    """Base exception for all stackfolio errors.

    All custom exceptions in the application should inherit from this class.
    """

    pass


class ConfigurationError(StackfolioError):
    """Raised when configuration is invalid or missing.

    Examples:
        - Configuration file is not a YAML mapping
        - Configuration file not found
    """

    pass


class PortfolioError(StackfolioError):
    """Base exception for portfolio layer errors.

    Parent class for all portfolio-related exceptions.
    """

    pass


class AllocationError(PortfolioError):
    """Raised when an allocation cannot be built or changed.

    Examples:
        - Template allocations do not sum to 100%
        - Rebalancing operation rejected
    """

    pass


class InvalidOperationError(AllocationError):
    """Raised when an operation would break the 100% allocation invariant.

    The holdings passed to the failing operation are always left unchanged.

    Examples:
        - Removing the last holding
        - Overcommitting allocation past locked holdings
        - No adjustable holding left to absorb a change
    """

    pass


class DataError(StackfolioError):
    """Base exception for data layer errors.

    Parent class for all data-related exceptions.
    """

    pass


class CatalogError(DataError):
    """Raised when ETF catalog data is malformed.

    Examples:
        - Unknown asset class or region in catalog file
        - Negative exposure weight
        - Duplicate ticker
    """

    pass


class DataIntegrityError(DataError):
    """A holding references a ticker that is missing from the ETF catalog.

    Exposure analysis records these instead of raising them, so the rest of
    the portfolio can still be analyzed.
    """

    def __init__(self, message: str, ticker: Optional[str] = None):
        super().__init__(message)
        self.ticker = ticker


class InvalidPortfolioFormatError(DataError):
    """Raised when a serialized portfolio does not have the expected shape.

    Examples:
        - Missing name or holdings
        - Holding entry that is not a [ticker, holding] pair
        - Invalid JSON
    """

    pass
