"""Portfolio equality checks.

Percentages are compared in basis points, so 33.333 and 33.33 are the
same allocation while 33.3 and 33.4 are not.
"""

from typing import Optional

from stackfolio.portfolio.base import Portfolio
from stackfolio.utils.precision import percent_to_basis_points


def portfolios_equal(first: Portfolio, second: Portfolio) -> bool:
    """True if both portfolios hold the same tickers at the same allocation.

    Names, timestamps, holding order and lock/disable flags are ignored.

    Example:
        >>> a = Portfolio("A", {"VOO": Holding(60.0), "TLT": Holding(40.0)})
        >>> b = Portfolio("B", {"TLT": Holding(40.001), "VOO": Holding(60.0)})
        >>> portfolios_equal(a, b)
        True
    """
    if len(first.holdings) != len(second.holdings):
        return False

    for ticker, holding in first.holdings.items():
        other = second.holdings.get(ticker)
        if other is None:
            return False
        if percent_to_basis_points(holding.percentage) != percent_to_basis_points(
            other.percentage
        ):
            return False

    return True


def is_portfolio_modified(current: Portfolio, original: Optional[Portfolio]) -> bool:
    """True if ``current`` differs from the template it was created from.

    A portfolio with no original is never considered modified.
    """
    if original is None:
        return False
    return not portfolios_equal(current, original)
