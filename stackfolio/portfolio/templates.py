"""Built-in portfolio templates.

EXAMPLE_PORTFOLIOS are offered as starting points. DEFAULT_SAVED_PORTFOLIOS
always appear in the saved list unless the user saved a portfolio with the
same name.

Templates are validated at import time: a template that does not add up to
100% is a programming error and fails loudly.
"""

from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from stackfolio.portfolio.base import Holding, Portfolio
from stackfolio.portfolio.serialization import SerializedPortfolio, serialize
from stackfolio.utils.exceptions import AllocationError
from stackfolio.utils.precision import MAX_PERCENTAGE

DEFAULT_PORTFOLIO_NAME = "New, Unsaved Portfolio"
TEMPLATE_TOLERANCE = 0.01


def create_portfolio(name: str, allocations: Iterable[Tuple[str, float]]) -> Portfolio:
    """Create a portfolio from (ticker, percentage) pairs.

    Args:
        name: Portfolio name
        allocations: (ticker, percentage) pairs in display order

    Returns:
        Portfolio with unlocked, enabled holdings

    Raises:
        AllocationError: If the percentages do not add up to 100 (within
            0.01) or a ticker appears twice

    Example:
        >>> hfea = create_portfolio("HFEA", [("UPRO", 55), ("TMF", 45)])
        >>> list(hfea.holdings)
        ['UPRO', 'TMF']
    """
    holdings: Dict[str, Holding] = {}
    for ticker, percentage in allocations:
        if ticker in holdings:
            raise AllocationError(f"Portfolio '{name}' lists {ticker} twice")
        holdings[ticker] = Holding(percentage=percentage)

    total = sum(h.percentage for h in holdings.values())
    if abs(total - MAX_PERCENTAGE) > TEMPLATE_TOLERANCE:
        raise AllocationError(
            f"Portfolio '{name}' allocations must add up to 100%. "
            f"Current total: {total}%"
        )

    return Portfolio(name=name, holdings=holdings)


EXAMPLE_PORTFOLIOS: List[Portfolio] = [
    create_portfolio("SSO/ZROZ/GLD", [("SSO", 50), ("ZROZ", 30), ("GLDM", 20)]),
    create_portfolio("HFEA", [("UPRO", 55), ("TMF", 45)]),
    create_portfolio(
        "Return Stacked® Max",
        [("RSSB", 25), ("RSST", 25), ("RSSY", 25), ("RSSX", 25)],
    ),
    create_portfolio(
        "Value Barbell",
        [("RSST", 25), ("RSSB", 25), ("AVDV", 15), ("DGS", 15), ("AVUV", 20)],
    ),
]

DEFAULT_SAVED_PORTFOLIOS: List[Portfolio] = [
    create_portfolio(
        "SSO/ZROZ/GLD alt. A",
        [
            ("SSO", 20),
            ("ZROZ", 20),
            ("RSSX", 15),
            ("RSST", 15),
            ("AVDS", 15),
            ("AVEE", 15),
        ],
    ),
    create_portfolio(
        "SSO/ZROZ/GLD alt. B",
        [
            ("SSO", 25),
            ("RSSX", 10),
            ("RSSY", 10),
            ("AVEE", 15),
            ("AVDV", 15),
            ("ZROZ", 10),
            ("KMLM", 7.5),
            ("CTA", 7.5),
        ],
    ),
    create_portfolio(
        "HFEA Tamed",
        [
            ("SSO", 50),
            ("ZROZ", 50 / 3),
            ("KMLM", 50 / 6),
            ("CTA", 50 / 6),
            ("BTGD", 50 / 3),
        ],
    ),
    create_portfolio(
        "Global Return Stacked® Max",
        [
            ("RSSB", 17.5),
            ("RSST", 17.5),
            ("RSSY", 17.5),
            ("RSSX", 17.5),
            ("AVDS", 15),
            ("AVEE", 15),
        ],
    ),
]


def find_template(
    name: str,
    templates: Optional[Sequence[Portfolio]] = None,
) -> Optional[Portfolio]:
    """Look up a template by name among examples and default saved ones."""
    if templates is None:
        templates = EXAMPLE_PORTFOLIOS + DEFAULT_SAVED_PORTFOLIOS
    for template in templates:
        if template.name == name:
            return template
    return None


def merge_saved_portfolios(
    user_saved: Sequence[SerializedPortfolio],
    created_at: Optional[int] = None,
) -> List[SerializedPortfolio]:
    """Combine default saved portfolios with the user's own.

    Defaults come first, except those the user overwrote by saving a
    portfolio under the same name; user portfolios follow in their order.

    Args:
        user_saved: Portfolios the user saved
        created_at: Timestamp for the defaults (default: now)
    """
    user_names = {p.name for p in user_saved}
    defaults = [
        serialize(p, created_at=created_at)
        for p in DEFAULT_SAVED_PORTFOLIOS
        if p.name not in user_names
    ]
    return defaults + list(user_saved)
