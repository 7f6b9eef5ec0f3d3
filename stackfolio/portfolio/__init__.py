"""Portfolio Management Layer.

This layer keeps a portfolio of ETF holdings allocated to exactly 100% while
holdings are added, removed, edited, locked and disabled.

Components:
- Holding / Portfolio: Holdings model
- RebalancingEngine: Abstract interface for allocation rebalancing
- BasisPointRebalancer: Exact integer (basis point) rebalancer
- LegacyRebalancer: Float rebalancer kept for compatibility
- SerializedPortfolio: Storage and JSON form of a portfolio
- Templates: Example and default saved portfolios
"""

from stackfolio.portfolio.base import (
    AllocationUpdate,
    Holding,
    Holdings,
    Portfolio,
    RebalancingEngine,
)
from stackfolio.portfolio.comparison import is_portfolio_modified, portfolios_equal
from stackfolio.portfolio.rebalancer import (
    BasisPointRebalancer,
    LegacyRebalancer,
    create_rebalancer,
)
from stackfolio.portfolio.serialization import (
    SerializedPortfolio,
    deserialize,
    export_json,
    import_json,
    serialize,
)
from stackfolio.portfolio.templates import (
    DEFAULT_PORTFOLIO_NAME,
    DEFAULT_SAVED_PORTFOLIOS,
    EXAMPLE_PORTFOLIOS,
    create_portfolio,
    find_template,
    merge_saved_portfolios,
)

__all__ = [
    "Holding",
    "Holdings",
    "Portfolio",
    "AllocationUpdate",
    "RebalancingEngine",
    "BasisPointRebalancer",
    "LegacyRebalancer",
    "create_rebalancer",
    "SerializedPortfolio",
    "serialize",
    "deserialize",
    "export_json",
    "import_json",
    "portfolios_equal",
    "is_portfolio_modified",
    "create_portfolio",
    "find_template",
    "merge_saved_portfolios",
    "EXAMPLE_PORTFOLIOS",
    "DEFAULT_SAVED_PORTFOLIOS",
    "DEFAULT_PORTFOLIO_NAME",
]
