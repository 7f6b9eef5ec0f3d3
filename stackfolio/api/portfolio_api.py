"""User-friendly Portfolio API for building and analyzing ETF portfolios.

This module provides a single high-level interface for the portfolio
builder UI: creating portfolios from templates, editing allocations,
analyzing exposure, and importing/exporting JSON.

Every editing method takes a Portfolio and returns a new Portfolio. The
input is left unchanged, including when the operation is rejected.
"""

import copy
from pathlib import Path
from typing import Dict, Iterable, List, Optional

import pandas as pd

from stackfolio.analysis.exposure import (
    EquityBreakdown,
    ExposureEngine,
    PortfolioAnalysis,
    TemplateDetails,
)
from stackfolio.analysis.warnings import PortfolioWarning
from stackfolio.catalog.base import ETF
from stackfolio.catalog.etf_catalog import EtfCatalog, load_default_catalog
from stackfolio.portfolio.base import Portfolio, RebalancingEngine, UpdateLike
from stackfolio.portfolio.comparison import is_portfolio_modified
from stackfolio.portfolio.rebalancer import create_rebalancer
from stackfolio.portfolio.serialization import export_json, import_json
from stackfolio.portfolio.templates import (
    DEFAULT_PORTFOLIO_NAME,
    DEFAULT_SAVED_PORTFOLIOS,
    EXAMPLE_PORTFOLIOS,
    find_template,
)
from stackfolio.utils.config import Config, load_config
from stackfolio.utils.exceptions import PortfolioError
from stackfolio.utils.logging import get_logger

logger = get_logger(__name__)


class PortfolioAPI:
    """High-level API for portfolio building.

    Wires a rebalancing engine, an exposure engine and the ETF catalog
    together.

    Example:
        >>> from stackfolio.api.portfolio_api import PortfolioAPI
        >>>
        >>> api = PortfolioAPI()
        >>> portfolio = api.create_from_template("HFEA")
        >>>
        >>> # Lock TMF, add GLDM, then cut UPRO to 40%
        >>> portfolio = api.lock_holding(portfolio, "TMF")
        >>> portfolio = api.add_holding(portfolio, "GLDM")
        >>> portfolio = api.update_allocation(portfolio, "UPRO", 40)
        >>> portfolio.holdings["GLDM"].percentage
        15.0
        >>>
        >>> for warning in api.evaluate_warnings(portfolio):
        ...     print(warning.level.value, warning.message)
    """

    def __init__(
        self,
        rebalancer: Optional[RebalancingEngine] = None,
        exposure_engine: Optional[ExposureEngine] = None,
        catalog: Optional[EtfCatalog] = None,
    ):
        """Initialize PortfolioAPI.

        Args:
            rebalancer: RebalancingEngine instance (defaults to
                BasisPointRebalancer)
            exposure_engine: ExposureEngine instance (defaults to a new
                engine over ``catalog``)
            catalog: ETF catalog (defaults to the packaged catalog)
        """
        self.rebalancer = rebalancer or create_rebalancer()
        if exposure_engine is None:
            exposure_engine = ExposureEngine(catalog or load_default_catalog())
        self.exposure_engine = exposure_engine
        self.catalog = self.exposure_engine.catalog

        logger.debug(
            "PortfolioAPI initialized with %s", type(self.rebalancer).__name__
        )

    @classmethod
    def from_config(cls, config: Config | str | Path | None = None) -> "PortfolioAPI":
        """Build the API from configuration.

        Args:
            config: Config instance or path to a YAML file (default:
                config/default.yaml, then built-in defaults)

        Returns:
            Configured PortfolioAPI
        """
        if not isinstance(config, Config):
            config = load_config(config)

        catalog_path = config.get("catalog.path")
        catalog = EtfCatalog.from_file(catalog_path) if catalog_path else load_default_catalog()

        return cls(
            rebalancer=create_rebalancer(config.section("allocation")),
            exposure_engine=ExposureEngine(catalog, config.section("warnings")),
        )

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    def create_empty(self, name: str = DEFAULT_PORTFOLIO_NAME) -> Portfolio:
        """Create a portfolio without holdings."""
        return Portfolio(name=name)

    def create_from_template(self, name: str) -> Portfolio:
        """Create an editable copy of an example or default portfolio.

        Raises:
            PortfolioError: If no template has that name
        """
        template = find_template(name)
        if template is None:
            raise PortfolioError(f"Unknown portfolio template: {name}")
        return self.clone(template)

    def example_portfolios(self) -> List[Portfolio]:
        """Copies of the example templates."""
        return [self.clone(p) for p in EXAMPLE_PORTFOLIOS]

    def default_saved_portfolios(self) -> List[Portfolio]:
        """Copies of the portfolios that always appear as saved."""
        return [self.clone(p) for p in DEFAULT_SAVED_PORTFOLIOS]

    def available_etfs(self) -> List[ETF]:
        """All catalog ETFs, in catalog order."""
        return list(self.catalog)

    @staticmethod
    def clone(portfolio: Portfolio, name: Optional[str] = None) -> Portfolio:
        """Copy a portfolio, optionally under a new name."""
        cloned = copy.deepcopy(portfolio)
        if name is not None:
            cloned.name = name
        return cloned

    # ------------------------------------------------------------------
    # Allocation
    # ------------------------------------------------------------------

    def add_holding(
        self,
        portfolio: Portfolio,
        ticker: str,
        position: Optional[int] = None,
    ) -> Portfolio:
        """Add a ticker (100% if first, else 0%).

        Raises:
            PortfolioError: If the ticker is not in the catalog
            InvalidOperationError: If the ticker is already held
        """
        if ticker not in self.catalog:
            raise PortfolioError(f"Unknown ETF: {ticker}")
        holdings = self.rebalancer.add_holding(portfolio.holdings, ticker, position)
        return portfolio.with_holdings(holdings)

    def remove_holding(self, portfolio: Portfolio, ticker: str) -> Portfolio:
        holdings = self.rebalancer.remove_holding(portfolio.holdings, ticker)
        return portfolio.with_holdings(holdings)

    def update_allocation(
        self,
        portfolio: Portfolio,
        ticker: str,
        percentage: float,
    ) -> Portfolio:
        holdings = self.rebalancer.update_allocation(portfolio.holdings, ticker, percentage)
        return portfolio.with_holdings(holdings)

    def lock_holding(
        self,
        portfolio: Portfolio,
        ticker: str,
        locked: bool = True,
    ) -> Portfolio:
        holdings = self.rebalancer.lock_holding(portfolio.holdings, ticker, locked)
        return portfolio.with_holdings(holdings)

    def disable_holding(
        self,
        portfolio: Portfolio,
        ticker: str,
        disabled: bool = True,
        percentage: Optional[float] = None,
    ) -> Portfolio:
        holdings = self.rebalancer.disable_holding(
            portfolio.holdings, ticker, disabled, percentage
        )
        return portfolio.with_holdings(holdings)

    def bulk_update_allocations(
        self,
        portfolio: Portfolio,
        updates: Iterable[UpdateLike],
        override_locks: bool = False,
    ) -> Portfolio:
        holdings = self.rebalancer.bulk_update_allocations(
            portfolio.holdings, updates, override_locks
        )
        return portfolio.with_holdings(holdings)

    def equal_weight(self, portfolio: Portfolio) -> Portfolio:
        holdings = self.rebalancer.equal_weight(portfolio.holdings)
        return portfolio.with_holdings(holdings)

    def total_allocation(self, portfolio: Portfolio) -> float:
        return self.rebalancer.total_allocation(portfolio.holdings)

    def is_valid(self, portfolio: Portfolio) -> bool:
        """True if the portfolio can be saved (total within tolerance)."""
        return self.rebalancer.is_valid(portfolio.holdings)

    # ------------------------------------------------------------------
    # Analysis
    # ------------------------------------------------------------------

    def analyze(self, portfolio: Portfolio) -> PortfolioAnalysis:
        return self.exposure_engine.analyze(portfolio)

    def aggregate_by_dimension(self, portfolio: Portfolio, dimension: str) -> Dict:
        return self.exposure_engine.aggregate_by_dimension(portfolio, dimension)

    def exposure_table(self, portfolio: Portfolio, dimension: str = "asset_class") -> pd.DataFrame:
        return self.exposure_engine.exposure_table(portfolio, dimension)

    def equity_breakdown(self, portfolio: Portfolio) -> Optional[EquityBreakdown]:
        return self.exposure_engine.equity_breakdown(portfolio)

    def template_details(self, portfolio: Portfolio) -> TemplateDetails:
        return self.exposure_engine.template_details(portfolio)

    def evaluate_warnings(self, portfolio: Portfolio) -> List[PortfolioWarning]:
        return self.exposure_engine.evaluate_warnings(portfolio)

    # ------------------------------------------------------------------
    # Import / export
    # ------------------------------------------------------------------

    def export_json(self, portfolio: Portfolio) -> str:
        return export_json(portfolio)

    def import_json(self, text: str) -> Portfolio:
        """Import a portfolio exported by ``export_json``.

        Holdings for tickers missing from the catalog are kept; they show up
        as data errors when the portfolio is analyzed.

        Raises:
            InvalidPortfolioFormatError: If the JSON is not a portfolio
        """
        portfolio = import_json(text)
        unknown = [t for t in portfolio.holdings if t not in self.catalog]
        if unknown:
            logger.warning(
                "Imported portfolio '%s' holds unknown ETFs: %s",
                portfolio.name,
                ", ".join(unknown),
            )
        return portfolio

    @staticmethod
    def is_modified(current: Portfolio, original: Optional[Portfolio]) -> bool:
        """True if ``current`` differs from the portfolio it started as."""
        return is_portfolio_modified(current, original)
