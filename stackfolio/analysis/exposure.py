"""Portfolio exposure aggregation.

For every enabled holding the ETF's exposure vector is scaled by the
holding's weight (percentage / 100) and summed per ExposureKey. Everything
else (asset class totals, dimension breakdowns, the equity split, warnings)
is derived from that sum.

Holdings whose ticker is missing from the catalog are skipped. Each one is
recorded as a DataIntegrityError on the result and logged; analysis never
raises for missing data.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple

import pandas as pd

from stackfolio.analysis.warnings import (
    PortfolioWarning,
    WarningContext,
    WarningThresholds,
    evaluate_rules,
    missing_tickers_warning,
)
from stackfolio.catalog.base import ETF, AssetClass, ExposureKey, LeverageType, MarketRegion
from stackfolio.catalog.etf_catalog import EtfCatalog, load_default_catalog
from stackfolio.portfolio.base import Holding, Portfolio
from stackfolio.utils.exceptions import DataIntegrityError
from stackfolio.utils.logging import get_logger
from stackfolio.utils.precision import percent_to_weight, relative_percent, weight_to_percent

logger = get_logger(__name__)

DIMENSIONS = ("asset_class", "market_region", "factor_style", "size_factor")

# Sums of float weights land a hair above 1.0 for unlevered funds
LEVERAGE_EPSILON = 1e-9

# Decimal places amounts are snapped to before ordering
AMOUNT_DECIMALS = 9

EX_US_REGIONS = (MarketRegion.INTERNATIONAL_DEVELOPED, MarketRegion.EMERGING)


@dataclass
class PortfolioAnalysis:
    """Result of analyzing a portfolio.

    Attributes:
        exposures: ExposureKey -> weighted amount (fraction of NAV)
        asset_class_totals: AssetClass -> weighted amount
        total_leverage: Sum of all weighted amounts (1.0 = unlevered)
        data_errors: One error per holding missing from the catalog
    """

    exposures: Dict[ExposureKey, float] = field(default_factory=dict)
    asset_class_totals: Dict[AssetClass, float] = field(default_factory=dict)
    total_leverage: float = 0.0
    data_errors: List[DataIntegrityError] = field(default_factory=list)

    @property
    def is_levered(self) -> bool:
        return self.total_leverage > 1.0 + LEVERAGE_EPSILON

    @property
    def skipped_tickers(self) -> List[str]:
        return [error.ticker for error in self.data_errors]


@dataclass
class ExposureBucket:
    """Aggregated exposure for one value of a dimension.

    Attributes:
        name: Display value (e.g. "Equity", "U.S.")
        amount: Weighted amount (fraction of NAV)
        absolute_percent: Amount in percent of NAV
        relative_percent: Share of the dimension total in percent
    """

    name: str
    amount: float
    absolute_percent: float
    relative_percent: float


@dataclass
class EquityBreakdown:
    """U.S. vs ex-U.S. split of equity exposure.

    Attributes:
        us: U.S. share of equity in percent
        ex_us: International Developed + Emerging share in percent
        total_equity: Total regional equity exposure (fraction of NAV)
    """

    us: float
    ex_us: float
    total_equity: float


@dataclass
class EtfDetail:
    """Per-holding row of template details."""

    ticker: str
    percentage: float
    leverage_type: LeverageType
    leverage_amount: float
    asset_classes: List[AssetClass]


@dataclass
class TemplateDetails:
    """Summary of a portfolio for template cards and detail views."""

    name: str
    etf_count: int
    total_leverage: float
    is_levered: bool
    dominant_asset_classes: List[AssetClass]
    leverage_types_with_amounts: Dict[LeverageType, float]
    etf_details: List[EtfDetail]
    analysis: PortfolioAnalysis
    equity_breakdown: Optional[EquityBreakdown]


class ExposureEngine:
    """Aggregates holdings into portfolio exposure views.

    The catalog is injected, so tests can analyze against small fixture
    catalogs. Holds no mutable state; one engine can serve many portfolios.

    Example:
        >>> engine = ExposureEngine(load_default_catalog())
        >>> hfea = create_portfolio("HFEA", [("UPRO", 55), ("TMF", 45)])
        >>> analysis = engine.analyze(hfea)
        >>> round(analysis.total_leverage, 2)
        3.0
        >>> totals = engine.aggregate_by_dimension(hfea, "asset_class")
        >>> round(totals[AssetClass.EQUITY], 2)
        1.65
    """

    def __init__(
        self,
        catalog: Optional[EtfCatalog] = None,
        config: Optional[Dict] = None,
    ):
        """Initialize the engine.

        Args:
            catalog: ETF catalog (defaults to the packaged catalog)
            config: ``warnings`` configuration section with rule thresholds
        """
        self.catalog = catalog if catalog is not None else load_default_catalog()
        self.thresholds = WarningThresholds.from_config(config)

        logger.debug("ExposureEngine initialized with %d ETFs", len(self.catalog))

    def _resolve(
        self, portfolio: Portfolio
    ) -> Tuple[List[Tuple[str, Holding, ETF]], List[DataIntegrityError]]:
        """Pair enabled holdings with their ETFs, collecting missing tickers."""
        resolved: List[Tuple[str, Holding, ETF]] = []
        errors: List[DataIntegrityError] = []

        for ticker, holding in portfolio.holdings.items():
            if holding.disabled:
                continue
            etf = self.catalog.lookup(ticker)
            if etf is None:
                logger.warning("ETF %s not found in catalog, skipping", ticker)
                errors.append(
                    DataIntegrityError(f"ETF {ticker} not found in catalog", ticker=ticker)
                )
                continue
            resolved.append((ticker, holding, etf))

        return resolved, errors

    def analyze(self, portfolio: Portfolio) -> PortfolioAnalysis:
        """Compute weighted exposure per key and per asset class.

        Args:
            portfolio: Portfolio to analyze

        Returns:
            PortfolioAnalysis; an empty portfolio yields all-zero totals
        """
        resolved, errors = self._resolve(portfolio)
        return self._aggregate(portfolio.name, resolved, errors)

    def _aggregate(
        self,
        name: str,
        resolved: List[Tuple[str, Holding, ETF]],
        errors: List[DataIntegrityError],
    ) -> PortfolioAnalysis:
        analysis = PortfolioAnalysis(data_errors=list(errors))

        for _, holding, etf in resolved:
            weight = percent_to_weight(holding.percentage)
            for key, amount in etf.exposures.items():
                weighted = amount * weight
                analysis.exposures[key] = analysis.exposures.get(key, 0.0) + weighted
                analysis.asset_class_totals[key.asset_class] = (
                    analysis.asset_class_totals.get(key.asset_class, 0.0) + weighted
                )
                analysis.total_leverage += weighted

        logger.debug(
            "Analyzed '%s': %d exposures, total leverage %.4f",
            name,
            len(analysis.exposures),
            analysis.total_leverage,
        )
        return analysis

    def aggregate_by_dimension(
        self,
        portfolio: Portfolio,
        dimension: str,
        analysis: Optional[PortfolioAnalysis] = None,
    ) -> Dict[Enum, float]:
        """Sum exposure by one dimension.

        ``asset_class`` covers every exposure. ``market_region``,
        ``factor_style`` and ``size_factor`` only look at equity exposure
        and skip entries without that dimension.

        Args:
            portfolio: Portfolio to aggregate
            dimension: One of DIMENSIONS
            analysis: Precomputed analysis of ``portfolio`` (optional)

        Returns:
            Dimension value -> weighted amount

        Raises:
            ValueError: If ``dimension`` is unknown
        """
        if dimension not in DIMENSIONS:
            raise ValueError(f"dimension must be one of {DIMENSIONS}, got {dimension!r}")

        if analysis is None:
            analysis = self.analyze(portfolio)

        if dimension == "asset_class":
            return dict(analysis.asset_class_totals)

        totals: Dict[Enum, float] = {}
        for key, amount in analysis.exposures.items():
            if not key.is_equity:
                continue
            value = getattr(key, dimension)
            if value is None:
                continue
            totals[value] = totals.get(value, 0.0) + amount
        return totals

    def breakdown(self, portfolio: Portfolio, dimension: str) -> List[ExposureBucket]:
        """Dimension totals with absolute and relative percentages.

        Buckets are ordered by amount, largest first, then by name.
        """
        totals = self.aggregate_by_dimension(portfolio, dimension)
        grand_total = sum(totals.values())

        buckets = [
            ExposureBucket(
                name=value.value,
                amount=amount,
                absolute_percent=weight_to_percent(amount),
                relative_percent=relative_percent(amount, grand_total),
            )
            for value, amount in totals.items()
        ]
        buckets.sort(key=lambda b: (-round(b.amount, AMOUNT_DECIMALS), b.name))
        return buckets

    def exposure_table(self, portfolio: Portfolio, dimension: str) -> pd.DataFrame:
        """Breakdown as a DataFrame indexed by dimension value.

        Returns:
            DataFrame with columns amount, absolute_percent, relative_percent
        """
        columns = ["amount", "absolute_percent", "relative_percent"]
        buckets = self.breakdown(portfolio, dimension)

        df = pd.DataFrame(
            [[b.amount, b.absolute_percent, b.relative_percent] for b in buckets],
            index=pd.Index([b.name for b in buckets], name=dimension),
            columns=columns,
            dtype=float,
        )
        return df

    def equity_breakdown(
        self,
        portfolio: Portfolio,
        analysis: Optional[PortfolioAnalysis] = None,
    ) -> Optional[EquityBreakdown]:
        """Relative U.S. vs ex-U.S. equity split, None without equity."""
        if analysis is None:
            analysis = self.analyze(portfolio)

        us = 0.0
        ex_us = 0.0
        for key, amount in analysis.exposures.items():
            if not key.is_equity:
                continue
            if key.market_region is MarketRegion.US:
                us += amount
            elif key.market_region in EX_US_REGIONS:
                ex_us += amount

        total = us + ex_us
        if total <= 0:
            return None

        return EquityBreakdown(
            us=relative_percent(us, total),
            ex_us=relative_percent(ex_us, total),
            total_equity=total,
        )

    @staticmethod
    def dominant_asset_classes(
        analysis: PortfolioAnalysis,
        top_n: int = 3,
    ) -> List[AssetClass]:
        """Asset classes with the largest exposure, largest first."""
        ranked = sorted(
            analysis.asset_class_totals.items(),
            key=lambda item: item[1],
            reverse=True,
        )
        return [asset_class for asset_class, _ in ranked[:top_n]]

    def template_details(self, portfolio: Portfolio) -> TemplateDetails:
        """Build the detail view of a portfolio.

        Leverage amount per ETF is its largest single exposure. For each
        leverage type present (other than None) the largest such amount is
        reported.
        """
        resolved, errors = self._resolve(portfolio)
        analysis = self._aggregate(portfolio.name, resolved, errors)

        etf_details: List[EtfDetail] = []
        leverage_types: Dict[LeverageType, float] = {}

        for ticker, holding, etf in resolved:
            leverage_amount = etf.max_exposure
            if etf.leverage_type is not LeverageType.NONE:
                leverage_types[etf.leverage_type] = max(
                    leverage_types.get(etf.leverage_type, 0.0), leverage_amount
                )

            etf_details.append(
                EtfDetail(
                    ticker=ticker,
                    percentage=holding.percentage,
                    leverage_type=etf.leverage_type,
                    leverage_amount=leverage_amount,
                    asset_classes=list(etf.asset_classes),
                )
            )

        return TemplateDetails(
            name=portfolio.name,
            etf_count=len(portfolio.holdings),
            total_leverage=analysis.total_leverage,
            is_levered=analysis.is_levered,
            dominant_asset_classes=self.dominant_asset_classes(analysis),
            leverage_types_with_amounts=leverage_types,
            etf_details=etf_details,
            analysis=analysis,
            equity_breakdown=self.equity_breakdown(portfolio, analysis),
        )

    def evaluate_warnings(self, portfolio: Portfolio) -> List[PortfolioWarning]:
        """Run the warning rules against a portfolio.

        Returns:
            Triggered warnings in rule order; an error-level warning listing
            unknown tickers comes first when any holding is missing from the
            catalog
        """
        resolved, errors = self._resolve(portfolio)
        analysis = self._aggregate(portfolio.name, resolved, errors)

        context = WarningContext(
            holdings={ticker: holding for ticker, holding, _ in resolved},
            etfs={ticker: etf for ticker, _, etf in resolved},
            exposures=analysis.exposures,
            thresholds=self.thresholds,
        )

        warnings = evaluate_rules(context)
        if errors:
            warnings.insert(0, missing_tickers_warning([e.ticker for e in errors]))
        return warnings
