"""Portfolio construction warnings.

Each rule is a pure check over aggregated portfolio data that returns a
PortfolioWarning when triggered and None otherwise. Rules run in the order
of WARNING_RULES so the output is stable.

Thresholds are percent of NAV.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Mapping, Optional

from stackfolio.catalog.base import ETF, ExposureKey, LeverageType, MarketRegion, SizeFactor
from stackfolio.portfolio.base import Holding
from stackfolio.utils.precision import round_for_display, weight_to_percent


class WarningLevel(Enum):
    """Severity of a portfolio warning."""

    ERROR = "error"  # Data problem, analysis is incomplete
    WARNING = "warning"  # Risk worth acting on
    INFO = "info"  # Diversification hint


@dataclass(frozen=True)
class PortfolioWarning:
    """A triggered warning.

    Attributes:
        level: Severity
        message: One-line summary including the offending values
        description: Recommendation shown below the message
    """

    level: WarningLevel
    message: str
    description: Optional[str] = None


@dataclass
class WarningThresholds:
    """Warning rule thresholds.

    Attributes:
        concentration_threshold: Max percentage for a single ETF (default 25)
        daily_reset_leverage_threshold: Max leverage of a daily reset ETF
            (default 2.0)
        min_international_developed: Min International Developed equity
            exposure in percent of NAV (default 10)
        min_emerging_markets: Min Emerging Markets equity exposure (default 10)
        min_small_cap: Min small cap equity exposure (default 10)
    """

    concentration_threshold: float = 25.0
    daily_reset_leverage_threshold: float = 2.0
    min_international_developed: float = 10.0
    min_emerging_markets: float = 10.0
    min_small_cap: float = 10.0

    def __post_init__(self):
        """Validate thresholds."""
        if not 0 <= self.concentration_threshold <= 100:
            raise ValueError(
                f"concentration_threshold must be in [0, 100], got {self.concentration_threshold}"
            )
        if self.daily_reset_leverage_threshold < 0:
            raise ValueError(
                "daily_reset_leverage_threshold must be non-negative, "
                f"got {self.daily_reset_leverage_threshold}"
            )
        for name in ("min_international_developed", "min_emerging_markets", "min_small_cap"):
            value = getattr(self, name)
            if value < 0:
                raise ValueError(f"{name} must be non-negative, got {value}")

    @classmethod
    def from_config(cls, config: Optional[Mapping] = None) -> "WarningThresholds":
        """Build thresholds from a ``warnings`` configuration section."""
        config = config or {}
        defaults = cls()
        return cls(
            concentration_threshold=config.get(
                "concentration_threshold", defaults.concentration_threshold
            ),
            daily_reset_leverage_threshold=config.get(
                "daily_reset_leverage_threshold", defaults.daily_reset_leverage_threshold
            ),
            min_international_developed=config.get(
                "min_international_developed", defaults.min_international_developed
            ),
            min_emerging_markets=config.get(
                "min_emerging_markets", defaults.min_emerging_markets
            ),
            min_small_cap=config.get("min_small_cap", defaults.min_small_cap),
        )


@dataclass
class WarningContext:
    """Data the rules look at.

    Attributes:
        holdings: Enabled holdings found in the catalog
        etfs: Ticker -> ETF for those holdings
        exposures: Aggregated portfolio exposure per ExposureKey (weights)
        thresholds: Rule thresholds
    """

    holdings: Dict[str, Holding]
    etfs: Dict[str, ETF]
    exposures: Dict[ExposureKey, float]
    thresholds: WarningThresholds = field(default_factory=WarningThresholds)

    def equity_percent(
        self,
        region: Optional[MarketRegion] = None,
        size: Optional[SizeFactor] = None,
    ) -> float:
        """Equity exposure in percent of NAV, optionally filtered."""
        total = 0.0
        for key, amount in self.exposures.items():
            if not key.is_equity:
                continue
            if region is not None and key.market_region is not region:
                continue
            if size is not None and key.size_factor is not size:
                continue
            total += amount
        return weight_to_percent(total)


def _format_percent(value: float) -> str:
    return f"{round_for_display(value):g}"


def check_single_etf_concentration(context: WarningContext) -> Optional[PortfolioWarning]:
    """Warn when any single ETF holds more than the concentration threshold."""
    limit = context.thresholds.concentration_threshold
    concentrated = [
        f"{ticker} ({_format_percent(holding.percentage)}%)"
        for ticker, holding in context.holdings.items()
        if holding.percentage > limit
    ]
    if not concentrated:
        return None

    return PortfolioWarning(
        level=WarningLevel.WARNING,
        message=f"High single ETF concentration: {', '.join(concentrated)}",
        description="Consider diversifying across more holdings to reduce concentration risk",
    )


def check_daily_reset_leverage(context: WarningContext) -> Optional[PortfolioWarning]:
    """Warn about daily reset ETFs levered beyond the threshold."""
    limit = context.thresholds.daily_reset_leverage_threshold
    levered = [
        ticker
        for ticker, etf in context.etfs.items()
        if etf.leverage_type is LeverageType.DAILY_RESET and etf.total_leverage > limit
    ]
    if not levered:
        return None

    return PortfolioWarning(
        level=WarningLevel.WARNING,
        message=f"High daily reset leverage detected ({', '.join(levered)})",
        description=(
            f"Daily reset ETFs with >{limit:g}x leverage can experience decay "
            "during volatile markets"
        ),
    )


def check_international_developed(context: WarningContext) -> Optional[PortfolioWarning]:
    minimum = context.thresholds.min_international_developed
    exposure = context.equity_percent(region=MarketRegion.INTERNATIONAL_DEVELOPED)
    if exposure >= minimum:
        return None

    return PortfolioWarning(
        level=WarningLevel.INFO,
        message=f"Insufficient International Developed Markets exposure ({exposure:.1f}%)",
        description=(
            f"Consider adding at least {minimum:g}% International Developed "
            "exposure for global diversification"
        ),
    )


def check_emerging_markets(context: WarningContext) -> Optional[PortfolioWarning]:
    minimum = context.thresholds.min_emerging_markets
    exposure = context.equity_percent(region=MarketRegion.EMERGING)
    if exposure >= minimum:
        return None

    return PortfolioWarning(
        level=WarningLevel.INFO,
        message=f"Insufficient Emerging Markets exposure ({exposure:.1f}%)",
        description=f"Consider adding at least {minimum:g}% EM exposure for global diversification",
    )


def check_small_cap(context: WarningContext) -> Optional[PortfolioWarning]:
    minimum = context.thresholds.min_small_cap
    exposure = context.equity_percent(size=SizeFactor.SMALL_CAP)
    if exposure >= minimum:
        return None

    return PortfolioWarning(
        level=WarningLevel.INFO,
        message=f"Insufficient Small Cap exposure ({exposure:.1f}%)",
        description=(
            f"Consider adding at least {minimum:g}% small cap exposure "
            "for potential enhanced returns"
        ),
    )


WarningRule = Callable[[WarningContext], Optional[PortfolioWarning]]

WARNING_RULES: List[WarningRule] = [
    check_single_etf_concentration,
    check_daily_reset_leverage,
    check_international_developed,
    check_emerging_markets,
    check_small_cap,
]


def evaluate_rules(
    context: WarningContext,
    rules: Optional[List[WarningRule]] = None,
) -> List[PortfolioWarning]:
    """Run rules in order and collect triggered warnings."""
    warnings: List[PortfolioWarning] = []
    for rule in rules if rules is not None else WARNING_RULES:
        warning = rule(context)
        if warning is not None:
            warnings.append(warning)
    return warnings


def missing_tickers_warning(tickers: List[str]) -> PortfolioWarning:
    """Error-level warning for holdings that are not in the catalog."""
    return PortfolioWarning(
        level=WarningLevel.ERROR,
        message=f"Unknown ETF data for: {', '.join(tickers)}",
        description="These holdings were skipped, so exposures and warnings are incomplete",
    )
