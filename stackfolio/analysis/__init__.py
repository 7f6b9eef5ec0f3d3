"""Exposure Analysis Layer.

Turns a portfolio and the ETF catalog into aggregated exposure views and
construction warnings.

Components:
- ExposureEngine: Weighted exposure aggregation and derived views
- PortfolioAnalysis: Exposure per key and per asset class, total leverage
- PortfolioWarning: Triggered warning rule (error / warning / info)
"""

from stackfolio.analysis.exposure import (
    DIMENSIONS,
    EquityBreakdown,
    EtfDetail,
    ExposureBucket,
    ExposureEngine,
    PortfolioAnalysis,
    TemplateDetails,
)
from stackfolio.analysis.warnings import (
    WARNING_RULES,
    PortfolioWarning,
    WarningLevel,
    WarningThresholds,
)

__all__ = [
    "ExposureEngine",
    "PortfolioAnalysis",
    "ExposureBucket",
    "EquityBreakdown",
    "EtfDetail",
    "TemplateDetails",
    "DIMENSIONS",
    "PortfolioWarning",
    "WarningLevel",
    "WarningThresholds",
    "WARNING_RULES",
]
