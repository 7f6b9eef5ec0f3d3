"""ETF Catalog Layer.

Static, read-only description of every ETF the portfolio builder knows:
its exposure vector and its leverage type.

Components:
- ExposureKey: Composite (asset class, region, factor, size) identifier
- ETF: Immutable fund definition with exposure weights
- EtfCatalog: Injectable ticker -> ETF lookup
"""

from stackfolio.catalog.base import (
    ETF,
    AssetClass,
    EtfMetadata,
    ExposureKey,
    FactorStyle,
    LeverageType,
    MarketRegion,
    SizeFactor,
)
from stackfolio.catalog.etf_catalog import EtfCatalog, load_default_catalog

__all__ = [
    "AssetClass",
    "MarketRegion",
    "FactorStyle",
    "SizeFactor",
    "LeverageType",
    "ExposureKey",
    "EtfMetadata",
    "ETF",
    "EtfCatalog",
    "load_default_catalog",
]
