"""Read-only ETF catalog.

The catalog is passed into the exposure engine rather than looked up as a
module global, so tests can build small fixture catalogs in memory. The
packaged catalog lives in ``etfs.yaml`` next to this module.
"""

from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Optional

import yaml

from stackfolio.catalog.base import (
    ETF,
    AssetClass,
    EtfMetadata,
    ExposureKey,
    FactorStyle,
    LeverageType,
    MarketRegion,
    SizeFactor,
    parse_enum,
)
from stackfolio.utils.exceptions import CatalogError
from stackfolio.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_CATALOG_PATH = Path(__file__).parent / "etfs.yaml"

_METADATA_FIELDS = (
    "name",
    "inception_date",
    "expense_ratio",
    "net_assets",
    "dividend_yield",
)


class EtfCatalog:
    """Immutable ticker -> ETF lookup table.

    Example:
        >>> catalog = load_default_catalog()
        >>> etf = catalog.lookup("RSSB")
        >>> etf.total_leverage
        2.0
        >>> catalog.lookup("NOPE") is None
        True
    """

    def __init__(self, etfs: Iterable[ETF]):
        """Build the catalog.

        Args:
            etfs: ETF definitions; tickers must be unique

        Raises:
            CatalogError: If a ticker appears twice
        """
        self._etfs: Dict[str, ETF] = {}
        for etf in etfs:
            if etf.ticker in self._etfs:
                raise CatalogError(f"Duplicate ticker in catalog: {etf.ticker}")
            self._etfs[etf.ticker] = etf

    @classmethod
    def from_records(cls, records: Iterable[Dict[str, Any]]) -> "EtfCatalog":
        """Build a catalog from plain dict records (the YAML shape)."""
        return cls(etf_from_record(record) for record in records)

    @classmethod
    def from_file(cls, filepath: str | Path) -> "EtfCatalog":
        """Load a catalog from a YAML file with a top-level ``etfs`` list.

        Raises:
            FileNotFoundError: If the file doesn't exist
            CatalogError: If the content is malformed
        """
        path = Path(filepath)
        if not path.exists():
            raise FileNotFoundError(f"Catalog file not found: {filepath}")

        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        records = data.get("etfs") if isinstance(data, dict) else None
        if not isinstance(records, list):
            raise CatalogError(f"Catalog file must contain an 'etfs' list: {filepath}")

        catalog = cls.from_records(records)
        logger.debug("Loaded %d ETFs from %s", len(catalog), path)
        return catalog

    def lookup(self, ticker: str) -> Optional[ETF]:
        """Return the ETF for ``ticker``, or None if it is not in the catalog."""
        return self._etfs.get(ticker)

    def tickers(self) -> List[str]:
        return list(self._etfs)

    def __contains__(self, ticker: object) -> bool:
        return ticker in self._etfs

    def __iter__(self) -> Iterator[ETF]:
        return iter(self._etfs.values())

    def __len__(self) -> int:
        return len(self._etfs)


def etf_from_record(record: Dict[str, Any]) -> ETF:
    """Convert one catalog record into an ETF.

    Record shape::

        ticker: RSST
        leverage_type: Stacked          # optional, defaults to None
        exposures:
          - {asset_class: Equity, market_region: U.S., weight: 1.0}
        metadata: {name: ...}           # optional

    Raises:
        CatalogError: On missing fields or unknown dimension values
    """
    if not isinstance(record, dict):
        raise CatalogError(f"Catalog record must be a mapping, got {record!r}")

    ticker = record.get("ticker")
    if not ticker:
        raise CatalogError(f"Catalog record without ticker: {record!r}")

    raw_exposures = record.get("exposures")
    if not isinstance(raw_exposures, list) or not raw_exposures:
        raise CatalogError(f"{ticker}: exposures must be a non-empty list")

    exposures: Dict[ExposureKey, float] = {}
    for raw in raw_exposures:
        key = _exposure_key_from_record(ticker, raw)
        try:
            weight = float(raw["weight"])
        except (KeyError, TypeError, ValueError):
            raise CatalogError(f"{ticker}: exposure without numeric weight: {raw!r}") from None
        # Repeated keys in one fund add up
        exposures[key] = exposures.get(key, 0.0) + weight

    leverage_type = parse_enum(LeverageType, record.get("leverage_type", "None"))

    raw_metadata = record.get("metadata") or {}
    metadata = EtfMetadata(**{k: raw_metadata.get(k) for k in _METADATA_FIELDS})

    return ETF(
        ticker=str(ticker),
        exposures=exposures,
        leverage_type=leverage_type,
        metadata=metadata,
    )


def _exposure_key_from_record(ticker: str, raw: Any) -> ExposureKey:
    if not isinstance(raw, dict) or "asset_class" not in raw:
        raise CatalogError(f"{ticker}: exposure needs an asset_class: {raw!r}")

    region = raw.get("market_region")
    factor = raw.get("factor_style")
    size = raw.get("size_factor")
    return ExposureKey(
        asset_class=parse_enum(AssetClass, raw["asset_class"]),
        market_region=parse_enum(MarketRegion, region) if region else None,
        factor_style=parse_enum(FactorStyle, factor) if factor else None,
        size_factor=parse_enum(SizeFactor, size) if size else None,
    )


def load_default_catalog() -> EtfCatalog:
    """Load the catalog shipped with the package."""
    return EtfCatalog.from_file(DEFAULT_CATALOG_PATH)
