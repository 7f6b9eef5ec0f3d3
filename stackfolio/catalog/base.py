"""ETF domain types: exposure dimensions, exposure keys and ETFs.

An ETF is described by its exposure vector: a mapping from ExposureKey to a
non-negative weight per unit of NAV. The weights of one ETF sum to its total
leverage, e.g. 2.0 for a 2x fund or 2.0 for a 100/100 return stacked fund.
"""

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Dict, Mapping, Optional, Tuple, Type, TypeVar

from stackfolio.utils.exceptions import CatalogError

KEY_SEPARATOR = "|"


class AssetClass(Enum):
    """Asset class categories."""

    EQUITY = "Equity"
    US_TREASURIES = "U.S. Treasuries"
    MANAGED_FUTURES = "Managed Futures"
    FUTURES_YIELD = "Futures Yield"
    GOLD = "Gold"
    BITCOIN = "Bitcoin"


class MarketRegion(Enum):
    """Equity market regions."""

    US = "U.S."
    INTERNATIONAL_DEVELOPED = "International Developed"
    EMERGING = "Emerging"


class FactorStyle(Enum):
    """Equity factor styles."""

    BLEND = "Blend"
    GROWTH = "Growth"
    VALUE = "Value"


class SizeFactor(Enum):
    """Equity market cap buckets."""

    LARGE_CAP = "Large Cap"
    SMALL_CAP = "Small Cap"


class LeverageType(Enum):
    """How an ETF gets its leverage."""

    NONE = "None"
    STACKED = "Stacked"
    DAILY_RESET = "Daily Reset"
    EXTENDED_DURATION = "Extended Duration"


E = TypeVar("E", bound=Enum)


def parse_enum(enum_cls: Type[E], value: str) -> E:
    """Look up an enum member by its display value.

    Raises:
        CatalogError: If the value is not a member of the enum
    """
    try:
        return enum_cls(value)
    except ValueError:
        raise CatalogError(
            f"Unknown {enum_cls.__name__} value: {value!r}"
        ) from None


@dataclass(frozen=True)
class ExposureKey:
    """Composite exposure identifier.

    Only ``asset_class`` is required; region, factor style and size apply to
    equity. An absent dimension is None, so two keys are equal exactly when
    all four components are equal.

    Attributes:
        asset_class: Asset class of the exposure
        market_region: Equity region (optional)
        factor_style: Equity factor style (optional)
        size_factor: Equity size bucket (optional)
    """

    asset_class: AssetClass
    market_region: Optional[MarketRegion] = None
    factor_style: Optional[FactorStyle] = None
    size_factor: Optional[SizeFactor] = None

    def encode(self) -> str:
        """Encode as ``"Equity|U.S.|Blend|Large Cap"``.

        Absent dimensions become empty fields. No enum value is empty, so
        the encoding is unambiguous and ``decode`` reverses it.
        """
        parts = (
            self.asset_class,
            self.market_region,
            self.factor_style,
            self.size_factor,
        )
        return KEY_SEPARATOR.join("" if p is None else p.value for p in parts)

    @classmethod
    def decode(cls, key: str) -> "ExposureKey":
        """Parse a key produced by ``encode``.

        Raises:
            CatalogError: If the key has the wrong number of fields or an
                unknown dimension value
        """
        parts = key.split(KEY_SEPARATOR)
        if len(parts) != 4:
            raise CatalogError(f"Exposure key must have 4 fields: {key!r}")

        asset_class, region, factor, size = parts
        if not asset_class:
            raise CatalogError(f"Exposure key has no asset class: {key!r}")

        return cls(
            asset_class=parse_enum(AssetClass, asset_class),
            market_region=parse_enum(MarketRegion, region) if region else None,
            factor_style=parse_enum(FactorStyle, factor) if factor else None,
            size_factor=parse_enum(SizeFactor, size) if size else None,
        )

    @property
    def is_equity(self) -> bool:
        return self.asset_class is AssetClass.EQUITY

    def __str__(self) -> str:
        return self.encode()


@dataclass(frozen=True)
class EtfMetadata:
    """Descriptive fund data. Not used in any calculation."""

    name: Optional[str] = None
    inception_date: Optional[str] = None
    expense_ratio: Optional[float] = None
    net_assets: Optional[str] = None
    dividend_yield: Optional[float] = None


@dataclass(frozen=True)
class ETF:
    """Immutable ETF definition.

    Attributes:
        ticker: Unique ticker symbol
        exposures: Read-only mapping ExposureKey -> weight per unit of NAV
        leverage_type: How the fund is levered
        metadata: Optional descriptive data
    """

    ticker: str
    exposures: Mapping[ExposureKey, float]
    leverage_type: LeverageType = LeverageType.NONE
    metadata: EtfMetadata = field(default_factory=EtfMetadata)

    def __post_init__(self):
        """Validate exposures and freeze the mapping."""
        if not self.ticker:
            raise CatalogError("ETF ticker must be non-empty")

        frozen: Dict[ExposureKey, float] = {}
        for key, weight in dict(self.exposures).items():
            if not isinstance(key, ExposureKey):
                raise CatalogError(
                    f"{self.ticker}: exposure key must be an ExposureKey, got {key!r}"
                )
            if weight < 0:
                raise CatalogError(
                    f"{self.ticker}: exposure weight must be non-negative, got {weight}"
                )
            frozen[key] = float(weight)

        object.__setattr__(self, "exposures", MappingProxyType(frozen))

    @property
    def total_leverage(self) -> float:
        """Sum of exposure weights (1.0 = unlevered)."""
        return sum(self.exposures.values())

    @property
    def max_exposure(self) -> float:
        """Largest single exposure weight."""
        return max(self.exposures.values(), default=0.0)

    @property
    def asset_classes(self) -> Tuple[AssetClass, ...]:
        """Asset classes of this ETF in exposure order, without duplicates."""
        seen: Dict[AssetClass, None] = {}
        for key in self.exposures:
            seen.setdefault(key.asset_class, None)
        return tuple(seen)

    def __hash__(self) -> int:
        return hash(self.ticker)
