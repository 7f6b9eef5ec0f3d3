"""Concrete rebalancing engines.

BasisPointRebalancer is the default. It stores allocation as integer basis
points so the enabled holdings always total exactly 10000bp (100.00%).

LegacyRebalancer keeps the old float behavior: proportional float shares,
every percentage rounded to 1 decimal afterwards, no renormalization. The
total may drift by a few tenths of a percent. It exists so saved portfolios
produced by the old behavior can be reproduced and compared.

Algorithm (both engines):
1. Collect the adjustable (enabled, unlocked) targets in iteration order
2. Share an amount proportional to their current allocation
3. Split equally when the targets currently hold nothing
4. Give the last target whatever the earlier shares left over
"""

from typing import Dict, List, Optional, Tuple

from stackfolio.portfolio.base import Holding, Holdings, RebalancingEngine
from stackfolio.utils.precision import (
    MAX_BASIS_POINTS,
    MAX_PERCENTAGE,
    basis_points_to_percent,
    percent_to_basis_points,
    round_for_display,
)

PRECISION_BASIS_POINTS = "basis_points"
PRECISION_LEGACY = "legacy"


class BasisPointRebalancer(RebalancingEngine):
    """Exact integer rebalancer.

    Every share except the last is floored; the last target takes the exact
    remainder. Shares therefore never go negative and always sum to the
    amount being distributed.

    Example:
        >>> engine = BasisPointRebalancer()
        >>> holdings = {
        ...     "A": Holding(100.0),
        ...     "B": Holding(0.0),
        ...     "C": Holding(0.0),
        ...     "D": Holding(0.0),
        ... }
        >>> result = engine.remove_holding(holdings, "A")
        >>> [h.basis_points for h in result.values()]
        [3333, 3333, 3334]
    """

    @property
    def total_units(self) -> int:
        return MAX_BASIS_POINTS

    def to_units(self, percentage: float) -> int:
        return percent_to_basis_points(percentage)

    def to_percent(self, units: int) -> float:
        return basis_points_to_percent(units)

    def round_percentage(self, percentage: float) -> float:
        return basis_points_to_percent(percent_to_basis_points(percentage))

    def distribute(
        self,
        amount: int,
        current: List[Tuple[str, int]],
        set_directly: bool,
    ) -> Dict[str, int]:
        if not current:
            return {}

        total = sum(units for _, units in current)
        result: Dict[str, int] = {}
        handed_out = 0

        for ticker, units in current[:-1]:
            if total > 0:
                share = amount * units // total
            else:
                share = amount // len(current)
            handed_out += share
            result[ticker] = share if set_directly else units + share

        last_ticker, last_units = current[-1]
        remainder = amount - handed_out
        result[last_ticker] = remainder if set_directly else last_units + remainder
        return result


class LegacyRebalancer(RebalancingEngine):
    """Float rebalancer with 1-decimal rounding.

    Kept for compatibility testing. Totals may drift away from 100 by the
    accumulated rounding of the individual holdings.
    """

    @property
    def total_units(self) -> float:
        return MAX_PERCENTAGE

    def to_units(self, percentage: float) -> float:
        return float(percentage)

    def to_percent(self, units: float) -> float:
        return float(units)

    def round_percentage(self, percentage: float) -> float:
        return round_for_display(percentage)

    def is_precise(self, holdings: Holdings) -> bool:
        return abs(self.total_allocation(holdings) - MAX_PERCENTAGE) < 1e-9

    def distribute(
        self,
        amount: float,
        current: List[Tuple[str, float]],
        set_directly: bool,
    ) -> Dict[str, float]:
        if not current:
            return {}

        total = sum(units for _, units in current)
        result: Dict[str, float] = {}
        handed_out = 0.0

        for ticker, units in current[:-1]:
            share = amount * units / total if total > 0 else amount / len(current)
            handed_out += share
            result[ticker] = share if set_directly else units + share

        last_ticker, last_units = current[-1]
        remainder = max(0.0, amount - handed_out)
        result[last_ticker] = remainder if set_directly else last_units + remainder
        return result

    def _finalize(self, holdings: Holdings) -> Holdings:
        return {
            ticker: Holding(
                percentage=self.round_percentage(holding.percentage),
                locked=holding.locked,
                disabled=holding.disabled,
            )
            for ticker, holding in holdings.items()
        }


_ENGINES = {
    PRECISION_BASIS_POINTS: BasisPointRebalancer,
    PRECISION_LEGACY: LegacyRebalancer,
}


def create_rebalancer(config: Optional[Dict] = None) -> RebalancingEngine:
    """Build the rebalancing engine selected by ``precision``.

    Args:
        config: ``allocation`` configuration section, e.g.
            ``{"precision": "basis_points", "total_tolerance": 0.1}``

    Returns:
        Configured RebalancingEngine

    Raises:
        ValueError: If ``precision`` names no known engine
    """
    config = config or {}
    precision = config.get("precision", PRECISION_BASIS_POINTS)

    engine_cls = _ENGINES.get(precision)
    if engine_cls is None:
        raise ValueError(
            f"precision must be one of {sorted(_ENGINES)}, got {precision!r}"
        )
    return engine_cls(config)
