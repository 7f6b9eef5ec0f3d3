"""Portfolio domain types and the abstract rebalancing engine.

This module defines the holdings model and the contract every rebalancing
engine honors: the enabled holdings of a portfolio always sum to 100%.

Responsibilities:
- Holding / Portfolio data structures
- Adding, removing, locking and disabling holdings
- Redistributing allocation among adjustable (enabled, unlocked) holdings
- Rejecting operations that cannot keep the invariant

Every operation takes a holdings mapping and returns a new dict. The
caller's mapping is never mutated, and a rejected operation raises
InvalidOperationError without producing any partial state.
"""

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from typing import Dict, Iterable, List, Optional, Tuple, Union

from stackfolio.utils.exceptions import InvalidOperationError
from stackfolio.utils.logging import get_logger, log_with_context
from stackfolio.utils.precision import (
    MAX_PERCENTAGE,
    clamp_percentage,
    percent_to_basis_points,
    round_for_display,
)

logger = get_logger(__name__)

Units = Union[int, float]

# Float sums of 1-decimal values miss the tolerance edge by ~1e-14
TOLERANCE_EPSILON = 1e-9


@dataclass(frozen=True)
class Holding:
    """One ETF position inside a portfolio.

    Attributes:
        percentage: Share of portfolio equity, 0-100
        locked: Locked holdings are never changed by rebalancing
        disabled: Disabled holdings count as 0% and are skipped by
            allocation math and exposure analysis. ``percentage`` keeps the
            stored value so re-enabling can restore it; only
            ``effective_percentage`` drops to 0
    """

    percentage: float
    locked: bool = False
    disabled: bool = False

    def __post_init__(self):
        """Validate holding fields."""
        percentage = float(self.percentage)
        if math.isnan(percentage) or not 0 <= percentage <= MAX_PERCENTAGE:
            raise ValueError(
                f"percentage must be in [0, 100], got {self.percentage}"
            )
        object.__setattr__(self, "percentage", percentage)
        object.__setattr__(self, "locked", bool(self.locked))
        object.__setattr__(self, "disabled", bool(self.disabled))

    @property
    def effective_percentage(self) -> float:
        """Percentage that counts toward the total (0 when disabled)."""
        return 0.0 if self.disabled else self.percentage

    @property
    def basis_points(self) -> int:
        return percent_to_basis_points(self.effective_percentage)

    @property
    def display_percentage(self) -> float:
        return round_for_display(self.effective_percentage)

    @property
    def adjustable(self) -> bool:
        """Enabled and unlocked: may absorb or give up allocation."""
        return not self.locked and not self.disabled


Holdings = Dict[str, Holding]


@dataclass
class Portfolio:
    """A named, ordered collection of holdings.

    Attributes:
        name: Display name
        holdings: Ticker -> Holding, in display order
        created_at: Creation time in epoch milliseconds (optional)
    """

    name: str
    holdings: Holdings = field(default_factory=dict)
    created_at: Optional[int] = None

    def with_holdings(self, holdings: Holdings) -> "Portfolio":
        """Return a copy of this portfolio with new holdings."""
        return replace(self, holdings=dict(holdings))

    @property
    def enabled_holdings(self) -> Holdings:
        return {t: h for t, h in self.holdings.items() if not h.disabled}


@dataclass
class AllocationUpdate:
    """Target percentage for one ticker in a bulk update."""

    ticker: str
    percentage: float


UpdateLike = Union[AllocationUpdate, Tuple[str, float]]


class RebalancingEngine(ABC):
    """Abstract interface for allocation rebalancing.

    Subclasses choose the numeric representation of allocations ("units")
    and how an amount is split across holdings. Every public operation is
    implemented here once on top of those primitives.

    Design Principles:
    - Only adjustable holdings (enabled and unlocked) absorb changes
    - Redistribution is proportional to current allocation, equal when the
      adjustable holdings currently total 0
    - Work happens on a scratch copy that is returned only on success

    Example:
        >>> engine = BasisPointRebalancer()
        >>> holdings = {"VOO": Holding(60.0), "TLT": Holding(40.0)}
        >>> engine.remove_holding(holdings, "TLT")
        {'VOO': Holding(percentage=100.0, locked=False, disabled=False)}
    """

    def __init__(self, config: Optional[Dict] = None):
        """Initialize engine with configuration.

        Args:
            config: ``allocation`` configuration section. Uses sensible
                defaults if not provided.
        """
        config = config or {}

        self.total_tolerance = config.get("total_tolerance", 0.1)

        self._validate_config()

    def _validate_config(self) -> None:
        """Validate configuration parameters."""
        if not 0 <= self.total_tolerance < MAX_PERCENTAGE:
            raise ValueError(
                f"total_tolerance must be in [0, 100), got {self.total_tolerance}"
            )

    # ------------------------------------------------------------------
    # Numeric primitives
    # ------------------------------------------------------------------

    @property
    @abstractmethod
    def total_units(self) -> Units:
        """Units that represent a fully allocated (100%) portfolio."""
        pass

    @abstractmethod
    def to_units(self, percentage: float) -> Units:
        """Convert a percentage to internal units."""
        pass

    @abstractmethod
    def to_percent(self, units: Units) -> float:
        """Convert internal units back to a percentage."""
        pass

    @abstractmethod
    def distribute(
        self,
        amount: Units,
        current: List[Tuple[str, Units]],
        set_directly: bool,
    ) -> Dict[str, Units]:
        """Split ``amount`` across the target holdings.

        Shares are proportional to each target's current units, or equal
        when the current units total 0.

        Args:
            amount: Units to hand out
            current: (ticker, current units) for each target, in order
            set_directly: If True each target's new value is its share;
                otherwise the share is added to its current value

        Returns:
            New units for every target ticker
        """
        pass

    def round_percentage(self, percentage: float) -> float:
        """Snap a percentage onto the engine's storage grid."""
        return percentage

    def _finalize(self, holdings: Holdings) -> Holdings:
        """Hook applied to every successfully rebalanced holdings dict."""
        return holdings

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def units_of(self, holding: Holding) -> Units:
        """Units a holding contributes to the total (0 when disabled)."""
        if holding.disabled:
            return self.to_units(0.0)
        return self.to_units(holding.percentage)

    def total_allocation(self, holdings: Holdings) -> float:
        """Sum of enabled holding percentages.

        Example:
            >>> engine.total_allocation({"VOO": Holding(60.0), "TLT": Holding(40.0)})
            100.0
        """
        total = sum(self.units_of(h) for h in holdings.values())
        return self.to_percent(total)

    def is_precise(self, holdings: Holdings) -> bool:
        """True if enabled holdings total exactly 100%."""
        total = sum(self.units_of(h) for h in holdings.values())
        return total == self.total_units

    def is_valid(self, holdings: Holdings) -> bool:
        """True if the total is within tolerance of 100% (saveable)."""
        if not holdings:
            return False
        deviation = abs(self.total_allocation(holdings) - MAX_PERCENTAGE)
        return deviation <= self.total_tolerance + TOLERANCE_EPSILON

    @staticmethod
    def adjustable_tickers(
        holdings: Holdings,
        exclude: Optional[str] = None,
    ) -> List[str]:
        """Tickers of enabled, unlocked holdings in iteration order."""
        return [
            ticker
            for ticker, holding in holdings.items()
            if ticker != exclude and holding.adjustable
        ]

    def locked_units(self, holdings: Holdings, exclude: Optional[str] = None) -> Units:
        """Units held by locked holdings; disabled ones contribute 0."""
        return sum(
            (
                self.units_of(holding)
                for ticker, holding in holdings.items()
                if ticker != exclude and holding.locked
            ),
            self.to_units(0.0),
        )

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def add_holding(
        self,
        holdings: Holdings,
        ticker: str,
        position: Optional[int] = None,
    ) -> Holdings:
        """Insert a new holding.

        The first holding of a portfolio starts at 100%, every later one at
        0%, so no existing holding has to change.

        Args:
            holdings: Current holdings
            ticker: Ticker to add
            position: Index in display order (default: append)

        Returns:
            New holdings dict

        Raises:
            InvalidOperationError: If the ticker is already held
        """
        if ticker in holdings:
            self._reject("Ticker already in portfolio", ticker=ticker)

        percentage = MAX_PERCENTAGE if not holdings else 0.0
        items = list(holdings.items())
        index = len(items) if position is None else max(0, min(position, len(items)))
        items.insert(index, (ticker, Holding(percentage=percentage)))

        log_with_context(
            logger, "debug", "Holding added", ticker=ticker, percentage=percentage
        )
        return dict(items)

    def remove_holding(self, holdings: Holdings, ticker: str) -> Holdings:
        """Remove a holding and hand its allocation to the others.

        If no adjustable holding remains, the first remaining holding in
        iteration order takes the allocation and is unlocked (or re-enabled
        if it was disabled).

        Raises:
            InvalidOperationError: If ticker is unknown or is the last holding
        """
        holding = self._require(holdings, ticker)
        if len(holdings) <= 1:
            self._reject("Cannot remove the last holding", ticker=ticker)

        scratch = dict(holdings)
        del scratch[ticker]

        deleted = self.units_of(holding)
        if deleted == 0:
            return scratch

        adjustable = self.adjustable_tickers(scratch)
        if not adjustable:
            first = next(iter(scratch))
            target = scratch[first]
            if target.disabled:
                scratch[first] = replace(
                    target,
                    disabled=False,
                    locked=False,
                    percentage=self._percentage_for(deleted),
                )
            else:
                scratch[first] = replace(
                    target,
                    locked=False,
                    percentage=self._percentage_for(self.units_of(target) + deleted),
                )
            log_with_context(
                logger, "debug", "Allocation moved to first holding",
                removed=ticker, receiver=first,
            )
        else:
            current = [(t, self.units_of(scratch[t])) for t in adjustable]
            self._apply(scratch, self.distribute(deleted, current, set_directly=False))

        log_with_context(
            logger, "debug", "Holding removed",
            ticker=ticker, redistributed=self.to_percent(deleted),
        )
        return self._finalize(scratch)

    def update_allocation(
        self,
        holdings: Holdings,
        ticker: str,
        new_percentage: float,
    ) -> Holdings:
        """Set one holding's percentage and rebalance the adjustable others.

        The other adjustable holdings are set (not incremented) so that
        they fill ``100 - locked - new_percentage`` in proportion to their
        current allocation.

        Args:
            holdings: Current holdings
            ticker: Holding to change
            new_percentage: Target percentage; NaN/out-of-range input is
                clamped into [0, 100]

        Returns:
            New holdings dict (an unchanged copy if the value is the same)

        Raises:
            InvalidOperationError: If the holding is locked or disabled, the
                change would overcommit past locked holdings, or no other
                holding can absorb the difference
        """
        holding = self._require(holdings, ticker)
        if holding.locked:
            self._reject("Holding is locked", ticker=ticker)
        if holding.disabled:
            self._reject("Holding is disabled", ticker=ticker)

        new_units = self.to_units(self.round_percentage(clamp_percentage(new_percentage)))
        if new_units == self.units_of(holding):
            return dict(holdings)

        remaining = self.total_units - self.locked_units(holdings, exclude=ticker) - new_units
        if remaining < 0:
            self._reject(
                "Allocation overcommitted",
                ticker=ticker,
                requested=self.to_percent(new_units),
                available=self.to_percent(self.total_units - self.locked_units(holdings, exclude=ticker)),
            )

        adjustable = self.adjustable_tickers(holdings, exclude=ticker)
        if not adjustable:
            self._reject("No adjustable holdings to absorb change", ticker=ticker)

        scratch = dict(holdings)
        scratch[ticker] = replace(holding, percentage=self._percentage_for(new_units))
        current = [(t, self.units_of(holdings[t])) for t in adjustable]
        self._apply(scratch, self.distribute(remaining, current, set_directly=True))

        log_with_context(
            logger, "debug", "Allocation updated",
            ticker=ticker, percentage=self.to_percent(new_units),
        )
        return self._finalize(scratch)

    def lock_holding(self, holdings: Holdings, ticker: str, locked: bool = True) -> Holdings:
        """Set the lock flag. No rebalancing happens.

        Raises:
            InvalidOperationError: If the holding is unknown or disabled
        """
        holding = self._require(holdings, ticker)
        if holding.disabled:
            self._reject("Cannot lock a disabled holding", ticker=ticker)

        scratch = dict(holdings)
        scratch[ticker] = replace(holding, locked=locked)
        return scratch

    def disable_holding(
        self,
        holdings: Holdings,
        ticker: str,
        disabled: bool = True,
        percentage: Optional[float] = None,
    ) -> Holdings:
        """Disable or re-enable a holding.

        Disabling makes the holding count as 0% (its stored percentage is
        kept), unlocks it, and adds its old allocation to the adjustable
        holdings.

        Enabling is atomic: the holding comes back unlocked at ``percentage``
        (or its stored percentage when not given) and the other adjustable
        holdings are set to fill the rest. When the stored percentage cannot
        be accommodated the holding is enabled at 0%.

        Args:
            holdings: Current holdings
            ticker: Holding to change
            disabled: True to disable, False to enable
            percentage: Target percentage when enabling (optional)

        Raises:
            InvalidOperationError: If disabling leaves no adjustable holding
                to absorb a non-zero allocation, or an explicit enabling
                ``percentage`` cannot be accommodated
        """
        holding = self._require(holdings, ticker)
        if disabled:
            return self._disable(holdings, ticker, holding)
        return self._enable(holdings, ticker, holding, percentage)

    def bulk_update_allocations(
        self,
        holdings: Holdings,
        updates: Iterable[UpdateLike],
        override_locks: bool = False,
    ) -> Holdings:
        """Apply precomputed percentages without cross-redistribution.

        Used for imports and drag edits where the caller already computed a
        consistent set. Updates for unknown tickers, disabled holdings with a
        non-zero target, or locked holdings (unless ``override_locks``) are
        skipped. Every percentage is rounded afterwards.

        Args:
            holdings: Current holdings
            updates: AllocationUpdate objects or (ticker, percentage) pairs
            override_locks: Also update locked holdings

        Returns:
            New holdings dict
        """
        scratch = dict(holdings)
        skipped: List[str] = []

        for update in updates:
            if isinstance(update, AllocationUpdate):
                ticker, requested = update.ticker, update.percentage
            else:
                ticker, requested = update

            holding = scratch.get(ticker)
            percentage = clamp_percentage(requested)
            if (
                holding is None
                or (holding.disabled and percentage != 0)
                or (holding.locked and not override_locks)
            ):
                skipped.append(ticker)
                continue

            scratch[ticker] = replace(holding, percentage=percentage)

        if skipped:
            log_with_context(logger, "debug", "Bulk updates skipped", tickers=skipped)

        return {
            ticker: replace(holding, percentage=self.round_percentage(holding.percentage))
            for ticker, holding in scratch.items()
        }

    def equal_weight(self, holdings: Holdings) -> Holdings:
        """Split everything not held by locked holdings equally.

        Raises:
            InvalidOperationError: If no holding is adjustable
        """
        adjustable = self.adjustable_tickers(holdings)
        if not adjustable:
            self._reject("No adjustable holdings to equal weight")

        remaining = self.total_units - self.locked_units(holdings)
        if remaining < 0:
            self._reject("Locked holdings exceed 100%")

        scratch = dict(holdings)
        zero = self.to_units(0.0)
        current = [(t, zero) for t in adjustable]
        self._apply(scratch, self.distribute(remaining, current, set_directly=True))
        return self._finalize(scratch)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _disable(self, holdings: Holdings, ticker: str, holding: Holding) -> Holdings:
        if holding.disabled:
            return dict(holdings)

        old = self.units_of(holding)
        scratch = dict(holdings)
        # Stored percentage is kept for re-enabling; it counts as 0 while disabled
        scratch[ticker] = replace(holding, disabled=True, locked=False)

        if old > 0:
            adjustable = self.adjustable_tickers(scratch)
            if not adjustable:
                self._reject("No adjustable holdings to absorb allocation", ticker=ticker)
            current = [(t, self.units_of(scratch[t])) for t in adjustable]
            self._apply(scratch, self.distribute(old, current, set_directly=False))

        log_with_context(
            logger, "debug", "Holding disabled",
            ticker=ticker, redistributed=self.to_percent(old),
        )
        return self._finalize(scratch)

    def _enable(
        self,
        holdings: Holdings,
        ticker: str,
        holding: Holding,
        percentage: Optional[float],
    ) -> Holdings:
        if not holding.disabled:
            return dict(holdings)

        explicit = percentage is not None
        target_pct = (
            self.round_percentage(clamp_percentage(percentage)) if explicit else holding.percentage
        )
        target = self.to_units(target_pct)

        scratch = dict(holdings)
        scratch[ticker] = replace(holding, percentage=0.0, disabled=False, locked=False)
        if target == 0:
            return self._finalize(scratch)

        remaining = self.total_units - self.locked_units(scratch, exclude=ticker) - target
        adjustable = self.adjustable_tickers(scratch, exclude=ticker)
        if remaining < 0 or not adjustable:
            if explicit:
                self._reject(
                    "Cannot enable holding at requested allocation",
                    ticker=ticker,
                    requested=target_pct,
                )
            log_with_context(
                logger, "info", "Holding enabled at 0%",
                ticker=ticker, stored=target_pct,
            )
            return self._finalize(scratch)

        scratch[ticker] = replace(scratch[ticker], percentage=self._percentage_for(target))
        current = [(t, self.units_of(scratch[t])) for t in adjustable]
        self._apply(scratch, self.distribute(remaining, current, set_directly=True))
        return self._finalize(scratch)

    def _percentage_for(self, units: Units) -> float:
        return min(MAX_PERCENTAGE, max(0.0, self.to_percent(units)))

    def _apply(self, scratch: Holdings, values: Dict[str, Units]) -> None:
        for ticker, units in values.items():
            scratch[ticker] = replace(scratch[ticker], percentage=self._percentage_for(units))

    @staticmethod
    def _require(holdings: Holdings, ticker: str) -> Holding:
        holding = holdings.get(ticker)
        if holding is None:
            RebalancingEngine._reject("Unknown ticker", ticker=ticker)
        return holding

    @staticmethod
    def _reject(reason: str, **context) -> None:
        log_with_context(logger, "info", f"Allocation rejected: {reason}", **context)
        raise InvalidOperationError(reason)
