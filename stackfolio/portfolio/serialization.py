"""Portfolio persistence shape and JSON import/export.

The serialized shape stores holdings as an ordered list of
``[ticker, holding]`` pairs so insertion order survives a JSON round trip::

    {
      "name": "HFEA",
      "holdings": [["UPRO", {"percentage": 55.0, "locked": false, "disabled": false}]],
      "createdAt": 1718000000000,
      "etfCount": 1
    }

Older saved portfolios stored a bare number instead of a holding object.
Those are normalized here, so nothing past this module needs to care.
"""

import json
import time
from dataclasses import dataclass, field
from numbers import Real
from typing import Any, Dict, List, Optional, Tuple

from stackfolio.portfolio.base import Holding, Portfolio
from stackfolio.utils.exceptions import InvalidPortfolioFormatError
from stackfolio.utils.logging import get_logger
from stackfolio.utils.precision import clamp_percentage

logger = get_logger(__name__)


def _now_millis() -> int:
    return int(time.time() * 1000)


@dataclass
class SerializedPortfolio:
    """Storage form of a Portfolio.

    Attributes:
        name: Portfolio name
        holdings: (ticker, Holding) pairs in display order. A disabled
            holding keeps its stored percentage, so the exported
            ``percentage`` is non-zero and ``disabled`` is true.
        created_at: Creation time in epoch milliseconds
        etf_count: Number of holdings at save time
    """

    name: str
    holdings: List[Tuple[str, Holding]] = field(default_factory=list)
    created_at: int = field(default_factory=_now_millis)
    etf_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the JSON-compatible dict shape."""
        return {
            "name": self.name,
            "holdings": [
                [
                    ticker,
                    {
                        "percentage": holding.percentage,
                        "locked": holding.locked,
                        "disabled": holding.disabled,
                    },
                ]
                for ticker, holding in self.holdings
            ],
            "createdAt": self.created_at,
            "etfCount": self.etf_count,
        }

    @classmethod
    def from_dict(cls, data: Any) -> "SerializedPortfolio":
        """Parse the dict shape produced by ``to_dict``.

        ``etfCount`` and ``createdAt`` are optional. Holdings given as a bare
        number are read as an unlocked, enabled holding at that percentage.

        Raises:
            InvalidPortfolioFormatError: If ``name`` or ``holdings`` is
                missing or malformed, or a ticker appears twice
        """
        if not isinstance(data, dict):
            raise InvalidPortfolioFormatError("Portfolio data must be an object")

        name = data.get("name")
        if not isinstance(name, str) or not name:
            raise InvalidPortfolioFormatError("Portfolio data has no name")

        raw_holdings = data.get("holdings")
        if not isinstance(raw_holdings, list):
            raise InvalidPortfolioFormatError(
                f"Portfolio '{name}' has no holdings list"
            )

        holdings = [_parse_entry(name, entry) for entry in raw_holdings]
        seen = set()
        for ticker, _ in holdings:
            if ticker in seen:
                raise InvalidPortfolioFormatError(
                    f"Portfolio '{name}' lists {ticker} more than once"
                )
            seen.add(ticker)

        created_at = data.get("createdAt")
        if not isinstance(created_at, Real) or isinstance(created_at, bool):
            created_at = _now_millis()

        etf_count = data.get("etfCount")
        if not isinstance(etf_count, int) or isinstance(etf_count, bool):
            etf_count = len(holdings)

        return cls(
            name=name,
            holdings=holdings,
            created_at=int(created_at),
            etf_count=etf_count,
        )


def _parse_entry(name: str, entry: Any) -> Tuple[str, Holding]:
    if not isinstance(entry, (list, tuple)) or len(entry) != 2:
        raise InvalidPortfolioFormatError(
            f"Portfolio '{name}': holding must be a [ticker, holding] pair, got {entry!r}"
        )

    ticker, raw = entry
    if not isinstance(ticker, str) or not ticker:
        raise InvalidPortfolioFormatError(
            f"Portfolio '{name}': invalid ticker {ticker!r}"
        )

    # Legacy format: bare percentage
    if _is_number(raw):
        return ticker, Holding(percentage=clamp_percentage(raw))

    if not isinstance(raw, dict) or not _is_number(raw.get("percentage")):
        raise InvalidPortfolioFormatError(
            f"Portfolio '{name}': holding {ticker} has no numeric percentage"
        )

    return ticker, Holding(
        percentage=clamp_percentage(raw["percentage"]),
        locked=bool(raw.get("locked", False)),
        disabled=bool(raw.get("disabled", False)),
    )


def _is_number(value: Any) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool)


def serialize(portfolio: Portfolio, created_at: Optional[int] = None) -> SerializedPortfolio:
    """Convert a Portfolio to its storage form.

    Args:
        portfolio: Portfolio to convert
        created_at: Timestamp to use when the portfolio has none
            (default: now)
    """
    if portfolio.created_at is not None:
        timestamp = portfolio.created_at
    elif created_at is not None:
        timestamp = created_at
    else:
        timestamp = _now_millis()

    return SerializedPortfolio(
        name=portfolio.name,
        holdings=list(portfolio.holdings.items()),
        created_at=timestamp,
        etf_count=len(portfolio.holdings),
    )


def deserialize(serialized: SerializedPortfolio) -> Portfolio:
    """Convert a storage form back to a Portfolio."""
    return Portfolio(
        name=serialized.name,
        holdings=dict(serialized.holdings),
        created_at=serialized.created_at,
    )


def export_json(portfolio: Portfolio) -> str:
    """Export a portfolio as pretty-printed JSON."""
    return json.dumps(serialize(portfolio).to_dict(), indent=2)


def import_json(text: str) -> Portfolio:
    """Import a portfolio from JSON produced by ``export_json``.

    Raises:
        InvalidPortfolioFormatError: If the text is not valid JSON or does
            not describe a portfolio
    """
    try:
        data = json.loads(text)
    except (TypeError, ValueError) as e:
        raise InvalidPortfolioFormatError(f"Invalid portfolio JSON: {e}") from e

    portfolio = deserialize(SerializedPortfolio.from_dict(data))
    logger.debug(
        "Imported portfolio '%s' with %d holdings",
        portfolio.name,
        len(portfolio.holdings),
    )
    return portfolio
